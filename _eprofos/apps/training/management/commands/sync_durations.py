from django.core.exceptions import ValidationError
from django.core.management.base import BaseCommand, CommandError

from apps.training.models import Formation
from apps.training.services.durations import DurationCalculationService


class Command(BaseCommand):
    help = 'Recalcule les durées (cours, chapitres, modules, formations) à partir du contenu pédagogique'

    def add_arguments(self, parser):
        parser.add_argument(
            '--formation',
            help='Identifiant de la formation à recalculer (toutes par défaut)',
        )
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Affiche les écarts sans rien enregistrer',
        )

        parser.add_argument(
            '--inactive',
            action='store_true',
            help='Inclut les formations inactives',
        )

    def handle(self, *args, **options):
        formation_id = options['formation']
        service = DurationCalculationService()

        if formation_id:
            try:
                formations = [Formation.objects.get(pk=formation_id)]
            except (Formation.DoesNotExist, ValidationError):
                raise CommandError(f"Formation {formation_id} non trouvée")
        else:
            formations = Formation.objects.all()
            if not options['inactive']:
                formations = formations.filter(is_active=True)

        changed = 0
        for formation in formations:
            old_hours = formation.duration_hours

            if options['dry_run']:
                new_hours = service.calculate_formation_duration(formation)
            else:
                new_hours = service.sync_formation(formation)

            if old_hours != new_hours:
                changed += 1
                self.stdout.write(f'{formation.title}: {old_hours}h → {new_hours}h')

        if options['dry_run']:
            self.stdout.write(self.style.WARNING(f'Simulation : {changed} formation(s) à mettre à jour'))
        else:
            self.stdout.write(self.style.SUCCESS(f'Synchronisation terminée : {changed} formation(s) modifiée(s)'))
