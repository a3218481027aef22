from django.core.management.base import BaseCommand

from apps.training.models import Formation
from apps.training.services.qualiopi import generate_qualiopi_report


class Command(BaseCommand):
    help = 'Vérifie la conformité Qualiopi (critère 2.5) des formations actives'

    def add_arguments(self, parser):
        parser.add_argument(
            '--threshold',
            type=float,
            default=100,
            help='Conformité globale minimale attendue en pourcentage (100 par défaut)',
        )
        parser.add_argument(
            '--suggestions',
            action='store_true',
            help='Affiche les suggestions d\'amélioration',
        )

    def handle(self, *args, **options):
        threshold = options['threshold']
        non_compliant = 0
        formations = Formation.objects.filter(is_active=True).order_by('title')

        for formation in formations:
            report = generate_qualiopi_report(formation)
            criteria = report['critere_2_5']
            if criteria['compliant'] and report['overall_compliance'] >= threshold:
                continue

            non_compliant += 1
            self.stdout.write(
                self.style.WARNING(f"{formation.title} : conformité {report['overall_compliance']}%")
            )
            for error in criteria['errors']:
                self.stdout.write(f'  - {error}')
            if options['suggestions']:
                for suggestion in report['suggestions']:
                    self.stdout.write(f'  > {suggestion}')

        total = formations.count()
        if non_compliant:
            self.stdout.write(self.style.ERROR(f'{non_compliant}/{total} formation(s) à mettre en conformité'))
        else:
            self.stdout.write(self.style.SUCCESS(f'{total} formation(s) conforme(s)'))
