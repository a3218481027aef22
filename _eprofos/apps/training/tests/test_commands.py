from io import StringIO

from django.core.management import call_command
from django.core.management.base import CommandError
from django.test import TestCase

from apps.training.models import Formation, Module
from .helpers import create_formation, create_module, create_chapter, create_course


def run_command(name, *args, **options):
    out = StringIO()
    call_command(name, *args, stdout=out, **options)
    return out.getvalue()


class SyncDurationsCommandTest(TestCase):
    def setUp(self):
        self.formation = create_formation()
        self.module = create_module(self.formation)
        create_course(create_chapter(self.module), duration_minutes=300)
        Formation.objects.filter(pk=self.formation.pk).update(duration_hours=99)
        Module.objects.filter(pk=self.module.pk).update(duration_hours=42)

    def test_dry_run_saves_nothing(self):
        output = run_command('sync_durations', dry_run=True)
        self.assertIn('Python avancé: 99h → 5h', output)
        self.assertIn('Simulation : 1 formation(s) à mettre à jour', output)

        self.formation.refresh_from_db()
        self.module.refresh_from_db()
        self.assertEqual(self.formation.duration_hours, 99)
        self.assertEqual(self.module.duration_hours, 42)

    def test_sync_all_formations(self):
        output = run_command('sync_durations')
        self.assertIn('Synchronisation terminée : 1 formation(s) modifiée(s)', output)

        self.formation.refresh_from_db()
        self.module.refresh_from_db()
        self.assertEqual(self.formation.duration_hours, 5)
        self.assertEqual(self.module.duration_hours, 5)

    def test_inactive_formations_are_skipped_by_default(self):
        Formation.objects.filter(pk=self.formation.pk).update(is_active=False)
        output = run_command('sync_durations')
        self.assertIn('0 formation(s) modifiée(s)', output)
        self.formation.refresh_from_db()
        self.assertEqual(self.formation.duration_hours, 99)

        run_command('sync_durations', inactive=True)
        self.formation.refresh_from_db()
        self.assertEqual(self.formation.duration_hours, 5)

    def test_single_formation(self):
        other = create_formation("Django")
        Formation.objects.filter(pk=other.pk).update(duration_hours=7)

        run_command('sync_durations', formation=str(self.formation.pk))
        self.formation.refresh_from_db()
        other.refresh_from_db()
        self.assertEqual(self.formation.duration_hours, 5)
        self.assertEqual(other.duration_hours, 7)

    def test_unknown_formation(self):
        with self.assertRaisesMessage(CommandError, 'Formation 00000000-0000-0000-0000-000000000000 non trouvée'):
            run_command('sync_durations', formation='00000000-0000-0000-0000-000000000000')

    def test_malformed_formation_id(self):
        with self.assertRaisesMessage(CommandError, 'Formation abc non trouvée'):
            run_command('sync_durations', formation='abc')
        self.formation.refresh_from_db()
        self.assertEqual(self.formation.duration_hours, 99)


class ValidateQualiopiCommandTest(TestCase):
    def setUp(self):
        self.compliant = create_formation(
            "Conforme",
            operational_objectives=["A", "B"],
            evaluable_objectives=["C", "D"],
            evaluation_criteria=["E", "F"],
            success_indicators=["G", "H"],
        )
        self.empty = create_formation("Incomplète")

    def test_reports_non_compliant_formations(self):
        output = run_command('validate_qualiopi')
        self.assertIn('Incomplète : conformité 0.0%', output)
        self.assertIn('  - Objectifs opérationnels manquants (requis Qualiopi 2.5)', output)
        # conforme au critère 2.5 mais sous le seuil de 100 %
        self.assertIn('Conforme : conformité 8.0%', output)
        self.assertIn('2/2 formation(s) à mettre en conformité', output)
        self.assertNotIn('  > ', output)

    def test_threshold(self):
        output = run_command('validate_qualiopi', threshold=5)
        self.assertNotIn('Conforme : conformité', output)
        self.assertIn('1/2 formation(s) à mettre en conformité', output)

    def test_suggestions(self):
        output = run_command('validate_qualiopi', '--threshold', '5', '--suggestions')
        self.assertIn('  > Décrivez le public cible de la formation', output)

    def test_inactive_formations_are_ignored(self):
        Formation.objects.filter(pk=self.empty.pk).update(is_active=False)
        output = run_command('validate_qualiopi', threshold=5)
        self.assertIn('1 formation(s) conforme(s)', output)
