from datetime import timedelta
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import IntegrityError, transaction
from django.test import TestCase
from django.utils import timezone

from apps.training.models import (
    Category, Exercise, SessionRegistration, RegistrationStatus, SessionStatus, format_price
)
from .helpers import create_formation, create_module, create_chapter, create_course, create_session


class CategoryModelTest(TestCase):
    def test_slug_generated_from_name(self):
        category = Category.objects.create(name="Développement Web")
        self.assertEqual(category.slug, "developpement-web")

    def test_slug_is_unique(self):
        Category.objects.create(name="Bureautique")
        other = Category.objects.create(name="Bureautique")
        self.assertEqual(other.slug, "bureautique-2")

    def test_active_formations_count(self):
        category = Category.objects.create(name="Langues")
        create_formation("Anglais", category=category)
        create_formation("Espagnol", category=category, is_active=False)
        self.assertEqual(category.active_formations_count, 1)


class FormationModelTest(TestCase):
    def test_formatted_price(self):
        self.assertEqual(format_price(1500), "1 500 €")
        formation = create_formation(price=2450)
        self.assertEqual(formation.formatted_price, "2 450 €")

    def test_formatted_price_rounds_half_up(self):
        self.assertEqual(format_price(Decimal('1500.50')), "1 501 €")
        self.assertEqual(format_price(Decimal('1500.49')), "1 500 €")
        self.assertEqual(format_price(Decimal('2.50')), "3 €")

    def test_free_formation(self):
        formation = create_formation(price=0)
        self.assertEqual(formation.formatted_price, "Gratuit")

    def test_active_modules_are_ordered(self):
        formation = create_formation()
        second = create_module(formation, "Deuxième", order_index=2)
        first = create_module(formation, "Premier", order_index=1)
        create_module(formation, "Inactif", is_active=False)
        self.assertEqual(list(formation.get_active_modules()), [first, second])

    def test_module_order_index_defaults_to_next(self):
        formation = create_formation()
        first = create_module(formation, "Un")
        second = create_module(formation, "Deux")
        self.assertEqual(first.order_index, 1)
        self.assertEqual(second.order_index, 2)


class ExerciseModelTest(TestCase):
    def setUp(self):
        chapter = create_chapter(create_module(create_formation()))
        self.course = create_course(chapter)

    def test_passing_points_cannot_exceed_max_points(self):
        exercise = Exercise(
            course=self.course, title="Exercice", description="d", instructions="i",
            max_points=20, passing_points=25
        )
        with self.assertRaises(ValidationError):
            exercise.full_clean()

    def test_passing_percentage(self):
        exercise = Exercise.objects.create(
            course=self.course, title="Exercice", description="d", instructions="i",
            max_points=20, passing_points=12
        )
        self.assertEqual(exercise.passing_percentage, 60.0)


class SessionModelTest(TestCase):
    def setUp(self):
        self.formation = create_formation()

    def test_end_date_must_follow_start_date(self):
        session = create_session(self.formation)
        session.end_date = session.start_date
        with self.assertRaises(ValidationError) as ctx:
            session.full_clean()
        self.assertIn('end_date', ctx.exception.message_dict)

    def test_min_capacity_cannot_exceed_max(self):
        session = create_session(self.formation, min_capacity=12, max_capacity=10)
        with self.assertRaises(ValidationError) as ctx:
            session.full_clean()
        self.assertIn('min_capacity', ctx.exception.message_dict)

    def test_alternance_percentages_must_total_100(self):
        session = create_session(
            self.formation, is_alternance_session=True, alternance_type='apprentissage',
            center_percentage=40, company_percentage=50
        )
        with self.assertRaises(ValidationError) as ctx:
            session.full_clean()
        self.assertIn('company_percentage', ctx.exception.message_dict)

        session.company_percentage = 60
        session.full_clean()

    def test_registration_open(self):
        session = create_session(self.formation)
        self.assertTrue(session.is_registration_open)

        session.registration_deadline = timezone.localdate() - timedelta(days=1)
        self.assertFalse(session.is_registration_open)

        session.registration_deadline = None
        session.status = SessionStatus.PLANNED
        self.assertFalse(session.is_registration_open)

    def test_price_falls_back_to_formation(self):
        session = create_session(self.formation)
        self.assertEqual(session.effective_price, self.formation.price)
        self.assertEqual(session.formatted_price, "1 500 €")

        session.price = 990
        self.assertEqual(session.formatted_price, "990 €")

    def test_formatted_dates(self):
        session = create_session(self.formation)
        self.assertEqual(session.duration_in_days, 5)
        self.assertTrue(session.formatted_date_range.startswith("Du "))

    def test_alternance_rhythm_description(self):
        session = create_session(self.formation, alternance_rhythm='2-2', minimum_alternance_duration=30)
        self.assertEqual(session.alternance_rhythm_description, '2 semaines centre / 2 semaines entreprise')
        self.assertEqual(session.formatted_alternance_duration, '30 semaines minimum')


class SessionRegistrationModelTest(TestCase):
    def setUp(self):
        self.session = create_session(create_formation(), max_capacity=2)

    def register(self, email, **kwargs):
        return SessionRegistration.objects.create(
            session=self.session, first_name="Jean", last_name="Dupont", email=email, **kwargs
        )

    def test_registrations_count_follows_registrations(self):
        first = self.register('a@example.com')
        self.register('b@example.com')
        self.session.refresh_from_db()
        self.assertEqual(self.session.current_registrations, 2)
        self.assertTrue(self.session.is_full)

        first.cancel()
        first.save()
        self.session.refresh_from_db()
        self.assertEqual(self.session.current_registrations, 1)
        self.assertEqual(self.session.available_places, 1)

        first.delete()
        self.session.refresh_from_db()
        self.assertEqual(self.session.current_registrations, 1)

    def test_one_registration_per_email(self):
        self.register('a@example.com')
        with self.assertRaises(IntegrityError):
            with transaction.atomic():
                self.register('a@example.com')

    def test_confirm_sets_confirmation_date(self):
        registration = self.register('a@example.com')
        registration.confirm()
        self.assertEqual(registration.status, RegistrationStatus.CONFIRMED)
        self.assertIsNotNone(registration.confirmed_at)
        self.assertEqual(registration.full_name, "Jean Dupont")
