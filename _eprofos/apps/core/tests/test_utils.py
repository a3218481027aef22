from datetime import date

from django.core.exceptions import ValidationError
from django.test import TestCase, SimpleTestCase, override_settings

from apps.core.forms import ListTextareaField
from apps.core.utils import (
    unique_slugify, format_minutes, format_hours, format_weeks, minutes_to_hours, hours_to_minutes,
    parse_lines, percentage, eprofos_setting, months_between
)
from apps.core.validators import validate_phone_number, validate_siret, validate_score, is_valid_siret
from apps.training.models import Category


class FormattingTest(SimpleTestCase):
    def test_format_minutes(self):
        self.assertEqual(format_minutes(45), '45 min')
        self.assertEqual(format_minutes(120), '2h')
        self.assertEqual(format_minutes(150), '2h 30min')
        self.assertEqual(format_minutes(None), '0 min')

    def test_format_hours(self):
        self.assertEqual(format_hours(6), '6h')
        self.assertEqual(format_hours(8), '1 jour')
        self.assertEqual(format_hours(20), '2 jours 4h')

    def test_format_weeks(self):
        self.assertEqual(format_weeks(1), '1 semaine')
        self.assertEqual(format_weeks(30), '30 semaines')
        self.assertEqual(format_weeks(55), '1 an et 3 semaines')
        self.assertEqual(format_weeks(104), '2 ans')

    def test_conversions(self):
        self.assertEqual(minutes_to_hours(61), 2)
        self.assertEqual(minutes_to_hours(61, round_up=False), 1)
        self.assertEqual(hours_to_minutes(1.5), 90)
        self.assertEqual(percentage(1, 3), 33.3)
        self.assertEqual(percentage(5, 0), 0)

    def test_months_between(self):
        self.assertEqual(months_between(date(2024, 1, 15), date(2024, 3, 14)), 1)
        self.assertEqual(months_between(date(2024, 1, 15), date(2024, 3, 15)), 2)
        self.assertEqual(months_between(date(2024, 3, 15), date(2024, 1, 15)), 0)
        self.assertEqual(months_between(None, date(2024, 1, 15)), 0)

    def test_parse_lines(self):
        self.assertEqual(parse_lines("  Analyser\n\nConcevoir \n"), ['Analyser', 'Concevoir'])
        self.assertEqual(parse_lines(['a', ' ', 'b']), ['a', 'b'])
        self.assertEqual(parse_lines(None), [])

    @override_settings(EPROFOS={'MAX_WEEKLY_HOURS': 30})
    def test_eprofos_setting(self):
        self.assertEqual(eprofos_setting('MAX_WEEKLY_HOURS'), 30)
        self.assertEqual(eprofos_setting('UNKNOWN', 'défaut'), 'défaut')


class UniqueSlugifyTest(TestCase):
    def test_slug_is_suffixed_when_taken(self):
        Category.objects.create(name="Développement web")
        category = Category(name="Développement web")
        self.assertEqual(unique_slugify(category, category.name), 'developpement-web-2')

    def test_existing_instance_keeps_its_slug(self):
        category = Category.objects.create(name="Bureautique")
        self.assertEqual(unique_slugify(category, category.name), 'bureautique')


class ValidatorsTest(SimpleTestCase):
    def test_phone_number(self):
        validate_phone_number('01 23 45 67 89')
        validate_phone_number('+33 6 12 34 56 78')
        with self.assertRaises(ValidationError):
            validate_phone_number('12345')

    def test_siret(self):
        self.assertTrue(is_valid_siret('12345678901234'))
        self.assertFalse(is_valid_siret('123 456 789 01234'))
        with self.assertRaises(ValidationError):
            validate_siret('1234')

    def test_score(self):
        validate_score(20)
        with self.assertRaises(ValidationError):
            validate_score(21)


class ListTextareaFieldTest(SimpleTestCase):
    def test_one_item_per_line(self):
        field = ListTextareaField()
        self.assertEqual(field.clean("Objectif 1\nObjectif 2"), ['Objectif 1', 'Objectif 2'])
        self.assertEqual(field.clean(""), [])

    def test_minimum_items(self):
        field = ListTextareaField(min_items=2)
        with self.assertRaises(ValidationError):
            field.clean("Un seul")

    def test_required(self):
        with self.assertRaises(ValidationError):
            ListTextareaField(required=True).clean("\n  \n")
