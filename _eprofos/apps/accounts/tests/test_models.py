from django.core.exceptions import ValidationError
from django.test import TestCase

from apps.accounts.forms import MentorForm
from apps.accounts.models import Student, Mentor


class PersonModelTest(TestCase):
    def test_student_display(self):
        student = Student.objects.create(
            email='alice@example.com', first_name='Alice', last_name='Martin',
            address='1 rue de Paris', postal_code='75001', city='Paris'
        )
        self.assertEqual(str(student), 'Alice Martin')
        self.assertEqual(student.initials, 'AM')
        self.assertEqual(student.full_address, '1 rue de Paris, 75001 Paris, France')

    def test_mentor(self):
        mentor = Mentor(
            email='claire@acme.fr', first_name='Claire', last_name='Bernard', position='CTO',
            company_name='ACME', company_siret='12345678901234', expertise_domains=['Python', 'DevOps'],
            experience_years=1
        )
        self.assertEqual(str(mentor), 'Claire Bernard (ACME)')
        self.assertEqual(mentor.expertise_summary, 'Python, DevOps')
        self.assertFalse(mentor.has_required_experience())
        self.assertTrue(mentor.has_required_experience(minimum_years=1))

    def test_mentor_siret_is_validated(self):
        mentor = Mentor(
            email='claire@acme.fr', first_name='Claire', last_name='Bernard', position='CTO',
            company_name='ACME', company_siret='1234'
        )
        with self.assertRaises(ValidationError):
            mentor.full_clean()


class MentorFormTest(TestCase):
    def get_data(self, **kwargs):
        data = {
            'first_name': 'Claire',
            'last_name': 'Bernard',
            'email': ' Claire@ACME.fr ',
            'position': 'CTO',
            'company_name': 'ACME',
            'company_siret': '123 456 789 01234',
            'expertise_domains': "Python\nDevOps",
            'experience_years': 8,
            'is_active': 'on',
        }
        data.update(kwargs)
        return data

    def test_siret_spaces_and_email_are_normalized(self):
        form = MentorForm(data=self.get_data())
        self.assertTrue(form.is_valid(), form.errors)
        mentor = form.save()
        self.assertEqual(mentor.company_siret, '12345678901234')
        self.assertEqual(mentor.email, 'claire@acme.fr')
        self.assertEqual(mentor.expertise_domains, ['Python', 'DevOps'])

    def test_invalid_siret(self):
        form = MentorForm(data=self.get_data(company_siret='123'))
        self.assertFalse(form.is_valid())
        self.assertIn('company_siret', form.errors)
