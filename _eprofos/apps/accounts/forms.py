# apps/accounts/forms.py

from django import forms

from apps.core.forms import BootstrapFormMixin, ListTextareaField
from .models import Student, Teacher, Mentor


class StudentForm(BootstrapFormMixin, forms.ModelForm):
    class Meta:
        model = Student
        fields = [
            'first_name', 'last_name', 'email', 'phone', 'birth_date',
            'address', 'postal_code', 'city', 'country',
            'education_level', 'profession', 'company', 'is_active'
        ]
        widgets = {
            'birth_date': forms.DateInput(attrs={'type': 'date'}, format='%Y-%m-%d'),
        }

    def clean_email(self):
        return self.cleaned_data['email'].strip().lower()


class TeacherForm(BootstrapFormMixin, forms.ModelForm):
    class Meta:
        model = Teacher
        fields = [
            'first_name', 'last_name', 'email', 'phone', 'title',
            'specialty', 'years_of_experience', 'biography', 'is_active'
        ]
        widgets = {
            'biography': forms.Textarea(attrs={'rows': 4}),
        }

    def clean_email(self):
        return self.cleaned_data['email'].strip().lower()


class MentorForm(BootstrapFormMixin, forms.ModelForm):
    expertise_domains = ListTextareaField(label="Domaines d'expertise")
    company_siret = forms.CharField(max_length=20, label="SIRET de l'entreprise")

    class Meta:
        model = Mentor
        fields = [
            'first_name', 'last_name', 'email', 'phone', 'position',
            'company_name', 'company_siret', 'expertise_domains',
            'experience_years', 'education_level', 'is_active'
        ]

    def clean_email(self):
        return self.cleaned_data['email'].strip().lower()

    def clean_company_siret(self):
        # Les espaces sont tolérés à la saisie
        return self.cleaned_data['company_siret'].replace(' ', '')
