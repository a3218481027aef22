# apps/accounts/models.py
from django.db import models
from django.urls import reverse
from django.core.validators import MaxValueValidator

from apps.core.models import BaseModel
from apps.core.validators import validate_siret


class EducationLevel(models.TextChoices):
    CAP_BEP = 'cap_bep', 'CAP / BEP'
    BAC = 'bac', 'Baccalauréat'
    BAC_2 = 'bac_2', 'Bac +2'
    BAC_3 = 'bac_3', 'Bac +3'
    BAC_5 = 'bac_5', 'Bac +5'
    BAC_8 = 'bac_8', 'Bac +8'


class Person(BaseModel):
    """Champs communs aux personnes gérées par le back-office"""
    email = models.EmailField(unique=True, verbose_name="Email")
    first_name = models.CharField(max_length=100, verbose_name="Prénom")
    last_name = models.CharField(max_length=100, verbose_name="Nom")
    phone = models.CharField(max_length=20, blank=True, verbose_name="Téléphone")
    is_active = models.BooleanField(default=True, verbose_name="Actif")

    class Meta:
        abstract = True
        ordering = ['last_name', 'first_name']

    def __str__(self):
        return self.get_full_name()

    def get_full_name(self):
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def initials(self):
        return f"{self.first_name[:1]}{self.last_name[:1]}".upper()


class Student(Person):
    """Apprenant (stagiaire ou alternant)"""
    birth_date = models.DateField(null=True, blank=True, verbose_name="Date de naissance")
    address = models.CharField(max_length=255, blank=True, verbose_name="Adresse")
    postal_code = models.CharField(max_length=10, blank=True, verbose_name="Code postal")
    city = models.CharField(max_length=100, blank=True, verbose_name="Ville")
    country = models.CharField(max_length=100, default='France', verbose_name="Pays")
    education_level = models.CharField(
        max_length=20, choices=EducationLevel.choices, blank=True, verbose_name="Niveau d'études"
    )
    profession = models.CharField(max_length=150, blank=True, verbose_name="Profession")
    company = models.CharField(max_length=150, blank=True, verbose_name="Entreprise")

    class Meta(Person.Meta):
        db_table = 'accounts_student'
        verbose_name = "Apprenant"
        verbose_name_plural = "Apprenants"

    def get_absolute_url(self):
        return reverse('accounts:student_detail', kwargs={'pk': self.pk})

    @property
    def full_address(self):
        parts = [self.address, f"{self.postal_code} {self.city}".strip(), self.country]
        return ', '.join(part for part in parts if part)


class Teacher(Person):
    """Formateur, également référent pédagogique des alternants"""
    specialty = models.CharField(max_length=150, blank=True, verbose_name="Spécialité")
    title = models.CharField(max_length=100, blank=True, verbose_name="Titre")
    years_of_experience = models.PositiveIntegerField(default=0, verbose_name="Années d'expérience")
    biography = models.TextField(blank=True, verbose_name="Biographie")

    class Meta(Person.Meta):
        db_table = 'accounts_teacher'
        verbose_name = "Formateur"
        verbose_name_plural = "Formateurs"

    def get_absolute_url(self):
        return reverse('accounts:teacher_detail', kwargs={'pk': self.pk})


class Mentor(Person):
    """Tuteur en entreprise d'un alternant"""
    position = models.CharField(max_length=150, verbose_name="Poste")
    company_name = models.CharField(max_length=200, verbose_name="Entreprise")
    company_siret = models.CharField(
        max_length=14, validators=[validate_siret], verbose_name="SIRET de l'entreprise"
    )
    expertise_domains = models.JSONField(default=list, blank=True, verbose_name="Domaines d'expertise")
    experience_years = models.PositiveIntegerField(
        default=0, validators=[MaxValueValidator(50)], verbose_name="Années d'expérience"
    )
    education_level = models.CharField(
        max_length=20, choices=EducationLevel.choices, blank=True, verbose_name="Niveau d'études"
    )

    class Meta(Person.Meta):
        db_table = 'accounts_mentor'
        verbose_name = "Tuteur entreprise"
        verbose_name_plural = "Tuteurs entreprise"

    def __str__(self):
        return f"{self.get_full_name()} ({self.company_name})"

    def get_absolute_url(self):
        return reverse('accounts:mentor_detail', kwargs={'pk': self.pk})

    @property
    def expertise_summary(self):
        return ', '.join(self.expertise_domains or [])

    def has_required_experience(self, minimum_years=2):
        """Un tuteur doit justifier d'une expérience professionnelle suffisante"""
        return self.experience_years >= minimum_years
