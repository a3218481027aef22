# apps/training/models.py
from decimal import Decimal, ROUND_HALF_UP

from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator, MaxValueValidator
from django.db import models
from django.urls import reverse
from django.utils import timezone

from apps.core.models import BaseModel, OrderedModel
from apps.core.utils import unique_slugify, format_minutes, format_hours, format_weeks


def format_price(amount):
    """Prix formaté à la française : '1 500 €'"""
    rounded = Decimal(str(amount or 0)).quantize(Decimal('1'), rounding=ROUND_HALF_UP)
    return f"{int(rounded):,} €".replace(',', ' ')


class SluggedMixin:
    """Génère le slug à partir du titre à la première sauvegarde"""
    slug_source = 'title'

    def ensure_slug(self):
        if not self.slug:
            self.slug = unique_slugify(self, getattr(self, self.slug_source))


# ============================================================================
# CATALOGUE
# ============================================================================

class Category(SluggedMixin, BaseModel):
    """Catégorie de formations"""
    name = models.CharField(max_length=100, verbose_name="Nom")
    slug = models.SlugField(max_length=120, unique=True, blank=True, verbose_name="Slug")
    description = models.TextField(blank=True, verbose_name="Description")
    icon = models.CharField(max_length=50, blank=True, verbose_name="Icône")
    is_active = models.BooleanField(default=True, verbose_name="Active")

    slug_source = 'name'

    class Meta:
        db_table = 'training_category'
        verbose_name = "Catégorie"
        verbose_name_plural = "Catégories"
        ordering = ['name']

    def __str__(self):
        return self.name

    def save(self, *args, **kwargs):
        self.ensure_slug()
        super().save(*args, **kwargs)

    def get_absolute_url(self):
        return reverse('training:category_detail', kwargs={'pk': self.pk})

    @property
    def active_formations_count(self):
        return self.formations.filter(is_active=True).count()


class FormationLevel(models.TextChoices):
    DEBUTANT = 'debutant', 'Débutant'
    INTERMEDIAIRE = 'intermediaire', 'Intermédiaire'
    AVANCE = 'avance', 'Avancé'
    EXPERT = 'expert', 'Expert'


class FormationFormat(models.TextChoices):
    PRESENTIEL = 'presentiel', 'Présentiel'
    DISTANCIEL = 'distanciel', 'Distanciel'
    HYBRIDE = 'hybride', 'Hybride'


class Formation(SluggedMixin, BaseModel):
    """Formation du catalogue"""
    category = models.ForeignKey(
        Category,
        on_delete=models.PROTECT,
        related_name='formations',
        verbose_name="Catégorie"
    )
    title = models.CharField(max_length=255, verbose_name="Titre")
    slug = models.SlugField(max_length=255, unique=True, blank=True, verbose_name="Slug")
    description = models.TextField(verbose_name="Description")
    objectives = models.TextField(blank=True, verbose_name="Objectifs")
    prerequisites = models.TextField(blank=True, verbose_name="Prérequis")
    program = models.TextField(blank=True, verbose_name="Programme")
    duration_hours = models.PositiveIntegerField(default=0, verbose_name="Durée (heures)")
    price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=Decimal('0'),
        validators=[MinValueValidator(0)],
        verbose_name="Prix (€)"
    )
    level = models.CharField(
        max_length=20, choices=FormationLevel.choices, default=FormationLevel.DEBUTANT, verbose_name="Niveau"
    )
    format = models.CharField(
        max_length=20, choices=FormationFormat.choices, default=FormationFormat.PRESENTIEL, verbose_name="Format"
    )
    image = models.ImageField(upload_to='formations/', null=True, blank=True, verbose_name="Image")
    is_active = models.BooleanField(default=True, verbose_name="Active")
    is_featured = models.BooleanField(default=False, verbose_name="Mise en avant")

    # Informations Qualiopi
    target_audience = models.TextField(blank=True, verbose_name="Public visé")
    access_modalities = models.TextField(blank=True, verbose_name="Modalités et délais d'accès")
    handicap_accessibility = models.TextField(blank=True, verbose_name="Accessibilité handicap")
    teaching_methods = models.TextField(blank=True, verbose_name="Méthodes pédagogiques")
    evaluation_methods = models.TextField(blank=True, verbose_name="Modalités d'évaluation")
    contact_info = models.TextField(blank=True, verbose_name="Contact")
    training_location = models.TextField(blank=True, verbose_name="Lieu de formation")
    funding_modalities = models.TextField(blank=True, verbose_name="Modalités de financement")

    # Objectifs structurés (critère Qualiopi 2.5)
    operational_objectives = models.JSONField(default=list, blank=True, verbose_name="Objectifs opérationnels")
    evaluable_objectives = models.JSONField(default=list, blank=True, verbose_name="Objectifs évaluables")
    evaluation_criteria = models.JSONField(default=list, blank=True, verbose_name="Critères d'évaluation")
    success_indicators = models.JSONField(default=list, blank=True, verbose_name="Indicateurs de réussite")

    class Meta:
        db_table = 'training_formation'
        verbose_name = "Formation"
        verbose_name_plural = "Formations"
        ordering = ['-created_at']

    def __str__(self):
        return self.title

    def save(self, *args, **kwargs):
        self.ensure_slug()
        super().save(*args, **kwargs)

    def get_absolute_url(self):
        return reverse('training:formation_detail', kwargs={'pk': self.pk})

    @property
    def formatted_price(self):
        if not self.price:
            return 'Gratuit'
        return format_price(self.price)

    @property
    def formatted_duration(self):
        return format_hours(self.duration_hours)

    def get_active_modules(self):
        return self.modules.filter(is_active=True).order_by('order_index')

    def get_upcoming_sessions(self):
        return self.sessions.filter(
            is_active=True,
            start_date__gte=timezone.localdate()
        ).exclude(status=SessionStatus.CANCELLED).order_by('start_date')


# ============================================================================
# STRUCTURE PÉDAGOGIQUE
# ============================================================================

class Module(SluggedMixin, OrderedModel):
    """Module d'une formation"""
    formation = models.ForeignKey(
        Formation,
        on_delete=models.CASCADE,
        related_name='modules',
        verbose_name="Formation"
    )
    title = models.CharField(max_length=255, verbose_name="Titre")
    slug = models.SlugField(max_length=255, unique=True, blank=True, verbose_name="Slug")
    description = models.TextField(verbose_name="Description")
    learning_objectives = models.JSONField(default=list, blank=True, verbose_name="Objectifs d'apprentissage")
    prerequisites = models.TextField(blank=True, verbose_name="Prérequis")
    duration_hours = models.PositiveIntegerField(default=0, verbose_name="Durée (heures)")
    evaluation_methods = models.TextField(blank=True, verbose_name="Modalités d'évaluation")
    teaching_methods = models.TextField(blank=True, verbose_name="Méthodes pédagogiques")
    resources = models.JSONField(default=list, blank=True, verbose_name="Ressources")
    success_criteria = models.JSONField(default=list, blank=True, verbose_name="Critères de réussite")
    is_active = models.BooleanField(default=True, verbose_name="Actif")

    order_scope = 'formation'

    class Meta:
        db_table = 'training_module'
        verbose_name = "Module"
        verbose_name_plural = "Modules"
        ordering = ['formation', 'order_index']

    def __str__(self):
        return self.title

    def save(self, *args, **kwargs):
        self.ensure_slug()
        super().save(*args, **kwargs)

    def get_absolute_url(self):
        return reverse('training:module_detail', kwargs={'pk': self.pk})

    @property
    def formatted_duration(self):
        return format_hours(self.duration_hours)

    def get_active_chapters(self):
        return self.chapters.filter(is_active=True).order_by('order_index')


class PedagogicalContent(SluggedMixin, OrderedModel):
    """Champs pédagogiques communs aux chapitres et aux cours"""
    title = models.CharField(max_length=255, verbose_name="Titre")
    slug = models.SlugField(max_length=255, unique=True, blank=True, verbose_name="Slug")
    description = models.TextField(verbose_name="Description")
    learning_objectives = models.JSONField(default=list, blank=True, verbose_name="Objectifs d'apprentissage")
    content_outline = models.TextField(blank=True, verbose_name="Plan du contenu")
    prerequisites = models.TextField(blank=True, verbose_name="Prérequis")
    learning_outcomes = models.JSONField(default=list, blank=True, verbose_name="Acquis attendus")
    teaching_methods = models.TextField(blank=True, verbose_name="Méthodes pédagogiques")
    resources = models.JSONField(default=list, blank=True, verbose_name="Ressources")
    assessment_methods = models.TextField(blank=True, verbose_name="Modalités d'évaluation")
    success_criteria = models.JSONField(default=list, blank=True, verbose_name="Critères de réussite")
    duration_minutes = models.PositiveIntegerField(default=0, verbose_name="Durée (minutes)")
    is_active = models.BooleanField(default=True, verbose_name="Actif")

    class Meta:
        abstract = True

    def __str__(self):
        return self.title

    def save(self, *args, **kwargs):
        self.ensure_slug()
        super().save(*args, **kwargs)

    @property
    def formatted_duration(self):
        return format_minutes(self.duration_minutes)


class Chapter(PedagogicalContent):
    """Chapitre d'un module"""
    module = models.ForeignKey(
        Module,
        on_delete=models.CASCADE,
        related_name='chapters',
        verbose_name="Module"
    )

    order_scope = 'module'

    class Meta:
        db_table = 'training_chapter'
        verbose_name = "Chapitre"
        verbose_name_plural = "Chapitres"
        ordering = ['module', 'order_index']

    def get_absolute_url(self):
        return reverse('training:chapter_detail', kwargs={'pk': self.pk})

    def get_active_courses(self):
        return self.courses.filter(is_active=True).order_by('order_index')

    @property
    def formation(self):
        return self.module.formation


class CourseType(models.TextChoices):
    LESSON = 'lesson', 'Leçon'
    VIDEO = 'video', 'Vidéo'
    DOCUMENT = 'document', 'Document'
    INTERACTIVE = 'interactive', 'Interactif'
    PRACTICAL = 'practical', 'Pratique'


class Course(PedagogicalContent):
    """Cours d'un chapitre"""
    chapter = models.ForeignKey(
        Chapter,
        on_delete=models.CASCADE,
        related_name='courses',
        verbose_name="Chapitre"
    )
    content = models.TextField(blank=True, verbose_name="Contenu")
    type = models.CharField(
        max_length=20, choices=CourseType.choices, default=CourseType.LESSON, verbose_name="Type"
    )

    order_scope = 'chapter'

    class Meta:
        db_table = 'training_course'
        verbose_name = "Cours"
        verbose_name_plural = "Cours"
        ordering = ['chapter', 'order_index']

    def get_absolute_url(self):
        return reverse('training:course_detail', kwargs={'pk': self.pk})

    @property
    def module(self):
        return self.chapter.module

    def get_active_exercises(self):
        return self.exercises.filter(is_active=True).order_by('order_index')

    def get_active_qcms(self):
        return self.qcms.filter(is_active=True).order_by('order_index')


class ExerciseType(models.TextChoices):
    INDIVIDUAL = 'individual', 'Individuel'
    GROUP = 'group', 'En groupe'
    PRACTICAL = 'practical', 'Pratique'
    THEORETICAL = 'theoretical', 'Théorique'
    CASE_STUDY = 'case_study', 'Étude de cas'
    SIMULATION = 'simulation', 'Simulation'


class Difficulty(models.TextChoices):
    BEGINNER = 'beginner', 'Débutant'
    INTERMEDIATE = 'intermediate', 'Intermédiaire'
    ADVANCED = 'advanced', 'Avancé'
    EXPERT = 'expert', 'Expert'


class Exercise(SluggedMixin, OrderedModel):
    """Exercice rattaché à un cours"""
    course = models.ForeignKey(
        Course,
        on_delete=models.CASCADE,
        related_name='exercises',
        verbose_name="Cours"
    )
    title = models.CharField(max_length=255, verbose_name="Titre")
    slug = models.SlugField(max_length=255, unique=True, blank=True, verbose_name="Slug")
    description = models.TextField(verbose_name="Description")
    instructions = models.TextField(verbose_name="Consignes")
    expected_outcomes = models.JSONField(default=list, blank=True, verbose_name="Résultats attendus")
    evaluation_criteria = models.JSONField(default=list, blank=True, verbose_name="Critères d'évaluation")
    resources = models.JSONField(default=list, blank=True, verbose_name="Ressources")
    prerequisites = models.TextField(blank=True, verbose_name="Prérequis")
    success_criteria = models.JSONField(default=list, blank=True, verbose_name="Critères de réussite")
    type = models.CharField(
        max_length=20, choices=ExerciseType.choices, default=ExerciseType.INDIVIDUAL, verbose_name="Type"
    )
    difficulty = models.CharField(
        max_length=20, choices=Difficulty.choices, default=Difficulty.BEGINNER, verbose_name="Difficulté"
    )
    estimated_duration_minutes = models.PositiveIntegerField(default=0, verbose_name="Durée estimée (minutes)")
    time_limit_minutes = models.PositiveIntegerField(null=True, blank=True, verbose_name="Temps limite (minutes)")
    max_points = models.PositiveIntegerField(default=20, verbose_name="Points maximum")
    passing_points = models.PositiveIntegerField(default=10, verbose_name="Points pour réussir")
    is_active = models.BooleanField(default=True, verbose_name="Actif")

    order_scope = 'course'

    class Meta:
        db_table = 'training_exercise'
        verbose_name = "Exercice"
        verbose_name_plural = "Exercices"
        ordering = ['course', 'order_index']

    def __str__(self):
        return self.title

    def clean(self):
        if self.passing_points is not None and self.max_points is not None \
                and self.passing_points > self.max_points:
            raise ValidationError({
                'passing_points': "Les points de réussite ne peuvent pas dépasser les points maximum."
            })

    def save(self, *args, **kwargs):
        self.ensure_slug()
        super().save(*args, **kwargs)

    def get_absolute_url(self):
        return reverse('training:exercise_detail', kwargs={'pk': self.pk})

    @property
    def formatted_duration(self):
        return format_minutes(self.estimated_duration_minutes)

    @property
    def passing_percentage(self):
        if not self.max_points:
            return 0
        return round(self.passing_points / self.max_points * 100, 1)


class QCM(OrderedModel):
    """Questionnaire à choix multiples rattaché à un cours"""
    course = models.ForeignKey(
        Course,
        on_delete=models.CASCADE,
        related_name='qcms',
        verbose_name="Cours"
    )
    title = models.CharField(max_length=255, verbose_name="Titre")
    description = models.TextField(blank=True, verbose_name="Description")
    instructions = models.TextField(blank=True, verbose_name="Consignes")
    questions = models.JSONField(default=list, blank=True, verbose_name="Questions")
    time_limit_minutes = models.PositiveIntegerField(null=True, blank=True, verbose_name="Temps limite (minutes)")
    max_score = models.PositiveIntegerField(default=20, verbose_name="Score maximum")
    passing_score = models.PositiveIntegerField(default=10, verbose_name="Score pour réussir")
    max_attempts = models.PositiveIntegerField(default=1, verbose_name="Tentatives maximum")
    show_correct_answers = models.BooleanField(default=True, verbose_name="Afficher les bonnes réponses")
    show_explanations = models.BooleanField(default=True, verbose_name="Afficher les explications")
    randomize_questions = models.BooleanField(default=False, verbose_name="Questions aléatoires")
    randomize_answers = models.BooleanField(default=False, verbose_name="Réponses aléatoires")
    is_active = models.BooleanField(default=True, verbose_name="Actif")

    order_scope = 'course'

    class Meta:
        db_table = 'training_qcm'
        verbose_name = "QCM"
        verbose_name_plural = "QCM"
        ordering = ['course', 'order_index']

    def __str__(self):
        return self.title

    def clean(self):
        if self.passing_score > self.max_score:
            raise ValidationError({'passing_score': "Le score de réussite ne peut pas dépasser le score maximum."})

    @property
    def question_count(self):
        return len(self.questions or [])


# ============================================================================
# SESSIONS
# ============================================================================

class SessionStatus(models.TextChoices):
    PLANNED = 'planned', 'Planifiée'
    OPEN = 'open', 'Inscriptions ouvertes'
    CONFIRMED = 'confirmed', 'Confirmée'
    CANCELLED = 'cancelled', 'Annulée'
    COMPLETED = 'completed', 'Terminée'


SESSION_STATUS_BADGES = {
    SessionStatus.PLANNED: 'bg-secondary',
    SessionStatus.OPEN: 'bg-success',
    SessionStatus.CONFIRMED: 'bg-primary',
    SessionStatus.CANCELLED: 'bg-danger',
    SessionStatus.COMPLETED: 'bg-info',
}


class AlternanceType(models.TextChoices):
    APPRENTISSAGE = 'apprentissage', "Contrat d'apprentissage"
    PROFESSIONNALISATION = 'professionnalisation', 'Contrat de professionnalisation'


ALTERNANCE_RHYTHMS = {
    '1-1': '1 semaine centre / 1 semaine entreprise',
    '2-2': '2 semaines centre / 2 semaines entreprise',
    '3-1': '3 semaines centre / 1 semaine entreprise',
    '1-3': '1 semaine centre / 3 semaines entreprise',
    '2-3': '2 semaines centre / 3 semaines entreprise',
    '3-2': '3 semaines centre / 2 semaines entreprise',
}


class Session(BaseModel):
    """Session (date de réalisation) d'une formation"""
    formation = models.ForeignKey(
        Formation,
        on_delete=models.PROTECT,
        related_name='sessions',
        verbose_name="Formation"
    )
    name = models.CharField(max_length=255, verbose_name="Nom")
    description = models.TextField(blank=True, verbose_name="Description")
    start_date = models.DateField(verbose_name="Date de début")
    end_date = models.DateField(verbose_name="Date de fin")
    registration_deadline = models.DateField(null=True, blank=True, verbose_name="Date limite d'inscription")
    location = models.CharField(max_length=255, verbose_name="Lieu")
    address = models.TextField(blank=True, verbose_name="Adresse")
    max_capacity = models.PositiveIntegerField(
        default=12, validators=[MinValueValidator(1)], verbose_name="Capacité maximale"
    )
    min_capacity = models.PositiveIntegerField(default=1, verbose_name="Capacité minimale")
    current_registrations = models.PositiveIntegerField(default=0, editable=False, verbose_name="Inscrits")
    price = models.DecimalField(
        max_digits=10, decimal_places=2, null=True, blank=True,
        validators=[MinValueValidator(0)], verbose_name="Prix (€)"
    )
    status = models.CharField(
        max_length=20, choices=SessionStatus.choices, default=SessionStatus.PLANNED, verbose_name="Statut"
    )
    is_active = models.BooleanField(default=True, verbose_name="Active")
    instructor = models.CharField(max_length=255, blank=True, verbose_name="Formateur")
    notes = models.TextField(blank=True, verbose_name="Notes internes")

    # Alternance
    is_alternance_session = models.BooleanField(default=False, verbose_name="Session en alternance")
    alternance_type = models.CharField(
        max_length=30, choices=AlternanceType.choices, blank=True, verbose_name="Type d'alternance"
    )
    minimum_alternance_duration = models.PositiveIntegerField(
        null=True, blank=True, verbose_name="Durée minimale d'alternance (semaines)"
    )
    center_percentage = models.PositiveIntegerField(
        null=True, blank=True, validators=[MaxValueValidator(100)], verbose_name="Part centre (%)"
    )
    company_percentage = models.PositiveIntegerField(
        null=True, blank=True, validators=[MaxValueValidator(100)], verbose_name="Part entreprise (%)"
    )
    alternance_rhythm = models.CharField(max_length=20, blank=True, verbose_name="Rythme d'alternance")
    alternance_prerequisites = models.JSONField(default=list, blank=True, verbose_name="Prérequis alternance")

    class Meta:
        db_table = 'training_session'
        verbose_name = "Session"
        verbose_name_plural = "Sessions"
        ordering = ['start_date']

    def __str__(self):
        return f"{self.name} ({self.formatted_date_range})"

    def get_absolute_url(self):
        return reverse('training:session_detail', kwargs={'pk': self.pk})

    def clean(self):
        errors = {}
        if self.start_date and self.end_date and self.end_date <= self.start_date:
            errors['end_date'] = "La date de fin doit être postérieure à la date de début."
        if self.registration_deadline and self.start_date and self.registration_deadline >= self.start_date:
            errors['registration_deadline'] = "La date limite d'inscription doit précéder le début de la session."
        if self.min_capacity is not None and self.max_capacity is not None \
                and self.min_capacity > self.max_capacity:
            errors['min_capacity'] = "La capacité minimale ne peut pas dépasser la capacité maximale."
        if self.is_alternance_session:
            if not self.alternance_type:
                errors['alternance_type'] = "Le type d'alternance est obligatoire pour une session en alternance."
            if not self.has_valid_alternance_percentages():
                errors['company_percentage'] = "Les parts centre et entreprise doivent totaliser 100 %."
        if errors:
            raise ValidationError(errors)

    # Places

    @property
    def available_places(self):
        return max(0, self.max_capacity - self.current_registrations)

    @property
    def is_full(self):
        return self.current_registrations >= self.max_capacity

    @property
    def is_registration_open(self):
        if not self.is_active or self.status != SessionStatus.OPEN or self.is_full:
            return False
        if self.registration_deadline and self.registration_deadline < timezone.localdate():
            return False
        return True

    @property
    def can_be_confirmed(self):
        return self.current_registrations >= self.min_capacity

    def update_registrations_count(self, save=True):
        """Recalcule le nombre d'inscrits (inscriptions non annulées)"""
        self.current_registrations = self.registrations.exclude(
            status=RegistrationStatus.CANCELLED
        ).count()
        if save:
            self.save(update_fields=['current_registrations', 'updated_at'])
        return self.current_registrations

    # Affichage

    @property
    def duration_in_days(self):
        return (self.end_date - self.start_date).days + 1

    @property
    def formatted_date_range(self):
        if not self.start_date or not self.end_date:
            return ''
        if self.start_date == self.end_date:
            return self.start_date.strftime('%d/%m/%Y')
        return f"Du {self.start_date.strftime('%d/%m/%Y')} au {self.end_date.strftime('%d/%m/%Y')}"

    @property
    def formatted_price(self):
        if self.price is None:
            return self.formation.formatted_price if self.formation_id else 'Prix sur demande'
        return format_price(self.price)

    @property
    def effective_price(self):
        return self.price if self.price is not None else self.formation.price

    @property
    def status_badge_class(self):
        return SESSION_STATUS_BADGES.get(self.status, 'bg-light')

    # Alternance

    def has_valid_alternance_percentages(self):
        if self.center_percentage is None or self.company_percentage is None:
            return False
        return self.center_percentage + self.company_percentage == 100

    @property
    def alternance_rhythm_description(self):
        if not self.alternance_rhythm:
            return ''
        return ALTERNANCE_RHYTHMS.get(self.alternance_rhythm, self.alternance_rhythm)

    @property
    def formatted_alternance_duration(self):
        if not self.minimum_alternance_duration:
            return ''
        return f"{format_weeks(self.minimum_alternance_duration)} minimum"


class RegistrationStatus(models.TextChoices):
    PENDING = 'pending', 'En attente'
    CONFIRMED = 'confirmed', 'Confirmée'
    CANCELLED = 'cancelled', 'Annulée'
    ATTENDED = 'attended', 'Présent'
    NO_SHOW = 'no_show', 'Absent'


REGISTRATION_STATUS_BADGES = {
    RegistrationStatus.PENDING: 'bg-warning',
    RegistrationStatus.CONFIRMED: 'bg-success',
    RegistrationStatus.CANCELLED: 'bg-danger',
    RegistrationStatus.ATTENDED: 'bg-primary',
    RegistrationStatus.NO_SHOW: 'bg-secondary',
}


class SessionRegistration(BaseModel):
    """Inscription d'un participant à une session"""
    session = models.ForeignKey(
        Session,
        on_delete=models.CASCADE,
        related_name='registrations',
        verbose_name="Session"
    )
    first_name = models.CharField(max_length=100, verbose_name="Prénom")
    last_name = models.CharField(max_length=100, verbose_name="Nom")
    email = models.EmailField(verbose_name="Email")
    phone = models.CharField(max_length=20, blank=True, verbose_name="Téléphone")
    company = models.CharField(max_length=150, blank=True, verbose_name="Entreprise")
    position = models.CharField(max_length=150, blank=True, verbose_name="Poste")
    status = models.CharField(
        max_length=20, choices=RegistrationStatus.choices, default=RegistrationStatus.PENDING,
        verbose_name="Statut"
    )
    notes = models.TextField(blank=True, verbose_name="Notes")
    special_requirements = models.TextField(blank=True, verbose_name="Besoins spécifiques")
    confirmed_at = models.DateTimeField(null=True, blank=True, verbose_name="Confirmée le")

    class Meta:
        db_table = 'training_session_registration'
        verbose_name = "Inscription"
        verbose_name_plural = "Inscriptions"
        ordering = ['-created_at']
        constraints = [
            models.UniqueConstraint(fields=['session', 'email'], name='unique_registration_per_session'),
        ]

    def __str__(self):
        return f"{self.full_name} - {self.session.name}"

    def get_absolute_url(self):
        return reverse('training:registration_detail', kwargs={'pk': self.pk})

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def status_badge_class(self):
        return REGISTRATION_STATUS_BADGES.get(self.status, 'bg-light')

    @property
    def is_active_registration(self):
        return self.status != RegistrationStatus.CANCELLED

    def confirm(self):
        self.status = RegistrationStatus.CONFIRMED
        self.confirmed_at = timezone.now()

    def cancel(self):
        self.status = RegistrationStatus.CANCELLED
