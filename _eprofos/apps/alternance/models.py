# apps/alternance/models.py
from datetime import timedelta
from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator, MaxValueValidator
from django.db import models
from django.urls import reverse
from django.utils import timezone

from apps.accounts.models import Student, Teacher, Mentor
from apps.core.models import BaseModel, OrderedModel
from apps.core.utils import eprofos_setting, format_minutes, format_weeks, months_between, percentage
from apps.core.validators import validate_siret
from apps.training.models import Session, AlternanceType, ALTERNANCE_RHYTHMS


def format_short_duration(minutes):
    if not minutes:
        return 'Non renseigné'
    return format_minutes(minutes)


# ============================================================================
# CONTRATS
# ============================================================================

class ContractStatus(models.TextChoices):
    DRAFT = 'draft', 'Brouillon'
    PENDING_VALIDATION = 'pending_validation', 'En attente de validation'
    VALIDATED = 'validated', 'Validé'
    ACTIVE = 'active', 'Actif'
    SUSPENDED = 'suspended', 'Suspendu'
    COMPLETED = 'completed', 'Terminé'
    TERMINATED = 'terminated', 'Résilié'


CONTRACT_STATUS_BADGES = {
    ContractStatus.DRAFT: 'bg-secondary',
    ContractStatus.PENDING_VALIDATION: 'bg-warning',
    ContractStatus.VALIDATED: 'bg-info',
    ContractStatus.ACTIVE: 'bg-success',
    ContractStatus.SUSPENDED: 'bg-warning text-dark',
    ContractStatus.COMPLETED: 'bg-primary',
    ContractStatus.TERMINATED: 'bg-danger',
}


class AlternanceContract(BaseModel):
    """Contrat d'apprentissage ou de professionnalisation d'un alternant"""
    student = models.ForeignKey(
        Student,
        on_delete=models.PROTECT,
        related_name='alternance_contracts',
        verbose_name="Alternant"
    )
    session = models.ForeignKey(
        Session,
        on_delete=models.PROTECT,
        related_name='alternance_contracts',
        verbose_name="Session"
    )
    contract_number = models.CharField(
        max_length=50, unique=True, blank=True, verbose_name="Numéro de contrat"
    )
    contract_type = models.CharField(
        max_length=30, choices=AlternanceType.choices, default=AlternanceType.APPRENTISSAGE,
        verbose_name="Type de contrat"
    )

    # Entreprise
    company_name = models.CharField(max_length=255, verbose_name="Entreprise")
    company_address = models.TextField(blank=True, verbose_name="Adresse de l'entreprise")
    company_siret = models.CharField(
        max_length=14, blank=True, validators=[validate_siret], verbose_name="SIRET"
    )
    company_contact_person = models.CharField(max_length=150, blank=True, verbose_name="Contact entreprise")
    company_contact_email = models.EmailField(blank=True, verbose_name="Email du contact")
    company_contact_phone = models.CharField(max_length=20, blank=True, verbose_name="Téléphone du contact")

    # Encadrement
    mentor = models.ForeignKey(
        Mentor,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='alternance_contracts',
        verbose_name="Tuteur entreprise"
    )
    pedagogical_supervisor = models.ForeignKey(
        Teacher,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='supervised_contracts',
        verbose_name="Référent pédagogique"
    )

    # Poste et objectifs
    job_title = models.CharField(max_length=255, verbose_name="Intitulé du poste")
    job_description = models.TextField(blank=True, verbose_name="Description du poste")
    learning_objectives = models.JSONField(default=list, blank=True, verbose_name="Objectifs pédagogiques")
    company_objectives = models.JSONField(default=list, blank=True, verbose_name="Objectifs entreprise")

    # Calendrier et temps de travail
    start_date = models.DateField(verbose_name="Date de début")
    end_date = models.DateField(verbose_name="Date de fin")
    weekly_center_hours = models.PositiveIntegerField(default=0, verbose_name="Heures hebdo. en centre")
    weekly_company_hours = models.PositiveIntegerField(default=0, verbose_name="Heures hebdo. en entreprise")
    remuneration = models.CharField(max_length=255, blank=True, verbose_name="Rémunération")

    status = models.CharField(
        max_length=30, choices=ContractStatus.choices, default=ContractStatus.DRAFT, verbose_name="Statut"
    )
    notes = models.TextField(blank=True, verbose_name="Notes")
    additional_data = models.JSONField(default=dict, blank=True, verbose_name="Données complémentaires")
    validated_at = models.DateTimeField(null=True, blank=True, verbose_name="Validé le")
    started_at = models.DateTimeField(null=True, blank=True, verbose_name="Démarré le")
    completed_at = models.DateTimeField(null=True, blank=True, verbose_name="Terminé le")

    class Meta:
        db_table = 'alternance_contract'
        verbose_name = "Contrat d'alternance"
        verbose_name_plural = "Contrats d'alternance"
        ordering = ['-start_date']

    def __str__(self):
        return f"{self.student} - {self.company_name} ({self.get_contract_type_display()})"

    def get_absolute_url(self):
        return reverse('alternance:contract_detail', kwargs={'pk': self.pk})

    def clean(self):
        if self.start_date and self.end_date and self.end_date <= self.start_date:
            raise ValidationError({'end_date': "La date de fin doit être postérieure à la date de début."})

    def save(self, *args, **kwargs):
        if not self.contract_number:
            self.contract_number = self.generate_contract_number()
        super().save(*args, **kwargs)

    def generate_contract_number(self):
        """Numéro séquentiel par année : ALT-2025-0001"""
        year = (self.start_date or timezone.localdate()).year
        prefix = f"ALT-{year}-"
        sequence = AlternanceContract.objects.filter(contract_number__startswith=prefix).count() + 1
        number = f"{prefix}{sequence:04d}"
        while AlternanceContract.objects.filter(contract_number=number).exists():
            sequence += 1
            number = f"{prefix}{sequence:04d}"
        return number

    @property
    def status_badge_class(self):
        return CONTRACT_STATUS_BADGES.get(self.status, 'bg-light')

    # Durées

    @property
    def duration_in_days(self):
        if not self.start_date or not self.end_date:
            return 0
        return (self.end_date - self.start_date).days + 1

    @property
    def duration_in_weeks(self):
        return self.duration_in_days // 7

    @property
    def duration_in_months(self):
        return months_between(self.start_date, self.end_date)

    @property
    def formatted_duration(self):
        months = self.duration_in_months
        if months < 1:
            weeks = self.duration_in_weeks
            return f"{weeks} semaine{'s' if weeks > 1 else ''}"
        if months < 12:
            return f"{months} mois"

        years, remaining = divmod(months, 12)
        result = f"{years} an{'s' if years > 1 else ''}"
        if remaining:
            result += f" et {remaining} mois"
        return result

    @property
    def formatted_date_range(self):
        if not self.start_date or not self.end_date:
            return ''
        return f"{self.start_date.strftime('%d/%m/%Y')} - {self.end_date.strftime('%d/%m/%Y')}"

    # Temps de travail

    @property
    def total_weekly_hours(self):
        return (self.weekly_center_hours or 0) + (self.weekly_company_hours or 0)

    @property
    def center_hours_percentage(self):
        return percentage(self.weekly_center_hours or 0, self.total_weekly_hours)

    @property
    def company_hours_percentage(self):
        return percentage(self.weekly_company_hours or 0, self.total_weekly_hours)

    # Avancement

    @property
    def is_in_progress(self):
        today = timezone.localdate()
        return self.status == ContractStatus.ACTIVE and self.start_date <= today <= self.end_date

    @property
    def remaining_days(self):
        today = timezone.localdate()
        if self.status != ContractStatus.ACTIVE or self.end_date < today:
            return 0
        return (self.end_date - today).days

    @property
    def progress_percentage(self):
        today = timezone.localdate()
        if today <= self.start_date:
            return 0
        if today >= self.end_date:
            return 100
        total = (self.end_date - self.start_date).days
        return round((today - self.start_date).days / total * 100, 1)

    @property
    def is_ending_soon(self):
        today = timezone.localdate()
        days = eprofos_setting('CONTRACT_ENDING_SOON_DAYS', 30)
        return self.status == ContractStatus.ACTIVE and today <= self.end_date <= today + timedelta(days=days)


# ============================================================================
# PROGRAMMES
# ============================================================================

PROGRAM_RHYTHMS = {
    **ALTERNANCE_RHYTHMS,
    '4-4': '4 semaines centre / 4 semaines entreprise',
    'custom': 'Rythme personnalisé',
}


class AlternanceProgram(BaseModel):
    """Programme pédagogique d'une session en alternance"""
    session = models.ForeignKey(
        Session,
        on_delete=models.CASCADE,
        related_name='alternance_programs',
        verbose_name="Session"
    )
    title = models.CharField(max_length=255, verbose_name="Titre")
    description = models.TextField(verbose_name="Description")
    total_duration = models.PositiveIntegerField(verbose_name="Durée totale (semaines)")
    center_duration = models.PositiveIntegerField(verbose_name="Durée en centre (semaines)")
    company_duration = models.PositiveIntegerField(verbose_name="Durée en entreprise (semaines)")
    center_modules = models.JSONField(default=list, blank=True, verbose_name="Modules en centre")
    company_modules = models.JSONField(default=list, blank=True, verbose_name="Modules en entreprise")
    coordination_points = models.JSONField(default=list, blank=True, verbose_name="Points de coordination")
    assessment_periods = models.JSONField(default=list, blank=True, verbose_name="Périodes d'évaluation")
    rhythm = models.CharField(
        max_length=20, choices=list(PROGRAM_RHYTHMS.items()), default='2-2', verbose_name="Rythme"
    )
    learning_progression = models.JSONField(default=list, blank=True, verbose_name="Progression pédagogique")
    notes = models.TextField(blank=True, verbose_name="Notes")
    additional_data = models.JSONField(default=dict, blank=True, verbose_name="Données complémentaires")

    class Meta:
        db_table = 'alternance_program'
        verbose_name = "Programme d'alternance"
        verbose_name_plural = "Programmes d'alternance"
        ordering = ['title']

    def __str__(self):
        return self.title

    def get_absolute_url(self):
        return reverse('alternance:program_detail', kwargs={'pk': self.pk})

    def clean(self):
        if self.total_duration is not None and not self.has_consistent_durations:
            raise ValidationError({
                'company_duration': "Les durées centre et entreprise doivent totaliser la durée du programme."
            })

    @property
    def has_consistent_durations(self):
        return (self.center_duration or 0) + (self.company_duration or 0) == (self.total_duration or 0)

    @property
    def center_duration_percentage(self):
        return percentage(self.center_duration or 0, self.total_duration)

    @property
    def company_duration_percentage(self):
        return percentage(self.company_duration or 0, self.total_duration)

    @property
    def formatted_total_duration(self):
        if not self.total_duration:
            return ''
        return format_weeks(self.total_duration)

    @property
    def rhythm_description(self):
        return PROGRAM_RHYTHMS.get(self.rhythm, self.rhythm)


# ============================================================================
# MISSIONS EN ENTREPRISE
# ============================================================================

class MissionComplexity(models.TextChoices):
    DEBUTANT = 'debutant', 'Débutant'
    INTERMEDIAIRE = 'intermediaire', 'Intermédiaire'
    AVANCE = 'avance', 'Avancé'


COMPLEXITY_LEVELS = {
    MissionComplexity.DEBUTANT: 1,
    MissionComplexity.INTERMEDIAIRE: 2,
    MissionComplexity.AVANCE: 3,
}


class MissionTerm(models.TextChoices):
    COURT = 'court', 'Court terme (1-4 semaines)'
    MOYEN = 'moyen', 'Moyen terme (1-3 mois)'
    LONG = 'long', 'Long terme (3+ mois)'


TERM_ESTIMATED_WEEKS = {
    MissionTerm.COURT: 2,
    MissionTerm.MOYEN: 8,
    MissionTerm.LONG: 16,
}


class Department(models.TextChoices):
    INFORMATIQUE = 'informatique', 'Informatique'
    COMMERCIAL = 'commercial', 'Commercial'
    MARKETING = 'marketing', 'Marketing'
    RH = 'rh', 'Ressources humaines'
    FINANCE = 'finance', 'Finance'
    PRODUCTION = 'production', 'Production'
    LOGISTIQUE = 'logistique', 'Logistique'
    JURIDIQUE = 'juridique', 'Juridique'
    DIRECTION = 'direction', 'Direction'
    RD = 'rd', 'Recherche et développement'
    FORMATION = 'formation', 'Formation'
    AUTRE = 'autre', 'Autre'


class CompanyMission(OrderedModel):
    """Mission confiée aux alternants par un tuteur entreprise"""
    supervisor = models.ForeignKey(
        Mentor,
        on_delete=models.PROTECT,
        related_name='supervised_missions',
        verbose_name="Tuteur responsable"
    )
    title = models.CharField(max_length=255, verbose_name="Titre")
    description = models.TextField(verbose_name="Description")
    context = models.TextField(blank=True, verbose_name="Contexte")
    objectives = models.JSONField(default=list, blank=True, verbose_name="Objectifs")
    required_skills = models.JSONField(default=list, blank=True, verbose_name="Compétences requises")
    skills_to_acquire = models.JSONField(default=list, blank=True, verbose_name="Compétences à acquérir")
    duration = models.CharField(max_length=100, blank=True, verbose_name="Durée indicative")
    complexity = models.CharField(
        max_length=20, choices=MissionComplexity.choices, default=MissionComplexity.DEBUTANT,
        verbose_name="Complexité"
    )
    term = models.CharField(max_length=10, choices=MissionTerm.choices, default=MissionTerm.COURT, verbose_name="Terme")
    department = models.CharField(
        max_length=20, choices=Department.choices, default=Department.AUTRE, verbose_name="Service"
    )
    prerequisites = models.JSONField(default=list, blank=True, verbose_name="Prérequis")
    evaluation_criteria = models.JSONField(default=list, blank=True, verbose_name="Critères d'évaluation")
    is_active = models.BooleanField(default=True, verbose_name="Active")

    order_scope = 'supervisor'

    class Meta(OrderedModel.Meta):
        db_table = 'alternance_company_mission'
        verbose_name = "Mission en entreprise"
        verbose_name_plural = "Missions en entreprise"
        ordering = ['supervisor', 'order_index', 'title']

    def __str__(self):
        return self.title

    def get_absolute_url(self):
        return reverse('alternance:mission_detail', kwargs={'pk': self.pk})

    @property
    def estimated_weeks(self):
        return TERM_ESTIMATED_WEEKS.get(self.term, 4)

    def is_suitable_for_complexity(self, level):
        """La mission est accessible à un alternant de niveau `level` ou plus"""
        return COMPLEXITY_LEVELS.get(self.complexity, 1) <= COMPLEXITY_LEVELS.get(level, 1)

    @property
    def active_assignments_count(self):
        return self.assignments.filter(
            status__in=[AssignmentStatus.PLANIFIEE, AssignmentStatus.EN_COURS]
        ).count()

    @property
    def completed_assignments_count(self):
        return self.assignments.filter(status=AssignmentStatus.TERMINEE).count()

    @property
    def objectives_summary(self):
        if not self.objectives:
            return "Aucun objectif défini"
        summary = ' • '.join(self.objectives[:2])
        if len(self.objectives) > 2:
            summary += f" • +{len(self.objectives) - 2} autre(s)"
        return summary

    @property
    def skills_summary(self):
        if not self.skills_to_acquire:
            return "Aucune compétence définie"
        summary = ', '.join(self.skills_to_acquire[:3])
        if len(self.skills_to_acquire) > 3:
            summary += f", +{len(self.skills_to_acquire) - 3} autre(s)"
        return summary

    @property
    def progress_score(self):
        """Avancement moyen des affectations non suspendues"""
        rates = [
            float(rate)
            for rate in self.assignments.exclude(
                status=AssignmentStatus.SUSPENDUE
            ).values_list('completion_rate', flat=True)
        ]
        if not rates:
            return 0
        return round(sum(rates) / len(rates), 1)


class AssignmentStatus(models.TextChoices):
    PLANIFIEE = 'planifiee', 'Planifiée'
    EN_COURS = 'en_cours', 'En cours'
    TERMINEE = 'terminee', 'Terminée'
    SUSPENDUE = 'suspendue', 'Suspendue'


ASSIGNMENT_STATUS_BADGES = {
    AssignmentStatus.PLANIFIEE: 'bg-info',
    AssignmentStatus.EN_COURS: 'bg-warning',
    AssignmentStatus.TERMINEE: 'bg-success',
    AssignmentStatus.SUSPENDUE: 'bg-danger',
}

RATING_LABELS = {
    1: 'Très insuffisant',
    2: 'Insuffisant',
    3: 'Passable',
    4: 'Correct',
    5: 'Bien',
    6: 'Très bien',
    7: 'Excellent',
    8: 'Remarquable',
    9: 'Exceptionnel',
    10: 'Parfait',
}


class MissionAssignment(BaseModel):
    """Affectation d'une mission à un alternant"""
    student = models.ForeignKey(
        Student,
        on_delete=models.CASCADE,
        related_name='mission_assignments',
        verbose_name="Alternant"
    )
    mission = models.ForeignKey(
        CompanyMission,
        on_delete=models.PROTECT,
        related_name='assignments',
        verbose_name="Mission"
    )
    start_date = models.DateField(verbose_name="Date de début")
    end_date = models.DateField(verbose_name="Date de fin prévue")
    status = models.CharField(
        max_length=20, choices=AssignmentStatus.choices, default=AssignmentStatus.PLANIFIEE,
        verbose_name="Statut"
    )
    completion_rate = models.DecimalField(
        max_digits=5, decimal_places=2, default=Decimal('0'),
        validators=[MinValueValidator(0), MaxValueValidator(100)],
        verbose_name="Avancement (%)"
    )
    intermediate_objectives = models.JSONField(default=list, blank=True, verbose_name="Objectifs intermédiaires")
    difficulties = models.JSONField(default=list, blank=True, verbose_name="Difficultés")
    achievements = models.JSONField(default=list, blank=True, verbose_name="Réalisations")
    mentor_feedback = models.TextField(blank=True, verbose_name="Retour du tuteur")
    student_feedback = models.TextField(blank=True, verbose_name="Retour de l'alternant")
    mentor_rating = models.PositiveSmallIntegerField(
        null=True, blank=True, validators=[MinValueValidator(1), MaxValueValidator(10)],
        verbose_name="Note du tuteur"
    )
    student_satisfaction = models.PositiveSmallIntegerField(
        null=True, blank=True, validators=[MinValueValidator(1), MaxValueValidator(10)],
        verbose_name="Satisfaction de l'alternant"
    )
    competencies_acquired = models.JSONField(default=list, blank=True, verbose_name="Compétences acquises")
    last_updated = models.DateTimeField(null=True, blank=True, verbose_name="Dernière mise à jour")

    class Meta:
        db_table = 'alternance_mission_assignment'
        verbose_name = "Affectation de mission"
        verbose_name_plural = "Affectations de mission"
        ordering = ['-start_date']

    def __str__(self):
        return f"{self.mission.title} - {self.student.get_full_name()}"

    def get_absolute_url(self):
        return reverse('alternance:assignment_detail', kwargs={'pk': self.pk})

    def clean(self):
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValidationError({'end_date': "La date de fin doit suivre la date de début."})

    @property
    def status_badge_class(self):
        return ASSIGNMENT_STATUS_BADGES.get(self.status, 'bg-secondary')

    @property
    def is_active_assignment(self):
        return self.status in (AssignmentStatus.PLANIFIEE, AssignmentStatus.EN_COURS)

    # Cycle de vie : les méthodes retournent False si la transition est sans effet

    def start(self):
        if self.status != AssignmentStatus.PLANIFIEE:
            return False
        self.status = AssignmentStatus.EN_COURS
        self.last_updated = timezone.now()
        return True

    def complete(self):
        if not self.is_active_assignment:
            return False
        self.status = AssignmentStatus.TERMINEE
        self.completion_rate = Decimal('100')
        self.last_updated = timezone.now()
        return True

    def suspend(self):
        if not self.is_active_assignment:
            return False
        self.status = AssignmentStatus.SUSPENDUE
        self.last_updated = timezone.now()
        return True

    def resume(self):
        if self.status != AssignmentStatus.SUSPENDUE:
            return False
        self.status = AssignmentStatus.EN_COURS
        self.last_updated = timezone.now()
        return True

    def update_progress(self, completion_rate):
        """Borne l'avancement à [0, 100] et termine la mission à 100 %"""
        rate = max(0.0, min(100.0, float(completion_rate)))
        self.completion_rate = Decimal(f"{rate:.2f}")
        self.last_updated = timezone.now()
        if rate >= 100 and self.status != AssignmentStatus.TERMINEE:
            self.complete()

    # Calendrier

    @property
    def is_overdue(self):
        if self.status == AssignmentStatus.TERMINEE or not self.end_date:
            return False
        return self.end_date < timezone.localdate()

    @property
    def duration_in_days(self):
        if not self.start_date or not self.end_date:
            return 0
        return (self.end_date - self.start_date).days

    @property
    def elapsed_days(self):
        today = timezone.localdate()
        if not self.start_date or self.start_date > today:
            return 0
        return (today - self.start_date).days

    @property
    def remaining_days(self):
        today = timezone.localdate()
        if not self.end_date or self.status == AssignmentStatus.TERMINEE or self.end_date < today:
            return 0
        return (self.end_date - today).days

    @property
    def time_progress_percentage(self):
        total = self.duration_in_days
        if not total:
            return 0
        return min(100.0, round(self.elapsed_days / total * 100, 1))

    @property
    def completion_status(self):
        return f"{float(self.completion_rate):.1f}% terminé"

    @property
    def mentor_rating_label(self):
        if self.mentor_rating is None:
            return 'Non évalué'
        return f"{self.mentor_rating}/10 - {RATING_LABELS.get(self.mentor_rating, 'Évaluation inconnue')}"

    @property
    def student_satisfaction_label(self):
        if self.student_satisfaction is None:
            return 'Non évalué'
        return f"{self.student_satisfaction}/10 - {RATING_LABELS.get(self.student_satisfaction, 'Évaluation inconnue')}"


# ============================================================================
# ÉVALUATIONS DE COMPÉTENCES
# ============================================================================

class AssessmentType(models.TextChoices):
    FORMATIVE = 'formative', 'Formative'
    SOMMATIVE = 'sommative', 'Sommative'
    CERTIFICATION = 'certification', 'Certification'
    INTERMEDIATE = 'intermediate', 'Intermédiaire'
    FINAL = 'final', 'Finale'


class AssessmentContext(models.TextChoices):
    CENTRE = 'centre', 'Centre de formation'
    ENTREPRISE = 'entreprise', 'Entreprise'
    MIXTE = 'mixte', 'Mixte (centre + entreprise)'


class OverallRating(models.TextChoices):
    EXCELLENT = 'excellent', 'Excellent'
    SATISFAISANT = 'satisfaisant', 'Satisfaisant'
    MOYEN = 'moyen', 'Moyen'
    INSUFFISANT = 'insuffisant', 'Insuffisant'
    NON_EVALUE = 'non_evalue', 'Non évalué'


OVERALL_RATING_BADGES = {
    OverallRating.EXCELLENT: 'bg-success',
    OverallRating.SATISFAISANT: 'bg-primary',
    OverallRating.MOYEN: 'bg-warning',
    OverallRating.INSUFFISANT: 'bg-danger',
}

STANDARD_SKILLS = {
    'technical': {
        'name': 'Compétences techniques',
        'skills': {
            'programming': 'Programmation',
            'database': 'Bases de données',
            'networks': 'Réseaux',
            'security': 'Sécurité',
            'tools': 'Outils et technologies',
        },
    },
    'transversal': {
        'name': 'Compétences transversales',
        'skills': {
            'communication': 'Communication',
            'teamwork': 'Travail en équipe',
            'autonomy': 'Autonomie',
            'problem_solving': 'Résolution de problèmes',
            'time_management': 'Gestion du temps',
        },
    },
    'professional': {
        'name': 'Compétences professionnelles',
        'skills': {
            'project_management': 'Gestion de projet',
            'client_relation': 'Relation client',
            'quality': 'Qualité',
            'innovation': 'Innovation',
            'leadership': 'Leadership',
        },
    },
}


def skill_name(code):
    for category in STANDARD_SKILLS.values():
        if code in category['skills']:
            return category['skills'][code]
    return code.replace('_', ' ').capitalize()


# Écart centre / entreprise à partir duquel une compétence est signalée
COMPETENCY_GAP_THRESHOLD = 2.0


class ValidatedMixin(models.Model):
    validated_at = models.DateTimeField(null=True, blank=True, verbose_name="Validée le")
    validated_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+',
        verbose_name="Validée par"
    )

    class Meta:
        abstract = True

    @property
    def is_validated(self):
        return self.validated_at is not None

    def mark_validated(self, user):
        self.validated_at = timezone.now()
        self.validated_by = user


class SkillsAssessment(ValidatedMixin, BaseModel):
    """Évaluation croisée des compétences (centre / entreprise)"""
    student = models.ForeignKey(
        Student,
        on_delete=models.CASCADE,
        related_name='skills_assessments',
        verbose_name="Alternant"
    )
    assessment_type = models.CharField(
        max_length=20, choices=AssessmentType.choices, default=AssessmentType.FORMATIVE,
        verbose_name="Type d'évaluation"
    )
    context = models.CharField(
        max_length=20, choices=AssessmentContext.choices, default=AssessmentContext.MIXTE,
        verbose_name="Contexte"
    )
    center_evaluator = models.ForeignKey(
        Teacher,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='skills_assessments',
        verbose_name="Évaluateur centre"
    )
    mentor_evaluator = models.ForeignKey(
        Mentor,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='skills_assessments',
        verbose_name="Évaluateur entreprise"
    )
    assessment_date = models.DateField(verbose_name="Date d'évaluation")
    # {code: {'name', 'code', 'evaluated_at'}}
    skills_evaluated = models.JSONField(default=dict, blank=True, verbose_name="Compétences évaluées")
    # {code: {'value', 'max_value'}} notes sur 20
    center_scores = models.JSONField(default=dict, blank=True, verbose_name="Notes centre")
    company_scores = models.JSONField(default=dict, blank=True, verbose_name="Notes entreprise")
    global_competencies = models.JSONField(default=dict, blank=True, verbose_name="Compétences globales")
    center_comments = models.TextField(blank=True, verbose_name="Commentaires du centre")
    mentor_comments = models.TextField(blank=True, verbose_name="Commentaires du tuteur")
    development_plan = models.JSONField(default=list, blank=True, verbose_name="Plan de développement")
    overall_rating = models.CharField(
        max_length=20, choices=OverallRating.choices, blank=True, verbose_name="Appréciation globale"
    )
    related_mission = models.ForeignKey(
        MissionAssignment,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='skills_assessments',
        verbose_name="Mission associée"
    )

    class Meta:
        db_table = 'alternance_skills_assessment'
        verbose_name = "Évaluation de compétences"
        verbose_name_plural = "Évaluations de compétences"
        ordering = ['-assessment_date']

    def __str__(self):
        return f"{self.get_assessment_type_display()} - {self.student} ({self.assessment_date:%d/%m/%Y})"

    def get_absolute_url(self):
        return reverse('alternance:skills_assessment_detail', kwargs={'pk': self.pk})

    @property
    def overall_rating_badge_class(self):
        return OVERALL_RATING_BADGES.get(self.overall_rating, 'bg-secondary')

    def add_skill_evaluation(self, code, center_score=None, company_score=None, name=None):
        evaluated_at = timezone.now().strftime('%Y-%m-%d %H:%M:%S')
        self.skills_evaluated[code] = {'name': name or skill_name(code), 'code': code, 'evaluated_at': evaluated_at}
        if center_score is not None:
            self.center_scores[code] = {'value': float(center_score), 'max_value': 20}
        if company_score is not None:
            self.company_scores[code] = {'value': float(company_score), 'max_value': 20}

    @staticmethod
    def _average(scores):
        values = []
        for score in (scores or {}).values():
            value = score.get('value') if isinstance(score, dict) else score
            if isinstance(value, (int, float)):
                values.append(float(value))
        if not values:
            return 0.0
        return round(sum(values) / len(values), 2)

    @property
    def average_center_score(self):
        return self._average(self.center_scores)

    @property
    def average_company_score(self):
        return self._average(self.company_scores)

    @property
    def overall_average_score(self):
        center, company = self.average_center_score, self.average_company_score
        if center and company:
            return round((center + company) / 2, 2)
        return center or company or 0.0

    @property
    def has_cross_evaluation(self):
        return bool(self.center_scores) and bool(self.company_scores)

    @property
    def is_complete(self):
        if self.context == AssessmentContext.CENTRE:
            has_scores = bool(self.center_scores)
        elif self.context == AssessmentContext.ENTREPRISE:
            has_scores = bool(self.company_scores)
        else:
            has_scores = self.has_cross_evaluation
        return has_scores and bool(self.skills_evaluated) and bool(self.overall_rating)

    def get_competency_gaps(self):
        """Compétences dont les notes centre et entreprise divergent nettement"""
        gaps = {}
        if not self.has_cross_evaluation:
            return gaps
        for code, center_score in self.center_scores.items():
            if code not in self.company_scores:
                continue
            center_value = float(center_score.get('value', 0))
            company_value = float(self.company_scores[code].get('value', 0))
            gap = abs(center_value - company_value)
            if gap > COMPETENCY_GAP_THRESHOLD:
                gaps[code] = {
                    'name': skill_name(code),
                    'center_score': center_value,
                    'company_score': company_value,
                    'gap': gap,
                    'needs_attention': True,
                }
        return gaps

    @property
    def development_plan_summary(self):
        items = self.development_plan or []
        if not items:
            return "Aucun plan de développement"
        return f"{len(items)} action(s) de développement"


# ============================================================================
# SUIVI DE PROGRESSION
# ============================================================================

RISK_LEVELS = [
    (1, 'Très faible'),
    (2, 'Faible'),
    (3, 'Modéré'),
    (4, 'Élevé'),
    (5, 'Critique'),
]

RISK_LEVEL_COLORS = {1: 'success', 2: 'info', 3: 'warning', 4: 'danger', 5: 'dark'}

PROGRESSION_STATUSES = {
    'excellent': ('Excellent', 'bg-success'),
    'satisfactory': ('Satisfaisant', 'bg-primary'),
    'average': ('Moyen', 'bg-info'),
    'needs_improvement': ('À améliorer', 'bg-warning'),
    'critical': ('Critique', 'bg-danger'),
}

# Pondération de la progression globale
CENTER_WEIGHT = 0.6
COMPANY_WEIGHT = 0.4

MASTERED_SKILL_LEVEL = 16


class ProgressAssessment(ValidatedMixin, BaseModel):
    """Point d'étape sur la progression d'un alternant"""
    student = models.ForeignKey(
        Student,
        on_delete=models.CASCADE,
        related_name='progress_assessments',
        verbose_name="Alternant"
    )
    period = models.DateField(verbose_name="Période")
    center_progression = models.DecimalField(
        max_digits=5, decimal_places=2, default=Decimal('0'),
        validators=[MinValueValidator(0), MaxValueValidator(100)],
        verbose_name="Progression en centre (%)"
    )
    company_progression = models.DecimalField(
        max_digits=5, decimal_places=2, default=Decimal('0'),
        validators=[MinValueValidator(0), MaxValueValidator(100)],
        verbose_name="Progression en entreprise (%)"
    )
    overall_progression = models.DecimalField(
        max_digits=5, decimal_places=2, default=Decimal('0'), editable=False,
        verbose_name="Progression globale (%)"
    )
    completed_objectives = models.JSONField(default=list, blank=True, verbose_name="Objectifs atteints")
    pending_objectives = models.JSONField(default=list, blank=True, verbose_name="Objectifs en cours")
    upcoming_objectives = models.JSONField(default=list, blank=True, verbose_name="Objectifs à venir")
    # [{'area', 'description', 'severity' 1-5}]
    difficulties = models.JSONField(default=list, blank=True, verbose_name="Difficultés")
    # [{'type', 'description', 'urgency' 1-5}]
    support_needed = models.JSONField(default=list, blank=True, verbose_name="Accompagnement nécessaire")
    next_steps = models.TextField(blank=True, verbose_name="Prochaines étapes")
    # {code: {'name', 'level' 0-20, 'last_assessed', 'progression_trend'}}
    skills_matrix = models.JSONField(default=dict, blank=True, verbose_name="Matrice de compétences")
    risk_level = models.PositiveSmallIntegerField(choices=RISK_LEVELS, default=1, verbose_name="Niveau de risque")

    class Meta:
        db_table = 'alternance_progress_assessment'
        verbose_name = "Évaluation de progression"
        verbose_name_plural = "Évaluations de progression"
        ordering = ['-period', '-created_at']

    def __str__(self):
        return f"Progression {self.student} - {self.period:%m/%Y}"

    def get_absolute_url(self):
        return reverse('alternance:progress_detail', kwargs={'pk': self.pk})

    @property
    def risk_level_color(self):
        return RISK_LEVEL_COLORS.get(self.risk_level, 'secondary')

    @property
    def risk_level_badge_class(self):
        return f"bg-{self.risk_level_color}"

    def calculate_overall_progression(self):
        overall = float(self.center_progression or 0) * CENTER_WEIGHT \
            + float(self.company_progression or 0) * COMPANY_WEIGHT
        self.overall_progression = Decimal(f"{overall:.2f}")
        return self.overall_progression

    @property
    def progression_status(self):
        progression = float(self.overall_progression or 0)
        if progression >= 90:
            return 'excellent'
        if progression >= 75:
            return 'satisfactory'
        if progression >= 50:
            return 'average'
        if progression >= 25:
            return 'needs_improvement'
        return 'critical'

    @property
    def progression_status_label(self):
        return PROGRESSION_STATUSES[self.progression_status][0]

    @property
    def progression_status_badge_class(self):
        return PROGRESSION_STATUSES[self.progression_status][1]

    # Objectifs

    def objectives_completion_rate(self):
        done = len(self.completed_objectives or [])
        total = done + len(self.pending_objectives or [])
        if not total:
            return 0.0
        return round(done / total * 100, 1)

    @property
    def objectives_summary(self):
        completed = len(self.completed_objectives or [])
        pending = len(self.pending_objectives or [])
        upcoming = len(self.upcoming_objectives or [])
        return {
            'completed': completed,
            'pending': pending,
            'upcoming': upcoming,
            'total': completed + pending + upcoming,
            'completion_rate': self.objectives_completion_rate(),
        }

    # Compétences

    def calculate_skill_trend(self, code, new_level):
        previous = (self.skills_matrix or {}).get(code)
        if previous is None:
            return 'new'
        previous_level = float(previous.get('level', 0))
        if new_level > previous_level + 1:
            return 'improving'
        if new_level < previous_level - 1:
            return 'declining'
        return 'stable'

    def update_skill(self, code, level, name=None, assessed_on=None):
        """Met à jour une compétence de la matrice (niveau borné à 0-20)"""
        level = max(0.0, min(20.0, float(level)))
        trend = self.calculate_skill_trend(code, level)
        if self.skills_matrix is None:
            self.skills_matrix = {}
        self.skills_matrix[code] = {
            'name': name or skill_name(code),
            'level': level,
            'last_assessed': (assessed_on or timezone.localdate()).isoformat(),
            'progression_trend': trend,
        }
        return trend

    @property
    def skills_matrix_summary(self):
        skills = list((self.skills_matrix or {}).values())
        if not skills:
            return {
                'total_skills': 0,
                'average_level': 0.0,
                'mastered_skills': 0,
                'improving_skills': 0,
                'declining_skills': 0,
            }
        levels = [float(skill.get('level', 0)) for skill in skills]
        trends = [skill.get('progression_trend', 'stable') for skill in skills]
        return {
            'total_skills': len(skills),
            'average_level': round(sum(levels) / len(levels), 2),
            'mastered_skills': sum(1 for level in levels if level >= MASTERED_SKILL_LEVEL),
            'improving_skills': trends.count('improving'),
            'declining_skills': trends.count('declining'),
        }

    # Risque

    def _severe_difficulties(self):
        return [d for d in self.difficulties or [] if int(d.get('severity', 3)) >= 4]

    def _urgent_support(self):
        return [s for s in self.support_needed or [] if int(s.get('urgency', 3)) >= 4]

    def calculate_risk_level(self):
        """Niveau de risque de décrochage de 1 (très faible) à 5 (critique)"""
        factors = 0
        progression = float(self.overall_progression or 0)
        if progression < 50:
            factors += 2
        elif progression < 75:
            factors += 1

        if len(self._severe_difficulties()) >= 2:
            factors += 2
        elif len(self.difficulties or []) >= 3:
            factors += 1

        if self._urgent_support():
            factors += 1

        if self.objectives_completion_rate() < 50:
            factors += 1

        summary = self.skills_matrix_summary
        if summary['declining_skills'] > summary['improving_skills']:
            factors += 1

        self.risk_level = min(5, max(1, factors + 1))
        return self.risk_level

    def get_risk_factors(self):
        factors = []
        if float(self.overall_progression or 0) < 50:
            factors.append({
                'factor': 'Progression globale faible',
                'severity': 'high',
                'description': 'La progression globale est inférieure à 50%',
            })
        severe = self._severe_difficulties()
        if severe:
            factors.append({
                'factor': 'Difficultés importantes',
                'severity': 'high',
                'description': f"{len(severe)} difficulté(s) importante(s) identifiée(s)",
            })
        urgent = self._urgent_support()
        if urgent:
            factors.append({
                'factor': 'Accompagnement urgent nécessaire',
                'severity': 'medium',
                'description': f"{len(urgent)} demande(s) d'accompagnement urgent",
            })
        return factors

    @property
    def is_at_risk(self):
        return self.risk_level >= 4


# ============================================================================
# RÉUNIONS DE COORDINATION
# ============================================================================

class MeetingType(models.TextChoices):
    PREPARATORY = 'preparatory', 'Réunion préparatoire'
    FOLLOW_UP = 'follow_up', 'Réunion de suivi'
    EVALUATION = 'evaluation', "Réunion d'évaluation"
    PROBLEM_SOLVING = 'problem_solving', 'Résolution de problème'
    ORIENTATION = 'orientation', "Réunion d'orientation"


class MeetingLocation(models.TextChoices):
    TRAINING_CENTER = 'training_center', 'Centre de formation'
    COMPANY = 'company', 'Entreprise'
    VIDEO_CONFERENCE = 'video_conference', 'Visioconférence'
    PHONE = 'phone', 'Téléphone'


class MeetingStatus(models.TextChoices):
    PLANNED = 'planned', 'Planifiée'
    COMPLETED = 'completed', 'Réalisée'
    CANCELLED = 'cancelled', 'Annulée'
    POSTPONED = 'postponed', 'Reportée'


MEETING_STATUS_BADGES = {
    MeetingStatus.PLANNED: 'bg-primary',
    MeetingStatus.COMPLETED: 'bg-success',
    MeetingStatus.CANCELLED: 'bg-danger',
    MeetingStatus.POSTPONED: 'bg-warning',
}


class CoordinationMeeting(BaseModel):
    """Réunion tripartite alternant / référent pédagogique / tuteur"""
    student = models.ForeignKey(
        Student,
        on_delete=models.CASCADE,
        related_name='coordination_meetings',
        verbose_name="Alternant"
    )
    pedagogical_supervisor = models.ForeignKey(
        Teacher,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='coordination_meetings',
        verbose_name="Référent pédagogique"
    )
    mentor = models.ForeignKey(
        Mentor,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='coordination_meetings',
        verbose_name="Tuteur entreprise"
    )
    meeting_date = models.DateTimeField(verbose_name="Date")
    type = models.CharField(
        max_length=20, choices=MeetingType.choices, default=MeetingType.FOLLOW_UP, verbose_name="Type"
    )
    location = models.CharField(
        max_length=20, choices=MeetingLocation.choices, default=MeetingLocation.VIDEO_CONFERENCE,
        verbose_name="Lieu"
    )
    agenda = models.JSONField(default=list, blank=True, verbose_name="Ordre du jour")
    discussion_points = models.JSONField(default=list, blank=True, verbose_name="Points abordés")
    decisions = models.JSONField(default=list, blank=True, verbose_name="Décisions")
    action_plan = models.JSONField(default=list, blank=True, verbose_name="Plan d'action")
    attendees = models.JSONField(default=list, blank=True, verbose_name="Participants")
    next_meeting_date = models.DateTimeField(null=True, blank=True, verbose_name="Prochaine réunion")
    meeting_report = models.TextField(blank=True, verbose_name="Compte rendu")
    status = models.CharField(
        max_length=20, choices=MeetingStatus.choices, default=MeetingStatus.PLANNED, verbose_name="Statut"
    )
    duration = models.PositiveIntegerField(null=True, blank=True, verbose_name="Durée (minutes)")
    notes = models.TextField(blank=True, verbose_name="Notes")
    satisfaction_rating = models.PositiveSmallIntegerField(
        null=True, blank=True, validators=[MinValueValidator(1), MaxValueValidator(5)],
        verbose_name="Satisfaction (1-5)"
    )
    created_by = models.CharField(max_length=150, blank=True, verbose_name="Créée par")
    reminder_sent_at = models.DateTimeField(null=True, blank=True, editable=False, verbose_name="Rappel envoyé le")

    class Meta:
        db_table = 'alternance_coordination_meeting'
        verbose_name = "Réunion de coordination"
        verbose_name_plural = "Réunions de coordination"
        ordering = ['-meeting_date']

    def __str__(self):
        return self.summary

    def get_absolute_url(self):
        return reverse('alternance:meeting_detail', kwargs={'pk': self.pk})

    @property
    def status_badge_class(self):
        return MEETING_STATUS_BADGES.get(self.status, 'bg-secondary')

    @property
    def is_upcoming(self):
        return self.status == MeetingStatus.PLANNED and self.meeting_date > timezone.now()

    @property
    def can_be_edited(self):
        return self.status in (MeetingStatus.PLANNED, MeetingStatus.POSTPONED)

    def mark_completed(self):
        self.status = MeetingStatus.COMPLETED

    def mark_cancelled(self):
        self.status = MeetingStatus.CANCELLED

    def postpone(self, new_date):
        self.status = MeetingStatus.POSTPONED
        self.meeting_date = new_date
        self.reminder_sent_at = None

    @property
    def formatted_duration(self):
        return format_short_duration(self.duration)

    @property
    def satisfaction_stars(self):
        if not self.satisfaction_rating:
            return 'Non évalué'
        return '★' * self.satisfaction_rating + '☆' * (5 - self.satisfaction_rating)

    @property
    def summary(self):
        student = self.student.get_full_name() if self.student_id else 'Alternant'
        mentor = self.mentor.get_full_name() if self.mentor_id else 'Tuteur'
        date = timezone.localtime(self.meeting_date).strftime('%d/%m/%Y à %H:%M') \
            if self.meeting_date else 'Date non définie'
        return f"{self.get_type_display()} - {student} avec {mentor} le {date}"

    @property
    def requires_follow_up(self):
        return self.status == MeetingStatus.COMPLETED and (
            bool(self.action_plan) or self.next_meeting_date is not None
        )


# ============================================================================
# VISITES EN ENTREPRISE
# ============================================================================

class VisitType(models.TextChoices):
    FOLLOW_UP = 'follow_up', 'Visite de suivi'
    EVALUATION = 'evaluation', "Visite d'évaluation"
    PROBLEM_SOLVING = 'problem_solving', 'Résolution de problème'
    INTEGRATION = 'integration', "Visite d'intégration"
    FINAL_ASSESSMENT = 'final_assessment', 'Bilan final'


def rating_field(label):
    return models.PositiveSmallIntegerField(
        null=True, blank=True, validators=[MinValueValidator(1), MaxValueValidator(10)], verbose_name=label
    )


class CompanyVisit(BaseModel):
    """Visite du référent pédagogique sur le lieu de travail de l'alternant"""
    student = models.ForeignKey(
        Student,
        on_delete=models.CASCADE,
        related_name='company_visits',
        verbose_name="Alternant"
    )
    visitor = models.ForeignKey(
        Teacher,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='company_visits',
        verbose_name="Visiteur"
    )
    mentor = models.ForeignKey(
        Mentor,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='company_visits',
        verbose_name="Tuteur entreprise"
    )
    visit_date = models.DateTimeField(verbose_name="Date de la visite")
    visit_type = models.CharField(
        max_length=20, choices=VisitType.choices, default=VisitType.FOLLOW_UP, verbose_name="Type de visite"
    )
    objectives_checked = models.JSONField(default=list, blank=True, verbose_name="Objectifs vérifiés")
    observed_activities = models.JSONField(default=list, blank=True, verbose_name="Activités observées")
    strengths = models.JSONField(default=list, blank=True, verbose_name="Points forts")
    improvement_areas = models.JSONField(default=list, blank=True, verbose_name="Axes d'amélioration")
    recommendations = models.JSONField(default=list, blank=True, verbose_name="Recommandations")
    mentor_feedback = models.TextField(blank=True, verbose_name="Retour du tuteur")
    student_feedback = models.TextField(blank=True, verbose_name="Retour de l'alternant")
    visit_report = models.TextField(blank=True, verbose_name="Rapport de visite")
    follow_up_required = models.BooleanField(default=False, verbose_name="Suivi nécessaire")
    next_visit_date = models.DateTimeField(null=True, blank=True, verbose_name="Prochaine visite")
    overall_rating = rating_field("Note globale")
    working_conditions_rating = rating_field("Conditions de travail")
    supervision_rating = rating_field("Encadrement")
    integration_rating = rating_field("Intégration")
    notes = models.TextField(blank=True, verbose_name="Notes")
    duration = models.PositiveIntegerField(null=True, blank=True, verbose_name="Durée (minutes)")
    created_by = models.CharField(max_length=150, blank=True, verbose_name="Créée par")

    class Meta:
        db_table = 'alternance_company_visit'
        verbose_name = "Visite en entreprise"
        verbose_name_plural = "Visites en entreprise"
        ordering = ['-visit_date']

    def __str__(self):
        return self.summary

    def get_absolute_url(self):
        return reverse('alternance:visit_detail', kwargs={'pk': self.pk})

    @property
    def ratings(self):
        return [
            rating for rating in [
                self.overall_rating, self.working_conditions_rating,
                self.supervision_rating, self.integration_rating,
            ] if rating
        ]

    @property
    def average_rating(self):
        ratings = self.ratings
        if not ratings:
            return None
        return round(sum(ratings) / len(ratings), 2)

    @property
    def has_positive_outcome(self):
        average = self.average_rating
        return average is not None and average >= 7

    @property
    def needs_attention(self):
        average = self.average_rating
        return (
            self.follow_up_required
            or (average is not None and average < 6)
            or len(self.improvement_areas or []) > 2
        )

    @property
    def rating_badge_class(self):
        average = self.average_rating
        if average is None:
            return 'bg-secondary'
        if average >= 8:
            return 'bg-success'
        if average >= 6:
            return 'bg-warning'
        return 'bg-danger'

    @property
    def formatted_duration(self):
        return format_short_duration(self.duration)

    @property
    def summary(self):
        company = self.mentor.company_name if self.mentor_id else 'Entreprise'
        student = self.student.get_full_name() if self.student_id else 'Alternant'
        date = timezone.localtime(self.visit_date).strftime('%d/%m/%Y') if self.visit_date else 'Date non définie'
        return f"{self.get_visit_type_display()} chez {company} pour {student} le {date}"

    def get_assessment(self):
        return {
            'overall_rating': self.overall_rating,
            'average_rating': self.average_rating,
            'positive_outcome': self.has_positive_outcome,
            'needs_attention': self.needs_attention,
            'follow_up_required': self.follow_up_required,
            'next_visit_scheduled': self.next_visit_date is not None,
            'strengths_count': len(self.strengths or []),
            'improvement_areas_count': len(self.improvement_areas or []),
            'recommendations_count': len(self.recommendations or []),
        }
