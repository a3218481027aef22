# apps/alternance/forms.py
import re

from django import forms
from django.utils import timezone

from apps.accounts.models import Student, Teacher, Mentor
from apps.core.forms import BootstrapFormMixin, ListTextareaField
from apps.core.utils import eprofos_setting
from .models import (
    AlternanceContract, AlternanceProgram, CompanyMission, MissionAssignment, SkillsAssessment,
    ProgressAssessment, CoordinationMeeting, CompanyVisit, skill_name
)

DATE_WIDGET = forms.DateInput(attrs={'type': 'date'}, format='%Y-%m-%d')
DATETIME_WIDGET = forms.DateTimeInput(attrs={'type': 'datetime-local'}, format='%Y-%m-%dT%H:%M')
TEXTAREA = forms.Textarea(attrs={'rows': 3})

SCORE_LINE = re.compile(r'^\s*([\w-]+)\s*[:=]\s*(\d+(?:[.,]\d+)?)\s*$')


class ScoreMapField(ListTextareaField):
    """Une ligne `code: note` par compétence, note sur 20"""

    def __init__(self, *args, value_key='value', max_value=20, **kwargs):
        self.value_key = value_key
        self.max_value = max_value
        kwargs.setdefault('help_text', "Une compétence par ligne, au format « code: note » (note sur 20)")
        super().__init__(*args, **kwargs)

    def to_python(self, value):
        scores = {}
        for line in super().to_python(value):
            match = SCORE_LINE.match(line)
            if not match:
                raise forms.ValidationError(f"Ligne invalide : « {line} »", code='invalid')
            score = float(match.group(2).replace(',', '.'))
            if score > self.max_value:
                raise forms.ValidationError(
                    f"La note de « {match.group(1)} » doit être comprise entre 0 et {self.max_value}.",
                    code='out_of_range'
                )
            scores[match.group(1)] = score
        return scores

    def prepare_value(self, value):
        if isinstance(value, dict):
            lines = []
            for code, score in value.items():
                if isinstance(score, dict):
                    score = score.get(self.value_key, '')
                lines.append(f"{code}: {score:g}" if isinstance(score, (int, float)) else f"{code}: {score}")
            return '\n'.join(lines)
        return super().prepare_value(value)


class RatedListField(ListTextareaField):
    """Une ligne `description | niveau` (niveau 1 à 5, 3 par défaut)"""

    def __init__(self, *args, rating_key='severity', **kwargs):
        self.rating_key = rating_key
        kwargs.setdefault('help_text', "Un élément par ligne, niveau optionnel de 1 à 5 après « | »")
        super().__init__(*args, **kwargs)

    def to_python(self, value):
        items = []
        for line in super().to_python(value):
            description, _, rating = line.partition('|')
            try:
                level = int(rating.strip()) if rating.strip() else 3
            except ValueError:
                raise forms.ValidationError(f"Niveau invalide : « {line} »", code='invalid')
            items.append({'description': description.strip(), self.rating_key: max(1, min(5, level))})
        return items

    def prepare_value(self, value):
        if isinstance(value, (list, tuple)):
            return '\n'.join(
                f"{item.get('description', '')} | {item.get(self.rating_key, 3)}" if isinstance(item, dict)
                else str(item)
                for item in value
            )
        return super().prepare_value(value)


class PeopleQuerysetMixin:
    """Restreint les listes de personnes aux fiches actives"""

    def limit_people(self):
        querysets = {'student': Student, 'pedagogical_supervisor': Teacher, 'center_evaluator': Teacher,
                     'visitor': Teacher, 'mentor': Mentor, 'mentor_evaluator': Mentor, 'supervisor': Mentor}
        for name, model in querysets.items():
            if name in self.fields:
                self.fields[name].queryset = model.objects.filter(is_active=True)


# ============================================================================
# CONTRATS ET PROGRAMMES
# ============================================================================

class AlternanceContractForm(PeopleQuerysetMixin, BootstrapFormMixin, forms.ModelForm):
    learning_objectives = ListTextareaField(label="Objectifs pédagogiques")
    company_objectives = ListTextareaField(label="Objectifs entreprise")

    class Meta:
        model = AlternanceContract
        fields = [
            'student', 'session', 'contract_number', 'contract_type',
            'company_name', 'company_address', 'company_siret',
            'company_contact_person', 'company_contact_email', 'company_contact_phone',
            'mentor', 'pedagogical_supervisor',
            'job_title', 'job_description', 'learning_objectives', 'company_objectives',
            'start_date', 'end_date', 'weekly_center_hours', 'weekly_company_hours',
            'remuneration', 'notes',
        ]
        widgets = {
            'start_date': DATE_WIDGET,
            'end_date': DATE_WIDGET,
            'company_address': TEXTAREA,
            'job_description': forms.Textarea(attrs={'rows': 5}),
            'notes': TEXTAREA,
        }
        help_texts = {'contract_number': "Laisser vide pour le générer automatiquement"}

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.limit_people()

    def clean_company_siret(self):
        return self.cleaned_data.get('company_siret', '').replace(' ', '')

    def clean(self):
        cleaned_data = super().clean()
        center = cleaned_data.get('weekly_center_hours') or 0
        company = cleaned_data.get('weekly_company_hours') or 0
        max_hours = eprofos_setting('MAX_WEEKLY_HOURS', 35)
        if center + company > max_hours:
            self.add_error(
                'weekly_company_hours',
                f"Le volume horaire hebdomadaire ne peut pas dépasser {max_hours}h ({center + company}h saisies)."
            )
        return cleaned_data


class AlternanceProgramForm(BootstrapFormMixin, forms.ModelForm):
    center_modules = ListTextareaField(label="Modules en centre")
    company_modules = ListTextareaField(label="Modules en entreprise")
    coordination_points = ListTextareaField(
        label="Points de coordination", help_text="Un point par ligne, en précisant la fréquence (ex. mensuelle)"
    )
    assessment_periods = ListTextareaField(label="Périodes d'évaluation")
    learning_progression = ListTextareaField(label="Progression pédagogique")

    class Meta:
        model = AlternanceProgram
        fields = [
            'session', 'title', 'description', 'total_duration', 'center_duration', 'company_duration',
            'rhythm', 'center_modules', 'company_modules', 'coordination_points',
            'assessment_periods', 'learning_progression', 'notes',
        ]
        widgets = {
            'description': forms.Textarea(attrs={'rows': 4}),
            'notes': TEXTAREA,
        }


# ============================================================================
# MISSIONS
# ============================================================================

class CompanyMissionForm(PeopleQuerysetMixin, BootstrapFormMixin, forms.ModelForm):
    objectives = ListTextareaField(label="Objectifs")
    required_skills = ListTextareaField(label="Compétences requises")
    skills_to_acquire = ListTextareaField(label="Compétences à acquérir")
    prerequisites = ListTextareaField(label="Prérequis")
    evaluation_criteria = ListTextareaField(label="Critères d'évaluation")

    class Meta:
        model = CompanyMission
        fields = [
            'supervisor', 'title', 'description', 'context', 'objectives', 'required_skills',
            'skills_to_acquire', 'duration', 'complexity', 'term', 'department',
            'prerequisites', 'evaluation_criteria', 'order_index', 'is_active',
        ]
        widgets = {
            'description': forms.Textarea(attrs={'rows': 4}),
            'context': TEXTAREA,
        }

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.limit_people()
        self.fields['order_index'].required = False

    def clean_order_index(self):
        return self.cleaned_data.get('order_index') or 0


class MissionAssignmentForm(PeopleQuerysetMixin, BootstrapFormMixin, forms.ModelForm):
    intermediate_objectives = ListTextareaField(label="Objectifs intermédiaires")

    class Meta:
        model = MissionAssignment
        fields = ['student', 'mission', 'start_date', 'end_date', 'intermediate_objectives']
        widgets = {
            'start_date': DATE_WIDGET,
            'end_date': DATE_WIDGET,
        }

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.limit_people()
        self.fields['mission'].queryset = CompanyMission.objects.filter(is_active=True)


class AssignmentProgressForm(BootstrapFormMixin, forms.Form):
    completion_rate = forms.DecimalField(
        label="Avancement (%)", min_value=0, max_value=100, decimal_places=2
    )
    achievements = ListTextareaField(label="Nouvelles réalisations")
    difficulties = ListTextareaField(label="Nouvelles difficultés")
    mentor_feedback = forms.CharField(label="Retour du tuteur", required=False, widget=TEXTAREA)


# ============================================================================
# ÉVALUATIONS
# ============================================================================

class SkillsAssessmentForm(PeopleQuerysetMixin, BootstrapFormMixin, forms.ModelForm):
    center_scores = ScoreMapField(label="Notes du centre")
    company_scores = ScoreMapField(label="Notes de l'entreprise")
    development_plan = ListTextareaField(label="Plan de développement")

    class Meta:
        model = SkillsAssessment
        fields = [
            'student', 'assessment_type', 'context', 'assessment_date',
            'center_evaluator', 'mentor_evaluator', 'related_mission',
            'center_scores', 'company_scores', 'center_comments', 'mentor_comments',
            'development_plan', 'overall_rating',
        ]
        widgets = {
            'assessment_date': DATE_WIDGET,
            'center_comments': TEXTAREA,
            'mentor_comments': TEXTAREA,
        }

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.limit_people()

    def clean(self):
        cleaned_data = super().clean()
        context = cleaned_data.get('context')
        center = cleaned_data.get('center_scores') or {}
        company = cleaned_data.get('company_scores') or {}
        if context == 'centre' and not center:
            self.add_error('center_scores', "Les notes du centre sont requises pour une évaluation en centre.")
        elif context == 'entreprise' and not company:
            self.add_error('company_scores', "Les notes de l'entreprise sont requises pour une évaluation en entreprise.")
        elif context == 'mixte' and not (center or company):
            self.add_error('center_scores', "Au moins une compétence doit être notée.")
        return cleaned_data

    def save(self, commit=True):
        assessment = super().save(commit=False)
        center = self.cleaned_data.get('center_scores') or {}
        company = self.cleaned_data.get('company_scores') or {}
        assessment.center_scores = {}
        assessment.company_scores = {}
        assessment.skills_evaluated = {}
        for code in dict.fromkeys([*center, *company]):
            assessment.add_skill_evaluation(code, center.get(code), company.get(code))
        if commit:
            assessment.save()
        return assessment


class ProgressAssessmentForm(BootstrapFormMixin, forms.ModelForm):
    completed_objectives = ListTextareaField(label="Objectifs atteints")
    pending_objectives = ListTextareaField(label="Objectifs en cours")
    upcoming_objectives = ListTextareaField(label="Objectifs à venir")
    difficulties = RatedListField(label="Difficultés", rating_key='severity')
    support_needed = RatedListField(label="Accompagnement nécessaire", rating_key='urgency')
    skills_matrix = ScoreMapField(label="Niveaux de compétences", value_key='level')

    class Meta:
        model = ProgressAssessment
        fields = [
            'student', 'period', 'center_progression', 'company_progression',
            'completed_objectives', 'pending_objectives', 'upcoming_objectives',
            'difficulties', 'support_needed', 'next_steps', 'skills_matrix',
        ]
        widgets = {
            'period': DATE_WIDGET,
            'next_steps': TEXTAREA,
        }

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields['student'].queryset = Student.objects.filter(is_active=True)

    def clean_skills_matrix(self):
        levels = self.cleaned_data.get('skills_matrix') or {}
        return {code: {'name': skill_name(code), 'level': level} for code, level in levels.items()}


# ============================================================================
# COORDINATION ET VISITES
# ============================================================================

class CoordinationMeetingForm(PeopleQuerysetMixin, BootstrapFormMixin, forms.ModelForm):
    agenda = ListTextareaField(label="Ordre du jour")
    discussion_points = ListTextareaField(label="Points abordés")
    decisions = ListTextareaField(label="Décisions")
    action_plan = ListTextareaField(label="Plan d'action")
    attendees = ListTextareaField(label="Participants")

    class Meta:
        model = CoordinationMeeting
        fields = [
            'student', 'pedagogical_supervisor', 'mentor', 'meeting_date', 'type', 'location',
            'agenda', 'discussion_points', 'decisions', 'action_plan', 'attendees',
            'next_meeting_date', 'meeting_report', 'duration', 'satisfaction_rating', 'notes',
        ]
        widgets = {
            'meeting_date': DATETIME_WIDGET,
            'next_meeting_date': DATETIME_WIDGET,
            'meeting_report': forms.Textarea(attrs={'rows': 5}),
            'notes': TEXTAREA,
        }

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.limit_people()

    def clean(self):
        cleaned_data = super().clean()
        meeting_date = cleaned_data.get('meeting_date')
        next_meeting = cleaned_data.get('next_meeting_date')
        if meeting_date and next_meeting and next_meeting <= meeting_date:
            self.add_error('next_meeting_date', "La prochaine réunion doit suivre celle-ci.")
        return cleaned_data


class PostponeMeetingForm(BootstrapFormMixin, forms.Form):
    new_date = forms.DateTimeField(label="Nouvelle date", widget=DATETIME_WIDGET)

    def clean_new_date(self):
        new_date = self.cleaned_data['new_date']
        if new_date <= timezone.now():
            raise forms.ValidationError("La nouvelle date doit être dans le futur.")
        return new_date


class CompanyVisitForm(PeopleQuerysetMixin, BootstrapFormMixin, forms.ModelForm):
    objectives_checked = ListTextareaField(label="Objectifs vérifiés")
    observed_activities = ListTextareaField(label="Activités observées")
    strengths = ListTextareaField(label="Points forts")
    improvement_areas = ListTextareaField(label="Axes d'amélioration")
    recommendations = ListTextareaField(label="Recommandations")

    class Meta:
        model = CompanyVisit
        fields = [
            'student', 'visitor', 'mentor', 'visit_date', 'visit_type', 'duration',
            'objectives_checked', 'observed_activities', 'strengths', 'improvement_areas',
            'recommendations', 'mentor_feedback', 'student_feedback', 'visit_report',
            'overall_rating', 'working_conditions_rating', 'supervision_rating', 'integration_rating',
            'follow_up_required', 'next_visit_date', 'notes',
        ]
        widgets = {
            'visit_date': DATETIME_WIDGET,
            'next_visit_date': DATETIME_WIDGET,
            'mentor_feedback': TEXTAREA,
            'student_feedback': TEXTAREA,
            'visit_report': forms.Textarea(attrs={'rows': 5}),
            'notes': TEXTAREA,
        }

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.limit_people()
