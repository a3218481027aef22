# apps/training/forms.py

from django import forms

from apps.core.forms import BootstrapFormMixin, ListTextareaField
from .models import (
    Category, Formation, Module, Chapter, Course, Exercise, Session,
    SessionRegistration, ALTERNANCE_RHYTHMS
)

DATE_WIDGET = forms.DateInput(attrs={'type': 'date'}, format='%Y-%m-%d')
TEXTAREA = forms.Textarea(attrs={'rows': 3})


class CategoryForm(BootstrapFormMixin, forms.ModelForm):
    class Meta:
        model = Category
        fields = ['name', 'slug', 'description', 'icon', 'is_active']
        widgets = {'description': TEXTAREA}
        help_texts = {'slug': "Laisser vide pour le générer à partir du nom"}


class FormationForm(BootstrapFormMixin, forms.ModelForm):
    operational_objectives = ListTextareaField(label="Objectifs opérationnels")
    evaluable_objectives = ListTextareaField(label="Objectifs évaluables")
    evaluation_criteria = ListTextareaField(label="Critères d'évaluation")
    success_indicators = ListTextareaField(label="Indicateurs de réussite")

    class Meta:
        model = Formation
        fields = [
            'title', 'slug', 'category', 'description', 'objectives', 'prerequisites',
            'program', 'duration_hours', 'price', 'level', 'format', 'image',
            'is_active', 'is_featured',
            'target_audience', 'access_modalities', 'handicap_accessibility',
            'teaching_methods', 'evaluation_methods', 'contact_info',
            'training_location', 'funding_modalities',
            'operational_objectives', 'evaluable_objectives',
            'evaluation_criteria', 'success_indicators',
        ]
        widgets = {
            'description': forms.Textarea(attrs={'rows': 5}),
            'objectives': TEXTAREA,
            'prerequisites': TEXTAREA,
            'program': forms.Textarea(attrs={'rows': 6}),
            'target_audience': TEXTAREA,
            'access_modalities': TEXTAREA,
            'handicap_accessibility': TEXTAREA,
            'teaching_methods': TEXTAREA,
            'evaluation_methods': TEXTAREA,
            'contact_info': TEXTAREA,
            'training_location': TEXTAREA,
            'funding_modalities': TEXTAREA,
        }

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields['slug'].required = False
        self.fields['category'].queryset = Category.objects.filter(is_active=True)


class ModuleForm(BootstrapFormMixin, forms.ModelForm):
    learning_objectives = ListTextareaField(label="Objectifs d'apprentissage")
    resources = ListTextareaField(label="Ressources")
    success_criteria = ListTextareaField(label="Critères de réussite")

    class Meta:
        model = Module
        fields = [
            'formation', 'title', 'slug', 'description', 'learning_objectives',
            'prerequisites', 'duration_hours', 'order_index', 'evaluation_methods',
            'teaching_methods', 'resources', 'success_criteria', 'is_active',
        ]
        widgets = {
            'description': forms.Textarea(attrs={'rows': 4}),
            'prerequisites': TEXTAREA,
            'evaluation_methods': TEXTAREA,
            'teaching_methods': TEXTAREA,
        }

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields['slug'].required = False
        self.fields['order_index'].required = False
        self.fields['order_index'].help_text = "Laisser vide pour placer le module en dernier"

    def clean_order_index(self):
        return self.cleaned_data.get('order_index') or 0


class PedagogicalContentForm(BootstrapFormMixin, forms.ModelForm):
    """Champs communs aux formulaires de chapitre et de cours"""
    learning_objectives = ListTextareaField(label="Objectifs d'apprentissage")
    learning_outcomes = ListTextareaField(label="Acquis attendus")
    resources = ListTextareaField(label="Ressources")
    success_criteria = ListTextareaField(label="Critères de réussite")

    common_fields = [
        'title', 'slug', 'description', 'learning_objectives', 'content_outline',
        'prerequisites', 'learning_outcomes', 'teaching_methods', 'resources',
        'assessment_methods', 'success_criteria', 'duration_minutes', 'order_index', 'is_active',
    ]
    common_widgets = {
        'description': forms.Textarea(attrs={'rows': 4}),
        'content_outline': forms.Textarea(attrs={'rows': 4}),
        'prerequisites': TEXTAREA,
        'teaching_methods': TEXTAREA,
        'assessment_methods': TEXTAREA,
    }

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields['slug'].required = False
        self.fields['order_index'].required = False

    def clean_order_index(self):
        return self.cleaned_data.get('order_index') or 0


class ChapterForm(PedagogicalContentForm):
    class Meta:
        model = Chapter
        fields = ['module'] + PedagogicalContentForm.common_fields
        widgets = PedagogicalContentForm.common_widgets


class CourseForm(PedagogicalContentForm):
    class Meta:
        model = Course
        fields = ['chapter', 'type', 'content'] + PedagogicalContentForm.common_fields
        widgets = {
            **PedagogicalContentForm.common_widgets,
            'content': forms.Textarea(attrs={'rows': 10}),
        }


class ExerciseForm(BootstrapFormMixin, forms.ModelForm):
    expected_outcomes = ListTextareaField(label="Résultats attendus")
    evaluation_criteria = ListTextareaField(label="Critères d'évaluation")
    resources = ListTextareaField(label="Ressources")
    success_criteria = ListTextareaField(label="Critères de réussite")

    class Meta:
        model = Exercise
        fields = [
            'course', 'title', 'slug', 'description', 'instructions', 'type', 'difficulty',
            'expected_outcomes', 'evaluation_criteria', 'resources', 'prerequisites',
            'success_criteria', 'estimated_duration_minutes', 'time_limit_minutes',
            'max_points', 'passing_points', 'order_index', 'is_active',
        ]
        widgets = {
            'description': TEXTAREA,
            'instructions': forms.Textarea(attrs={'rows': 5}),
            'prerequisites': TEXTAREA,
        }

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields['slug'].required = False
        self.fields['order_index'].required = False

    def clean_order_index(self):
        return self.cleaned_data.get('order_index') or 0


class SessionForm(BootstrapFormMixin, forms.ModelForm):
    alternance_prerequisites = ListTextareaField(label="Prérequis alternance")
    alternance_rhythm = forms.ChoiceField(
        label="Rythme d'alternance",
        required=False,
        choices=[('', '---------')] + list(ALTERNANCE_RHYTHMS.items())
    )

    class Meta:
        model = Session
        fields = [
            'formation', 'name', 'description', 'start_date', 'end_date',
            'registration_deadline', 'location', 'address', 'max_capacity',
            'min_capacity', 'price', 'status', 'is_active', 'instructor', 'notes',
            'is_alternance_session', 'alternance_type', 'minimum_alternance_duration',
            'center_percentage', 'company_percentage', 'alternance_rhythm',
            'alternance_prerequisites',
        ]
        widgets = {
            'start_date': DATE_WIDGET,
            'end_date': DATE_WIDGET,
            'registration_deadline': DATE_WIDGET,
            'description': TEXTAREA,
            'address': TEXTAREA,
            'notes': TEXTAREA,
        }

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields['formation'].queryset = Formation.objects.filter(is_active=True)
        if self.instance.pk:
            # Conserver la formation d'une session existante même désactivée
            self.fields['formation'].queryset = Formation.objects.filter(
                is_active=True
            ) | Formation.objects.filter(pk=self.instance.formation_id)


class SessionRegistrationForm(BootstrapFormMixin, forms.ModelForm):
    class Meta:
        model = SessionRegistration
        fields = [
            'session', 'first_name', 'last_name', 'email', 'phone',
            'company', 'position', 'special_requirements', 'notes',
        ]
        widgets = {'special_requirements': TEXTAREA, 'notes': TEXTAREA}

    def clean_email(self):
        return self.cleaned_data['email'].strip().lower()

    def clean(self):
        cleaned_data = super().clean()
        session = cleaned_data.get('session')
        if session and not self.instance.pk:
            if not session.is_registration_open:
                raise forms.ValidationError("Les inscriptions ne sont pas ouvertes pour cette session.")
        return cleaned_data
