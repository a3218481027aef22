# apps/training/views.py
import logging

from django.contrib import messages
from django.core.exceptions import ValidationError
from django.db import DatabaseError, transaction
from django.db.models import Count, Q, Sum, Avg
from django.shortcuts import get_object_or_404, redirect
from django.urls import reverse, reverse_lazy
from django.utils import timezone
from django.utils.html import escape
from django.views.decorators.http import require_POST
from django.views.generic import ListView, DetailView, CreateView, UpdateView, DeleteView, TemplateView
from reportlab.lib import colors
from reportlab.platypus import Paragraph, Spacer, Table, TableStyle

from apps.core.exports import (
    export_filename, get_pdf_response, write_csv, write_excel, build_pdf,
    add_pdf_header, create_table_style
)
from apps.core.mixins import StaffRequiredMixin, ParentInitialMixin, staff_required
from apps.core.utils import format_minutes
from apps.core.views import (
    AuditedFormMixin, AuditedDeleteMixin, FilteredListMixin, ToggleFieldView, ReorderView
)
from .forms import (
    CategoryForm, FormationForm, ModuleForm, ChapterForm, CourseForm, ExerciseForm,
    SessionForm, SessionRegistrationForm
)
from .models import (
    Category, Formation, Module, Chapter, Course, Exercise, Session, SessionStatus,
    SessionRegistration, RegistrationStatus, FormationLevel, FormationFormat, CourseType
)
from .services.durations import DurationCalculationService
from .services.qualiopi import generate_qualiopi_report
from .services.schedule import FormationScheduleService, MORNING, AFTERNOON

logger = logging.getLogger(__name__)


# ============================================================================
# VUES CATÉGORIE
# ============================================================================
class CategoryListView(StaffRequiredMixin, FilteredListMixin, ListView):
    model = Category
    context_object_name = 'categories'
    page_title = 'Catégories'
    search_fields = ['name', 'description']
    filter_fields = {'active': 'is_active'}
    create_url_name = 'training:category_create'

    def get_queryset(self):
        return super().get_queryset().annotate(
            formations_count=Count('formations', distinct=True),
            active_formations=Count('formations', filter=Q(formations__is_active=True), distinct=True),
        )


class CategoryDetailView(StaffRequiredMixin, DetailView):
    model = Category
    template_name = 'training/category_detail.html'
    context_object_name = 'category'

    def get_context_data(self, **kwargs):
        context = super().get_context_data(**kwargs)
        context['formations'] = self.object.formations.order_by('title')
        return context


class CategoryCreateView(StaffRequiredMixin, AuditedFormMixin, CreateView):
    model = Category
    form_class = CategoryForm
    page_title = 'Nouvelle catégorie'
    submit_text = 'Créer'
    action = 'création'
    cancel_url_name = 'training:category_list'
    success_message = "Catégorie créée avec succès."
    error_message = "Une erreur est survenue lors de la création de la catégorie."


class CategoryUpdateView(StaffRequiredMixin, AuditedFormMixin, UpdateView):
    model = Category
    form_class = CategoryForm
    page_title = 'Modifier la catégorie'
    submit_text = 'Enregistrer'
    action = 'modification'
    cancel_url_name = 'training:category_list'
    success_message = "Catégorie modifiée avec succès."
    error_message = "Une erreur est survenue lors de la modification de la catégorie."


class CategoryDeleteView(StaffRequiredMixin, AuditedDeleteMixin, DeleteView):
    model = Category
    success_url = reverse_lazy('training:category_list')
    page_title = 'Supprimer la catégorie'
    success_message = "Catégorie supprimée avec succès."

    def get_delete_blocker(self, obj):
        count = obj.formations.count()
        if count:
            return (
                f"Impossible de supprimer cette catégorie car elle contient {count} formation(s). "
                "Veuillez d'abord déplacer ou supprimer les formations."
            )
        return None


class CategoryToggleStatusView(ToggleFieldView):
    model = Category
    verbose_name = 'Catégorie'
    on_label = 'activée'
    off_label = 'désactivée'
    success_url_name = 'training:category_list'


# ============================================================================
# VUES FORMATION
# ============================================================================
FORMATION_SORTS = {
    'title': 'title',
    'recent': '-created_at',
    'price': 'price',
    '-price': '-price',
    'duration': 'duration_hours',
}


class FormationListView(StaffRequiredMixin, FilteredListMixin, ListView):
    model = Formation
    context_object_name = 'formations'
    page_title = 'Formations'
    search_fields = ['title', 'description', 'category__name']
    filter_fields = {
        'category': 'category_id',
        'level': 'level',
        'format': 'format',
        'active': 'is_active',
        'featured': 'is_featured',
    }
    create_url_name = 'training:formation_create'

    def get_queryset(self):
        queryset = super().get_queryset().select_related('category').annotate(
            sessions_count=Count('sessions', distinct=True),
            modules_count=Count('modules', distinct=True),
        )
        sort = self.request.GET.get('sort', 'recent')
        return queryset.order_by(FORMATION_SORTS.get(sort, '-created_at'))

    def get_context_data(self, **kwargs):
        context = super().get_context_data(**kwargs)
        context['categories'] = Category.objects.filter(is_active=True)
        context['levels'] = FormationLevel.choices
        context['formats'] = FormationFormat.choices
        context['sorts'] = FORMATION_SORTS.keys()
        return context


class FormationDetailView(StaffRequiredMixin, DetailView):
    model = Formation
    template_name = 'training/formation_detail.html'
    context_object_name = 'formation'

    def get_queryset(self):
        return super().get_queryset().select_related('category')

    def get_context_data(self, **kwargs):
        context = super().get_context_data(**kwargs)
        formation = self.object
        context['modules'] = formation.modules.order_by('order_index')
        context['sessions'] = formation.sessions.order_by('start_date')
        context['qualiopi'] = generate_qualiopi_report(formation)
        context['durations'] = DurationCalculationService().get_duration_statistics(formation)
        return context


class FormationCreateView(StaffRequiredMixin, AuditedFormMixin, CreateView):
    model = Formation
    form_class = FormationForm
    page_title = 'Nouvelle formation'
    submit_text = 'Créer'
    action = 'création'
    cancel_url_name = 'training:formation_list'
    success_message = "Formation créée avec succès."
    error_message = "Une erreur est survenue lors de la création de la formation."


class FormationUpdateView(StaffRequiredMixin, AuditedFormMixin, UpdateView):
    model = Formation
    form_class = FormationForm
    page_title = 'Modifier la formation'
    submit_text = 'Enregistrer'
    action = 'modification'
    cancel_url_name = 'training:formation_list'
    success_message = "Formation modifiée avec succès."
    error_message = "Une erreur est survenue lors de la modification de la formation."


class FormationDeleteView(StaffRequiredMixin, AuditedDeleteMixin, DeleteView):
    model = Formation
    success_url = reverse_lazy('training:formation_list')
    page_title = 'Supprimer la formation'
    success_message = "Formation supprimée avec succès."

    def get_delete_blocker(self, obj):
        count = obj.sessions.count()
        if count:
            return f"Impossible de supprimer cette formation car elle possède {count} session(s)."
        return None


class FormationToggleStatusView(ToggleFieldView):
    model = Formation
    verbose_name = 'Formation'
    on_label = 'activée'
    off_label = 'désactivée'
    success_url_name = 'training:formation_list'


class FormationToggleFeaturedView(ToggleFieldView):
    model = Formation
    field = 'is_featured'
    verbose_name = 'Formation'
    on_label = 'mise en avant'
    off_label = 'retirée de la mise en avant'
    success_url_name = 'training:formation_list'


class FormationScheduleView(StaffRequiredMixin, DetailView):
    """Planning jour par jour (matin / après-midi) d'une formation"""
    model = Formation
    template_name = 'training/formation_schedule.html'
    context_object_name = 'formation'

    def get_context_data(self, **kwargs):
        context = super().get_context_data(**kwargs)
        service = FormationScheduleService()
        schedule = service.decorate(service.calculate_formation_schedule(self.object))
        context['title'] = f"Planning - {self.object.title}"
        context['schedule'] = schedule
        context['formatted_total'] = service.format_duration(schedule['total_duration'])
        return context


@staff_required
def formation_schedule_pdf(request, pk):
    """Télécharger le planning d'une formation en PDF"""
    formation = get_object_or_404(Formation, pk=pk)
    service = FormationScheduleService()
    schedule = service.decorate(service.calculate_formation_schedule(formation))

    logger.info(f"Export PDF du planning de la formation {formation.pk} par {request.user.username}")

    def build(elements, styles):
        add_pdf_header(
            elements,
            f"Planning - {formation.title}",
            styles,
            subtitle=(
                f"{schedule['total_days']} jour(s) - "
                f"{service.format_duration(schedule['total_duration'])}"
            )
        )
        if not schedule['days']:
            elements.append(Paragraph("Aucun module actif pour cette formation.", styles['EprofosBody']))
            return

        for day in schedule['days']:
            elements.append(Paragraph(f"Jour {day['day_number']}", styles['EprofosSection']))
            data = [['Demi-journée', 'Type', 'Élément', 'Durée']]
            for half in (MORNING, AFTERNOON):
                for item in day[half]['items']:
                    data.append([
                        day[half]['session'],
                        item['type_label'],
                        Paragraph(escape(item['display_title']), styles['EprofosBody']),
                        item['formatted_duration'],
                    ])
            table = Table(data, colWidths=[80, 70, 270, 60], repeatRows=1)
            table.setStyle(create_table_style())
            elements.append(table)
            elements.append(Spacer(1, 12))

        summary = schedule['summary']
        elements.append(Paragraph("Synthèse", styles['EprofosSection']))
        summary_table = Table([
            ['Éléments', 'Segments', 'Éléments découpés', 'Exercices', 'QCM'],
            [
                str(summary[key]) for key in
                ('total_items', 'total_segments', 'split_items', 'total_exercises', 'total_qcms')
            ],
        ])
        summary_table.setStyle(create_table_style())
        elements.append(summary_table)

    response = get_pdf_response(export_filename(f'planning_{formation.slug}', 'pdf'))
    response.write(build_pdf(f"Planning - {formation.title}", build))
    return response


class FormationDurationStatisticsView(StaffRequiredMixin, DetailView):
    model = Formation
    template_name = 'training/duration_statistics.html'
    context_object_name = 'formation'

    def get_context_data(self, **kwargs):
        context = super().get_context_data(**kwargs)
        context['title'] = f"Durées - {self.object.title}"
        context['statistics'] = DurationCalculationService().get_duration_statistics(self.object)
        return context


@require_POST
@staff_required
def formation_sync_durations(request, pk):
    """Recalculer toutes les durées d'une formation"""
    formation = get_object_or_404(Formation, pk=pk)
    previous = formation.duration_hours

    try:
        hours = DurationCalculationService().sync_formation(formation)
    except DatabaseError:
        logger.error(f"Erreur lors de la synchronisation des durées de la formation {formation.pk}", exc_info=True)
        messages.error(request, "Une erreur est survenue lors du recalcul des durées.")
        return redirect(formation.get_absolute_url())

    logger.info(f"Durées de la formation {formation.pk} synchronisées: {previous}h -> {hours}h")
    messages.success(request, f"Durées recalculées avec succès ({hours}h).")
    return redirect(formation.get_absolute_url())


# ============================================================================
# VUES MODULE
# ============================================================================
class ModuleListView(StaffRequiredMixin, FilteredListMixin, ListView):
    model = Module
    context_object_name = 'modules'
    page_title = 'Modules'
    search_fields = ['title', 'description']
    filter_fields = {'formation': 'formation_id', 'active': 'is_active'}
    create_url_name = 'training:module_create'

    def get_queryset(self):
        return super().get_queryset().select_related('formation').annotate(
            chapters_count=Count('chapters')
        ).order_by('formation__title', 'order_index')

    def get_context_data(self, **kwargs):
        context = super().get_context_data(**kwargs)
        context['formations'] = Formation.objects.order_by('title')
        return context


class ModuleDetailView(StaffRequiredMixin, DetailView):
    model = Module
    template_name = 'training/module_detail.html'
    context_object_name = 'module'

    def get_context_data(self, **kwargs):
        context = super().get_context_data(**kwargs)
        context['chapters'] = self.object.chapters.order_by('order_index')
        return context


class ModuleCreateView(StaffRequiredMixin, ParentInitialMixin, AuditedFormMixin, CreateView):
    model = Module
    form_class = ModuleForm
    parent_field = 'formation'
    page_title = 'Nouveau module'
    submit_text = 'Créer'
    action = 'création'
    success_message = "Module créé avec succès."
    error_message = "Une erreur est survenue lors de la création du module."


class ModuleUpdateView(StaffRequiredMixin, AuditedFormMixin, UpdateView):
    model = Module
    form_class = ModuleForm
    page_title = 'Modifier le module'
    submit_text = 'Enregistrer'
    action = 'modification'
    success_message = "Module modifié avec succès."
    error_message = "Une erreur est survenue lors de la modification du module."


class ModuleDeleteView(StaffRequiredMixin, AuditedDeleteMixin, DeleteView):
    model = Module
    page_title = 'Supprimer le module'
    success_message = "Module supprimé avec succès."

    def get_success_url(self):
        return reverse('training:formation_detail', kwargs={'pk': self.object.formation_id})


class ModuleToggleActiveView(ToggleFieldView):
    model = Module
    verbose_name = 'Module'
    success_url_name = 'training:module_list'


class ModuleReorderView(ReorderView):
    model = Module
    verbose_name_plural = 'modules'
    success_url_name = 'training:module_list'


# ============================================================================
# VUES CHAPITRE
# ============================================================================
class ChapterListView(StaffRequiredMixin, FilteredListMixin, ListView):
    model = Chapter
    context_object_name = 'chapters'
    page_title = 'Chapitres'
    search_fields = ['title', 'description']
    filter_fields = {'module': 'module_id', 'active': 'is_active'}
    create_url_name = 'training:chapter_create'

    def get_queryset(self):
        return super().get_queryset().select_related('module__formation').annotate(
            courses_count=Count('courses')
        ).order_by('module__formation__title', 'module__order_index', 'order_index')


class ChapterStatisticsView(StaffRequiredMixin, TemplateView):
    template_name = 'training/chapter_statistics.html'

    def get_context_data(self, **kwargs):
        context = super().get_context_data(**kwargs)
        chapters = Chapter.objects.all()
        totals = chapters.aggregate(total_minutes=Sum('duration_minutes'), average_minutes=Avg('duration_minutes'))

        context['title'] = 'Statistiques des chapitres'
        context['statistics'] = {
            'total': chapters.count(),
            'active': chapters.filter(is_active=True).count(),
            'inactive': chapters.filter(is_active=False).count(),
            'total_duration': format_minutes(totals['total_minutes'] or 0),
            'average_duration': format_minutes(round(totals['average_minutes'] or 0)),
        }
        context['by_module'] = Module.objects.select_related('formation').annotate(
            chapters_count=Count('chapters'),
            chapters_minutes=Sum('chapters__duration_minutes'),
        ).filter(chapters_count__gt=0).order_by('formation__title', 'order_index')
        return context


class ChapterByModuleView(StaffRequiredMixin, ListView):
    """Chapitres d'un module, dans l'ordre"""
    template_name = 'training/chapter_by_module.html'
    context_object_name = 'chapters'

    def get_queryset(self):
        self.module = get_object_or_404(Module.objects.select_related('formation'), pk=self.kwargs['pk'])
        return self.module.chapters.order_by('order_index')

    def get_context_data(self, **kwargs):
        context = super().get_context_data(**kwargs)
        context['title'] = f"Chapitres - {self.module.title}"
        context['module'] = self.module
        return context


class ChapterDetailView(StaffRequiredMixin, DetailView):
    model = Chapter
    template_name = 'training/chapter_detail.html'
    context_object_name = 'chapter'

    def get_context_data(self, **kwargs):
        context = super().get_context_data(**kwargs)
        context['courses'] = self.object.courses.order_by('order_index')
        return context


class ChapterCreateView(StaffRequiredMixin, ParentInitialMixin, AuditedFormMixin, CreateView):
    model = Chapter
    form_class = ChapterForm
    parent_field = 'module'
    page_title = 'Nouveau chapitre'
    submit_text = 'Créer'
    action = 'création'
    success_message = "Chapitre créé avec succès."
    error_message = "Une erreur est survenue lors de la création du chapitre."


class ChapterUpdateView(StaffRequiredMixin, AuditedFormMixin, UpdateView):
    model = Chapter
    form_class = ChapterForm
    page_title = 'Modifier le chapitre'
    submit_text = 'Enregistrer'
    action = 'modification'
    success_message = "Chapitre modifié avec succès."
    error_message = "Une erreur est survenue lors de la modification du chapitre."


class ChapterDeleteView(StaffRequiredMixin, AuditedDeleteMixin, DeleteView):
    model = Chapter
    page_title = 'Supprimer le chapitre'
    success_message = "Chapitre supprimé avec succès."

    def get_success_url(self):
        return reverse('training:module_detail', kwargs={'pk': self.object.module_id})


class ChapterToggleActiveView(ToggleFieldView):
    model = Chapter
    verbose_name = 'Chapitre'
    success_url_name = 'training:chapter_list'


class ChapterReorderView(ReorderView):
    model = Chapter
    verbose_name_plural = 'chapitres'
    success_url_name = 'training:chapter_list'


@require_POST
@staff_required
def chapter_duplicate(request, pk):
    """Dupliquer un chapitre (copie inactive placée en fin de module)"""
    chapter = get_object_or_404(Chapter, pk=pk)
    logger.info(f"Duplication du chapitre {chapter.pk} demandée par {request.user.username}")

    try:
        with transaction.atomic():
            copy = Chapter(
                module=chapter.module,
                title=f"{chapter.title} (Copie)",
                slug=f"{chapter.slug}-copy-{int(timezone.now().timestamp())}",
                description=chapter.description,
                learning_objectives=list(chapter.learning_objectives or []),
                content_outline=chapter.content_outline,
                prerequisites=chapter.prerequisites,
                learning_outcomes=list(chapter.learning_outcomes or []),
                teaching_methods=chapter.teaching_methods,
                resources=list(chapter.resources or []),
                assessment_methods=chapter.assessment_methods,
                success_criteria=list(chapter.success_criteria or []),
                duration_minutes=chapter.duration_minutes,
                order_index=Chapter.next_order_index(module=chapter.module),
                is_active=False,
            )
            copy.save()
    except DatabaseError:
        logger.error(f"Erreur lors de la duplication du chapitre {chapter.pk}", exc_info=True)
        messages.error(request, "Une erreur est survenue lors de la duplication du chapitre.")
        return redirect(chapter.get_absolute_url())

    logger.info(f"Chapitre {chapter.pk} dupliqué en {copy.pk}")
    messages.success(request, "Chapitre dupliqué avec succès.")
    return redirect(copy.get_absolute_url())


# ============================================================================
# VUES COURS
# ============================================================================
class CourseListView(StaffRequiredMixin, FilteredListMixin, ListView):
    model = Course
    context_object_name = 'courses'
    page_title = 'Cours'
    search_fields = ['title', 'description', 'content']
    filter_fields = {'chapter': 'chapter_id', 'type': 'type', 'active': 'is_active'}
    create_url_name = 'training:course_create'

    def get_queryset(self):
        return super().get_queryset().select_related('chapter__module').order_by(
            'chapter__module__order_index', 'chapter__order_index', 'order_index'
        )

    def get_context_data(self, **kwargs):
        context = super().get_context_data(**kwargs)
        context['types'] = CourseType.choices
        return context


class CourseDetailView(StaffRequiredMixin, DetailView):
    model = Course
    template_name = 'training/course_detail.html'
    context_object_name = 'course'

    def get_context_data(self, **kwargs):
        context = super().get_context_data(**kwargs)
        context['exercises'] = self.object.exercises.order_by('order_index')
        context['qcms'] = self.object.qcms.order_by('order_index')
        context['total_duration'] = format_minutes(
            DurationCalculationService().calculate_course_duration(self.object)
        )
        return context


class CourseCreateView(StaffRequiredMixin, ParentInitialMixin, AuditedFormMixin, CreateView):
    model = Course
    form_class = CourseForm
    parent_field = 'chapter'
    page_title = 'Nouveau cours'
    submit_text = 'Créer'
    action = 'création'
    success_message = "Cours créé avec succès."
    error_message = "Une erreur est survenue lors de la création du cours."


class CourseUpdateView(StaffRequiredMixin, AuditedFormMixin, UpdateView):
    model = Course
    form_class = CourseForm
    page_title = 'Modifier le cours'
    submit_text = 'Enregistrer'
    action = 'modification'
    success_message = "Cours modifié avec succès."
    error_message = "Une erreur est survenue lors de la modification du cours."


class CourseDeleteView(StaffRequiredMixin, AuditedDeleteMixin, DeleteView):
    model = Course
    page_title = 'Supprimer le cours'
    success_message = "Cours supprimé avec succès."

    def get_success_url(self):
        return reverse('training:chapter_detail', kwargs={'pk': self.object.chapter_id})


class CourseToggleActiveView(ToggleFieldView):
    model = Course
    verbose_name = 'Cours'
    success_url_name = 'training:course_list'


class CourseReorderView(ReorderView):
    model = Course
    verbose_name_plural = 'cours'
    success_url_name = 'training:course_list'


def _pdf_list(elements, styles, heading, values):
    if not values:
        return
    elements.append(Paragraph(heading, styles['EprofosSection']))
    for value in values:
        elements.append(Paragraph(f"• {escape(value)}", styles['EprofosBody']))


@staff_required
def course_pdf(request, pk):
    """Télécharger la fiche d'un cours en PDF"""
    course = get_object_or_404(Course.objects.select_related('chapter__module__formation'), pk=pk)
    logger.info(f"Export PDF du cours {course.pk} par {request.user.username}")

    def build(elements, styles):
        add_pdf_header(
            elements, course.title, styles,
            subtitle=f"{course.chapter.module.formation.title} / {course.chapter.module.title} / {course.chapter.title}"
        )
        info = Table([
            ['Type', 'Durée', 'Exercices', 'QCM'],
            [
                course.get_type_display(),
                course.formatted_duration,
                str(course.get_active_exercises().count()),
                str(course.get_active_qcms().count()),
            ],
        ])
        info.setStyle(create_table_style())
        elements.append(info)
        elements.append(Spacer(1, 12))

        elements.append(Paragraph("Description", styles['EprofosSection']))
        elements.append(Paragraph(escape(course.description), styles['EprofosBody']))
        _pdf_list(elements, styles, "Objectifs d'apprentissage", course.learning_objectives)
        _pdf_list(elements, styles, "Acquis attendus", course.learning_outcomes)
        if course.content:
            elements.append(Paragraph("Contenu", styles['EprofosSection']))
            for paragraph in course.content.split('\n\n'):
                elements.append(Paragraph(escape(paragraph).replace('\n', '<br/>'), styles['EprofosBody']))
        _pdf_list(elements, styles, "Ressources", course.resources)
        _pdf_list(elements, styles, "Critères de réussite", course.success_criteria)

        exercises = list(course.get_active_exercises())
        if exercises:
            elements.append(Paragraph("Exercices", styles['EprofosSection']))
            data = [['Exercice', 'Difficulté', 'Durée', 'Points']]
            for exercise in exercises:
                data.append([
                    Paragraph(escape(exercise.title), styles['EprofosBody']),
                    exercise.get_difficulty_display(),
                    exercise.formatted_duration,
                    f"{exercise.passing_points}/{exercise.max_points}",
                ])
            table = Table(data, colWidths=[250, 80, 70, 60], repeatRows=1)
            table.setStyle(create_table_style())
            table.setStyle(TableStyle([('ALIGN', (1, 1), (-1, -1), 'CENTER'),
                                       ('LINEBELOW', (0, -1), (-1, -1), 1, colors.HexColor('#2563eb'))]))
            elements.append(table)

    response = get_pdf_response(export_filename(f'cours_{course.slug}', 'pdf'))
    response.write(build_pdf(course.title, build))
    return response


# ============================================================================
# VUES EXERCICE
# ============================================================================
class ExerciseListView(StaffRequiredMixin, FilteredListMixin, ListView):
    model = Exercise
    context_object_name = 'exercises'
    page_title = 'Exercices'
    search_fields = ['title', 'description']
    filter_fields = {
        'course': 'course_id',
        'type': 'type',
        'difficulty': 'difficulty',
        'active': 'is_active',
    }
    create_url_name = 'training:exercise_create'

    def get_queryset(self):
        return super().get_queryset().select_related('course')


class ExerciseDetailView(StaffRequiredMixin, DetailView):
    model = Exercise
    template_name = 'core/crud/detail.html'
    context_object_name = 'exercise'


class ExerciseCreateView(StaffRequiredMixin, ParentInitialMixin, AuditedFormMixin, CreateView):
    model = Exercise
    form_class = ExerciseForm
    parent_field = 'course'
    page_title = 'Nouvel exercice'
    submit_text = 'Créer'
    action = 'création'
    success_message = "Exercice créé avec succès."
    error_message = "Une erreur est survenue lors de la création de l'exercice."


class ExerciseUpdateView(StaffRequiredMixin, AuditedFormMixin, UpdateView):
    model = Exercise
    form_class = ExerciseForm
    page_title = "Modifier l'exercice"
    submit_text = 'Enregistrer'
    action = 'modification'
    success_message = "Exercice modifié avec succès."
    error_message = "Une erreur est survenue lors de la modification de l'exercice."


class ExerciseDeleteView(StaffRequiredMixin, AuditedDeleteMixin, DeleteView):
    model = Exercise
    page_title = "Supprimer l'exercice"
    success_message = "Exercice supprimé avec succès."

    def get_success_url(self):
        return reverse('training:course_detail', kwargs={'pk': self.object.course_id})


class ExerciseToggleActiveView(ToggleFieldView):
    model = Exercise
    verbose_name = 'Exercice'
    success_url_name = 'training:exercise_list'


# ============================================================================
# VUES SESSION
# ============================================================================
class SessionListView(StaffRequiredMixin, FilteredListMixin, ListView):
    model = Session
    context_object_name = 'sessions'
    page_title = 'Sessions'
    search_fields = ['name', 'location', 'formation__title', 'instructor']
    filter_fields = {
        'formation': 'formation_id',
        'status': 'status',
        'active': 'is_active',
        'alternance': 'is_alternance_session',
    }
    create_url_name = 'training:session_create'

    def get_queryset(self):
        return super().get_queryset().select_related('formation').order_by('-start_date')

    def get_context_data(self, **kwargs):
        context = super().get_context_data(**kwargs)
        context['statuses'] = SessionStatus.choices
        return context


class SessionDetailView(StaffRequiredMixin, DetailView):
    model = Session
    template_name = 'training/session_detail.html'
    context_object_name = 'session'

    def get_context_data(self, **kwargs):
        context = super().get_context_data(**kwargs)
        registrations = self.object.registrations.order_by('last_name', 'first_name')
        context['registrations'] = registrations
        context['registration_counts'] = {
            label: registrations.filter(status=value).count()
            for value, label in RegistrationStatus.choices
        }
        context['statuses'] = SessionStatus.choices
        return context


class SessionCreateView(StaffRequiredMixin, ParentInitialMixin, AuditedFormMixin, CreateView):
    model = Session
    form_class = SessionForm
    parent_field = 'formation'
    page_title = 'Nouvelle session'
    submit_text = 'Créer'
    action = 'création'
    cancel_url_name = 'training:session_list'
    success_message = "Session créée avec succès."
    error_message = "Une erreur est survenue lors de la création de la session."


class SessionUpdateView(StaffRequiredMixin, AuditedFormMixin, UpdateView):
    model = Session
    form_class = SessionForm
    page_title = 'Modifier la session'
    submit_text = 'Enregistrer'
    action = 'modification'
    cancel_url_name = 'training:session_list'
    success_message = "Session modifiée avec succès."
    error_message = "Une erreur est survenue lors de la modification de la session."


class SessionDeleteView(StaffRequiredMixin, AuditedDeleteMixin, DeleteView):
    model = Session
    success_url = reverse_lazy('training:session_list')
    page_title = 'Supprimer la session'
    success_message = "Session supprimée avec succès."

    def get_delete_blocker(self, obj):
        if obj.registrations.filter(status=RegistrationStatus.CONFIRMED).exists():
            return (
                "Impossible de supprimer cette session car elle contient des inscriptions confirmées. "
                "Annulez d'abord les inscriptions."
            )
        return None


@require_POST
@staff_required
def session_change_status(request, pk):
    """Changer le statut d'une session"""
    session = get_object_or_404(Session, pk=pk)
    new_status = request.POST.get('status', '')
    old_status = session.status

    logger.info(
        f"Changement de statut de la session {session.pk} demandé par {request.user.username}: "
        f"{old_status} -> {new_status}"
    )

    if new_status not in SessionStatus.values:
        logger.warning(f"Statut invalide demandé pour la session {session.pk}: {new_status!r}")
        messages.error(request, "Statut invalide demandé.")
        return redirect(session.get_absolute_url())

    if new_status == SessionStatus.CONFIRMED and not session.can_be_confirmed:
        logger.warning(
            f"Session {session.pk} confirmée sous la capacité minimale "
            f"({session.current_registrations}/{session.min_capacity})"
        )
    if new_status == SessionStatus.CANCELLED and session.current_registrations:
        logger.warning(
            f"Session {session.pk} annulée avec {session.current_registrations} inscription(s) active(s)"
        )

    try:
        session.status = new_status
        session.save(update_fields=['status', 'updated_at'])
    except DatabaseError:
        logger.error(f"Erreur lors du changement de statut de la session {session.pk}", exc_info=True)
        messages.error(request, "Une erreur est survenue lors du changement de statut.")
        return redirect(session.get_absolute_url())

    logger.info(f"Session {session.pk}: statut {old_status} -> {new_status}")
    messages.success(request, "Le statut de la session a été modifié.")
    return redirect(session.get_absolute_url())


REGISTRATION_EXPORT_HEADERS = [
    'Prénom', 'Nom', 'Email', 'Téléphone', 'Entreprise', 'Poste', 'Statut',
    "Date d'inscription", 'Confirmée le', 'Besoins spécifiques',
]


def registration_export_row(registration):
    return [
        registration.first_name,
        registration.last_name,
        registration.email,
        registration.phone,
        registration.company,
        registration.position,
        registration.get_status_display(),
        timezone.localtime(registration.created_at).strftime('%d/%m/%Y %H:%M'),
        timezone.localtime(registration.confirmed_at).strftime('%d/%m/%Y %H:%M') if registration.confirmed_at else '',
        registration.special_requirements,
    ]


@staff_required
def session_export_registrations(request, pk):
    """Exporter les inscriptions d'une session en CSV"""
    session = get_object_or_404(Session, pk=pk)
    registrations = session.registrations.order_by('last_name', 'first_name')

    logger.info(f"Export des {registrations.count()} inscriptions de la session {session.pk}")

    return write_csv(
        export_filename(f'inscriptions_session_{session.start_date:%Y%m%d}', 'csv'),
        REGISTRATION_EXPORT_HEADERS,
        (registration_export_row(registration) for registration in registrations)
    )


# ============================================================================
# VUES INSCRIPTION
# ============================================================================
class RegistrationListView(StaffRequiredMixin, FilteredListMixin, ListView):
    model = SessionRegistration
    context_object_name = 'registrations'
    page_title = 'Inscriptions'
    search_fields = ['first_name', 'last_name', 'email', 'company']
    filter_fields = {'session': 'session_id', 'status': 'status'}
    create_url_name = 'training:registration_create'

    def get_queryset(self):
        return super().get_queryset().select_related('session__formation')

    def get_context_data(self, **kwargs):
        context = super().get_context_data(**kwargs)
        context['statuses'] = RegistrationStatus.choices
        return context


class RegistrationDetailView(StaffRequiredMixin, DetailView):
    model = SessionRegistration
    template_name = 'training/registration_detail.html'
    context_object_name = 'registration'

    def get_context_data(self, **kwargs):
        context = super().get_context_data(**kwargs)
        context['statuses'] = RegistrationStatus.choices
        return context


class RegistrationCreateView(StaffRequiredMixin, ParentInitialMixin, AuditedFormMixin, CreateView):
    model = SessionRegistration
    form_class = SessionRegistrationForm
    parent_field = 'session'
    page_title = 'Nouvelle inscription'
    submit_text = 'Inscrire'
    action = 'création'
    success_message = "Inscription enregistrée avec succès."
    error_message = "Une erreur est survenue lors de l'inscription."


class RegistrationDeleteView(StaffRequiredMixin, AuditedDeleteMixin, DeleteView):
    model = SessionRegistration
    page_title = "Supprimer l'inscription"
    success_message = "Inscription supprimée avec succès."

    def get_success_url(self):
        return reverse('training:session_detail', kwargs={'pk': self.object.session_id})


def _save_registration_status(request, registration, new_status):
    old_status = registration.status
    if new_status == RegistrationStatus.CONFIRMED:
        registration.confirm()
    elif new_status == RegistrationStatus.CANCELLED:
        registration.cancel()
    else:
        registration.status = new_status

    try:
        registration.save(update_fields=['status', 'confirmed_at', 'updated_at'])
    except DatabaseError:
        logger.error(f"Erreur lors de la mise à jour de l'inscription {registration.pk}", exc_info=True)
        messages.error(request, "Une erreur est survenue lors de la mise à jour de l'inscription.")
        return False

    logger.info(
        f"Inscription {registration.pk}: statut {old_status} -> {registration.status} "
        f"(par {request.user.username})"
    )
    return True


@require_POST
@staff_required
def registration_confirm(request, pk):
    registration = get_object_or_404(SessionRegistration, pk=pk)
    if registration.status == RegistrationStatus.CONFIRMED:
        messages.info(request, "Cette inscription est déjà confirmée.")
    elif _save_registration_status(request, registration, RegistrationStatus.CONFIRMED):
        messages.success(request, "Inscription confirmée avec succès.")
    return redirect(registration.get_absolute_url())


@require_POST
@staff_required
def registration_cancel(request, pk):
    registration = get_object_or_404(SessionRegistration, pk=pk)
    if registration.status == RegistrationStatus.CANCELLED:
        messages.info(request, "Cette inscription est déjà annulée.")
    elif _save_registration_status(request, registration, RegistrationStatus.CANCELLED):
        messages.success(request, "Inscription annulée avec succès.")
    return redirect(registration.get_absolute_url())


@require_POST
@staff_required
def registration_update_status(request, pk):
    registration = get_object_or_404(SessionRegistration, pk=pk)
    new_status = request.POST.get('status', '')

    if new_status not in RegistrationStatus.values:
        logger.warning(f"Statut invalide demandé pour l'inscription {registration.pk}: {new_status!r}")
        messages.error(request, "Statut invalide demandé.")
    elif _save_registration_status(request, registration, new_status):
        messages.success(request, "Le statut de l'inscription a été modifié.")
    return redirect(registration.get_absolute_url())


@staff_required
def registration_export(request):
    """Exporter les inscriptions filtrées (CSV par défaut, ?format=xlsx pour Excel)"""
    registrations = SessionRegistration.objects.select_related('session').order_by('-created_at')
    session_id = request.GET.get('session')
    status = request.GET.get('status')
    if session_id:
        try:
            registrations = registrations.filter(session_id=session_id)
        except (ValidationError, ValueError):
            logger.warning(f"Filtre 'session' ignoré: valeur invalide {session_id!r}")
    if status:
        registrations = registrations.filter(status=status)

    headers = ['Session'] + REGISTRATION_EXPORT_HEADERS
    rows = [[registration.session.name] + registration_export_row(registration) for registration in registrations]
    export_format = request.GET.get('format', 'csv')

    logger.info(f"Export de {len(rows)} inscription(s) au format {export_format} par {request.user.username}")

    if export_format == 'xlsx':
        return write_excel(export_filename('inscriptions', 'xlsx'), 'Inscriptions', headers, rows)
    return write_csv(export_filename('inscriptions', 'csv'), headers, rows)
