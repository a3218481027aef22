# apps/alternance/views.py
import logging

from django.contrib import messages
from django.core.exceptions import ValidationError
from django.db import DatabaseError
from django.shortcuts import get_object_or_404, redirect
from django.urls import reverse_lazy
from django.utils import timezone
from django.utils.html import escape
from django.views.decorators.http import require_POST
from django.views.generic import ListView, DetailView, CreateView, UpdateView, DeleteView, TemplateView
from reportlab.platypus import Paragraph, Spacer, Table

from apps.core.exceptions import InvalidStatusTransition, ComplianceException
from apps.core.exports import (
    export_filename, get_pdf_response, write_csv, write_excel, build_pdf, add_pdf_header, create_table_style
)
from apps.core.mixins import StaffRequiredMixin, ParentInitialMixin, staff_required
from apps.core.views import (
    AuditedFormMixin, AuditedDeleteMixin, FilteredListMixin, ToggleFieldView, ReorderView
)
from apps.training.models import AlternanceType
from .forms import (
    AlternanceContractForm, AlternanceProgramForm, CompanyMissionForm, MissionAssignmentForm,
    AssignmentProgressForm, SkillsAssessmentForm, ProgressAssessmentForm, CoordinationMeetingForm,
    PostponeMeetingForm, CompanyVisitForm
)
from .models import (
    AlternanceContract, ContractStatus, AlternanceProgram, CompanyMission, MissionComplexity,
    MissionTerm, Department, MissionAssignment, AssignmentStatus, SkillsAssessment, AssessmentType,
    ProgressAssessment, RISK_LEVELS, CoordinationMeeting, MeetingStatus, MeetingType, CompanyVisit, VisitType
)
from .services.contracts import ContractLifecycleService, allowed_transitions
from .services.dashboard import get_dashboard_data, get_alerts
from .services.progress import (
    prepare_progress_assessment, get_previous_assessment, get_progression_history
)
from .services.validation import (
    validate_contract, validate_program, meets_legal_minimums, validate_contract_dates, validate_weekly_hours
)

logger = logging.getLogger(__name__)


# ============================================================================
# TABLEAU DE BORD
# ============================================================================
class AlternanceDashboardView(StaffRequiredMixin, TemplateView):
    template_name = 'alternance/dashboard.html'

    def get_context_data(self, **kwargs):
        context = super().get_context_data(**kwargs)
        context['title'] = 'Suivi des alternants'
        context.update(get_dashboard_data())
        return context


class AlertsView(StaffRequiredMixin, TemplateView):
    """Points de vigilance : fins de contrat, risques, retards, visites"""
    template_name = 'alternance/alerts.html'

    def get_context_data(self, **kwargs):
        context = super().get_context_data(**kwargs)
        alerts = get_alerts()
        context['title'] = 'Alertes'
        context['alerts'] = alerts
        context['alerts_count'] = sum(len(items) for items in alerts.values())
        return context


# ============================================================================
# VUES CONTRAT
# ============================================================================
class ContractListView(StaffRequiredMixin, FilteredListMixin, ListView):
    model = AlternanceContract
    context_object_name = 'contracts'
    page_title = "Contrats d'alternance"
    search_fields = [
        'contract_number', 'company_name', 'job_title',
        'student__first_name', 'student__last_name', 'student__email',
    ]
    filter_fields = {
        'status': 'status',
        'type': 'contract_type',
        'mentor': 'mentor_id',
        'session': 'session_id',
    }
    create_url_name = 'alternance:contract_create'

    def get_queryset(self):
        return super().get_queryset().select_related('student', 'mentor', 'session').order_by('-created_at')

    def get_context_data(self, **kwargs):
        context = super().get_context_data(**kwargs)
        context['statuses'] = ContractStatus.choices
        context['contract_types'] = AlternanceType.choices
        return context


class ContractDetailView(StaffRequiredMixin, DetailView):
    model = AlternanceContract
    template_name = 'alternance/contract_detail.html'
    context_object_name = 'contract'

    def get_queryset(self):
        return super().get_queryset().select_related(
            'student', 'session__formation', 'mentor', 'pedagogical_supervisor'
        )

    def get_context_data(self, **kwargs):
        context = super().get_context_data(**kwargs)
        contract = self.object
        context['compliance'] = validate_contract(contract)
        context['legal_checks'] = {
            'minimums': meets_legal_minimums(contract),
            'dates': validate_contract_dates(contract),
            'weekly_hours': validate_weekly_hours(contract),
        }
        context['transitions'] = [
            (status, ContractStatus(status).label) for status in allowed_transitions(contract)
        ]
        context['meetings'] = contract.student.coordination_meetings.order_by('-meeting_date')[:5]
        context['visits'] = contract.student.company_visits.order_by('-visit_date')[:5]
        return context


class ContractCreateView(StaffRequiredMixin, ParentInitialMixin, AuditedFormMixin, CreateView):
    model = AlternanceContract
    form_class = AlternanceContractForm
    parent_field = 'student'
    page_title = "Nouveau contrat d'alternance"
    submit_text = 'Créer'
    action = 'création'
    cancel_url_name = 'alternance:contract_list'
    success_message = "Contrat créé avec succès."
    error_message = "Une erreur est survenue lors de la création du contrat."


class ContractUpdateView(StaffRequiredMixin, AuditedFormMixin, UpdateView):
    model = AlternanceContract
    form_class = AlternanceContractForm
    page_title = 'Modifier le contrat'
    submit_text = 'Enregistrer'
    action = 'modification'
    cancel_url_name = 'alternance:contract_list'
    success_message = "Contrat modifié avec succès."
    error_message = "Une erreur est survenue lors de la modification du contrat."


class ContractDeleteView(StaffRequiredMixin, AuditedDeleteMixin, DeleteView):
    model = AlternanceContract
    success_url = reverse_lazy('alternance:contract_list')
    page_title = 'Supprimer le contrat'
    success_message = "Contrat supprimé avec succès."

    def get_delete_blocker(self, obj):
        if obj.status != ContractStatus.DRAFT:
            return "Seuls les contrats en brouillon peuvent être supprimés."
        return None


@require_POST
@staff_required
def contract_change_status(request, pk):
    """Faire évoluer le statut d'un contrat"""
    contract = get_object_or_404(AlternanceContract, pk=pk)
    new_status = request.POST.get('status', '')
    reason = request.POST.get('reason', '').strip()

    logger.info(
        f"Changement de statut du contrat {contract.pk} demandé par {request.user.username}: "
        f"{contract.status} -> {new_status}"
    )

    try:
        ContractLifecycleService(request.user).change_status(contract, new_status, reason)
    except ComplianceException as e:
        messages.error(request, str(e))
        for error in e.errors:
            messages.warning(request, error)
        return redirect(contract.get_absolute_url())
    except InvalidStatusTransition as e:
        messages.error(request, str(e))
        return redirect(contract.get_absolute_url())
    except DatabaseError:
        logger.error(f"Erreur lors du changement de statut du contrat {contract.pk}", exc_info=True)
        messages.error(request, "Une erreur est survenue lors du changement de statut.")
        return redirect(contract.get_absolute_url())

    messages.success(request, f"Le contrat est désormais « {contract.get_status_display()} ».")
    return redirect(contract.get_absolute_url())


@require_POST
@staff_required
def contract_bulk_status(request):
    """Appliquer un même changement de statut à une sélection de contrats"""
    ids = [value for value in request.POST.getlist('contract_ids') if value]
    new_status = request.POST.get('status', '')

    if not ids:
        messages.warning(request, "Aucun contrat sélectionné.")
        return redirect('alternance:contract_list')

    if new_status not in ContractStatus.values:
        logger.warning(f"Statut invalide demandé pour une mise à jour groupée: {new_status!r}")
        messages.error(request, "Statut invalide demandé.")
        return redirect('alternance:contract_list')

    try:
        contracts = list(AlternanceContract.objects.filter(pk__in=ids))
    except (ValidationError, ValueError, DatabaseError):
        logger.warning(f"Mise à jour groupée: identifiants invalides {ids}")
        messages.error(request, "Identifiants invalides.")
        return redirect('alternance:contract_list')

    updated, refused = ContractLifecycleService(request.user).bulk_change_status(contracts, new_status)
    if updated:
        messages.success(request, f"{len(updated)} contrat(s) mis à jour.")
    for contract, reason in refused:
        messages.warning(request, f"{contract.contract_number} : {reason}")
    return redirect('alternance:contract_list')


CONTRACT_EXPORT_HEADERS = [
    'Numéro', 'Alternant', 'Email', 'Type', 'Entreprise', 'SIRET', 'Poste', 'Tuteur',
    'Référent', 'Début', 'Fin', 'Heures centre', 'Heures entreprise', 'Statut',
]


def contract_export_row(contract):
    return [
        contract.contract_number,
        contract.student.get_full_name(),
        contract.student.email,
        contract.get_contract_type_display(),
        contract.company_name,
        contract.company_siret,
        contract.job_title,
        contract.mentor.get_full_name() if contract.mentor else '',
        contract.pedagogical_supervisor.get_full_name() if contract.pedagogical_supervisor else '',
        contract.start_date.strftime('%d/%m/%Y'),
        contract.end_date.strftime('%d/%m/%Y'),
        contract.weekly_center_hours,
        contract.weekly_company_hours,
        contract.get_status_display(),
    ]


@staff_required
def contract_export(request):
    """Exporter les contrats filtrés (CSV par défaut, ?format=xlsx pour Excel)"""
    contracts = AlternanceContract.objects.select_related(
        'student', 'mentor', 'pedagogical_supervisor'
    ).order_by('-created_at')
    status = request.GET.get('status')
    contract_type = request.GET.get('type')
    if status:
        contracts = contracts.filter(status=status)
    if contract_type:
        contracts = contracts.filter(contract_type=contract_type)

    rows = [contract_export_row(contract) for contract in contracts]
    export_format = request.GET.get('format', 'csv')

    logger.info(f"Export de {len(rows)} contrat(s) au format {export_format} par {request.user.username}")

    if export_format == 'xlsx':
        return write_excel(export_filename('contrats_alternance', 'xlsx'), 'Contrats', CONTRACT_EXPORT_HEADERS, rows)
    return write_csv(export_filename('contrats_alternance', 'csv'), CONTRACT_EXPORT_HEADERS, rows)


def _pdf_list(elements, styles, heading, items):
    if not items:
        return
    elements.append(Paragraph(heading, styles['EprofosSection']))
    for item in items:
        elements.append(Paragraph(f"• {escape(item)}", styles['EprofosBody']))


@staff_required
def contract_pdf(request, pk):
    """Télécharger la fiche d'un contrat en PDF"""
    contract = get_object_or_404(
        AlternanceContract.objects.select_related('student', 'session', 'mentor', 'pedagogical_supervisor'),
        pk=pk
    )
    logger.info(f"Export PDF du contrat {contract.pk} par {request.user.username}")
    compliance = validate_contract(contract)

    def build(elements, styles):
        add_pdf_header(
            elements, f"Contrat {contract.contract_number}", styles,
            subtitle=f"{contract.student.get_full_name()} / {contract.company_name}"
        )
        info = Table([
            ['Type', 'Période', 'Durée', 'Heures / semaine', 'Statut'],
            [
                contract.get_contract_type_display(),
                contract.formatted_date_range,
                contract.formatted_duration,
                f"{contract.weekly_center_hours}h centre / {contract.weekly_company_hours}h entreprise",
                contract.get_status_display(),
            ],
        ])
        info.setStyle(create_table_style())
        elements.append(info)
        elements.append(Spacer(1, 12))

        elements.append(Paragraph("Encadrement", styles['EprofosSection']))
        people = Table([
            ['Session', 'Tuteur entreprise', 'Référent pédagogique'],
            [
                str(contract.session),
                contract.mentor.get_full_name() if contract.mentor else '-',
                contract.pedagogical_supervisor.get_full_name() if contract.pedagogical_supervisor else '-',
            ],
        ])
        people.setStyle(create_table_style())
        elements.append(people)

        elements.append(Paragraph("Poste", styles['EprofosSection']))
        elements.append(Paragraph(escape(contract.job_title), styles['EprofosBody']))
        if contract.job_description:
            elements.append(Paragraph(escape(contract.job_description).replace('\n', '<br/>'), styles['EprofosBody']))
        _pdf_list(elements, styles, "Objectifs pédagogiques", contract.learning_objectives)
        _pdf_list(elements, styles, "Objectifs en entreprise", contract.company_objectives)

        elements.append(Paragraph("Conformité Qualiopi", styles['EprofosSection']))
        if compliance['is_compliant']:
            elements.append(Paragraph("Contrat conforme.", styles['EprofosBody']))
        _pdf_list(elements, styles, "Non-conformités", compliance['errors'])
        _pdf_list(elements, styles, "Recommandations", compliance['warnings'])

    response = get_pdf_response(export_filename(f'contrat_{contract.contract_number}', 'pdf'))
    response.write(build_pdf(f"Contrat {contract.contract_number}", build))
    return response


# ============================================================================
# VUES PROGRAMME
# ============================================================================
class ProgramListView(StaffRequiredMixin, FilteredListMixin, ListView):
    model = AlternanceProgram
    context_object_name = 'programs'
    page_title = "Programmes d'alternance"
    search_fields = ['title', 'description', 'session__name']
    filter_fields = {'session': 'session_id', 'rhythm': 'rhythm'}
    create_url_name = 'alternance:program_create'

    def get_queryset(self):
        return super().get_queryset().select_related('session').order_by('-created_at')


class ProgramDetailView(StaffRequiredMixin, DetailView):
    model = AlternanceProgram
    template_name = 'alternance/program_detail.html'
    context_object_name = 'program'

    def get_context_data(self, **kwargs):
        context = super().get_context_data(**kwargs)
        context['compliance'] = validate_program(self.object)
        return context


class ProgramCreateView(StaffRequiredMixin, ParentInitialMixin, AuditedFormMixin, CreateView):
    model = AlternanceProgram
    form_class = AlternanceProgramForm
    parent_field = 'session'
    page_title = "Nouveau programme d'alternance"
    submit_text = 'Créer'
    action = 'création'
    cancel_url_name = 'alternance:program_list'
    success_message = "Programme créé avec succès."
    error_message = "Une erreur est survenue lors de la création du programme."


class ProgramUpdateView(StaffRequiredMixin, AuditedFormMixin, UpdateView):
    model = AlternanceProgram
    form_class = AlternanceProgramForm
    page_title = 'Modifier le programme'
    submit_text = 'Enregistrer'
    action = 'modification'
    cancel_url_name = 'alternance:program_list'
    success_message = "Programme modifié avec succès."
    error_message = "Une erreur est survenue lors de la modification du programme."


class ProgramDeleteView(StaffRequiredMixin, AuditedDeleteMixin, DeleteView):
    model = AlternanceProgram
    success_url = reverse_lazy('alternance:program_list')
    page_title = 'Supprimer le programme'
    success_message = "Programme supprimé avec succès."


# ============================================================================
# VUES MISSION
# ============================================================================
class MissionListView(StaffRequiredMixin, FilteredListMixin, ListView):
    model = CompanyMission
    context_object_name = 'missions'
    page_title = 'Missions en entreprise'
    search_fields = ['title', 'description', 'supervisor__last_name', 'supervisor__company_name']
    filter_fields = {
        'supervisor': 'supervisor_id',
        'complexity': 'complexity',
        'term': 'term',
        'department': 'department',
        'active': 'is_active',
    }
    create_url_name = 'alternance:mission_create'

    def get_queryset(self):
        return super().get_queryset().select_related('supervisor').order_by('supervisor', 'order_index')

    def get_context_data(self, **kwargs):
        context = super().get_context_data(**kwargs)
        context['complexities'] = MissionComplexity.choices
        context['terms'] = MissionTerm.choices
        context['departments'] = Department.choices
        return context


class MissionDetailView(StaffRequiredMixin, DetailView):
    model = CompanyMission
    template_name = 'alternance/mission_detail.html'
    context_object_name = 'mission'

    def get_context_data(self, **kwargs):
        context = super().get_context_data(**kwargs)
        context['assignments'] = self.object.assignments.select_related('student').order_by('-start_date')
        return context


class MissionCreateView(StaffRequiredMixin, ParentInitialMixin, AuditedFormMixin, CreateView):
    model = CompanyMission
    form_class = CompanyMissionForm
    parent_field = 'supervisor'
    page_title = 'Nouvelle mission'
    submit_text = 'Créer'
    action = 'création'
    cancel_url_name = 'alternance:mission_list'
    success_message = "Mission créée avec succès."
    error_message = "Une erreur est survenue lors de la création de la mission."


class MissionUpdateView(StaffRequiredMixin, AuditedFormMixin, UpdateView):
    model = CompanyMission
    form_class = CompanyMissionForm
    page_title = 'Modifier la mission'
    submit_text = 'Enregistrer'
    action = 'modification'
    cancel_url_name = 'alternance:mission_list'
    success_message = "Mission modifiée avec succès."
    error_message = "Une erreur est survenue lors de la modification de la mission."


class MissionDeleteView(StaffRequiredMixin, AuditedDeleteMixin, DeleteView):
    model = CompanyMission
    success_url = reverse_lazy('alternance:mission_list')
    page_title = 'Supprimer la mission'
    success_message = "Mission supprimée avec succès."

    def get_delete_blocker(self, obj):
        if obj.assignments.exists():
            return (
                "Impossible de supprimer cette mission car elle a été assignée à des alternants. "
                "Désactivez-la plutôt."
            )
        return None


class MissionToggleActiveView(ToggleFieldView):
    model = CompanyMission
    verbose_name = 'Mission'
    on_label = 'activée'
    off_label = 'désactivée'
    success_url_name = 'alternance:mission_list'


class MissionReorderView(ReorderView):
    model = CompanyMission
    verbose_name_plural = 'missions'
    success_url_name = 'alternance:mission_list'


# ============================================================================
# VUES AFFECTATION DE MISSION
# ============================================================================
class AssignmentListView(StaffRequiredMixin, FilteredListMixin, ListView):
    model = MissionAssignment
    context_object_name = 'assignments'
    page_title = 'Affectations de missions'
    search_fields = ['mission__title', 'student__first_name', 'student__last_name']
    filter_fields = {'status': 'status', 'mission': 'mission_id', 'student': 'student_id'}
    create_url_name = 'alternance:assignment_create'

    def get_queryset(self):
        return super().get_queryset().select_related('student', 'mission').order_by('-start_date')

    def get_context_data(self, **kwargs):
        context = super().get_context_data(**kwargs)
        context['statuses'] = AssignmentStatus.choices
        return context


class AssignmentDetailView(StaffRequiredMixin, DetailView):
    model = MissionAssignment
    template_name = 'alternance/assignment_detail.html'
    context_object_name = 'assignment'

    def get_queryset(self):
        return super().get_queryset().select_related('student', 'mission__supervisor')

    def get_context_data(self, **kwargs):
        context = super().get_context_data(**kwargs)
        context['progress_form'] = AssignmentProgressForm(
            initial={'completion_rate': self.object.completion_rate}
        )
        context['assessments'] = self.object.skills_assessments.order_by('-assessment_date')
        return context


class AssignmentCreateView(StaffRequiredMixin, ParentInitialMixin, AuditedFormMixin, CreateView):
    model = MissionAssignment
    form_class = MissionAssignmentForm
    parent_field = 'mission'
    page_title = 'Affecter une mission'
    submit_text = 'Affecter'
    action = 'création'
    cancel_url_name = 'alternance:assignment_list'
    success_message = "Mission affectée avec succès."
    error_message = "Une erreur est survenue lors de l'affectation de la mission."


ASSIGNMENT_ACTIONS = {
    'start': "La mission a démarré.",
    'complete': "La mission est terminée.",
    'suspend': "La mission est suspendue.",
    'resume': "La mission a repris.",
}


@require_POST
@staff_required
def assignment_change_status(request, pk):
    """Démarrer, terminer, suspendre ou reprendre une affectation"""
    assignment = get_object_or_404(MissionAssignment, pk=pk)
    action = request.POST.get('action', '')
    old_status = assignment.status

    if action not in ASSIGNMENT_ACTIONS:
        logger.warning(f"Action invalide demandée pour l'affectation {assignment.pk}: {action!r}")
        messages.error(request, "Action invalide demandée.")
        return redirect(assignment.get_absolute_url())

    if not getattr(assignment, action)():
        logger.warning(f"Affectation {assignment.pk}: action '{action}' impossible depuis {old_status}")
        messages.error(
            request,
            f"Action impossible pour une mission au statut « {assignment.get_status_display()} »."
        )
        return redirect(assignment.get_absolute_url())

    try:
        assignment.save(update_fields=['status', 'completion_rate', 'last_updated', 'updated_at'])
    except DatabaseError:
        logger.error(f"Erreur lors du changement de statut de l'affectation {assignment.pk}", exc_info=True)
        messages.error(request, "Une erreur est survenue lors du changement de statut.")
        return redirect(assignment.get_absolute_url())

    logger.info(
        f"Affectation {assignment.pk}: statut {old_status} -> {assignment.status} par {request.user.username}"
    )
    messages.success(request, ASSIGNMENT_ACTIONS[action])
    return redirect(assignment.get_absolute_url())


@require_POST
@staff_required
def assignment_update_progress(request, pk):
    """Mettre à jour l'avancement d'une affectation"""
    assignment = get_object_or_404(MissionAssignment, pk=pk)
    form = AssignmentProgressForm(request.POST)
    if not form.is_valid():
        logger.warning(f"Avancement invalide pour l'affectation {assignment.pk}: {form.errors.get_json_data()}")
        messages.error(request, "L'avancement doit être compris entre 0 et 100.")
        return redirect(assignment.get_absolute_url())

    assignment.update_progress(form.cleaned_data['completion_rate'])
    assignment.achievements = list(assignment.achievements or []) + form.cleaned_data['achievements']
    assignment.difficulties = list(assignment.difficulties or []) + form.cleaned_data['difficulties']
    if form.cleaned_data['mentor_feedback']:
        assignment.mentor_feedback = form.cleaned_data['mentor_feedback']

    try:
        assignment.save()
    except DatabaseError:
        logger.error(f"Erreur lors de la mise à jour de l'affectation {assignment.pk}", exc_info=True)
        messages.error(request, "Une erreur est survenue lors de la mise à jour de l'avancement.")
        return redirect(assignment.get_absolute_url())

    logger.info(f"Affectation {assignment.pk}: avancement {assignment.completion_rate}% ({assignment.status})")
    messages.success(request, "Avancement mis à jour.")
    return redirect(assignment.get_absolute_url())


# ============================================================================
# VUES ÉVALUATION DES COMPÉTENCES
# ============================================================================
class SkillsAssessmentListView(StaffRequiredMixin, FilteredListMixin, ListView):
    model = SkillsAssessment
    context_object_name = 'assessments'
    page_title = 'Évaluations de compétences'
    search_fields = ['student__first_name', 'student__last_name']
    filter_fields = {
        'student': 'student_id',
        'type': 'assessment_type',
        'context': 'context',
        'rating': 'overall_rating',
    }
    create_url_name = 'alternance:skills_assessment_create'

    def get_queryset(self):
        return super().get_queryset().select_related('student').order_by('-assessment_date')

    def get_context_data(self, **kwargs):
        context = super().get_context_data(**kwargs)
        context['assessment_types'] = AssessmentType.choices
        return context


class SkillsAssessmentDetailView(StaffRequiredMixin, DetailView):
    model = SkillsAssessment
    template_name = 'alternance/skills_assessment_detail.html'
    context_object_name = 'assessment'

    def get_context_data(self, **kwargs):
        context = super().get_context_data(**kwargs)
        context['gaps'] = self.object.get_competency_gaps()
        return context


class SkillsAssessmentCreateView(StaffRequiredMixin, ParentInitialMixin, AuditedFormMixin, CreateView):
    model = SkillsAssessment
    form_class = SkillsAssessmentForm
    parent_field = 'student'
    page_title = 'Nouvelle évaluation de compétences'
    submit_text = 'Créer'
    action = 'création'
    cancel_url_name = 'alternance:skills_assessment_list'
    success_message = "Évaluation créée avec succès."
    error_message = "Une erreur est survenue lors de la création de l'évaluation."


class SkillsAssessmentUpdateView(StaffRequiredMixin, AuditedFormMixin, UpdateView):
    model = SkillsAssessment
    form_class = SkillsAssessmentForm
    page_title = "Modifier l'évaluation"
    submit_text = 'Enregistrer'
    action = 'modification'
    cancel_url_name = 'alternance:skills_assessment_list'
    success_message = "Évaluation modifiée avec succès."
    error_message = "Une erreur est survenue lors de la modification de l'évaluation."


def _validate_assessment(request, assessment):
    if assessment.is_validated:
        messages.info(request, "Cette évaluation est déjà validée.")
        return redirect(assessment.get_absolute_url())

    assessment.mark_validated(request.user)
    try:
        assessment.save(update_fields=['validated_at', 'validated_by', 'updated_at'])
    except DatabaseError:
        logger.error(f"Erreur lors de la validation de l'évaluation {assessment.pk}", exc_info=True)
        messages.error(request, "Une erreur est survenue lors de la validation.")
        return redirect(assessment.get_absolute_url())

    logger.info(f"Évaluation {assessment.pk} validée par {request.user.username}")
    messages.success(request, "Évaluation validée.")
    return redirect(assessment.get_absolute_url())


@require_POST
@staff_required
def skills_assessment_validate(request, pk):
    """Valider une évaluation de compétences"""
    return _validate_assessment(request, get_object_or_404(SkillsAssessment, pk=pk))


# ============================================================================
# VUES ÉVALUATION DE PROGRESSION
# ============================================================================
class ProgressListView(StaffRequiredMixin, FilteredListMixin, ListView):
    model = ProgressAssessment
    context_object_name = 'assessments'
    page_title = 'Évaluations de progression'
    search_fields = ['student__first_name', 'student__last_name']
    filter_fields = {'student': 'student_id', 'risk': 'risk_level', 'min_risk': 'risk_level__gte'}
    create_url_name = 'alternance:progress_create'

    def get_queryset(self):
        return super().get_queryset().select_related('student')

    def get_context_data(self, **kwargs):
        context = super().get_context_data(**kwargs)
        context['risk_levels'] = RISK_LEVELS
        return context


class ProgressDetailView(StaffRequiredMixin, DetailView):
    model = ProgressAssessment
    template_name = 'alternance/progress_detail.html'
    context_object_name = 'assessment'

    def get_context_data(self, **kwargs):
        context = super().get_context_data(**kwargs)
        context['risk_factors'] = self.object.get_risk_factors()
        context['history'] = get_progression_history(self.object.student)
        return context


class ProgressCreateView(StaffRequiredMixin, ParentInitialMixin, AuditedFormMixin, CreateView):
    model = ProgressAssessment
    form_class = ProgressAssessmentForm
    parent_field = 'student'
    page_title = 'Nouvelle évaluation de progression'
    submit_text = 'Créer'
    action = 'création'
    cancel_url_name = 'alternance:progress_list'
    success_message = "Évaluation de progression créée avec succès."
    error_message = "Une erreur est survenue lors de la création de l'évaluation de progression."

    def form_valid(self, form):
        assessment = form.instance
        previous = get_previous_assessment(assessment.student, before=assessment.period)
        prepare_progress_assessment(assessment, previous)
        return super().form_valid(form)


@require_POST
@staff_required
def progress_validate(request, pk):
    """Valider une évaluation de progression"""
    return _validate_assessment(request, get_object_or_404(ProgressAssessment, pk=pk))


# ============================================================================
# VUES RÉUNION DE COORDINATION
# ============================================================================
class MeetingListView(StaffRequiredMixin, FilteredListMixin, ListView):
    model = CoordinationMeeting
    context_object_name = 'meetings'
    page_title = 'Réunions de coordination'
    search_fields = ['student__first_name', 'student__last_name', 'mentor__company_name']
    filter_fields = {'status': 'status', 'type': 'type', 'student': 'student_id'}
    create_url_name = 'alternance:meeting_create'

    def get_queryset(self):
        return super().get_queryset().select_related('student', 'mentor').order_by('-meeting_date')

    def get_context_data(self, **kwargs):
        context = super().get_context_data(**kwargs)
        context['statuses'] = MeetingStatus.choices
        context['meeting_types'] = MeetingType.choices
        return context


class MeetingDetailView(StaffRequiredMixin, DetailView):
    model = CoordinationMeeting
    template_name = 'alternance/meeting_detail.html'
    context_object_name = 'meeting'

    def get_context_data(self, **kwargs):
        context = super().get_context_data(**kwargs)
        context['postpone_form'] = PostponeMeetingForm()
        return context


class MeetingCreateView(StaffRequiredMixin, ParentInitialMixin, AuditedFormMixin, CreateView):
    model = CoordinationMeeting
    form_class = CoordinationMeetingForm
    parent_field = 'student'
    page_title = 'Nouvelle réunion de coordination'
    submit_text = 'Planifier'
    action = 'création'
    cancel_url_name = 'alternance:meeting_list'
    success_message = "Réunion planifiée avec succès."
    error_message = "Une erreur est survenue lors de la planification de la réunion."

    def form_valid(self, form):
        form.instance.created_by = self.request.user.username
        return super().form_valid(form)


class EditableMeetingMixin:
    """Refuse la modification d'une réunion terminée ou annulée"""

    def dispatch(self, request, *args, **kwargs):
        meeting = get_object_or_404(CoordinationMeeting, pk=kwargs['pk'])
        if not meeting.can_be_edited:
            messages.error(request, "Une réunion terminée ou annulée ne peut plus être modifiée.")
            return redirect(meeting.get_absolute_url())
        return super().dispatch(request, *args, **kwargs)


class MeetingUpdateView(StaffRequiredMixin, EditableMeetingMixin, AuditedFormMixin, UpdateView):
    model = CoordinationMeeting
    form_class = CoordinationMeetingForm
    page_title = 'Modifier la réunion'
    submit_text = 'Enregistrer'
    action = 'modification'
    cancel_url_name = 'alternance:meeting_list'
    success_message = "Réunion modifiée avec succès."
    error_message = "Une erreur est survenue lors de la modification de la réunion."


class MeetingDeleteView(StaffRequiredMixin, AuditedDeleteMixin, DeleteView):
    model = CoordinationMeeting
    success_url = reverse_lazy('alternance:meeting_list')
    page_title = 'Supprimer la réunion'
    success_message = "Réunion supprimée avec succès."

    def get_delete_blocker(self, obj):
        if obj.status == MeetingStatus.COMPLETED:
            return "Une réunion terminée fait partie du suivi de l'alternant et ne peut pas être supprimée."
        return None


def _save_meeting_status(request, meeting, old_status, success_message):
    try:
        meeting.save(update_fields=['status', 'meeting_date', 'reminder_sent_at', 'updated_at'])
    except DatabaseError:
        logger.error(f"Erreur lors du changement de statut de la réunion {meeting.pk}", exc_info=True)
        messages.error(request, "Une erreur est survenue lors du changement de statut.")
        return redirect(meeting.get_absolute_url())

    logger.info(f"Réunion {meeting.pk}: statut {old_status} -> {meeting.status} par {request.user.username}")
    messages.success(request, success_message)
    return redirect(meeting.get_absolute_url())


@require_POST
@staff_required
def meeting_complete(request, pk):
    """Marquer une réunion comme tenue"""
    meeting = get_object_or_404(CoordinationMeeting, pk=pk)
    old_status = meeting.status
    if not meeting.can_be_edited:
        messages.error(request, "Cette réunion est déjà clôturée.")
        return redirect(meeting.get_absolute_url())
    meeting.mark_completed()
    return _save_meeting_status(request, meeting, old_status, "Réunion marquée comme terminée.")


@require_POST
@staff_required
def meeting_cancel(request, pk):
    """Annuler une réunion"""
    meeting = get_object_or_404(CoordinationMeeting, pk=pk)
    old_status = meeting.status
    if not meeting.can_be_edited:
        messages.error(request, "Cette réunion est déjà clôturée.")
        return redirect(meeting.get_absolute_url())
    meeting.mark_cancelled()
    return _save_meeting_status(request, meeting, old_status, "Réunion annulée.")


@require_POST
@staff_required
def meeting_postpone(request, pk):
    """Reporter une réunion à une nouvelle date"""
    meeting = get_object_or_404(CoordinationMeeting, pk=pk)
    old_status = meeting.status
    if not meeting.can_be_edited:
        messages.error(request, "Cette réunion est déjà clôturée.")
        return redirect(meeting.get_absolute_url())

    form = PostponeMeetingForm(request.POST)
    if not form.is_valid():
        for error in form.errors.get('new_date', []):
            messages.error(request, error)
        return redirect(meeting.get_absolute_url())

    meeting.postpone(form.cleaned_data['new_date'])
    date_label = timezone.localtime(meeting.meeting_date).strftime('%d/%m/%Y %H:%M')
    return _save_meeting_status(request, meeting, old_status, f"Réunion reportée au {date_label}.")


# ============================================================================
# VUES VISITE EN ENTREPRISE
# ============================================================================
class VisitListView(StaffRequiredMixin, FilteredListMixin, ListView):
    model = CompanyVisit
    context_object_name = 'visits'
    page_title = 'Visites en entreprise'
    search_fields = ['student__first_name', 'student__last_name', 'mentor__company_name']
    filter_fields = {
        'type': 'visit_type',
        'student': 'student_id',
        'visitor': 'visitor_id',
        'follow_up': 'follow_up_required',
    }
    create_url_name = 'alternance:visit_create'

    def get_queryset(self):
        return super().get_queryset().select_related('student', 'visitor', 'mentor').order_by('-visit_date')

    def get_context_data(self, **kwargs):
        context = super().get_context_data(**kwargs)
        context['visit_types'] = VisitType.choices
        return context


class VisitDetailView(StaffRequiredMixin, DetailView):
    model = CompanyVisit
    template_name = 'alternance/visit_detail.html'
    context_object_name = 'visit'

    def get_context_data(self, **kwargs):
        context = super().get_context_data(**kwargs)
        context['assessment'] = self.object.get_assessment()
        return context


class VisitCreateView(StaffRequiredMixin, ParentInitialMixin, AuditedFormMixin, CreateView):
    model = CompanyVisit
    form_class = CompanyVisitForm
    parent_field = 'student'
    page_title = 'Nouvelle visite en entreprise'
    submit_text = 'Enregistrer'
    action = 'création'
    cancel_url_name = 'alternance:visit_list'
    success_message = "Visite enregistrée avec succès."
    error_message = "Une erreur est survenue lors de l'enregistrement de la visite."

    def form_valid(self, form):
        form.instance.created_by = self.request.user.username
        return super().form_valid(form)


class VisitUpdateView(StaffRequiredMixin, AuditedFormMixin, UpdateView):
    model = CompanyVisit
    form_class = CompanyVisitForm
    page_title = 'Modifier la visite'
    submit_text = 'Enregistrer'
    action = 'modification'
    cancel_url_name = 'alternance:visit_list'
    success_message = "Visite modifiée avec succès."
    error_message = "Une erreur est survenue lors de la modification de la visite."


class VisitDeleteView(StaffRequiredMixin, AuditedDeleteMixin, DeleteView):
    model = CompanyVisit
    success_url = reverse_lazy('alternance:visit_list')
    page_title = 'Supprimer la visite'
    success_message = "Visite supprimée avec succès."
