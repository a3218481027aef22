# apps/accounts/views.py

from django.db.models import Count
from django.urls import reverse_lazy
from django.views.generic import ListView, DetailView, CreateView, UpdateView, DeleteView

from apps.core.mixins import StaffRequiredMixin
from apps.core.views import AuditedFormMixin, AuditedDeleteMixin, FilteredListMixin, ToggleFieldView
from .forms import StudentForm, TeacherForm, MentorForm
from .models import Student, Teacher, Mentor


# ============================================================================
# VUES APPRENANT
# ============================================================================
class StudentListView(StaffRequiredMixin, FilteredListMixin, ListView):
    model = Student
    context_object_name = 'students'
    page_title = 'Apprenants'
    search_fields = ['first_name', 'last_name', 'email', 'company']
    filter_fields = {'active': 'is_active', 'city': 'city__iexact'}
    create_url_name = 'accounts:student_create'


class StudentDetailView(StaffRequiredMixin, DetailView):
    model = Student
    template_name = 'accounts/student_detail.html'
    context_object_name = 'student'

    def get_context_data(self, **kwargs):
        context = super().get_context_data(**kwargs)
        student = self.object
        context['contracts'] = student.alternance_contracts.select_related('session__formation', 'mentor')
        context['assessments'] = student.progress_assessments.order_by('-period')[:5]
        return context


class StudentCreateView(StaffRequiredMixin, AuditedFormMixin, CreateView):
    model = Student
    form_class = StudentForm
    page_title = 'Ajouter un apprenant'
    submit_text = 'Créer'
    action = 'création'
    success_message = "Apprenant créé avec succès."
    error_message = "Une erreur est survenue lors de la création de l'apprenant."


class StudentUpdateView(StaffRequiredMixin, AuditedFormMixin, UpdateView):
    model = Student
    form_class = StudentForm
    page_title = "Modifier l'apprenant"
    submit_text = 'Enregistrer'
    action = 'modification'
    success_message = "Apprenant modifié avec succès."
    error_message = "Une erreur est survenue lors de la modification de l'apprenant."


class StudentDeleteView(StaffRequiredMixin, AuditedDeleteMixin, DeleteView):
    model = Student
    success_url = reverse_lazy('accounts:student_list')
    page_title = "Supprimer l'apprenant"
    success_message = "Apprenant supprimé avec succès."

    def get_delete_blocker(self, obj):
        if obj.alternance_contracts.exists():
            return "Impossible de supprimer cet apprenant car il possède des contrats d'alternance."
        return None


# ============================================================================
# VUES FORMATEUR
# ============================================================================
class TeacherListView(StaffRequiredMixin, FilteredListMixin, ListView):
    model = Teacher
    context_object_name = 'teachers'
    page_title = 'Formateurs'
    search_fields = ['first_name', 'last_name', 'email', 'specialty']
    filter_fields = {'active': 'is_active'}
    create_url_name = 'accounts:teacher_create'

    def get_queryset(self):
        return super().get_queryset().annotate(
            supervised_count=Count('supervised_contracts')
        )


class TeacherDetailView(StaffRequiredMixin, DetailView):
    model = Teacher
    template_name = 'core/crud/detail.html'
    context_object_name = 'teacher'


class TeacherCreateView(StaffRequiredMixin, AuditedFormMixin, CreateView):
    model = Teacher
    form_class = TeacherForm
    page_title = 'Ajouter un formateur'
    submit_text = 'Créer'
    action = 'création'
    success_message = "Formateur créé avec succès."


class TeacherUpdateView(StaffRequiredMixin, AuditedFormMixin, UpdateView):
    model = Teacher
    form_class = TeacherForm
    page_title = 'Modifier le formateur'
    submit_text = 'Enregistrer'
    action = 'modification'
    success_message = "Formateur modifié avec succès."


class TeacherDeleteView(StaffRequiredMixin, AuditedDeleteMixin, DeleteView):
    model = Teacher
    success_url = reverse_lazy('accounts:teacher_list')
    page_title = 'Supprimer le formateur'
    success_message = "Formateur supprimé avec succès."

    def get_delete_blocker(self, obj):
        if obj.supervised_contracts.exists():
            return "Impossible de supprimer ce formateur : il est référent pédagogique de contrats d'alternance."
        return None


# ============================================================================
# VUES TUTEUR ENTREPRISE
# ============================================================================
class MentorListView(StaffRequiredMixin, FilteredListMixin, ListView):
    model = Mentor
    context_object_name = 'mentors'
    page_title = 'Tuteurs entreprise'
    search_fields = ['first_name', 'last_name', 'email', 'company_name', 'position']
    filter_fields = {'active': 'is_active', 'company': 'company_name__icontains'}
    create_url_name = 'accounts:mentor_create'

    def get_queryset(self):
        return super().get_queryset().annotate(
            contracts_count=Count('alternance_contracts')
        )


class MentorDetailView(StaffRequiredMixin, DetailView):
    model = Mentor
    template_name = 'accounts/mentor_detail.html'
    context_object_name = 'mentor'

    def get_context_data(self, **kwargs):
        context = super().get_context_data(**kwargs)
        context['contracts'] = self.object.alternance_contracts.select_related('student')
        context['missions'] = self.object.supervised_missions.filter(is_active=True)
        return context


class MentorCreateView(StaffRequiredMixin, AuditedFormMixin, CreateView):
    model = Mentor
    form_class = MentorForm
    page_title = 'Ajouter un tuteur entreprise'
    submit_text = 'Créer'
    action = 'création'
    success_message = "Tuteur créé avec succès."


class MentorUpdateView(StaffRequiredMixin, AuditedFormMixin, UpdateView):
    model = Mentor
    form_class = MentorForm
    page_title = 'Modifier le tuteur'
    submit_text = 'Enregistrer'
    action = 'modification'
    success_message = "Tuteur modifié avec succès."


class MentorDeleteView(StaffRequiredMixin, AuditedDeleteMixin, DeleteView):
    model = Mentor
    success_url = reverse_lazy('accounts:mentor_list')
    page_title = 'Supprimer le tuteur'
    success_message = "Tuteur supprimé avec succès."

    def get_delete_blocker(self, obj):
        if obj.alternance_contracts.exists():
            return "Impossible de supprimer ce tuteur car il est rattaché à des contrats d'alternance."
        return None


class MentorToggleActiveView(ToggleFieldView):
    model = Mentor
    verbose_name = 'Tuteur'
    success_url_name = 'accounts:mentor_list'
