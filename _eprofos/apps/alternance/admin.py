# apps/alternance/admin.py

from django.contrib import admin
from django.utils.html import format_html

from .models import (
    AlternanceContract, AlternanceProgram, CompanyMission, MissionAssignment, SkillsAssessment,
    ProgressAssessment, CoordinationMeeting, CompanyVisit
)
from .services.contracts import ContractLifecycleService


@admin.register(AlternanceContract)
class AlternanceContractAdmin(admin.ModelAdmin):
    list_display = [
        'contract_number', 'student', 'company_name', 'contract_type',
        'start_date', 'end_date', 'status_badge'
    ]
    list_filter = ['status', 'contract_type', 'session__formation']
    search_fields = ['contract_number', 'company_name', 'student__last_name', 'student__email']
    date_hierarchy = 'start_date'
    readonly_fields = ['validated_at', 'started_at', 'completed_at', 'created_at', 'updated_at']
    actions = ['submit_contracts']

    fieldsets = (
        ('Contrat', {
            'fields': ('contract_number', 'student', 'session', 'contract_type', 'status')
        }),
        ('Entreprise', {
            'fields': (
                'company_name', 'company_address', 'company_siret',
                'company_contact_person', 'company_contact_email', 'company_contact_phone'
            )
        }),
        ('Encadrement', {
            'fields': ('mentor', 'pedagogical_supervisor')
        }),
        ('Poste', {
            'fields': ('job_title', 'job_description', 'learning_objectives', 'company_objectives')
        }),
        ('Rythme', {
            'fields': ('start_date', 'end_date', 'weekly_center_hours', 'weekly_company_hours', 'remuneration')
        }),
        ('Suivi', {
            'fields': ('notes', 'additional_data', 'validated_at', 'started_at', 'completed_at'),
            'classes': ('collapse',)
        }),
    )

    @admin.display(description='Statut')
    def status_badge(self, obj):
        return format_html(
            '<span class="badge {}">{}</span>',
            obj.status_badge_class,
            obj.get_status_display()
        )

    @admin.action(description="Soumettre les contrats sélectionnés à validation")
    def submit_contracts(self, request, queryset):
        updated, refused = ContractLifecycleService(request.user).bulk_change_status(
            queryset, 'pending_validation'
        )
        self.message_user(request, f"{len(updated)} contrat(s) soumis, {len(refused)} refusé(s).")


@admin.register(AlternanceProgram)
class AlternanceProgramAdmin(admin.ModelAdmin):
    list_display = ['title', 'session', 'total_duration', 'center_duration', 'company_duration', 'rhythm']
    list_filter = ['rhythm']
    search_fields = ['title', 'description']


class MissionAssignmentInline(admin.TabularInline):
    model = MissionAssignment
    extra = 0
    fields = ['student', 'start_date', 'end_date', 'status', 'completion_rate']


@admin.register(CompanyMission)
class CompanyMissionAdmin(admin.ModelAdmin):
    list_display = ['title', 'supervisor', 'complexity', 'term', 'department', 'order_index', 'is_active']
    list_filter = ['complexity', 'term', 'department', 'is_active']
    search_fields = ['title', 'description', 'supervisor__company_name']
    inlines = [MissionAssignmentInline]


@admin.register(MissionAssignment)
class MissionAssignmentAdmin(admin.ModelAdmin):
    list_display = ['mission', 'student', 'start_date', 'end_date', 'status', 'completion_rate']
    list_filter = ['status']
    search_fields = ['mission__title', 'student__last_name']
    readonly_fields = ['last_updated']


@admin.register(SkillsAssessment)
class SkillsAssessmentAdmin(admin.ModelAdmin):
    list_display = ['student', 'assessment_type', 'context', 'assessment_date', 'overall_rating', 'validated_at']
    list_filter = ['assessment_type', 'context', 'overall_rating']
    search_fields = ['student__last_name', 'student__email']
    readonly_fields = ['validated_at', 'validated_by']


@admin.register(ProgressAssessment)
class ProgressAssessmentAdmin(admin.ModelAdmin):
    list_display = ['student', 'period', 'overall_progression', 'risk_level', 'validated_at']
    list_filter = ['risk_level']
    search_fields = ['student__last_name', 'student__email']
    readonly_fields = ['overall_progression', 'validated_at', 'validated_by']


@admin.register(CoordinationMeeting)
class CoordinationMeetingAdmin(admin.ModelAdmin):
    list_display = ['student', 'meeting_date', 'type', 'location', 'status']
    list_filter = ['status', 'type', 'location']
    search_fields = ['student__last_name', 'mentor__company_name']
    date_hierarchy = 'meeting_date'
    readonly_fields = ['reminder_sent_at']


@admin.register(CompanyVisit)
class CompanyVisitAdmin(admin.ModelAdmin):
    list_display = ['student', 'visit_date', 'visit_type', 'visitor', 'overall_rating', 'follow_up_required']
    list_filter = ['visit_type', 'follow_up_required']
    search_fields = ['student__last_name', 'mentor__company_name']
    date_hierarchy = 'visit_date'
