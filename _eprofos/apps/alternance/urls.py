from django.urls import path

from . import views

app_name = 'alternance'

urlpatterns = [
    path('', views.AlternanceDashboardView.as_view(), name='dashboard'),
    path('alerts/', views.AlertsView.as_view(), name='alerts'),

    # Contrats
    path('contracts/', views.ContractListView.as_view(), name='contract_list'),
    path('contracts/new/', views.ContractCreateView.as_view(), name='contract_create'),
    path('contracts/export/', views.contract_export, name='contract_export'),
    path('contracts/bulk-status/', views.contract_bulk_status, name='contract_bulk_status'),
    path('contracts/<uuid:pk>/', views.ContractDetailView.as_view(), name='contract_detail'),
    path('contracts/<uuid:pk>/edit/', views.ContractUpdateView.as_view(), name='contract_update'),
    path('contracts/<uuid:pk>/delete/', views.ContractDeleteView.as_view(), name='contract_delete'),
    path('contracts/<uuid:pk>/status/', views.contract_change_status, name='contract_change_status'),
    path('contracts/<uuid:pk>/pdf/', views.contract_pdf, name='contract_pdf'),

    # Programmes
    path('programs/', views.ProgramListView.as_view(), name='program_list'),
    path('programs/new/', views.ProgramCreateView.as_view(), name='program_create'),
    path('programs/<uuid:pk>/', views.ProgramDetailView.as_view(), name='program_detail'),
    path('programs/<uuid:pk>/edit/', views.ProgramUpdateView.as_view(), name='program_update'),
    path('programs/<uuid:pk>/delete/', views.ProgramDeleteView.as_view(), name='program_delete'),

    # Missions
    path('missions/', views.MissionListView.as_view(), name='mission_list'),
    path('missions/new/', views.MissionCreateView.as_view(), name='mission_create'),
    path('missions/reorder/', views.MissionReorderView.as_view(), name='mission_reorder'),
    path('missions/<uuid:pk>/', views.MissionDetailView.as_view(), name='mission_detail'),
    path('missions/<uuid:pk>/edit/', views.MissionUpdateView.as_view(), name='mission_update'),
    path('missions/<uuid:pk>/delete/', views.MissionDeleteView.as_view(), name='mission_delete'),
    path('missions/<uuid:pk>/toggle-active/', views.MissionToggleActiveView.as_view(),
         name='mission_toggle_active'),

    # Affectations
    path('assignments/', views.AssignmentListView.as_view(), name='assignment_list'),
    path('assignments/new/', views.AssignmentCreateView.as_view(), name='assignment_create'),
    path('assignments/<uuid:pk>/', views.AssignmentDetailView.as_view(), name='assignment_detail'),
    path('assignments/<uuid:pk>/status/', views.assignment_change_status, name='assignment_change_status'),
    path('assignments/<uuid:pk>/progress/', views.assignment_update_progress, name='assignment_update_progress'),

    # Évaluations de compétences
    path('skills-assessments/', views.SkillsAssessmentListView.as_view(), name='skills_assessment_list'),
    path('skills-assessments/new/', views.SkillsAssessmentCreateView.as_view(), name='skills_assessment_create'),
    path('skills-assessments/<uuid:pk>/', views.SkillsAssessmentDetailView.as_view(),
         name='skills_assessment_detail'),
    path('skills-assessments/<uuid:pk>/edit/', views.SkillsAssessmentUpdateView.as_view(),
         name='skills_assessment_update'),
    path('skills-assessments/<uuid:pk>/validate/', views.skills_assessment_validate,
         name='skills_assessment_validate'),

    # Progression
    path('progress/', views.ProgressListView.as_view(), name='progress_list'),
    path('progress/new/', views.ProgressCreateView.as_view(), name='progress_create'),
    path('progress/<uuid:pk>/', views.ProgressDetailView.as_view(), name='progress_detail'),
    path('progress/<uuid:pk>/validate/', views.progress_validate, name='progress_validate'),

    # Réunions de coordination
    path('meetings/', views.MeetingListView.as_view(), name='meeting_list'),
    path('meetings/new/', views.MeetingCreateView.as_view(), name='meeting_create'),
    path('meetings/<uuid:pk>/', views.MeetingDetailView.as_view(), name='meeting_detail'),
    path('meetings/<uuid:pk>/edit/', views.MeetingUpdateView.as_view(), name='meeting_update'),
    path('meetings/<uuid:pk>/delete/', views.MeetingDeleteView.as_view(), name='meeting_delete'),
    path('meetings/<uuid:pk>/complete/', views.meeting_complete, name='meeting_complete'),
    path('meetings/<uuid:pk>/cancel/', views.meeting_cancel, name='meeting_cancel'),
    path('meetings/<uuid:pk>/postpone/', views.meeting_postpone, name='meeting_postpone'),

    # Visites en entreprise
    path('visits/', views.VisitListView.as_view(), name='visit_list'),
    path('visits/new/', views.VisitCreateView.as_view(), name='visit_create'),
    path('visits/<uuid:pk>/', views.VisitDetailView.as_view(), name='visit_detail'),
    path('visits/<uuid:pk>/edit/', views.VisitUpdateView.as_view(), name='visit_update'),
    path('visits/<uuid:pk>/delete/', views.VisitDeleteView.as_view(), name='visit_delete'),
]
