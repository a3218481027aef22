from django.urls import path

from . import views

app_name = 'alternance_api'

urlpatterns = [
    # Contrats
    path('contracts/', views.ContractListAPIView.as_view(), name='contract-list'),
    path('contracts/statistics/', views.contract_statistics_api, name='contract-statistics'),
    path('contracts/<uuid:pk>/', views.ContractRetrieveAPIView.as_view(), name='contract-detail'),
    path('contracts/<uuid:pk>/status/', views.contract_change_status_api, name='contract-status'),
    path('alerts/', views.alerts_api, name='alerts'),

    # Programmes et missions
    path('programs/', views.ProgramListAPIView.as_view(), name='program-list'),
    path('programs/<uuid:pk>/', views.ProgramRetrieveAPIView.as_view(), name='program-detail'),
    path('missions/', views.MissionListAPIView.as_view(), name='mission-list'),
    path('assignments/', views.AssignmentListAPIView.as_view(), name='assignment-list'),

    # Suivi
    path('skills-assessments/', views.SkillsAssessmentListAPIView.as_view(), name='skills-assessment-list'),
    path('students-at-risk/', views.StudentsAtRiskAPIView.as_view(), name='students-at-risk'),
    path('students/<uuid:pk>/progression/', views.student_progression_api, name='student-progression'),
    path('meetings/', views.MeetingListAPIView.as_view(), name='meeting-list'),
    path('visits/', views.VisitListAPIView.as_view(), name='visit-list'),
]
