from django.urls import path

from . import views

app_name = 'accounts'

urlpatterns = [
    # Apprenants
    path('students/', views.StudentListView.as_view(), name='student_list'),
    path('students/new/', views.StudentCreateView.as_view(), name='student_create'),
    path('students/<uuid:pk>/', views.StudentDetailView.as_view(), name='student_detail'),
    path('students/<uuid:pk>/edit/', views.StudentUpdateView.as_view(), name='student_update'),
    path('students/<uuid:pk>/delete/', views.StudentDeleteView.as_view(), name='student_delete'),

    # Formateurs
    path('teachers/', views.TeacherListView.as_view(), name='teacher_list'),
    path('teachers/new/', views.TeacherCreateView.as_view(), name='teacher_create'),
    path('teachers/<uuid:pk>/', views.TeacherDetailView.as_view(), name='teacher_detail'),
    path('teachers/<uuid:pk>/edit/', views.TeacherUpdateView.as_view(), name='teacher_update'),
    path('teachers/<uuid:pk>/delete/', views.TeacherDeleteView.as_view(), name='teacher_delete'),

    # Tuteurs entreprise
    path('mentors/', views.MentorListView.as_view(), name='mentor_list'),
    path('mentors/new/', views.MentorCreateView.as_view(), name='mentor_create'),
    path('mentors/<uuid:pk>/', views.MentorDetailView.as_view(), name='mentor_detail'),
    path('mentors/<uuid:pk>/edit/', views.MentorUpdateView.as_view(), name='mentor_update'),
    path('mentors/<uuid:pk>/delete/', views.MentorDeleteView.as_view(), name='mentor_delete'),
    path('mentors/<uuid:pk>/toggle-active/', views.MentorToggleActiveView.as_view(), name='mentor_toggle_active'),
]
