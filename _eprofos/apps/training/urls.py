from django.urls import path

from . import views

app_name = 'training'

urlpatterns = [
    # Catégories
    path('categories/', views.CategoryListView.as_view(), name='category_list'),
    path('categories/new/', views.CategoryCreateView.as_view(), name='category_create'),
    path('categories/<uuid:pk>/', views.CategoryDetailView.as_view(), name='category_detail'),
    path('categories/<uuid:pk>/edit/', views.CategoryUpdateView.as_view(), name='category_update'),
    path('categories/<uuid:pk>/delete/', views.CategoryDeleteView.as_view(), name='category_delete'),
    path('categories/<uuid:pk>/toggle-status/', views.CategoryToggleStatusView.as_view(),
         name='category_toggle_status'),

    # Formations
    path('formations/', views.FormationListView.as_view(), name='formation_list'),
    path('formations/new/', views.FormationCreateView.as_view(), name='formation_create'),
    path('formations/<uuid:pk>/', views.FormationDetailView.as_view(), name='formation_detail'),
    path('formations/<uuid:pk>/edit/', views.FormationUpdateView.as_view(), name='formation_update'),
    path('formations/<uuid:pk>/delete/', views.FormationDeleteView.as_view(), name='formation_delete'),
    path('formations/<uuid:pk>/toggle-status/', views.FormationToggleStatusView.as_view(),
         name='formation_toggle_status'),
    path('formations/<uuid:pk>/toggle-featured/', views.FormationToggleFeaturedView.as_view(),
         name='formation_toggle_featured'),
    path('formations/<uuid:pk>/schedule/', views.FormationScheduleView.as_view(), name='formation_schedule'),
    path('formations/<uuid:pk>/schedule/pdf/', views.formation_schedule_pdf, name='formation_schedule_pdf'),
    path('formations/<uuid:pk>/durations/', views.FormationDurationStatisticsView.as_view(),
         name='formation_durations'),
    path('formations/<uuid:pk>/durations/sync/', views.formation_sync_durations, name='formation_sync_durations'),

    # Modules
    path('modules/', views.ModuleListView.as_view(), name='module_list'),
    path('modules/new/', views.ModuleCreateView.as_view(), name='module_create'),
    path('modules/reorder/', views.ModuleReorderView.as_view(), name='module_reorder'),
    path('modules/<uuid:pk>/', views.ModuleDetailView.as_view(), name='module_detail'),
    path('modules/<uuid:pk>/edit/', views.ModuleUpdateView.as_view(), name='module_update'),
    path('modules/<uuid:pk>/delete/', views.ModuleDeleteView.as_view(), name='module_delete'),
    path('modules/<uuid:pk>/toggle-active/', views.ModuleToggleActiveView.as_view(), name='module_toggle_active'),
    path('modules/<uuid:pk>/chapters/', views.ChapterByModuleView.as_view(), name='chapter_by_module'),

    # Chapitres
    path('chapters/', views.ChapterListView.as_view(), name='chapter_list'),
    path('chapters/statistics/', views.ChapterStatisticsView.as_view(), name='chapter_statistics'),
    path('chapters/new/', views.ChapterCreateView.as_view(), name='chapter_create'),
    path('chapters/reorder/', views.ChapterReorderView.as_view(), name='chapter_reorder'),
    path('chapters/<uuid:pk>/', views.ChapterDetailView.as_view(), name='chapter_detail'),
    path('chapters/<uuid:pk>/edit/', views.ChapterUpdateView.as_view(), name='chapter_update'),
    path('chapters/<uuid:pk>/delete/', views.ChapterDeleteView.as_view(), name='chapter_delete'),
    path('chapters/<uuid:pk>/toggle-active/', views.ChapterToggleActiveView.as_view(), name='chapter_toggle_active'),
    path('chapters/<uuid:pk>/duplicate/', views.chapter_duplicate, name='chapter_duplicate'),

    # Cours
    path('courses/', views.CourseListView.as_view(), name='course_list'),
    path('courses/new/', views.CourseCreateView.as_view(), name='course_create'),
    path('courses/reorder/', views.CourseReorderView.as_view(), name='course_reorder'),
    path('courses/<uuid:pk>/', views.CourseDetailView.as_view(), name='course_detail'),
    path('courses/<uuid:pk>/edit/', views.CourseUpdateView.as_view(), name='course_update'),
    path('courses/<uuid:pk>/delete/', views.CourseDeleteView.as_view(), name='course_delete'),
    path('courses/<uuid:pk>/toggle-active/', views.CourseToggleActiveView.as_view(), name='course_toggle_active'),
    path('courses/<uuid:pk>/pdf/', views.course_pdf, name='course_pdf'),

    # Exercices
    path('exercises/', views.ExerciseListView.as_view(), name='exercise_list'),
    path('exercises/new/', views.ExerciseCreateView.as_view(), name='exercise_create'),
    path('exercises/<uuid:pk>/', views.ExerciseDetailView.as_view(), name='exercise_detail'),
    path('exercises/<uuid:pk>/edit/', views.ExerciseUpdateView.as_view(), name='exercise_update'),
    path('exercises/<uuid:pk>/delete/', views.ExerciseDeleteView.as_view(), name='exercise_delete'),
    path('exercises/<uuid:pk>/toggle-active/', views.ExerciseToggleActiveView.as_view(),
         name='exercise_toggle_active'),

    # Sessions
    path('sessions/', views.SessionListView.as_view(), name='session_list'),
    path('sessions/new/', views.SessionCreateView.as_view(), name='session_create'),
    path('sessions/<uuid:pk>/', views.SessionDetailView.as_view(), name='session_detail'),
    path('sessions/<uuid:pk>/edit/', views.SessionUpdateView.as_view(), name='session_update'),
    path('sessions/<uuid:pk>/delete/', views.SessionDeleteView.as_view(), name='session_delete'),
    path('sessions/<uuid:pk>/status/', views.session_change_status, name='session_change_status'),
    path('sessions/<uuid:pk>/registrations/export/', views.session_export_registrations,
         name='session_export_registrations'),

    # Inscriptions
    path('registrations/', views.RegistrationListView.as_view(), name='registration_list'),
    path('registrations/new/', views.RegistrationCreateView.as_view(), name='registration_create'),
    path('registrations/export/', views.registration_export, name='registration_export'),
    path('registrations/<uuid:pk>/', views.RegistrationDetailView.as_view(), name='registration_detail'),
    path('registrations/<uuid:pk>/confirm/', views.registration_confirm, name='registration_confirm'),
    path('registrations/<uuid:pk>/cancel/', views.registration_cancel, name='registration_cancel'),
    path('registrations/<uuid:pk>/status/', views.registration_update_status, name='registration_update_status'),
    path('registrations/<uuid:pk>/delete/', views.RegistrationDeleteView.as_view(), name='registration_delete'),
]
