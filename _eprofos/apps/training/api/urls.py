from django.urls import path

from . import views

app_name = 'training_api'

urlpatterns = [
    path('categories/', views.CategoryListAPIView.as_view(), name='category-list'),

    # Formations
    path('formations/', views.FormationListAPIView.as_view(), name='formation-list'),
    path('formations/<uuid:pk>/', views.FormationRetrieveAPIView.as_view(), name='formation-detail'),
    path('formations/<uuid:pk>/schedule/', views.formation_schedule_api, name='formation-schedule'),
    path('formations/<uuid:pk>/qualiopi/', views.formation_qualiopi_api, name='formation-qualiopi'),

    # Sessions
    path('sessions/', views.SessionListAPIView.as_view(), name='session-list'),
    path('sessions/<uuid:pk>/', views.SessionRetrieveAPIView.as_view(), name='session-detail'),
    path('sessions/<uuid:pk>/registrations/', views.SessionRegistrationListAPIView.as_view(),
         name='session-registrations'),
]
