import logging

from django.shortcuts import get_object_or_404
from rest_framework import generics, filters
from rest_framework.decorators import api_view
from rest_framework.response import Response
from django_filters.rest_framework import DjangoFilterBackend

from ..models import Category, Formation, Session, SessionRegistration
from ..services.qualiopi import generate_qualiopi_report
from ..services.schedule import FormationScheduleService, MORNING, AFTERNOON
from .serializers import (
    CategorySerializer, FormationListSerializer, FormationDetailSerializer,
    SessionSerializer, SessionRegistrationSerializer
)

logger = logging.getLogger(__name__)

# Clés non sérialisables ou redondantes d'un élément de planning
SCHEDULE_ITEM_EXCLUDED_KEYS = {'entity'}


class CategoryListAPIView(generics.ListAPIView):
    queryset = Category.objects.all()
    serializer_class = CategorySerializer
    filter_backends = [filters.SearchFilter, DjangoFilterBackend]
    search_fields = ['name', 'description']
    filterset_fields = ['is_active']


class FormationListAPIView(generics.ListAPIView):
    serializer_class = FormationListSerializer
    filter_backends = [filters.SearchFilter, DjangoFilterBackend, filters.OrderingFilter]
    search_fields = ['title', 'description', 'category__name']
    filterset_fields = ['category', 'level', 'format', 'is_active', 'is_featured']
    ordering_fields = ['title', 'price', 'duration_hours', 'created_at']
    ordering = ['-created_at']

    def get_queryset(self):
        return Formation.objects.select_related('category')


class FormationRetrieveAPIView(generics.RetrieveAPIView):
    queryset = Formation.objects.select_related('category')
    serializer_class = FormationDetailSerializer


def serialize_schedule(schedule):
    """Version JSON du planning calculé par FormationScheduleService"""
    days = []
    for day in schedule['days']:
        serialized = {'day_number': day['day_number'], 'total_duration': day['total_duration']}
        for half in (MORNING, AFTERNOON):
            serialized[half] = {
                'session': day[half]['session'],
                'duration': day[half]['duration'],
                'items': [
                    {key: value for key, value in item.items() if key not in SCHEDULE_ITEM_EXCLUDED_KEYS}
                    for item in day[half]['items']
                ],
            }
        days.append(serialized)

    formation = schedule['formation']
    return {
        'formation': {'id': str(formation.pk), 'title': formation.title},
        'total_duration': schedule['total_duration'],
        'total_days': schedule['total_days'],
        'days': days,
        'summary': schedule['summary'],
    }


@api_view(['GET'])
def formation_schedule_api(request, pk):
    """Planning jour par jour d'une formation"""
    formation = get_object_or_404(Formation, pk=pk)
    service = FormationScheduleService()
    schedule = service.decorate(service.calculate_formation_schedule(formation))
    logger.debug(f"Planning API formation {formation.pk} demandé par {request.user.username}")
    return Response(serialize_schedule(schedule))


@api_view(['GET'])
def formation_qualiopi_api(request, pk):
    formation = get_object_or_404(Formation, pk=pk)
    return Response(generate_qualiopi_report(formation))


class SessionListAPIView(generics.ListAPIView):
    serializer_class = SessionSerializer
    filter_backends = [filters.SearchFilter, DjangoFilterBackend, filters.OrderingFilter]
    search_fields = ['name', 'location', 'formation__title']
    filterset_fields = ['formation', 'status', 'is_active', 'is_alternance_session']
    ordering_fields = ['start_date', 'name', 'current_registrations']
    ordering = ['start_date']

    def get_queryset(self):
        return Session.objects.select_related('formation')


class SessionRetrieveAPIView(generics.RetrieveAPIView):
    queryset = Session.objects.select_related('formation')
    serializer_class = SessionSerializer


class SessionRegistrationListAPIView(generics.ListAPIView):
    serializer_class = SessionRegistrationSerializer
    filter_backends = [filters.SearchFilter, DjangoFilterBackend]
    search_fields = ['first_name', 'last_name', 'email', 'company']
    filterset_fields = ['status']

    def get_queryset(self):
        return SessionRegistration.objects.filter(session_id=self.kwargs['pk']).order_by('last_name')
