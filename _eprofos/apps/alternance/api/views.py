import logging

from django.shortcuts import get_object_or_404
from rest_framework import generics, filters
from rest_framework.decorators import api_view
from rest_framework.response import Response
from django_filters.rest_framework import DjangoFilterBackend

from apps.accounts.models import Student
from ..models import (
    AlternanceContract, AlternanceProgram, CompanyMission, MissionAssignment, SkillsAssessment,
    CoordinationMeeting, CompanyVisit
)
from ..services.contracts import ContractLifecycleService, get_contract_statistics
from ..services.dashboard import get_alerts
from ..services.progress import get_students_at_risk, get_progression_history
from .serializers import (
    AlternanceContractListSerializer, AlternanceContractDetailSerializer, AlternanceProgramSerializer,
    CompanyMissionSerializer, MissionAssignmentSerializer, SkillsAssessmentSerializer,
    ProgressAssessmentSerializer, CoordinationMeetingSerializer, CompanyVisitSerializer
)

logger = logging.getLogger(__name__)


class ContractListAPIView(generics.ListAPIView):
    serializer_class = AlternanceContractListSerializer
    filter_backends = [filters.SearchFilter, DjangoFilterBackend, filters.OrderingFilter]
    search_fields = ['contract_number', 'company_name', 'job_title', 'student__last_name']
    filterset_fields = ['status', 'contract_type', 'session', 'mentor', 'student']
    ordering_fields = ['start_date', 'end_date', 'created_at']
    ordering = ['-created_at']

    def get_queryset(self):
        return AlternanceContract.objects.select_related('student')


class ContractRetrieveAPIView(generics.RetrieveAPIView):
    queryset = AlternanceContract.objects.select_related('student', 'mentor', 'pedagogical_supervisor')
    serializer_class = AlternanceContractDetailSerializer


@api_view(['POST'])
def contract_change_status_api(request, pk):
    """Transition de statut d'un contrat ; les refus sont traités par le gestionnaire d'exceptions"""
    contract = get_object_or_404(AlternanceContract, pk=pk)
    target = request.data.get('status', '')
    reason = request.data.get('reason', '')
    logger.info(f"API: transition du contrat {contract.pk} vers {target!r} demandée par {request.user.username}")
    ContractLifecycleService(request.user).change_status(contract, target, reason)
    return Response({
        'success': True,
        'status': contract.status,
        'status_display': contract.get_status_display(),
    })


@api_view(['GET'])
def contract_statistics_api(request):
    return Response(get_contract_statistics())


@api_view(['GET'])
def alerts_api(request):
    """Nombre d'alertes par catégorie et identifiants concernés"""
    alerts = get_alerts()
    return Response({
        key: {'count': len(items), 'ids': [str(item.pk) for item in items]}
        for key, items in alerts.items()
    })


class ProgramListAPIView(generics.ListAPIView):
    serializer_class = AlternanceProgramSerializer
    filter_backends = [filters.SearchFilter, DjangoFilterBackend]
    search_fields = ['title', 'description']
    filterset_fields = ['session', 'rhythm']

    def get_queryset(self):
        return AlternanceProgram.objects.order_by('-created_at')


class ProgramRetrieveAPIView(generics.RetrieveAPIView):
    queryset = AlternanceProgram.objects.all()
    serializer_class = AlternanceProgramSerializer


class MissionListAPIView(generics.ListAPIView):
    serializer_class = CompanyMissionSerializer
    filter_backends = [filters.SearchFilter, DjangoFilterBackend]
    search_fields = ['title', 'description']
    filterset_fields = ['supervisor', 'complexity', 'term', 'department', 'is_active']

    def get_queryset(self):
        return CompanyMission.objects.select_related('supervisor').order_by('supervisor', 'order_index')


class AssignmentListAPIView(generics.ListAPIView):
    serializer_class = MissionAssignmentSerializer
    filter_backends = [DjangoFilterBackend]
    filterset_fields = ['status', 'mission', 'student']

    def get_queryset(self):
        return MissionAssignment.objects.select_related('mission', 'student').order_by('-start_date')


class SkillsAssessmentListAPIView(generics.ListAPIView):
    serializer_class = SkillsAssessmentSerializer
    filter_backends = [DjangoFilterBackend]
    filterset_fields = ['student', 'assessment_type', 'context', 'overall_rating']

    def get_queryset(self):
        return SkillsAssessment.objects.select_related('student').order_by('-assessment_date')


class StudentsAtRiskAPIView(generics.ListAPIView):
    """Dernière évaluation de progression des alternants en situation de risque"""
    serializer_class = ProgressAssessmentSerializer
    filter_backends = []

    def get_queryset(self):
        threshold = self.request.query_params.get('threshold')
        return get_students_at_risk(int(threshold) if threshold and threshold.isdigit() else None)


@api_view(['GET'])
def student_progression_api(request, pk):
    student = get_object_or_404(Student, pk=pk)
    return Response({
        'student': {'id': str(student.pk), 'name': student.get_full_name()},
        'history': get_progression_history(student),
    })


class MeetingListAPIView(generics.ListAPIView):
    serializer_class = CoordinationMeetingSerializer
    filter_backends = [DjangoFilterBackend, filters.OrderingFilter]
    filterset_fields = ['status', 'type', 'student']
    ordering_fields = ['meeting_date']
    ordering = ['-meeting_date']

    def get_queryset(self):
        return CoordinationMeeting.objects.select_related('student')


class VisitListAPIView(generics.ListAPIView):
    serializer_class = CompanyVisitSerializer
    filter_backends = [DjangoFilterBackend, filters.OrderingFilter]
    filterset_fields = ['visit_type', 'student', 'follow_up_required']
    ordering_fields = ['visit_date', 'overall_rating']
    ordering = ['-visit_date']

    def get_queryset(self):
        return CompanyVisit.objects.select_related('student')
