# apps/alternance/services/dashboard.py
from datetime import timedelta

from django.utils import timezone

from ..models import (
    AlternanceContract, ContractStatus, MissionAssignment, AssignmentStatus,
    CoordinationMeeting, MeetingStatus, CompanyVisit
)
from .contracts import get_contract_statistics, get_contracts_ending_soon
from .progress import get_students_at_risk


def get_overdue_assignments():
    return MissionAssignment.objects.select_related('student', 'mission').filter(
        status__in=[AssignmentStatus.PLANIFIEE, AssignmentStatus.EN_COURS],
        end_date__lt=timezone.localdate(),
    ).order_by('end_date')


def get_upcoming_meetings(days=7):
    now = timezone.now()
    return CoordinationMeeting.objects.select_related('student', 'mentor').filter(
        status__in=[MeetingStatus.PLANNED, MeetingStatus.POSTPONED],
        meeting_date__range=[now, now + timedelta(days=days)],
    ).order_by('meeting_date')


def get_visits_needing_attention(limit=20):
    recent = CompanyVisit.objects.select_related('student', 'mentor').order_by('-visit_date')[:100]
    return [visit for visit in recent if visit.needs_attention][:limit]


def get_alerts():
    """Points de vigilance du suivi des alternants"""
    return {
        'contracts_ending_soon': list(get_contracts_ending_soon()),
        'contracts_pending_validation': list(
            AlternanceContract.objects.select_related('student').filter(
                status=ContractStatus.PENDING_VALIDATION
            ).order_by('created_at')
        ),
        'students_at_risk': list(get_students_at_risk()),
        'overdue_assignments': list(get_overdue_assignments()),
        'visits_needing_attention': get_visits_needing_attention(),
    }


def get_dashboard_data():
    alerts = get_alerts()
    return {
        'statistics': get_contract_statistics(),
        'alerts': alerts,
        'alerts_count': sum(len(items) for items in alerts.values()),
        'upcoming_meetings': list(get_upcoming_meetings()),
        'active_contracts': AlternanceContract.objects.filter(status=ContractStatus.ACTIVE).count(),
    }
