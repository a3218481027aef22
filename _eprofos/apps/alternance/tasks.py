# apps/alternance/tasks.py

import logging
from collections import defaultdict
from datetime import timedelta

from celery import shared_task
from django.utils import timezone

from .models import CoordinationMeeting, MeetingStatus
from .notifications import send_meeting_reminder, send_overdue_assignments_report
from .services import progress as progress_service
from .services.dashboard import get_overdue_assignments

logger = logging.getLogger(__name__)

REMINDER_HOURS = 48


@shared_task(bind=True, max_retries=3)
def refresh_risk_levels(self):
    """Recalcule le niveau de risque des dernières évaluations de progression"""
    try:
        logger.info("Début recalcul des niveaux de risque")
        changed = progress_service.refresh_risk_levels()
        at_risk = progress_service.get_students_at_risk().count()
        logger.info(f"Recalcul terminé: {changed} niveau(x) modifié(s), {at_risk} alternant(s) à risque")
        return {
            'success': True,
            'changed': changed,
            'students_at_risk': at_risk,
        }

    except Exception as e:
        logger.error(f"Erreur recalcul des niveaux de risque: {e}")
        raise self.retry(exc=e, countdown=60 * (2 ** self.request.retries))


@shared_task(bind=True, max_retries=3)
def send_meeting_reminders(self):
    """Rappel des réunions de coordination prévues dans les 48 heures"""
    try:
        now = timezone.now()
        meetings = CoordinationMeeting.objects.select_related(
            'student', 'mentor', 'pedagogical_supervisor'
        ).filter(
            status__in=[MeetingStatus.PLANNED, MeetingStatus.POSTPONED],
            meeting_date__range=[now, now + timedelta(hours=REMINDER_HOURS)],
            reminder_sent_at__isnull=True,
        )
        logger.info(f"Début envoi des rappels de réunion: {len(meetings)} réunion(s)")

        sent = 0
        failed = 0
        for meeting in meetings:
            if send_meeting_reminder(meeting):
                meeting.reminder_sent_at = timezone.now()
                meeting.save(update_fields=['reminder_sent_at', 'updated_at'])
                sent += 1
            else:
                failed += 1

        logger.info(f"Rappels terminés: {sent} envoyé(s), {failed} échec(s)")
        return {
            'success': True,
            'sent': sent,
            'failed': failed,
        }

    except Exception as e:
        logger.error(f"Erreur envoi des rappels de réunion: {e}")
        raise self.retry(exc=e, countdown=60 * (2 ** self.request.retries))


@shared_task(bind=True, max_retries=3)
def report_overdue_assignments(self):
    """Signale à chaque tuteur les missions dont l'échéance est dépassée"""
    try:
        by_mentor = defaultdict(list)
        for assignment in get_overdue_assignments().select_related('mission__supervisor'):
            by_mentor[assignment.mission.supervisor].append(assignment)

        total = sum(len(assignments) for assignments in by_mentor.values())
        logger.info(f"Missions en retard: {total} affectation(s) pour {len(by_mentor)} tuteur(s)")

        notified = 0
        for mentor, assignments in by_mentor.items():
            if send_overdue_assignments_report(mentor, assignments):
                notified += 1

        return {
            'success': True,
            'overdue': total,
            'mentors_notified': notified,
        }

    except Exception as e:
        logger.error(f"Erreur signalement des missions en retard: {e}")
        raise self.retry(exc=e, countdown=60 * (2 ** self.request.retries))
