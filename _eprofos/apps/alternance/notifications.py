# apps/alternance/notifications.py
import logging

from django.conf import settings
from django.core.mail import EmailMessage
from django.template.loader import render_to_string
from django.utils import timezone

logger = logging.getLogger(__name__)


def _send_html_email(subject, template_name, context, recipients):
    recipients = [email for email in dict.fromkeys(recipients) if email]
    if not recipients:
        logger.warning(f"Email « {subject} » non envoyé: aucun destinataire")
        return False

    context = {'site_name': getattr(settings, 'SITE_NAME', 'EPROFOS'), **context}
    email = EmailMessage(
        subject=subject,
        body=render_to_string(template_name, context),
        from_email=settings.DEFAULT_FROM_EMAIL,
        to=recipients,
    )
    email.content_subtype = 'html'

    try:
        sent = email.send()
    except Exception as e:
        logger.error(f"Erreur envoi email « {subject} »: {e}", exc_info=True)
        return False

    if sent:
        logger.info(f"Email « {subject} » envoyé à {', '.join(recipients)}")
        return True
    logger.error(f"Échec envoi email « {subject} »")
    return False


def meeting_recipients(meeting):
    people = [meeting.student, meeting.mentor, meeting.pedagogical_supervisor]
    return [person.email for person in people if person is not None]


def send_meeting_reminder(meeting):
    """Rappel de réunion de coordination aux participants"""
    date_label = timezone.localtime(meeting.meeting_date).strftime('%d/%m/%Y à %H:%M')
    return _send_html_email(
        f"Rappel : réunion de coordination le {date_label}",
        'alternance/emails/meeting_reminder.html',
        {'meeting': meeting, 'date_label': date_label},
        meeting_recipients(meeting),
    )


def send_overdue_assignments_report(mentor, assignments):
    """Liste des missions en retard envoyée au tuteur entreprise"""
    return _send_html_email(
        f"{len(assignments)} mission(s) en retard à suivre",
        'alternance/emails/overdue_assignments.html',
        {'mentor': mentor, 'assignments': assignments},
        [mentor.email],
    )
