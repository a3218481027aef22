import logging

from django.db.models.signals import post_save, post_delete
from django.dispatch import receiver

from .models import Formation, Module, Chapter, Course, Exercise, QCM, SessionRegistration, Session
from .services.durations import DurationCalculationService

logger = logging.getLogger(__name__)

DURATION_FIELDS = {'duration_minutes', 'duration_hours', 'updated_at'}
ORDER_FIELDS = {'order_index', 'updated_at'}


def is_duration_update(kwargs):
    """Sauvegardes déclenchées par le recalcul lui-même"""
    update_fields = kwargs.get('update_fields')
    return bool(update_fields) and set(update_fields) <= DURATION_FIELDS


def is_order_update(kwargs):
    update_fields = kwargs.get('update_fields')
    return bool(update_fields) and set(update_fields) <= ORDER_FIELDS


@receiver(post_save, sender=Course)
@receiver(post_delete, sender=Course)
def update_chapter_duration_from_course(sender, instance, **kwargs):
    """Recalcule la durée du chapitre quand un cours change"""
    if is_duration_update(kwargs) or is_order_update(kwargs):
        return
    chapter = Chapter.objects.filter(pk=instance.chapter_id).first()
    if chapter is not None:
        DurationCalculationService().update_chapter(chapter)


@receiver(post_save, sender=Exercise)
@receiver(post_delete, sender=Exercise)
@receiver(post_save, sender=QCM)
@receiver(post_delete, sender=QCM)
def update_chapter_duration_from_activity(sender, instance, **kwargs):
    """Les exercices et QCM actifs comptent dans la durée du cours"""
    if is_order_update(kwargs):
        return
    chapter = Chapter.objects.filter(courses__pk=instance.course_id).first()
    if chapter is not None:
        DurationCalculationService().update_chapter(chapter)


@receiver(post_save, sender=Chapter)
@receiver(post_delete, sender=Chapter)
def update_module_duration(sender, instance, **kwargs):
    if is_duration_update(kwargs) or is_order_update(kwargs):
        return
    module = Module.objects.filter(pk=instance.module_id).first()
    if module is not None:
        DurationCalculationService().update_module(module)


@receiver(post_save, sender=Module)
@receiver(post_delete, sender=Module)
def update_formation_duration(sender, instance, **kwargs):
    if is_duration_update(kwargs) or is_order_update(kwargs):
        return
    formation = Formation.objects.filter(pk=instance.formation_id).first()
    if formation is not None:
        DurationCalculationService().update_formation(formation)


@receiver(post_save, sender=SessionRegistration)
@receiver(post_delete, sender=SessionRegistration)
def update_session_registrations_count(sender, instance, **kwargs):
    """Maintient le nombre d'inscrits de la session"""
    session = Session.objects.filter(pk=instance.session_id).first()
    if session is None:
        return
    previous = session.current_registrations
    current = session.update_registrations_count()
    if previous != current:
        logger.info(f"Session {session.pk}: inscrits {previous} -> {current}")
