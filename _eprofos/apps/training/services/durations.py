# apps/training/services/durations.py

import logging

from django.db import transaction

from apps.core.utils import minutes_to_hours, format_minutes, format_hours

logger = logging.getLogger(__name__)


class DurationCalculationService:
    """
    Calcul des durées en cascade : cours -> chapitre -> module -> formation.

    Un cours dure sa durée propre plus ses exercices et QCM actifs.
    Un chapitre cumule ses cours actifs, un module ses chapitres actifs
    (arrondi à l'heure supérieure), une formation ses modules actifs.
    """

    def calculate_course_duration(self, course):
        """Durée totale d'un cours en minutes"""
        total = course.duration_minutes or 0

        for exercise in course.exercises.filter(is_active=True):
            total += exercise.estimated_duration_minutes or 0

        for qcm in course.qcms.filter(is_active=True):
            total += qcm.time_limit_minutes or 0

        return total

    def calculate_chapter_duration(self, chapter):
        """Durée d'un chapitre en minutes, 0 sans cours actif"""
        return sum(
            self.calculate_course_duration(course)
            for course in chapter.courses.filter(is_active=True)
        )

    def calculate_module_duration(self, module):
        """Durée d'un module en heures"""
        total_minutes = sum(
            self.calculate_chapter_duration(chapter)
            for chapter in module.chapters.filter(is_active=True)
        )
        return minutes_to_hours(total_minutes, round_up=True)

    def calculate_formation_duration(self, formation):
        """Durée d'une formation en heures"""
        return sum(
            self.calculate_module_duration(module)
            for module in formation.modules.filter(is_active=True)
        )

    # Mise à jour en cascade

    def update_chapter(self, chapter, cascade=True):
        new_duration = self.calculate_chapter_duration(chapter)
        if new_duration != chapter.duration_minutes:
            logger.info(f"Chapitre {chapter.pk}: durée {chapter.duration_minutes} -> {new_duration} min")
            chapter.duration_minutes = new_duration
            chapter.save(update_fields=['duration_minutes', 'updated_at'])
        if cascade:
            self.update_module(chapter.module)

    def update_module(self, module, cascade=True):
        new_duration = self.calculate_module_duration(module)
        if new_duration != module.duration_hours:
            logger.info(f"Module {module.pk}: durée {module.duration_hours} -> {new_duration} h")
            module.duration_hours = new_duration
            module.save(update_fields=['duration_hours', 'updated_at'])
        if cascade:
            self.update_formation(module.formation)

    def update_formation(self, formation):
        new_duration = self.calculate_formation_duration(formation)
        if new_duration != formation.duration_hours:
            logger.info(f"Formation {formation.pk}: durée {formation.duration_hours} -> {new_duration} h")
            formation.duration_hours = new_duration
            formation.save(update_fields=['duration_hours', 'updated_at'])

    def sync_formation(self, formation):
        """Recalcule toute l'arborescence d'une formation"""
        with transaction.atomic():
            for module in formation.modules.all():
                for chapter in module.chapters.all():
                    self.update_chapter(chapter, cascade=False)
                self.update_module(module, cascade=False)
            self.update_formation(formation)
        formation.refresh_from_db(fields=['duration_hours'])
        return formation.duration_hours

    def get_duration_statistics(self, formation):
        """Résumé des durées calculées d'une formation"""
        modules = []
        for module in formation.modules.filter(is_active=True).order_by('order_index'):
            chapters = []
            for chapter in module.chapters.filter(is_active=True).order_by('order_index'):
                minutes = self.calculate_chapter_duration(chapter)
                chapters.append({
                    'title': chapter.title,
                    'duration_minutes': minutes,
                    'formatted': format_minutes(minutes),
                })
            hours = self.calculate_module_duration(module)
            modules.append({
                'title': module.title,
                'duration_hours': hours,
                'stored_duration_hours': module.duration_hours,
                'formatted': format_hours(hours),
                'chapters': chapters,
            })

        total_hours = sum(module['duration_hours'] for module in modules)
        return {
            'total_hours': total_hours,
            'stored_hours': formation.duration_hours,
            'is_synchronized': total_hours == formation.duration_hours,
            'formatted': format_hours(total_hours),
            'modules_count': len(modules),
            'chapters_count': sum(len(module['chapters']) for module in modules),
            'modules': modules,
        }
