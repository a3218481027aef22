# apps/training/services/schedule.py

import logging
import re

from django.conf import settings

from apps.core.utils import format_minutes

logger = logging.getLogger(__name__)

MORNING = 'morning'
AFTERNOON = 'afternoon'
ITEM_TYPES = ('module', 'chapter', 'course')

ITEM_TYPE_CLASSES = {
    'module': 'bg-primary',
    'chapter': 'bg-info',
    'course': 'bg-success',
}

ITEM_TYPE_ICONS = {
    'module': 'book',
    'chapter': 'file-text',
    'course': 'play-circle',
}

ITEM_TYPE_LABELS = {
    'module': 'Module',
    'chapter': 'Chapitre',
    'course': 'Cours',
}

PART_SUFFIX = re.compile(r'\s*\(partie\s+\d+\)$')


class FormationScheduleService:
    """
    Découpage d'une formation en journées de deux demi-journées.

    Les modules, chapitres et cours actifs sont posés dans l'ordre sur un
    calendrier matin / après-midi. Un élément plus long que le temps restant
    dans la demi-journée est découpé en parties.
    """

    MORNING_LABEL = 'Matin'
    AFTERNOON_LABEL = 'Après-midi'

    def __init__(self):
        config = getattr(settings, 'EPROFOS', {})
        self.morning_duration = config.get('MORNING_SESSION_MINUTES', 210)
        self.afternoon_duration = config.get('AFTERNOON_SESSION_MINUTES', 210)
        self.module_duration = config.get('MODULE_PRESENTATION_MINUTES', 30)
        self.chapter_duration = config.get('CHAPTER_PRESENTATION_MINUTES', 15)

    @property
    def daily_duration(self):
        return self.morning_duration + self.afternoon_duration

    def calculate_formation_schedule(self, formation):
        """Calcule le planning complet d'une formation"""
        modules = list(formation.get_active_modules())

        if not modules:
            logger.info(f"Planning formation {formation.pk}: aucun module actif")
            return {
                'formation': formation,
                'total_duration': 0,
                'total_days': 0,
                'days': [],
                'summary': self.create_empty_summary(),
            }

        items = self.get_scheduled_items(modules)
        total_duration = sum(item['duration_minutes'] for item in items)
        days = self.organize_into_days(items)
        summary = self.calculate_summary(items, days)

        logger.info(
            f"Planning formation {formation.pk}: {len(items)} éléments, "
            f"{format_minutes(total_duration)} sur {len(days)} jour(s)"
        )

        return {
            'formation': formation,
            'total_duration': total_duration,
            'total_days': len(days),
            'days': days,
            'summary': summary,
        }

    # ------------------------------------------------------------------
    # Construction des éléments
    # ------------------------------------------------------------------

    def get_scheduled_items(self, modules):
        """Liste ordonnée des éléments à planifier"""
        items = []

        for module in modules:
            chapters = list(module.get_active_chapters())
            items.append({
                'id': f'module_{module.pk}',
                'type': 'module',
                'entity': module,
                'title': module.title,
                'description': module.description,
                'duration_minutes': self.module_duration,
                'learning_objectives': module.learning_objectives,
                'teaching_methods': module.teaching_methods,
                'evaluation_methods': module.evaluation_methods,
                'prerequisites': module.prerequisites,
                'order_index': module.order_index,
                'has_sub_items': bool(chapters),
                'original_duration': self.module_duration,
                'is_segment': False,
            })

            for chapter in chapters:
                courses = list(chapter.get_active_courses())
                items.append({
                    'id': f'chapter_{chapter.pk}',
                    'type': 'chapter',
                    'entity': chapter,
                    'title': chapter.title,
                    'description': chapter.description,
                    'duration_minutes': self.chapter_duration,
                    'learning_objectives': chapter.learning_objectives,
                    'teaching_methods': chapter.teaching_methods,
                    'assessment_methods': chapter.assessment_methods,
                    'prerequisites': chapter.prerequisites,
                    'order_index': chapter.order_index,
                    'module_title': module.title,
                    'has_sub_items': bool(courses),
                    'original_duration': self.chapter_duration,
                    'is_segment': False,
                })

                for course in courses:
                    items.append({
                        'id': f'course_{course.pk}',
                        'type': 'course',
                        'entity': course,
                        'title': course.title,
                        'description': course.description,
                        'duration_minutes': course.duration_minutes,
                        'learning_objectives': course.learning_objectives,
                        'teaching_methods': course.teaching_methods,
                        'assessment_methods': course.assessment_methods,
                        'prerequisites': course.prerequisites,
                        'course_type': course.type,
                        'order_index': course.order_index,
                        'chapter_title': chapter.title,
                        'module_title': module.title,
                        'has_sub_items': False,
                        'exercise_count': course.exercises.filter(is_active=True).count(),
                        'qcm_count': course.qcms.filter(is_active=True).count(),
                        'original_duration': course.duration_minutes,
                        'is_segment': False,
                    })

        return items

    # ------------------------------------------------------------------
    # Répartition en journées
    # ------------------------------------------------------------------

    def session_duration(self, session):
        return self.morning_duration if session == MORNING else self.afternoon_duration

    def create_day(self, day_number):
        return {
            'day_number': day_number,
            MORNING: {'session': self.MORNING_LABEL, 'duration': 0, 'items': []},
            AFTERNOON: {'session': self.AFTERNOON_LABEL, 'duration': 0, 'items': []},
            'total_duration': 0,
        }

    def create_segment(self, item, duration, segment_number, is_split):
        segment = dict(item)
        segment['duration_minutes'] = duration
        segment['is_segment'] = is_split
        segment['segment_number'] = segment_number
        segment['is_continuation'] = is_split and segment_number > 1
        if is_split:
            segment['title'] = f"{item['title']} (partie {segment_number})"
        return segment

    def organize_into_days(self, items):
        """Pose les éléments sur les demi-journées, en les découpant si nécessaire"""
        days = []
        day_number = 1
        session = MORNING
        used = 0

        for item in items:
            remaining = item['duration_minutes'] or 0
            if remaining <= 0:
                continue

            segment_number = 1
            while remaining > 0:
                available = self.session_duration(session) - used
                if available <= 0:
                    if session == MORNING:
                        session = AFTERNOON
                    else:
                        session = MORNING
                        day_number += 1
                    used = 0
                    continue

                # Les jours ne sont créés qu'au moment d'y poser un élément
                if len(days) < day_number:
                    days.append(self.create_day(day_number))
                day = days[day_number - 1]

                duration = min(remaining, available)
                is_split = segment_number > 1 or remaining > available
                day[session]['items'].append(
                    self.create_segment(item, duration, segment_number, is_split)
                )
                day[session]['duration'] += duration
                day['total_duration'] += duration

                used += duration
                remaining -= duration
                segment_number += 1

        return days

    # ------------------------------------------------------------------
    # Statistiques
    # ------------------------------------------------------------------

    def create_empty_summary(self):
        return {
            'total_items': 0,
            'total_segments': 0,
            'split_items': 0,
            'items_by_type': {item_type: 0 for item_type in ITEM_TYPES},
            'segments_by_type': {item_type: 0 for item_type in ITEM_TYPES},
            'duration_by_type': {item_type: 0 for item_type in ITEM_TYPES},
            'total_duration': 0,
            'average_day_duration': 0,
            'total_days': 0,
            'total_morning_sessions': 0,
            'total_afternoon_sessions': 0,
            'total_exercises': 0,
            'total_qcms': 0,
        }

    def calculate_summary(self, items, days):
        summary = self.create_empty_summary()
        summary['total_days'] = len(days)

        # Éléments d'origine, comptés une seule fois
        seen = set()
        for item in items:
            if item['id'] in seen:
                continue
            seen.add(item['id'])
            item_type = item['type']
            summary['total_items'] += 1
            summary['items_by_type'][item_type] += 1
            summary['total_duration'] += item['original_duration']
            summary['duration_by_type'][item_type] += item['original_duration']
            if item_type == 'course':
                summary['total_exercises'] += item.get('exercise_count', 0)
                summary['total_qcms'] += item.get('qcm_count', 0)

        split_ids = set()
        for day in days:
            for session in (MORNING, AFTERNOON):
                segments = day[session]['items']
                if not segments:
                    continue
                if session == MORNING:
                    summary['total_morning_sessions'] += 1
                else:
                    summary['total_afternoon_sessions'] += 1
                for segment in segments:
                    summary['total_segments'] += 1
                    summary['segments_by_type'][segment['type']] += 1
                    if self.is_split_item(segment):
                        split_ids.add(segment['id'])
        summary['split_items'] = len(split_ids)

        if summary['total_days']:
            summary['average_day_duration'] = summary['total_duration'] / summary['total_days']

        return summary

    # ------------------------------------------------------------------
    # Aides à l'affichage
    # ------------------------------------------------------------------

    def format_duration(self, minutes):
        return format_minutes(minutes)

    def get_item_type_class(self, item_type):
        return ITEM_TYPE_CLASSES.get(item_type, 'bg-secondary')

    def get_item_type_icon(self, item_type):
        return ITEM_TYPE_ICONS.get(item_type, 'circle')

    def get_item_type_label(self, item_type):
        return ITEM_TYPE_LABELS.get(item_type, 'Élément')

    def is_continuation_segment(self, item):
        return item.get('is_continuation') is True

    def is_split_item(self, item):
        return item.get('is_segment') is True

    def get_original_duration(self, item):
        return item.get('original_duration', item['duration_minutes'])

    def get_segment_info(self, item):
        if not self.is_split_item(item):
            return None
        return f"Partie {item.get('segment_number', 1)}"

    def get_segment_completion_percentage(self, item):
        """Part de l'élément d'origine couverte par ce segment"""
        if not self.is_split_item(item):
            return 100.0
        original = self.get_original_duration(item)
        if original <= 0:
            return 0.0
        return round(item['duration_minutes'] / original * 100, 1)

    def get_continuation_class(self, item):
        return 'continuation-segment' if self.is_continuation_segment(item) else ''

    def get_display_title(self, item):
        if not self.is_split_item(item):
            return item['title']

        title = PART_SUFFIX.sub('', item['title'])
        if self.is_continuation_segment(item) and '(suite)' not in title:
            return f'{title} (suite)'
        return title

    def decorate(self, schedule):
        """Ajoute les informations d'affichage à chaque segment du planning"""
        for day in schedule['days']:
            for session in (MORNING, AFTERNOON):
                for item in day[session]['items']:
                    item['display_title'] = self.get_display_title(item)
                    item['type_class'] = self.get_item_type_class(item['type'])
                    item['type_icon'] = self.get_item_type_icon(item['type'])
                    item['type_label'] = self.get_item_type_label(item['type'])
                    item['segment_info'] = self.get_segment_info(item)
                    item['completion_percentage'] = self.get_segment_completion_percentage(item)
                    item['continuation_class'] = self.get_continuation_class(item)
                    item['formatted_duration'] = self.format_duration(item['duration_minutes'])
        return schedule
