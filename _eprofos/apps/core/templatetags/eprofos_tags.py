from django import template

from apps.core.utils import format_minutes, format_hours, format_weeks

register = template.Library()


@register.filter
def duration(minutes):
    """Durée en minutes lisible"""
    return format_minutes(minutes)


@register.filter
def hours(value):
    return format_hours(value)


@register.filter
def weeks(value):
    return format_weeks(value)


@register.filter
def active_badge(value):
    """Classe Bootstrap d'un indicateur actif/inactif"""
    return 'bg-success' if value else 'bg-secondary'


@register.filter
def get_item(mapping, key):
    if isinstance(mapping, dict):
        return mapping.get(key)
    return None
