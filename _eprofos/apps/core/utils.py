import math

from django.utils.text import slugify


def unique_slugify(instance, value, slug_field='slug', max_length=None, queryset=None):
    """Génère un slug unique pour l'instance à partir de `value`"""
    field = instance._meta.get_field(slug_field)
    max_length = max_length or field.max_length
    base = slugify(value)[:max_length].strip('-') or 'element'

    if queryset is None:
        queryset = instance.__class__._default_manager.all()
    if instance.pk:
        queryset = queryset.exclude(pk=instance.pk)

    slug = base
    counter = 2
    while queryset.filter(**{slug_field: slug}).exists():
        suffix = f'-{counter}'
        slug = f'{base[:max_length - len(suffix)]}{suffix}'
        counter += 1
    return slug


def format_minutes(minutes):
    """Formate une durée en minutes : '45 min', '2h', '2h 30min'"""
    minutes = int(minutes or 0)
    if minutes < 60:
        return f'{minutes} min'

    hours, remaining = divmod(minutes, 60)
    if remaining == 0:
        return f'{hours}h'
    return f'{hours}h {remaining}min'


def format_hours(hours, hours_per_day=8):
    """Formate une durée en heures, convertie en jours au-delà d'une journée"""
    hours = int(hours or 0)
    if hours < hours_per_day:
        return f'{hours}h'

    days, remaining = divmod(hours, hours_per_day)
    result = f"{days} jour{'s' if days > 1 else ''}"
    if remaining:
        result += f' {remaining}h'
    return result


def format_weeks(weeks):
    """Formate une durée en semaines : '1 semaine', '30 semaines', '2 ans et 3 semaines'"""
    weeks = int(weeks or 0)
    if weeks < 52:
        return f"{weeks} semaine{'s' if weeks > 1 else ''}"

    years, remaining = divmod(weeks, 52)
    result = f"{years} an{'s' if years > 1 else ''}"
    if remaining:
        result += f" et {remaining} semaine{'s' if remaining > 1 else ''}"
    return result


def minutes_to_hours(minutes, round_up=True):
    """Convertit des minutes en heures entières"""
    minutes = minutes or 0
    if round_up:
        return math.ceil(minutes / 60)
    return round(minutes / 60)


def hours_to_minutes(hours):
    return int((hours or 0) * 60)


def parse_lines(value):
    """Découpe un texte multi-lignes en liste d'éléments non vides"""
    if not value:
        return []
    if isinstance(value, (list, tuple)):
        return [str(item).strip() for item in value if str(item).strip()]
    return [line.strip() for line in str(value).splitlines() if line.strip()]


def percentage(part, total, digits=1):
    """Pourcentage arrondi, 0 si le total est nul"""
    if not total:
        return 0
    return round(part / total * 100, digits)


def eprofos_setting(name, default=None):
    """Paramètre métier déclaré dans settings.EPROFOS"""
    from django.conf import settings
    return getattr(settings, 'EPROFOS', {}).get(name, default)


def months_between(start, end):
    """Nombre de mois entiers entre deux dates"""
    if not start or not end:
        return 0
    months = (end.year - start.year) * 12 + (end.month - start.month)
    if end.day < start.day:
        months -= 1
    return max(0, months)
