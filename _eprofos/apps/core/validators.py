from django.core.exceptions import ValidationError
from django.utils.translation import gettext_lazy as _
import re

SIRET_PATTERN = re.compile(r'^\d{14}$')


def validate_phone_number(value):
    """Valide un numéro de téléphone"""
    # Numéros français, formats national ou international
    pattern = r'^(\+33\s?|0)[1-9]([\s.\-]?[0-9]{2}){4}$'
    if not re.match(pattern, value):
        raise ValidationError(
            _('Numéro de téléphone invalide. Format attendu: 01 23 45 67 89 ou +33 1 23 45 67 89')
        )


def is_valid_siret(value):
    return bool(value) and bool(SIRET_PATTERN.match(value))


def validate_siret(value):
    """Valide un numéro SIRET (14 chiffres)"""
    if not is_valid_siret(value):
        raise ValidationError(
            _('Le SIRET doit contenir exactement 14 chiffres.')
        )


def validate_score(value, min_score=0, max_score=20):
    """Valide une note sur 20"""
    if value < min_score or value > max_score:
        raise ValidationError(
            _('La note doit être comprise entre %(min)s et %(max)s.') % {
                'min': min_score,
                'max': max_score
            }
        )
