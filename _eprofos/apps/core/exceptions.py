import logging

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class EprofosException(Exception):
    """Exception de base pour l'application EPROFOS"""
    pass


class InvalidStatusTransition(EprofosException):
    """Changement de statut interdit par le cycle de vie de l'objet"""

    def __init__(self, message, current=None, target=None):
        super().__init__(message)
        self.current = current
        self.target = target


class ComplianceException(EprofosException):
    """Exception pour les manquements de conformité Qualiopi"""

    def __init__(self, message, errors=None):
        super().__init__(message)
        self.errors = errors or []


def custom_exception_handler(exc, context):
    """Enveloppe uniforme des erreurs de l'API"""
    if isinstance(exc, EprofosException):
        logger.warning(f"Erreur métier API: {exc}")
        data = {'success': False, 'error': str(exc)}
        if isinstance(exc, ComplianceException) and exc.errors:
            data['details'] = exc.errors
        return Response(data, status=status.HTTP_400_BAD_REQUEST)

    response = exception_handler(exc, context)
    if response is not None:
        response.data = {
            'success': False,
            'error': response.data.get('detail', 'Requête invalide') if isinstance(response.data, dict) else 'Requête invalide',
            'details': response.data,
        }
    return response
