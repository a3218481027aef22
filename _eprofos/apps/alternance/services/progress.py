# apps/alternance/services/progress.py
import logging

from django.db.models import OuterRef, Subquery

from apps.core.utils import eprofos_setting
from ..models import ProgressAssessment

logger = logging.getLogger(__name__)


def prepare_progress_assessment(assessment, previous=None):
    """
    Calcule la progression globale et le niveau de risque d'une évaluation.

    La matrice de compétences reprend les niveaux de l'évaluation précédente
    pour calculer les tendances (new, improving, declining, stable).
    """
    new_skills = dict(assessment.skills_matrix or {})
    previous_matrix = previous.skills_matrix if previous is not None else None
    assessment.skills_matrix = dict(previous_matrix or {})
    for code, skill in new_skills.items():
        name = skill.get('name') or (assessment.skills_matrix.get(code) or {}).get('name')
        assessment.update_skill(code, skill.get('level', 0), name=name)

    assessment.calculate_overall_progression()
    assessment.calculate_risk_level()
    logger.debug(
        f"Évaluation de progression {assessment.student_id}: "
        f"{assessment.overall_progression}% (risque {assessment.risk_level})"
    )
    return assessment


def get_previous_assessment(student, before=None):
    queryset = ProgressAssessment.objects.filter(student=student)
    if before is not None:
        queryset = queryset.filter(period__lt=before)
    return queryset.order_by('-period', '-created_at').first()


def get_latest_assessments():
    """Dernière évaluation de progression de chaque alternant"""
    latest = ProgressAssessment.objects.filter(
        student=OuterRef('student')
    ).order_by('-period', '-created_at').values('pk')[:1]
    return ProgressAssessment.objects.select_related('student').filter(
        pk=Subquery(latest)
    )


def get_students_at_risk(threshold=None):
    """Évaluations les plus récentes dont le niveau de risque atteint le seuil"""
    threshold = threshold or eprofos_setting('RISK_ALERT_LEVEL', 4)
    return get_latest_assessments().filter(risk_level__gte=threshold).order_by('-risk_level', 'period')


def get_progression_history(student):
    """Historique chronologique de la progression d'un alternant"""
    history = []
    for assessment in ProgressAssessment.objects.filter(student=student).order_by('period', 'created_at'):
        history.append({
            'period': assessment.period,
            'center': float(assessment.center_progression),
            'company': float(assessment.company_progression),
            'overall': float(assessment.overall_progression),
            'risk_level': assessment.risk_level,
        })
    return history


def refresh_risk_levels():
    """Recalcule le risque des dernières évaluations ; retourne le nombre de changements"""
    changed = 0
    for assessment in get_latest_assessments():
        old_level = assessment.risk_level
        assessment.calculate_overall_progression()
        new_level = assessment.calculate_risk_level()
        if new_level != old_level:
            assessment.save(update_fields=['overall_progression', 'risk_level', 'updated_at'])
            logger.info(f"Risque de {assessment.student}: {old_level} -> {new_level}")
            changed += 1
    return changed
