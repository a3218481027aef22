# apps/alternance/services/validation.py
"""
Contrôles de conformité Qualiopi des contrats et programmes d'alternance.

Chaque contrôle retourne un dictionnaire {errors, warnings, is_compliant} :
les erreurs bloquent la validation, les avertissements sont informatifs.
"""
import logging

from django.utils import timezone

from apps.core.utils import eprofos_setting
from apps.core.validators import is_valid_siret
from apps.training.models import AlternanceType

logger = logging.getLogger(__name__)

REGULAR_COORDINATION_FREQUENCIES = ('mensuelle', 'bimensuelle', 'hebdomadaire')
MIN_JOB_DESCRIPTION_LENGTH = 100


def minimum_weeks(contract_type):
    if contract_type == AlternanceType.APPRENTISSAGE:
        return eprofos_setting('APPRENTISSAGE_MIN_WEEKS', 26)
    if contract_type == AlternanceType.PROFESSIONNALISATION:
        return eprofos_setting('PROFESSIONNALISATION_MIN_WEEKS', 12)
    return 0


def weekly_hours_bounds():
    return eprofos_setting('MIN_WEEKLY_HOURS', 20), eprofos_setting('MAX_WEEKLY_HOURS', 35)


def validate_contract(contract):
    """Vérifie un contrat au regard des critères Qualiopi 2.1, 2.3 et 2.4"""
    errors = []
    warnings = []

    if not contract.company_siret:
        errors.append("Le SIRET de l'entreprise est obligatoire pour la conformité Qualiopi.")

    if not contract.learning_objectives:
        errors.append("Les objectifs pédagogiques sont obligatoires (Qualiopi 2.1).")

    if not contract.company_objectives:
        errors.append("Les objectifs en entreprise sont obligatoires (Qualiopi 2.1).")

    weeks = contract.duration_in_weeks
    if contract.contract_type == AlternanceType.APPRENTISSAGE and weeks < minimum_weeks(contract.contract_type):
        errors.append("Un contrat d'apprentissage doit durer au minimum 6 mois (Qualiopi 2.3).")
    if contract.contract_type == AlternanceType.PROFESSIONNALISATION \
            and weeks < minimum_weeks(contract.contract_type):
        errors.append("Un contrat de professionnalisation doit durer au minimum 3 mois (Qualiopi 2.3).")

    min_hours, max_hours = weekly_hours_bounds()
    total_hours = contract.total_weekly_hours
    if total_hours < min_hours:
        warnings.append(f"Le volume horaire hebdomadaire semble faible (moins de {min_hours}h).")
    if total_hours > max_hours:
        errors.append(f"Le volume horaire hebdomadaire ne peut pas dépasser {max_hours}h pour un alternant.")

    if not contract.mentor_id:
        errors.append("Un tuteur entreprise doit être désigné (Qualiopi 2.4).")

    if not contract.pedagogical_supervisor_id:
        errors.append("Un référent pédagogique doit être désigné (Qualiopi 2.4).")

    if contract.job_description and len(contract.job_description) < MIN_JOB_DESCRIPTION_LENGTH:
        warnings.append("La description du poste pourrait être plus détaillée pour une meilleure traçabilité.")

    if not contract.remuneration:
        warnings.append("La rémunération devrait être précisée pour la transparence.")

    logger.debug(
        f"Conformité contrat {contract.pk}: {len(errors)} erreur(s), {len(warnings)} avertissement(s)"
    )
    return {
        'errors': errors,
        'warnings': warnings,
        'is_compliant': not errors,
    }


def meets_legal_minimums(contract):
    """Minimums légaux : SIRET, durée, encadrement et volume horaire"""
    if not is_valid_siret(contract.company_siret):
        return False

    if contract.duration_in_weeks < minimum_weeks(contract.contract_type):
        return False

    if not contract.mentor_id or not contract.pedagogical_supervisor_id:
        return False

    return validate_weekly_hours(contract)


def validate_contract_dates(contract):
    """Un contrat dure au moins 4 semaines ; un nouveau contrat commence dans le futur"""
    if not contract.start_date or not contract.end_date:
        return False

    if contract.duration_in_days < eprofos_setting('CONTRACT_MIN_DAYS', 28):
        return False

    if contract._state.adding and contract.start_date <= timezone.localdate():
        return False

    return True


def validate_weekly_hours(contract):
    min_hours, max_hours = weekly_hours_bounds()
    return min_hours <= contract.total_weekly_hours <= max_hours


def has_regular_coordination(points):
    for point in points:
        if isinstance(point, dict):
            frequency = str(point.get('frequency', '')).lower()
            if frequency in REGULAR_COORDINATION_FREQUENCIES:
                return True
        elif any(frequency in str(point).lower() for frequency in REGULAR_COORDINATION_FREQUENCIES):
            return True
    return False


def validate_program(program):
    """Vérifie un programme au regard des critères Qualiopi 2.1, 2.2, 2.4 et 2.5"""
    errors = []
    warnings = []

    if not program.has_consistent_durations:
        errors.append("La répartition des durées centre/entreprise doit être cohérente (Qualiopi 2.2).")

    if (program.total_duration or 0) < 26:
        warnings.append("La durée totale du programme semble courte pour un parcours d'alternance.")

    center_percentage = program.center_duration_percentage
    if center_percentage < 20:
        warnings.append("Le temps en centre de formation semble insuffisant (moins de 20%).")
    if center_percentage > 80:
        warnings.append("Le temps en entreprise semble insuffisant (moins de 20%).")

    if not program.center_modules:
        errors.append("Des modules en centre de formation doivent être définis (Qualiopi 2.1).")

    if not program.company_modules:
        errors.append("Des modules en entreprise doivent être définis (Qualiopi 2.1).")

    if not program.coordination_points:
        errors.append("Des points de coordination doivent être prévus (Qualiopi 2.4).")
    elif not has_regular_coordination(program.coordination_points):
        warnings.append("Une coordination régulière (au moins mensuelle) est recommandée (Qualiopi 2.4).")

    if not program.assessment_periods:
        errors.append("Des périodes d'évaluation doivent être définies (Qualiopi 2.5).")

    if not program.learning_progression:
        warnings.append("Une progression pédagogique structurée améliore la traçabilité (Qualiopi 2.2).")

    return {
        'errors': errors,
        'warnings': warnings,
        'is_compliant': not errors,
    }
