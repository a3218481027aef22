# apps/training/services/qualiopi.py

import logging

logger = logging.getLogger(__name__)

# (attribut, libellé au pluriel, libellé de l'absence)
OBJECTIVE_FAMILIES = [
    ('operational_objectives', 'objectifs opérationnels', 'Objectifs opérationnels manquants'),
    ('evaluable_objectives', 'objectifs évaluables', 'Objectifs évaluables manquants'),
    ('evaluation_criteria', "critères d'évaluation", "Critères d'évaluation manquants"),
    ('success_indicators', 'indicateurs de réussite', 'Indicateurs de réussite manquants'),
]

GENERAL_FIELDS = [
    'target_audience', 'access_modalities', 'handicap_accessibility',
    'teaching_methods', 'evaluation_methods', 'contact_info',
    'training_location', 'funding_modalities',
]

MIN_ITEMS_PER_FAMILY = 2


def validate_objectives(formation):
    """Vérifie le critère Qualiopi 2.5 (objectifs opérationnels et évaluables)"""
    errors = []
    for attribute, plural_label, missing_label in OBJECTIVE_FAMILIES:
        values = getattr(formation, attribute) or []
        if not values:
            errors.append(f"{missing_label} (requis Qualiopi 2.5)")
        elif len(values) < MIN_ITEMS_PER_FAMILY:
            errors.append(f"Au moins {MIN_ITEMS_PER_FAMILY} {plural_label} sont requis (Qualiopi 2.5)")
    return errors


def is_compliant_with_criteria_25(formation):
    return not validate_objectives(formation)


def calculate_objectives_score(formation):
    """Score de complétude des objectifs sur 100 (25 points par famille)"""
    score = 0
    for attribute, _, _ in OBJECTIVE_FAMILIES:
        score += min(25, len(getattr(formation, attribute) or []) * 5)
    return score


def calculate_overall_compliance(formation):
    """80 % pour les champs généraux, 20 % pour les objectifs"""
    filled = sum(1 for field in GENERAL_FIELDS if getattr(formation, field))
    basic = filled / len(GENERAL_FIELDS) * 80
    objectives = calculate_objectives_score(formation) / 100 * 20
    return round(basic + objectives, 1)


def generate_qualiopi_report(formation):
    errors = validate_objectives(formation)
    report = {
        'formation_id': str(formation.pk),
        'formation_title': formation.title,
        'critere_2_5': {
            'compliant': not errors,
            'errors': errors,
            'score': calculate_objectives_score(formation),
        },
        'general_qualiopi_fields': {
            field: bool(getattr(formation, field)) for field in GENERAL_FIELDS
        },
        'overall_compliance': calculate_overall_compliance(formation),
        'suggestions': compliance_suggestions(formation),
    }
    for attribute, _, _ in OBJECTIVE_FAMILIES:
        report['critere_2_5'][attribute] = getattr(formation, attribute) or []

    logger.debug(
        f"Rapport Qualiopi formation {formation.pk}: conformité {report['overall_compliance']}%, "
        f"{len(errors)} erreur(s) critère 2.5"
    )
    return report


def compliance_suggestions(formation):
    suggestions = []

    if not formation.operational_objectives:
        suggestions.append(
            "Ajoutez des objectifs opérationnels décrivant ce que les participants "
            "seront capables de faire après la formation"
        )
    if not formation.evaluable_objectives:
        suggestions.append("Définissez des objectifs évaluables avec des critères mesurables et quantifiables")
    if not formation.evaluation_criteria:
        suggestions.append("Précisez les critères d'évaluation pour mesurer l'atteinte des objectifs")
    if not formation.success_indicators:
        suggestions.append("Établissez des indicateurs de réussite pour suivre l'efficacité de la formation")
    if not formation.target_audience:
        suggestions.append("Décrivez le public cible de la formation")
    if not formation.access_modalities:
        suggestions.append("Précisez les modalités d'accès à la formation")
    if not formation.handicap_accessibility:
        suggestions.append(
            "Indiquez les dispositions pour l'accessibilité aux personnes en situation de handicap"
        )

    return suggestions
