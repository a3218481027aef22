# apps/alternance/services/contracts.py
import logging
from datetime import timedelta

from django.db import transaction
from django.db.models import Count
from django.db.models.functions import TruncMonth
from django.utils import timezone

from apps.core.exceptions import InvalidStatusTransition, ComplianceException
from apps.core.utils import eprofos_setting
from ..models import AlternanceContract, ContractStatus
from .validation import validate_contract

logger = logging.getLogger(__name__)

# Statut courant -> statuts atteignables
CONTRACT_TRANSITIONS = {
    ContractStatus.DRAFT: {ContractStatus.PENDING_VALIDATION},
    ContractStatus.PENDING_VALIDATION: {ContractStatus.VALIDATED},
    ContractStatus.VALIDATED: {ContractStatus.ACTIVE},
    ContractStatus.ACTIVE: {ContractStatus.SUSPENDED, ContractStatus.COMPLETED, ContractStatus.TERMINATED},
    ContractStatus.SUSPENDED: {ContractStatus.ACTIVE, ContractStatus.COMPLETED, ContractStatus.TERMINATED},
    ContractStatus.COMPLETED: set(),
    ContractStatus.TERMINATED: set(),
}

STATUS_UPDATE_FIELDS = ['status', 'validated_at', 'started_at', 'completed_at', 'additional_data', 'updated_at']


def allowed_transitions(contract):
    return sorted(CONTRACT_TRANSITIONS.get(contract.status, set()))


class ContractLifecycleService:
    """Cycle de vie d'un contrat : brouillon, validation, exécution, clôture"""

    def __init__(self, user=None):
        self.user = user

    @property
    def username(self):
        return getattr(self.user, 'username', 'système')

    def change_status(self, contract, target, reason=''):
        """Applique une transition ; lève InvalidStatusTransition si elle est interdite"""
        current = contract.status
        if target not in ContractStatus.values:
            raise InvalidStatusTransition(f"Statut inconnu : {target}", current=current, target=target)

        if target not in CONTRACT_TRANSITIONS.get(current, set()):
            logger.warning(
                f"Contrat {contract.pk}: transition {current} -> {target} refusée ({self.username})"
            )
            raise InvalidStatusTransition(
                f"Impossible de passer le contrat du statut « {ContractStatus(current).label} » "
                f"au statut « {ContractStatus(target).label} ».",
                current=current,
                target=target,
            )

        if target == ContractStatus.VALIDATED:
            report = validate_contract(contract)
            if not report['is_compliant']:
                logger.warning(
                    f"Contrat {contract.pk}: validation refusée, {len(report['errors'])} non-conformité(s)"
                )
                raise ComplianceException(
                    "Le contrat ne respecte pas les exigences Qualiopi et ne peut pas être validé.",
                    errors=report['errors'],
                )

        now = timezone.now()
        data = dict(contract.additional_data or {})
        if target == ContractStatus.VALIDATED:
            contract.validated_at = now
        elif target == ContractStatus.ACTIVE and current == ContractStatus.VALIDATED:
            contract.started_at = now
        elif target == ContractStatus.ACTIVE and current == ContractStatus.SUSPENDED:
            data['resumed_at'] = now.isoformat()
        elif target == ContractStatus.SUSPENDED:
            data['suspended_at'] = now.isoformat()
            if reason:
                data['suspension_reason'] = reason
        elif target == ContractStatus.TERMINATED:
            data['terminated_at'] = now.isoformat()
            data['termination_reason'] = reason
        elif target == ContractStatus.COMPLETED:
            contract.completed_at = now

        contract.status = target
        contract.additional_data = data
        contract.save(update_fields=STATUS_UPDATE_FIELDS)

        logger.info(f"Contrat {contract.pk}: statut {current} -> {target} par {self.username}")
        return contract

    def submit(self, contract):
        return self.change_status(contract, ContractStatus.PENDING_VALIDATION)

    def validate(self, contract):
        return self.change_status(contract, ContractStatus.VALIDATED)

    def start(self, contract):
        return self.change_status(contract, ContractStatus.ACTIVE)

    def suspend(self, contract, reason=''):
        return self.change_status(contract, ContractStatus.SUSPENDED, reason)

    def resume(self, contract):
        if contract.status != ContractStatus.SUSPENDED:
            raise InvalidStatusTransition(
                "Seuls les contrats suspendus peuvent être repris.",
                current=contract.status,
                target=ContractStatus.ACTIVE,
            )
        return self.change_status(contract, ContractStatus.ACTIVE)

    def complete(self, contract):
        return self.change_status(contract, ContractStatus.COMPLETED)

    def terminate(self, contract, reason=''):
        return self.change_status(contract, ContractStatus.TERMINATED, reason)

    def bulk_change_status(self, contracts, target):
        """Applique la même transition à plusieurs contrats ; retourne (mis à jour, refusés)"""
        updated, refused = [], []
        for contract in contracts:
            try:
                with transaction.atomic():
                    self.change_status(contract, target)
                updated.append(contract)
            except (InvalidStatusTransition, ComplianceException) as e:
                refused.append((contract, str(e)))
        logger.info(
            f"Changement de statut groupé vers {target} par {self.username}: "
            f"{len(updated)} mis à jour, {len(refused)} refusé(s)"
        )
        return updated, refused


def get_contracts_ending_soon(days=None):
    days = days if days is not None else eprofos_setting('CONTRACT_ENDING_SOON_DAYS', 30)
    today = timezone.localdate()
    return AlternanceContract.objects.select_related('student', 'mentor').filter(
        status=ContractStatus.ACTIVE,
        end_date__range=[today, today + timedelta(days=days)],
    ).order_by('end_date')


def get_contract_statistics():
    """Répartition des contrats par statut, type et mois de création"""
    logger.info("Génération des statistiques de contrats")
    contracts = AlternanceContract.objects.all()

    by_status = {status: 0 for status in ContractStatus.values}
    for row in contracts.values('status').annotate(count=Count('id')):
        by_status[row['status']] = row['count']

    by_type = {
        row['contract_type']: row['count']
        for row in contracts.values('contract_type').annotate(count=Count('id'))
    }

    monthly = [
        {'month': row['month'].strftime('%Y-%m'), 'count': row['count']}
        for row in contracts.annotate(month=TruncMonth('created_at'))
        .values('month').annotate(count=Count('id')).order_by('month')
        if row['month']
    ]

    return {
        'total': sum(by_status.values()),
        'by_status': by_status,
        'by_contract_type': by_type,
        'monthly_creation': monthly,
        'ending_soon': get_contracts_ending_soon().count(),
    }
