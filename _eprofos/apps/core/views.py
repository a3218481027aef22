# apps/core/views.py
import json
import logging
from datetime import timedelta

from django.contrib import messages
from django.core.exceptions import ValidationError
from django.db.models import Q
from django.db import DatabaseError, transaction
from django.http import JsonResponse
from django.shortcuts import get_object_or_404, redirect
from django.urls import reverse
from django.utils import timezone
from django.views import View
from django.views.generic import TemplateView

from .exceptions import EprofosException
from .mixins import StaffRequiredMixin, NextUrlMixin, PageTitleMixin

logger = logging.getLogger(__name__)


def wants_json(request):
    return (
        request.content_type == 'application/json'
        or request.headers.get('x-requested-with') == 'XMLHttpRequest'
    )


class ToggleFieldView(StaffRequiredMixin, NextUrlMixin, View):
    """
    Bascule un champ booléen (actif, mis en avant...) d'un objet.
    POST uniquement, protégé par le middleware CSRF.
    """
    http_method_names = ['post']
    model = None
    field = 'is_active'
    verbose_name = None
    on_label = 'activé'
    off_label = 'désactivé'
    success_url_name = None

    def get_queryset(self):
        return self.model.objects.all()

    def get_success_url(self, obj):
        return self.get_next_url(reverse(self.success_url_name))

    def get_verbose_name(self):
        return self.verbose_name or self.model._meta.verbose_name.capitalize()

    def post(self, request, pk):
        obj = get_object_or_404(self.get_queryset(), pk=pk)
        label = self.get_verbose_name()
        old_value = getattr(obj, self.field)

        logger.info(
            f"Bascule de '{self.field}' demandée pour {label} {obj.pk} "
            f"par {request.user.username} (valeur actuelle: {old_value})"
        )

        try:
            setattr(obj, self.field, not old_value)
            obj.save(update_fields=[self.field, 'updated_at'])
        except DatabaseError:
            logger.error(f"Erreur lors de la bascule de '{self.field}' pour {label} {obj.pk}", exc_info=True)
            message = f"Une erreur est survenue lors de la modification du statut ({label})."
            if wants_json(request):
                return JsonResponse({'success': False, 'error': message}, status=500)
            messages.error(request, message)
            return redirect(self.get_success_url(obj))

        new_value = getattr(obj, self.field)
        logger.info(f"{label} {obj.pk}: '{self.field}' {old_value} -> {new_value}")

        status_label = self.on_label if new_value else self.off_label
        message = f"{label} {status_label} avec succès."
        if wants_json(request):
            return JsonResponse({'success': True, 'value': new_value, 'message': message})

        messages.success(request, message)
        return redirect(self.get_success_url(obj))


class ReorderView(StaffRequiredMixin, NextUrlMixin, View):
    """
    Réécrit l'ordre (order_index 1..n) d'une liste d'objets.
    Accepte `order` en champ de formulaire répété ou en JSON.
    """
    http_method_names = ['post']
    model = None
    verbose_name_plural = None
    success_url_name = None

    def get_queryset(self):
        return self.model.objects.all()

    def get_success_url(self):
        return self.get_next_url(reverse(self.success_url_name))

    def get_ids(self, request):
        if request.content_type == 'application/json':
            try:
                payload = json.loads(request.body or b'{}')
            except ValueError:
                return []
            ids = payload.get('order', [])
            return ids if isinstance(ids, list) else []
        return [value for value in request.POST.getlist('order') if value]

    def respond(self, request, success, message, level, status=200):
        if wants_json(request):
            return JsonResponse({'success': success, 'message': message}, status=status)
        getattr(messages, level)(request, message)
        return redirect(self.get_success_url())

    def post(self, request, *args, **kwargs):
        label = self.verbose_name_plural or str(self.model._meta.verbose_name_plural)
        ids = self.get_ids(request)

        logger.info(f"Réorganisation des {label} demandée par {request.user.username}: {len(ids)} éléments")

        if not ids:
            logger.warning(f"Réorganisation des {label}: liste vide")
            return self.respond(request, False, f"Aucun élément à réorganiser ({label}).", 'warning', status=400)

        try:
            with transaction.atomic():
                objects = {str(obj.pk): obj for obj in self.get_queryset().filter(pk__in=ids)}
                position = 0
                for object_id in ids:
                    obj = objects.get(str(object_id))
                    if obj is None:
                        logger.warning(f"Réorganisation des {label}: identifiant inconnu {object_id}")
                        continue
                    position += 1
                    if obj.order_index != position:
                        obj.order_index = position
                        obj.save(update_fields=['order_index', 'updated_at'])
        except (ValidationError, ValueError):
            logger.warning(f"Réorganisation des {label}: identifiants invalides {ids}")
            return self.respond(request, False, "Identifiants invalides.", 'error', status=400)
        except DatabaseError:
            logger.error(f"Erreur lors de la réorganisation des {label}", exc_info=True)
            return self.respond(
                request, False,
                f"Une erreur est survenue lors de la réorganisation ({label}).", 'error', status=500
            )

        logger.info(f"Réorganisation des {label} terminée: {position} éléments réordonnés")
        return self.respond(request, True, f"Ordre mis à jour avec succès ({label}).", 'success')


class DashboardView(StaffRequiredMixin, TemplateView):
    """Tableau de bord du back-office"""
    template_name = 'core/dashboard.html'

    def get_context_data(self, **kwargs):
        from apps.training.models import Formation, Session, SessionRegistration, SessionStatus
        from apps.alternance.models import AlternanceContract, ContractStatus, CoordinationMeeting

        context = super().get_context_data(**kwargs)
        today = timezone.localdate()

        context['title'] = 'Tableau de bord'
        context['stats'] = {
            'formations': Formation.objects.count(),
            'formations_actives': Formation.objects.filter(is_active=True).count(),
            'sessions_a_venir': Session.objects.filter(
                start_date__gte=today,
                status__in=[SessionStatus.PLANNED, SessionStatus.OPEN, SessionStatus.CONFIRMED]
            ).count(),
            'inscriptions_en_attente': SessionRegistration.objects.filter(status='pending').count(),
            'contrats_actifs': AlternanceContract.objects.filter(status=ContractStatus.ACTIVE).count(),
            'contrats_a_valider': AlternanceContract.objects.filter(
                status=ContractStatus.PENDING_VALIDATION
            ).count(),
            'reunions_semaine': CoordinationMeeting.objects.filter(
                status='planned',
                meeting_date__date__range=[today, today + timedelta(days=7)]
            ).count(),
        }
        context['prochaines_sessions'] = Session.objects.select_related('formation').filter(
            start_date__gte=today
        ).order_by('start_date')[:5]
        return context


# ============================================================================
# VUES CRUD JOURNALISÉES
# ============================================================================

class AuditedFormMixin(PageTitleMixin):
    """
    Création / modification avec journalisation et messages flash.
    Les erreurs métier et de base de données sont renvoyées sur le formulaire.
    """
    template_name = 'core/crud/form.html'
    success_message = "Enregistrement effectué avec succès."
    error_message = "Une erreur est survenue lors de l'enregistrement."
    action = 'enregistrement'

    def get_label(self):
        return self.model._meta.verbose_name

    def form_valid(self, form):
        label = self.get_label()
        target = getattr(self, 'object', None)
        logger.info(
            f"{self.action.capitalize()} {label} demandée par {self.request.user.username}"
            + (f" (id: {target.pk})" if target is not None and target.pk else "")
        )
        try:
            with transaction.atomic():
                response = super().form_valid(form)
        except EprofosException as e:
            logger.warning(f"{self.action.capitalize()} {label} refusée: {e}")
            messages.error(self.request, str(e))
            return self.form_invalid(form)
        except DatabaseError:
            logger.error(f"Erreur base de données lors de: {self.action} {label}", exc_info=True)
            messages.error(self.request, self.error_message)
            return self.form_invalid(form)

        logger.info(f"{self.action.capitalize()} {label} réussie (id: {self.object.pk})")
        messages.success(self.request, self.success_message)
        return response

    def form_invalid(self, form):
        if form.errors:
            logger.warning(
                f"Formulaire {self.get_label()} invalide: {form.errors.get_json_data()}"
            )
        return super().form_invalid(form)


class AuditedDeleteMixin(PageTitleMixin):
    """Suppression journalisée avec contrôle des dépendances"""
    template_name = 'core/crud/confirm_delete.html'
    success_message = "Suppression effectuée avec succès."
    error_message = "Une erreur est survenue lors de la suppression."

    def get_delete_blocker(self, obj):
        """Retourne un message si la suppression doit être refusée"""
        return None

    def get_label(self):
        return self.model._meta.verbose_name

    def form_valid(self, form):
        obj = self.object
        label = self.get_label()
        success_url = self.get_success_url()
        logger.info(f"Suppression {label} {obj.pk} demandée par {self.request.user.username}")

        blocker = self.get_delete_blocker(obj)
        if blocker:
            logger.warning(f"Suppression {label} {obj.pk} refusée: {blocker}")
            messages.error(self.request, blocker)
            return redirect(obj.get_absolute_url())

        try:
            with transaction.atomic():
                obj.delete()
        except DatabaseError:
            logger.error(f"Erreur lors de la suppression {label} {obj.pk}", exc_info=True)
            messages.error(self.request, self.error_message)
            return redirect(obj.get_absolute_url())

        logger.info(f"{label.capitalize()} {obj.pk} supprimé(e)")
        messages.success(self.request, self.success_message)
        return redirect(success_url)


class FilteredListMixin(PageTitleMixin):
    """Liste avec recherche texte et filtres simples sur paramètres GET"""
    template_name = 'core/crud/list.html'
    paginate_by = 20
    search_fields = []
    filter_fields = {}
    create_url_name = None

    def get_queryset(self):
        queryset = super().get_queryset()

        search = self.request.GET.get('search', '').strip()
        if search and self.search_fields:
            query = Q()
            for field in self.search_fields:
                query |= Q(**{f'{field}__icontains': search})
            queryset = queryset.filter(query)

        for param, lookup in self.filter_fields.items():
            value = self.request.GET.get(param)
            if value in (None, ''):
                continue
            if value in ('true', 'false'):
                value = value == 'true'
            try:
                queryset = queryset.filter(**{lookup: value})
            except (ValidationError, ValueError):
                logger.warning(f"Filtre '{param}' ignoré: valeur invalide {value!r}")

        return queryset

    def get_context_data(self, **kwargs):
        context = super().get_context_data(**kwargs)
        context['current_filters'] = {
            key: self.request.GET.get(key, '')
            for key in ['search', *self.filter_fields.keys()]
        }
        if self.create_url_name:
            context['create_url'] = reverse(self.create_url_name)
        return context
