from functools import wraps

from django.contrib import messages
from django.contrib.auth.decorators import login_required
from django.contrib.auth.mixins import LoginRequiredMixin
from django.shortcuts import redirect, resolve_url
from django.utils.http import url_has_allowed_host_and_scheme


class StaffRequiredMixin(LoginRequiredMixin):
    """Mixin pour le personnel du back-office"""

    def dispatch(self, request, *args, **kwargs):
        if not request.user.is_authenticated:
            return self.handle_no_permission()

        if not request.user.is_active or not request.user.is_staff:
            messages.error(request, "Vous n'avez pas les permissions nécessaires pour accéder à cette page.")
            return redirect('admin:login')

        return super().dispatch(request, *args, **kwargs)


class PageTitleMixin:
    """Ajoute le titre de page et le texte du bouton au contexte"""
    page_title = None
    submit_text = None
    cancel_url_name = None

    def get_page_title(self):
        return self.page_title

    def get_context_data(self, **kwargs):
        context = super().get_context_data(**kwargs)
        context['title'] = self.get_page_title()
        if self.submit_text:
            context['submit_text'] = self.submit_text
        if self.cancel_url_name:
            context['cancel_url'] = resolve_url(self.cancel_url_name)
        return context


class NextUrlMixin:
    """Redirection vers le paramètre `next` s'il est sûr"""

    def get_next_url(self, default):
        next_url = self.request.POST.get('next') or self.request.GET.get('next')
        if next_url and url_has_allowed_host_and_scheme(
            next_url,
            allowed_hosts={self.request.get_host()},
            require_https=self.request.is_secure()
        ):
            return next_url
        return default


# Décorateurs pour les vues fonctionnelles

def staff_required(view_func):
    """Décorateur pour le personnel"""
    @wraps(view_func)
    @login_required
    def wrapped_view(request, *args, **kwargs):
        if not request.user.is_active or not request.user.is_staff:
            messages.error(request, "Vous n'avez pas les permissions nécessaires.")
            return redirect('admin:login')

        return view_func(request, *args, **kwargs)
    return wrapped_view


class ParentInitialMixin:
    """Pré-remplit le parent (formation, module...) passé en paramètre GET"""
    parent_field = None

    def get_initial(self):
        initial = super().get_initial()
        value = self.request.GET.get(self.parent_field) if self.parent_field else None
        if value:
            initial[self.parent_field] = value
        return initial
