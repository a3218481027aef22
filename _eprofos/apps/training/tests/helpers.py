"""Jeux de données communs aux tests du catalogue"""
from datetime import timedelta

from django.contrib.auth.models import User
from django.utils import timezone

from apps.training.models import Category, Formation, Module, Chapter, Course, Session, SessionStatus


def create_staff_user(username='staff'):
    return User.objects.create_user(username=username, password='testpass123', is_staff=True)


def create_formation(title="Python avancé", category=None, **kwargs):
    if category is None:
        category = Category.objects.create(name=f"Catégorie {title}")
    defaults = {
        'description': "Formation de test",
        'price': 1500,
    }
    defaults.update(kwargs)
    return Formation.objects.create(category=category, title=title, **defaults)


def create_module(formation, title="Module", **kwargs):
    kwargs.setdefault('description', "Module de test")
    return Module.objects.create(formation=formation, title=title, **kwargs)


def create_chapter(module, title="Chapitre", **kwargs):
    kwargs.setdefault('description', "Chapitre de test")
    return Chapter.objects.create(module=module, title=title, **kwargs)


def create_course(chapter, title="Cours", duration_minutes=60, **kwargs):
    kwargs.setdefault('description', "Cours de test")
    return Course.objects.create(chapter=chapter, title=title, duration_minutes=duration_minutes, **kwargs)


def create_session(formation, days_from_now=30, **kwargs):
    start = timezone.localdate() + timedelta(days=days_from_now)
    defaults = {
        'name': f"Session {formation.title}",
        'start_date': start,
        'end_date': start + timedelta(days=4),
        'location': 'Paris',
        'max_capacity': 10,
        'min_capacity': 2,
        'status': SessionStatus.OPEN,
    }
    defaults.update(kwargs)
    return Session.objects.create(formation=formation, **defaults)
