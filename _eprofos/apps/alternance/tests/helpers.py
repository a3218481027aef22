"""Jeux de données communs aux tests de l'alternance"""
from datetime import timedelta

from django.utils import timezone

from apps.accounts.models import Student, Teacher, Mentor
from apps.alternance.models import (
    AlternanceContract, AlternanceProgram, CompanyMission, MissionAssignment, ProgressAssessment,
    CoordinationMeeting, CompanyVisit
)
from apps.training.models import AlternanceType
from apps.training.tests.helpers import create_formation, create_session

SIRET = '12345678901234'


def create_student(email='alice@example.com', **kwargs):
    kwargs.setdefault('first_name', 'Alice')
    kwargs.setdefault('last_name', 'Martin')
    return Student.objects.create(email=email, **kwargs)


def create_teacher(email='paul@eprofos.fr', **kwargs):
    kwargs.setdefault('first_name', 'Paul')
    kwargs.setdefault('last_name', 'Durand')
    return Teacher.objects.create(email=email, **kwargs)


def create_mentor(email='claire@acme.fr', **kwargs):
    defaults = {
        'first_name': 'Claire',
        'last_name': 'Bernard',
        'position': 'Responsable technique',
        'company_name': 'ACME',
        'company_siret': SIRET,
        'experience_years': 8,
    }
    defaults.update(kwargs)
    return Mentor.objects.create(email=email, **defaults)


def create_contract(student=None, session=None, mentor=None, supervisor=None, days_from_now=10, **kwargs):
    """Contrat d'apprentissage d'un an conforme aux critères Qualiopi"""
    student = student or create_student()
    session = session or create_session(create_formation(), is_alternance_session=True)
    start = timezone.localdate() + timedelta(days=days_from_now)
    defaults = {
        'contract_type': AlternanceType.APPRENTISSAGE,
        'company_name': 'ACME',
        'company_siret': SIRET,
        'job_title': 'Développeur',
        'job_description': 'Développement et maintenance des applications internes.',
        'learning_objectives': ['Concevoir une application web'],
        'company_objectives': ['Participer aux développements du service'],
        'start_date': start,
        'end_date': start + timedelta(days=365),
        'weekly_center_hours': 14,
        'weekly_company_hours': 21,
        'remuneration': '53% du SMIC',
        'mentor': mentor if mentor is not None else create_mentor(),
        'pedagogical_supervisor': supervisor if supervisor is not None else create_teacher(),
    }
    defaults.update(kwargs)
    return AlternanceContract.objects.create(student=student, session=session, **defaults)


def create_program(session, **kwargs):
    defaults = {
        'title': 'Programme développeur',
        'description': 'Parcours en alternance',
        'total_duration': 52,
        'center_duration': 20,
        'company_duration': 32,
        'center_modules': ['Python', 'Django'],
        'company_modules': ['Projet interne'],
        'coordination_points': ['Réunion mensuelle'],
        'assessment_periods': ['Bilan à 6 mois', 'Bilan final'],
        'learning_progression': ['Découverte', 'Autonomie'],
    }
    defaults.update(kwargs)
    return AlternanceProgram.objects.create(session=session, **defaults)


def create_mission(supervisor, title='Refonte du site', **kwargs):
    kwargs.setdefault('description', 'Mission de test')
    return CompanyMission.objects.create(supervisor=supervisor, title=title, **kwargs)


def create_assignment(student, mission, start_offset=-10, length=30, **kwargs):
    start = timezone.localdate() + timedelta(days=start_offset)
    return MissionAssignment.objects.create(
        student=student, mission=mission, start_date=start, end_date=start + timedelta(days=length), **kwargs
    )


def create_progress(student, period=None, center=80, company=80, **kwargs):
    assessment = ProgressAssessment(
        student=student,
        period=period or timezone.localdate(),
        center_progression=center,
        company_progression=company,
        **kwargs
    )
    assessment.calculate_overall_progression()
    assessment.calculate_risk_level()
    assessment.save()
    return assessment


def create_meeting(student, hours_from_now=24, **kwargs):
    return CoordinationMeeting.objects.create(
        student=student, meeting_date=timezone.now() + timedelta(hours=hours_from_now), **kwargs
    )


def create_visit(student, days_ago=3, **kwargs):
    return CompanyVisit.objects.create(
        student=student, visit_date=timezone.now() - timedelta(days=days_ago), **kwargs
    )
