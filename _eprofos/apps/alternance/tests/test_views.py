import json
from datetime import timedelta

from django.contrib.auth.models import User
from django.contrib.messages import get_messages
from django.test import TestCase
from django.urls import reverse
from django.utils import timezone

from apps.alternance.models import (
    AlternanceContract, ContractStatus, CompanyMission, AssignmentStatus, SkillsAssessment,
    ProgressAssessment, CoordinationMeeting, MeetingStatus, CompanyVisit
)
from apps.training.tests.helpers import create_staff_user
from .helpers import (
    create_student, create_teacher, create_mentor, create_contract, create_program, create_mission,
    create_assignment, create_progress, create_meeting, create_visit
)


def flash_messages(response):
    return [str(message) for message in get_messages(response.wsgi_request)]


class AlternanceAccessTest(TestCase):
    def test_anonymous_user_is_redirected_to_login(self):
        response = self.client.get(reverse('alternance:contract_list'))
        self.assertEqual(response.status_code, 302)
        self.assertIn(reverse('admin:login'), response.url)

    def test_non_staff_user_is_refused(self):
        user = User.objects.create_user(username='learner', password='testpass123')
        self.client.force_login(user)
        response = self.client.post(reverse('alternance:contract_bulk_status'))
        self.assertRedirects(response, reverse('admin:login'), fetch_redirect_response=False)


class AlternancePagesTest(TestCase):
    def setUp(self):
        self.client.force_login(create_staff_user())
        self.contract = create_contract()
        self.student = self.contract.student
        self.mission = create_mission(self.contract.mentor)
        self.assignment = create_assignment(self.student, self.mission)
        self.program = create_program(self.contract.session)
        self.progress = create_progress(self.student)
        self.meeting = create_meeting(self.student, mentor=self.contract.mentor)
        self.visit = create_visit(self.student, overall_rating=8)
        self.skills = SkillsAssessment.objects.create(student=self.student, assessment_date=timezone.localdate())

    def test_lists_render(self):
        for name in [
            'alternance:dashboard', 'alternance:alerts', 'alternance:contract_list', 'alternance:program_list',
            'alternance:mission_list', 'alternance:assignment_list', 'alternance:skills_assessment_list',
            'alternance:progress_list', 'alternance:meeting_list', 'alternance:visit_list',
        ]:
            response = self.client.get(reverse(name))
            self.assertEqual(response.status_code, 200, name)

    def test_details_render(self):
        for obj in [
            self.contract, self.program, self.mission, self.assignment, self.progress,
            self.meeting, self.visit, self.skills,
        ]:
            response = self.client.get(obj.get_absolute_url())
            self.assertEqual(response.status_code, 200, obj)

    def test_forms_render(self):
        for name in [
            'alternance:contract_create', 'alternance:program_create', 'alternance:mission_create',
            'alternance:assignment_create', 'alternance:skills_assessment_create', 'alternance:progress_create',
            'alternance:meeting_create', 'alternance:visit_create',
        ]:
            response = self.client.get(reverse(name))
            self.assertEqual(response.status_code, 200, name)

    def test_contract_detail_context(self):
        response = self.client.get(self.contract.get_absolute_url())
        self.assertTrue(response.context['compliance']['is_compliant'])
        self.assertTrue(response.context['legal_checks']['minimums'])
        self.assertEqual(
            response.context['transitions'], [(ContractStatus.PENDING_VALIDATION, 'En attente de validation')]
        )

    def test_contract_list_filters(self):
        response = self.client.get(reverse('alternance:contract_list'), {'status': 'active'})
        self.assertEqual(len(response.context['contracts']), 0)
        response = self.client.get(reverse('alternance:contract_list'), {'search': 'ACME'})
        self.assertEqual(len(response.context['contracts']), 1)

    def test_create_form_prefills_student(self):
        response = self.client.get(reverse('alternance:contract_create'), {'student': str(self.student.pk)})
        self.assertEqual(response.context['form'].initial['student'], str(self.student.pk))


class ContractViewsTest(TestCase):
    def setUp(self):
        self.client.force_login(create_staff_user())
        self.contract = create_contract()

    def contract_data(self, **overrides):
        start = timezone.localdate() + timedelta(days=15)
        data = {
            'student': create_student('bob@example.com').pk,
            'session': self.contract.session.pk,
            'contract_type': 'apprentissage',
            'company_name': 'Beta',
            'company_siret': '12345678901234',
            'mentor': self.contract.mentor.pk,
            'pedagogical_supervisor': self.contract.pedagogical_supervisor.pk,
            'job_title': 'Technicien support',
            'learning_objectives': "Diagnostiquer une panne\nDocumenter une intervention",
            'company_objectives': "Assurer le support niveau 1",
            'start_date': start.isoformat(),
            'end_date': (start + timedelta(days=700)).isoformat(),
            'weekly_center_hours': 14,
            'weekly_company_hours': 21,
        }
        data.update(overrides)
        return data

    def test_create_contract(self):
        response = self.client.post(reverse('alternance:contract_create'), self.contract_data())
        contract = AlternanceContract.objects.get(company_name='Beta')
        self.assertRedirects(response, contract.get_absolute_url(), fetch_redirect_response=False)
        self.assertEqual(contract.company_siret, '12345678901234')
        self.assertEqual(contract.learning_objectives, ["Diagnostiquer une panne", "Documenter une intervention"])
        self.assertTrue(contract.contract_number.startswith('ALT-'))
        self.assertIn("Contrat créé avec succès.", flash_messages(response))

    def test_weekly_hours_are_capped(self):
        response = self.client.post(
            reverse('alternance:contract_create'), self.contract_data(weekly_company_hours=30)
        )
        self.assertEqual(response.status_code, 200)
        self.assertIn('weekly_company_hours', response.context['form'].errors)
        self.assertFalse(AlternanceContract.objects.filter(company_name='Beta').exists())

    def test_submit_contract(self):
        response = self.client.post(
            reverse('alternance:contract_change_status', args=[self.contract.pk]), {'status': 'pending_validation'}
        )
        self.assertRedirects(response, self.contract.get_absolute_url(), fetch_redirect_response=False)
        self.contract.refresh_from_db()
        self.assertEqual(self.contract.status, ContractStatus.PENDING_VALIDATION)
        self.assertIn("Le contrat est désormais « En attente de validation ».", flash_messages(response))

    def test_forbidden_transition_is_reported(self):
        response = self.client.post(
            reverse('alternance:contract_change_status', args=[self.contract.pk]), {'status': 'completed'}
        )
        self.contract.refresh_from_db()
        self.assertEqual(self.contract.status, ContractStatus.DRAFT)
        self.assertIn(
            "Impossible de passer le contrat du statut « Brouillon » au statut « Terminé ».",
            flash_messages(response)
        )

    def test_non_compliant_contract_cannot_be_validated(self):
        AlternanceContract.objects.filter(pk=self.contract.pk).update(
            status=ContractStatus.PENDING_VALIDATION, pedagogical_supervisor=None
        )
        response = self.client.post(
            reverse('alternance:contract_change_status', args=[self.contract.pk]), {'status': 'validated'}
        )
        messages = flash_messages(response)
        self.assertIn("Le contrat ne respecte pas les exigences Qualiopi et ne peut pas être validé.", messages)
        self.assertIn("Un référent pédagogique doit être désigné (Qualiopi 2.4).", messages)
        self.contract.refresh_from_db()
        self.assertEqual(self.contract.status, ContractStatus.PENDING_VALIDATION)

    def test_bulk_status(self):
        other = create_contract(
            student=create_student('bob@example.com'), session=self.contract.session,
            mentor=self.contract.mentor, supervisor=self.contract.pedagogical_supervisor,
            status=ContractStatus.COMPLETED,
        )
        response = self.client.post(reverse('alternance:contract_bulk_status'), {
            'contract_ids': [str(self.contract.pk), str(other.pk)],
            'status': 'pending_validation',
        })
        self.assertRedirects(response, reverse('alternance:contract_list'), fetch_redirect_response=False)
        self.contract.refresh_from_db()
        self.assertEqual(self.contract.status, ContractStatus.PENDING_VALIDATION)
        self.assertIn("1 contrat(s) mis à jour.", flash_messages(response))

    def test_bulk_status_with_malformed_id(self):
        response = self.client.post(reverse('alternance:contract_bulk_status'), {
            'contract_ids': [str(self.contract.pk), 'not-a-uuid'],
            'status': 'pending_validation',
        })
        self.assertRedirects(response, reverse('alternance:contract_list'), fetch_redirect_response=False)
        self.assertIn("Identifiants invalides.", flash_messages(response))
        self.contract.refresh_from_db()
        self.assertEqual(self.contract.status, ContractStatus.DRAFT)

    def test_only_drafts_can_be_deleted(self):
        AlternanceContract.objects.filter(pk=self.contract.pk).update(status=ContractStatus.ACTIVE)
        response = self.client.post(reverse('alternance:contract_delete', args=[self.contract.pk]))
        self.assertRedirects(response, self.contract.get_absolute_url(), fetch_redirect_response=False)
        self.assertIn("Seuls les contrats en brouillon peuvent être supprimés.", flash_messages(response))

        AlternanceContract.objects.filter(pk=self.contract.pk).update(status=ContractStatus.DRAFT)
        response = self.client.post(reverse('alternance:contract_delete', args=[self.contract.pk]))
        self.assertRedirects(response, reverse('alternance:contract_list'), fetch_redirect_response=False)
        self.assertFalse(AlternanceContract.objects.filter(pk=self.contract.pk).exists())

    def test_export_csv(self):
        response = self.client.get(reverse('alternance:contract_export'))
        self.assertEqual(response.status_code, 200)
        self.assertIn('text/csv', response['Content-Type'])
        self.assertIn(self.contract.contract_number, response.content.decode('utf-8-sig'))

    def test_export_excel(self):
        response = self.client.get(reverse('alternance:contract_export'), {'format': 'xlsx'})
        self.assertEqual(
            response['Content-Type'],
            'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'
        )

    def test_contract_pdf(self):
        response = self.client.get(reverse('alternance:contract_pdf', args=[self.contract.pk]))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response['Content-Type'], 'application/pdf')
        self.assertTrue(response.content.startswith(b'%PDF'))


class MissionViewsTest(TestCase):
    def setUp(self):
        self.client.force_login(create_staff_user())
        self.mentor = create_mentor()
        self.first = create_mission(self.mentor, "Audit")
        self.second = create_mission(self.mentor, "Migration")

    def test_create_mission_is_appended(self):
        response = self.client.post(reverse('alternance:mission_create'), {
            'supervisor': self.mentor.pk,
            'title': 'Supervision',
            'description': 'Mettre en place la supervision',
            'objectives': "Choisir un outil\nDéployer les sondes",
            'complexity': 'intermediaire',
            'term': 'moyen',
            'department': 'informatique',
            'is_active': 'on',
        })
        mission = CompanyMission.objects.get(title='Supervision')
        self.assertRedirects(response, mission.get_absolute_url(), fetch_redirect_response=False)
        self.assertEqual(mission.order_index, 3)
        self.assertEqual(mission.objectives, ["Choisir un outil", "Déployer les sondes"])

    def test_toggle_active_as_json(self):
        response = self.client.post(
            reverse('alternance:mission_toggle_active', args=[self.first.pk]),
            HTTP_X_REQUESTED_WITH='XMLHttpRequest'
        )
        self.assertFalse(response.json()['value'])
        self.assertEqual(response.json()['message'], "Mission désactivée avec succès.")

    def test_reorder(self):
        response = self.client.post(
            reverse('alternance:mission_reorder'),
            data=json.dumps({'order': [str(self.second.pk), str(self.first.pk)]}),
            content_type='application/json'
        )
        self.assertTrue(response.json()['success'])
        self.first.refresh_from_db()
        self.second.refresh_from_db()
        self.assertEqual((self.second.order_index, self.first.order_index), (1, 2))

    def test_assigned_mission_cannot_be_deleted(self):
        create_assignment(create_student(), self.first)
        response = self.client.post(reverse('alternance:mission_delete', args=[self.first.pk]))
        self.assertRedirects(response, self.first.get_absolute_url(), fetch_redirect_response=False)
        self.assertTrue(CompanyMission.objects.filter(pk=self.first.pk).exists())

        self.client.post(reverse('alternance:mission_delete', args=[self.second.pk]))
        self.assertFalse(CompanyMission.objects.filter(pk=self.second.pk).exists())


class AssignmentViewsTest(TestCase):
    def setUp(self):
        self.client.force_login(create_staff_user())
        self.assignment = create_assignment(create_student(), create_mission(create_mentor()))

    def post_action(self, action):
        return self.client.post(
            reverse('alternance:assignment_change_status', args=[self.assignment.pk]), {'action': action}
        )

    def test_start_assignment(self):
        response = self.post_action('start')
        self.assertIn("La mission a démarré.", flash_messages(response))
        self.assignment.refresh_from_db()
        self.assertEqual(self.assignment.status, AssignmentStatus.EN_COURS)
        self.assertIsNotNone(self.assignment.last_updated)

    def test_impossible_action(self):
        response = self.post_action('resume')
        self.assertIn("Action impossible pour une mission au statut « Planifiée ».", flash_messages(response))
        response = self.post_action('delete')
        self.assertIn("Action invalide demandée.", flash_messages(response))

    def test_update_progress(self):
        response = self.client.post(
            reverse('alternance:assignment_update_progress', args=[self.assignment.pk]),
            {'completion_rate': '100', 'achievements': "Maquettes validées", 'difficulties': ''}
        )
        self.assertIn("Avancement mis à jour.", flash_messages(response))
        self.assignment.refresh_from_db()
        self.assertEqual(self.assignment.status, AssignmentStatus.TERMINEE)
        self.assertEqual(self.assignment.achievements, ["Maquettes validées"])

    def test_invalid_progress(self):
        response = self.client.post(
            reverse('alternance:assignment_update_progress', args=[self.assignment.pk]), {'completion_rate': '120'}
        )
        self.assertIn("L'avancement doit être compris entre 0 et 100.", flash_messages(response))


class AssessmentViewsTest(TestCase):
    def setUp(self):
        self.user = create_staff_user()
        self.client.force_login(self.user)
        self.student = create_student()

    def test_create_skills_assessment(self):
        response = self.client.post(reverse('alternance:skills_assessment_create'), {
            'student': self.student.pk,
            'assessment_type': 'formative',
            'context': 'mixte',
            'assessment_date': timezone.localdate().isoformat(),
            'center_scores': "programming: 16\nteamwork: 12",
            'company_scores': "programming: 10",
            'overall_rating': 'satisfaisant',
        })
        assessment = SkillsAssessment.objects.get(student=self.student)
        self.assertRedirects(response, assessment.get_absolute_url(), fetch_redirect_response=False)
        self.assertEqual(assessment.center_scores['programming']['value'], 16.0)
        self.assertEqual(set(assessment.skills_evaluated), {'programming', 'teamwork'})
        self.assertIn('programming', assessment.get_competency_gaps())

    def test_context_requires_matching_scores(self):
        response = self.client.post(reverse('alternance:skills_assessment_create'), {
            'student': self.student.pk,
            'assessment_type': 'formative',
            'context': 'entreprise',
            'assessment_date': timezone.localdate().isoformat(),
            'center_scores': "programming: 16",
        })
        self.assertEqual(response.status_code, 200)
        self.assertIn('company_scores', response.context['form'].errors)

    def test_validate_skills_assessment(self):
        assessment = SkillsAssessment.objects.create(student=self.student, assessment_date=timezone.localdate())
        self.client.post(reverse('alternance:skills_assessment_validate', args=[assessment.pk]))
        assessment.refresh_from_db()
        self.assertTrue(assessment.is_validated)
        self.assertEqual(assessment.validated_by, self.user)

        response = self.client.post(reverse('alternance:skills_assessment_validate', args=[assessment.pk]))
        self.assertIn("Cette évaluation est déjà validée.", flash_messages(response))

    def test_create_progress_assessment_computes_risk(self):
        previous = create_progress(self.student, period=timezone.localdate() - timedelta(days=30))
        previous.update_skill('programming', 8)
        previous.save()

        self.client.post(reverse('alternance:progress_create'), {
            'student': self.student.pk,
            'period': timezone.localdate().isoformat(),
            'center_progression': '40',
            'company_progression': '30',
            'pending_objectives': "Finaliser le projet",
            'difficulties': "Organisation | 5\nRetards | 4",
            'skills_matrix': "programming: 12",
        })
        assessment = ProgressAssessment.objects.exclude(pk=previous.pk).get()
        self.assertEqual(float(assessment.overall_progression), 36.0)
        self.assertEqual(assessment.risk_level, 5)
        self.assertEqual(assessment.skills_matrix['programming']['progression_trend'], 'improving')
        self.assertEqual(assessment.difficulties[0], {'description': 'Organisation', 'severity': 5})

    def test_validate_progress_assessment(self):
        assessment = create_progress(self.student)
        self.client.post(reverse('alternance:progress_validate', args=[assessment.pk]))
        assessment.refresh_from_db()
        self.assertIsNotNone(assessment.validated_at)


class MeetingViewsTest(TestCase):
    def setUp(self):
        self.user = create_staff_user()
        self.client.force_login(self.user)
        self.student = create_student()
        self.meeting = create_meeting(self.student)

    def test_create_meeting_records_author(self):
        meeting_date = timezone.localtime() + timedelta(days=5)
        response = self.client.post(reverse('alternance:meeting_create'), {
            'student': self.student.pk,
            'pedagogical_supervisor': create_teacher().pk,
            'meeting_date': meeting_date.strftime('%Y-%m-%dT%H:%M'),
            'type': 'follow_up',
            'location': 'company',
            'agenda': "Point sur les missions\nPlanning",
        })
        meeting = CoordinationMeeting.objects.exclude(pk=self.meeting.pk).get()
        self.assertRedirects(response, meeting.get_absolute_url(), fetch_redirect_response=False)
        self.assertEqual(meeting.created_by, self.user.username)
        self.assertEqual(meeting.agenda, ["Point sur les missions", "Planning"])

    def test_complete_then_edit_is_refused(self):
        self.client.post(reverse('alternance:meeting_complete', args=[self.meeting.pk]))
        self.meeting.refresh_from_db()
        self.assertEqual(self.meeting.status, MeetingStatus.COMPLETED)

        response = self.client.get(reverse('alternance:meeting_update', args=[self.meeting.pk]))
        self.assertRedirects(response, self.meeting.get_absolute_url(), fetch_redirect_response=False)
        response = self.client.post(reverse('alternance:meeting_cancel', args=[self.meeting.pk]))
        self.assertIn("Cette réunion est déjà clôturée.", flash_messages(response))

    def test_postpone(self):
        new_date = timezone.localtime() + timedelta(days=3)
        response = self.client.post(
            reverse('alternance:meeting_postpone', args=[self.meeting.pk]),
            {'new_date': new_date.strftime('%Y-%m-%dT%H:%M')}
        )
        self.assertRedirects(response, self.meeting.get_absolute_url(), fetch_redirect_response=False)
        self.meeting.refresh_from_db()
        self.assertEqual(self.meeting.status, MeetingStatus.POSTPONED)
        self.assertEqual(timezone.localtime(self.meeting.meeting_date).date(), new_date.date())

    def test_postpone_to_past_is_refused(self):
        past = timezone.localtime() - timedelta(days=1)
        response = self.client.post(
            reverse('alternance:meeting_postpone', args=[self.meeting.pk]),
            {'new_date': past.strftime('%Y-%m-%dT%H:%M')}
        )
        self.assertIn("La nouvelle date doit être dans le futur.", flash_messages(response))
        self.meeting.refresh_from_db()
        self.assertEqual(self.meeting.status, MeetingStatus.PLANNED)

    def test_completed_meeting_cannot_be_deleted(self):
        CoordinationMeeting.objects.filter(pk=self.meeting.pk).update(status=MeetingStatus.COMPLETED)
        self.client.post(reverse('alternance:meeting_delete', args=[self.meeting.pk]))
        self.assertTrue(CoordinationMeeting.objects.filter(pk=self.meeting.pk).exists())


class VisitViewsTest(TestCase):
    def setUp(self):
        self.user = create_staff_user()
        self.client.force_login(self.user)

    def test_create_visit(self):
        student = create_student()
        visit_date = timezone.localtime() - timedelta(days=1)
        response = self.client.post(reverse('alternance:visit_create'), {
            'student': student.pk,
            'visitor': create_teacher().pk,
            'visit_date': visit_date.strftime('%Y-%m-%dT%H:%M'),
            'visit_type': 'integration',
            'strengths': "Bonne intégration",
            'overall_rating': 8,
            'supervision_rating': 9,
        })
        visit = CompanyVisit.objects.get(student=student)
        self.assertRedirects(response, visit.get_absolute_url(), fetch_redirect_response=False)
        self.assertEqual(visit.created_by, self.user.username)
        self.assertEqual(visit.average_rating, 8.5)
