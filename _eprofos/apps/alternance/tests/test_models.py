from datetime import date, timedelta
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.test import TestCase
from django.utils import timezone

from apps.alternance.models import (
    AlternanceContract, ContractStatus, AssignmentStatus, SkillsAssessment, ProgressAssessment,
    MeetingStatus, skill_name
)
from .helpers import (
    create_student, create_mentor, create_contract, create_program, create_mission, create_assignment,
    create_meeting, create_visit, create_session, create_formation
)


class AlternanceContractModelTest(TestCase):
    def test_contract_number_is_sequential_per_year(self):
        first = create_contract()
        second = create_contract(
            student=create_student('bob@example.com'),
            session=first.session, mentor=first.mentor, supervisor=first.pedagogical_supervisor
        )
        year = first.start_date.year
        self.assertEqual(first.contract_number, f"ALT-{year}-0001")
        self.assertEqual(second.contract_number, f"ALT-{year}-0002")

    def test_end_date_must_follow_start_date(self):
        contract = create_contract()
        contract.end_date = contract.start_date
        with self.assertRaises(ValidationError):
            contract.clean()

    def test_durations(self):
        contract = AlternanceContract(start_date=date(2025, 9, 1), end_date=date(2025, 9, 28))
        self.assertEqual(contract.duration_in_days, 28)
        self.assertEqual(contract.duration_in_weeks, 4)
        self.assertEqual(contract.formatted_duration, "4 semaines")
        contract.end_date = date(2027, 2, 28)
        self.assertEqual(contract.formatted_duration, "1 an et 5 mois")

    def test_weekly_hours_split(self):
        contract = create_contract(weekly_center_hours=14, weekly_company_hours=21)
        self.assertEqual(contract.total_weekly_hours, 35)
        self.assertEqual(contract.center_hours_percentage, 40.0)
        self.assertEqual(contract.company_hours_percentage, 60.0)

    def test_progress_of_running_contract(self):
        contract = create_contract(days_from_now=-50, status=ContractStatus.ACTIVE)
        contract.end_date = contract.start_date + timedelta(days=100)
        self.assertTrue(contract.is_in_progress)
        self.assertEqual(contract.progress_percentage, 50.0)
        self.assertEqual(contract.remaining_days, 50)

    def test_is_ending_soon_only_for_active_contracts(self):
        contract = create_contract(days_from_now=-300, status=ContractStatus.ACTIVE)
        contract.end_date = timezone.localdate() + timedelta(days=10)
        self.assertTrue(contract.is_ending_soon)
        contract.status = ContractStatus.SUSPENDED
        self.assertFalse(contract.is_ending_soon)


class AlternanceProgramModelTest(TestCase):
    def setUp(self):
        self.session = create_session(create_formation(), is_alternance_session=True)

    def test_inconsistent_durations_are_rejected(self):
        program = create_program(self.session, center_duration=30)
        self.assertFalse(program.has_consistent_durations)
        with self.assertRaises(ValidationError):
            program.clean()

    def test_duration_percentages_and_rhythm(self):
        program = create_program(self.session, rhythm='4-4')
        self.assertEqual(program.center_duration_percentage, 38.5)
        self.assertEqual(program.rhythm_description, '4 semaines centre / 4 semaines entreprise')


class CompanyMissionModelTest(TestCase):
    def setUp(self):
        self.mentor = create_mentor()

    def test_order_index_is_assigned_per_supervisor(self):
        first = create_mission(self.mentor, "Audit")
        second = create_mission(self.mentor, "Migration")
        other = create_mission(create_mentor('jean@beta.fr', company_name='Beta'), "Support")
        self.assertEqual((first.order_index, second.order_index, other.order_index), (1, 2, 1))

    def test_complexity_suitability(self):
        mission = create_mission(self.mentor, complexity='intermediaire')
        self.assertFalse(mission.is_suitable_for_complexity('debutant'))
        self.assertTrue(mission.is_suitable_for_complexity('avance'))

    def test_objectives_summary(self):
        mission = create_mission(self.mentor, objectives=['A', 'B', 'C', 'D'])
        self.assertEqual(mission.objectives_summary, "A • B • +2 autre(s)")
        self.assertEqual(create_mission(self.mentor, "Vide").objectives_summary, "Aucun objectif défini")

    def test_assignment_counters(self):
        mission = create_mission(self.mentor)
        create_assignment(create_student(), mission, status=AssignmentStatus.EN_COURS, completion_rate=40)
        create_assignment(create_student('bob@example.com'), mission, status=AssignmentStatus.TERMINEE,
                          completion_rate=100)
        self.assertEqual(mission.active_assignments_count, 1)
        self.assertEqual(mission.completed_assignments_count, 1)
        self.assertEqual(mission.progress_score, 70.0)


class MissionAssignmentModelTest(TestCase):
    def setUp(self):
        self.assignment = create_assignment(create_student(), create_mission(create_mentor()))

    def test_lifecycle(self):
        self.assertFalse(self.assignment.resume())
        self.assertTrue(self.assignment.start())
        self.assertFalse(self.assignment.start())
        self.assertTrue(self.assignment.suspend())
        self.assertTrue(self.assignment.resume())
        self.assertTrue(self.assignment.complete())
        self.assertEqual(self.assignment.status, AssignmentStatus.TERMINEE)
        self.assertEqual(self.assignment.completion_rate, Decimal('100'))
        self.assertFalse(self.assignment.suspend())

    def test_update_progress_is_clamped_and_completes(self):
        self.assignment.update_progress(-5)
        self.assertEqual(self.assignment.completion_rate, Decimal('0.00'))
        self.assignment.update_progress(150)
        self.assertEqual(self.assignment.status, AssignmentStatus.TERMINEE)
        self.assertEqual(self.assignment.completion_rate, Decimal('100'))

    def test_overdue_assignment(self):
        assignment = create_assignment(
            create_student('bob@example.com'), self.assignment.mission, start_offset=-40, length=30
        )
        self.assertTrue(assignment.is_overdue)
        self.assertEqual(assignment.remaining_days, 0)
        self.assertEqual(assignment.time_progress_percentage, 100.0)

    def test_rating_labels(self):
        self.assertEqual(self.assignment.mentor_rating_label, 'Non évalué')
        self.assignment.mentor_rating = 8
        self.assertTrue(self.assignment.mentor_rating_label.startswith('8/10 - '))


class SkillsAssessmentModelTest(TestCase):
    def build(self, **kwargs):
        kwargs.setdefault('assessment_date', timezone.localdate())
        return SkillsAssessment(student=create_student(), **kwargs)

    def test_averages_and_gaps(self):
        assessment = self.build()
        assessment.add_skill_evaluation('programming', 16, 10)
        assessment.add_skill_evaluation('teamwork', 12, 13)
        self.assertEqual(assessment.average_center_score, 14.0)
        self.assertEqual(assessment.average_company_score, 11.5)
        self.assertEqual(assessment.overall_average_score, 12.75)
        self.assertTrue(assessment.has_cross_evaluation)

        gaps = assessment.get_competency_gaps()
        self.assertEqual(list(gaps), ['programming'])
        self.assertEqual(gaps['programming']['gap'], 6.0)
        self.assertEqual(gaps['programming']['name'], 'Programmation')

    def test_single_side_assessment_has_no_gaps(self):
        assessment = self.build(context='centre')
        assessment.add_skill_evaluation('programming', center_score=15)
        self.assertEqual(assessment.get_competency_gaps(), {})
        self.assertEqual(assessment.overall_average_score, 15.0)
        self.assertFalse(assessment.is_complete)
        assessment.overall_rating = 'satisfaisant'
        self.assertTrue(assessment.is_complete)

    def test_unknown_skill_name(self):
        self.assertEqual(skill_name('data_analysis'), 'Data analysis')


class ProgressAssessmentModelTest(TestCase):
    def build(self, **kwargs):
        kwargs.setdefault('period', timezone.localdate())
        return ProgressAssessment(student=create_student(), **kwargs)

    def test_overall_progression_is_weighted(self):
        assessment = self.build(center_progression=80, company_progression=50)
        self.assertEqual(assessment.calculate_overall_progression(), Decimal('68.00'))
        self.assertEqual(assessment.progression_status, 'average')

    def test_low_risk_for_good_progression(self):
        assessment = self.build(
            center_progression=90, company_progression=85,
            completed_objectives=['A', 'B'], pending_objectives=['C'],
        )
        assessment.calculate_overall_progression()
        self.assertEqual(assessment.calculate_risk_level(), 1)
        self.assertFalse(assessment.is_at_risk)

    def test_high_risk_accumulates_factors(self):
        assessment = self.build(
            center_progression=30, company_progression=20,
            pending_objectives=['A'],
            difficulties=[{'description': 'Retards', 'severity': 5}, {'description': 'Absences', 'severity': 4}],
            support_needed=[{'description': 'Tutorat', 'urgency': 5}],
        )
        assessment.calculate_overall_progression()
        # progression < 50 (+2), difficultés graves (+2), soutien urgent (+1), objectifs (+1)
        self.assertEqual(assessment.calculate_risk_level(), 5)
        self.assertTrue(assessment.is_at_risk)
        factors = [factor['factor'] for factor in assessment.get_risk_factors()]
        self.assertEqual(factors, [
            'Progression globale faible', 'Difficultés importantes', 'Accompagnement urgent nécessaire'
        ])

    def test_skill_trends(self):
        assessment = self.build()
        self.assertEqual(assessment.update_skill('programming', 10), 'new')
        self.assertEqual(assessment.update_skill('programming', 14), 'improving')
        self.assertEqual(assessment.update_skill('programming', 13.5), 'stable')
        self.assertEqual(assessment.update_skill('programming', 25), 'improving')
        self.assertEqual(assessment.skills_matrix['programming']['level'], 20.0)
        self.assertEqual(assessment.update_skill('programming', 12), 'declining')

    def test_skills_matrix_summary(self):
        assessment = self.build()
        assessment.update_skill('programming', 17)
        assessment.update_skill('teamwork', 11)
        summary = assessment.skills_matrix_summary
        self.assertEqual(summary['total_skills'], 2)
        self.assertEqual(summary['average_level'], 14.0)
        self.assertEqual(summary['mastered_skills'], 1)


class CoordinationMeetingModelTest(TestCase):
    def test_postpone_resets_reminder(self):
        meeting = create_meeting(create_student(), reminder_sent_at=timezone.now())
        new_date = timezone.now() + timedelta(days=7)
        meeting.postpone(new_date)
        self.assertEqual(meeting.status, MeetingStatus.POSTPONED)
        self.assertEqual(meeting.meeting_date, new_date)
        self.assertIsNone(meeting.reminder_sent_at)
        self.assertTrue(meeting.can_be_edited)

    def test_follow_up_and_stars(self):
        meeting = create_meeting(create_student(), action_plan=['Revoir le planning'], satisfaction_rating=4)
        self.assertFalse(meeting.requires_follow_up)
        meeting.mark_completed()
        self.assertTrue(meeting.requires_follow_up)
        self.assertFalse(meeting.can_be_edited)
        self.assertEqual(meeting.satisfaction_stars, '★★★★☆')


class CompanyVisitModelTest(TestCase):
    def test_ratings(self):
        visit = create_visit(create_student(), overall_rating=8, supervision_rating=7)
        self.assertEqual(visit.average_rating, 7.5)
        self.assertTrue(visit.has_positive_outcome)
        self.assertFalse(visit.needs_attention)
        self.assertEqual(visit.rating_badge_class, 'bg-warning')

    def test_visit_needing_attention(self):
        visit = create_visit(create_student(), overall_rating=5)
        self.assertTrue(visit.needs_attention)
        self.assertFalse(visit.get_assessment()['positive_outcome'])

    def test_unrated_visit(self):
        visit = create_visit(create_student())
        self.assertIsNone(visit.average_rating)
        self.assertEqual(visit.formatted_duration, 'Non renseigné')
