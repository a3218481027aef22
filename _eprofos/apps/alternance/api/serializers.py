from rest_framework import serializers

from ..models import (
    AlternanceContract, AlternanceProgram, CompanyMission, MissionAssignment, SkillsAssessment,
    ProgressAssessment, CoordinationMeeting, CompanyVisit
)
from ..services.validation import validate_contract, validate_program


class AlternanceContractListSerializer(serializers.ModelSerializer):
    student_name = serializers.CharField(source='student.get_full_name', read_only=True)
    status_display = serializers.CharField(source='get_status_display', read_only=True)
    contract_type_display = serializers.CharField(source='get_contract_type_display', read_only=True)
    formatted_duration = serializers.CharField(read_only=True)

    class Meta:
        model = AlternanceContract
        fields = [
            'id', 'contract_number', 'student', 'student_name', 'session', 'contract_type',
            'contract_type_display', 'company_name', 'job_title', 'start_date', 'end_date',
            'formatted_duration', 'status', 'status_display', 'created_at'
        ]


class AlternanceContractDetailSerializer(AlternanceContractListSerializer):
    mentor_name = serializers.SerializerMethodField()
    supervisor_name = serializers.SerializerMethodField()
    total_weekly_hours = serializers.IntegerField(read_only=True)
    progress_percentage = serializers.FloatField(read_only=True)
    remaining_days = serializers.IntegerField(read_only=True)
    compliance = serializers.SerializerMethodField()

    class Meta(AlternanceContractListSerializer.Meta):
        fields = AlternanceContractListSerializer.Meta.fields + [
            'company_address', 'company_siret', 'company_contact_person', 'company_contact_email',
            'company_contact_phone', 'mentor', 'mentor_name', 'pedagogical_supervisor', 'supervisor_name',
            'job_description', 'learning_objectives', 'company_objectives',
            'weekly_center_hours', 'weekly_company_hours', 'total_weekly_hours', 'remuneration',
            'progress_percentage', 'remaining_days', 'validated_at', 'started_at', 'completed_at',
            'compliance',
        ]

    def get_mentor_name(self, obj):
        return obj.mentor.get_full_name() if obj.mentor else None

    def get_supervisor_name(self, obj):
        return obj.pedagogical_supervisor.get_full_name() if obj.pedagogical_supervisor else None

    def get_compliance(self, obj):
        return validate_contract(obj)


class AlternanceProgramSerializer(serializers.ModelSerializer):
    rhythm_description = serializers.CharField(read_only=True)
    center_duration_percentage = serializers.FloatField(read_only=True)
    compliance = serializers.SerializerMethodField()

    class Meta:
        model = AlternanceProgram
        fields = [
            'id', 'session', 'title', 'description', 'total_duration', 'center_duration',
            'company_duration', 'center_duration_percentage', 'rhythm', 'rhythm_description',
            'center_modules', 'company_modules', 'coordination_points', 'assessment_periods',
            'learning_progression', 'compliance'
        ]

    def get_compliance(self, obj):
        return validate_program(obj)


class CompanyMissionSerializer(serializers.ModelSerializer):
    supervisor_name = serializers.CharField(source='supervisor.get_full_name', read_only=True)
    complexity_display = serializers.CharField(source='get_complexity_display', read_only=True)
    active_assignments_count = serializers.IntegerField(read_only=True)

    class Meta:
        model = CompanyMission
        fields = [
            'id', 'supervisor', 'supervisor_name', 'title', 'description', 'objectives',
            'required_skills', 'skills_to_acquire', 'duration', 'complexity', 'complexity_display',
            'term', 'department', 'order_index', 'is_active', 'active_assignments_count'
        ]


class MissionAssignmentSerializer(serializers.ModelSerializer):
    mission_title = serializers.CharField(source='mission.title', read_only=True)
    student_name = serializers.CharField(source='student.get_full_name', read_only=True)
    status_display = serializers.CharField(source='get_status_display', read_only=True)
    is_overdue = serializers.BooleanField(read_only=True)

    class Meta:
        model = MissionAssignment
        fields = [
            'id', 'mission', 'mission_title', 'student', 'student_name', 'start_date', 'end_date',
            'status', 'status_display', 'completion_rate', 'is_overdue', 'last_updated'
        ]


class SkillsAssessmentSerializer(serializers.ModelSerializer):
    student_name = serializers.CharField(source='student.get_full_name', read_only=True)
    average_center_score = serializers.FloatField(read_only=True)
    average_company_score = serializers.FloatField(read_only=True)
    overall_average_score = serializers.FloatField(read_only=True)
    competency_gaps = serializers.SerializerMethodField()

    class Meta:
        model = SkillsAssessment
        fields = [
            'id', 'student', 'student_name', 'assessment_type', 'context', 'assessment_date',
            'skills_evaluated', 'center_scores', 'company_scores', 'average_center_score',
            'average_company_score', 'overall_average_score', 'overall_rating', 'competency_gaps',
            'development_plan', 'validated_at'
        ]

    def get_competency_gaps(self, obj):
        return obj.get_competency_gaps()


class ProgressAssessmentSerializer(serializers.ModelSerializer):
    student_name = serializers.CharField(source='student.get_full_name', read_only=True)
    progression_status = serializers.CharField(read_only=True)
    risk_factors = serializers.SerializerMethodField()

    class Meta:
        model = ProgressAssessment
        fields = [
            'id', 'student', 'student_name', 'period', 'center_progression', 'company_progression',
            'overall_progression', 'progression_status', 'risk_level', 'risk_factors',
            'skills_matrix', 'validated_at'
        ]

    def get_risk_factors(self, obj):
        return obj.get_risk_factors()


class CoordinationMeetingSerializer(serializers.ModelSerializer):
    student_name = serializers.CharField(source='student.get_full_name', read_only=True)
    status_display = serializers.CharField(source='get_status_display', read_only=True)
    summary = serializers.CharField(read_only=True)

    class Meta:
        model = CoordinationMeeting
        fields = [
            'id', 'student', 'student_name', 'meeting_date', 'type', 'location', 'status',
            'status_display', 'agenda', 'decisions', 'action_plan', 'next_meeting_date', 'summary'
        ]


class CompanyVisitSerializer(serializers.ModelSerializer):
    student_name = serializers.CharField(source='student.get_full_name', read_only=True)
    assessment = serializers.SerializerMethodField()

    class Meta:
        model = CompanyVisit
        fields = [
            'id', 'student', 'student_name', 'visit_date', 'visit_type', 'overall_rating',
            'follow_up_required', 'next_visit_date', 'assessment'
        ]

    def get_assessment(self, obj):
        return obj.get_assessment()
