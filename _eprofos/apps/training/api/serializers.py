from rest_framework import serializers

from ..models import Category, Formation, Module, Chapter, Course, Session, SessionRegistration


class CategorySerializer(serializers.ModelSerializer):
    class Meta:
        model = Category
        fields = ['id', 'name', 'slug', 'description', 'icon', 'is_active']


class CourseSerializer(serializers.ModelSerializer):
    type_display = serializers.CharField(source='get_type_display', read_only=True)

    class Meta:
        model = Course
        fields = ['id', 'title', 'slug', 'type', 'type_display', 'duration_minutes', 'order_index', 'is_active']


class ChapterSerializer(serializers.ModelSerializer):
    courses = serializers.SerializerMethodField()

    class Meta:
        model = Chapter
        fields = ['id', 'title', 'slug', 'duration_minutes', 'order_index', 'is_active', 'courses']

    def get_courses(self, obj):
        return CourseSerializer(obj.get_active_courses(), many=True).data


class ModuleSerializer(serializers.ModelSerializer):
    chapters = serializers.SerializerMethodField()

    class Meta:
        model = Module
        fields = [
            'id', 'title', 'slug', 'description', 'learning_objectives',
            'duration_hours', 'order_index', 'is_active', 'chapters'
        ]

    def get_chapters(self, obj):
        return ChapterSerializer(obj.get_active_chapters(), many=True).data


class FormationListSerializer(serializers.ModelSerializer):
    category_name = serializers.CharField(source='category.name', read_only=True)
    level_display = serializers.CharField(source='get_level_display', read_only=True)
    format_display = serializers.CharField(source='get_format_display', read_only=True)
    formatted_price = serializers.CharField(read_only=True)
    formatted_duration = serializers.CharField(read_only=True)

    class Meta:
        model = Formation
        fields = [
            'id', 'title', 'slug', 'category', 'category_name', 'level', 'level_display',
            'format', 'format_display', 'duration_hours', 'formatted_duration',
            'price', 'formatted_price', 'is_active', 'is_featured', 'created_at'
        ]


class FormationDetailSerializer(FormationListSerializer):
    modules = serializers.SerializerMethodField()

    class Meta(FormationListSerializer.Meta):
        fields = FormationListSerializer.Meta.fields + [
            'description', 'objectives', 'prerequisites', 'program',
            'target_audience', 'access_modalities', 'handicap_accessibility',
            'teaching_methods', 'evaluation_methods', 'contact_info',
            'training_location', 'funding_modalities',
            'operational_objectives', 'evaluable_objectives',
            'evaluation_criteria', 'success_indicators', 'modules',
        ]

    def get_modules(self, obj):
        return ModuleSerializer(obj.get_active_modules(), many=True).data


class SessionSerializer(serializers.ModelSerializer):
    formation_title = serializers.CharField(source='formation.title', read_only=True)
    status_display = serializers.CharField(source='get_status_display', read_only=True)
    available_places = serializers.IntegerField(read_only=True)
    is_full = serializers.BooleanField(read_only=True)
    is_registration_open = serializers.BooleanField(read_only=True)
    formatted_date_range = serializers.CharField(read_only=True)
    formatted_price = serializers.CharField(read_only=True)

    class Meta:
        model = Session
        fields = [
            'id', 'formation', 'formation_title', 'name', 'start_date', 'end_date',
            'registration_deadline', 'location', 'max_capacity', 'min_capacity',
            'current_registrations', 'available_places', 'is_full', 'is_registration_open',
            'price', 'formatted_price', 'status', 'status_display', 'formatted_date_range',
            'is_active', 'is_alternance_session', 'alternance_type',
            'center_percentage', 'company_percentage', 'alternance_rhythm'
        ]


class SessionRegistrationSerializer(serializers.ModelSerializer):
    status_display = serializers.CharField(source='get_status_display', read_only=True)

    class Meta:
        model = SessionRegistration
        fields = [
            'id', 'session', 'first_name', 'last_name', 'email', 'phone', 'company',
            'position', 'status', 'status_display', 'confirmed_at', 'created_at'
        ]
