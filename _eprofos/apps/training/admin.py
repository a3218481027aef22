# apps/training/admin.py

from django.contrib import admin
from django.utils.html import format_html

from .models import (
    Category, Formation, Module, Chapter, Course, Exercise, QCM, Session, SessionRegistration
)


@admin.register(Category)
class CategoryAdmin(admin.ModelAdmin):
    list_display = ['name', 'slug', 'is_active', 'created_at']
    list_filter = ['is_active']
    search_fields = ['name', 'description']
    prepopulated_fields = {'slug': ('name',)}


class ModuleInline(admin.TabularInline):
    model = Module
    extra = 0
    fields = ['order_index', 'title', 'duration_hours', 'is_active']
    readonly_fields = ['duration_hours']
    ordering = ['order_index']


@admin.register(Formation)
class FormationAdmin(admin.ModelAdmin):
    list_display = ['title', 'category', 'level', 'format', 'duration_hours', 'price', 'is_active', 'is_featured']
    list_filter = ['category', 'level', 'format', 'is_active', 'is_featured']
    search_fields = ['title', 'description']
    prepopulated_fields = {'slug': ('title',)}
    readonly_fields = ['duration_hours', 'created_at', 'updated_at']
    inlines = [ModuleInline]

    fieldsets = (
        ('Formation', {
            'fields': ('title', 'slug', 'category', 'description', 'image')
        }),
        ('Contenu', {
            'fields': ('objectives', 'prerequisites', 'program')
        }),
        ('Organisation', {
            'fields': ('duration_hours', 'price', 'level', 'format', 'is_active', 'is_featured')
        }),
        ('Qualiopi', {
            'fields': (
                'target_audience', 'access_modalities', 'handicap_accessibility',
                'teaching_methods', 'evaluation_methods', 'contact_info',
                'training_location', 'funding_modalities'
            ),
            'classes': ('collapse',)
        }),
        ('Objectifs (critère 2.5)', {
            'fields': (
                'operational_objectives', 'evaluable_objectives',
                'evaluation_criteria', 'success_indicators'
            ),
            'classes': ('collapse',)
        }),
        ('Dates', {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',)
        })
    )


@admin.register(Module)
class ModuleAdmin(admin.ModelAdmin):
    list_display = ['title', 'formation', 'order_index', 'duration_hours', 'is_active']
    list_filter = ['is_active', 'formation']
    search_fields = ['title', 'description']
    readonly_fields = ['duration_hours']


@admin.register(Chapter)
class ChapterAdmin(admin.ModelAdmin):
    list_display = ['title', 'module', 'order_index', 'duration_minutes', 'is_active']
    list_filter = ['is_active', 'module__formation']
    search_fields = ['title', 'description']


class ExerciseInline(admin.TabularInline):
    model = Exercise
    extra = 0
    fields = ['order_index', 'title', 'type', 'difficulty', 'estimated_duration_minutes', 'is_active']


class QCMInline(admin.TabularInline):
    model = QCM
    extra = 0
    fields = ['order_index', 'title', 'time_limit_minutes', 'max_score', 'passing_score', 'is_active']


@admin.register(Course)
class CourseAdmin(admin.ModelAdmin):
    list_display = ['title', 'chapter', 'type', 'order_index', 'duration_minutes', 'is_active']
    list_filter = ['type', 'is_active']
    search_fields = ['title', 'description', 'content']
    inlines = [ExerciseInline, QCMInline]


@admin.register(Exercise)
class ExerciseAdmin(admin.ModelAdmin):
    list_display = ['title', 'course', 'type', 'difficulty', 'estimated_duration_minutes', 'is_active']
    list_filter = ['type', 'difficulty', 'is_active']
    search_fields = ['title', 'description']


@admin.register(QCM)
class QCMAdmin(admin.ModelAdmin):
    list_display = ['title', 'course', 'question_count', 'time_limit_minutes', 'max_score', 'is_active']
    list_filter = ['is_active']
    search_fields = ['title', 'description']

    @admin.display(description='Questions')
    def question_count(self, obj):
        return obj.question_count


class SessionRegistrationInline(admin.TabularInline):
    model = SessionRegistration
    extra = 0
    fields = ['first_name', 'last_name', 'email', 'status', 'confirmed_at']
    readonly_fields = ['confirmed_at']


@admin.register(Session)
class SessionAdmin(admin.ModelAdmin):
    list_display = [
        'name', 'formation', 'start_date', 'end_date', 'location',
        'registrations_display', 'status_badge', 'is_active'
    ]
    list_filter = ['status', 'is_active', 'is_alternance_session', 'formation']
    search_fields = ['name', 'location', 'formation__title']
    date_hierarchy = 'start_date'
    readonly_fields = ['current_registrations']
    inlines = [SessionRegistrationInline]

    @admin.display(description='Inscrits')
    def registrations_display(self, obj):
        return f"{obj.current_registrations}/{obj.max_capacity}"

    @admin.display(description='Statut')
    def status_badge(self, obj):
        return format_html(
            '<span class="badge {}">{}</span>',
            obj.status_badge_class,
            obj.get_status_display()
        )


@admin.register(SessionRegistration)
class SessionRegistrationAdmin(admin.ModelAdmin):
    list_display = ['last_name', 'first_name', 'email', 'session', 'status', 'created_at']
    list_filter = ['status', 'session__formation']
    search_fields = ['first_name', 'last_name', 'email', 'company']
    readonly_fields = ['confirmed_at', 'created_at', 'updated_at']
    actions = ['confirm_registrations', 'cancel_registrations']

    @admin.action(description="Confirmer les inscriptions sélectionnées")
    def confirm_registrations(self, request, queryset):
        count = 0
        for registration in queryset:
            registration.confirm()
            registration.save()
            count += 1
        self.message_user(request, f"{count} inscription(s) confirmée(s).")

    @admin.action(description="Annuler les inscriptions sélectionnées")
    def cancel_registrations(self, request, queryset):
        count = 0
        for registration in queryset:
            registration.cancel()
            registration.save()
            count += 1
        self.message_user(request, f"{count} inscription(s) annulée(s).")
