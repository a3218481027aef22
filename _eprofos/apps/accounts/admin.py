# apps/accounts/admin.py

from django.contrib import admin

from .models import Student, Teacher, Mentor


@admin.register(Student)
class StudentAdmin(admin.ModelAdmin):
    list_display = ['last_name', 'first_name', 'email', 'city', 'company', 'is_active']
    list_filter = ['is_active', 'education_level', 'created_at']
    search_fields = ['first_name', 'last_name', 'email', 'company']

    fieldsets = (
        ('Identité', {
            'fields': ('first_name', 'last_name', 'email', 'phone', 'birth_date')
        }),
        ('Adresse', {
            'fields': ('address', 'postal_code', 'city', 'country')
        }),
        ('Parcours', {
            'fields': ('education_level', 'profession', 'company')
        }),
        ('Statut', {
            'fields': ('is_active',)
        })
    )


@admin.register(Teacher)
class TeacherAdmin(admin.ModelAdmin):
    list_display = ['last_name', 'first_name', 'email', 'specialty', 'years_of_experience', 'is_active']
    list_filter = ['is_active']
    search_fields = ['first_name', 'last_name', 'email', 'specialty']


@admin.register(Mentor)
class MentorAdmin(admin.ModelAdmin):
    list_display = [
        'last_name', 'first_name', 'company_name', 'position',
        'experience_years', 'is_active'
    ]
    list_filter = ['is_active', 'education_level']
    search_fields = ['first_name', 'last_name', 'email', 'company_name', 'company_siret']
    actions = ['activate_mentors', 'deactivate_mentors']

    @admin.action(description="Activer les tuteurs sélectionnés")
    def activate_mentors(self, request, queryset):
        updated = queryset.update(is_active=True)
        self.message_user(request, f"{updated} tuteur(s) activé(s).")

    @admin.action(description="Désactiver les tuteurs sélectionnés")
    def deactivate_mentors(self, request, queryset):
        updated = queryset.update(is_active=False)
        self.message_user(request, f"{updated} tuteur(s) désactivé(s).")
