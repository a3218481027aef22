import json

from django.contrib.auth.models import User
from django.contrib.messages import get_messages
from django.test import TestCase, Client
from django.urls import reverse

from apps.training.models import (
    Category, Formation, Module, Chapter, Course, Exercise, Session, SessionStatus, SessionRegistration,
    RegistrationStatus
)
from .helpers import (
    create_staff_user, create_formation, create_module, create_chapter, create_course, create_session
)


def flash_messages(response):
    return [str(message) for message in get_messages(response.wsgi_request)]


class StaffAccessTest(TestCase):
    def test_anonymous_user_is_redirected_to_login(self):
        response = self.client.get(reverse('training:formation_list'))
        self.assertEqual(response.status_code, 302)
        self.assertIn(reverse('admin:login'), response.url)

    def test_non_staff_user_is_refused(self):
        user = User.objects.create_user(username='learner', password='testpass123')
        self.client.force_login(user)
        response = self.client.get(reverse('training:formation_list'))
        self.assertRedirects(response, reverse('admin:login'), fetch_redirect_response=False)


class CatalogueViewsTest(TestCase):
    def setUp(self):
        self.client = Client()
        self.client.force_login(create_staff_user())
        self.formation = create_formation()
        self.category = self.formation.category

    def test_lists_render(self):
        for name in [
            'training:category_list', 'training:formation_list', 'training:module_list',
            'training:chapter_list', 'training:chapter_statistics', 'training:course_list',
            'training:exercise_list', 'training:session_list', 'training:registration_list',
        ]:
            response = self.client.get(reverse(name))
            self.assertEqual(response.status_code, 200, name)

    def test_formation_detail(self):
        response = self.client.get(self.formation.get_absolute_url())
        self.assertEqual(response.status_code, 200)
        self.assertFalse(response.context['qualiopi']['critere_2_5']['compliant'])

    def test_create_formation(self):
        response = self.client.post(reverse('training:formation_create'), {
            'title': 'Gestion de projet',
            'category': self.category.pk,
            'description': 'Les bases de la gestion de projet',
            'duration_hours': 0,
            'price': '1200',
            'level': 'debutant',
            'format': 'presentiel',
            'is_active': 'on',
            'operational_objectives': "Planifier un projet\nSuivre un budget\n",
        })
        formation = Formation.objects.get(title='Gestion de projet')
        self.assertRedirects(response, formation.get_absolute_url(), fetch_redirect_response=False)
        self.assertEqual(formation.slug, 'gestion-de-projet')
        self.assertEqual(formation.operational_objectives, ["Planifier un projet", "Suivre un budget"])
        self.assertIn("Formation créée avec succès.", flash_messages(response))

    def test_category_with_formations_cannot_be_deleted(self):
        response = self.client.post(reverse('training:category_delete', args=[self.category.pk]))
        self.assertRedirects(response, self.category.get_absolute_url(), fetch_redirect_response=False)
        self.assertTrue(Category.objects.filter(pk=self.category.pk).exists())

    def test_formation_with_sessions_cannot_be_deleted(self):
        create_session(self.formation)
        response = self.client.post(reverse('training:formation_delete', args=[self.formation.pk]))
        self.assertRedirects(response, self.formation.get_absolute_url(), fetch_redirect_response=False)
        self.assertIn(
            "Impossible de supprimer cette formation car elle possède 1 session(s).", flash_messages(response)
        )
        self.assertTrue(Formation.objects.filter(pk=self.formation.pk).exists())

        Session.objects.filter(formation=self.formation).delete()
        response = self.client.post(reverse('training:formation_delete', args=[self.formation.pk]))
        self.assertRedirects(response, reverse('training:formation_list'), fetch_redirect_response=False)
        self.assertFalse(Formation.objects.filter(pk=self.formation.pk).exists())

    def test_empty_category_is_deleted(self):
        category = Category.objects.create(name="Vide")
        response = self.client.post(reverse('training:category_delete', args=[category.pk]))
        self.assertRedirects(response, reverse('training:category_list'), fetch_redirect_response=False)
        self.assertFalse(Category.objects.filter(pk=category.pk).exists())

    def test_toggle_category_status(self):
        response = self.client.post(reverse('training:category_toggle_status', args=[self.category.pk]))
        self.assertRedirects(response, reverse('training:category_list'), fetch_redirect_response=False)
        self.category.refresh_from_db()
        self.assertFalse(self.category.is_active)
        self.assertIn("Catégorie désactivée avec succès.", flash_messages(response))

    def test_toggle_featured_as_json(self):
        response = self.client.post(
            reverse('training:formation_toggle_featured', args=[self.formation.pk]),
            HTTP_X_REQUESTED_WITH='XMLHttpRequest'
        )
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.json()['value'])
        self.formation.refresh_from_db()
        self.assertTrue(self.formation.is_featured)

    def test_toggle_requires_post(self):
        response = self.client.get(reverse('training:formation_toggle_status', args=[self.formation.pk]))
        self.assertEqual(response.status_code, 405)


class ModuleAndChapterViewsTest(TestCase):
    def setUp(self):
        self.client.force_login(create_staff_user())
        self.formation = create_formation()
        self.first = create_module(self.formation, "Premier")
        self.second = create_module(self.formation, "Second")

    def test_reorder_modules(self):
        response = self.client.post(
            reverse('training:module_reorder'),
            {'order': [str(self.second.pk), str(self.first.pk)]}
        )
        self.assertEqual(response.status_code, 302)
        self.first.refresh_from_db()
        self.second.refresh_from_db()
        self.assertEqual(self.second.order_index, 1)
        self.assertEqual(self.first.order_index, 2)

    def test_reorder_with_json_body(self):
        response = self.client.post(
            reverse('training:module_reorder'),
            data=json.dumps({'order': [str(self.second.pk), str(self.first.pk)]}),
            content_type='application/json'
        )
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.json()['success'])

    def test_reorder_empty_list(self):
        response = self.client.post(
            reverse('training:module_reorder'), data=json.dumps({'order': []}), content_type='application/json'
        )
        self.assertEqual(response.status_code, 400)

    def test_create_module_is_appended(self):
        response = self.client.post(reverse('training:module_create'), {
            'formation': self.formation.pk,
            'title': 'Troisième',
            'description': 'Dernier module',
            'duration_hours': 0,
            'is_active': 'on',
        })
        module = Module.objects.get(title='Troisième')
        self.assertRedirects(response, module.get_absolute_url(), fetch_redirect_response=False)
        self.assertEqual(module.order_index, 3)

    def test_duplicate_chapter(self):
        chapter = create_chapter(self.first, "Variables", learning_objectives=["Déclarer"])
        response = self.client.post(reverse('training:chapter_duplicate', args=[chapter.pk]))

        copy = Chapter.objects.get(title="Variables (Copie)")
        self.assertRedirects(response, copy.get_absolute_url(), fetch_redirect_response=False)
        self.assertFalse(copy.is_active)
        self.assertEqual(copy.order_index, 2)
        self.assertTrue(copy.slug.startswith(f"{chapter.slug}-copy-"))
        self.assertEqual(copy.learning_objectives, ["Déclarer"])
        self.assertIn("Chapitre dupliqué avec succès.", flash_messages(response))

    def test_chapter_by_module(self):
        create_chapter(self.first, "Un")
        response = self.client.get(reverse('training:chapter_by_module', args=[self.first.pk]))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(response.context['chapters']), 1)

    def test_module_delete_redirects_to_formation(self):
        response = self.client.post(reverse('training:module_delete', args=[self.second.pk]))
        self.assertRedirects(response, self.formation.get_absolute_url(), fetch_redirect_response=False)
        self.assertFalse(Module.objects.filter(pk=self.second.pk).exists())


class PedagogicalContentViewsTest(TestCase):
    def setUp(self):
        self.client.force_login(create_staff_user())
        self.formation = create_formation()
        self.module = create_module(self.formation)
        self.chapter = create_chapter(self.module, "Variables")
        self.course = create_course(self.chapter, "Les types", duration_minutes=60)

    def content_data(self, **overrides):
        data = {
            'title': 'Contenu',
            'description': 'Description du contenu',
            'learning_objectives': "Comprendre\nAppliquer",
            'duration_minutes': 0,
            'is_active': 'on',
        }
        data.update(overrides)
        return data

    def exercise_data(self, **overrides):
        data = {
            'course': self.course.pk,
            'title': 'Calculatrice',
            'description': 'Coder une calculatrice',
            'instructions': 'Utiliser les opérateurs de base',
            'type': 'individual',
            'difficulty': 'beginner',
            'estimated_duration_minutes': 30,
            'max_points': 20,
            'passing_points': 10,
            'is_active': 'on',
        }
        data.update(overrides)
        return data

    def test_create_chapter(self):
        response = self.client.post(
            reverse('training:chapter_create'), self.content_data(module=self.module.pk, title='Boucles')
        )
        chapter = Chapter.objects.get(title='Boucles')
        self.assertRedirects(response, chapter.get_absolute_url(), fetch_redirect_response=False)
        self.assertEqual(chapter.order_index, 2)
        self.assertEqual(chapter.slug, 'boucles')
        self.assertEqual(chapter.learning_objectives, ["Comprendre", "Appliquer"])
        self.assertIn("Chapitre créé avec succès.", flash_messages(response))

    def test_update_chapter(self):
        response = self.client.post(
            reverse('training:chapter_update', args=[self.chapter.pk]),
            self.content_data(module=self.module.pk, title='Variables et constantes', order_index=1)
        )
        self.assertRedirects(response, self.chapter.get_absolute_url(), fetch_redirect_response=False)
        self.chapter.refresh_from_db()
        self.assertEqual(self.chapter.title, 'Variables et constantes')
        self.assertIn("Chapitre modifié avec succès.", flash_messages(response))

    def test_create_course_updates_durations(self):
        response = self.client.post(reverse('training:course_create'), self.content_data(
            chapter=self.chapter.pk, title='Les listes', type='video', duration_minutes=90,
        ))
        course = Course.objects.get(title='Les listes')
        self.assertRedirects(response, course.get_absolute_url(), fetch_redirect_response=False)
        self.assertEqual(course.order_index, 2)
        self.assertIn("Cours créé avec succès.", flash_messages(response))

        self.chapter.refresh_from_db()
        self.formation.refresh_from_db()
        self.assertEqual(self.chapter.duration_minutes, 150)
        self.assertEqual(self.formation.duration_hours, 3)

    def test_invalid_course_is_not_created(self):
        response = self.client.post(
            reverse('training:course_create'), self.content_data(chapter=self.chapter.pk, title='')
        )
        self.assertEqual(response.status_code, 200)
        self.assertIn('title', response.context['form'].errors)
        self.assertEqual(Course.objects.count(), 1)

    def test_update_course(self):
        response = self.client.post(reverse('training:course_update', args=[self.course.pk]), self.content_data(
            chapter=self.chapter.pk, title='Les types simples', type='lesson', duration_minutes=120, order_index=1,
        ))
        self.assertRedirects(response, self.course.get_absolute_url(), fetch_redirect_response=False)
        self.assertIn("Cours modifié avec succès.", flash_messages(response))
        self.chapter.refresh_from_db()
        self.assertEqual(self.chapter.duration_minutes, 120)

    def test_create_exercise(self):
        response = self.client.post(reverse('training:exercise_create'), self.exercise_data(
            expected_outcomes="Addition\nSoustraction",
        ))
        exercise = Exercise.objects.get(title='Calculatrice')
        self.assertRedirects(response, exercise.get_absolute_url(), fetch_redirect_response=False)
        self.assertEqual(exercise.expected_outcomes, ["Addition", "Soustraction"])
        self.assertIn("Exercice créé avec succès.", flash_messages(response))
        self.chapter.refresh_from_db()
        self.assertEqual(self.chapter.duration_minutes, 90)

    def test_exercise_passing_points_are_checked(self):
        response = self.client.post(reverse('training:exercise_create'), self.exercise_data(passing_points=25))
        self.assertEqual(response.status_code, 200)
        self.assertIn('passing_points', response.context['form'].errors)
        self.assertFalse(Exercise.objects.exists())

    def test_update_exercise(self):
        exercise = Exercise.objects.create(
            course=self.course, title="Calculatrice", description="d", instructions="i"
        )
        response = self.client.post(
            reverse('training:exercise_update', args=[exercise.pk]),
            self.exercise_data(difficulty='advanced', order_index=1)
        )
        self.assertRedirects(response, exercise.get_absolute_url(), fetch_redirect_response=False)
        exercise.refresh_from_db()
        self.assertEqual(exercise.difficulty, 'advanced')
        self.assertIn("Exercice modifié avec succès.", flash_messages(response))

    def test_toggle_course_as_json(self):
        response = self.client.post(
            reverse('training:course_toggle_active', args=[self.course.pk]),
            HTTP_X_REQUESTED_WITH='XMLHttpRequest'
        )
        self.assertEqual(response.json(), {
            'success': True, 'value': False, 'message': "Cours désactivé avec succès.",
        })
        self.chapter.refresh_from_db()
        self.assertEqual(self.chapter.duration_minutes, 0)

    def test_toggle_exercise(self):
        exercise = Exercise.objects.create(
            course=self.course, title="Calculatrice", description="d", instructions="i",
            estimated_duration_minutes=30
        )
        self.chapter.refresh_from_db()
        self.assertEqual(self.chapter.duration_minutes, 90)

        response = self.client.post(
            reverse('training:exercise_toggle_active', args=[exercise.pk]),
            HTTP_X_REQUESTED_WITH='XMLHttpRequest'
        )
        self.assertEqual(response.json()['message'], "Exercice désactivé avec succès.")
        exercise.refresh_from_db()
        self.assertFalse(exercise.is_active)
        self.chapter.refresh_from_db()
        self.assertEqual(self.chapter.duration_minutes, 60)

        response = self.client.post(reverse('training:exercise_toggle_active', args=[exercise.pk]))
        self.assertRedirects(response, reverse('training:exercise_list'), fetch_redirect_response=False)
        self.assertIn("Exercice activé avec succès.", flash_messages(response))


class ScheduleViewsTest(TestCase):
    def setUp(self):
        self.client.force_login(create_staff_user())
        self.formation = create_formation()
        chapter = create_chapter(create_module(self.formation))
        self.course = create_course(chapter, duration_minutes=300)

    def test_schedule_page(self):
        response = self.client.get(reverse('training:formation_schedule', args=[self.formation.pk]))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.context['schedule']['total_days'], 1)

    def test_schedule_pdf(self):
        response = self.client.get(reverse('training:formation_schedule_pdf', args=[self.formation.pk]))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response['Content-Type'], 'application/pdf')
        self.assertTrue(response.content.startswith(b'%PDF'))

    def test_course_pdf(self):
        response = self.client.get(reverse('training:course_pdf', args=[self.course.pk]))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response['Content-Type'], 'application/pdf')

    def test_sync_durations(self):
        Formation.objects.filter(pk=self.formation.pk).update(duration_hours=99)
        response = self.client.post(reverse('training:formation_sync_durations', args=[self.formation.pk]))
        self.assertEqual(response.status_code, 302)
        self.formation.refresh_from_db()
        self.assertEqual(self.formation.duration_hours, 5)


class SessionViewsTest(TestCase):
    def setUp(self):
        self.client.force_login(create_staff_user())
        self.session = create_session(create_formation())
        self.registration = SessionRegistration.objects.create(
            session=self.session, first_name="Marie", last_name="Curie", email="marie@example.com"
        )

    def test_change_status(self):
        response = self.client.post(
            reverse('training:session_change_status', args=[self.session.pk]), {'status': 'confirmed'}
        )
        self.assertRedirects(response, self.session.get_absolute_url(), fetch_redirect_response=False)
        self.session.refresh_from_db()
        self.assertEqual(self.session.status, SessionStatus.CONFIRMED)
        self.assertIn("Le statut de la session a été modifié.", flash_messages(response))

    def test_invalid_status_is_refused(self):
        response = self.client.post(
            reverse('training:session_change_status', args=[self.session.pk]), {'status': 'archived'}
        )
        self.session.refresh_from_db()
        self.assertEqual(self.session.status, SessionStatus.OPEN)
        self.assertIn("Statut invalide demandé.", flash_messages(response))

    def test_session_with_confirmed_registrations_cannot_be_deleted(self):
        self.client.post(reverse('training:registration_confirm', args=[self.registration.pk]))
        self.registration.refresh_from_db()
        self.assertEqual(self.registration.status, RegistrationStatus.CONFIRMED)

        self.client.post(reverse('training:session_delete', args=[self.session.pk]))
        self.assertTrue(Session.objects.filter(pk=self.session.pk).exists())

    def test_cancel_registration_updates_count(self):
        self.client.post(reverse('training:registration_cancel', args=[self.registration.pk]))
        self.session.refresh_from_db()
        self.assertEqual(self.session.current_registrations, 0)

    def test_update_registration_status(self):
        self.client.post(
            reverse('training:registration_update_status', args=[self.registration.pk]), {'status': 'attended'}
        )
        self.registration.refresh_from_db()
        self.assertEqual(self.registration.status, RegistrationStatus.ATTENDED)

    def test_export_session_registrations(self):
        response = self.client.get(reverse('training:session_export_registrations', args=[self.session.pk]))
        self.assertEqual(response.status_code, 200)
        self.assertIn('text/csv', response['Content-Type'])
        content = response.content.decode('utf-8-sig')
        self.assertIn('marie@example.com', content)

    def test_export_registrations_excel(self):
        response = self.client.get(reverse('training:registration_export'), {'format': 'xlsx'})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(
            response['Content-Type'],
            'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'
        )

    def test_export_registrations_ignores_malformed_session(self):
        response = self.client.get(reverse('training:registration_export'), {'session': 'abc'})
        self.assertEqual(response.status_code, 200)
        self.assertIn('text/csv', response['Content-Type'])
        self.assertIn('marie@example.com', response.content.decode('utf-8-sig'))
