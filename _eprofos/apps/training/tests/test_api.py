from django.contrib.auth.models import User
from django.test import TestCase
from rest_framework import status
from rest_framework.test import APIClient

from .helpers import create_staff_user, create_formation, create_module, create_chapter, create_course, create_session


class TrainingAPITest(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.user = create_staff_user()
        self.formation = create_formation()
        chapter = create_chapter(create_module(self.formation, "Bases"))
        create_course(chapter, "Syntaxe", duration_minutes=240)
        self.session = create_session(self.formation)

    def test_list_formations_requires_authentication(self):
        response = self.client.get('/api/training/formations/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertFalse(response.json()['success'])

    def test_list_formations_refused_to_non_staff(self):
        user = User.objects.create_user(username='learner', password='testpass123')
        self.client.force_authenticate(user=user)
        response = self.client.get('/api/training/formations/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_list_formations(self):
        self.client.force_authenticate(user=self.user)
        create_formation("Excel", is_active=False)

        response = self.client.get('/api/training/formations/', {'is_active': 'true'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        data = response.json()
        self.assertIn('results', data)
        self.assertEqual(data['count'], 1)
        self.assertEqual(data['results'][0]['formatted_price'], "1 500 €")

    def test_search_formations(self):
        self.client.force_authenticate(user=self.user)
        create_formation("Excel")
        response = self.client.get('/api/training/formations/', {'search': 'Excel'})
        self.assertEqual(response.json()['count'], 1)

    def test_formation_detail_contains_modules(self):
        self.client.force_authenticate(user=self.user)
        response = self.client.get(f'/api/training/formations/{self.formation.pk}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        modules = response.json()['modules']
        self.assertEqual(modules[0]['title'], "Bases")
        self.assertEqual(modules[0]['chapters'][0]['courses'][0]['duration_minutes'], 240)

    def test_formation_schedule(self):
        self.client.force_authenticate(user=self.user)
        response = self.client.get(f'/api/training/formations/{self.formation.pk}/schedule/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        data = response.json()
        # 30 + 15 + 240 minutes
        self.assertEqual(data['total_duration'], 285)
        self.assertEqual(data['total_days'], 1)
        afternoon = data['days'][0]['afternoon']['items']
        self.assertEqual(afternoon[0]['display_title'], "Syntaxe (suite)")
        self.assertNotIn('entity', afternoon[0])

    def test_formation_qualiopi(self):
        self.client.force_authenticate(user=self.user)
        response = self.client.get(f'/api/training/formations/{self.formation.pk}/qualiopi/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(response.json()['critere_2_5']['compliant'])

    def test_sessions(self):
        self.client.force_authenticate(user=self.user)
        response = self.client.get('/api/training/sessions/', {'status': 'open'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        result = response.json()['results'][0]
        self.assertEqual(result['available_places'], 10)
        self.assertTrue(result['is_registration_open'])
