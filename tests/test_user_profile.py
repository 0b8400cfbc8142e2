"""
Test suite for authentication and user profiles.

Tests cover:
- Obtaining JWT tokens with email and password
- Using the access token as a Bearer credential
- Own profile retrieval and update
- Public profile with the city privacy setting applied
"""

from django.contrib.auth import get_user_model
from django.test import TestCase
from rest_framework import status
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken


User = get_user_model()


class TokenAuthenticationTests(TestCase):

    def setUp(self):
        self.client = APIClient()
        self.user = User.objects.create_user(
            username='reader',
            email='Reader@Test.com',
            password='SecurePass123!',
            name='Reader'
        )

    def test_email_is_stored_lowercase(self):
        self.assertEqual(self.user.email, 'reader@test.com')

    def test_obtain_token_with_email(self):
        response = self.client.post('/api/auth/token/', {
            'email': 'reader@test.com',
            'password': 'SecurePass123!'
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('access', response.data)
        self.assertIn('refresh', response.data)

    def test_wrong_password_is_rejected(self):
        response = self.client.post('/api/auth/token/', {
            'email': 'reader@test.com',
            'password': 'wrong'
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertFalse(response.data['success'])

    def test_inactive_user_cannot_obtain_token(self):
        self.user.is_active = False
        self.user.save()

        response = self.client.post('/api/auth/token/', {
            'email': 'reader@test.com',
            'password': 'SecurePass123!'
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_bearer_token_authenticates(self):
        access = str(RefreshToken.for_user(self.user).access_token)
        self.client.credentials(HTTP_AUTHORIZATION=f'Bearer {access}')

        response = self.client.get('/api/users/me/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['email'], 'reader@test.com')

    def test_refresh_token(self):
        refresh = RefreshToken.for_user(self.user)

        response = self.client.post('/api/auth/token/refresh/', {'refresh': str(refresh)}, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('access', response.data)


class OwnProfileTests(TestCase):

    def setUp(self):
        self.client = APIClient()
        self.user = User.objects.create_user(
            username='reader', email='reader@test.com', password='testpass123',
            name='Reader', city='Braga'
        )
        self.client.force_authenticate(user=self.user)

    def test_get_own_profile(self):
        response = self.client.get('/api/users/me/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        data = response.data['data']
        self.assertEqual(data['name'], 'Reader')
        self.assertEqual(data['city'], 'Braga')
        self.assertEqual(data['average_rating'], 0.0)
        self.assertEqual(data['rating_count'], 0)

    def test_update_profile(self):
        response = self.client.patch('/api/users/me/', {
            'name': '  New Name ',
            'city': 'Faro',
            'show_city': False
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.user.refresh_from_db()
        self.assertEqual(self.user.name, 'New Name')
        self.assertEqual(self.user.city, 'Faro')
        self.assertFalse(self.user.show_city)

    def test_rating_fields_are_read_only(self):
        self.client.patch('/api/users/me/', {
            'average_rating': 5.0,
            'rating_count': 99,
            'email': 'other@test.com'
        }, format='json')

        self.user.refresh_from_db()
        self.assertEqual(self.user.average_rating, 0.0)
        self.assertEqual(self.user.rating_count, 0)
        self.assertEqual(self.user.email, 'reader@test.com')


class PublicProfileTests(TestCase):

    def setUp(self):
        self.client = APIClient()

    def test_city_shown_when_enabled(self):
        user = User.objects.create_user(
            username='open', email='open@test.com', password='testpass123', city='Lisbon'
        )

        response = self.client.get(f'/api/users/{user.id}/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['city'], 'Lisbon')
        self.assertNotIn('email', response.data['data'])

    def test_city_hidden_when_disabled(self):
        user = User.objects.create_user(
            username='shy', email='shy@test.com', password='testpass123',
            city='Lisbon', show_city=False
        )

        response = self.client.get(f'/api/users/{user.id}/')

        self.assertNotIn('city', response.data['data'])

    def test_inactive_user_is_not_found(self):
        user = User.objects.create_user(
            username='gone', email='gone@test.com', password='testpass123', is_active=False
        )

        response = self.client.get(f'/api/users/{user.id}/')

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['error']['code'], 'USER_NOT_FOUND')

    def test_malformed_user_id(self):
        response = self.client.get('/api/users/-3/')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error']['code'], 'INVALID_USER_ID')
