# accounts/api/tests/test_login.py
from django.contrib.auth import get_user_model
from django.urls import reverse
from rest_framework import status
from rest_framework.authtoken.models import Token
from rest_framework.test import APIClient, APITestCase

User = get_user_model()


class LoginTests(APITestCase):
    def setUp(self):
        self.url = reverse("login")
        self.client = APIClient()
        self.user = User.objects.create_user(
            email="admin@example.com",
            password="secret123",
            role_id=User.Role.ADMIN,
        )

    def test_login_success(self):
        payload = {"email": "admin@example.com", "password": "secret123"}
        resp = self.client.post(self.url, payload, format="json")
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertIn("token", resp.data)
        self.assertEqual(resp.data["token"], Token.objects.get(user=self.user).key)
        self.assertEqual(resp.data["user"]["id"], self.user.id)
        self.assertEqual(resp.data["user"]["email"], "admin@example.com")
        self.assertEqual(resp.data["user"]["role_id"], 1)
        self.assertEqual(resp.data["user"]["role"], "Admin")
        self.assertNotIn("password", resp.data["user"])

    def test_login_stamps_last_logged_in(self):
        self.assertIsNone(self.user.last_logged_in)
        self.client.post(self.url, {"email": "admin@example.com", "password": "secret123"}, format="json")
        self.user.refresh_from_db()
        self.assertIsNotNone(self.user.last_logged_in)

    def test_login_reuses_existing_token(self):
        first = self.client.post(self.url, {"email": "admin@example.com", "password": "secret123"}, format="json")
        second = self.client.post(self.url, {"email": "admin@example.com", "password": "secret123"}, format="json")
        self.assertEqual(first.data["token"], second.data["token"])

    def test_login_wrong_password(self):
        payload = {"email": "admin@example.com", "password": "wrongPassword"}
        resp = self.client.post(self.url, payload, format="json")
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(resp.data, {"error": "Invalid credentials"})

    def test_login_unknown_user(self):
        payload = {"email": "nobody@example.com", "password": "whatever123"}
        resp = self.client.post(self.url, payload, format="json")
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(resp.data["error"], "Invalid credentials")

    def test_login_missing_fields(self):
        resp = self.client.post(self.url, {"email": "admin@example.com"}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("password", resp.data)

    def test_login_ignores_stale_authorization_header(self):
        self.client.credentials(HTTP_AUTHORIZATION="Bearer not-a-real-token")
        payload = {"email": "admin@example.com", "password": "secret123"}
        resp = self.client.post(self.url, payload, format="json")
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
