# console/tests/test_session.py
import tempfile
from pathlib import Path

import requests
from django.contrib.auth import get_user_model
from django.test import SimpleTestCase
from rest_framework.authtoken.models import Token
from rest_framework.test import APITestCase, RequestsClient

from console.session import SessionProvider, TokenStore
from console.tests.test_api import BASE_URL, StubHttp, json_response

User = get_user_model()


def temp_store(testcase):
    tmp = tempfile.TemporaryDirectory()
    testcase.addCleanup(tmp.cleanup)
    return TokenStore(Path(tmp.name) / "nested" / "session.json")


class TokenStoreTests(SimpleTestCase):
    def test_missing_file_means_no_token(self):
        self.assertEqual(temp_store(self).load(), "")

    def test_save_load_clear(self):
        store = temp_store(self)
        store.save("abc")
        self.assertEqual(store.load(), "abc")
        self.assertEqual(TokenStore(store.path).load(), "abc")
        store.clear()
        self.assertEqual(store.load(), "")
        store.clear()

    def test_corrupt_file_is_ignored(self):
        store = temp_store(self)
        store.path.parent.mkdir(parents=True)
        store.path.write_text("{not json", encoding="utf-8")
        self.assertEqual(store.load(), "")


class SessionProviderOfflineTests(SimpleTestCase):
    def test_network_failure_reports_generic_message(self):
        errors = []
        provider = SessionProvider(
            store=temp_store(self), base_url=BASE_URL, http=StubHttp(exc=requests.Timeout("slow"))
        )
        self.assertFalse(provider.login("a@example.com", "secret123", on_error=errors.append))
        self.assertEqual(errors, ["Network error"])
        self.assertFalse(provider.session.is_authenticated)

    def test_profile_fetch_skipped_without_token(self):
        http = StubHttp(json_response(200, b"{}"))
        provider = SessionProvider(store=temp_store(self), base_url=BASE_URL, http=http)
        self.assertIsNone(provider.refresh_profile())
        self.assertEqual(http.calls, [])

    def test_server_failure_keeps_token(self):
        store = temp_store(self)
        store.save("abc")
        provider = SessionProvider(store=store, base_url=BASE_URL, http=StubHttp(json_response(500, b"")))
        self.assertIsNone(provider.refresh_profile())
        self.assertEqual(provider.session.token, "abc")
        self.assertEqual(store.load(), "abc")

    def test_logout_is_unconditional(self):
        store = temp_store(self)
        store.save("abc")
        provider = SessionProvider(store=store, base_url=BASE_URL, http=StubHttp(exc=requests.ConnectionError()))
        provider.logout()
        self.assertEqual(provider.session.token, "")
        self.assertIsNone(provider.session.user)
        self.assertEqual(store.load(), "")
        self.assertEqual(provider.client.http.calls[0][:2], ("POST", f"{BASE_URL}/logout"))


class SessionProviderTests(APITestCase):
    def setUp(self):
        self.admin = User.objects.create_user(email="admin@example.com", password="secret123", role_id=1)
        self.store = temp_store(self)
        self.provider = SessionProvider(store=self.store, base_url=BASE_URL, http=RequestsClient())

    def test_login_stores_token_and_loads_profile(self):
        self.assertTrue(self.provider.login("admin@example.com", "secret123"))
        token = Token.objects.get(user=self.admin).key
        self.assertEqual(self.provider.session.token, token)
        self.assertEqual(self.store.load(), token)
        self.assertEqual(self.provider.session.user["email"], "admin@example.com")

    def test_client_shares_the_session(self):
        self.provider.login("admin@example.com", "secret123")
        self.assertEqual(self.provider.client.stats()["users"], 1)

    def test_login_failure_reports_server_message(self):
        errors = []
        self.assertFalse(self.provider.login("admin@example.com", "wrong", on_error=errors.append))
        self.assertEqual(errors, ["Invalid credentials"])
        self.assertEqual(self.provider.session.token, "")

    def test_login_missing_password_reports_generic_message(self):
        errors = []
        self.assertFalse(self.provider.login("admin@example.com", "", on_error=errors.append))
        self.assertEqual(errors, ["Login failed"])

    def test_rejected_token_forces_logout(self):
        self.store.save("expired")
        provider = SessionProvider(store=self.store, base_url=BASE_URL, http=RequestsClient())
        self.assertTrue(provider.session.is_authenticated)
        self.assertIsNone(provider.refresh_profile())
        self.assertFalse(provider.session.is_authenticated)
        self.assertEqual(self.store.load(), "")

    def test_token_survives_restart(self):
        self.provider.login("admin@example.com", "secret123")
        restarted = SessionProvider(store=TokenStore(self.store.path), base_url=BASE_URL, http=RequestsClient())
        self.assertTrue(restarted.session.is_authenticated)
        self.assertEqual(restarted.refresh_profile()["email"], "admin@example.com")

    def test_logout_revokes_server_token(self):
        self.provider.login("admin@example.com", "secret123")
        self.provider.logout()
        self.assertFalse(Token.objects.filter(user=self.admin).exists())
        self.assertEqual(self.store.load(), "")

    def test_rejected_token_is_not_revoked_again(self):
        self.store.save("expired")
        http = StubHttp(json_response(401, b'{"detail": "Invalid token."}'))
        provider = SessionProvider(store=self.store, base_url=BASE_URL, http=http)
        provider.refresh_profile()
        self.assertEqual([call[1] for call in http.calls], [f"{BASE_URL}/me"])
