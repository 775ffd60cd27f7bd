# console/tests/test_api.py
import requests
from django.contrib.auth import get_user_model
from django.test import SimpleTestCase
from rest_framework.authtoken.models import Token
from rest_framework.test import APITestCase, RequestsClient

from catalog.models import Category, City
from console.api import ApiClient, Page, build_query, error_message, read_page, read_total
from console.exceptions import AuthError, NetworkError, NotFoundError, ServerError
from console.session import Session

User = get_user_model()

BASE_URL = "http://testserver/api/v1"


def json_response(status_code, body=b""):
    resp = requests.Response()
    resp.status_code = status_code
    resp._content = body
    return resp


class StubHttp:
    """Records requests and answers with a canned response or exception."""

    def __init__(self, response=None, exc=None):
        self.response = response
        self.exc = exc
        self.calls = []

    def request(self, method, url, **kwargs):
        self.calls.append((method, url, kwargs))
        if self.exc:
            raise self.exc
        return self.response


class QueryHelperTests(SimpleTestCase):
    def test_build_query_drops_empty_values(self):
        params = {"role": "", "category": None, "search": "abc", "page": 1, "rating_min": 0}
        self.assertEqual(build_query(params), {"search": "abc", "page": 1, "rating_min": 0})

    def test_read_total_accepts_any_total_key(self):
        self.assertEqual(read_total({"data": [], "total": 7}), 7)
        self.assertEqual(read_total({"data": [], "recordsFiltered": 5, "recordsTotal": 9}), 5)
        self.assertEqual(read_total({"data": [], "recordsTotal": 9}), 9)
        self.assertEqual(read_total({"data": [1, 2]}), 2)

    def test_read_page_computes_last_page_when_missing(self):
        page = read_page({"data": [{"id": 1}], "recordsTotal": 23}, 10)
        self.assertEqual(page, Page(items=[{"id": 1}], total=23, last_page=3))

    def test_read_page_prefers_meta(self):
        page = read_page({"data": [], "total": 0, "meta": {"last_page": 1}}, 10)
        self.assertEqual(page.last_page, 1)
        self.assertEqual(page.total, 0)

    def test_error_message(self):
        self.assertEqual(error_message({"error": "Invalid credentials"}, "x"), "Invalid credentials")
        self.assertEqual(error_message({"email": ["Email already in use."]}, "x"), "Email already in use.")
        self.assertEqual(error_message({}, "fallback"), "fallback")
        self.assertEqual(error_message(None, "fallback"), "fallback")


class TransportTests(SimpleTestCase):
    def test_bearer_header_only_with_token(self):
        http = StubHttp(json_response(200, b"{}"))
        ApiClient(Session(""), base_url=BASE_URL, http=http).me()
        self.assertNotIn("Authorization", http.calls[-1][2]["headers"])

        ApiClient(Session("abc"), base_url=BASE_URL, http=http).me()
        self.assertEqual(http.calls[-1][2]["headers"]["Authorization"], "Bearer abc")

    def test_single_base_url(self):
        http = StubHttp(json_response(200, b'{"data": [], "total": 0}'))
        client = ApiClient(Session("t"), base_url=BASE_URL + "/", http=http)
        client.list_categories(2, 25, {"search": "", "sort": "name"})
        method, url, kwargs = http.calls[-1]
        self.assertEqual((method, url), ("GET", f"{BASE_URL}/categories"))
        self.assertEqual(kwargs["params"], {"sort": "name", "page": 2, "limit": 25})

    def test_transport_failure_is_network_error(self):
        http = StubHttp(exc=requests.ConnectionError("refused"))
        with self.assertRaises(NetworkError) as ctx:
            ApiClient(Session("t"), base_url=BASE_URL, http=http).stats()
        self.assertEqual(ctx.exception.message, "Network error")

    def test_delete_accepts_success_flag(self):
        http = StubHttp(json_response(200, b'{"success": true}'))
        self.assertTrue(ApiClient(Session("t"), base_url=BASE_URL, http=http).delete_city(3))
        http = StubHttp(json_response(200, b'{"success": false}'))
        self.assertFalse(ApiClient(Session("t"), base_url=BASE_URL, http=http).delete_city(3))

    def test_non_json_error_body(self):
        http = StubHttp(json_response(502, b"<html>Bad gateway</html>"))
        with self.assertRaises(ServerError) as ctx:
            ApiClient(Session("t"), base_url=BASE_URL, http=http).stats()
        self.assertEqual(ctx.exception.status, 502)
        self.assertEqual(ctx.exception.message, ServerError.default_message)


class ApiClientIntegrationTests(APITestCase):
    def setUp(self):
        self.admin = User.objects.create_user(email="admin@example.com", password="secret123", role_id=1)
        self.token = Token.objects.create(user=self.admin)
        self.client_api = ApiClient(Session(self.token.key), base_url=BASE_URL, http=RequestsClient())
        self.athens = City.objects.create(name="Athens")

    def test_login(self):
        anonymous = ApiClient(Session(""), base_url=BASE_URL, http=RequestsClient())
        data = anonymous.login("admin@example.com", "secret123")
        self.assertEqual(data["token"], self.token.key)
        self.assertEqual(data["user"]["email"], "admin@example.com")

    def test_login_failure_raises_with_body(self):
        anonymous = ApiClient(Session(""), base_url=BASE_URL, http=RequestsClient())
        with self.assertRaises(ServerError) as ctx:
            anonymous.login("admin@example.com", "wrong")
        self.assertEqual(ctx.exception.status, 400)
        self.assertEqual(ctx.exception.payload, {"error": "Invalid credentials"})

    def test_invalid_token_is_auth_error(self):
        client = ApiClient(Session("nope"), base_url=BASE_URL, http=RequestsClient())
        with self.assertRaises(AuthError):
            client.list_users(1, 10)

    def test_list_users_page(self):
        for i in range(12):
            User.objects.create_user(email=f"u{i}@example.com", password="secret123")
        page = self.client_api.list_users(2, 10, {"role": 3, "category": ""})
        self.assertEqual(page.total, 12)
        self.assertEqual(page.last_page, 2)
        self.assertEqual(len(page.items), 2)

    def test_user_crud(self):
        created = self.client_api.create_user(
            {"email": "new@example.com", "role_id": 2, "password": "secret123", "workspaces": [self.athens.id]}
        )
        self.assertEqual(created["email"], "new@example.com")

        record, cities = self.client_api.get_user(created["id"])
        self.assertEqual(record["service_provider"]["workspaces"][0]["city_id"], self.athens.id)
        self.assertEqual([c["name"] for c in cities], ["Athens"])

        updated = self.client_api.update_user(created["id"], {"email": "new@example.com", "role_id": 3})
        self.assertIsNone(updated["service_provider"])

        self.assertTrue(self.client_api.delete_user(created["id"]))
        with self.assertRaises(NotFoundError):
            self.client_api.get_user(created["id"])

    def test_validation_failure_carries_field_errors(self):
        with self.assertRaises(ServerError) as ctx:
            self.client_api.create_user({"email": "admin@example.com", "role_id": 3, "password": "secret123"})
        self.assertEqual(ctx.exception.status, 400)
        self.assertEqual(ctx.exception.field_errors, {"email": "Email already in use."})
        self.assertEqual(ctx.exception.message, "Email already in use.")

    def test_categories_and_lookups(self):
        self.client_api.create_category({"name": "Events", "description": ""})
        page = self.client_api.list_categories(1, 10, {"search": "ev"})
        self.assertEqual([c["name"] for c in page.items], ["Events"])
        category_id = page.items[0]["id"]

        self.client_api.update_category(category_id, {"name": "Events & Parties"})
        self.assertEqual(Category.objects.get(pk=category_id).name, "Events & Parties")
        self.assertEqual([c["name"] for c in self.client_api.lookup_categories()], ["Events & Parties"])

        self.assertTrue(self.client_api.delete_category(category_id))
        self.assertFalse(Category.objects.exists())

    def test_cities(self):
        self.client_api.create_city({"name": "Patras"})
        page = self.client_api.list_cities(1, 5, {"sort": "name", "direction": "desc"})
        self.assertEqual([c["name"] for c in page.items], ["Patras", "Athens"])
        self.client_api.update_city(self.athens.id, {"name": "Athina"})
        self.assertEqual([c["name"] for c in self.client_api.lookup_cities()], ["Athina", "Patras"])

    def test_stats_and_service_categories(self):
        self.assertEqual(self.client_api.stats()["workspaces"], 1)
        self.assertEqual(self.client_api.lookup_service_categories(), [])
