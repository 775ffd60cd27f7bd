"""Remote resource client for the dashboard REST API.

One method per resource and operation. Every call builds its URL from the
single configured base, drops empty query values, attaches the session's
bearer token and raises a typed `ConsoleError` for any non-2xx answer.
"""

import logging
import math
from dataclasses import dataclass, field

import requests
from django.conf import settings

from .exceptions import AuthError, NetworkError, NotFoundError, ServerError

logger = logging.getLogger(__name__)

TOTAL_KEYS = ("total", "recordsFiltered", "recordsTotal")


@dataclass
class Page:
    """One page of a list endpoint."""

    items: list = field(default_factory=list)
    total: int = 0
    last_page: int = 1


# ------------------------------ helpers ------------------------------

def build_query(params):
    """Drop query values that are empty strings or None (never sent as "")."""
    return {k: v for k, v in (params or {}).items() if v is not None and v != ""}


def read_total(envelope):
    """Return the numeric total from whichever key the endpoint uses."""
    for key in TOTAL_KEYS:
        value = envelope.get(key)
        if isinstance(value, int) and not isinstance(value, bool):
            return value
    return len(envelope.get("data") or [])


def read_page(envelope, page_size):
    total = read_total(envelope)
    meta = envelope.get("meta") or {}
    last_page = meta.get("last_page") or envelope.get("last_page")
    if not last_page:
        last_page = max(1, math.ceil(total / page_size)) if page_size else 1
    return Page(items=list(envelope.get("data") or []), total=total, last_page=last_page)


def error_message(payload, fallback):
    """Pick the message a server error body carries, or `fallback`."""
    if not isinstance(payload, dict):
        return fallback
    for key in ("message", "error", "detail"):
        value = payload.get(key)
        if isinstance(value, list) and value:
            value = value[0]
        if value:
            return str(value)
    for value in payload.values():
        if isinstance(value, list) and value and isinstance(value[0], str):
            return value[0]
    return fallback


# ------------------------------ client ------------------------------

class ApiClient:
    """Stateless-per-call wrapper around the REST API.

    `session` only needs a readable `token` attribute; `http` is any
    `requests.Session`-compatible object (tests inject DRF's RequestsClient).
    """

    def __init__(self, session, base_url=None, http=None, timeout=None):
        self.session = session
        self.base_url = (base_url or settings.DASHBOARD_API_BASE).rstrip("/")
        self.http = http if http is not None else requests.Session()
        self.timeout = timeout if timeout is not None else settings.DASHBOARD_API_TIMEOUT

    # --- transport ---
    def _headers(self):
        headers = {"Accept": "application/json"}
        token = getattr(self.session, "token", "")
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    def _request(self, method, path, params=None, payload=None):
        url = f"{self.base_url}/{path.lstrip('/')}"
        try:
            response = self.http.request(
                method,
                url,
                params=build_query(params),
                json=payload,
                headers=self._headers(),
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            logger.warning("%s %s failed: %s", method, url, exc)
            raise NetworkError() from exc

        data = self._decode(response)
        status = response.status_code
        if status == 401:
            raise AuthError(error_message(data, AuthError.default_message), status, data)
        if status == 404:
            raise NotFoundError(error_message(data, NotFoundError.default_message), status, data)
        if not 200 <= status < 300:
            logger.info("%s %s -> %s", method, url, status)
            raise ServerError(error_message(data, ServerError.default_message), status, data)
        return status, data

    @staticmethod
    def _decode(response):
        if response.status_code == 204 or not response.content:
            return {}
        try:
            return response.json()
        except ValueError:
            return {}

    def _get(self, path, params=None):
        return self._request("GET", path, params=params)[1]

    def _list(self, path, page, page_size, filters=None):
        params = dict(filters or {})
        params.update(page=page, limit=page_size)
        return read_page(self._get(path, params), page_size)

    def _lookup(self, path):
        data = self._get(path)
        return list(data.get("data") or []) if isinstance(data, dict) else list(data)

    def _delete(self, path):
        status, data = self._request("DELETE", path)
        if status == 204:
            return True
        return bool(data.get("success", True))

    # --- session ---
    def login(self, email, password):
        return self._request("POST", "login", payload={"email": email, "password": password})[1]

    def logout(self):
        self._request("POST", "logout")

    def me(self):
        return self._get("me")

    def stats(self):
        return self._get("stats")

    # --- users ---
    def list_users(self, page=1, page_size=10, filters=None):
        return self._list("users", page, page_size, filters)

    def get_user(self, user_id):
        """Return `(record, cities)` for the account editor."""
        data = self._get(f"users/{user_id}")
        return data.get("data"), list(data.get("cities") or [])

    def create_user(self, payload):
        return self._request("POST", "users", payload=payload)[1].get("data")

    def update_user(self, user_id, payload):
        return self._request("PUT", f"users/{user_id}", payload=payload)[1].get("data")

    def delete_user(self, user_id):
        return self._delete(f"users/{user_id}")

    # --- categories ---
    def list_categories(self, page=1, page_size=10, filters=None):
        return self._list("categories", page, page_size, filters)

    def create_category(self, payload):
        return self._request("POST", "categories", payload=payload)[1]

    def update_category(self, category_id, payload):
        return self._request("PUT", f"categories/{category_id}", payload=payload)[1]

    def delete_category(self, category_id):
        return self._delete(f"categories/{category_id}")

    def list_service_categories(self):
        return self._lookup("service-categories")

    # --- cities (workspaces) ---
    def list_cities(self, page=1, page_size=10, filters=None):
        return self._list("cities", page, page_size, filters)

    def create_city(self, payload):
        return self._request("POST", "cities", payload=payload)[1]

    def update_city(self, city_id, payload):
        return self._request("PUT", f"cities/{city_id}", payload=payload)[1]

    def delete_city(self, city_id):
        return self._delete(f"cities/{city_id}")

    # --- option lookups ---
    def lookup_categories(self):
        return self._lookup("categories")

    def lookup_service_categories(self):
        return self.list_service_categories()

    def lookup_cities(self):
        return self._lookup("cities")
