"""Session/identity provider for the console.

`SessionProvider` is the single writer of the token and the current account
profile. Everything else receives the read-only `Session` view, usually via
`ApiClient(session)`.
"""

import json
import logging
from pathlib import Path

from django.conf import settings

from .api import ApiClient
from .exceptions import AuthError, ConsoleError, NetworkError

logger = logging.getLogger(__name__)


class TokenStore:
    """Durable token storage: a small JSON file that survives restarts."""

    def __init__(self, path=None):
        self.path = Path(path or settings.DASHBOARD_SESSION_FILE)

    def load(self) -> str:
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return ""
        except (OSError, ValueError) as exc:
            logger.warning("Ignoring unreadable session file %s: %s", self.path, exc)
            return ""
        return data.get("token", "") if isinstance(data, dict) else ""

    def save(self, token: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps({"token": token}), encoding="utf-8")

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)


class Session:
    """Read-only view of the current token and account profile."""

    def __init__(self, token=""):
        self._token = token or ""
        self._user = None

    @property
    def token(self) -> str:
        return self._token

    @property
    def user(self):
        return self._user

    @property
    def is_authenticated(self) -> bool:
        return bool(self._token)


class SessionProvider:
    """Owns login/logout and keeps the profile in step with the token."""

    def __init__(self, store=None, base_url=None, http=None):
        self.store = store if store is not None else TokenStore()
        self.session = Session(self.store.load())
        self.client = ApiClient(self.session, base_url=base_url, http=http)

    def login(self, email, password, on_error=None) -> bool:
        """Post credentials; report failures through `on_error`, never raise."""
        try:
            data = self.client.login(email, password)
        except NetworkError:
            self._report(on_error, "Network error")
            return False
        except ConsoleError as exc:
            payload = exc.payload if isinstance(exc.payload, dict) else {}
            self._report(on_error, payload.get("error") or "Login failed")
            return False

        token = data.get("token") if isinstance(data, dict) else None
        if not token:
            self._report(on_error, (data or {}).get("error") or "Login failed")
            return False

        self.session._token = token
        self.session._user = None
        self.store.save(token)
        self.refresh_profile()
        return True

    def logout(self, revoke=True) -> None:
        """Clear token and profile unconditionally.

        With `revoke`, the server is asked to drop the token first; a failure
        there is logged and does not keep the session alive.
        """
        if revoke and self.session.token:
            try:
                self.client.logout()
            except ConsoleError as exc:
                logger.warning("Could not revoke the token on the server: %s", exc.message)
        self.session._token = ""
        self.session._user = None
        self.store.clear()

    def refresh_profile(self):
        """Fetch the current account; only runs while a token is present.

        A rejected token (401) forces logout. Any other failure keeps the
        token and leaves the profile empty.
        """
        if not self.session.token:
            return None
        try:
            self.session._user = self.client.me()
        except AuthError:
            logger.info("Stored token was rejected; signing out")
            self.logout(revoke=False)
        except ConsoleError as exc:
            logger.warning("Could not load the current profile: %s", exc.message)
            self.session._user = None
        return self.session.user

    @staticmethod
    def _report(on_error, message):
        logger.info("Login failed: %s", message)
        if on_error:
            on_error(message)
