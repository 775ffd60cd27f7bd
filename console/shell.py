"""Navigation shell and route guard.

Without a token every path renders the login screen and the requested path
is not remembered; a successful login always lands on the dashboard.
"""

import logging
import re
import shlex

from .screens import (
    CategoriesScreen,
    DashboardScreen,
    LoginScreen,
    ProfileScreen,
    UserFormScreen,
    UsersScreen,
    WorkspacesScreen,
)
from .session import SessionProvider

logger = logging.getLogger(__name__)

ROUTES = (
    (re.compile(r"^/$"), DashboardScreen),
    (re.compile(r"^/categories$"), CategoriesScreen),
    (re.compile(r"^/users$"), UsersScreen),
    (re.compile(r"^/users/add$"), UserFormScreen),
    (re.compile(r"^/users/(?P<account_id>\d+)/edit$"), UserFormScreen),
    (re.compile(r"^/workspaces$"), WorkspacesScreen),
    (re.compile(r"^/profile$"), ProfileScreen),
)
NAV = (("/", "Dashboard"), ("/users", "Users"), ("/categories", "Categories"),
       ("/workspaces", "Workspaces"), ("/profile", "Profile"))

HELP = """Commands:
  go PATH            open a page (/, /users, /users/add, /users/ID/edit, /categories, /workspaces, /profile)
  logout             sign out
  help               show this text
Lists:  page N | size N | sort FIELD | search TEXT | filter key=value ... | refresh
        delete ID | confirm | cancel | new [key=value ...] | edit ID [key=value ...]
Forms:  set key=value ... | add SECTION [key=value ...] | update SECTION INDEX key=value ...
        remove SECTION INDEX | cities ID,ID | save | back
Search runs as soon as the line is entered; it does not wait for the typing pause."""


def resolve(path):
    """Return `(path, screen_class, kwargs)`; unknown paths fall back to `/`."""
    path = "/" + (path or "").strip().strip("/")
    for pattern, screen in ROUTES:
        match = pattern.match(path)
        if match:
            return path, screen, match.groupdict()
    return "/", DashboardScreen, {}


class Shell:
    """Header plus the current route's screen, behind the login guard."""

    def __init__(self, provider=None):
        self.provider = provider if provider is not None else SessionProvider()
        self.path = "/"
        self.screen = None
        self.login_screen = LoginScreen(self)

    @property
    def session(self):
        return self.provider.session

    @property
    def client(self):
        return self.provider.client

    def start(self):
        if self.session.is_authenticated:
            self.provider.refresh_profile()
        return self.render()

    def navigate(self, path):
        path, screen_cls, kwargs = resolve(path)
        self._close_screen()
        self.path = path
        if not self.session.is_authenticated:
            return
        self.screen = screen_cls(self, **kwargs)
        self.screen.open()

    def force_logout(self):
        logger.info("Session rejected by the server; signing out")
        self.logout(revoke=False)

    def logout(self, revoke=True):
        self._close_screen()
        self.provider.logout(revoke=revoke)
        self.path = "/"

    def current(self):
        if not self.session.is_authenticated:
            return self.login_screen
        if self.screen is None:
            self.navigate(self.path)
        return self.screen or self.login_screen

    def header(self):
        links = "  ".join(f"[{label}]" if path == self.path else label for path, label in NAV)
        user = self.session.user or {}
        return f"CMS Dashboard | {links} | {user.get('email', '')}".rstrip(" |")

    def render(self):
        screen = self.current()
        if screen is self.login_screen:
            return screen.render()
        return f"{self.header()}\n\n{screen.render()}"

    def execute(self, line):
        """Run one command line and return the text to show."""
        try:
            parts = shlex.split(line)
        except ValueError as exc:
            return f"Invalid input: {exc}"
        screen = self.current()
        screen.tick()
        if not parts:
            return self.render()

        command, args = parts[0].lower(), parts[1:]
        if command == "help":
            return HELP
        if command == "go" and self.session.is_authenticated:
            self.navigate(args[0] if args else "/")
        elif command == "logout" and self.session.is_authenticated:
            self.logout()
        else:
            try:
                handled = self.current().handle(command, args)
            except ValueError as exc:
                return f"Invalid input: {exc}\n\n{self.render()}"
            if not handled:
                return f"Unknown command: {command}. Type 'help'.\n\n{self.render()}"
        return self.render()

    def _close_screen(self):
        if self.screen is not None:
            self.screen.close()
            self.screen = None
