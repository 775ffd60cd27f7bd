"""Text screens of the admin console.

Each screen renders itself to a string and handles the commands typed while
it is shown. `handle` returns False for commands it does not know so the
shell can report them.
"""

import logging

from .editor import PROVIDER, PROVIDER_FIELDS, PROVIDER_SECTIONS, ROLES, SECTIONS, RecordEditor
from .exceptions import AuthError, ConsoleError
from .listing import DESC, ListController, Sort

logger = logging.getLogger(__name__)

ROLE_LABELS = dict(ROLES)
USER_FILTERS = (
    "role",
    "category",
    "service_category",
    "workstation",
    "rating_min",
    "rating_max",
    "verified",
    "last_logged_in",
)


# ------------------------------ helpers ------------------------------

def parse_assignments(args):
    """`["name=Foo", "alias=bar"]` -> `{"name": "Foo", "alias": "bar"}`."""
    values = {}
    for arg in args:
        key, sep, value = arg.partition("=")
        if not sep or not key:
            raise ValueError(f"Expected key=value, got {arg!r}")
        values[key] = value
    return values


def render_table(columns, rows, empty="No records found."):
    """Plain-text table; an empty result becomes one row spanning all columns."""
    headers = [title for title, _ in columns]
    body = [["" if get(row) is None else str(get(row)) for _, get in columns] for row in rows]
    widths = [max([len(h)] + [len(r[i]) for r in body]) for i, h in enumerate(headers)]
    total_width = sum(widths) + 3 * (len(widths) - 1)

    def line(cells):
        return " | ".join(c.ljust(w) for c, w in zip(cells, widths)).rstrip()

    out = [line(headers), "-" * total_width]
    if body:
        out.extend(line(r) for r in body)
    else:
        out.append(empty.center(total_width).rstrip())
    return "\n".join(out)


def render_footer(controller):
    parts = []
    if controller.range_text:
        parts.append(controller.range_text)
    parts.append(f"Page {controller.page} of {max(controller.total_pages, 1)}")
    parts.append(f"Per page: {controller.page_size}")
    return " | ".join(parts)


def _sort_marker(controller, field):
    sort = controller.sort
    if not sort or sort.field != field:
        return ""
    return " v" if sort.direction == DESC else " ^"


class Screen:
    title = ""

    def __init__(self, shell):
        self.shell = shell
        self.client = shell.client

    def open(self):
        pass

    def close(self):
        pass

    def tick(self):
        pass

    def render(self) -> str:
        return self.title

    def handle(self, command, args) -> bool:
        return False


# ------------------------------ dashboard / profile / login ------------------------------

class DashboardScreen(Screen):
    title = "Dashboard"

    def open(self):
        self.stats = None
        self.error = None
        try:
            self.stats = self.client.stats()
        except AuthError:
            self.shell.force_logout()
        except ConsoleError as exc:
            self.error = exc.message

    def render(self):
        lines = [self.title, ""]
        if self.error:
            lines.append(f"Error: {self.error}")
        elif self.stats:
            lines.extend(
                [
                    f"Users:             {self.stats.get('users', 0)}",
                    f"Service providers: {self.stats.get('service_providers', 0)}",
                    f"Categories:        {self.stats.get('categories', 0)}",
                    f"Workspaces:        {self.stats.get('workspaces', 0)}",
                ]
            )
        return "\n".join(lines)

    def handle(self, command, args):
        if command == "refresh":
            self.open()
            return True
        return False


class ProfileScreen(Screen):
    title = "Profile"

    def render(self):
        user = self.shell.session.user
        if not user:
            return f"{self.title}\n\nProfile unavailable."
        return "\n".join(
            [
                self.title,
                "",
                f"ID:    {user.get('id')}",
                f"Email: {user.get('email')}",
                f"Role:  {user.get('role') or ROLE_LABELS.get(user.get('role_id'), '')}",
                f"Last login: {user.get('last_logged_in') or '-'}",
            ]
        )


class LoginScreen(Screen):
    title = "Sign in"

    def __init__(self, shell):
        super().__init__(shell)
        self.error = None

    def render(self):
        lines = [self.title, "", "Usage: login EMAIL PASSWORD"]
        if self.error:
            lines.append(f"Error: {self.error}")
        return "\n".join(lines)

    def handle(self, command, args):
        if command != "login":
            return False
        if len(args) != 2:
            self.error = "Email and password are required"
            return True
        self.error = None
        errors = []
        if self.shell.provider.login(args[0], args[1], on_error=errors.append):
            self.shell.navigate("/")
        else:
            self.error = errors[0] if errors else "Login failed"
        return True


# ------------------------------ list screens ------------------------------

class ListScreen(Screen):
    """Shared commands for a screen backed by a `ListController`."""

    columns = ()
    default_sort = None
    noun = "record"

    def loader(self, page, page_size, params):
        raise NotImplementedError

    def deleter(self, record_id):
        raise NotImplementedError

    def label(self, item):
        return str(item.get("id"))

    def open(self):
        self.controller = ListController(
            self.loader,
            sort=self.default_sort,
            deleter=self.deleter,
            on_auth_error=self.shell.force_logout,
        )
        self.controller.start()

    def close(self):
        self.controller.close()

    def tick(self):
        self.controller.tick()

    def render_list(self):
        c = self.controller
        columns = [(title + _sort_marker(c, key), get) for title, key, get in self.columns]
        lines = [self.title, ""]
        if c.search_draft:
            lines.append(f"Search: {c.search_draft}")
        if c.error:
            lines.append(f"Error: {c.error}")
        if c.loading:
            lines.append("Loading...")
        lines.append(render_table(columns, c.items))
        lines.append(render_footer(c))
        if c.pending_delete is not None:
            lines.append(
                f"Delete {self.noun} {self.label(c.pending_delete)}? Type 'confirm' or 'cancel'."
            )
        return "\n".join(lines)

    def render(self):
        return self.render_list()

    def handle(self, command, args):
        c = self.controller
        if command == "page" and args:
            c.set_page(int(args[0]))
        elif command == "size" and args:
            c.set_page_size(int(args[0]))
        elif command == "sort" and args:
            c.toggle_sort(args[0])
        elif command == "search":
            # A submitted line is final, so skip the typing debounce.
            c.type_search(" ".join(args))
            c.commit_search()
        elif command == "refresh":
            c.refresh()
        elif command == "delete" and args:
            item = self._find(args[0])
            if item is None:
                c.error = f"No {self.noun} with id {args[0]} on this page"
            else:
                c.request_delete(item)
        elif command == "confirm":
            c.confirm_delete()
        elif command == "cancel":
            c.cancel_delete()
        else:
            return False
        return True

    def _find(self, record_id):
        for item in self.controller.items:
            if str(item.get("id")) == str(record_id):
                return item
        return None


class UsersScreen(ListScreen):
    title = "Users"
    noun = "user"
    columns = (
        ("ID", "id", lambda r: r.get("id")),
        ("Email", "email", lambda r: r.get("email")),
        ("Role", "role_id", lambda r: ROLE_LABELS.get(r.get("role_id"), r.get("role_id"))),
        ("Business", None, lambda r: (r.get("service_provider") or {}).get("business_name")),
        ("Category", None, lambda r: (r.get("service_provider") or {}).get("category")),
        ("Rating", "rating", lambda r: (r.get("service_provider") or {}).get("rating")),
        ("Workspaces", None, lambda r: (r.get("service_provider") or {}).get("workspaces")),
        ("Verified", None, lambda r: "yes" if r.get("email_verified_at") else "no"),
        ("Last login", "last_logged_in", lambda r: r.get("last_logged_in") or "-"),
    )

    def loader(self, page, page_size, params):
        return self.client.list_users(page, page_size, params)

    def deleter(self, record_id):
        return self.client.delete_user(record_id)

    def label(self, item):
        return item.get("email")

    def handle(self, command, args):
        if command == "filter":
            try:
                changes = parse_assignments(args)
            except ValueError as exc:
                self.controller.error = str(exc)
                return True
            unknown = sorted(set(changes) - set(USER_FILTERS))
            if unknown:
                self.controller.error = f"Unknown filter: {', '.join(unknown)}"
                return True
            self.controller.set_filters(**changes)
            return True
        if command == "add":
            self.shell.navigate("/users/add")
            return True
        if command == "edit" and args:
            self.shell.navigate(f"/users/{args[0]}/edit")
            return True
        return super().handle(command, args)


class ModalListScreen(ListScreen):
    """List screen with an inline create/edit form."""

    fields = ()

    def create(self, values):
        raise NotImplementedError

    def update(self, record_id, values):
        raise NotImplementedError

    def open(self):
        super().open()
        self.modal = None

    def render(self):
        text = self.render_list()
        if self.modal is None:
            return text
        heading = "New" if self.modal["id"] is None else f"Edit #{self.modal['id']}"
        lines = [text, "", f"[{heading} {self.noun}]"]
        for name in self.fields:
            lines.append(f"  {name}: {self.modal['values'].get(name, '')}")
            if name in self.modal["errors"]:
                lines.append(f"    ! {self.modal['errors'][name]}")
        if self.modal["message"]:
            lines.append(f"  {self.modal['message']}")
        lines.append("  Commands: set key=value | save | close")
        return "\n".join(lines)

    def handle(self, command, args):
        if command == "new":
            self._open_modal(None, {name: "" for name in self.fields}, args)
            return True
        if command == "edit" and args:
            item = self._find(args[0])
            if item is None:
                self.controller.error = f"No {self.noun} with id {args[0]} on this page"
            else:
                values = {name: item.get(name) or "" for name in self.fields}
                self._open_modal(item["id"], values, args[1:])
            return True
        if self.modal is not None:
            if command == "set":
                try:
                    self.modal["values"].update(parse_assignments(args))
                except ValueError as exc:
                    self.modal["message"] = str(exc)
                return True
            if command == "save":
                self._save()
                return True
            if command == "close":
                self.modal = None
                return True
        return super().handle(command, args)

    def _open_modal(self, record_id, values, args):
        self.modal = {"id": record_id, "values": values, "errors": {}, "message": None}
        if args:
            try:
                values.update(parse_assignments(args))
            except ValueError as exc:
                self.modal["message"] = str(exc)

    def _save(self):
        modal = self.modal
        values = {k: v for k, v in modal["values"].items() if k in self.fields}
        if not (values.get("name") or "").strip():
            modal["errors"] = {"name": "Name is required"}
            return
        try:
            if modal["id"] is None:
                self.create(values)
            else:
                self.update(modal["id"], values)
        except AuthError:
            self.shell.force_logout()
            return
        except ConsoleError as exc:
            modal["errors"] = getattr(exc, "field_errors", {}) or {}
            modal["message"] = exc.message
            return
        logger.info("Saved %s %s", self.noun, modal["id"] or values["name"])
        self.modal = None
        self.controller.refresh()


class CategoriesScreen(ModalListScreen):
    title = "Categories"
    noun = "category"
    fields = ("name", "description", "alias")
    columns = (
        ("ID", "id", lambda r: r.get("id")),
        ("Name", "name", lambda r: r.get("name")),
        ("Description", None, lambda r: r.get("description")),
        ("Providers", "provider_count", lambda r: r.get("provider_count")),
    )

    def loader(self, page, page_size, params):
        return self.client.list_categories(page, page_size, params)

    def deleter(self, record_id):
        return self.client.delete_category(record_id)

    def create(self, values):
        return self.client.create_category(values)

    def update(self, record_id, values):
        return self.client.update_category(record_id, values)

    def label(self, item):
        return item.get("name")


class WorkspacesScreen(ModalListScreen):
    title = "Workspaces"
    noun = "workspace"
    fields = ("name",)
    default_sort = Sort("provider_count", DESC)
    columns = (
        ("ID", "id", lambda r: r.get("id")),
        ("City", "name", lambda r: r.get("name")),
        ("Providers", "provider_count", lambda r: r.get("provider_count")),
    )

    def loader(self, page, page_size, params):
        return self.client.list_cities(page, page_size, params)

    def deleter(self, record_id):
        return self.client.delete_city(record_id)

    def create(self, values):
        return self.client.create_city(values)

    def update(self, record_id, values):
        return self.client.update_city(record_id, values)

    def label(self, item):
        return item.get("name")

    def handle(self, command, args):
        if command == "rename" and len(args) >= 2:
            super().handle("edit", [args[0], "name=" + " ".join(args[1:])])
            if self.modal is not None:
                self._save()
            return True
        return super().handle(command, args)


# ------------------------------ user form ------------------------------

class UserFormScreen(Screen):
    """Add (`account_id=None`) or edit one account."""

    def __init__(self, shell, account_id=None):
        super().__init__(shell)
        self.editor = RecordEditor(
            self.client,
            account_id=int(account_id) if account_id is not None else None,
            on_auth_error=shell.force_logout,
        )

    @property
    def title(self):
        return "Add user" if self.editor.is_create else f"Edit user #{self.editor.account_id}"

    def open(self):
        self.editor.load()

    def tick(self):
        if self.editor.redirect_due():
            self.shell.navigate("/users")

    def render(self):
        e = self.editor
        if e.state == e.NOT_FOUND:
            return f"{self.title}\n\n{e.message}"
        lines = [self.title, ""]
        if e.state == e.LOADING:
            lines.append("Loading...")
        if e.message:
            lines.append(e.message)

        def field(name, label, shown=None):
            lines.append(f"{label}: {e.values.get(name) if shown is None else shown}")
            if name in e.errors:
                lines.append(f"  ! {e.errors[name]}")

        field("email", "Email")
        field("role_id", "Role", ROLE_LABELS.get(e.role_id, e.values.get("role_id")))
        field("password", "Password", "*" * len(e.values.get("password") or ""))
        self._render_section(lines, "contacts")
        if e.role_id == PROVIDER:
            for name in PROVIDER_FIELDS:
                field(name, name.replace("_", " ").capitalize())
            for name in PROVIDER_SECTIONS:
                self._render_section(lines, name)
            cities = ", ".join(o["label"] or str(o["value"]) for o in e.selected_cities)
            lines.append(f"Workspaces: {cities or '-'}")
        return "\n".join(lines)

    def _render_section(self, lines, name):
        lines.append(f"{name.capitalize()}:")
        items = self.editor.sections[name].to_payload()
        if not items:
            lines.append("  (none)")
        for index, item in enumerate(items):
            values = ", ".join(f"{k}={item[k]}" for k in SECTIONS[name] if item.get(k) not in ("", None))
            lines.append(f"  [{index}] {values}")
            for key in SECTIONS[name]:
                error = self.editor.errors.get(f"{name}.{index}.{key}")
                if error:
                    lines.append(f"    ! {key}: {error}")

    def handle(self, command, args):
        e = self.editor
        try:
            if command == "set":
                for key, value in parse_assignments(args).items():
                    e.set_field(key, value)
            elif command == "add" and args:
                e.add_item(args[0], parse_assignments(args[1:]))
            elif command == "remove" and len(args) == 2:
                e.remove_item_at(args[0], int(args[1]))
            elif command == "update" and len(args) >= 2:
                section, index = args[0], int(args[1])
                local_id = e.sections[section].items()[index][0]
                e.update_item(section, local_id, **parse_assignments(args[2:]))
            elif command == "cities":
                ids = [part for arg in args for part in arg.split(",") if part]
                e.select_cities(ids)
            elif command == "save":
                e.submit()
            elif command == "back":
                self.shell.navigate("/users")
            else:
                return False
        except (KeyError, IndexError, ValueError) as exc:
            e.message = f"Invalid input: {exc}"
        return True


