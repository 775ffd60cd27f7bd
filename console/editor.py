"""Record editor for accounts and their provider profile.

Form state is held client-side until submission. Repeatable sections are
`StagedCollection`s whose items get a stable local id when added; ids are
stripped from the submitted payload, which always carries the full form.
"""

import logging
import time

from rest_framework import serializers

from .exceptions import AuthError, ConsoleError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

ADMIN, PROVIDER, END_USER = 1, 2, 3
ROLES = ((ADMIN, "Admin"), (PROVIDER, "Service Provider"), (END_USER, "User"))

CONTACT_FIELDS = ("phone", "email", "address", "website", "facebook", "instagram")
SECTIONS = {
    "services": ("description", "price"),
    "certifications": ("name", "description", "link"),
    "projects": ("name", "description", "link"),
    "contacts": CONTACT_FIELDS,
}
PROVIDER_SECTIONS = ("services", "certifications", "projects")
PROVIDER_FIELDS = (
    "business_name",
    "description",
    "category_id",
    "service_category_id",
    "start_time",
    "stop_time",
    "alias",
)
FORM_FIELDS = ("email", "role_id", "password", *PROVIDER_FIELDS)
NUMERIC_FIELDS = ("role_id", "category_id", "service_category_id")


def _blank_to_none(value):
    if isinstance(value, str) and not value.strip():
        return None
    return value


def _as_int(value):
    try:
        return int(value)
    except (TypeError, ValueError):
        return value


class StagedCollection:
    """Ordered, in-memory list of section items.

    Items live in an arena keyed by a local id handed out at add time; the
    order list decides their position. Removing an item shifts the positions
    of those after it, never their ids.
    """

    def __init__(self, fields, items=()):
        self.fields = tuple(fields)
        self._arena = {}
        self._order = []
        self._next_id = 1
        for item in items:
            self.add(item)

    def __len__(self):
        return len(self._order)

    def __iter__(self):
        return iter(self.items())

    def _clean(self, values):
        return {k: v for k, v in (values or {}).items() if k in self.fields}

    def add(self, values=None) -> int:
        local_id = self._next_id
        self._next_id += 1
        self._arena[local_id] = {**{f: "" for f in self.fields}, **self._clean(values)}
        self._order.append(local_id)
        return local_id

    def update(self, local_id, **values):
        if local_id not in self._arena:
            raise KeyError(local_id)
        self._arena[local_id].update(self._clean(values))

    def remove(self, local_id):
        if local_id not in self._arena:
            raise KeyError(local_id)
        self._order.remove(local_id)
        del self._arena[local_id]

    def remove_at(self, index):
        self.remove(self._order[index])

    def replace(self, items):
        self._arena.clear()
        self._order.clear()
        for item in items:
            self.add(item)

    def items(self):
        """`(local_id, values)` pairs in display order."""
        return [(i, dict(self._arena[i])) for i in self._order]

    def to_payload(self):
        return [dict(self._arena[i]) for i in self._order]


# ------------------------------ client-side schema ------------------------------

class ServiceItemSchema(serializers.Serializer):
    description = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    price = serializers.DecimalField(max_digits=10, decimal_places=2, required=False, allow_null=True)


class LinkItemSchema(serializers.Serializer):
    name = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    description = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    link = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class ContactItemSchema(serializers.Serializer):
    phone = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    email = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    address = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    website = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    facebook = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    instagram = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class AccountSchema(serializers.Serializer):
    """Pre-submission gate for the account form.

    Pass `context={"create": True}` to require a password.
    """

    email = serializers.EmailField()
    role_id = serializers.ChoiceField(choices=ROLES)
    password = serializers.CharField(required=False, allow_blank=True, allow_null=True, trim_whitespace=False)

    business_name = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    description = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    category_id = serializers.IntegerField(required=False, allow_null=True)
    service_category_id = serializers.IntegerField(required=False, allow_null=True)
    start_time = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=20)
    stop_time = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=20)
    alias = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=120)

    services = ServiceItemSchema(many=True, required=False)
    certifications = LinkItemSchema(many=True, required=False)
    projects = LinkItemSchema(many=True, required=False)
    contacts = ContactItemSchema(many=True, required=False)
    workspaces = serializers.ListField(child=serializers.IntegerField(), required=False)

    def validate(self, attrs):
        password = attrs.get("password") or ""
        if not password and self.context.get("create"):
            raise serializers.ValidationError({"password": "Password is required."})
        if password and len(password) < 6:
            raise serializers.ValidationError({"password": "Password must be at least 6 characters."})
        return attrs


def flatten_errors(errors, prefix=""):
    """Turn DRF's nested error structure into `{"services.1.price": message}`."""
    flat = {}
    if isinstance(errors, dict):
        for key, value in errors.items():
            name = f"{prefix}.{key}" if prefix else str(key)
            flat.update(flatten_errors(value, name))
    elif isinstance(errors, list):
        if errors and all(isinstance(e, str) for e in errors):
            flat[prefix or "non_field_errors"] = str(errors[0])
        else:
            for index, value in enumerate(errors):
                flat.update(flatten_errors(value, f"{prefix}.{index}"))
    elif errors:
        flat[prefix or "non_field_errors"] = str(errors)
    return flat


# ------------------------------ editor ------------------------------

class RecordEditor:
    """Add/edit form for one account.

    `account_id=None` is create mode. States move
    idle -> loading -> ready -> submitting -> success | validation_error | network_error;
    a missing record ends in not_found.
    """

    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    SUBMITTING = "submitting"
    SUCCESS = "success"
    VALIDATION_ERROR = "validation_error"
    NETWORK_ERROR = "network_error"
    NOT_FOUND = "not_found"

    def __init__(self, client, account_id=None, on_auth_error=None, clock=time.monotonic, redirect_delay=1.5):
        self.client = client
        self.account_id = account_id
        self.on_auth_error = on_auth_error
        self.clock = clock
        self.redirect_delay = redirect_delay

        self.state = self.IDLE
        self.values = {name: "" for name in FORM_FIELDS}
        self.values["role_id"] = END_USER
        self.values["workspaces"] = []
        self.sections = {name: StagedCollection(fields) for name, fields in SECTIONS.items()}
        self.selected_cities = []
        self.categories = []
        self.service_categories = []
        self.cities = []
        self.record = None
        self.errors = {}
        self.message = None
        self._redirect_at = None

    @property
    def is_create(self) -> bool:
        return self.account_id is None

    @property
    def role_id(self):
        return _as_int(self.values.get("role_id"))

    @property
    def is_provider(self) -> bool:
        return self.role_id == PROVIDER

    # --- loading ---
    def load(self):
        """Fetch reference lists and, in edit mode, the record itself."""
        self.state = self.LOADING
        try:
            self.categories = self.client.lookup_categories()
            self.service_categories = self.client.lookup_service_categories()
            if self.is_create:
                self.cities = self.client.lookup_cities()
            else:
                record, self.cities = self.client.get_user(self.account_id)
                self._populate(record)
        except NotFoundError:
            self.state = self.NOT_FOUND
            self.message = "User not found"
            return False
        except ConsoleError as exc:
            self._fail(exc, "Failed to load user")
            return False
        self.state = self.READY
        return True

    def _populate(self, record):
        self.record = record
        provider = record.get("service_provider") or {}
        self.values.update(email=record.get("email") or "", role_id=record.get("role_id"), password="")
        for name in PROVIDER_FIELDS:
            self.values[name] = provider.get(name) or ""
        self.values["category_id"] = (provider.get("category") or {}).get("id") or ""
        self.values["service_category_id"] = (provider.get("service_category") or {}).get("id") or ""

        self.sections["contacts"].replace(record.get("contacts") or [])
        for name in PROVIDER_SECTIONS:
            self.sections[name].replace(provider.get(name) or [])

        workspaces = provider.get("workspaces") or []
        self.selected_cities = [{"value": w["city_id"], "label": w["name"]} for w in workspaces]
        self.values["workspaces"] = [w["city_id"] for w in workspaces]

    # --- editing ---
    def set_field(self, name, value):
        if name not in FORM_FIELDS:
            raise KeyError(name)
        self.values[name] = value
        self.errors.pop(name, None)

    def add_item(self, section, values=None) -> int:
        return self.sections[section].add(values)

    def update_item(self, section, local_id, **values):
        self.sections[section].update(local_id, **values)

    def remove_item(self, section, local_id):
        self.sections[section].remove(local_id)

    def remove_item_at(self, section, index):
        self.sections[section].remove_at(index)

    def select_cities(self, options):
        """Replace the workspace selection.

        `options` are `{"value", "label"}` dicts or bare city ids. The option
        mirror is kept for display; only ids reach the form.
        """
        names = {c.get("id"): c.get("name") for c in self.cities}
        mirror = []
        for option in options:
            if isinstance(option, dict):
                mirror.append({"value": _as_int(option["value"]), "label": option.get("label")})
            else:
                city_id = _as_int(option)
                mirror.append({"value": city_id, "label": names.get(city_id, str(city_id))})
        self.selected_cities = mirror
        self.values["workspaces"] = [o["value"] for o in mirror]

    # --- submission ---
    def build_payload(self) -> dict:
        """Full form state for POST/PUT; provider data only for role Provider."""
        payload = {
            "email": self.values["email"],
            "role_id": self.role_id,
            "password": self.values["password"],
            "contacts": self.sections["contacts"].to_payload(),
        }
        if self.is_provider:
            for name in PROVIDER_FIELDS:
                value = self.values[name]
                payload[name] = _as_int(_blank_to_none(value)) if name in NUMERIC_FIELDS else value
            services = self.sections["services"].to_payload()
            for item in services:
                item["price"] = _blank_to_none(item.get("price"))
            payload["services"] = services
            payload["certifications"] = self.sections["certifications"].to_payload()
            payload["projects"] = self.sections["projects"].to_payload()
            payload["workspaces"] = list(self.values["workspaces"])
        if not self.is_create and not payload["password"]:
            payload.pop("password")
        return payload

    def validate(self, payload=None) -> dict:
        payload = self.build_payload() if payload is None else payload
        schema = AccountSchema(data=payload, context={"create": self.is_create})
        if not schema.is_valid():
            raise ValidationError(flatten_errors(schema.errors))
        return payload

    def submit(self) -> bool:
        if self.state in (self.LOADING, self.SUBMITTING):
            return False
        if self.is_create and self.state == self.SUCCESS:
            return False
        try:
            payload = self.validate()
        except ValidationError as exc:
            self.errors = exc.errors
            self.message = exc.message
            self.state = self.VALIDATION_ERROR
            return False

        self.state = self.SUBMITTING
        self.errors = {}
        try:
            if self.is_create:
                saved = self.client.create_user(payload)
            else:
                saved = self.client.update_user(self.account_id, payload)
        except ConsoleError as exc:
            self._fail(exc, "Failed to create user" if self.is_create else "Failed to update user")
            return False

        self.state = self.SUCCESS
        if self.is_create:
            self.message = "User created successfully!"
            self._redirect_at = self.clock() + self.redirect_delay
            logger.info("Created account %s", (saved or {}).get("id"))
        else:
            self.message = "User updated successfully!"
            if saved:
                self._populate(saved)
            self.values["password"] = ""
        return True

    def redirect_due(self) -> bool:
        """True once a created record should hand back to the list."""
        return (
            self.is_create
            and self.state == self.SUCCESS
            and self._redirect_at is not None
            and self.clock() >= self._redirect_at
        )

    def _fail(self, exc, fallback):
        if isinstance(exc, AuthError) and self.on_auth_error:
            self.on_auth_error()
        field_errors = getattr(exc, "field_errors", None) or {}
        self.errors = dict(field_errors)
        self.state = self.VALIDATION_ERROR if field_errors else self.NETWORK_ERROR
        self.message = exc.message if exc.message != type(exc).default_message else fallback
