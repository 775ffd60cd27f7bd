"""Users API serializers.

Provide serializers for:
- flattened list rows (provider columns under `service_provider`),
- the account detail with its nested provider profile and contacts,
- creating/updating an account from the full editor form.

Writes replace each nested collection present in the payload as a whole
(delete + recreate) inside one transaction. Provider fields only apply while
the resulting role is Provider; leaving that role removes the profile.
"""

from django.contrib.auth import get_user_model
from django.contrib.auth.password_validation import validate_password
from django.db import transaction
from rest_framework import serializers

from catalog.models import Category, City, ServiceCategory
from ..models import Certification, Contact, Project, ProviderProfile, Service

User = get_user_model()

PROFILE_FIELDS = ("business_name", "description", "start_time", "stop_time", "alias")
CONTACT_FIELDS = ("phone", "email", "address", "website", "facebook", "instagram")


# ------------------------------ helpers ------------------------------

def _named(obj):
    return {"id": obj.id, "name": obj.name} if obj is not None else None


def _provider_of(account):
    if not account.is_provider:
        return None
    return getattr(account, "service_provider", None)


def _replace_children(manager, model, items, **owner):
    manager.all().delete()
    model.objects.bulk_create([model(**owner, **item) for item in items])


def _blank_to_empty(data: dict, keys):
    return {k: (data[k] if data[k] is not None else "") for k in keys if k in data}


# ------------------------------ read serializers ------------------------------

class ContactSerializer(serializers.ModelSerializer):
    class Meta:
        model = Contact
        fields = ["id", *CONTACT_FIELDS]


class ServiceSerializer(serializers.ModelSerializer):
    class Meta:
        model = Service
        fields = ["id", "description", "price"]


class CertificationSerializer(serializers.ModelSerializer):
    class Meta:
        model = Certification
        fields = ["id", "name", "description", "link"]


class ProjectSerializer(serializers.ModelSerializer):
    class Meta:
        model = Project
        fields = ["id", "name", "description", "link"]


class ProviderDetailSerializer(serializers.ModelSerializer):
    """Full provider profile including its repeatable collections."""

    category = serializers.SerializerMethodField()
    service_category = serializers.SerializerMethodField()
    rating = serializers.SerializerMethodField()
    workspaces = serializers.SerializerMethodField()
    services = ServiceSerializer(many=True, read_only=True)
    certifications = CertificationSerializer(many=True, read_only=True)
    projects = ProjectSerializer(many=True, read_only=True)

    class Meta:
        model = ProviderProfile
        fields = [
            "id",
            *PROFILE_FIELDS,
            "category",
            "service_category",
            "rating",
            "workspaces",
            "services",
            "certifications",
            "projects",
        ]

    def get_category(self, obj):
        return _named(obj.category)

    def get_service_category(self, obj):
        return _named(obj.service_category)

    def get_rating(self, obj):
        return obj.rating()

    def get_workspaces(self, obj):
        return [{"city_id": c.id, "name": c.name} for c in obj.workspaces.all()]


class AccountDetailSerializer(serializers.ModelSerializer):
    """Account with contacts and, for providers, the nested profile."""

    role = serializers.CharField(source="get_role_id_display", read_only=True)
    contacts = ContactSerializer(many=True, read_only=True)
    service_provider = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = [
            "id",
            "email",
            "role_id",
            "role",
            "email_verified_at",
            "last_logged_in",
            "contacts",
            "service_provider",
        ]

    def get_service_provider(self, obj):
        profile = _provider_of(obj)
        return ProviderDetailSerializer(profile).data if profile else None


class AccountListSerializer(serializers.ModelSerializer):
    """Flattened list row; provider columns are null for other roles."""

    service_provider = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = ["id", "email", "role_id", "email_verified_at", "last_logged_in", "service_provider"]

    def get_service_provider(self, obj):
        profile = _provider_of(obj)
        if profile is None:
            return None
        avg = getattr(obj, "avg_rating", None)
        return {
            "id": profile.id,
            "business_name": profile.business_name,
            "category": profile.category.name if profile.category else None,
            "service_category": profile.service_category.name if profile.service_category else None,
            "start_time": profile.start_time,
            "stop_time": profile.stop_time,
            "rating": round(float(avg), 1) if avg is not None else 0.0,
            "workspaces": ", ".join(c.name for c in profile.workspaces.all()),
        }


# ------------------------------ write serializers ------------------------------

class ServiceItemSerializer(serializers.Serializer):
    description = serializers.CharField(required=False, allow_blank=True, allow_null=True, default="")
    price = serializers.DecimalField(max_digits=10, decimal_places=2, required=False, allow_null=True)


class LinkItemSerializer(serializers.Serializer):
    """Shared shape of certifications and projects."""

    name = serializers.CharField(required=False, allow_blank=True, allow_null=True, default="")
    description = serializers.CharField(required=False, allow_blank=True, allow_null=True, default="")
    link = serializers.CharField(required=False, allow_blank=True, allow_null=True, default="")


class ContactItemSerializer(serializers.Serializer):
    phone = serializers.CharField(required=False, allow_blank=True, allow_null=True, default="")
    email = serializers.CharField(required=False, allow_blank=True, allow_null=True, default="")
    address = serializers.CharField(required=False, allow_blank=True, allow_null=True, default="")
    website = serializers.CharField(required=False, allow_blank=True, allow_null=True, default="")
    facebook = serializers.CharField(required=False, allow_blank=True, allow_null=True, default="")
    instagram = serializers.CharField(required=False, allow_blank=True, allow_null=True, default="")


class AccountWriteSerializer(serializers.Serializer):
    """Create or update an account from the full editor form.

    Notes:
    - `password` is required (min 6) on create; blank on update keeps it.
    - `workspaces` is a list of city ids.
    - Provider fields are ignored unless the resulting role is Provider.
    """

    email = serializers.EmailField()
    role_id = serializers.ChoiceField(choices=User.Role.choices)
    password = serializers.CharField(write_only=True, required=False, allow_blank=True, allow_null=True)

    business_name = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    description = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    category_id = serializers.PrimaryKeyRelatedField(
        queryset=Category.objects.all(), required=False, allow_null=True
    )
    service_category_id = serializers.PrimaryKeyRelatedField(
        queryset=ServiceCategory.objects.all(), required=False, allow_null=True
    )
    start_time = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=20)
    stop_time = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=20)
    alias = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=120)

    services = ServiceItemSerializer(many=True, required=False)
    certifications = LinkItemSerializer(many=True, required=False)
    projects = LinkItemSerializer(many=True, required=False)
    contacts = ContactItemSerializer(many=True, required=False)
    workspaces = serializers.PrimaryKeyRelatedField(queryset=City.objects.all(), many=True, required=False)

    def validate_email(self, value):
        qs = User.objects.filter(email__iexact=value)
        if self.instance is not None:
            qs = qs.exclude(pk=self.instance.pk)
        if qs.exists():
            raise serializers.ValidationError("Email already in use.")
        return value

    def validate(self, attrs):
        password = attrs.get("password") or ""
        if self.instance is None and not password:
            raise serializers.ValidationError({"password": "Password is required."})
        if password:
            if len(password) < 6:
                raise serializers.ValidationError(
                    {"password": "Password must be at least 6 characters."}
                )
            validate_password(password, self.instance)
        else:
            attrs.pop("password", None)
        return attrs

    # ------------------------- private helpers (nested) -------------------------

    def _sync_contacts(self, account, data):
        if "contacts" in data:
            items = [_blank_to_empty(c, CONTACT_FIELDS) for c in data["contacts"]]
            _replace_children(account.contacts, Contact, items, account=account)

    def _sync_provider(self, account, data):
        if not account.is_provider:
            ProviderProfile.objects.filter(account=account).delete()
            return

        profile, _ = ProviderProfile.objects.get_or_create(account=account)
        for attr, val in _blank_to_empty(data, PROFILE_FIELDS).items():
            setattr(profile, attr, val)
        if "category_id" in data:
            profile.category = data["category_id"]
        if "service_category_id" in data:
            profile.service_category = data["service_category_id"]
        profile.save()

        if "services" in data:
            items = [
                {"description": s.get("description") or "", "price": s.get("price")}
                for s in data["services"]
            ]
            _replace_children(profile.services, Service, items, provider=profile)
        for key, model in (("certifications", Certification), ("projects", Project)):
            if key in data:
                items = [_blank_to_empty(i, ("name", "description", "link")) for i in data[key]]
                _replace_children(getattr(profile, key), model, items, provider=profile)
        if "workspaces" in data:
            profile.workspaces.set(data["workspaces"])

    # --------------------------------- create/update ----------------------------------

    @transaction.atomic
    def create(self, validated_data):
        account = User.objects.create_user(
            email=validated_data["email"],
            password=validated_data["password"],
            role_id=validated_data["role_id"],
        )
        self._sync_contacts(account, validated_data)
        self._sync_provider(account, validated_data)
        return account

    @transaction.atomic
    def update(self, instance, validated_data):
        for attr in ("email", "role_id"):
            if attr in validated_data:
                setattr(instance, attr, validated_data[attr])
        if validated_data.get("password"):
            instance.set_password(validated_data["password"])
        instance.save()

        self._sync_contacts(instance, validated_data)
        if "role_id" in validated_data or instance.is_provider:
            self._sync_provider(instance, validated_data)
        return instance
