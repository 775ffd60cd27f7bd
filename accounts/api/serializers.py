"""Accounts API serializers.

Login authenticates email/password credentials; the account serializer is the
compact profile returned by login and `/me`.
"""

from django.contrib.auth import authenticate, get_user_model
from rest_framework import serializers

User = get_user_model()


class LoginSerializer(serializers.Serializer):
    """Authenticate email/password and attach the account to validated data."""

    email = serializers.EmailField()
    password = serializers.CharField(write_only=True)

    def validate(self, attrs):
        account = authenticate(
            request=self.context.get("request"),
            email=attrs.get("email"),
            password=attrs.get("password"),
        )
        if not account:
            raise serializers.ValidationError({"error": "Invalid credentials"})
        attrs["account"] = account
        return attrs


class AccountSerializer(serializers.ModelSerializer):
    """Read-only account profile (no password, role label included)."""

    role = serializers.CharField(source="get_role_id_display", read_only=True)

    class Meta:
        model = User
        fields = [
            "id",
            "email",
            "role_id",
            "role",
            "email_verified_at",
            "last_logged_in",
        ]
        read_only_fields = fields
