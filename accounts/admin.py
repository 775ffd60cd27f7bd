from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as DjangoUserAdmin

from .models import Account


@admin.register(Account)
class AccountAdmin(DjangoUserAdmin):
    """
    Account list with role, verification and login stamps.
    """
    list_display = (
        "id",
        "email",
        "role_id",
        "email_verified_at",
        "last_logged_in",
        "is_staff",
        "is_active",
    )
    ordering = ("-id",)
    search_fields = ("email",)
    list_filter = ("role_id", "is_staff", "is_active")
    readonly_fields = ("last_login", "last_logged_in", "date_joined")

    fieldsets = (
        (None, {"fields": ("email", "password", "role_id")}),
        ("Status", {"fields": ("email_verified_at", "last_logged_in", "last_login", "date_joined")}),
        ("Permissions", {"fields": ("is_active", "is_staff", "is_superuser", "groups", "user_permissions")}),
    )
    add_fieldsets = (
        (None, {"classes": ("wide",), "fields": ("email", "role_id", "password1", "password2")}),
    )
