"""Accounts app models.

Defines the Account model used as AUTH_USER_MODEL. Accounts log in with their
email address and carry one of three roles; the role decides whether a
provider profile may exist for the account.
"""

from django.contrib.auth.models import AbstractBaseUser, BaseUserManager, PermissionsMixin
from django.db import models
from django.utils import timezone


class AccountManager(BaseUserManager):
    """Create accounts keyed by email instead of a username."""

    use_in_migrations = True

    def _create_user(self, email, password, **extra_fields):
        if not email:
            raise ValueError("The email must be set.")
        account = self.model(email=self.normalize_email(email), **extra_fields)
        account.set_password(password)
        account.save(using=self._db)
        return account

    def create_user(self, email, password=None, **extra_fields):
        extra_fields.setdefault("is_staff", False)
        extra_fields.setdefault("is_superuser", False)
        return self._create_user(email, password, **extra_fields)

    def create_superuser(self, email, password=None, **extra_fields):
        extra_fields.setdefault("role_id", Account.Role.ADMIN)
        extra_fields.setdefault("is_staff", True)
        extra_fields.setdefault("is_superuser", True)
        extra_fields.setdefault("email_verified_at", timezone.now())
        return self._create_user(email, password, **extra_fields)


class Account(AbstractBaseUser, PermissionsMixin):
    """A dashboard account: admin, service provider or end user."""

    class Role(models.IntegerChoices):
        ADMIN = 1, "Admin"
        PROVIDER = 2, "Service Provider"
        END_USER = 3, "User"

    email = models.EmailField(unique=True)
    role_id = models.PositiveSmallIntegerField(choices=Role.choices, default=Role.END_USER)
    email_verified_at = models.DateTimeField(null=True, blank=True)
    last_logged_in = models.DateTimeField(null=True, blank=True)

    is_active = models.BooleanField(default=True)
    is_staff = models.BooleanField(default=False)
    date_joined = models.DateTimeField(default=timezone.now)

    objects = AccountManager()

    USERNAME_FIELD = "email"
    EMAIL_FIELD = "email"
    REQUIRED_FIELDS = []

    class Meta:
        db_table = "accounts"
        ordering = ["-id"]

    def __str__(self):
        return f"{self.email} (#{self.pk})"

    @property
    def is_provider(self) -> bool:
        return self.role_id == self.Role.PROVIDER

    @property
    def is_admin(self) -> bool:
        return self.role_id == self.Role.ADMIN or self.is_staff
