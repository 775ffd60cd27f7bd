# accounts/tests/test_create_user_command.py
from io import StringIO

from django.contrib.auth import get_user_model
from django.core.management import call_command
from django.core.management.base import CommandError
from django.test import TestCase

from catalog.models import Category
from providers.models import ProviderProfile

User = get_user_model()


class CreateUserCommandTests(TestCase):
    def test_creates_verified_admin(self):
        out = StringIO()
        call_command("create_user", "boss@example.com", "secret123", "1", stdout=out)
        account = User.objects.get(email="boss@example.com")
        self.assertTrue(account.check_password("secret123"))
        self.assertEqual(account.role_id, 1)
        self.assertTrue(account.is_staff)
        self.assertIsNotNone(account.email_verified_at)
        self.assertIn(f"User created successfully! ID: {account.id}", out.getvalue())

    def test_provider_gets_profile(self):
        category = Category.objects.create(name="Events")
        call_command(
            "create_user",
            "pro@example.com",
            "secret123",
            "2",
            "--business-name", "Acme",
            "--category-id", str(category.id),
            "--start-time", "09:00",
            stdout=StringIO(),
        )
        profile = ProviderProfile.objects.get(account__email="pro@example.com")
        self.assertEqual(profile.business_name, "Acme")
        self.assertEqual(profile.category, category)
        self.assertEqual(profile.start_time, "09:00")

    def test_end_user_has_no_profile(self):
        call_command("create_user", "user@example.com", "secret123", "3", stdout=StringIO())
        account = User.objects.get(email="user@example.com")
        self.assertFalse(ProviderProfile.objects.filter(account=account).exists())
        self.assertFalse(account.is_staff)

    def test_duplicate_email_is_an_error(self):
        User.objects.create_user(email="dup@example.com", password="secret123")
        with self.assertRaises(CommandError):
            call_command("create_user", "dup@example.com", "secret123", "3", stdout=StringIO())
        self.assertEqual(User.objects.filter(email="dup@example.com").count(), 1)

    def test_unknown_role_is_an_error(self):
        with self.assertRaises(CommandError):
            call_command("create_user", "x@example.com", "secret123", "9", stdout=StringIO())
        self.assertFalse(User.objects.filter(email="x@example.com").exists())

    def test_unknown_category_rolls_back(self):
        with self.assertRaises(CommandError):
            call_command(
                "create_user", "p@example.com", "secret123", "2", "--category-id", "999", stdout=StringIO()
            )
        self.assertFalse(User.objects.filter(email="p@example.com").exists())
