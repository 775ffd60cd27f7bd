from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand, CommandError
from django.db import transaction
from django.utils import timezone

from catalog.models import Category, ServiceCategory
from providers.models import ProviderProfile


class Command(BaseCommand):
    help = "Create a new account (optionally as a service provider)."

    def add_arguments(self, parser):
        parser.add_argument("email")
        parser.add_argument("password")
        parser.add_argument("role_id", type=int, help="1=Admin, 2=Service Provider, 3=User")
        parser.add_argument("--business-name", default="")
        parser.add_argument("--description", default="")
        parser.add_argument("--category-id", type=int)
        parser.add_argument("--service-category-id", type=int)
        parser.add_argument("--start-time", default="")
        parser.add_argument("--stop-time", default="")
        parser.add_argument("--alias", default="")

    @transaction.atomic
    def handle(self, *args, **options):
        User = get_user_model()
        email = options["email"]
        role_id = options["role_id"]

        if role_id not in User.Role.values:
            raise CommandError(f"Unknown role_id {role_id}; expected one of {User.Role.values}.")
        if User.objects.filter(email__iexact=email).exists():
            raise CommandError("A user with this email already exists.")

        account = User.objects.create_user(
            email=email,
            password=options["password"],
            role_id=role_id,
            is_staff=role_id == User.Role.ADMIN,
            email_verified_at=timezone.now(),
        )

        if account.is_provider:
            ProviderProfile.objects.create(
                account=account,
                business_name=options["business_name"],
                description=options["description"],
                category=self._lookup(Category, options["category_id"]),
                service_category=self._lookup(ServiceCategory, options["service_category_id"]),
                start_time=options["start_time"],
                stop_time=options["stop_time"],
                alias=options["alias"],
            )
            self.stdout.write(f"  → provider profile for '{account.email}'")

        self.stdout.write(self.style.SUCCESS(f"User created successfully! ID: {account.id}"))

    def _lookup(self, model, pk):
        if pk is None:
            return None
        try:
            return model.objects.get(pk=pk)
        except model.DoesNotExist:
            raise CommandError(f"{model._meta.verbose_name} {pk} does not exist.")
