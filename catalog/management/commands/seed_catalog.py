from django.core.management.base import BaseCommand

from catalog.models import Category, City, ServiceCategory

CATEGORIES = [
    {"name": "Home Services", "description": "Repairs, cleaning and maintenance around the house."},
    {"name": "Events", "description": "Catering, photography and entertainment."},
    {"name": "Health & Beauty", "description": "Personal care and wellness."},
    {"name": "Education", "description": "Tutoring, courses and coaching."},
]

SERVICE_CATEGORIES = [
    {"name": "Plumbing", "description": "Pipes, drains and fixtures."},
    {"name": "Electrical", "description": "Wiring, lighting and appliances."},
    {"name": "Cleaning", "description": "Residential and office cleaning."},
    {"name": "Photography", "description": "Event and portrait photography."},
]

CITIES = ["Athens", "Thessaloniki", "Patras", "Heraklion", "Larissa"]


class Command(BaseCommand):
    help = "Create the default categories, service categories and cities (idempotent)."

    def handle(self, *args, **options):
        for model, rows in ((Category, CATEGORIES), (ServiceCategory, SERVICE_CATEGORIES)):
            for row in rows:
                _, created = model.objects.get_or_create(
                    name=row["name"], defaults={"description": row.get("description", "")}
                )
                if created:
                    self.stdout.write(self.style.SUCCESS(f"Created {model._meta.verbose_name} '{row['name']}'"))

        for name in CITIES:
            _, created = City.objects.get_or_create(name=name)
            if created:
                self.stdout.write(self.style.SUCCESS(f"Created city '{name}'"))

        self.stdout.write(self.style.SUCCESS("Catalog ready."))
