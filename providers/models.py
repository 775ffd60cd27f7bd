"""Providers app models.

Defines the ProviderProfile that extends an Account of role Provider, the
repeatable collections it owns (services, certifications, projects), the
contacts that belong to any account, and reviews feeding the derived rating.
String fields default to empty strings to avoid nulls in API responses.
"""

from django.conf import settings
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.db.models import Avg

from catalog.models import Category, City, ServiceCategory


class ProviderProfile(models.Model):
    """Service-provider extension of an Account (at most one per account)."""

    account = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="service_provider",
    )
    business_name = models.CharField(max_length=255, blank=True, default="")
    description = models.TextField(blank=True, default="")
    category = models.ForeignKey(
        Category, on_delete=models.SET_NULL, null=True, blank=True, related_name="providers"
    )
    service_category = models.ForeignKey(
        ServiceCategory, on_delete=models.SET_NULL, null=True, blank=True, related_name="providers"
    )
    start_time = models.CharField(max_length=20, blank=True, default="")
    stop_time = models.CharField(max_length=20, blank=True, default="")
    alias = models.CharField(max_length=120, blank=True, default="")
    workspaces = models.ManyToManyField(City, blank=True, related_name="providers")

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "service_providers"
        ordering = ["-id"]

    def __str__(self):
        return f"ServiceProvider<{self.account_id}:{self.business_name}>"

    def rating(self) -> float:
        """Average review rating rounded to one decimal; 0.0 without reviews."""
        avg = self.reviews.aggregate(avg=Avg("rating"))["avg"]
        return round(float(avg), 1) if avg is not None else 0.0


class Service(models.Model):
    """A priced service line of a provider."""

    provider = models.ForeignKey(ProviderProfile, on_delete=models.CASCADE, related_name="services")
    description = models.TextField(blank=True, default="")
    price = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)

    class Meta:
        db_table = "services"
        ordering = ["id"]


class Certification(models.Model):
    provider = models.ForeignKey(ProviderProfile, on_delete=models.CASCADE, related_name="certifications")
    name = models.CharField(max_length=255, blank=True, default="")
    description = models.TextField(blank=True, default="")
    link = models.CharField(max_length=500, blank=True, default="")

    class Meta:
        db_table = "certifications"
        ordering = ["id"]


class Project(models.Model):
    provider = models.ForeignKey(ProviderProfile, on_delete=models.CASCADE, related_name="projects")
    name = models.CharField(max_length=255, blank=True, default="")
    description = models.TextField(blank=True, default="")
    link = models.CharField(max_length=500, blank=True, default="")

    class Meta:
        db_table = "projects"
        ordering = ["id"]


class Contact(models.Model):
    """Contact channels of an account (any role)."""

    account = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="contacts",
    )
    phone = models.CharField(max_length=50, blank=True, default="")
    email = models.CharField(max_length=255, blank=True, default="")
    address = models.CharField(max_length=255, blank=True, default="")
    website = models.CharField(max_length=255, blank=True, default="")
    facebook = models.CharField(max_length=255, blank=True, default="")
    instagram = models.CharField(max_length=255, blank=True, default="")

    class Meta:
        db_table = "contacts"
        ordering = ["id"]


class Review(models.Model):
    """A rating left for a provider. Ratings are constrained between 1 and 5."""

    provider = models.ForeignKey(ProviderProfile, on_delete=models.CASCADE, related_name="reviews")
    reviewer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="reviews_written",
    )
    rating = models.IntegerField(validators=[MinValueValidator(1), MaxValueValidator(5)])
    description = models.TextField(blank=True, default="")

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "reviews"
        ordering = ("-created_at", "-id")

    def __str__(self) -> str:
        return f"Review<{self.id} {self.reviewer_id}->{self.provider_id} {self.rating}>"
