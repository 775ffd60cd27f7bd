"""Catalog app models.

Flat reference tables: provider categories, service categories and the cities
("workspaces") in which providers operate. Each doubles as an editable
resource and as an option list for the account editor.
"""

from django.db import models


class CatalogEntry(models.Model):
    """Shared shape of Category and ServiceCategory."""

    name = models.CharField(max_length=120, unique=True)
    description = models.TextField(blank=True, default="")
    alias = models.CharField(max_length=120, blank=True, default="")

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True
        ordering = ["name", "id"]

    def __str__(self):
        return f"{self.name} (#{self.pk})"


class Category(CatalogEntry):
    """Top-level provider category."""

    class Meta(CatalogEntry.Meta):
        db_table = "categories"
        verbose_name_plural = "categories"


class ServiceCategory(CatalogEntry):
    """Kind of service a provider offers."""

    class Meta(CatalogEntry.Meta):
        db_table = "service_categories"
        verbose_name_plural = "service categories"


class City(models.Model):
    """A city a provider can be assigned to as a workspace."""

    name = models.CharField(max_length=120, unique=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "cities"
        ordering = ["name", "id"]
        verbose_name_plural = "cities"

    def __str__(self):
        return self.name
