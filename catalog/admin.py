from django.contrib import admin
from django.db.models import Count

from .models import Category, City, ServiceCategory


class ProviderCountMixin:
    """Annotate and display the number of providers per row."""

    def get_queryset(self, request):
        qs = super().get_queryset(request)
        return qs.annotate(_provider_count=Count("providers", distinct=True))

    def provider_count_display(self, obj):
        return getattr(obj, "_provider_count", 0)
    provider_count_display.short_description = "providers"
    provider_count_display.admin_order_field = "_provider_count"


@admin.register(Category)
class CategoryAdmin(ProviderCountMixin, admin.ModelAdmin):
    list_display = ("id", "name", "alias", "provider_count_display", "updated_at")
    search_fields = ("name", "description", "alias")
    ordering = ("name", "id")


@admin.register(ServiceCategory)
class ServiceCategoryAdmin(ProviderCountMixin, admin.ModelAdmin):
    list_display = ("id", "name", "alias", "provider_count_display", "updated_at")
    search_fields = ("name", "description", "alias")
    ordering = ("name", "id")


@admin.register(City)
class CityAdmin(ProviderCountMixin, admin.ModelAdmin):
    list_display = ("id", "name", "provider_count_display")
    search_fields = ("name",)
    ordering = ("name", "id")
