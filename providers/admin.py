from django.contrib import admin

from .models import Certification, Contact, Project, ProviderProfile, Review, Service


class ServiceInline(admin.TabularInline):
    model = Service
    extra = 0
    fields = ("description", "price")


class CertificationInline(admin.TabularInline):
    model = Certification
    extra = 0
    fields = ("name", "description", "link")


class ProjectInline(admin.TabularInline):
    model = Project
    extra = 0
    fields = ("name", "description", "link")


@admin.register(ProviderProfile)
class ProviderProfileAdmin(admin.ModelAdmin):
    """
    Provider profiles with their repeatable collections edited inline.
    """
    inlines = [ServiceInline, CertificationInline, ProjectInline]
    list_display = ("id", "account_id_display", "account", "business_name", "category", "service_category")
    list_select_related = ("account", "category", "service_category")
    search_fields = ("business_name", "alias", "account__email")
    list_filter = ("category", "service_category")
    filter_horizontal = ("workspaces",)
    readonly_fields = ("created_at",)

    def account_id_display(self, obj):
        return obj.account_id
    account_id_display.short_description = "account id"
    account_id_display.admin_order_field = "account__id"


@admin.register(Contact)
class ContactAdmin(admin.ModelAdmin):
    list_display = ("id", "account", "phone", "email", "website")
    list_select_related = ("account",)
    search_fields = ("account__email", "phone", "email")


@admin.register(Review)
class ReviewAdmin(admin.ModelAdmin):
    list_display = ("id", "provider", "reviewer", "rating", "created_at")
    list_select_related = ("provider", "reviewer")
    list_filter = ("rating",)
    ordering = ("-created_at", "-id")
