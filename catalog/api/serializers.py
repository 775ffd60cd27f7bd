"""Catalog API serializers.

`provider_count` is derived: list querysets annotate it, freshly created or
updated rows fall back to counting the relation.
"""

from rest_framework import serializers

from ..models import Category, City, ServiceCategory


def _provider_count(obj):
    annotated = getattr(obj, "provider_count", None)
    return annotated if annotated is not None else obj.providers.count()


class CategorySerializer(serializers.ModelSerializer):
    """Category with a read-only provider counter."""

    provider_count = serializers.SerializerMethodField()

    class Meta:
        model = Category
        fields = ["id", "name", "description", "alias", "provider_count"]
        extra_kwargs = {
            "description": {"required": False, "allow_blank": True},
            "alias": {"required": False, "allow_blank": True},
        }

    def get_provider_count(self, obj):
        return _provider_count(obj)


class ServiceCategorySerializer(CategorySerializer):
    class Meta(CategorySerializer.Meta):
        model = ServiceCategory


class CitySerializer(serializers.ModelSerializer):
    """City (workspace) with a read-only provider counter."""

    provider_count = serializers.SerializerMethodField()

    class Meta:
        model = City
        fields = ["id", "name", "provider_count"]

    def get_provider_count(self, obj):
        return _provider_count(obj)
