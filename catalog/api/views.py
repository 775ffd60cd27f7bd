"""Catalog API views.

Categories and cities are listed with envelope pagination, searching and
server-side sorting; both support create/update/delete. Service categories
are exposed as a flat option list.
"""

import logging

from django.db.models import Count, Q
from rest_framework import generics, status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from accounts.api.permissions import IsAdminAccount
from common.api.pagination import EnvelopePagination
from common.api.query import apply_sort

from ..models import Category, City, ServiceCategory
from .serializers import CategorySerializer, CitySerializer, ServiceCategorySerializer

logger = logging.getLogger(__name__)

ADMIN_PERMISSIONS = [IsAuthenticated, IsAdminAccount]


def _with_provider_count(qs):
    return qs.annotate(provider_count=Count("providers", distinct=True))


class CategoryListCreateAPIView(generics.ListCreateAPIView):
    """GET: paginated, searchable, sortable list; POST: create a category."""

    serializer_class = CategorySerializer
    pagination_class = EnvelopePagination
    permission_classes = ADMIN_PERMISSIONS
    sort_fields = {"id": "id", "name": "name", "provider_count": "provider_count"}

    def get_queryset(self):
        params = self.request.query_params
        qs = _with_provider_count(Category.objects.all())
        search = params.get("search")
        if search:
            qs = qs.filter(Q(name__icontains=search) | Q(description__icontains=search))
        return apply_sort(qs, params, self.sort_fields, default=("name", "id"))

    def count_unfiltered(self):
        return Category.objects.count()


class CategoryDetailAPIView(generics.RetrieveUpdateDestroyAPIView):
    """GET/PUT/PATCH/DELETE a single category."""

    serializer_class = CategorySerializer
    permission_classes = ADMIN_PERMISSIONS

    def get_queryset(self):
        return _with_provider_count(Category.objects.all())

    def perform_destroy(self, instance):
        logger.info("Deleting category %s", instance.pk)
        instance.delete()


class ServiceCategoryListAPIView(generics.ListAPIView):
    """GET: every service category as a flat `{data: [...]}` option list."""

    serializer_class = ServiceCategorySerializer
    permission_classes = ADMIN_PERMISSIONS

    def get_queryset(self):
        return _with_provider_count(ServiceCategory.objects.all()).order_by("name", "id")

    def list(self, request, *args, **kwargs):
        serializer = self.get_serializer(self.get_queryset(), many=True)
        return Response({"data": serializer.data}, status=status.HTTP_200_OK)


class CityListCreateAPIView(generics.ListCreateAPIView):
    """GET: paginated, searchable, sortable city list; POST: add a city."""

    serializer_class = CitySerializer
    pagination_class = EnvelopePagination
    permission_classes = ADMIN_PERMISSIONS
    sort_fields = {"id": "id", "name": "name", "provider_count": "provider_count"}

    def get_queryset(self):
        params = self.request.query_params
        qs = _with_provider_count(City.objects.all())
        search = params.get("search")
        if search:
            qs = qs.filter(name__icontains=search)
        return apply_sort(qs, params, self.sort_fields, default=("name", "id"))

    def count_unfiltered(self):
        return City.objects.count()


class CityDetailAPIView(generics.RetrieveUpdateDestroyAPIView):
    """GET/PUT (rename)/DELETE a single city."""

    serializer_class = CitySerializer
    permission_classes = ADMIN_PERMISSIONS

    def get_queryset(self):
        return _with_provider_count(City.objects.all())

    def perform_destroy(self, instance):
        logger.info("Deleting city %s", instance.pk)
        instance.delete()
