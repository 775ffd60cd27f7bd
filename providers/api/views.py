"""Users API views.

List and create accounts on the same endpoint with envelope pagination,
filtering, searching and sorting. Retrieve (with the city option list),
update and delete are provided on the detail route. Admin accounts only.
"""

import logging

from django.contrib.auth import get_user_model
from django.db.models import Avg, Q
from rest_framework import generics, status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from accounts.api.permissions import IsAdminAccount
from catalog.api.serializers import CitySerializer
from catalog.models import City
from common.api.pagination import EnvelopePagination
from common.api.query import apply_sort, int_filter, number_filter

from .serializers import AccountDetailSerializer, AccountListSerializer, AccountWriteSerializer

logger = logging.getLogger(__name__)

User = get_user_model()


# ----------------------------- helpers (module-level) -----------------------------

def _flag_filter(qs, params, name, field):
    """Apply a yes/no presence filter on a nullable timestamp field."""
    value = params.get(name)
    if value == "yes":
        return qs.filter(**{f"{field}__isnull": False})
    if value == "no":
        return qs.filter(**{f"{field}__isnull": True})
    return qs


def _apply_filters(qs, params):
    role = int_filter(params, "role")
    if role is not None:
        qs = qs.filter(role_id=role)

    category = int_filter(params, "category")
    if category is not None:
        qs = qs.filter(service_provider__category_id=category)

    service_category = int_filter(params, "service_category")
    if service_category is not None:
        qs = qs.filter(service_provider__service_category_id=service_category)

    city = int_filter(params, "workstation")
    if city is None:
        city = int_filter(params, "workspace")
    if city is not None:
        qs = qs.filter(service_provider__workspaces__id=city)

    qs = _flag_filter(qs, params, "verified", "email_verified_at")
    qs = _flag_filter(qs, params, "last_logged_in", "last_logged_in")

    rating_min = number_filter(params, "rating_min")
    if rating_min is not None:
        qs = qs.filter(avg_rating__gte=rating_min)
    rating_max = number_filter(params, "rating_max")
    if rating_max is not None:
        qs = qs.filter(avg_rating__lte=rating_max)

    search = params.get("search")
    if search:
        cond = Q(email__icontains=search) | Q(service_provider__business_name__icontains=search)
        if search.isdigit():
            cond |= Q(id=int(search))
        qs = qs.filter(cond)

    return qs.distinct()


def _detail_payload(pk):
    """Re-read the account so cached relations reflect the latest write."""
    account = User.objects.get(pk=pk)
    return {"data": AccountDetailSerializer(account).data}


# --------------------------------------- views ---------------------------------------

class UserListCreateAPIView(generics.ListCreateAPIView):
    """GET: filtered, sorted, paginated account list; POST: create an account."""

    pagination_class = EnvelopePagination
    permission_classes = [IsAuthenticated, IsAdminAccount]
    sort_fields = {
        "id": "id",
        "email": "email",
        "role_id": "role_id",
        "last_logged_in": "last_logged_in",
        "rating": "avg_rating",
    }

    def get_serializer_class(self):
        """Use the list row serializer for GET and the write serializer for POST."""
        return AccountListSerializer if self.request.method == "GET" else AccountWriteSerializer

    def get_queryset(self):
        params = self.request.query_params
        qs = (
            User.objects.select_related("service_provider__category", "service_provider__service_category")
            .prefetch_related("service_provider__workspaces")
            .annotate(avg_rating=Avg("service_provider__reviews__rating"))
        )
        qs = _apply_filters(qs, params)
        return apply_sort(qs, params, self.sort_fields, default=("-id",))

    def count_unfiltered(self):
        return User.objects.count()

    def create(self, request, *args, **kwargs):
        """Validate and create the account, returning the full detail payload."""
        serializer = AccountWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        account = serializer.save()
        logger.info("Created account %s with role %s", account.pk, account.role_id)
        return Response(_detail_payload(account.pk), status=status.HTTP_201_CREATED)


class UserDetailAPIView(generics.RetrieveUpdateDestroyAPIView):
    """GET: account + city options, PUT/PATCH: update, DELETE: remove."""

    queryset = User.objects.all()
    permission_classes = [IsAuthenticated, IsAdminAccount]
    serializer_class = AccountWriteSerializer

    def retrieve(self, request, *args, **kwargs):
        account = self.get_object()
        cities = CitySerializer(City.objects.order_by("name", "id"), many=True).data
        return Response(
            {"data": AccountDetailSerializer(account).data, "cities": cities},
            status=status.HTTP_200_OK,
        )

    def update(self, request, *args, **kwargs):
        """Apply the form payload and return the refreshed account."""
        partial = kwargs.pop("partial", False)
        instance = self.get_object()
        serializer = AccountWriteSerializer(instance, data=request.data, partial=partial)
        serializer.is_valid(raise_exception=True)
        serializer.save()
        return Response(_detail_payload(instance.pk), status=status.HTTP_200_OK)

    def destroy(self, request, *args, **kwargs):
        """Delete the account and respond with 204 No Content."""
        instance = self.get_object()
        logger.info("Deleting account %s", instance.pk)
        instance.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)
