from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from accounts.api.permissions import IsAdminAccount
from accounts.models import Account
from catalog.models import Category, City


class StatsAPIView(APIView):
    """
    GET /api/v1/stats

    Returns the dashboard counters:
    - users: total number of accounts
    - service_providers: accounts with the Provider role
    - categories: number of categories
    - workspaces: number of cities

    Permissions: admin accounts only
    """

    permission_classes = [IsAuthenticated, IsAdminAccount]

    def get(self, request):
        data = {
            "users": Account.objects.count(),
            "service_providers": Account.objects.filter(role_id=Account.Role.PROVIDER).count(),
            "categories": Category.objects.count(),
            "workspaces": City.objects.count(),
        }
        return Response(data, status=status.HTTP_200_OK)
