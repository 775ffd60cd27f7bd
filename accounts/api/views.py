"""Auth API views.

Implements bearer-token login, logout (token revocation) and the current
account profile.
"""

import logging

from django.utils import timezone
from rest_framework import status
from rest_framework.authtoken.models import Token
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from .permissions import AllowedAnyLogin
from .serializers import AccountSerializer, LoginSerializer

logger = logging.getLogger(__name__)


def _first_error(errors):
    """Flatten a serializer error dict to the message shown on the login screen."""
    value = errors.get("error") or errors.get("non_field_errors")
    if isinstance(value, (list, tuple)) and value:
        return str(value[0])
    return str(value) if value else ""


class LoginView(APIView):
    """POST /api/v1/login -> validate credentials and return token + account."""

    authentication_classes = []
    permission_classes = [AllowedAnyLogin]

    def post(self, request, *args, **kwargs):
        serializer = LoginSerializer(data=request.data, context={"request": request})
        if not serializer.is_valid():
            message = _first_error(serializer.errors)
            if message:
                logger.info("Rejected login for %s", request.data.get("email", ""))
                return Response({"error": message}, status=status.HTTP_400_BAD_REQUEST)
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        account = serializer.validated_data["account"]
        account.last_logged_in = timezone.now()
        account.save(update_fields=["last_logged_in"])

        token, _ = Token.objects.get_or_create(user=account)
        logger.info("Account %s logged in", account.pk)
        data = {"token": token.key, "user": AccountSerializer(account).data}
        return Response(data, status=status.HTTP_200_OK)


class LogoutView(APIView):
    """POST /api/v1/logout -> revoke the caller's token."""

    permission_classes = [IsAuthenticated]

    def post(self, request, *args, **kwargs):
        Token.objects.filter(user=request.user).delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


class MeView(APIView):
    """GET /api/v1/me -> profile of the authenticated account."""

    permission_classes = [IsAuthenticated]

    def get(self, request, *args, **kwargs):
        return Response(AccountSerializer(request.user).data, status=status.HTTP_200_OK)
