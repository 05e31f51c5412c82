"""
E-Learning User Authentication Views

Views:
- CustomTokenObtainPairView: Login, stores JWT tokens in HTTP-only cookies
- CustomTokenRefreshView: Refresh from the refresh cookie
- LogoutView: Blacklists the refresh token and clears both cookies

Author: DSP Development Team
Version: 1.0.0
"""

import logging

from django.conf import settings
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.serializers import TokenRefreshSerializer
from rest_framework_simplejwt.tokens import RefreshToken
from rest_framework_simplejwt.views import TokenObtainPairView

from ...exceptions import ValidationError
from ..serializers import CustomTokenObtainPairSerializer

logger = logging.getLogger(__name__)

__all__ = ["CustomTokenObtainPairView", "CustomTokenRefreshView", "LogoutView"]


def set_token_cookies(response: Response, access=None, refresh=None) -> Response:
    """Setzt Access- und Refresh-Token als HTTP-only Cookies."""
    options = {
        "httponly": True,
        "secure": settings.JWT_COOKIE_SECURE,
        "samesite": settings.JWT_COOKIE_SAMESITE,
        "path": "/",
    }
    if refresh:
        response.set_cookie(
            settings.JWT_REFRESH_COOKIE,
            refresh,
            max_age=int(settings.SIMPLE_JWT["REFRESH_TOKEN_LIFETIME"].total_seconds()),
            **options,
        )
    if access:
        response.set_cookie(
            settings.JWT_ACCESS_COOKIE,
            access,
            max_age=int(settings.SIMPLE_JWT["ACCESS_TOKEN_LIFETIME"].total_seconds()),
            **options,
        )
    return response


class CustomTokenObtainPairView(TokenObtainPairView):
    """
    Login-View: die Tokens landen in Cookies statt im JSON-Body.
    Der Body enthält nur Benutzer-ID, Benutzername und Rolle.
    """

    serializer_class = CustomTokenObtainPairSerializer

    def post(self, request, *args, **kwargs):
        response = super().post(request, *args, **kwargs)
        if response.status_code == status.HTTP_200_OK:
            refresh = response.data.pop("refresh", None)
            access = response.data.pop("access", None)
            set_token_cookies(response, access=access, refresh=refresh)
        return response


class CustomTokenRefreshView(APIView):
    permission_classes = [AllowAny]
    authentication_classes = []

    def post(self, request, *args, **kwargs):
        refresh_token = request.COOKIES.get(settings.JWT_REFRESH_COOKIE)
        if not refresh_token:
            raise ValidationError("Refresh token not provided")

        serializer = TokenRefreshSerializer(data={"refresh": refresh_token})
        try:
            serializer.is_valid(raise_exception=True)
        except TokenError as e:
            raise ValidationError(str(e))

        data = serializer.validated_data
        response = Response({"detail": "Token refreshed"}, status=status.HTTP_200_OK)
        return set_token_cookies(response, access=data.get("access"), refresh=data.get("refresh"))


class LogoutView(APIView):
    """
    Logout: Refresh-Token auf die Blacklist setzen und Cookies löschen.

    Ein ungültiger oder abgelaufener Refresh-Token verhindert den Logout nicht.
    """

    permission_classes = [AllowAny]
    authentication_classes = []

    def post(self, request):
        refresh_token = request.COOKIES.get(settings.JWT_REFRESH_COOKIE)
        if refresh_token:
            try:
                RefreshToken(refresh_token).blacklist()
            except TokenError as e:
                logger.info(f"Logout mit ungültigem Refresh-Token: {e}")

        response = Response({"detail": "Successfully logged out."}, status=status.HTTP_200_OK)
        response.delete_cookie(settings.JWT_REFRESH_COOKIE, path="/")
        response.delete_cookie(settings.JWT_ACCESS_COOKIE, path="/")
        return response
