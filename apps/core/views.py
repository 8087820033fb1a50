"""
Health checks, authentication and workflow settings endpoints.
"""

import logging
import time

from django.conf import settings
from django.core.cache import cache
from django.db import DatabaseError, connection
from django.http import JsonResponse
from django.utils.decorators import method_decorator
from django.views import View
from django.views.decorators.csrf import csrf_exempt
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.views import APIView
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.tokens import RefreshToken
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

from apps.core.exceptions import ValidationError, success_response
from apps.core.models import PendingRevisionsSettings
from apps.core.permissions import CanManageOptions
from apps.core.serializers import (
    CustomTokenObtainPairSerializer,
    PendingRevisionsSettingsSerializer,
    UserSerializer,
)

logger = logging.getLogger(__name__)


def check_database():
    started = time.monotonic()
    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
    except DatabaseError as e:
        return {"status": "unhealthy", "message": str(e)}
    return {"status": "healthy", "duration_ms": round((time.monotonic() - started) * 1000, 2)}


def check_cache():
    started = time.monotonic()
    try:
        cache.set('health:ping', 'pong', 5)
        if cache.get('health:ping') != 'pong':
            return {"status": "unhealthy", "message": "Cache read-back mismatch"}
    except Exception as e:  # cache backends raise their own client errors
        return {"status": "unhealthy", "message": str(e)}
    return {"status": "healthy", "duration_ms": round((time.monotonic() - started) * 1000, 2)}


HEALTH_CHECKS = {
    'database': check_database,
    'cache': check_cache,
}


@method_decorator(csrf_exempt, name='dispatch')
class HealthCheckView(View):
    """
    Health check endpoint.

    GET /health/ - Run all health checks
    """

    def get(self, request):
        checks = {name: check() for name, check in HEALTH_CHECKS.items()}
        healthy = all(result["status"] == "healthy" for result in checks.values())
        if not healthy:
            logger.warning("Health check failed", extra={"checks": checks})
        return JsonResponse({
            "status": "healthy" if healthy else "unhealthy",
            "version": settings.VERSION,
            "checks": checks,
        }, status=200 if healthy else 503)


@method_decorator(csrf_exempt, name='dispatch')
class LivenessView(View):
    """Returns 200 if the application is running."""

    def get(self, request):
        return JsonResponse({"status": "alive"})


@method_decorator(csrf_exempt, name='dispatch')
class ReadinessView(View):
    """Returns 200 if the database accepts queries."""

    def get(self, request):
        db_check = check_database()
        if db_check["status"] == "healthy":
            return JsonResponse({"status": "ready"})
        return JsonResponse({
            "status": "not_ready",
            "reason": db_check.get("message"),
        }, status=503)


# =============================================================================
# JWT Authentication Views
# =============================================================================

class CustomTokenObtainPairView(TokenObtainPairView):
    """
    Login endpoint that returns JWT tokens.

    POST /api/auth/login/
    Body: {"username": "...", "password": "..."}
    Returns: {"access": "...", "refresh": "...", "user": {...}}
    """
    serializer_class = CustomTokenObtainPairSerializer
    permission_classes = [AllowAny]


class CustomTokenRefreshView(TokenRefreshView):
    """
    POST /api/auth/refresh/
    Body: {"refresh": "..."}
    """
    permission_classes = [AllowAny]


class CurrentUserView(APIView):
    """GET /api/auth/me/ - current user with roles and capabilities."""
    permission_classes = [IsAuthenticated]

    def get(self, request):
        return success_response(data=UserSerializer(request.user).data)


class LogoutView(APIView):
    """
    Logout endpoint - blacklist refresh token.

    POST /api/auth/logout/
    Body: {"refresh": "..."}
    """
    permission_classes = [IsAuthenticated]

    def post(self, request):
        refresh_token = request.data.get('refresh')
        if not refresh_token:
            raise ValidationError("Refresh token required", field='refresh')
        try:
            RefreshToken(refresh_token).blacklist()
        except TokenError as e:
            raise ValidationError(str(e), field='refresh')
        logger.info(f"User {request.user.pk} logged out")
        return success_response(message="Successfully logged out")


# =============================================================================
# Workflow Settings
# =============================================================================

class PendingRevisionsSettingsView(APIView):
    """
    Get or update workflow settings.

    GET /api/dgw-pending-revisions/v1/settings/
    PATCH /api/dgw-pending-revisions/v1/settings/
    """
    permission_classes = [IsAuthenticated, CanManageOptions]

    def get(self, request):
        settings_obj = PendingRevisionsSettings.get_active()
        return success_response(data=PendingRevisionsSettingsSerializer(settings_obj).data)

    def patch(self, request):
        settings_obj = PendingRevisionsSettings.get_active()
        serializer = PendingRevisionsSettingsSerializer(
            settings_obj,
            data=request.data,
            partial=True
        )
        serializer.is_valid(raise_exception=True)
        serializer.save(last_modified_by=request.user)
        logger.info(
            f"User {request.user.pk} updated pending revisions settings",
            extra={"fields": sorted(request.data.keys())},
        )
        return success_response(
            data=PendingRevisionsSettingsSerializer(settings_obj).data,
            message="Settings updated.",
        )
