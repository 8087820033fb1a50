"""
URL patterns for core observability, auth, and settings endpoints.
"""

from django.urls import path

from .metrics import metrics_view
from .views import (
    HealthCheckView,
    LivenessView,
    ReadinessView,
    CustomTokenObtainPairView,
    CustomTokenRefreshView,
    CurrentUserView,
    LogoutView,
    PendingRevisionsSettingsView,
)

app_name = 'core'

urlpatterns = [
    path('health/', HealthCheckView.as_view(), name='health'),

    # Kubernetes probes
    path('livez/', LivenessView.as_view(), name='liveness'),
    path('readyz/', ReadinessView.as_view(), name='readiness'),

    # Prometheus
    path('metrics/', metrics_view, name='metrics'),
]

# Auth URLs - mounted at /api/auth/ in main urls.py
auth_urlpatterns = [
    path('login/', CustomTokenObtainPairView.as_view(), name='token_obtain_pair'),
    path('refresh/', CustomTokenRefreshView.as_view(), name='token_refresh'),
    path('me/', CurrentUserView.as_view(), name='current_user'),
    path('logout/', LogoutView.as_view(), name='logout'),
]

# Settings URLs - mounted under the revisions API namespace
settings_urlpatterns = [
    path('', PendingRevisionsSettingsView.as_view(), name='settings'),
]
