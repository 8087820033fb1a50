"""
URL configuration for the pending revisions service.
"""

from django.conf import settings
from django.contrib import admin
from django.urls import include, path

from apps.core.urls import auth_urlpatterns, settings_urlpatterns

api_prefix = settings.PENDING_REVISIONS_API_PREFIX

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/auth/', include((auth_urlpatterns, 'auth'))),
    # Plugin settings live beside the revision endpoints
    path(f'{api_prefix}settings/', include((settings_urlpatterns, 'pending-settings'))),
    path(api_prefix, include('apps.revisions.urls')),
    # Observability endpoints
    path('', include('apps.core.urls')),
]

admin.site.site_header = "Pending Revisions Administration"
admin.site.site_title = "Pending Revisions Admin"
admin.site.index_title = "Content approval"
