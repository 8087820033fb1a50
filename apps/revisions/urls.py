"""
URL patterns for the revision workflow API.
Mounted at /api/dgw-pending-revisions/v1/ in config/urls.py.
"""

from django.urls import include, path

from config.routers import SafeDefaultRouter

from .views import (
    DashboardView,
    PendingRevisionListView,
    PostRevisionDetailView,
    PostRevisionListView,
    PostViewSet,
    RevisionCreateView,
    RevisionDecisionView,
    RevisionStatsView,
)

app_name = 'revisions'

router = SafeDefaultRouter()
router.register(r'posts', PostViewSet, basename='post')

urlpatterns = [
    path('revisions/', RevisionCreateView.as_view(), name='revision-create'),
    # Before the <post_id> routes so 'pending' is never read as an id
    path('revisions/pending/', PendingRevisionListView.as_view(), name='revision-pending'),
    path(
        'revisions/<int:post_id>/<int:revision_id>/approve/',
        RevisionDecisionView.as_view(decision='approve'),
        name='post-revision-approve',
    ),
    path(
        'revisions/<int:post_id>/<int:revision_id>/reject/',
        RevisionDecisionView.as_view(decision='reject'),
        name='post-revision-reject',
    ),
    path(
        'revisions/<int:revision_id>/approve/',
        RevisionDecisionView.as_view(decision='approve'),
        name='revision-approve',
    ),
    path(
        'revisions/<int:revision_id>/reject/',
        RevisionDecisionView.as_view(decision='reject'),
        name='revision-reject',
    ),
    path(
        'revisions/<int:post_id>/<int:revision_id>/',
        PostRevisionDetailView.as_view(),
        name='post-revision-detail',
    ),
    path('revisions/<int:post_id>/', PostRevisionListView.as_view(), name='post-revision-list'),
    path('stats/', RevisionStatsView.as_view(), name='revision-stats'),
    path('dashboard/', DashboardView.as_view(), name='dashboard'),
    path('', include(router.urls)),
]
