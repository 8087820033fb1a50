"""
Shared fixtures: API clients, users in each role, posts and revisions.
"""

import pytest
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient

from apps.core.capabilities import (
    ROLE_ADMINISTRATOR,
    ROLE_AUTHOR,
    ROLE_CONTRIBUTOR,
    ROLE_EDITOR,
    assign_role,
)
from apps.core.models import PendingRevisionsSettings
from apps.posts.models import Post, Revision

User = get_user_model()

API_PREFIX = '/api/dgw-pending-revisions/v1/'


def make_user(username, role=None, **extra):
    user = User.objects.create_user(
        username=username,
        email=f'{username}@example.com',
        password='testpass123',
        **extra
    )
    if role:
        assign_role(user, role)
    return user


# ============================================================================
# Clients
# ============================================================================

@pytest.fixture
def api_client():
    """Create an API client."""
    return APIClient()


@pytest.fixture
def client_for(api_client):
    """Return the API client authenticated as the given user."""
    def _client_for(user):
        api_client.force_authenticate(user=user)
        return api_client
    return _client_for


# ============================================================================
# Users
# ============================================================================

@pytest.fixture
def administrator(db):
    return make_user('administrator', ROLE_ADMINISTRATOR)


@pytest.fixture
def editor(db):
    return make_user('editor', ROLE_EDITOR, first_name='Eddie', last_name='Tor')


@pytest.fixture
def author(db):
    return make_user('author', ROLE_AUTHOR)


@pytest.fixture
def other_author(db):
    return make_user('other_author', ROLE_AUTHOR)


@pytest.fixture
def contributor(db):
    return make_user('contributor', ROLE_CONTRIBUTOR)


@pytest.fixture
def subscriber(db):
    """A user without any role."""
    return make_user('subscriber')


# ============================================================================
# Settings and content
# ============================================================================

@pytest.fixture
def workflow_settings(db):
    """Active workflow settings."""
    return PendingRevisionsSettings.get_active()


@pytest.fixture
def pending_mode(workflow_settings):
    """Posts require approval by default."""
    workflow_settings.post_type_modes = {'post': 'pending', 'page': 'open'}
    workflow_settings.save()
    return workflow_settings


@pytest.fixture
def post(db, author):
    """A published post with one accepted revision (its first snapshot)."""
    post = Post.objects.create(
        author=author,
        title='Original title',
        content='<p>Original content</p>',
        excerpt='Original excerpt',
        status=Post.STATUS_PUBLISH,
        meta={'thumbnail_id': 7},
    )
    post.accepted_revision = post.latest_snapshot
    post.save(update_fields=['accepted_revision', 'updated_at'])
    return post


@pytest.fixture
def make_revision(db):
    """Create a revision of a post directly, bypassing the workflow."""
    def _make_revision(post, author=None, **fields):
        values = {
            'title': 'Revised title',
            'content': '<p>Revised content</p>',
            'excerpt': 'Revised excerpt',
        }
        values.update(fields)
        return Revision.objects.create(post=post, author=author or post.author, **values)
    return _make_revision
