"""
Tests for workflow settings.

Tests cover:
- PendingRevisionsSettings singleton and mode sanitization
- Editing mode resolution (post override, post-type default, 'off')
- Settings API endpoints (GET/PATCH) and their permissions
"""

import pytest
from rest_framework import status

from apps.core.models import PendingRevisionsSettings
from apps.posts.models import Post

SETTINGS_URL = '/api/dgw-pending-revisions/v1/settings/'


# ============================================================================
# Model Tests
# ============================================================================

class TestPendingRevisionsSettingsModel:

    @pytest.mark.django_db
    def test_get_active_creates_defaults(self):
        PendingRevisionsSettings.objects.all().delete()
        settings_obj = PendingRevisionsSettings.get_active()
        assert settings_obj.post_type_modes == {'post': 'open', 'page': 'open'}
        assert settings_obj.enable_email_notifications is True
        assert settings_obj.revision_retention_days == 30

    @pytest.mark.django_db
    def test_only_one_active_record(self, workflow_settings):
        newer = PendingRevisionsSettings.objects.create(is_active=True)
        workflow_settings.refresh_from_db()
        assert not workflow_settings.is_active
        assert PendingRevisionsSettings.get_active() == newer

    @pytest.mark.django_db
    def test_invalid_modes_are_sanitized_to_open(self, workflow_settings):
        workflow_settings.post_type_modes = {'post': 'bogus', 'page': 'pending'}
        workflow_settings.save()
        workflow_settings.refresh_from_db()
        assert workflow_settings.post_type_modes == {'post': 'open', 'page': 'pending'}

    @pytest.mark.django_db
    def test_unconfigured_post_type_is_off(self, workflow_settings):
        assert workflow_settings.get_default_editing_mode('product') == 'off'
        assert not workflow_settings.is_supported_post_type('product')

    @pytest.mark.django_db
    def test_get_message_falls_back_to_default(self, workflow_settings):
        workflow_settings.notification_messages = {}
        assert workflow_settings.get_message('revision_rejected') == 'Revision has been rejected.'


class TestEditingModeResolution:

    @pytest.mark.django_db
    def test_post_override_wins(self, pending_mode, author):
        post = Post(author=author, post_type='post', editing_mode='locked')
        assert pending_mode.resolve_editing_mode(post) == 'locked'

    @pytest.mark.django_db
    def test_post_type_default_applies(self, pending_mode, author):
        post = Post(author=author, post_type='post')
        assert pending_mode.resolve_editing_mode(post) == 'pending'

    @pytest.mark.django_db
    def test_off_type_behaves_as_open(self, workflow_settings, author):
        workflow_settings.post_type_modes = {'post': 'off'}
        post = Post(author=author, post_type='post')
        assert workflow_settings.resolve_editing_mode(post) == 'open'


# ============================================================================
# API Tests
# ============================================================================

class TestSettingsAPI:

    @pytest.mark.django_db
    def test_get_settings(self, client_for, administrator, workflow_settings):
        response = client_for(administrator).get(SETTINGS_URL)
        assert response.status_code == status.HTTP_200_OK
        assert response.data['success'] is True
        assert response.data['data']['post_type_modes'] == workflow_settings.post_type_modes

    @pytest.mark.django_db
    def test_editor_cannot_read_settings(self, client_for, editor):
        response = client_for(editor).get(SETTINGS_URL)
        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.data['error']['code'] == 'PERMISSION_DENIED'

    @pytest.mark.django_db
    def test_anonymous_gets_401(self, api_client):
        response = api_client.get(SETTINGS_URL)
        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.data['error']['code'] == 'AUTHENTICATION_REQUIRED'

    @pytest.mark.django_db
    def test_patch_updates_modes_and_tracks_user(self, client_for, administrator):
        response = client_for(administrator).patch(
            SETTINGS_URL,
            {'post_type_modes': {'post': 'pending', 'page': 'off'}},
            format='json',
        )
        assert response.status_code == status.HTTP_200_OK
        settings_obj = PendingRevisionsSettings.get_active()
        assert settings_obj.post_type_modes == {'post': 'pending', 'page': 'off'}
        assert settings_obj.last_modified_by == administrator
        assert response.data['data']['last_modified_by_username'] == 'administrator'

    @pytest.mark.django_db
    def test_patch_rejects_invalid_mode(self, client_for, administrator):
        response = client_for(administrator).patch(
            SETTINGS_URL,
            {'post_type_modes': {'post': 'locked'}},
            format='json',
        )
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['error']['code'] == 'VALIDATION_ERROR'
        assert 'post_type_modes' in response.data['error']['details']

    @pytest.mark.django_db
    def test_patch_rejects_zero_retention(self, client_for, administrator):
        response = client_for(administrator).patch(
            SETTINGS_URL,
            {'revision_retention_days': 0},
            format='json',
        )
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    @pytest.mark.django_db
    def test_patch_merges_notification_messages(self, client_for, administrator):
        response = client_for(administrator).patch(
            SETTINGS_URL,
            {'notification_messages': {'revision_rejected': 'Not this time.'}},
            format='json',
        )
        assert response.status_code == status.HTTP_200_OK
        messages = response.data['data']['notification_messages']
        assert messages['revision_rejected'] == 'Not this time.'
        assert messages['revision_approved'] == 'Revision has been approved and published.'

    @pytest.mark.django_db
    def test_patch_rejects_unknown_message_key(self, client_for, administrator):
        response = client_for(administrator).patch(
            SETTINGS_URL,
            {'notification_messages': {'hello': 'world'}},
            format='json',
        )
        assert response.status_code == status.HTTP_400_BAD_REQUEST
