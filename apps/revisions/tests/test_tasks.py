"""
Tests for background tasks and email notifications.

Tests cover:
- cleanup_old_revisions retention rules and the management command
- Notification enqueueing on commit, recipients per action
- Weekly analytics logging
"""

from datetime import timedelta

import pytest
from django.core import mail
from django.core.management import call_command
from django.utils import timezone

from apps.core.models import PendingRevisionsSettings
from apps.posts.models import Revision
from apps.revisions.tasks import cleanup_old_revisions, log_revision_analytics, send_revision_notification
from apps.revisions.workflow import RevisionWorkflow


@pytest.fixture
def old_rejected(post, make_revision):
    revision = make_revision(post, status=Revision.STATUS_REJECTED)
    Revision.objects.filter(pk=revision.pk).update(created_at=timezone.now() - timedelta(days=60))
    return revision


@pytest.fixture
def auto_cleanup(workflow_settings):
    workflow_settings.auto_cleanup_old_revisions = True
    workflow_settings.save()
    return workflow_settings


# ============================================================================
# Cleanup
# ============================================================================

class TestCleanupOldRevisions:

    @pytest.mark.django_db
    def test_skipped_when_disabled(self, workflow_settings, old_rejected):
        result = cleanup_old_revisions()
        assert result == {'deleted': 0, 'skipped': True}
        assert Revision.objects.filter(pk=old_rejected.pk).exists()

    @pytest.mark.django_db
    def test_deletes_old_rejected(self, auto_cleanup, old_rejected):
        result = cleanup_old_revisions()
        assert result['deleted'] == 1
        assert not Revision.objects.filter(pk=old_rejected.pk).exists()

    @pytest.mark.django_db
    def test_keeps_recent_and_pending(self, auto_cleanup, post, make_revision):
        recent = make_revision(post, status=Revision.STATUS_REJECTED)
        old_pending = make_revision(post)
        Revision.objects.filter(pk=old_pending.pk).update(created_at=timezone.now() - timedelta(days=60))

        assert cleanup_old_revisions()['deleted'] == 0
        assert Revision.objects.filter(pk__in=[recent.pk, old_pending.pk]).count() == 2

    @pytest.mark.django_db
    def test_keeps_last_known_good(self, auto_cleanup, post, editor, old_rejected, make_revision):
        workflow = RevisionWorkflow(post, editor)
        workflow.quick_switch(old_rejected)
        workflow.quick_switch(make_revision(post))
        # old_rejected is now the last known good revision; the switch cleared its rejection
        Revision.objects.filter(pk=old_rejected.pk).update(status=Revision.STATUS_REJECTED)

        assert cleanup_old_revisions()['deleted'] == 0

    @pytest.mark.django_db
    def test_days_argument(self, auto_cleanup, post, make_revision):
        revision = make_revision(post, status=Revision.STATUS_REJECTED)
        Revision.objects.filter(pk=revision.pk).update(created_at=timezone.now() - timedelta(days=3))
        assert cleanup_old_revisions(days=2)['deleted'] == 1

    @pytest.mark.django_db
    def test_command_forces_cleanup(self, workflow_settings, old_rejected, capsys):
        call_command('cleanup_revisions', '--days', '30')
        assert not Revision.objects.filter(pk=old_rejected.pk).exists()
        assert 'Deleted 1 rejected revision(s)' in capsys.readouterr().out


# ============================================================================
# Notifications
# ============================================================================

class TestNotifications:

    @pytest.mark.django_db
    def test_submission_emails_reviewers(self, post, author, editor, administrator,
                                         django_capture_on_commit_callbacks):
        with django_capture_on_commit_callbacks(execute=True):
            RevisionWorkflow(post, author).submit(title='For review', content='Body')

        assert len(mail.outbox) == 1
        assert set(mail.outbox[0].to) == {'editor@example.com', 'administrator@example.com'}
        assert 'Original title' in mail.outbox[0].subject

    @pytest.mark.django_db
    def test_decision_emails_author(self, post, editor, make_revision,
                                    django_capture_on_commit_callbacks):
        revision = make_revision(post)
        with django_capture_on_commit_callbacks(execute=True):
            RevisionWorkflow(post, editor).reject(revision)

        assert len(mail.outbox) == 1
        assert mail.outbox[0].to == ['author@example.com']
        assert mail.outbox[0].body == 'Revision has been rejected.'

    @pytest.mark.django_db
    def test_nothing_queued_before_commit(self, post, editor, make_revision,
                                          django_capture_on_commit_callbacks):
        revision = make_revision(post)
        with django_capture_on_commit_callbacks(execute=False) as callbacks:
            RevisionWorkflow(post, editor).approve(revision)
        assert mail.outbox == []
        assert len(callbacks) >= 1

    @pytest.mark.django_db
    def test_disabled_notifications(self, post, editor, make_revision, workflow_settings,
                                    django_capture_on_commit_callbacks):
        workflow_settings.enable_email_notifications = False
        workflow_settings.save()
        revision = make_revision(post)
        with django_capture_on_commit_callbacks(execute=True):
            RevisionWorkflow(post, editor).approve(revision)
        assert mail.outbox == []

    @pytest.mark.django_db
    def test_missing_revision_is_dropped(self, workflow_settings):
        assert send_revision_notification('approved', 999999) == 0

    @pytest.mark.django_db
    def test_unknown_action(self, post, make_revision, workflow_settings):
        revision = make_revision(post)
        assert send_revision_notification('archived', revision.pk) == 0
        assert mail.outbox == []


# ============================================================================
# Analytics
# ============================================================================

class TestRevisionAnalytics:

    @pytest.mark.django_db
    def test_logs_summary(self, post, workflow_settings, caplog):
        stats = log_revision_analytics()
        assert stats['total_revisions'] == 1
        assert 'Revision analytics: 1 total' in caplog.text

    @pytest.mark.django_db
    def test_disabled(self, workflow_settings):
        workflow_settings.enable_revision_analytics = False
        workflow_settings.save()
        assert log_revision_analytics() is None
        assert PendingRevisionsSettings.get_active().enable_revision_analytics is False
