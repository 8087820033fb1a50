"""
Tests for the revision approval workflow.

Tests cover:
- Submit, approve, reject, quick switch, emergency revert, editing mode
- Audit log entries and signals per transition
- Locked posts and auto-draft parents
- Database failures surfacing as PersistenceError
"""

from unittest.mock import patch

import pytest
from django.db import DatabaseError

from apps.core.exceptions import (
    BackupUnavailableError,
    ErrorCode,
    PersistenceError,
    PostLockedError,
    PostNotFoundError,
    RevisionNotFoundError,
    ValidationError,
)
from apps.posts.models import Post, Revision
from apps.revisions import signals
from apps.revisions.models import RevisionAction
from apps.revisions.workflow import RevisionWorkflow


@pytest.fixture
def pending_revision(post, make_revision):
    return make_revision(post)


@pytest.fixture
def capture_signal():
    """Collect the kwargs of every send of a signal."""
    def _capture(signal):
        received = []

        def receiver(sender, **kwargs):
            received.append(kwargs)

        signal.connect(receiver, weak=False)
        return received, receiver
    return _capture


# ============================================================================
# Submit
# ============================================================================

class TestSubmit:

    @pytest.mark.django_db
    def test_submit_creates_sanitized_pending_revision(self, post, author):
        revision = RevisionWorkflow(post, author).submit(
            title='<b>New</b> title',
            content='<p>Safe</p><script>alert(1)</script>',
            excerpt='Short',
        )
        assert revision.title == 'New title'
        assert '<script' not in revision.content
        assert '<p>Safe</p>' in revision.content
        assert post.is_revision_pending(revision)
        assert RevisionAction.objects.get(action='created').revision == revision

    @pytest.mark.django_db
    def test_submit_leaves_post_untouched(self, post, author):
        RevisionWorkflow(post, author).submit(title='Other', content='Other')
        post.refresh_from_db()
        assert post.title == 'Original title'

    @pytest.mark.django_db
    def test_submit_to_auto_draft_is_not_found(self, author):
        draft = Post.objects.create(author=author, status=Post.STATUS_AUTO_DRAFT)
        with pytest.raises(PostNotFoundError):
            RevisionWorkflow(draft, author).submit(title='x', content='y')

    @pytest.mark.django_db
    def test_locked_post_rejects_non_reviewer(self, post, author):
        post.editing_mode = 'locked'
        with pytest.raises(PostLockedError):
            RevisionWorkflow(post, author).submit(title='x', content='y')

    @pytest.mark.django_db
    def test_locked_post_accepts_reviewer(self, post, editor):
        post.editing_mode = 'locked'
        revision = RevisionWorkflow(post, editor).submit(title='x', content='y')
        assert revision.author == editor

    @pytest.mark.django_db
    def test_submit_sends_signal(self, post, author, capture_signal):
        received, receiver = capture_signal(signals.revision_created)
        try:
            revision = RevisionWorkflow(post, author).submit(title='x', content='y')
        finally:
            signals.revision_created.disconnect(receiver)
        assert received[0]['revision'] == revision
        assert received[0]['user'] == author

    @pytest.mark.django_db
    def test_database_failure_becomes_persistence_error(self, post, author):
        with patch.object(Revision.objects, 'create', side_effect=DatabaseError('locked')):
            with pytest.raises(PersistenceError) as exc_info:
                RevisionWorkflow(post, author).submit(title='x', content='y')
        assert exc_info.value.error_code == ErrorCode.REVISION_CREATE_FAILED
        assert exc_info.value.status_code == 500


# ============================================================================
# Approve / Reject
# ============================================================================

class TestApproveReject:

    @pytest.mark.django_db
    def test_approve_publishes_revision(self, post, editor, pending_revision):
        previous = post.accepted_revision_id
        RevisionWorkflow(post, editor).approve(pending_revision)

        post.refresh_from_db()
        assert post.accepted_revision == pending_revision
        action = RevisionAction.objects.get(action='approved')
        assert action.user == editor
        assert action.details == {'previous_revision_id': previous}

    @pytest.mark.django_db
    def test_approve_by_id(self, post, editor, pending_revision):
        RevisionWorkflow(post, editor).approve(pending_revision.pk)
        assert post.accepted_revision_id == pending_revision.pk

    @pytest.mark.django_db
    def test_approve_supersedes_older_pending(self, post, editor, make_revision):
        older = make_revision(post, title='Older')
        newer = make_revision(post, title='Newer')
        RevisionWorkflow(post, editor).approve(newer)
        post.refresh_from_db()
        assert not post.is_revision_pending(older)

    @pytest.mark.django_db
    def test_approve_clears_rejection(self, post, editor, pending_revision):
        workflow = RevisionWorkflow(post, editor)
        workflow.reject(pending_revision)
        workflow.approve(pending_revision)
        pending_revision.refresh_from_db()
        assert not pending_revision.is_rejected

    @pytest.mark.django_db
    def test_reject_keeps_published_content(self, post, editor, pending_revision):
        accepted = post.accepted_revision_id
        RevisionWorkflow(post, editor).reject(pending_revision)

        pending_revision.refresh_from_db()
        post.refresh_from_db()
        assert pending_revision.is_rejected
        assert post.accepted_revision_id == accepted
        assert not post.is_revision_pending(pending_revision)

    @pytest.mark.django_db
    def test_revision_of_other_post_not_found(self, post, editor, author, make_revision):
        other = Post.objects.create(author=author, title='Other post')
        foreign = make_revision(other)
        with pytest.raises(RevisionNotFoundError):
            RevisionWorkflow(post, editor).approve(foreign)
        with pytest.raises(RevisionNotFoundError):
            RevisionWorkflow(post, editor).reject(foreign.pk)

    @pytest.mark.django_db
    def test_approve_logs_action(self, post, editor, pending_revision, caplog):
        RevisionWorkflow(post, editor).approve(pending_revision)
        assert f"User editor approved revision {pending_revision.pk} for post {post.pk}" in caplog.text


# ============================================================================
# Quick Switch / Emergency Revert
# ============================================================================

class TestQuickSwitch:

    @pytest.mark.django_db
    def test_switch_remembers_previous(self, post, editor, pending_revision):
        previous = post.accepted_revision_id
        returned = RevisionWorkflow(post, editor).quick_switch(pending_revision, reason='Typo fix')

        post.refresh_from_db()
        assert returned == previous
        assert post.accepted_revision == pending_revision
        assert post.last_known_good_id == previous
        entry = post.published_history[0]
        assert entry['revision_id'] == previous
        assert entry['reason'] == 'Typo fix'
        assert entry['switched_by'] == editor.pk
        assert RevisionAction.objects.get(action='quick_switched').reason == 'Typo fix'

    @pytest.mark.django_db
    def test_switch_to_older_revision(self, post, editor, make_revision):
        original = post.accepted_revision
        newer = make_revision(post)
        workflow = RevisionWorkflow(post, editor)
        workflow.approve(newer)
        workflow.quick_switch(original)
        post.refresh_from_db()
        assert post.accepted_revision == original
        assert post.last_known_good == newer

    @pytest.mark.django_db
    def test_history_is_bounded(self, post, editor, make_revision, settings):
        settings.PENDING_REVISIONS_HISTORY_LIMIT = 2
        workflow = RevisionWorkflow(post, editor)
        for index in range(4):
            workflow.quick_switch(make_revision(post, title=f'Rev {index}'))
        post.refresh_from_db()
        assert len(post.published_history) == 2

    @pytest.mark.django_db
    def test_switch_logs_action(self, post, editor, pending_revision, caplog):
        RevisionWorkflow(post, editor).quick_switch(pending_revision)
        assert f"User editor quick-switched revision {pending_revision.pk} for post {post.pk}" in caplog.text

    @pytest.mark.django_db
    def test_reason_too_long(self, post, editor, pending_revision):
        with pytest.raises(ValidationError) as exc_info:
            RevisionWorkflow(post, editor).quick_switch(pending_revision, reason='x' * 201)
        assert exc_info.value.field == 'reason'

    @pytest.mark.django_db
    def test_reason_is_sanitized(self, post, editor, pending_revision):
        RevisionWorkflow(post, editor).quick_switch(pending_revision, reason='<i>Rollback</i>')
        post.refresh_from_db()
        assert post.published_history[0]['reason'] == 'Rollback'


class TestEmergencyRevert:

    @pytest.mark.django_db
    def test_revert_restores_last_known_good(self, post, editor, pending_revision):
        original = post.accepted_revision_id
        workflow = RevisionWorkflow(post, editor)
        workflow.quick_switch(pending_revision)

        reverted_to, previous = workflow.emergency_revert()

        post.refresh_from_db()
        assert reverted_to == original
        assert previous == pending_revision.pk
        assert post.accepted_revision_id == original
        assert RevisionAction.objects.filter(action='emergency_reverted').count() == 1

    @pytest.mark.django_db
    def test_revert_logs_action(self, post, editor, pending_revision, caplog):
        original = post.accepted_revision_id
        workflow = RevisionWorkflow(post, editor)
        workflow.quick_switch(pending_revision)
        workflow.emergency_revert()
        assert f"User editor emergency-reverted revision {original} for post {post.pk}" in caplog.text

    @pytest.mark.django_db
    def test_revert_without_backup(self, post, editor):
        with pytest.raises(BackupUnavailableError) as exc_info:
            RevisionWorkflow(post, editor).emergency_revert()
        assert exc_info.value.error_code == ErrorCode.NO_BACKUP_AVAILABLE

    @pytest.mark.django_db
    def test_revert_to_deleted_backup(self, post, editor, pending_revision):
        original = post.accepted_revision
        workflow = RevisionWorkflow(post, editor)
        workflow.quick_switch(pending_revision)
        Revision.objects.filter(pk=original.pk).delete()

        with pytest.raises(BackupUnavailableError) as exc_info:
            workflow.emergency_revert()
        assert exc_info.value.error_code == ErrorCode.BACKUP_NOT_FOUND


# ============================================================================
# Editing Mode
# ============================================================================

class TestEditingMode:

    @pytest.mark.django_db
    def test_set_mode(self, post, editor):
        RevisionWorkflow(post, editor).set_editing_mode('pending')
        post.refresh_from_db()
        assert post.editing_mode == 'pending'
        action = RevisionAction.objects.get(action='editing_mode_changed')
        assert action.details == {'mode': 'pending', 'previous_mode': ''}

    @pytest.mark.django_db
    def test_invalid_mode(self, post, editor):
        with pytest.raises(ValidationError) as exc_info:
            RevisionWorkflow(post, editor).set_editing_mode('frozen')
        assert exc_info.value.error_code == ErrorCode.INVALID_EDITING_MODE
