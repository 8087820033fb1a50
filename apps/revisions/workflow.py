"""
Revision Approval Workflow.

Manages which revision of a post is published:

    submit          -> new pending revision
    approve         -> revision becomes the accepted (published) revision
    reject          -> revision is flagged rejected, published content unchanged
    quick_switch    -> publish any revision, remembering the previous one
    emergency_revert-> republish the revision remembered by the last switch

Every transition runs in a database transaction, is written to the
RevisionAction audit log, logged, counted and announced with a signal
(apps.revisions.signals).

Usage:
    workflow = RevisionWorkflow(post, request.user)
    workflow.approve(revision)
"""

import logging
from contextlib import contextmanager
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from django.conf import settings
from django.db import DatabaseError, transaction
from django.utils import timezone

from apps.core.capabilities import ACCEPT_REVISIONS, user_can
from apps.core.exceptions import (
    BackupUnavailableError,
    ErrorCode,
    PersistenceError,
    PostLockedError,
    PostNotFoundError,
    RevisionNotFoundError,
    ValidationError,
)
from apps.core.metrics import increment_revision_action
from apps.core.models import EDITING_MODE_LOCKED, POST_EDITING_MODES, PendingRevisionsSettings
from apps.core.sanitize import sanitize_post_content, sanitize_text, sanitize_textarea
from apps.posts.models import Post, Revision

from . import signals
from .models import RevisionAction

logger = logging.getLogger(__name__)

REASON_MAX_LENGTH = 200


class WorkflowAction(str, Enum):
    """Audit log actions, one per transition."""
    CREATED = RevisionAction.ACTION_CREATED
    APPROVED = RevisionAction.ACTION_APPROVED
    REJECTED = RevisionAction.ACTION_REJECTED
    QUICK_SWITCHED = RevisionAction.ACTION_QUICK_SWITCHED
    EMERGENCY_REVERTED = RevisionAction.ACTION_EMERGENCY_REVERTED
    EDITING_MODE_CHANGED = RevisionAction.ACTION_EDITING_MODE_CHANGED


@contextmanager
def persistence_guard(code: ErrorCode, message: str):
    """Run a block atomically; database failures become a 500 PersistenceError."""
    try:
        with transaction.atomic():
            yield
    except DatabaseError as e:
        logger.exception(message)
        raise PersistenceError(message, code=code) from e


class RevisionWorkflow:
    """
    Approval workflow for one post, acting as one user.

    Capability checks belong to the caller (views, save handler); the
    workflow only enforces the post's editing mode and revision ownership.
    """

    def __init__(self, post: Post, user, workflow_settings: Optional[PendingRevisionsSettings] = None):
        self.post = post
        self.user = user
        self.workflow_settings = workflow_settings or PendingRevisionsSettings.get_active()

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    @property
    def user_label(self):
        if self.user is None:
            return 'system'
        return self.user.get_username()

    def _lock_post(self) -> Post:
        return Post.objects.select_for_update().get(pk=self.post.pk)

    def _sync_post(self, locked: Post, fields):
        for name in fields:
            setattr(self.post, name, getattr(locked, name))

    def ensure_revision(self, revision_or_id) -> Revision:
        """Resolve a revision that must belong to this post."""
        if isinstance(revision_or_id, Revision):
            revision = revision_or_id
            if revision.post_id != self.post.pk:
                raise RevisionNotFoundError()
            return revision
        revision = Revision.objects.filter(pk=revision_or_id, post=self.post).first()
        if revision is None:
            raise RevisionNotFoundError()
        return revision

    def _record(
        self,
        action: WorkflowAction,
        revision: Optional[Revision] = None,
        reason: str = '',
        details: Optional[Dict[str, Any]] = None,
    ) -> RevisionAction:
        entry = RevisionAction.objects.create(
            post=self.post,
            revision=revision,
            user=self.user if self.user is not None and self.user.is_authenticated else None,
            action=action.value,
            reason=reason,
            details=details or {},
        )
        transaction.on_commit(lambda: increment_revision_action(action.value))
        return entry

    def _clear_rejection(self, revision: Revision):
        if revision.is_rejected:
            revision.status = Revision.STATUS_PENDING
            revision.save(update_fields=['status', 'updated_at'])

    # -------------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------------

    def submit(self, title: str, content: str, excerpt: str = '', meta: Optional[Dict[str, Any]] = None) -> Revision:
        """Create a pending revision of the post."""
        if self.post.is_auto_draft:
            raise PostNotFoundError("Parent post not found.")

        mode = self.workflow_settings.resolve_editing_mode(self.post)
        if mode == EDITING_MODE_LOCKED and not user_can(self.user, ACCEPT_REVISIONS):
            raise PostLockedError()

        with persistence_guard(ErrorCode.REVISION_CREATE_FAILED, "Failed to create revision."):
            revision = Revision.objects.create(
                post=self.post,
                author=self.user,
                title=sanitize_text(title),
                content=sanitize_post_content(content),
                excerpt=sanitize_textarea(excerpt),
                meta=dict(meta or {}),
            )
            self._record(WorkflowAction.CREATED, revision)

        logger.info(f"User {self.user_label} created pending revision {revision.pk} for post {self.post.pk}")
        signals.revision_created.send(sender=self.__class__, revision=revision, post=self.post, user=self.user)
        return revision

    def approve(self, revision) -> Revision:
        """Make a revision the accepted one and clear any rejection."""
        revision = self.ensure_revision(revision)

        with persistence_guard(ErrorCode.APPROVAL_FAILED, "Failed to approve revision."):
            locked = self._lock_post()
            previous_id = locked.accepted_revision_id
            locked.accepted_revision = revision
            locked.save(update_fields=['accepted_revision', 'updated_at'])
            self._clear_rejection(revision)
            self._record(
                WorkflowAction.APPROVED,
                revision,
                details={'previous_revision_id': previous_id},
            )
        self._sync_post(locked, ['accepted_revision_id', 'updated_at'])

        logger.info(f"User {self.user_label} approved revision {revision.pk} for post {self.post.pk}")
        signals.revision_approved.send(sender=self.__class__, revision=revision, post=self.post, user=self.user)
        return revision

    def reject(self, revision) -> Revision:
        """Flag a revision rejected. The accepted revision is left alone."""
        revision = self.ensure_revision(revision)

        with persistence_guard(ErrorCode.REJECTION_FAILED, "Failed to reject revision."):
            revision.status = Revision.STATUS_REJECTED
            revision.save(update_fields=['status', 'updated_at'])
            self._record(WorkflowAction.REJECTED, revision)

        logger.info(f"User {self.user_label} rejected revision {revision.pk} for post {self.post.pk}")
        signals.revision_rejected.send(sender=self.__class__, revision=revision, post=self.post, user=self.user)
        return revision

    def quick_switch(self, revision, reason: str = '') -> Optional[int]:
        """
        Publish any revision of the post.

        The previously accepted revision is kept as last known good and
        prepended to the published history (bounded).

        Returns:
            The previously accepted revision id, or None
        """
        reason = sanitize_text(reason)
        if len(reason) > REASON_MAX_LENGTH:
            raise ValidationError(
                f"Reason must be at most {REASON_MAX_LENGTH} characters.",
                field='reason',
            )
        revision = self.ensure_revision(revision)
        history_limit = settings.PENDING_REVISIONS_HISTORY_LIMIT

        with persistence_guard(ErrorCode.SWITCH_FAILED, "Failed to switch published revision."):
            locked = self._lock_post()
            previous_id = locked.accepted_revision_id
            if previous_id:
                locked.last_known_good_id = previous_id
                entry = {
                    'revision_id': previous_id,
                    'switched_at': timezone.now().isoformat(),
                    'switched_by': self.user.pk if self.user is not None else None,
                    'reason': reason,
                }
                locked.published_history = ([entry] + list(locked.published_history or []))[:history_limit]
            locked.accepted_revision = revision
            locked.save(update_fields=['accepted_revision', 'last_known_good', 'published_history', 'updated_at'])
            self._clear_rejection(revision)
            self._record(
                WorkflowAction.QUICK_SWITCHED,
                revision,
                reason=reason,
                details={'previous_revision_id': previous_id},
            )
        self._sync_post(locked, ['accepted_revision_id', 'last_known_good_id', 'published_history', 'updated_at'])

        logger.info(
            f"User {self.user_label} quick-switched revision {revision.pk} for post {self.post.pk} "
            f"(previous: {previous_id or 'none'})"
            + (f": {reason}" if reason else "")
        )
        signals.published_revision_switched.send(
            sender=self.__class__,
            revision=revision,
            post=self.post,
            user=self.user,
            previous_revision_id=previous_id,
            reason=reason,
        )
        return previous_id

    def emergency_revert(self) -> Tuple[int, Optional[int]]:
        """
        Republish the last known good revision.

        Returns:
            (reverted_to_revision_id, previous_revision_id)
        """
        backup_id = self.post.last_known_good_id
        if not backup_id:
            raise BackupUnavailableError()
        backup = Revision.objects.filter(pk=backup_id, post=self.post).first()
        if backup is None:
            raise BackupUnavailableError(
                "Backup revision no longer exists.",
                code=ErrorCode.BACKUP_NOT_FOUND,
            )

        with persistence_guard(ErrorCode.REVERT_FAILED, "Failed to revert to backup revision."):
            locked = self._lock_post()
            previous_id = locked.accepted_revision_id
            locked.accepted_revision = backup
            locked.save(update_fields=['accepted_revision', 'updated_at'])
            self._clear_rejection(backup)
            self._record(
                WorkflowAction.EMERGENCY_REVERTED,
                backup,
                details={'previous_revision_id': previous_id},
            )
        self._sync_post(locked, ['accepted_revision_id', 'updated_at'])

        logger.info(
            f"User {self.user_label} emergency-reverted revision {backup.pk} for post {self.post.pk} "
            f"(previous: {previous_id or 'none'})"
        )
        signals.emergency_reverted.send(
            sender=self.__class__,
            revision=backup,
            post=self.post,
            user=self.user,
            previous_revision_id=previous_id,
        )
        return backup.pk, previous_id

    def set_editing_mode(self, mode: str) -> str:
        """Override the post type default editing mode for this post."""
        if mode not in POST_EDITING_MODES:
            raise ValidationError(
                f"Invalid editing mode. Choose from: {', '.join(POST_EDITING_MODES)}",
                code=ErrorCode.INVALID_EDITING_MODE,
                field='editing_mode',
            )

        with persistence_guard(ErrorCode.UPDATE_FAILED, "Failed to update editing mode."):
            locked = self._lock_post()
            previous_mode = locked.editing_mode
            locked.editing_mode = mode
            locked.save(update_fields=['editing_mode', 'updated_at'])
            self._record(
                WorkflowAction.EDITING_MODE_CHANGED,
                details={'mode': mode, 'previous_mode': previous_mode},
            )
        self._sync_post(locked, ['editing_mode', 'updated_at'])

        logger.info(f"User {self.user_label} set editing mode of post {self.post.pk} to {mode}")
        signals.editing_mode_changed.send(
            sender=self.__class__,
            post=self.post,
            user=self.user,
            mode=mode,
            previous_mode=previous_mode,
        )
        return mode
