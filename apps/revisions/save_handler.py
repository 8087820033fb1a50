"""
Post save handling by editing mode.

Saves go through PostSaveHandler instead of calling post.save() directly:

    open mode, or a reviewer saving   -> post updated, new snapshot published
    pending mode, non-reviewer        -> post untouched, pending revision created
    locked mode, non-reviewer         -> 403 POST_LOCKED

New posts (and auto-drafts getting their first real save) are always written
directly, and their first snapshot becomes the accepted revision.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from django.db import transaction

from apps.core.capabilities import ACCEPT_REVISIONS, EDIT_POST, EDIT_POSTS, user_can
from apps.core.exceptions import ErrorCode, PermissionDeniedError, PostLockedError
from apps.core.metrics import increment_post_save
from apps.core.models import EDITING_MODE_LOCKED, EDITING_MODE_PENDING, PendingRevisionsSettings
from apps.core.sanitize import sanitize_post_content, sanitize_text, sanitize_textarea
from apps.posts.content import resolve_post_content
from apps.posts.models import CONTENT_FIELDS, Post, Revision

from .workflow import RevisionWorkflow, persistence_guard

logger = logging.getLogger(__name__)

OUTCOME_PUBLISHED = 'published'
OUTCOME_PENDING = 'pending'

# Non-content fields a save may change directly
DIRECT_FIELDS = ('status',)


@dataclass
class SaveResult:
    """What happened to a save."""
    post: Post
    revision: Optional[Revision]
    outcome: str

    @property
    def is_pending(self) -> bool:
        return self.outcome == OUTCOME_PENDING


def _clean_fields(fields: Dict[str, Any]) -> Dict[str, Any]:
    cleaned = {}
    if 'title' in fields:
        cleaned['title'] = sanitize_text(fields['title'])
    if 'content' in fields:
        cleaned['content'] = sanitize_post_content(fields['content'])
    if 'excerpt' in fields:
        cleaned['excerpt'] = sanitize_textarea(fields['excerpt'])
    if 'meta' in fields:
        cleaned['meta'] = dict(fields['meta'] or {})
    for name in DIRECT_FIELDS:
        if name in fields:
            cleaned[name] = fields[name]
    return cleaned


class PostSaveHandler:
    """Apply a user's edits to posts according to the editing mode."""

    def __init__(self, user, workflow_settings: Optional[PendingRevisionsSettings] = None):
        self.user = user
        self.workflow_settings = workflow_settings or PendingRevisionsSettings.get_active()

    def _publish_snapshot(self, post: Post) -> Optional[Revision]:
        revision = getattr(post, 'latest_snapshot', None)
        if revision is not None and post.accepted_revision_id != revision.pk:
            post.accepted_revision = revision
            post.save(update_fields=['accepted_revision', 'updated_at'])
        return revision

    def create(self, post_type: str = 'post', status: str = Post.STATUS_DRAFT, **fields) -> SaveResult:
        """Create a post; its first snapshot is published."""
        if not user_can(self.user, EDIT_POSTS):
            raise PermissionDeniedError("Sorry, you are not allowed to create posts.")

        cleaned = _clean_fields(fields)
        post = Post(author=self.user, post_type=post_type, status=status)
        for name in CONTENT_FIELDS:
            if name in cleaned:
                setattr(post, name, cleaned[name])
        post._revision_author = self.user

        with persistence_guard(ErrorCode.UPDATE_FAILED, "Failed to save post."):
            post.save()
            revision = self._publish_snapshot(post)

        logger.info(f"User {self.user.get_username()} created post {post.pk}")
        transaction.on_commit(lambda: increment_post_save(OUTCOME_PUBLISHED))
        return SaveResult(post=post, revision=revision, outcome=OUTCOME_PUBLISHED)

    def save(self, post: Post, **fields) -> SaveResult:
        """Save edits to an existing post."""
        if not user_can(self.user, EDIT_POST, post):
            raise PermissionDeniedError("Sorry, you are not allowed to edit this post.")

        cleaned = _clean_fields(fields)
        mode = self.workflow_settings.resolve_editing_mode(post)
        is_reviewer = user_can(self.user, ACCEPT_REVISIONS)

        if post.is_auto_draft or is_reviewer or mode not in (EDITING_MODE_PENDING, EDITING_MODE_LOCKED):
            return self._save_directly(post, cleaned)

        if mode == EDITING_MODE_LOCKED:
            logger.warning(f"User {self.user.get_username()} tried to edit locked post {post.pk}")
            raise PostLockedError()

        return self._submit_pending(post, cleaned)

    def _effective_values(self, post: Post, cleaned: Dict[str, Any]) -> Dict[str, Any]:
        """Submitted fields layered over what is currently published."""
        if post.is_auto_draft:
            effective = {name: getattr(post, name) for name in CONTENT_FIELDS}
        else:
            effective = resolve_post_content(post, workflow_settings=self.workflow_settings).to_dict()
        values = {name: cleaned.get(name, effective[name]) for name in ('title', 'content', 'excerpt')}
        values['meta'] = {**(effective['meta'] or {}), **cleaned.get('meta', {})}
        return values

    def _save_directly(self, post: Post, cleaned: Dict[str, Any]) -> SaveResult:
        values = self._effective_values(post, cleaned)
        for name, value in values.items():
            setattr(post, name, value)
        for name in DIRECT_FIELDS:
            if name in cleaned:
                setattr(post, name, cleaned[name])
        post._revision_author = self.user
        post.latest_snapshot = None

        with persistence_guard(ErrorCode.UPDATE_FAILED, "Failed to save post."):
            post.save()
            revision = self._publish_snapshot(post)

        logger.info(
            f"User {self.user.get_username()} saved post {post.pk}"
            + (f", published revision {revision.pk}" if revision else "")
        )
        transaction.on_commit(lambda: increment_post_save(OUTCOME_PUBLISHED))
        return SaveResult(post=post, revision=revision, outcome=OUTCOME_PUBLISHED)

    def _submit_pending(self, post: Post, cleaned: Dict[str, Any]) -> SaveResult:
        direct = {name: cleaned[name] for name in DIRECT_FIELDS if name in cleaned}
        revision = None

        with transaction.atomic():
            if direct:
                for name, value in direct.items():
                    setattr(post, name, value)
                post.save(update_fields=[*direct, 'updated_at'])
            if set(cleaned) & set(CONTENT_FIELDS):
                values = self._effective_values(post, cleaned)
                revision = RevisionWorkflow(post, self.user, self.workflow_settings).submit(**values)

        transaction.on_commit(lambda: increment_post_save(OUTCOME_PENDING))
        return SaveResult(post=post, revision=revision, outcome=OUTCOME_PENDING)
