"""
Effective content resolution.

Decides what a visitor (or an editor previewing) sees for a post:

1. post type without workflow          -> the post's own fields
2. preview requested by an editor      -> the previewed revision
3. accepted revision set               -> the accepted revision
4. otherwise                           -> the post's own fields

Empty revision fields fall back to the post's value. Meta comes from the
revision, with thumbnail_id falling back to the post's.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from apps.core.capabilities import EDIT_POST, user_can
from apps.core.models import PendingRevisionsSettings

from .models import Revision

logger = logging.getLogger(__name__)

SOURCE_POST = 'post'
SOURCE_PREVIEW = 'preview'
SOURCE_ACCEPTED = 'accepted'

# Meta keys that fall back to the post when a revision lacks them
FALLBACK_META_KEYS = ('thumbnail_id',)


@dataclass
class EffectiveContent:
    """Fields a reader of the post should see."""
    title: str
    content: str
    excerpt: str
    meta: Dict[str, Any] = field(default_factory=dict)
    revision_id: Optional[int] = None
    source: str = SOURCE_POST

    def to_dict(self) -> Dict[str, Any]:
        return {
            'title': self.title,
            'content': self.content,
            'excerpt': self.excerpt,
            'meta': self.meta,
            'revision_id': self.revision_id,
            'source': self.source,
        }


def _from_post(post):
    return EffectiveContent(
        title=post.title,
        content=post.content,
        excerpt=post.excerpt,
        meta=dict(post.meta or {}),
    )


def _from_revision(post, revision, source):
    meta = dict(revision.meta or {})
    post_meta = post.meta or {}
    for key in FALLBACK_META_KEYS:
        if not meta.get(key) and post_meta.get(key):
            meta[key] = post_meta[key]

    return EffectiveContent(
        title=revision.title or post.title,
        content=revision.content or post.content,
        excerpt=revision.excerpt or post.excerpt,
        meta=meta,
        revision_id=revision.pk,
        source=source,
    )


def resolve_post_content(post, user=None, preview_revision_id=None, workflow_settings=None):
    """
    Resolve the effective content of a post.

    Args:
        post: Post instance
        user: requesting user; only editors of the post may preview
        preview_revision_id: revision to preview, if requested
        workflow_settings: PendingRevisionsSettings, loaded when omitted

    Returns:
        EffectiveContent
    """
    workflow_settings = workflow_settings or PendingRevisionsSettings.get_active()
    if not workflow_settings.is_supported_post_type(post.post_type):
        return _from_post(post)

    if preview_revision_id is not None and user_can(user, EDIT_POST, post):
        revision = Revision.objects.filter(pk=preview_revision_id, post=post).first()
        if revision is None:
            logger.debug(f"Preview revision {preview_revision_id} not found for post {post.pk}")
            return _from_post(post)
        return _from_revision(post, revision, SOURCE_PREVIEW)

    if post.accepted_revision_id:
        return _from_revision(post, post.accepted_revision, SOURCE_ACCEPTED)

    return _from_post(post)
