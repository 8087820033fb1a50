"""
Revision snapshots.

Every save of a post whose content changed stores a Revision, the same way a
publishing system keeps revision history on save. Auto-drafts and
bookkeeping-only saves (update_fields without content fields) are skipped.

The revision author is taken from ``post._revision_author`` when the caller
sets it, otherwise the post author.
"""

import logging

from django.db.models.signals import post_save
from django.dispatch import receiver

from .models import CONTENT_FIELDS, Post, Revision

logger = logging.getLogger(__name__)


@receiver(post_save, sender=Post, dispatch_uid='posts.snapshot_revision')
def snapshot_revision(sender, instance, created, raw=False, update_fields=None, **kwargs):
    if raw or instance.is_auto_draft:
        return
    if update_fields is not None and not set(update_fields) & set(CONTENT_FIELDS):
        return
    if not created and not instance.was_auto_draft and not instance.has_content_changes():
        return

    revision = Revision.objects.create(
        post=instance,
        author=getattr(instance, '_revision_author', None) or instance.author,
        title=instance.title,
        content=instance.content,
        excerpt=instance.excerpt,
        meta=dict(instance.meta or {}),
    )
    instance.mark_content_saved()
    instance.latest_snapshot = revision
    logger.debug(f"Stored revision {revision.pk} for post {instance.pk}")
