"""
Celery tasks for the revision workflow.

Scheduled via CELERY_BEAT_SCHEDULE (config.settings.base):
    cleanup_old_revisions    daily
    log_revision_analytics   weekly

send_revision_notification is enqueued by apps.revisions.notifications.
"""

import logging
from datetime import timedelta
from typing import Optional

from celery import shared_task
from django.conf import settings
from django.contrib.auth import get_user_model
from django.core.mail import send_mail
from django.db.models import Q
from django.utils import timezone

logger = logging.getLogger(__name__)


def _get_models():
    """Lazy import to avoid circular imports."""
    from apps.core.models import PendingRevisionsSettings
    from apps.posts.models import Post, Revision
    return PendingRevisionsSettings, Post, Revision


# =============================================================================
# Cleanup
# =============================================================================

@shared_task
def cleanup_old_revisions(days: Optional[int] = None, force: bool = False):
    """
    Delete rejected revisions older than the retention period.

    A post's accepted and last-known-good revisions are never removed.

    Args:
        days: Retention period; defaults to revision_retention_days
        force: Run even when auto cleanup is disabled in settings

    Returns:
        Dict with the number of deleted revisions
    """
    PendingRevisionsSettings, Post, Revision = _get_models()
    workflow_settings = PendingRevisionsSettings.get_active()

    if not force and not workflow_settings.auto_cleanup_old_revisions:
        logger.debug("Revision cleanup skipped: auto cleanup disabled")
        return {'deleted': 0, 'skipped': True}

    retention_days = days or workflow_settings.revision_retention_days
    cutoff = timezone.now() - timedelta(days=retention_days)

    protected = Post.objects.filter(
        Q(accepted_revision__isnull=False) | Q(last_known_good__isnull=False)
    ).values_list('accepted_revision_id', 'last_known_good_id')
    protected_ids = {pk for pair in protected for pk in pair if pk}

    stale = Revision.objects.rejected().filter(created_at__lt=cutoff).exclude(pk__in=protected_ids)
    deleted, _ = stale.delete()

    logger.info(f"Deleted {deleted} rejected revision(s) older than {retention_days} days")
    return {'deleted': deleted, 'retention_days': retention_days}


# =============================================================================
# Notifications
# =============================================================================

def _reviewer_emails(exclude_user_id=None):
    from apps.core.capabilities import ACCEPT_REVISIONS, user_can

    users = get_user_model().objects.filter(is_active=True).exclude(email='')
    if exclude_user_id:
        users = users.exclude(pk=exclude_user_id)
    return sorted({user.email for user in users if user_can(user, ACCEPT_REVISIONS)})


@shared_task(bind=True, max_retries=3)
def send_revision_notification(self, action: str, revision_id: int):
    """
    Email reviewers about a submission, or the author about a decision.

    Args:
        action: 'created', 'approved' or 'rejected'
        revision_id: Revision the action applied to

    Returns:
        Number of recipients mailed
    """
    PendingRevisionsSettings, _, Revision = _get_models()
    workflow_settings = PendingRevisionsSettings.get_active()
    if not workflow_settings.enable_email_notifications:
        return 0

    revision = Revision.objects.select_related('post', 'author').filter(pk=revision_id).first()
    if revision is None:
        logger.warning(f"Revision {revision_id} not found, notification '{action}' dropped")
        return 0

    post = revision.post
    if action == 'created':
        recipients = _reviewer_emails(exclude_user_id=revision.author_id)
        subject = f"[Pending revision] {post.title or f'Post {post.pk}'}"
        body = (
            f"{revision.author_name} submitted revision {revision.pk} of \"{post.title}\".\n\n"
            f"{workflow_settings.get_message('revision_submitted')}"
        )
    elif action in ('approved', 'rejected'):
        author = revision.author
        recipients = [author.email] if author is not None and author.email else []
        subject = f"[Revision {action}] {post.title or f'Post {post.pk}'}"
        body = workflow_settings.get_message(f'revision_{action}')
    else:
        logger.error(f"Unknown notification action '{action}' for revision {revision_id}")
        return 0

    if not recipients:
        logger.debug(f"No recipients for '{action}' notification of revision {revision_id}")
        return 0

    try:
        send_mail(subject, body, settings.DEFAULT_FROM_EMAIL, recipients)
    except OSError as exc:
        logger.error(f"Sending '{action}' notification for revision {revision_id} failed: {exc}")
        raise self.retry(exc=exc, countdown=60 * (self.request.retries + 1))

    logger.info(f"Sent '{action}' notification for revision {revision_id} to {len(recipients)} recipient(s)")
    return len(recipients)


# =============================================================================
# Analytics
# =============================================================================

@shared_task
def log_revision_analytics():
    """Log a weekly summary of revision activity when analytics are enabled."""
    from apps.revisions.services import compute_revision_stats

    PendingRevisionsSettings, _, _ = _get_models()
    if not PendingRevisionsSettings.get_active().enable_revision_analytics:
        return None

    stats = compute_revision_stats()
    logger.info(
        f"Revision analytics: {stats['total_revisions']} total, "
        f"{stats['pending_revisions']} pending, "
        f"{stats['approved_this_week']} approved and "
        f"{stats['rejected_this_week']} rejected this week"
    )
    return stats
