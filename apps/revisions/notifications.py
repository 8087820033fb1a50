"""
Email notifications for workflow signals.

Receivers only enqueue send_revision_notification once the transaction
that produced the change commits; the task does the recipient lookup.
"""

import logging
from functools import partial

from django.db import transaction
from django.dispatch import receiver

from apps.core.middleware import celery_request_id_headers
from apps.core.models import PendingRevisionsSettings

from . import signals

logger = logging.getLogger(__name__)


def enqueue_notification(action, revision):
    if not PendingRevisionsSettings.get_active().enable_email_notifications:
        return

    from .tasks import send_revision_notification

    transaction.on_commit(partial(
        send_revision_notification.apply_async,
        args=[action, revision.pk],
        headers=celery_request_id_headers(),
    ))
    logger.debug(f"Queued '{action}' notification for revision {revision.pk}")


@receiver(signals.revision_created, dispatch_uid='revisions.notify_created')
def notify_revision_created(sender, revision, **kwargs):
    enqueue_notification('created', revision)


@receiver(signals.revision_approved, dispatch_uid='revisions.notify_approved')
def notify_revision_approved(sender, revision, **kwargs):
    enqueue_notification('approved', revision)


@receiver(signals.revision_rejected, dispatch_uid='revisions.notify_rejected')
def notify_revision_rejected(sender, revision, **kwargs):
    enqueue_notification('rejected', revision)
