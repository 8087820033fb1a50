"""
Prometheus metrics for the revision workflow.

Metrics included:
- pending_revisions_revision_actions_total: workflow transitions by action
- pending_revisions_post_saves_total: post saves by outcome

Cardinality Guidelines:
- Labels are bounded enums (action names, save outcomes)
- Never label with post ids, revision ids or usernames; log those instead

Setup:
    urlpatterns = [
        path('metrics/', metrics_view, name='prometheus-metrics'),
    ]
"""

import logging

from django.http import HttpResponse
from prometheus_client import CONTENT_TYPE_LATEST, Counter, generate_latest

logger = logging.getLogger(__name__)


revision_actions_total = Counter(
    'pending_revisions_revision_actions_total',
    'Revision workflow transitions',
    ['action']  # created/approved/rejected/quick_switched/emergency_reverted/editing_mode_changed
)

post_saves_total = Counter(
    'pending_revisions_post_saves_total',
    'Post saves handled by the editing-mode gate',
    ['outcome']  # published/pending
)


def increment_revision_action(action):
    revision_actions_total.labels(action=action).inc()


def increment_post_save(outcome):
    post_saves_total.labels(outcome=outcome).inc()


def metrics_view(request):
    """Prometheus exposition endpoint."""
    return HttpResponse(generate_latest(), content_type=CONTENT_TYPE_LATEST)
