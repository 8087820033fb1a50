"""
Read-side queries for the revision workflow: revision listings, the review
dashboard and statistics.
"""

import logging
from datetime import timedelta
from typing import Any, Dict, List, Optional

from django.db.models import Count, Exists, Max, OuterRef, Q
from django.utils import timezone

from apps.core.models import EDITING_MODE_PENDING, POST_EDITING_MODES, PendingRevisionsSettings
from apps.posts.models import Post, Revision

from .models import RevisionAction

logger = logging.getLogger(__name__)

ORDERBY_FIELDS = {
    'date': 'created_at',
    'id': 'id',
    'title': 'title',
    'author': 'author__username',
}

TOP_CONTRIBUTORS_LIMIT = 5


def list_post_revisions(post, search: str = '', order: str = 'desc', orderby: str = 'date'):
    """
    Revisions of a post for the review panel.

    Args:
        search: case-insensitive match on title or content
        order: 'asc' or 'desc'
        orderby: one of date, id, title, author
    """
    queryset = Revision.objects.filter(post=post).select_related('author', 'post')
    if search:
        queryset = queryset.filter(Q(title__icontains=search) | Q(content__icontains=search))

    field = ORDERBY_FIELDS.get(orderby, 'created_at')
    prefix = '' if order == 'asc' else '-'
    # Id breaks ties between revisions saved in the same instant
    return queryset.order_by(f'{prefix}{field}', f'{prefix}id')


def list_pending_revisions():
    """All pending revisions across posts, most recently modified first."""
    return (
        Revision.objects.pending()
        .select_related('author', 'post', 'post__author')
        .order_by('-updated_at', '-id')
    )


def pending_revision_count(post) -> int:
    return Revision.objects.pending().filter(post=post).count()


def get_posts_with_pending_revisions() -> List[Dict[str, Any]]:
    """
    Published posts with at least one pending revision, for the dashboard.

    Ordered by the most recent revision activity.
    """
    pending = Revision.objects.pending().filter(post=OuterRef('pk'))
    posts = (
        Post.objects.filter(status=Post.STATUS_PUBLISH)
        .filter(Exists(pending))
        .select_related('author')
        .annotate(
            revision_count=Count('revisions', distinct=True),
            latest_revision_id=Max('revisions__id'),
            last_revision_date=Max('revisions__updated_at'),
        )
        .order_by('-last_revision_date', '-id')
    )

    results = []
    for post in posts:
        results.append({
            'id': post.pk,
            'title': post.title,
            'post_type': post.post_type,
            'author': post.author_id,
            'author_name': post.author.get_full_name() or post.author.get_username(),
            'pending_count': pending_revision_count(post),
            'revision_count': post.revision_count,
            'current_revision_number': post.revision_count + 1,
            'last_revision_date': post.last_revision_date,
            'latest_revision_id': post.latest_revision_id,
            'published_version_id': post.published_version_id,
            'accepted_revision_id': post.accepted_revision_id,
        })
    return results


def _action_counts(action: str, since) -> int:
    return RevisionAction.objects.filter(action=action, created_at__gte=since).count()


def _posts_requiring_approval(workflow_settings) -> int:
    """Posts whose effective editing mode is pending, by override or post-type default."""
    pending_types = [
        post_type for post_type, mode in (workflow_settings.post_type_modes or {}).items()
        if mode == EDITING_MODE_PENDING
    ]
    inherits_default = ~Q(editing_mode__in=POST_EDITING_MODES) & Q(post_type__in=pending_types)
    return Post.objects.filter(Q(editing_mode=EDITING_MODE_PENDING) | inherits_default).count()


def compute_revision_stats(workflow_settings: Optional[PendingRevisionsSettings] = None) -> Dict[str, Any]:
    """Counts for the statistics endpoint and the weekly analytics task."""
    workflow_settings = workflow_settings or PendingRevisionsSettings.get_active()
    now = timezone.now()
    today = now.replace(hour=0, minute=0, second=0, microsecond=0)
    week_start = today - timedelta(days=today.weekday())
    month_start = today.replace(day=1)

    approved = RevisionAction.ACTION_APPROVED
    rejected = RevisionAction.ACTION_REJECTED

    top_contributors = (
        Revision.objects.filter(author__isnull=False)
        .values('author', 'author__username')
        .annotate(revision_count=Count('id'))
        .order_by('-revision_count', 'author__username')[:TOP_CONTRIBUTORS_LIMIT]
    )

    return {
        'total_revisions': Revision.objects.count(),
        'pending_revisions': Revision.objects.pending().count(),
        'rejected_revisions': Revision.objects.rejected().count(),
        'posts_with_accepted_revision': Post.objects.filter(accepted_revision__isnull=False).count(),
        'posts_requiring_approval': _posts_requiring_approval(workflow_settings),
        'approved_today': _action_counts(approved, today),
        'rejected_today': _action_counts(rejected, today),
        'approved_this_week': _action_counts(approved, week_start),
        'rejected_this_week': _action_counts(rejected, week_start),
        'approved_this_month': _action_counts(approved, month_start),
        'rejected_this_month': _action_counts(rejected, month_start),
        'top_contributors': [
            {
                'user_id': row['author'],
                'username': row['author__username'],
                'revision_count': row['revision_count'],
            }
            for row in top_contributors
        ],
        'generated_at': now.isoformat(),
    }
