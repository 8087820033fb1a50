"""
Audit log of revision workflow actions.
"""

from django.conf import settings
from django.db import models

from apps.core.models import BaseModel


class RevisionAction(BaseModel):
    """One workflow transition: who did what to which revision, and why."""

    ACTION_CREATED = 'created'
    ACTION_APPROVED = 'approved'
    ACTION_REJECTED = 'rejected'
    ACTION_QUICK_SWITCHED = 'quick_switched'
    ACTION_EMERGENCY_REVERTED = 'emergency_reverted'
    ACTION_EDITING_MODE_CHANGED = 'editing_mode_changed'

    ACTION_CHOICES = [
        (ACTION_CREATED, 'Created'),
        (ACTION_APPROVED, 'Approved'),
        (ACTION_REJECTED, 'Rejected'),
        (ACTION_QUICK_SWITCHED, 'Quick switched'),
        (ACTION_EMERGENCY_REVERTED, 'Emergency reverted'),
        (ACTION_EDITING_MODE_CHANGED, 'Editing mode changed'),
    ]

    post = models.ForeignKey(
        'posts.Post',
        on_delete=models.CASCADE,
        related_name='revision_actions',
        verbose_name='Post'
    )

    revision = models.ForeignKey(
        'posts.Revision',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='actions',
        verbose_name='Revision'
    )

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='revision_actions',
        verbose_name='User'
    )

    action = models.CharField(
        max_length=30,
        choices=ACTION_CHOICES,
        db_index=True,
        verbose_name='Action'
    )

    reason = models.CharField(max_length=200, blank=True, verbose_name='Reason')

    details = models.JSONField(default=dict, blank=True, verbose_name='Details')

    class Meta:
        db_table = 'revision_actions'
        ordering = ['-created_at', '-id']
        indexes = [
            models.Index(fields=['action', 'created_at'], name='revision_action_time_idx'),
        ]

    def __str__(self):
        return f"{self.get_action_display()} revision {self.revision_id} of post {self.post_id}"
