"""
Core models for the pending revisions service.
Base classes and the plugin-wide settings record.
"""

from django.conf import settings
from django.db import models
from django.utils import timezone


# Editing modes a post can be put into
EDITING_MODE_OPEN = 'open'
EDITING_MODE_PENDING = 'pending'
EDITING_MODE_LOCKED = 'locked'
POST_EDITING_MODES = (EDITING_MODE_OPEN, EDITING_MODE_PENDING, EDITING_MODE_LOCKED)

# Post-type defaults; 'off' disables the workflow for that type entirely
EDITING_MODE_OFF = 'off'
POST_TYPE_MODES = (EDITING_MODE_OFF, EDITING_MODE_OPEN, EDITING_MODE_PENDING)


def default_post_type_modes():
    return {'post': EDITING_MODE_OPEN, 'page': EDITING_MODE_OPEN}


def default_notification_messages():
    return {
        'revision_submitted': 'Revision submitted and pending approval.',
        'revision_approved': 'Revision has been approved and published.',
        'revision_rejected': 'Revision has been rejected.',
    }


class BaseModel(models.Model):
    """
    Abstract base model with timestamp tracking.

    Keeps integer primary keys: revision ids are exposed in URLs and
    ordered against each other to decide what is still pending.
    """

    created_at = models.DateTimeField(
        default=timezone.now,
        editable=False,
        db_index=True,
        verbose_name='Created At',
        help_text='Timestamp when record was created'
    )

    updated_at = models.DateTimeField(
        auto_now=True,
        verbose_name='Updated At',
        help_text='Timestamp when record was last updated'
    )

    class Meta:
        abstract = True
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.__class__.__name__} ({self.pk})"


class PendingRevisionsSettings(BaseModel):
    """
    Persistent workflow configuration.
    Singleton pattern - only one active settings record at a time.
    """

    post_type_modes = models.JSONField(
        default=default_post_type_modes,
        blank=True,
        verbose_name='Post Type Editing Modes',
        help_text='Default editing mode per post type: off, open or pending'
    )

    enable_email_notifications = models.BooleanField(
        default=True,
        verbose_name='Email Notifications',
        help_text='Email reviewers on submission and authors on decisions'
    )

    enable_revision_analytics = models.BooleanField(
        default=True,
        verbose_name='Revision Analytics',
        help_text='Collect weekly revision statistics'
    )

    auto_cleanup_old_revisions = models.BooleanField(
        default=False,
        verbose_name='Auto Cleanup',
        help_text='Delete old rejected revisions on a daily schedule'
    )

    revision_retention_days = models.PositiveIntegerField(
        default=30,
        verbose_name='Retention (days)',
        help_text='Age after which rejected revisions are cleaned up'
    )

    notification_messages = models.JSONField(
        default=default_notification_messages,
        blank=True,
        verbose_name='Notification Messages'
    )

    is_active = models.BooleanField(
        default=True,
        verbose_name='Active',
        help_text='Whether these settings are currently in use'
    )

    last_modified_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='pending_revisions_settings_changes',
        verbose_name='Last Modified By'
    )

    class Meta:
        db_table = 'pending_revisions_settings'
        verbose_name = 'Pending Revisions Settings'
        verbose_name_plural = 'Pending Revisions Settings'
        ordering = ['-updated_at']

    def __str__(self):
        return "Pending Revisions Settings"

    @classmethod
    def get_active(cls):
        """Get the active settings instance, creating default if needed."""
        settings_obj = cls.objects.filter(is_active=True).first()
        if not settings_obj:
            settings_obj = cls.objects.create(is_active=True)
        return settings_obj

    def save(self, *args, **kwargs):
        """Ensure only one active settings record."""
        self.post_type_modes = {
            post_type: mode if mode in POST_TYPE_MODES else EDITING_MODE_OPEN
            for post_type, mode in (self.post_type_modes or {}).items()
        }
        if self.is_active:
            PendingRevisionsSettings.objects.filter(is_active=True).exclude(pk=self.pk).update(is_active=False)
        super().save(*args, **kwargs)

    def get_default_editing_mode(self, post_type):
        """Default mode for a post type; unconfigured types are 'off'."""
        return (self.post_type_modes or {}).get(post_type, EDITING_MODE_OFF)

    def is_supported_post_type(self, post_type):
        return self.get_default_editing_mode(post_type) != EDITING_MODE_OFF

    def resolve_editing_mode(self, post):
        """
        Effective editing mode for a post.

        The post's own override wins, then the post-type default. A type
        that is 'off' has no workflow, which behaves like 'open'.
        """
        if post.editing_mode in POST_EDITING_MODES:
            return post.editing_mode
        mode = self.get_default_editing_mode(post.post_type)
        if mode in POST_EDITING_MODES:
            return mode
        return EDITING_MODE_OPEN

    def get_message(self, key):
        messages = self.notification_messages or {}
        return messages.get(key) or default_notification_messages().get(key, '')
