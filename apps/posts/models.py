"""
Content store: posts and their revisions.

A Post row holds the working copy of a post. Every content change is
snapshotted as a Revision (see apps.posts.signals), and the revision the
public sees is whichever one is referenced by Post.accepted_revision, not
necessarily the newest.
"""

from django.conf import settings
from django.db import models
from django.db.models import F, Q

from apps.core.models import BaseModel

# Fields whose changes produce a revision snapshot
CONTENT_FIELDS = ('title', 'content', 'excerpt', 'meta')


class Post(BaseModel):
    """A post or page, plus its workflow bookkeeping."""

    STATUS_AUTO_DRAFT = 'auto-draft'
    STATUS_DRAFT = 'draft'
    STATUS_PUBLISH = 'publish'
    STATUS_PRIVATE = 'private'

    STATUS_CHOICES = [
        (STATUS_AUTO_DRAFT, 'Auto Draft'),
        (STATUS_DRAFT, 'Draft'),
        (STATUS_PUBLISH, 'Published'),
        (STATUS_PRIVATE, 'Private'),
    ]

    EDITING_MODE_CHOICES = [
        ('', 'Post type default'),
        ('open', 'Open'),
        ('pending', 'Requires approval'),
        ('locked', 'Locked'),
    ]

    post_type = models.CharField(
        max_length=20,
        default='post',
        db_index=True,
        verbose_name='Post Type'
    )

    title = models.CharField(max_length=255, blank=True, verbose_name='Title')
    content = models.TextField(blank=True, verbose_name='Content')
    excerpt = models.TextField(blank=True, verbose_name='Excerpt')

    status = models.CharField(
        max_length=20,
        choices=STATUS_CHOICES,
        default=STATUS_DRAFT,
        db_index=True,
        verbose_name='Status'
    )

    author = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name='posts',
        verbose_name='Author'
    )

    editing_mode = models.CharField(
        max_length=10,
        choices=EDITING_MODE_CHOICES,
        blank=True,
        default='',
        verbose_name='Editing Mode',
        help_text='Overrides the post type default when set'
    )

    accepted_revision = models.ForeignKey(
        'Revision',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+',
        verbose_name='Accepted Revision',
        help_text='Revision shown to visitors'
    )

    # May point at a deleted revision; emergency revert reports that case
    last_known_good = models.ForeignKey(
        'Revision',
        on_delete=models.DO_NOTHING,
        db_constraint=False,
        null=True,
        blank=True,
        related_name='+',
        verbose_name='Last Known Good',
        help_text='Accepted revision before the most recent quick switch'
    )

    published_history = models.JSONField(
        default=list,
        blank=True,
        verbose_name='Published History',
        help_text='Recent quick switches, newest first'
    )

    meta = models.JSONField(default=dict, blank=True, verbose_name='Meta')

    class Meta:
        db_table = 'posts'
        ordering = ['-created_at', '-id']
        permissions = [
            ('edit_others_posts', "Can edit other users' posts"),
        ]

    def __str__(self):
        return self.title or f"(no title) #{self.pk}"

    @classmethod
    def from_db(cls, db, field_names, values):
        instance = super().from_db(db, field_names, values)
        # Deferred loads would recurse through refresh_from_db
        if len(values) == len(cls._meta.concrete_fields):
            instance._loaded_content = instance.content_snapshot()
            instance._loaded_status = instance.status
        return instance

    def content_snapshot(self):
        return {field: getattr(self, field) for field in CONTENT_FIELDS}

    def has_content_changes(self):
        loaded = getattr(self, '_loaded_content', None)
        return loaded is None or loaded != self.content_snapshot()

    def mark_content_saved(self):
        self._loaded_content = self.content_snapshot()
        self._loaded_status = self.status

    @property
    def was_auto_draft(self):
        return getattr(self, '_loaded_status', None) == self.STATUS_AUTO_DRAFT

    @property
    def is_auto_draft(self):
        return self.status == self.STATUS_AUTO_DRAFT

    @property
    def published_version_id(self):
        """Accepted revision id, or the post id when nothing was accepted yet."""
        return self.accepted_revision_id or self.pk

    def is_revision_pending(self, revision):
        if revision.is_rejected or revision.pk == self.accepted_revision_id:
            return False
        return self.accepted_revision_id is None or revision.pk > self.accepted_revision_id


class RevisionQuerySet(models.QuerySet):

    def for_post(self, post):
        return self.filter(post=post)

    def pending(self):
        """
        Revisions awaiting review.

        Not rejected, not accepted, and newer than the post's accepted
        revision. Older ones are superseded history.
        """
        return self.exclude(status=Revision.STATUS_REJECTED).filter(
            Q(post__accepted_revision__isnull=True) | Q(pk__gt=F('post__accepted_revision'))
        )

    def rejected(self):
        return self.filter(status=Revision.STATUS_REJECTED)


class Revision(BaseModel):
    """A snapshot of a post's content."""

    STATUS_PENDING = 'pending'
    STATUS_REJECTED = 'rejected'

    STATUS_CHOICES = [
        (STATUS_PENDING, 'Pending'),
        (STATUS_REJECTED, 'Rejected'),
    ]

    post = models.ForeignKey(
        Post,
        on_delete=models.CASCADE,
        related_name='revisions',
        verbose_name='Post'
    )

    author = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='post_revisions',
        verbose_name='Author'
    )

    title = models.CharField(max_length=255, blank=True, verbose_name='Title')
    content = models.TextField(blank=True, verbose_name='Content')
    excerpt = models.TextField(blank=True, verbose_name='Excerpt')
    meta = models.JSONField(default=dict, blank=True, verbose_name='Meta')

    status = models.CharField(
        max_length=20,
        choices=STATUS_CHOICES,
        default=STATUS_PENDING,
        db_index=True,
        verbose_name='Review Status'
    )

    objects = RevisionQuerySet.as_manager()

    class Meta:
        db_table = 'post_revisions'
        ordering = ['-created_at', '-id']
        permissions = [
            ('accept_revisions', 'Can approve, reject and publish revisions'),
            ('manage_pending_revisions', 'Can manage pending revisions'),
            ('view_revision_analytics', 'Can view revision analytics'),
        ]
        indexes = [
            models.Index(fields=['post', 'status'], name='revision_post_status_idx'),
        ]

    def __str__(self):
        return f"Revision #{self.pk} of post #{self.post_id}"

    @property
    def is_rejected(self):
        return self.status == self.STATUS_REJECTED

    @property
    def author_name(self):
        if self.author is None:
            return ''
        return self.author.get_full_name() or self.author.get_username()
