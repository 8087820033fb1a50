"""
Serializers for revisions, posts and workflow requests.
"""

from rest_framework import serializers

from apps.core.models import POST_EDITING_MODES
from apps.posts.models import Post, Revision

from .workflow import REASON_MAX_LENGTH


class RevisionSerializer(serializers.ModelSerializer):
    """A revision as shown in review panels."""

    date = serializers.DateTimeField(source='created_at', read_only=True)
    modified = serializers.DateTimeField(source='updated_at', read_only=True)
    parent = serializers.IntegerField(source='post_id', read_only=True)
    author = serializers.IntegerField(source='author_id', read_only=True, allow_null=True)
    author_name = serializers.CharField(read_only=True)
    is_accepted = serializers.SerializerMethodField()
    is_pending = serializers.SerializerMethodField()

    class Meta:
        model = Revision
        fields = [
            'id',
            'date',
            'modified',
            'parent',
            'author',
            'author_name',
            'title',
            'content',
            'excerpt',
            'meta',
            'status',
            'is_accepted',
            'is_pending',
        ]
        read_only_fields = fields

    def get_is_accepted(self, obj):
        return obj.pk == obj.post.accepted_revision_id

    def get_is_pending(self, obj):
        return obj.post.is_revision_pending(obj)


class PendingRevisionSerializer(RevisionSerializer):
    """Pending revision with the parent post context for the review queue."""

    parent_title = serializers.CharField(source='post.title', read_only=True)
    parent_type = serializers.CharField(source='post.post_type', read_only=True)
    parent_author_name = serializers.SerializerMethodField()

    class Meta(RevisionSerializer.Meta):
        fields = RevisionSerializer.Meta.fields + [
            'parent_title',
            'parent_type',
            'parent_author_name',
        ]
        read_only_fields = fields

    def get_parent_author_name(self, obj):
        author = obj.post.author
        return author.get_full_name() or author.get_username()


class RevisionCreateSerializer(serializers.Serializer):
    """POST revisions/ body."""
    post_parent = serializers.IntegerField()
    post_title = serializers.CharField(required=False, allow_blank=True, default='')
    post_content = serializers.CharField(required=False, allow_blank=True, default='', trim_whitespace=False)
    post_excerpt = serializers.CharField(required=False, allow_blank=True, default='')
    meta = serializers.DictField(required=False, default=dict)


class RevisionListQuerySerializer(serializers.Serializer):
    """Query parameters of the per-post revision listing."""
    search = serializers.CharField(required=False, allow_blank=True, default='')
    order = serializers.ChoiceField(choices=['asc', 'desc'], required=False, default='desc')
    orderby = serializers.ChoiceField(choices=['date', 'id', 'title', 'author'], required=False, default='date')


class QuickSwitchSerializer(serializers.Serializer):
    revision_id = serializers.IntegerField(min_value=1)
    reason = serializers.CharField(
        required=False,
        allow_blank=True,
        default='',
        max_length=REASON_MAX_LENGTH,
    )


class EditingModeSerializer(serializers.Serializer):
    editing_mode = serializers.ChoiceField(choices=POST_EDITING_MODES)


class PostWriteSerializer(serializers.Serializer):
    """Fields a post save may carry; all optional for PATCH."""
    post_type = serializers.CharField(required=False, max_length=20)
    title = serializers.CharField(required=False, allow_blank=True, max_length=255)
    content = serializers.CharField(required=False, allow_blank=True, trim_whitespace=False)
    excerpt = serializers.CharField(required=False, allow_blank=True)
    status = serializers.ChoiceField(choices=[choice for choice, _ in Post.STATUS_CHOICES], required=False)
    meta = serializers.DictField(required=False)


class PostSerializer(serializers.ModelSerializer):
    """Post with its workflow state, for editors."""

    author_name = serializers.SerializerMethodField()
    effective_editing_mode = serializers.SerializerMethodField()
    published_version_id = serializers.IntegerField(read_only=True)
    pending_count = serializers.SerializerMethodField()

    class Meta:
        model = Post
        fields = [
            'id',
            'post_type',
            'title',
            'content',
            'excerpt',
            'status',
            'author',
            'author_name',
            'editing_mode',
            'effective_editing_mode',
            'accepted_revision',
            'last_known_good',
            'published_history',
            'published_version_id',
            'pending_count',
            'meta',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields

    def get_author_name(self, obj):
        return obj.author.get_full_name() or obj.author.get_username()

    def get_effective_editing_mode(self, obj):
        workflow_settings = self.context.get('workflow_settings')
        if workflow_settings is None:
            return obj.editing_mode or None
        return workflow_settings.resolve_editing_mode(obj)

    def get_pending_count(self, obj):
        return Revision.objects.pending().filter(post=obj).count()
