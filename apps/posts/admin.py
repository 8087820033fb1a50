"""
Admin interface for posts and revisions.

Post edits made here go through PostSaveHandler, so the editing mode applies
to admin users the same way it does to API clients.
"""

from django.contrib import admin, messages
from django.utils.html import format_html

from apps.core.capabilities import ACCEPT_REVISIONS, user_can
from apps.core.exceptions import PendingRevisionsException, PermissionDeniedError
from apps.revisions.save_handler import PostSaveHandler
from apps.revisions.workflow import RevisionWorkflow

from .models import Post, Revision

EDITABLE_FIELDS = ('title', 'content', 'excerpt', 'status', 'meta')


class RevisionInline(admin.TabularInline):
    model = Revision
    fk_name = 'post'
    fields = ['id', 'title', 'author', 'status', 'created_at']
    readonly_fields = fields
    ordering = ['-id']
    extra = 0
    max_num = 0
    can_delete = False
    show_change_link = True


@admin.register(Post)
class PostAdmin(admin.ModelAdmin):
    list_display = [
        'title_short',
        'post_type',
        'status_badge',
        'editing_mode_badge',
        'author',
        'accepted_revision',
        'updated_at',
    ]

    list_filter = ['status', 'post_type', 'editing_mode']
    search_fields = ['title', 'content']
    raw_id_fields = ['author']

    readonly_fields = [
        'author',
        'accepted_revision',
        'last_known_good',
        'published_history',
        'created_at',
        'updated_at',
    ]

    fieldsets = (
        ('Content', {
            'fields': ('post_type', 'title', 'content', 'excerpt', 'status', 'meta')
        }),
        ('Workflow', {
            'fields': (
                'editing_mode',
                'accepted_revision',
                'last_known_good',
                'published_history',
            )
        }),
        ('System Fields', {
            'fields': ('author', 'created_at', 'updated_at'),
            'classes': ('collapse',),
        }),
    )

    inlines = [RevisionInline]
    actions = ['emergency_revert_selected']

    def title_short(self, obj):
        """Display shortened title."""
        max_length = 60
        title = str(obj)
        if len(title) > max_length:
            return title[:max_length] + '...'
        return title
    title_short.short_description = 'Title'
    title_short.admin_order_field = 'title'

    def status_badge(self, obj):
        colors = {
            Post.STATUS_PUBLISH: 'green',
            Post.STATUS_DRAFT: 'orange',
            Post.STATUS_PRIVATE: 'purple',
            Post.STATUS_AUTO_DRAFT: 'gray',
        }
        return format_html(
            '<span style="color: {}; font-weight: bold;">{}</span>',
            colors.get(obj.status, 'gray'),
            obj.get_status_display()
        )
    status_badge.short_description = 'Status'
    status_badge.admin_order_field = 'status'

    def editing_mode_badge(self, obj):
        if not obj.editing_mode:
            return format_html('<span style="color: {};">{}</span>', 'gray', 'default')
        colors = {'open': 'green', 'pending': 'orange', 'locked': 'red'}
        return format_html(
            '<span style="background-color: {}; color: white; padding: 3px 6px; '
            'border-radius: 3px; font-size: 11px; font-weight: bold;">{}</span>',
            colors.get(obj.editing_mode, 'gray'),
            obj.editing_mode.upper()
        )
    editing_mode_badge.short_description = 'Editing Mode'

    def get_readonly_fields(self, request, obj=None):
        readonly = list(super().get_readonly_fields(request, obj))
        if not user_can(request.user, ACCEPT_REVISIONS, obj):
            readonly.append('editing_mode')
        return readonly

    def save_model(self, request, obj, form, change):
        fields = {name: form.cleaned_data[name] for name in EDITABLE_FIELDS if name in form.cleaned_data}
        handler = PostSaveHandler(request.user)
        try:
            if not change:
                result = handler.create(post_type=obj.post_type, **fields)
                obj.pk = result.post.pk
                obj.author = result.post.author
            else:
                stored = Post.objects.get(pk=obj.pk)
                mode_changed = 'editing_mode' in form.changed_data
                if mode_changed and not user_can(request.user, ACCEPT_REVISIONS, stored):
                    raise PermissionDeniedError("Sorry, you are not allowed to change the editing mode.")
                result = handler.save(stored, **{k: v for k, v in fields.items() if k in form.changed_data})
                if mode_changed:
                    RevisionWorkflow(result.post, request.user).set_editing_mode(obj.editing_mode)
        except PendingRevisionsException as e:
            self.message_user(request, e.message, level=messages.ERROR)
            return

        if result.is_pending:
            self.message_user(
                request,
                handler.workflow_settings.get_message('revision_submitted'),
                level=messages.WARNING,
            )

    def emergency_revert_selected(self, request, queryset):
        """Restore the last known good revision of the selected posts."""
        if not user_can(request.user, ACCEPT_REVISIONS):
            self.message_user(request, 'Sorry, you are not allowed to do that.', level=messages.ERROR)
            return
        reverted = 0
        for post in queryset:
            try:
                RevisionWorkflow(post, request.user).emergency_revert()
                reverted += 1
            except PendingRevisionsException as e:
                self.message_user(request, f'{post}: {e.message}', level=messages.WARNING)
        self.message_user(request, f'{reverted} post(s) reverted.')
    emergency_revert_selected.short_description = 'Emergency revert to last known good'


@admin.register(Revision)
class RevisionAdmin(admin.ModelAdmin):
    list_display = ['id', 'post', 'title_short', 'author', 'review_badge', 'created_at']
    list_filter = ['status', ('created_at', admin.DateFieldListFilter)]
    search_fields = ['title', 'content', 'post__title']
    raw_id_fields = ['post', 'author']
    readonly_fields = ['post', 'author', 'title', 'content', 'excerpt', 'meta', 'status', 'created_at', 'updated_at']
    date_hierarchy = 'created_at'

    actions = ['approve_selected', 'reject_selected']

    def get_queryset(self, request):
        return super().get_queryset(request).select_related('post', 'author')

    def has_add_permission(self, request):
        return False

    def title_short(self, obj):
        """Display shortened title."""
        max_length = 60
        if len(obj.title) > max_length:
            return obj.title[:max_length] + '...'
        return obj.title
    title_short.short_description = 'Title'
    title_short.admin_order_field = 'title'

    def review_badge(self, obj):
        """Accepted, pending, superseded or rejected."""
        post = obj.post
        if obj.pk == post.accepted_revision_id:
            label, color = 'ACCEPTED', 'green'
        elif obj.is_rejected:
            label, color = 'REJECTED', 'red'
        elif post.is_revision_pending(obj):
            label, color = 'PENDING', 'orange'
        else:
            label, color = 'SUPERSEDED', 'gray'
        return format_html(
            '<span style="background-color: {}; color: white; padding: 3px 6px; '
            'border-radius: 3px; font-size: 11px; font-weight: bold;">{}</span>',
            color,
            label
        )
    review_badge.short_description = 'Review'

    def _apply(self, request, queryset, decision):
        if not user_can(request.user, ACCEPT_REVISIONS):
            self.message_user(request, 'Sorry, you are not allowed to do that.', level=messages.ERROR)
            return 0
        done = 0
        for revision in queryset:
            workflow = RevisionWorkflow(revision.post, request.user)
            getattr(workflow, decision)(revision)
            done += 1
        return done

    def approve_selected(self, request, queryset):
        """Approve in id order so the newest selected revision ends up accepted."""
        approved = self._apply(request, queryset.order_by('id'), 'approve')
        self.message_user(request, f'{approved} revision(s) approved.')
    approve_selected.short_description = 'Approve selected revisions'

    def reject_selected(self, request, queryset):
        rejected = self._apply(request, queryset, 'reject')
        self.message_user(request, f'{rejected} revision(s) rejected.')
    reject_selected.short_description = 'Reject selected revisions'
