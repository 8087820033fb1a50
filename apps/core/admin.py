"""
Admin interface for workflow settings.
"""

from django.contrib import admin

from .models import PendingRevisionsSettings


@admin.register(PendingRevisionsSettings)
class PendingRevisionsSettingsAdmin(admin.ModelAdmin):
    list_display = [
        'id',
        'is_active',
        'enable_email_notifications',
        'auto_cleanup_old_revisions',
        'revision_retention_days',
        'last_modified_by',
        'updated_at',
    ]

    readonly_fields = ['created_at', 'updated_at', 'last_modified_by']

    fieldsets = (
        ('Editing Modes', {
            'fields': ('post_type_modes',)
        }),
        ('Features', {
            'fields': (
                'enable_email_notifications',
                'enable_revision_analytics',
                'auto_cleanup_old_revisions',
                'revision_retention_days',
            )
        }),
        ('Messages', {
            'fields': ('notification_messages',),
            'classes': ('collapse',),
        }),
        ('System Fields', {
            'fields': ('is_active', 'last_modified_by', 'created_at', 'updated_at'),
            'classes': ('collapse',),
        }),
    )

    def save_model(self, request, obj, form, change):
        obj.last_modified_by = request.user
        super().save_model(request, obj, form, change)
