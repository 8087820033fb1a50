"""
Admin interface for the workflow audit log (read-only).
"""

from django.contrib import admin

from .models import RevisionAction


@admin.register(RevisionAction)
class RevisionActionAdmin(admin.ModelAdmin):
    list_display = ['created_at', 'action', 'post', 'revision', 'user', 'reason']
    list_filter = ['action', ('created_at', admin.DateFieldListFilter)]
    search_fields = ['post__title', 'user__username', 'reason']
    readonly_fields = ['post', 'revision', 'user', 'action', 'reason', 'details', 'created_at', 'updated_at']
    date_hierarchy = 'created_at'

    def get_queryset(self, request):
        return super().get_queryset(request).select_related('post', 'revision', 'user')

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False
