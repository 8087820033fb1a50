import apps.core.models
import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='PendingRevisionsSettings',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(db_index=True, default=django.utils.timezone.now, editable=False, help_text='Timestamp when record was created', verbose_name='Created At')),
                ('updated_at', models.DateTimeField(auto_now=True, help_text='Timestamp when record was last updated', verbose_name='Updated At')),
                ('post_type_modes', models.JSONField(blank=True, default=apps.core.models.default_post_type_modes, help_text='Default editing mode per post type: off, open or pending', verbose_name='Post Type Editing Modes')),
                ('enable_email_notifications', models.BooleanField(default=True, help_text='Email reviewers on submission and authors on decisions', verbose_name='Email Notifications')),
                ('enable_revision_analytics', models.BooleanField(default=True, help_text='Collect weekly revision statistics', verbose_name='Revision Analytics')),
                ('auto_cleanup_old_revisions', models.BooleanField(default=False, help_text='Delete old rejected revisions on a daily schedule', verbose_name='Auto Cleanup')),
                ('revision_retention_days', models.PositiveIntegerField(default=30, help_text='Age after which rejected revisions are cleaned up', verbose_name='Retention (days)')),
                ('notification_messages', models.JSONField(blank=True, default=apps.core.models.default_notification_messages, verbose_name='Notification Messages')),
                ('is_active', models.BooleanField(default=True, help_text='Whether these settings are currently in use', verbose_name='Active')),
                ('last_modified_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='pending_revisions_settings_changes', to=settings.AUTH_USER_MODEL, verbose_name='Last Modified By')),
            ],
            options={
                'verbose_name': 'Pending Revisions Settings',
                'verbose_name_plural': 'Pending Revisions Settings',
                'db_table': 'pending_revisions_settings',
                'ordering': ['-updated_at'],
            },
        ),
    ]
