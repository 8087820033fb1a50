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
            name='Post',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(db_index=True, default=django.utils.timezone.now, editable=False, help_text='Timestamp when record was created', verbose_name='Created At')),
                ('updated_at', models.DateTimeField(auto_now=True, help_text='Timestamp when record was last updated', verbose_name='Updated At')),
                ('post_type', models.CharField(db_index=True, default='post', max_length=20, verbose_name='Post Type')),
                ('title', models.CharField(blank=True, max_length=255, verbose_name='Title')),
                ('content', models.TextField(blank=True, verbose_name='Content')),
                ('excerpt', models.TextField(blank=True, verbose_name='Excerpt')),
                ('status', models.CharField(choices=[('auto-draft', 'Auto Draft'), ('draft', 'Draft'), ('publish', 'Published'), ('private', 'Private')], db_index=True, default='draft', max_length=20, verbose_name='Status')),
                ('editing_mode', models.CharField(blank=True, choices=[('', 'Post type default'), ('open', 'Open'), ('pending', 'Requires approval'), ('locked', 'Locked')], default='', help_text='Overrides the post type default when set', max_length=10, verbose_name='Editing Mode')),
                ('published_history', models.JSONField(blank=True, default=list, help_text='Recent quick switches, newest first', verbose_name='Published History')),
                ('meta', models.JSONField(blank=True, default=dict, verbose_name='Meta')),
                ('author', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='posts', to=settings.AUTH_USER_MODEL, verbose_name='Author')),
            ],
            options={
                'db_table': 'posts',
                'ordering': ['-created_at', '-id'],
                'permissions': [('edit_others_posts', "Can edit other users' posts")],
            },
        ),
        migrations.CreateModel(
            name='Revision',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(db_index=True, default=django.utils.timezone.now, editable=False, help_text='Timestamp when record was created', verbose_name='Created At')),
                ('updated_at', models.DateTimeField(auto_now=True, help_text='Timestamp when record was last updated', verbose_name='Updated At')),
                ('title', models.CharField(blank=True, max_length=255, verbose_name='Title')),
                ('content', models.TextField(blank=True, verbose_name='Content')),
                ('excerpt', models.TextField(blank=True, verbose_name='Excerpt')),
                ('meta', models.JSONField(blank=True, default=dict, verbose_name='Meta')),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('rejected', 'Rejected')], db_index=True, default='pending', max_length=20, verbose_name='Review Status')),
                ('author', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='post_revisions', to=settings.AUTH_USER_MODEL, verbose_name='Author')),
                ('post', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='revisions', to='posts.post', verbose_name='Post')),
            ],
            options={
                'db_table': 'post_revisions',
                'ordering': ['-created_at', '-id'],
                'permissions': [
                    ('accept_revisions', 'Can approve, reject and publish revisions'),
                    ('manage_pending_revisions', 'Can manage pending revisions'),
                    ('view_revision_analytics', 'Can view revision analytics'),
                ],
                'indexes': [models.Index(fields=['post', 'status'], name='revision_post_status_idx')],
            },
        ),
        migrations.AddField(
            model_name='post',
            name='accepted_revision',
            field=models.ForeignKey(blank=True, help_text='Revision shown to visitors', null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to='posts.revision', verbose_name='Accepted Revision'),
        ),
        migrations.AddField(
            model_name='post',
            name='last_known_good',
            field=models.ForeignKey(blank=True, db_constraint=False, help_text='Accepted revision before the most recent quick switch', null=True, on_delete=django.db.models.deletion.DO_NOTHING, related_name='+', to='posts.revision', verbose_name='Last Known Good'),
        ),
    ]
