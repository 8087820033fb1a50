"""
Tests for the posts admin: saves and bulk actions go through the workflow.
"""

import json

import pytest
from django.contrib import admin
from django.urls import reverse

from apps.posts.models import Post, Revision
from apps.revisions.models import RevisionAction
from apps.revisions.workflow import RevisionWorkflow


class TestPostAdmin:

    @pytest.mark.django_db
    def test_changelist_renders(self, admin_client, post):
        response = admin_client.get(reverse('admin:posts_post_changelist'))
        assert response.status_code == 200
        assert b'Original title' in response.content

    @pytest.mark.django_db
    def test_add_post_publishes_snapshot(self, admin_client, admin_user):
        response = admin_client.post(reverse('admin:posts_post_add'), {
            'post_type': 'post',
            'title': 'From admin',
            'content': 'Body',
            'excerpt': '',
            'status': Post.STATUS_DRAFT,
            'meta': '{}',
            'editing_mode': '',
            'revisions-TOTAL_FORMS': '0',
            'revisions-INITIAL_FORMS': '0',
            'revisions-MIN_NUM_FORMS': '0',
            'revisions-MAX_NUM_FORMS': '0',
        })
        assert response.status_code == 302
        post = Post.objects.get(title='From admin')
        assert post.author == admin_user
        assert post.accepted_revision is not None


class TestRevisionAdmin:

    @pytest.mark.django_db
    def test_approve_action(self, admin_client, post, make_revision):
        revision = make_revision(post)
        response = admin_client.post(reverse('admin:posts_revision_changelist'), {
            'action': 'approve_selected',
            '_selected_action': [revision.pk],
        })
        assert response.status_code == 302
        post.refresh_from_db()
        assert post.accepted_revision == revision
        assert RevisionAction.objects.filter(action='approved', revision=revision).exists()

    @pytest.mark.django_db
    def test_reject_action(self, admin_client, post, make_revision):
        revision = make_revision(post)
        admin_client.post(reverse('admin:posts_revision_changelist'), {
            'action': 'reject_selected',
            '_selected_action': [revision.pk],
        })
        assert Revision.objects.get(pk=revision.pk).is_rejected


# ============================================================================
# Reviewer-only workflow controls
# ============================================================================

@pytest.fixture
def staff_author(author):
    author.is_staff = True
    author.save(update_fields=['is_staff'])
    return author


def change_form_data(post, **overrides):
    data = {
        'post_type': post.post_type,
        'title': post.title,
        'content': post.content,
        'excerpt': post.excerpt,
        'status': post.status,
        'meta': json.dumps(post.meta),
        'editing_mode': post.editing_mode,
        'revisions-TOTAL_FORMS': '0',
        'revisions-INITIAL_FORMS': '0',
        'revisions-MIN_NUM_FORMS': '0',
        'revisions-MAX_NUM_FORMS': '0',
    }
    data.update(overrides)
    return data


class TestEditingModeControls:

    @pytest.mark.django_db
    def test_author_cannot_open_pending_post(self, client, staff_author, post):
        post.editing_mode = 'pending'
        post.save(update_fields=['editing_mode', 'updated_at'])
        client.force_login(staff_author)

        client.post(
            reverse('admin:posts_post_change', args=[post.pk]),
            change_form_data(post, editing_mode='open'),
        )

        post.refresh_from_db()
        assert post.editing_mode == 'pending'

    @pytest.mark.django_db
    def test_editing_mode_is_read_only_for_authors(self, rf, staff_author, editor, post):
        post_admin = admin.site._registry[Post]

        request = rf.get('/')
        request.user = staff_author
        assert 'editing_mode' in post_admin.get_readonly_fields(request, post)

        request.user = editor
        assert 'editing_mode' not in post_admin.get_readonly_fields(request, post)

    @pytest.mark.django_db
    def test_reviewer_changes_editing_mode(self, admin_client, post):
        admin_client.post(
            reverse('admin:posts_post_change', args=[post.pk]),
            change_form_data(post, editing_mode='locked'),
        )
        post.refresh_from_db()
        assert post.editing_mode == 'locked'
        assert RevisionAction.objects.filter(post=post, action='editing_mode_changed').exists()

    @pytest.mark.django_db
    def test_author_cannot_emergency_revert(self, client, staff_author, editor, post, make_revision):
        original = post.accepted_revision_id
        replacement = make_revision(post)
        RevisionWorkflow(post, editor).quick_switch(replacement)
        client.force_login(staff_author)

        client.post(reverse('admin:posts_post_changelist'), {
            'action': 'emergency_revert_selected',
            '_selected_action': [post.pk],
        })

        post.refresh_from_db()
        assert post.accepted_revision_id == replacement.pk
        assert post.last_known_good_id == original
