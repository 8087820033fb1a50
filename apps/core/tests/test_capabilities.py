"""
Tests for capabilities, roles and the setup_roles command.

Tests cover:
- Role capability sets
- edit_post meta-capability (ownership vs edit_others_posts)
- Authors managing pending revisions on their own posts
- Removing and re-adding workflow capabilities
"""

import pytest
from django.contrib.auth.models import Group
from django.core.management import CommandError, call_command

from apps.core.capabilities import (
    ACCEPT_REVISIONS,
    EDIT_OTHERS_POSTS,
    EDIT_POST,
    EDIT_POSTS,
    MANAGE_OPTIONS,
    MANAGE_PENDING_REVISIONS,
    ROLE_EDITOR,
    VIEW_REVISION_ANALYTICS,
    assign_role,
    get_user_capabilities,
    get_user_roles,
    remove_capabilities,
    sync_roles,
    user_can,
)
from apps.posts.models import Post


@pytest.fixture
def own_post(db, author):
    return Post.objects.create(author=author, title='Mine', status=Post.STATUS_PUBLISH)


# ============================================================================
# Role Tests
# ============================================================================

class TestRoles:

    @pytest.mark.django_db
    def test_administrator_has_every_capability(self, administrator):
        assert get_user_capabilities(administrator) == sorted([
            ACCEPT_REVISIONS,
            EDIT_OTHERS_POSTS,
            EDIT_POSTS,
            MANAGE_OPTIONS,
            MANAGE_PENDING_REVISIONS,
            VIEW_REVISION_ANALYTICS,
        ])

    @pytest.mark.django_db
    def test_editor_reviews_but_cannot_manage_options(self, editor):
        assert user_can(editor, ACCEPT_REVISIONS)
        assert user_can(editor, EDIT_OTHERS_POSTS)
        assert user_can(editor, MANAGE_PENDING_REVISIONS)
        assert not user_can(editor, MANAGE_OPTIONS)
        assert not user_can(editor, VIEW_REVISION_ANALYTICS)

    @pytest.mark.django_db
    def test_author_and_contributor_only_edit_posts(self, author, contributor):
        for user in (author, contributor):
            assert get_user_capabilities(user) == [EDIT_POSTS]

    @pytest.mark.django_db
    def test_user_without_role_has_nothing(self, subscriber):
        assert get_user_capabilities(subscriber) == []
        assert get_user_roles(subscriber) == []

    @pytest.mark.django_db
    def test_assign_role_replaces_previous_role(self, author):
        assign_role(author, ROLE_EDITOR)
        assert get_user_roles(author) == [ROLE_EDITOR]
        assert user_can(author, ACCEPT_REVISIONS)

    @pytest.mark.django_db
    def test_assign_unknown_role_raises(self, author):
        with pytest.raises(ValueError):
            assign_role(author, 'Janitor')

    @pytest.mark.django_db
    def test_unknown_capability_raises(self, author):
        with pytest.raises(ValueError):
            user_can(author, 'fly')

    @pytest.mark.django_db
    def test_superuser_can_everything(self, db):
        from django.contrib.auth import get_user_model
        root = get_user_model().objects.create_superuser('root', 'root@example.com', 'pw')
        assert user_can(root, ACCEPT_REVISIONS)
        assert user_can(root, MANAGE_OPTIONS)

    def test_anonymous_user_cannot(self):
        from django.contrib.auth.models import AnonymousUser
        assert not user_can(AnonymousUser(), EDIT_POSTS)
        assert not user_can(None, EDIT_POSTS)


# ============================================================================
# Post-level Capability Tests
# ============================================================================

class TestPostCapabilities:

    @pytest.mark.django_db
    def test_author_can_edit_own_post(self, author, own_post):
        assert user_can(author, EDIT_POST, own_post)

    @pytest.mark.django_db
    def test_author_cannot_edit_others_post(self, other_author, own_post):
        assert not user_can(other_author, EDIT_POST, own_post)

    @pytest.mark.django_db
    def test_editor_can_edit_any_post(self, editor, own_post):
        assert user_can(editor, EDIT_POST, own_post)

    @pytest.mark.django_db
    def test_subscriber_cannot_edit_even_own_post(self, subscriber):
        post = Post.objects.create(author=subscriber, title='Theirs')
        assert not user_can(subscriber, EDIT_POST, post)

    @pytest.mark.django_db
    def test_author_manages_pending_revisions_on_own_post(self, author, other_author, own_post):
        assert not user_can(author, MANAGE_PENDING_REVISIONS)
        assert user_can(author, MANAGE_PENDING_REVISIONS, own_post)
        assert not user_can(other_author, MANAGE_PENDING_REVISIONS, own_post)


# ============================================================================
# Install / Remove Tests
# ============================================================================

class TestCapabilityLifecycle:

    @pytest.mark.django_db
    def test_remove_capabilities_strips_workflow_permissions(self, editor):
        remove_capabilities()
        editor = type(editor).objects.get(pk=editor.pk)
        assert not user_can(editor, ACCEPT_REVISIONS)
        # Core publishing capabilities stay
        assert user_can(editor, EDIT_OTHERS_POSTS)

    @pytest.mark.django_db
    def test_sync_roles_is_idempotent(self):
        sync_roles()
        sync_roles()
        assert Group.objects.filter(name=ROLE_EDITOR).count() == 1

    @pytest.mark.django_db
    def test_setup_roles_command_assigns_role(self, subscriber):
        call_command('setup_roles', '--assign', 'subscriber', 'Editor')
        assert get_user_roles(subscriber) == [ROLE_EDITOR]

    @pytest.mark.django_db
    def test_setup_roles_command_unknown_user(self):
        with pytest.raises(CommandError):
            call_command('setup_roles', '--assign', 'nobody', 'Editor')

    @pytest.mark.django_db
    def test_setup_roles_command_remove(self, editor):
        call_command('setup_roles', '--remove')
        editor = type(editor).objects.get(pk=editor.pk)
        assert not user_can(editor, ACCEPT_REVISIONS)
