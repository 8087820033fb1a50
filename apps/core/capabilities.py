"""
Capabilities and roles.

Capabilities keep their familiar publishing names (edit_posts,
accept_revisions, ...) and are backed by Django model permissions. Roles are
auth groups holding a fixed capability set.

Usage:
    from apps.core.capabilities import user_can

    if user_can(request.user, 'accept_revisions'):
        ...
    if user_can(request.user, 'edit_post', post):
        ...
"""

import logging

from django.contrib.auth.models import Group, Permission

logger = logging.getLogger(__name__)


EDIT_POSTS = 'edit_posts'
EDIT_OTHERS_POSTS = 'edit_others_posts'
ACCEPT_REVISIONS = 'accept_revisions'
MANAGE_PENDING_REVISIONS = 'manage_pending_revisions'
VIEW_REVISION_ANALYTICS = 'view_revision_analytics'
MANAGE_OPTIONS = 'manage_options'

# Meta-capability resolved against a specific post
EDIT_POST = 'edit_post'

CAPABILITY_PERMISSIONS = {
    EDIT_POSTS: 'posts.change_post',
    EDIT_OTHERS_POSTS: 'posts.edit_others_posts',
    ACCEPT_REVISIONS: 'posts.accept_revisions',
    MANAGE_PENDING_REVISIONS: 'posts.manage_pending_revisions',
    VIEW_REVISION_ANALYTICS: 'posts.view_revision_analytics',
    MANAGE_OPTIONS: 'core.change_pendingrevisionssettings',
}

# Capabilities added on install and stripped again on removal
WORKFLOW_CAPABILITIES = (
    ACCEPT_REVISIONS,
    MANAGE_PENDING_REVISIONS,
    VIEW_REVISION_ANALYTICS,
)

ROLE_ADMINISTRATOR = 'Administrator'
ROLE_EDITOR = 'Editor'
ROLE_AUTHOR = 'Author'
ROLE_CONTRIBUTOR = 'Contributor'

ROLE_CAPABILITIES = {
    ROLE_ADMINISTRATOR: (
        EDIT_POSTS,
        EDIT_OTHERS_POSTS,
        ACCEPT_REVISIONS,
        MANAGE_PENDING_REVISIONS,
        VIEW_REVISION_ANALYTICS,
        MANAGE_OPTIONS,
    ),
    ROLE_EDITOR: (
        EDIT_POSTS,
        EDIT_OTHERS_POSTS,
        ACCEPT_REVISIONS,
        MANAGE_PENDING_REVISIONS,
    ),
    ROLE_AUTHOR: (EDIT_POSTS,),
    ROLE_CONTRIBUTOR: (EDIT_POSTS,),
}


def _get_permission(capability):
    app_label, codename = CAPABILITY_PERMISSIONS[capability].split('.', 1)
    return Permission.objects.get(content_type__app_label=app_label, codename=codename)


def sync_roles():
    """
    Create the role groups and grant their capabilities.

    Idempotent; only adds permissions, never removes ones granted by hand.
    """
    for role, capabilities in ROLE_CAPABILITIES.items():
        group, created = Group.objects.get_or_create(name=role)
        group.permissions.add(*[_get_permission(cap) for cap in capabilities])
        if created:
            logger.info(f"Created role group {role}")
    logger.debug("Role capabilities synchronized")


def remove_capabilities():
    """Strip the workflow capabilities from every group."""
    permissions = [_get_permission(cap) for cap in WORKFLOW_CAPABILITIES]
    for group in Group.objects.all():
        group.permissions.remove(*permissions)
    logger.info("Removed workflow capabilities from all roles")


def assign_role(user, role):
    """Put a user into exactly one role group."""
    if role not in ROLE_CAPABILITIES:
        raise ValueError(f"Unknown role: {role}")
    sync_roles()
    user.groups.remove(*Group.objects.filter(name__in=ROLE_CAPABILITIES.keys()))
    user.groups.add(Group.objects.get(name=role))
    # Drop Django's cached permission sets
    for attr in ('_perm_cache', '_user_perm_cache', '_group_perm_cache'):
        if hasattr(user, attr):
            delattr(user, attr)


def user_can(user, capability, post=None):
    """
    Check a capability, optionally against a post.

    edit_post requires edit_posts plus authorship or edit_others_posts.
    Authors always manage pending revisions on their own posts.
    """
    if user is None or not user.is_authenticated or not user.is_active:
        return False
    if user.is_superuser:
        return True

    if capability == EDIT_POST:
        if not user_can(user, EDIT_POSTS):
            return False
        if post is None:
            return True
        return post.author_id == user.pk or user_can(user, EDIT_OTHERS_POSTS)

    if capability == MANAGE_PENDING_REVISIONS and post is not None and post.author_id == user.pk:
        return True

    try:
        permission = CAPABILITY_PERMISSIONS[capability]
    except KeyError:
        raise ValueError(f"Unknown capability: {capability}")
    return user.has_perm(permission)


def get_user_capabilities(user):
    """List the global capabilities a user holds."""
    return sorted(cap for cap in CAPABILITY_PERMISSIONS if user_can(user, cap))


def get_user_roles(user):
    if not user or not user.is_authenticated:
        return []
    return list(
        user.groups.filter(name__in=ROLE_CAPABILITIES.keys()).values_list('name', flat=True)
    )
