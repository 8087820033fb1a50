"""
Capability-Based Permissions.

Maps the publishing capabilities in apps.core.capabilities to DRF permission
classes.

Usage:
    from apps.core.permissions import CanAcceptRevisions

    class ApproveView(APIView):
        permission_classes = [IsAuthenticated, CanAcceptRevisions]
"""

from rest_framework.permissions import BasePermission

from apps.core.capabilities import (
    ACCEPT_REVISIONS,
    EDIT_OTHERS_POSTS,
    EDIT_POST,
    EDIT_POSTS,
    MANAGE_OPTIONS,
    user_can,
)


class CapabilityPermission(BasePermission):
    """Base class for capability checks."""

    # Override in subclasses
    capability = None

    def has_permission(self, request, view):
        return user_can(request.user, self.capability)


class CanEditPosts(CapabilityPermission):
    """
    Allow users who can edit posts.

    Authors, contributors and everyone above them.
    """
    capability = EDIT_POSTS
    message = "Sorry, you are not allowed to edit posts."


class CanEditOthersPosts(CapabilityPermission):
    """Allow editors and administrators."""
    capability = EDIT_OTHERS_POSTS
    message = "Sorry, you are not allowed to view revisions across posts."


class CanAcceptRevisions(CapabilityPermission):
    """Allow reviewers: users who can approve, reject and switch revisions."""
    capability = ACCEPT_REVISIONS
    message = "Sorry, you are not allowed to manage revisions."


class CanManageOptions(CapabilityPermission):
    capability = MANAGE_OPTIONS
    message = "Sorry, you are not allowed to manage settings."


class CanEditPost(BasePermission):
    """
    Object-level edit check for a post.

    Owners need edit_posts, everyone else also needs edit_others_posts.
    """
    message = "Sorry, you are not allowed to edit this post."

    def has_object_permission(self, request, view, obj):
        return user_can(request.user, EDIT_POST, obj)
