"""
Revision workflow REST API.

Mounted under /api/dgw-pending-revisions/v1/. Successful responses use the
{"success": true, "message": ..., "data": ...} envelope; errors go through
apps.core.exceptions.pending_revisions_exception_handler.
"""

import logging

from django.conf import settings
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.views import APIView

from apps.core.capabilities import EDIT_POST, user_can
from apps.core.exceptions import (
    InvalidPostIdError,
    PermissionDeniedError,
    PostNotFoundError,
    RevisionNotFoundError,
    created_response,
    success_response,
)
from apps.core.models import PendingRevisionsSettings
from apps.core.permissions import CanAcceptRevisions, CanEditOthersPosts, CanEditPosts
from apps.core.throttling import ReviewActionThrottle, SubmissionThrottle
from apps.posts.content import resolve_post_content
from apps.posts.models import Post, Revision

from .pagination import PendingRevisionPagination, RevisionPagination
from .save_handler import PostSaveHandler
from .serializers import (
    EditingModeSerializer,
    PendingRevisionSerializer,
    PostSerializer,
    PostWriteSerializer,
    QuickSwitchSerializer,
    RevisionCreateSerializer,
    RevisionListQuerySerializer,
    RevisionSerializer,
)
from .services import (
    compute_revision_stats,
    get_posts_with_pending_revisions,
    list_pending_revisions,
    list_post_revisions,
)
from .workflow import RevisionWorkflow

logger = logging.getLogger(__name__)


def validate_post_id(value) -> Post:
    """Resolve a post id from the URL or body: 400 if malformed, 404 if missing."""
    try:
        post_id = int(value)
    except (TypeError, ValueError):
        raise InvalidPostIdError()
    if post_id <= 0:
        raise InvalidPostIdError()

    post = Post.objects.select_related('author', 'accepted_revision').filter(pk=post_id).first()
    if post is None:
        raise PostNotFoundError()
    return post


def get_post_revision(post, revision_id) -> Revision:
    revision = Revision.objects.select_related('author').filter(pk=revision_id, post=post).first()
    if revision is None:
        raise RevisionNotFoundError()
    revision.post = post
    return revision


# =============================================================================
# Revisions
# =============================================================================

class RevisionCreateView(APIView):
    """
    Submit a pending revision.

    POST revisions/
    Body: {"post_parent": 12, "post_title": "...", "post_content": "...", "post_excerpt": "..."}
    """
    permission_classes = [IsAuthenticated, CanEditPosts]
    throttle_classes = [SubmissionThrottle]

    def post(self, request):
        serializer = RevisionCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        post = validate_post_id(data['post_parent'])
        if post.is_auto_draft:
            raise PostNotFoundError("Parent post not found.")
        if not user_can(request.user, EDIT_POST, post):
            raise PermissionDeniedError("Sorry, you are not allowed to edit this post.")

        revision = RevisionWorkflow(post, request.user).submit(
            title=data['post_title'],
            content=data['post_content'],
            excerpt=data['post_excerpt'],
            meta=data['meta'],
        )
        revision.post = post
        return created_response(
            data=RevisionSerializer(revision).data,
            message="Pending revision created successfully.",
        )


class PostRevisionListView(APIView):
    """
    List a post's revisions.

    GET revisions/<post_id>/?page=&per_page=&search=&order=asc|desc&orderby=date|id|title|author
    """
    permission_classes = [IsAuthenticated, CanEditPosts]

    def get(self, request, post_id):
        post = validate_post_id(post_id)
        query = RevisionListQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)

        queryset = list_post_revisions(post, **query.validated_data)
        paginator = RevisionPagination()
        page = paginator.paginate_queryset(queryset, request, view=self)
        for revision in page:
            revision.post = post
        return paginator.get_paginated_response(RevisionSerializer(page, many=True).data)


class PostRevisionDetailView(APIView):
    """GET revisions/<post_id>/<revision_id>/"""
    permission_classes = [IsAuthenticated, CanEditPosts]

    def get(self, request, post_id, revision_id):
        post = validate_post_id(post_id)
        revision = get_post_revision(post, revision_id)
        return success_response(data=RevisionSerializer(revision).data)


class RevisionDecisionView(APIView):
    """
    Approve or reject a revision.

    POST revisions/<post_id>/<revision_id>/approve/
    POST revisions/<revision_id>/approve/   (dashboard, post looked up from the revision)
    """
    permission_classes = [IsAuthenticated, CanAcceptRevisions]
    throttle_classes = [ReviewActionThrottle]

    decision = None
    messages = {
        'approve': "Revision approved successfully.",
        'reject': "Revision rejected successfully.",
    }

    def post(self, request, revision_id, post_id=None):
        if post_id is not None:
            post = validate_post_id(post_id)
            revision = get_post_revision(post, revision_id)
        else:
            revision = Revision.objects.select_related('post', 'post__author').filter(pk=revision_id).first()
            if revision is None:
                raise RevisionNotFoundError()
            post = revision.post

        workflow = RevisionWorkflow(post, request.user)
        if self.decision == 'approve':
            workflow.approve(revision)
        else:
            workflow.reject(revision)

        return success_response(
            data={
                'revision_id': revision.pk,
                'post_id': post.pk,
                'status': revision.status,
                'accepted_revision_id': post.accepted_revision_id,
            },
            message=self.messages[self.decision],
        )


class PendingRevisionListView(APIView):
    """
    Review queue across all posts.

    GET revisions/pending/?page=&per_page=
    """
    permission_classes = [IsAuthenticated, CanEditOthersPosts]

    def get(self, request):
        paginator = PendingRevisionPagination()
        page = paginator.paginate_queryset(list_pending_revisions(), request, view=self)
        return paginator.get_paginated_response(PendingRevisionSerializer(page, many=True).data)


class RevisionStatsView(APIView):
    """GET stats/"""
    permission_classes = [IsAuthenticated, CanEditOthersPosts]

    def get(self, request):
        return success_response(data=compute_revision_stats())


class DashboardView(APIView):
    """
    Published posts with revisions awaiting review.

    GET dashboard/
    """
    permission_classes = [IsAuthenticated, CanAcceptRevisions]

    def get(self, request):
        posts = get_posts_with_pending_revisions()
        return success_response(
            data=posts,
            message=f"{len(posts)} post(s) with pending revisions.",
        )


# =============================================================================
# Posts
# =============================================================================

class PostViewSet(viewsets.ViewSet):
    """
    Posts and per-post workflow actions.

    POST   posts/                                   create a post
    GET    posts/<post_id>/                         effective content (public)
    PUT    posts/<post_id>/                         save through the editing-mode gate
    PATCH  posts/<post_id>/
    POST   posts/<post_id>/set-published-revision/  quick switch
    POST   posts/<post_id>/emergency-revert/        restore last known good
    PUT    posts/<post_id>/editing-mode/            change the editing mode
    """
    lookup_field = 'post_id'
    lookup_value_regex = '[^/]+'

    def get_permissions(self):
        if self.action == 'retrieve':
            return [AllowAny()]
        if self.action in ('create', 'update', 'partial_update'):
            return [IsAuthenticated(), CanEditPosts()]
        return [IsAuthenticated(), CanAcceptRevisions()]

    def get_throttles(self):
        if self.action == 'retrieve':
            return []
        if self.action in ('create', 'update', 'partial_update'):
            return [SubmissionThrottle()]
        return [ReviewActionThrottle()]

    def get_workflow_settings(self):
        if not hasattr(self, '_workflow_settings'):
            self._workflow_settings = PendingRevisionsSettings.get_active()
        return self._workflow_settings

    def _serialize_post(self, post):
        return PostSerializer(post, context={'workflow_settings': self.get_workflow_settings()}).data

    def _save_response(self, result, created=False):
        data = {
            'post': self._serialize_post(result.post),
            'revision': RevisionSerializer(result.revision).data if result.revision else None,
            'outcome': result.outcome,
        }
        if created:
            return created_response(data=data, message="Post created.")
        if result.is_pending:
            return success_response(
                data=data,
                message=self.get_workflow_settings().get_message('revision_submitted'),
                status_code=status.HTTP_202_ACCEPTED,
            )
        return success_response(data=data, message="Post updated.")

    def create(self, request):
        serializer = PostWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        fields = dict(serializer.validated_data)
        result = PostSaveHandler(request.user, self.get_workflow_settings()).create(**fields)
        return self._save_response(result, created=True)

    def retrieve(self, request, post_id=None):
        post = validate_post_id(post_id)
        can_edit = user_can(request.user, EDIT_POST, post)
        if post.status != Post.STATUS_PUBLISH and not can_edit:
            raise PostNotFoundError()

        preview_id = None
        raw_preview = request.query_params.get(settings.PENDING_REVISIONS_PREVIEW_PARAM)
        if raw_preview:
            try:
                preview_id = int(raw_preview)
            except ValueError:
                preview_id = None

        workflow_settings = self.get_workflow_settings()
        effective = resolve_post_content(
            post,
            user=request.user,
            preview_revision_id=preview_id,
            workflow_settings=workflow_settings,
        )
        data = {
            'id': post.pk,
            'post_type': post.post_type,
            'status': post.status,
            'author': post.author_id,
            **effective.to_dict(),
        }
        if can_edit:
            data['workflow'] = self._serialize_post(post)
        return success_response(data=data)

    def _update(self, request, post_id, partial):
        post = validate_post_id(post_id)
        serializer = PostWriteSerializer(data=request.data, partial=partial)
        serializer.is_valid(raise_exception=True)
        fields = dict(serializer.validated_data)
        fields.pop('post_type', None)
        result = PostSaveHandler(request.user, self.get_workflow_settings()).save(post, **fields)
        return self._save_response(result)

    def update(self, request, post_id=None):
        return self._update(request, post_id, partial=False)

    def partial_update(self, request, post_id=None):
        return self._update(request, post_id, partial=True)

    @action(detail=True, methods=['post'], url_path='set-published-revision')
    def set_published_revision(self, request, post_id=None):
        post = validate_post_id(post_id)
        serializer = QuickSwitchSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        revision_id = serializer.validated_data['revision_id']
        reason = serializer.validated_data['reason']

        previous_id = RevisionWorkflow(post, request.user, self.get_workflow_settings()).quick_switch(
            revision_id, reason=reason,
        )
        return success_response(
            data={
                'post_id': post.pk,
                'revision_id': revision_id,
                'previous_revision_id': previous_id,
                'reason': reason,
            },
            message="Published revision switched successfully.",
        )

    @action(detail=True, methods=['post'], url_path='emergency-revert')
    def emergency_revert(self, request, post_id=None):
        post = validate_post_id(post_id)
        reverted_to, previous_id = RevisionWorkflow(post, request.user, self.get_workflow_settings()).emergency_revert()
        return success_response(
            data={
                'post_id': post.pk,
                'reverted_to_revision_id': reverted_to,
                'previous_revision_id': previous_id,
            },
            message="Emergency revert completed successfully.",
        )

    @action(detail=True, methods=['put', 'patch', 'post'], url_path='editing-mode')
    def editing_mode(self, request, post_id=None):
        post = validate_post_id(post_id)
        serializer = EditingModeSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        mode = RevisionWorkflow(post, request.user, self.get_workflow_settings()).set_editing_mode(
            serializer.validated_data['editing_mode'],
        )
        return success_response(
            data={'post_id': post.pk, 'editing_mode': mode},
            message="Editing mode updated successfully.",
        )
