"""
Tests for revision snapshots and the pending-revision rule.

Tests cover:
- Snapshot on create and on content change
- No snapshot for auto-drafts, unchanged saves and bookkeeping saves
- First real save of an auto-draft
- Revision.objects.pending() and Post.is_revision_pending agreement
"""

import pytest

from apps.posts.models import Post, Revision


# ============================================================================
# Snapshot Tests
# ============================================================================

class TestSnapshotRevision:

    @pytest.mark.django_db
    def test_create_stores_snapshot(self, author):
        post = Post.objects.create(author=author, title='Hello', content='Body')
        revision = post.revisions.get()
        assert revision.title == 'Hello'
        assert revision.content == 'Body'
        assert revision.author == author
        assert post.latest_snapshot == revision

    @pytest.mark.django_db
    def test_content_change_stores_snapshot(self, post):
        post.title = 'Changed'
        post.save()
        assert post.revisions.count() == 2
        assert post.revisions.order_by('-id').first().title == 'Changed'

    @pytest.mark.django_db
    def test_unchanged_save_is_skipped(self, post):
        post.save()
        assert post.revisions.count() == 1

    @pytest.mark.django_db
    def test_reloaded_post_detects_changes(self, post):
        stored = Post.objects.get(pk=post.pk)
        stored.save()
        assert stored.revisions.count() == 1
        stored.excerpt = 'New excerpt'
        stored.save()
        assert stored.revisions.count() == 2

    @pytest.mark.django_db
    def test_bookkeeping_update_fields_skipped(self, post):
        post.title = 'Not snapshotted'
        post.save(update_fields=['status', 'updated_at'])
        assert post.revisions.count() == 1

    @pytest.mark.django_db
    def test_meta_change_stores_snapshot(self, post):
        post.meta = {'thumbnail_id': 8}
        post.save()
        assert post.revisions.order_by('-id').first().meta == {'thumbnail_id': 8}

    @pytest.mark.django_db
    def test_auto_draft_not_snapshotted(self, author):
        post = Post.objects.create(author=author, status=Post.STATUS_AUTO_DRAFT, title='Draft')
        assert post.revisions.count() == 0

    @pytest.mark.django_db
    def test_first_save_of_auto_draft_snapshots(self, author):
        Post.objects.create(author=author, status=Post.STATUS_AUTO_DRAFT)
        post = Post.objects.get(author=author)
        post.status = Post.STATUS_DRAFT
        post.save()
        assert post.revisions.count() == 1

    @pytest.mark.django_db
    def test_revision_author_override(self, post, editor):
        post.title = 'Edited by editor'
        post._revision_author = editor
        post.save()
        assert post.latest_snapshot.author == editor


# ============================================================================
# Pending Rule Tests
# ============================================================================

class TestPendingRule:

    @pytest.mark.django_db
    def test_newer_revision_is_pending(self, post, make_revision):
        revision = make_revision(post)
        assert post.is_revision_pending(revision)
        assert list(Revision.objects.pending().filter(post=post)) == [revision]

    @pytest.mark.django_db
    def test_accepted_revision_is_not_pending(self, post):
        accepted = post.accepted_revision
        assert not post.is_revision_pending(accepted)
        assert not Revision.objects.pending().filter(pk=accepted.pk).exists()

    @pytest.mark.django_db
    def test_rejected_revision_is_not_pending(self, post, make_revision):
        revision = make_revision(post, status=Revision.STATUS_REJECTED)
        assert not post.is_revision_pending(revision)
        assert not Revision.objects.pending().exists()

    @pytest.mark.django_db
    def test_older_than_accepted_is_superseded(self, post, make_revision):
        older = post.accepted_revision
        newer = make_revision(post)
        post.accepted_revision = newer
        post.save(update_fields=['accepted_revision', 'updated_at'])
        assert not post.is_revision_pending(older)
        assert not Revision.objects.pending().filter(post=post).exists()

    @pytest.mark.django_db
    def test_everything_pending_without_accepted_revision(self, author, make_revision):
        post = Post.objects.create(author=author, title='Unreviewed')
        first = post.revisions.get()
        second = make_revision(post)
        assert post.accepted_revision_id is None
        assert set(Revision.objects.pending().filter(post=post)) == {first, second}

    @pytest.mark.django_db
    def test_published_version_id(self, author, post):
        assert post.published_version_id == post.accepted_revision_id
        fresh = Post.objects.create(author=author, title='Fresh')
        assert fresh.published_version_id == fresh.pk
