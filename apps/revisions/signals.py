"""
Workflow signals.

Sent after the corresponding change is written. Every signal carries
``post`` and ``user``; revision signals also carry ``revision``.

    revision_created             revision
    revision_approved            revision
    revision_rejected            revision
    published_revision_switched  revision, previous_revision_id, reason
    emergency_reverted           revision, previous_revision_id
    editing_mode_changed         mode, previous_mode
"""

from django.dispatch import Signal

revision_created = Signal()
revision_approved = Signal()
revision_rejected = Signal()
published_revision_switched = Signal()
emergency_reverted = Signal()
editing_mode_changed = Signal()
