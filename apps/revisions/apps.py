import logging

from django.apps import AppConfig
from django.db.models.signals import post_migrate

logger = logging.getLogger(__name__)


def install_roles(sender, **kwargs):
    """Create role groups and default settings after migrations."""
    from apps.core.capabilities import sync_roles
    from apps.core.models import PendingRevisionsSettings

    sync_roles()
    PendingRevisionsSettings.get_active()


class RevisionsConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'apps.revisions'
    verbose_name = 'Revision Workflow'

    def ready(self):
        # Notification receivers for workflow signals
        from . import notifications  # noqa: F401

        post_migrate.connect(install_roles, sender=self, dispatch_uid='revisions.install_roles')
