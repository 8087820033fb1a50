"""
Rate limiting for write endpoints.

Usage in settings:
    REST_FRAMEWORK = {
        'DEFAULT_THROTTLE_RATES': {
            'review': '60/minute',      # approve, reject, switch, revert
            'submission': '30/minute',  # pending revision submissions
        }
    }
"""

from rest_framework.throttling import UserRateThrottle


class ReviewActionThrottle(UserRateThrottle):
    """
    Throttle for reviewer actions.

    Applies to approve/reject, set-published-revision, emergency-revert and
    editing-mode changes. Default: 60 requests/minute.
    """
    scope = 'review'

    def get_rate(self):
        if self.scope not in self.THROTTLE_RATES:
            return '60/minute'
        return super().get_rate()


class SubmissionThrottle(UserRateThrottle):
    """
    Throttle for revision submissions and post saves.

    Default: 30 requests/minute.
    """
    scope = 'submission'

    def get_rate(self):
        if self.scope not in self.THROTTLE_RATES:
            return '30/minute'
        return super().get_rate()
