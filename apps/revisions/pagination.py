"""
Pagination for revision listings.

Page size comes from ``per_page`` (1..100); totals are exposed in the
X-Total-Count and X-Total-Pages headers.
"""

from rest_framework.pagination import PageNumberPagination

from apps.core.exceptions import success_response


class RevisionPagination(PageNumberPagination):
    page_size = 10
    page_size_query_param = 'per_page'
    max_page_size = 100

    def get_page_size(self, request):
        # Out-of-range values clamp instead of silently resetting to the default
        raw = request.query_params.get(self.page_size_query_param)
        if raw is not None:
            try:
                return min(max(int(raw), 1), self.max_page_size)
            except (TypeError, ValueError):
                pass
        return self.page_size

    def get_total_headers(self):
        return {
            'X-Total-Count': str(self.page.paginator.count),
            'X-Total-Pages': str(self.page.paginator.num_pages),
        }

    def get_paginated_response(self, data, message=''):
        return success_response(data=data, message=message, headers=self.get_total_headers())


class PendingRevisionPagination(RevisionPagination):
    """Review queue pagination; also reports a pagination block in the body."""
    page_size = 20

    def get_paginated_response(self, data, message=''):
        return success_response(
            data=data,
            message=message,
            headers=self.get_total_headers(),
            extra={
                'pagination': {
                    'total': self.page.paginator.count,
                    'pages': self.page.paginator.num_pages,
                    'page': self.page.number,
                    'per_page': self.page.paginator.per_page,
                },
            },
        )
