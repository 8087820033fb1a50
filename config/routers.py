"""
Custom DRF Router to avoid converter registration conflict.

DRF's DefaultRouter uses format_suffix_patterns which registers a custom
converter 'drf_format_suffix'. When more than one router is mounted, this
causes a ValueError: "Converter 'drf_format_suffix' is already registered."
"""

from rest_framework.routers import DefaultRouter


class SafeDefaultRouter(DefaultRouter):
    """
    DefaultRouter without format suffix patterns or the browsable API root.

    The revisions namespace mixes router and hand-written routes, so the
    generated root view would only list half of them.
    """
    include_format_suffixes = False
    include_root_view = False
