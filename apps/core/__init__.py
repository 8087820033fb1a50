"""
Core app for the pending revisions service.

Provides shared models, capabilities, error handling, request tracing and
health checks.
"""
