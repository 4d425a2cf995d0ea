"""Observability helpers for the relay.

Request IDs + structlog contextvars, plus an in-memory metrics snapshot that
also tracks calls made to the upstream provider.
"""
