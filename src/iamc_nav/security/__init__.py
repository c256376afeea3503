"""Workspace path safety primitives."""

from .paths import PathBlockedError, resolve_document_id

__all__ = ["PathBlockedError", "resolve_document_id"]
