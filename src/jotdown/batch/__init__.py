"""Batch editing over a multi-unit selection."""

from .editor import BatchEditor, commit_batch, delete_batch, open_batch

__all__ = ["BatchEditor", "open_batch", "commit_batch", "delete_batch"]
