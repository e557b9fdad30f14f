"""Test helpers and utilities.

This module provides shared utilities for testing:
- builders: Test data builders for responses and workspaces
"""

from tests.helpers.builders import (
    DEFAULT_FILES,
    build_workspace,
    canonical_block,
    schema_payload,
    workspace_texts,
)

__all__ = [
    "DEFAULT_FILES",
    "build_workspace",
    "canonical_block",
    "schema_payload",
    "workspace_texts",
]
