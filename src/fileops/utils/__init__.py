"""Shared utilities for fileops."""

from fileops.utils.tokens import estimate_tokens

__all__ = ["estimate_tokens"]
