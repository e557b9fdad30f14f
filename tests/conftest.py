"""Shared test fixtures for all tests.

This file imports and re-exports fixtures from the fixtures/ module so that
they are discovered by pytest for every test package.
"""

# Import all fixtures from organized modules
from tests.fixtures.settings import isolated_env, settings, strict_settings  # noqa: F401
from tests.fixtures.workspace import (  # noqa: F401
    confirmation,
    editor,
    notifier,
    orchestrator,
    states,
    workspace,
)
