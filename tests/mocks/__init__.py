"""Test doubles for the execution capabilities."""

from tests.mocks.capabilities import FakeConfirmation, FakeEditor, RecordingNotifier

__all__ = ["FakeConfirmation", "FakeEditor", "RecordingNotifier"]
