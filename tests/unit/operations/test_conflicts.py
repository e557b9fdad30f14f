"""Unit tests for fileops.operations.conflicts module."""

import pytest

from fileops.operations.conflicts import NOT_FOUND, OperationOutcome, resolve, unique_path
from fileops.operations.schema import FileOperation, OperationKind


@pytest.mark.unit
@pytest.mark.execution
class TestUniquePath:
    """Tests for collision renaming."""

    def test_free_path_unchanged(self):
        """Test a free path is returned as-is."""
        assert unique_path("a.txt", set().__contains__) == "a.txt"

    def test_first_free_suffix(self):
        """Test the first free numbered suffix is used."""
        taken = {"a.txt", "a_1.txt", "a_2.txt"}
        assert unique_path("a.txt", taken.__contains__) == "a_3.txt"

    @pytest.mark.parametrize(
        ("path", "expected"),
        [
            ("src/app.py", "src/app_1.py"),
            ("dir/a.tar.gz", "dir/a.tar_1.gz"),
            (".env", ".env_1"),
            ("Makefile", "Makefile_1"),
        ],
    )
    def test_suffix_placement(self, path, expected):
        """Test the suffix goes before the last extension."""
        assert unique_path(path, {path}.__contains__) == expected


@pytest.mark.unit
@pytest.mark.execution
class TestResolve:
    """Tests for the collision and missing-target policy."""

    def test_create_free(self, workspace):
        """Test create on a free path is unchanged."""
        op = FileOperation(kind=OperationKind.CREATE, path="new.txt", content="x")
        resolution = resolve(op, workspace)
        assert resolution.operation == op
        assert resolution.outcome is OperationOutcome.CREATED
        assert resolution.failure is None

    def test_create_collision_renames(self, workspace):
        """Test create on an existing path is renamed, never overwritten."""
        op = FileOperation(kind=OperationKind.CREATE, path="src/app.py", content="x")
        resolution = resolve(op, workspace)
        assert resolution.operation.path == "src/app_1.py"
        assert resolution.operation.content == "x"
        assert resolution.outcome is OperationOutcome.RENAMED
        assert "src/app_1.py" in resolution.detail

    def test_edit_existing(self, workspace):
        """Test edit on an existing path is an edit."""
        op = FileOperation(kind=OperationKind.EDIT, path="README.md", content="x")
        assert resolve(op, workspace).outcome is OperationOutcome.EDITED

    def test_edit_missing_degrades_to_create(self, workspace):
        """Test edit on a missing path becomes a create on the same path."""
        op = FileOperation(kind=OperationKind.EDIT, path="docs/new.md", content="x")
        resolution = resolve(op, workspace)
        assert resolution.operation.kind is OperationKind.CREATE
        assert resolution.operation.path == "docs/new.md"
        assert resolution.outcome is OperationOutcome.DEGRADED_TO_CREATE

    def test_delete_existing(self, workspace):
        """Test delete on an existing path is a delete."""
        op = FileOperation(kind=OperationKind.DELETE, path="README.md")
        assert resolve(op, workspace).outcome is OperationOutcome.DELETED

    def test_delete_missing_fails(self, workspace):
        """Test delete on a missing path fails with "not found"."""
        op = FileOperation(kind=OperationKind.DELETE, path="nope.txt")
        resolution = resolve(op, workspace)
        assert resolution.outcome is OperationOutcome.FAILED
        assert resolution.failure == NOT_FOUND
