"""Unit tests for fileops.workspace.store module."""

import pytest

from fileops.exceptions import UndoError, UnsafePathError, WorkspaceError
from fileops.workspace.backup import BackupSnapshot
from fileops.workspace.store import Workspace, WorkspaceFile
from tests.helpers.builders import DEFAULT_FILES, build_workspace, workspace_texts


@pytest.mark.unit
@pytest.mark.workspace
class TestWorkspaceFile:
    """Tests for WorkspaceFile records."""

    def test_from_text_derives_fields(self):
        """Test size is UTF-8 bytes and tokens are estimated from characters."""
        wf = WorkspaceFile.from_text("docs/café.md", "héllo")
        assert wf.name == "café.md"
        assert wf.size == 6
        assert wf.estimated_tokens == 2
        assert wf.selected is True

    def test_dict_round_trip(self):
        """Test records survive to_dict/from_dict."""
        wf = WorkspaceFile.from_text("a.txt", "abc", selected=False)
        assert WorkspaceFile.from_dict(wf.to_dict()) == wf


@pytest.mark.unit
@pytest.mark.workspace
class TestWorkspaceMutation:
    """Tests for create, update and delete."""

    def test_initial_files_sorted(self):
        """Test imported files are ordered by path."""
        ws = build_workspace({"b.txt": "", "a/z.txt": "", "a.txt": ""})
        assert ws.paths() == ["a.txt", "a/z.txt", "b.txt"]

    def test_create(self, workspace):
        """Test create adds a file at the end."""
        wf = workspace.create("docs/guide.md", "# Guide\n")
        assert workspace.exists("docs/guide.md")
        assert workspace.get_by_path("docs/guide.md") is wf
        assert workspace.paths()[-1] == "docs/guide.md"
        assert len(workspace) == len(DEFAULT_FILES) + 1

    def test_create_normalizes_path(self, workspace):
        """Test create stores the normalized path."""
        wf = workspace.create("./notes//todo.txt", "")
        assert wf.path == "notes/todo.txt"
        assert "notes/todo.txt" in workspace

    def test_create_existing_raises(self, workspace):
        """Test create never overwrites."""
        with pytest.raises(WorkspaceError, match="already exists"):
            workspace.create("README.md", "x")
        assert workspace.get_by_path("README.md").text == "# Project\n"

    def test_create_unsafe_raises(self, workspace):
        """Test create rejects unsafe paths."""
        with pytest.raises(UnsafePathError):
            workspace.create("../outside.txt", "x")

    def test_update(self, workspace):
        """Test update replaces content and derived fields."""
        wf = workspace.update("README.md", "é")
        assert wf.text == "é"
        assert wf.size == 2
        assert wf.estimated_tokens == 1

    def test_update_missing_raises(self, workspace):
        """Test update on a missing path raises."""
        with pytest.raises(WorkspaceError, match="File not found"):
            workspace.update("missing.txt", "x")

    def test_delete(self, workspace):
        """Test delete removes the file."""
        workspace.delete("src/app.py")
        assert not workspace.exists("src/app.py")
        assert "src/app.py" not in workspace.paths()

    def test_delete_missing_raises(self, workspace):
        """Test delete on a missing path raises."""
        with pytest.raises(WorkspaceError):
            workspace.delete("missing.txt")

    def test_lookups_normalize_paths(self, workspace):
        """Test lookups and mutations accept equivalent spellings of a path."""
        assert workspace.exists("./README.md")
        assert "src//app.py" in workspace
        assert workspace.get_by_path("./src/app.py") is workspace.get_by_path("src/app.py")
        assert not workspace.exists("../README.md")

        workspace.update("./README.md", "changed\n")
        assert workspace.get_by_path("README.md").text == "changed\n"
        workspace.delete("./src/app.py")
        assert not workspace.exists("src/app.py")

    def test_placeholder_exists_but_cannot_change(self):
        """Test a file without loaded content blocks creates but refuses edits."""
        ws = Workspace(files=[WorkspaceFile.placeholder("logo.png", size=7)])
        assert ws.exists("logo.png")
        assert not ws.get_by_path("logo.png").loaded

        with pytest.raises(WorkspaceError, match="already exists"):
            ws.create("logo.png", "x")
        with pytest.raises(WorkspaceError, match="not loaded"):
            ws.update("logo.png", "x")
        with pytest.raises(WorkspaceError, match="not loaded"):
            ws.delete("logo.png")
        assert ws.exists("logo.png")

    def test_replace_files_rejects_duplicates(self):
        """Test two files with the same path are rejected."""
        files = [WorkspaceFile.from_text("a.txt", "1"), WorkspaceFile.from_text("./a.txt", "2")]
        with pytest.raises(WorkspaceError, match="Duplicate path"):
            Workspace(files=files)

    def test_load_texts(self):
        """Test loading from a path-to-text mapping replaces content."""
        ws = Workspace()
        ws.load_texts({"b.py": "b", "a.py": "a"}, name="demo")
        assert ws.name == "demo"
        assert workspace_texts(ws) == {"a.py": "a", "b.py": "b"}


@pytest.mark.unit
@pytest.mark.workspace
class TestWorkspaceTree:
    """Tests for the derived tree."""

    def test_empty_workspace_has_no_tree(self):
        """Test an empty workspace has no tree."""
        assert Workspace().tree is None
        assert Workspace().visible_nodes() == []

    def test_tree_rebuilt_lazily(self, workspace):
        """Test mutations mark the tree stale until it is read."""
        assert workspace.tree is not None
        assert not workspace.tree_is_stale
        workspace.create("x.txt", "")
        assert workspace.tree_is_stale
        assert "x.txt" in workspace.tree.children
        assert not workspace.tree_is_stale

    def test_folders_start_collapsed(self, workspace):
        """Test only top-level entries are visible, folders first."""
        assert [node.path for node in workspace.visible_nodes()] == ["src", "README.md"]

    def test_toggle_folder(self, workspace):
        """Test expanding a folder reveals its children."""
        assert workspace.toggle_folder("src") is True
        assert [node.path for node in workspace.visible_nodes()] == [
            "src",
            "src/utils",
            "src/app.py",
            "README.md",
        ]
        assert workspace.toggle_folder("src") is False

    def test_toggle_non_folder(self, workspace):
        """Test toggling a file or unknown path does nothing."""
        assert workspace.toggle_folder("README.md") is False
        assert workspace.toggle_folder("nope") is False

    def test_expansion_survives_rebuild(self, workspace):
        """Test expanded folders stay expanded after a mutation."""
        workspace.toggle_folder("src")
        workspace.create("src/new.py", "")
        paths = [node.path for node in workspace.visible_nodes()]
        assert "src/new.py" in paths


@pytest.mark.unit
@pytest.mark.workspace
class TestSnapshots:
    """Tests for snapshot and restore."""

    def test_snapshot_is_independent(self, workspace):
        """Test later mutations do not affect a snapshot."""
        snapshot = workspace.snapshot()
        workspace.update("README.md", "changed")
        workspace.delete("src/app.py")
        assert {r["path"]: r["text"] for r in snapshot.files}["README.md"] == "# Project\n"
        assert "src/app.py" in snapshot.paths

    def test_restore(self, workspace):
        """Test restore brings back files, order and expansion state."""
        workspace.toggle_folder("src")
        original = workspace_texts(workspace)
        snapshot = workspace.snapshot()

        workspace.create("extra.txt", "x")
        workspace.update("README.md", "changed")
        workspace.delete("src/app.py")
        workspace.restore(snapshot)

        assert workspace_texts(workspace) == original
        assert workspace.paths() == list(original)
        assert "src/app.py" in [node.path for node in workspace.visible_nodes()]

    def test_restore_is_not_aliased(self, workspace):
        """Test mutating after restore leaves the snapshot intact."""
        snapshot = workspace.snapshot()
        workspace.restore(snapshot)
        workspace.update("README.md", "changed")
        workspace.restore(snapshot)
        assert workspace.get_by_path("README.md").text == "# Project\n"

    @pytest.mark.parametrize(
        "records",
        [
            [{"path": "../evil.txt", "name": "evil.txt"}],
            [{"name": "no-path.txt"}],
            [{"path": "a.txt", "name": "a.txt"}, {"path": "a.txt", "name": "a.txt"}],
            [{"path": "a.txt", "name": "b.txt"}],
            ["not a record"],
        ],
    )
    def test_corrupted_snapshot_leaves_workspace_untouched(self, workspace, records):
        """Test a snapshot failing integrity checks raises and changes nothing."""
        before = workspace_texts(workspace)
        with pytest.raises(UndoError):
            workspace.restore(BackupSnapshot(name="bad", files=records))
        assert workspace_texts(workspace) == before
        assert workspace.name == "project"


@pytest.mark.unit
@pytest.mark.workspace
class TestContextSelection:
    """Tests for context selection limits."""

    @pytest.fixture
    def sized(self):
        return build_workspace({"a.txt": "a" * 40, "b.txt": "b" * 40, "c.txt": "c" * 400})

    def test_file_cap(self, sized):
        """Test files beyond the cap are deselected in order."""
        assert sized.apply_selection_limits(2, 10_000, 10_000) == ["a.txt", "b.txt"]
        assert sized.get_by_path("c.txt").selected is False

    def test_token_budget(self, sized):
        """Test files that overflow the budget are deselected."""
        assert sized.apply_selection_limits(10, 15, 10_000) == ["a.txt"]

    def test_per_file_cap(self, sized):
        """Test each file is charged at most the per-file cap."""
        assert sized.apply_selection_limits(10, 15, 5) == ["a.txt", "b.txt", "c.txt"]

    def test_selection_summary(self, sized):
        """Test the summary reports totals against the limits."""
        summary = sized.selection_summary(2, 100, 10_000)
        assert summary == {
            "selected": 3,
            "total": 3,
            "tokens": 120,
            "exceeds_file_limit": True,
            "exceeds_token_budget": True,
        }
