"""
Unit tests for project and folder moves.
"""

import pytest

from buza_storage.detector import classify
from buza_storage.errors import InvalidMoveError, NameCollisionError, NotFoundError
from buza_storage.folder import FOLDER, PROJECT
from buza_storage.move_ops import is_valid_move_target, move_folder, move_project

from conftest import make_folder, make_project, snapshot


class TestIsValidMoveTarget:
    """Test cycle detection."""

    @pytest.mark.parametrize("path", ["A", "A/B", "Work/Sub/Deep"])
    def test_self_is_invalid(self, path):
        """Test a path is never a valid target for itself."""
        assert is_valid_move_target(path, path) is False

    @pytest.mark.parametrize("path", ["A", "A/B"])
    def test_root_is_valid(self, path):
        """Test the root is always a valid target."""
        assert is_valid_move_target(path, None) is True
        assert is_valid_move_target(path, "") is True

    def test_descendant_is_invalid(self):
        """Test moving into a descendant is invalid."""
        assert is_valid_move_target("A", "A/B") is False
        assert is_valid_move_target("A", "A/B/C") is False

    def test_ancestor_is_valid(self):
        """Test moving up to an ancestor is valid."""
        assert is_valid_move_target("A/B", "A") is True

    def test_shared_prefix_is_valid(self):
        """Test a sibling with a common name prefix is not a descendant."""
        assert is_valid_move_target("A", "AB") is True


class TestMoveProject:
    """Test move_project()."""

    def test_move_into_folder(self, root):
        """Test moving a root project into a folder."""
        make_folder(root, "Work")
        make_project(root, "Alpha", variants={"Main": "hello"})

        new_path = move_project(root, "Alpha", "Work")

        assert new_path == "Work/Alpha"
        assert classify(root, "Work/Alpha") == PROJECT
        assert classify(root, "Alpha") is None

    def test_move_to_root(self, root):
        """Test moving a nested project to the root."""
        make_folder(root, "Work")
        make_project(root, "Work/Alpha")

        assert move_project(root, "Work/Alpha", None) == "Alpha"

    def test_move_to_current_parent_is_noop(self, root):
        """Test moving a project into the folder it already lives in."""
        make_folder(root, "Work")
        make_project(root, "Work/Alpha")

        assert move_project(root, "Work/Alpha", "Work") == "Work/Alpha"

    def test_collision(self, root):
        """Test moving onto an occupied name raises NameCollisionError."""
        make_folder(root, "Work")
        make_project(root, "Work/Alpha")
        make_project(root, "Alpha")

        with pytest.raises(NameCollisionError) as exc_info:
            move_project(root, "Alpha", "Work")

        assert exc_info.value.target == "Work/Alpha"

    def test_target_not_a_folder(self, root):
        """Test moving into a project raises InvalidMoveError."""
        make_project(root, "Alpha")
        make_project(root, "Beta")

        with pytest.raises(InvalidMoveError):
            move_project(root, "Alpha", "Beta")

    def test_source_not_a_project(self, root):
        """Test moving a folder as a project raises NotFoundError."""
        make_folder(root, "Work")
        make_folder(root, "Other")

        with pytest.raises(NotFoundError):
            move_project(root, "Work", "Other")


class TestMoveFolder:
    """Test move_folder()."""

    def test_move_subtree(self, root):
        """Test a folder moves with its whole subtree."""
        make_folder(root, "Work")
        make_project(root, "Work/X")
        make_folder(root, "Archive")

        new_path = move_folder(root, "Work", "Archive")

        assert new_path == "Archive/Work"
        assert classify(root, "Archive/Work") == FOLDER
        assert classify(root, "Archive/Work/X") == PROJECT

    def test_move_into_own_descendant(self, root):
        """Test moving 'Work' into 'Work/Sub' fails and changes nothing."""
        make_folder(root, "Work")
        make_project(root, "Work/X")
        make_folder(root, "Work/Sub")
        before = snapshot(root)

        with pytest.raises(InvalidMoveError):
            move_folder(root, "Work", "Work/Sub")

        assert snapshot(root) == before

    def test_move_into_itself(self, root):
        """Test moving a folder into itself is rejected."""
        make_folder(root, "Work")

        with pytest.raises(InvalidMoveError):
            move_folder(root, "Work", "Work")

    def test_move_to_root(self, root):
        """Test moving a nested folder to the root."""
        make_folder(root, "Work")
        make_folder(root, "Work/Sub")

        assert move_folder(root, "Work/Sub", None) == "Sub"
        assert classify(root, "Sub") == FOLDER

    def test_collision(self, root):
        """Test an occupied destination raises NameCollisionError."""
        make_folder(root, "Work")
        make_folder(root, "Archive")
        make_project(root, "Archive/Work")

        with pytest.raises(NameCollisionError):
            move_folder(root, "Work", "Archive")

        assert classify(root, "Work") == FOLDER

    def test_missing_target(self, root):
        """Test a missing target folder raises InvalidMoveError."""
        make_folder(root, "Work")

        with pytest.raises(InvalidMoveError):
            move_folder(root, "Work", "Missing")

    def test_source_not_a_folder(self, root):
        """Test moving a project as a folder raises NotFoundError."""
        make_project(root, "Alpha")
        make_folder(root, "Work")

        with pytest.raises(NotFoundError):
            move_folder(root, "Alpha", "Work")
