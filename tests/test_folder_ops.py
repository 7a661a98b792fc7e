"""
Unit tests for folder create/rename/delete.
"""

import os
from unittest.mock import patch

import pytest

from buza_storage.detector import classify
from buza_storage.errors import NameCollisionError, NotFoundError, StorageIOError, UniqueNameExhaustedError
from buza_storage.folder import FOLDER, PROJECT
from buza_storage.folder_ops import (
    create_folder,
    delete_folder,
    generate_unique_name,
    rename_folder,
)
from buza_storage.paths import InvalidNameError
from buza_storage.tree import list_children

from conftest import make_folder, make_project, snapshot


class TestGenerateUniqueName:
    """Test generate_unique_name()."""

    def test_free_name_is_kept(self, root):
        """Test a free name is returned unchanged."""
        assert generate_unique_name(root, None, "Work") == "Work"

    def test_three_creations_get_suffixes(self, root):
        """Test three creations yield 'New Folder', 'New Folder-1', 'New Folder-2'."""
        names = []
        for _ in range(3):
            name = generate_unique_name(root, None, "New Folder")
            create_folder(root, None, name)
            names.append(name)

        assert names == ["New Folder", "New Folder-1", "New Folder-2"]

    def test_projects_and_unmanaged_entries_count_as_taken(self, root):
        """Test any occupant of the name forces a suffix."""
        make_project(root, "X")
        open(os.path.join(root, "X-1"), "w").close()

        assert generate_unique_name(root, None, "X") == "X-2"

    def test_exhausted(self, root):
        """Test running out of attempts raises UniqueNameExhaustedError."""
        make_folder(root, "A")
        make_folder(root, "A-1")
        make_folder(root, "A-2")

        with pytest.raises(UniqueNameExhaustedError):
            generate_unique_name(root, None, "A", max_attempts=2)


class TestCreateFolder:
    """Test create_folder()."""

    def test_create_at_root(self, root):
        """Test creating a root-level folder writes the marker."""
        folder = create_folder(root, None, "Work")

        assert folder.path == "Work"
        assert folder.parent_path is None
        assert folder.children == []
        assert classify(root, "Work") == FOLDER

    def test_create_default_name(self, root):
        """Test the default name is 'New Folder'."""
        assert create_folder(root, None).name == "New Folder"

    def test_create_nested(self, root):
        """Test creating a folder inside another folder."""
        make_folder(root, "Work")

        folder = create_folder(root, "Work", "Sub")

        assert folder.path == "Work/Sub"
        assert folder.parent_path == "Work"

    def test_existing_name_gets_suffix(self, root):
        """Test a taken name is resolved with a suffix, never rejected."""
        make_project(root, "Work")

        assert create_folder(root, None, "Work").name == "Work-1"

    def test_parent_must_be_folder(self, root):
        """Test creating inside a project raises NotFoundError."""
        make_project(root, "Alpha")

        with pytest.raises(NotFoundError):
            create_folder(root, "Alpha", "Sub")

    def test_missing_parent(self, root):
        """Test creating inside a missing parent raises NotFoundError."""
        with pytest.raises(NotFoundError):
            create_folder(root, "Missing", "Sub")

    def test_invalid_name(self, root):
        """Test names containing a separator are rejected."""
        with pytest.raises(InvalidNameError):
            create_folder(root, None, "a/b")


class TestRenameFolder:
    """Test rename_folder()."""

    def test_rename(self, root):
        """Test renaming moves the directory and keeps its content."""
        make_folder(root, "Work")
        make_project(root, "Work/X")

        folder = rename_folder(root, "Work", "Job")

        assert folder.path == "Job"
        assert [c.path for c in folder.children] == ["Job/X"]
        assert not os.path.exists(os.path.join(root, "Work"))

    def test_rename_nested(self, root):
        """Test renaming a nested folder keeps its parent."""
        make_folder(root, "Work")
        make_folder(root, "Work/Sub")

        assert rename_folder(root, "Work/Sub", "Other").path == "Work/Other"

    def test_rename_collision(self, root):
        """Test renaming onto a sibling raises NameCollisionError."""
        make_folder(root, "Work")
        make_project(root, "Job")

        with pytest.raises(NameCollisionError) as exc_info:
            rename_folder(root, "Work", "Job")

        assert exc_info.value.source == "Work"
        assert exc_info.value.target == "Job"
        assert classify(root, "Work") == FOLDER

    def test_rename_same_name(self, root):
        """Test renaming to the current name is a no-op."""
        make_folder(root, "Work")

        assert rename_folder(root, "Work", "Work").path == "Work"

    def test_rename_project_path_is_not_found(self, root):
        """Test renaming a project as a folder raises NotFoundError."""
        make_project(root, "Alpha")

        with pytest.raises(NotFoundError):
            rename_folder(root, "Alpha", "Beta")

    def test_rename_missing(self, root):
        """Test renaming a missing folder raises NotFoundError."""
        with pytest.raises(NotFoundError):
            rename_folder(root, "Missing", "Other")


class TestDeleteFolder:
    """Test delete_folder()."""

    def test_children_promoted(self, root):
        """Test children move to the parent level and the folder is gone."""
        make_folder(root, "Work")
        make_project(root, "Work/X")
        make_folder(root, "Work/Sub")
        make_project(root, "Work/Sub/Y")

        moved = delete_folder(root, "Work")

        assert sorted(item.path for item in moved) == ["Sub", "X"]
        assert not os.path.exists(os.path.join(root, "Work"))
        assert classify(root, "X") == PROJECT
        assert classify(root, "Sub/Y") == PROJECT

    def test_nested_delete_promotes_to_grandparent(self, root):
        """Test deleting a nested folder promotes into its own parent."""
        make_folder(root, "Work")
        make_folder(root, "Work/Sub")
        make_project(root, "Work/Sub/X")

        delete_folder(root, "Work/Sub")

        assert [c.path for c in list_children(root, "Work")] == ["Work/X"]

    def test_collision_leaves_everything_intact(self, root):
        """Test a sibling collision aborts before anything moves."""
        make_folder(root, "Work")
        make_project(root, "Work/X")
        make_folder(root, "Work/Sub")
        make_project(root, "X")
        before = snapshot(root)

        with pytest.raises(NameCollisionError) as exc_info:
            delete_folder(root, "Work")

        assert exc_info.value.source == "Work/X"
        assert exc_info.value.target == "X"
        assert snapshot(root) == before

    def test_collision_with_unmanaged_entry(self, root):
        """Test an unmanaged file in the parent also blocks promotion."""
        make_folder(root, "Work")
        make_project(root, "Work/X")
        open(os.path.join(root, "X"), "w").close()
        before = snapshot(root)

        with pytest.raises(NameCollisionError):
            delete_folder(root, "Work")

        assert snapshot(root) == before

    def test_child_with_folder_name(self, root):
        """Test a child named like the deleted folder is promoted into its place."""
        make_folder(root, "Work")
        make_project(root, "Work/Work")
        make_project(root, "Work/Other")

        moved = delete_folder(root, "Work")

        assert sorted(item.path for item in moved) == ["Other", "Work"]
        assert classify(root, "Work") == PROJECT
        assert [c.name for c in list_children(root, None)] == ["Other", "Work"]
        assert [name for name in os.listdir(root) if name.startswith(".")] == []

    def test_leftovers_removed(self, root):
        """Test unmanaged files inside the folder are removed with it."""
        make_folder(root, "Work")
        make_project(root, "Work/X")
        open(os.path.join(root, "Work", "notes.txt"), "w").close()
        os.mkdir(os.path.join(root, "Work", "plain"))

        delete_folder(root, "Work")

        assert not os.path.exists(os.path.join(root, "Work"))
        assert not os.path.exists(os.path.join(root, "plain"))

    def test_empty_folder(self, root):
        """Test deleting an empty folder."""
        make_folder(root, "Empty")

        assert delete_folder(root, "Empty") == []
        assert not os.path.exists(os.path.join(root, "Empty"))

    def test_not_a_folder(self, root):
        """Test deleting a project as a folder raises NotFoundError."""
        make_project(root, "Alpha")

        with pytest.raises(NotFoundError):
            delete_folder(root, "Alpha")

    def test_root_cannot_be_deleted(self, root):
        """Test deleting the root raises NotFoundError."""
        with pytest.raises(NotFoundError):
            delete_folder(root, None)

    def test_io_failure_reports_completed_items(self, root):
        """Test a failing rename stops the delete and reports what moved."""
        make_folder(root, "Work")
        make_folder(root, "Work/A")
        make_project(root, "Work/B")

        real_rename = os.rename
        calls = []

        def flaky_rename(src, dst):
            calls.append(src)
            if len(calls) == 2:
                raise OSError("disk full")
            return real_rename(src, dst)

        with patch("buza_storage.fs.os.rename", side_effect=flaky_rename):
            with pytest.raises(StorageIOError) as exc_info:
                delete_folder(root, "Work")

        error = exc_info.value
        assert [item.path for item in error.completed] == ["A"]
        assert error.source == "Work/B"
        assert error.target == "B"
        assert classify(root, "A") == FOLDER
        assert classify(root, "Work/B") == PROJECT
        assert error.to_dict()["kind"] == "IOFailure"
        assert error.staged_path is None

    def test_io_failure_after_staging_reports_staged_folder(self, root):
        """Test a failure after the folder was moved aside reports the staging location."""
        make_folder(root, "Work")
        make_project(root, "Work/Work")
        make_project(root, "Work/X")

        real_rename = os.rename
        calls = []

        def flaky_rename(src, dst):
            calls.append(src)
            if len(calls) == 2:
                raise OSError("disk full")
            return real_rename(src, dst)

        with patch("buza_storage.fs.os.rename", side_effect=flaky_rename):
            with pytest.raises(StorageIOError) as exc_info:
                delete_folder(root, "Work")

        error = exc_info.value
        assert error.staged_path is not None
        assert error.staged_path.startswith(".Work.deleting-")
        assert [item.path for item in error.completed] == [error.staged_path]
        assert error.source == f"{error.staged_path}/Work"
        assert error.target == "Work"
        assert classify(root, error.staged_path) == FOLDER
        assert classify(root, f"{error.staged_path}/X") == PROJECT
        assert error.to_dict()["stagedPath"] == error.staged_path


class TestFolderLifecycle:
    """Test create, rename and delete together."""

    def test_create_rename_delete(self, root):
        """Test no node remains at any former path after the lifecycle."""
        folder = create_folder(root, None, "Temp")
        renamed = rename_folder(root, folder.path, "Temp2")
        delete_folder(root, renamed.path)

        assert not os.path.exists(os.path.join(root, "Temp"))
        assert not os.path.exists(os.path.join(root, "Temp2"))
        assert list_children(root, None) == []
