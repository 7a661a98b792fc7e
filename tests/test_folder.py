"""
Unit tests for the folder data model.
"""

import pytest

from buza_storage.folder import (
    FOLDER,
    PROJECT,
    Folder,
    FolderItem,
    FolderTree,
    FolderValidationError,
    SearchResult,
    deserialize_folder_tree,
    serialize_folder_tree,
    sort_items,
)


class TestFolderItem:
    """Test FolderItem reference type."""

    def test_creation(self):
        """Test creating a FolderItem."""
        item = FolderItem(FOLDER, "Work", "Work")

        assert item.type == FOLDER
        assert item.name == "Work"
        assert item.path == "Work"
        assert item.is_folder
        assert item.parent_path is None
        assert item.id

    def test_invalid_type(self):
        """Test unknown node types are rejected."""
        with pytest.raises(FolderValidationError):
            FolderItem("file", "x", "x")

    def test_equality_ignores_session_id(self):
        """Test two items with the same path are equal regardless of id."""
        a = FolderItem(PROJECT, "X", "Work/X")
        b = FolderItem(PROJECT, "X", "Work/X")

        assert a.id != b.id
        assert a == b
        assert hash(a) == hash(b)

    def test_with_path_keeps_id(self):
        """Test relocation keeps the session id and derives the name."""
        item = FolderItem(PROJECT, "X", "Work/X")
        moved = item.with_path("X")

        assert moved.path == "X"
        assert moved.name == "X"
        assert moved.id == item.id

    def test_dict_round_trip(self):
        """Test to_dict/from_dict preserve all fields."""
        item = FolderItem(FOLDER, "Sub", "Work/Sub")
        restored = FolderItem.from_dict(item.to_dict())

        assert restored == item
        assert restored.id == item.id

    def test_from_dict_missing_field(self):
        """Test from_dict reports missing fields."""
        with pytest.raises(FolderValidationError):
            FolderItem.from_dict({"type": FOLDER, "name": "x"})


class TestSorting:
    """Test listing order."""

    def test_folders_before_projects(self):
        """Test folders sort before projects regardless of name."""
        items = [FolderItem(PROJECT, "Alpha", "Alpha"), FolderItem(FOLDER, "Zeta", "Zeta")]

        assert [i.name for i in sort_items(items)] == ["Zeta", "Alpha"]

    def test_case_sensitive_order(self):
        """Test names are ordered case-sensitively."""
        items = [FolderItem(PROJECT, n, n) for n in ["beta", "Alpha", "alpha", "Beta"]]

        assert [i.name for i in sort_items(items)] == ["Alpha", "Beta", "alpha", "beta"]


class TestFolder:
    """Test Folder model."""

    def test_creation(self):
        """Test creating a nested folder."""
        folder = Folder("Sub", "Work/Sub", "Work")

        assert folder.name == "Sub"
        assert folder.parent_path == "Work"
        assert folder.children == []
        assert folder.is_expanded is False

    def test_name_must_match_path(self):
        """Test inconsistent name/path is rejected."""
        with pytest.raises(FolderValidationError):
            Folder("Other", "Work/Sub", "Work")

    def test_parent_must_match_path(self):
        """Test inconsistent parent/path is rejected."""
        with pytest.raises(FolderValidationError):
            Folder("Sub", "Work/Sub", None)

    def test_at_derives_name_and_parent(self):
        """Test Folder.at derives name and parent from the path."""
        folder = Folder.at("A/B/C")

        assert folder.name == "C"
        assert folder.parent_path == "A/B"

    def test_child_filters(self):
        """Test child_folders and child_projects split children by type."""
        folder = Folder.at("Work", [FolderItem(FOLDER, "Sub", "Work/Sub"), FolderItem(PROJECT, "X", "Work/X")])

        assert [c.name for c in folder.child_folders()] == ["Sub"]
        assert [c.name for c in folder.child_projects()] == ["X"]

    def test_to_dict_uses_camel_case(self):
        """Test transport keys are camelCase."""
        data = Folder.at("Work/Sub").to_dict()

        assert data["parentPath"] == "Work"
        assert data["isExpanded"] is False
        assert "parent_path" not in data

    def test_dict_round_trip(self):
        """Test to_dict/from_dict round trip."""
        folder = Folder("Sub", "Work/Sub", "Work", [FolderItem(PROJECT, "X", "Work/Sub/X")], is_expanded=True)

        assert Folder.from_dict(folder.to_dict()) == folder


class TestFolderTree:
    """Test the partially loaded tree."""

    def test_children_of(self):
        """Test children_of distinguishes root, loaded and unloaded folders."""
        work = Folder.at("Work", [FolderItem(PROJECT, "X", "Work/X")])
        tree = FolderTree([FolderItem(FOLDER, "Work", "Work"), FolderItem(FOLDER, "Play", "Play")], {"Work": work})

        assert len(tree.children_of(None)) == 2
        assert tree.children_of("Work") == work.children
        assert tree.children_of("Play") is None
        assert tree.is_loaded("Work")
        assert not tree.is_loaded("Play")

    def test_with_folder_does_not_mutate(self):
        """Test with_folder returns a new tree."""
        tree = FolderTree([FolderItem(FOLDER, "Work", "Work")])
        merged = tree.with_folder(Folder.at("Work"))

        assert merged.is_loaded("Work")
        assert not tree.is_loaded("Work")

    def test_serialize_round_trip(self):
        """Test serialize/deserialize reproduce the tree."""
        tree = FolderTree(
            [FolderItem(FOLDER, "Work", "Work"), FolderItem(PROJECT, "Alpha", "Alpha")],
            {"Work": Folder.at("Work", [FolderItem(PROJECT, "X", "Work/X")])}
        )
        data = serialize_folder_tree(tree)

        assert set(data.keys()) == {"rootItems", "folders"}
        assert deserialize_folder_tree(data) == tree
        assert FolderTree.from_dict(tree.to_dict()) == tree

    def test_deserialize_rejects_non_dict(self):
        """Test deserialize rejects non-dictionary input."""
        with pytest.raises(FolderValidationError):
            deserialize_folder_tree([])


class TestSearchResult:
    """Test SearchResult transport form."""

    def test_to_dict(self):
        """Test to_dict keys and span conversion."""
        result = SearchResult(FolderItem(PROJECT, "Space Cat", "Fiction/Space Cat"), "Fiction", "Cat", (6, 9))
        data = result.to_dict()

        assert data["folderPath"] == "Fiction"
        assert data["matchedText"] == "Cat"
        assert data["span"] == [6, 9]
        assert "metadata" not in data
