"""Tests for FolderService: folder CRUD, media assignment and rollups."""

import pytest

from foldsnap.exceptions import (
    CircularParentError,
    EmptyNameError,
    FolderNotFoundError,
    InvalidColorError,
    InvalidMediaIdError,
    MediaIdsRequiredError,
    ParentNotFoundError,
)
from foldsnap.repositories.media_repository import MediaRepository


def _find(nodes, folder_id):
    for node in nodes:
        if node.id == folder_id:
            return node
        found = _find(node.children, folder_id)
        if found is not None:
            return found
    return None


def _assert_siblings_unique(service):
    """No two folders under the same parent share a case-folded name."""
    groups = {}
    for folder in service.get_all():
        groups.setdefault(folder.parent_id, []).append(folder.name.lower())
    for parent_id, names in groups.items():
        assert len(names) == len(set(names)), f"duplicate names under {parent_id}: {names}"


class TestCreate:

    def test_create_root_folder(self, service):
        folder = service.create("Photos")
        assert folder.id > 0
        assert folder.name == "Photos"
        assert folder.parent_id == 0
        assert folder.direct_media_count == 0

    def test_create_with_color_and_position(self, service):
        folder = service.create("Design", color="#ff8800", position=4)
        assert folder.color == "#ff8800"
        assert folder.position == 4

    def test_create_child(self, service):
        parent = service.create("Parent")
        child = service.create("Child", parent_id=parent.id)
        assert child.parent_id == parent.id

    def test_duplicate_names_get_sequential_suffixes(self, service):
        names = [service.create("Photos").name for _ in range(4)]
        assert names == ["Photos", "Photos (2)", "Photos (3)", "Photos (4)"]

    def test_duplicate_check_case_insensitive(self, service):
        service.create("Photos")
        assert service.create("PHOTOS").name == "PHOTOS (2)"

    def test_same_name_under_different_parents(self, service):
        a = service.create("A")
        b = service.create("B")
        assert service.create("Photos", parent_id=a.id).name == "Photos"
        assert service.create("Photos", parent_id=b.id).name == "Photos"
        assert service.create("Photos").name == "Photos"

    def test_name_sanitized(self, service):
        assert service.create("  =Budget\x00 ").name == "Budget"

    def test_long_name_truncated(self, service):
        assert service.create("x" * 500).name == "x" * 200

    def test_long_duplicate_keeps_suffix(self, service):
        service.create("x" * 500)
        assert service.create("x" * 500).name == "x" * 200 + " (2)"

    def test_empty_name_rejected(self, service):
        with pytest.raises(EmptyNameError):
            service.create("  \x01 ")
        assert service.get_all() == []

    def test_unknown_parent_rejected(self, service):
        with pytest.raises(ParentNotFoundError) as exc_info:
            service.create("Orphan", parent_id=999999)
        assert exc_info.value.status_code == 400
        assert service.get_all() == []

    def test_invalid_color_rejected(self, service):
        with pytest.raises(InvalidColorError):
            service.create("Red", color="red")
        assert service.get_all() == []

    @pytest.mark.parametrize("color", ["#abc", "#ABCDEF", "#a1B2c3"])
    def test_valid_colors(self, service, color):
        assert service.create("C", color=color).color == color


class TestUpdate:

    def test_rename(self, service):
        folder = service.create("Old")
        assert service.update(folder.id, name="New").name == "New"

    def test_rename_to_own_name_keeps_it(self, service):
        folder = service.create("Same")
        assert service.update(folder.id, name="Same").name == "Same"

    def test_rename_to_sibling_name_gets_suffix(self, service):
        service.create("Taken")
        folder = service.create("Other")
        assert service.update(folder.id, name="taken").name == "taken (2)"

    def test_unset_fields_left_unchanged(self, service):
        parent = service.create("Parent")
        folder = service.create("Kid", parent_id=parent.id, color="#123", position=7)

        updated = service.update(folder.id)
        assert updated.name == "Kid"
        assert updated.parent_id == parent.id
        assert updated.color == "#123"
        assert updated.position == 7

    def test_move_to_root(self, service):
        parent = service.create("Parent")
        folder = service.create("Kid", parent_id=parent.id)
        assert service.update(folder.id, parent_id=0).parent_id == 0

    def test_move_checks_names_under_new_parent(self, service):
        target = service.create("Target")
        service.create("Docs", parent_id=target.id)
        folder = service.create("Docs")

        moved = service.update(folder.id, name="Docs", parent_id=target.id)
        assert moved.parent_id == target.id
        assert moved.name == "Docs (2)"

    def test_move_without_name_is_made_unique(self, service):
        target = service.create("Target")
        service.create("Docs", parent_id=target.id)
        folder = service.create("docs")

        moved = service.update(folder.id, parent_id=target.id)
        assert moved.parent_id == target.id
        assert moved.name == "docs (2)"
        _assert_siblings_unique(service)

    def test_move_keeps_name_when_free(self, service):
        target = service.create("Target")
        folder = service.create("Docs")
        assert service.update(folder.id, parent_id=target.id).name == "Docs"

    def test_update_in_place_does_not_rename(self, service):
        folder = service.create("Docs")
        assert service.update(folder.id, parent_id=0, color="#fff").name == "Docs"

    def test_sibling_names_stay_unique_across_moves(self, service):
        a = service.create("A")
        b = service.create("B")
        folders = [service.create("Photos", parent_id=p) for p in (0, a.id, b.id)]
        service.create("Photos (2)", parent_id=a.id)

        for folder in folders:
            service.update(folder.id, parent_id=a.id)
            _assert_siblings_unique(service)
        for folder in folders:
            service.update(folder.id, parent_id=0)
            _assert_siblings_unique(service)

        names = sorted(f.name for f in service.get_all() if f.parent_id == 0)
        assert len(names) == 5

    def test_color_and_position(self, service):
        folder = service.create("F")
        updated = service.update(folder.id, color="#0f0", position=3)
        assert updated.color == "#0f0"
        assert updated.position == 3

    def test_position_zero_is_applied(self, service):
        folder = service.create("F", position=5)
        assert service.update(folder.id, position=0).position == 0

    def test_unknown_folder(self, service):
        with pytest.raises(FolderNotFoundError):
            service.update(424242, name="x")

    def test_unknown_parent(self, service):
        folder = service.create("F")
        with pytest.raises(ParentNotFoundError):
            service.update(folder.id, parent_id=999999)

    def test_cannot_move_into_itself(self, service):
        folder = service.create("F")
        with pytest.raises(CircularParentError):
            service.update(folder.id, parent_id=folder.id)

    def test_cannot_move_into_descendant(self, service):
        a = service.create("A")
        b = service.create("B", parent_id=a.id)
        c = service.create("C", parent_id=b.id)
        with pytest.raises(CircularParentError):
            service.update(a.id, parent_id=c.id)
        assert service.get_by_id(a.id).parent_id == 0

    def test_failed_update_writes_nothing(self, service):
        folder = service.create("Keep", color="#111")
        with pytest.raises(InvalidColorError):
            service.update(folder.id, name="Changed", color="nope")
        unchanged = service.get_by_id(folder.id)
        assert unchanged.name == "Keep"
        assert unchanged.color == "#111"

    def test_empty_sanitized_name_rejected(self, service):
        folder = service.create("F")
        with pytest.raises(EmptyNameError):
            service.update(folder.id, name="=@")


class TestDelete:

    def test_delete(self, service):
        folder = service.create("Gone")
        assert service.delete(folder.id) is True
        assert service.get_by_id(folder.id) is None

    def test_delete_unknown(self, service):
        with pytest.raises(FolderNotFoundError):
            service.delete(31337)

    def test_media_returns_to_unassigned(self, service, make_media):
        folder = service.create("F")
        items = [make_media(f"m{i}", 100) for i in range(3)]
        service.assign_media(folder.id, [i.id for i in items])
        assert service.get_root_media_count() == 0

        service.delete(folder.id)
        assert service.get_root_media_count() == 3
        assert service.get_root_total_size() == 300

    def test_children_become_roots(self, service):
        parent = service.create("Parent")
        child = service.create("Child", parent_id=parent.id)
        grandchild = service.create("Grandchild", parent_id=child.id)

        service.delete(parent.id)
        roots = service.get_tree()
        assert [r.id for r in roots] == [child.id]
        assert roots[0].parent_id == 0
        assert roots[0].children[0].id == grandchild.id

    def test_lifted_child_renamed_on_root_conflict(self, service):
        service.create("Docs")
        parent = service.create("P")
        child = service.create("Docs", parent_id=parent.id)

        service.delete(parent.id)
        assert service.get_by_id(child.id).name == "Docs (2)"
        _assert_siblings_unique(service)

    def test_child_named_like_deleted_parent_keeps_name(self, service):
        parent = service.create("P")
        child = service.create("P", parent_id=parent.id)

        service.delete(parent.id)
        assert service.get_by_id(child.id).name == "P"

    def test_sibling_names_stay_unique_after_delete(self, service):
        for name in ("Docs", "Docs (2)", "Music"):
            service.create(name)
        parent = service.create("P")
        for name in ("docs", "Docs (2)", "music", "Video"):
            service.create(name, parent_id=parent.id)

        service.delete(parent.id)
        _assert_siblings_unique(service)
        roots = [f for f in service.get_all() if f.parent_id == 0]
        assert len(roots) == 7
        assert "Video" in {f.name for f in roots}

    def test_metadata_removed(self, service, db):
        from foldsnap.models.folder import FolderMeta

        folder = service.create("F", color="#fff", position=2)
        service.delete(folder.id)
        assert db.query(FolderMeta).filter(FolderMeta.folder_id == folder.id).count() == 0


class TestAssignMedia:

    def test_assign(self, service, make_media):
        folder = service.create("F")
        item = make_media("one", 10)
        service.assign_media(folder.id, [item.id])
        assert service.get_by_id(folder.id).direct_media_count == 1
        assert service.get_root_media_count() == 0

    def test_reassign_replaces_previous_folder(self, service, db, make_media):
        a = service.create("A")
        b = service.create("B")
        item = make_media("one", 10)

        service.assign_media(a.id, [item.id])
        service.assign_media(b.id, [item.id])

        assert MediaRepository(db).folder_of(item.id) == b.id
        assert service.get_by_id(a.id).direct_media_count == 0
        assert service.get_by_id(b.id).direct_media_count == 1

    def test_duplicate_ids_counted_once(self, service, make_media):
        folder = service.create("F")
        item = make_media("one", 10)
        service.assign_media(folder.id, [item.id, item.id])
        assert service.get_by_id(folder.id).direct_media_count == 1

    def test_batch_with_unknown_id_assigns_nothing(self, service, make_media):
        folder = service.create("F")
        good = make_media("good", 10)

        with pytest.raises(InvalidMediaIdError) as exc_info:
            service.assign_media(folder.id, [good.id, 999999])

        assert exc_info.value.details["media_ids"] == [999999]
        assert service.get_by_id(folder.id).direct_media_count == 0
        assert service.get_root_media_count() == 1

    def test_non_positive_id_rejected(self, service, make_media):
        folder = service.create("F")
        item = make_media("one")
        with pytest.raises(InvalidMediaIdError):
            service.assign_media(folder.id, [item.id, 0])

    def test_empty_ids_rejected(self, service):
        folder = service.create("F")
        with pytest.raises(MediaIdsRequiredError):
            service.assign_media(folder.id, [])

    def test_unknown_folder(self, service, make_media):
        item = make_media("one")
        with pytest.raises(FolderNotFoundError):
            service.assign_media(999999, [item.id])


class TestRemoveMedia:

    def test_remove(self, service, make_media):
        folder = service.create("F")
        item = make_media("one", 10)
        service.assign_media(folder.id, [item.id])

        service.remove_media(folder.id, [item.id])
        assert service.get_by_id(folder.id).direct_media_count == 0
        assert service.get_root_media_count() == 1

    def test_remove_is_idempotent(self, service, make_media):
        folder = service.create("F")
        item = make_media("one", 10)
        service.assign_media(folder.id, [item.id])

        service.remove_media(folder.id, [item.id])
        service.remove_media(folder.id, [item.id, 999999])
        assert service.get_root_media_count() == 1

    def test_remove_leaves_other_folders_alone(self, service, db, make_media):
        a = service.create("A")
        b = service.create("B")
        item = make_media("one", 10)
        service.assign_media(b.id, [item.id])

        service.remove_media(a.id, [item.id])
        assert MediaRepository(db).folder_of(item.id) == b.id

    def test_empty_ids_rejected(self, service):
        folder = service.create("F")
        with pytest.raises(MediaIdsRequiredError):
            service.remove_media(folder.id, [])


class TestTreeAndRollups:

    def test_tree_stats_follow_moves(self, service, make_media):
        a = service.create("A")
        b = service.create("B", parent_id=a.id)
        c = service.create("C")
        items = [make_media(f"m{i}", 100 * (i + 1)) for i in range(3)]
        service.assign_media(a.id, [items[0].id])
        service.assign_media(b.id, [items[1].id, items[2].id])

        tree = service.get_tree()
        node_a = _find(tree, a.id)
        assert node_a.direct_media_count == 1
        assert node_a.total_media_count() == 3
        assert node_a.direct_size == 100
        assert node_a.total_size() == 600

        service.update(b.id, parent_id=c.id)

        tree = service.get_tree()
        node_a = _find(tree, a.id)
        node_c = _find(tree, c.id)
        assert node_a.total_media_count() == 1
        assert node_a.total_size() == 100
        assert node_c.direct_media_count == 0
        assert node_c.total_media_count() == 2
        assert node_c.total_size() == 500

    def test_tree_reflects_assignment_after_cached_read(self, service, make_media):
        folder = service.create("F")
        item = make_media("one", 64)
        assert _find(service.get_tree(), folder.id).total_size() == 0

        service.assign_media(folder.id, [item.id])
        assert _find(service.get_tree(), folder.id).total_size() == 64
        assert service.get_root_total_size() == 0

    def test_siblings_ordered_by_position(self, service):
        first = service.create("First", position=2)
        second = service.create("Second", position=1)
        assert [n.id for n in service.get_tree()] == [second.id, first.id]

    def test_root_stats_cover_unassigned_only(self, service, make_media):
        folder = service.create("F")
        service.assign_media(folder.id, [make_media("in", 1000).id])
        make_media("loose", 25)
        make_media("loose-2")

        assert service.get_root_media_count() == 2
        assert service.get_root_total_size() == 25


class TestListMedia:

    def test_unassigned_listing(self, service, make_media):
        folder = service.create("F")
        service.assign_media(folder.id, [make_media("in").id])
        loose = make_media("loose")

        listing = service.list_media(0)
        assert [i.id for i in listing.items] == [loose.id]
        assert listing.total == 1
        assert listing.total_pages == 1

    def test_newest_first_and_paged(self, service, make_media):
        folder = service.create("F")
        items = [make_media(f"m{i}") for i in range(5)]
        service.assign_media(folder.id, [i.id for i in items])

        page1 = service.list_media(folder.id, page=1, per_page=2)
        page3 = service.list_media(folder.id, page=3, per_page=2)
        assert [i.id for i in page1.items] == [items[4].id, items[3].id]
        assert [i.id for i in page3.items] == [items[0].id]
        assert page1.total == 5
        assert page1.total_pages == 3

    def test_per_page_clamped(self, service):
        assert service.list_media(0, per_page=10_000).per_page == 100
        assert service.list_media(0, per_page=0).per_page == 1
        assert service.list_media(0).per_page == 40

    def test_unknown_folder_is_empty(self, service):
        listing = service.list_media(999999)
        assert listing.items == []
        assert listing.total == 0
        assert listing.total_pages == 0
