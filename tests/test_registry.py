# tests/test_registry.py
"""Tests for the content registry."""

import tempfile
from pathlib import Path

import pytest

from contentvault import CallContext, ContentRegistry, ErrorKind, PermissionStore


ADMIN = "admin"
ALICE = CallContext(caller="alice", height=7)
BOB = CallContext(caller="bob", height=7)


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def registry():
    """In-memory registry."""
    return ContentRegistry(administrator=ADMIN)


def create(registry, ctx=ALICE, title="Doc", size_bytes=100, summary="S", labels=None):
    return registry.create_content(ctx, title, size_bytes, summary, labels or ["a"])


class TestCreateContent:
    """Tests for create_content."""

    def test_first_id_is_one(self, registry):
        """The first item gets id 1 and is owned by the caller."""
        result = create(registry)

        assert result.success
        assert result.value == 1

        record = registry.fetch_content_details(ALICE, 1).unwrap()
        assert record.creator == "alice"
        assert record.created_at == 7
        assert record.title == "Doc"
        assert record.size_bytes == 100
        assert record.summary == "S"
        assert record.labels == ["a"]

    def test_ids_are_sequential(self, registry):
        """Each id is the previous sequence value plus one."""
        for expected in range(1, 6):
            before = registry.sequence
            content_id = create(registry).unwrap()
            assert content_id == before + 1 == expected
            assert registry.sequence == content_id

    def test_ids_not_reused_after_delete(self, registry):
        """Deleting the newest item does not free its id."""
        create(registry)
        second = create(registry).unwrap()
        registry.delete_content(ALICE, second).unwrap()

        assert create(registry).unwrap() == 3
        assert registry.sequence == 3

    def test_creator_gets_explicit_grant(self, registry):
        """Creation seeds a grant for the creator."""
        create(registry)

        assert registry.permissions.has_grant(1, "alice")
        assert not registry.permissions.has_grant(1, "bob")

    def test_labels_are_copied(self, registry):
        """Mutating the caller's label list does not change the record."""
        labels = ["a", "b"]
        create(registry, labels=labels)
        labels.append("c")

        assert registry.fetch_content_details(ALICE, 1).unwrap().labels == ["a", "b"]

    @pytest.mark.parametrize("title", ["", "x" * 65])
    def test_rejects_bad_title(self, registry, title):
        result = create(registry, title=title)
        assert result.error == ErrorKind.METADATA_INVALID

    @pytest.mark.parametrize("summary", ["", "x" * 129])
    def test_rejects_bad_summary(self, registry, summary):
        result = create(registry, summary=summary)
        assert result.error == ErrorKind.METADATA_INVALID

    @pytest.mark.parametrize("size_bytes", [0, 1_000_000_000])
    def test_rejects_bad_size(self, registry, size_bytes):
        result = create(registry, size_bytes=size_bytes)
        assert result.error == ErrorKind.SIZE_LIMIT_EXCEEDED

    @pytest.mark.parametrize("labels", [
        [],
        ["t"] * 11,
        ["ok", ""],
        ["x" * 33],
    ])
    def test_rejects_bad_labels(self, registry, labels):
        result = registry.create_content(ALICE, "Doc", 100, "S", labels)
        assert result.error == ErrorKind.TAG_FORMAT_ERROR

    def test_accepts_boundaries(self, registry):
        """Values at the inclusive limits are accepted."""
        result = registry.create_content(
            ALICE, "x" * 64, 999_999_999, "y" * 128, ["z" * 32] * 10,
        )
        assert result.success

    def test_failure_leaves_no_state(self, registry):
        """A rejected create does not advance the sequence or write grants."""
        create(registry, size_bytes=0)

        assert registry.sequence == 0
        assert len(registry) == 0
        assert len(registry.permissions) == 0
        assert not registry.check_content_existence(1)

    def test_metadata_checked_before_size(self, registry):
        """The first failing rule is reported."""
        result = registry.create_content(ALICE, "", 0, "S", [])
        assert result.error == ErrorKind.METADATA_INVALID

        result = registry.create_content(ALICE, "Doc", 0, "S", [])
        assert result.error == ErrorKind.SIZE_LIMIT_EXCEEDED


class TestTransferOwnership:
    """Tests for transfer_ownership."""

    def test_transfer_changes_owner(self, registry):
        create(registry)
        assert registry.transfer_ownership(ALICE, 1, "bob").success

        assert registry.fetch_content_owner(1).unwrap() == "bob"

    def test_other_fields_unchanged(self, registry):
        create(registry)
        before = registry.fetch_content_details(ALICE, 1).unwrap()

        registry.transfer_ownership(ALICE, 1, "bob")
        after = registry.fetch_content_details(BOB, 1).unwrap()

        assert after.id == before.id
        assert after.created_at == before.created_at
        assert after.title == before.title
        assert after.labels == before.labels

    def test_old_owner_loses_owner_rights(self, registry):
        """After a transfer the original creator cannot delete."""
        create(registry)
        registry.transfer_ownership(ALICE, 1, "bob")

        assert registry.delete_content(ALICE, 1).error == ErrorKind.OWNER_MISMATCH
        assert registry.check_content_existence(1)

    def test_old_owner_keeps_creation_grant(self, registry):
        """Grants are not touched by a transfer."""
        create(registry)
        registry.transfer_ownership(ALICE, 1, "bob")

        check = registry.verify_user_permissions(1, "alice").unwrap()
        assert check.has_explicit_permission
        assert not check.is_owner
        assert check.can_access

    def test_non_owner_rejected(self, registry):
        create(registry)
        result = registry.transfer_ownership(BOB, 1, "bob")

        assert result.error == ErrorKind.OWNER_MISMATCH
        assert registry.fetch_content_owner(1).unwrap() == "alice"

    def test_missing_content(self, registry):
        assert registry.transfer_ownership(ALICE, 9, "bob").error == ErrorKind.CONTENT_MISSING


class TestDeleteContent:
    """Tests for delete_content."""

    def test_delete_scenario(self, registry):
        """Create, check, delete, check again."""
        assert create(registry).unwrap() == 1
        assert registry.check_content_existence(1)

        assert registry.delete_content(ALICE, 1).success

        assert not registry.check_content_existence(1)
        assert registry.fetch_content_details(ALICE, 1).error == ErrorKind.CONTENT_MISSING

    def test_non_owner_rejected(self, registry):
        create(registry)
        assert registry.delete_content(BOB, 1).error == ErrorKind.OWNER_MISMATCH
        assert registry.check_content_existence(1)

    def test_missing_content(self, registry):
        assert registry.delete_content(ALICE, 1).error == ErrorKind.CONTENT_MISSING

    def test_grants_left_behind(self, registry):
        """Permission rows are orphaned, not removed."""
        create(registry)
        registry.delete_content(ALICE, 1)

        assert registry.permissions.has_grant(1, "alice")
        assert registry.verify_user_permissions(1, "alice").error == ErrorKind.CONTENT_MISSING


class TestReads:
    """Tests for read operations."""

    def test_owner_can_read(self, registry):
        create(registry)
        assert registry.fetch_content_details(ALICE, 1).success

    def test_stranger_blocked(self, registry):
        create(registry)
        result = registry.fetch_content_details(BOB, 1)

        assert result.error == ErrorKind.VISIBILITY_BLOCKED

        check = registry.verify_user_permissions(1, "bob").unwrap()
        assert (check.has_explicit_permission, check.is_owner, check.can_access) == (
            False, False, False,
        )

    def test_new_owner_reads_without_grant(self, registry):
        """Ownership alone grants read access."""
        create(registry)
        registry.transfer_ownership(ALICE, 1, "bob")

        assert registry.fetch_content_details(BOB, 1).success
        check = registry.verify_user_permissions(1, "bob").unwrap()
        assert check.is_owner
        assert not check.has_explicit_permission

    def test_explicit_grant_allows_read(self):
        """A granted row for a non-owner permits reading."""
        permissions = PermissionStore()
        registry = ContentRegistry(administrator=ADMIN, permissions=permissions)
        create(registry)
        registry.transfer_ownership(ALICE, 1, "bob")

        # alice is no longer the owner but still holds the creation grant
        record = registry.fetch_content_details(ALICE, 1).unwrap()
        assert record.creator == "bob"
        assert registry.fetch_content_details(
            CallContext(caller="carol", height=7), 1
        ).error == ErrorKind.VISIBILITY_BLOCKED

    def test_details_are_a_snapshot(self, registry):
        create(registry)
        record = registry.fetch_content_details(ALICE, 1).unwrap()
        record.labels.append("x")
        record.creator = "mallory"

        again = registry.fetch_content_details(ALICE, 1).unwrap()
        assert again.labels == ["a"]
        assert again.creator == "alice"

    def test_owner_missing(self, registry):
        assert registry.fetch_content_owner(1).error == ErrorKind.CONTENT_MISSING

    def test_existence_never_fails(self, registry):
        assert registry.check_content_existence(0) is False
        assert registry.check_content_existence(-1) is False

    def test_statistics(self, registry):
        """total_items is the sequence value, not the live count."""
        create(registry)
        create(registry)
        registry.delete_content(ALICE, 1)

        stats = registry.fetch_vault_statistics().unwrap()
        assert stats.total_items == 2
        assert stats.administrator == ADMIN
        assert len(registry) == 1


class TestPersistence:
    """Tests for registry persistence."""

    def test_state_survives_reload(self, temp_dir):
        registry1 = ContentRegistry(temp_dir, administrator=ADMIN)
        create(registry1)
        create(registry1)
        registry1.transfer_ownership(ALICE, 2, "bob")
        registry1.delete_content(ALICE, 1)

        registry2 = ContentRegistry(temp_dir)
        assert registry2.sequence == 2
        assert registry2.administrator == ADMIN
        assert not registry2.check_content_existence(1)
        assert registry2.fetch_content_owner(2).unwrap() == "bob"
        assert registry2.permissions.has_grant(2, "alice")
        assert create(registry2).unwrap() == 3

    def test_administrator_required_for_new_store(self, temp_dir):
        with pytest.raises(ValueError):
            ContentRegistry(temp_dir)

    def test_administrator_cannot_change(self, temp_dir):
        ContentRegistry(temp_dir, administrator=ADMIN)

        with pytest.raises(ValueError):
            ContentRegistry(temp_dir, administrator="someone-else")

        assert ContentRegistry(temp_dir, administrator=ADMIN).administrator == ADMIN
