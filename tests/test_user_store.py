"""
Tests du magasin d'utilisateurs (collection MongoDB "users").
"""

from unittest.mock import patch

import pytest
from bson import ObjectId

from errors import ConflictError
from models.user import UserStore, canonical_id, page_count
from schemas import UserRole


def test_create_hashes_password_and_sets_defaults(store):
    user = store.create("John@Example.com ", "John Doe", "password123")

    assert user["email"] == "john@example.com"
    assert user["password_hash"] != "password123"
    assert len(user["password_hash"]) > 20
    assert user["role"] == "user"
    assert user["is_active"] is True
    assert user["created_at"] is not None
    assert user["updated_at"] is not None
    assert isinstance(user["_id"], ObjectId)


def test_create_admin_role(store):
    user = store.create("admin@example.com", "Admin", "password123", role=UserRole.admin)
    assert user["role"] == "admin"


def test_create_rejects_invalid_role(store):
    with pytest.raises(ValueError):
        store.create("john@example.com", "John", "password123", role="superuser")


def test_create_duplicate_email_is_case_insensitive(store):
    store.create("john@example.com", "John", "password123")
    with pytest.raises(ConflictError):
        store.create("JOHN@example.com", "Other John", "password456")


def test_duplicate_email_conflicts_with_inactive_account(store):
    user = store.create("john@example.com", "John", "password123")
    store.soft_delete(user["_id"])
    with pytest.raises(ConflictError):
        store.create("john@example.com", "John Again", "password123")


def test_unique_index_enforces_email_on_concurrent_insert(store):
    store.create("john@example.com", "John", "password123")
    # Simule une inscription concurrente qui passe le contrôle applicatif
    with patch.object(UserStore, "email_taken", return_value=False):
        with pytest.raises(ConflictError):
            store.create("john@example.com", "John bis", "password123")


def test_verify_password(store):
    user = store.create("john@example.com", "John", "password123")
    assert store.verify_password(user, "password123") is True
    assert store.verify_password(user, "wrongpassword") is False


def test_find_active_lookups_exclude_soft_deleted(store):
    user = store.create("john@example.com", "John", "password123")
    assert store.find_by_email_active("john@example.com") is not None
    assert store.find_by_id_active(str(user["_id"])) is not None

    assert store.soft_delete(str(user["_id"])) is True

    assert store.find_by_email_active("john@example.com") is None
    assert store.find_by_id_active(str(user["_id"])) is None
    # Le document existe toujours
    assert store.find_by_email("john@example.com")["is_active"] is False


def test_find_by_id_with_invalid_id_returns_none(store):
    assert store.find_by_id_active("not-an-object-id") is None
    assert store.find_by_id_active(str(ObjectId())) is None


def test_soft_delete_twice_returns_false(store):
    user = store.create("john@example.com", "John", "password123")
    assert store.soft_delete(user["_id"]) is True
    assert store.soft_delete(user["_id"]) is False


def test_email_taken_excludes_given_id(store):
    user = store.create("john@example.com", "John", "password123")
    assert store.email_taken("john@example.com") is True
    assert store.email_taken("john@example.com", exclude_id=str(user["_id"])) is False
    assert store.email_taken("jane@example.com") is False


def test_update_fields_ignores_protected_fields(store):
    user = store.create("john@example.com", "John", "password123")
    updated = store.update_fields(
        str(user["_id"]),
        {"name": "Johnny", "password_hash": "plain", "created_at": None},
    )
    assert updated["name"] == "Johnny"
    assert updated["password_hash"] == user["password_hash"]
    assert updated["created_at"] is not None


def test_update_fields_on_missing_user_returns_none(store):
    assert store.update_fields(str(ObjectId()), {"name": "Ghost"}) is None
    assert store.update_fields("bad-id", {"name": "Ghost"}) is None


def test_set_password_rehashes(store):
    user = store.create("john@example.com", "John", "password123")
    assert store.set_password(str(user["_id"]), "newpassword") is True

    reloaded = store.find_by_id_active(str(user["_id"]))
    assert store.verify_password(reloaded, "newpassword") is True
    assert store.verify_password(reloaded, "password123") is False


def test_list_active_paginates_newest_first(store):
    for i in range(5):
        store.create(f"user{i}@example.com", f"User {i}", "password123")

    docs, total = store.list_active(page=1, limit=2)
    assert total == 5
    assert [d["email"] for d in docs] == ["user4@example.com", "user3@example.com"]
    assert all("password_hash" not in d for d in docs)

    docs, _ = store.list_active(page=3, limit=2)
    assert [d["email"] for d in docs] == ["user0@example.com"]


def test_list_active_search_and_inactive_filter(store):
    store.create("alice@example.com", "Alice Martin", "password123")
    bob = store.create("bob@example.com", "Bob", "password123")
    store.create("carol@sample.org", "Carol", "password123")
    store.soft_delete(bob["_id"])

    docs, total = store.list_active(search="EXAMPLE")
    assert total == 1
    assert docs[0]["email"] == "alice@example.com"

    docs, total = store.list_active(search="martin")
    assert total == 1


def test_list_active_search_is_literal(store):
    store.create("alice@example.com", "Alice", "password123")
    docs, total = store.list_active(search=".*")
    assert total == 0
    assert docs == []


def test_ensure_admin_creates_then_promotes(store):
    doc, created = store.ensure_admin("boss@example.com", "Boss", "password123")
    assert created is True
    assert doc["role"] == "admin"

    user = store.create("jane@example.com", "Jane", "password123")
    store.soft_delete(user["_id"])
    doc, created = store.ensure_admin("jane@example.com", "Jane", "newpassword")
    assert created is False
    assert doc["role"] == "admin"
    assert doc["is_active"] is True
    assert store.verify_password(doc, "newpassword") is True


def test_page_count():
    assert page_count(0, 10) == 0
    assert page_count(10, 10) == 1
    assert page_count(11, 10) == 2


def test_canonical_id():
    oid = ObjectId()
    assert canonical_id(str(oid).upper()) == str(oid)
    assert canonical_id(oid) == str(oid)
    assert canonical_id("not-an-id") == "not-an-id"
