"""
Tests for the session store and the persisted key-value stores.
"""

import json

import pytest

from companion_client.core.session import Identity, SessionState, SessionStore
from companion_client.core.storage import JsonFileStore, KeyValueStore, MemoryStore, StorageKeys

from ..helpers.fakes import FailingStore


class TestSessionState:
    """Tests for the authenticated invariant."""

    def test_empty_state_is_unauthenticated(self):
        assert not SessionState().authenticated

    def test_credential_without_identity_is_unauthenticated(self):
        assert not SessionState(credential="t").authenticated

    def test_identity_without_credential_is_unauthenticated(self):
        assert not SessionState(identity=Identity(id=1)).authenticated

    def test_both_present_is_authenticated(self):
        state = SessionState(credential="t", identity=Identity(id=1))
        assert state.authenticated
        assert state.identity_id == 1


class TestIdentity:
    """Tests for identity parsing."""

    def test_parses_camel_case(self):
        identity = Identity.model_validate({
            "id": 5, "name": "Ann", "avatarUrl": "a.png", "points": 30, "createdAt": "2024-01-01",
        })
        assert identity.avatar_url == "a.png"
        assert identity.created_at == "2024-01-01"

    def test_storage_form_uses_camel_case(self):
        data = Identity(id=5, avatar_url="a.png").to_storage()
        assert data == {"id": 5, "avatarUrl": "a.png", "points": 0}


class TestSessionStore:
    """Tests for SessionStore."""

    def test_set_state_merges(self, session_store):
        session_store.set_state(credential="t1")
        session_store.set_state(identity=Identity(id=2))

        state = session_store.get_state()
        assert state.credential == "t1"
        assert state.identity_id == 2
        assert state.authenticated

    def test_snapshot_is_not_mutated_by_later_updates(self, session_store):
        session_store.set_state(credential="t1")
        snapshot = session_store.get_state()

        session_store.set_state(credential="t2")

        assert snapshot.credential == "t1"

    def test_set_state_mirrors_to_store(self, session_store, store):
        session_store.set_state(credential="t1", identity=Identity(id=3, name="Bo"))

        assert store.get(StorageKeys.TOKEN) == "t1"
        assert store.get(StorageKeys.USER_INFO) == {"id": 3, "name": "Bo", "points": 0}
        assert store.get(StorageKeys.USER_ID) == 3

    def test_mirror_failure_does_not_fail_update(self, caplog):
        session_store = SessionStore(FailingStore([StorageKeys.TOKEN]))

        session_store.set_state(credential="t1", identity=Identity(id=1))

        assert session_store.credential == "t1"
        assert "Failed to persist session key 'token'" in caplog.text

    def test_create_restores_persisted_session(self, store):
        store.set(StorageKeys.TOKEN, "persisted")
        store.set(StorageKeys.USER_INFO, {"id": 9, "name": "Cy"})

        state = SessionStore.create(store).get_state()

        assert state.credential == "persisted"
        assert state.identity.name == "Cy"
        assert state.authenticated

    def test_create_discards_unreadable_identity(self, store):
        store.set(StorageKeys.TOKEN, "persisted")
        store.set(StorageKeys.USER_INFO, {"name": "no id"})

        state = SessionStore.create(store).get_state()

        assert state.credential == "persisted"
        assert state.identity is None
        assert not state.authenticated

    def test_clear_resets_and_removes_mirror(self, session_store, store):
        session_store.set_state(credential="t1", identity=Identity(id=1))
        store.set(StorageKeys.HOME_CHARACTER, {"characterId": 1})

        session_store.clear()

        assert session_store.get_state() == SessionState()
        assert StorageKeys.TOKEN not in store
        assert StorageKeys.USER_INFO not in store
        assert StorageKeys.USER_ID not in store
        assert StorageKeys.HOME_CHARACTER in store

    def test_listeners_see_completed_state(self, session_store):
        seen = []
        unsubscribe = session_store.subscribe(lambda state: seen.append(state))

        session_store.set_state(credential="t1", identity=Identity(id=1))
        unsubscribe()
        session_store.clear()

        assert len(seen) == 1
        assert seen[0].authenticated

    def test_failing_listener_does_not_break_update(self, session_store):
        def explode(state):
            raise RuntimeError("listener bug")

        session_store.subscribe(explode)
        session_store.set_state(credential="t1")

        assert session_store.credential == "t1"


class TestStores:
    """Tests for the key-value store implementations."""

    def test_memory_store_round_trip(self):
        store = MemoryStore()
        store.set("a", {"b": 1})
        assert store.get("a") == {"b": 1}
        store.remove("a")
        store.remove("a")
        assert store.get("a") is None

    def test_implementations_satisfy_protocol(self, tmp_path):
        assert isinstance(MemoryStore(), KeyValueStore)
        assert isinstance(JsonFileStore(tmp_path / "s.json"), KeyValueStore)

    def test_json_store_survives_restart(self, tmp_path):
        path = tmp_path / "nested" / "storage.json"
        JsonFileStore(path).set(StorageKeys.TOKEN, "t1")

        reopened = JsonFileStore(path)

        assert reopened.get(StorageKeys.TOKEN) == "t1"
        assert json.loads(path.read_text(encoding="utf-8")) == {"token": "t1"}

    def test_json_store_remove_persists(self, tmp_path):
        path = tmp_path / "storage.json"
        store = JsonFileStore(path)
        store.set("a", 1)
        store.set("b", 2)
        store.remove("a")

        assert JsonFileStore(path).get("a") is None
        assert JsonFileStore(path).get("b") == 2

    @pytest.mark.parametrize("content", ["not json", "[1, 2]"])
    def test_json_store_ignores_unreadable_file(self, tmp_path, content):
        path = tmp_path / "storage.json"
        path.write_text(content, encoding="utf-8")

        assert JsonFileStore(path).get("anything") is None

    def test_session_restores_from_json_store(self, tmp_path):
        path = tmp_path / "storage.json"
        SessionStore.create(JsonFileStore(path)).set_state(credential="t1", identity=Identity(id=4))

        restored = SessionStore.create(JsonFileStore(path)).get_state()

        assert restored.credential == "t1"
        assert restored.identity_id == 4
