import json
from pathlib import Path

import pytest

from linking.store import IdentityMapStore


def test_load_missing_file_starts_empty_and_creates_dir(tmp_path) -> None:
    store = IdentityMapStore(tmp_path / "data" / "links.json")
    store.load()
    assert len(store) == 0
    assert (tmp_path / "data").is_dir()


def test_save_writes_flat_object(tmp_path) -> None:
    path = tmp_path / "links.json"
    store = IdentityMapStore(path)
    store.load()
    store.set("player-1", "disc-99")
    store.save()
    assert json.loads(path.read_text()) == {"player-1": "disc-99"}

    reloaded = IdentityMapStore(path)
    reloaded.load()
    assert reloaded.get("player-1") == "disc-99"


def test_corrupt_file_loads_empty(tmp_path) -> None:
    path = tmp_path / "links.json"
    path.write_text("{not json")
    store = IdentityMapStore(path)
    store.load()
    assert store.snapshot() == {}


def test_set_returns_previous_and_restore_undoes(tmp_path) -> None:
    store = IdentityMapStore(tmp_path / "links.json")
    assert store.set("player-1", "a") is None
    assert store.set("player-1", "b") == "a"
    store.restore("player-1", "a")
    assert store.get("player-1") == "a"
    store.restore("player-1", None)
    assert "player-1" not in store


def test_failed_replace_removes_tmp_file(tmp_path, monkeypatch) -> None:
    path = tmp_path / "links.json"
    store = IdentityMapStore(path)
    store.set("player-1", "disc-99")

    def refuse(self, target):
        raise PermissionError("read-only target")

    monkeypatch.setattr(Path, "replace", refuse)
    with pytest.raises(OSError):
        store.save()
    assert not (tmp_path / "links.tmp").exists()
    assert not path.exists()
