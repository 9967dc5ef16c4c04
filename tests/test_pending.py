import pytest

from errors import MissingFieldsError
from linking.pending import PendingLinkRegistry


def test_register_sets_ten_minute_expiry() -> None:
    reg = PendingLinkRegistry()
    entry = reg.register("ABC123", "player-1", "Steve", now=1000.0)
    assert entry.expires_at == 1600.0
    assert entry.name == "Steve"
    assert reg.resolve("ABC123") is entry


def test_name_defaults_to_unknown() -> None:
    reg = PendingLinkRegistry()
    assert reg.register("ABC123", "player-1").name == "unknown"
    assert reg.register("ABC124", "player-2", "").name == "unknown"


@pytest.mark.parametrize("code,uuid", [(None, "player-1"), ("", "player-1"), ("ABC", None), ("ABC", "")])
def test_register_requires_code_and_uuid(code, uuid) -> None:
    reg = PendingLinkRegistry()
    with pytest.raises(MissingFieldsError):
        reg.register(code, uuid)
    assert len(reg) == 0


def test_reregistering_a_code_overwrites() -> None:
    reg = PendingLinkRegistry()
    reg.register("ABC123", "player-1", now=0.0)
    reg.register("ABC123", "player-2", now=5.0)
    entry = reg.resolve("ABC123")
    assert entry.uuid == "player-2"
    assert entry.expires_at == 605.0
    assert len(reg) == 1


def test_resolve_does_not_consume() -> None:
    reg = PendingLinkRegistry()
    reg.register("ABC123", "player-1")
    reg.resolve("ABC123")
    assert "ABC123" in reg
    reg.consume("ABC123")
    assert reg.resolve("ABC123") is None
    reg.consume("ABC123")   # absent is fine


def test_expiry_is_strictly_after_deadline() -> None:
    entry = PendingLinkRegistry(ttl=10).register("C", "u", now=0.0)
    assert not entry.is_expired(10.0)
    assert entry.is_expired(10.001)
