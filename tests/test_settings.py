import json
import logging

from settings import DEFAULT_PORT, load_settings, resolve_log_level


def test_defaults_without_file_or_env(tmp_path) -> None:
    s = load_settings(tmp_path / "config.json", env={})
    assert s.port == DEFAULT_PORT == 3000
    assert s.link_ttl == 600.0
    assert s.links_file == "data/links.json"
    assert s.missing() == ["token", "guildId", "secret"]


def test_file_values_used(tmp_path) -> None:
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"token": "t", "guildId": "1", "port": 8080, "secret": "s"}))
    s = load_settings(path, env={})
    assert (s.token, s.guild_id, s.port, s.secret) == ("t", "1", 8080, "s")
    assert s.missing() == []


def test_environment_overrides_file(tmp_path) -> None:
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"token": "file", "port": 8080, "secret": "file"}))
    env = {"DISCORD_TOKEN": "env", "PORT": "9000", "BOT_SECRET": "env", "DISCORD_GUILD_ID": "77"}
    s = load_settings(path, env=env)
    assert (s.token, s.guild_id, s.port, s.secret) == ("env", "77", 9000, "env")


def test_broken_file_and_bad_port_fall_back(tmp_path) -> None:
    path = tmp_path / "config.json"
    path.write_text("{oops")
    s = load_settings(path, env={"PORT": "eighty"})
    assert s.port == 3000
    assert s.token == ""


def test_log_level_names() -> None:
    assert resolve_log_level("debug") == logging.DEBUG
    assert resolve_log_level(" WARNING ") == logging.WARNING
    assert resolve_log_level(None) == logging.INFO


def test_unknown_log_level_falls_back_to_info() -> None:
    assert resolve_log_level("verbose") == logging.INFO
    assert resolve_log_level("") == logging.INFO
