"""
Start-up ordering in main.py: .env values must be in place before the
logging setup reads LOG_FILE / LOG_LEVEL.
"""
import importlib
import logging
import sys

import dotenv


def test_dotenv_loaded_before_logging_setup(tmp_path, monkeypatch) -> None:
    log_file = tmp_path / "custom" / "bridge.log"
    monkeypatch.delenv("LOG_FILE", raising=False)
    monkeypatch.delenv("LOG_LEVEL", raising=False)

    def fake_load_dotenv(*args, **kwargs):
        monkeypatch.setenv("LOG_FILE", str(log_file))
        monkeypatch.setenv("LOG_LEVEL", "warning")
        return True

    monkeypatch.setattr(dotenv, "load_dotenv", fake_load_dotenv)
    monkeypatch.delitem(sys.modules, "main", raising=False)

    root = logging.getLogger()
    before_handlers, before_level = list(root.handlers), root.level
    try:
        main = importlib.import_module("main")
        assert main.LOG_FILE == log_file
        assert log_file.parent.is_dir()
        assert root.level == logging.WARNING
    finally:
        for handler in root.handlers[:]:
            if handler not in before_handlers:
                root.removeHandler(handler)
                handler.close()
        root.setLevel(before_level)
        sys.modules.pop("main", None)
