import logging
import uuid

from src.logging_setup import get_logger


def _fresh_name():
    return f"test_logger_{uuid.uuid4().hex[:8]}"


def test_logs_dir_comes_from_config(tmp_path, monkeypatch):
    monkeypatch.setenv("LOGS_DIR", str(tmp_path / "from_env"))
    logger = get_logger(_fresh_name(), "component.log")
    logger.info("hello")

    assert (tmp_path / "from_env" / "component.log").read_text(encoding="utf-8").strip().endswith("INFO hello")


def test_explicit_logs_dir_and_single_handler(tmp_path):
    name = _fresh_name()
    first = get_logger(name, "component.log", logs_dir=str(tmp_path))
    second = get_logger(name, "component.log", logs_dir=str(tmp_path))

    assert first is second
    assert len(first.handlers) == 1
    assert isinstance(first.handlers[0], logging.FileHandler)
    assert first.propagate is False
