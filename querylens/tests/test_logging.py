import json

from loguru import logger

from querylens.app.core import logging as ql_logging
from querylens.app.core.settings import settings


def test_sink_follows_settings(monkeypatch, tmp_path):
    target = tmp_path / "nested" / "ql.jsonl"
    monkeypatch.setattr(settings, "LOG_PATH", str(target))
    monkeypatch.setattr(settings, "LOG_LEVEL", "WARNING")

    assert ql_logging.init_logging() == str(target)
    logger.info("not_written")
    logger.warning("analysis_model_fallback", reason="missing_credential")
    logger.complete()

    lines = target.read_text().splitlines()
    logger.remove()
    assert len(lines) == 1
    record = json.loads(lines[0])["record"]
    assert record["message"] == "analysis_model_fallback"
    assert record["extra"]["reason"] == "missing_credential"
