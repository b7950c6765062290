import json
import logging

import pytest

from dbsession.database import DatabaseManager
from dbsession.exceptions import ConfigurationException
from dbsession.logging import JSONFormatter, SensitiveDataFilter, getLogger
from dbsession.session.locks import FileLock, LockStrategy, NativeLock, TableLock, lock_name, make_lock
from dbsession.support import Config, Crypto, EnvHelper


def test_config_runtime_values_are_case_insensitive():
    Config.set("session.LOCK_TIMEOUT", 5)

    assert Config.get("session.lock_timeout") == 5
    assert Config.get("SESSION.LOCK_TIMEOUT") == 5
    assert Config.has("session.LOCK_TIMEOUT")


def test_config_missing_file_returns_default():
    assert Config.get("nonexistent.KEY", "fallback") == "fallback"
    assert not Config.has("nonexistent.KEY")


def test_env_helper_typed_reads(monkeypatch):
    monkeypatch.setenv("DBSESSION_TEST_FLAG", "yes")
    monkeypatch.setenv("DBSESSION_TEST_INT", "42")
    monkeypatch.setenv("DBSESSION_TEST_BAD_INT", "forty-two")

    assert EnvHelper.get_bool("DBSESSION_TEST_FLAG") is True
    assert EnvHelper.get_int("DBSESSION_TEST_INT") == 42
    assert EnvHelper.get_int("DBSESSION_TEST_BAD_INT", 7) == 7
    assert EnvHelper.get("DBSESSION_TEST_MISSING", "x") == "x"


def test_database_url_falls_back_to_environment(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "mysql://user:pass@db:3306/app")

    manager = DatabaseManager()

    assert manager.database_url == "mysql://user:pass@db:3306/app"
    assert manager.is_mysql
    assert manager.safe_url() == "mysql://***@db:3306/app"
    assert "dbsession.session.models" in manager.models


def test_lock_name_is_short_and_deterministic():
    name = lock_name("abc")

    assert name == "session_" + Crypto.sha1("abc")
    assert len(name) == 48
    assert lock_name("abc") == name


def test_make_lock_selects_strategy(tmp_path):
    assert isinstance(make_lock("native"), NativeLock)
    assert isinstance(make_lock("fake-table"), TableLock)
    assert isinstance(make_lock(LockStrategy.FILE, lock_path=tmp_path), FileLock)

    with pytest.raises(ConfigurationException):
        make_lock("redis")


def test_sensitive_data_filter_redacts_secrets():
    record = logging.LogRecord(
        "dbsession.test", logging.INFO, __file__, 1,
        'config {"security_code": "s3cret"} url mysql://user:hunter2@db/app', None, None
    )
    record.security_code = "s3cret"

    SensitiveDataFilter().filter(record)

    assert "s3cret" not in record.msg
    assert "hunter2" not in record.msg
    assert record.security_code == "[REDACTED]"


def test_json_formatter_includes_extra_fields():
    logger = getLogger("dbsession.test")
    record = logger.makeRecord(
        logger.name, logging.WARNING, __file__, 1, "Session lock timed out", None, None,
        extra={"session_id": "abcd1234", "timeout": 5}
    )

    output = json.loads(JSONFormatter().format(record))

    assert output["message"] == "Session lock timed out"
    assert output["level"] == "WARNING"
    assert output["session_id"] == "abcd1234"
    assert output["timeout"] == 5


def test_setup_logger_writes_redacted_json(tmp_path):
    from dbsession.logging import LoggerConfig

    logger = LoggerConfig.setup_logger("dbsession.test_setup", log_path=tmp_path, file_name="session")
    try:
        logger.warning("Session read failed", extra={"session_id": "abcd1234", "security_code": "s3cret"})
        for handler in logger.handlers:
            handler.flush()

        line = (tmp_path / "session.log").read_text().strip().splitlines()[-1]
        output = json.loads(line)

        assert output["session_id"] == "abcd1234"
        assert output["security_code"] == "[REDACTED]"
    finally:
        for handler in list(logger.handlers):
            handler.close()
            logger.removeHandler(handler)
