import logging

from sessionly.logging_config import DEBUG_FORMAT, DEFAULT_FORMAT, QuietPathFilter, get_logging_config


def access_record(method: str, path: str, name: str = "uvicorn.access") -> logging.LogRecord:
    return logging.LogRecord(
        name, logging.INFO, __file__, 1, '%s - "%s %s HTTP/%s" %d', ("127.0.0.1:5000", method, path, "1.1", 200), None
    )


class TestQuietPathFilter:
    """Test access line suppression."""

    def test_drops_health_probe(self):
        assert QuietPathFilter().filter(access_record("GET", "/health")) is False

    def test_drops_health_probe_with_query(self):
        assert QuietPathFilter().filter(access_record("GET", "/health?full=1")) is False

    def test_keeps_session_routes(self):
        quiet = QuietPathFilter()

        assert quiet.filter(access_record("GET", "/session")) is True
        assert quiet.filter(access_record("GET", "/healthz")) is True
        assert quiet.filter(access_record("POST", "/health")) is True

    def test_keeps_other_loggers(self):
        assert QuietPathFilter().filter(access_record("GET", "/health", name="sessionly.main")) is True

    def test_preformatted_message(self):
        record = logging.LogRecord(
            "uvicorn.access", logging.INFO, __file__, 1, '127.0.0.1:5000 - "GET /health HTTP/1.1" 200', None, None
        )

        assert QuietPathFilter().filter(record) is False

    def test_custom_paths(self):
        quiet = QuietPathFilter(["/ready"])

        assert quiet.filter(access_record("GET", "/ready")) is False
        assert quiet.filter(access_record("GET", "/health")) is True


def test_logging_config_levels():
    config = get_logging_config("debug")

    assert config["root"]["level"] == "DEBUG"
    assert {name: logger["level"] for name, logger in config["loggers"].items()} == {
        "uvicorn": "DEBUG",
        "uvicorn.access": "DEBUG",
        "sessionly": "DEBUG",
    }
    assert config["formatters"]["default"]["format"] == DEBUG_FORMAT
    assert get_logging_config()["formatters"]["default"]["format"] == DEFAULT_FORMAT


def test_logging_config_quiet_paths():
    config = get_logging_config(quiet_paths=["/ready"])

    assert config["filters"]["quiet_paths"]["paths"] == ("/ready",)
    assert config["handlers"]["access"]["filters"] == ["quiet_paths"]
