from core.config import Settings


def test_settings_read_environment(monkeypatch) -> None:
    monkeypatch.setenv("HINT_PROVIDERS", "tests.fixtures.hint_examples")
    monkeypatch.setenv("METRICS_ENABLED", "false")
    monkeypatch.setenv("HINT_LOG_VERDICTS", "1")
    config = Settings()
    assert config.hint_providers == "tests.fixtures.hint_examples"
    assert config.metrics_enabled is False
    assert config.hint_log_verdicts is True


def test_settings_defaults(monkeypatch) -> None:
    monkeypatch.delenv("HINT_PROVIDERS", raising=False)
    config = Settings(_env_file=None)
    assert config.hint_providers is None
    assert config.metrics_port == 8004
