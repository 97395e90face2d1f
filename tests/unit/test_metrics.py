from core import metrics
from core.config import settings


def test_start_metrics_server_once(monkeypatch) -> None:
    calls = []
    monkeypatch.setattr(settings, "metrics_enabled", True)
    monkeypatch.setattr(metrics, "_metrics_started", False)
    monkeypatch.setattr(metrics, "start_http_server", lambda port, addr: calls.append((port, addr)))
    metrics.start_metrics_server()
    metrics.start_metrics_server(9100)
    assert calls == [(settings.metrics_port, settings.metrics_host)]


def test_start_metrics_server_survives_bind_error(monkeypatch) -> None:
    def refuse(port, addr):
        raise OSError("address in use")

    monkeypatch.setattr(settings, "metrics_enabled", True)
    monkeypatch.setattr(metrics, "_metrics_started", False)
    monkeypatch.setattr(metrics, "start_http_server", refuse)
    metrics.start_metrics_server(9100)
    assert metrics._metrics_started is False


def test_start_metrics_server_disabled(monkeypatch) -> None:
    monkeypatch.setattr(settings, "metrics_enabled", False)
    monkeypatch.setattr(metrics, "_metrics_started", False)
    monkeypatch.setattr(metrics, "start_http_server", lambda port, addr: None)
    metrics.start_metrics_server()
    assert metrics._metrics_started is False
