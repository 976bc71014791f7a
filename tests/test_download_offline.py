import pytest
import requests

import imunidade.tools.download as download


class _FakeResponse:
    def __init__(self, status_code: int, text: str = ""):
        self.status_code = status_code
        self.text = text
        self.encoding = "utf-8"


@pytest.fixture(autouse=True)
def _no_sleep(monkeypatch):
    monkeypatch.setattr(download, "_sleep_backoff", lambda attempt: None)


def _serve(monkeypatch, responses):
    """Substitui requests.get por uma fila de respostas/exceções."""
    calls = []

    def fake_get(url, timeout=None):
        calls.append(url)
        item = responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    monkeypatch.setattr(requests, "get", fake_get, raising=True)
    return calls


def test_fetch_ok(monkeypatch):
    calls = _serve(monkeypatch, [_FakeResponse(200, "a,b\n1,2\n")])
    assert download.fetch_csv("https://exemplo.com/x.csv", run_id="t-dl") == "a,b\n1,2\n"
    assert len(calls) == 1


def test_fetch_retries_5xx_then_succeeds(monkeypatch):
    calls = _serve(monkeypatch, [_FakeResponse(503), _FakeResponse(200, "ok")])
    assert download.fetch_csv("https://exemplo.com/x.csv") == "ok"
    assert len(calls) == 2


def test_fetch_gives_up_after_retries(monkeypatch):
    total = download.API_MAX_RETRIES + 1
    calls = _serve(monkeypatch, [_FakeResponse(429) for _ in range(total)])
    with pytest.raises(RuntimeError):
        download.fetch_csv("https://exemplo.com/x.csv")
    assert len(calls) == total


def test_fetch_does_not_retry_404(monkeypatch):
    calls = _serve(monkeypatch, [_FakeResponse(404), _FakeResponse(200, "nunca")])
    with pytest.raises(RuntimeError, match="404"):
        download.fetch_csv("https://exemplo.com/x.csv")
    assert len(calls) == 1


def test_fetch_connection_errors(monkeypatch):
    total = download.API_MAX_RETRIES + 1
    _serve(monkeypatch, [requests.ConnectionError("offline") for _ in range(total)])
    with pytest.raises(RuntimeError, match="offline"):
        download.fetch_csv("https://exemplo.com/x.csv")


def test_fetch_empty_url():
    with pytest.raises(ValueError):
        download.fetch_csv("  ")


def test_read_local_csv(states_csv_path, states_csv):
    assert download.read_local_csv(str(states_csv_path)) == states_csv
    with pytest.raises(FileNotFoundError):
        download.read_local_csv(str(states_csv_path) + ".nope")
