"""Tests for the spreadsheet collector transport."""

import json
from typing import Any, Dict, List

import pytest
import requests

from modules import transport as transport_module
from modules.transport import SheetsTransport, TransportError

URL = "https://script.google.com/macros/s/test/exec"


class FakeResponse:
    status_code = 200


@pytest.fixture
def posted(monkeypatch) -> List[Dict[str, Any]]:
    """Capture calls to requests.post instead of touching the network."""
    calls: List[Dict[str, Any]] = []

    def fake_post(url, **kwargs):
        calls.append({"url": url, **kwargs})
        return FakeResponse()

    monkeypatch.setattr(transport_module.requests, "post", fake_post)
    return calls


class TestSheetsTransport:
    """Tests for SheetsTransport."""

    def test_posts_json_body(self, posted) -> None:
        SheetsTransport(URL, timeout=5)({"respostaId": "1-abc", "fullName": "Maria Silva"})

        assert len(posted) == 1
        call = posted[0]
        assert call["url"] == URL
        assert call["headers"] == {"Content-Type": "application/json"}
        assert call["timeout"] == 5
        assert json.loads(call["data"].decode("utf-8")) == {
            "respostaId": "1-abc",
            "fullName": "Maria Silva",
        }

    def test_keeps_accents_in_body(self, posted) -> None:
        SheetsTransport(URL).send({"importancia": "Média importância"})
        assert "Média importância".encode("utf-8") in posted[0]["data"]

    def test_error_status_is_not_inspected(self, monkeypatch) -> None:
        class ServerError:
            status_code = 500

        monkeypatch.setattr(transport_module.requests, "post", lambda url, **kw: ServerError())
        SheetsTransport(URL).send({})

    @pytest.mark.parametrize(
        "exc", [requests.ConnectionError("offline"), requests.Timeout("slow")]
    )
    def test_network_failures_become_transport_errors(self, monkeypatch, exc) -> None:
        def failing_post(url, **kwargs):
            raise exc

        monkeypatch.setattr(transport_module.requests, "post", failing_post)
        with pytest.raises(TransportError):
            SheetsTransport(URL).send({})

    def test_uses_given_session(self) -> None:
        class FakeSession:
            def __init__(self) -> None:
                self.urls: List[str] = []

            def post(self, url, **kwargs):
                self.urls.append(url)
                return FakeResponse()

        session = FakeSession()
        SheetsTransport(URL, session=session).send({})
        assert session.urls == [URL]

    def test_url_required(self) -> None:
        with pytest.raises(ValueError):
            SheetsTransport("")
