"""
Tests for the ITIL gateway implementations.
"""
from unittest.mock import MagicMock

import requests

from app.services.itil_gateway import (
    HttpItilGateway,
    SimulatedItilGateway,
    build_itil_gateway,
    get_itil_gateway,
)


def _response(status_code=200, body=None):
    response = MagicMock()
    response.status_code = status_code
    response.ok = 200 <= status_code < 300
    if body is None:
        response.json.side_effect = ValueError("no json")
    else:
        response.json.return_value = body
    return response


def test_simulated_gateway_always_succeeds():
    gateway = SimulatedItilGateway()

    result = gateway.send("apply", {"id": 1, "title": "Patch"})

    assert result.success is True
    assert gateway.sent == [("apply", {"id": 1, "title": "Patch"})]


def test_http_gateway_posts_payload():
    session = MagicMock()
    session.post.return_value = _response(201, {"reference": "CHG0012345"})
    gateway = HttpItilGateway("https://itil.example.com/api/", token="secret", timeout=5, session=session)

    result = gateway.send("execute", {"changeId": 7})

    assert result.success is True
    assert result.reference == "CHG0012345"
    session.post.assert_called_once_with(
        "https://itil.example.com/api/execute",
        json={"changeId": 7},
        headers={"Content-Type": "application/json", "Authorization": "Bearer secret"},
        timeout=5,
    )


def test_http_gateway_non_json_body():
    session = MagicMock()
    session.post.return_value = _response(204)

    result = HttpItilGateway("https://itil.example.com", session=session).send("apply", {"id": 1})

    assert result.success is True
    assert result.reference is None


def test_http_gateway_error_status():
    session = MagicMock()
    session.post.return_value = _response(503)

    result = HttpItilGateway("https://itil.example.com", session=session).send("apply", {"id": 1})

    assert result.success is False
    assert "503" in result.message


def test_http_gateway_transport_error():
    session = MagicMock()
    session.post.side_effect = requests.ConnectionError("connection refused")

    result = HttpItilGateway("https://itil.example.com", session=session).send("done", {"changeId": 1})

    assert result.success is False
    assert "unreachable" in result.message


def test_factory_uses_configured_endpoint(monkeypatch):
    from app.core.config import settings

    monkeypatch.setattr(settings, "ITIL_API_URL", "")
    assert isinstance(build_itil_gateway(), SimulatedItilGateway)

    monkeypatch.setattr(settings, "ITIL_API_URL", "https://itil.example.com")
    gateway = build_itil_gateway()
    assert isinstance(gateway, HttpItilGateway)
    assert gateway.base_url == "https://itil.example.com"


def test_http_gateway_closes_own_session(monkeypatch):
    session = MagicMock()
    monkeypatch.setattr(requests, "Session", lambda: session)

    HttpItilGateway("https://itil.example.com").close()

    session.close.assert_called_once_with()


def test_http_gateway_leaves_injected_session_open():
    session = MagicMock()

    HttpItilGateway("https://itil.example.com", session=session).close()

    session.close.assert_not_called()


def test_dependency_closes_gateway_after_request(monkeypatch):
    from app.core.config import settings

    session = MagicMock()
    monkeypatch.setattr(requests, "Session", lambda: session)
    monkeypatch.setattr(settings, "ITIL_API_URL", "https://itil.example.com")

    dependency = get_itil_gateway()
    gateway = next(dependency)
    assert isinstance(gateway, HttpItilGateway)
    session.close.assert_not_called()

    dependency.close()

    session.close.assert_called_once_with()
