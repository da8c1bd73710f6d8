"""Unit tests for the INPE KML proxy router.

Upstream HTTP is mocked by patching httpx.AsyncClient (no external calls).
"""
from __future__ import annotations

from unittest.mock import AsyncMock, patch

import httpx
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.routers.proxy import KML_MEDIA_TYPE, router

ALLOWED = "https://dataserver-coids.inpe.br/queimadas/queimadas/focos/kml/estados-48h/focos_frentes_MT.kml"


def _make_app():
    app = FastAPI()
    app.include_router(router)
    return app


def _mock_client(response=None, side_effect=None):
    mock_client = AsyncMock()
    mock_client.get = AsyncMock(return_value=response, side_effect=side_effect)
    mock_client.__aenter__ = AsyncMock(return_value=mock_client)
    mock_client.__aexit__ = AsyncMock(return_value=False)
    return mock_client


@pytest.mark.unit
class TestProxyValidation:
    """Disallowed addresses are rejected before any upstream call."""

    @pytest.mark.parametrize("query", [
        "",
        "?url=",
        "?url=https://evil.example.com/x.kml",
        "?url=http://dataserver-coids.inpe.br/x.kml",
    ])
    def test_rejected(self, query):
        mock_client = _mock_client()
        with patch("app.routers.proxy.httpx.AsyncClient", return_value=mock_client):
            resp = TestClient(_make_app()).get(f"/api/inpe-kml{query}")
        assert resp.status_code == 400
        assert resp.json() == {"error": "URL inválida ou não permitida."}
        mock_client.get.assert_not_called()


@pytest.mark.unit
class TestProxyRelay:
    """GET /api/inpe-kml: upstream response relayed."""

    def test_success_relays_body_and_type(self):
        upstream = httpx.Response(
            200,
            content=b"<kml></kml>",
            headers={"content-type": "application/xml"},
        )
        mock_client = _mock_client(upstream)
        with patch("app.routers.proxy.httpx.AsyncClient", return_value=mock_client):
            resp = TestClient(_make_app()).get("/api/inpe-kml", params={"url": ALLOWED})
        assert resp.status_code == 200
        assert resp.content == b"<kml></kml>"
        assert resp.headers["content-type"] == "application/xml"

        args, kwargs = mock_client.get.call_args
        assert args[0] == ALLOWED
        assert kwargs["follow_redirects"] is True
        assert "User-Agent" in kwargs["headers"]

    def test_missing_content_type_defaults_to_kml(self):
        mock_client = _mock_client(httpx.Response(200, content=b"<kml/>"))
        with patch("app.routers.proxy.httpx.AsyncClient", return_value=mock_client):
            resp = TestClient(_make_app()).get("/api/inpe-kml", params={"url": ALLOWED})
        assert resp.status_code == 200
        assert resp.headers["content-type"] == KML_MEDIA_TYPE

    @pytest.mark.parametrize("status,reason", [(404, "Not Found"), (503, "Service Unavailable")])
    def test_upstream_status_relayed(self, status, reason):
        mock_client = _mock_client(httpx.Response(status))
        with patch("app.routers.proxy.httpx.AsyncClient", return_value=mock_client):
            resp = TestClient(_make_app()).get("/api/inpe-kml", params={"url": ALLOWED})
        assert resp.status_code == status
        assert resp.json() == {"error": f"Falha ao buscar dados do INPE: {reason}"}

    def test_transport_failure_is_500(self):
        mock_client = _mock_client(side_effect=httpx.ConnectError("refused"))
        with patch("app.routers.proxy.httpx.AsyncClient", return_value=mock_client):
            resp = TestClient(_make_app()).get("/api/inpe-kml", params={"url": ALLOWED})
        assert resp.status_code == 500
        assert resp.json() == {"error": "Erro interno do servidor ao buscar dados do INPE."}

    def test_unexpected_failure_is_500(self):
        mock_client = _mock_client(side_effect=RuntimeError("boom"))
        with patch("app.routers.proxy.httpx.AsyncClient", return_value=mock_client):
            resp = TestClient(_make_app()).get("/api/inpe-kml", params={"url": ALLOWED})
        assert resp.status_code == 500
