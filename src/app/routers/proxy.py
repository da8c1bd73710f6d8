"""INPE KML proxy: relays allow-listed remote KML so browsers and the
refresh engine avoid cross-origin restrictions.

Pure forwarding: status, body and content type are relayed verbatim.
"""

from __future__ import annotations

import httpx
from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse, Response
from loguru import logger

from app.config import settings
from firemap.hotspots.sources import is_allowed_address

router = APIRouter(prefix="/api", tags=["proxy"])

KML_MEDIA_TYPE = "application/vnd.google-earth.kml+xml"


@router.get("/inpe-kml")
async def proxy_inpe_kml(url: str | None = Query(default=None)):
    """Fetch an allow-listed INPE address and relay the response.

    400 if the address is missing or not allow-listed, the upstream status
    if upstream fails, 500 on any other fault.
    """
    if not is_allowed_address(url, settings.proxy_allowed_prefixes):
        return JSONResponse(
            status_code=400, content={"error": "URL inválida ou não permitida."}
        )

    try:
        async with httpx.AsyncClient() as client:
            resp = await client.get(
                url,
                headers={"User-Agent": settings.proxy_user_agent},
                timeout=settings.proxy_timeout,
                follow_redirects=True,
            )
    except Exception as e:
        logger.error(f"INPE proxy error ({url}): {e}")
        return JSONResponse(
            status_code=500,
            content={"error": "Erro interno do servidor ao buscar dados do INPE."},
        )

    if not resp.is_success:
        logger.warning(f"INPE fetch failed ({url}): {resp.status_code} {resp.reason_phrase}")
        return JSONResponse(
            status_code=resp.status_code,
            content={"error": f"Falha ao buscar dados do INPE: {resp.reason_phrase}"},
        )

    content_type = resp.headers.get("content-type") or KML_MEDIA_TYPE
    return Response(
        content=resp.content,
        status_code=200,
        headers={"Content-Type": content_type},
    )
