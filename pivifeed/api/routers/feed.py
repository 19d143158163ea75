from fastapi import APIRouter
from fastapi.responses import PlainTextResponse, Response

from pivifeed.config import get_settings
from pivifeed.services.crawl.pipeline import write_feed_file
from pivifeed.services.feed_service import (
    STATUS_NO_ARTICLES,
    STATUS_ORIGIN_UNREACHABLE,
    generate_feed,
)

router = APIRouter(tags=["feed"])

RSS_MEDIA_TYPE = "application/rss+xml; charset=utf-8"


@router.get("/rss.xml")
def api_get_rss():
    settings = get_settings()
    result = generate_feed(settings)
    if result.status == STATUS_NO_ARTICLES:
        return PlainTextResponse("No se encontraron artículos para generar RSS", status_code=404)
    if result.status == STATUS_ORIGIN_UNREACHABLE:
        return PlainTextResponse("No se pudo contactar con el sitio de origen", status_code=502)
    if not result.ok:
        return PlainTextResponse("Error generando RSS", status_code=500)
    # A failed write is logged by the sink; the feed is still served
    write_feed_file(result.xml, settings.output_path)
    return Response(content=result.xml, media_type=RSS_MEDIA_TYPE)


@router.get("/health")
def api_health():
    return {"ok": True}
