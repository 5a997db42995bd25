"""GET /api/sitemap -- XML sitemap rendered from the pre-generated URL list."""

import logging

from fastapi import APIRouter
from fastapi.responses import Response

from citybasic.errors import NotFound
from citybasic.sitemap import SitemapEntry, build_sitemap_xml, extract_urls, read_first_source

logger = logging.getLogger(__name__)

router = APIRouter(tags=["sitemap"])

NO_CACHE_HEADERS = {"Cache-Control": "no-cache, no-store, must-revalidate"}


@router.get("/api/sitemap")
def get_sitemap() -> Response:
    raw = read_first_source()
    if raw is None:
        logger.warning("sitemap_source_missing")
        raise NotFound("Sitemap source not found")

    entries = [SitemapEntry(loc=url) for url in extract_urls(raw)]
    return Response(
        content=build_sitemap_xml(entries),
        media_type="application/xml",
        headers=NO_CACHE_HEADERS,
    )
