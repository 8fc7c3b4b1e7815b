from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional

from lxml import etree

from app.services.supabase_helpers import utc_now

SITEMAP_NS = "http://www.sitemaps.org/schemas/sitemap/0.9"

STATIC_ROUTES = (
    "/",
    "/aims-scope",
    "/author-guidelines",
    "/archive",
    "/editorial-board",
    "/for-authors",
    "/for-librarians",
    "/for-readers",
)


def build_sitemap(base_url: str, volumes: Iterable[dict], *, now: Optional[datetime] = None) -> bytes:
    """
    生成 sitemap.xml

    中文注释:
    - 静态公开页面 + 每卷一个归档入口（weekly / 0.8）。
    - 卷没有独立页面，归档入口以 ?volume=<id> 区分。
    """
    lastmod = (now or utc_now()).date().isoformat()
    root = etree.Element(f"{{{SITEMAP_NS}}}urlset", nsmap={None: SITEMAP_NS})

    def _add(loc: str, *, changefreq: Optional[str] = None, priority: Optional[float] = None) -> None:
        url = etree.SubElement(root, f"{{{SITEMAP_NS}}}url")
        etree.SubElement(url, f"{{{SITEMAP_NS}}}loc").text = loc
        etree.SubElement(url, f"{{{SITEMAP_NS}}}lastmod").text = lastmod
        if changefreq:
            etree.SubElement(url, f"{{{SITEMAP_NS}}}changefreq").text = changefreq
        if priority is not None:
            etree.SubElement(url, f"{{{SITEMAP_NS}}}priority").text = f"{priority:.1f}"

    base = base_url.rstrip("/")
    for route in STATIC_ROUTES:
        _add(f"{base}{route}")
    for volume in volumes:
        if volume.get("id"):
            _add(f"{base}/archive?volume={volume['id']}", changefreq="weekly", priority=0.8)

    return etree.tostring(root, xml_declaration=True, encoding="UTF-8", pretty_print=True)
