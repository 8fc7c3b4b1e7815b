from datetime import datetime, timezone

from lxml import etree

from app.services.sitemap_service import SITEMAP_NS, STATIC_ROUTES, build_sitemap

NS = {"sm": SITEMAP_NS}


def test_build_sitemap_static_routes_and_volumes():
    xml = build_sitemap(
        "https://journal.example.org/",
        [{"id": "v1"}, {"id": None}, {"id": "v2"}],
        now=datetime(2024, 6, 1, tzinfo=timezone.utc),
    )
    assert xml.startswith(b"<?xml")

    root = etree.fromstring(xml)
    locs = [e.text for e in root.findall("sm:url/sm:loc", NS)]
    assert len(locs) == len(STATIC_ROUTES) + 2
    assert locs[0] == "https://journal.example.org/"
    assert "https://journal.example.org/archive?volume=v1" in locs

    archive = root.findall("sm:url", NS)[-1]
    assert archive.findtext("sm:changefreq", namespaces=NS) == "weekly"
    assert archive.findtext("sm:priority", namespaces=NS) == "0.8"
    assert archive.findtext("sm:lastmod", namespaces=NS) == "2024-06-01"
