"""Sitemap rendering and URL collection."""

from citybasic.sitemap import SitemapEntry, build_sitemap_xml, collect_site_urls, extract_urls
from citybasic.tests.conftest import make_city, write_city


def test_build_escapes_locs():
    xml = build_sitemap_xml([SitemapEntry(loc="https://x.test/a?b=1&c=<2>")])
    assert xml.startswith('<?xml version="1.0" encoding="UTF-8"?>')
    assert "<loc>https://x.test/a?b=1&amp;c=&lt;2&gt;</loc>" in xml
    assert "<changefreq>weekly</changefreq>" in xml


def test_build_empty():
    xml = build_sitemap_xml([])
    assert "<url>" not in xml
    assert xml.rstrip().endswith("</urlset>")


def test_extract_urls_keeps_http_tokens():
    raw = "https://a.test/\n\thttp://b.test/x  <urlset> ftp://c.test\n"
    assert extract_urls(raw) == ["https://a.test/", "http://b.test/x"]


def test_collect_site_urls(tmp_path):
    write_city(tmp_path, make_city("paris"))
    write_city(tmp_path, make_city("paris", name="Paris FR"), lang="fr")
    (tmp_path / "broken.json").write_text("{", encoding="utf-8")

    entries = collect_site_urls(tmp_path, "https://citybasic.com/", ["en", "fr", "ja"], "en")
    by_loc = {e.loc: e.priority for e in entries}

    assert by_loc["https://citybasic.com/"] == "1.0"
    assert by_loc["https://citybasic.com/city/paris"] == "0.9"
    assert by_loc["https://citybasic.com/city/paris/louvre"] == "0.8"
    assert by_loc["https://citybasic.com/city/paris/croissant"] == "0.8"
    assert by_loc["https://citybasic.com/fr/city/paris"] == "0.9"
    assert not any("/ja/" in loc for loc in by_loc)
    assert len(entries) == 7
