import requests

from bankid_mdx.sitemap import fetch_sitemap_urls, parse_sitemap
from conftest import FakeResponse, FakeSession

SITEMAP_URL = "https://developers.bankid.com/sitemap.xml"
BASE = "https://developers.bankid.com/"

SITEMAP = b"""<?xml version="1.0" encoding="UTF-8"?>
<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">
  <url><loc>https://developers.bankid.com/</loc></url>
  <url><loc> https://developers.bankid.com/api </loc><lastmod>2024-01-01</lastmod></url>
  <url><loc>https://developers.bankid.com/guide</loc></url>
</urlset>
"""


def test_parse_sitemap_returns_locations_in_order():
    assert parse_sitemap(SITEMAP) == [
        "https://developers.bankid.com/",
        "https://developers.bankid.com/api",
        "https://developers.bankid.com/guide",
    ]


def test_fetch_sitemap_urls():
    session = FakeSession({SITEMAP_URL: FakeResponse(content=SITEMAP)})
    urls = fetch_sitemap_urls(SITEMAP_URL, BASE, session=session)
    assert len(urls) == 3
    assert session.requested == [SITEMAP_URL]


def test_http_error_falls_back_to_base_url():
    session = FakeSession({SITEMAP_URL: FakeResponse(status_code=500)})
    assert fetch_sitemap_urls(SITEMAP_URL, BASE, session=session) == [BASE]


def test_transport_error_falls_back_to_base_url():
    session = FakeSession({SITEMAP_URL: requests.Timeout("timed out")})
    assert fetch_sitemap_urls(SITEMAP_URL, BASE, session=session) == [BASE]


def test_empty_sitemap_falls_back_to_base_url():
    session = FakeSession({SITEMAP_URL: FakeResponse(content=b"<html>not a sitemap</html>")})
    assert fetch_sitemap_urls(SITEMAP_URL, BASE, session=session) == [BASE]
