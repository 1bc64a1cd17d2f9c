"""Href resolution and classification tests."""

from __future__ import annotations

import pytest

from silos.engine import paths

SITE = "https://www.example.com"


@pytest.mark.parametrize(
    "href",
    ["/foo/", "foo", "https://example.com/foo?x=1#y", "https://www.example.com/foo/", "//example.com/foo"],
)
def test_equivalent_hrefs_resolve_to_same_path(href):
    assert paths.resolve_path(href, SITE) == "/foo"


@pytest.mark.parametrize(
    "value",
    ["/foo/", "foo", "/a//b/", " /a/b?x=1 ", "/", "/Silo/Post#frag"],
)
def test_normalize_path_is_idempotent(value):
    once = paths.normalize_path(value)
    assert once is not None
    assert paths.normalize_path(once) == once
    assert once.startswith("/")
    assert once == "/" or not once.endswith("/")


def test_root_and_empty_values():
    assert paths.normalize_path("/") == "/"
    assert paths.normalize_path("") is None
    assert paths.normalize_path(None) is None
    assert paths.resolve_path("#section", SITE) is None
    assert paths.resolve_path("   ", SITE) is None


def test_absolute_urls_need_matching_site():
    assert paths.resolve_path("https://example.com/foo") is None
    assert paths.resolve_path("https://other.org/foo", SITE) is None
    assert paths.resolve_path("https://blog.example.com/foo", SITE) is None
    assert paths.resolve_path("http://EXAMPLE.com/Foo", SITE) == "/Foo"


def test_non_web_schemes_never_resolve():
    assert paths.resolve_path("mailto:team@example.com", SITE) is None
    assert paths.resolve_path("tel:+5511999999999", SITE) is None
    assert paths.resolve_path("javascript:void(0)", SITE) is None


def test_malformed_url_is_not_internal():
    assert paths.resolve_path("http://[broken/foo", SITE) is None
    assert paths.classify_href("http://[broken/foo", SITE) == "external"


@pytest.mark.parametrize(
    ("href", "kind"),
    [
        ("/mobilidade/carrinhos", "internal"),
        ("https://example.com/mobilidade/carrinhos", "internal"),
        ("https://www.amazon.com.br/dp/B000", "affiliate"),
        ("https://amzn.to/3abc", "affiliate"),
        ("https://a.co/d/xyz", "affiliate"),
        ("https://wikipedia.org/wiki/Carrinho", "external"),
        ("https://notamazon.com/item", "external"),
    ],
)
def test_classification_is_exclusive(href, kind):
    assert paths.classify_href(href, SITE) == kind
    internal = paths.resolve_path(href, SITE) is not None
    assert internal == (kind == "internal")


def test_affiliate_domains_are_configurable():
    assert paths.classify_href("https://shop.partner.com/x", SITE, ["partner.com"]) == "affiliate"
    assert paths.classify_href("https://amzn.to/3abc", SITE, ["partner.com"]) == "external"


def test_amazon_detection():
    assert paths.is_amazon_href("https://www.amazon.com/dp/1")
    assert paths.is_amazon_href("https://amzn.to/x")
    assert not paths.is_amazon_href("/amazon/review")
    assert not paths.is_amazon_href("https://example.com/amazon")


def test_post_path_and_silo_prefix():
    assert paths.post_path("mobilidade", "guia-de-carrinhos") == "/mobilidade/guia-de-carrinhos"
    assert paths.post_path("/mobilidade/", "/guia/") == "/mobilidade/guia"
    assert paths.post_path("", "guia") is None
    assert paths.is_under_silo("/mobilidade/guia", "mobilidade")
    assert paths.is_under_silo("/mobilidade", "mobilidade")
    assert not paths.is_under_silo("/mobilidade-extra/guia", "mobilidade")
    assert not paths.is_under_silo(None, "mobilidade")
