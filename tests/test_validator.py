import json

import pytest

from psi_checker.errors import EmptySlugListError, InvalidUrlError, SlugFileNotFoundError
from psi_checker.validator import (
    build_full_url,
    create_config_template,
    create_slug_template,
    normalize_url,
    parse_slug_file,
    resolve_slugs,
    validate_export_formats,
    validate_url,
)


@pytest.mark.parametrize("slug,expected", [
    ("/", "https://example.com"),
    ("/about", "https://example.com/about"),
    ("about", "https://example.com/about"),
    ("/blog/post-1", "https://example.com/blog/post-1"),
])
def test_build_full_url(slug, expected):
    assert build_full_url("https://example.com", slug) == expected


def test_build_full_url_strips_base_trailing_slash():
    assert build_full_url("https://example.com/", "/about") == "https://example.com/about"


@pytest.mark.parametrize("raw,expected", [
    ("example.com", "https://example.com"),
    ("example.com/", "https://example.com"),
    ("http://example.com", "http://example.com"),
    ("HTTPS://Example.COM/Path/", "https://example.com/Path"),
    ("https://example.com:443/", "https://example.com"),
    ("example.com:8080/shop//", "https://example.com:8080/shop"),
    ("  example.com/about  ", "https://example.com/about"),
])
def test_normalize_url(raw, expected):
    assert normalize_url(raw) == expected


@pytest.mark.parametrize("raw", [
    "example.com",
    "http://Example.com/a/b/",
    "https://example.com:8443",
    "sub.example.co.za/path?q=1",
])
def test_normalize_url_is_idempotent(raw):
    once = normalize_url(raw)
    assert normalize_url(once) == once


def test_normalize_url_respects_default_scheme():
    assert normalize_url("example.com", default_scheme="http") == "http://example.com"


@pytest.mark.parametrize("raw", ["", "   ", "https://", "exa mple.com", "example.com:notaport"])
def test_normalize_url_rejects_invalid(raw):
    with pytest.raises(InvalidUrlError):
        normalize_url(raw)


def test_validate_url_messages():
    assert validate_url("example.com") is None
    assert validate_url("") == "URL is required"
    assert validate_url("exa mple.com").startswith("Invalid URL format")


def test_resolve_slugs_defaults_to_homepage():
    assert resolve_slugs(None) == ["/"]


def test_resolve_slugs_drops_blanks_and_comments(tmp_path):
    f = tmp_path / "slugs.txt"
    f.write_text("# pages\n/\n\n  /about  \n#/skipped\n/contact\r\n", encoding="utf-8")
    assert resolve_slugs(str(f)) == ["/", "/about", "/contact"]


def test_resolve_slugs_missing_file(tmp_path):
    with pytest.raises(SlugFileNotFoundError):
        resolve_slugs(str(tmp_path / "nope.txt"))


def test_resolve_slugs_empty_list(tmp_path):
    f = tmp_path / "slugs.txt"
    f.write_text("# only comments\n\n", encoding="utf-8")
    with pytest.raises(EmptySlugListError):
        resolve_slugs(str(f))


def test_parse_slug_file_json_and_text(tmp_path):
    j = tmp_path / "slugs.json"
    j.write_text(json.dumps(["/", "/pricing"]), encoding="utf-8")
    assert parse_slug_file(str(j)) == ["/", "/pricing"]

    obj = tmp_path / "obj.json"
    obj.write_text(json.dumps({"slugs": ["/"]}), encoding="utf-8")
    assert parse_slug_file(str(obj)) == []

    t = tmp_path / "slugs.txt"
    t.write_text("/a\n\n/b\n", encoding="utf-8")
    assert parse_slug_file(str(t)) == ["/a", "/b"]


def test_validate_export_formats_drops_unknown():
    assert validate_export_formats(["data", "pdf", "markdown"]) == ["data", "markdown"]


def test_templates(tmp_path):
    slug_path = create_slug_template(str(tmp_path / "slugs.txt"))
    assert resolve_slugs(str(slug_path))[:2] == ["/", "/about"]

    config_path = create_config_template(str(tmp_path / ".pagespeedrc.json"))
    data = json.loads(config_path.read_text(encoding="utf-8"))
    assert data["baseUrl"] == "https://example.com"
    assert data["export"] == ["data", "markdown"]
