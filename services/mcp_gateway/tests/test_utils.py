import httpx
import pytest

from services.mcp_gateway.core.utils import (
    build_api_url,
    is_absolute_url,
    normalize_path,
    parse_upstream_response,
)


@pytest.mark.parametrize(
    "api_url, base_path, api_version, expected",
    [
        ("https://h", "/api", "v1", "https://h/api/v1"),
        ("https://h/", "api/", "/v1/", "https://h/api/v1"),
        ("https://h//", "/api", "", "https://h/api"),
        ("https://h", "/", "v2", "https://h/v2"),
        ("https://h", "", "", "https://h"),
        ("https://h", "/", "  ", "https://h"),
        ("http://h:8080/", "/rest/api/", "v1", "http://h:8080/rest/api/v1"),
    ],
)
def test_build_api_url(api_url, base_path, api_version, expected):
    url = build_api_url(api_url, base_path, api_version)
    assert url == expected
    assert "//" not in url.split("://", 1)[1]


@pytest.mark.parametrize(
    "path, expected",
    [("users", "/users"), ("/users", "/users"), ("//users/1", "/users/1"), ("", "/")],
)
def test_normalize_path(path, expected):
    assert normalize_path(path) == expected


def test_parse_envelope_forwarded_verbatim():
    response = httpx.Response(200, json={"success": True, "data": [1, 2], "meta": {"page": 1}})

    result = parse_upstream_response(response)

    assert result.success is True
    assert result.to_dict() == {"success": True, "data": [1, 2], "meta": {"page": 1}}


def test_parse_plain_json_is_wrapped():
    response = httpx.Response(200, json=[{"id": 1}])

    result = parse_upstream_response(response)

    assert result.to_dict() == {"success": True, "data": [{"id": 1}]}


def test_parse_error_status_carries_upstream_error():
    response = httpx.Response(404, json={"error": "User not found"})

    result = parse_upstream_response(response)

    assert result.success is False
    assert result.error == "Upstream returned HTTP 404: User not found"
    assert result.to_dict()["status_code"] == 404


def test_parse_non_json_body():
    response = httpx.Response(200, text="<html>maintenance</html>")

    result = parse_upstream_response(response)

    assert result.success is False
    assert result.error == "Upstream returned a non-JSON response"


def test_parse_structured_error_is_stringified():
    response = httpx.Response(200, json={"success": False, "error": {"code": "E1"}})

    result = parse_upstream_response(response)

    assert result.success is False
    assert result.error == '{"code": "E1"}'


def test_parse_empty_success_body_is_ok():
    result = parse_upstream_response(httpx.Response(204))

    assert result.success is True
    assert result.to_dict() == {"success": True}


def test_parse_empty_error_body_is_still_a_failure():
    result = parse_upstream_response(httpx.Response(500))

    assert result.success is False
    assert result.error == "Upstream returned HTTP 500"


@pytest.mark.parametrize(
    "path, expected",
    [
        ("https://hooks.test/x", True),
        ("http://hooks.test", True),
        ("/users", False),
        ("users", False),
        ("//evil.test/x", False),
        ("mailto:someone", False),
    ],
)
def test_is_absolute_url(path, expected):
    assert is_absolute_url(path) is expected
