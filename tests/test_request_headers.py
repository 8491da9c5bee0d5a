"""Unit tests for client IP and location extraction."""

import pytest
from starlette.requests import Request

from getip.core.config import GeoSettings
from getip.core.request_headers import get_all_headers, get_client_ip, get_location


def make_request(headers: dict[str, str] | None = None, client: tuple[str, int] | None = ("10.0.0.1", 5000)) -> Request:
    scope = {
        "type": "http",
        "method": "GET",
        "path": "/",
        "headers": [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()],
        "client": client,
    }
    return Request(scope)


class TestGetClientIp:
    def test_cf_connecting_ip_wins(self):
        request = make_request(
            {
                "CF-Connecting-IP": "198.51.100.1",
                "X-Real-IP": "198.51.100.2",
                "X-Forwarded-For": "198.51.100.3",
            }
        )

        assert get_client_ip(request) == "198.51.100.1"

    def test_x_real_ip_before_forwarded_for(self):
        request = make_request({"X-Real-IP": "198.51.100.2", "X-Forwarded-For": "198.51.100.3"})

        assert get_client_ip(request) == "198.51.100.2"

    def test_forwarded_for_uses_first_entry(self):
        request = make_request({"X-Forwarded-For": "198.51.100.3, 10.1.1.1, 10.2.2.2"})

        assert get_client_ip(request) == "198.51.100.3"

    @pytest.mark.parametrize("value", ["", "   ", ", 10.1.1.1"])
    def test_blank_headers_fall_through_to_peer(self, value: str):
        request = make_request({"X-Forwarded-For": value})

        assert get_client_ip(request) == "10.0.0.1"

    def test_no_headers_and_no_peer(self):
        assert get_client_ip(make_request(client=None)) is None

    def test_custom_header_priority(self):
        geo = GeoSettings(client_ip_headers=["Fly-Client-IP"])
        request = make_request({"Fly-Client-IP": "192.0.2.9", "CF-Connecting-IP": "192.0.2.1"})

        assert get_client_ip(request, geo) == "192.0.2.9"

    def test_ip_is_not_validated(self):
        request = make_request({"CF-Connecting-IP": "not-an-ip"})

        assert get_client_ip(request) == "not-an-ip"


class TestGetLocation:
    def test_reads_all_fields(self):
        request = make_request(
            {
                "CF-IPCountry": "DE",
                "CF-IPCity": "Berlin",
                "CF-Region": "Land Berlin",
                "CF-Timezone": "Europe/Berlin",
                "X-Client-ASN": "3320",
                "X-Client-AS-Organization": "Deutsche Telekom AG",
            }
        )

        location = get_location(request)

        assert location.country == "DE"
        assert location.city == "Berlin"
        assert location.region == "Land Berlin"
        assert location.timezone == "Europe/Berlin"
        assert location.asn == 3320
        assert location.as_organization == "Deutsche Telekom AG"

    @pytest.mark.parametrize(("raw", "expected"), [("AS13335", 13335), ("as64500", 64500), ("n/a", None)])
    def test_asn_parsing(self, raw: str, expected: int | None):
        assert get_location(make_request({"X-Client-ASN": raw})).asn == expected

    def test_empty_values_are_none(self):
        location = get_location(make_request({"CF-IPCountry": " ", "CF-IPCity": ""}))

        assert location.country is None
        assert location.city is None

    def test_serializes_with_camel_case_organization(self):
        location = get_location(make_request({"X-Client-AS-Organization": "Example Net"}))

        assert location.model_dump(by_alias=True)["asOrganization"] == "Example Net"


def test_get_all_headers_lowercases_names():
    request = make_request({"X-Custom": "1", "Accept": "application/json"})

    assert get_all_headers(request) == {"x-custom": "1", "accept": "application/json"}
