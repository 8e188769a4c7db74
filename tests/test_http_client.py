"""
Tests for the carrier HTTP transport.
"""
import base64

import httpx
import pytest

from shipment_manager.core.http_client import (
    ClientOptions,
    DecodingError,
    HTTPStatusError,
    TransportError,
)
from tests.factories import MockCarrier


class TestClientOptions:
    def test_relative_url_joined_with_base(self):
        options = ClientOptions(base_url="https://api.example.com/v1/")

        assert options.resolve_url("items/1") == "https://api.example.com/v1/items/1"

    def test_absolute_url_kept(self):
        options = ClientOptions(base_url="https://api.example.com/v1/")

        assert options.resolve_url("https://files.example.com/a.pdf") == "https://files.example.com/a.pdf"

    def test_bearer_token_header(self):
        headers = ClientOptions(headers={"Accept": "application/json"}, bearer_token="abc").build_headers()

        assert headers == {"Accept": "application/json", "Authorization": "Bearer abc"}


class TestHttpTransport:
    def test_request_json_sends_body_and_auth(self):
        carrier = MockCarrier(httpx.Response(200, json={"ok": True}))
        transport = carrier.transport()

        result = transport.request_json(
            "POST",
            "labels",
            options=ClientOptions(base_url="https://api.example.com/", auth=("user", "pass")),
            json={"mode": "create"},
        )

        assert result == {"ok": True}
        request = carrier.requests[0]
        assert str(request.url) == "https://api.example.com/labels"
        assert carrier.json_body() == {"mode": "create"}
        expected = "Basic " + base64.b64encode(b"user:pass").decode()
        assert request.headers["Authorization"] == expected

    def test_query_params(self):
        carrier = MockCarrier(httpx.Response(200, json=[]))

        carrier.transport().request_json("GET", "https://api.example.com/tracking", params={"ref": "A1"})

        assert carrier.requests[0].url.params["ref"] == "A1"

    def test_status_error_carries_response(self):
        carrier = MockCarrier(httpx.Response(400, json={"message": "bad"}))

        with pytest.raises(HTTPStatusError) as exc_info:
            carrier.transport().request("GET", "https://api.example.com/x")

        assert exc_info.value.is_client_error
        assert exc_info.value.response.json() == {"message": "bad"}

    def test_status_error_can_be_disabled(self):
        carrier = MockCarrier(httpx.Response(401, content=b"nope"))

        response = carrier.transport().request("GET", "https://api.example.com/x", raise_for_status=False)

        assert response.status == 401
        assert response.text == "nope"

    def test_network_error_wrapped(self):
        carrier = MockCarrier(httpx.ConnectError("connection refused"))

        with pytest.raises(TransportError) as exc_info:
            carrier.transport().request("GET", "https://api.example.com/x")

        assert not isinstance(exc_info.value, HTTPStatusError)
        assert "connection refused" in str(exc_info.value)

    def test_invalid_json_raises_decoding_error(self):
        carrier = MockCarrier(httpx.Response(200, content=b"<html>"))

        with pytest.raises(DecodingError):
            carrier.transport().request_json("GET", "https://api.example.com/x")

    def test_lenient_json_on_invalid_body(self):
        carrier = MockCarrier(httpx.Response(500, content=b"oops"))

        response = carrier.transport().request("GET", "https://api.example.com/x", raise_for_status=False)

        assert response.json(strict=False) == {}
