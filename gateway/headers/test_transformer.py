import httpx

from gateway.headers.transformer import (
    BROWSER_HEADERS,
    CORS_HEADERS,
    build_outbound_headers,
    merge_outbound_headers,
    sanitize_inbound_headers,
    strip_hop_by_hop,
)


class TestBuildOutboundHeaders:
    def test_browser_headers_and_client_ip(self):
        result = build_outbound_headers("203.0.113.7")

        assert result["User-Agent"] == (
            "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36"
        )
        assert result["Accept"] == (
            "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8"
        )
        assert result["Accept-Language"] == "en-US,en;q=0.5"
        assert result["Accept-Encoding"] == "gzip, deflate"
        assert result["Connection"] == "keep-alive"
        assert result["Upgrade-Insecure-Requests"] == "1"
        assert result["X-Forwarded-For"] == "203.0.113.7"
        assert result["X-Real-IP"] == "203.0.113.7"

    def test_returns_fresh_mapping(self):
        result = build_outbound_headers("203.0.113.7")
        result["User-Agent"] = "changed"
        assert BROWSER_HEADERS["User-Agent"] != "changed"


class TestMergeOutboundHeaders:
    """Test the in-flight mutation of the caller's headers."""

    def test_caller_headers_kept(self):
        result = merge_outbound_headers(
            {"authorization": "Bearer abc", "x-custom": "1", "content-type": "text/plain"},
            "203.0.113.7",
        )
        assert result["authorization"] == "Bearer abc"
        assert result["x-custom"] == "1"
        assert result["content-type"] == "text/plain"

    def test_browser_headers_override_case_insensitively(self):
        result = merge_outbound_headers(
            {
                "user-agent": "curl/8.0",
                "x-forwarded-for": "10.0.0.1",
                "x-real-ip": "10.0.0.1",
            },
            "203.0.113.7",
        )
        lowered = {k.lower(): v for k, v in result.items()}
        assert len(lowered) == len(result)
        assert lowered["user-agent"] == BROWSER_HEADERS["User-Agent"]
        assert lowered["x-forwarded-for"] == "203.0.113.7"
        assert lowered["x-real-ip"] == "203.0.113.7"

    def test_host_and_hop_by_hop_dropped(self):
        result = merge_outbound_headers(
            {
                "host": "localhost:3001",
                "transfer-encoding": "chunked",
                "te": "trailers",
                "upgrade": "websocket",
            },
            "203.0.113.7",
        )
        lowered = {k.lower() for k in result}
        assert "host" not in lowered
        assert "transfer-encoding" not in lowered
        assert "te" not in lowered
        assert "upgrade" not in lowered
        # Connection is part of the browser profile
        assert result["Connection"] == "keep-alive"


class TestSanitizeInboundHeaders:
    def test_framing_headers_removed(self):
        result = sanitize_inbound_headers(
            {
                "X-Frame-Options": "DENY",
                "content-security-policy": "frame-ancestors 'none'",
                "content-type": "text/html",
            }
        )
        lowered = {k.lower() for k in result}
        assert "x-frame-options" not in lowered
        assert "content-security-policy" not in lowered
        assert result["content-type"] == "text/html"

    def test_cors_headers_added(self):
        result = sanitize_inbound_headers({})
        assert result == CORS_HEADERS
        assert result["Access-Control-Allow-Origin"] == "*"
        assert result["Access-Control-Allow-Methods"] == "GET, POST, PUT, DELETE, OPTIONS"
        assert result["Access-Control-Allow-Headers"] == (
            "Origin, X-Requested-With, Content-Type, Accept, Authorization"
        )

    def test_upstream_cors_headers_replaced(self):
        result = sanitize_inbound_headers(
            {"access-control-allow-origin": "https://only-me.test"}
        )
        assert "access-control-allow-origin" not in result
        assert result["Access-Control-Allow-Origin"] == "*"

    def test_other_headers_unchanged(self):
        headers = {
            "content-type": "application/json; charset=utf-8",
            "cache-control": "max-age=60",
            "x-upstream": "allorigins",
        }
        result = sanitize_inbound_headers(headers)
        for name, value in headers.items():
            assert result[name] == value

    def test_accepts_httpx_headers(self):
        headers = httpx.Headers({"X-Frame-Options": "SAMEORIGIN", "Content-Type": "text/css"})
        result = sanitize_inbound_headers(headers)
        assert "x-frame-options" not in {k.lower() for k in result}
        assert result["content-type"] == "text/css"


class TestStripHopByHop:
    def test_strips_hop_by_hop(self):
        result = strip_hop_by_hop(
            {"Connection": "close", "Transfer-Encoding": "chunked", "ETag": "abc"}
        )
        assert result == {"ETag": "abc"}

    def test_extra_names(self):
        result = strip_hop_by_hop(
            {"Content-Encoding": "gzip", "Content-Length": "10", "ETag": "abc"},
            extra=("content-encoding", "Content-Length"),
        )
        assert result == {"ETag": "abc"}
