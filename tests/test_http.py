"""
HTTP client adapter tests.
"""

import httpx
import pytest

from valuta.providers.base import TransportError, VendorError

from conftest import RecordingHandler, make_http


class TestHttpClient:
    """Tests for HttpClient."""
    
    def test_sends_user_agent(self):
        handler = RecordingHandler(lambda r: httpx.Response(200, json={}))
        http = make_http(handler)
        
        http.get("https://api.test/ping")
        
        assert handler.requests[0].headers["User-Agent"]
    
    def test_get_json(self):
        handler = RecordingHandler(lambda r: httpx.Response(200, json={"rates": {"EUR": 0.9}}))
        http = make_http(handler)
        
        data = http.get_json("https://api.test/latest/USD", params={"a": "b"})
        
        assert data == {"rates": {"EUR": 0.9}}
        assert handler.requests[0].url.params["a"] == "b"
    
    def test_http_error_status_is_vendor_error(self):
        handler = RecordingHandler(lambda r: httpx.Response(401, json={"error": "invalid key"}))
        http = make_http(handler, provider="alpha_vantage")
        
        with pytest.raises(VendorError) as exc_info:
            http.get("https://api.test/query")
        
        assert exc_info.value.error_type == "HTTP_401"
        assert exc_info.value.provider == "alpha_vantage"
    
    def test_http_error_status_is_not_retried(self):
        handler = RecordingHandler(lambda r: httpx.Response(503))
        http = make_http(handler)
        
        with pytest.raises(VendorError):
            http.get("https://api.test/query")
        
        assert handler.count == 1
    
    def test_transport_failure_is_retried_then_raised(self):
        def respond(request):
            raise httpx.ConnectError("Connection failed", request=request)
        
        handler = RecordingHandler(respond)
        http = make_http(handler)
        
        with pytest.raises(TransportError) as exc_info:
            http.get("https://api.test/query")
        
        assert handler.count == 2
        assert exc_info.value.error_type == "REQUEST_ERROR"
    
    def test_timeout_is_transport_error(self):
        def respond(request):
            raise httpx.ReadTimeout("timed out", request=request)
        
        http = make_http(RecordingHandler(respond))
        
        with pytest.raises(TransportError) as exc_info:
            http.get("https://api.test/query")
        
        assert exc_info.value.error_type == "TIMEOUT"
    
    def test_transient_failure_recovers(self):
        calls = []
        
        def respond(request):
            calls.append(request)
            if len(calls) == 1:
                raise httpx.ConnectError("flaky", request=request)
            return httpx.Response(200, json={"ok": True})
        
        http = make_http(respond)
        
        assert http.get_json("https://api.test/query") == {"ok": True}
        assert len(calls) == 2
    
    def test_non_json_body_is_parse_error(self):
        http = make_http(lambda r: httpx.Response(200, text="<html>oops</html>"))
        
        with pytest.raises(VendorError) as exc_info:
            http.get_json("https://api.test/query")
        
        assert exc_info.value.error_type == "PARSE_ERROR"
    
    def test_head_request(self):
        handler = RecordingHandler(
            lambda r: httpx.Response(200, headers={"content-type": "image/png"})
        )
        http = make_http(handler)
        
        response = http.head("https://img.test/apple.com")
        
        assert handler.methods() == ["HEAD"]
        assert response.headers["content-type"] == "image/png"
