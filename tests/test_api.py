"""API endpoint tests."""
import json
import logging

import httpx
import pytest
from fastapi.testclient import TestClient

from conftest import SAMPLE_CONFIG, TEST_API_KEY


class TestProxyForwarding:
    """Test requests are forwarded with the credential injected."""

    def test_echo_scenario(self, client, upstream, write_config):
        """GET /mcp/echo/ping?x=1 reaches https://echo.example.com/ping?x=1."""
        write_config({"mcpServers": {"echo": "https://echo.example.com"}, "a2aAgents": {}})
        assert client.post("/config/reload").json()["success"] is True
        upstream.responder = lambda request: httpx.Response(
            200, content=b'{"pong":true}', headers={"Content-Type": "application/json"}
        )

        response = client.get("/mcp/echo/ping?x=1")

        assert response.status_code == 200
        assert response.content == b'{"pong":true}'
        assert response.headers["content-type"] == "application/json"
        assert upstream.last.method == "GET"
        assert str(upstream.last.url) == "https://echo.example.com/ping?x=1"
        assert upstream.last.headers["authorization"] == f"Bearer {TEST_API_KEY}"

    @pytest.mark.parametrize(
        "path,expected_url",
        [
            ("/mcp/echo", "https://echo.example.com/"),
            ("/mcp/echo/", "https://echo.example.com/"),
            ("/mcp/echo/tools/list", "https://echo.example.com/tools/list"),
            ("/mcp/search/query", "https://search.example.com/v1/query"),
            ("/mcp/search/", "https://search.example.com/v1/"),
            ("/a2a/planner/tasks/7", "https://planner.example.com/api/tasks/7"),
            ("/a2a/planner/.well-known/agent.json", "https://planner.example.com/api/.well-known/agent.json"),
            ("/mcp/echo/search?q=a%20b&x=1&x=2", "https://echo.example.com/search?q=a%20b&x=1&x=2"),
        ],
    )
    def test_path_rewrite(self, client, upstream, path, expected_url):
        response = client.get(path)

        assert response.status_code == 200
        assert str(upstream.last.url) == expected_url

    def test_upstream_host_header(self, client, upstream):
        client.get("/mcp/echo/ping")

        assert upstream.last.headers["host"] == "echo.example.com"

    def test_client_authorization_never_forwarded(self, client, upstream):
        client.get("/a2a/planner/tasks", headers={"Authorization": "Bearer client-token"})

        assert upstream.last.headers.get_list("authorization") == [f"Bearer {TEST_API_KEY}"]

    def test_post_body_and_headers_forwarded(self, client, upstream):
        payload = {"jsonrpc": "2.0", "method": "tools/list", "id": 1}

        client.post(
            "/mcp/echo/mcp",
            content=json.dumps(payload),
            headers={"Content-Type": "application/json", "X-Session-Id": "abc"},
        )

        assert upstream.last.method == "POST"
        assert json.loads(upstream.bodies[-1]) == payload
        assert upstream.last.headers["content-type"] == "application/json"
        assert upstream.last.headers["x-session-id"] == "abc"

    @pytest.mark.parametrize("method", ["PUT", "PATCH", "DELETE"])
    def test_other_methods_forwarded(self, client, upstream, method):
        response = client.request(method, "/a2a/planner/tasks/1", content=b"data")

        assert response.status_code == 200
        assert upstream.last.method == method
        assert upstream.bodies[-1] == b"data"

    @pytest.mark.parametrize("method", ["PROPFIND", "MKCOL", "TRACE"])
    def test_extension_methods_forwarded(self, client, upstream, method):
        response = client.request(method, "/mcp/echo/x")

        assert response.status_code == 200
        assert upstream.last.method == method
        assert str(upstream.last.url) == "https://echo.example.com/x"

    def test_get_without_body_sends_no_body(self, client, upstream):
        client.get("/mcp/echo/ping")

        assert upstream.bodies[-1] == b""
        assert "transfer-encoding" not in upstream.last.headers

    def test_upstream_error_status_passed_through(self, client, upstream):
        upstream.responder = lambda request: httpx.Response(
            503, text="upstream overloaded", headers={"Retry-After": "5"}
        )

        response = client.get("/mcp/echo/ping")

        assert response.status_code == 503
        assert response.text == "upstream overloaded"
        assert response.headers["retry-after"] == "5"

    def test_upstream_response_headers(self, client, upstream):
        upstream.responder = lambda request: httpx.Response(
            200,
            content=b"ok",
            headers=[
                ("X-Upstream", "yes"),
                ("Set-Cookie", "a=1"),
                ("Set-Cookie", "b=2"),
                ("Connection", "close"),
            ],
        )

        response = client.get("/mcp/echo/ping")

        assert response.headers["x-upstream"] == "yes"
        assert response.headers.get_list("set-cookie") == ["a=1", "b=2"]
        assert "connection" not in response.headers

    def test_credential_not_in_client_response(self, client, upstream):
        response = client.get("/mcp/echo/ping")

        assert TEST_API_KEY not in response.text
        assert TEST_API_KEY not in str(response.headers)


class TestProxyErrors:
    """Test classified failures."""

    def test_unknown_mcp_server(self, client, upstream):
        response = client.get("/mcp/nope/ping")

        assert response.status_code == 404
        assert response.json() == {
            "error": "MCP server 'nope' not found in configuration",
            "availableServers": list(SAMPLE_CONFIG["mcpServers"]),
        }
        assert upstream.requests == []

    def test_unknown_a2a_agent(self, client):
        response = client.post("/a2a/ghost/tasks", json={})

        assert response.status_code == 404
        assert response.json() == {
            "error": "A2A agent 'ghost' not found in configuration",
            "availableAgents": ["planner"],
        }

    def test_name_lookup_is_case_sensitive(self, client):
        assert client.get("/mcp/Echo/ping").status_code == 404

    def test_not_found_reflects_live_table(self, client, write_config):
        write_config({"mcpServers": {"only": "http://only.local"}, "a2aAgents": {}})
        client.post("/config/reload")

        response = client.get("/mcp/echo/ping")

        assert response.status_code == 404
        assert response.json()["availableServers"] == ["only"]

    def test_upstream_unreachable_mcp(self, client, upstream):
        def refuse(request):
            raise httpx.ConnectError("Connection refused", request=request)
        upstream.responder = refuse

        response = client.get("/mcp/echo/ping")

        assert response.status_code == 500
        assert response.json() == {
            "error": "Proxy error",
            "message": "Connection refused",
            "server": "echo",
        }

    def test_upstream_timeout_a2a(self, client, upstream):
        def time_out(request):
            raise httpx.ReadTimeout("timed out", request=request)
        upstream.responder = time_out

        response = client.post("/a2a/planner/tasks", json={"task": "plan"})

        assert response.status_code == 500
        assert response.json() == {"error": "Proxy error", "message": "timed out", "agent": "planner"}

    def test_no_retry_after_failure(self, client, upstream):
        def refuse(request):
            raise httpx.ConnectError("Connection refused", request=request)
        upstream.responder = refuse

        client.post("/a2a/planner/tasks", json={})

        assert len(upstream.requests) == 1

    def test_unhandled_error_is_generic_500(self, app):
        with TestClient(app, raise_server_exceptions=False) as test_client:
            async def boom(target, request):
                raise RuntimeError("secret internals")
            app.state.gateway.engine.forward = boom

            response = test_client.get("/mcp/echo/ping")

            assert response.status_code == 500
            assert response.json() == {
                "error": "Internal server error",
                "message": "An unexpected error occurred",
            }
            # the process keeps serving
            assert test_client.get("/health").status_code == 200


class TestManagementEndpoints:
    """Test health, info and configuration endpoints."""

    def test_root_endpoint(self, client):
        response = client.get("/")

        assert response.status_code == 200
        data = response.json()
        assert data["name"] == "AgentMP MCP Gateway"
        assert data["version"] == "1.0.0"
        assert data["usage"]["mcpServers"] == "http://localhost:12345/mcp/{serverName}/"
        assert data["usage"]["availableServers"] == ["echo", "search"]
        assert data["usage"]["availableAgents"] == ["planner"]
        assert data["usage"]["healthCheck"] == "http://localhost:12345/health"

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["port"] == 12345
        assert data["configuredServers"] == ["echo", "search"]
        assert data["configuredAgents"] == ["planner"]
        assert data["timestamp"].endswith("Z")

    def test_config_lists_names_and_local_urls_only(self, client):
        response = client.get("/config")

        assert response.status_code == 200
        assert response.json() == {
            "mcpServers": ["echo", "search"],
            "a2aAgents": ["planner"],
            "endpoints": {
                "mcp": [
                    "http://localhost:12345/mcp/echo/",
                    "http://localhost:12345/mcp/search/",
                ],
                "a2a": ["http://localhost:12345/a2a/planner/"],
            },
        }
        assert "example.com" not in response.text
        assert TEST_API_KEY not in response.text

    def test_reload_without_changes_is_idempotent(self, client):
        before = client.get("/config").json()

        reload_response = client.post("/config/reload")

        assert reload_response.status_code == 200
        assert reload_response.json() == {
            "success": True,
            "message": "Configuration reloaded",
            "mcpServers": ["echo", "search"],
            "a2aAgents": ["planner"],
        }
        assert client.get("/config").json() == before

    def test_reload_logs_counts(self, client, caplog):
        with caplog.at_level(logging.INFO, logger="agentmp_gateway.api.admin"):
            client.post("/config/reload")

        assert "Configuration reloaded: 2 MCP servers, 1 A2A agents" in caplog.text

    def test_reload_round_trip(self, client, write_config):
        write_config({"mcpServers": {"s1": "http://u1"}, "a2aAgents": {}})

        assert client.post("/config/reload").json()["success"] is True

        data = client.get("/config").json()
        assert data["mcpServers"] == ["s1"]
        assert data["endpoints"]["mcp"] == ["http://localhost:12345/mcp/s1/"]
        assert data["a2aAgents"] == []

    def test_reload_failure_keeps_previous_table(self, client, upstream, write_config):
        before = client.get("/config").json()
        write_config("{ this is not json")

        response = client.post("/config/reload")

        assert response.status_code == 500
        data = response.json()
        assert data["success"] is False
        assert "Invalid JSON" in data["error"]
        assert client.get("/config").json() == before

        proxied = client.get("/mcp/echo/ping")
        assert proxied.status_code == 200
        assert str(upstream.last.url) == "https://echo.example.com/ping"

    def test_reload_non_utf8_file_rejected(self, client, write_config):
        before = client.get("/config").json()
        write_config(b'{"mcpServers": {"caf\xe9": "http://x.local"}}')

        response = client.post("/config/reload")

        assert response.status_code == 500
        data = response.json()
        assert data["success"] is False
        assert "not UTF-8" in data["error"]
        assert client.get("/config").json() == before

    def test_reload_missing_file_rejected(self, client, config_path):
        config_path.unlink()

        response = client.post("/config/reload")

        assert response.status_code == 500
        assert response.json()["success"] is False
        assert client.get("/health").json()["configuredServers"] == ["echo", "search"]
        assert not config_path.exists()


class TestStartup:
    """Test application startup with the config file."""

    def test_missing_config_file_created_on_startup(self, tmp_path, test_settings, upstream):
        from agentmp_gateway.main import create_app

        path = tmp_path / "fresh" / "config.json"
        settings = test_settings.model_copy(update={"CONFIG_PATH": str(path)})
        app = create_app(settings, upstream_transport=httpx.MockTransport(upstream.handler))

        with TestClient(app) as test_client:
            data = test_client.get("/health").json()

        assert path.exists()
        assert data["configuredServers"] == ["curated-discovery"]
        assert data["configuredAgents"] == ["portfolio-manager", "retirement-planner"]

    def test_non_utf8_config_replaced_on_startup(self, write_config, test_settings, upstream):
        from agentmp_gateway.main import create_app

        path = write_config(b'{"mcpServers": {"caf\xe9": "http://x.local"}}')
        app = create_app(test_settings, upstream_transport=httpx.MockTransport(upstream.handler))

        with TestClient(app) as test_client:
            data = test_client.get("/health").json()

        assert data["configuredServers"] == ["curated-discovery"]
        assert path.with_name("config.json.invalid").exists()
