"""Pytest configuration and fixtures for test suite."""
import json
from pathlib import Path
from typing import Any, Callable, Dict, Generator, List

import httpx
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from agentmp_gateway.config import Settings
from agentmp_gateway.main import create_app

TEST_API_KEY = "test-secret-key"

SAMPLE_CONFIG: Dict[str, Dict[str, str]] = {
    "mcpServers": {
        "echo": "https://echo.example.com",
        "search": "https://search.example.com/v1/",
    },
    "a2aAgents": {
        "planner": "https://planner.example.com/api/",
    },
}


class UpstreamRecorder:
    """Fake upstream behind ``httpx.MockTransport`` that records what it receives."""

    def __init__(self):
        self.requests: List[httpx.Request] = []
        self.bodies: List[bytes] = []
        self.responder: Callable[[httpx.Request], httpx.Response] = self.default_response

    @staticmethod
    def default_response(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"pong": True})

    async def handler(self, request: httpx.Request) -> httpx.Response:
        self.bodies.append(await request.aread())
        self.requests.append(request)
        return self.responder(request)

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]


@pytest.fixture
def write_config(tmp_path: Path) -> Callable[[Any], Path]:
    """Write JSON (or raw text or bytes) to the test config file."""
    path = tmp_path / "config.json"

    def _write(data: Any) -> Path:
        if isinstance(data, bytes):
            path.write_bytes(data)
            return path
        path.write_text(data if isinstance(data, str) else json.dumps(data), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def config_path(write_config) -> Path:
    return write_config(SAMPLE_CONFIG)


@pytest.fixture
def test_settings(config_path: Path) -> Settings:
    """Settings for testing, isolated from any local .env file."""
    return Settings(
        _env_file=None,
        AGENTMP_API_KEY=TEST_API_KEY,
        CONFIG_PATH=str(config_path),
        PORT=12345,
    )


@pytest.fixture
def upstream() -> UpstreamRecorder:
    return UpstreamRecorder()


@pytest.fixture
def app(test_settings: Settings, upstream: UpstreamRecorder) -> FastAPI:
    return create_app(test_settings, upstream_transport=httpx.MockTransport(upstream.handler))


@pytest.fixture
def client(app: FastAPI) -> Generator[TestClient, None, None]:
    """Test client with the application lifespan running."""
    with TestClient(app) as test_client:
        yield test_client
