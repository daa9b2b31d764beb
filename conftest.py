# Ensure tests import the `gateway` package from this checkout even when the
# project has not been installed.
import os
import sys

import pytest

SERVICE_ROOT = os.path.dirname(__file__)
if SERVICE_ROOT not in sys.path:
    sys.path.insert(0, SERVICE_ROOT)

TEST_CLIENT_IP = "203.0.113.7"


@pytest.fixture
def pinned_client_ip(monkeypatch):
    """Make the process-wide client IP cache resolve to a fixed address."""
    from gateway.client_ip import client_ip_cache

    client_ip_cache.clear()
    monkeypatch.setattr(
        client_ip_cache, "_discover", lambda: (TEST_CLIENT_IP, "test-interface")
    )
    yield TEST_CLIENT_IP
    client_ip_cache.clear()


@pytest.fixture
def static_bundle(tmp_path, monkeypatch):
    """A minimal pre-built front-end bundle."""
    (tmp_path / "index.html").write_text("<html><app-root></app-root></html>")
    (tmp_path / "main.js").write_text("console.log('bundle');")
    (tmp_path / "assets").mkdir()
    (tmp_path / "assets" / "logo.svg").write_text("<svg></svg>")
    monkeypatch.setattr("gateway.vars.STATIC_DIR", str(tmp_path))
    return tmp_path


@pytest.fixture
def client():
    from fastapi.testclient import TestClient
    from gateway.server import app

    return TestClient(app)
