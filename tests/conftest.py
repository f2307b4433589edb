import os

# main.py reads settings at import time
os.environ.setdefault("SUPABASE_URL", "https://test.supabase.co")
os.environ.setdefault("SUPABASE_ANON_KEY", "anon-test-key")
os.environ.setdefault("SESSION_SECRET", "test-session-secret")
os.environ.setdefault("TERMINAL_LINE_DELAY", "0")

import httpx  # noqa: E402
import pytest  # noqa: E402

from database import Gateway  # noqa: E402

from .fake_backend import FakeBackend  # noqa: E402

BASE_URL = "https://test.supabase.co"


@pytest.fixture
def backend():
    backend = FakeBackend()
    backend.add_project(title="CI pipeline", category="devops", stack=["GitHub Actions", "Docker"], featured=True)
    backend.add_project(title="Billing API", category="backend", stack=["Python", "FastAPI"])
    backend.add_project(title="Log shipper", category="devops", stack=["Bash"])
    return backend


@pytest.fixture
def gateway(backend):
    return Gateway(BASE_URL, "anon-test-key", transport=httpx.MockTransport(backend))
