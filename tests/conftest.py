"""
Pytest configuration and shared fixtures for all tests.
"""

import sys
from pathlib import Path

import pytest

# Add the project root to sys.path so we can import from src
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from src.scunet_auth.core.config import Config, ENV_OVERRIDES  # noqa: E402


CHECK_URL = "http://www.msftconnecttest.com/connecttest.txt"
DETECT_URL = "http://123.123.123.123/"
PORTAL_BASE = "http://192.168.2.135"
INTERFACE_URL = PORTAL_BASE + "/eportal/InterFace.do"


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Keep developer environment variables out of the tests."""
    for name in list(ENV_OVERRIDES) + ["CONFIG_FILE", "SCUNET_USERNAME", "SCUNET_PASSWORD", "SCUNET_SERVICE"]:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture(scope="session")
def fixtures_dir():
    """Get the fixtures directory path."""
    return Path(__file__).parent / "fixtures"


@pytest.fixture
def load_fixture(fixtures_dir):
    """Read a fixture file as text."""
    def _load(name):
        return (fixtures_dir / name).read_text(encoding="utf-8")
    return _load


@pytest.fixture
def config():
    """Ruijie configuration with instant retries and plain passwords."""
    return Config.from_dict({
        "portal": {"variant": "ruijie", "encrypt_password": "false"},
        "retry": {"max_attempts": 3, "backoff_base": 0, "backoff_max": 0},
    })


@pytest.fixture
def captive_network(requests_mock, load_fixture):
    """Simulated SCUNET gateway that intercepts traffic until login."""
    requests_mock.get(CHECK_URL, status_code=302, headers={"Location": DETECT_URL})
    requests_mock.get(DETECT_URL, text=load_fixture("ruijie_redirect.html"))
    requests_mock.get(PORTAL_BASE + "/eportal/index.jsp", text=load_fixture("ruijie_portal.html"))
    return requests_mock


@pytest.fixture
def online_network(requests_mock):
    """Simulated network that is already authenticated."""
    requests_mock.get(CHECK_URL, text="Microsoft Connect Test")
    return requests_mock


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line(
        "markers", "integration: mark test as integration test against a simulated portal"
    )
    config.addinivalue_line(
        "markers", "unit: mark test as unit test (no external dependencies)"
    )
