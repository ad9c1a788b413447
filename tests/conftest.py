import pytest
import requests

from kmutnb.reserver.config import Config
from kmutnb.reserver.model import Credentials
from kmutnb.reserver.portal.path import Path

ENV_VARS = (
    "USERNAME",
    "PASSWORD",
    "REQUEST_TIMEOUT",
    "VERIFY_TLS",
    "DATE_EXPIRE",
    "CSRF_FIELD",
    "LOG_DIR",
)

LOGGED_IN_HTML = """
<html><body>
  <h1>KMUTNB Software</h1>
  <a href="/adobe-reserve/">Adobe</a>
  <a href="/logout/">Logout</a>
</body></html>
"""

LOGIN_FORM_HTML = """
<html><body>
  <form method="post" action="/login/">
    <input name="myusername" type="text">
    <input name="mypassword" type="password">
    <input name="Submit" type="submit">
  </form>
</body></html>
"""


def pytest_addoption(parser):
    parser.addoption(
        "--run-manual",
        action="store_true",
        default=False,
        help="run manual tests against the real portal",
    )


def pytest_configure(config):
    config.addinivalue_line("markers", "manual: mark test as manual to run")


def pytest_collection_modifyitems(config, items):
    skip_manual = pytest.mark.skip(reason="need --run-manual option to run")
    run_manual = config.getoption("--run-manual")

    for item in items:
        if "manual" in item.keywords and not run_manual:
            item.add_marker(skip_manual)


def build_response(
    status_code: int = 200,
    body: str = "",
    url: str = Path.LOGIN,
    history: list[requests.Response] | None = None,
) -> requests.Response:
    """Build a `requests.Response` the way the transport adapter would."""
    response = requests.Response()
    response.status_code = status_code
    response._content = body.encode("utf-8")
    response.encoding = "utf-8"
    response.url = url
    response.history = history or []
    return response


def set_session_cookie(session: requests.Session, name: str = "sid", value: str = "abc123"):
    """What the cookie jar holds after a Set-Cookie from the portal."""
    session.cookies.set(name, value, domain="software.kmutnb.ac.th", path="/")


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """Process environment without any of our variables, and no .env in cwd."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    return monkeypatch


@pytest.fixture
def conf():
    return Config(credentials=Credentials(username="alice", password="secret"), timeout=5.0)


@pytest.fixture
def make_response():
    return build_response


@pytest.fixture
def logged_in_html():
    return LOGGED_IN_HTML


@pytest.fixture
def login_form_html():
    return LOGIN_FORM_HTML


@pytest.fixture
def set_cookie():
    return set_session_cookie
