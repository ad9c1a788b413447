from collections.abc import Callable
from collections.abc import Iterable
from collections.abc import Mapping
from typing import Any
from urllib.parse import urlparse

from bs4 import BeautifulSoup
from loguru import logger
import requests

from kmutnb.reserver.config import Config
from kmutnb.reserver.error import AuthenticationFailed
from kmutnb.reserver.error import InternalError
from kmutnb.reserver.error import NetworkError
from kmutnb.reserver.error import ReservationFailed
from kmutnb.reserver.error import UnexpectedResponse
from kmutnb.reserver.model import Credentials
from kmutnb.reserver.model import Stage
from kmutnb.reserver.model import StageResult
from kmutnb.reserver.portal.path import Path

USER_AGENT = "Mozilla/5.0 (X11; Linux x86_64; rv:146.0) Gecko/20100101 Firefox/146.0"
EXCERPT_LENGTH = 200

TokenFetcher = Callable[[], Mapping[str, str]]


class Portal:
    """HTTP client for the KMUTNB software portal.

    Owns one `requests.Session` for its whole lifetime. `login()` must succeed
    before `reserve()` is allowed to send anything. Each call sends its
    request exactly once.
    """

    def __init__(
        self,
        config: Config,
        session: requests.Session | None = None,
        token_fetcher: TokenFetcher | None = None,
    ):
        self.config = config
        self.session = session or requests.Session()
        self.session.headers["User-Agent"] = USER_AGENT
        self.authenticated = False

        if token_fetcher is None and config.csrf_field:
            token_fetcher = self.fetch_csrf_token
        self.token_fetcher = token_fetcher

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()

    def close(self):
        """Close the underlying HTTP session"""
        self.session.close()

    def login(self, credentials: Credentials) -> StageResult:
        """Submit the login form and verify the portal accepted it.

        Raises:
            NetworkError: the request never got a response.
            AuthenticationFailed: 401/403, or the portal sent us back to the login page.
            UnexpectedResponse: any other answer that is not a logged-in page.
        """
        self.authenticated = False

        form = {
            "myusername": credentials.username,
            "mypassword": credentials.password,
            "Submit": "",
        }
        if self.token_fetcher is not None:
            form.update(self.token_fetcher())

        logger.info(f"Logging in to {Path.LOGIN} as {credentials.username}...")
        response = self._send(
            Stage.LOGIN, "POST", Path.LOGIN, data=form, headers=self._login_headers()
        )
        content = response.text
        text = self.visible_text(content)
        excerpt = self.truncate(text)

        if response.status_code in (401, 403):
            raise AuthenticationFailed(
                "credentials rejected", Stage.LOGIN, response.status_code, excerpt
            )
        if not self.is_success(response):
            raise UnexpectedResponse(
                "login endpoint returned an error status", Stage.LOGIN, response.status_code, excerpt
            )
        if self.is_captcha_page(content):
            raise UnexpectedResponse(
                "portal answered with a bot check (CAPTCHA)", Stage.LOGIN, response.status_code, excerpt
            )
        if self.is_redirected_to_login(response) or self.is_login_page(content):
            raise AuthenticationFailed(
                "portal returned to the login page", Stage.LOGIN, response.status_code, excerpt
            )
        if not self.is_logged_in(content):
            raise UnexpectedResponse(
                "no logged-in marker in the login response", Stage.LOGIN, response.status_code, excerpt
            )

        self.authenticated = True
        logger.success("Login successful.")
        return StageResult(Stage.LOGIN, True, response.status_code, excerpt, text)

    def reserve(self, form: Mapping[str, str]) -> StageResult:
        """Send the reservation form using the logged-in session.

        Raises:
            InternalError: called before a successful `login()`.
            NetworkError: the request never got a response.
            ReservationFailed: non-2xx status, session not accepted, or an error message in the page.
        """
        if not self.authenticated:
            raise InternalError("reservation attempted before a successful login", Stage.RESERVE)

        logger.info(f"Requesting Adobe reservation at {Path.ADOBE_ADD}...")
        response = self._send(
            Stage.RESERVE, "POST", Path.ADOBE_ADD, data=dict(form), headers=self._reserve_headers()
        )
        content = response.text
        text = self.visible_text(content)
        excerpt = self.truncate(text)

        if not self.is_success(response):
            raise ReservationFailed(
                "reservation endpoint returned an error status",
                Stage.RESERVE,
                response.status_code,
                excerpt,
            )
        if self.is_redirected_to_login(response) or self.is_login_page(content):
            raise ReservationFailed(
                "session was not accepted, portal asked to log in again",
                Stage.RESERVE,
                response.status_code,
                excerpt,
            )
        if self.is_error_page(content):
            raise ReservationFailed(
                f"portal reported an error: {excerpt}", Stage.RESERVE, response.status_code, excerpt
            )

        logger.success("Reservation request accepted.")
        return StageResult(Stage.RESERVE, True, response.status_code, excerpt, text)

    def fetch_csrf_token(self) -> dict[str, str]:
        """Load the login page and pull the hidden anti-forgery field out of the form."""
        field = self.config.csrf_field
        if not field:
            return {}

        logger.info(f"Fetching CSRF token '{field}' from {Path.LOGIN}...")
        response = self._send(Stage.LOGIN, "GET", Path.LOGIN)
        if not self.is_success(response):
            raise UnexpectedResponse(
                "could not load the login page", Stage.LOGIN, response.status_code
            )

        soup = BeautifulSoup(response.text, "html.parser")
        tag = soup.find("input", attrs={"name": field})
        value = tag.get("value") if tag is not None else None
        if not value:
            raise UnexpectedResponse(
                f"CSRF field '{field}' not found on the login page", Stage.LOGIN, response.status_code
            )
        return {field: str(value)}

    def is_redirected_to_login(self, response: requests.Response) -> bool:
        """Check if the request was redirected back to the login page."""
        if not response.history:
            return False
        path = urlparse(response.url).path.rstrip("/")
        login_path = urlparse(Path.LOGIN).path.rstrip("/")
        return path == login_path or path.startswith(login_path + "/")

    @staticmethod
    def is_success(response: requests.Response) -> bool:
        """Check if the final response has a 2xx status."""
        return 200 <= response.status_code < 300

    def is_login_page(self, content: str) -> bool:
        """Check if the content is the login form."""
        soup = BeautifulSoup(content, "html.parser")
        return soup.find("input", attrs={"name": "mypassword"}) is not None

    def is_logged_in(self, content: str) -> bool:
        """Check if the content belongs to a logged-in page."""
        return self._check_content(["logout", "ออกจากระบบ"], content)

    def is_captcha_page(self, content: str) -> bool:
        """Check if the content is a bot check."""
        keywords = [
            "captcha",
            "are you a robot",
            "verify you are human",
        ]
        return self._check_content(keywords, content)

    def is_error_page(self, content: str) -> bool:
        """Check if the content carries an error message."""
        keywords = [
            "error",
            "failed",
            "ไม่สำเร็จ",
            "ผิดพลาด",
        ]
        return self._check_content(keywords, self.visible_text(content))

    @staticmethod
    def visible_text(content: str) -> str:
        soup = BeautifulSoup(content, "html.parser")
        for tag in soup(["script", "style"]):
            tag.decompose()
        return " ".join(soup.get_text(" ").split())

    @classmethod
    def excerpt(cls, content: str) -> str:
        """Short single-line rendering of a response body for diagnostics."""
        return cls.truncate(cls.visible_text(content))

    @staticmethod
    def truncate(text: str) -> str:
        if len(text) > EXCERPT_LENGTH:
            return text[: EXCERPT_LENGTH - 3] + "..."
        return text

    def _send(self, stage: Stage, method: str, url: str, **kwargs: Any) -> requests.Response:
        try:
            return self.session.request(
                method,
                url,
                timeout=self.config.timeout,
                verify=self.config.verify_tls,
                allow_redirects=True,
                **kwargs,
            )
        except requests.Timeout as e:
            raise NetworkError(
                f"no response from {url} within {self.config.timeout:g}s", stage
            ) from e
        except requests.exceptions.SSLError as e:
            raise NetworkError(f"TLS error talking to {url}: {e}", stage) from e
        except requests.RequestException as e:
            raise NetworkError(f"{type(e).__name__} talking to {url}: {e}", stage) from e

    @staticmethod
    def _check_content(keywords: Iterable[str], content: str) -> bool:
        """Check if content contains any of the keywords, ignoring case"""
        content = content.lower()
        return any(kw.lower() in content for kw in keywords)

    @staticmethod
    def _login_headers() -> dict[str, str]:
        return {
            "Content-Type": "application/x-www-form-urlencoded",
            "Origin": Path.HOSTNAME,
            "Referer": Path.LOGIN,
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
        }

    @staticmethod
    def _reserve_headers() -> dict[str, str]:
        return {
            "Content-Type": "application/x-www-form-urlencoded",
            "Origin": Path.HOSTNAME,
            "Referer": Path.ADOBE_PROCESS,
        }
