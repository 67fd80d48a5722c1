import requests
from requests.adapters import HTTPAdapter
from typing import Callable, Optional

from linkaudit.domain.http_response import HttpResponse
from linkaudit.exceptions import HttpFetchError

DEFAULT_ACCEPT = "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8"


def make_http_session(max_redirects: int = 5, retries: int = 0) -> requests.Session:
    """Build a requests Session with a bounded redirect count and connect retries."""
    session = requests.Session()
    session.max_redirects = max_redirects
    adapter = HTTPAdapter(max_retries=retries)
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    return session


class HttpService:
    """
    HTTP client wrapper for fetching pages and checking links.

    Every status code is returned as data; only transport failures raise.
    Requires http_client callable for dependency injection so tests can
    swap in a fake and callers can choose the session/redirect policy.
    """

    def __init__(self, user_agent: str, http_client: Callable, timeout: float = 10, accept: str = DEFAULT_ACCEPT, head_client: Optional[Callable] = None):
        self.user_agent = user_agent
        self.timeout = timeout
        self.http_client = http_client
        self.accept = accept
        self.head_client = head_client or requests.head

    def _headers(self, accept: Optional[str] = None) -> dict:
        return {
            "User-Agent": self.user_agent,
            "Accept": accept or self.accept,
            "Accept-Language": "en-US,en;q=0.5",
            "Cache-Control": "no-cache",
        }

    def fetch(self, url: str, accept: Optional[str] = None) -> HttpResponse:
        """Fetch URL (following redirects) and return status, body, headers and final URL."""
        try:
            resp = self.http_client(url, headers=self._headers(accept), timeout=self.timeout, allow_redirects=True)
        except requests.exceptions.RequestException as e:
            raise HttpFetchError(url, e) from e

        # Extract headers if the response has them; let real exceptions bubble up.
        ct = None
        last_modified = None
        if hasattr(resp, 'headers'):
            ct = resp.headers.get('Content-Type')
            last_modified = resp.headers.get('Last-Modified')

        final_url = getattr(resp, 'url', None) or url
        return HttpResponse(resp.status_code, resp.text, ct, final_url=final_url, requested_url=url, last_modified=last_modified)

    def check_status(self, url: str) -> HttpResponse:
        """GET `url` for its status only; the body is never downloaded."""
        try:
            resp = self.http_client(url, headers=self._headers(), timeout=self.timeout, allow_redirects=True, stream=True)
        except requests.exceptions.RequestException as e:
            raise HttpFetchError(url, e) from e
        try:
            headers = getattr(resp, 'headers', None) or {}
            return HttpResponse(
                resp.status_code,
                "",
                headers.get('Content-Type'),
                final_url=getattr(resp, 'url', None) or url,
                requested_url=url,
                content_length=headers.get("Content-Length"),
            )
        finally:
            resp.close()

    def head(self, url: str, timeout: Optional[float] = None) -> HttpResponse:
        """Issue a HEAD request; body is always empty."""
        try:
            resp = self.head_client(url, headers={"User-Agent": self.user_agent}, timeout=timeout or self.timeout, allow_redirects=True)
        except requests.exceptions.RequestException as e:
            raise HttpFetchError(url, e) from e
        headers = getattr(resp, 'headers', None) or {}
        return HttpResponse(
            resp.status_code,
            "",
            headers.get('Content-Type'),
            final_url=getattr(resp, 'url', None) or url,
            requested_url=url,
            content_length=headers.get("Content-Length"),
        )

    def fetch_sitemap(self, sitemap_url: str) -> HttpResponse:
        """Fetch a sitemap document - delegates to fetch() with an XML Accept header."""
        return self.fetch(sitemap_url, accept="application/xml, text/xml, */*")
