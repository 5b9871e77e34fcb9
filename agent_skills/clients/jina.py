"""
Jina reader and search client.

`s.jina.ai` runs a web search and returns the top results with full page
content; `r.jina.ai` converts a single URL (including PDFs) to markdown.
Both answer either JSON or a markdown document with `Title:` and
`URL Source:` header lines.
"""

import json
import re
from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Optional
from urllib.parse import quote, urlencode

import httpx

from agent_skills.core.errors import ApiError

SEARCH_URL = "https://s.jina.ai/"
READER_URL = "https://r.jina.ai/"
USER_AGENT = "agent-skills-jina/1.0"
API_KEY_HINT = (
    "Get a free API key at: https://jina.ai/reader\n"
    'Then add to your shell profile: export JINA_API_KEY="your-key"'
)

_TITLE_LINE = re.compile(r"^Title:\s*(.+?)$", re.MULTILINE)
_URL_LINE = re.compile(r"URL Source:\s*(.+?)$", re.MULTILINE)


@dataclass
class PageResult:
    """One page: title, source URL and markdown content."""
    title: str
    url: str
    content: str

    def to_dict(self) -> Dict[str, str]:
        return asdict(self)


def _content_after(text: str, marker: str) -> Optional[str]:
    """Everything after the line holding `marker`, None if that is the last line."""
    line_end = text.find("\n", text.find(marker))
    if line_end == -1:
        return None
    return text[line_end:].strip()


def parse_markdown_results(text: str) -> List[PageResult]:
    """Split a markdown search answer into results.

    Sections start at each `Title:` line; only sections that also carry a
    `URL Source:` line count as results.
    """
    results = []
    for section in re.split(r"(?=Title:)", text):
        if not section.strip():
            continue
        title_match = re.match(r"Title:\s*(.+?)(?:\n|$)", section)
        url_match = _URL_LINE.search(section)
        if title_match and url_match:
            results.append(PageResult(
                title=title_match.group(1).strip(),
                url=url_match.group(1).strip(),
                content=_content_after(section, "URL Source:") or "",
            ))
    return results


def parse_markdown_page(text: str) -> PageResult:
    """Extract title, URL and body from a single reader page."""
    title_match = _TITLE_LINE.search(text)
    url_match = _URL_LINE.search(text)

    content = None
    if url_match:
        content = _content_after(text, "URL Source:")
    elif title_match:
        content = _content_after(text, "Title:")
    if content is None:
        content = text

    return PageResult(
        title=title_match.group(1).strip() if title_match else "",
        url=url_match.group(1).strip() if url_match else "",
        content=content,
    )


def _page_from_item(item: Dict[str, Any]) -> PageResult:
    return PageResult(
        title=item.get("title") or "",
        url=item.get("url") or "",
        content=item.get("content") or "",
    )


def parse_search_response(text: str) -> List[PageResult]:
    """Parse a search answer in any of the shapes the endpoint returns."""
    stripped = text.strip()
    if stripped.startswith(("{", "[")):
        try:
            payload = json.loads(stripped)
        except ValueError:
            return parse_markdown_results(text)
        if isinstance(payload, dict) and isinstance(payload.get("data"), list):
            return [_page_from_item(item) for item in payload["data"]]
        if isinstance(payload, list):
            return [_page_from_item(item) for item in payload]
        if isinstance(payload, dict):
            return [_page_from_item(payload)]
    return parse_markdown_results(text)


def parse_reader_response(text: str, requested_url: str) -> PageResult:
    """Parse a reader answer, falling back to the requested URL."""
    try:
        payload = json.loads(text)
    except ValueError:
        page = parse_markdown_page(text)
        page.url = page.url or requested_url
        return page

    if not isinstance(payload, dict):
        payload = {}
    data = payload.get("data") if isinstance(payload.get("data"), dict) else {}
    return PageResult(
        title=data.get("title") or payload.get("title") or "",
        url=data.get("url") or payload.get("url") or requested_url,
        content=data.get("content") or payload.get("content") or "",
    )


def build_search_url(query: str, sites: Optional[List[str]] = None) -> str:
    url = SEARCH_URL + quote(query, safe="")
    if sites:
        url += "?" + urlencode([("site", site) for site in sites])
    return url


class JinaClient:
    """HTTP client for the Jina search and reader endpoints."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        timeout: float = 60.0,
        transport: Optional[httpx.BaseTransport] = None
    ):
        self.api_key = api_key
        self.timeout = timeout
        self._transport = transport

    def _headers(self, as_json: bool) -> Dict[str, str]:
        headers = {"User-Agent": USER_AGENT}
        if as_json:
            headers["Accept"] = "application/json"
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    def _get(self, url: str, headers: Dict[str, str], timeout: float) -> str:
        try:
            with httpx.Client(timeout=timeout, transport=self._transport) as http:
                response = http.get(url, headers=headers)
        except httpx.TimeoutException:
            raise ApiError("Request timeout")
        except httpx.HTTPError as e:
            raise ApiError(f"Request failed: {e}")

        if not response.is_success:
            raise ApiError(
                f"HTTP {response.status_code}: {response.text}",
                status_code=response.status_code,
                body=response.text,
            )
        return response.text

    def search(
        self,
        query: str,
        sites: Optional[List[str]] = None,
        as_json: bool = False
    ) -> List[PageResult]:
        """Search the web; requires an API key."""
        if not self.api_key:
            raise ValueError("api_key is required for search")
        text = self._get(build_search_url(query, sites), self._headers(as_json), self.timeout)
        return parse_search_response(text)

    def read(
        self,
        url: str,
        as_json: bool = False,
        timeout: int = 30,
        wait_for: Optional[str] = None
    ) -> str:
        """Fetch a page through the reader and return the raw answer.

        `timeout` is passed to Jina as `x-timeout`; the HTTP call itself
        waits ten seconds longer.
        """
        headers = self._headers(as_json)
        if timeout:
            headers["x-timeout"] = str(timeout)
        if wait_for:
            headers["x-wait-for-selector"] = wait_for
        return self._get(READER_URL + url, headers, float(timeout + 10))
