# network.py
"""Request/response correlation for in-scope API traffic.

Requests are held in a pending map keyed by the request object itself (one
URL can be in flight several times at once). The matching response pops the
entry, its body is read in a background task and the combined record is
appended to the finalized list. Requests that fail are dropped; requests that
never get a response stay pending. Neither is ever written out.

Each flush writes the calls finalized since the previous flush, so every
step label holds its own traffic. The finalized list itself is never reset.

Everything runs on the event loop: the pending map is only touched from the
synchronous event callbacks, so no entry is seen by two responses.
"""
import asyncio
import json
import logging
import random
import string
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Set

from playwright.async_api import Error as PlaywrightError, Page, Request, Response

from .constants import API_PATTERNS, EXCLUDE_PATTERNS
from .errors import CorrelationReadError
from .models import ApiCall, ApiResponse
from .storage import save_api_calls
from .utils import path_from_url

logger = logging.getLogger(__name__)

DRAIN_TIMEOUT = 10.0


def is_api_call(url: str, api_patterns: Sequence[str] = API_PATTERNS,
                exclude_patterns: Sequence[str] = EXCLUDE_PATTERNS) -> bool:
    lower_url = url.lower()
    is_api = any(pattern in lower_url for pattern in api_patterns)
    is_excluded = any(pattern in lower_url for pattern in exclude_patterns)
    return is_api and not is_excluded


def is_structured(content_type: str) -> bool:
    content_type = (content_type or '').lower()
    return 'application/json' in content_type or '+json' in content_type


def generate_request_id() -> str:
    suffix = ''.join(random.choices(string.ascii_lowercase + string.digits, k=9))
    return f"req_{int(time.time() * 1000)}_{suffix}"


@dataclass
class PendingRequest:
    id: str
    url: str
    method: str
    headers: Dict[str, str]
    post_data: Optional[str]
    timestamp: int


class NetworkCorrelator:
    def __init__(self, output_dir, api_patterns: Sequence[str] = API_PATTERNS,
                 exclude_patterns: Sequence[str] = EXCLUDE_PATTERNS):
        self.output_dir = Path(output_dir)
        self.api_patterns = list(api_patterns)
        self.exclude_patterns = list(exclude_patterns)
        self._pending: Dict[Request, PendingRequest] = {}
        self._finalized: List[ApiCall] = []
        self._inflight: Set[asyncio.Task] = set()
        self._flushed = 0

    def attach(self, page: Page) -> None:
        logger.info("  Setting up network capture...")
        page.on("request", self._on_request)
        page.on("response", self._on_response)
        page.on("requestfailed", self._on_request_failed)

    def in_scope(self, url: str) -> bool:
        return is_api_call(url, self.api_patterns, self.exclude_patterns)

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def current_api_calls(self) -> List[ApiCall]:
        return list(self._finalized)

    def _on_request(self, request: Request) -> None:
        url = request.url
        if not self.in_scope(url):
            return
        self._pending[request] = PendingRequest(
            id=generate_request_id(),
            url=url,
            method=request.method,
            headers=dict(request.headers),
            post_data=request.post_data,
            timestamp=int(time.time() * 1000),
        )

    def _on_request_failed(self, request: Request) -> None:
        pending = self._pending.pop(request, None)
        if pending is not None:
            logger.debug(f"    {pending.method} {path_from_url(pending.url)} failed: {request.failure}")

    def _on_response(self, response: Response) -> None:
        pending = self._pending.pop(response.request, None)
        if pending is None or not self.in_scope(response.url):
            return
        task = asyncio.ensure_future(self._finalize(pending, response))
        self._inflight.add(task)
        task.add_done_callback(self._inflight.discard)

    async def _finalize(self, pending: PendingRequest, response: Response) -> ApiCall:
        headers = dict(response.headers)
        content_type = headers.get('content-type', '')
        try:
            body = await self._read_body(response, content_type)
        except CorrelationReadError as e:
            logger.warning(f"  {e}")
            body = None

        api_call = ApiCall(
            id=pending.id,
            url=pending.url,
            method=pending.method,
            headers=pending.headers,
            post_data=pending.post_data,
            timestamp=pending.timestamp,
            response=ApiResponse(
                status=response.status,
                headers=headers,
                body=body,
                content_type=content_type,
            ),
        )
        self._finalized.append(api_call)
        logger.debug(f"    {api_call.method} {path_from_url(api_call.url)} [{response.status}]")
        return api_call

    async def _read_body(self, response: Response, content_type: str) -> Any:
        try:
            text = await response.text()
        except PlaywrightError as e:
            raise CorrelationReadError(response.url, e) from e
        if text and is_structured(content_type):
            try:
                return json.loads(text)
            except ValueError as e:
                raise CorrelationReadError(response.url, e) from e
        return text

    async def drain(self, timeout: float = DRAIN_TIMEOUT) -> None:
        """Wait for body reads already in flight."""
        if not self._inflight:
            return
        done, pending = await asyncio.wait(set(self._inflight), timeout=timeout)
        if pending:
            logger.warning(f"  {len(pending)} response bodies still being read after {timeout}s")

    async def flush_to_store(self, label: str) -> List[ApiCall]:
        await self.drain()
        api_calls = self._finalized[self._flushed:]
        self._flushed += len(api_calls)
        save_api_calls(api_calls, self.output_dir, label)
        return api_calls
