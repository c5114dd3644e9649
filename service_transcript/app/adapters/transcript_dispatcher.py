"""
Upstream transcript dispatcher for the Transcript Service.
"""

import asyncio
import time
from typing import Any, Callable, Dict, List, Optional, Tuple

import httpx
import requests
from requests.adapters import HTTPAdapter
from youtube_transcript_api import YouTubeTranscriptApi
from youtube_transcript_api.proxies import GenericProxyConfig

from shared.logging import get_logger
from shared.proxy import ProxyConfig
from ..domain.models import RetrievalResult, TranscriptSegment

OEMBED_URL = "https://www.youtube.com/oembed"
WATCH_URL = "https://www.youtube.com/watch?v={video_id}"
DEFAULT_REQUEST_TIMEOUT = 30.0


def placeholder_title(video_id: str) -> str:
    return f"Video {video_id}"


class TimeoutHTTPAdapter(HTTPAdapter):
    """HTTPAdapter that applies a (connect, read) timeout to requests sent without one.

    The extraction library never passes a timeout itself, so without this a
    stalled upstream keeps the worker thread blocked indefinitely.
    """

    def __init__(self, timeout: float, *args, **kwargs):
        self.timeout = (timeout, timeout)
        super().__init__(*args, **kwargs)

    def send(self, request, **kwargs):
        if kwargs.get("timeout") is None:
            kwargs["timeout"] = self.timeout
        return super().send(request, **kwargs)


class TranscriptDispatcher:
    """Runs the upstream transcript fetch, through the forward proxy when configured.

    The extraction library issues several requests per video (watch page,
    player, caption track); handing it a proxy config routes all of them. Each
    of those requests is bounded by ``request_timeout`` so the blocking call,
    which runs in a worker thread, always finishes. No caching or retries
    happen here, and errors propagate unchanged.
    """

    def __init__(
        self,
        proxy: Optional[ProxyConfig] = None,
        *,
        request_timeout: float = DEFAULT_REQUEST_TIMEOUT,
        resolve_titles: bool = False,
        title_timeout: float = 5.0,
        api_factory: Callable[..., Any] = YouTubeTranscriptApi,
    ):
        if request_timeout <= 0:
            raise ValueError("request_timeout must be positive")
        self.proxy = proxy or ProxyConfig.disabled()
        self.request_timeout = request_timeout
        self.resolve_titles = resolve_titles
        self.title_timeout = title_timeout
        self._api_factory = api_factory
        self.logger = get_logger("transcript.dispatcher")

    @property
    def proxy_enabled(self) -> bool:
        return self.proxy.enabled

    def redact(self, text: str) -> str:
        """Scrub proxy credentials from text bound for logs or clients."""
        return self.proxy.redact(text)

    async def dispatch(self, video_id: str) -> RetrievalResult:
        """Fetch the first listed transcript for ``video_id``.

        A video whose transcript list is empty yields a result with no
        segments; deciding what that means is left to the caller.
        """
        start = time.perf_counter()
        self.logger.info("Fetching transcript", video_id=video_id, proxy=self.proxy.display)

        (segments, language), title = await asyncio.gather(
            asyncio.to_thread(self._fetch_segments, video_id),
            self._lookup_title(video_id),
        )

        self.logger.info(
            "Transcript fetched",
            video_id=video_id,
            segments=len(segments),
            language=language,
            duration_ms=round((time.perf_counter() - start) * 1000, 2),
        )
        return RetrievalResult.build(video_id, title, segments, language)

    def _build_session(self) -> requests.Session:
        session = requests.Session()
        adapter = TimeoutHTTPAdapter(self.request_timeout)
        session.mount("https://", adapter)
        session.mount("http://", adapter)
        return session

    def _build_api(self, session: requests.Session):
        kwargs: Dict[str, Any] = {"http_client": session}
        if self.proxy.enabled:
            proxy_url = self.proxy.url
            kwargs["proxy_config"] = GenericProxyConfig(http_url=proxy_url, https_url=proxy_url)
        return self._api_factory(**kwargs)

    def _fetch_segments(self, video_id: str) -> Tuple[List[TranscriptSegment], str]:
        """Blocking upstream call; manual transcripts are listed before generated ones."""
        with self._build_session() as session:
            api = self._build_api(session)
            transcript_list = api.list(video_id)
            transcript = next(iter(transcript_list), None)
            if transcript is None:
                return [], "unknown"

            fetched = transcript.fetch()
        segments = [
            TranscriptSegment(start=float(snippet.start), text=snippet.text, duration=float(snippet.duration))
            for snippet in fetched.snippets
        ]
        return segments, getattr(fetched, "language_code", None) or transcript.language_code

    async def _lookup_title(self, video_id: str) -> str:
        """Real title via oEmbed when enabled, the placeholder otherwise or on failure."""
        if not self.resolve_titles:
            return placeholder_title(video_id)

        params = {"url": WATCH_URL.format(video_id=video_id), "format": "json"}
        try:
            async with httpx.AsyncClient(timeout=self.title_timeout, proxy=self.proxy.url) as client:
                response = await client.get(OEMBED_URL, params=params)
                response.raise_for_status()
                payload = response.json()
                title = payload.get("title") if isinstance(payload, dict) else None
        except (httpx.HTTPError, ValueError) as exc:
            self.logger.warning("Title lookup failed", video_id=video_id, error=self.redact(str(exc)))
            return placeholder_title(video_id)

        return title if isinstance(title, str) and title.strip() else placeholder_title(video_id)
