"""Streaming asset download with percentage progress."""

from __future__ import annotations

import logging
from typing import BinaryIO, Callable, Iterable, Iterator

import requests
from requests.exceptions import RequestException

from nvs_core.cancellation import CancelToken, check_cancelled
from nvs_core.http import HttpConfig, build_session

from .errors import DownloadFailedError

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int], None]


class ProgressCounter:
    """Wraps a chunk iterator and reports ``floor(read * 100 / total)`` per chunk.

    Nothing is reported when ``total`` is unknown (``<= 0``).
    """

    def __init__(self, chunks: Iterable[bytes], total: int, callback: ProgressCallback | None) -> None:
        self._chunks = chunks
        self.total = total
        self.read = 0
        self._callback = callback

    def __iter__(self) -> Iterator[bytes]:
        for chunk in self._chunks:
            self.read += len(chunk)
            if self._callback is not None and self.total > 0:
                self._callback((self.read * 100) // self.total)
            yield chunk


def _content_length(response: requests.Response) -> int:
    raw = response.headers.get("Content-Length")
    if not raw:
        return 0
    try:
        return max(int(raw), 0)
    except ValueError:
        return 0


class Downloader:
    def __init__(self, session: requests.Session | None = None, config: HttpConfig | None = None) -> None:
        self.config = config or HttpConfig()
        self.session = session or build_session(self.config)

    def download_file(
        self,
        url: str,
        destination: BinaryIO,
        progress_callback: ProgressCallback | None = None,
        *,
        cancel: CancelToken | None = None,
    ) -> int:
        """Stream ``url`` into ``destination`` and return the number of bytes written.

        The callback runs inline on every chunk; keep it cheap.
        """
        logger.debug("downloading asset from %s", url)
        check_cancelled(cancel, "download")
        try:
            response = self.session.get(url, stream=True, timeout=self.config.timeout)
        except RequestException as exc:
            raise DownloadFailedError(url, detail=str(exc)) from exc
        with response:
            if response.status_code != 200:
                raise DownloadFailedError(url, response.status_code)
            counter = ProgressCounter(
                response.iter_content(chunk_size=self.config.chunk_size),
                _content_length(response),
                progress_callback,
            )
            try:
                for chunk in counter:
                    check_cancelled(cancel, "download")
                    if chunk:
                        destination.write(chunk)
            except RequestException as exc:
                raise DownloadFailedError(url, detail=f"connection interrupted: {exc}") from exc
            destination.flush()
        logger.debug("downloaded %d bytes from %s", counter.read, url)
        return counter.read
