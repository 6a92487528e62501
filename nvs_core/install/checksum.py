"""SHA-256 verification against a published checksum document."""

from __future__ import annotations

import hashlib
import io
import logging
from typing import BinaryIO

import requests
from requests.exceptions import RequestException

from nvs_core.cancellation import CancelToken, check_cancelled
from nvs_core.http import HttpConfig, build_session

from .errors import ChecksumDownloadFailedError, ChecksumFileEmptyError, ChecksumMismatchError

logger = logging.getLogger(__name__)

_HASH_CHUNK = 1024 * 1024


def sha256_file(fileobj: BinaryIO, *, cancel: CancelToken | None = None) -> str:
    """Hex SHA-256 of the whole file; the position is rewound before and after."""
    fileobj.seek(0, io.SEEK_SET)
    digest = hashlib.sha256()
    while True:
        check_cancelled(cancel, "checksum computation")
        chunk = fileobj.read(_HASH_CHUNK)
        if not chunk:
            break
        digest.update(chunk)
    fileobj.seek(0, io.SEEK_SET)
    return digest.hexdigest()


class ChecksumVerifier:
    def __init__(self, session: requests.Session | None = None, config: HttpConfig | None = None) -> None:
        self.config = config or HttpConfig()
        self.session = session or build_session(self.config)

    def fetch_expected_digest(self, checksum_url: str) -> str:
        try:
            response = self.session.get(checksum_url, timeout=self.config.timeout)
        except RequestException as exc:
            raise ChecksumDownloadFailedError(checksum_url, detail=str(exc)) from exc
        with response:
            if response.status_code != 200:
                raise ChecksumDownloadFailedError(checksum_url, response.status_code)
            fields = response.text.split()
        if not fields:
            raise ChecksumFileEmptyError(checksum_url)
        return fields[0]

    def verify_checksum(
        self,
        local_file: BinaryIO,
        checksum_url: str,
        *,
        cancel: CancelToken | None = None,
    ) -> str:
        check_cancelled(cancel, "checksum download")
        expected = self.fetch_expected_digest(checksum_url)
        actual = sha256_file(local_file, cancel=cancel)
        if actual != expected:
            raise ChecksumMismatchError(expected, actual)
        logger.debug("checksum verified: %s", actual)
        return actual
