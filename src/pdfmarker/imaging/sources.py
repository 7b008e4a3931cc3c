"""
Resolution of image and document locators to raw bytes.

A locator is an embedded ``data:`` URI, an http(s) URL, a ``file://``
URL or a filesystem path. Fetch failures are surfaced, never retried.
"""

from __future__ import annotations

import base64
import binascii
from pathlib import Path
from typing import Optional, Union
from urllib.parse import unquote_to_bytes, urlparse

import requests

from ..errors import DecodeFailureError, FetchFailureError
from ..logging import get_logger

logger = get_logger(__name__)

DEFAULT_TIMEOUT = 30.0

Locator = Union[str, Path, bytes, bytearray]


def is_data_uri(src: str) -> bool:
    return isinstance(src, str) and src.startswith("data:")


def decode_data_uri(src: str) -> bytes:
    """Decode the payload of a ``data:`` URI."""
    comma = src.find(",")
    if comma == -1:
        raise DecodeFailureError("Invalid data URI: missing ',' separator")
    header, payload = src[5:comma], src[comma + 1:]
    if header.endswith(";base64"):
        try:
            return base64.b64decode(payload, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise DecodeFailureError(f"Invalid base64 payload in data URI: {exc}") from exc
    return unquote_to_bytes(payload)


def fetch_bytes(
    locator: Locator,
    timeout: float = DEFAULT_TIMEOUT,
    session: Optional[requests.Session] = None,
) -> bytes:
    """
    Resolve a locator to raw bytes.

    Raises:
        FetchFailureError: If the remote or local resource cannot be read
        DecodeFailureError: If an embedded data URI is malformed
    """
    if isinstance(locator, (bytes, bytearray)):
        return bytes(locator)
    if isinstance(locator, Path):
        return _read_file(locator)
    if is_data_uri(locator):
        return decode_data_uri(locator)

    parsed = urlparse(locator)
    if parsed.scheme in ("http", "https"):
        return _fetch_remote(locator, timeout, session)
    if parsed.scheme == "file":
        return _read_file(Path(unquote_to_bytes(parsed.path).decode("utf-8")))
    return _read_file(Path(locator))


def _fetch_remote(url: str, timeout: float, session: Optional[requests.Session]) -> bytes:
    getter = session.get if session is not None else requests.get
    logger.debug(f"Fetching {url}")
    try:
        response = getter(url, timeout=timeout)
        response.raise_for_status()
    except requests.RequestException as exc:
        raise FetchFailureError(f"Failed to fetch {url}: {exc}") from exc
    return response.content


def _read_file(path: Path) -> bytes:
    try:
        return path.read_bytes()
    except OSError as exc:
        raise FetchFailureError(f"Failed to read {path}: {exc}") from exc
