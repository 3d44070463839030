"""Image fetch utilities for album art."""

from __future__ import annotations

import base64
import logging
from typing import Optional

import requests
from requests.adapters import HTTPAdapter, Retry

logger = logging.getLogger(__name__)


def http_session(retries: int = 2, user_agent: str | None = None) -> requests.Session:
    """Build a session that retries transport errors and 429/5xx responses."""
    s = requests.Session()
    retry = Retry(
        total=retries,
        connect=retries,
        read=retries,
        backoff_factor=0.3,
        status_forcelist=(429, 500, 502, 503, 504),
        allowed_methods=frozenset(["GET"]),
        raise_on_status=False,
    )
    s.mount("http://", HTTPAdapter(max_retries=retry))
    s.mount("https://", HTTPAdapter(max_retries=retry))
    if user_agent:
        s.headers.update({"User-Agent": user_agent})
    return s


def fetch_image_bytes(
    url: str, session: requests.Session | None = None, timeout: float | None = None
) -> bytes:
    """Download an image body. Raises on transport errors and non-2xx."""
    getter = session or requests
    resp = getter.get(url, timeout=timeout)
    resp.raise_for_status()
    return resp.content


def fetch_inline_image(
    url: str,
    max_bytes: int,
    session: requests.Session | None = None,
    timeout: float | None = None,
) -> Optional[str]:
    """Return ``url`` as a base64 data URI if its declared size is small enough.

    Only responses that declare a ``Content-Length`` strictly below
    ``max_bytes`` are downloaded. Anything else, including failures, returns
    None so callers keep the plain URL reference.

    Args:
        url: Absolute image URL.
        max_bytes: Inline ceiling in bytes.
        session: Optional ``requests.Session``.
        timeout: Optional request timeout in seconds.

    Returns:
        ``data:<content-type>;base64,...`` string, or None.
    """
    getter = session or requests
    try:
        with getter.get(url, stream=True, timeout=timeout) as resp:
            if not resp.ok:
                return None
            try:
                content_length = int(resp.headers.get("Content-Length") or 0)
            except ValueError:
                content_length = 0
            if not content_length or content_length >= max_bytes:
                logger.debug(
                    "not inlining %s (content-length=%s)", url, content_length
                )
                return None
            body = resp.content
            content_type = resp.headers.get("Content-Type") or "image/jpeg"
    except Exception as e:
        logger.warning("failed to inline %s: %s", url, e)
        return None
    return f"data:{content_type};base64,{base64.b64encode(body).decode('utf-8')}"
