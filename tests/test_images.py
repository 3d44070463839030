import base64

import pytest
import requests

from conftest import FakeResponse, FakeSession
from src.visuals.io.images import fetch_image_bytes, fetch_inline_image, http_session

URL = "https://img.example/cover.jpg"
LIMIT = 2 * 1024 * 1024


def test_small_image_is_inlined_as_data_uri():
    body = b"\xff\xd8\xff\xe0jpeg-bytes"
    session = FakeSession(
        {
            URL: FakeResponse(
                200,
                content=body,
                headers={"Content-Length": str(len(body)), "Content-Type": "image/png"},
            )
        }
    )

    inline = fetch_inline_image(URL, LIMIT, session=session)

    assert inline == "data:image/png;base64," + base64.b64encode(body).decode()


def test_content_type_defaults_to_jpeg():
    session = FakeSession(
        {URL: FakeResponse(200, content=b"abc", headers={"Content-Length": "3"})}
    )
    assert fetch_inline_image(URL, LIMIT, session=session).startswith(
        "data:image/jpeg;base64,"
    )


@pytest.mark.parametrize(
    "headers",
    [
        {"Content-Length": str(3 * 1024 * 1024)},
        {"Content-Length": str(LIMIT)},
        {},
        {"Content-Length": "not-a-number"},
    ],
)
def test_large_or_undeclared_images_are_not_inlined(headers):
    session = FakeSession({URL: FakeResponse(200, content=b"x", headers=headers)})
    assert fetch_inline_image(URL, LIMIT, session=session) is None


def test_inline_failures_are_swallowed():
    session = FakeSession({URL: requests.ConnectionError("boom")})
    assert fetch_inline_image(URL, LIMIT, session=session) is None
    session = FakeSession({URL: FakeResponse(500, headers={"Content-Length": "3"})})
    assert fetch_inline_image(URL, LIMIT, session=session) is None


def test_fetch_image_bytes_raises_on_error_status():
    session = FakeSession({URL: FakeResponse(403)})
    with pytest.raises(requests.HTTPError):
        fetch_image_bytes(URL, session=session)


def test_http_session_mounts_retrying_adapters():
    s = http_session(retries=3, user_agent="carousel-tests")
    adapter = s.get_adapter("https://ws.audioscrobbler.com/")
    assert adapter.max_retries.total == 3
    assert 503 in adapter.max_retries.status_forcelist
    assert s.headers["User-Agent"] == "carousel-tests"
