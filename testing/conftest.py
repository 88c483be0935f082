"""
Shared fixtures for camper tests.

The Bandcamp API is replaced by a FakeSession that records every POST and
replies with canned pages built into real requests.Response objects.
"""

import json
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import pytest
import requests

FIXED_NOW = datetime(2024, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


def make_item(album_id: int, band: str = "Band", title: str = "Album",
              added: str = "Mon, 02 Jan 2006 15:04:05 -0700") -> Dict[str, Any]:
    """Build one item as the API returns it."""
    return {
        "added": added,
        "band_name": band,
        "album_id": album_id,
        "album_title": title,
        "item_type": "album",
    }


def make_page(items: List[Dict[str, Any]], last_token: str, more_available: bool) -> Dict[str, Any]:
    """Build one page body as the API returns it."""
    return {"items": items, "last_token": last_token, "more_available": more_available}


def make_response(body: Any, status_code: int = 200, url: str = "https://bandcamp.com/") -> requests.Response:
    response = requests.Response()
    response.status_code = status_code
    response.url = url
    response.encoding = "utf-8"
    if isinstance(body, (bytes, str)):
        response._content = body.encode("utf-8") if isinstance(body, str) else body
    else:
        response._content = json.dumps(body).encode("utf-8")
    return response


class FakeSession:
    """Stands in for requests.Session; replies to each post() with the next canned response."""

    def __init__(self, responses: Optional[List[Any]] = None, repeat: Optional[Any] = None):
        self.responses = list(responses or [])
        self.repeat = repeat
        self.calls: List[Dict[str, Any]] = []

    def post(self, url, json=None, cookies=None, timeout=None):
        self.calls.append({"url": url, "json": json, "cookies": cookies, "timeout": timeout})

        if self.responses:
            reply = self.responses.pop(0)
        elif self.repeat is not None:
            reply = self.repeat
        else:
            raise AssertionError(f"Unexpected request #{len(self.calls)} to {url}")

        if isinstance(reply, BaseException):
            raise reply
        if isinstance(reply, requests.Response):
            return reply
        return make_response(reply, url=url)

    @property
    def tokens(self) -> List[str]:
        return [call["json"]["older_than_token"] for call in self.calls]


@pytest.fixture
def fixed_clock():
    return lambda: FIXED_NOW


@pytest.fixture
def config_file(tmp_path):
    """A valid configuration file pointing at a temporary library directory."""
    library = tmp_path / "music"
    library.mkdir()
    path = tmp_path / "config.toml"
    path.write_text(
        "[bandcamp]\n"
        "fan_id = 1234\n"
        "identity = \"secret-cookie\"\n"
        "\n"
        "[library]\n"
        f"path = {json.dumps(str(library))}\n"
        "format = \"flac\"\n",
        encoding="utf-8",
    )
    return path
