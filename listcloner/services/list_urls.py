"""bsky.app list URLs and at:// list references."""

import re
from typing import NamedTuple

from listcloner.config import settings
from listcloner.core.errors import ValidationError

LIST_COLLECTION = "app.bsky.graph.list"

DID_PATTERN = re.compile(r"^did:[a-z]+:[a-zA-Z0-9._:%-]+$")
LIST_URI_PATTERN = re.compile(r"^at://([^/]+)/app\.bsky\.graph\.list/([^/]+)$")


class ParsedListUrl(NamedTuple):
    owner: str  # handle or DID
    rkey: str


def _list_url_pattern() -> re.Pattern:
    host = re.escape(settings.list_url_host)
    return re.compile(rf"^https://{host}/profile/([^/]+)/lists/([^/]+)$")


def is_did(value: str) -> bool:
    return bool(DID_PATTERN.match(value))


def parse_list_url(url: str) -> ParsedListUrl:
    match = _list_url_pattern().match(url)
    if not match:
        raise ValidationError("Invalid list URL format")
    return ParsedListUrl(owner=match.group(1), rkey=match.group(2))


def build_list_url(owner: str, rkey: str) -> str:
    return f"https://{settings.list_url_host}/profile/{owner}/lists/{rkey}"


def build_list_uri(owner_did: str, rkey: str) -> str:
    return f"at://{owner_did}/{LIST_COLLECTION}/{rkey}"


def is_list_uri(value: str) -> bool:
    return bool(LIST_URI_PATTERN.match(value))
