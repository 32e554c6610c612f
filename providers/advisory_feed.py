"""
providers/advisory_feed.py — security advisory feed providers.

Accepted document shapes (JSON):

    {"token": {"existing_version": "8.x-1.5", "recommended": "8.x-1.7"}, ...}

    [{"name": "token", "existing_version": "8.x-1.5", "recommended": "8.x-1.7"}, ...]

`recommended_version` is accepted as an alias of `recommended`. Every entry in
the document is an advisory: the feed lists only packages with known issues.

A feed that cannot be fetched or decoded raises AdvisoryFetchError. An empty
mapping is only ever returned for a feed that really is empty.
"""

import json
import logging
from typing import Any, Dict, Mapping

import requests

from compliance_engine.advisories import AdvisoryRecord
from compliance_engine.base import AdvisoryProvider
from compliance_engine.errors import AdvisoryFetchError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30  # seconds


def _record(name: str, item: Any, source: str) -> AdvisoryRecord:
    if not isinstance(item, dict):
        raise AdvisoryFetchError(f"advisory for '{name}' is not an object", source=source)
    recommended = item.get("recommended", item.get("recommended_version"))
    existing = item.get("existing_version")
    return AdvisoryRecord(
        package_name=name,
        existing_version="" if existing is None else str(existing),
        recommended_version="" if recommended is None else str(recommended),
    )


def parse_advisories(raw: Any, source: str = "") -> Dict[str, AdvisoryRecord]:
    """
    Decode an advisory document into a mapping keyed by package name.

    Raises:
        AdvisoryFetchError : the document has neither accepted shape.
    """
    feed: Dict[str, AdvisoryRecord] = {}

    if isinstance(raw, dict):
        for name, item in raw.items():
            feed[str(name)] = _record(str(name), item, source)
    elif isinstance(raw, list):
        for item in raw:
            name = item.get("name") if isinstance(item, dict) else None
            if not isinstance(name, str) or not name:
                raise AdvisoryFetchError(f"advisory entry without a name: {item!r}", source=source)
            feed[name] = _record(name, item, source)
    else:
        raise AdvisoryFetchError(
            f"advisory feed must be a JSON object or array, got {type(raw).__name__}",
            source=source,
        )
    return feed


class HttpAdvisoryFeed(AdvisoryProvider):
    """
    Fetches the advisory document over HTTP.

    Args:
        url     : Feed endpoint.
        timeout : HTTP request timeout in seconds.
    """

    def __init__(self, url: str, timeout: float = DEFAULT_TIMEOUT) -> None:
        self._url = url
        self._timeout = timeout

    @property
    def name(self) -> str:
        return "HttpAdvisoryFeed"

    def fetch(self) -> Dict[str, AdvisoryRecord]:
        logger.info("Fetching security advisories from %s", self._url)
        try:
            resp = requests.get(
                self._url,
                timeout=self._timeout,
                headers={"Accept": "application/json"},
            )
        except requests.exceptions.RequestException as exc:
            raise AdvisoryFetchError(f"Advisory request failed: {exc}", source=self._url) from exc

        if resp.status_code != 200:
            raise AdvisoryFetchError(
                f"Advisory request failed with error code {resp.status_code}.",
                source=self._url,
                status_code=resp.status_code,
            )

        try:
            raw = resp.json()
        except ValueError as exc:
            raise AdvisoryFetchError(f"Advisory feed is not valid JSON: {exc}", source=self._url) from exc

        return parse_advisories(raw, source=self._url)


class FileAdvisoryFeed(AdvisoryProvider):
    """Reads the advisory document from a local JSON file."""

    def __init__(self, path: str) -> None:
        self._path = path

    @property
    def name(self) -> str:
        return "FileAdvisoryFeed"

    def fetch(self) -> Dict[str, AdvisoryRecord]:
        try:
            with open(self._path, encoding="utf-8") as f:
                raw = json.load(f)
        except OSError as exc:
            raise AdvisoryFetchError(f"cannot read advisory file: {exc}", source=self._path) from exc
        except json.JSONDecodeError as exc:
            raise AdvisoryFetchError(f"advisory file is not valid JSON: {exc}", source=self._path) from exc

        return parse_advisories(raw, source=self._path)


class StaticAdvisoryFeed(AdvisoryProvider):
    """Serves a fixed advisory mapping."""

    def __init__(self, advisories: Mapping[str, AdvisoryRecord]) -> None:
        self._advisories = dict(advisories)

    @property
    def name(self) -> str:
        return "StaticAdvisoryFeed"

    def fetch(self) -> Dict[str, AdvisoryRecord]:
        return dict(self._advisories)
