"""
compliance_engine/policy_store.py

PolicyStore — the QA team's package authorization list.
───────────────────────────────────────────────────────
The policy service publishes one JSON document:

    [
        {"name": "token",    "restricted_use": "0",     "version": "8.x-1.7"},
        {"name": "webform",  "restricted_use": "7,12",  "version": "6.0.0"},
        {"name": "devel",    "restricted_use": "1",     "version": ""},
        ...
    ]

`restricted_use` is a loosely-typed sentinel:

    "0"        → authorized for every project            (GlobalScope)
    "1"        → reserved, carries no restriction data    (ReservedScope)
    "7,12"     → authorized only for projects 7 and 12    (RestrictedScope)

The sentinel is decoded here, once, into a scope variant. Nothing past
`parse_policy()` looks at the raw strings again.

Failure handling:
    load() never returns a partial or empty list on failure. An empty policy
    and an unreachable policy service mean very different things (the former
    flags every contrib module, the latter must abort the run), so transport
    errors and non-200 responses raise PolicyFetchError and bad payloads
    raise PolicyParseError.
"""

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, FrozenSet, List, Mapping, Optional, Union

import requests

from .errors import PolicyFetchError, PolicyParseError

logger = logging.getLogger(__name__)

DEFAULT_POLICY_URL = (
    "https://webgate.ec.europa.eu/fpfis/qa/api/v1/package-reviews"
    "?machine_name=&version=8.x&type=module&review_status=All"
)
DEFAULT_TIMEOUT = 30  # seconds

_GLOBAL_SENTINEL = "0"
_RESERVED_SENTINEL = "1"


# ─────────────────────────────────────────────────────────────────────────────
# Scope variants
# ─────────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class GlobalScope:
    """Rule applies to every project."""

    def applies_to(self, project_id: Optional[str]) -> bool:
        return True


@dataclass(frozen=True)
class RestrictedScope:
    """Rule applies only to the listed projects."""
    projects: FrozenSet[str] = frozenset()

    def applies_to(self, project_id: Optional[str]) -> bool:
        return project_id is not None and str(project_id).strip() in self.projects


@dataclass(frozen=True)
class ReservedScope:
    """
    The "1" sentinel. It is neither a global rule nor a project list, so it
    never contributes to an authorization set.
    """

    def applies_to(self, project_id: Optional[str]) -> bool:
        return False


Scope = Union[GlobalScope, RestrictedScope, ReservedScope]


@dataclass(frozen=True)
class PolicyEntry:
    name: str
    minimum_version: str
    scope: Scope


@dataclass(frozen=True)
class EffectiveAuthorization:
    """
    Authorization set for one project scope, derived from the policy entries.

    Attributes:
        authorized_names        : Package names the project may use.
        minimum_version_by_name : Minimum accepted version per package, only
                                  for packages whose rule declares one.
    """
    authorized_names: FrozenSet[str] = frozenset()
    minimum_version_by_name: Mapping[str, str] = field(
        default_factory=lambda: MappingProxyType({})
    )

    def is_authorized(self, name: str) -> bool:
        return name in self.authorized_names

    def minimum_version(self, name: str) -> Optional[str]:
        return self.minimum_version_by_name.get(name)


# ─────────────────────────────────────────────────────────────────────────────
# Decoding
# ─────────────────────────────────────────────────────────────────────────────

def decode_scope(raw: Any) -> Scope:
    """
    Decode a raw `restricted_use` value.

    Raises:
        PolicyParseError : missing value, or "0" mixed with project ids.
    """
    if raw is None or isinstance(raw, bool):
        raise PolicyParseError(f"invalid restricted_use value: {raw!r}")

    text = str(raw).strip()
    if text == _GLOBAL_SENTINEL:
        return GlobalScope()
    if text == _RESERVED_SENTINEL:
        return ReservedScope()

    projects = frozenset(part.strip() for part in text.split(",") if part.strip())
    if _GLOBAL_SENTINEL in projects:
        raise PolicyParseError(
            f"restricted_use {text!r} combines the global sentinel with a project list"
        )
    return RestrictedScope(projects)


def _scope_category(scope: Scope) -> str:
    return type(scope).__name__


def parse_policy(raw: Any) -> List[PolicyEntry]:
    """
    Decode the raw policy document into typed entries, preserving feed order.

    Raises:
        PolicyParseError : the document is not a list of rule objects, a rule
                           lacks a name or scope, or a name is repeated within
                           the same scope category.
    """
    if not isinstance(raw, list):
        raise PolicyParseError(
            f"policy feed must be a JSON array, got {type(raw).__name__}"
        )

    entries: List[PolicyEntry] = []
    seen = set()

    for index, item in enumerate(raw):
        if not isinstance(item, dict):
            raise PolicyParseError(f"policy entry #{index} is not an object: {item!r}")

        name = item.get("name")
        if not isinstance(name, str) or not name.strip():
            raise PolicyParseError(f"policy entry #{index} has no package name")
        name = name.strip()

        if "restricted_use" not in item:
            raise PolicyParseError(f"policy entry '{name}' has no restricted_use field")
        try:
            scope = decode_scope(item["restricted_use"])
        except PolicyParseError as exc:
            raise PolicyParseError(f"policy entry '{name}': {exc}") from exc

        key = (name, _scope_category(scope))
        if key in seen:
            raise PolicyParseError(
                f"package '{name}' appears more than once with scope {_scope_category(scope)}"
            )
        seen.add(key)

        version = item.get("version")
        entries.append(PolicyEntry(
            name=name,
            minimum_version="" if version is None else str(version).strip(),
            scope=scope,
        ))

    return entries


def resolve_effective(
    entries: List[PolicyEntry],
    project_id: Optional[str] = None,
) -> EffectiveAuthorization:
    """
    Build the authorization set for `project_id`.

    Global entries are always included; restricted entries only when the
    project is listed; reserved entries never. Without a project id only the
    global entries apply. When several included entries name the same
    package, the first one in feed order that declares a version provides
    the minimum.
    """
    names = set()
    minimums = {}

    for entry in entries:
        if not entry.scope.applies_to(project_id):
            continue
        names.add(entry.name)
        if entry.minimum_version and entry.name not in minimums:
            minimums[entry.name] = entry.minimum_version

    logger.debug(
        "Resolved %d authorized packages (%d with minimum version) for project %s",
        len(names), len(minimums), project_id if project_id is not None else "<global>",
    )
    return EffectiveAuthorization(
        authorized_names=frozenset(names),
        minimum_version_by_name=MappingProxyType(minimums),
    )


# ─────────────────────────────────────────────────────────────────────────────
# Fetching
# ─────────────────────────────────────────────────────────────────────────────

class PolicyStore:
    """
    Fetches the policy feed from the policy service.

    Args:
        url     : Policy service endpoint. Defaults to the QA package-review API.
        timeout : HTTP request timeout in seconds.
    """

    def __init__(self, url: str = DEFAULT_POLICY_URL, timeout: float = DEFAULT_TIMEOUT) -> None:
        self._url = url
        self._timeout = timeout

    @property
    def url(self) -> str:
        return self._url

    def load(self) -> List[PolicyEntry]:
        """
        GET and decode the policy feed.

        Raises:
            PolicyFetchError : transport failure or non-200 status.
            PolicyParseError : body is not valid JSON or not a valid policy.
        """
        logger.info("Fetching package policy from %s", self._url)
        try:
            resp = requests.get(
                self._url,
                timeout=self._timeout,
                headers={"Accept": "application/json"},
            )
        except requests.exceptions.RequestException as exc:
            raise PolicyFetchError(
                f"Policy request failed: {exc}", url=self._url
            ) from exc

        if resp.status_code != 200:
            raise PolicyFetchError(
                f"Policy request failed with error code {resp.status_code}.",
                url=self._url,
                status_code=resp.status_code,
            )

        try:
            raw = resp.json()
        except ValueError as exc:
            raise PolicyParseError(f"Policy feed is not valid JSON: {exc}") from exc

        entries = parse_policy(raw)
        logger.info("Loaded %d policy entries", len(entries))
        return entries

    def resolve(self, project_id: Optional[str] = None) -> EffectiveAuthorization:
        """Convenience: load() followed by resolve_effective()."""
        return resolve_effective(self.load(), project_id)
