"""
providers/lock_manifest.py

Reads the set of managed module names from a composer lock file.

A missing, unreadable or undecodable lock file is not an error: it yields
None ("absent"), which the unused-package check treats as "cannot tell
managed from abandoned". A readable lock file with no matching packages
yields an empty set ("present, declares nothing").
"""

import json
import logging
from typing import Any, FrozenSet, Iterable, Optional

logger = logging.getLogger(__name__)

DEFAULT_PACKAGE_TYPES = ("drupal-module",)


def _short_name(package_name: str) -> str:
    """'drupal/token' → 'token'."""
    return package_name.split("/", 1)[1] if "/" in package_name else package_name


def managed_names(descriptors: Iterable[Any], package_types: Iterable[str] = DEFAULT_PACKAGE_TYPES) -> FrozenSet[str]:
    types = frozenset(package_types)
    names = set()
    for descriptor in descriptors:
        if not isinstance(descriptor, dict):
            continue
        name = descriptor.get("name")
        if descriptor.get("type") in types and isinstance(name, str) and name:
            names.add(_short_name(name))
    return frozenset(names)


def read_lock_manifest(
    path: str,
    package_types: Iterable[str] = DEFAULT_PACKAGE_TYPES,
) -> Optional[FrozenSet[str]]:
    """
    Return the names of the packages the lock file declares, or None when the
    lock file is absent.

    Accepts a composer.lock object (descriptors under `packages`) or a bare
    JSON array of descriptors.
    """
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        logger.warning("Composer %s does not exist.", path)
        return None
    except (OSError, json.JSONDecodeError) as exc:
        logger.warning("Composer %s could not be read: %s", path, exc)
        return None

    if isinstance(data, dict):
        descriptors = data.get("packages") or []
    elif isinstance(data, list):
        descriptors = data
    else:
        logger.warning("Composer %s has an unexpected layout; treating it as absent.", path)
        return None

    names = managed_names(descriptors, package_types)
    logger.debug("Lock manifest %s declares %d managed modules", path, len(names))
    return names
