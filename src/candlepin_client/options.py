"""Validation, merging and subsetting of per-call option mappings.

Resource methods declare the options they accept as a mapping of defaults.
Callers override some of them; a typo in an option name is an error rather
than a silently ignored key.
"""

from __future__ import annotations

from typing import Any, Callable, Hashable, Iterable, Mapping

from .exceptions import ConfigurationError, MissingKeyError

SubsetHook = Callable[[dict[Hashable, Any], Mapping[Hashable, Any]], None]


def _flatten_keys(keys: tuple[Any, ...]) -> list[Hashable]:
    # select_subset(src, "a", "b") and select_subset(src, ["a", "b"]) are equivalent.
    if len(keys) == 1 and isinstance(keys[0], (list, tuple, set, frozenset)):
        return list(keys[0])
    return list(keys)


def verify_keys(supplied: Mapping[Hashable, Any], valid_keys: Iterable[Hashable]) -> None:
    """Raise ConfigurationError if ``supplied`` has keys outside ``valid_keys``."""
    valid = set(valid_keys)
    extra = [key for key in supplied if key not in valid]
    if extra:
        raise ConfigurationError(f"unknown option(s): {', '.join(map(str, extra))}")


def merge_defaults(
    supplied: Mapping[Hashable, Any] | None,
    defaults: Mapping[Hashable, Any],
) -> dict[Hashable, Any]:
    """Overlay ``supplied`` on ``defaults``, rejecting keys ``defaults`` does not declare."""
    supplied = supplied or {}
    verify_keys(supplied, defaults.keys())
    merged = dict(defaults)
    merged.update(supplied)
    return merged


def select_subset(
    source: Mapping[Hashable, Any],
    *keys: Any,
    hook: SubsetHook | None = None,
) -> dict[Hashable, Any]:
    """Return a new mapping holding only ``keys`` from ``source``.

    ``hook(subset, source)`` runs after selection so callers can derive extra
    entries from options that were not themselves copied, e.g.::

        def add_hypervisor(subset, opts):
            if opts["hypervisor_id"]:
                subset["hypervisorId"] = {"hypervisorId": opts["hypervisor_id"]}

        select_subset(opts, "name", "facts", hook=add_hypervisor)
    """
    wanted = _flatten_keys(keys)
    missing = [key for key in wanted if key not in source]
    if missing:
        raise MissingKeyError(f"missing keys: {', '.join(map(str, missing))}", missing=missing)

    subset = {key: source[key] for key in wanted}
    if hook is not None:
        hook(subset, source)
    return subset


def camel_case(name: str) -> str:
    """Convert ``snake_case`` to ``camelCase``; names without ``_`` pass through."""
    parts = name.split("_")
    if len(parts) == 1:
        return name
    return parts[0] + "".join(part.capitalize() for part in parts[1:])


def camelize_keys(mapping: Mapping[Hashable, Any], *keys: Any) -> dict[Hashable, Any]:
    """Rename every key to its camelCase wire form, optionally subsetting first."""
    if keys:
        mapping = select_subset(mapping, *keys)
    return {
        camel_case(key) if isinstance(key, str) else key: value
        for key, value in mapping.items()
    }
