"""Substitute secret placeholders in configuration dictionaries.

Supports ``${PROVIDER:SECRET:KEY}`` placeholders anywhere inside string
values. After parsing a configuration document, call
:func:`transform_config` with the providers the host has registered to
replace placeholders with resolved values.

Examples::

    # Whole value
    password = "${k8s:db-credentials:password}"

    # Embedded in a larger string
    url = "postgres://app:${k8s:db-credentials:password}@db:5432/app"
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from k8s_config_provider.core.secrets.base import ConfigData

logger = logging.getLogger(__name__)

PLACEHOLDER_PATTERN = re.compile(r"\$\{([^}:]+):([^}:]+):([^}]+)\}")
"""Regex matching ``${PROVIDER:SECRET:KEY}`` placeholders."""


class ConfigResolver(Protocol):
    """Anything that resolves a secret name and key set into config data."""

    def resolve(self, secret_name: str | None, keys: Iterable[str] | None = None) -> ConfigData: ...


@dataclass(frozen=True)
class Placeholder:
    """A single ``${PROVIDER:SECRET:KEY}`` occurrence.

    Args:
        provider: Name the resolver is registered under.
        secret_name: Secret holding the value.
        key: Key within the secret.
    """

    provider: str
    secret_name: str
    key: str


def find_placeholders(value: str) -> list[Placeholder]:
    """Return every placeholder in *value*, in order of appearance."""
    return [
        Placeholder(provider=m.group(1), secret_name=m.group(2), key=m.group(3))
        for m in PLACEHOLDER_PATTERN.finditer(value)
    ]


def transform_config(
    config: Mapping[str, Any],
    providers: Mapping[str, ConfigResolver],
) -> dict[str, Any]:
    """Recursively substitute secret placeholders in a config dictionary.

    Placeholders are grouped by provider and secret, so each referenced
    secret is read once with exactly the keys the document uses.
    Placeholders naming an unregistered provider, or a key the secret
    does not return, are left unchanged.

    Args:
        config: Parsed configuration document.
        providers: Resolvers keyed by the provider name used in
            placeholders (e.g. ``{"k8s": provider}``).

    Returns:
        A new dictionary with placeholders replaced by their values.

    Raises:
        ConfigProviderError: If any provider fails to resolve a secret.
    """
    wanted: dict[tuple[str, str], set[str]] = {}
    _collect(config, wanted)

    resolved: dict[tuple[str, str], dict[str, str]] = {}
    for (provider_name, secret_name), keys in wanted.items():
        provider = providers.get(provider_name)
        if provider is None:
            logger.warning("No config provider registered as '%s'", provider_name)
            continue
        resolved[(provider_name, secret_name)] = provider.resolve(secret_name, keys).data

    return _substitute_dict(config, resolved)


def _collect(value: Any, wanted: dict[tuple[str, str], set[str]]) -> None:
    if isinstance(value, str):
        for placeholder in find_placeholders(value):
            wanted.setdefault((placeholder.provider, placeholder.secret_name), set()).add(placeholder.key)
    elif isinstance(value, Mapping):
        for item in value.values():
            _collect(item, wanted)
    elif isinstance(value, list):
        for item in value:
            _collect(item, wanted)


def _substitute_value(value: Any, resolved: dict[tuple[str, str], dict[str, str]]) -> Any:
    """Substitute a single value, recursing into dicts and lists."""
    if isinstance(value, str):
        return PLACEHOLDER_PATTERN.sub(lambda m: _replacement(m, resolved), value)
    if isinstance(value, Mapping):
        return _substitute_dict(value, resolved)
    if isinstance(value, list):
        return [_substitute_value(item, resolved) for item in value]
    return value


def _substitute_dict(
    d: Mapping[str, Any], resolved: dict[tuple[str, str], dict[str, str]]
) -> dict[str, Any]:
    return {key: _substitute_value(val, resolved) for key, val in d.items()}


def _replacement(match: re.Match[str], resolved: dict[tuple[str, str], dict[str, str]]) -> str:
    provider_name, secret_name, key = match.groups()
    data = resolved.get((provider_name, secret_name))
    if data is None or key not in data:
        logger.warning("Leaving unresolved placeholder %s", match.group(0))
        return match.group(0)
    return data[key]
