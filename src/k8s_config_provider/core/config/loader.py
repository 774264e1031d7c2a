"""HOCON configuration loader using dataconf.

This module provides functions for loading provider configuration from
HOCON files, strings, environment variables and layered overrides using
dataconf.
"""

from collections.abc import Mapping
from typing import Any, TypeVar, cast

import dataconf

T = TypeVar("T")


def load_from_file(path: str, config_class: type[T]) -> T:
    """Load configuration from a HOCON file.

    Args:
        path: Path to the HOCON configuration file
        config_class: The configuration dataclass type to load into

    Returns:
        Instance of config_class populated with configuration from the file

    Example:
        >>> config = load_from_file("provider.conf", ProviderConfig)
    """
    return cast(T, dataconf.file(path, config_class))


def load_from_string(hocon_str: str, config_class: type[T]) -> T:
    """Load configuration from a HOCON string.

    Args:
        hocon_str: HOCON configuration as a string
        config_class: The configuration dataclass type to load into

    Returns:
        Instance of config_class populated with configuration from the string

    Example:
        >>> hocon = '''
        ... {
        ...   namespace: "my-ns"
        ...   key_not_found: fail
        ... }
        ... '''
        >>> config = load_from_string(hocon, ProviderConfig)
    """
    return cast(T, dataconf.string(hocon_str, config_class))


def load_from_env(prefix: str, config_class: type[T]) -> T:
    """Load configuration from environment variables.

    Args:
        prefix: Prefix for environment variables (e.g., "K8S_CONFIG_PROVIDER_")
        config_class: The configuration dataclass type to load into

    Returns:
        Instance of config_class populated with configuration from env vars

    Example:
        >>> # With K8S_CONFIG_PROVIDER_NAMESPACE=my-ns
        >>> config = load_from_env("K8S_CONFIG_PROVIDER_", ProviderConfig)

    Note:
        Environment variables should use the format: PREFIX_FIELD_NAME=value
        Nested fields use double underscores: PREFIX_LOGGING__LEVEL=DEBUG
    """
    return cast(T, dataconf.env(prefix, config_class))


def load_with_overrides(
    path: str | None,
    config_class: type[T],
    overrides: Mapping[str, Any],
    defaults: Mapping[str, Any] | None = None,
) -> T:
    """Load configuration from layered sources, later layers winning.

    Layers are merged in order ``defaults``, the HOCON file at ``path``
    (when given), then ``overrides``, before the dataclass is built. Nested
    objects are merged key by key, so an override for one field of a nested
    section keeps the file's other fields.

    Args:
        path: Path to a HOCON configuration file, or ``None``
        config_class: The configuration dataclass type to load into
        overrides: Plain values that take precedence over the file
        defaults: Plain values used when neither the file nor the overrides
            set a field

    Returns:
        Instance of config_class populated from the merged sources

    Example:
        >>> config = load_with_overrides("provider.conf", ProviderConfig, {"namespace": "prod"})
    """
    loader = dataconf.multi.dict(dict(defaults or {}))
    if path is not None:
        loader = loader.file(path)
    return cast(T, loader.dict(dict(overrides)).on(config_class))
