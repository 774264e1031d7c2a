"""Secret resolution exceptions."""

from __future__ import annotations

from collections.abc import Iterable


class ConfigProviderError(Exception):
    """Base exception for config provider errors."""

    pass


class InvalidArgumentError(ConfigProviderError, ValueError):
    """A secret name or provider option is missing or blank."""

    pass


class ResolutionFailureError(ConfigProviderError):
    """The secret store failed to return the requested secret."""

    def __init__(self, secret_name: str, namespace: str, cause: Exception) -> None:
        self.secret_name = secret_name
        self.namespace = namespace
        self.cause = cause
        super().__init__(
            f"Failed to read data from secret '{secret_name}' in namespace "
            f"'{namespace}'. Review your configuration: {cause}"
        )
        self.__cause__ = cause


class KeyNotFoundError(ConfigProviderError):
    """None of the requested keys exist in the secret."""

    def __init__(self, secret_name: str, keys: Iterable[str]) -> None:
        self.secret_name = secret_name
        self.keys = frozenset(keys)
        super().__init__(
            f"Keys {sorted(self.keys)} not found in secret '{secret_name}'"
        )


class SecretStoreError(Exception):
    """Raised by a :class:`SecretStore` when a read fails."""

    pass


class SecretNotFoundError(SecretStoreError):
    """The secret does not exist in the given namespace."""

    def __init__(self, namespace: str, name: str) -> None:
        self.namespace = namespace
        self.name = name
        super().__init__(f"Secret '{name}' not found in namespace '{namespace}'")
