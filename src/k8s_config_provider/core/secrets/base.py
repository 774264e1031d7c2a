"""Secret store abstractions and models."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field


@dataclass(frozen=True)
class SecretReference:
    """Reference to a secret in a specific namespace.

    Args:
        namespace: Namespace the secret lives in.
        secret_name: Name of the secret object.
    """

    namespace: str
    secret_name: str

    def __str__(self) -> str:
        return f"{self.namespace}/{self.secret_name}"


@dataclass
class RawSecret:
    """Contents of a secret as returned by a :class:`SecretStore`.

    Both mappings share one key space. A key may appear in both; callers
    merging them let ``string_values`` win.

    Args:
        binary_values: Raw payloads keyed by secret key.
        string_values: Plain-text values keyed by secret key.
    """

    binary_values: dict[str, bytes] = field(default_factory=dict)
    string_values: dict[str, str] = field(default_factory=dict)

    def __repr__(self) -> str:
        return (
            f"RawSecret("
            f"binary_keys={sorted(self.binary_values)!r}, "
            f"string_keys={sorted(self.string_values)!r})"
        )


@dataclass
class ConfigData:
    """Result of resolving a secret reference.

    Values are masked in ``__repr__`` to prevent accidental leakage in
    logs or tracebacks.

    Args:
        data: Flat mapping of secret keys to string values.
        ttl: Refresh interval in milliseconds. Secrets are not polled,
            so this is always ``None`` for values produced here.
    """

    data: dict[str, str] = field(default_factory=dict)
    ttl: int | None = None

    def __repr__(self) -> str:
        return f"ConfigData(keys={sorted(self.data)!r}, ttl={self.ttl!r})"


class SecretStore(ABC):
    """Base class for secret stores.

    Subclasses implement :meth:`read` to fetch a secret from a specific
    backend (Kubernetes API, in-memory fixtures, etc.). Failures are
    raised, never returned.
    """

    @abstractmethod
    def read(self, namespace: str, secret_name: str) -> RawSecret:
        """Read a single secret.

        Raises:
            SecretNotFoundError: If the secret does not exist.
            SecretStoreError: On any other backend failure.
        """
        ...

    def close(self) -> None:  # noqa: B027
        """Release backend resources."""
