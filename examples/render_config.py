"""Example of resolving secrets and rendering placeholders in a config."""

import json

from k8s_config_provider.core.config import transform_config
from k8s_config_provider.core.secrets import InMemorySecretStore, SecretConfigProvider


def main() -> None:
    """Resolve a secret from an in-memory store and render a config document."""
    # Stand-in for the cluster; swap for KubernetesSecretStore() against a real one
    store = InMemorySecretStore()
    store.put(
        "kafka",
        "db-credentials",
        string_values={"username": "connect"},
        binary_values={"password": b"s3cr3t"},
    )

    provider = SecretConfigProvider(store)
    provider.configure({"namespace": "kafka"})

    print("All keys:", sorted(provider.resolve("db-credentials").data))
    print("Filtered:", sorted(provider.resolve("db-credentials", {"username", "missing"}).data))

    document = {
        "connection.url": "jdbc:postgresql://db:5432/app",
        "connection.user": "${k8s:db-credentials:username}",
        "connection.password": "${k8s:db-credentials:password}",
    }
    rendered = transform_config(document, {"k8s": provider})
    print(json.dumps({k: v if "password" not in k else "***" for k, v in rendered.items()}, indent=2))

    provider.close()


if __name__ == "__main__":
    main()
