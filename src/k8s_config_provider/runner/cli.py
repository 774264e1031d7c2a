"""Command-line interface for resolving secrets and rendering configs."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Any

from prometheus_client import CollectorRegistry

from k8s_config_provider.core.audit.sinks import AuditSink, FileAuditSink, LoggingAuditSink
from k8s_config_provider.core.config.base import KeyNotFoundPolicy, MetricsBackend
from k8s_config_provider.core.config.loader import load_with_overrides
from k8s_config_provider.core.config.provider import ProviderConfig
from k8s_config_provider.core.config.transformer import transform_config
from k8s_config_provider.core.metrics.exporters import PrometheusRegistry
from k8s_config_provider.core.metrics.registry import InMemoryRegistry, MeterRegistry
from k8s_config_provider.core.secrets.audit import SecretsAuditLogger
from k8s_config_provider.core.secrets.exceptions import ConfigProviderError, InvalidArgumentError
from k8s_config_provider.core.secrets.resolver import SecretConfigProvider

logger = logging.getLogger(__name__)

_LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def _build_parser() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--namespace",
        "-n",
        default=None,
        help="Namespace to read secrets from (overrides --config).",
    )
    common.add_argument(
        "--config",
        default=None,
        help="Path to a HOCON provider configuration file.",
    )
    common.add_argument("--kubeconfig", default=None, help="Path to a kubeconfig file.")
    common.add_argument("--context", default=None, help="Kubeconfig context to use.")
    common.add_argument(
        "--in-cluster",
        action="store_true",
        default=False,
        help="Use the in-cluster service account configuration.",
    )
    common.add_argument(
        "--key-not-found",
        choices=[p.value for p in KeyNotFoundPolicy],
        default=None,
        help="Policy when none of the requested keys exist (default: ignore).",
    )
    common.add_argument(
        "--request-timeout",
        type=float,
        default=None,
        help="Kubernetes API request timeout in seconds.",
    )
    common.add_argument(
        "--audit-log",
        default=None,
        help="Append secret access audit events to this JSON-lines file.",
    )
    common.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Set the logging level (default: from config, else INFO).",
    )

    parser = argparse.ArgumentParser(
        prog="k8s-config-provider",
        description="Resolve configuration values from Kubernetes secrets.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    get = subparsers.add_parser(
        "get",
        parents=[common],
        help="Print the data held by a secret.",
    )
    get.add_argument("secret", help="Name of the secret to read.")
    get.add_argument(
        "--key",
        "-k",
        dest="keys",
        action="append",
        default=None,
        help="Key to return; repeat for several. Defaults to every key.",
    )
    get.add_argument(
        "--format",
        choices=["json", "env"],
        default="json",
        help="Output format (default: json).",
    )

    render = subparsers.add_parser(
        "render",
        parents=[common],
        help="Substitute ${PROVIDER:SECRET:KEY} placeholders in a JSON config file.",
    )
    render.add_argument("file", help="Path to the JSON configuration file.")
    render.add_argument(
        "--provider-name",
        default="k8s",
        help="Provider name placeholders refer to (default: k8s).",
    )
    return parser


def _load_config(args: argparse.Namespace) -> ProviderConfig:
    overrides: dict[str, Any] = {}
    if args.namespace is not None:
        overrides["namespace"] = args.namespace
    if args.kubeconfig is not None:
        overrides["kubeconfig"] = args.kubeconfig
    if args.context is not None:
        overrides["context"] = args.context
    if args.in_cluster:
        overrides["in_cluster"] = True
    if args.key_not_found is not None:
        overrides["key_not_found"] = args.key_not_found
    if args.request_timeout is not None:
        overrides["request_timeout_seconds"] = args.request_timeout
    if args.audit_log is not None:
        overrides["audit"] = {"audit_trail_path": args.audit_log}

    # Flags are merged over the file before validation so they can fill gaps
    return load_with_overrides(args.config, ProviderConfig, overrides, defaults={"namespace": ""})


def _build_registry(config: ProviderConfig) -> MeterRegistry | None:
    if config.metrics is None or not config.metrics.enabled:
        return None
    if config.metrics.backend is MetricsBackend.PROMETHEUS:
        return PrometheusRegistry(CollectorRegistry())
    return InMemoryRegistry()


def _build_provider(
    config: ProviderConfig,
    metrics: MeterRegistry | None = None,
) -> SecretConfigProvider | SecretsAuditLogger:
    provider = SecretConfigProvider.from_config(config, metrics=metrics)
    if config.audit is None or not config.audit.enabled:
        return provider
    sink: AuditSink
    if config.audit.audit_trail_path:
        sink = FileAuditSink(config.audit.audit_trail_path)
    else:
        sink = LoggingAuditSink()
    return SecretsAuditLogger(provider, sink, actor=config.audit.actor)


def _run_get(provider: SecretConfigProvider | SecretsAuditLogger, args: argparse.Namespace) -> None:
    result = provider.resolve(args.secret, args.keys)
    if args.format == "env":
        for key, value in sorted(result.data.items()):
            print(f"{key}={value}")
    else:
        print(json.dumps(result.data, indent=2, sort_keys=True))


def _run_render(provider: SecretConfigProvider | SecretsAuditLogger, args: argparse.Namespace) -> None:
    with open(args.file, encoding="utf-8") as fh:
        document = json.load(fh)
    if not isinstance(document, dict):
        raise ValueError(f"{args.file} must contain a JSON object")
    rendered = transform_config(document, {args.provider_name: provider})
    print(json.dumps(rendered, indent=2))


def _report_metrics(registry: MeterRegistry | None) -> None:
    if isinstance(registry, PrometheusRegistry):
        logger.info("Metrics:\n%s", registry.render().rstrip())
    elif registry is not None:
        logger.info("Metrics: %s", json.dumps(registry.get_metrics(), sort_keys=True))


def main(argv: list[str] | None = None) -> int:
    """CLI entrypoint.

    When metrics are enabled in the configuration, a snapshot is logged
    after the command completes. Secret data is only written to stdout.

    Args:
        argv: Command-line arguments. Defaults to ``sys.argv[1:]``.

    Returns:
        Exit code: 0 for success, 1 for resolution or configuration
        failure, 2 for invalid arguments.
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    try:
        config = _load_config(args)
    except Exception as exc:
        logging.basicConfig(level=args.log_level or "INFO", format=_LOG_FORMAT)
        logger.error("Failed to load provider configuration: %s", exc)
        return 1

    logging.basicConfig(
        level=args.log_level or config.logging.level.value,
        format=config.logging.format,
    )

    registry = _build_registry(config)
    provider = _build_provider(config, registry)
    try:
        if args.command == "get":
            _run_get(provider, args)
        else:
            _run_render(provider, args)
    except InvalidArgumentError as exc:
        logger.error("%s", exc)
        return 2
    except ConfigProviderError as exc:
        logger.error("%s", exc)
        return 1
    except (OSError, ValueError) as exc:
        logger.error("Command '%s' failed: %s", args.command, exc)
        return 1
    finally:
        provider.close()
        _report_metrics(registry)
    return 0


if __name__ == "__main__":
    sys.exit(main())
