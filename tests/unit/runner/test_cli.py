"""Tests for the CLI entrypoint."""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from prometheus_client import REGISTRY

from k8s_config_provider.core.config.base import KeyNotFoundPolicy
from k8s_config_provider.core.config.provider import ProviderConfig
from k8s_config_provider.core.metrics.exporters import PrometheusRegistry
from k8s_config_provider.core.metrics.registry import InMemoryRegistry
from k8s_config_provider.core.secrets.audit import SecretsAuditLogger
from k8s_config_provider.core.secrets.resolver import SecretConfigProvider
from k8s_config_provider.runner.cli import _build_parser, _build_provider, _build_registry, main
from tests.factories import NAMESPACE, SECRET_NAME, SECRET_VALUES, make_store

_CLI = "k8s_config_provider.runner.cli.SecretConfigProvider"


def _fake_from_config(config: ProviderConfig, metrics: object = None) -> SecretConfigProvider:
    provider = SecretConfigProvider(make_store())
    provider.configure(config.to_options())
    return provider


def _fake_metrics_from_config(config: ProviderConfig, metrics: object = None) -> SecretConfigProvider:
    provider = SecretConfigProvider(make_store(), metrics=metrics)  # type: ignore[arg-type]
    provider.configure(config.to_options())
    return provider


class TestBuildParser:
    def test_requires_command(self) -> None:
        with pytest.raises(SystemExit):
            _build_parser().parse_args([])

    def test_get_defaults(self) -> None:
        args = _build_parser().parse_args(["get", "my-secret"])
        assert args.command == "get"
        assert args.secret == "my-secret"
        assert args.keys is None
        assert args.format == "json"
        assert args.namespace is None
        assert args.in_cluster is False
        assert args.key_not_found is None
        assert args.log_level is None

    def test_get_all_flags(self) -> None:
        args = _build_parser().parse_args([
            "get", "my-secret",
            "-n", "my-ns",
            "-k", "a", "--key", "b",
            "--format", "env",
            "--kubeconfig", "/tmp/kc",
            "--context", "dev",
            "--key-not-found", "fail",
            "--request-timeout", "2.5",
            "--audit-log", "/tmp/audit.jsonl",
            "--log-level", "DEBUG",
        ])
        assert args.namespace == "my-ns"
        assert args.keys == ["a", "b"]
        assert args.format == "env"
        assert args.kubeconfig == "/tmp/kc"
        assert args.context == "dev"
        assert args.key_not_found == "fail"
        assert args.request_timeout == 2.5
        assert args.audit_log == "/tmp/audit.jsonl"
        assert args.log_level == "DEBUG"

    def test_render_defaults(self) -> None:
        args = _build_parser().parse_args(["render", "app.json", "--in-cluster"])
        assert args.command == "render"
        assert args.file == "app.json"
        assert args.provider_name == "k8s"
        assert args.in_cluster is True

    def test_rejects_unknown_policy(self) -> None:
        with pytest.raises(SystemExit):
            _build_parser().parse_args(["get", "s", "--key-not-found", "strict"])


class TestBuildProvider:
    def test_plain_provider(self) -> None:
        provider = _build_provider(ProviderConfig(namespace="ns"))
        assert isinstance(provider, SecretConfigProvider)

    def test_audit_wraps_provider(self, tmp_path: Path) -> None:
        from k8s_config_provider.core.config.hooks import AuditConfig

        config = ProviderConfig(namespace="ns", audit=AuditConfig(audit_trail_path=str(tmp_path / "a.jsonl")))
        assert isinstance(_build_provider(config), SecretsAuditLogger)

    def test_passes_metrics_registry(self) -> None:
        registry = InMemoryRegistry()
        provider = _build_provider(ProviderConfig(namespace="ns"), registry)
        assert isinstance(provider, SecretConfigProvider)
        assert provider._metrics is registry


class TestBuildRegistry:
    def test_in_memory_metrics(self) -> None:
        from k8s_config_provider.core.config.hooks import MetricsConfig

        assert isinstance(_build_registry(ProviderConfig(namespace="ns", metrics=MetricsConfig())), InMemoryRegistry)

    def test_prometheus_metrics_use_private_registry(self) -> None:
        from k8s_config_provider.core.config.base import MetricsBackend
        from k8s_config_provider.core.config.hooks import MetricsConfig

        config = ProviderConfig(namespace="ns", metrics=MetricsConfig(backend=MetricsBackend.PROMETHEUS))
        registry = _build_registry(config)

        assert isinstance(registry, PrometheusRegistry)
        assert registry._registry is not REGISTRY

    def test_disabled_metrics(self) -> None:
        from k8s_config_provider.core.config.hooks import MetricsConfig

        assert _build_registry(ProviderConfig(namespace="ns", metrics=MetricsConfig(enabled=False))) is None

    def test_no_metrics_section(self) -> None:
        assert _build_registry(ProviderConfig(namespace="ns")) is None


class TestMainGet:
    @patch(_CLI)
    def test_prints_all_keys_as_json(self, mock_cls: MagicMock, capsys: pytest.CaptureFixture[str]) -> None:
        mock_cls.from_config.side_effect = _fake_from_config

        code = main(["get", SECRET_NAME, "-n", NAMESPACE])

        assert code == 0
        assert json.loads(capsys.readouterr().out) == SECRET_VALUES

    @patch(_CLI)
    def test_filters_keys(self, mock_cls: MagicMock, capsys: pytest.CaptureFixture[str]) -> None:
        mock_cls.from_config.side_effect = _fake_from_config

        code = main(["get", SECRET_NAME, "-n", NAMESPACE, "-k", "testKey"])

        assert code == 0
        assert json.loads(capsys.readouterr().out) == {"testKey": "testResult"}

    @patch(_CLI)
    def test_env_format(self, mock_cls: MagicMock, capsys: pytest.CaptureFixture[str]) -> None:
        mock_cls.from_config.side_effect = _fake_from_config

        main(["get", SECRET_NAME, "-n", NAMESPACE, "--format", "env"])

        assert capsys.readouterr().out.splitlines() == [
            "testKey=testResult",
            "testKey2=testResult2",
        ]

    @patch(_CLI)
    def test_missing_keys_print_empty_object(self, mock_cls: MagicMock, capsys: pytest.CaptureFixture[str]) -> None:
        mock_cls.from_config.side_effect = _fake_from_config

        code = main(["get", SECRET_NAME, "-n", NAMESPACE, "-k", "testKeyNotFound"])

        assert code == 0
        assert json.loads(capsys.readouterr().out) == {}

    @patch(_CLI)
    def test_key_not_found_fail_policy(self, mock_cls: MagicMock) -> None:
        mock_cls.from_config.side_effect = _fake_from_config

        code = main([
            "get", SECRET_NAME, "-n", NAMESPACE,
            "-k", "testKeyNotFound", "--key-not-found", "fail",
        ])

        assert code == 1

    @patch(_CLI)
    def test_missing_secret_returns_one(self, mock_cls: MagicMock) -> None:
        mock_cls.from_config.side_effect = _fake_from_config
        assert main(["get", "notExists", "-n", NAMESPACE]) == 1

    @patch(_CLI)
    def test_blank_secret_returns_two(self, mock_cls: MagicMock) -> None:
        mock_cls.from_config.side_effect = _fake_from_config
        assert main(["get", "", "-n", NAMESPACE]) == 2

    def test_missing_namespace_returns_one(self) -> None:
        assert main(["get", SECRET_NAME]) == 1

    @patch(_CLI)
    def test_closes_provider(self, mock_cls: MagicMock) -> None:
        provider = MagicMock(spec=SecretConfigProvider)
        provider.resolve.return_value = MagicMock(data={})
        mock_cls.from_config.return_value = provider

        main(["get", SECRET_NAME, "-n", NAMESPACE])

        provider.close.assert_called_once()


class TestMainConfigFile:
    @patch(_CLI)
    def test_loads_hocon_config(self, mock_cls: MagicMock, tmp_path: Path) -> None:
        mock_cls.from_config.side_effect = _fake_from_config
        conf = tmp_path / "provider.conf"
        conf.write_text('{ namespace: "my-ns", key_not_found: fail }')

        code = main(["get", SECRET_NAME, "--config", str(conf)])

        assert code == 0
        config = mock_cls.from_config.call_args[0][0]
        assert config.namespace == "my-ns"
        assert config.key_not_found is KeyNotFoundPolicy.FAIL

    @patch(_CLI)
    def test_cli_flags_override_config(self, mock_cls: MagicMock, tmp_path: Path) -> None:
        mock_cls.from_config.side_effect = _fake_from_config
        conf = tmp_path / "provider.conf"
        conf.write_text('{ namespace: "other-ns", key_not_found: fail }')

        main(["get", SECRET_NAME, "--config", str(conf), "-n", NAMESPACE, "--key-not-found", "ignore"])

        config = mock_cls.from_config.call_args[0][0]
        assert config.namespace == NAMESPACE
        assert config.key_not_found is KeyNotFoundPolicy.IGNORE

    def test_missing_config_file_returns_one(self, tmp_path: Path) -> None:
        assert main(["get", SECRET_NAME, "--config", str(tmp_path / "missing.conf")]) == 1

    @patch(_CLI)
    def test_audit_log_written(self, mock_cls: MagicMock, tmp_path: Path) -> None:
        mock_cls.from_config.side_effect = _fake_from_config
        audit_path = tmp_path / "audit.jsonl"

        main(["get", SECRET_NAME, "-n", NAMESPACE, "--audit-log", str(audit_path)])

        event = json.loads(audit_path.read_text(encoding="utf-8").splitlines()[0])
        assert event["resource"] == f"{NAMESPACE}/{SECRET_NAME}"
        assert event["status"] == "success"

    @patch(_CLI)
    def test_namespace_flag_fills_config_without_namespace(
        self, mock_cls: MagicMock, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        mock_cls.from_config.side_effect = _fake_from_config
        conf = tmp_path / "provider.conf"
        conf.write_text("{ key_not_found: fail }")

        code = main(["get", SECRET_NAME, "--config", str(conf), "--namespace", NAMESPACE])

        assert code == 0
        config = mock_cls.from_config.call_args[0][0]
        assert config.namespace == NAMESPACE
        assert config.key_not_found is KeyNotFoundPolicy.FAIL
        assert json.loads(capsys.readouterr().out) == SECRET_VALUES

    def test_config_without_namespace_or_flag_returns_one(self, tmp_path: Path) -> None:
        conf = tmp_path / "provider.conf"
        conf.write_text("{ key_not_found: fail }")

        assert main(["get", SECRET_NAME, "--config", str(conf)]) == 1

    @patch(_CLI)
    def test_audit_log_flag_keeps_file_actor(self, mock_cls: MagicMock, tmp_path: Path) -> None:
        mock_cls.from_config.side_effect = _fake_from_config
        audit_path = tmp_path / "audit.jsonl"
        conf = tmp_path / "provider.conf"
        conf.write_text('{ namespace: "my-ns", audit { actor: "kafka-connect" } }')

        main(["get", SECRET_NAME, "--config", str(conf), "--audit-log", str(audit_path)])

        event = json.loads(audit_path.read_text(encoding="utf-8").splitlines()[0])
        assert event["actor"] == "kafka-connect"


class TestMainErrorsAndMetrics:
    @patch("k8s_config_provider.runner.cli._run_get")
    @patch(_CLI)
    def test_os_error_during_get_returns_one(
        self, mock_cls: MagicMock, mock_run_get: MagicMock, caplog: pytest.LogCaptureFixture
    ) -> None:
        mock_cls.from_config.side_effect = _fake_from_config
        mock_run_get.side_effect = BrokenPipeError("stdout closed")

        with caplog.at_level("ERROR"):
            code = main(["get", SECRET_NAME, "-n", NAMESPACE])

        assert code == 1
        assert "Command 'get' failed: stdout closed" in caplog.text

    @patch(_CLI)
    def test_logs_in_memory_metrics_snapshot(
        self, mock_cls: MagicMock, tmp_path: Path, caplog: pytest.LogCaptureFixture
    ) -> None:
        mock_cls.from_config.side_effect = _fake_metrics_from_config
        conf = tmp_path / "provider.conf"
        conf.write_text('{ namespace: "my-ns", metrics { enabled: true } }')

        with caplog.at_level("INFO", logger="k8s_config_provider.runner.cli"):
            code = main(["get", SECRET_NAME, "--config", str(conf)])

        assert code == 0
        assert "k8s_config_provider_resolutions_total" in caplog.text

    @patch(_CLI)
    def test_logs_prometheus_exposition(
        self, mock_cls: MagicMock, tmp_path: Path, caplog: pytest.LogCaptureFixture
    ) -> None:
        mock_cls.from_config.side_effect = _fake_metrics_from_config
        conf = tmp_path / "provider.conf"
        conf.write_text('{ namespace: "my-ns", metrics { backend: prometheus } }')

        with caplog.at_level("INFO", logger="k8s_config_provider.runner.cli"):
            code = main(["get", SECRET_NAME, "--config", str(conf)])

        assert code == 0
        assert 'k8s_config_provider_resolutions_total{outcome="success"} 1.0' in caplog.text

    @patch(_CLI)
    def test_no_metrics_logged_when_disabled(
        self, mock_cls: MagicMock, caplog: pytest.LogCaptureFixture
    ) -> None:
        mock_cls.from_config.side_effect = _fake_from_config

        with caplog.at_level("INFO", logger="k8s_config_provider.runner.cli"):
            main(["get", SECRET_NAME, "-n", NAMESPACE])

        assert "Metrics" not in caplog.text


class TestMainRender:
    @patch(_CLI)
    def test_substitutes_placeholders(
        self, mock_cls: MagicMock, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        mock_cls.from_config.side_effect = _fake_from_config
        doc = tmp_path / "app.json"
        doc.write_text(json.dumps({"db": {"password": "${k8s:my-secret:testKey}"}, "port": 5432}))

        code = main(["render", str(doc), "-n", NAMESPACE])

        assert code == 0
        assert json.loads(capsys.readouterr().out) == {"db": {"password": "testResult"}, "port": 5432}

    @patch(_CLI)
    def test_custom_provider_name(
        self, mock_cls: MagicMock, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        mock_cls.from_config.side_effect = _fake_from_config
        doc = tmp_path / "app.json"
        doc.write_text(json.dumps({"a": "${kube:my-secret:testKey2}"}))

        main(["render", str(doc), "-n", NAMESPACE, "--provider-name", "kube"])

        assert json.loads(capsys.readouterr().out) == {"a": "testResult2"}

    @patch(_CLI)
    def test_invalid_json_returns_one(self, mock_cls: MagicMock, tmp_path: Path) -> None:
        mock_cls.from_config.side_effect = _fake_from_config
        doc = tmp_path / "app.json"
        doc.write_text("{not json")

        assert main(["render", str(doc), "-n", NAMESPACE]) == 1

    @patch(_CLI)
    def test_non_object_returns_one(self, mock_cls: MagicMock, tmp_path: Path) -> None:
        mock_cls.from_config.side_effect = _fake_from_config
        doc = tmp_path / "app.json"
        doc.write_text("[1, 2]")

        assert main(["render", str(doc), "-n", NAMESPACE]) == 1

    @patch(_CLI)
    def test_missing_file_returns_one(self, mock_cls: MagicMock, tmp_path: Path) -> None:
        mock_cls.from_config.side_effect = _fake_from_config
        assert main(["render", str(tmp_path / "nope.json"), "-n", NAMESPACE]) == 1

    @patch(_CLI)
    def test_resolution_failure_returns_one(self, mock_cls: MagicMock, tmp_path: Path) -> None:
        mock_cls.from_config.side_effect = _fake_from_config
        doc = tmp_path / "app.json"
        doc.write_text(json.dumps({"a": "${k8s:notExists:k}"}))

        assert main(["render", str(doc), "-n", NAMESPACE]) == 1
