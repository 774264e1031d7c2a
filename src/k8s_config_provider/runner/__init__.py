"""Command-line runner for the secret config provider."""

from k8s_config_provider.runner.cli import main

__all__ = ["main"]
