"""Helpers for scaffolding containerised apps, editing Kubernetes and GitHub workflow files, and Azure setup."""

__version__ = "0.1.0"