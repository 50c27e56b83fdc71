"""Kubernetes service manifests, Helm production values and GitHub workflows."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Protocol, Union, runtime_checkable

import yaml

PathLike = Union[str, "os.PathLike[str]"]

HELM_SERVICE_NAME = '{{ include "{{APPNAME}}.fullname" . }}'


def _read_yaml(path: PathLike) -> Any:
    with open(path, encoding="utf-8") as handle:
        return yaml.safe_load(handle)


def _write_yaml(path: PathLike, data: Any) -> None:
    text = yaml.safe_dump(
        data, sort_keys=False, default_flow_style=False, allow_unicode=True
    )
    Path(path).write_text(text, encoding="utf-8")


def _scalar(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _mapping(value: Any, what: str) -> dict:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValueError(f"{what} must be a mapping")
    return value


def _string_map(value: Any, what: str) -> dict[str, str]:
    return {str(key): _scalar(item) for key, item in _mapping(value, what).items()}


@runtime_checkable
class ServiceManifest(Protocol):
    """A file describing a service whose annotations and type can be edited."""

    def load_from_file(self, file_path: PathLike) -> None:
        """Read the manifest from ``file_path``."""

    def write_to_file(self, file_path: PathLike) -> None:
        """Write the manifest to ``file_path``."""

    def set_annotations(self, annotations: Mapping[str, str]) -> None:
        """Replace the service annotations."""

    def set_service_type(self, service_type: str) -> None:
        """Set the service type."""

    def service_name(self) -> str:
        """Return the name of the service."""


@dataclass
class _Job:
    permissions: dict[str, str] = field(default_factory=dict)
    runs_on: str = ""
    needs: list[str] = field(default_factory=list)
    steps: list[dict[str, Any]] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Any) -> "_Job":
        data = _mapping(data, "job")
        steps = data.get("steps") or []
        if not isinstance(steps, list):
            raise ValueError("job steps must be a list")
        return cls(
            permissions=_string_map(data.get("permissions"), "job permissions"),
            runs_on=_scalar(data.get("runs-on")),
            needs=[_scalar(item) for item in data.get("needs") or []],
            steps=[dict(_mapping(step, "job step")) for step in steps],
        )

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "permissions": dict(self.permissions),
            "runs-on": self.runs_on,
        }
        if self.needs:
            out["needs"] = list(self.needs)
        out["steps"] = [dict(step) for step in self.steps]
        return out


@dataclass
class GitHubWorkflow:
    """The parts of a GitHub Actions workflow that get edited."""

    name: str = ""
    branches: list[str] = field(default_factory=list)
    workflow_dispatch: Any = None
    env: dict[str, str] = field(default_factory=dict)
    jobs: dict[str, _Job] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Any) -> "GitHubWorkflow":
        """Build a workflow from a parsed YAML document."""
        data = _mapping(data, "workflow")
        # YAML 1.1 loaders read the bare key ``on`` as boolean true.
        trigger = _mapping(data.get("on", data.get(True)), "workflow trigger")
        push = _mapping(trigger.get("push"), "push trigger")
        return cls(
            name=_scalar(data.get("name")),
            branches=[_scalar(branch) for branch in push.get("branches") or []],
            workflow_dispatch=trigger.get("workflow_dispatch"),
            env=_string_map(data.get("env"), "workflow env"),
            jobs={
                str(job_name): _Job.from_dict(job)
                for job_name, job in _mapping(data.get("jobs"), "workflow jobs").items()
            },
        )

    def to_dict(self) -> dict[str, Any]:
        """Return the workflow as a plain document ready for YAML output."""
        return {
            "name": self.name,
            "on": {
                "push": {"branches": list(self.branches)},
                "workflow_dispatch": self.workflow_dispatch,
            },
            "env": dict(self.env),
            "jobs": {job_name: job.to_dict() for job_name, job in self.jobs.items()},
        }


@dataclass
class _ImageKey:
    repository: str = ""
    pull_policy: str = ""
    tag: str = ""


@dataclass
class _HelmService:
    annotations: dict[str, str] = field(default_factory=dict)
    service_type: str = ""
    port: str = ""


@dataclass
class HelmProductionYaml:
    """The production values file of a Helm chart."""

    image_key: _ImageKey = field(default_factory=_ImageKey)
    service: _HelmService = field(default_factory=_HelmService)

    def load_from_file(self, file_path: PathLike) -> None:
        """Read image and service settings from ``file_path``."""
        data = _mapping(_read_yaml(file_path), "helm values")
        if "imageKey" in data:
            image = _mapping(data["imageKey"], "imageKey")
            self.image_key = _ImageKey(
                repository=_scalar(image.get("repository")),
                pull_policy=_scalar(image.get("pullPolicy")),
                tag=_scalar(image.get("tag")),
            )
        if "service" in data:
            service = _mapping(data["service"], "service")
            self.service = _HelmService(
                annotations=_string_map(service.get("annotations"), "annotations"),
                service_type=_scalar(service.get("type")),
                port=_scalar(service.get("port")),
            )

    def to_dict(self) -> dict[str, Any]:
        """Return the values as a plain document."""
        return {
            "imageKey": {
                "repository": self.image_key.repository,
                "pullPolicy": self.image_key.pull_policy,
                "tag": self.image_key.tag,
            },
            "service": {
                "annotations": dict(self.service.annotations),
                "type": self.service.service_type,
                "port": self.service.port,
            },
        }

    def write_to_file(self, file_path: PathLike) -> None:
        """Write the values to ``file_path``."""
        _write_yaml(file_path, self.to_dict())

    def set_annotations(self, annotations: Mapping[str, str]) -> None:
        """Replace the service annotations."""
        self.service.annotations = dict(annotations)

    def set_service_type(self, service_type: str) -> None:
        """Set the service type."""
        self.service.service_type = service_type

    def service_name(self) -> str:
        """Return the templated name the chart gives its service."""
        return HELM_SERVICE_NAME


@dataclass
class ServiceYaml:
    """A Kubernetes ``v1`` Service manifest."""

    manifest: dict[str, Any] = field(default_factory=dict)

    @property
    def annotations(self) -> dict[str, str]:
        """The service's metadata annotations."""
        metadata = self.manifest.get("metadata") or {}
        return dict(metadata.get("annotations") or {})

    def load_from_file(self, file_path: PathLike) -> None:
        """Read a Service manifest from ``file_path``."""
        data = _read_yaml(file_path)
        if (
            not isinstance(data, dict)
            or data.get("apiVersion") != "v1"
            or data.get("kind") != "Service"
        ):
            raise ValueError("could not load file into ServiceYaml")
        self.manifest = data

    def write_to_file(self, file_path: PathLike) -> None:
        """Write the manifest to ``file_path``."""
        _write_yaml(file_path, self.manifest)

    def set_annotations(self, annotations: Mapping[str, str]) -> None:
        """Replace the metadata annotations."""
        metadata = self.manifest.setdefault("metadata", {})
        metadata["annotations"] = dict(annotations)

    def set_service_type(self, service_type: str) -> None:
        """Set ``spec.type``."""
        spec = self.manifest.setdefault("spec", {})
        spec["type"] = service_type

    def service_name(self) -> str:
        """Return ``metadata.name``."""
        metadata = self.manifest.get("metadata") or {}
        return _scalar(metadata.get("name"))