"""Workflow configuration and production manifest updates."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Union

import yaml

from draftkit import prompts
from draftkit.manifests import GitHubWorkflow, HelmProductionYaml
from draftkit.osutil import ensure_directory

log = logging.getLogger(__name__)

PathLike = Union[str, "os.PathLike[str]"]


@dataclass
class WorkflowConfig:
    """Settings substituted into a deployment workflow."""

    acr_name: str = ""
    container_name: str = ""
    resource_group_name: str = ""
    aks_cluster_name: str = ""
    branch_name: str = ""
    manifests_path: str = ""
    charts_path: str = ""
    charts_override_path: str = ""
    kustomize_path: str = ""

    def validate_and_fill_config(self) -> None:
        """Prompt for any missing value and set the standard deployment paths."""
        if not self.acr_name:
            self.acr_name = prompts.get_input_from_prompt("container registry name").lower()
        if not self.container_name:
            self.container_name = prompts.get_input_from_prompt("container name").lower()
        if not self.resource_group_name:
            self.resource_group_name = prompts.get_input_from_prompt(
                "cluster resource group name"
            )
        if not self.aks_cluster_name:
            self.aks_cluster_name = prompts.get_input_from_prompt("AKS cluster name")
        if not self.branch_name:
            self.branch_name = prompts.get_input_from_prompt(
                "name of the repository branch to deploy from, usually main"
            )

        self.charts_path = "./charts"
        self.charts_override_path = "./charts/production.yaml"
        self.manifests_path = "./manifests"
        self.kustomize_path = "./overlays/production"


def replace_workflow_vars(
    deploy_type: str, config: WorkflowConfig, workflow: GitHubWorkflow
) -> None:
    """Fill ``workflow``'s environment and push branch from ``config``."""
    env = {
        "AZURE_CONTAINER_REGISTRY": config.acr_name,
        "CONTAINER_NAME": config.container_name,
        "RESOURCE_GROUP": config.resource_group_name,
        "CLUSTER_NAME": config.aks_cluster_name,
        "IMAGE_PULL_SECRET_NAME": config.acr_name + "secret",
    }
    if deploy_type == "helm":
        env["CHART_PATH"] = config.charts_path
        env["CHART_OVERRIDE_PATH"] = config.charts_override_path
    elif deploy_type == "manifests":
        env["DEPLOYMENT_MANIFEST_PATH"] = config.manifests_path
    elif deploy_type == "kustomize":
        env["KUSTOMIZE_PATH"] = config.kustomize_path

    workflow.env = env
    if not workflow.branches:
        raise ValueError("workflow has no push branch to replace")
    workflow.branches[0] = config.branch_name


def _nested_mapping(data: Any, *keys: str) -> dict:
    for key in keys:
        if not isinstance(data, dict):
            return {}
        data = data.get(key)
    return data if isinstance(data, dict) else {}


def set_deployment_container_image(file_path: PathLike, image: str) -> None:
    """Set the image of the single container of the Deployment in ``file_path``."""
    with open(file_path, encoding="utf-8") as handle:
        deploy = yaml.safe_load(handle)
    if (
        not isinstance(deploy, dict)
        or deploy.get("apiVersion") != "apps/v1"
        or deploy.get("kind") != "Deployment"
    ):
        raise ValueError("could not decode kubernetes deployment")

    pod_spec = _nested_mapping(deploy, "spec", "template", "spec")
    containers = pod_spec.get("containers") or []
    if not isinstance(containers, list) or len(containers) != 1:
        raise ValueError("unsupported number of containers defined in the deployment spec")
    if not isinstance(containers[0], dict):
        raise ValueError("could not decode kubernetes deployment")

    containers[0]["image"] = image
    Path(file_path).write_text(
        yaml.safe_dump(deploy, sort_keys=False, default_flow_style=False),
        encoding="utf-8",
    )


def set_helm_container_image(file_path: PathLike, image: str) -> None:
    """Set the image repository in the Helm production values at ``file_path``."""
    values = HelmProductionYaml()
    values.load_from_file(file_path)
    values.image_key.repository = image
    values.write_to_file(file_path)


def update_production_deployments(
    deploy_type: str, dest: PathLike, config: WorkflowConfig
) -> None:
    """Point the production deployment under ``dest`` at the registry image."""
    image = f"{config.acr_name}.azurecr.io/{config.container_name}"
    dest = os.fspath(dest)
    if deploy_type == "helm":
        set_helm_container_image(f"{dest}/charts/production.yaml", image)
    elif deploy_type == "kustomize":
        set_deployment_container_image(f"{dest}/overlays/production/deployment.yaml", image)
    elif deploy_type == "manifests":
        set_deployment_container_image(f"{dest}/manifests/deployment.yaml", image)


def write_workflow(
    workflow_path: PathLike, file_name: PathLike, workflow: GitHubWorkflow
) -> None:
    """Write ``workflow`` to ``file_name``, creating ``workflow_path`` first."""
    text = yaml.safe_dump(workflow.to_dict(), sort_keys=False, default_flow_style=False)
    ensure_directory(workflow_path)
    log.debug("writing workflow to %s", workflow_path)
    Path(file_name).write_text(text, encoding="utf-8")