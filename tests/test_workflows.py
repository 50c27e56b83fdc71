import builtins

import pytest
import yaml

from draftkit.manifests import GitHubWorkflow, HelmProductionYaml
from draftkit.workflows import (
    WorkflowConfig,
    replace_workflow_vars,
    set_deployment_container_image,
    set_helm_container_image,
    update_production_deployments,
    write_workflow,
)

HELM_VALUES = """\
imageKey:
  repository: testapp
  pullPolicy: Always
  tag: latest
service:
  annotations: {}
  type: LoadBalancer
  port: 80
"""

DEPLOYMENT = """\
apiVersion: apps/v1
kind: Deployment
metadata:
  name: testapp
spec:
  replicas: 1
  selector:
    matchLabels:
      app: testapp
  template:
    metadata:
      labels:
        app: testapp
    spec:
      containers:
        - name: testapp
          image: testapp:latest
"""


def _workflow():
    return GitHubWorkflow.from_dict(
        {
            "name": "deploy",
            "on": {"push": {"branches": ["branch"]}},
            "jobs": {
                "build": {
                    "runs-on": "ubuntu-latest",
                    "steps": [{"name": "one"}, {"name": "two"}],
                }
            },
        }
    )


def _config():
    return WorkflowConfig(
        acr_name="test",
        aks_cluster_name="test",
        container_name="test",
        resource_group_name="test",
        branch_name="test",
        charts_override_path="testOverride",
        kustomize_path="testKustomize",
    )


def _read_image(path):
    deploy = yaml.safe_load(path.read_text())
    return deploy["spec"]["template"]["spec"]["containers"][0]["image"]


def test_validate_config_fills_paths():
    config = WorkflowConfig(
        acr_name="Test",
        container_name="Test",
        resource_group_name="test",
        aks_cluster_name="test",
        branch_name="test",
    )
    config.validate_and_fill_config()
    assert config.kustomize_path == "./overlays/production"
    assert config.manifests_path == "./manifests"
    assert config.charts_path == "./charts"
    assert config.charts_override_path == "./charts/production.yaml"
    assert config.acr_name == "Test"


def test_validate_config_prompts_for_missing(monkeypatch):
    monkeypatch.setattr(builtins, "input", lambda prompt="": "MyValue")
    config = WorkflowConfig()
    config.validate_and_fill_config()
    assert config.acr_name == "myvalue"
    assert config.container_name == "myvalue"
    assert config.resource_group_name == "MyValue"
    assert config.branch_name == "MyValue"


def test_replace_sets_common_env():
    workflow = _workflow()
    replace_workflow_vars("", _config(), workflow)
    assert workflow.env["AZURE_CONTAINER_REGISTRY"] == "test"
    assert workflow.env["IMAGE_PULL_SECRET_NAME"] == "testsecret"
    assert workflow.branches == ["test"]
    assert "CHART_PATH" not in workflow.env


def test_replace_manifests_keeps_steps():
    workflow = _workflow()
    steps_before = len(workflow.jobs["build"].steps)
    replace_workflow_vars("manifests", _config(), workflow)
    assert len(workflow.jobs["build"].steps) == steps_before
    assert "DEPLOYMENT_MANIFEST_PATH" in workflow.env


def test_replace_helm_env():
    workflow = _workflow()
    replace_workflow_vars("helm", _config(), workflow)
    assert workflow.env["CHART_OVERRIDE_PATH"] == "testOverride"


def test_replace_kustomize_env():
    workflow = _workflow()
    replace_workflow_vars("kustomize", _config(), workflow)
    assert workflow.env["KUSTOMIZE_PATH"] == "testKustomize"


def test_replace_without_branch_fails():
    workflow = GitHubWorkflow()
    with pytest.raises(ValueError):
        replace_workflow_vars("helm", _config(), workflow)


def test_update_unknown_deploy_type_does_nothing(tmp_path):
    assert update_production_deployments("", tmp_path, _config()) is None
    assert list(tmp_path.iterdir()) == []


def test_set_helm_container_image(tmp_path):
    path = tmp_path / "values.yaml"
    path.write_text(HELM_VALUES)
    set_helm_container_image(path, "testImage")
    values = HelmProductionYaml()
    values.load_from_file(path)
    assert values.image_key.repository == "testImage"
    assert values.image_key.tag == "latest"


def test_set_deployment_container_image(tmp_path):
    path = tmp_path / "deployment.yaml"
    path.write_text(DEPLOYMENT)
    set_deployment_container_image(path, "testImage")
    assert _read_image(path) == "testImage"


def test_set_deployment_rejects_two_containers(tmp_path):
    path = tmp_path / "deployment.yaml"
    deploy = yaml.safe_load(DEPLOYMENT)
    deploy["spec"]["template"]["spec"]["containers"].append({"name": "side", "image": "x"})
    path.write_text(yaml.safe_dump(deploy))
    with pytest.raises(ValueError, match="unsupported number of containers"):
        set_deployment_container_image(path, "testImage")


def test_set_deployment_rejects_other_kinds(tmp_path):
    path = tmp_path / "service.yaml"
    path.write_text("apiVersion: v1\nkind: Service\nmetadata:\n  name: x\n")
    with pytest.raises(ValueError, match="could not decode kubernetes deployment"):
        set_deployment_container_image(path, "testImage")


def test_update_manifests_deployment(tmp_path):
    (tmp_path / "manifests").mkdir()
    path = tmp_path / "manifests" / "deployment.yaml"
    path.write_text(DEPLOYMENT)
    update_production_deployments("manifests", tmp_path, _config())
    assert _read_image(path) == "test.azurecr.io/test"


def test_update_helm_deployment(tmp_path):
    (tmp_path / "charts").mkdir()
    path = tmp_path / "charts" / "production.yaml"
    path.write_text(HELM_VALUES)
    update_production_deployments("helm", tmp_path, _config())
    values = HelmProductionYaml()
    values.load_from_file(path)
    assert values.image_key.repository == "test.azurecr.io/test"


def test_write_workflow_round_trip(tmp_path):
    workflow = _workflow()
    replace_workflow_vars("helm", _config(), workflow)
    directory = tmp_path / ".github" / "workflows"
    file_name = directory / "azure-kubernetes-service-helm.yml"
    write_workflow(directory, file_name, workflow)
    assert directory.is_dir()
    reloaded = GitHubWorkflow.from_dict(yaml.safe_load(file_name.read_text()))
    assert reloaded == workflow