"""Ingress annotations for the production service of a deployment."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Mapping, Union

from draftkit.manifests import HelmProductionYaml, ServiceManifest, ServiceYaml

log = logging.getLogger(__name__)

PathLike = Union[str, "os.PathLike[str]"]

INGRESS_HOST_ANNOTATION = "kubernetes.azure.com/ingress-host"
TLS_CERT_ANNOTATION = "kubernetes.azure.com/tls-cert-keyvault-uri"

DEPLOY_NAME_TO_SERVICE_FILE = {
    "helm": "charts/production.yaml",
    "kustomize": "overlays/production/service.yaml",
    "manifests": "manifests/service.yaml",
}


@dataclass
class ServiceAnnotations:
    """Host name and certificate for a web application's ingress."""

    host: str = ""
    cert: str = ""


def update_service_file(
    annotations: ServiceAnnotations, dest: PathLike, deploy_type: str
) -> None:
    """Annotate the production service under ``dest`` and make it ClusterIP."""
    try:
        relative = DEPLOY_NAME_TO_SERVICE_FILE[deploy_type]
    except KeyError:
        raise ValueError(f"unsupported deployment type: {deploy_type}") from None

    service_path = f"{os.fspath(dest)}/{relative}"
    log.debug("Writing new configuration to manifest...")
    update_service_annotations_for_deployment(
        service_path,
        deploy_type,
        {
            INGRESS_HOST_ANNOTATION: annotations.host,
            TLS_CERT_ANNOTATION: annotations.cert,
        },
    )


def update_service_annotations_for_deployment(
    file_path: PathLike, deploy_type: str, annotations: Mapping[str, str]
) -> None:
    """Set ``annotations`` and the ClusterIP type on the service in ``file_path``."""
    log.debug("editing service yaml for deployType: %s", deploy_type)
    manifest: ServiceManifest = (
        HelmProductionYaml() if deploy_type == "helm" else ServiceYaml()
    )
    manifest.load_from_file(file_path)
    manifest.set_annotations(annotations)
    manifest.set_service_type("ClusterIP")
    manifest.write_to_file(file_path)