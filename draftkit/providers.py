"""Azure and GitHub setup driven through the ``az`` and ``gh`` command lines."""

from __future__ import annotations

import json
import logging
import subprocess
import time
from dataclasses import dataclass, field
from typing import Any, Optional, Protocol, Sequence

import backoff
from packaging.version import InvalidVersion, Version

log = logging.getLogger(__name__)

MINIMUM_AZ_CLI_VERSION = Version("2.37")
BACKOFF_MAX_TIME = 5.0
CREDENTIAL_POPULATE_WAIT = 10.0
CREDENTIAL_CHECK_ATTEMPTS = 10

_FIC_URI = "https://graph.microsoft.com/beta/applications/{}/federatedIdentityCredentials"
_FIC_ISSUER = "https://token.actions.githubusercontent.com"
_FIC_AUDIENCE = "api://AzureADTokenExchange"
_FEDERATED_CREDENTIALS = (
    ("prfic", "repo:{}:pull_request", "pr"),
    ("mainfic", "repo:{}:ref:refs/heads/main", "main"),
    ("masterfic", "repo:{}:ref:refs/heads/master", "master"),
)


class ProviderError(RuntimeError):
    """A cloud provider or repository step could not be completed."""


class CommandError(ProviderError):
    """An external command failed or could not be started."""

    def __init__(self, command: Sequence[str], returncode: Optional[int], output: bytes) -> None:
        self.command = tuple(command)
        self.returncode = returncode
        self.output = output
        if returncode is None:
            detail = output.decode("utf-8", "replace")
        else:
            detail = f"exit status {returncode}"
        super().__init__(f"{' '.join(self.command)}: {detail}")


class _Startable(Protocol):
    def start(self) -> None: ...

    def stop(self) -> None: ...


def _combined_output(*command: str) -> bytes:
    """Run ``command`` and return its stdout and stderr together."""
    try:
        result = subprocess.run(
            list(command), stdout=subprocess.PIPE, stderr=subprocess.STDOUT, check=False
        )
    except OSError as exc:
        raise CommandError(command, None, str(exc).encode()) from exc
    output = result.stdout or b""
    if result.returncode != 0:
        raise CommandError(command, result.returncode, output)
    return output


def _interactive(*command: str) -> None:
    """Run ``command`` attached to the terminal."""
    try:
        result = subprocess.run(list(command), check=False)
    except OSError as exc:
        raise CommandError(command, None, str(exc).encode()) from exc
    if result.returncode != 0:
        raise CommandError(command, result.returncode, b"")


def _run_logged(*command: str) -> bytes:
    """Run ``command``, logging its output when it fails."""
    try:
        return _combined_output(*command)
    except CommandError as exc:
        log.info("%s", exc.output.decode("utf-8", "replace"))
        raise


def _loads(output: bytes) -> Any:
    try:
        return json.loads(output)
    except ValueError as exc:
        raise ProviderError(f"could not parse command output: {exc}") from exc


def _loads_or(output: bytes, fallback: Any) -> Any:
    try:
        return json.loads(output)
    except ValueError:
        return fallback


def _retry(operation):
    wrapped = backoff.on_exception(
        backoff.expo,
        Exception,
        max_time=BACKOFF_MAX_TIME,
        base=1.5,
        factor=0.5,
    )(operation)
    return wrapped()


def get_az_cli_version() -> str:
    """Return the installed Azure CLI version string."""
    try:
        output = _combined_output("az", "version", "-o", "json")
    except CommandError as exc:
        raise ProviderError("unable to obtain az cli version") from exc
    versions = _loads_or(output, None)
    if not isinstance(versions, dict):
        raise ProviderError("unable to unmarshal az cli version output to map")
    return str(versions.get("azure-cli"))


def _ask_az_upgrade() -> str:
    label = (
        f"Your Azure CLI version must be at least {MINIMUM_AZ_CLI_VERSION}.0 - "
        "would you like us to update it for you? [yes/no]: "
    )
    while True:
        answer = input(label).strip().lower()
        if answer in ("yes", "no"):
            return answer


def _upgrade_az_cli() -> None:
    try:
        _combined_output("az", "upgrade", "-y")
    except CommandError as exc:
        raise ProviderError(f"unable to upgrade az cli version; {exc}") from exc
    log.info("Azure CLI upgrade was successful!")


def check_az_cli_installed() -> None:
    """Make sure the Azure CLI is installed and recent enough, offering an upgrade."""
    log.debug("Checking that Azure Cli is installed...")
    try:
        _combined_output("az")
    except CommandError as exc:
        raise ProviderError(
            "AZ cli not installed; see the Azure CLI installation instructions"
        ) from exc

    try:
        current = Version(get_az_cli_version())
    except InvalidVersion as exc:
        raise ProviderError(str(exc)) from exc

    if current < MINIMUM_AZ_CLI_VERSION:
        if _ask_az_upgrade() == "no":
            raise ProviderError(f"Az cli version must be at least {MINIMUM_AZ_CLI_VERSION}.0")
        _upgrade_az_cli()


def is_logged_in_to_az() -> bool:
    """Whether the Azure CLI has a signed-in user."""
    log.debug("Checking that user is logged in to Azure CLI...")
    try:
        _combined_output(
            "az", "ad", "signed-in-user", "show", "--only-show-errors", "--query", "objectId"
        )
    except CommandError:
        return False
    return True


def has_gh_cli() -> bool:
    """Return True if the GitHub CLI is installed; raise otherwise."""
    log.debug("Checking that github cli is installed...")
    try:
        _combined_output("gh")
    except CommandError as exc:
        raise ProviderError(
            "The github cli is required to complete this process; "
            "see the GitHub CLI installation instructions"
        ) from exc
    log.debug("Github cli found!")
    return True


def is_logged_in_to_gh() -> bool:
    """Whether the GitHub CLI is authenticated; prints its status otherwise."""
    log.debug("Checking that user is logged in to github...")
    try:
        _combined_output("gh", "auth", "status")
    except CommandError as exc:
        print(exc.output.decode("utf-8", "replace"), end="")
        return False
    log.debug("User is logged in!")
    return True


def log_in_to_gh() -> None:
    """Run the interactive GitHub CLI login."""
    log.debug("Logging user in to github...")
    _interactive("gh", "auth", "login")


def log_in_to_az() -> None:
    """Run the interactive Azure CLI login."""
    log.debug("Logging user in to Azure Cli...")
    _interactive("az", "login", "--allow-no-subscriptions")
    log.debug("Successfully logged in!")


def is_subscription_id_valid(subscription_id: str) -> None:
    """Raise unless ``subscription_id`` names an accessible subscription."""
    if not subscription_id:
        raise ValueError("subscriptionId cannot be empty")
    output = _combined_output("az", "account", "show", "-s", subscription_id, "--query", "id")
    if not _loads(output):
        raise ProviderError("subscription not found")


def _is_valid_resource_group(resource_group: str) -> None:
    if not resource_group:
        raise ValueError("resource group cannot be empty")
    query = f"[?name=='{resource_group}']"
    try:
        output = _combined_output("az", "group", "list", "--query", query)
    except CommandError as exc:
        log.error("failed to validate resourcegroup: %s", exc)
        raise
    groups = _loads(output)
    if not groups:
        raise ProviderError("resource group not found")


def _is_valid_gh_repo(repo: str) -> None:
    try:
        _combined_output("gh", "repo", "view", repo)
    except CommandError as exc:
        raise ProviderError("Github repo not found") from exc


def az_app_exists(app_name: str) -> bool:
    """Whether an Azure AD application with this display name exists."""
    query_filter = f"displayName eq '{app_name}'"
    try:
        output = _combined_output(
            "az", "ad", "app", "list", "--only-show-errors",
            "--filter", query_filter, "--query", "[].appId",
        )
    except CommandError:
        return False
    apps = _loads_or(output, [])
    return isinstance(apps, list) and len(apps) >= 1


def az_acr_exists(acr_name: str) -> bool:
    """Whether a container registry with this name exists."""
    query = f"[?name=='{acr_name}']"
    try:
        output = _combined_output("az", "acr", "list", "--only-show-errors", "--query", query)
    except CommandError:
        return False
    registries = _loads_or(output, [])
    return isinstance(registries, list) and len(registries) >= 1


def az_aks_exists(aks_name: str, resource_group: str) -> bool:
    """Whether the AKS cluster can be browsed in ``resource_group``."""
    try:
        _combined_output("az", "aks", "browse", "-g", resource_group, "--name", aks_name)
    except CommandError:
        return False
    return True


def get_current_az_subscription_id() -> list[str]:
    """Return the ids of the current Azure subscription, logging in if needed."""
    check_az_cli_installed()
    if not is_logged_in_to_az():
        log_in_to_az()
    output = _combined_output("az", "account", "show", "--query", "[id]")
    ids = _loads_or(output, [])
    if not isinstance(ids, list):
        return []
    return [str(item) for item in ids]


@dataclass
class SetUpCmd:
    """State for connecting a GitHub repository to Azure through OIDC."""

    app_name: str = ""
    subscription_id: str = ""
    resource_group_name: str = ""
    provider: str = ""
    repo: str = ""
    app_id: str = field(default="", repr=False)
    tenant_id: str = field(default="", repr=False)
    app_object_id: str = field(default="", repr=False)
    sp_object_id: str = field(default="", repr=False)

    def validate_set_up_config(self) -> None:
        """Check subscription, resource group, app name and repository."""
        log.debug("Checking that provided information is valid...")
        is_subscription_id_valid(self.subscription_id)
        _is_valid_resource_group(self.resource_group_name)
        if not self.app_name:
            raise ValueError("invalid app name")
        _is_valid_gh_repo(self.repo)

    def _create_az_app(self) -> None:
        log.debug("Commencing Azure app creation...")
        started = time.monotonic()

        def create_app() -> None:
            output = _run_logged(
                "az", "ad", "app", "create", "--only-show-errors",
                "--display-name", self.app_name,
            )
            if not az_app_exists(self.app_name):
                raise ProviderError(
                    "app creation time has exceeded max elapsed time for exponential backoff"
                )
            app = _loads(output)
            if not isinstance(app, dict):
                raise ProviderError("unexpected app creation output")
            self.app_id = str(app.get("appId", ""))
            log.debug("App created successfully!")
            log.debug("%.3fs", time.monotonic() - started)

        _retry(create_app)

    def create_service_principal(self) -> None:
        """Create a service principal for the application, retrying briefly."""
        log.debug("Creating Azure service principal...")
        started = time.monotonic()

        def create() -> None:
            _run_logged("az", "ad", "sp", "create", "--id", self.app_id, "--only-show-errors")
            log.debug("Checking sp was created...")
            if not self.service_principal_exists():
                raise ProviderError("service principal not found")
            log.debug("Service principal created successfully!")
            log.debug("%.3fs", time.monotonic() - started)

        _retry(create)

    def service_principal_exists(self) -> bool:
        """Whether the application's service principal exists; records its id."""
        try:
            output = _combined_output(
                "az", "ad", "sp", "show", "--only-show-errors",
                "--id", self.app_id, "--query", "id",
            )
        except CommandError:
            return False
        object_id = _loads_or(output, "")
        log.debug("Service principal exists")
        self.sp_object_id = object_id if isinstance(object_id, str) else ""
        return True

    def _assign_sp_role(self) -> None:
        log.debug("Assigning contributor role to service principal...")
        scope = f"/subscriptions/{self.subscription_id}/resourceGroups/{self.resource_group_name}"
        _run_logged(
            "az", "role", "assignment", "create", "--role", "contributor",
            "--subscription", self.subscription_id,
            "--assignee-object-id", self.sp_object_id,
            "--assignee-principal-type", "ServicePrincipal",
            "--scope", scope, "--only-show-errors",
        )
        log.debug("Role assigned successfully!")

    def _fetch_tenant_id(self) -> None:
        log.debug("Fetching Azure account tenant ID")
        output = _run_logged(
            "az", "account", "show", "--query", "tenantId", "--only-show-errors"
        )
        tenant = _loads(output)
        if not isinstance(tenant, str):
            raise ProviderError("unexpected tenant id output")
        self.tenant_id = tenant

    def _fetch_app_object_id(self) -> None:
        log.debug("Fetching Azure application object ID")
        output = _run_logged(
            "az", "ad", "app", "show", "--only-show-errors",
            "--id", self.app_id, "--query", "id",
        )
        object_id = _loads(output)
        if not isinstance(object_id, str):
            raise ProviderError("unexpected application object id output")
        self.app_object_id = object_id

    def _has_federated_credentials(self) -> bool:
        log.debug("Checking for existing federated credentials...")
        uri = _FIC_URI.format(self.app_object_id)
        try:
            output = _combined_output(
                "az", "rest", "--method", "GET", "--uri", uri, "--query", "value"
            )
        except CommandError as exc:
            log.error("error getting fic: %s", exc)
            return False
        try:
            credentials = json.loads(output)
        except ValueError as exc:
            log.error("error marshaling fics: %s", exc)
            return False
        if isinstance(credentials, list) and credentials:
            log.debug("Credentials found")
            return True
        log.debug("No existing credentials found")
        return False

    def _create_federated_credentials(self) -> None:
        log.debug("Creating federated credentials...")
        uri = _FIC_URI.format(self.app_object_id)
        for name, subject, description in _FEDERATED_CREDENTIALS:
            body = json.dumps(
                {
                    "name": name,
                    "subject": subject.format(self.repo),
                    "issuer": _FIC_ISSUER,
                    "description": description,
                    "audiences": [_FIC_AUDIENCE],
                },
                separators=(",", ":"),
            )
            _run_logged("az", "rest", "--method", "POST", "--uri", uri, "--body", body)

        log.debug("Waiting 10 seconds to allow credentials time to populate")
        time.sleep(CREDENTIAL_POPULATE_WAIT)
        for _ in range(CREDENTIAL_CHECK_ATTEMPTS):
            if self._has_federated_credentials():
                break
            log.debug("Credentials not yet created, retrying...")

    def _set_gh_secret(self, name: str, value: str) -> None:
        log.debug("Setting %s in github...", name)
        _run_logged("gh", "secret", "set", name, "-b", value, "--repo", self.repo)


def initiate_azure_oidc_flow(setup: SetUpCmd, spinner: _Startable) -> None:
    """Create an Azure app with federated credentials and store its ids as repo secrets."""
    log.debug("Commencing github connection with azure...")

    if not has_gh_cli() or not is_logged_in_to_gh():
        spinner.stop()
        log_in_to_gh()
        spinner.start()

    setup.validate_set_up_config()

    if az_app_exists(setup.app_name):
        raise ProviderError("app already exists")
    setup._create_az_app()
    setup.create_service_principal()
    setup._fetch_tenant_id()
    setup._fetch_app_object_id()
    setup._assign_sp_role()

    if not setup._has_federated_credentials():
        setup._create_federated_credentials()

    setup._set_gh_secret("AZURE_CLIENT_ID", setup.app_id)
    setup._set_gh_secret("AZURE_SUBSCRIPTION_ID", setup.subscription_id)
    setup._set_gh_secret("AZURE_TENANT_ID", setup.tenant_id)

    log.debug("Github connection with azure completed successfully!")