# draftkit

A library of helpers for scaffolding an application so that it can be built
into a container and deployed to Kubernetes from a GitHub workflow.

## What is in it

- `draftkit.tokenizer` – `tokenize(data)` splits source code into significant
  tokens, dropping comments, string literals and numbers (input is cut at
  `BYTE_LIMIT` bytes). `find_multi_line_comment(token)` returns the pattern
  that closes a multi-line comment opened by `token`, or `None`.
- `draftkit.linguist` – `detect_interpreter(contents)` reads the interpreter
  from a shebang line (following `env`, stripping version digits);
  `is_configuration(path)` is true for `.yaml`, `.yml`, `.xml` and `.toml`
  files; `is_binary(contents)` looks for unusual control bytes in the first
  512 bytes.
- `draftkit.osutil` – `exists`, `ensure_directory`, `ensure_file`,
  `symlink_with_fallback` (falls back to a rename on Windows when the
  symlink privilege is missing) and `copy_dir`, which copies a template tree
  through a writer, replacing `{{NAME}}` placeholders from a mapping,
  prefixing file names from an optional override mapping and skipping files
  named `draft.yaml`.
- `draftkit.templatewriter` – the `TemplateWriter` protocol and two writers:
  `FileMapWriter` keeps files in its `file_map` dictionary, `LocalFSWriter`
  writes them to disk (mode `0o644` unless `write_mode` is set).
- `draftkit.manifests` – `GitHubWorkflow` (`from_dict` / `to_dict`),
  `HelmProductionYaml` and `ServiceYaml`, the last two following the
  `ServiceManifest` protocol: `load_from_file`, `write_to_file`,
  `set_annotations`, `set_service_type`, `service_name`.
- `draftkit.workflows` – `WorkflowConfig` with `validate_and_fill_config()`,
  which prompts for missing values and sets the standard chart, manifest and
  kustomize paths; `replace_workflow_vars`, `set_helm_container_image`,
  `set_deployment_container_image`, `update_production_deployments` and
  `write_workflow`.
- `draftkit.web` – `ServiceAnnotations` and `update_service_file(annotations,
  dest, deploy_type)`, which sets the ingress host and certificate
  annotations on the production service of a `helm`, `kustomize` or
  `manifests` deployment and makes it a `ClusterIP` service;
  `update_service_annotations_for_deployment` does the same for a given file.
- `draftkit.prompts` – `get_input_from_prompt(desired_input)` asks until a
  non-empty answer is given.
- `draftkit.providers` – drives the `az` and `gh` command line tools:
  checks for and logs in to both, validates subscriptions, resource groups
  and repositories, checks whether apps, registries and AKS clusters exist,
  and `initiate_azure_oidc_flow(setup, spinner)` creates an application
  registration, service principal, contributor role assignment and
  federated credentials for a `SetUpCmd`, then stores the client,
  subscription and tenant ids as repository secrets. Failures raise
  `ProviderError` (or `CommandError` for a failed command).
- `draftkit.logger` – `DraftFormatter`, a `logging.Formatter` printing
  `[Draft] message`, or `Level: message` for errors, and `OutputSplitter`, a
  stream sending error text to stderr and the rest to stdout.
- `draftkit.spinner` – `Spinner`, a threaded terminal spinner usable as a
  context manager, and `create_spinner(msg)`.

## Requirements

Python 3.10 or later. `draftkit.providers` needs the Azure CLI (`az`, 2.37
or later) and the GitHub CLI (`gh`) on the `PATH`; everything else works
offline.

## Examples

```python
from draftkit.tokenizer import tokenize

tokenize(b"int main() { return 0; } // done")
# ['int', 'main()', '{', 'return', '}']
```

```python
from draftkit.linguist import detect_interpreter, is_binary, is_configuration

detect_interpreter(b"#!/usr/bin/env python3\nprint('hi')\n")  # 'python'
is_configuration("charts/values.yaml")                       # True
is_binary(b"\x00\x01\x02")                                   # True
```

Render a template directory into memory:

```python
from draftkit.osutil import copy_dir
from draftkit.templatewriter import FileMapWriter

writer = FileMapWriter()
copy_dir("templates", "dockerfiles/python", "/out", None, {"PORT": "8080"}, writer)
writer.file_map  # {'/out/Dockerfile': b'...', ...}
```

Annotate a service for ingress:

```python
from draftkit.web import ServiceAnnotations, update_service_file

update_service_file(ServiceAnnotations(host="app.example.com", cert="cert-uri"),
                    "myapp", "manifests")
```

## What it does not do

- There is no command line program; everything is called from Python.
- No templates are bundled: Dockerfile, deployment and workflow templates
  must be supplied by the caller, and a `GitHubWorkflow` is built from a
  document the caller loads.
- Language detection stops at the helpers above; there is no table of
  languages, no classifier and no detection of the deployment type of a
  directory, so `update_service_file` and `update_production_deployments`
  take the deployment type as an argument.
- Prompting covers single free-text answers only; there is no prompting
  from a template's declared variables.