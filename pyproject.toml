[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "draftkit"
version = "0.1.0"
description = "Helpers for scaffolding containerised applications, editing Kubernetes and GitHub workflow files, and wiring GitHub repositories to Azure"
requires-python = ">=3.10"
keywords = [
    "kubernetes",
    "helm",
    "kustomize",
    "github-actions",
    "scaffolding",
    "templates",
    "azure",
    "tokenizer",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Code Generators",
    "Topic :: System :: Software Distribution",
]
dependencies = [
    "pyyaml>=6.0",
    "packaging>=21.0",
    "backoff>=2.0",
]

[project.optional-dependencies]
test = [
    "pytest>=7.0",
]

[tool.hatch.build.targets.wheel]
packages = ["draftkit"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]
