[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "c2p"
version = "0.1.0"
description = "Relate OSCAL compliance documents to Kubernetes policy resources and turn policy results into OSCAL assessment results"
requires-python = ">=3.10"
dependencies = [
    "pyyaml",
]
keywords = [
    "compliance",
    "oscal",
    "kubernetes",
    "kyverno",
    "open-cluster-management",
    "policy",
    "assessment-results",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Security",
    "Topic :: System :: Systems Administration",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["c2p"]

[tool.hatch.build.targets.sdist]
include = [
    "c2p",
    "tests",
]

[tool.pytest.ini_options]
addopts = "-ra"
