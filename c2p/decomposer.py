"""Grouping of policy resources by compliance and splitting them into directories."""

from __future__ import annotations

import logging
import os
import shutil
from dataclasses import dataclass, field
from typing import Any, Iterable

import yaml

logger = logging.getLogger("c2p.decomposer")

_FIELDS = {
    "standard": "standard",
    "category": "category",
    "control": "control",
    "policy-dir": "policy_dir",
    "policy": "policy",
    "config-policy": "config_policy",
    "kind": "kind",
    "name": "name",
    "api-version": "api_version",
    "source": "source",
}


@dataclass
class ResourceRow:
    """One resource of a policy, with the compliance it is filed under."""

    standard: str = ""
    category: str = ""
    control: str = ""
    policy_dir: str = ""
    policy: str = ""
    config_policy: str = ""
    kind: str = ""
    name: str = ""
    api_version: str = ""
    source: str = ""


@dataclass(frozen=True)
class ComplianceKey:
    """A standard, category and control triple."""

    standard: str
    category: str
    control: str


@dataclass
class Control:
    name: str
    control_refs: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "controlRefs": list(self.control_refs)}


@dataclass
class Category:
    name: str
    controls: list[Control] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "controls": [c.to_dict() for c in self.controls]}


@dataclass
class Standard:
    name: str
    categories: list[Category] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "categories": [c.to_dict() for c in self.categories]}


@dataclass
class Compliance:
    standard: Standard

    def to_dict(self) -> dict[str, Any]:
        return {"standard": self.standard.to_dict()}


def group_by(rows: Iterable[ResourceRow], field: str) -> dict[str, list[ResourceRow]]:  # noqa: F811
    """Group rows by the value of a column such as "policy" or "config-policy"."""
    attr = _FIELDS.get(field)
    if attr is None:
        raise ValueError(f"unknown column {field!r}")
    groups: dict[str, list[ResourceRow]] = {}
    for row in rows:
        groups.setdefault(getattr(row, attr), []).append(row)
    return groups


def group_by_compliance(rows: Iterable[ResourceRow]) -> dict[ComplianceKey, list[ResourceRow]]:
    """Group rows by their standard, category and control."""
    grouped: dict[ComplianceKey, list[ResourceRow]] = {}
    for standard, by_standard in group_by(rows, "standard").items():
        for category, by_category in group_by(by_standard, "category").items():
            for control, by_control in group_by(by_category, "control").items():
                grouped[ComplianceKey(standard, category, control)] = by_control
    return grouped


def group_by_compliance_in_hierarchy(rows: Iterable[ResourceRow]) -> list[Compliance]:
    """Build one compliance tree per standard, listing the policies of each control."""
    standards: dict[str, dict[str, dict[str, list[str]]]] = {}
    for key, grouped in group_by_compliance(rows).items():
        controls = standards.setdefault(key.standard, {}).setdefault(key.category, {})
        controls.setdefault(key.control, list(group_by(grouped, "policy")))
    return [
        Compliance(
            Standard(
                name,
                [
                    Category(category, [Control(control, refs) for control, refs in controls.items()])
                    for category, controls in categories.items()
                ],
            )
        )
        for name, categories in standards.items()
    ]


def _make_dir(path: str) -> str:
    os.makedirs(path, exist_ok=True)
    return path


class Decomposer:
    """Splits a resource table into per-policy and per-standard outputs."""

    def __init__(self, rows: Iterable[ResourceRow], output_dir: str) -> None:
        os.makedirs(output_dir, exist_ok=True)
        self.rows = list(rows)
        self.output_dir = output_dir

    def decompose(self) -> str:
        """Copy each policy's files into ``resources/<policy>/<config-policy>``."""
        resources_dir = _make_dir(f"{self.output_dir}/resources")
        for policy, policy_rows in group_by(self.rows, "policy").items():
            policy_dir = _make_dir(f"{resources_dir}/{policy}")
            source_dir = policy_rows[0].policy_dir
            for name in ("kustomization.yaml", "policy-generator.yaml"):
                shutil.copyfile(f"{source_dir}/{name}", f"{policy_dir}/{name}")
            for compliance_rows in group_by_compliance(policy_rows).values():
                grouped = group_by(compliance_rows, "config-policy")
                for config_policy, config_rows in grouped.items():
                    config_dir = _make_dir(f"{policy_dir}/{config_policy}")
                    for row in config_rows:
                        target = f"{config_dir}/{os.path.basename(row.source)}"
                        shutil.copyfile(row.source, target)
        return resources_dir

    def write_compliances(self) -> list[str]:
        """Write one YAML file per standard into ``compliances`` and return their paths."""
        compliances_dir = _make_dir(f"{self.output_dir}/compliances")
        written = []
        for compliance in group_by_compliance_in_hierarchy(self.rows):
            path = f"{compliances_dir}/{compliance.standard.name}.yaml"
            try:
                with open(path, "w", encoding="utf-8") as handle:
                    yaml.safe_dump(compliance.to_dict(), handle, sort_keys=False)
            except OSError as exc:
                logger.error("cannot write %s: %s", path, exc)
                continue
            written.append(path)
        return written