"""Conversion of Kyverno policy reports into OSCAL assessment results."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

import yaml

from c2p.c2pcr import C2PCRParsed
from c2p.kyverno.fileloader import FileLoader, PolicyResourceIndex
from c2p.oscal.mapping import generate_uuid
from c2p.oscal.parser import ComponentObject
from c2p.policyreport import PolicyReport, PolicyReportResult, parse_policy_report_list

logger = logging.getLogger("c2p.kyverno.result2oscal")

_POLICIES_FILE = "policies.kyverno.io.yaml"
_CLUSTER_POLICIES_FILE = "clusterpolicies.kyverno.io.yaml"
_POLICY_REPORTS_FILE = "policyreports.wgpolicyk8s.io.yaml"
_CLUSTER_POLICY_REPORTS_FILE = "clusterpolicyreports.wgpolicyk8s.io.yaml"


def make_prop(name: str, value: str) -> dict[str, str]:
    """An OSCAL property."""
    return {"name": name, "value": value}


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class ResultToOscal:
    """Builds assessment results from the policy reports collected from a cluster."""

    def __init__(self, parsed: C2PCRParsed, policy_results_dir: str) -> None:
        self.parsed = parsed
        self.policy_results_dir = policy_results_dir
        self.policy_reports: list[PolicyReport] = []

    def _load(self, filename: str) -> Any:
        with open(f"{self.policy_results_dir}/{filename}", encoding="utf-8") as handle:
            return yaml.safe_load(handle)

    def _policy_components(self) -> list[ComponentObject]:
        return [c for c in self.parsed.component_objects if c.component_type != "validation"]

    def _aggregate_component_objects(self) -> tuple[list[PolicyResourceIndex], list[str]]:
        indices: list[PolicyResourceIndex] = []
        control_ids: set[str] = set()
        for component in self._policy_components():
            for rule in component.rule_objects:
                source_dir = f"{self.parsed.policy_resource_dir}/{rule.rule_id}"
                loader = FileLoader()
                try:
                    loader.load_from_directory(source_dir)
                except OSError:
                    logger.error("Failed to load %s", source_dir)
                    continue
                indices.extend(loader.policy_resource_indice)
            control_ids.update(
                control.get_control_id()
                for imple in component.control_imple_objects
                for control in imple.control_objects
            )
        return indices, sorted(control_ids)

    def _control_ids_of(self, rule_id: str) -> list[str]:
        return sorted(
            {
                control.get_control_id()
                for component in self._policy_components()
                for imple in component.control_imple_objects
                for control in imple.control_objects
                if rule_id in control.rule_ids
            }
        )

    def _results_of(self, name: str) -> list[PolicyReportResult]:
        return [
            result
            for report in self.policy_reports
            for result in report.results
            if result.policy == name
        ]

    def _observation(self, index: PolicyResourceIndex) -> dict[str, Any]:
        name = index.name
        subjects = []
        for result in self._results_of(name):
            props = [make_prop("result", result.result), make_prop("reason", result.description)]
            for resource in result.subjects:
                title = (
                    f"ApiVersion: {resource.api_version}, Kind: {resource.kind}, "
                    f"Namespace: {resource.namespace}, Name: {resource.name}"
                )
                subjects.append(
                    {
                        "subject-uuid": resource.uid,
                        "title": title,
                        "type": "resource",
                        "props": [dict(prop) for prop in props],
                    }
                )
        return {
            "uuid": generate_uuid(),
            "description": f"Observation of rule {name}",
            "methods": ["TEST-AUTOMATED"],
            "props": [
                make_prop("assessment-rule-id", name),
                make_prop("controls", ",".join(self._control_ids_of(name))),
            ],
            "subjects": subjects,
        }

    def generate_assessment_results(self) -> dict[str, Any]:
        """Read the collected resources and build an assessment-results document."""
        self._load(_POLICIES_FILE)
        self._load(_CLUSTER_POLICIES_FILE)
        self.policy_reports = parse_policy_report_list(self._load(_POLICY_REPORTS_FILE))
        self._load(_CLUSTER_POLICY_REPORTS_FILE)

        indices, control_ids = self._aggregate_component_objects()
        observations = [self._observation(index) for index in indices]

        result = {
            "uuid": generate_uuid(),
            "title": "Assessment Results by Kyverno Policy",
            "description": "Assessment Results by Kyverno Policy...",
            "start": _now(),
            "reviewed-controls": [
                {
                    "control-selections": [
                        {
                            "include-controls": [
                                {"control-id": control_id} for control_id in control_ids
                            ]
                        }
                    ]
                }
            ],
            "observations": observations,
        }
        assessment_results = {
            "uuid": generate_uuid(),
            "metadata": {
                "title": "OSCAL Assessment Results",
                "last-modified": _now(),
                "version": "0.0.1",
                "oscal-version": "1.0.4",
            },
            "import-ap": {"href": "http://..."},
            "results": [result],
        }
        return {"assessment-results": assessment_results}