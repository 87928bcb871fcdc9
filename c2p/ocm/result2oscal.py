"""Conversion of OCM policy results into OSCAL assessment results."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Iterable, Mapping

import yaml

from c2p.c2pcr import C2PCRParsed
from c2p.oscal.mapping import find_prop, generate_uuid
from c2p.oscal.parser import find_rules_by_rule_id

logger = logging.getLogger("c2p.ocm.result2oscal")

COMPONENT_TITLE_ANNOTATION = "compliance.open-cluster-management.io/component-title"

_POLICIES_FILE = "policies.policy.open-cluster-management.io.yaml"
_POLICY_SETS_FILE = "policysets.policy.open-cluster-management.io.yaml"
_PLACEMENT_DECISIONS_FILE = "placementdecisions.cluster.open-cluster-management.io.yaml"

_HISTORY_KEYS = ("lastTimestamp", "message", "eventName")


class GenerationType(str, Enum):
    """How the results were gathered."""

    RAW = "raw"
    POLICY_REPORT = "policy-report"


class RuleStatus(str, Enum):
    """The outcome of a rule."""

    PASSED = "pass"
    FAIL = "fail"
    ERROR = "error"
    UNIMPLEMENTED = "unimplemented"


@dataclass
class Reason:
    """The compliance state of a policy on one cluster, with its latest messages."""

    cluster_name: str = ""
    compliance_state: str = ""
    messages: list[dict[str, str]] = field(default_factory=list)


def map_to_rule_status(compliance_state: str) -> RuleStatus:
    """Compliant passes, NonCompliant and Pending fail, anything else is an error."""
    if compliance_state == "Compliant":
        return RuleStatus.PASSED
    if compliance_state in ("NonCompliant", "Pending"):
        return RuleStatus.FAIL
    return RuleStatus.ERROR


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _metadata(obj: Mapping[str, Any]) -> Mapping[str, Any]:
    metadata = obj.get("metadata")
    return metadata if isinstance(metadata, Mapping) else {}


def _status(obj: Mapping[str, Any]) -> Mapping[str, Any]:
    status = obj.get("status")
    return status if isinstance(status, Mapping) else {}


def _find_by_namespace_name(
    objects: Iterable[Mapping[str, Any]], namespace: str, name: str
) -> Mapping[str, Any] | None:
    return next(
        (
            obj
            for obj in objects
            if _metadata(obj).get("namespace", "") == namespace
            and _metadata(obj).get("name", "") == name
        ),
        None,
    )


def _filter_by_annotation(
    objects: Iterable[Mapping[str, Any]], key: str, value: str
) -> list[Mapping[str, Any]]:
    return [
        obj
        for obj in objects
        if (_metadata(obj).get("annotations") or {}).get(key) == value
    ]


def _format_timestamp(value: Any) -> str:
    if isinstance(value, datetime):
        moment = value if value.tzinfo else value.replace(tzinfo=timezone.utc)
        return moment.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
    return str(value)


def _history_entry(entry: Mapping[str, Any]) -> dict[str, str]:
    out: dict[str, str] = {}
    for key in _HISTORY_KEYS:
        value = entry.get(key)
        if not value:
            continue
        out[key] = _format_timestamp(value) if key == "lastTimestamp" else str(value)
    return out


def _dump_messages(messages: list[dict[str, str]]) -> str:
    try:
        return yaml.safe_dump(
            messages, sort_keys=True, default_flow_style=False, width=float("inf")
        )
    except yaml.YAMLError as exc:
        return str(exc)


class OcmResultToOscal:
    """Builds assessment results from the OCM resources collected from a hub."""

    def __init__(self, parsed: C2PCRParsed, policy_results_dir: str) -> None:
        self.parsed = parsed
        self.policy_results_dir = policy_results_dir
        self.policies: list[Mapping[str, Any]] = []
        self.policy_sets: list[Mapping[str, Any]] = []
        self.placement_decisions: list[Mapping[str, Any]] = []

    def _load_items(self, filename: str) -> list[Mapping[str, Any]]:
        with open(f"{self.policy_results_dir}/{filename}", encoding="utf-8") as handle:
            document = yaml.safe_load(handle) or {}
        if not isinstance(document, Mapping):
            raise ValueError(f"{filename} is not a list of resources")
        items = document.get("items") or []
        if not isinstance(items, list):
            raise ValueError(f"'items' of {filename} is not a list")
        return [item for item in items if isinstance(item, Mapping)]

    def _inventories(self) -> list[dict[str, Any]]:
        inventories: list[dict[str, Any]] = []
        seen: set[str] = set()
        for policy in self.policies:
            if _metadata(policy).get("namespace", "") != self.parsed.namespace:
                continue
            for status in _status(policy).get("status") or []:
                cluster_name = status.get("clustername") or ""
                if cluster_name in seen:
                    continue
                seen.add(cluster_name)
                inventories.append(
                    {
                        "uuid": generate_uuid(),
                        "props": [{"name": "cluster-name", "value": cluster_name}],
                    }
                )
        return inventories

    def _subjects(
        self, policy: Mapping[str, Any], inventories: list[dict[str, Any]]
    ) -> list[dict[str, Any]]:
        subjects = []
        for reason in self.generate_reasons_from_raw_policies(policy):
            cluster_name = "N/A"
            inventory_uuid = ""
            for inventory in inventories:
                prop = find_prop("cluster-name", inventory["props"])
                if prop is not None and prop.get("value") == reason.cluster_name:
                    cluster_name = prop["value"]
                    inventory_uuid = inventory["uuid"]
                    break
            if not inventory_uuid:
                continue
            subjects.append(
                {
                    "subject-uuid": inventory_uuid,
                    "type": "resource",
                    "title": f"Cluster Name: {cluster_name}",
                    "props": [
                        {
                            "name": "result",
                            "value": map_to_rule_status(reason.compliance_state).value,
                        },
                        {"name": "reason", "value": _dump_messages(reason.messages)},
                    ],
                }
            )
        return subjects

    def _observations(self, inventories: list[dict[str, Any]]) -> list[dict[str, Any]]:
        observations = []
        for component in self.parsed.component_objects:
            policy_sets = _filter_by_annotation(
                self.policy_sets, COMPONENT_TITLE_ANNOTATION, component.component_title
            )
            policy_set = policy_sets[0] if policy_sets else None
            for imple in component.control_imple_objects:
                for control in imple.control_objects:
                    for rule_id in control.rule_ids:
                        rule = find_rules_by_rule_id(rule_id, component.rule_objects)
                        if rule is None:
                            continue
                        policy_id = rule.policy_id
                        policy = None
                        if policy_set is not None:
                            policy = _find_by_namespace_name(
                                self.policies,
                                _metadata(policy_set).get("namespace", ""),
                                policy_id,
                            )
                        if policy is not None:
                            status = map_to_rule_status(_status(policy).get("compliant") or "")
                            subjects = self._subjects(policy, inventories)
                        else:
                            status = RuleStatus.ERROR
                            subjects = []
                        observations.append(
                            {
                                "uuid": generate_uuid(),
                                "description": f"Observation of policy {policy_id}",
                                "methods": ["TEST-AUTOMATED"],
                                "props": [
                                    {"name": "assessment-rule-id", "value": rule_id},
                                    {"name": "policy-id", "value": policy_id},
                                    {"name": "control-id", "value": control.control_id},
                                    {"name": "result", "value": status.value},
                                ],
                                "subjects": subjects,
                            }
                        )
        return observations

    def generate(self) -> dict[str, Any]:
        """Read the collected resources and build an assessment-results document."""
        self.policies.extend(self._load_items(_POLICIES_FILE))
        self.policy_sets.extend(self._load_items(_POLICY_SETS_FILE))
        self.placement_decisions.extend(self._load_items(_PLACEMENT_DECISIONS_FILE))

        inventories = self._inventories()
        observations = self._observations(inventories)

        result = {
            "uuid": generate_uuid(),
            "title": "Assessment Results by OCM",
            "description": "Assessment Results by OCM...",
            "start": _now(),
            "local-definitions": {"inventory-items": inventories},
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

    def generate_reasons_from_raw_policies(self, policy: Mapping[str, Any]) -> list[Reason]:
        """One reason per cluster that has a propagated copy of the policy."""
        metadata = _metadata(policy)
        replicated_name = f"{metadata.get('namespace', '')}.{metadata.get('name', '')}"
        reasons = []
        for status in _status(policy).get("status") or []:
            cluster_name = status.get("clustername") or ""
            per_cluster = _find_by_namespace_name(self.policies, cluster_name, replicated_name)
            if per_cluster is None:
                continue
            messages = [
                _history_entry(detail["history"][0])
                for detail in _status(per_cluster).get("details") or []
                if detail.get("history")
            ]
            reasons.append(
                Reason(
                    cluster_name=cluster_name,
                    compliance_state=status.get("compliant") or "",
                    messages=messages,
                )
            )
        return reasons