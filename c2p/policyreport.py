"""PolicyReport and ClusterPolicyReport resources of the wgpolicyk8s.io/v1beta1 API group."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

GROUP = "wgpolicyk8s.io"
VERSION = "v1beta1"
API_VERSION = f"{GROUP}/{VERSION}"

KIND_POLICY_REPORT = "PolicyReport"
KIND_POLICY_REPORT_LIST = "PolicyReportList"
KIND_CLUSTER_POLICY_REPORT = "ClusterPolicyReport"
KIND_CLUSTER_POLICY_REPORT_LIST = "ClusterPolicyReportList"

# Outcomes a result may have, in the order the summary counts them.
STATUSES = ("pass", "fail", "warn", "error", "skip")


@dataclass(frozen=True)
class GroupKind:
    """A kind qualified by its API group."""

    group: str
    kind: str

    def __str__(self) -> str:
        return self.kind if not self.group else f"{self.kind}.{self.group}"


@dataclass(frozen=True)
class GroupResource:
    """A resource qualified by its API group."""

    group: str
    resource: str

    def __str__(self) -> str:
        return self.resource if not self.group else f"{self.resource}.{self.group}"


def group_kind(kind: str) -> GroupKind:
    """Qualify an unqualified kind with this API group."""
    return GroupKind(GROUP, kind)


def group_resource(resource: str) -> GroupResource:
    """Qualify an unqualified resource with this API group."""
    return GroupResource(GROUP, resource)


_REFERENCE_KEYS = {
    "kind": "kind",
    "namespace": "namespace",
    "name": "name",
    "uid": "uid",
    "api_version": "apiVersion",
    "resource_version": "resourceVersion",
    "field_path": "fieldPath",
}


@dataclass
class ObjectReference:
    """A reference to a Kubernetes object."""

    kind: str = ""
    namespace: str = ""
    name: str = ""
    uid: str = ""
    api_version: str = ""
    resource_version: str = ""
    field_path: str = ""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> "ObjectReference":
        data = data or {}
        return cls(**{attr: str(data.get(key) or "") for attr, key in _REFERENCE_KEYS.items()})

    def to_dict(self) -> dict[str, str]:
        return {
            key: getattr(self, attr)
            for attr, key in _REFERENCE_KEYS.items()
            if getattr(self, attr)
        }


@dataclass
class PolicyReportSummary:
    """Counts of results per status."""

    pass_: int = 0
    fail: int = 0
    warn: int = 0
    error: int = 0
    skip: int = 0

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> "PolicyReportSummary":
        data = data or {}
        return cls(*(int(data.get(key) or 0) for key in STATUSES))

    def to_dict(self) -> dict[str, int]:
        counts = (self.pass_, self.fail, self.warn, self.error, self.skip)
        return dict(zip(STATUSES, counts))


@dataclass
class PolicyReportResult:
    """The result of one policy rule."""

    policy: str = ""
    source: str = ""
    rule: str = ""
    category: str = ""
    severity: str = ""
    timestamp: dict[str, int] = field(default_factory=lambda: {"seconds": 0, "nanos": 0})
    result: str = ""
    scored: bool = False
    subjects: list[ObjectReference] = field(default_factory=list)
    resource_selector: dict[str, Any] | None = None
    description: str = ""
    properties: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> "PolicyReportResult":
        data = data or {}
        timestamp = data.get("timestamp") or {}
        return cls(
            policy=data.get("policy") or "",
            source=data.get("source") or "",
            rule=data.get("rule") or "",
            category=data.get("category") or "",
            severity=data.get("severity") or "",
            timestamp={
                "seconds": int(timestamp.get("seconds") or 0),
                "nanos": int(timestamp.get("nanos") or 0),
            },
            result=data.get("result") or "",
            scored=bool(data.get("scored", False)),
            subjects=[ObjectReference.from_dict(item) for item in data.get("resources") or []],
            resource_selector=data.get("resourceSelector"),
            description=data.get("message") or "",
            properties=dict(data.get("properties") or {}),
        )

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"source": self.source, "policy": self.policy}
        if self.rule:
            out["rule"] = self.rule
        if self.category:
            out["category"] = self.category
        if self.severity:
            out["severity"] = self.severity
        out["timestamp"] = dict(self.timestamp)
        if self.result:
            out["result"] = self.result
        if self.scored:
            out["scored"] = True
        if self.subjects:
            out["resources"] = [subject.to_dict() for subject in self.subjects]
        if self.resource_selector is not None:
            out["resourceSelector"] = self.resource_selector
        if self.description:
            out["message"] = self.description
        if self.properties:
            out["properties"] = dict(self.properties)
        return out


@dataclass
class ClusterPolicyReport:
    """A cluster-scoped report of policy results."""

    api_version: str = API_VERSION
    kind: str = KIND_CLUSTER_POLICY_REPORT
    metadata: dict[str, Any] = field(default_factory=dict)
    scope: ObjectReference | None = None
    scope_selector: dict[str, Any] | None = None
    summary: PolicyReportSummary = field(default_factory=PolicyReportSummary)
    results: list[PolicyReportResult] = field(default_factory=list)

    @property
    def name(self) -> str:
        return self.metadata.get("name") or ""

    @property
    def namespace(self) -> str:
        return self.metadata.get("namespace") or ""

    @classmethod
    def _common_fields(cls, data: Mapping[str, Any]) -> dict[str, Any]:
        scope = data.get("scope")
        return {
            "api_version": data.get("apiVersion") or API_VERSION,
            "kind": data.get("kind") or cls.kind,
            "metadata": dict(data.get("metadata") or {}),
            "scope": ObjectReference.from_dict(scope) if scope is not None else None,
            "scope_selector": data.get("scopeSelector"),
            "summary": PolicyReportSummary.from_dict(data.get("summary")),
            "results": [PolicyReportResult.from_dict(item) for item in data.get("results") or []],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ClusterPolicyReport":
        return cls(**cls._common_fields(data))

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {}
        if self.api_version:
            out["apiVersion"] = self.api_version
        if self.kind:
            out["kind"] = self.kind
        out["metadata"] = dict(self.metadata)
        if self.scope is not None:
            out["scope"] = self.scope.to_dict()
        if self.scope_selector is not None:
            out["scopeSelector"] = self.scope_selector
        out["summary"] = self.summary.to_dict()
        if self.results:
            out["results"] = [result.to_dict() for result in self.results]
        return out


@dataclass
class PolicyReport(ClusterPolicyReport):
    """A namespaced report of policy results."""

    kind: str = KIND_POLICY_REPORT
    source: str = ""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PolicyReport":
        return cls(source=data.get("source") or "", **cls._common_fields(data))

    def to_dict(self) -> dict[str, Any]:
        out = super().to_dict()
        out["source"] = self.source
        return out


def _items(data: Any) -> list[Mapping[str, Any]]:
    if data is None:
        return []
    if not isinstance(data, Mapping):
        raise ValueError("a report list must be a mapping")
    items = data.get("items") or []
    if not isinstance(items, list):
        raise ValueError("'items' of a report list must be a list")
    return items


def parse_policy_report_list(data: Any) -> list[PolicyReport]:
    """Read the items of a PolicyReportList document."""
    return [PolicyReport.from_dict(item) for item in _items(data)]


def parse_cluster_policy_report_list(data: Any) -> list[ClusterPolicyReport]:
    """Read the items of a ClusterPolicyReportList document."""
    return [ClusterPolicyReport.from_dict(item) for item in _items(data)]