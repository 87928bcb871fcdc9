"""Mapping of OCM policy states to policy report values."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Iterable, Mapping

from c2p.policyreport import STATUSES, PolicyReport, PolicyReportSummary

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_ZERO_TIME = datetime(1, 1, 1, tzinfo=timezone.utc)

_SEVERITIES = ("low", "medium", "high", "critical")


class PolicyResult(str, Enum):
    """The outcome of a policy check."""

    PASS = STATUSES[0]
    FAIL = STATUSES[1]
    WARN = STATUSES[2]
    ERROR = STATUSES[3]
    SKIP = STATUSES[4]


def map_to_policy_result(compliance_state: str) -> PolicyResult:
    """Compliant passes, NonCompliant fails, anything else is an error."""
    if compliance_state == "Compliant":
        return PolicyResult.PASS
    if compliance_state == "NonCompliant":
        return PolicyResult.FAIL
    return PolicyResult.ERROR


def map_to_severity(severity: str) -> str:
    """Keep low, medium, high and critical; anything else becomes info."""
    return severity if severity in _SEVERITIES else "info"


def _parse_time(value: Any) -> datetime:
    if isinstance(value, datetime):
        moment = value
    elif not value:
        return _ZERO_TIME
    else:
        text = str(value)
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        moment = datetime.fromisoformat(text)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def _format_time(moment: datetime) -> str:
    text = moment.strftime("%Y-%m-%d %H:%M:%S")
    if moment.microsecond:
        text += f".{moment.microsecond:06d}".rstrip("0")
    return f"{text} +0000 UTC"


def _first_history(details: Mapping[str, Any]) -> Mapping[str, Any] | None:
    history = details.get("history") or []
    return history[0] if history else None


def map_to_timestamp(details: Mapping[str, Any]) -> dict[str, int]:
    """The time of the latest history entry as seconds and nanos since the epoch."""
    entry = _first_history(details)
    if entry is None:
        return {"seconds": 0, "nanos": 0}
    delta = _parse_time(entry.get("lastTimestamp")) - _EPOCH
    return {
        "seconds": delta.days * 86400 + delta.seconds,
        "nanos": delta.microseconds * 1000,
    }


def map_to_props(details: Mapping[str, Any]) -> dict[str, str]:
    """Message, event name and time of the latest history entry."""
    entry = _first_history(details)
    if entry is None:
        return {}
    return {
        "details": entry.get("message") or "",
        "eventName": entry.get("eventName") or "",
        "lastTimestamp": _format_time(_parse_time(entry.get("lastTimestamp"))),
    }


def find_config_policy_status(
    policy: Mapping[str, Any], config_policy: Mapping[str, Any]
) -> Mapping[str, Any]:
    """The status details of a policy for the template named like the configuration policy."""
    name = (config_policy.get("metadata") or {}).get("name")
    for detail in (policy.get("status") or {}).get("details") or []:
        if (detail.get("templateMeta") or {}).get("name") == name:
            return detail
    return {}


def summary(policy_report: PolicyReport) -> PolicyReportSummary:
    """Count the results of a report per outcome; unknown outcomes count as skipped."""
    counts = PolicyReportSummary()
    for result in policy_report.results:
        if result.result == PolicyResult.PASS.value:
            counts.pass_ += 1
        elif result.result == PolicyResult.FAIL.value:
            counts.fail += 1
        elif result.result == PolicyResult.WARN.value:
            counts.warn += 1
        elif result.result == PolicyResult.ERROR.value:
            counts.error += 1
        else:
            counts.skip += 1
    return counts


def find_policy_report_by_namespace_name(
    policy_reports: Iterable[PolicyReport], namespace: str, name: str
) -> PolicyReport | None:
    """Return the report with the given namespace and name, or None."""
    return next(
        (
            report
            for report in policy_reports
            if report.namespace == namespace and report.name == name
        ),
        None,
    )