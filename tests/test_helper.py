import pytest

from c2p.ocm.helper import (
    PolicyResult,
    find_config_policy_status,
    find_policy_report_by_namespace_name,
    map_to_policy_result,
    map_to_props,
    map_to_severity,
    map_to_timestamp,
    summary,
)
from c2p.policyreport import PolicyReport, PolicyReportResult


@pytest.mark.parametrize(
    "state, expected",
    [
        ("Compliant", PolicyResult.PASS),
        ("NonCompliant", PolicyResult.FAIL),
        ("Pending", PolicyResult.ERROR),
        ("", PolicyResult.ERROR),
    ],
)
def test_map_to_policy_result(state, expected):
    assert map_to_policy_result(state) is expected


def test_policy_result_values():
    assert map_to_policy_result("Compliant").value == "pass"
    assert map_to_policy_result("NonCompliant") == "fail"


@pytest.mark.parametrize("severity", ["low", "medium", "high", "critical"])
def test_map_to_severity_keeps_known(severity):
    assert map_to_severity(severity) == severity


@pytest.mark.parametrize("severity", ["", "urgent", "LOW"])
def test_map_to_severity_defaults_to_info(severity):
    assert map_to_severity(severity) == "info"


def test_map_to_timestamp_without_history():
    assert map_to_timestamp({}) == {"seconds": 0, "nanos": 0}
    assert map_to_timestamp({"history": []}) == {"seconds": 0, "nanos": 0}


def test_map_to_timestamp_epoch_and_ordering():
    epoch = map_to_timestamp({"history": [{"lastTimestamp": "1970-01-01T00:00:00Z"}]})
    assert epoch == {"seconds": 0, "nanos": 0}
    earlier = map_to_timestamp({"history": [{"lastTimestamp": "2023-05-01T10:20:30Z"}]})
    later = map_to_timestamp(
        {
            "history": [
                {"lastTimestamp": "2023-05-01T10:21:30Z"},
                {"lastTimestamp": "2020-01-01T00:00:00Z"},
            ]
        }
    )
    assert later["seconds"] - earlier["seconds"] == 60
    assert later["nanos"] == 0


def test_map_to_timestamp_offset_equals_utc():
    utc = map_to_timestamp({"history": [{"lastTimestamp": "2023-05-01T10:20:30Z"}]})
    offset = map_to_timestamp({"history": [{"lastTimestamp": "2023-05-01T19:20:30+09:00"}]})
    assert utc == offset


def test_map_to_props():
    details = {
        "history": [
            {
                "message": "Compliant; notification - namespaces found",
                "eventName": "c2p.policy-a.17",
                "lastTimestamp": "2023-05-01T10:20:30Z",
            }
        ]
    }
    props = map_to_props(details)
    assert props["details"] == "Compliant; notification - namespaces found"
    assert props["eventName"] == "c2p.policy-a.17"
    assert props["lastTimestamp"] == "2023-05-01 10:20:30 +0000 UTC"
    assert map_to_props({}) == {}


def test_find_config_policy_status():
    detail = {"templateMeta": {"name": "cfg-b"}, "compliant": "NonCompliant"}
    policy = {"status": {"details": [{"templateMeta": {"name": "cfg-a"}}, detail]}}
    assert find_config_policy_status(policy, {"metadata": {"name": "cfg-b"}}) is detail
    assert find_config_policy_status(policy, {"metadata": {"name": "none"}}) == {}
    assert find_config_policy_status({}, {"metadata": {"name": "cfg-a"}}) == {}


def test_summary_counts_each_result():
    outcomes = ["pass", "pass", "fail", "warn", "error", "skip", "unknown"]
    report = PolicyReport(results=[PolicyReportResult(policy="p", result=r) for r in outcomes])
    counts = summary(report)
    assert counts.pass_ == outcomes.count("pass")
    assert counts.fail == outcomes.count("fail")
    assert counts.warn == outcomes.count("warn")
    assert counts.error == outcomes.count("error")
    assert counts.skip == outcomes.count("skip") + outcomes.count("unknown")
    total = counts.pass_ + counts.fail + counts.warn + counts.error + counts.skip
    assert total == len(outcomes)


def test_summary_of_empty_report():
    assert summary(PolicyReport()).to_dict() == {
        "pass": 0,
        "fail": 0,
        "warn": 0,
        "error": 0,
        "skip": 0,
    }


def test_find_policy_report_by_namespace_name():
    first = PolicyReport(metadata={"name": "polr-a", "namespace": "ns1"})
    second = PolicyReport(metadata={"name": "polr-a", "namespace": "ns2"})
    reports = [first, second]
    assert find_policy_report_by_namespace_name(reports, "ns2", "polr-a") is second
    assert find_policy_report_by_namespace_name(reports, "ns1", "polr-a") is first
    assert find_policy_report_by_namespace_name(reports, "ns3", "polr-a") is None