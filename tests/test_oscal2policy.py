import json

import pytest

from c2p.c2pcr import Binding, C2PCRParsed, C2PCRParser, ClusterGroup, ComplianceRef, ResourceRef, Spec, Target
from c2p.kyverno.oscal2policy import Oscal2Policy
from c2p.oscal.parser import ComponentObject, RuleObject
from c2p.sources import GitUtils

POLICY = """apiVersion: kyverno.io/v1
kind: ClusterPolicy
metadata:
  name: allowed-base-images
  annotations:
    policies.kyverno.io/title: Allowed Base Images
"""


def _cd(component_type="service"):
    return {
        "component-definition": {
            "uuid": "c14d8812-7098-4a9b-8f89-cba41b6ff0d8",
            "metadata": {"title": "Component definition"},
            "components": [
                {
                    "type": component_type,
                    "title": "Kyverno",
                    "props": [
                        {"name": "Rule_Id", "value": "allowed-base-images", "remarks": "rule_set_0"}
                    ],
                    "control-implementations": [],
                }
            ],
        }
    }


@pytest.fixture
def policy_resources(tmp_path):
    policies = tmp_path / "policy-resources"
    rule_dir = policies / "allowed-base-images"
    rule_dir.mkdir(parents=True)
    (rule_dir / "policy.yaml").write_text(POLICY)
    temp = tmp_path / "_test"
    temp.mkdir()
    return tmp_path, policies, temp


def test_oscal2policy(policy_resources):
    tmp_path, policies, temp = policy_resources
    cd_path = tmp_path / "component-definition.json"
    cd_path.write_text(json.dumps(_cd()))
    spec = Spec(
        compliance=ComplianceRef(
            name="Test Compliance",
            component_definition=ResourceRef(str(cd_path)),
        ),
        policy_resources=ResourceRef(str(policies)),
        cluster_groups=[ClusterGroup("test-group", {"environment": "test"})],
        binding=Binding("Test Compliance", ["test-group"]),
        target=Target(""),
    )
    parsed = C2PCRParser(GitUtils(str(temp))).parse(spec)
    o2p = Oscal2Policy(parsed.policy_resource_dir, str(temp))
    o2p.generate(parsed)
    copied = temp / "allowed-base-images" / "policy.yaml"
    assert copied.read_text() == POLICY


def test_validation_components_are_skipped(policy_resources):
    _, policies, temp = policy_resources
    parsed = C2PCRParsed(
        component_objects=[
            ComponentObject(
                component_type="validation",
                rule_objects=[RuleObject(rule_id="allowed-base-images")],
            )
        ]
    )
    Oscal2Policy(str(policies), str(temp)).generate(parsed)
    assert list(temp.iterdir()) == []


def test_missing_policy_directory_raises(policy_resources):
    _, policies, temp = policy_resources
    parsed = C2PCRParsed(
        component_objects=[ComponentObject(rule_objects=[RuleObject(rule_id="no-such-rule")])]
    )
    with pytest.raises(FileNotFoundError):
        Oscal2Policy(str(policies), str(temp)).generate(parsed)


def test_copy_all_to(policy_resources):
    tmp_path, policies, temp = policy_resources
    parsed = C2PCRParsed(
        component_objects=[ComponentObject(rule_objects=[RuleObject(rule_id="allowed-base-images")])]
    )
    o2p = Oscal2Policy(str(policies), str(temp))
    o2p.generate(parsed)
    dest = tmp_path / "out" / "nested"
    o2p.copy_all_to(str(dest))
    assert (dest / "allowed-base-images" / "policy.yaml").read_text() == POLICY


def test_generate_twice_merges(policy_resources):
    _, policies, temp = policy_resources
    parsed = C2PCRParsed(
        component_objects=[ComponentObject(rule_objects=[RuleObject(rule_id="allowed-base-images")])]
    )
    o2p = Oscal2Policy(str(policies), str(temp))
    o2p.generate(parsed)
    o2p.generate(parsed)
    assert sorted(p.name for p in (temp / "allowed-base-images").iterdir()) == ["policy.yaml"]