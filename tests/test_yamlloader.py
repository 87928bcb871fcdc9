import io

import pytest
import yaml

from c2p.yamlloader import LoadedObjects, load_and_unmarshal, load_yaml

POLICY_YAML = """\
apiVersion: policy.open-cluster-management.io/v1
kind: Policy
metadata:
  name: policy-namespace
  annotations:
    policy.open-cluster-management.io/standards: NIST SP 800-53
    policy.open-cluster-management.io/categories: CM Configuration Management
    policy.open-cluster-management.io/controls: CM-2 Baseline Configuration
spec:
  remediationAction: inform
  disabled: false
  policy-templates:
    - objectDefinition:
        apiVersion: policy.open-cluster-management.io/v1
        kind: ConfigurationPolicy
        metadata:
          name: policy-namespace-example
        spec:
          remediationAction: inform
          severity: low
          object-templates:
            - complianceType: musthave
              objectDefinition:
                kind: Namespace
                apiVersion: v1
                metadata:
                  name: prod
---
apiVersion: policy.open-cluster-management.io/v1
kind: PlacementBinding
metadata:
  name: binding-policy-namespace
placementRef:
  name: placement-policy-namespace
  kind: PlacementRule
  apiGroup: apps.open-cluster-management.io
subjects:
  - name: policy-namespace
    kind: Policy
    apiGroup: policy.open-cluster-management.io
---
apiVersion: apps.open-cluster-management.io/v1
kind: PlacementRule
metadata:
  name: placement-policy-namespace
spec:
  clusterConditions:
    - status: "True"
      type: ManagedClusterConditionAvailable
  clusterSelector:
    matchExpressions: []
---
"""


def test_load_yaml_returns_all_documents():
    objects = load_yaml(io.StringIO(POLICY_YAML))
    assert [obj["kind"] for obj in objects] == ["Policy", "PlacementBinding", "PlacementRule"]


def test_load_yaml_skips_empty_documents():
    objects = load_yaml("---\n---\nkind: A\n---\n")
    assert objects == [{"kind": "A"}]


def test_load_yaml_invalid_raises():
    with pytest.raises(yaml.YAMLError):
        load_yaml("kind: [unclosed\n")


def test_load_and_unmarshal_classifies_by_kind():
    loaded = load_and_unmarshal(io.StringIO(POLICY_YAML))
    assert [p["metadata"]["name"] for p in loaded.policies] == ["policy-namespace"]
    assert [p["metadata"]["name"] for p in loaded.placement_bindings] == [
        "binding-policy-namespace"
    ]
    assert [p["metadata"]["name"] for p in loaded.placement_rules] == [
        "placement-policy-namespace"
    ]
    templates = loaded.policies[0]["spec"]["policy-templates"]
    assert templates[0]["objectDefinition"]["kind"] == "ConfigurationPolicy"


def test_load_and_unmarshal_unpacks_in_order():
    policies, bindings, rules = load_and_unmarshal(POLICY_YAML)
    assert len(policies) == 1
    assert len(bindings) == 1
    assert len(rules) == 1


def test_other_kinds_and_kindless_documents_are_ignored():
    text = "kind: ConfigMap\nmetadata: {name: c}\n---\nmetadata: {name: nokind}\n---\n- a\n"
    assert load_and_unmarshal(text) == LoadedObjects()