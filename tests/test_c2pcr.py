import json
import os

import pytest

from c2p.c2pcr import (
    Binding,
    C2PCRParser,
    ClusterGroup,
    ComplianceRef,
    OcmC2PCRParser,
    ResourceRef,
    Spec,
    Target,
)
from c2p.sources import GitUtils, SourceError

CD = {
    "component-definition": {
        "uuid": "c14d8812-7098-4a9b-8f89-cba41b6ff0d8",
        "metadata": {"title": "Component definition"},
        "components": [
            {
                "type": "service",
                "title": "Kyverno",
                "props": [
                    {"name": "Rule_Id", "value": "rule-a", "remarks": "rule_set_0"},
                    {"name": "Policy_Id", "value": "policy-a", "remarks": "rule_set_0"},
                ],
                "control-implementations": [
                    {
                        "implemented-requirements": [
                            {"control-id": "cm-6", "props": [{"name": "Rule_Id", "value": "rule-a"}]}
                        ]
                    }
                ],
            }
        ],
    }
}


@pytest.fixture
def docs(tmp_path):
    policies = tmp_path / "policies"
    policies.mkdir()
    cd_path = tmp_path / "cd.json"
    cd_path.write_text(json.dumps(CD))
    catalog_path = tmp_path / "catalog.json"
    catalog_path.write_text(json.dumps({"catalog": {"groups": []}}))
    profile_path = tmp_path / "profile.json"
    profile_path.write_text(json.dumps({"profile": {"imports": []}}))
    return tmp_path, policies, cd_path, catalog_path, profile_path


def _spec(policies, cd_path, catalog="", profile="", namespace="", groups=None):
    return Spec(
        compliance=ComplianceRef(
            name="Test Compliance",
            catalog=ResourceRef(catalog),
            profile=ResourceRef(profile),
            component_definition=ResourceRef(str(cd_path)),
        ),
        policy_resources=ResourceRef(str(policies)),
        cluster_groups=groups
        if groups is not None
        else [ClusterGroup("test-group", {"environment": "test"})],
        binding=Binding("Test Compliance", ["test-group"]),
        target=Target(namespace),
    )


def test_parse_local_documents(docs):
    tmp_path, policies, cd_path, catalog_path, profile_path = docs
    parser = C2PCRParser(GitUtils(str(tmp_path)))
    parsed = parser.parse(_spec(policies, cd_path, str(catalog_path), str(profile_path)))
    assert parsed.policy_resource_dir == f"{policies}/"
    assert parsed.component_definition == CD
    assert parsed.catalog == {"catalog": {"groups": []}}
    assert parsed.profile == {"profile": {"imports": []}}
    component = parsed.component_objects[0]
    assert component.component_title == "Kyverno"
    assert component.rule_objects[0].rule_id == "rule-a"
    assert component.rule_objects[0].policy_id == "policy-a"
    assert component.control_imple_objects[0].control_objects[0].rule_ids == ["rule-a"]


def test_catalog_and_profile_are_optional(docs):
    tmp_path, policies, cd_path, _, _ = docs
    parsed = C2PCRParser(GitUtils(str(tmp_path))).parse(_spec(policies, cd_path))
    assert parsed.catalog == {}
    assert parsed.profile == {}
    assert parsed.namespace == ""
    assert parsed.cluster_selectors is None


def test_missing_component_definition_raises(docs):
    tmp_path, policies, _, _, _ = docs
    with pytest.raises(SourceError):
        C2PCRParser(GitUtils(str(tmp_path))).parse(_spec(policies, tmp_path / "nope.json"))


def test_component_definition_must_be_an_object(docs):
    tmp_path, policies, _, _, _ = docs
    bad = tmp_path / "list.json"
    bad.write_text("[1, 2]")
    with pytest.raises(SourceError):
        C2PCRParser(GitUtils(str(tmp_path))).parse(_spec(policies, bad))


def test_ocm_parse_takes_namespace_and_selectors(docs):
    tmp_path, policies, cd_path, _, _ = docs
    parsed = OcmC2PCRParser(GitUtils(str(tmp_path))).parse(
        _spec(policies, cd_path, namespace="c2p")
    )
    assert parsed.namespace == "c2p"
    assert parsed.cluster_selectors == {"environment": "test"}
    assert parsed.component_objects[0].component_title == "Kyverno"


def test_ocm_parse_requires_cluster_groups(docs):
    tmp_path, policies, cd_path, _, _ = docs
    parser = OcmC2PCRParser(GitUtils(str(tmp_path)))
    with pytest.raises(ValueError):
        parser.parse(_spec(policies, cd_path, groups=[]))
    with pytest.raises(ValueError):
        parser.parse(_spec(policies, cd_path, groups=[ClusterGroup("g", None)]))


def test_load_assessment_results(docs):
    tmp_path = docs[0]
    ar = {"assessment-results": {"uuid": "u", "results": []}}
    path = tmp_path / "ar.json"
    path.write_text(json.dumps(ar))
    assert C2PCRParser(GitUtils(str(tmp_path))).load_assessment_results(str(path)) == ar


def test_remote_documents_are_cloned_once(tmp_path, monkeypatch):
    monkeypatch.delenv("username", raising=False)
    monkeypatch.delenv("token", raising=False)
    calls = []

    def cloner(url, directory, auth):
        calls.append((url, auth))
        os.makedirs(os.path.join(directory, "path"))
        os.makedirs(os.path.join(directory, "policies"))
        with open(os.path.join(directory, "path", "cd.json"), "w") as handle:
            json.dump(CD, handle)

    work = tmp_path / "work"
    work.mkdir()
    spec = Spec(
        compliance=ComplianceRef(
            component_definition=ResourceRef("https://example.com/org/repo/path/cd.json")
        ),
        policy_resources=ResourceRef("https://example.com/org/repo/policies"),
    )
    parsed = C2PCRParser(GitUtils(str(work), cloner=cloner)).parse(spec)
    assert calls == [("https://example.com/org/repo", None)]
    assert parsed.policy_resource_dir.endswith("/policies")
    assert os.path.isdir(parsed.policy_resource_dir)
    assert parsed.component_objects[0].component_title == "Kyverno"