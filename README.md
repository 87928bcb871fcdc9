# c2p

`c2p` is a library that connects OSCAL compliance documents (catalogs,
profiles and component definitions) with Kubernetes policy engines:

* **Compliance to policy**: flatten a component definition into the
  rules each control requires, and gather the matching Kyverno policy
  directories into a working directory.
* **Policy results to compliance**: read the resources collected from a
  cluster (Kyverno policy reports, or Open Cluster Management policies,
  policy sets and placement decisions) and build an OSCAL
  assessment-results document, one observation per rule.

OSCAL documents are handled as plain dictionaries with the usual
hyphenated OSCAL keys; functions that take a catalog, profile or component
definition accept either the document itself or its root
(`{"catalog": ...}`, `{"profile": ...}`, `{"component-definition": ...}`).

## Modules

| Module | Contents |
| --- | --- |
| `c2p.oscal.parser` | `parse_component_definition` turns a component definition into `ComponentObject`, `ControlImpleObject`, `ControlObject` and `RuleObject` values; also `list_rules`, `find_rules_by_rule_id`, `get_component_wide_rules`. |
| `c2p.oscal.mapping` | `intersect_profile_with_cd`, `find_control_group`, `make_internal_compliance`, `make_internal_oscal_format`, `make_component_definition`, `make_trestle_csv` (with `TrestleCsvRow`, `TrestleComponentProps`), `control_id_to_oscal`, `find_prop`, `generate_uuid`. |
| `c2p.sources` | `GitUtils` loads JSON documents from local paths, over HTTP, or out of a git repository; `split_git_url`, `to_local_path`, `load_json_file`; failures raise `SourceError`. |
| `c2p.c2pcr` | `Spec` and its parts (`ComplianceRef`, `ResourceRef`, `ClusterGroup`, `Binding`, `Target`); `C2PCRParser` and `OcmC2PCRParser` resolve a spec into a `C2PCRParsed`. |
| `c2p.decomposer` | `ResourceRow` tables grouped by column (`group_by`), by standard/category/control (`group_by_compliance`) or as `Compliance` trees (`group_by_compliance_in_hierarchy`); `Decomposer` copies resources into per-policy directories and writes one YAML file per standard. |
| `c2p.yamlloader` | `load_yaml` reads every non-empty document of a YAML stream; `load_and_unmarshal` sorts them into a `LoadedObjects` of policies, placement bindings and placement rules. |
| `c2p.policyreport` | `PolicyReport`, `ClusterPolicyReport`, `PolicyReportResult`, `PolicyReportSummary`, `ObjectReference`; `parse_policy_report_list`, `parse_cluster_policy_report_list`; `group_kind`, `group_resource`. |
| `c2p.kyverno.fileloader` | `FileLoader.load_from_directory` walks a directory and indexes titled Kyverno `Policy` / `ClusterPolicy` resources as `PolicyResourceIndex` entries. |
| `c2p.kyverno.oscal2policy` | `Oscal2Policy.generate` copies `<policies>/<rule-id>` for every rule of each non-validation component; `copy_all_to` copies the result elsewhere. |
| `c2p.kyverno.result2oscal` | `ResultToOscal.generate_assessment_results` builds assessment results from Kyverno policy reports. |
| `c2p.ocm.helper` | `PolicyResult`, `map_to_policy_result`, `map_to_severity`, `map_to_timestamp`, `map_to_props`, `find_config_policy_status`, `summary`, `find_policy_report_by_namespace_name`. |
| `c2p.ocm.result2oscal` | `OcmResultToOscal.generate` builds assessment results from OCM resources; `map_to_rule_status`, `RuleStatus`, `Reason`, `GenerationType`. |

## Example: rules per control

```python
from c2p.oscal.parser import parse_component_definition
from c2p.sources import load_json_file

root = load_json_file("component-definition.json")
for component in parse_component_definition(root):
    print(component.component_title)
    for imple in component.control_imple_objects:
        for control in imple.control_objects:
            print(" ", control.get_control_id(), control.rule_ids)
```

## Example: Kyverno assessment results

```python
from c2p.c2pcr import C2PCRParser, ComplianceRef, ResourceRef, Spec
from c2p.kyverno.result2oscal import ResultToOscal
from c2p.sources import GitUtils

spec = Spec(
    compliance=ComplianceRef(
        component_definition=ResourceRef("component-definition.json"),
    ),
    policy_resources=ResourceRef("policy-resources"),
)
parsed = C2PCRParser(GitUtils()).parse(spec)
document = ResultToOscal(parsed, "policy-results").generate_assessment_results()
```

`ResultToOscal` reads `policies.kyverno.io.yaml`,
`clusterpolicies.kyverno.io.yaml`, `policyreports.wgpolicyk8s.io.yaml` and
`clusterpolicyreports.wgpolicyk8s.io.yaml` from the results directory.
`OcmResultToOscal` reads `policies.policy.open-cluster-management.io.yaml`,
`policysets.policy.open-cluster-management.io.yaml` and
`placementdecisions.cluster.open-cluster-management.io.yaml`. Each file
holds a list resource with an `items` key.

## Sources and credentials

`GitUtils` treats a URL without a scheme, or with the `local` scheme, as a
path on the local file system. `load_from_web` fetches other URLs with an
HTTP GET and decodes the body as JSON. For git sources the URL is split
into the repository (`scheme://host/owner/repo`) and the path inside it.
The package does not run git itself: pass a `cloner(url, directory, auth)`
callable to `GitUtils`; each repository is cloned at most once into a new
directory under `temp_dir` and reused afterwards. When the environment
variables `username` and `token` are both set, `auth` is
`(username, token)`, otherwise `None`. Without a cloner, remote git URLs
raise `SourceError`.

## What it does not do

* There is no command-line program; everything is used as a library.
* It does not talk to a Kubernetes cluster. Resources are read from files
  that were collected beforehand, and nothing is applied to a cluster.
* It does not compose OCM policy sets or run policy generators; on the
  OCM side it only turns collected results into assessment results.

## Requirements

Python 3.10 or later and PyYAML. The tests use pytest, available through
the `test` extra.