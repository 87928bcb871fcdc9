"""Mapping between policy resource tables, OSCAL documents and compliance trees."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping

from c2p.decomposer import (
    Category,
    Compliance,
    Control,
    ResourceRow,
    Standard,
    group_by,
    group_by_compliance_in_hierarchy,
)
from c2p.oscal.parser import list_rules

OSCAL_NAMESPACE = "http://oscal-compass.github.io/compliance-trestle/schemas/oscal/cd"

_STANDARD_TO_OSCAL = {
    "NIST SP 800-53": "NIST_SP-800-53_rev5_catalog",
}

_COMPONENT_UUID = "c8106bc8-5174-4e86-91a4-52f2fe0ed027"
_COMPONENT_DEFINITION_UUID = "c14d8812-7098-4a9b-8f89-cba41b6ff0d8"
_INTERSECTED_DEFINITION_UUID = "cdfd629a-bd62-11ed-afa1-0242ac120002"

_UNKNOWN_GROUP = {"id": "unknown", "title": "unknown", "class": "unknown"}


def _unwrap(document: Mapping[str, Any], root_key: str) -> Mapping[str, Any]:
    return document.get(root_key, document)


def _pick(source: Mapping[str, Any], *keys: str) -> dict[str, Any]:
    return {key: source[key] for key in keys if key in source}


def control_id_to_oscal(control_id: str) -> str:
    """Turn 'CM-6 Configuration Settings' into 'cm-6'."""
    return control_id.split(" ")[0].lower()


def _make_prop(name: str, value: str, remarks: str = "") -> dict[str, str]:
    prop = {"name": name, "ns": OSCAL_NAMESPACE, "value": value}
    if remarks:
        prop["remarks"] = remarks
    return prop


def find_prop(name: str, props: Iterable[Mapping[str, Any]] | None) -> Mapping[str, Any] | None:
    """Return the first property with the given name, or None."""
    return next((prop for prop in props or [] if prop.get("name") == name), None)


def generate_uuid() -> str:
    """A new time-based UUID."""
    return str(uuid.uuid1())


def make_component_definition(rows: Iterable[ResourceRow]) -> dict[str, Any]:
    """Build a component definition from a resource table.

    Standards without a known OSCAL catalog are left out.
    """
    implementations = []
    for compliance in group_by_compliance_in_hierarchy(rows):
        source = _STANDARD_TO_OSCAL.get(compliance.standard.name)
        if source is None:
            continue
        requirements = [
            {
                "uuid": generate_uuid(),
                "control-id": control_id_to_oscal(control.name),
                "props": [_make_prop("Rule_Id", ref) for ref in control.control_refs],
            }
            for category in compliance.standard.categories
            for control in category.controls
        ]
        implementations.append(
            {
                "uuid": generate_uuid(),
                "source": source,
                "implemented-requirements": requirements,
            }
        )
    component = {
        "uuid": _COMPONENT_UUID,
        "type": "service",
        "title": "My Kubernetes service",
        "description": "My Kubernetes service ...",
        "control-implementations": implementations,
    }
    return {
        "uuid": _COMPONENT_DEFINITION_UUID,
        "metadata": {"title": "Component definition"},
        "components": [component],
    }


@dataclass
class TrestleComponentProps:
    """Component columns shared by every row of a rule mapping."""

    component_title: str = ""
    component_description: str = ""
    component_type: str = ""


@dataclass
class TrestleCsvRow:
    """One row of a rule-mapping spreadsheet."""

    component_props: TrestleComponentProps = field(default_factory=TrestleComponentProps)
    control_id_list: list[str] = field(default_factory=list)
    rule_id: str = ""
    rule_description: str = ""
    parameter_id: str = ""
    parameter_description: str = ""
    profile_source: str = ""
    profile_description: str = ""
    namespace: str = ""

    def header(self) -> list[str]:
        """The column names, in the order of to_string_list."""
        return [
            "$$Component_Title",
            "$$Component_Type",
            "$$Control_Id_List",
            "$$Rule_Id",
            "$$Rule_Description",
            "$Parameter_Id",
            "$Parameter_Description",
            "$$Profile_Source",
            "$$Profile_Description",
            "$$Namespace",
            "$$Component_Description",
        ]

    def to_string_list(self) -> list[str]:
        """The row's cells, with control ids in OSCAL form."""
        return [
            self.component_props.component_title,
            self.component_props.component_type,
            " ".join(control_id_to_oscal(control) for control in self.control_id_list),
            self.rule_id,
            self.rule_description,
            self.parameter_id,
            self.parameter_description,
            self.profile_source,
            self.profile_description,
            self.namespace,
            self.component_props.component_description,
        ]


def make_trestle_csv(
    component_props: TrestleComponentProps,
    namespace: str,
    rows: Iterable[ResourceRow],
) -> dict[str, list[TrestleCsvRow]]:
    """Build rule-mapping rows per standard, one row per policy."""
    rows_by_standard: dict[str, list[TrestleCsvRow]] = {}
    for standard, by_standard in group_by(rows, "standard").items():
        rows_by_standard[standard] = [
            TrestleCsvRow(
                component_props=component_props,
                rule_id=policy,
                rule_description=f"Description of {policy}",
                profile_source=standard,
                profile_description=f"Description of {standard}",
                control_id_list=list(group_by(by_policy, "control")),
                namespace=namespace,
            )
            for policy, by_policy in group_by(by_standard, "policy").items()
        ]
    return rows_by_standard


def _profile_control_ids(profile: Mapping[str, Any]) -> set[str]:
    return {
        control_id
        for profile_import in profile.get("imports") or []
        for include in profile_import.get("include-controls") or []
        for control_id in include.get("with-ids") or []
    }


def intersect_profile_with_cd(
    comp_def: Mapping[str, Any], profile: Mapping[str, Any]
) -> dict[str, Any]:
    """Keep only the implemented requirements whose controls the profile includes."""
    comp_def = _unwrap(comp_def, "component-definition")
    profile = _unwrap(profile, "profile")
    title = (profile.get("metadata") or {}).get("title") or ""
    included = _profile_control_ids(profile)
    components = []
    for component in comp_def.get("components") or []:
        implementations = []
        for impl in component.get("control-implementations") or []:
            new_impl = _pick(impl, "uuid")
            new_impl["source"] = title
            new_impl.update(_pick(impl, "description", "props", "set-parameters"))
            new_impl["implemented-requirements"] = [
                req
                for req in impl.get("implemented-requirements") or []
                if (req.get("control-id") or "") in included
            ]
            implementations.append(new_impl)
        new_component = _pick(component, "uuid", "type", "title", "description", "props")
        new_component["control-implementations"] = implementations
        components.append(new_component)
    return {
        "uuid": _INTERSECTED_DEFINITION_UUID,
        "metadata": comp_def.get("metadata") or {},
        "components": components,
    }


def _controls_contain(controls: Iterable[Mapping[str, Any]] | None, control_id: str) -> bool:
    return any(
        control.get("id") == control_id
        or any(inner.get("id") == control_id for inner in control.get("controls") or [])
        for control in controls or []
    )


def find_control_group(
    control_id: str, catalog: Mapping[str, Any]
) -> Mapping[str, Any] | None:
    """Return the top-level catalog group holding a control, or None."""
    catalog = _unwrap(catalog, "catalog")
    for group in catalog.get("groups") or []:
        if _controls_contain(group.get("controls"), control_id):
            return group
        if any(
            _controls_contain(sub.get("controls"), control_id)
            for sub in group.get("groups") or []
        ):
            return group
    return None


@dataclass
class OscalCategory:
    """A catalog group and the profile's controls in it."""

    id: str
    control_ids: list[str] = field(default_factory=list)


@dataclass
class OscalStandard:
    """The controls of one profile import, by catalog group."""

    id: str
    categories: list[OscalCategory] = field(default_factory=list)


def _group_id(control_id: str, catalog: Mapping[str, Any]) -> str:
    group = find_control_group(control_id, catalog) or _UNKNOWN_GROUP
    return group.get("id") or ""


def make_internal_oscal_format(
    catalog: Mapping[str, Any], profile: Mapping[str, Any]
) -> list[OscalStandard]:
    """Arrange the controls of each profile import by their catalog group."""
    profile = _unwrap(profile, "profile")
    standards = []
    for profile_import in profile.get("imports") or []:
        per_group: dict[str, list[str]] = {}
        for include in profile_import.get("include-controls") or []:
            for control_id in include.get("with-ids") or []:
                per_group.setdefault(_group_id(control_id, catalog), []).append(control_id)
        standards.append(
            OscalStandard(
                id=profile_import.get("href") or "",
                categories=[OscalCategory(group, ids) for group, ids in per_group.items()],
            )
        )
    return standards


def make_internal_compliance(
    catalog: Mapping[str, Any], profile: Mapping[str, Any], cd: Mapping[str, Any]
) -> Compliance:
    """Build the compliance tree of the first control implementation of a definition."""
    profile = _unwrap(profile, "profile")
    cd = _unwrap(cd, "component-definition")
    title = (profile.get("metadata") or {}).get("title") or ""
    compliances = []
    for component in cd.get("components") or []:
        for impl in component.get("control-implementations") or []:
            per_group: dict[str, list[Control]] = {}
            for req in impl.get("implemented-requirements") or []:
                control_id = req.get("control-id") or ""
                refs = [prop.get("value") or "" for prop in list_rules(req.get("props"))]
                per_group.setdefault(_group_id(control_id, catalog), []).append(
                    Control(control_id, refs)
                )
            categories = [Category(group, controls) for group, controls in per_group.items()]
            compliances.append(Compliance(Standard(title, categories)))
    if not compliances:
        raise ValueError("component definition has no control implementations")
    return compliances[0]