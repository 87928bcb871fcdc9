"""Flattening of OSCAL component definitions into rule and control objects."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping

_RULE_FIELDS = {
    "Rule_Id": "rule_id",
    "Rule_Description": "rule_description",
    "Policy_Id": "policy_id",
    "Parameter_Id": "parameter_id",
    "Parameter_Description": "parameter_description",
}


@dataclass
class RuleObject:
    """A rule declared by the properties of a component."""

    rule_id: str = ""
    rule_description: str = ""
    policy_id: str = ""
    parameter_id: str = ""
    parameter_description: str = ""


@dataclass
class ControlObject:
    """A control, or a statement of it, with the rules implementing it."""

    control_id: str = ""
    statement_id: str = ""
    rule_ids: list[str] = field(default_factory=list)

    def get_control_id(self) -> str:
        """The statement id when there is one, otherwise the control id."""
        return self.statement_id or self.control_id


@dataclass
class ControlImpleObject:
    """One control implementation of a component."""

    set_parameters: list[dict[str, Any]] = field(default_factory=list)
    control_objects: list[ControlObject] = field(default_factory=list)


@dataclass
class ComponentObject:
    """A component with its rules and control implementations."""

    component_title: str = ""
    component_type: str = ""
    rule_objects: list[RuleObject] = field(default_factory=list)
    control_imple_objects: list[ControlImpleObject] = field(default_factory=list)


def list_rules(props: Iterable[Mapping[str, Any]] | None) -> list[Mapping[str, Any]]:
    """Return the properties named Rule_Id."""
    return [prop for prop in props or [] if prop.get("name") == "Rule_Id"]


def find_rules_by_rule_id(rule_id: str, rules: Iterable[RuleObject]) -> RuleObject | None:
    """Return the first rule with the given id, or None."""
    return next((rule for rule in rules if rule.rule_id == rule_id), None)


def get_component_wide_rules(component: Mapping[str, Any]) -> list[RuleObject]:
    """Collect the rules of a component, grouping its properties by their remarks."""
    rules: dict[str, RuleObject] = {}
    for prop in component.get("props") or []:
        rule = rules.setdefault(prop.get("remarks") or "", RuleObject())
        attr = _RULE_FIELDS.get(prop.get("name"))
        if attr is not None:
            setattr(rule, attr, prop.get("value") or "")
    return list(rules.values())


def _control_objects(impl_req: Mapping[str, Any]) -> list[ControlObject]:
    control_id = impl_req.get("control-id") or ""
    statements = impl_req.get("statements") or []
    if not statements:
        rule_ids = [prop.get("value") or "" for prop in list_rules(impl_req.get("props"))]
        return [ControlObject(control_id=control_id, rule_ids=rule_ids)]
    # Rule ids accumulate over the statements of one requirement.
    rule_ids: list[str] = []
    objects = []
    for statement in statements:
        rule_ids.extend(prop.get("value") or "" for prop in list_rules(statement.get("props")))
        objects.append(
            ControlObject(
                control_id=control_id,
                statement_id=statement.get("statement-id") or "",
                rule_ids=list(rule_ids),
            )
        )
    return objects


def parse_component_definition(cd: Mapping[str, Any]) -> list[ComponentObject]:
    """Flatten a component definition (or its root document) into component objects."""
    definition = cd.get("component-definition", cd)
    components = []
    for component in definition.get("components") or []:
        imple_objects = [
            ControlImpleObject(
                set_parameters=list(control_impl.get("set-parameters") or []),
                control_objects=[
                    control_object
                    for impl_req in control_impl.get("implemented-requirements") or []
                    for control_object in _control_objects(impl_req)
                ],
            )
            for control_impl in component.get("control-implementations") or []
        ]
        components.append(
            ComponentObject(
                component_title=component.get("title") or "",
                component_type=component.get("type") or "",
                rule_objects=get_component_wide_rules(component),
                control_imple_objects=imple_objects,
            )
        )
    return components