"""Compliance-to-policy specifications and the loading of the documents they name."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from c2p.oscal.parser import ComponentObject, parse_component_definition
from c2p.sources import GitUtils, SourceError

logger = logging.getLogger("c2p.c2pcr")


@dataclass
class ResourceRef:
    """A reference to a document or directory by URL or local path."""

    url: str = ""


@dataclass
class ComplianceRef:
    """The OSCAL documents that make up a compliance."""

    name: str = ""
    catalog: ResourceRef = field(default_factory=ResourceRef)
    profile: ResourceRef = field(default_factory=ResourceRef)
    component_definition: ResourceRef = field(default_factory=ResourceRef)


@dataclass
class ClusterGroup:
    """A named group of clusters selected by labels."""

    name: str = ""
    match_labels: dict[str, str] | None = None


@dataclass
class Binding:
    """Binds a compliance to cluster groups."""

    compliance: str = ""
    cluster_groups: list[str] = field(default_factory=list)


@dataclass
class Target:
    """Where generated policies are placed."""

    namespace: str = ""


@dataclass
class Spec:
    """A compliance-to-policy specification."""

    compliance: ComplianceRef = field(default_factory=ComplianceRef)
    policy_resources: ResourceRef = field(default_factory=ResourceRef)
    cluster_groups: list[ClusterGroup] = field(default_factory=list)
    binding: Binding = field(default_factory=Binding)
    target: Target = field(default_factory=Target)


@dataclass
class C2PCRParsed:
    """A specification with its documents loaded and its component definition flattened."""

    namespace: str = ""
    cluster_selectors: dict[str, str] | None = None
    policy_resource_dir: str = ""
    component_definition: dict[str, Any] = field(default_factory=dict)
    catalog: dict[str, Any] = field(default_factory=dict)
    profile: dict[str, Any] = field(default_factory=dict)
    component_objects: list[ComponentObject] = field(default_factory=list)


def _expect_mapping(document: Any, url: str) -> dict[str, Any]:
    if not isinstance(document, dict):
        raise SourceError(f"Failed to marshal {url}: not a JSON object")
    return document


class C2PCRParser:
    """Loads the documents a specification refers to."""

    def __init__(self, git_utils: GitUtils) -> None:
        self.git_utils = git_utils

    def parse(self, spec: Spec) -> C2PCRParsed:
        """Load policy resources, component definition, catalog and profile."""
        parsed = C2PCRParsed()
        self._load(spec, parsed)
        return parsed

    def _load(self, spec: Spec, parsed: C2PCRParsed) -> None:
        parsed.policy_resource_dir = self._load_resource_from_url(spec.policy_resources.url)

        cd_url = spec.compliance.component_definition.url
        logger.info("Component-definition is loaded from %s", cd_url)
        try:
            parsed.component_definition = _expect_mapping(
                self.git_utils.load_from_git(cd_url), cd_url
            )
        except SourceError:
            logger.error("Failed to load component-definition")
            raise

        catalog_url = spec.compliance.catalog.url
        if catalog_url:
            logger.info("Catalog is loaded from %s", catalog_url)
            try:
                parsed.catalog = _expect_mapping(
                    self.git_utils.load_from_web(catalog_url), catalog_url
                )
            except SourceError:
                logger.error("Failed to load catalog")
                raise

        profile_url = spec.compliance.profile.url
        if profile_url:
            logger.info("Profile is loaded from %s", profile_url)
            try:
                parsed.profile = _expect_mapping(
                    self.git_utils.load_from_web(profile_url), profile_url
                )
            except SourceError:
                logger.error("Failed to load profile")
                raise

        parsed.component_objects = parse_component_definition(parsed.component_definition)

    def _load_resource_from_url(self, url: str) -> str:
        try:
            clone_dir, path = self.git_utils.git_clone(url)
        except SourceError:
            logger.error("Failed to load %s", url)
            raise
        return f"{clone_dir}/{path}"

    def load_assessment_results(self, url: str) -> dict[str, Any]:
        """Load an assessment-results document."""
        logger.info("Assessment-results is loaded from %s", url)
        try:
            return _expect_mapping(self.git_utils.load_from_web(url), url)
        except SourceError:
            logger.error("Failed to load assessment-results")
            raise


class OcmC2PCRParser(C2PCRParser):
    """Parser that also takes the target namespace and cluster selectors."""

    def parse(self, spec: Spec) -> C2PCRParsed:
        """Load the documents and take the labels of the first cluster group."""
        if not spec.cluster_groups:
            raise ValueError("the specification has no cluster groups")
        labels = spec.cluster_groups[0].match_labels
        if labels is None:
            raise ValueError("the first cluster group has no match labels")
        parsed = C2PCRParsed(namespace=spec.target.namespace, cluster_selectors=dict(labels))
        self._load(spec, parsed)
        return parsed