"""Loading of multi-document YAML streams holding policy resources."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import IO, Any, Iterator

import yaml

logger = logging.getLogger("c2p.parser")


@dataclass
class LoadedObjects:
    """Policies, placement bindings and placement rules found in a stream."""

    policies: list[dict[str, Any]] = field(default_factory=list)
    placement_bindings: list[dict[str, Any]] = field(default_factory=list)
    placement_rules: list[dict[str, Any]] = field(default_factory=list)

    def __iter__(self) -> Iterator[list[dict[str, Any]]]:
        yield self.policies
        yield self.placement_bindings
        yield self.placement_rules


def load_yaml(stream: str | bytes | IO) -> list[Any]:
    """Return every non-empty document of a YAML stream.

    Raises yaml.YAMLError when the stream is not valid YAML.
    """
    return [document for document in yaml.safe_load_all(stream) if document is not None]


def load_and_unmarshal(stream: str | bytes | IO) -> LoadedObjects:
    """Sort the documents of a stream by kind into policies and placements."""
    loaded = LoadedObjects()
    for document in load_yaml(stream):
        if not isinstance(document, dict):
            logger.error("document is not a Kubernetes object: %r", document)
            continue
        kind = document.get("kind")
        if not isinstance(kind, str) or not kind:
            logger.error("Object 'Kind' is missing in %r", document)
            continue
        if kind == "Policy":
            loaded.policies.append(document)
        elif kind == "PlacementBinding":
            loaded.placement_bindings.append(document)
        elif kind == "PlacementRule":
            loaded.placement_rules.append(document)
    return loaded