"""Indexing of Kyverno policies found in a directory tree."""

from __future__ import annotations

import logging
import os
import re
import stat
from dataclasses import dataclass
from typing import Any

import yaml

logger = logging.getLogger("c2p.kyverno.fileloader")

_HIDDEN_DIR = re.compile(r"^[.*]")
_TITLE_ANNOTATION = "policies.kyverno.io/title"


@dataclass
class PolicyResourceIndex:
    """Where a Kyverno policy was found and what it is."""

    kind: str = ""
    api_version: str = ""
    name: str = ""
    namespace: str = ""
    src_path: str = ""
    has_context: bool = False


def _load_objects(path: str) -> list[dict[str, Any]]:
    with open(path, encoding="utf-8") as handle:
        documents = [doc for doc in yaml.safe_load_all(handle) if doc is not None]
    for document in documents:
        if not isinstance(document, dict) or not isinstance(document.get("kind"), str):
            raise ValueError("Object 'Kind' is missing")
    return documents


def _mapping(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


class FileLoader:
    """Collects Kyverno ClusterPolicy and Policy resources from YAML files."""

    def __init__(self) -> None:
        self.policy_resource_indice: list[PolicyResourceIndex] = []

    def load_from_directory(self, directory: str | os.PathLike) -> None:
        """Walk a directory in lexical order, skipping directories named '.*' or '*'."""
        root = os.fspath(directory)
        os.lstat(root)
        self._walk(root)

    def _walk(self, path: str) -> None:
        try:
            mode = os.lstat(path).st_mode
        except OSError as exc:
            logger.error("Failed on %s: %s", path, exc)
            return
        name = os.path.basename(os.path.normpath(path))
        if stat.S_ISDIR(mode):
            if _HIDDEN_DIR.match(name):
                return
            try:
                entries = sorted(os.listdir(path))
            except OSError as exc:
                logger.error("Failed on %s: %s", path, exc)
                return
            for entry in entries:
                self._walk(os.path.join(path, entry))
        elif name.endswith((".yaml", ".yml")):
            self._load_file(path)

    def _load_file(self, path: str) -> None:
        try:
            objects = _load_objects(path)
        except (OSError, ValueError, yaml.YAMLError) as exc:
            logger.warning("%s is not k8s object: %s", path, exc)
            return
        for obj in objects:
            index = self._index(obj, path)
            if index is not None:
                self.policy_resource_indice.append(index)

    def _index(self, obj: dict[str, Any], path: str) -> PolicyResourceIndex | None:
        metadata = _mapping(obj.get("metadata"))
        index = PolicyResourceIndex(
            kind=obj.get("kind") or "",
            api_version=str(obj.get("apiVersion") or ""),
            name=str(metadata.get("name") or ""),
            namespace=str(metadata.get("namespace") or ""),
            src_path=path,
        )
        logger.info("load yaml %s: %s/%s/%s", path, index.kind, index.api_version, index.name)
        if index.api_version != "kyverno.io/v1" or index.kind not in ("ClusterPolicy", "Policy"):
            return None
        if "status" in obj:
            logger.info("  ignore %s since 'status' field is found", index.name)
            return None
        if _TITLE_ANNOTATION not in _mapping(metadata.get("annotations")):
            logger.info("  ignore %s due to missing '%s' annotation", index.name, _TITLE_ANNOTATION)
            return None
        rules = _mapping(obj.get("spec")).get("rules")
        if isinstance(rules, list):
            for rule in rules:
                if not isinstance(rule, dict):
                    logger.warning("Failed to cast")
                elif isinstance(rule.get("context"), list):
                    index.has_context = True
                    break
        return index