"""Collection of the Kyverno policies that a component definition refers to."""

from __future__ import annotations

import logging
import os
import shutil

from c2p.c2pcr import C2PCRParsed

logger = logging.getLogger("c2p.kyverno.composer")


def _copy(source: str, dest: str) -> None:
    if os.path.isdir(source):
        shutil.copytree(source, dest, symlinks=True, dirs_exist_ok=True)
    else:
        os.makedirs(os.path.dirname(dest) or ".", exist_ok=True)
        shutil.copy2(source, dest)


class Oscal2Policy:
    """Copies the policy directory of each rule into a working directory."""

    def __init__(self, policies_dir: str, temp_dir: str) -> None:
        self.policies_dir = policies_dir
        self.temp_dir = temp_dir

    def generate(self, parsed: C2PCRParsed) -> None:
        """Copy ``<policies>/<rule-id>`` of every non-validation component's rules."""
        for component in parsed.component_objects:
            if component.component_type == "validation":
                continue
            for rule in component.rule_objects:
                source = f"{self.policies_dir}/{rule.rule_id}"
                dest = f"{self.temp_dir}/{rule.rule_id}"
                logger.info("copy %s to %s", source, dest)
                _copy(source, dest)

    def copy_all_to(self, dest_dir: str) -> None:
        """Copy everything collected so far into another directory."""
        os.makedirs(dest_dir, exist_ok=True)
        _copy(self.temp_dir, dest_dir)