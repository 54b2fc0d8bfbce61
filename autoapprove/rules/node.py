import json
import logging
import re
from typing import Optional

from ..core.models import Versions
from ..core.versioning import VersionChange
from .base import LanguageRule, register_rule

logger = logging.getLogger(__name__)

DEPENDENCY_SECTIONS = ("dependencies", "devDependencies", "optionalDependencies", "peerDependencies")

_SECTION_OPEN = re.compile(r'^\s*"(?P<section>\w*[dD]ependencies)"\s*:\s*\{')
_SECTION_CLOSE = re.compile(r"^\s*\}")


@register_rule("node-dependency")
class NodeDependency(LanguageRule):
    """
    Renovate bumps of a single npm dependency in package.json.

    Only minor and patch upgrades are accepted, and never for
    peerDependencies, which change the package's public contract. A bump
    whose section can be read neither from the hunk nor from a fetched
    manifest is refused.
    """

    max_change = VersionChange.MINOR
    single_dependency = True

    async def check_versions(self, versions: Versions, title_match) -> None:
        await super().check_versions(versions, title_match)
        section = await self.dependency_section(versions.new_dependency_name)
        if section is None:
            self.reject(f"could not determine dependency section for '{versions.new_dependency_name}'")
        elif section == "peerDependencies":
            self.reject(f"'{versions.new_dependency_name}' is a peer dependency")

    async def dependency_section(self, name: str) -> Optional[str]:
        section = section_from_patch(self.changed_file.patch or "", name)
        if section is not None:
            return section
        content = await self.fetch(self.changed_file.filename)
        if content is None:
            return None
        return section_from_manifest(content, name)


@register_rule("node-release")
class NodeRelease(LanguageRule):
    """
    release-please bumps of the package's own version. Major releases are
    fine, but the version line must be the only change to the manifest.
    """

    max_change = VersionChange.MAJOR
    single_dependency = True


def section_from_patch(patch: str, name: str) -> Optional[str]:
    """The dependency block enclosing `name`'s added line, if the hunk context shows it."""
    entry = re.compile(r'^\s*"' + re.escape(name) + r'"\s*:')
    section = None
    for line in patch.splitlines():
        if line.startswith("@@"):
            section = None
            continue
        marker, body = line[:1], line[1:]
        opened = _SECTION_OPEN.match(body)
        if opened:
            section = opened.group("section")
            continue
        if _SECTION_CLOSE.match(body):
            section = None
            continue
        if marker == "+" and entry.match(body):
            return section
    return None


def section_from_manifest(content: str, name: str) -> Optional[str]:
    try:
        manifest = json.loads(content)
    except ValueError:
        logger.warning("Fetched package.json is not valid JSON")
        return None
    if not isinstance(manifest, dict):
        return None
    for section in DEPENDENCY_SECTIONS:
        deps = manifest.get(section)
        if isinstance(deps, dict) and name in deps:
            return section
    return None
