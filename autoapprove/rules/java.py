import re
from typing import Optional

from ..core.models import Versions
from ..core.versioning import VersionChange
from .base import LanguageRule, register_rule

_BLOCK_OPEN = re.compile(r"<(dependency|plugin|parent)>")
_BLOCK_CLOSE = re.compile(r"</(dependency|plugin|parent)>")
_GROUP_ID = re.compile(r"<groupId>\s*([^<\s]+)\s*</groupId>")
_ARTIFACT_ID = re.compile(r"<artifactId>\s*([^<\s]+)\s*</artifactId>")


@register_rule("java-dependency")
class JavaDependency(LanguageRule):
    """
    Renovate bumps in pom.xml or build.gradle, limited to Google-owned
    artifacts.

    Maven diffs show the artifactId next to the version; the groupId is
    read from the hunk context when it is there and must agree with the
    coordinates named in the title. Otherwise the title's coordinates are
    used.
    """

    max_change = VersionChange.MINOR
    single_dependency = True
    ALLOWED_GROUPS = (
        "com.google.cloud:",
        "com.google.api:",
        "com.google.api-client:",
        "com.google.apis:",
        "com.google.http-client:",
        "com.google.auth:",
    )

    async def check_versions(self, versions: Versions, title_match) -> None:
        await super().check_versions(versions, title_match)
        coordinates = self.coordinates(versions, title_match)
        if coordinates is None:
            return
        if not coordinates.startswith(self.ALLOWED_GROUPS):
            self.reject(f"'{coordinates}' is not in the Java dependency allow-list")

    def coordinates(self, versions: Versions, title_match) -> Optional[str]:
        dependency = versions.new_dependency_name
        title_dependency: Optional[str] = None
        if title_match is not None:
            title_dependency = title_match.groupdict().get("dependency")
        if ":" in dependency:
            return dependency

        group = group_from_patch(self.changed_file.patch or "", dependency)
        if group is not None:
            coordinates = f"{group}:{dependency}"
            if title_dependency and ":" in title_dependency and title_dependency != coordinates:
                self.reject(f"title names '{title_dependency}' but the diff changes '{coordinates}'")
                return None
            return coordinates
        if title_dependency and ":" in title_dependency:
            return title_dependency
        return dependency

    def same_dependency(self, title_dependency: str, dependency: str) -> bool:
        if title_dependency == dependency:
            return True
        # title has group:artifact, a Maven diff only the artifact
        return ":" not in dependency and title_dependency.endswith(":" + dependency)


def group_from_patch(patch: str, artifact: str) -> Optional[str]:
    """groupId of the pom.xml block declaring `artifact`, if the hunk shows it."""
    group = None
    found = False
    for line in patch.splitlines():
        if line.startswith("@@"):
            group, found = None, False
            continue
        body = line[1:]
        if _BLOCK_OPEN.search(body):
            group, found = None, False
        group_match = _GROUP_ID.search(body)
        if group_match:
            group = group_match.group(1)
        artifact_match = _ARTIFACT_ID.search(body)
        if artifact_match and artifact_match.group(1) == artifact:
            found = True
        if found and group is not None:
            return group
        if _BLOCK_CLOSE.search(body):
            if found:
                return None
            group = None
    return None
