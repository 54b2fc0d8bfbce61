import re

from ..core.models import Versions
from ..core.versioning import VersionChange
from .base import LanguageRule, register_rule


def canonical_name(name: str) -> str:
    """PEP 503 normalization: case-insensitive, runs of -_. are equivalent."""
    return re.sub(r"[-_.]+", "-", name).lower()


@register_rule("python-dependency")
class PythonDependency(LanguageRule):
    """Renovate bumps of one pinned requirement in a library's requirements file."""

    max_change = VersionChange.MINOR
    single_dependency = True

    def same_dependency(self, title_dependency: str, dependency: str) -> bool:
        return canonical_name(title_dependency) == canonical_name(dependency)


@register_rule("python-sample-dependency")
class PythonSampleDependency(PythonDependency):
    """
    Requirements of samples track the latest releases, so major bumps are
    accepted, except for packages pinned on purpose.
    """

    max_change = VersionChange.MAJOR
    PINNED = frozenset({"apache-beam", "tensorflow"})

    async def check_versions(self, versions: Versions, title_match) -> None:
        await super().check_versions(versions, title_match)
        if canonical_name(versions.new_dependency_name) in self.PINNED:
            self.reject(f"'{versions.new_dependency_name}' is pinned in samples and must be bumped by hand")
