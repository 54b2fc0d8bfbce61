from ..core.extractor import changed_lines, compile_version_pattern, version_group_refs
from ..core.models import Versions
from ..core.versioning import VersionChange
from .base import LanguageRule, register_rule


@register_rule("go-dependency")
class GoModDependency(LanguageRule):
    """Renovate module bumps in go.mod; go.sum must change in the same PR."""

    max_change = VersionChange.MINOR
    single_dependency = True
    companion = "go.sum"

    async def check_versions(self, versions: Versions, title_match) -> None:
        await super().check_versions(versions, title_match)
        if not self.companion_changed(self.companion):
            self.reject(f"{self.companion} was not updated alongside {self.changed_file.filename}")


@register_rule("go-checksum")
class GoSumDependency(GoModDependency):
    """
    Checksum updates in go.sum. Each module contributes a module and a
    go.mod hash line, so several lines change; every one of them must be a
    checksum line of the bumped module.
    """

    single_dependency = False
    companion = "go.mod"

    async def check_versions(self, versions: Versions, title_match) -> None:
        await super().check_versions(versions, title_match)
        for line in changed_lines(self.changed_file.patch):
            if line.startswith("+"):
                pattern, expected = self.file_rule.new_version, versions.new_dependency_name
            else:
                pattern, expected = self.file_rule.old_version, versions.old_dependency_name
            compiled = compile_version_pattern(pattern)
            match = compiled.match(line)
            if match is None or match.group(version_group_refs(compiled)[0]).strip() != expected:
                self.reject(f"{self.changed_file.filename} changes a line outside module '{expected}': {line}")
                return
