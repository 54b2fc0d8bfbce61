from ..core.versioning import VersionChange
from .base import DEFAULT_PROCESS, LanguageRule, register_rule


@register_rule(DEFAULT_PROCESS)
class VersionBumpRule(LanguageRule):
    """Fallback for catalog rules without a process tag: one dependency, same name, no major bump."""

    max_change = VersionChange.MINOR
    single_dependency = True
