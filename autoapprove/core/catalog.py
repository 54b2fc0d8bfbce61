"""
File-specific rule catalog.

The catalog is static policy versioned alongside the code. Everything that
can be wrong with it is checked here, once, at load time.
"""
import logging
import re
from typing import Dict, Iterator, List, Optional

import yaml
from pydantic import ValidationError

from .config import DEFAULT_CATALOG, get_config_path
from .errors import ConfigurationError
from .extractor import VERSION_GROUPS, compile_version_pattern, version_group_refs
from .matcher import matching_rules
from .models import FileSpecificRule
from ..rules import DEFAULT_PROCESS, get_rule_class, registered_processes

logger = logging.getLogger(__name__)


class RuleCatalog:
    """Ordered per-ecosystem lists of FileSpecificRule."""

    def __init__(self, version: str, ecosystems: Dict[str, List[FileSpecificRule]], source: str = "<memory>"):
        self.version = version
        self.ecosystems = ecosystems
        self.source = source

    def __iter__(self) -> Iterator[FileSpecificRule]:
        for rules in self.ecosystems.values():
            yield from rules

    def __len__(self) -> int:
        return sum(len(rules) for rules in self.ecosystems.values())

    @property
    def rules(self) -> List[FileSpecificRule]:
        return list(self)

    def processes(self) -> List[str]:
        seen = []
        for rule in self:
            process = rule.process or DEFAULT_PROCESS
            if process not in seen:
                seen.append(process)
        return seen

    def ecosystem_of(self, rule: FileSpecificRule) -> Optional[str]:
        for name, rules in self.ecosystems.items():
            if any(r is rule for r in rules):
                return name
        return None

    @classmethod
    def from_data(cls, data: dict, source: str = "<memory>") -> "RuleCatalog":
        if not isinstance(data, dict) or "version" not in data:
            raise ConfigurationError(f"Invalid rule catalog {source}: missing 'version' field")

        raw_ecosystems = data.get("ecosystems")
        if not isinstance(raw_ecosystems, dict) or not raw_ecosystems:
            raise ConfigurationError(f"Invalid rule catalog {source}: 'ecosystems' must be a non-empty mapping")

        ecosystems: Dict[str, List[FileSpecificRule]] = {}
        for ecosystem, raw_rules in raw_ecosystems.items():
            if not isinstance(raw_rules, list):
                raise ConfigurationError(f"Invalid rule catalog {source}: ecosystem '{ecosystem}' must be a list")
            rules = []
            for index, raw_rule in enumerate(raw_rules):
                where = f"{source}: {ecosystem}[{index}]"
                try:
                    rule = FileSpecificRule.model_validate(raw_rule)
                except ValidationError as e:
                    raise ConfigurationError(f"Invalid rule {where}: {e}") from e
                _validate_rule(rule, where)
                rules.append(rule)
            ecosystems[str(ecosystem)] = rules

        catalog = cls(version=str(data["version"]), ecosystems=ecosystems, source=source)
        _validate_unique_targets(catalog)
        _validate_examples(catalog)
        return catalog


def _compile(pattern: str, field_name: str, where: str) -> "re.Pattern":
    try:
        return compile_version_pattern(pattern)
    except re.error as e:
        raise ConfigurationError(f"Invalid rule {where}: {field_name} is not a valid regex ({e})") from e


def _validate_rule(rule: FileSpecificRule, where: str) -> None:
    _compile(rule.target_file, "target_file", where)
    if rule.title is not None:
        _compile(rule.title, "title", where)

    for field_name in ("old_version", "new_version"):
        compiled = _compile(getattr(rule, field_name), field_name, where)
        if version_group_refs(compiled) is None:
            raise ConfigurationError(
                f"Invalid rule {where}: {field_name} must define the named groups "
                f"{', '.join(VERSION_GROUPS)} (or exactly three positional groups)"
            )

    process = rule.process or DEFAULT_PROCESS
    if get_rule_class(process) is None:
        raise ConfigurationError(
            f"Invalid rule {where}: unknown process '{process}' "
            f"(registered: {', '.join(registered_processes())})"
        )


def _validate_unique_targets(catalog: RuleCatalog) -> None:
    seen = set()
    for rule in catalog:
        key = (rule.author, rule.target_file)
        if key in seen:
            raise ConfigurationError(
                f"Invalid rule catalog {catalog.source}: duplicate rule for author "
                f"'{rule.author}' and target_file '{rule.target_file}'"
            )
        seen.add(key)


def _validate_examples(catalog: RuleCatalog) -> None:
    """Each example filename must be matched by its own rule and by no other."""
    for rule in catalog:
        for example in rule.examples:
            matched = matching_rules(example, rule.author, catalog)
            if not any(m is rule for m in matched):
                raise ConfigurationError(
                    f"Invalid rule catalog {catalog.source}: example '{example}' is not matched "
                    f"by its rule (target_file '{rule.target_file}')"
                )
            others = [m.target_file for m in matched if m is not rule]
            if others:
                raise ConfigurationError(
                    f"Invalid rule catalog {catalog.source}: example '{example}' is ambiguous, "
                    f"also matched by {others}"
                )


def _read_catalog(path: str) -> RuleCatalog:
    try:
        catalog_path = get_config_path(path)
    except FileNotFoundError as e:
        raise ConfigurationError(f"Rule catalog not found: {path}\n{e}") from e

    try:
        with open(catalog_path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in rule catalog {catalog_path}: {e}") from e

    catalog = RuleCatalog.from_data(data, source=str(catalog_path))
    logger.info("Loaded rule catalog %s (version %s, %d rules)", catalog_path, catalog.version, len(catalog))
    return catalog


_catalogs: Dict[str, RuleCatalog] = {}


def load_catalog(path: str = DEFAULT_CATALOG) -> RuleCatalog:
    if path not in _catalogs:
        _catalogs[path] = _read_catalog(path)
    return _catalogs[path]


def _reset_catalog_cache_for_testing() -> None:
    _catalogs.clear()
