"""Rule loading from the system config file and user YAML drop-ins."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from importlib import resources
from pathlib import Path
from typing import Any

import yaml
from jsonschema import ValidationError, validators

from amidiauto.core.errors import ConfigLoadError, ConfigValidationError
from amidiauto.core.model import RuleKind
from amidiauto.core.rules import RuleSet

DEFAULT_CONFIG_PATH = Path("/etc/amidiauto.conf")
_SECTIONS = {"allow": RuleKind.ALLOW, "disallow": RuleKind.DISALLOW}
LOGGER = logging.getLogger(__name__)


class UniqueKeyLoader(yaml.SafeLoader):
    """YAML loader that rejects duplicate mapping keys."""


def _construct_mapping(loader: UniqueKeyLoader, node: yaml.Node, deep: bool = False) -> dict[str, Any]:
    mapping: dict[str, Any] = {}
    for key_node, value_node in node.value:
        key = loader.construct_object(key_node, deep=deep)
        if key in mapping:
            raise ConfigValidationError(f"Duplicate key '{key}' in YAML document")
        mapping[key] = loader.construct_object(value_node, deep=deep)
    return mapping


UniqueKeyLoader.add_constructor(
    yaml.resolver.BaseResolver.DEFAULT_MAPPING_TAG,
    _construct_mapping,
)


@dataclass(frozen=True)
class LoadedRules:
    rules: RuleSet
    warnings: tuple[str, ...]


def _config_path() -> Path:
    override = os.environ.get("AMIDIAUTO_CONF")
    return Path(override) if override else DEFAULT_CONFIG_PATH


def _dropin_dir() -> Path:
    xdg_config = Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))
    return xdg_config / "amidiauto/rules.d"


def _load_schema_validator() -> Any:
    schema_text = resources.files("amidiauto.schemas").joinpath("rules.schema.json").read_text(
        encoding="utf-8"
    )
    schema = json.loads(schema_text)
    validator_cls = validators.validator_for(schema)
    validator_cls.check_schema(schema)
    return validator_cls(schema)


def split_rule(line: str) -> tuple[tuple[str, str], ...]:
    """Split `L -> R`, `L <- R` or `L <-> R` into (output, input) pairs."""
    if "<->" in line:
        left, right = (part.strip() for part in line.split("<->", 1))
        if left == right:
            return ((left, right),)
        return ((left, right), (right, left))
    if "->" in line:
        left, right = (part.strip() for part in line.split("->", 1))
        return ((left, right),)
    if "<-" in line:
        left, right = (part.strip() for part in line.split("<-", 1))
        return ((right, left),)
    raise ConfigValidationError(f"Expected '->', '<-' or '<->' in '{line}'")


def add_rule_line(rules: RuleSet, kind: RuleKind, line: str) -> None:
    for output, input in split_rule(line):
        if not rules.add_rule(kind, output, input):
            raise ConfigValidationError(f"Invalid pattern in '{line}'")


def parse_rules_text(text: str, rules: RuleSet, source: str = "<string>") -> list[str]:
    """Apply an INI-like rules document to `rules` and return warnings."""
    warnings: list[str] = []
    kind: RuleKind | None = None

    for lineno, raw in enumerate(text.splitlines(), start=1):
        line = raw.split("#", 1)[0].strip()
        if not line:
            continue

        if line.startswith("[") and line.endswith("]"):
            section = line[1:-1].strip().lower()
            kind = _SECTIONS.get(section)
            if kind is None:
                warnings.append(f"{source}:{lineno}: unknown section '[{section}]'")
            continue

        if kind is None:
            warnings.append(f"{source}:{lineno}: rule outside of [allow]/[disallow] ignored")
            continue

        try:
            add_rule_line(rules, kind, line)
        except ConfigValidationError as exc:
            warnings.append(f"{source}:{lineno}: {exc}")

    return warnings


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigLoadError(f"Could not read rules file {path}: {exc}") from exc

    try:
        loaded = yaml.load(content, Loader=UniqueKeyLoader)
    except yaml.YAMLError as exc:
        raise ConfigValidationError(f"Invalid YAML in {path}: {exc}") from exc

    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise ConfigValidationError(f"Rules file {path} must contain a mapping at root")
    return loaded


def _apply_dropin(doc: dict[str, Any], rules: RuleSet, source: Path) -> list[str]:
    validator = _load_schema_validator()
    try:
        validator.validate(doc)
    except ValidationError as exc:
        path = ".".join(str(p) for p in exc.path)
        where = f" ({path})" if path else ""
        raise ConfigValidationError(f"Schema validation failed for {source}{where}: {exc.message}") from exc

    warnings: list[str] = []
    for section, kind in _SECTIONS.items():
        for index, line in enumerate(doc.get(section, [])):
            try:
                add_rule_line(rules, kind, line)
            except ConfigValidationError as exc:
                warnings.append(f"{source} ({section}.{index}): {exc}")
    return warnings


def _iter_dropin_paths() -> list[Path]:
    directory = _dropin_dir()
    if not directory.exists() or not directory.is_dir():
        return []
    return sorted(p for p in directory.iterdir() if p.suffix in {".yml", ".yaml"})


def load_rules(config_path: Path | None = None) -> LoadedRules:
    rules = RuleSet()
    warnings: list[str] = []

    path = config_path or _config_path()
    if path.exists():
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as exc:
            warnings.append(f"Could not read {path}: {exc}")
        else:
            warnings.extend(parse_rules_text(text, rules, source=str(path)))

    for dropin in _iter_dropin_paths():
        try:
            warnings.extend(_apply_dropin(_read_yaml(dropin), rules, dropin))
        except (ConfigLoadError, ConfigValidationError) as exc:
            warnings.append(f"Skipping {dropin}: {exc}")

    if not rules.has_rules():
        warnings.append("No rules configured, allowing all connections")
        rules = RuleSet.allow_all()

    for warning in warnings:
        LOGGER.warning(warning)
    return LoadedRules(rules=rules, warnings=tuple(warnings))
