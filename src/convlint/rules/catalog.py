"""Rule catalog: parse the versioned YAML catalog, validate it, index rules by role."""

from __future__ import annotations

import string
from dataclasses import dataclass, field
from importlib import resources
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

import yaml

from convlint.errors import CatalogError
from convlint.rules.predicates import PREDICATES, Finding
from convlint.sources.roles import VALID_ROLES

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping
    from pathlib import Path

    from convlint.syntax.nodes import FileIR

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

SEVERITY_ERROR = "error"
SEVERITY_WARNING = "warning"
VALID_SEVERITIES: frozenset[str] = frozenset({SEVERITY_ERROR, SEVERITY_WARNING})
SUPPORTED_CATALOG_VERSIONS: frozenset[int] = frozenset({1})

# Fields every message template may use in addition to the predicate's own.
COMMON_FIELDS: frozenset[str] = frozenset({"rule", "description", "file", "role"})

DEFAULT_CATALOG_RESOURCE = "default_catalog.yml"

# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Rule:
    """A single checkable convention."""

    id: str
    description: str
    severity: str
    roles: frozenset[str]
    kind: str  # predicate kind, a key of PREDICATES
    params: Mapping[str, Any]
    message: str

    def findings(self, ir: FileIR) -> Iterable[Finding]:
        """Evaluate the rule's predicate against one file."""
        return PREDICATES[self.kind].func(ir, self.params)

    def render(self, finding: Finding, ir: FileIR) -> str:
        """Render the message template for *finding*."""
        values: dict[str, object] = {
            "rule": self.id,
            "description": self.description,
            "file": ir.path,
            "role": ir.role,
        }
        values.update(finding.fields)
        return self.message.format_map(values)


@dataclass(frozen=True)
class Catalog:
    """Read-only mapping from rule id to :class:`Rule`, indexed by role."""

    version: int
    rules: tuple[Rule, ...]
    _by_id: Mapping[str, Rule] = field(init=False, repr=False, compare=False)
    _by_role: Mapping[str, tuple[Rule, ...]] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        by_role: dict[str, tuple[Rule, ...]] = {
            role: tuple(rule for rule in self.rules if role in rule.roles) for role in VALID_ROLES
        }
        object.__setattr__(self, "_by_id", MappingProxyType({r.id: r for r in self.rules}))
        object.__setattr__(self, "_by_role", MappingProxyType(by_role))

    def __len__(self) -> int:
        return len(self.rules)

    def __contains__(self, rule_id: object) -> bool:
        return rule_id in self._by_id

    def get(self, rule_id: str) -> Rule | None:
        """Return the rule with *rule_id*, or ``None``."""
        return self._by_id.get(rule_id)

    def rules_for(self, role: str) -> tuple[Rule, ...]:
        """Return the rules that target *role*, in catalog order."""
        return self._by_role.get(role, ())


# ---------------------------------------------------------------------------
# YAML parsing
# ---------------------------------------------------------------------------


def _parse_roles(rule_id: str, raw: object) -> frozenset[str]:
    if raw == "all":
        return VALID_ROLES
    if not isinstance(raw, list) or not raw:
        msg = f"Rule '{rule_id}': 'roles' must be a non-empty list or 'all'"
        raise ValueError(msg)
    roles = frozenset(str(r) for r in raw)
    unknown = roles - VALID_ROLES
    if unknown:
        msg = (
            f"Rule '{rule_id}': unknown role(s) {sorted(unknown)}, "
            f"must be among {sorted(VALID_ROLES)}"
        )
        raise ValueError(msg)
    return roles


def _freeze(value: Any) -> Any:
    if isinstance(value, list):
        return tuple(_freeze(item) for item in value)
    if isinstance(value, dict):
        return MappingProxyType({k: _freeze(v) for k, v in value.items()})
    return value


def _parse_check(rule_id: str, raw: object) -> tuple[str, Mapping[str, Any]]:
    """Parse the ``check`` block: predicate kind plus validated params."""
    if not isinstance(raw, dict):
        msg = f"Rule '{rule_id}': 'check' must be a mapping"
        raise ValueError(msg)

    kind = raw.get("kind")
    if not isinstance(kind, str) or kind not in PREDICATES:
        msg = f"Rule '{rule_id}': unknown check kind {kind!r}, must be one of {sorted(PREDICATES)}"
        raise ValueError(msg)
    spec = PREDICATES[kind]

    unknown = set(raw) - {"kind"} - set(spec.params)
    if unknown:
        msg = f"Rule '{rule_id}': unknown parameter(s) {sorted(unknown)} for check '{kind}'"
        raise ValueError(msg)

    params: dict[str, Any] = {}
    for name, param in spec.params.items():
        if name not in raw:
            if param.required:
                msg = f"Rule '{rule_id}': check '{kind}' requires parameter '{name}'"
                raise ValueError(msg)
            value = param.default
        else:
            value = raw[name]
            # bool is an int subclass; keep the two apart.
            if not isinstance(value, param.kind) or (
                param.kind is int and isinstance(value, bool)
            ):
                msg = (
                    f"Rule '{rule_id}': parameter '{name}' must be of type "
                    f"{param.kind.__name__}, got {type(value).__name__}"
                )
                raise ValueError(msg)
        if param.choices is not None and value not in param.choices:
            msg = (
                f"Rule '{rule_id}': parameter '{name}' must be one of "
                f"{list(param.choices)}, got {value!r}"
            )
            raise ValueError(msg)
        params[name] = list(value) if isinstance(value, list) else value

    if spec.prepare is not None:
        try:
            params = spec.prepare(params)
        except ValueError as exc:
            msg = f"Rule '{rule_id}': {exc}"
            raise ValueError(msg) from exc

    return kind, MappingProxyType({k: _freeze(v) for k, v in params.items()})


def _check_template(rule_id: str, kind: str, message: str) -> None:
    """Reject templates that reference fields the predicate does not provide."""
    allowed = PREDICATES[kind].fields | COMMON_FIELDS
    try:
        parsed = list(string.Formatter().parse(message))
    except ValueError as exc:
        msg = f"Rule '{rule_id}': malformed message template: {exc}"
        raise ValueError(msg) from exc
    for _literal, field_name, _spec, _conv in parsed:
        if field_name is None:
            continue
        base = field_name.split(".", 1)[0].split("[", 1)[0]
        if base not in allowed:
            msg = (
                f"Rule '{rule_id}': message uses unknown field '{base}', "
                f"available: {sorted(allowed)}"
            )
            raise ValueError(msg)


def _parse_rule(idx: int, rule_data: object) -> Rule:
    if not isinstance(rule_data, dict):
        msg = f"catalog: rule at index {idx} must be a mapping"
        raise ValueError(msg)

    rule_id = rule_data.get("id")
    if rule_id is None or not isinstance(rule_id, str) or not rule_id.strip():
        msg = f"catalog: rule at index {idx} missing required 'id' field"
        raise ValueError(msg)

    severity = str(rule_data.get("severity", SEVERITY_ERROR))
    if severity not in VALID_SEVERITIES:
        msg = (
            f"catalog: rule '{rule_id}' has invalid severity '{severity}', "
            f"must be one of {sorted(VALID_SEVERITIES)}"
        )
        raise ValueError(msg)

    message = rule_data.get("message")
    if not isinstance(message, str) or not message.strip():
        msg = f"Rule '{rule_id}': 'message' must be a non-empty string"
        raise ValueError(msg)

    kind, params = _parse_check(rule_id, rule_data.get("check"))
    _check_template(rule_id, kind, message)

    return Rule(
        id=rule_id,
        description=str(rule_data.get("description", "")),
        severity=severity,
        roles=_parse_roles(rule_id, rule_data.get("roles")),
        kind=kind,
        params=params,
        message=message,
    )


def parse_catalog(data: object) -> Catalog:
    """Validate a loaded YAML document and build a :class:`Catalog`.

    Raises
    ------
    CatalogError
        On any schema error; the catalog is validated as a whole before any
        file is analysed.
    """
    try:
        if not isinstance(data, dict):
            msg = "catalog must be a YAML mapping"
            raise ValueError(msg)

        version = data.get("version")
        if version is None:
            msg = "catalog: missing required 'version' field"
            raise ValueError(msg)
        if (
            not isinstance(version, int)
            or isinstance(version, bool)
            or version not in SUPPORTED_CATALOG_VERSIONS
        ):
            expected = sorted(SUPPORTED_CATALOG_VERSIONS)
            msg = f"catalog: unsupported version {version!r}, expected one of {expected}"
            raise ValueError(msg)

        rules_data = data.get("rules", [])
        if not isinstance(rules_data, list):
            msg = "catalog: 'rules' must be a list"
            raise ValueError(msg)

        seen_ids: set[str] = set()
        rules: list[Rule] = []
        for idx, rule_data in enumerate(rules_data):
            rule = _parse_rule(idx, rule_data)
            if rule.id in seen_ids:
                msg = f"catalog: duplicate rule id '{rule.id}'"
                raise ValueError(msg)
            seen_ids.add(rule.id)
            rules.append(rule)
    except ValueError as exc:
        raise CatalogError(str(exc)) from exc

    return Catalog(version=int(version), rules=tuple(rules))


def load_catalog(path: Path) -> Catalog:
    """Load and validate a catalog file."""
    try:
        with path.open("r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except OSError as exc:
        msg = f"Cannot read catalog '{path}': {exc}"
        raise CatalogError(msg) from exc
    except yaml.YAMLError as exc:
        msg = f"Catalog '{path}' is not valid YAML: {exc}"
        raise CatalogError(msg) from exc
    return parse_catalog(data)


def load_default_catalog() -> Catalog:
    """Load the catalog shipped with the package."""
    text = resources.files("convlint.rules").joinpath(DEFAULT_CATALOG_RESOURCE).read_text(
        encoding="utf-8"
    )
    return parse_catalog(yaml.safe_load(text))
