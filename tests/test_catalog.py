"""Tests for convlint.rules.catalog: YAML catalog parsing and validation."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Any

import pytest

from convlint.errors import CatalogError
from convlint.rules.catalog import (
    SEVERITY_ERROR,
    SEVERITY_WARNING,
    load_catalog,
    parse_catalog,
)
from convlint.rules.predicates import PREDICATES
from convlint.sources.roles import VALID_ROLES
from convlint.syntax.imports import ImportGroup

if TYPE_CHECKING:
    from pathlib import Path

    from convlint.rules.catalog import Catalog


def _rule(**overrides: Any) -> dict[str, Any]:
    rule: dict[str, Any] = {
        "id": "hook-name",
        "description": "Hooks start with use",
        "severity": "error",
        "roles": ["hook"],
        "check": {"kind": "name_pattern", "node": "function", "pattern": "^use"},
        "message": "Hook '{name}' must match {pattern}",
    }
    rule.update(overrides)
    return rule


def _catalog(*rules: dict[str, Any]) -> dict[str, Any]:
    return {"version": 1, "rules": list(rules)}


# ---------------------------------------------------------------------------
# Valid catalogs
# ---------------------------------------------------------------------------


class TestParseCatalog:
    def test_minimal(self) -> None:
        catalog = parse_catalog(_catalog(_rule()))
        assert len(catalog) == 1
        assert "hook-name" in catalog
        rule = catalog.get("hook-name")
        assert rule is not None
        assert rule.kind == "name_pattern"
        assert rule.roles == frozenset({"hook"})
        assert rule.severity == SEVERITY_ERROR

    def test_defaults_applied(self) -> None:
        rule = parse_catalog(_catalog(_rule())).rules[0]
        assert rule.params["exported_only"] is False
        assert isinstance(rule.params["pattern"], re.Pattern)

    def test_severity_defaults_to_error(self) -> None:
        data = _rule()
        del data["severity"]
        assert parse_catalog(_catalog(data)).rules[0].severity == SEVERITY_ERROR

    def test_roles_all(self) -> None:
        rule = parse_catalog(_catalog(_rule(roles="all"))).rules[0]
        assert rule.roles == VALID_ROLES

    def test_rules_for_role(self) -> None:
        catalog = parse_catalog(
            _catalog(
                _rule(id="a", roles=["hook"]),
                _rule(id="b", roles=["reducer"]),
                _rule(id="c", roles="all"),
            )
        )
        assert [r.id for r in catalog.rules_for("hook")] == ["a", "c"]
        assert [r.id for r in catalog.rules_for("reducer")] == ["b", "c"]
        assert catalog.rules_for("unknown") == ()

    def test_params_are_frozen(self) -> None:
        rule = parse_catalog(
            _catalog(
                _rule(
                    check={"kind": "forbid_import", "patterns": ["lodash"]},
                    message="'{source}' is forbidden",
                )
            )
        ).rules[0]
        assert rule.params["patterns"] == ("lodash",)
        with pytest.raises(TypeError):
            rule.params["patterns"] = ()  # type: ignore[index]

    def test_import_groups_prepared(self) -> None:
        rule = parse_catalog(
            _catalog(
                _rule(
                    check={
                        "kind": "import_order",
                        "groups": [
                            {"name": "framework", "patterns": ["react"]},
                            {"name": "external", "fallback": True},
                        ],
                    },
                    message="{group} must come {position} {other_group}",
                )
            )
        ).rules[0]
        assert rule.params["groups"] == (
            ImportGroup(name="framework", patterns=("react",)),
            ImportGroup(name="external", fallback=True),
        )

    def test_common_fields_in_message(self) -> None:
        parse_catalog(_catalog(_rule(message="[{rule}] {file} ({role}): {description}")))

    def test_empty_rules(self) -> None:
        assert len(parse_catalog({"version": 1})) == 0


# ---------------------------------------------------------------------------
# Invalid catalogs
# ---------------------------------------------------------------------------


class TestCatalogErrors:
    @pytest.mark.parametrize(
        ("data", "match"),
        [
            ([], "must be a YAML mapping"),
            ({"rules": []}, "missing required 'version'"),
            ({"version": 2, "rules": []}, "unsupported version 2"),
            ({"version": [1], "rules": []}, r"unsupported version \[1\]"),
            ({"version": {"major": 1}, "rules": []}, "unsupported version"),
            ({"version": True, "rules": []}, "unsupported version True"),
            ({"version": "1", "rules": []}, "unsupported version '1'"),
            ({"version": 1, "rules": {}}, "'rules' must be a list"),
            (_catalog("nope"), "index 0 must be a mapping"),
            (_catalog(_rule(id="")), "missing required 'id'"),
            (_catalog(_rule(severity="fatal")), "invalid severity 'fatal'"),
            (_catalog(_rule(roles=["widget"])), "unknown role"),
            (_catalog(_rule(roles=[])), "non-empty list"),
            (_catalog(_rule(message="")), "'message' must be a non-empty string"),
            (_catalog(_rule(check={"kind": "magic"})), "unknown check kind 'magic'"),
            (_catalog(_rule(check="name_pattern")), "'check' must be a mapping"),
            (
                _catalog(_rule(check={"kind": "name_pattern", "node": "function"})),
                "requires parameter 'pattern'",
            ),
            (
                _catalog(
                    _rule(check={"kind": "name_pattern", "node": "function", "pattern": 3})
                ),
                "must be of type str",
            ),
            (
                _catalog(
                    _rule(check={"kind": "name_pattern", "node": "class", "pattern": "x"})
                ),
                "must be one of",
            ),
            (
                _catalog(
                    _rule(
                        check={"kind": "name_pattern", "node": "function", "pattern": "x", "z": 1}
                    )
                ),
                r"unknown parameter\(s\) \['z'\]",
            ),
            (
                _catalog(
                    _rule(check={"kind": "name_pattern", "node": "function", "pattern": "("})
                ),
                "not a valid regular expression",
            ),
            (
                _catalog(
                    _rule(
                        check={"kind": "function_body", "min_lines": True},
                        message="{name}",
                    )
                ),
                "must be of type int",
            ),
            (_catalog(_rule(message="{missing}")), "unknown field 'missing'"),
            (_catalog(_rule(message="{name")), "malformed message template"),
            (_catalog(_rule(), _rule()), "duplicate rule id 'hook-name'"),
            (
                _catalog(
                    _rule(
                        check={
                            "kind": "import_order",
                            "groups": [
                                {"name": "a", "fallback": True},
                                {"name": "b", "fallback": True},
                            ],
                        },
                        message="{group}",
                    )
                ),
                "at most one import group",
            ),
            (
                _catalog(
                    _rule(
                        check={"kind": "import_order", "groups": [{"name": "a"}, {"name": "a"}]},
                        message="{group}",
                    )
                ),
                "duplicate import group 'a'",
            ),
        ],
    )
    def test_rejected(self, data: object, match: str) -> None:
        with pytest.raises(CatalogError, match=match):
            parse_catalog(data)


# ---------------------------------------------------------------------------
# Files
# ---------------------------------------------------------------------------


class TestLoadCatalog:
    def test_load_file(self, tmp_path: Path) -> None:
        path = tmp_path / "rules.yml"
        path.write_text(
            "version: 1\n"
            "rules:\n"
            "  - id: no-lodash\n"
            "    severity: warning\n"
            "    roles: all\n"
            "    check:\n"
            "      kind: forbid_import\n"
            "      patterns: [lodash, 'lodash/*']\n"
            "    message: \"Do not import {source}\"\n"
        )
        catalog = load_catalog(path)
        rule = catalog.get("no-lodash")
        assert rule is not None
        assert rule.severity == SEVERITY_WARNING

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(CatalogError, match="Cannot read catalog"):
            load_catalog(tmp_path / "missing.yml")

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "rules.yml"
        path.write_text("version: [1\n")
        with pytest.raises(CatalogError, match="not valid YAML"):
            load_catalog(path)


class TestDefaultCatalog:
    def test_loads(self, default_catalog: Catalog) -> None:
        assert default_catalog.version == 1
        assert len(default_catalog) > 10

    def test_every_kind_is_used(self, default_catalog: Catalog) -> None:
        assert {rule.kind for rule in default_catalog.rules} == set(PREDICATES)

    def test_form_rules_never_target_reducers(self, default_catalog: Catalog) -> None:
        reducer_rules = {rule.id for rule in default_catalog.rules_for("reducer")}
        assert "hooks-at-top" not in reducer_rules
        assert "component-min-body" not in reducer_rules
        assert "reset-returns-initial-state" in reducer_rules
