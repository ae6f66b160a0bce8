from __future__ import annotations

from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

import yaml

from objjc.diagnostics import WARNING_CATEGORIES
from objjc.globals_table import DEFAULT_ENVIRONMENTS, ENVIRONMENTS


DEFAULT_COPY_ACCESSOR_TYPES = frozenset({"CPString", "CPArray", "CPDictionary", "CPSet"})


class OptionsError(ValueError):
    pass


@dataclass(frozen=True)
class CompilerOptions:
    warnings: frozenset[str] = WARNING_CATEGORIES
    transform_named_function_to_assignment: bool = False
    accessor_getter_template: str = "{name}"
    accessor_setter_template: str = "set{Name}:"
    copy_accessor_types: frozenset[str] = DEFAULT_COPY_ACCESSOR_TYPES
    known_classes: tuple[str, ...] = ()
    environments: tuple[str, ...] = DEFAULT_ENVIRONMENTS
    indent_string: str = " "
    indent_width: int = 4
    format_rules: dict[str, tuple[str, str]] = field(default_factory=dict)

    def with_warning(self, category: str, enabled: bool) -> "CompilerOptions":
        if category not in WARNING_CATEGORIES:
            raise OptionsError(f"Unknown warning category '{category}'")
        if enabled:
            return replace(self, warnings=self.warnings | {category})
        return replace(self, warnings=self.warnings - {category})


def _require_type(value: object, expected_type: type, label: str) -> None:
    if not isinstance(value, expected_type) or (expected_type is int and isinstance(value, bool)):
        raise OptionsError(f"{label} must be {expected_type.__name__}")


def _string_list(raw: object, label: str) -> list[str]:
    _require_type(raw, list, label)
    items: list[str] = []
    for index, item in enumerate(raw):  # type: ignore[arg-type]
        _require_type(item, str, f"{label}[{index}]")
        items.append(item)
    return items


def _parse_warnings(raw: object, label: str) -> frozenset[str]:
    names = _string_list(raw, label)
    for name in names:
        if name not in WARNING_CATEGORIES:
            raise OptionsError(f"{label}: unknown warning category '{name}'")
    return frozenset(names)


def _parse_format_rules(raw: object, label: str) -> dict[str, tuple[str, str]]:
    _require_type(raw, dict, label)
    rules: dict[str, tuple[str, str]] = {}
    for name, value in raw.items():  # type: ignore[union-attr]
        _require_type(name, str, f"{label} key")
        if isinstance(value, str):
            rules[name] = ("", value)
            continue
        _require_type(value, dict, f"{label}.{name}")
        before = value.get("before", "")
        after = value.get("after", "")
        _require_type(before, str, f"{label}.{name}.before")
        _require_type(after, str, f"{label}.{name}.after")
        rules[name] = (before, after)
    return rules


def options_from_mapping(raw: object, *, source: str = "<options>") -> CompilerOptions:
    if raw is None:
        return CompilerOptions()

    _require_type(raw, dict, source)
    data: dict[str, Any] = raw  # type: ignore[assignment]
    options = CompilerOptions()

    known_keys = {
        "warnings",
        "disable_warnings",
        "transform_named_function_to_assignment",
        "accessors",
        "known_classes",
        "environments",
        "format",
    }
    for key in data:
        if key not in known_keys:
            raise OptionsError(f"{source}: unknown option '{key}'")

    if "warnings" in data:
        options = replace(options, warnings=_parse_warnings(data["warnings"], f"{source}: warnings"))

    if "disable_warnings" in data:
        disabled = _parse_warnings(data["disable_warnings"], f"{source}: disable_warnings")
        options = replace(options, warnings=options.warnings - disabled)

    if "transform_named_function_to_assignment" in data:
        value = data["transform_named_function_to_assignment"]
        _require_type(value, bool, f"{source}: transform_named_function_to_assignment")
        options = replace(options, transform_named_function_to_assignment=value)

    if "accessors" in data:
        accessors = data["accessors"]
        _require_type(accessors, dict, f"{source}: accessors")
        getter = accessors.get("getter", options.accessor_getter_template)
        setter = accessors.get("setter", options.accessor_setter_template)
        _require_type(getter, str, f"{source}: accessors.getter")
        _require_type(setter, str, f"{source}: accessors.setter")
        copy_types = options.copy_accessor_types
        if "copy_types" in accessors:
            copy_types = frozenset(_string_list(accessors["copy_types"], f"{source}: accessors.copy_types"))
        options = replace(
            options,
            accessor_getter_template=getter,
            accessor_setter_template=setter,
            copy_accessor_types=copy_types,
        )

    if "known_classes" in data:
        options = replace(options, known_classes=tuple(_string_list(data["known_classes"], f"{source}: known_classes")))

    if "environments" in data:
        environments = tuple(_string_list(data["environments"], f"{source}: environments"))
        for environment in environments:
            if environment not in ENVIRONMENTS:
                raise OptionsError(f"{source}: unknown environment '{environment}'")
        options = replace(options, environments=environments)

    if "format" in data:
        format_data = data["format"]
        _require_type(format_data, dict, f"{source}: format")
        indent_string = format_data.get("indent_string", options.indent_string)
        indent_width = format_data.get("indent_width", options.indent_width)
        _require_type(indent_string, str, f"{source}: format.indent_string")
        _require_type(indent_width, int, f"{source}: format.indent_width")
        if indent_width < 0:
            raise OptionsError(f"{source}: format.indent_width must be non-negative")
        rules = _parse_format_rules(format_data.get("rules", {}), f"{source}: format.rules")
        options = replace(options, indent_string=indent_string, indent_width=indent_width, format_rules=rules)

    return options


def load_options(path: str | Path) -> CompilerOptions:
    options_path = Path(path)
    try:
        raw = yaml.safe_load(options_path.read_text(encoding="utf-8"))
    except yaml.YAMLError as error:
        raise OptionsError(f"{options_path}: invalid YAML: {error}") from error
    return options_from_mapping(raw, source=str(options_path))
