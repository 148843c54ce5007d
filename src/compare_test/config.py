"""Immutable configurations: variables plus templates, derived copy-on-write."""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Optional, Tuple

from .nodes import Section

# Reserved variables
CONFIG_NAME_KEY = "config"
WORKING_DIRECTORY_KEY = "working-directory"
RESULT_KEY = "result"

# Reserved section names
INIT_SECTION = "init"
BUILD_SECTION = "build"
RUN_SECTION = "run"
CONFIGS_SECTION = "configs"
TESTS_SECTION = "tests"

DEFAULT_CONFIG_NAME = "default"

_EMPTY: Mapping = MappingProxyType({})


@dataclass(frozen=True)
class Template:
    name: str
    parameters: Tuple[str, ...]
    contents: Section


class Configuration:
    """
    A named, read-only environment.

    Every "modification" builds a new Configuration that shares nothing
    mutable with its parent, so values handed to other threads never change
    underneath them.
    """

    __slots__ = ('name', 'variables', 'templates')

    def __init__(
        self,
        name: str = DEFAULT_CONFIG_NAME,
        variables: Optional[Mapping[str, str]] = None,
        templates: Optional[Mapping[str, Template]] = None,
    ):
        self.name = name
        self.variables: Mapping[str, str] = MappingProxyType(dict(variables)) if variables else _EMPTY
        self.templates: Mapping[str, Template] = MappingProxyType(dict(templates)) if templates else _EMPTY

    def lookup(self, name: str) -> Optional[str]:
        return self.variables.get(name)

    def get_template(self, name: str) -> Optional[Template]:
        return self.templates.get(name)

    def create_subconfiguration(self, name: str, overrides: Optional[Mapping[str, str]] = None) -> Configuration:
        merged = dict(self.variables)
        if overrides:
            merged.update(overrides)
        return Configuration(name, merged, self.templates)

    def with_variable(self, key: str, value: str) -> Configuration:
        merged = dict(self.variables)
        merged[key] = value
        return Configuration(self.name, merged, self.templates)

    def with_template(self, template: Template) -> Configuration:
        merged = dict(self.templates)
        merged[template.name] = template
        return Configuration(self.name, self.variables, merged)

    def __repr__(self) -> str:
        return f"Configuration({self.name!r}, {dict(self.variables)!r}, templates={sorted(self.templates)!r})"
