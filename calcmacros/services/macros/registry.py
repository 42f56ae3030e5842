"""
MacroRegistry / MacroTable — construction and lookup of macro definitions.

A MacroRegistry collects definitions at start-up; freeze() validates them
as a whole and returns an immutable MacroTable, which is what the engine
queries for the rest of the process.

Register with a signature and a template in host syntax::

    registry.define("MIN(A, B)", "A - (A - B) * (A > B)")

or load the persisted directive form::

    registry.load("%define MIN(A, B) A - (A - B) * (A > B)")
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Iterable, Iterator

from .errors import ArityMismatch, MacroDefinitionError, MacroSyntaxError, UnknownMacro
from .expr import Expr, called_functions, free_names, parse, render
from .params import parse_directives, parse_signature

logger = logging.getLogger(__name__)

DEFAULT_HOST_FUNCTIONS = ("ln", "antiln", "sqrt")


@dataclass(frozen=True)
class MacroDefinition:
    name: str
    parameters: tuple[str, ...]
    template: Expr

    @property
    def arity(self) -> int:
        return len(self.parameters)

    @property
    def signature(self) -> str:
        if not self.parameters:
            return self.name
        return f"{self.name}({', '.join(self.parameters)})"

    @property
    def source(self) -> str:
        return render(self.template)

    def directive(self) -> str:
        """The persisted ``%define`` line for this definition."""
        return f"%define {self.signature} {self.source}"


class MacroRegistry:
    def __init__(self, host_functions: Iterable[str] = DEFAULT_HOST_FUNCTIONS) -> None:
        self._definitions: dict[str, MacroDefinition] = {}
        self._host_functions = frozenset(host_functions)

    # ---------------------------------------------------------------- register

    def define(self, signature: str, template: str) -> MacroDefinition:
        """Register ``NAME(P1, ...)`` with a template in host syntax."""
        name, parameters = parse_signature(signature)
        return self.add(name, parameters, template)

    def add(self, name: str, parameters: tuple[str, ...], template: str | Expr) -> MacroDefinition:
        if name in self._definitions:
            raise MacroDefinitionError(f"Macro {name} is already defined")
        if name in self._host_functions:
            raise MacroDefinitionError(f"Macro {name} would shadow a host function")
        if len(set(parameters)) != len(parameters):
            raise MacroDefinitionError(f"Macro {name} repeats a parameter name")

        if isinstance(template, str):
            try:
                template = parse(template)
            except MacroSyntaxError as exc:
                raise MacroDefinitionError(f"Macro {name}: {exc}") from exc

        definition = MacroDefinition(name, tuple(parameters), template)
        self._definitions[name] = definition
        logger.debug("Registered macro: %s", definition.signature)
        return definition

    def load(self, text: str, source: str = "<string>") -> list[MacroDefinition]:
        """Register every ``%define`` directive in *text*."""
        loaded = []
        for directive in parse_directives(text):
            try:
                loaded.append(self.add(directive.name, directive.parameters, directive.template))
            except MacroDefinitionError as exc:
                raise MacroDefinitionError(f"{source}:{directive.line}: {exc}") from exc
        logger.debug("Loaded %d macro definitions from %s", len(loaded), source)
        return loaded

    # ------------------------------------------------------------------ freeze

    def freeze(self) -> "MacroTable":
        table = MacroTable(self._definitions.values(), self._host_functions)
        logger.info("Macro table ready: %d macros", len(table))
        return table

    def __len__(self) -> int:
        return len(self._definitions)


class MacroTable(Mapping):
    """
    Immutable name → MacroDefinition mapping.

    Construction validates the table as a whole: every free name in a
    template is a parameter or a zero-arity macro, every call targets a
    host function or a macro of matching arity, and no macro refers back
    to itself through other macros.
    """

    def __init__(
        self,
        definitions: Iterable[MacroDefinition],
        host_functions: Iterable[str] = DEFAULT_HOST_FUNCTIONS,
    ) -> None:
        self._definitions = MappingProxyType({d.name: d for d in definitions})
        self._host_functions = frozenset(host_functions)
        self._validate()

    # ------------------------------------------------------------------ lookup

    def __getitem__(self, name: str) -> MacroDefinition:
        return self._definitions[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._definitions)

    def __len__(self) -> int:
        return len(self._definitions)

    def lookup(self, name: str, arity: int) -> MacroDefinition:
        definition = self._definitions.get(name)
        if definition is None:
            raise UnknownMacro(name)
        if definition.arity != arity:
            raise ArityMismatch(name, definition.arity, arity)
        return definition

    def is_host_function(self, name: str) -> bool:
        return name in self._host_functions

    @property
    def host_functions(self) -> frozenset[str]:
        return self._host_functions

    def names(self) -> list[str]:
        return sorted(self._definitions)

    def constants(self) -> list[str]:
        return sorted(n for n, d in self._definitions.items() if d.arity == 0)

    # -------------------------------------------------------------- validation

    def _references(self, definition: MacroDefinition) -> set[str]:
        """Macros that *definition*'s template refers to."""
        refs = {
            n for n in free_names(definition.template)
            if n not in definition.parameters and n in self._definitions
        }
        refs.update(f for f, _ in called_functions(definition.template) if f in self._definitions)
        return refs

    def _validate(self) -> None:
        for definition in self._definitions.values():
            for n in free_names(definition.template) - set(definition.parameters):
                target = self._definitions.get(n)
                if target is None or target.arity != 0:
                    raise MacroDefinitionError(
                        f"Macro {definition.name} uses undeclared name {n!r}"
                    )

            for func, arity in called_functions(definition.template):
                if func in self._host_functions:
                    continue
                target = self._definitions.get(func)
                if target is None:
                    raise MacroDefinitionError(
                        f"Macro {definition.name} calls unknown function {func!r}"
                    )
                if target.arity != arity:
                    raise MacroDefinitionError(
                        f"Macro {definition.name} calls {func} with {arity} "
                        f"argument(s), expected {target.arity}"
                    )

        self._check_cycles()

    def _check_cycles(self) -> None:
        done: set[str] = set()

        def visit(name: str, path: list[str]) -> None:
            if name in done:
                return
            if name in path:
                cycle = " -> ".join(path[path.index(name):] + [name])
                raise MacroDefinitionError(f"Recursive macro definition: {cycle}")
            path.append(name)
            for ref in sorted(self._references(self._definitions[name])):
                visit(ref, path)
            path.pop()
            done.add(name)

        for name in self._definitions:
            visit(name, [])
