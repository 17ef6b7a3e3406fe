"""
Lexical scopes for the Misty interpreter.

An `Environment` owns the bindings declared in one scope and points at its
enclosing scope. Lookups and assignments walk outward until the nearest scope
that defines the name is found, so inner declarations shadow outer ones.
Only that defining scope's binding is ever mutated, and a constant binding
rejects reassignment.

New environments are created for each program run (global), each procedure
call (child of the procedure's captured scope), the counting loop's header,
and each iteration of an iterating loop.
"""

from __future__ import annotations

from dataclasses import dataclass

from misty.misty_errors import MistyRuntimeError
from misty.misty_values import Value


@dataclass
class Binding:
    value: Value
    is_constant: bool = False


class Environment:
    """One scope in the chain.

    Attributes:
        parent (Environment | None): The enclosing scope, None for the global scope.
    """

    def __init__(self, parent: Environment | None = None) -> None:
        self.parent = parent
        self._bindings: dict[str, Binding] = {}

    def define(self, name: str, value: Value, is_constant: bool = False) -> None:
        """Binds `name` in this scope, replacing any binding of the same name here."""
        self._bindings[name] = Binding(value, is_constant)

    def resolve(self, name: str) -> Binding:
        env: Environment | None = self
        while env is not None:
            binding = env._bindings.get(name)
            if binding is not None:
                return binding
            env = env.parent
        raise MistyRuntimeError(f"Undefined variable: {name}")

    def get(self, name: str) -> Value:
        return self.resolve(name).value

    def assign(self, name: str, value: Value) -> None:
        binding = self.resolve(name)
        if binding.is_constant:
            raise MistyRuntimeError(f"Cannot assign to constant variable: {name}")
        binding.value = value

    def has_local(self, name: str) -> bool:
        return name in self._bindings


__all__ = ["Binding", "Environment"]
