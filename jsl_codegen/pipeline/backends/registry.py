"""
Backend registry keyed by target name.

The driver never imports a backend directly; it asks the registry for the
requested target names, so a new target (or a test double) only needs to be
registered.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from ..errors import RegistryError
from .base import TypeMappingBackend
from .go_backend import GoBackend
from .java_backend import JavaBackend
from .python_backend import PythonBackend
from .typescript_backend import TypeScriptBackend

BackendFactory = Callable[[dict[str, Any] | None], TypeMappingBackend]


class BackendRegistry:
    """Registry of available backends."""

    def __init__(self):
        self._factories: dict[str, BackendFactory] = {}
        self._aliases: dict[str, str] = {}

    def register(self, name: str, factory: BackendFactory, aliases: list[str] | None = None, replace: bool = False) -> None:
        """
        Register a backend.

        Args:
            name: Target name (e.g. 'go', 'typescript')
            factory: Callable taking naming overrides and returning a backend (usually the class)
            aliases: Alternative names for the target
            replace: Replace an existing registration

        Raises:
            RegistryError: If the name or an alias is already taken
        """
        key = name.lower()
        if not replace and (key in self._factories or key in self._aliases):
            raise RegistryError(f"Backend '{name}' is already registered")

        self._factories[key] = factory
        for alias in aliases or []:
            alias_key = alias.lower()
            if alias_key == key:
                continue
            if not replace and (alias_key in self._factories or self._aliases.get(alias_key, key) != key):
                raise RegistryError(f"Alias '{alias}' conflicts with an existing backend")
            self._aliases[alias_key] = key

    def resolve_name(self, name: str) -> str:
        """
        Canonical target name for a name or alias.

        Raises:
            RegistryError: If no backend is registered under that name
        """
        key = name.lower()
        if key in self._factories:
            return key
        if key in self._aliases:
            return self._aliases[key]
        raise RegistryError(f"No backend registered for target: {name}. Available: {', '.join(self.names())}")

    def create(self, name: str, naming_overrides: dict[str, Any] | None = None) -> TypeMappingBackend:
        """
        Create a backend instance.

        Args:
            name: Target name or alias
            naming_overrides: NamingRules fields replacing the backend defaults

        Returns:
            The backend

        Raises:
            RegistryError: If the target is unknown or the factory does not build a conforming backend
        """
        key = self.resolve_name(name)
        backend = self._factories[key](naming_overrides)
        if not isinstance(backend, TypeMappingBackend):
            raise RegistryError(f"Backend '{key}' does not implement the type-mapping contract", target=key)
        return backend

    def names(self) -> list[str]:
        """Registered target names, sorted."""
        return sorted(self._factories)

    def is_supported(self, name: str) -> bool:
        key = name.lower()
        return key in self._factories or key in self._aliases


def default_registry() -> BackendRegistry:
    """A registry with the shipped backends."""
    registry = BackendRegistry()
    registry.register("typescript", TypeScriptBackend, aliases=["ts"])
    registry.register("go", GoBackend, aliases=["golang"])
    registry.register("java", JavaBackend)
    registry.register("python", PythonBackend, aliases=["py"])
    return registry
