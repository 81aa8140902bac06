"""
Error taxonomy of the code generator.

Every error carries the context needed for an actionable message: the
offending node path, the definition it belongs to, the schema form involved
and, for backend errors, the target name.
"""

from __future__ import annotations


class CodegenError(Exception):
    """Base class for all code generation errors."""

    def __init__(
        self,
        message: str,
        *,
        path: str | None = None,
        definition_name: str | None = None,
        form: str | None = None,
        target: str | None = None,
    ):
        self.message = message
        self.path = path
        self.definition_name = definition_name
        self.form = form
        self.target = target
        super().__init__(self._format())

    def _format(self) -> str:
        context = []
        if self.target:
            context.append(f"target {self.target}")
        if self.definition_name:
            context.append(f"definition '{self.definition_name}'")
        if self.form:
            context.append(f"form {self.form}")
        if self.path:
            context.append(f"at {self.path}")
        if not context:
            return self.message
        return f"{self.message} ({', '.join(context)})"

    def for_target(self, target: str) -> CodegenError:
        """Attach the target name unless one is already set."""
        if self.target is None:
            self.target = target
            self.args = (self._format(),)
        return self


class SchemaError(CodegenError):
    """Malformed schema input or a broken IR invariant. Fatal for the whole compilation."""


class UnsupportedFormError(CodegenError):
    """A schema form cannot be represented in a target. Fatal for that backend only."""


class NamingCollisionExhaustedError(CodegenError):
    """Collision suffixing cannot produce an identifier within the length limit."""


class RegistryError(CodegenError):
    """Unknown target name or an invalid backend registration."""
