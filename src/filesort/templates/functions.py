"""Function registry for template calls.

Functions are plain callables taking the already-resolved argument values and
returning a value (or a plain ``str``, which is wrapped in ``TextValue``).
They are registered by name with an arity policy, then the registry is frozen
and shared read-only by every evaluation.

Functions must not keep hidden process-wide state. A function that needs a
capability (for example a filesystem probe) receives it through a closure at
registration time, and documents its own blocking and failure behaviour.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from filesort.logging import get_logger
from filesort.templates.errors import (
    ArgumentTypeError,
    ArityMismatchError,
    FunctionCallError,
    FunctionRegistrationError,
    TemplateEvaluationError,
    UnknownFunctionError,
)
from filesort.templates.values import (
    MappingValue,
    TextValue,
    Value,
    coerce_value,
    value_kind,
)

__all__ = [
    "Arity",
    "TemplateFunction",
    "RegisteredFunction",
    "FunctionRegistry",
    "expect_text",
    "expect_mapping",
]

logger = get_logger(__name__)

TemplateFunction = Callable[[Sequence[Value]], Value | str]

_NAME_PATTERN = re.compile(r"[A-Za-z0-9_]+")


@dataclass(frozen=True, slots=True)
class Arity:
    """Accepted argument count for a function.

    Attributes:
        minimum: Fewest arguments accepted.
        maximum: Most arguments accepted, or None for variadic functions.

    Examples:
        >>> Arity.exactly(1).accepts(0)
        False
        >>> Arity.at_least(1).describe()
        'at least 1 argument'
    """

    minimum: int
    maximum: int | None = None

    def __post_init__(self) -> None:
        if self.minimum < 0:
            raise ValueError("Arity minimum cannot be negative")
        if self.maximum is not None and self.maximum < self.minimum:
            raise ValueError("Arity maximum cannot be below the minimum")

    @classmethod
    def exactly(cls, count: int) -> Arity:
        return cls(minimum=count, maximum=count)

    @classmethod
    def at_least(cls, count: int) -> Arity:
        return cls(minimum=count, maximum=None)

    @classmethod
    def between(cls, minimum: int, maximum: int) -> Arity:
        return cls(minimum=minimum, maximum=maximum)

    @property
    def variadic(self) -> bool:
        return self.maximum is None

    def accepts(self, count: int) -> bool:
        if count < self.minimum:
            return False
        return self.maximum is None or count <= self.maximum

    def describe(self) -> str:
        """Describe the policy for error messages and listings."""
        if self.maximum is None:
            bound = f"at least {self.minimum}"
            count = self.minimum
        elif self.minimum == self.maximum:
            bound = "no" if self.minimum == 0 else str(self.minimum)
            count = self.minimum
        else:
            bound = f"{self.minimum} to {self.maximum}"
            count = self.maximum
        return f"{bound} {'argument' if count == 1 else 'arguments'}"


@dataclass(frozen=True, slots=True)
class RegisteredFunction:
    """A function together with its name, arity and description."""

    name: str
    arity: Arity
    func: TemplateFunction
    description: str = ""


def expect_text(function: str, args: Sequence[Value], index: int) -> str:
    """Return argument ``index`` as a string, or raise ArgumentTypeError.

    Args:
        function: Name of the calling function, for the error message.
        args: The resolved arguments.
        index: Zero-based argument position.
    """
    value = args[index]
    if isinstance(value, TextValue):
        return value.text
    raise ArgumentTypeError(function, index, expected="text", got=value_kind(value))


def expect_mapping(function: str, args: Sequence[Value], index: int) -> MappingValue:
    """Return argument ``index`` as a MappingValue, or raise ArgumentTypeError."""
    value = args[index]
    if isinstance(value, MappingValue):
        return value
    raise ArgumentTypeError(
        function, index, expected="mapping", got=value_kind(value)
    )


class FunctionRegistry:
    """Registry of functions callable from templates.

    Registering a name that already exists replaces the earlier function (last
    registration wins) and logs a warning. After ``freeze()`` the registry
    rejects further registrations, which is what makes sharing it between
    concurrent evaluations safe.

    Example:
        ```python
        registry = FunctionRegistry()

        @registry.register("upper", Arity.exactly(1))
        def upper(args):
            return expect_text("upper", args, 0).upper()

        registry.invoke("upper", [TextValue("abc")])  # TextValue(text='ABC')
        ```
    """

    def __init__(self) -> None:
        self._functions: dict[str, RegisteredFunction] = {}
        self._frozen = False

    def register(
        self,
        name: str,
        arity: Arity,
        func: TemplateFunction | None = None,
        *,
        description: str = "",
    ) -> TemplateFunction | Callable[[TemplateFunction], TemplateFunction]:
        """Register a function, directly or as a decorator.

        Args:
            name: Name used in templates; must match ``[A-Za-z0-9_]+``.
            arity: Accepted argument count.
            func: The callable (None when used as a decorator).
            description: One-line description shown by ``filesort functions``.

        Returns:
            The callable when called directly, or a decorator.

        Raises:
            FunctionRegistrationError: If the name is invalid or the registry
                is frozen.
        """
        if func is None:

            def decorator(target: TemplateFunction) -> TemplateFunction:
                self._add(name, arity, target, description)
                return target

            return decorator

        self._add(name, arity, func, description)
        return func

    def _add(
        self,
        name: str,
        arity: Arity,
        func: TemplateFunction,
        description: str,
    ) -> None:
        if self._frozen:
            raise FunctionRegistrationError(
                f"Cannot register '{name}': function registry is frozen", name=name
            )
        if not _NAME_PATTERN.fullmatch(name):
            raise FunctionRegistrationError(
                f"Invalid function name '{name}': use letters, digits and '_'",
                name=name,
            )
        if not callable(func):
            raise FunctionRegistrationError(
                f"Function '{name}' must be callable, got {type(func).__name__}",
                name=name,
            )
        if name in self._functions:
            logger.warning("template_function_replaced", function=name)
        self._functions[name] = RegisteredFunction(
            name=name, arity=arity, func=func, description=description
        )

    def invoke(self, name: str, args: Sequence[Value]) -> Value:
        """Call function ``name`` with resolved arguments.

        Args:
            name: Registered function name.
            args: Argument values, in call order.

        Returns:
            The function's result as a Value.

        Raises:
            UnknownFunctionError: If ``name`` is not registered.
            ArityMismatchError: If the argument count violates the arity.
            ArgumentTypeError: If the function rejects an argument's kind.
            FunctionCallError: If the function fails in any other way.
        """
        entry = self.get(name)
        if not entry.arity.accepts(len(args)):
            raise ArityMismatchError(name, entry.arity.describe(), len(args))
        try:
            result = entry.func(tuple(args))
        except TemplateEvaluationError:
            raise
        except Exception as e:
            raise FunctionCallError(name, str(e) or type(e).__name__) from e
        try:
            return coerce_value(result)
        except TypeError as e:
            raise FunctionCallError(name, f"returned unsupported result: {e}") from e

    def get(self, name: str) -> RegisteredFunction:
        """Look up a registered function.

        Raises:
            UnknownFunctionError: If no function has this name.
        """
        entry = self._functions.get(name)
        if entry is None:
            raise UnknownFunctionError(name, available=self.names())
        return entry

    def has(self, name: str) -> bool:
        return name in self._functions

    def names(self) -> list[str]:
        """Sorted registered names."""
        return sorted(self._functions)

    def entries(self) -> list[RegisteredFunction]:
        return [self._functions[name] for name in self.names()]

    def freeze(self) -> None:
        """Reject any further registration. Idempotent."""
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def copy(self) -> FunctionRegistry:
        """Return an unfrozen copy that can be extended independently."""
        clone = FunctionRegistry()
        clone._functions = dict(self._functions)
        return clone

    def __contains__(self, name: object) -> bool:
        return name in self._functions

    def __len__(self) -> int:
        return len(self._functions)
