"""
Cosmos DB SQL Function Library.

Implements the built-in functions supported by the emulator:

- String functions: CONTAINS, STARTSWITH
- Array functions: ARRAY_CONTAINS
- Type checking functions: IS_NULL, IS_DEFINED

All text comparisons are case-insensitive and operate on the textual form of
a value (strings as-is, everything else as compact JSON), so
``CONTAINS(c.age, '4')`` matches an age of 42. String functions return False,
never null, when an argument is null or undefined.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Optional

from .types import UNDEFINED, ValueKind, kind_of, to_text


@dataclass(frozen=True)
class FunctionSignature:
    """
    Function signature definition.

    Only arity is checked; arguments of any kind are accepted and the
    function decides how to treat them.
    """
    arity: int
    return_kind: ValueKind = ValueKind.BOOLEAN

    def __repr__(self) -> str:
        args = ", ".join("any" for _ in range(self.arity))
        return f"({args}) -> {self.return_kind}"


def _is_missing(value: Any) -> bool:
    return value is None or value is UNDEFINED


class FunctionLibrary:
    """
    Built-in function implementations.

    Each function takes already-evaluated argument values, which may include
    UNDEFINED for missing properties.
    """

    # ==================== String Functions ====================

    @staticmethod
    def contains(value: Any, substring: Any) -> bool:
        """
        Check if the textual form of value contains substring (case-insensitive).

        Example:
            >>> FunctionLibrary.contains("Joanna", "J")
            True
        """
        if _is_missing(value) or _is_missing(substring):
            return False
        return to_text(substring).lower() in to_text(value).lower()

    @staticmethod
    def startswith(value: Any, prefix: Any) -> bool:
        """
        Check if the textual form of value starts with prefix (case-insensitive).

        Example:
            >>> FunctionLibrary.startswith("HelloWorld", "hello")
            True
        """
        if _is_missing(value) or _is_missing(prefix):
            return False
        return to_text(value).lower().startswith(to_text(prefix).lower())

    # ==================== Array Functions ====================

    @staticmethod
    def array_contains(array: Any, item: Any) -> bool:
        """
        Check if any element of array matches item.

        Elements are compared by case-insensitive textual form, so
        ``ARRAY_CONTAINS(c.tags, 'Blue')`` matches ``["blue"]``.

        Returns:
            False when array is not an array or item is null/undefined
        """
        if _is_missing(item) or kind_of(array) != ValueKind.ARRAY:
            return False
        needle = to_text(item).lower()
        return any(to_text(element).lower() == needle for element in array)

    # ==================== Type Functions ====================

    @staticmethod
    def is_null(value: Any) -> bool:
        """True only for an explicit JSON null; a missing property is not null."""
        return value is None

    @staticmethod
    def is_defined(value: Any) -> bool:
        """True if the property exists, even when its value is null."""
        return value is not UNDEFINED


class FunctionRegistry:
    """
    Registry of available SQL functions.

    Names are case-insensitive and stored upper-case. The parser consults
    the registry to validate names and arity; the evaluator uses it to call.
    """

    def __init__(self):
        """Initialize function registry with the built-in functions."""
        self._functions: dict[str, tuple[Callable, FunctionSignature]] = {}
        self._register_all()

    def _register_all(self):
        lib = FunctionLibrary

        self.register('CONTAINS', lib.contains, FunctionSignature(2))
        self.register('STARTSWITH', lib.startswith, FunctionSignature(2))
        self.register('ARRAY_CONTAINS', lib.array_contains, FunctionSignature(2))
        self.register('IS_NULL', lib.is_null, FunctionSignature(1))
        self.register('IS_DEFINED', lib.is_defined, FunctionSignature(1))

    def register(self, name: str, func: Callable, signature: FunctionSignature):
        """
        Register a function, replacing any existing one with the same name.

        Args:
            name: Function name (case-insensitive)
            func: Function implementation
            signature: Function signature
        """
        self._functions[name.upper()] = (func, signature)

    def lookup(self, name: str) -> Optional[tuple[Callable, FunctionSignature]]:
        """
        Look up function by name.

        Returns:
            Tuple of (function, signature) or None if not found
        """
        return self._functions.get(name.upper())

    def call(self, name: str, args: list[Any]) -> Any:
        """
        Call function with arguments.

        Args:
            name: Function name
            args: Evaluated argument values

        Returns:
            Function result

        Raises:
            KeyError: If function is not registered
            TypeError: If argument count does not match the signature
        """
        result = self.lookup(name)
        if result is None:
            raise KeyError(name)

        func, signature = result
        if len(args) != signature.arity:
            raise TypeError(
                f"Function '{name.upper()}' expects {signature.arity} argument(s), "
                f"got {len(args)}"
            )
        return func(*args)

    def get_signature(self, name: str) -> Optional[FunctionSignature]:
        result = self.lookup(name)
        if result is None:
            return None
        return result[1]

    def list_functions(self) -> list[str]:
        """
        List all registered function names.

        Returns:
            Sorted list of function names
        """
        return sorted(self._functions.keys())


_default_registry: Optional[FunctionRegistry] = None


def default_registry() -> FunctionRegistry:
    """Shared registry of the built-in functions."""
    global _default_registry
    if _default_registry is None:
        _default_registry = FunctionRegistry()
    return _default_registry
