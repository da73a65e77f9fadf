"""
Unit tests for built-in query functions and the function registry.
"""

import pytest

from mockcosmos.query.functions import (
    FunctionLibrary,
    FunctionRegistry,
    FunctionSignature,
    default_registry,
)
from mockcosmos.query.types import UNDEFINED, ValueKind


class TestStringFunctions:
    """Tests for CONTAINS and STARTSWITH."""

    @pytest.mark.parametrize("value,substring,expected", [
        ("John", "J", True),
        ("joanna", "J", True),
        ("Bob", "J", False),
        ("HelloWorld", "lowo", True),
        ("abc", "", True),
        (42, "4", True),
        (None, "a", False),
        (UNDEFINED, "a", False),
        ("abc", None, False),
    ])
    def test_contains(self, value, substring, expected):
        """Test case-insensitive substring search."""
        assert FunctionLibrary.contains(value, substring) is expected

    @pytest.mark.parametrize("value,prefix,expected", [
        ("HelloWorld", "hello", True),
        ("HelloWorld", "World", False),
        (True, "tr", True),
        (UNDEFINED, "a", False),
        ("abc", UNDEFINED, False),
    ])
    def test_startswith(self, value, prefix, expected):
        """Test case-insensitive prefix match."""
        assert FunctionLibrary.startswith(value, prefix) is expected


class TestArrayContains:
    """Tests for ARRAY_CONTAINS."""

    def test_match_case_insensitive(self):
        """Test elements compare by lowered textual form."""
        assert FunctionLibrary.array_contains(["red", "Blue"], "blue") is True

    def test_numbers(self):
        """Test numeric elements."""
        assert FunctionLibrary.array_contains([1, 2, 3], 2) is True
        assert FunctionLibrary.array_contains([1, 2, 3], 4) is False

    def test_not_an_array(self):
        """Test non-array first argument yields False."""
        assert FunctionLibrary.array_contains("blue", "blue") is False
        assert FunctionLibrary.array_contains(UNDEFINED, "blue") is False

    def test_missing_item(self):
        """Test null or undefined item yields False."""
        assert FunctionLibrary.array_contains([None], None) is False
        assert FunctionLibrary.array_contains(["a"], UNDEFINED) is False


class TestTypeFunctions:
    """Tests for IS_NULL and IS_DEFINED."""

    def test_is_null(self):
        """Test only explicit null is null."""
        assert FunctionLibrary.is_null(None) is True
        assert FunctionLibrary.is_null(UNDEFINED) is False
        assert FunctionLibrary.is_null(0) is False

    def test_is_defined(self):
        """Test null counts as defined, missing does not."""
        assert FunctionLibrary.is_defined(None) is True
        assert FunctionLibrary.is_defined("") is True
        assert FunctionLibrary.is_defined(UNDEFINED) is False


class TestFunctionRegistry:
    """Tests for FunctionRegistry."""

    def test_builtins_registered(self):
        """Test the built-in functions are available."""
        registry = FunctionRegistry()

        assert registry.list_functions() == [
            "ARRAY_CONTAINS", "CONTAINS", "IS_DEFINED", "IS_NULL", "STARTSWITH"
        ]

    def test_lookup_case_insensitive(self):
        """Test names resolve regardless of case."""
        registry = FunctionRegistry()

        assert registry.lookup("contains") is not None
        assert registry.get_signature("Is_Null") == FunctionSignature(1)
        assert registry.get_signature("NOPE") is None

    def test_call(self):
        """Test calling through the registry."""
        registry = FunctionRegistry()

        assert registry.call("startswith", ["Alice", "al"]) is True

    def test_call_unknown(self):
        """Test calling an unknown function raises KeyError."""
        with pytest.raises(KeyError):
            FunctionRegistry().call("LOWER", ["x"])

    def test_call_wrong_arity(self):
        """Test arity is enforced."""
        with pytest.raises(TypeError):
            FunctionRegistry().call("CONTAINS", ["x"])

    def test_register_custom(self):
        """Test registering a custom function."""
        registry = FunctionRegistry()
        registry.register("is_string", lambda v: isinstance(v, str), FunctionSignature(1))

        assert "IS_STRING" in registry.list_functions()
        assert registry.call("IS_STRING", ["x"]) is True

    def test_signature_repr(self):
        """Test readable signature."""
        assert repr(FunctionSignature(2)) == "(any, any) -> boolean"
        assert FunctionSignature(1).return_kind == ValueKind.BOOLEAN

    def test_default_registry_shared(self):
        """Test the default registry is a singleton."""
        assert default_registry() is default_registry()
