"""
Contract validation of API responses.

A contract is a pydantic model (or any type ``TypeAdapter`` accepts). The
validator checks response bodies against it, keeps pass/fail statistics and
raises ``ContractValidationError`` with one readable line per problem.

Example:
    class Deck(BaseModel):
        id: str
        name: str
        card_count: int = Field(alias="cardCount")

    validator = ContractValidator()
    deck = validator.validate(Deck, await api_client.get("/v1/decks/d1"), "GET /v1/decks/d1")

    response = await http.get("https://studytab.test/api/v1/decks")
    decks = expect_contract_valid(response, list[Deck])
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Callable, Generic, Literal, TypeVar

import httpx
from pydantic import BaseModel, ConfigDict, TypeAdapter, ValidationError

from qaharness.config.logging_config import get_logger
from qaharness.errors import QaHarnessError

log = get_logger(__name__)

T = TypeVar("T")

ValidationMode = Literal["strict", "lenient"]
VALIDATION_MODES: tuple[str, ...] = ("strict", "lenient")

DEFAULT_MAX_ERRORS = 10
NOT_JSON_MESSAGE = "Response body is not valid JSON"


def format_location(loc: tuple[int | str, ...]) -> str:
    if not loc:
        return "[root]"
    return "[" + ".".join(str(part) for part in loc) + "]"


def format_validation_errors(error: ValidationError, max_errors: int = DEFAULT_MAX_ERRORS) -> list[str]:
    """One ``[path]: message`` line per pydantic error, at most ``max_errors``."""
    return [f"{format_location(e['loc'])}: {e['msg']}" for e in error.errors()[:max_errors]]


class ContractValidationError(QaHarnessError):
    """A response body does not match its contract.

    Attributes:
        errors: Formatted ``[path]: message`` lines.
        paths: Dotted location of each error, ``""`` for the root.
        context: Where the data came from, e.g. ``"https://studytab.test/api/v1/decks (200)"``.
        validation_error: The underlying pydantic error, if any.
    """

    def __init__(
        self,
        errors: list[str],
        paths: list[str],
        context: str | None = None,
        validation_error: ValidationError | None = None,
        raw_data: Any = None,
    ):
        self.errors = errors
        self.paths = paths
        self.context = context
        self.validation_error = validation_error
        self.raw_data = raw_data

        header = f"Contract validation failed: {context}" if context else "Contract validation failed"
        message = header + "\n\nErrors:\n" + "\n".join(f"  • {e}" for e in errors)
        if raw_data is not None:
            message += "\n\nData:\n" + json.dumps(raw_data, indent=2, default=str)
        super().__init__(message)

    @classmethod
    def from_validation_error(
        cls,
        error: ValidationError,
        context: str | None = None,
        max_errors: int = DEFAULT_MAX_ERRORS,
        raw_data: Any = None,
    ) -> ContractValidationError:
        return cls(
            errors=format_validation_errors(error, max_errors),
            paths=[".".join(str(part) for part in e["loc"]) for e in error.errors()[:max_errors]],
            context=context,
            validation_error=error,
            raw_data=raw_data,
        )


@dataclass
class SafeParseResult(Generic[T]):
    success: bool
    data: T | None = None
    errors: list[str] = field(default_factory=list)
    validation_error: ValidationError | None = None
    context: str | None = None


@dataclass(frozen=True)
class ValidationStats:
    total: int
    passed: int
    failed: int

    @property
    def pass_rate(self) -> float:
        """Percentage of validations that passed; 100 before any validation."""
        if self.total == 0:
            return 100.0
        return self.passed / self.total * 100


class ContractValidator:
    """Validates data against contracts and counts the outcomes.

    In ``strict`` mode a pydantic model rejects fields it does not declare;
    in ``lenient`` mode they are accepted and kept on the instance. The mode
    applies to the top-level model, which is returned as an instance of a
    subclass of the contract; nested models use their own config.
    Non-model contracts (``list[Deck]``, ``dict[str, int]``) are validated
    as declared in both modes.

    Args:
        mode: ``"strict"`` or ``"lenient"``.
        include_raw_data: Append the rejected data to error messages.
        max_errors: Upper bound on reported errors per validation.
    """

    def __init__(
        self,
        mode: ValidationMode = "strict",
        include_raw_data: bool = False,
        max_errors: int = DEFAULT_MAX_ERRORS,
    ):
        if max_errors < 1:
            raise ValueError("max_errors must be at least 1")
        self.mode = mode
        self.include_raw_data = include_raw_data
        self.max_errors = max_errors
        self._total = 0
        self._passed = 0
        self._adapters: dict[tuple[Any, str], TypeAdapter] = {}

    @property
    def mode(self) -> ValidationMode:
        return self._mode

    @mode.setter
    def mode(self, value: ValidationMode) -> None:
        if value not in VALIDATION_MODES:
            raise ValueError(f"Unknown validation mode: {value!r}")
        self._mode = value

    def validate(self, schema: type[T] | Any, data: Any, context: str | None = None) -> T:
        """Return ``data`` validated against ``schema``.

        Raises:
            ContractValidationError: If the data does not match.
        """
        self._total += 1
        try:
            result = self._adapter(schema).validate_python(data)
        except ValidationError as e:
            log.debug(f"Contract validation failed for {context or 'data'}: {e.error_count()} error(s)")
            raise ContractValidationError.from_validation_error(
                e,
                context=context,
                max_errors=self.max_errors,
                raw_data=data if self.include_raw_data else None,
            ) from e
        self._passed += 1
        return result

    def safe_parse(self, schema: type[T] | Any, data: Any) -> SafeParseResult[T]:
        """Like ``validate`` but returns the outcome instead of raising."""
        try:
            value = self.validate(schema, data)
        except ContractValidationError as e:
            return SafeParseResult(success=False, errors=e.errors, validation_error=e.validation_error)
        return SafeParseResult(success=True, data=value)

    def assert_valid(self, schema: type[T] | Any, data: Any, context: str | None = None) -> None:
        self.validate(schema, data, context)

    def get_stats(self) -> ValidationStats:
        return ValidationStats(total=self._total, passed=self._passed, failed=self._total - self._passed)

    def reset(self) -> None:
        self._total = 0
        self._passed = 0

    def _adapter(self, schema: Any) -> TypeAdapter:
        key = (schema, self._mode)
        adapter = self._adapters.get(key)
        if adapter is None:
            adapter = TypeAdapter(_apply_mode(schema, self._mode))
            self._adapters[key] = adapter
        return adapter


def _apply_mode(schema: Any, mode: ValidationMode) -> Any:
    if not (isinstance(schema, type) and issubclass(schema, BaseModel)):
        return schema

    class Contract(schema):  # type: ignore[valid-type, misc]
        model_config = ConfigDict(extra="forbid" if mode == "strict" else "allow")

    Contract.__name__ = schema.__name__
    Contract.__qualname__ = schema.__qualname__
    return Contract


def _response_context(response: httpx.Response) -> str:
    return f"{response.url} ({response.status_code})"


def expect_contract_valid(
    response: httpx.Response,
    schema: type[T] | Any,
    validator: ContractValidator | None = None,
) -> T:
    """Validate the JSON body of ``response``, raising on any mismatch.

    Raises:
        ContractValidationError: If the body is not JSON or does not match.
    """
    validator = validator or ContractValidator()
    context = _response_context(response)
    try:
        data = response.json()
    except ValueError:
        raise ContractValidationError([f"[root]: {NOT_JSON_MESSAGE}"], [""], context=context)
    return validator.validate(schema, data, context)


def safe_contract_parse(
    response: httpx.Response,
    schema: type[T] | Any,
    validator: ContractValidator | None = None,
) -> SafeParseResult[T]:
    validator = validator or ContractValidator()
    context = _response_context(response)
    try:
        data = response.json()
    except ValueError:
        return SafeParseResult(success=False, errors=[NOT_JSON_MESSAGE], context=context)
    result = validator.safe_parse(schema, data)
    result.context = context
    return result


def create_schema_assertion(
    schema: type[T] | Any,
    validator: ContractValidator | None = None,
) -> Callable[[httpx.Response], T]:
    """Bind ``schema`` into a one-argument response check."""

    def assert_response(response: httpx.Response) -> T:
        return expect_contract_valid(response, schema, validator)

    return assert_response
