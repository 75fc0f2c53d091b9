from .validator import (
    ContractValidationError,
    ContractValidator,
    SafeParseResult,
    ValidationMode,
    ValidationStats,
    create_schema_assertion,
    expect_contract_valid,
    safe_contract_parse,
)

__all__ = [
    "ContractValidationError",
    "ContractValidator",
    "SafeParseResult",
    "ValidationMode",
    "ValidationStats",
    "create_schema_assertion",
    "expect_contract_valid",
    "safe_contract_parse",
]
