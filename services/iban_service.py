"""Romanian IBAN tools for MCP."""
from __future__ import annotations

from fastmcp import FastMCP
from pydantic import BaseModel

from iban_utils import (
    IbanValidation,
    clean_iban,
    compute_check_digits,
    format_iban,
    validate_checksum,
    validate_iban,
    validate_iban_realtime,
)
from mcp_framework import log_failure, log_interaction


class IbanResult(BaseModel):
    is_valid: bool
    error: str | None = None
    warning: str | None = None
    bank_code: str | None = None
    formatted: str | None = None

    @classmethod
    def from_validation(cls, validation: IbanValidation) -> "IbanResult":
        return cls(**validation.to_dict())


class CheckDigitsResult(BaseModel):
    check_digits: str
    iban: str
    formatted: str
    checksum_valid: bool


def check_iban(iban: str | None) -> IbanResult:
    result = IbanResult.from_validation(validate_iban(iban))
    log_interaction("iban_check", {"iban": clean_iban(iban or "")}, result.model_dump())
    return result


def check_iban_realtime(partial: str | None) -> IbanResult:
    result = IbanResult.from_validation(validate_iban_realtime(partial))
    log_interaction(
        "iban_check_realtime",
        {"length": len(clean_iban(partial or ""))},
        result.model_dump(),
    )
    return result


def format_for_display(iban: str) -> dict[str, str]:
    result = {"iban": clean_iban(iban), "formatted": format_iban(iban)}
    log_interaction("iban_format", {"iban": result["iban"]}, result)
    return result


def build_iban(country_code: str, bank_code: str, account_id: str) -> CheckDigitsResult:
    """Compute check digits for the parts and assemble the full IBAN."""

    country_code, bank_code, account_id = (
        part.strip().upper() for part in (country_code, bank_code, account_id)
    )
    input_payload = {
        "country_code": country_code,
        "bank_code": bank_code,
        "account_id": account_id,
    }

    try:
        check_digits = compute_check_digits(country_code, bank_code, account_id)
    except ValueError as exc:
        log_failure("iban_check_digits", input_payload, exc)
        raise

    iban = f"{country_code}{check_digits}{bank_code}{account_id}"
    result = CheckDigitsResult(
        check_digits=check_digits,
        iban=iban,
        formatted=format_iban(iban),
        checksum_valid=validate_checksum(iban),
    )
    log_interaction("iban_check_digits", input_payload, result.model_dump())
    return result


def register_iban_service(mcp: FastMCP) -> None:
    """Register IBAN validation and formatting tools on the provided MCP instance."""

    @mcp.tool()
    def iban_check(iban: str) -> IbanResult:
        """
        Validate a Romanian IBAN: structure, MOD 97-10 checksum and known bank code.

        Spaces, hyphens and lower-case letters are accepted. An unknown bank
        code only adds a warning.
        """
        return check_iban(iban)

    @mcp.tool()
    def iban_check_realtime(partial: str) -> IbanResult:
        """Validate a partially typed IBAN, checking only the positions already entered."""
        return check_iban_realtime(partial)

    @mcp.tool()
    def iban_format(iban: str) -> dict[str, str]:
        """Return the cleaned IBAN and its display form (blocks of four)."""
        return format_for_display(iban)

    @mcp.tool()
    def iban_check_digits(country_code: str, bank_code: str, account_id: str) -> CheckDigitsResult:
        """
        Calculate the two check digits for an IBAN from its parts.

        Args:
            country_code: two letters, e.g. RO
            bank_code: four letters, e.g. BTRL
            account_id: sixteen letters or digits
        """
        return build_iban(country_code, bank_code, account_id)
