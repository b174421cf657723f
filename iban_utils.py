# iban_utils.py
"""Romanian IBAN cleaning, formatting and MOD 97-10 validation."""
from __future__ import annotations

import re
from dataclasses import asdict, dataclass
from typing import Optional

IBAN_LENGTH = 24
COUNTRY_CODE = "RO"

# A=10 ... Z=35
LETTER_VALUES = {chr(code): str(code - 55) for code in range(ord("A"), ord("Z") + 1)}

# BIC prefixes of banks operating in Romania
KNOWN_BANK_CODES = frozenset(
    {
        "RNCB",
        "BRDE",
        "BTRL",
        "INGB",
        "RZBR",
        "BFER",
        "CECE",
        "CARP",
        "PIRB",
        "BACX",
        "OTPV",
        "CRCO",
        "FTSB",
        "ALBZ",
        "UGBI",
        "BPOS",
        "VNBC",
        "TREZ",
        "VIRL",
        "DAFB",
        "MMEB",
        "SBIU",
        "BREL",
        "PORL",
        "REVO",
    }
)

_DIGITS = frozenset("0123456789")
_SEPARATORS = re.compile(r"[\s-]+")
_CHECK_DIGITS = re.compile(r"[0-9]{2}")
_BANK_CODE = re.compile(r"[A-Z]{4}")
_ACCOUNT_ID = re.compile(r"[A-Z0-9]{16}")
_ALPHANUMERIC = re.compile(r"[A-Z0-9]*")


class IbanError(ValueError):
    """Raised when input breaks a precondition of the MOD 97-10 helpers."""


@dataclass(frozen=True)
class IbanValidation:
    is_valid: bool
    error: Optional[str] = None
    warning: Optional[str] = None
    bank_code: Optional[str] = None
    formatted: Optional[str] = None

    def to_dict(self) -> dict:
        return asdict(self)


def clean_iban(iban: str) -> str:
    """Remove whitespace and hyphens and make upper-case."""
    return _SEPARATORS.sub("", iban).upper()


def format_iban(iban: str) -> str:
    """Group a cleaned IBAN in blocks of four for display."""
    cleaned = clean_iban(iban)
    return " ".join(cleaned[i : i + 4] for i in range(0, len(cleaned), 4))


def iban_to_numeric(iban: str) -> str:
    """
    Convert IBAN letters to numbers (A=10 ... Z=35) for the MOD97 check.
    Digits pass through unchanged.
    """
    result = []
    for ch in iban:
        if ch in _DIGITS:
            result.append(ch)
        elif ch in LETTER_VALUES:
            result.append(LETTER_VALUES[ch])
        else:
            raise IbanError(f"Invalid character in IBAN: {ch!r}")
    return "".join(result)


def iban_mod97(numeric_iban: str) -> int:
    """
    Compute numeric_iban % 97 using the official IBAN iterative algorithm.
    numeric_iban must be a string of digits.
    """
    remainder = 0
    for ch in numeric_iban:
        remainder = (remainder * 10 + int(ch)) % 97
    return remainder


def _rearranged_remainder(iban: str) -> int:
    # Rearrange: move first 4 chars to the end
    rearranged = iban[4:] + iban[:4]
    return iban_mod97(iban_to_numeric(rearranged))


def validate_structure(iban: str) -> IbanValidation:
    """Check the Romanian layout, reporting only the first rule that fails."""
    cleaned = clean_iban(iban)

    if len(cleaned) != IBAN_LENGTH:
        return IbanValidation(
            False, f"IBAN must be {IBAN_LENGTH} characters long (current: {len(cleaned)})"
        )
    if not cleaned.startswith(COUNTRY_CODE):
        return IbanValidation(False, "IBAN must start with RO for Romanian accounts")
    if not _CHECK_DIGITS.fullmatch(cleaned[2:4]):
        return IbanValidation(False, "Check digits (positions 3-4) must be numeric")
    if not _BANK_CODE.fullmatch(cleaned[4:8]):
        return IbanValidation(False, "Bank code (positions 5-8) must be 4 uppercase letters")
    if not _ACCOUNT_ID.fullmatch(cleaned[8:]):
        return IbanValidation(False, "Account identifier must be 16 alphanumeric characters")

    return IbanValidation(True)


def compute_check_digits(country_code: str, bank_code: str, account_id: str) -> str:
    """
    Compute the two ISO 7064 MOD 97-10 check digits for the given parts.

    Raises IbanError if a part does not have the expected shape; that is a
    caller bug, not a validation outcome.
    """
    if not re.fullmatch(r"[A-Z]{2}", country_code):
        raise IbanError(f"Country code must be 2 uppercase letters, got {country_code!r}")
    if not _BANK_CODE.fullmatch(bank_code):
        raise IbanError(f"Bank code must be 4 uppercase letters, got {bank_code!r}")
    if not _ACCOUNT_ID.fullmatch(account_id):
        raise IbanError(f"Account identifier must be 16 alphanumeric characters, got {account_id!r}")

    remainder = _rearranged_remainder(f"{country_code}00{bank_code}{account_id}")
    return f"{98 - remainder:02d}"


def validate_checksum(iban: str) -> bool:
    """A well-formed IBAN leaves a remainder of exactly 1."""
    try:
        return _rearranged_remainder(clean_iban(iban)) == 1
    except IbanError:
        return False


def validate_iban(iban: Optional[str]) -> IbanValidation:
    """Full validation: presence, structure, checksum, then known-bank advisory."""
    if not iban:
        return IbanValidation(False, "IBAN is required")

    cleaned = clean_iban(iban)

    structure = validate_structure(cleaned)
    if not structure.is_valid:
        return structure

    if not validate_checksum(cleaned):
        return IbanValidation(False, "Invalid IBAN checksum")

    bank_code = cleaned[4:8]
    warning = None
    if bank_code not in KNOWN_BANK_CODES:
        warning = f"Bank code {bank_code} is not in our database of known Romanian banks"

    return IbanValidation(
        True,
        warning=warning,
        bank_code=bank_code,
        formatted=format_iban(cleaned),
    )


def validate_iban_realtime(partial: Optional[str]) -> IbanValidation:
    """
    Validate an IBAN while it is being typed.

    Only the positions already entered are checked, so an incomplete but
    plausible prefix is valid. Empty input is valid to avoid flashing an
    error before the user starts typing. A complete IBAN gets the full
    validation, checksum included.
    """
    if not partial:
        return IbanValidation(True)

    cleaned = clean_iban(partial)
    length = len(cleaned)

    if length > IBAN_LENGTH:
        return IbanValidation(False, f"IBAN cannot exceed {IBAN_LENGTH} characters")
    if length >= 2 and not cleaned.startswith(COUNTRY_CODE):
        return IbanValidation(False, "IBAN must start with RO")
    if length >= 4 and not _CHECK_DIGITS.fullmatch(cleaned[2:4]):
        return IbanValidation(False, "Check digits must be numeric")
    if length >= 8 and not _BANK_CODE.fullmatch(cleaned[4:8]):
        return IbanValidation(False, "Bank code must be 4 uppercase letters")
    if length > 8 and not _ALPHANUMERIC.fullmatch(cleaned[8:]):
        return IbanValidation(False, "Account identifier can only contain letters and numbers")

    if length == IBAN_LENGTH:
        return validate_iban(cleaned)

    return IbanValidation(True)
