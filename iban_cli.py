"""Command-line IBAN tool: validate, format and calculate check digits."""
from __future__ import annotations

import argparse
import sys

from iban_utils import (
    IbanError,
    compute_check_digits,
    format_iban,
    validate_checksum,
    validate_iban,
)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="iban-tool", description="Romanian IBAN validation tool")
    sub = parser.add_subparsers(dest="command", required=True)

    validate = sub.add_parser("validate", help="Validate a complete IBAN")
    validate.add_argument("iban")

    fmt = sub.add_parser("format", help="Format an IBAN with spaces")
    fmt.add_argument("iban")

    calculate = sub.add_parser("calculate", help="Calculate check digits for IBAN parts")
    calculate.add_argument("country")
    calculate.add_argument("bank")
    calculate.add_argument("account")

    return parser


def _validate(iban: str) -> int:
    result = validate_iban(iban)
    if not result.is_valid:
        print(f"Invalid IBAN: {result.error}")
        return 1

    print("Valid IBAN")
    print(f"Formatted: {result.formatted}")
    print(f"Bank Code: {result.bank_code}")
    if result.warning:
        print(f"Warning: {result.warning}")
    return 0


def _calculate(country: str, bank: str, account: str) -> int:
    country, bank, account = country.upper(), bank.upper(), account.upper()
    try:
        check_digits = compute_check_digits(country, bank, account)
    except IbanError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    iban = f"{country}{check_digits}{bank}{account}"
    print(f"Check digits: {check_digits}")
    print(f"Complete IBAN: {iban}")
    print(f"Formatted: {format_iban(iban)}")
    if validate_checksum(iban):
        print("Checksum verification passed")
        return 0
    print("Checksum verification failed")
    return 1


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    if args.command == "validate":
        return _validate(args.iban)
    if args.command == "format":
        print(format_iban(args.iban))
        return 0
    return _calculate(args.country, args.bank, args.account)


if __name__ == "__main__":
    sys.exit(main())
