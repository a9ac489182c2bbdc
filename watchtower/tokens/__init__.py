"""Token parsing, claim validation and signature checks."""

from watchtower.tokens.parser import parse
from watchtower.tokens.signature import verify_signature
from watchtower.tokens.validator import check_claims, check_structure

__all__ = [
    "check_claims",
    "check_structure",
    "parse",
    "verify_signature",
]
