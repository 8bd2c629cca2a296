"""
Fee configuration validation

Every rule is evaluated independently so that all problems are reported in
one pass. Nothing here performs I/O or mutates its input.
"""

from dataclasses import dataclass
from typing import List, Tuple

from .environments import is_zero_address
from .payments_config import BASIS_POINTS_DENOMINATOR, FeeConfig


@dataclass(frozen=True)
class ValidationResult:
    """Valid when there are no reasons, Invalid otherwise"""
    reasons: Tuple[str, ...] = ()

    @property
    def is_valid(self) -> bool:
        return not self.reasons


VALID = ValidationResult()


def invalid(reasons: List[str]) -> ValidationResult:
    return ValidationResult(tuple(reasons))


def validate(config: FeeConfig) -> ValidationResult:
    """
    Validate a payments fee configuration

    Args:
        config: Fee configuration to check

    Returns:
        VALID, or a result carrying one reason per violated rule in rule order
    """
    reasons = []

    if is_zero_address(config.treasury_address):
        reasons.append("Invalid treasury address: must not be the zero address")

    if config.fiat_fee_basis_points > BASIS_POINTS_DENOMINATOR:
        reasons.append(
            f"Fiat fee percentage cannot exceed 100% ({BASIS_POINTS_DENOMINATOR} basis points), "
            f"got {config.fiat_fee_basis_points}"
        )

    for fee in config.membership_fees:
        if fee.seller_fee_basis_points > BASIS_POINTS_DENOMINATOR:
            reasons.append(
                f"Membership {fee.membership_id} seller fee cannot exceed 100%, "
                f"got {fee.seller_fee_basis_points} basis points"
            )
        if fee.buyer_fee_basis_points > BASIS_POINTS_DENOMINATOR:
            reasons.append(
                f"Membership {fee.membership_id} buyer fee cannot exceed 100%, "
                f"got {fee.buyer_fee_basis_points} basis points"
            )

    return invalid(reasons) if reasons else VALID
