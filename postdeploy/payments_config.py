"""
Payments configuration

Fee parameters for the Payments contract, one set per environment. All fees
are expressed in basis points (100 = 1%, 10000 = 100%).
"""

from dataclasses import dataclass, field
from typing import Dict, List, Tuple

from .environments import Environment
from .errors import ConfigInvalid

BASIS_POINTS_DENOMINATOR = 10000


@dataclass(frozen=True)
class MembershipFee:
    membership_id: int
    seller_fee_basis_points: int
    buyer_fee_basis_points: int


@dataclass(frozen=True)
class FeeConfig:
    treasury_address: str
    fiat_fee_basis_points: int
    membership_fees: Tuple[MembershipFee, ...] = field(default_factory=tuple)


DEFAULT_PAYMENTS_CONFIG = FeeConfig(
    treasury_address="0xd6ef21b20D3Bb4012808695c96A60f6032e14FB6",
    fiat_fee_basis_points=300,
    membership_fees=(
        MembershipFee(membership_id=0, seller_fee_basis_points=600, buyer_fee_basis_points=400),
        MembershipFee(membership_id=1, seller_fee_basis_points=100, buyer_fee_basis_points=100),
    ),
)

TESTNET_PAYMENTS_CONFIG = FeeConfig(
    treasury_address="0x45a0744065e5455CaAC18aACB99bBB64154F8cfb",
    fiat_fee_basis_points=300,
    membership_fees=(
        MembershipFee(membership_id=0, seller_fee_basis_points=0, buyer_fee_basis_points=0),
        MembershipFee(membership_id=1, seller_fee_basis_points=150, buyer_fee_basis_points=500),
    ),
)

# Treasury is the mainnet multisig
MAINNET_PAYMENTS_CONFIG = FeeConfig(
    treasury_address="0xE8c2E3Fb20810b5b65361A54e51b8B3F30e545E9",
    fiat_fee_basis_points=250,
    membership_fees=(
        MembershipFee(membership_id=0, seller_fee_basis_points=0, buyer_fee_basis_points=0),
        MembershipFee(membership_id=1, seller_fee_basis_points=150, buyer_fee_basis_points=500),
    ),
)

_PAYMENTS_CONFIGS: Dict[Environment, FeeConfig] = {
    Environment.LOCAL: DEFAULT_PAYMENTS_CONFIG,
    Environment.TESTNET: TESTNET_PAYMENTS_CONFIG,
    Environment.MAINNET: MAINNET_PAYMENTS_CONFIG,
}


def get_payments_config(environment: Environment) -> FeeConfig:
    """Return the fee configuration for an environment"""
    return _PAYMENTS_CONFIGS[environment]


def as_percent(basis_points: int) -> float:
    return basis_points * 100 / BASIS_POINTS_DENOMINATOR


def fee_summary(config: FeeConfig) -> Dict[str, float]:
    """
    Summarize membership fees for transparency before deployment

    Returns:
        Highest and total seller/buyer fees, as percentages
    """
    seller = [fee.seller_fee_basis_points for fee in config.membership_fees]
    buyer = [fee.buyer_fee_basis_points for fee in config.membership_fees]
    return {
        'highest_seller_fee': as_percent(max(seller, default=0)),
        'highest_buyer_fee': as_percent(max(buyer, default=0)),
        'total_seller_fees': as_percent(sum(seller)),
        'total_buyer_fees': as_percent(sum(buyer)),
    }


def describe(config: FeeConfig) -> List[str]:
    """Human readable lines describing a fee configuration"""
    lines = [
        f"Treasury Address: {config.treasury_address}",
        f"Fiat Fee Percentage: {config.fiat_fee_basis_points} basis points "
        f"({as_percent(config.fiat_fee_basis_points):g}%)",
        "Membership Fees:",
    ]
    for fee in config.membership_fees:
        lines.append(
            f"  ID {fee.membership_id}: Seller {as_percent(fee.seller_fee_basis_points):g}%, "
            f"Buyer {as_percent(fee.buyer_fee_basis_points):g}%"
        )
    return lines


def membership_fees_json(config: FeeConfig) -> List[Dict[str, int]]:
    """Membership fees in the camelCase shape the Forge scripts read"""
    return [
        {
            'membershipId': fee.membership_id,
            'sellerFee': fee.seller_fee_basis_points,
            'buyerFee': fee.buyer_fee_basis_points,
        }
        for fee in config.membership_fees
    ]


def _integer(value, key: str) -> int:
    # bool is an int subclass
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigInvalid([f"{key} must be an integer, got {value!r}"])
    return value


def fee_config_from_dict(data: Dict) -> FeeConfig:
    """
    Build a custom FeeConfig from the camelCase JSON shape used by the deploy scripts

    Fees are taken as given; fractional, string or boolean values raise
    ConfigInvalid rather than being rounded into range.
    """
    return FeeConfig(
        treasury_address=data['treasuryAddress'],
        fiat_fee_basis_points=_integer(data['fiatFeePercentage'], 'fiatFeePercentage'),
        membership_fees=tuple(
            MembershipFee(
                membership_id=_integer(fee['membershipId'], 'membershipId'),
                seller_fee_basis_points=_integer(fee['sellerFee'], 'sellerFee'),
                buyer_fee_basis_points=_integer(fee['buyerFee'], 'buyerFee'),
            )
            for fee in data.get('membershipFees', [])
        ),
    )
