"""Allocation — распределение капитала, сверка и оценка фонда.

- calculator: капитал × веса → raw-количества и доли на share
- verifier: ожидаемые количества против наблюдаемых балансов
- valuation: NAV, стоимость доли, превью инвестиций и погашений
"""

from .calculator import (
    Allocation,
    AllocationLine,
    PreconditionError,
    PreconditionKind,
    allocate,
    allocate_asset,
)
from .valuation import (
    MANAGEMENT_FEE_BPS_DEFAULT,
    FundValuation,
    RedemptionLine,
    RedemptionPreview,
    investment_preview,
    net_asset_value,
    redemption_preview,
    share_value,
    value_fund,
)
from .verifier import (
    Anomaly,
    ConsistencyVerifier,
    VerificationReport,
    VerifierConfig,
    anomalous,
    verify,
)

__all__ = [
    "Allocation",
    "AllocationLine",
    "PreconditionError",
    "PreconditionKind",
    "allocate",
    "allocate_asset",
    "Anomaly",
    "ConsistencyVerifier",
    "VerificationReport",
    "VerifierConfig",
    "anomalous",
    "verify",
    "MANAGEMENT_FEE_BPS_DEFAULT",
    "FundValuation",
    "RedemptionLine",
    "RedemptionPreview",
    "investment_preview",
    "net_asset_value",
    "redemption_preview",
    "share_value",
    "value_fund",
]
