# Overview: Pure tax arithmetic; no database access.

"""
Tax calculation.

All amounts are integer cents, all rates integer basis points
(10000 bps == 100%). Results are rounded half-up to the cent.

Slab evaluation (default and user-defined tables use the same algorithm):
slabs are sorted by min_income; the first slab with
min_income <= income <= max_income (max_income None == unbounded) applies,
and tax = fixed_amount + rate * (income - min_income). Income matching no
slab is taxed at 0.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from ..errors import ValidationError
from ..validation import coerce_int, require_rate_bps


@dataclass(frozen=True)
class TaxSlab:
    min_income_cents: int
    max_income_cents: int | None
    fixed_amount_cents: int
    rate_bps: int
    description: str = ""

    def applies_to(self, income_cents: int) -> bool:
        if income_cents < self.min_income_cents:
            return False
        return self.max_income_cents is None or income_cents <= self.max_income_cents

    def to_dict(self) -> dict:
        return {
            "min_income_cents": self.min_income_cents,
            "max_income_cents": self.max_income_cents,
            "fixed_amount_cents": self.fixed_amount_cents,
            "rate_bps": self.rate_bps,
            "description": self.description,
        }


def _slab(low: int, high: int | None, fixed: int, rate_bps: int, description: str) -> TaxSlab:
    # Table below is written in whole currency units; store cents.
    return TaxSlab(
        min_income_cents=low * 100,
        max_income_cents=None if high is None else high * 100,
        fixed_amount_cents=fixed * 100,
        rate_bps=rate_bps,
        description=description,
    )


DEFAULT_INCOME_TAX_SLABS: tuple[TaxSlab, ...] = (
    _slab(0, 600_000, 0, 0, "Up to 600,000: 0%"),
    _slab(600_000, 1_200_000, 0, 500, "600,001 - 1,200,000: 5% of amount exceeding 600,000"),
    _slab(1_200_000, 2_400_000, 30_000, 1000, "1,200,001 - 2,400,000: 30,000 + 10% exceeding 1,200,000"),
    _slab(2_400_000, 3_600_000, 150_000, 1500, "2,400,001 - 3,600,000: 150,000 + 15% exceeding 2,400,000"),
    _slab(3_600_000, 6_000_000, 330_000, 2000, "3,600,001 - 6,000,000: 330,000 + 20% exceeding 3,600,000"),
    _slab(6_000_000, 12_000_000, 810_000, 2500, "6,000,001 - 12,000,000: 810,000 + 25% exceeding 6,000,000"),
    _slab(12_000_000, None, 2_310_000, 3000, "Above 12,000,000: 2,310,000 + 30% exceeding 12,000,000"),
)

DEFAULT_ZAKAT_RATE_BPS = 250


@dataclass(frozen=True)
class TaxConfig:
    """
    Immutable snapshot of a user's tax settings.

    Built once from TaxSettings (tax_service.load_tax_config) and passed into
    the calculators so a calculation never re-reads settings midway.
    """
    use_default_tax_slabs: bool = True
    custom_tax_slabs: tuple[TaxSlab, ...] = field(default_factory=tuple)
    zakat_rate_bps: int = DEFAULT_ZAKAT_RATE_BPS

    @property
    def income_tax_slabs(self) -> tuple[TaxSlab, ...]:
        if not self.use_default_tax_slabs and self.custom_tax_slabs:
            return self.custom_tax_slabs
        return DEFAULT_INCOME_TAX_SLABS


def _amount(value, name: str) -> int:
    # Incomes and assets routinely exceed the per-transaction cap, so only
    # integer and sign are checked here.
    if value is None:
        raise ValidationError(f"{name} is required")
    cents = coerce_int(value, name)
    if cents < 0:
        raise ValidationError(f"{name} must be >= 0")
    return cents


def apply_rate(amount_cents: int, rate_bps: int) -> int:
    """amount * rate, rounded half-up to the cent."""
    return (amount_cents * rate_bps + 5000) // 10000


def effective_rate_bps(tax_cents: int, base_cents: int) -> int:
    if base_cents <= 0:
        return 0
    return (tax_cents * 10000 * 2 + base_cents) // (2 * base_cents)


def parse_slabs(raw: Iterable[dict] | None) -> tuple[TaxSlab, ...]:
    """Validate user-supplied slab dicts and return them sorted by min income."""
    if raw is None:
        return ()
    if not isinstance(raw, (list, tuple)):
        raise ValidationError("custom_tax_slabs must be a list")

    slabs = []
    for index, item in enumerate(raw):
        if not isinstance(item, dict):
            raise ValidationError(f"custom_tax_slabs[{index}] must be an object")
        low = _amount(item.get("min_income_cents"), f"custom_tax_slabs[{index}].min_income_cents")
        high = item.get("max_income_cents")
        if high is not None:
            high = coerce_int(high, f"custom_tax_slabs[{index}].max_income_cents")
            if high < low:
                raise ValidationError(f"custom_tax_slabs[{index}].max_income_cents must be >= min_income_cents")
        slabs.append(TaxSlab(
            min_income_cents=low,
            max_income_cents=high,
            fixed_amount_cents=_amount(item.get("fixed_amount_cents", 0), f"custom_tax_slabs[{index}].fixed_amount_cents"),
            rate_bps=require_rate_bps(item.get("rate_bps", 0), f"custom_tax_slabs[{index}].rate_bps"),
            description=str(item.get("description") or ""),
        ))
    return tuple(sorted(slabs, key=lambda s: s.min_income_cents))


def calculate_slab_tax(income_cents: int, slabs: Iterable[TaxSlab]) -> tuple[int, TaxSlab | None]:
    """Evaluate a slab table; returns (tax_cents, applied_slab)."""
    if income_cents <= 0:
        return 0, None
    for slab in sorted(slabs, key=lambda s: s.min_income_cents):
        if slab.applies_to(income_cents):
            tax = slab.fixed_amount_cents + apply_rate(income_cents - slab.min_income_cents, slab.rate_bps)
            return tax, slab
    return 0, None


def calculate_income_tax(income_cents: int, config: TaxConfig | None = None) -> dict:
    config = config or TaxConfig()
    income = _amount(income_cents, "income_cents")
    tax, slab = calculate_slab_tax(income, config.income_tax_slabs)
    return {
        "income_cents": income,
        "tax_amount_cents": tax,
        "effective_rate_bps": effective_rate_bps(tax, income),
        "slab": slab.to_dict() if slab else None,
        "uses_custom_slabs": config.income_tax_slabs is not DEFAULT_INCOME_TAX_SLABS,
    }


def calculate_zakat(net_assets_cents: int, config: TaxConfig | None = None, rate_bps: int | None = None) -> dict:
    config = config or TaxConfig()
    assets = _amount(net_assets_cents, "net_assets_cents")
    rate = config.zakat_rate_bps if rate_bps is None else require_rate_bps(rate_bps, "rate_bps")
    return {
        "net_assets_cents": assets,
        "zakat_rate_bps": rate,
        "zakat_amount_cents": apply_rate(assets, rate),
    }

