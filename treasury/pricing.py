"""
pricing.py - Piecewise-linear bonding curve

Maps cumulative funded volume to a unit price:

    steps = total_volume // step_wei
    price = base_price + delta(steps)

where delta is additive over three segments with slopes m1 >= m2 >= m3 >= 0:

    steps <= k1:        steps * m1
    k1 < steps <= k2:   k1*m1 + (steps - k1)*m2
    steps > k2:         k1*m1 + (k2 - k1)*m2 + (steps - k2)*m3

Because slopes never increase and volume never decreases, the price is
non-decreasing over the lifetime of the system.

Classes:
- CurveParams: Immutable, validated pricing parameters
- BondingCurve: Current parameters plus last quoted price
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Tuple

from .core import (
    PREC, MAX_SLOPE,
    InvalidCurveParams, StepsCapExceeded, ZeroShares, PurchaseCapExceeded,
)


@dataclass(frozen=True, slots=True)
class CurveParams:
    """
    Bonding curve parameters.

    Attributes:
        base_price: Price at zero volume (value per PREC shares)
        step_wei: Volume quantum defining one step
        k1: First breakpoint, in steps
        k2: Second breakpoint, in steps
        m1: Slope up to k1 (value added per step)
        m2: Slope between k1 and k2
        m3: Slope beyond k2
        max_curve_steps: Hard ceiling on the step count
        max_purchase_shares: Per-operation share cap (fixed-point)
    """
    base_price: int
    step_wei: int
    k1: int = 0
    k2: int = 0
    m1: int = 0
    m2: int = 0
    m3: int = 0
    max_curve_steps: int = 1_000_000
    max_purchase_shares: int = 10 ** 30

    def validate(self, require_breakpoints: bool = True) -> None:
        """
        Check the parameters for a configuration update.

        Args:
            require_breakpoints: Reject unconfigured breakpoints. Initial
                                 parameters may leave k1 == k2 == 0 for a
                                 flat curve at base_price.

        Raises:
            InvalidCurveParams: On the first violated constraint
        """
        for name in ("base_price", "step_wei", "k1", "k2", "m1", "m2", "m3",
                     "max_curve_steps", "max_purchase_shares"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise InvalidCurveParams(f"{name} must be int, got {type(value).__name__}")
            if value < 0:
                raise InvalidCurveParams(f"{name} must be non-negative, got {value}")
        if self.base_price == 0:
            raise InvalidCurveParams("base_price must be positive")
        if self.step_wei == 0:
            raise InvalidCurveParams("step_wei must be positive")
        flat = self.k1 == 0 and self.k2 == 0
        if (require_breakpoints or not flat) and self.k1 >= self.k2:
            raise InvalidCurveParams(f"breakpoints must satisfy k1 < k2, got {self.k1} >= {self.k2}")
        for name in ("m1", "m2", "m3"):
            if getattr(self, name) > MAX_SLOPE:
                raise InvalidCurveParams(f"{name} exceeds slope ceiling {MAX_SLOPE}")
        if self.m1 < self.m2 or self.m2 < self.m3:
            raise InvalidCurveParams(
                f"slopes must be non-increasing, got m1={self.m1} m2={self.m2} m3={self.m3}"
            )
        if self.max_curve_steps == 0:
            raise InvalidCurveParams("max_curve_steps must be positive")
        if self.max_purchase_shares == 0:
            raise InvalidCurveParams("max_purchase_shares must be positive")

    @property
    def breakpoints_configured(self) -> bool:
        return not (self.k1 == 0 or self.k2 == 0 or self.k2 <= self.k1)


def curve_steps(params: CurveParams, total_volume: int) -> int:
    """
    Return the step count for a volume, enforcing the step ceiling.

    Raises:
        StepsCapExceeded: If steps > max_curve_steps
    """
    steps = total_volume // params.step_wei
    if steps > params.max_curve_steps:
        raise StepsCapExceeded(
            f"curve steps {steps} exceed max_curve_steps {params.max_curve_steps}"
        )
    return steps


def curve_delta(params: CurveParams, steps: int) -> int:
    """Additive price delta over base_price for a step count."""
    if not params.breakpoints_configured:
        return 0
    k1, k2 = params.k1, params.k2
    if steps <= k1:
        return steps * params.m1
    if steps <= k2:
        return k1 * params.m1 + (steps - k1) * params.m2
    return k1 * params.m1 + (k2 - k1) * params.m2 + (steps - k2) * params.m3


def price_at(params: CurveParams, total_volume: int) -> int:
    """
    Unit price at a cumulative volume.

    Pure function of (params, total_volume). The step ceiling is checked on
    every call since the step count is state-dependent.

    Example:
        params = CurveParams(base_price=10**15, step_wei=10**17,
                             k1=1000, k2=10000, m1=2*10**14, m2=10**14, m3=2*10**13)
        price_at(params, 0)        # 10**15
        price_at(params, 10**17)   # 10**15 + 2*10**14
    """
    steps = curve_steps(params, total_volume)
    return params.base_price + curve_delta(params, steps)


def shares_for(value: int, price: int) -> int:
    """Shares (fixed-point) purchasable with value at price."""
    return value * PREC // price


class BondingCurve:
    """
    Holder of the active curve parameters and the last quoted price.

    Parameter updates are all-or-nothing: the replacement is fully validated
    before it is swapped in, so a rejected update leaves the curve untouched.
    """

    def __init__(self, params: CurveParams):
        """
        Create a curve.

        Initial parameters may leave both breakpoints at zero (flat price);
        every later update must configure them.
        """
        params.validate(require_breakpoints=False)
        self.params = params
        self.last_price: int = 0

    def price(self, total_volume: int) -> int:
        """Current unit price for total_volume."""
        return price_at(self.params, total_volume)

    def quote(self, value: int, total_volume: int) -> Tuple[int, int]:
        """
        Price a purchase without recording it.

        Returns:
            (shares, price)

        Raises:
            StepsCapExceeded: Curve ceiling reached
            ZeroShares: value too small to buy any shares
            PurchaseCapExceeded: shares above max_purchase_shares
        """
        price = self.price(total_volume)
        shares = shares_for(value, price)
        if shares == 0:
            raise ZeroShares(f"value {value} buys zero shares at price {price}")
        if shares > self.params.max_purchase_shares:
            raise PurchaseCapExceeded(
                f"{shares} shares exceed max_purchase_shares {self.params.max_purchase_shares}"
            )
        return shares, price

    def record_price(self, price: int) -> None:
        self.last_price = price

    def update_params(self, params: CurveParams) -> CurveParams:
        """
        Replace the curve parameters.

        Returns:
            The previous parameters

        Raises:
            InvalidCurveParams: If params fail validation (nothing changes)
        """
        params.validate()
        previous = self.params
        self.params = params
        return previous

    def __repr__(self):
        p = self.params
        return (f"BondingCurve(base={p.base_price}, step={p.step_wei}, "
                f"k=({p.k1},{p.k2}), m=({p.m1},{p.m2},{p.m3}), last={self.last_price})")
