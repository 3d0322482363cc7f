"""Dynamic fee engine (EMA toward a signal-shifted baseline).

Dispatch-table state machine:
  guard → update → invariant check.

Two actions:
  - observe(signal_bps): blend the current fee toward `baseline + signal`
  - configure(bounds, baseline, alpha): reconfigure the fee curve

Key properties:
  - Pure: the next fee depends only on (previous fee, signal, alpha, bounds)
  - Clamped: fee_min_bps <= current_fee_bps <= fee_max_bps after every step
  - Zero signal decays the fee toward baseline_fee_bps

The signal is an externally metered scalar (volume, volatility, ...); this
module does not derive it.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum, unique

from ..errors import InvalidFeeConfig
from ..kernels.python.fixed_point import mul_div
from ..state.fees import ALPHA_SCALE, FeeState, validate_fee_bounds


@unique
class FeeAction(Enum):
    """Actions for the dynamic fee engine."""
    OBSERVE = "observe"
    CONFIGURE = "configure"


@dataclass(frozen=True)
class FeeActionParams:
    """Parameters for a fee engine action."""

    action: FeeAction

    # observe params
    signal_bps: int = 0

    # configure params
    new_fee_min_bps: int = 0
    new_fee_max_bps: int = 0
    new_baseline_fee_bps: int = 0
    new_ema_alpha_bps: int = 0


@dataclass(frozen=True)
class FeeStepResult:
    """Result of a single fee engine step."""

    accepted: bool
    state: FeeState | None = None
    rejection: str | None = None


def clamp(value: int, lo: int, hi: int) -> int:
    return max(lo, min(hi, value))


def next_fee_bps(
    *,
    prev_fee_bps: int,
    signal_bps: int,
    ema_alpha_bps: int,
    fee_min_bps: int,
    fee_max_bps: int,
    baseline_fee_bps: int,
) -> int:
    """
    One EMA step:

        target  = clamp(baseline + signal, fee_min, fee_max)
        blended = floor((alpha * target + (SCALE - alpha) * prev) / SCALE)
        fee     = clamp(blended, fee_min, fee_max)
    """
    if not isinstance(signal_bps, int) or isinstance(signal_bps, bool):
        raise TypeError("signal_bps must be an int")
    if fee_min_bps > fee_max_bps:
        raise InvalidFeeConfig(f"fee_min_bps ({fee_min_bps}) > fee_max_bps ({fee_max_bps})")
    if not (0 < ema_alpha_bps <= ALPHA_SCALE):
        raise InvalidFeeConfig(f"ema_alpha_bps must be in (0, {ALPHA_SCALE}]: {ema_alpha_bps}")

    target = clamp(baseline_fee_bps + signal_bps, fee_min_bps, fee_max_bps)
    prev = clamp(prev_fee_bps, fee_min_bps, fee_max_bps)
    weighted = target * ema_alpha_bps + prev * (ALPHA_SCALE - ema_alpha_bps)
    blended = mul_div(weighted, 1, ALPHA_SCALE)
    return clamp(blended, fee_min_bps, fee_max_bps)


# ---------------------------------------------------------------------------
# Guards
# ---------------------------------------------------------------------------

def _guard_observe(state: FeeState, params: FeeActionParams) -> str | None:
    if not isinstance(params.signal_bps, int) or isinstance(params.signal_bps, bool):
        return "signal_bps must be an int"
    return None


def _guard_configure(state: FeeState, params: FeeActionParams) -> str | None:
    try:
        validate_fee_bounds(
            fee_min_bps=params.new_fee_min_bps,
            fee_max_bps=params.new_fee_max_bps,
            baseline_fee_bps=params.new_baseline_fee_bps,
            ema_alpha_bps=params.new_ema_alpha_bps,
        )
    except InvalidFeeConfig as exc:
        return str(exc)
    return None


# ---------------------------------------------------------------------------
# Updates
# ---------------------------------------------------------------------------

def _update_observe(state: FeeState, params: FeeActionParams) -> FeeState:
    fee = next_fee_bps(
        prev_fee_bps=state.current_fee_bps,
        signal_bps=params.signal_bps,
        ema_alpha_bps=state.ema_alpha_bps,
        fee_min_bps=state.fee_min_bps,
        fee_max_bps=state.fee_max_bps,
        baseline_fee_bps=state.baseline_fee_bps,
    )
    return replace(state, current_fee_bps=fee)


def _update_configure(state: FeeState, params: FeeActionParams) -> FeeState:
    # The live fee is carried over, re-clamped into the new bounds.
    return FeeState(
        current_fee_bps=clamp(state.current_fee_bps, params.new_fee_min_bps, params.new_fee_max_bps),
        fee_min_bps=params.new_fee_min_bps,
        fee_max_bps=params.new_fee_max_bps,
        baseline_fee_bps=params.new_baseline_fee_bps,
        ema_alpha_bps=params.new_ema_alpha_bps,
    )


# ---------------------------------------------------------------------------
# Invariant check
# ---------------------------------------------------------------------------

def _check_invariants(state: FeeState) -> list[str]:
    violations: list[str] = []
    if not (state.fee_min_bps <= state.current_fee_bps <= state.fee_max_bps):
        violations.append("fee_bounded")
    if not (state.fee_min_bps <= state.baseline_fee_bps <= state.fee_max_bps):
        violations.append("baseline_bounded")
    return violations


# ---------------------------------------------------------------------------
# Dispatch table
# ---------------------------------------------------------------------------

_DISPATCH = {
    FeeAction.OBSERVE: (_guard_observe, _update_observe),
    FeeAction.CONFIGURE: (_guard_configure, _update_configure),
}


def step(state: FeeState, params: FeeActionParams) -> FeeStepResult:
    """Execute one fee engine action.

    Returns FeeStepResult with accepted=True on success, or
    accepted=False with a rejection reason string.
    """
    entry = _DISPATCH.get(params.action)
    if entry is None:
        return FeeStepResult(accepted=False, rejection=f"unknown_action:{params.action}")

    guard_fn, update_fn = entry

    reason = guard_fn(state, params)
    if reason is not None:
        return FeeStepResult(accepted=False, rejection=f"guard:{reason}")

    new_state = update_fn(state, params)

    violations = _check_invariants(new_state)
    if violations:
        return FeeStepResult(accepted=False, rejection=f"invariant:{','.join(violations)}")

    return FeeStepResult(accepted=True, state=new_state)


# ---------------------------------------------------------------------------
# Raising wrappers used by the ledger
# ---------------------------------------------------------------------------

def update_fee(state: FeeState, signal_bps: int = 0) -> FeeState:
    """Apply one observe step; raise instead of returning a rejection."""
    res = step(state, FeeActionParams(action=FeeAction.OBSERVE, signal_bps=signal_bps))
    if not res.accepted or res.state is None:
        raise InvalidFeeConfig(res.rejection or "fee update rejected")
    return res.state


def configure_fee(
    state: FeeState,
    *,
    fee_min_bps: int,
    fee_max_bps: int,
    baseline_fee_bps: int,
    ema_alpha_bps: int,
) -> FeeState:
    """Reconfigure the fee curve; InvalidFeeConfig on bad bounds or alpha."""
    res = step(
        state,
        FeeActionParams(
            action=FeeAction.CONFIGURE,
            new_fee_min_bps=fee_min_bps,
            new_fee_max_bps=fee_max_bps,
            new_baseline_fee_bps=baseline_fee_bps,
            new_ema_alpha_bps=ema_alpha_bps,
        ),
    )
    if not res.accepted or res.state is None:
        raise InvalidFeeConfig(res.rejection or "fee configuration rejected")
    return res.state
