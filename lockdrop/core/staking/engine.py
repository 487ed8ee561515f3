"""Dispatch-table engine for the staking core.

``step(state, params)`` is the single entry point. It:

1. Validates parameter domains (types and upper bounds).
2. Rejects a clock that runs backwards.
3. Dispatches to the correct guard / update / effect functions.
4. Checks all invariants on the post-state.
5. Returns a ``StepResult`` (accepted or rejected with reason).

The step is pure and fail-closed: a `StakingError` raised inside an update
(e.g. a ledger `Underflow`) is reported as a rejection and the input state is
never modified.
"""

from __future__ import annotations

from typing import Callable, Optional

from .effects import (
    effect_claim_distribution,
    effect_configure_pool_asset,
    effect_lock_tokens,
    effect_release,
    effect_unlock_tokens,
)
from .errors import InvariantViolation, ParamOutOfRange, StakingError, error_for_code
from .guards import (
    guard_claim_distribution,
    guard_configure_pool_asset,
    guard_lock_tokens,
    guard_release,
    guard_unlock_tokens,
)
from .invariants import check_all
from .math import MAX_AMOUNT, MAX_TIME
from .types import Action, ActionParams, Effect, StakingState, StepResult
from .updates import (
    apply_claim_distribution,
    apply_configure_pool_asset,
    apply_lock_tokens,
    apply_release,
    apply_unlock_tokens,
)

GuardFn = Callable[[StakingState, ActionParams], Optional[str]]
UpdateFn = Callable[[StakingState, ActionParams], StakingState]
EffectFn = Callable[[StakingState, StakingState, ActionParams], Effect]

_DISPATCH: dict[Action, tuple[GuardFn, UpdateFn, EffectFn]] = {
    Action.CONFIGURE_POOL_ASSET: (
        guard_configure_pool_asset, apply_configure_pool_asset, effect_configure_pool_asset,
    ),
    Action.LOCK_TOKENS: (
        guard_lock_tokens, apply_lock_tokens, effect_lock_tokens,
    ),
    Action.UNLOCK_TOKENS: (
        guard_unlock_tokens, apply_unlock_tokens, effect_unlock_tokens,
    ),
    Action.CLAIM_DISTRIBUTION: (
        guard_claim_distribution, apply_claim_distribution, effect_claim_distribution,
    ),
    Action.RELEASE: (
        guard_release, apply_release, effect_release,
    ),
}

# -- Parameter domain bounds --------------------------------------------------

MAX_LOCK_DAYS_PARAM: int = 100_000

# Fields checked for every action: (field_name, min_val, max_val).
_COMMON_BOUNDS: list[tuple[str, int, int]] = [
    ("now", 0, MAX_TIME),
]

# Per-action bounds. Lower bounds of 0 let the guards report the precise
# reason (e.g. `invalid_amount`) for zero values.
_PARAM_BOUNDS: dict[Action, list[tuple[str, int, int]]] = {
    Action.CONFIGURE_POOL_ASSET: [
        ("fund_balance", 0, 2**256 - 1),
        ("fund_allowance", 0, 2**256 - 1),
    ],
    Action.LOCK_TOKENS: [
        ("amount", 0, MAX_AMOUNT),
        ("lock_days", 0, MAX_LOCK_DAYS_PARAM),
    ],
    Action.UNLOCK_TOKENS: [],
    Action.CLAIM_DISTRIBUTION: [],
    Action.RELEASE: [],
}


def _validate_params(params: ActionParams) -> str | None:
    """Check parameter types and domain bounds. Returns rejection reason or None."""
    if not isinstance(params.sender, str):
        return "param_domain:sender"
    for name in ("asset_id", "fund_source"):
        if not isinstance(getattr(params, name), str):
            return f"param_domain:{name}"
    bounds = _COMMON_BOUNDS + _PARAM_BOUNDS.get(params.action, [])
    for field, lo, hi in bounds:
        val = getattr(params, field)
        if not isinstance(val, int) or isinstance(val, bool):
            return f"param_domain:{field}"
        if val < lo or val > hi:
            return f"param_domain:{field}"
    return None


def step(state: StakingState, params: ActionParams) -> StepResult:
    """Execute one action against the given state.

    Returns ``StepResult`` with ``accepted=True`` on success,
    or ``accepted=False`` with a ``rejection`` reason string.
    """
    entry = _DISPATCH.get(params.action)
    if entry is None:
        return StepResult(accepted=False, rejection=f"unknown_action:{params.action}")

    domain_err = _validate_params(params)
    if domain_err is not None:
        return StepResult(accepted=False, rejection=domain_err)

    if params.now < state.now:
        return StepResult(accepted=False, rejection="guard:clock_regression")

    guard_fn, update_fn, effect_fn = entry

    reason = guard_fn(state, params)
    if reason is not None:
        return StepResult(accepted=False, rejection=f"guard:{reason}")

    try:
        new_state = update_fn(state, params)
    except StakingError as exc:
        return StepResult(accepted=False, rejection=f"guard:{exc.code}")

    violations = check_all(new_state)
    if violations:
        return StepResult(
            accepted=False,
            rejection=f"invariant:{','.join(violations)}",
        )

    effect = effect_fn(state, new_state, params)
    return StepResult(accepted=True, state=new_state, effect=effect)


def raise_for_rejection(rejection: str | None) -> None:
    """Raise the typed exception matching a ``StepResult.rejection`` string."""
    reason = rejection or ""
    if reason.startswith("param_domain:"):
        raise ParamOutOfRange(reason)
    if reason.startswith("invariant:"):
        violations = reason.removeprefix("invariant:").split(",")
        raise InvariantViolation(violations)
    if reason.startswith("guard:"):
        code = reason.removeprefix("guard:")
        raise error_for_code(code)(code)
    raise StakingError(reason)


def step_or_raise(state: StakingState, params: ActionParams) -> StepResult:
    """Like ``step()`` but raises on rejection instead of returning a result.

    Raises:
        ParamOutOfRange: Parameter outside its domain bounds.
        StakingError: The matching subclass for a failed guard
            (``TooEarly``, ``AlreadyLocked``, ...).
        InvariantViolation: Post-state violates one or more invariants.
    """
    result = step(state, params)
    if not result.accepted:
        raise_for_rejection(result.rejection)
    return result
