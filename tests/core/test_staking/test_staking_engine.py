"""Tests for lockdrop/core/staking/engine.py: dispatch table + step function.

Tests cover each action's guards in order and known sequences end-to-end.
"""

import pytest
from dataclasses import replace

from lockdrop.core.staking import (
    NULL_IDENTITY,
    Action,
    ActionParams,
    AlreadyClaimed,
    ClockRegression,
    Event,
    NothingEarned,
    ParamOutOfRange,
    ProgramParams,
    StakingState,
    TooEarly,
    Transfer,
    TransferKind,
    Unauthorized,
    WithdrawalDelayNotReached,
    initial_state,
    step,
    step_or_raise,
)
from lockdrop.core.staking.invariants import check_all
from lockdrop.core.staking.math import DAY

END = 800 * DAY
FUND = 1_000_000
PERIOD = 30 * DAY
DELAY = 7 * DAY

PROGRAM = ProgramParams(
    admin="admin",
    reward_asset="RWD",
    program_end=END,
    fund_amount=FUND,
    annual_yield_rate=1,
)


def _configured(program: ProgramParams = PROGRAM, **kwargs) -> StakingState:
    """Helper: state right after a successful configure_pool_asset."""
    return replace(
        initial_state(program),
        pool_asset="POOL",
        fund_source=program.admin,
        reward_fund_balance=program.fund_amount,
        **kwargs,
    )


def _run(state: StakingState, *params: ActionParams) -> StakingState:
    for p in params:
        state = step_or_raise(state, p).state
    return state


def _lock(sender, now, amount=1000, days=30):
    return ActionParams(action=Action.LOCK_TOKENS, sender=sender, now=now, amount=amount, lock_days=days)


def _unlock(sender, now):
    return ActionParams(action=Action.UNLOCK_TOKENS, sender=sender, now=now)


def _claim(sender, now):
    return ActionParams(action=Action.CLAIM_DISTRIBUTION, sender=sender, now=now)


def _release(sender, now):
    return ActionParams(action=Action.RELEASE, sender=sender, now=now)


# ---------------------------------------------------------------------------
# configure_pool_asset
# ---------------------------------------------------------------------------

class TestConfigurePoolAsset:
    def _params(self, **kwargs):
        base = dict(
            action=Action.CONFIGURE_POOL_ASSET,
            sender="admin",
            asset_id="POOL",
            fund_balance=FUND,
            fund_allowance=FUND,
        )
        base.update(kwargs)
        return ActionParams(**base)

    def test_basic(self):
        r = step(initial_state(PROGRAM), self._params())
        assert r.accepted
        assert r.state.pool_asset == "POOL"
        assert r.state.fund_source == "admin"
        assert r.state.reward_fund_balance == FUND
        assert r.effect.event == Event.POOL_CONFIGURED
        assert r.effect.transfer == Transfer(TransferKind.PULL, "RWD", "admin", FUND)

    def test_explicit_fund_source(self):
        r = step(initial_state(PROGRAM), self._params(fund_source="treasury"))
        assert r.accepted
        assert r.state.fund_source == "treasury"
        assert r.effect.transfer.counterparty == "treasury"

    def test_non_admin_rejected(self):
        r = step(initial_state(PROGRAM), self._params(sender="bob"))
        assert r.rejection == "guard:unauthorized"

    def test_second_configuration_rejected(self):
        r = step(_configured(), self._params())
        assert r.rejection == "guard:already_configured"

    def test_empty_asset_rejected(self):
        r = step(initial_state(PROGRAM), self._params(asset_id=""))
        assert r.rejection == "guard:invalid_input"

    def test_fund_balance_short(self):
        r = step(initial_state(PROGRAM), self._params(fund_balance=FUND - 1))
        assert r.rejection == "guard:insufficient_fund_balance"

    def test_fund_allowance_short(self):
        r = step(initial_state(PROGRAM), self._params(fund_allowance=FUND - 1))
        assert r.rejection == "guard:insufficient_allowance"

    def test_step_or_raise_unauthorized(self):
        with pytest.raises(Unauthorized):
            step_or_raise(initial_state(PROGRAM), self._params(sender="bob"))


# ---------------------------------------------------------------------------
# lock_tokens
# ---------------------------------------------------------------------------

class TestLockTokens:
    def test_basic(self):
        r = step(_configured(), _lock("alice", 10))
        assert r.accepted
        stake = r.state.stakes["alice"]
        assert (stake.amount, stake.lock_days, stake.start_time, stake.expected_points) == (1000, 30, 10, 82)
        assert r.state.ledger.total == 82
        assert r.state.ledger.points_of("alice") == 82
        assert r.state.total_locked == 1000
        assert r.state.now == 10
        assert r.effect.event == Event.LOCK_RECORDED
        assert r.effect.points == 82
        assert r.effect.transfer == Transfer(TransferKind.PULL, "POOL", "alice", 1000)

    def test_not_configured(self):
        r = step(initial_state(PROGRAM), _lock("alice", 0))
        assert r.rejection == "guard:not_configured"

    def test_zero_amount(self):
        r = step(_configured(), _lock("alice", 0, amount=0))
        assert r.rejection == "guard:invalid_amount"

    def test_after_program_end(self):
        r = step(_configured(), _lock("alice", END + 1))
        assert r.rejection == "guard:program_ended"

    @pytest.mark.parametrize("days", [0, 721, 10_000])
    def test_duration_outside_policy(self, days):
        r = step(_configured(), _lock("alice", 0, days=days))
        assert r.rejection == "guard:invalid_lock_duration"

    def test_lock_must_finish_by_program_end(self):
        r = step(_configured(), _lock("alice", END - 30 * DAY + 1))
        assert r.rejection == "guard:lock_exceeds_program_end"

    def test_lock_ending_exactly_at_program_end(self):
        r = step(_configured(), _lock("alice", END - 30 * DAY))
        assert r.accepted

    def test_second_lock_rejected(self):
        s = _run(_configured(), _lock("alice", 0))
        r = step(s, _lock("alice", 1))
        assert r.rejection == "guard:already_locked"

    def test_cap_enforced(self):
        assert step(_configured(), _lock("alice", 0, amount=1_000_000, days=61)).accepted
        r = step(_configured(), _lock("alice", 0, amount=1_000_001, days=61))
        assert r.rejection == "guard:amount_exceeds_cap"

    def test_zero_reward_rejected(self):
        r = step(_configured(), _lock("alice", 0, amount=1, days=1))
        assert r.rejection == "guard:zero_reward"

    def test_negative_amount_is_param_domain(self):
        r = step(_configured(), _lock("alice", 0, amount=-1))
        assert r.rejection == "param_domain:amount"

    def test_bool_amount_is_param_domain(self):
        with pytest.raises(ParamOutOfRange):
            step_or_raise(_configured(), _lock("alice", 0, amount=True))

    def test_relock_after_unlock(self):
        s = _run(_configured(), _lock("alice", 0), _unlock("alice", 30 * DAY))
        r = step(s, _lock("alice", 30 * DAY, amount=2000, days=30))
        assert r.accepted
        assert r.state.ledger.points_of("alice") == 82 + 164

    def test_input_state_untouched(self):
        s = _configured()
        step(s, _lock("alice", 0))
        assert s.stakes == {}
        assert s.ledger.total == 0


# ---------------------------------------------------------------------------
# unlock_tokens
# ---------------------------------------------------------------------------

class TestUnlockTokens:
    def test_honored_exactly_at_maturity(self):
        s = _run(_configured(), _lock("alice", 10))
        r = step(s, _unlock("alice", 10 + 30 * DAY))
        assert r.accepted
        assert r.effect.event == Event.UNLOCKED
        assert r.effect.elapsed == 30 * DAY
        assert r.effect.transfer == Transfer(TransferKind.PUSH, "POOL", "alice", 1000)
        assert r.state.ledger.points_of("alice") == 82
        assert r.state.ledger.total == 82
        assert r.state.stakes == {}
        assert r.state.total_locked == 0

    def test_one_second_early_is_premature(self):
        s = _run(_configured(), _lock("alice", 10))
        r = step(s, _unlock("alice", 10 + 30 * DAY - 1))
        assert r.accepted
        assert r.effect.event == Event.PREMATURE_UNLOCK
        assert r.effect.points == 82
        assert r.state.ledger.points_of("alice") == 0
        assert r.state.ledger.total == 0
        assert r.state.total_locked == 0

    def test_same_instant_rejected(self):
        s = _run(_configured(), _lock("alice", 10))
        r = step(s, _unlock("alice", 10))
        assert r.rejection == "guard:same_instant_withdrawal"

    def test_not_locked(self):
        r = step(_configured(), _unlock("alice", 10))
        assert r.rejection == "guard:not_locked"

    def test_premature_keeps_other_points(self):
        s = _run(_configured(), _lock("alice", 0), _lock("bob", 0, amount=2000))
        r = step(s, _unlock("alice", DAY))
        assert r.state.ledger.total == 164
        assert r.state.ledger.points_of("bob") == 164


# ---------------------------------------------------------------------------
# clock
# ---------------------------------------------------------------------------

class TestClock:
    def test_regression_rejected(self):
        s = _run(_configured(), _lock("alice", 100))
        r = step(s, _lock("bob", 50))
        assert r.rejection == "guard:clock_regression"

    def test_regression_raises(self):
        s = _run(_configured(), _lock("alice", 100))
        with pytest.raises(ClockRegression):
            step_or_raise(s, _unlock("alice", 99))


# ---------------------------------------------------------------------------
# claim_distribution
# ---------------------------------------------------------------------------

class TestClaimDistribution:
    def _two_honored(self, program: ProgramParams = PROGRAM) -> StakingState:
        return _run(
            _configured(program),
            _lock("alice", 0, amount=1000),
            _lock("bob", 0, amount=2000),
            _unlock("alice", 30 * DAY),
            _unlock("bob", 30 * DAY),
        )

    def test_pro_rata_shares(self):
        s = self._two_honored()
        s = _run(s, _claim("alice", END + 1))
        r = step(s, _claim("bob", END + 2))
        assert r.accepted
        assert r.state.claims["alice"].share == FUND * 82 // 246
        assert r.state.claims["bob"].share == FUND * 164 // 246
        assert r.effect.event == Event.DISTRIBUTION_GRANTED
        assert r.effect.points == 164
        assert r.effect.transfer is None

    def test_claim_zeroes_balance_but_keeps_total(self):
        s = _run(self._two_honored(), _claim("alice", END + 1))
        assert s.ledger.points_of("alice") == 0
        assert s.ledger.total == 246
        assert s.ledger.claimed == 82
        record = s.releases["alice"]
        assert record.reward_amount == FUND * 82 // 246
        assert record.last_claimed_time == END + 1

    def test_claim_order_does_not_change_shares(self):
        s = self._two_honored()
        first = _run(s, _claim("alice", END + 1), _claim("bob", END + 1))
        second = _run(s, _claim("bob", END + 1), _claim("alice", END + 1))
        assert first.claims == second.claims

    def test_premature_staker_gets_smaller_share(self):
        s = _run(
            _configured(),
            _lock("alice", 0),
            _lock("bob", 0),
            _unlock("alice", 15 * DAY),
            _unlock("bob", 30 * DAY),
        )
        r = step(s, _claim("bob", END + 1))
        assert r.state.claims["bob"].share == FUND
        with pytest.raises(NothingEarned):
            step_or_raise(r.state, _claim("alice", END + 1))

    def test_at_program_end_rejected(self):
        r = step(self._two_honored(), _claim("alice", END))
        assert r.rejection == "guard:program_not_ended"

    @pytest.mark.parametrize("sender", ["", NULL_IDENTITY])
    def test_null_recipient(self, sender):
        r = step(self._two_honored(), _claim(sender, END + 1))
        assert r.rejection == "guard:invalid_recipient"

    def test_still_locked(self):
        s = _run(_configured(), _lock("alice", 0))
        r = step(s, _claim("alice", END + 1))
        assert r.rejection == "guard:still_locked"

    def test_second_claim(self):
        s = _run(self._two_honored(), _claim("alice", END + 1))
        r = step(s, _claim("alice", END + 2))
        assert r.rejection == "guard:already_claimed"
        with pytest.raises(AlreadyClaimed):
            step_or_raise(s, _claim("alice", END + 2))
        with pytest.raises(NothingEarned):
            step_or_raise(s, _claim("alice", END + 2))

    def test_never_staked(self):
        r = step(self._two_honored(), _claim("carol", END + 1))
        assert r.rejection == "guard:nothing_earned"

    def test_zero_share(self):
        tiny = replace(PROGRAM, fund_amount=1)
        r = step(self._two_honored(tiny), _claim("alice", END + 1))
        assert r.rejection == "guard:zero_share"


# ---------------------------------------------------------------------------
# release
# ---------------------------------------------------------------------------

class TestRelease:
    CLAIM_AT = END + 1

    def _claimed(self) -> StakingState:
        return _run(
            _configured(),
            _lock("alice", 0),
            _unlock("alice", 30 * DAY),
            _claim("alice", self.CLAIM_AT),
        )

    def test_before_period(self):
        r = step(self._claimed(), _release("alice", self.CLAIM_AT + PERIOD - 1))
        assert r.rejection == "guard:too_early"

    def test_after_period_before_delay(self):
        s = self._claimed()
        with pytest.raises(WithdrawalDelayNotReached):
            step_or_raise(s, _release("alice", self.CLAIM_AT + PERIOD))
        with pytest.raises(WithdrawalDelayNotReached):
            step_or_raise(s, _release("alice", self.CLAIM_AT + PERIOD + DELAY - 1))

    def test_pays_full_grant_once(self):
        s = self._claimed()
        at = self.CLAIM_AT + PERIOD + DELAY
        r = step(s, _release("alice", at))
        assert r.accepted
        assert r.effect.event == Event.VESTING_RELEASED
        assert r.effect.amount == FUND
        assert r.effect.released_total == FUND
        assert r.effect.transfer == Transfer(TransferKind.PUSH, "RWD", "alice", FUND)
        assert r.state.reward_fund_balance == 0
        record = r.state.releases["alice"]
        assert (record.reward_amount, record.last_claimed_time, record.released_total) == (0, at, FUND)

        with pytest.raises(TooEarly):
            step_or_raise(r.state, _release("alice", at + 1))
        later = step(r.state, _release("alice", at + PERIOD + DELAY))
        assert later.rejection == "guard:nothing_due"

    def test_no_record(self):
        r = step(self._claimed(), _release("bob", self.CLAIM_AT + PERIOD + DELAY))
        assert r.rejection == "guard:nothing_due"

    def test_fund_shortfall(self):
        s = replace(self._claimed(), reward_fund_balance=FUND - 1)
        r = step(s, _release("alice", self.CLAIM_AT + PERIOD + DELAY))
        assert r.rejection == "guard:insufficient_fund_balance"


# ---------------------------------------------------------------------------
# full lifecycle
# ---------------------------------------------------------------------------

class TestLifecycle:
    def test_invariants_hold_at_every_step(self):
        s = initial_state(PROGRAM)
        configure = ActionParams(
            action=Action.CONFIGURE_POOL_ASSET,
            sender="admin",
            asset_id="POOL",
            fund_balance=FUND,
            fund_allowance=FUND,
        )
        sequence = [
            configure,
            _lock("alice", 0, amount=5000, days=60),
            _lock("bob", DAY, amount=1000, days=90),
            _lock("carol", DAY, amount=3000, days=30),
            _unlock("carol", 10 * DAY),
            _unlock("alice", 60 * DAY),
            _unlock("bob", 91 * DAY),
            _claim("alice", END + 1),
            _claim("bob", END + 1),
            _release("alice", END + 1 + PERIOD + DELAY),
        ]
        for p in sequence:
            r = step(s, p)
            assert r.accepted, (p.action, r.rejection)
            s = r.state
            assert check_all(s) == []

        paid = sum(rec.released_total for rec in s.releases.values())
        owed = sum(rec.reward_amount for rec in s.releases.values())
        assert s.reward_fund_balance + paid == FUND
        assert owed <= s.reward_fund_balance

    def test_unknown_action(self):
        r = step(_configured(), ActionParams(action="bogus"))  # type: ignore[arg-type]
        assert not r.accepted
        assert r.rejection.startswith("unknown_action:")
