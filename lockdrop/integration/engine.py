"""
Imperative shell around the pure staking core.

`StakingEngine` owns the committed `StakingState`, reads the logical clock,
runs `step()` and then performs the asset movement the accepted step asks for
through a `TransferService`. The sequence is all-or-nothing:

- the new state is committed before the transfer (checks-effects-interactions),
- a transfer that raises restores the previous state and surfaces as
  `TransferFailed`,
- a nested call made from inside a transfer (a token callback) fails with
  `ReentrantCall` and changes nothing.

Accepted operations are appended to a bounded in-memory event log and passed to
subscribers after the transfer has completed.
"""

from __future__ import annotations

from collections import deque
from dataclasses import replace
import logging
from typing import Callable, Deque, List, Optional, Union

from ..core.staking.engine import raise_for_rejection, step
from ..core.staking.errors import ClockRegression, ReentrantCall, TransferFailed
from ..core.staking.invariants import check_all
from ..core.staking.state import initial_state
from ..core.staking.types import (
    Action,
    ActionParams,
    Effect,
    Participant,
    ProgramParams,
    StakingState,
    Transfer,
    TransferKind,
)
from ..core.staking.views import ParticipantView, participant_view
from ..state.snapshot import StakingSnapshot, snapshot_from_state
from .config import EngineConfig
from .transfer import AssetBank, TransferService


logger = logging.getLogger(__name__)

Clock = Callable[[], int]
Subscriber = Callable[[Effect], None]


def bank_from_config(config: EngineConfig) -> AssetBank:
    """Build an `AssetBank` seeded with the config's genesis balances and allowances."""
    bank = AssetBank()
    for bal in config.genesis_balances:
        if bal.amount:
            bank.mint(bal.asset, bal.owner, bal.amount)
    for allowance in config.genesis_allowances:
        bank.approve(allowance.asset, allowance.owner, allowance.spender, allowance.amount)
    return bank


class StakingEngine:
    def __init__(
        self,
        config: Union[EngineConfig, ProgramParams],
        *,
        bank: TransferService,
        clock: Clock,
        state: Optional[StakingState] = None,
    ) -> None:
        if isinstance(config, ProgramParams):
            config = EngineConfig(program=config)
        if state is None:
            state = initial_state(config.program)
        elif state.program != config.program:
            raise ValueError("state was built for different program parameters")

        self._config = config
        self._bank = bank
        self._clock = clock
        self._state = state
        self._events: Deque[Effect] = deque(maxlen=config.max_event_log)
        self._subscribers: List[Subscriber] = []
        self._entered = False

    # -- reads ----------------------------------------------------------------

    @property
    def config(self) -> EngineConfig:
        return self._config

    @property
    def program(self) -> ProgramParams:
        return self._config.program

    @property
    def state(self) -> StakingState:
        return self._state

    @property
    def events(self) -> List[Effect]:
        return list(self._events)

    def view(self, participant: Participant) -> ParticipantView:
        return participant_view(self._state, participant, max(self._state.now, self._read_clock()))

    def snapshot(self) -> StakingSnapshot:
        return snapshot_from_state(self._state)

    def check_custody(self) -> List[str]:
        """
        Compare the committed state with what the custody account actually holds.

        Returns invariant failures from the core plus one `custody_mismatch:<asset>`
        entry per asset whose custody balance differs from the state's accounting.
        """
        failures = check_all(self._state)
        expected: dict[str, int] = {}
        if self._state.pool_asset is not None:
            expected[self._state.pool_asset] = expected.get(self._state.pool_asset, 0) + self._state.total_locked
        reward_asset = self.program.reward_asset
        expected[reward_asset] = expected.get(reward_asset, 0) + self._state.reward_fund_balance
        for asset in sorted(expected):
            held = self._bank.balance_of(asset, self.program.custody)
            if held != expected[asset]:
                failures.append(f"custody_mismatch:{asset}")
        return failures

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register `callback` for every accepted effect; returns an unsubscribe function."""
        self._subscribers.append(callback)

        def _unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return _unsubscribe

    # -- operations -------------------------------------------------------------

    def configure_pool_asset(self, sender: Participant, asset_id: str, fund_source: str = "") -> Effect:
        return self._execute(
            ActionParams(
                action=Action.CONFIGURE_POOL_ASSET,
                sender=sender,
                asset_id=asset_id,
                fund_source=fund_source,
            )
        )

    def lock_tokens(self, sender: Participant, amount: int, lock_days: int) -> Effect:
        return self._execute(
            ActionParams(action=Action.LOCK_TOKENS, sender=sender, amount=amount, lock_days=lock_days)
        )

    def unlock_tokens(self, sender: Participant) -> Effect:
        return self._execute(ActionParams(action=Action.UNLOCK_TOKENS, sender=sender))

    def claim_distribution(self, sender: Participant) -> Effect:
        return self._execute(ActionParams(action=Action.CLAIM_DISTRIBUTION, sender=sender))

    def release(self, sender: Participant) -> Effect:
        return self._execute(ActionParams(action=Action.RELEASE, sender=sender))

    # -- internals ----------------------------------------------------------------

    def _read_clock(self) -> int:
        now = self._clock()
        if not isinstance(now, int) or isinstance(now, bool):
            raise TypeError(f"clock must return an int, got {type(now).__name__}")
        return int(now)

    def _observe_fund(self, params: ActionParams) -> ActionParams:
        """Fill in the reward-fund balance and allowance the configure guard checks."""
        source = params.fund_source or params.sender
        program = self.program
        return replace(
            params,
            fund_balance=self._bank.balance_of(program.reward_asset, source),
            fund_allowance=self._bank.allowance(program.reward_asset, source, program.custody),
        )

    def _transfer(self, transfer: Transfer) -> None:
        custody = self.program.custody
        if transfer.kind is TransferKind.PULL:
            self._bank.pull(transfer.asset, transfer.counterparty, custody, transfer.amount)
        else:
            self._bank.push(transfer.asset, custody, transfer.counterparty, transfer.amount)

    def _execute(self, params: ActionParams) -> Effect:
        if self._entered:
            logger.warning("rejected %s from %s: reentrant_call", params.action.value, params.sender)
            raise ReentrantCall(ReentrantCall.code)
        self._entered = True
        try:
            now = self._read_clock()
            if now < self._state.now:
                logger.warning("rejected %s from %s: clock_regression", params.action.value, params.sender)
                raise ClockRegression(f"clock moved backwards: {now} < {self._state.now}")

            params = replace(params, now=now)
            if params.action is Action.CONFIGURE_POOL_ASSET:
                params = self._observe_fund(params)

            result = step(self._state, params)
            if not result.accepted:
                logger.warning("rejected %s from %s: %s", params.action.value, params.sender, result.rejection)
                raise_for_rejection(result.rejection)
            assert result.state is not None and result.effect is not None

            previous = self._state
            self._state = result.state
            effect = result.effect
            if effect.transfer is not None:
                try:
                    self._transfer(effect.transfer)
                except Exception as exc:
                    self._state = previous
                    logger.error(
                        "rolled back %s from %s: transfer failed: %s",
                        params.action.value,
                        params.sender,
                        exc,
                    )
                    raise TransferFailed(f"{effect.transfer.kind.value} of {effect.transfer.asset} failed: {exc}") from exc

            self._events.append(effect)
            logger.info(
                "%s participant=%s amount=%d points=%d share=%d t=%d",
                effect.event.value,
                effect.participant,
                effect.amount,
                effect.points,
                effect.share,
                effect.time,
            )
        finally:
            self._entered = False

        for callback in list(self._subscribers):
            try:
                callback(effect)
            except Exception:
                # Already committed: listener errors are logged, never raised.
                logger.exception("subscriber %r failed on %s", callback, effect.event.value)
        return effect
