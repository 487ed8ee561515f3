"""
Fungible-asset transfer boundary.

`TransferService` is the contract the staking shell relies on. `AssetBank` is
an in-memory implementation with ERC-20 style allowances, used by tests and
the replay tool. Transfer hooks let callers run arbitrary code after each
movement (the same position a token callback would occupy), which is how
re-entrancy is exercised.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, List, Protocol, Tuple


logger = logging.getLogger(__name__)

Owner = str
AssetId = str
Amount = int

TransferHook = Callable[[str, AssetId, Owner, Owner, Amount], None]


class AssetTransferError(ValueError):
    """Raised by `AssetBank` when a movement cannot be performed."""


class TransferService(Protocol):
    def pull(self, asset: AssetId, owner: Owner, recipient: Owner, amount: Amount) -> None:
        """Move `amount` from `owner` to `recipient`, spending `recipient`'s allowance."""

    def push(self, asset: AssetId, sender: Owner, recipient: Owner, amount: Amount) -> None:
        """Move `amount` from `sender` to `recipient`."""

    def balance_of(self, asset: AssetId, owner: Owner) -> Amount:
        ...

    def allowance(self, asset: AssetId, owner: Owner, spender: Owner) -> Amount:
        ...


def _require_amount(amount: Amount, *, allow_zero: bool = False) -> Amount:
    if not isinstance(amount, int) or isinstance(amount, bool):
        raise AssetTransferError(f"amount must be an int, got {type(amount).__name__}")
    if amount < 0 or (amount == 0 and not allow_zero):
        raise AssetTransferError(f"invalid amount: {amount}")
    return int(amount)


class AssetBank:
    """
    Deterministic balance + allowance table mapping (owner, asset) -> amount.

    Zero balances are removed to keep the table sparse.
    """

    def __init__(self) -> None:
        self._balances: Dict[Tuple[Owner, AssetId], Amount] = {}
        self._allowances: Dict[Tuple[Owner, Owner, AssetId], Amount] = {}
        self._hooks: List[TransferHook] = []

    # -- reads ----------------------------------------------------------------

    def balance_of(self, asset: AssetId, owner: Owner) -> Amount:
        return self._balances.get((owner, asset), 0)

    def allowance(self, asset: AssetId, owner: Owner, spender: Owner) -> Amount:
        return self._allowances.get((owner, spender, asset), 0)

    def total_supply(self, asset: AssetId) -> Amount:
        return sum(v for (_, a), v in self._balances.items() if a == asset)

    def get_all_balances(self) -> Dict[Tuple[Owner, AssetId], Amount]:
        return dict(self._balances)

    # -- admin / setup ----------------------------------------------------------

    def mint(self, asset: AssetId, owner: Owner, amount: Amount) -> None:
        amount = _require_amount(amount)
        self._set(owner, asset, self.balance_of(asset, owner) + amount)

    def approve(self, asset: AssetId, owner: Owner, spender: Owner, amount: Amount) -> None:
        amount = _require_amount(amount, allow_zero=True)
        if amount == 0:
            self._allowances.pop((owner, spender, asset), None)
        else:
            self._allowances[(owner, spender, asset)] = amount

    def add_hook(self, hook: TransferHook) -> None:
        self._hooks.append(hook)

    def remove_hook(self, hook: TransferHook) -> None:
        self._hooks.remove(hook)

    # -- movements --------------------------------------------------------------

    # A movement and its hooks form one unit: if a hook raises, every table
    # change made since the movement started is reverted before re-raising.

    def pull(self, asset: AssetId, owner: Owner, recipient: Owner, amount: Amount) -> None:
        amount = _require_amount(amount)
        allowed = self.allowance(asset, owner, recipient)
        if allowed < amount:
            raise AssetTransferError(f"insufficient allowance: {allowed} < {amount}")
        saved = (dict(self._balances), dict(self._allowances))
        try:
            self._move(asset, owner, recipient, amount)
            self.approve(asset, owner, recipient, allowed - amount)
            self._fire("pull", asset, owner, recipient, amount)
        except Exception:
            self._balances, self._allowances = saved
            raise

    def push(self, asset: AssetId, sender: Owner, recipient: Owner, amount: Amount) -> None:
        amount = _require_amount(amount)
        saved = (dict(self._balances), dict(self._allowances))
        try:
            self._move(asset, sender, recipient, amount)
            self._fire("push", asset, sender, recipient, amount)
        except Exception:
            self._balances, self._allowances = saved
            raise

    def _move(self, asset: AssetId, src: Owner, dst: Owner, amount: Amount) -> None:
        src_balance = self.balance_of(asset, src)
        if src_balance < amount:
            raise AssetTransferError(f"insufficient balance: {src_balance} < {amount}")
        self._set(src, asset, src_balance - amount)
        self._set(dst, asset, self.balance_of(asset, dst) + amount)
        logger.debug("moved %d %s from %s to %s", amount, asset, src, dst)

    def _set(self, owner: Owner, asset: AssetId, amount: Amount) -> None:
        if amount < 0:
            raise AssetTransferError(f"Balance cannot be negative: {amount}")
        if amount == 0:
            self._balances.pop((owner, asset), None)
        else:
            self._balances[(owner, asset)] = amount

    def _fire(self, kind: str, asset: AssetId, src: Owner, dst: Owner, amount: Amount) -> None:
        for hook in list(self._hooks):
            hook(kind, asset, src, dst, amount)

    def __repr__(self) -> str:
        return f"AssetBank({len(self._balances)} balances, {len(self._allowances)} allowances)"
