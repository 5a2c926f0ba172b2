"""Value-transfer collaborators used to pay out of the custodial pool."""

from __future__ import annotations

from decimal import Decimal
from typing import Protocol

from carcover_app.repositories.treasury_repository import TreasuryRepository
from carcover_app.repositories.wallet_repository import WalletRepository


class ValueTransfer(Protocol):
    def send(self, recipient: str, amount: Decimal) -> bool:
        """Move amount to recipient and report success."""


class WalletTransfer:
    """Delivers payouts into recipient wallets kept in the same database.

    The engine debits the custodial balance before calling send(), so an
    overdrawn pool at that point means the payout was not funded.
    """

    def __init__(self, treasury_repo: TreasuryRepository, wallet_repo: WalletRepository):
        self._treasury_repo = treasury_repo
        self._wallet_repo = wallet_repo

    def send(self, recipient: str, amount: Decimal) -> bool:
        if amount < 0 or self._treasury_repo.balance() < 0:
            return False
        self._wallet_repo.credit(recipient, amount)
        return True
