"""Per-identity wallet balances credited by payouts."""

from __future__ import annotations

from decimal import Decimal

from carcover_app.repositories.db_pool import ThreadLocalConnection


class WalletRepository:
    """Stores value delivered to identities outside the custodial pool."""

    def __init__(self, pool: ThreadLocalConnection):
        self._pool = pool

    def balance(self, identity: str) -> Decimal:
        row = self._pool.fetchone(
            "SELECT balance FROM wallets WHERE identity = ?",
            (identity,),
        )
        return Decimal(row["balance"]) if row else Decimal("0")

    def credit(self, identity: str, amount: Decimal) -> Decimal:
        """Add amount to the identity's wallet and return the new balance."""
        new_balance = self.balance(identity) + amount
        self._pool.execute(
            """
            INSERT INTO wallets (identity, balance) VALUES (?, ?)
            ON CONFLICT(identity) DO UPDATE SET balance = excluded.balance
            """,
            (identity, str(new_balance)),
        )
        return new_balance
