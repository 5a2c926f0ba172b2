"""Custodial balance repository."""

from __future__ import annotations

from decimal import Decimal
from typing import Any

from carcover_app.repositories.db_pool import ThreadLocalConnection


class TreasuryRepository:
    """Tracks the custodial balance and every movement in and out of it."""

    def __init__(self, pool: ThreadLocalConnection):
        self._pool = pool

    def balance(self) -> Decimal:
        """Return the current custodial balance."""
        row = self._pool.fetchone("SELECT balance FROM custody WHERE id = 1")
        return Decimal(row["balance"]) if row else Decimal("0")

    def _record(
        self,
        direction: str,
        counterparty: str,
        amount: Decimal,
        reason: str,
        policy_id: int | None,
        occurred_at: int,
    ) -> Decimal:
        delta = amount if direction == "IN" else -amount
        new_balance = self.balance() + delta
        self._pool.execute(
            "UPDATE custody SET balance = ? WHERE id = 1",
            (str(new_balance),),
        )
        self._pool.execute(
            """
            INSERT INTO custody_movements (
                direction,
                counterparty,
                amount,
                reason,
                policy_id,
                occurred_at
            ) VALUES (?, ?, ?, ?, ?, ?)
            """,
            (direction, counterparty, str(amount), reason, policy_id, occurred_at),
        )
        return new_balance

    def credit(
        self,
        counterparty: str,
        amount: Decimal,
        reason: str,
        occurred_at: int,
        policy_id: int | None = None,
    ) -> Decimal:
        """Add value received from counterparty; return the new balance."""
        return self._record("IN", counterparty, amount, reason, policy_id, occurred_at)

    def debit(
        self,
        counterparty: str,
        amount: Decimal,
        reason: str,
        occurred_at: int,
        policy_id: int | None = None,
    ) -> Decimal:
        """Subtract value paid to counterparty; return the new balance."""
        return self._record("OUT", counterparty, amount, reason, policy_id, occurred_at)

    def list_movements(
        self,
        limit: int = 200,
        offset: int = 0,
        policy_id: int | None = None,
    ) -> list[dict[str, Any]]:
        """List movements, newest first."""
        where_sql = ""
        params: list[Any] = []
        if policy_id is not None:
            where_sql = "WHERE policy_id = ?"
            params.append(policy_id)
        rows = self._pool.fetchall(
            f"""
            SELECT id, direction, counterparty, amount, reason, policy_id, occurred_at
            FROM custody_movements
            {where_sql}
            ORDER BY id DESC
            LIMIT ? OFFSET ?
            """,
            tuple(params + [limit, offset]),
        )
        return [dict(row) for row in rows]
