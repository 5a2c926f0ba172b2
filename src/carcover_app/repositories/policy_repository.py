"""Policy repository."""

from __future__ import annotations

from typing import Any

from carcover_app.models.policy import Plan, PolicyCreate
from carcover_app.repositories.db_pool import ThreadLocalConnection

POLICY_COLUMNS = """
    id,
    owner,
    plate,
    brand,
    engine_capacity,
    registration_year,
    start_year,
    period_years,
    last_paid,
    opened_at,
    plan,
    electric,
    claimed
"""


class PolicyRepository:
    """Handles policy persistence and the permanent plate registry."""

    def __init__(self, pool: ThreadLocalConnection):
        self._pool = pool

    def create_policy(
        self,
        owner: str,
        payload: PolicyCreate,
        plan: Plan,
        start_year: int,
        opened_at: int,
    ) -> int:
        """Insert a policy and lock its plate; return the new id."""
        cursor = self._pool.execute(
            """
            INSERT INTO policies (
                owner,
                plate,
                brand,
                engine_capacity,
                registration_year,
                start_year,
                period_years,
                last_paid,
                opened_at,
                plan,
                electric,
                claimed
            ) VALUES (?, ?, ?, ?, ?, ?, ?, 0, ?, ?, ?, 0)
            """,
            (
                owner,
                payload.plate,
                payload.brand,
                payload.engine_capacity,
                payload.registration_year,
                start_year,
                payload.period_years,
                opened_at,
                plan.name,
                int(payload.electric),
            ),
        )
        policy_id = int(cursor.lastrowid)
        self._pool.execute(
            "INSERT INTO insured_plates (plate, policy_id) VALUES (?, ?)",
            (payload.plate, policy_id),
        )
        return policy_id

    def has_been_registered(self, plate: str) -> bool:
        """Return True when the plate was ever insured."""
        row = self._pool.fetchone(
            "SELECT 1 FROM insured_plates WHERE plate = ? LIMIT 1",
            (plate,),
        )
        return row is not None

    def get_policy(self, policy_id: int) -> dict[str, Any] | None:
        """Fetch one policy record."""
        row = self._pool.fetchone(
            f"SELECT {POLICY_COLUMNS} FROM policies WHERE id = ?",
            (policy_id,),
        )
        return dict(row) if row else None

    def list_policy_ids(self, owner: str) -> list[int]:
        """Return policy ids owned by an identity in creation order."""
        rows = self._pool.fetchall(
            "SELECT id FROM policies WHERE owner = ? ORDER BY id ASC",
            (owner,),
        )
        return [int(row["id"]) for row in rows]

    def count_policies(self) -> int:
        """Return the number of policies ever created."""
        row = self._pool.fetchone("SELECT COUNT(*) AS total FROM policies")
        return int(row["total"]) if row else 0

    def mark_paid(self, policy_id: int, paid_at: int) -> int:
        """Set last-paid timestamp and return affected row count."""
        cursor = self._pool.execute(
            """
            UPDATE policies
            SET last_paid = ?,
                updated_at = CURRENT_TIMESTAMP
            WHERE id = ?
            """,
            (paid_at, policy_id),
        )
        return cursor.rowcount

    def mark_claimed(self, policy_id: int) -> int:
        """Flip claimed to true once; return 0 when it was already set."""
        cursor = self._pool.execute(
            """
            UPDATE policies
            SET claimed = 1,
                updated_at = CURRENT_TIMESTAMP
            WHERE id = ? AND claimed = 0
            """,
            (policy_id,),
        )
        return cursor.rowcount
