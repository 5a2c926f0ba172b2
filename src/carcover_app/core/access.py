"""Owner capability for administrative operations."""

from __future__ import annotations

from dataclasses import dataclass

from carcover_app.core.errors import Unauthorized


@dataclass(frozen=True)
class OwnerAuthority:
    """Holds the single owner identity and gates owner-only calls."""

    identity: str

    def __post_init__(self) -> None:
        if not self.identity or not self.identity.strip():
            raise RuntimeError("Owner identity must not be empty.")

    def is_owner(self, caller: str) -> bool:
        return caller == self.identity

    def require(self, caller: str) -> None:
        """Raise Unauthorized unless caller is the owner."""
        if not self.is_owner(caller):
            raise Unauthorized("관리자만 실행할 수 있습니다.", {"caller": caller})
