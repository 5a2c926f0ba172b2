"""Customer registry with validation, masking, and audit logs."""

from __future__ import annotations

import json

from carcover_app.core.crypto import mask_national_id, mask_phone
from carcover_app.core.errors import AlreadyRegistered, NotRegistered
from carcover_app.core.validation import (
    validate_birth_year,
    validate_phone,
    validate_required_text,
)
from carcover_app.models.customer import CustomerRegistration, CustomerView
from carcover_app.repositories.audit_repository import AuditRepository
from carcover_app.repositories.customer_repository import CustomerRepository
from carcover_app.repositories.db_pool import ThreadLocalConnection


class CustomerService:
    """Coordinates customer registration and ban state."""

    def __init__(
        self,
        pool: ThreadLocalConnection,
        customer_repo: CustomerRepository,
        audit_repo: AuditRepository,
    ):
        self._pool = pool
        self._customer_repo = customer_repo
        self._audit_repo = audit_repo

    @staticmethod
    def _validate(payload: CustomerRegistration) -> CustomerRegistration:
        return CustomerRegistration(
            name=validate_required_text(payload.name, "이름"),
            national_id=validate_required_text(payload.national_id, "신분증번호"),
            nationality=validate_required_text(payload.nationality, "국적"),
            phone=validate_phone(payload.phone),
            birth_year=validate_birth_year(payload.birth_year),
            married=bool(payload.married),
        )

    def register(self, caller: str, payload: CustomerRegistration) -> None:
        """Register the caller once; a second call fails with AlreadyRegistered."""
        with self._pool.transaction():
            if self._customer_repo.exists(caller):
                raise AlreadyRegistered("이미 등록된 고객입니다.", {"identity": caller})
            normalized = self._validate(payload)
            self._customer_repo.create_customer(caller, normalized)
            self._audit_repo.add_log(
                "CREATE",
                "customer",
                caller,
                json.dumps(
                    {"event": "customer registered", "after": self._snapshot(caller)},
                    ensure_ascii=False,
                ),
                actor=caller,
            )

    def is_registered(self, identity: str) -> bool:
        return self._customer_repo.exists(identity)

    def is_banned(self, identity: str) -> bool:
        return self._customer_repo.is_banned(identity)

    def set_banned(self, identity: str, banned: bool, actor: str) -> None:
        """Flip the ban flag; callers must already hold owner authority.

        Lifting a ban is unconditional: an identity with no record is a no-op.
        """
        with self._pool.transaction():
            updated = self._customer_repo.set_banned(identity, banned)
            if updated == 0:
                if banned:
                    raise NotRegistered("등록되지 않은 고객입니다.", {"identity": identity})
                return
            self._audit_repo.add_log(
                "UPDATE",
                "customer",
                identity,
                json.dumps(
                    {"event": "customer banned" if banned else "customer unbanned"},
                    ensure_ascii=False,
                ),
                actor=actor,
            )

    def get_customer(self, identity: str, reveal_sensitive: bool = False) -> CustomerView:
        """Fetch one customer with masked or decrypted sensitive fields."""
        row = self._customer_repo.get_customer(identity)
        if not row:
            raise NotRegistered("고객 정보를 찾을 수 없습니다.", {"identity": identity})

        national_id = self._customer_repo.decrypt_national_id(row["national_id_encrypted"])
        phone = row["phone"]
        self._audit_repo.add_log("READ", "customer", identity, "customer read")

        if not reveal_sensitive:
            national_id = mask_national_id(national_id)
            phone = mask_phone(phone)

        return CustomerView(
            identity=row["identity"],
            name=row["name"],
            national_id=national_id,
            nationality=row["nationality"],
            phone=phone,
            birth_year=int(row["birth_year"]),
            married=bool(row["married"]),
            banned=bool(row["banned"]),
        )

    def _snapshot(self, identity: str) -> dict[str, str]:
        """Build a masked snapshot for audit logs."""
        row = self._customer_repo.get_customer(identity)
        if not row:
            return {}
        national_id = self._customer_repo.decrypt_national_id(row["national_id_encrypted"])
        return {
            "name": row["name"] or "",
            "national_id": mask_national_id(national_id),
            "nationality": row["nationality"] or "",
            "phone": mask_phone(row["phone"] or ""),
            "birth_year": str(row["birth_year"]),
            "married": str(bool(row["married"])).lower(),
            "banned": str(bool(row["banned"])).lower(),
        }
