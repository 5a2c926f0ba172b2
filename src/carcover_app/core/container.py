"""Application dependency container."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from carcover_app.core.access import OwnerAuthority
from carcover_app.core.clock import Clock, SystemClock
from carcover_app.core.config import AppConfig, ensure_runtime_keys, get_required_env, load_config
from carcover_app.core.crypto import CryptoService
from carcover_app.repositories.audit_repository import AuditRepository
from carcover_app.repositories.customer_repository import CustomerRepository
from carcover_app.repositories.db_pool import ThreadLocalConnection
from carcover_app.repositories.policy_repository import PolicyRepository
from carcover_app.repositories.schema import bind_owner_identity, initialize_schema
from carcover_app.repositories.treasury_repository import TreasuryRepository
from carcover_app.repositories.wallet_repository import WalletRepository
from carcover_app.services.admin_service import AdminService
from carcover_app.services.customer_service import CustomerService
from carcover_app.services.policy_service import PolicyService
from carcover_app.services.settlement_service import SettlementService
from carcover_app.services.transfer import ValueTransfer, WalletTransfer


@dataclass
class ServiceContainer:
    """Wires repositories and services."""

    config: AppConfig
    pool: ThreadLocalConnection
    authority: OwnerAuthority
    customer_service: CustomerService
    policy_service: PolicyService
    settlement_service: SettlementService
    admin_service: AdminService
    audit_repo: AuditRepository
    treasury_repo: TreasuryRepository
    wallet_repo: WalletRepository


def wire_services(
    config: AppConfig,
    crypto: CryptoService,
    clock: Clock,
    transfer: ValueTransfer | None = None,
) -> ServiceContainer:
    """Initialize schema and build every repository and service."""
    pool = ThreadLocalConnection(config)
    initialize_schema(pool)
    authority = OwnerAuthority(bind_owner_identity(pool, config.owner.identity))

    audit_repo = AuditRepository(pool)
    customer_repo = CustomerRepository(pool, crypto)
    policy_repo = PolicyRepository(pool)
    treasury_repo = TreasuryRepository(pool)
    wallet_repo = WalletRepository(pool)
    transfer = transfer or WalletTransfer(treasury_repo, wallet_repo)

    customer_service = CustomerService(pool, customer_repo, audit_repo)
    policy_service = PolicyService(pool, policy_repo, customer_repo, audit_repo, clock)
    settlement_service = SettlementService(
        pool,
        policy_service,
        policy_repo,
        customer_repo,
        treasury_repo,
        audit_repo,
        transfer,
        clock,
    )
    admin_service = AdminService(
        pool,
        authority,
        customer_service,
        policy_service,
        treasury_repo,
        audit_repo,
        transfer,
        clock,
    )

    return ServiceContainer(
        config=config,
        pool=pool,
        authority=authority,
        customer_service=customer_service,
        policy_service=policy_service,
        settlement_service=settlement_service,
        admin_service=admin_service,
        audit_repo=audit_repo,
        treasury_repo=treasury_repo,
        wallet_repo=wallet_repo,
    )


def build_container(config_path: Path | None = None, clock: Clock | None = None) -> ServiceContainer:
    """Build dependencies from the YAML config and runtime keys."""
    config = load_config(config_path)
    ensure_runtime_keys(config)
    encryption_key = get_required_env(config.encryption.key_env)
    crypto = CryptoService.from_base64_key(encryption_key)
    return wire_services(config, crypto, clock or SystemClock())
