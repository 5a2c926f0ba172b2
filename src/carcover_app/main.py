"""Command-line entry point."""

from __future__ import annotations

import argparse
import sys
from dataclasses import asdict
from pathlib import Path

from carcover_app.core.config import (
    ENV_FORMATS,
    AppConfig,
    generate_runtime_keys,
    load_config,
    render_env_line,
    write_env_file,
)
from carcover_app.core.container import ServiceContainer, build_container
from carcover_app.core.errors import FatalSettlementError, InsuranceError
from carcover_app.models.customer import CustomerRegistration
from carcover_app.models.policy import ClaimRequest, Plan, PolicyCreate


def _parse_bool(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in {"1", "true", "yes", "y"}:
        return True
    if lowered in {"0", "false", "no", "n"}:
        return False
    raise argparse.ArgumentTypeError(f"not a boolean: {value}")


def build_parser() -> argparse.ArgumentParser:
    """Build the CLI argument parser."""
    parser = argparse.ArgumentParser(prog="carcover", description="Vehicle insurance engine.")
    parser.add_argument("--config", default=None, help="Path to the YAML config file.")
    parser.add_argument(
        "--as",
        dest="caller",
        default=None,
        help="Caller identity the command runs on behalf of.",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    register = commands.add_parser("register", help="Register the caller as a customer.")
    register.add_argument("--name", required=True)
    register.add_argument("--national-id", required=True)
    register.add_argument("--nationality", required=True)
    register.add_argument("--phone", required=True)
    register.add_argument("--birth-year", type=int, required=True)
    register.add_argument("--married", type=_parse_bool, default=False)

    create = commands.add_parser("create-policy", help="Insure a vehicle.")
    create.add_argument("--plate", required=True)
    create.add_argument("--brand", required=True)
    create.add_argument("--engine-capacity", type=int, required=True)
    create.add_argument("--registration-year", type=int, required=True)
    create.add_argument("--period-years", type=int, required=True)
    create.add_argument("--electric", type=_parse_bool, default=False)
    create.add_argument("--plan", choices=[plan.name for plan in Plan], required=True)

    pay = commands.add_parser("pay", help="Pay the monthly premium of a policy.")
    pay.add_argument("policy_id", type=int)
    pay.add_argument("--value", required=True, help="Attached value.")

    claim = commands.add_parser("claim", help="Claim a policy.")
    claim.add_argument("policy_id", type=int)
    claim.add_argument("--damage", required=True)
    claim.add_argument("--accident-date", required=True)
    claim.add_argument("--document-url", required=True)

    deposit = commands.add_parser("deposit", help="Deposit value into the custodial pool.")
    deposit.add_argument("--value", required=True)

    ban = commands.add_parser("ban", help="Ban the owner of a delinquent policy.")
    ban.add_argument("policy_id", type=int)

    unban = commands.add_parser("unban", help="Lift a customer's ban.")
    unban.add_argument("identity")

    commands.add_parser("withdraw", help="Sweep the custodial balance to the owner.")

    policy = commands.add_parser("policy", help="Show one policy.")
    policy.add_argument("policy_id", type=int)

    policies = commands.add_parser("policies", help="List a customer's policy ids.")
    policies.add_argument("identity")

    customer = commands.add_parser("customer", help="Show one customer.")
    customer.add_argument("identity")
    customer.add_argument("--reveal", action="store_true", help="Show unmasked fields.")

    plate = commands.add_parser("plate", help="Check whether a plate was ever insured.")
    plate.add_argument("plate")

    commands.add_parser("total", help="Show the number of policies.")
    commands.add_parser("balance", help="Show the custodial balance.")

    audit = commands.add_parser("audit", help="List audit logs.")
    audit.add_argument("--limit", type=int, default=50)
    audit.add_argument("--action", default=None)
    audit.add_argument("--entity", default=None)
    audit.add_argument("--actor", default=None)

    keys = commands.add_parser("keys", help="Generate runtime keys for the configured env names.")
    keys.add_argument(
        "--write-env",
        default=None,
        help="Write key lines to this file instead of stdout.",
    )
    keys.add_argument("--format", choices=ENV_FORMATS, default="shell")
    keys.add_argument("--force", action="store_true", help="Overwrite an existing key file.")

    return parser


def _require_caller(args: argparse.Namespace) -> str:
    if not args.caller:
        raise SystemExit("[ERROR] --as IDENTITY is required for this command.")
    return args.caller


def generate_keys(config: AppConfig, args: argparse.Namespace) -> str:
    """Render fresh keys, or write them when --write-env names a file."""
    keys = generate_runtime_keys(config)
    if args.write_env:
        target = Path(args.write_env)
        if target.exists() and not args.force:
            return f"[INFO] key file already exists: {target}"
        write_env_file(target, keys, args.format)
        return f"[INFO] key file written: {target}"
    return "\n".join(render_env_line(name, value, args.format) for name, value in keys.items())


def dispatch(container: ServiceContainer, args: argparse.Namespace) -> str:
    """Run one parsed command and return its printable result."""
    command = args.command

    if command == "register":
        container.customer_service.register(
            _require_caller(args),
            CustomerRegistration(
                name=args.name,
                national_id=args.national_id,
                nationality=args.nationality,
                phone=args.phone,
                birth_year=args.birth_year,
                married=args.married,
            ),
        )
        return "registered"
    if command == "create-policy":
        policy_id = container.policy_service.create_insurance(
            _require_caller(args),
            PolicyCreate(
                plate=args.plate,
                brand=args.brand,
                engine_capacity=args.engine_capacity,
                registration_year=args.registration_year,
                period_years=args.period_years,
                electric=args.electric,
                plan=args.plan,
            ),
        )
        return f"policy_id={policy_id}"
    if command == "pay":
        paid_at = container.settlement_service.pay_monthly_premium(
            _require_caller(args), args.policy_id, args.value
        )
        return f"paid_at={paid_at}"
    if command == "claim":
        amount = container.settlement_service.claim_insurance(
            _require_caller(args),
            args.policy_id,
            ClaimRequest(
                estimated_damage=args.damage,
                accident_date=args.accident_date,
                document_url=args.document_url,
            ),
        )
        return f"paid={amount}"
    if command == "deposit":
        balance = container.settlement_service.receive(_require_caller(args), args.value)
        return f"balance={balance}"
    if command == "ban":
        banned = container.admin_service.ban(_require_caller(args), args.policy_id)
        return f"banned={banned}"
    if command == "unban":
        container.admin_service.unban(_require_caller(args), args.identity)
        return f"unbanned={args.identity}"
    if command == "withdraw":
        amount = container.admin_service.withdraw(_require_caller(args))
        return f"withdrawn={amount}"
    if command == "policy":
        view = container.policy_service.get_policy(args.policy_id)
        fields = asdict(view)
        fields["plan"] = view.plan.name
        return "\n".join(f"{key}={value}" for key, value in fields.items())
    if command == "policies":
        ids = container.policy_service.get_customer_policy_ids(args.identity)
        return ",".join(str(policy_id) for policy_id in ids)
    if command == "customer":
        view = container.customer_service.get_customer(args.identity, reveal_sensitive=args.reveal)
        return "\n".join(f"{key}={value}" for key, value in asdict(view).items())
    if command == "plate":
        return str(container.policy_service.has_been_registered(args.plate)).lower()
    if command == "total":
        return str(container.policy_service.total_policies())
    if command == "balance":
        return str(container.settlement_service.custodial_balance())
    if command == "audit":
        logs = container.audit_repo.list_logs(
            limit=args.limit,
            action=args.action,
            entity=args.entity,
            actor=args.actor,
        )
        return "\n".join(
            f"{log['created_at']} {log['action']} {log['entity']}:{log['entity_id'] or '-'} "
            f"actor={log['actor'] or '-'} {log['detail']}"
            for log in logs
        )
    raise SystemExit(f"[ERROR] unknown command: {command}")


def run(argv: list[str] | None = None) -> int:
    """Parse arguments, run one command, and return the process exit code."""
    args = build_parser().parse_args(argv)
    config_path = Path(args.config) if args.config else None
    if args.command == "keys":
        print(generate_keys(load_config(config_path), args))
        return 0

    container = build_container(config_path)
    removed = container.audit_repo.cleanup_old_logs(container.config.logging.retention_days)
    if removed:
        print(f"[INFO] Cleaned old logs: {removed}")

    try:
        output = dispatch(container, args)
    except FatalSettlementError as error:
        print(f"[ERROR] {error.reason}: {error}", file=sys.stderr)
        return 2
    except InsuranceError as error:
        print(f"[ERROR] {error.reason}: {error}", file=sys.stderr)
        return 1
    finally:
        container.pool.close_connection()

    if output:
        print(output)
    return 0


def main() -> None:
    sys.exit(run())


if __name__ == "__main__":
    main()
