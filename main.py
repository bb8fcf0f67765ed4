import argparse
import logging
import sys

import config
from init import session_scope, init_tables
from models import InvestmentPlan, PaymentMethod
from mlm_system import (
    DepositService, LedgerError, PaymentMethodService, PlanService, SettingsService,
    StatsService, TransferService, UserService, WithdrawalService, SponsorChainWalker
)
from mlm_system.config.seed_data import DEMO_PLANS, DEMO_PAYMENT_METHODS
from mlm_system.events.handlers import setup_event_handlers

logger = logging.getLogger(__name__)


# region Setup

def cmd_init_db(args):
    init_tables()
    logger.info("Database tables created")


def cmd_seed(args):
    """Demo catalog: settings row, plans and payment methods. Existing rows are kept."""
    init_tables()
    with session_scope() as session:
        SettingsService(session).getSettings()

        plans = PlanService(session)
        created = {}
        for data in DEMO_PLANS:
            fields = {k: v for k, v in data.items() if k != "upgradeTo"}
            existing = session.query(InvestmentPlan).filter_by(name=fields["name"]).first()
            created[fields["name"]] = existing or plans.createPlan(**fields)

        for data in DEMO_PLANS:
            target = created.get(data["upgradeTo"]) if data["upgradeTo"] else None
            if target is not None:
                plans.updatePlan(
                    created[data["name"]].planID,
                    autoUpgrade={"enabled": True, "toPlanId": target.planID}
                )

        methods = PaymentMethodService(session)
        for data in DEMO_PAYMENT_METHODS:
            if not session.query(PaymentMethod).filter_by(name=data["name"], type=data["type"]).first():
                methods.createMethod(**data)

    logger.info(f"Seeded {len(DEMO_PLANS)} plans and {len(DEMO_PAYMENT_METHODS)} payment methods")

# endregion


# region Admin actions

def cmd_deposit_status(args):
    with session_scope() as session:
        deposit = DepositService(session).updateDepositStatus(args.id, args.status, adminId=args.admin)
        print(f"Deposit #{deposit.depositID}: {deposit.status}")


def cmd_withdrawal_status(args):
    with session_scope() as session:
        withdrawal = WithdrawalService(session).updateWithdrawalStatus(args.id, args.status)
        print(f"Withdrawal #{withdrawal.withdrawalID}: {withdrawal.status}")


def cmd_transfer_status(args):
    with session_scope() as session:
        transfer = TransferService(session).updateTransferStatus(args.id, args.status)
        print(f"Transfer #{transfer.transferID}: {transfer.status}")


def cmd_adjust(args):
    with session_scope() as session:
        users = UserService(session)
        user = users.findByUsername(args.username)
        users.manualWalletAdjustment(user.userID, args.amount, args.description, adminId=args.admin)
        print(f"{user.username}: wallet {user.walletBalance}")


def cmd_expire_plans(args):
    with session_scope() as session:
        expired = PlanService(session).expirePlans()
    print(f"Expired {expired} plan purchases")

# endregion


# region Reports

def cmd_tree(args):
    with session_scope() as session:
        root = UserService(session).findByUsername(args.root)
        print(f"{root.username} ({', '.join(root.activePlans or []) or 'no plan'})")

        def show(user, level):
            plans = ', '.join(user.activePlans or []) or 'no plan'
            print(f"{'  ' * level}{user.username} [L{level}] ({plans}) wallet={user.walletBalance} held={user.heldBalance}")

        SponsorChainWalker(session).walk_downline(root, show, max_depth=args.max_depth)


def cmd_stats(args):
    with session_scope() as session:
        stats = StatsService(session).dashboard()
    for key, value in stats.items():
        print(f"{key}: {value}")

# endregion


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Earning portal ledger administration")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("init-db", help="Create database tables").set_defaults(func=cmd_init_db)
    sub.add_parser("seed", help="Load demo plans, payment methods and settings").set_defaults(func=cmd_seed)

    for name, func, help_text in (
            ("deposit-status", cmd_deposit_status, "Set deposit status"),
            ("withdrawal-status", cmd_withdrawal_status, "Set withdrawal status"),
            ("transfer-status", cmd_transfer_status, "Approve or reject a transfer"),
    ):
        p = sub.add_parser(name, help=help_text)
        p.add_argument("id", type=int)
        p.add_argument("status")
        p.add_argument("--admin", default="cli")
        p.set_defaults(func=func)

    p = sub.add_parser("adjust", help="Manual wallet credit/debit")
    p.add_argument("username")
    p.add_argument("amount")
    p.add_argument("description")
    p.add_argument("--admin", type=int, default=None)
    p.set_defaults(func=cmd_adjust)

    sub.add_parser("expire-plans", help="Expire plans past their duration").set_defaults(func=cmd_expire_plans)

    p = sub.add_parser("tree", help="Print a user's downline")
    p.add_argument("--root", required=True)
    p.add_argument("--max-depth", type=int, default=config.TREE_MAX_DEPTH)
    p.set_defaults(func=cmd_tree)

    sub.add_parser("stats", help="Dashboard totals").set_defaults(func=cmd_stats)
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    setup_event_handlers()
    try:
        args.func(args)
    except LedgerError as e:
        logger.error(f"{args.command} failed: {e}")
        return 1
    return 0


if __name__ == '__main__':
    logging.basicConfig(
        level=getattr(logging, config.LOG_LEVEL, logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        logger.info("Остановлено.")
