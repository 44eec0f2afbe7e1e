import argparse
import logging
import sys

from db.config import SessionLocal, init_db
from provider.api_client import StripeAPIClient
from provider.config import ProviderConfig
from services.catalog_service import CatalogService
from services.errors import MirrorError, PersistenceError
from services.mirror_service import SubscriptionMirrorService
from services.reconciliation_service import ReconciliationService

from .config import driver_config


logging.basicConfig(
    level=getattr(logging, driver_config.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def run_create_price(provider: StripeAPIClient, args) -> int:
    product, price = CatalogService(provider).create_recurring_price(
        name=args.name,
        description=args.description,
        unit_amount=args.amount,
        currency=args.currency,
        interval=args.interval
    )
    print(f"Product id: {product.id}")
    print(f"Price id: {price.id}")
    return 0


def run_demo(provider: StripeAPIClient, args) -> int:
    if not args.price_id:
        logger.error("A price id is required (--price-id or DEMO_PRICE_ID)")
        return 2

    init_db()
    session = SessionLocal()
    try:
        service = SubscriptionMirrorService(session, provider)

        user = service.create_user(args.name, args.email)
        print(f"User created: {user.name} ({user.stripe_id})")

        subscription = service.create_subscription(user, args.price_id)
        print(f"Subscription created, next billing on: {subscription.next_billing_day}")

        if not args.keep:
            subscription = service.cancel_subscription(subscription.id)
            print(f"Subscription {subscription.id} canceled at {subscription.cancel_date}")
    finally:
        session.close()
    return 0


def run_reconcile(provider: StripeAPIClient, args) -> int:
    session = SessionLocal()
    try:
        drifts = ReconciliationService(session, provider).reconcile(apply=args.apply)
    finally:
        session.close()

    if not drifts:
        print("Mirror is in sync with the provider")
        return 0

    for drift in drifts:
        if drift.error:
            print(f"#{drift.subscription_id} {drift.stripe_sub_id}: lookup failed ({drift.error})")
        else:
            marker = " [applied]" if drift.applied else ""
            print(
                f"#{drift.subscription_id} {drift.stripe_sub_id}: "
                f"local={drift.local_status} remote={drift.remote_status}{marker}"
            )
    return 1 if not args.apply else 0


def main():
    parser = argparse.ArgumentParser(
        description="Provider customer/subscription mirror"
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    subparsers.add_parser("init-db", help="Create the mirror tables")

    price_parser = subparsers.add_parser("create-price", help="Create a product and recurring price")
    price_parser.add_argument("--name", default=CatalogService.DEFAULT_PRODUCT_NAME)
    price_parser.add_argument("--description", default=CatalogService.DEFAULT_DESCRIPTION)
    price_parser.add_argument("--amount", type=int, default=CatalogService.DEFAULT_UNIT_AMOUNT,
                              help="Unit amount in minor currency units")
    price_parser.add_argument("--currency", default="usd")
    price_parser.add_argument("--interval", default="month", choices=["day", "week", "month", "year"])

    demo_parser = subparsers.add_parser("demo", help="Create a user and subscription, then cancel it")
    demo_parser.add_argument("--name", default=driver_config.demo_name)
    demo_parser.add_argument("--email", default=driver_config.demo_email)
    demo_parser.add_argument("--price-id", default=driver_config.demo_price_id)
    demo_parser.add_argument("--keep", action="store_true", help="Leave the subscription active")

    reconcile_parser = subparsers.add_parser("reconcile", help="Compare the mirror with the provider")
    reconcile_parser.add_argument("--apply", action="store_true", help="Write provider status into drifted rows")

    args = parser.parse_args()

    if args.command == "init-db":
        init_db()
        logger.info("Tables created")
        return

    commands = {
        "create-price": run_create_price,
        "demo": run_demo,
        "reconcile": run_reconcile,
    }
    command = commands.get(args.command)
    if command is None:
        parser.print_help()
        return

    with StripeAPIClient(ProviderConfig.from_env()) as provider:
        try:
            exit_code = command(provider, args)
        except PersistenceError as e:
            logger.error(f"{args.command} failed at {e.step}: {e}")
            if e.orphaned_id:
                logger.error(f"Provider object {e.orphaned_id} is not reflected locally")
            sys.exit(1)
        except MirrorError as e:
            logger.error(f"{args.command} failed at {e.step}: {e}")
            sys.exit(1)
        except ValueError as e:
            logger.error(f"{args.command} rejected: {e}")
            sys.exit(1)
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
