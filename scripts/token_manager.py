"""Inspect, refresh or seed stored OAuth tokens from the command line."""
from __future__ import annotations

import argparse
import logging
import sys
from datetime import datetime
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from zonetracker.database import run_migrations, session_scope
from zonetracker.logging_config import configure_logging, token_fingerprint
from zonetracker.services.oauth import PROVIDERS
from zonetracker.services.token_store import TokenStore


logger = logging.getLogger("scripts.token_manager")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Manage Oura / WHOOP OAuth tokens",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Show stored tokens and their expiry
  python scripts/token_manager.py status

  # Force a refresh of the WHOOP token
  python scripts/token_manager.py refresh whoop

  # Store a token obtained elsewhere
  python scripts/token_manager.py bootstrap oura --access-token XXX --refresh-token YYY
        """
    )
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("status", help="Show stored tokens")

    refresh = sub.add_parser("refresh", help="Refresh provider tokens")
    refresh.add_argument("provider", nargs="?", choices=sorted(PROVIDERS), help="Defaults to all providers")

    bootstrap = sub.add_parser("bootstrap", help="Store a token pair for a provider")
    bootstrap.add_argument("provider", choices=sorted(PROVIDERS))
    bootstrap.add_argument("--access-token", required=True)
    bootstrap.add_argument("--refresh-token")
    bootstrap.add_argument("--expires-in", type=int, help="Lifetime of the access token in seconds")

    return parser.parse_args(argv)


def show_status(store: TokenStore) -> None:
    for provider in PROVIDERS:
        token = store.get_token(provider)
        if token is None:
            logger.info("⚪ %s: not connected", provider)
            continue
        if token.expires_at is None:
            expiry = "unknown expiry"
        else:
            remaining = token.expires_at - datetime.utcnow()
            expiry = f"expires {token.expires_at.isoformat()} ({remaining.total_seconds() / 3600:.1f}h left)"
        marker = "🟠" if store.is_expired(token) else "🟢"
        logger.info(
            "%s %s: fingerprint=%s, refresh_token=%s, %s",
            marker,
            provider,
            token_fingerprint(token.access_token),
            "yes" if token.refresh_token else "no",
            expiry,
        )


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    configure_logging()
    run_migrations()

    with session_scope() as db:
        store = TokenStore(db)

        if args.command == "status":
            show_status(store)
            return 0

        if args.command == "bootstrap":
            store.save_token(args.provider, args.access_token, args.refresh_token, args.expires_in)
            logger.info("✅ Stored %s token", args.provider)
            return 0

        providers = [args.provider] if args.provider else list(PROVIDERS)
        failed = False
        for provider in providers:
            if store.refresh(provider):
                logger.info("✅ %s token refreshed", provider)
            else:
                logger.error("❌ %s token could not be refreshed", provider)
                failed = True
        return 1 if failed else 0


if __name__ == "__main__":
    sys.exit(main())
