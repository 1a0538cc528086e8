"""Example running production and staging Listmonk clients side by side."""

import asyncio
import os

from listmonk.sdk import lists, server, subscribers
from listmonk.sdk.config import load_dotenv_for_sdk


async def main() -> None:
    """Start two named clients and query both through their names."""

    load_dotenv_for_sdk()

    print("=== Listmonk SDK Multi-Instance Example ===\n")

    # 1. Production settings come from LISTMONK_* variables
    print("1. Starting production client from the environment...")
    result = await server.start(name="production")
    if not result.ok:
        print(f"   ✗ {result.error}")
        return
    print(f"   ✓ {result.value!r}")

    # 2. Staging uses explicit settings
    print("\n2. Starting staging client...")
    staging = {
        "url": os.getenv("STAGING_LISTMONK_URL", "http://localhost:9000"),
        "username": os.getenv("STAGING_LISTMONK_USERNAME", "admin"),
        "password": os.getenv("STAGING_LISTMONK_PASSWORD", "admin"),
    }
    result = await server.start(staging, name="staging")
    if not result.ok:
        print(f"   ✗ {result.error}")
        await server.stop("production")
        return

    try:
        # 3. Both clients are reachable by name
        for name in ("production", "staging"):
            print(f"\n3. Mailing lists on {name}:")
            found = await lists.get(name)
            if not found.ok:
                print(f"   ✗ {found.error}")
                continue
            for mailing_list in found.value:
                print(f"   - [{mailing_list.id}] {mailing_list.name} ({mailing_list.type.value})")

        # 4. Point staging somewhere else without restarting it
        print("\n4. Switching staging credentials...")
        updated = await server.set_config(
            "staging", {**staging, "password": os.getenv("STAGING_ROTATED_PASSWORD", "rotated")}
        )
        print(f"   Accepted: {updated.ok}")

        # 5. Concurrent calls through one client are served in order
        print("\n5. Looking up subscribers concurrently on production...")
        emails = ["alice@example.com", "bob@example.com"]
        results = await asyncio.gather(
            *(subscribers.get_by_email("production", email) for email in emails)
        )
        for email, found in zip(emails, results):
            status = found.value.status.value if found.ok and found.value else "not found"
            print(f"   {email}: {status}")

    finally:
        await server.stop("staging")
        await server.stop("production")


if __name__ == "__main__":
    asyncio.run(main())
