"""Example creating a list, a subscriber and a draft campaign."""

import asyncio

from listmonk.sdk.client import ListmonkClient
from listmonk.sdk.config import load_dotenv_for_sdk
from listmonk.sdk.exceptions import ListmonkError


async def main() -> None:
    load_dotenv_for_sdk()

    try:
        async with await ListmonkClient.start() as client:
            if not await client.healthy():
                print("Listmonk reports itself unhealthy")
                return

            beta = await client.create_list(
                {"name": "Beta testers", "type": "private", "optin": "single"}
            )
            print(f"Created list {beta.id}: {beta.name}")

            ada = await client.create_subscriber(
                {
                    "email": "ada@example.com",
                    "name": "Ada Lovelace",
                    "lists": [beta.id],
                    "attribs": {"city": "London"},
                }
            )
            print(f"Created subscriber {ada.id} ({ada.status.value})")

            campaign = await client.create_campaign(
                {
                    "name": "Beta launch",
                    "subject": "You're in!",
                    "lists": [beta.id],
                    "content_type": "markdown",
                    "body": "Thanks for joining the **beta**.",
                }
            )
            print(f"Created campaign {campaign.id} in status {campaign.status.value}")
            print(await client.preview_campaign(campaign.id))

    except ListmonkError as e:
        print(f"Failed: {e}")


if __name__ == "__main__":
    asyncio.run(main())
