"""Raising async client for the Listmonk REST API."""

from __future__ import annotations

from typing import Any, List, Mapping, Optional, Union

from . import campaigns, health, lists, server, subscribers, templates, transactional
from ._http import HTTPClient
from .config import ConfigInput, ListmonkConfig
from .models import Campaign, MailingList, Subscriber, Template


class ListmonkClient:
    """Async client for interacting with a Listmonk instance.

    This client provides methods to:
    - Manage subscribers, mailing lists, campaigns and templates
    - Send transactional email
    - Check instance health
    - Inspect or swap the connection settings at runtime

    Every call is routed through one client handle (see
    ``listmonk.sdk.server``), so concurrent callers sharing a client are
    served one at a time in call order. Methods raise the exceptions from
    ``listmonk.sdk.exceptions``; the functions in the resource modules
    offer the same operations returning ``Result`` values instead.

    Parameters
    ----------
    handle : ClientServer
        A running client handle. Use ``start()`` or ``connect()`` rather
        than constructing directly.
    """

    def __init__(self, handle: server.ClientServer):
        self.handle = handle

    @classmethod
    async def start(
        cls,
        config: Optional[ConfigInput] = None,
        name: Optional[str] = None,
        *,
        http_client: Optional[HTTPClient] = None,
    ) -> "ListmonkClient":
        """Start a new client handle and wrap it.

        Parameters
        ----------
        config : ListmonkConfig or mapping, optional
            Connection settings. Missing fields fall back to
            ``LISTMONK_URL``, ``LISTMONK_USERNAME`` and ``LISTMONK_PASSWORD``
        name : str, optional
            Register the handle under this name so that other code can
            reach it with ``connect(name)``
        http_client : HTTPClient, optional
            HTTP client the handle should own

        Raises
        ------
        ValidationError
            If the resolved configuration is incomplete or malformed
        NameConflictError
            If a running client already uses ``name``
        """
        handle = (await server.start(config, name, http_client=http_client)).unwrap()
        return cls(handle)

    @classmethod
    def connect(cls, name: str) -> "ListmonkClient":
        """Wrap the running handle registered under ``name``.

        Raises
        ------
        ClientStoppedError
            If no running client is registered under ``name``
        """
        return cls(server.lookup(name))

    async def __aenter__(self) -> "ListmonkClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        if self.handle.alive:
            await self.aclose()

    async def aclose(self) -> None:
        """Stop the underlying handle.

        Should be called when done with the client to release its HTTP
        connections. Can also be used as an async context manager to
        handle this automatically.

        Raises
        ------
        ClientStoppedError
            If the handle was already stopped
        """
        (await server.stop(self.handle)).unwrap()

    # ---------------- Configuration -----------------

    async def get_config(self) -> ListmonkConfig:
        """Return the configuration the handle currently uses."""
        return await server.get_config(self.handle)

    async def set_config(self, config: ConfigInput) -> None:
        """Swap the connection settings without recreating the client.

        Raises
        ------
        ValidationError
            If ``config`` is invalid; the previous settings stay in effect
        """
        (await server.set_config(self.handle, config)).unwrap()

    async def healthy(self) -> bool:
        """Check whether the Listmonk instance reports itself healthy.

        Raises
        ------
        HTTPError
            If the health endpoint answers with an error status
        ConnectionError
            If the instance cannot be reached
        """
        return (await health.healthy(self.handle)).unwrap()

    # ---------------- Subscribers -----------------

    async def get_subscribers(
        self,
        *,
        query: Optional[str] = None,
        list_id: Optional[int] = None,
        per_page: int = subscribers.DEFAULT_PER_PAGE,
    ) -> List[Subscriber]:
        """Retrieve all subscribers matching the filters, across all pages.

        Parameters
        ----------
        query : str, optional
            Listmonk SQL filter expression
        list_id : int, optional
            Restrict to members of this list
        per_page : int, optional
            Page size used while walking the result pages. Default is 100

        Returns
        -------
        List[Subscriber]
            Matching subscribers in the order the server returned them
        """
        result = await subscribers.get(
            self.handle, query=query, list_id=list_id, per_page=per_page
        )
        return result.unwrap()

    async def get_subscriber_by_email(self, email: str) -> Optional[Subscriber]:
        """Return the subscriber with this email address, or None."""
        return (await subscribers.get_by_email(self.handle, email)).unwrap()

    async def get_subscriber_by_id(self, subscriber_id: int) -> Optional[Subscriber]:
        """Return the subscriber with this ID, or None."""
        return (await subscribers.get_by_id(self.handle, subscriber_id)).unwrap()

    async def get_subscriber_by_uuid(self, uuid: str) -> Optional[Subscriber]:
        """Return the subscriber with this UUID, or None."""
        return (await subscribers.get_by_uuid(self.handle, uuid)).unwrap()

    async def create_subscriber(self, attrs: Mapping[str, Any]) -> Subscriber:
        """Create a subscriber. See ``subscribers.create`` for ``attrs``."""
        return (await subscribers.create(self.handle, attrs)).unwrap()

    async def update_subscriber(
        self, subscriber: Subscriber, attrs: Mapping[str, Any]
    ) -> Optional[Subscriber]:
        """Update a subscriber. See ``subscribers.update`` for ``attrs``."""
        return (await subscribers.update(self.handle, subscriber, attrs)).unwrap()

    async def delete_subscriber(self, identifier: Union[str, int]) -> bool:
        """Delete a subscriber by ID or email; False if no such email exists."""
        return (await subscribers.delete(self.handle, identifier)).unwrap()

    async def enable_subscriber(self, subscriber: Subscriber) -> Optional[Subscriber]:
        """Set a subscriber's status to enabled."""
        return (await subscribers.enable(self.handle, subscriber)).unwrap()

    async def disable_subscriber(self, subscriber: Subscriber) -> Optional[Subscriber]:
        """Set a subscriber's status to disabled."""
        return (await subscribers.disable(self.handle, subscriber)).unwrap()

    async def block_subscriber(self, subscriber: Subscriber) -> Optional[Subscriber]:
        """Blocklist (unsubscribe) a subscriber."""
        return (await subscribers.block(self.handle, subscriber)).unwrap()

    async def confirm_optin(self, subscriber_uuid: str, list_uuid: str) -> bool:
        """Confirm a double opt-in subscription to the list ``list_uuid``."""
        return (await subscribers.confirm_optin(self.handle, subscriber_uuid, list_uuid)).unwrap()

    # ---------------- Lists -----------------

    async def get_lists(self) -> List[MailingList]:
        """Retrieve all mailing lists."""
        return (await lists.get(self.handle)).unwrap()

    async def get_list_by_id(self, list_id: int) -> Optional[MailingList]:
        """Return the mailing list with this ID, or None."""
        return (await lists.get_by_id(self.handle, list_id)).unwrap()

    async def create_list(self, attrs: Mapping[str, Any]) -> MailingList:
        """Create a mailing list. See ``lists.create`` for ``attrs``."""
        return (await lists.create(self.handle, attrs)).unwrap()

    async def delete_list(self, list_id: int) -> bool:
        """Delete a mailing list; False if it does not exist."""
        return (await lists.delete(self.handle, list_id)).unwrap()

    # ---------------- Campaigns -----------------

    async def get_campaigns(self) -> List[Campaign]:
        """Retrieve all campaigns."""
        return (await campaigns.get(self.handle)).unwrap()

    async def get_campaign_by_id(self, campaign_id: int) -> Optional[Campaign]:
        """Return the campaign with this ID, or None."""
        return (await campaigns.get_by_id(self.handle, campaign_id)).unwrap()

    async def preview_campaign(self, campaign_id: int) -> str:
        """Render a campaign and return the HTML."""
        return (await campaigns.preview(self.handle, campaign_id)).unwrap()

    async def create_campaign(self, attrs: Mapping[str, Any]) -> Campaign:
        """Create a campaign. See ``campaigns.create`` for ``attrs``."""
        return (await campaigns.create(self.handle, attrs)).unwrap()

    async def update_campaign(
        self, campaign: Campaign, attrs: Mapping[str, Any]
    ) -> Optional[Campaign]:
        """Update a campaign. See ``campaigns.update`` for ``attrs``."""
        return (await campaigns.update(self.handle, campaign, attrs)).unwrap()

    async def delete_campaign(self, campaign_id: int) -> bool:
        """Delete a campaign; False if it does not exist."""
        return (await campaigns.delete(self.handle, campaign_id)).unwrap()

    # ---------------- Templates -----------------

    async def get_templates(self) -> List[Template]:
        """Retrieve all templates."""
        return (await templates.get(self.handle)).unwrap()

    async def get_template_by_id(self, template_id: int) -> Optional[Template]:
        """Return the template with this ID, or None."""
        return (await templates.get_by_id(self.handle, template_id)).unwrap()

    async def preview_template(self, template_id: int) -> str:
        """Render a template with sample content and return the HTML."""
        return (await templates.preview(self.handle, template_id)).unwrap()

    async def create_template(self, attrs: Mapping[str, Any]) -> Template:
        """Create a template. See ``templates.create`` for ``attrs``."""
        return (await templates.create(self.handle, attrs)).unwrap()

    async def update_template(
        self, template: Template, attrs: Mapping[str, Any]
    ) -> Optional[Template]:
        """Update a template's name, subject, body or type."""
        return (await templates.update(self.handle, template, attrs)).unwrap()

    async def delete_template(self, template_id: int) -> bool:
        """Delete a template; False if it does not exist."""
        return (await templates.delete(self.handle, template_id)).unwrap()

    async def set_default_template(self, template_id: int) -> bool:
        """Make a template the default; False if it does not exist."""
        return (await templates.set_default(self.handle, template_id)).unwrap()

    # ---------------- Transactional -----------------

    async def send_transactional_email(self, attrs: Mapping[str, Any]) -> bool:
        """Send a transactional email.

        See ``transactional.send_email`` for the accepted ``attrs``.

        Raises
        ------
        ValidationError
            If a required attribute is missing or an attachment is not a file
        HTTPError
            If Listmonk rejects the message
        """
        return (await transactional.send_email(self.handle, attrs)).unwrap()
