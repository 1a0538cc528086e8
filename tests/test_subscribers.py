"""Tests for subscriber operations."""

import httpx
import pytest

from listmonk.sdk import subscribers
from listmonk.sdk.exceptions import ProtocolError, ValidationError
from listmonk.sdk.models import Subscriber, SubscriberStatus

from conftest import body_of, page_of


def subscriber_row(subscriber_id, **fields):
    return {
        "id": subscriber_id,
        "uuid": f"uuid-{subscriber_id}",
        "email": f"user{subscriber_id}@example.com",
        "name": f"User {subscriber_id}",
        "status": "enabled",
        "lists": [],
        "attribs": {},
        **fields,
    }


class TestGet:
    """Test listing subscribers."""

    @pytest.mark.asyncio
    async def test_walks_all_pages(self, fake, handle):
        def paged(request):
            page = int(request.url.params["page"])
            count = 100 if page < 3 else 50
            start = (page - 1) * 100
            rows = [subscriber_row(start + i) for i in range(count)]
            return httpx.Response(200, json=page_of(rows, total=250))

        fake.add("GET", "/api/subscribers", handler=paged)

        result = await subscribers.get(handle)

        assert len(result.value) == 250
        assert result.value[249].id == 249
        sent = fake.sent("GET", "/api/subscribers")
        assert [r.url.params["page"] for r in sent] == ["1", "2", "3"]
        assert all(r.url.params["per_page"] == "100" for r in sent)
        assert sent[0].url.params["order_by"] == "updated_at"
        assert sent[0].url.params["order"] == "DESC"

    @pytest.mark.asyncio
    async def test_filters_sent(self, fake, handle):
        fake.add("GET", "/api/subscribers", json=page_of([subscriber_row(1)]))

        await subscribers.get(handle, query="subscribers.name LIKE 'A%'", list_id=4)

        params = fake.requests[0].url.params
        assert params["query"] == "subscribers.name LIKE 'A%'"
        assert params["list_id"] == "4"

    @pytest.mark.asyncio
    async def test_empty_page_stops(self, fake, handle):
        def short(request):
            rows = [subscriber_row(1)] if request.url.params["page"] == "1" else []
            return httpx.Response(200, json=page_of(rows, total=1000))

        fake.add("GET", "/api/subscribers", handler=short)

        result = await subscribers.get(handle, per_page=1)

        assert len(result.value) == 1
        assert len(fake.requests) == 2

    @pytest.mark.asyncio
    async def test_unexpected_shape(self, fake, handle):
        fake.add("GET", "/api/subscribers", json={"data": []})

        result = await subscribers.get(handle)

        assert isinstance(result.error, ProtocolError)

    @pytest.mark.asyncio
    async def test_malformed_row_is_an_error_result(self, fake, handle):
        row = {"id": 1, "email": "a@b.com", "name": 42, "status": "enabled"}
        fake.add("GET", "/api/subscribers", json=page_of([row]))

        result = await subscribers.get(handle)

        assert not result.ok
        assert isinstance(result.error, ProtocolError)
        assert "Subscriber" in result.error.message

    @pytest.mark.asyncio
    async def test_lookup_with_malformed_row(self, fake, handle):
        fake.add("GET", "/api/subscribers", json=page_of([subscriber_row(5, name=["Ada"])]))

        result = await subscribers.get_by_id(handle, 5)

        assert isinstance(result.error, ProtocolError)


class TestLookup:
    """Test single-subscriber lookups."""

    @pytest.mark.asyncio
    async def test_by_email(self, fake, handle):
        fake.add("GET", "/api/subscribers", json=page_of([subscriber_row(7)]))

        result = await subscribers.get_by_email(handle, "user7@example.com")

        assert result.value.id == 7
        params = fake.requests[0].url.params
        assert params["query"] == "subscribers.email='user7@example.com'"
        assert params["per_page"] == "1"
        assert len(fake.requests) == 1

    @pytest.mark.asyncio
    async def test_quotes_escaped(self, fake, handle):
        fake.add("GET", "/api/subscribers", json=page_of([]))

        await subscribers.get_by_email(handle, "o'brien@example.com")

        assert fake.requests[0].url.params["query"] == "subscribers.email='o''brien@example.com'"

    @pytest.mark.asyncio
    async def test_absent_is_none(self, fake, handle):
        fake.add("GET", "/api/subscribers", json=page_of([]))

        assert (await subscribers.get_by_id(handle, 99)).value is None
        assert (await subscribers.get_by_uuid(handle, "nope")).value is None
        assert fake.requests[0].url.params["query"] == "subscribers.id=99"
        assert fake.requests[1].url.params["query"] == "subscribers.uuid='nope'"


class TestCreate:
    """Test creating subscribers."""

    @pytest.mark.asyncio
    async def test_create(self, fake, handle):
        fake.add(
            "POST",
            "/api/subscribers",
            json={"data": subscriber_row(5, email="ada@example.com", lists=[{"id": 1}])},
        )

        result = await subscribers.create(
            handle, {"email": "  ada@example.com ", "name": "Ada", "lists": [1]}
        )

        assert result.value.id == 5
        assert result.value.list_ids == [1]
        assert body_of(fake.requests[0]) == {
            "email": "ada@example.com",
            "name": "Ada",
            "status": "enabled",
            "lists": [1],
            "preconfirm_subscriptions": True,
            "attribs": {},
        }

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "attrs, field",
        [
            ({"name": "Ada", "lists": [1]}, "email"),
            ({"email": "a@example.com", "name": "  ", "lists": [1]}, "name"),
            ({"email": "a@example.com", "name": "Ada"}, "lists"),
            ({"email": "a@example.com", "name": "Ada", "lists": [1], "status": "gone"}, "status"),
        ],
    )
    async def test_invalid_attrs_make_no_request(self, fake, handle, attrs, field):
        result = await subscribers.create(handle, attrs)

        assert isinstance(result.error, ValidationError)
        assert result.error.field == field
        assert fake.requests == []


class TestUpdate:
    """Test updating subscribers."""

    @pytest.mark.asyncio
    async def test_merges_lists_and_rereads(self, fake, handle):
        current = Subscriber.from_api(subscriber_row(5, lists=[{"id": 1}, {"id": 2}]))
        fake.add("PUT", "/api/subscribers/5", json={"data": True})
        fake.add(
            "GET",
            "/api/subscribers",
            json=page_of([subscriber_row(5, name="Ada L.", lists=[{"id": 2}, {"id": 3}])]),
        )

        result = await subscribers.update(
            handle, current, {"name": "Ada L.", "add_lists": [3], "remove_lists": [1]}
        )

        put = fake.sent("PUT")[0]
        assert body_of(put)["lists"] == [2, 3]
        assert body_of(put)["name"] == "Ada L."
        assert body_of(put)["status"] == "enabled"
        assert result.value.name == "Ada L."
        assert fake.sent("GET")[0].url.params["query"] == "subscribers.id=5"

    @pytest.mark.asyncio
    async def test_block(self, fake, handle):
        current = Subscriber.from_api(subscriber_row(5))
        fake.add("PUT", "/api/subscribers/5", json={"data": True})
        fake.add("GET", "/api/subscribers", json=page_of([subscriber_row(5, status="blocklisted")]))

        result = await subscribers.block(handle, current)

        assert body_of(fake.sent("PUT")[0])["status"] == "blocklisted"
        assert result.value.status is SubscriberStatus.BLOCKLISTED

    @pytest.mark.asyncio
    async def test_requires_id(self, fake, handle):
        result = await subscribers.update(handle, Subscriber(email="a@example.com"), {})

        assert isinstance(result.error, ValidationError)
        assert fake.requests == []

    @pytest.mark.asyncio
    async def test_wrongly_typed_attr_rejected(self, fake, handle):
        current = Subscriber.from_api(subscriber_row(5))

        result = await subscribers.update(handle, current, {"name": 42})

        assert isinstance(result.error, ValidationError)
        assert fake.requests == []


def test_merge_list_ids():
    assert subscribers.merge_list_ids([3, 1], [2, 3], [1]) == [2, 3]
    assert subscribers.merge_list_ids([1]) == [1]


class TestDelete:
    """Test deleting subscribers."""

    @pytest.mark.asyncio
    async def test_by_email(self, fake, handle):
        fake.add("GET", "/api/subscribers", json=page_of([subscriber_row(5)]))
        fake.add("DELETE", "/api/subscribers/5", json={"data": True})

        result = await subscribers.delete(handle, "user5@example.com")

        assert result.value is True
        assert len(fake.sent("DELETE")) == 1

    @pytest.mark.asyncio
    async def test_unknown_email(self, fake, handle):
        fake.add("GET", "/api/subscribers", json=page_of([]))

        result = await subscribers.delete(handle, "ghost@example.com")

        assert result.value is False
        assert fake.sent("DELETE") == []

    @pytest.mark.asyncio
    async def test_by_id(self, fake, handle):
        fake.add("DELETE", "/api/subscribers/8", json={"data": True})

        assert (await subscribers.delete(handle, 8)).value is True
        assert len(fake.requests) == 1


class TestConfirmOptin:
    """Test confirming double opt-in subscriptions."""

    @pytest.mark.asyncio
    async def test_confirmed(self, fake, handle):
        fake.add(
            "POST",
            "/subscription/optin/sub-uuid",
            text="<html><h2>Confirmed</h2><p>Your subscription is confirmed.</p></html>",
        )

        result = await subscribers.confirm_optin(handle, "sub-uuid", "list-uuid")

        assert result.value is True
        request = fake.requests[0]
        assert request.headers["content-type"] == "application/x-www-form-urlencoded"
        assert request.content == b"l=list-uuid&confirm=true"

    @pytest.mark.asyncio
    async def test_unrecognised_page(self, fake, handle):
        fake.add("POST", "/subscription/optin/sub-uuid", text="<html>Error</html>")

        result = await subscribers.confirm_optin(handle, "sub-uuid", "list-uuid")

        assert result.value is False
