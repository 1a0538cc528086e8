"""Tests for mailing list operations."""

import pytest

from listmonk.sdk import lists
from listmonk.sdk.exceptions import HTTPError, ProtocolError, ValidationError
from listmonk.sdk.models import ListType, OptinType

from conftest import body_of, page_of


NEWSLETTER = {"id": 1, "name": "Newsletter", "type": "public", "optin": "double", "tags": ["news"]}


@pytest.mark.asyncio
async def test_get_fetches_everything_at_once(fake, handle):
    fake.add("GET", "/api/lists", json=page_of([NEWSLETTER, {"id": 2, "name": "Internal"}]))

    result = await lists.get(handle)

    assert [lst.name for lst in result.value] == ["Newsletter", "Internal"]
    assert result.value[0].optin is OptinType.DOUBLE
    assert fake.requests[0].url.params["per_page"] == "1000000"
    assert len(fake.requests) == 1


class TestGetById:
    """Test fetching one list."""

    @pytest.mark.asyncio
    async def test_found(self, fake, handle):
        fake.add("GET", "/api/lists/1", json={"data": NEWSLETTER})

        result = await lists.get_by_id(handle, 1)

        assert result.value.name == "Newsletter"
        assert result.value.tags == ["news"]

    @pytest.mark.asyncio
    async def test_not_found(self, fake, handle):
        fake.add("GET", "/api/lists/42", status=404, json={"message": "List not found"})

        assert (await lists.get_by_id(handle, 42)).value is None

    @pytest.mark.asyncio
    async def test_results_page_answer(self, fake, handle):
        other = {"id": 7, "name": "Other"}
        fake.add("GET", "/api/lists/1", json=page_of([other, NEWSLETTER]))

        result = await lists.get_by_id(handle, 1)

        assert result.value.id == 1

    @pytest.mark.asyncio
    async def test_results_page_without_match(self, fake, handle):
        fake.add("GET", "/api/lists/1", json=page_of([{"id": 7, "name": "Other"}]))

        assert (await lists.get_by_id(handle, 1)).value is None

    @pytest.mark.asyncio
    async def test_server_error(self, fake, handle):
        fake.add("GET", "/api/lists/1", status=500, json={"message": "db down"})

        result = await lists.get_by_id(handle, 1)

        assert isinstance(result.error, HTTPError)
        assert result.error.status_code == 500


class TestCreate:
    """Test creating lists."""

    @pytest.mark.asyncio
    async def test_defaults(self, fake, handle):
        fake.add("POST", "/api/lists", json={"data": {"id": 3, "name": "Beta"}})

        result = await lists.create(handle, {"name": " Beta "})

        assert result.value.id == 3
        assert result.value.type is ListType.PUBLIC
        assert body_of(fake.requests[0]) == {"name": "Beta", "type": "public", "optin": "single"}

    @pytest.mark.asyncio
    async def test_optional_fields(self, fake, handle):
        fake.add("POST", "/api/lists", json={"data": {"id": 4}})

        await lists.create(
            handle,
            {
                "name": "VIP",
                "type": ListType.PRIVATE,
                "optin": "double",
                "tags": ["vip"],
                "description": "Top customers",
            },
        )

        assert body_of(fake.requests[0]) == {
            "name": "VIP",
            "type": "private",
            "optin": "double",
            "tags": ["vip"],
            "description": "Top customers",
        }

    @pytest.mark.asyncio
    async def test_invalid_optin(self, fake, handle):
        result = await lists.create(handle, {"name": "VIP", "optin": "triple"})

        assert isinstance(result.error, ValidationError)
        assert result.error.field == "optin"
        assert fake.requests == []

    @pytest.mark.asyncio
    async def test_non_object_answer_is_an_error_result(self, fake, handle):
        fake.add("POST", "/api/lists", json={"data": [1]})

        result = await lists.create(handle, {"name": "x"})

        assert not result.ok
        assert isinstance(result.error, ProtocolError)
        assert result.error.response_body == [1]

    @pytest.mark.asyncio
    async def test_missing_data_is_an_error_result(self, fake, handle):
        fake.add("POST", "/api/lists", json={})

        result = await lists.create(handle, {"name": "x"})

        assert isinstance(result.error, ProtocolError)


class TestDelete:
    """Test deleting lists."""

    @pytest.mark.asyncio
    async def test_existing(self, fake, handle):
        fake.add("GET", "/api/lists/1", json={"data": NEWSLETTER})
        fake.add("DELETE", "/api/lists/1", json={"data": True})

        assert (await lists.delete(handle, 1)).value is True

    @pytest.mark.asyncio
    async def test_missing_list_sends_no_delete(self, fake, handle):
        fake.add("GET", "/api/lists/42", status=404, json={"message": "List not found"})

        result = await lists.delete(handle, 42)

        assert result.value is False
        assert fake.sent("DELETE") == []
