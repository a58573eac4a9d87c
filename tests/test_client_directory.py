# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_oidc_provider

import pytest
from pydantic import ValidationError

from coreason_oidc_provider.client_directory import InMemoryClientDirectory
from coreason_oidc_provider.exceptions import ClientNotFoundError
from coreason_oidc_provider.models import Client, ClientRegistration, ClientSummary, ClientUpdate


def registration(name: str = "Portal") -> ClientRegistration:
    return ClientRegistration(
        name=name,
        redirect_uris=["https://portal.example/cb"],
        scopes=["openid", "email"],
        contacts=["admin@portal.example"],
    )


@pytest.mark.asyncio
async def test_get_registered_client(directory: InMemoryClientDirectory, client: Client) -> None:
    assert await directory.get("client-123") == client


@pytest.mark.asyncio
async def test_get_unknown_client(directory: InMemoryClientDirectory) -> None:
    with pytest.raises(ClientNotFoundError) as exc:
        await directory.get("nobody")
    assert exc.value.client_id == "nobody"


@pytest.mark.asyncio
async def test_create_assigns_id_and_timestamps() -> None:
    directory = InMemoryClientDirectory()
    created = await directory.create(registration())

    assert created.client_id
    assert created.created_at is not None
    assert created.created_at == created.updated_at
    assert created.scopes == ["openid", "email"]
    assert created.response_types == ["code"]
    assert await directory.get(created.client_id) == created


@pytest.mark.asyncio
async def test_create_generates_unique_ids() -> None:
    directory = InMemoryClientDirectory()
    first = await directory.create(registration("One"))
    second = await directory.create(registration("Two"))
    assert first.client_id != second.client_id


@pytest.mark.asyncio
async def test_update_applies_only_set_fields() -> None:
    directory = InMemoryClientDirectory()
    created = await directory.create(registration())

    updated = await directory.update(created.client_id, ClientUpdate(name="Portal v2"))

    assert updated.name == "Portal v2"
    assert updated.scopes == created.scopes
    assert updated.created_at == created.created_at
    assert updated.updated_at is not None and created.updated_at is not None
    assert updated.updated_at >= created.updated_at
    assert await directory.get(created.client_id) == updated


@pytest.mark.asyncio
async def test_update_unknown_client(directory: InMemoryClientDirectory) -> None:
    with pytest.raises(ClientNotFoundError):
        await directory.update("nobody", ClientUpdate(name="x"))


@pytest.mark.asyncio
async def test_delete(directory: InMemoryClientDirectory) -> None:
    deletion = await directory.delete("client-123")
    assert deletion.client_id == "client-123"

    with pytest.raises(ClientNotFoundError):
        await directory.get("client-123")
    with pytest.raises(ClientNotFoundError):
        await directory.delete("client-123")


@pytest.mark.asyncio
async def test_list_paginates_summaries(client: Client) -> None:
    directory = InMemoryClientDirectory([client])
    for name in ("A", "B"):
        await directory.create(registration(name))

    first = await directory.list(page=1, limit=2)
    assert [item.name for item in first.data] == ["Demo App", "A"]
    assert first.metadata.total_items == 3
    assert first.metadata.total_pages == 2
    assert first.metadata.current_page == 1
    assert first.metadata.items_per_page == 2
    assert all(type(item) is ClientSummary for item in first.data)

    second = await directory.list(page=2, limit=2)
    assert [item.name for item in second.data] == ["B"]


@pytest.mark.asyncio
async def test_list_rejects_invalid_page(directory: InMemoryClientDirectory) -> None:
    with pytest.raises(ValidationError):
        await directory.list(page=0)


def test_client_summary_projection(client: Client) -> None:
    summary = client.summary()
    assert summary.client_id == client.client_id
    assert summary.name == client.name
    assert not hasattr(summary, "redirect_uris")


def test_registration_requires_absolute_redirect_uris() -> None:
    with pytest.raises(ValidationError, match="absolute"):
        ClientRegistration(name="Bad", redirect_uris=["/cb"])
    with pytest.raises(ValidationError):
        ClientRegistration(name="Bad", redirect_uris=[])


def test_registration_validates_contacts() -> None:
    with pytest.raises(ValidationError):
        ClientRegistration(name="Bad", redirect_uris=["https://x.example/cb"], contacts=["not-an-email"])


def test_registration_rejects_unknown_fields() -> None:
    with pytest.raises(ValidationError):
        ClientRegistration.model_validate(
            {"name": "Bad", "redirect_uris": ["https://x.example/cb"], "client_secret": "s3cr3t"}
        )


@pytest.mark.asyncio
async def test_update_rejects_relative_redirect_uri(directory: InMemoryClientDirectory, client: Client) -> None:
    """Updates enforce the same redirect URI rules as registration."""
    with pytest.raises(ValidationError, match="absolute"):
        await directory.update("client-123", ClientUpdate(redirect_uris=["not-a-uri"]))
    with pytest.raises(ValidationError):
        ClientUpdate(redirect_uris=[])

    assert (await directory.get("client-123")).redirect_uris == client.redirect_uris


@pytest.mark.parametrize("field", ["name", "redirect_uris", "response_types", "scopes", "token_endpoint_auth_method"])
def test_update_cannot_clear_required_fields(field: str) -> None:
    with pytest.raises(ValidationError, match=f"Fields cannot be cleared: {field}"):
        ClientUpdate.model_validate({field: None})


@pytest.mark.asyncio
async def test_update_can_clear_optional_fields(directory: InMemoryClientDirectory) -> None:
    await directory.update("client-123", ClientUpdate(description="Demo"))
    changes = ClientUpdate(description=None, redirect_uris=["https://new.example/cb"])
    updated = await directory.update("client-123", changes)

    assert updated.description is None
    assert updated.redirect_uris == ["https://new.example/cb"]
    assert updated.name == "Demo App"
