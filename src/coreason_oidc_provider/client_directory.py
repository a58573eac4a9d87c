# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_oidc_provider

"""
Client directory: resolves client identifiers to their registered capabilities.

The directory is an external collaborator of the validation engine. This module
defines its protocol plus an in-memory implementation and an HTTP implementation
backed by a client registration service.
"""

import uuid
from collections.abc import Iterable
from datetime import UTC, datetime
from typing import Any, Protocol
from urllib.parse import quote

import anyio
import httpx

from coreason_oidc_provider.exceptions import ClientDirectoryError, ClientNotFoundError
from coreason_oidc_provider.models import (
    Client,
    ClientDeletion,
    ClientRegistration,
    ClientSummary,
    ClientUpdate,
    PaginatedResult,
    PaginationOptions,
)
from coreason_oidc_provider.pagination import paginate
from coreason_oidc_provider.utils.logger import logger


class ClientDirectory(Protocol):
    """Protocol for client directories. `get` raises ClientNotFoundError for unknown clients."""

    async def get(self, client_id: str) -> Client: ...

    async def create(self, registration: ClientRegistration) -> Client: ...

    async def update(self, client_id: str, changes: ClientUpdate) -> Client: ...

    async def delete(self, client_id: str) -> ClientDeletion: ...

    async def list(self, page: int = 1, limit: int = 10) -> PaginatedResult[ClientSummary]: ...


class InMemoryClientDirectory:
    """
    Dictionary backed ClientDirectory. Listing follows registration order.
    Suitable for tests and single-process deployments.
    """

    def __init__(self, clients: Iterable[Client] = ()) -> None:
        self._clients: dict[str, Client] = {client.client_id: client for client in clients}
        self._lock: anyio.Lock | None = None

    def _get_lock(self) -> anyio.Lock:
        if self._lock is None:
            self._lock = anyio.Lock()
        return self._lock

    async def get(self, client_id: str) -> Client:
        try:
            return self._clients[client_id]
        except KeyError:
            raise ClientNotFoundError(client_id) from None

    async def create(self, registration: ClientRegistration) -> Client:
        now = datetime.now(UTC)
        client = Client(
            client_id=str(uuid.uuid4()),
            created_at=now,
            updated_at=now,
            **registration.model_dump(),
        )
        async with self._get_lock():
            self._clients[client.client_id] = client
        logger.info(f"Registered client {client.client_id}")
        return client

    async def update(self, client_id: str, changes: ClientUpdate) -> Client:
        async with self._get_lock():
            current = await self.get(client_id)
            updated = Client.model_validate(
                {
                    **current.model_dump(),
                    **changes.model_dump(exclude_unset=True),
                    "updated_at": datetime.now(UTC),
                }
            )
            self._clients[client_id] = updated
        logger.info(f"Updated client {client_id}")
        return updated

    async def delete(self, client_id: str) -> ClientDeletion:
        async with self._get_lock():
            if self._clients.pop(client_id, None) is None:
                raise ClientNotFoundError(client_id)
        logger.info(f"Deleted client {client_id}")
        return ClientDeletion(client_id=client_id, deleted_at=datetime.now(UTC))

    async def list(self, page: int = 1, limit: int = 10) -> PaginatedResult[ClientSummary]:
        summaries = [client.summary() for client in self._clients.values()]
        return PaginatedResult[ClientSummary].model_validate(
            paginate(summaries, PaginationOptions(page=page, limit=limit)).model_dump()
        )


class HttpClientDirectory:
    """
    ClientDirectory backed by a client registration REST service.

    Reads are retried on transport errors and 5xx responses up to `attempts` times
    with exponential backoff (initial=0.1s, max=1.0s). Writes are sent once.

    Attributes:
        base_url (str): Base URL of the registration service, e.g. https://registry.internal/api.
        client (httpx.AsyncClient): The HTTP client to use for requests.
    """

    def __init__(
        self,
        base_url: str,
        client: httpx.AsyncClient,
        attempts: int = 3,
        wait_initial: float = 0.1,
        wait_max: float = 1.0,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.client = client
        self.attempts = attempts
        self.wait_initial = wait_initial
        self.wait_max = wait_max

    def _url(self, client_id: str | None = None) -> str:
        if client_id is None:
            return f"{self.base_url}/clients"
        return f"{self.base_url}/clients/{quote(client_id, safe='')}"

    async def _request(self, method: str, url: str, retry: bool, **kwargs: Any) -> httpx.Response:
        attempts = self.attempts if retry else 1
        for attempt in range(attempts):
            try:
                response = await self.client.request(method, url, **kwargs)
            except httpx.HTTPError as e:
                error: Exception = e
            else:
                if response.status_code < 500:
                    return response
                error = ClientDirectoryError(f"status {response.status_code}")

            if attempt == attempts - 1:
                raise ClientDirectoryError(f"Client directory request {method} {url} failed: {error}") from error

            sleep_time = min(self.wait_initial * (2**attempt), self.wait_max)
            logger.debug(f"Client directory request {method} {url} failed ({error}), retrying in {sleep_time}s")
            await anyio.sleep(sleep_time)

        raise ClientDirectoryError(f"Client directory request {method} {url} failed")  # pragma: no cover

    @staticmethod
    def _check(response: httpx.Response, client_id: str | None = None) -> None:
        if response.status_code == 404 and client_id is not None:
            raise ClientNotFoundError(client_id)
        if response.is_error:
            raise ClientDirectoryError(
                f"Client directory rejected {response.request.method} {response.request.url}: "
                f"status {response.status_code}"
            )

    @staticmethod
    def _parse_client(response: httpx.Response) -> Client:
        try:
            return Client.model_validate(response.json())
        except ValueError as e:
            raise ClientDirectoryError(f"Invalid client payload from directory: {e}") from e

    async def get(self, client_id: str) -> Client:
        response = await self._request("GET", self._url(client_id), retry=True)
        self._check(response, client_id)
        return self._parse_client(response)

    async def create(self, registration: ClientRegistration) -> Client:
        response = await self._request("POST", self._url(), retry=False, json=registration.model_dump(mode="json"))
        self._check(response)
        return self._parse_client(response)

    async def update(self, client_id: str, changes: ClientUpdate) -> Client:
        response = await self._request(
            "PATCH",
            self._url(client_id),
            retry=False,
            json=changes.model_dump(mode="json", exclude_unset=True),
        )
        self._check(response, client_id)
        return self._parse_client(response)

    async def delete(self, client_id: str) -> ClientDeletion:
        response = await self._request("DELETE", self._url(client_id), retry=False)
        self._check(response, client_id)
        if response.status_code == 204 or not response.content:
            return ClientDeletion(client_id=client_id, deleted_at=datetime.now(UTC))
        try:
            return ClientDeletion.model_validate(response.json())
        except ValueError as e:
            raise ClientDirectoryError(f"Invalid deletion payload from directory: {e}") from e

    async def list(self, page: int = 1, limit: int = 10) -> PaginatedResult[ClientSummary]:
        options = PaginationOptions(page=page, limit=limit)
        response = await self._request(
            "GET", self._url(), retry=True, params={"page": options.page, "limit": options.limit}
        )
        self._check(response)
        try:
            return PaginatedResult[ClientSummary].model_validate(response.json())
        except ValueError as e:
            raise ClientDirectoryError(f"Invalid client listing from directory: {e}") from e
