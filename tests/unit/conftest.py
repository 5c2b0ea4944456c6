"""
Shared fakes for resolver tests.

FakeProvider stands in for the web3 contract provider and records every
remote lookup so tests can assert how many round trips happened.
"""

from __future__ import annotations

import asyncio

import pytest

from niftyrent.config import NiftyRentConfig
from niftyrent.contracts import TokenRecord
from niftyrent.resolver import NiftyRent


class FakeNFTContract:
    def __init__(self, provider: "FakeProvider", address: str):
        self.provider = provider
        self.address = address

    async def fetch_token(self, token_id: str) -> TokenRecord:
        self.provider.calls.append(("fetch_token", self.address, token_id))
        error = self.provider.token_errors.get(token_id)
        if error is not None:
            raise error
        owner = self.provider.owners[(self.address, token_id)]
        return TokenRecord(token_id=token_id, owner_id=owner)


class FakeRentalProxy:
    def __init__(self, provider: "FakeProvider", address: str):
        self.provider = provider
        self.address = address

    async def fetch_borrower(self, contract_id: str, token_id: str) -> str | None:
        self.provider.calls.append(("fetch_borrower", self.address, contract_id, token_id))
        if self.provider.borrower_error is not None:
            raise self.provider.borrower_error
        return self.provider.borrowers.get((self.address, contract_id, token_id))


class FakeProvider:
    def __init__(self):
        self.owners: dict[tuple[str, str], str] = {}
        self.borrowers: dict[tuple[str, str, str], str | None] = {}
        self.token_errors: dict[str, Exception] = {}
        self.borrower_error: Exception | None = None
        self.calls: list[tuple] = []
        self.connects = 0
        self.disconnects = 0
        self.nft_bindings: list[str] = []
        self.rental_bindings: list[str] = []

    async def connect(self) -> None:
        await asyncio.sleep(0)
        self.connects += 1

    async def disconnect(self) -> None:
        self.disconnects += 1

    def nft_contract(self, address: str) -> FakeNFTContract:
        self.nft_bindings.append(address)
        return FakeNFTContract(self, address)

    def rental_proxy(self, address: str) -> FakeRentalProxy:
        self.rental_bindings.append(address)
        return FakeRentalProxy(self, address)


@pytest.fixture
def provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def config() -> NiftyRentConfig:
    return NiftyRentConfig(
        network="testnet",
        nft_contract="nft.contract",
        rental_proxies=["rental.proxy"],
    )


@pytest.fixture
def resolver(config: NiftyRentConfig, provider: FakeProvider) -> NiftyRent:
    return NiftyRent(config=config, provider=provider)
