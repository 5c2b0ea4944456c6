"""Current-user resolution for rentable NFTs.

A token's nominal owner may be a rental proxy contract holding it on behalf of
a borrower. ``NiftyRent`` follows that indirection: it reads the owner from the
NFT contract and, when the owner is a trusted rental proxy, asks the proxy who
the borrower is.
"""

from __future__ import annotations

import asyncio
import logging
from types import MappingProxyType
from typing import Awaitable, Mapping, Optional, TypeVar

from .config import NiftyRentConfig
from .contracts import (
    AccountId,
    ContractProvider,
    NFTContract,
    RentalProxy,
    TokenId,
    TokenRecord,
    Web3ContractProvider,
)
from .errors import ConfigurationError, RemoteQueryError
from .registry import TrustRegistry

logger = logging.getLogger(__name__)

T = TypeVar("T")


class NiftyRent:
    """Resolves who currently uses an NFT.

    Call ``initialize()`` (or use ``async with``) before any query. Until then
    every query raises ``ConfigurationError`` without touching the network.

    When a trusted proxy holds the token, ``get_current_user`` returns the
    proxy's borrower as reported, and that may be ``None`` when no lease is
    active. It never falls back to the proxy or the previous owner.
    """

    def __init__(
        self,
        config: NiftyRentConfig | None = None,
        provider: ContractProvider | None = None,
    ):
        """Set up the resolver without touching the network.

        Args:
            config: Resolver configuration, loaded from the environment if omitted.
            provider: Contract provider; a web3 provider on ``config.rpc_url``
                is built if omitted.
        """
        self.config = config or NiftyRentConfig()
        self.provider = provider or Web3ContractProvider(self.config.rpc_url)
        self.registry = TrustRegistry(self.config.rental_proxies or [])

        self._default_contract: Optional[NFTContract] = None
        self._rental_bindings: Mapping[AccountId, RentalProxy] = MappingProxyType({})
        self._initialized = False
        self._init_lock = asyncio.Lock()

    @property
    def initialized(self) -> bool:
        return self._initialized

    async def initialize(self) -> None:
        """Connect and build contract bindings. Safe to call more than once."""
        if self._initialized:
            return

        async with self._init_lock:
            if self._initialized:
                return

            await self.provider.connect()

            default_contract = None
            if self.config.nft_contract:
                default_contract = self.provider.nft_contract(self.config.nft_contract)

            bindings = {
                address: self.provider.rental_proxy(address) for address in self.registry
            }

            self._default_contract = default_contract
            self._rental_bindings = MappingProxyType(bindings)
            self._initialized = True
            logger.info(
                f"Initialized resolver on {self.config.network} "
                f"(default contract: {self.config.nft_contract or 'none'}, "
                f"rental proxies: {len(bindings)})"
            )

    async def close(self) -> None:
        """Disconnect. Queries fail with ConfigurationError until re-initialized."""
        async with self._init_lock:
            self._initialized = False
            self._default_contract = None
            self._rental_bindings = MappingProxyType({})
            await self.provider.disconnect()

    async def __aenter__(self) -> "NiftyRent":
        await self.initialize()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def get_current_user(
        self,
        token_id: TokenId,
        contract_addr: AccountId | None = None,
        *,
        timeout: float | None = None,
    ) -> AccountId | None:
        """Return the account currently entitled to use a token.

        Args:
            token_id: Token identifier.
            contract_addr: NFT contract address; the configured default if omitted.
            timeout: Seconds allowed per remote lookup; the configured
                ``request_timeout`` if omitted.

        Returns:
            The borrower if a trusted rental proxy holds the token (``None``
            when the proxy reports no borrower), otherwise the owner.

        Raises:
            ConfigurationError: Not initialized, no contract address, or a
                trusted proxy without a binding.
            RemoteQueryError: A lookup failed or timed out.
        """
        contract = self._resolve_contract(contract_addr)
        record = await self._fetch_token(contract, token_id, timeout)
        owner = record.owner_id

        if not self.registry.is_trusted_proxy(owner):
            logger.debug(f"Token {token_id} on {contract.address} held by owner {owner}")
            return owner

        rental = self._rental_bindings.get(owner)
        if rental is None:
            raise ConfigurationError(f"Rental contract not initialized: {owner}")

        borrower = await self._call(
            rental.fetch_borrower(contract.address, token_id),
            timeout,
            f"borrower lookup for {contract.address}#{token_id} on {owner}",
        )
        logger.debug(
            f"Token {token_id} on {contract.address} rented through {owner}, borrower {borrower}"
        )
        return borrower

    async def is_rented(
        self,
        token_id: TokenId,
        contract_addr: AccountId | None = None,
        *,
        timeout: float | None = None,
    ) -> bool:
        """Check if a trusted rental proxy holds the token.

        Only the nominal owner is checked; an active borrower is not required.
        """
        contract = self._resolve_contract(contract_addr)
        record = await self._fetch_token(contract, token_id, timeout)
        return self.registry.is_trusted_proxy(record.owner_id)

    async def is_current_user(
        self,
        user: AccountId,
        token_id: TokenId,
        contract_addr: AccountId | None = None,
        *,
        timeout: float | None = None,
    ) -> bool:
        """Check if ``user`` is exactly the token's current user."""
        current = await self.get_current_user(token_id, contract_addr, timeout=timeout)
        return current == user

    def _resolve_contract(self, contract_addr: AccountId | None) -> NFTContract:
        if not self._initialized:
            raise ConfigurationError("Resolver not initialized")

        if contract_addr:
            if (
                self._default_contract is not None
                and contract_addr == self._default_contract.address
            ):
                return self._default_contract
            # Per-call binding, never stored
            return self.provider.nft_contract(contract_addr)

        if self._default_contract is None:
            raise ConfigurationError("No contract address available")
        return self._default_contract

    async def _fetch_token(
        self, contract: NFTContract, token_id: TokenId, timeout: float | None
    ) -> TokenRecord:
        return await self._call(
            contract.fetch_token(token_id),
            timeout,
            f"token lookup for {token_id} on {contract.address}",
        )

    async def _call(self, aw: Awaitable[T], timeout: float | None, what: str) -> T:
        if timeout is None:
            timeout = self.config.request_timeout
        try:
            return await asyncio.wait_for(aw, timeout)
        except asyncio.TimeoutError as e:
            logger.warning(f"Timed out after {timeout}s: {what}")
            raise RemoteQueryError(f"Timed out after {timeout}s: {what}") from e
