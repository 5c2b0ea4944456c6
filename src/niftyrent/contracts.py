"""Contract handles for NFT and rental proxy lookups.

The resolver only talks to the ``NFTContract`` and ``RentalProxy`` protocols.
The web3 implementations below call ERC721 ``ownerOf`` and the rental proxy's
``getBorrower`` through an ``AsyncWeb3`` connection.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol

from web3 import AsyncHTTPProvider, AsyncWeb3, Web3
from web3.constants import ADDRESS_ZERO

from .errors import ConfigurationError, RemoteQueryError

logger = logging.getLogger(__name__)

TokenId = str
AccountId = str

# Minimal ABIs for ownership resolution
ERC721_OWNER_ABI = [
    {
        "inputs": [{"internalType": "uint256", "name": "tokenId", "type": "uint256"}],
        "name": "ownerOf",
        "outputs": [{"internalType": "address", "name": "", "type": "address"}],
        "stateMutability": "view",
        "type": "function",
    }
]

RENTAL_PROXY_ABI = [
    {
        "inputs": [
            {"internalType": "address", "name": "nftContract", "type": "address"},
            {"internalType": "uint256", "name": "tokenId", "type": "uint256"},
        ],
        "name": "getBorrower",
        "outputs": [{"internalType": "address", "name": "", "type": "address"}],
        "stateMutability": "view",
        "type": "function",
    }
]


@dataclass(frozen=True)
class TokenRecord:
    """The NFT contract's view of a token at query time."""

    token_id: TokenId
    owner_id: AccountId


class NFTContract(Protocol):
    """Read-only handle on an NFT contract."""

    address: AccountId

    async def fetch_token(self, token_id: TokenId) -> TokenRecord: ...


class RentalProxy(Protocol):
    """Read-only handle on a rental proxy contract."""

    address: AccountId

    async def fetch_borrower(
        self, contract_id: AccountId, token_id: TokenId
    ) -> AccountId | None: ...


class ContractProvider(Protocol):
    """Builds contract handles over one network connection."""

    async def connect(self) -> None: ...

    async def disconnect(self) -> None: ...

    def nft_contract(self, address: AccountId) -> NFTContract: ...

    def rental_proxy(self, address: AccountId) -> RentalProxy: ...


def checksum_address(address: AccountId) -> str:
    """Checksum a contract address, rejecting anything that is not one."""
    try:
        return Web3.to_checksum_address(address)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid contract address: {address!r}") from e


def parse_token_id(token_id: TokenId) -> int:
    """Convert a token id string to the uint256 the contracts expect.

    Accepts decimal or 0x-prefixed hex.
    """
    text = token_id.strip()
    try:
        if text.lower().startswith("0x"):
            value = int(text, 16)
        else:
            value = int(text, 10)
    except ValueError as e:
        raise RemoteQueryError(f"Malformed token id: {token_id!r}") from e
    if value < 0 or value >= 2**256:
        raise RemoteQueryError(f"Token id out of uint256 range: {token_id!r}")
    return value


class Web3NFTContract:
    """ERC721 contract handle."""

    def __init__(self, w3: AsyncWeb3, address: AccountId):
        self.w3 = w3
        self.address = address
        self._contract = w3.eth.contract(
            address=checksum_address(address), abi=ERC721_OWNER_ABI
        )

    async def fetch_token(self, token_id: TokenId) -> TokenRecord:
        """Fetch the token's owner via ownerOf()."""
        value = parse_token_id(token_id)
        try:
            owner = await self._contract.functions.ownerOf(value).call()
        except Exception as e:
            logger.warning(f"Error fetching token {token_id} from {self.address}: {e}")
            raise RemoteQueryError(
                f"Token lookup failed for {token_id} on {self.address}: {e}"
            ) from e
        return TokenRecord(token_id=token_id, owner_id=owner)


class Web3RentalProxy:
    """Rental proxy contract handle.

    ``fetch_borrower`` reports the zero address as ``None`` (no active lease).
    """

    def __init__(self, w3: AsyncWeb3, address: AccountId):
        self.w3 = w3
        self.address = address
        self._contract = w3.eth.contract(
            address=checksum_address(address), abi=RENTAL_PROXY_ABI
        )

    async def fetch_borrower(
        self, contract_id: AccountId, token_id: TokenId
    ) -> AccountId | None:
        value = parse_token_id(token_id)
        try:
            borrower = await self._contract.functions.getBorrower(
                checksum_address(contract_id), value
            ).call()
        except Exception as e:
            logger.warning(
                f"Error fetching borrower of {contract_id}#{token_id} from {self.address}: {e}"
            )
            raise RemoteQueryError(
                f"Borrower lookup failed for {contract_id}#{token_id} on {self.address}: {e}"
            ) from e
        if not borrower or borrower == ADDRESS_ZERO:
            return None
        return borrower


class Web3ContractProvider:
    """Contract provider over an HTTP JSON-RPC endpoint."""

    def __init__(self, rpc_url: str, w3: AsyncWeb3 | None = None):
        self.rpc_url = rpc_url
        self.w3 = w3 or AsyncWeb3(AsyncHTTPProvider(rpc_url))

    async def connect(self) -> None:
        """Check the endpoint answers before handles are built."""
        try:
            connected = await self.w3.is_connected()
        except Exception as e:
            raise RemoteQueryError(f"Could not reach RPC endpoint {self.rpc_url}: {e}") from e
        if not connected:
            raise RemoteQueryError(f"Could not reach RPC endpoint {self.rpc_url}")
        logger.info(f"Connected to {self.rpc_url}")

    async def disconnect(self) -> None:
        await self.w3.provider.disconnect()

    def nft_contract(self, address: AccountId) -> Web3NFTContract:
        return Web3NFTContract(self.w3, address)

    def rental_proxy(self, address: AccountId) -> Web3RentalProxy:
        return Web3RentalProxy(self.w3, address)
