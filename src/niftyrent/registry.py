"""Trusted rental proxy registry."""

from __future__ import annotations

from typing import Iterable, Iterator


class TrustRegistry:
    """Set of contract addresses recognized as rental proxies.

    Membership is exact string equality; no case folding or normalization
    happens here.
    """

    def __init__(self, addresses: Iterable[str] = ()):
        self._ordered: tuple[str, ...] = tuple(dict.fromkeys(addresses))
        self._members: frozenset[str] = frozenset(self._ordered)

    def is_trusted_proxy(self, owner_id: str | None) -> bool:
        """Check if an account is a trusted rental proxy."""
        return owner_id in self._members

    def __contains__(self, owner_id: object) -> bool:
        return owner_id in self._members

    def __iter__(self) -> Iterator[str]:
        return iter(self._ordered)

    def __len__(self) -> int:
        return len(self._ordered)

    def __repr__(self) -> str:
        return f"TrustRegistry({list(self._ordered)!r})"
