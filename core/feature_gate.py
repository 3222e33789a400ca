"""
Network filtering for bridge routes.

Applies the bridge allow-lists to the user's configured networks. A route can
never target its own source chain, and the active chain is always surfaced as
the selected source even when the allow-list does not include it.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from shared.constants import ALLOWED_BRIDGE_CHAIN_IDS
from shared.types import BridgeFeatureFlags, Network


class BridgeFeatureGate:
    """Stateless allow-list filters over ``Network`` lists."""

    def __init__(self, supported_chain_ids: Iterable[int] = ALLOWED_BRIDGE_CHAIN_IDS) -> None:
        self._supported_chain_ids = frozenset(supported_chain_ids)

    def all_bridgeable_networks(self, networks: Iterable[Network]) -> list[Network]:
        """De-duplicate by chain id (first wins) and keep bridge-supported chains."""
        seen: set[int] = set()
        bridgeable: list[Network] = []
        for network in networks:
            if network.chain_id in seen:
                continue
            seen.add(network.chain_id)
            if network.chain_id in self._supported_chain_ids:
                bridgeable.append(network)
        return bridgeable

    @staticmethod
    def filter_source_networks(
        all_networks: Sequence[Network], allow_list: Iterable[int]
    ) -> list[Network]:
        allowed = frozenset(allow_list)
        return [n for n in all_networks if n.chain_id in allowed]

    @staticmethod
    def filter_destination_networks(
        all_networks: Sequence[Network],
        allow_list: Iterable[int],
        exclude_chain_id: int | None,
    ) -> list[Network]:
        allowed = frozenset(allow_list)
        return [
            n for n in all_networks if n.chain_id != exclude_chain_id and n.chain_id in allowed
        ]

    @staticmethod
    def resolve_source_network(
        from_chains: Sequence[Network], current_network: Network
    ) -> Network:
        """Listed entry for the current chain, or the current network itself."""
        for network in from_chains:
            if network.chain_id == current_network.chain_id:
                return network
        return current_network

    @staticmethod
    def resolve_destination_network(
        to_chains: Sequence[Network], dest_chain_id: int | None
    ) -> Network | None:
        if dest_chain_id is None:
            return None
        for network in to_chains:
            if network.chain_id == dest_chain_id:
                return network
        return None

    @staticmethod
    def is_bridge_tx(
        from_network: Network, to_network: Network | None, bridge_enabled: bool
    ) -> bool:
        return (
            bridge_enabled
            and to_network is not None
            and from_network.chain_id != to_network.chain_id
        )

    # ------------------------------------------------------------------
    # Convenience wrappers over feature flags
    # ------------------------------------------------------------------

    def source_networks(
        self, networks: Iterable[Network], flags: BridgeFeatureFlags
    ) -> list[Network]:
        return self.filter_source_networks(
            self.all_bridgeable_networks(networks), flags.source_allowlist
        )

    def destination_networks(
        self,
        networks: Iterable[Network],
        flags: BridgeFeatureFlags,
        current_network: Network,
    ) -> list[Network]:
        bridgeable = self.all_bridgeable_networks(networks)
        from_network = self.resolve_source_network(
            self.filter_source_networks(bridgeable, flags.source_allowlist), current_network
        )
        return self.filter_destination_networks(
            bridgeable, flags.dest_allowlist, from_network.chain_id
        )
