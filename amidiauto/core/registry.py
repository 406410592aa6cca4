"""Tracks which clients currently expose a producer and/or consumer port."""

from __future__ import annotations

import logging

from amidiauto.core.model import Address, Admission, Client, ClientType, PortInfo

SYSTEM_CLIENT = 0
SYSTEM_TIMER_PORT = 0
SYSTEM_ANNOUNCE_PORT = 1
THRU_CLIENT_PREFIX = "Midi Through"
# Application clients that front a physical controller.
HARDWARE_CLIENT_PREFIXES = ("TouchOSC Bridge",)
LOGGER = logging.getLogger(__name__)


def classify(info: PortInfo) -> ClientType:
    if not info.is_application:
        return ClientType.HARDWARE
    if info.client_name.startswith(HARDWARE_CLIENT_PREFIXES):
        return ClientType.HARDWARE
    return ClientType.SOFTWARE


def is_ignored(info: PortInfo) -> bool:
    if info.no_export:
        return True
    if info.address.client == SYSTEM_CLIENT:
        return True
    return info.client_name.startswith(THRU_CLIENT_PREFIX)


class EndpointRegistry:
    """Per-type maps of client id to the first producer/consumer port seen.

    Only one port per direction is tracked for each client, so devices that
    expose several identical ports do not get events delivered twice.
    """

    def __init__(self) -> None:
        self._clients: dict[ClientType, dict[int, Client]] = {
            ClientType.SOFTWARE: {},
            ClientType.HARDWARE: {},
        }

    def clients(self, client_type: ClientType) -> list[Client]:
        return list(self._clients[client_type].values())

    def find_client(self, address: Address) -> tuple[Client, ClientType] | None:
        for client_type, clients in self._clients.items():
            client = clients.get(address.client)
            if client is not None:
                return client, client_type
        return None

    def admit(self, info: PortInfo) -> Admission:
        client_type = classify(info)
        if is_ignored(info):
            return Admission(address=info.address, client_type=client_type)

        found = self.find_client(info.address)
        if found is None:
            client = Client(client_id=info.address.client)
            self._clients[client_type][client.client_id] = client
        else:
            client, client_type = found

        producer = False
        consumer = False
        if info.can_read and client.producer is None:
            client.producer = info.address
            producer = True
        if info.can_write and client.consumer is None:
            client.consumer = info.address
            consumer = True

        if producer or consumer:
            LOGGER.debug(
                "Tracking %s port %s of '%s' (producer=%s, consumer=%s)",
                client_type.value,
                info.address,
                info.client_name,
                producer,
                consumer,
            )
        elif client.empty:
            del self._clients[client_type][client.client_id]

        return Admission(
            address=info.address,
            client_type=client_type,
            producer=producer,
            consumer=consumer,
        )

    def withdraw(self, address: Address) -> bool:
        found = self.find_client(address)
        if found is None:
            return False

        client, client_type = found
        cleared = False
        if client.producer == address:
            client.producer = None
            cleared = True
        if client.consumer == address:
            client.consumer = None
            cleared = True

        if client.empty:
            # Empty entries never produce a pairing.
            del self._clients[client_type][client.client_id]
        if cleared:
            LOGGER.debug("Released port %s", address)
        return cleared
