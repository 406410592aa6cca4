"""Decides which producer/consumer pairs get linked as ports come and go."""

from __future__ import annotations

import logging

from amidiauto.core.errors import LinkRequestError
from amidiauto.core.model import Address, Client, ClientType, PortExited, PortInfo, Strength
from amidiauto.core.registry import EndpointRegistry
from amidiauto.core.rules import RuleSet
from amidiauto.transports.base import SequencerBus

LOGGER = logging.getLogger(__name__)


def minimum_strength(own: ClientType, other: ClientType) -> Strength:
    """Same-type pairs need a specific rule; cross-type pairs are liberal."""
    if own is other:
        return Strength.SPECIFIC
    return Strength.VERY_VAGUE


class Reconciler:
    def __init__(self, registry: EndpointRegistry, rules: RuleSet, bus: SequencerBus) -> None:
        self.registry = registry
        self.rules = rules
        self.bus = bus

    def on_port_appeared(self, info: PortInfo) -> None:
        admission = self.registry.admit(info)
        if not admission.admitted:
            return

        new = info.address
        for client_type in (ClientType.SOFTWARE, ClientType.HARDWARE):
            minimum = minimum_strength(admission.client_type, client_type)
            for client in self.registry.clients(client_type):
                if admission.producer and client.consumer is not None:
                    self._link_if_allowed(new, client.consumer, minimum)
                if admission.consumer and client.producer is not None:
                    self._link_if_allowed(client.producer, new, minimum)

    def on_port_vanished(self, address: Address) -> None:
        # The sequencer drops subscriptions of a vanished port on its own.
        self.registry.withdraw(address)

    def dispatch(self, notification: PortInfo | PortExited) -> None:
        if isinstance(notification, PortExited):
            self.on_port_vanished(notification.address)
        else:
            self.on_port_appeared(notification)

    def initial_sweep(self) -> None:
        hardware = self.registry.clients(ClientType.HARDWARE)
        software = self.registry.clients(ClientType.SOFTWARE)
        self._sweep(hardware, software, Strength.VERY_VAGUE)
        self._sweep(hardware, hardware, Strength.SPECIFIC)
        self._sweep(software, software, Strength.SPECIFIC)

    def _sweep(self, first: list[Client], second: list[Client], minimum: Strength) -> None:
        linked: set[tuple[Address, Address]] = set()
        for a in first:
            for b in second:
                if a is b:
                    continue
                for producer, consumer in ((a.producer, b.consumer), (b.producer, a.consumer)):
                    if producer is None or consumer is None:
                        continue
                    if (producer, consumer) in linked:
                        continue
                    if self._link_if_allowed(producer, consumer, minimum):
                        linked.add((producer, consumer))

    def _link_if_allowed(self, producer: Address, consumer: Address, minimum: Strength) -> bool:
        if not self.rules.is_allowed(producer, consumer, minimum, self.bus.resolve_name):
            return False

        LOGGER.info(
            "Connecting '%s' (%s) -> '%s' (%s)",
            self.bus.resolve_name(producer),
            producer,
            self.bus.resolve_name(consumer),
            consumer,
        )
        try:
            self.bus.connect(producer, consumer)
        except LinkRequestError as exc:
            LOGGER.warning("Failed to connect %s -> %s: %s", producer, consumer, exc)
        return True
