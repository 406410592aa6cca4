"""Sequencer bus interface."""

from __future__ import annotations

from collections.abc import Iterator
from typing import Protocol

from amidiauto.core.model import Address, PortExited, PortInfo, PortStarted


class SequencerBus(Protocol):
    def open(self) -> None:
        """Connect to the sequencer and start listening for announcements."""

    def close(self) -> None:
        """Release any sequencer resources."""

    def list_ports(self) -> list[PortInfo]:
        """Return every port that currently exists."""

    def port_info(self, address: Address) -> PortInfo:
        """Return metadata for one port or raise EndpointQueryError."""

    def notifications(self) -> Iterator[PortStarted | PortExited]:
        """Yield port announcements in delivery order, blocking between them."""

    def connect(self, producer: Address, consumer: Address) -> None:
        """Subscribe consumer to producer or raise LinkRequestError."""

    def resolve_name(self, address: Address) -> str:
        """Return the owning client's name, or '' when unknown."""
