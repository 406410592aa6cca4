"""Stable public API for building tooling on top of amidiauto.

This module is the supported integration surface for third-party callers.
Avoid importing from private/internal modules unless intentionally depending on
non-stable internals.
"""

from __future__ import annotations

from pathlib import Path

from amidiauto.core.config_loader import LoadedRules, load_rules, parse_rules_text
from amidiauto.core.errors import (
    AmidiautoError,
    ConfigLoadError,
    ConfigValidationError,
    EndpointQueryError,
    LinkRequestError,
    RuleValidationError,
    SequencerError,
    SequencerInitError,
    SequencerIOError,
)
from amidiauto.core.model import (
    Address,
    Client,
    ClientType,
    PortExited,
    PortInfo,
    PortStarted,
    Rule,
    RuleKind,
    Strength,
)
from amidiauto.core.registry import EndpointRegistry
from amidiauto.core.rules import RuleSet
from amidiauto.core.service import AutoConnectService
from amidiauto.transports.alsa_seq import AlsaSequencerBus
from amidiauto.transports.base import SequencerBus

__all__ = [
    "AmidiautoError",
    "ConfigLoadError",
    "ConfigValidationError",
    "EndpointQueryError",
    "LinkRequestError",
    "RuleValidationError",
    "SequencerError",
    "SequencerInitError",
    "SequencerIOError",
    "Address",
    "Client",
    "ClientType",
    "PortExited",
    "PortInfo",
    "PortStarted",
    "Rule",
    "RuleKind",
    "Strength",
    "EndpointRegistry",
    "RuleSet",
    "LoadedRules",
    "load_rules",
    "parse_rules_text",
    "AlsaSequencerBus",
    "SequencerBus",
    "AutoConnector",
]


class AutoConnector:
    """Public facade over the auto-connect daemon.

    Wraps rule loading, the endpoint registry, and the reconciler so other
    tools can embed auto-connection against any `SequencerBus`.
    """

    def __init__(
        self,
        *,
        bus: SequencerBus | None = None,
        config_path: Path | None = None,
    ) -> None:
        self._service = AutoConnectService(bus=bus, config_path=config_path)

    @property
    def load_warnings(self) -> tuple[str, ...]:
        return self._service.load_warnings

    @property
    def rules(self) -> RuleSet:
        return self._service.rules

    @property
    def registry(self) -> EndpointRegistry:
        return self._service.registry

    def connect_existing(self) -> None:
        self._service.connect_existing()

    def handle(self, notification: PortStarted | PortExited) -> None:
        self._service.handle(notification)

    def run(self) -> None:
        self._service.run()
