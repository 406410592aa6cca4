"""Service layer wiring rules, registry, and the sequencer event loop."""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

from amidiauto.core.config_loader import load_rules
from amidiauto.core.errors import EndpointQueryError, SequencerInitError
from amidiauto.core.model import PortExited, PortStarted
from amidiauto.core.reconciler import Reconciler
from amidiauto.core.registry import EndpointRegistry
from amidiauto.transports.alsa_seq import REQUIRED_TOOLS, AlsaSequencerBus
from amidiauto.transports.base import SequencerBus

LOGGER = logging.getLogger(__name__)


class AutoConnectService:
    def __init__(
        self,
        *,
        bus: SequencerBus | None = None,
        config_path: Path | None = None,
    ) -> None:
        loaded = load_rules(config_path)
        self.rules = loaded.rules
        self.load_warnings = loaded.warnings
        self.runtime_warnings = _runtime_warnings() if bus is None else ()
        self.bus = bus or AlsaSequencerBus()
        self.registry = EndpointRegistry()
        self.reconciler = Reconciler(self.registry, self.rules, self.bus)

    def populate(self) -> int:
        try:
            ports = self.bus.list_ports()
        except EndpointQueryError as exc:
            raise SequencerInitError(f"Couldn't enumerate sequencer ports: {exc}", code=exc.code) from exc

        admitted = 0
        for info in ports:
            if self.registry.admit(info).admitted:
                admitted += 1
        LOGGER.info("Found %d of %d existing ports", admitted, len(ports))
        return admitted

    def connect_existing(self) -> None:
        self.populate()
        self.reconciler.initial_sweep()

    def handle(self, notification: PortStarted | PortExited) -> None:
        if isinstance(notification, PortExited):
            self.reconciler.dispatch(notification)
            return

        try:
            info = self.bus.port_info(notification.address)
        except EndpointQueryError as exc:
            LOGGER.warning("Ignoring port %s: %s", notification.address, exc)
            return
        self.reconciler.dispatch(info)

    def run(self) -> None:
        self.bus.open()
        try:
            self.connect_existing()
            for notification in self.bus.notifications():
                self.handle(notification)
        finally:
            self.bus.close()


def _runtime_warnings() -> tuple[str, ...]:
    warnings: list[str] = []
    for tool in REQUIRED_TOOLS:
        if shutil.which(tool) is None:
            warnings.append(f"'{tool}' not found in PATH; install alsa-utils.")
    return tuple(warnings)
