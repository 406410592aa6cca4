"""ALSA sequencer bus implementation using the alsa-utils command line tools."""

from __future__ import annotations

import errno
import logging
import re
import shutil
import subprocess
from collections.abc import Iterator, Sequence
from dataclasses import dataclass

from amidiauto.core.errors import (
    EndpointQueryError,
    LinkRequestError,
    SequencerError,
    SequencerInitError,
    SequencerIOError,
)
from amidiauto.core.model import Address, PortExited, PortInfo, PortStarted

_CLIENT_LINE_RE = re.compile(r"^client\s+(\d+):\s+'(.*)'\s+\[([^\]]*)\]")
_PORT_LINE_RE = re.compile(r"^\s+(\d+)\s+'(.*)'\s*$")
_PORT_START_RE = re.compile(r"Port start\s+(\d+):(\d+)")
_PORT_EXIT_RE = re.compile(r"Port exit\s+(\d+):(\d+)")
ANNOUNCE_ADDRESS = "0:1"
REQUIRED_TOOLS = ("aconnect", "aseqdump")
LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class ListedPort:
    address: Address
    name: str
    client_name: str
    client_type: str
    pid: int | None


def parse_listing(output: str) -> list[ListedPort]:
    """Parse `aconnect -l`, `-i` or `-o` output into one entry per port."""
    ports: list[ListedPort] = []
    client: tuple[int, str, str, int | None] | None = None

    for line in output.splitlines():
        match = _CLIENT_LINE_RE.match(line)
        if match:
            attrs = dict(
                item.split("=", 1) for item in match.group(3).split(",") if "=" in item
            )
            pid = attrs.get("pid")
            client = (
                int(match.group(1)),
                match.group(2).strip(),
                attrs.get("type", ""),
                int(pid) if pid and pid.isdigit() else None,
            )
            continue

        match = _PORT_LINE_RE.match(line)
        if not match or client is None:
            continue
        client_id, client_name, client_type, pid = client
        ports.append(
            ListedPort(
                address=Address(client_id, int(match.group(1))),
                name=match.group(2).strip(),
                client_name=client_name,
                client_type=client_type,
                pid=pid,
            )
        )
    return ports


def parse_announcement(line: str) -> PortStarted | PortExited | None:
    match = _PORT_START_RE.search(line)
    if match:
        return PortStarted(Address(int(match.group(1)), int(match.group(2))))
    match = _PORT_EXIT_RE.search(line)
    if match:
        return PortExited(Address(int(match.group(1)), int(match.group(2))))
    return None


class AlsaSequencerBus:
    def __init__(self) -> None:
        self._monitor: subprocess.Popen[str] | None = None
        self._names: dict[int, str] = {}

    def open(self) -> None:
        missing = [tool for tool in REQUIRED_TOOLS if shutil.which(tool) is None]
        if missing:
            raise SequencerInitError(
                f"Missing ALSA tools: {', '.join(missing)}. Install alsa-utils.",
                code=-errno.ENOENT,
            )

        cmd = ["aseqdump", "-p", ANNOUNCE_ADDRESS]
        if shutil.which("stdbuf"):
            cmd = ["stdbuf", "-oL", *cmd]
        try:
            self._monitor = subprocess.Popen(
                cmd,
                stdout=subprocess.PIPE,
                stderr=subprocess.DEVNULL,
                text=True,
            )
        except OSError as exc:
            raise SequencerInitError(
                f"Couldn't start sequencer monitor: {exc}",
                code=-(exc.errno or errno.EIO),
            ) from exc

    def close(self) -> None:
        if self._monitor is None:
            return
        self._monitor.terminate()
        try:
            self._monitor.wait(timeout=2)
        except subprocess.TimeoutExpired:
            self._monitor.kill()
            self._monitor.wait()
        self._monitor = None

    def list_ports(self) -> list[PortInfo]:
        everything = self._list("-l")
        readable = {p.address for p in self._list("-i")}
        writable = {p.address for p in self._list("-o")}
        monitor_pid = self._monitor.pid if self._monitor else None

        self._names = {p.address.client: p.client_name for p in everything}
        return [
            PortInfo(
                address=p.address,
                name=p.name,
                client_name=p.client_name,
                is_application=p.client_type == "user",
                can_read=p.address in readable,
                can_write=p.address in writable,
            )
            for p in everything
            if monitor_pid is None or p.pid != monitor_pid
        ]

    def port_info(self, address: Address) -> PortInfo:
        for info in self.list_ports():
            if info.address == address:
                return info
        raise EndpointQueryError(f"Port {address} is not available", code=-errno.ENOENT)

    def notifications(self) -> Iterator[PortStarted | PortExited]:
        if self._monitor is None or self._monitor.stdout is None:
            raise SequencerIOError("Sequencer monitor is not running", code=-errno.EBADF)

        for line in self._monitor.stdout:
            notification = parse_announcement(line)
            if notification is not None:
                yield notification

        returncode = self._monitor.wait()
        raise SequencerIOError(
            f"Sequencer monitor exited ({returncode})",
            code=-errno.EIO,
        )

    def connect(self, producer: Address, consumer: Address) -> None:
        result = _run_aconnect([str(producer), str(consumer)], error=LinkRequestError)
        if result.returncode != 0:
            stderr = (result.stderr or "").strip()
            raise LinkRequestError(f"aconnect {producer} {consumer} failed: {stderr}")

    def resolve_name(self, address: Address) -> str:
        name = self._names.get(address.client)
        if name is None:
            try:
                self._names = {p.address.client: p.client_name for p in self._list("-l")}
            except EndpointQueryError as exc:
                LOGGER.warning("Could not resolve name of %s: %s", address, exc)
                return ""
            name = self._names.get(address.client, "")
        return name

    def _list(self, flag: str) -> list[ListedPort]:
        result = _run_aconnect([flag], error=EndpointQueryError)
        if result.returncode != 0:
            stderr = (result.stderr or "").strip()
            raise EndpointQueryError(f"aconnect {flag} failed: {stderr}")
        return parse_listing(result.stdout)


def _run_aconnect(
    args: Sequence[str],
    *,
    error: type[SequencerError],
) -> subprocess.CompletedProcess[str]:
    try:
        return subprocess.run(
            ["aconnect", *args],
            check=False,
            capture_output=True,
            text=True,
        )
    except OSError as exc:
        raise error(
            f"Could not run aconnect {' '.join(args)}: {exc}",
            code=-(exc.errno or errno.EIO),
        ) from exc
