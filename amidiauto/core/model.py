"""Core data models used across registry, rules, reconciler, and CLI."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntEnum


@dataclass(frozen=True, order=True)
class Address:
    client: int
    port: int

    def __str__(self) -> str:
        return f"{self.client}:{self.port}"


class ClientType(str, Enum):
    SOFTWARE = "software"
    HARDWARE = "hardware"


class Strength(IntEnum):
    NONE = 0
    VERY_VAGUE = 1
    VAGUE = 2
    SPECIFIC = 3


class RuleKind(str, Enum):
    ALLOW = "allow"
    DISALLOW = "disallow"


@dataclass(frozen=True)
class Rule:
    output: str
    input: str


@dataclass(frozen=True)
class PortInfo:
    address: Address
    name: str
    client_name: str
    is_application: bool = False
    can_read: bool = False
    can_write: bool = False
    no_export: bool = False


@dataclass
class Client:
    client_id: int
    producer: Address | None = None
    consumer: Address | None = None

    @property
    def empty(self) -> bool:
        return self.producer is None and self.consumer is None


@dataclass(frozen=True)
class Admission:
    address: Address
    client_type: ClientType
    producer: bool = False
    consumer: bool = False

    @property
    def admitted(self) -> bool:
        return self.producer or self.consumer


@dataclass(frozen=True)
class PortStarted:
    address: Address


@dataclass(frozen=True)
class PortExited:
    address: Address
