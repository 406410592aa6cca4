from amidiauto.core.model import Address, ClientType, PortInfo
from amidiauto.core.registry import EndpointRegistry, classify


def _port(
    client: int,
    port: int,
    client_name: str,
    *,
    app: bool = False,
    read: bool = False,
    write: bool = False,
    no_export: bool = False,
) -> PortInfo:
    return PortInfo(
        address=Address(client, port),
        name=f"{client_name} port {port}",
        client_name=client_name,
        is_application=app,
        can_read=read,
        can_write=write,
        no_export=no_export,
    )


def test_classify_kernel_client_as_hardware() -> None:
    assert classify(_port(20, 0, "pisound")) is ClientType.HARDWARE


def test_classify_application_as_software() -> None:
    assert classify(_port(128, 0, "TiMidity", app=True)) is ClientType.SOFTWARE


def test_classify_bridge_application_as_hardware() -> None:
    assert classify(_port(129, 0, "TouchOSC Bridge", app=True)) is ClientType.HARDWARE


def test_first_producer_wins() -> None:
    registry = EndpointRegistry()
    first = registry.admit(_port(20, 0, "Keys", read=True))
    second = registry.admit(_port(20, 1, "Keys", read=True))

    assert first.admitted and first.producer
    assert not second.admitted
    client, client_type = registry.find_client(Address(20, 1))
    assert client.producer == Address(20, 0)
    assert client_type is ClientType.HARDWARE


def test_second_port_can_fill_other_direction() -> None:
    registry = EndpointRegistry()
    registry.admit(_port(20, 0, "Keys", read=True))
    admission = registry.admit(_port(20, 1, "Keys", read=True, write=True))

    assert admission.consumer and not admission.producer
    client, _ = registry.find_client(Address(20, 0))
    assert client.producer == Address(20, 0)
    assert client.consumer == Address(20, 1)


def test_duplex_port_fills_both_slots() -> None:
    registry = EndpointRegistry()
    admission = registry.admit(_port(128, 0, "Synth", app=True, read=True, write=True))

    assert admission.producer and admission.consumer
    assert admission.client_type is ClientType.SOFTWARE
    assert [c.client_id for c in registry.clients(ClientType.SOFTWARE)] == [128]
    assert registry.clients(ClientType.HARDWARE) == []


def test_ignored_ports_are_not_tracked() -> None:
    registry = EndpointRegistry()
    assert not registry.admit(_port(0, 1, "System", read=True)).admitted
    assert not registry.admit(_port(14, 0, "Midi Through", read=True, write=True)).admitted
    assert not registry.admit(_port(20, 0, "Keys", read=True, no_export=True)).admitted
    assert not registry.admit(_port(21, 0, "Silent")).admitted
    assert registry.find_client(Address(21, 0)) is None
    assert registry.clients(ClientType.HARDWARE) == []


def test_withdraw_clears_matching_slot() -> None:
    registry = EndpointRegistry()
    registry.admit(_port(20, 0, "Keys", read=True))
    registry.admit(_port(20, 1, "Keys", write=True))

    assert registry.withdraw(Address(20, 0)) is True
    client, _ = registry.find_client(Address(20, 1))
    assert client.producer is None
    assert client.consumer == Address(20, 1)


def test_withdraw_untracked_port_is_noop() -> None:
    registry = EndpointRegistry()
    registry.admit(_port(20, 0, "Keys", read=True))
    registry.admit(_port(20, 1, "Keys", read=True))

    assert registry.withdraw(Address(20, 1)) is False
    assert registry.withdraw(Address(99, 0)) is False
    client, _ = registry.find_client(Address(20, 0))
    assert client.producer == Address(20, 0)


def test_empty_client_is_evicted() -> None:
    registry = EndpointRegistry()
    registry.admit(_port(20, 0, "Keys", read=True))
    registry.withdraw(Address(20, 0))

    assert registry.find_client(Address(20, 0)) is None
    admission = registry.admit(_port(20, 2, "Keys", read=True))
    assert admission.producer
