"""
LocalRelayNode against real loopback sockets.
"""

import asyncio

import pytest

from relaywatch.models.config import NodeConfig
from relaywatch.models.errors import StartError
from relaywatch.node.addresses import trim_addresses
from relaywatch.node.local import LocalRelayNode, parse_listen_address, start_local_relay


def _config(**kw):
    kw.setdefault("listen", ["/ip4/127.0.0.1/tcp/0"])
    return NodeConfig(**kw)


def _port(node):
    return int(trim_addresses(node.get_multiaddrs())[0].rsplit("/", 1)[1])


async def _until(predicate, timeout=1.0):
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not reached")
        await asyncio.sleep(0.01)


def test_parse_listen_address():
    assert parse_listen_address("/ip4/127.0.0.1/tcp/4001") == ("ip4", "127.0.0.1", 4001)
    assert parse_listen_address("/ip6/::1/tcp/0") == ("ip6", "::1", 0)
    with pytest.raises(StartError):
        parse_listen_address("/ip4/127.0.0.1/udp/4001/quic")


@pytest.mark.asyncio
async def test_start_reports_bound_addresses_with_peer_id():
    node = await start_local_relay(_config(peer_id="QmLocal", protocols=["/relay/1.0", "/ping/1.0"]))
    try:
        addrs = node.get_multiaddrs()
        assert len(addrs) == 1
        assert addrs[0].startswith("/ip4/127.0.0.1/tcp/")
        assert addrs[0].endswith("/p2p/QmLocal")
        assert _port(node) > 0
        assert node.get_protocols() == ["/relay/1.0", "/ping/1.0"]
        assert node.get_peers() == []
        assert node.get_connections() == []
    finally:
        await node.stop()


@pytest.mark.asyncio
async def test_generated_peer_id():
    node = LocalRelayNode(_config())
    assert node.peer_id.startswith("relay-")


@pytest.mark.asyncio
async def test_inbound_connections_are_reported():
    node = await start_local_relay(_config())
    try:
        _, writer = await asyncio.open_connection("127.0.0.1", _port(node))
        await _until(lambda: len(node.get_connections()) == 1)

        conn = node.get_connections()[0]
        assert conn.remote_peer.startswith("tcp:127.0.0.1:")
        assert node.get_peers() == [conn.remote_peer]

        writer.close()
        await writer.wait_closed()
        await _until(lambda: node.get_connections() == [])
    finally:
        await node.stop()


@pytest.mark.asyncio
async def test_stop_closes_connections_and_is_idempotent():
    node = await start_local_relay(_config())
    port = _port(node)
    reader, writer = await asyncio.open_connection("127.0.0.1", port)
    await _until(lambda: len(node.get_connections()) == 1)

    await asyncio.wait_for(node.stop(), timeout=2.0)
    await node.stop()

    assert node.get_connections() == []
    assert await asyncio.wait_for(reader.read(), timeout=1.0) == b""
    writer.close()

    with pytest.raises(OSError):
        await asyncio.open_connection("127.0.0.1", port)


@pytest.mark.asyncio
async def test_bind_failure_raises_start_error():
    first = await start_local_relay(_config())
    try:
        with pytest.raises(StartError) as exc_info:
            await start_local_relay(_config(listen=[f"/ip4/127.0.0.1/tcp/{_port(first)}"]))
        assert isinstance(exc_info.value.cause, OSError)
    finally:
        await first.stop()


@pytest.mark.asyncio
async def test_bad_listen_address_releases_earlier_listeners():
    node = LocalRelayNode(_config(listen=["/ip4/127.0.0.1/tcp/0", "/dns4/example.org/tcp/1"]))

    with pytest.raises(StartError):
        await node.start()

    assert node._servers == []
