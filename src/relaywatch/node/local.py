# node/local.py
"""
LocalRelayNode
==============
Minimal in-process relay endpoint used when no external node is configured.

Binds an asyncio TCP listener per configured ``/ip4|ip6/<host>/tcp/<port>``
address and keeps inbound connections open until they close or the node is
stopped. It speaks no peer protocol: it exists so the supervisor has a real
resource to start, query and stop.
"""

from __future__ import annotations

import asyncio
import re
import uuid
from dataclasses import dataclass
from typing import Dict, List

from relaywatch.models.config import NodeConfig
from relaywatch.models.errors import StartError
from relaywatch.utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.NODE)

_LISTEN_ADDR = re.compile(r"^/(ip4|ip6)/([^/]+)/tcp/(\d+)$")


@dataclass(frozen=True)
class LocalConnection:
    remote_peer: str
    remote_addr: str


def parse_listen_address(address: str) -> tuple:
    match = _LISTEN_ADDR.match(address.strip())
    if not match:
        raise StartError(f"Unsupported listen address: '{address}'")
    family, host, port = match.groups()
    return family, host, int(port)


class LocalRelayNode:
    """
    Example:
        node = LocalRelayNode(NodeConfig(listen=["/ip4/127.0.0.1/tcp/0"]))
        await node.start()
        node.get_multiaddrs()   # ['/ip4/127.0.0.1/tcp/51234/p2p/<id>']
        await node.stop()
    """

    def __init__(self, config: NodeConfig):
        self.config = config
        self.peer_id = config.peer_id or f"relay-{uuid.uuid4().hex[:16]}"
        self._servers: List[asyncio.AbstractServer] = []
        self._multiaddrs: List[str] = []
        self._connections: Dict[asyncio.StreamWriter, LocalConnection] = {}
        self._handlers: set = set()
        self._stopped = False

    async def start(self) -> "LocalRelayNode":
        try:
            for address in self.config.listen:
                family, host, port = parse_listen_address(address)
                server = await asyncio.start_server(self._on_client, host=host, port=port)
                self._servers.append(server)
                for sock in server.sockets:
                    bound_port = sock.getsockname()[1]
                    self._multiaddrs.append(f"/{family}/{host}/tcp/{bound_port}/p2p/{self.peer_id}")
        except OSError as ex:
            await self._close_servers()
            raise StartError(f"Failed to bind relay listener: {ex}", cause=ex) from ex
        except StartError:
            await self._close_servers()
            raise

        log.debug("Local relay listeners bound", count=len(self._servers))
        return self

    async def _on_client(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        peername = writer.get_extra_info("peername") or ("unknown", 0)
        remote_addr = f"{peername[0]}:{peername[1]}"
        conn = LocalConnection(remote_peer=f"tcp:{remote_addr}", remote_addr=remote_addr)
        self._connections[writer] = conn
        self._handlers.add(asyncio.current_task())
        log.debug("Inbound connection", peer=conn.remote_peer)

        try:
            while not self._stopped:
                chunk = await reader.read(4096)
                if not chunk:
                    break
        except (ConnectionError, asyncio.IncompleteReadError):
            pass
        finally:
            self._connections.pop(writer, None)
            self._handlers.discard(asyncio.current_task())
            writer.close()
            log.debug("Connection closed", peer=conn.remote_peer)

    async def _close_servers(self) -> None:
        for server in self._servers:
            server.close()
        for server in self._servers:
            await server.wait_closed()
        self._servers.clear()

    async def stop(self) -> None:
        if self._stopped:
            return
        self._stopped = True

        for server in self._servers:
            server.close()
        for writer in list(self._connections):
            writer.close()
        handlers = [t for t in self._handlers if t is not None and not t.done()]
        for task in handlers:
            task.cancel()
        if handlers:
            await asyncio.gather(*handlers, return_exceptions=True)
        await self._close_servers()
        self._connections.clear()
        log.debug("Local relay stopped", peer_id=self.peer_id)

    # ------------------------------------------------------------------
    # NodeHandle queries
    # ------------------------------------------------------------------

    def get_multiaddrs(self) -> List[str]:
        return list(self._multiaddrs)

    def get_peers(self) -> List[str]:
        return list(dict.fromkeys(c.remote_peer for c in self._connections.values()))

    def get_protocols(self) -> List[str]:
        return list(self.config.protocols)

    def get_connections(self) -> List[LocalConnection]:
        return list(self._connections.values())


async def start_local_relay(config: NodeConfig) -> LocalRelayNode:
    """Default node factory."""
    return await LocalRelayNode(config).start()
