from __future__ import annotations

import asyncio
import socket
import time
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Protocol

import ntplib

NTP_PORT = 123
NTP_PACKET_SIZE = 48
NTP_VERSION = 4

_MODE_CLIENT = 3
_MODE_SERVER = 4
_STRATUM_UNSYNCHRONIZED = 16


class ErrorType(str, Enum):
    TIMEOUT = "timeout"
    RESOLVE = "resolve"
    NETWORK = "network"
    INVALID_RESPONSE = "invalid_response"
    FAULT = "fault"


@dataclass(frozen=True, slots=True)
class ProbeOutcome:
    success: bool
    error_type: ErrorType | None = None
    detail: str = ""


class Probe(Protocol):
    def __call__(self, server: str) -> Awaitable[ProbeOutcome | bool]:
        ...


class InvalidResponse(ValueError):
    pass


def split_address(server: str, default_port: int = NTP_PORT) -> tuple[str, int]:
    """Split ``host``, ``host:port`` or ``[v6addr]:port`` into host and port."""
    server = server.strip()
    if server.startswith("["):
        host, _, rest = server[1:].partition("]")
        if rest.startswith(":") and rest[1:]:
            return host, int(rest[1:])
        return host, default_port
    if server.count(":") == 1:
        host, port = server.split(":")
        return host, int(port)
    return server, default_port


def build_request(transmit_time: float) -> bytes:
    packet = ntplib.NTPPacket(
        version=NTP_VERSION,
        mode=_MODE_CLIENT,
        tx_timestamp=ntplib.system_to_ntp_time(transmit_time),
    )
    return packet.to_data()


def _decode(data: bytes) -> ntplib.NTPPacket:
    packet = ntplib.NTPPacket()
    try:
        packet.from_data(data)
    except ntplib.NTPException as exc:
        raise InvalidResponse(f"undecodable packet ({len(data)} bytes)") from exc
    return packet


def validate_response(request: bytes, response: bytes) -> ntplib.NTPPacket:
    if len(response) < NTP_PACKET_SIZE:
        raise InvalidResponse(f"short packet ({len(response)} bytes)")
    sent = _decode(request)
    reply = _decode(response)
    if reply.mode != _MODE_SERVER:
        raise InvalidResponse(f"unexpected mode {reply.mode}")
    if reply.stratum == 0 or reply.stratum >= _STRATUM_UNSYNCHRONIZED:
        raise InvalidResponse(f"server not synchronized (stratum {reply.stratum})")
    if reply.orig_timestamp != sent.tx_timestamp:
        raise InvalidResponse("origin timestamp does not match request")
    return reply


class _NtpClientProtocol(asyncio.DatagramProtocol):
    def __init__(self, request: bytes, reply: asyncio.Future[bytes]) -> None:
        self._request = request
        self._reply = reply

    def connection_made(self, transport: asyncio.BaseTransport) -> None:
        transport.sendto(self._request)  # type: ignore[attr-defined]

    def datagram_received(self, data: bytes, addr: tuple[str, int]) -> None:
        if not self._reply.done():
            self._reply.set_result(data)

    def error_received(self, exc: Exception) -> None:
        if not self._reply.done():
            self._reply.set_exception(exc)

    def connection_lost(self, exc: Exception | None) -> None:
        if not self._reply.done():
            self._reply.set_exception(exc or ConnectionError("socket closed before reply"))


@dataclass(frozen=True, slots=True)
class NtpProbe:
    """Single SNTP request/response exchange over UDP.

    Every outcome the network can produce is returned as a ``ProbeOutcome``;
    only programming errors escape.
    """

    timeout_sec: float = 5.0
    port: int = NTP_PORT

    async def __call__(self, server: str) -> ProbeOutcome:
        try:
            await self.query(server)
        except asyncio.TimeoutError:
            err = ErrorType.TIMEOUT
            detail = f"no reply within {self.timeout_sec}s"
        except socket.gaierror as exc:
            err = ErrorType.RESOLVE
            detail = str(exc)
        except InvalidResponse as exc:
            err = ErrorType.INVALID_RESPONSE
            detail = str(exc)
        except OSError as exc:
            err = ErrorType.NETWORK
            detail = str(exc)
        else:
            return ProbeOutcome(success=True)
        return ProbeOutcome(success=False, error_type=err, detail=detail)

    async def query(self, server: str) -> ntplib.NTPPacket:
        host, port = split_address(server, self.port)
        loop = asyncio.get_running_loop()
        reply: asyncio.Future[bytes] = loop.create_future()
        request = build_request(time.time())
        # One budget covers name resolution, socket setup and the reply.
        async with asyncio.timeout(self.timeout_sec):
            transport, _ = await loop.create_datagram_endpoint(
                lambda: _NtpClientProtocol(request, reply),
                remote_addr=(host, port),
            )
            try:
                response = await reply
            finally:
                transport.close()
        return validate_response(request, response)
