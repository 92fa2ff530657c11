from __future__ import annotations

import asyncio
import time

import ntplib
import pytest

from ntpramp.loadgen import ErrorType, NtpProbe, ProbeOutcome, run_burst
from ntpramp.loadgen.probe import (
    NTP_PACKET_SIZE,
    NTP_PORT,
    InvalidResponse,
    build_request,
    split_address,
    validate_response,
)


def _reply(request: bytes, mode: int = 4, stratum: int = 2, echo: bool = True) -> bytes:
    packet = bytearray(NTP_PACKET_SIZE)
    packet[0] = (4 << 3) | mode
    packet[1] = stratum
    if echo:
        packet[24:32] = request[40:48]
    return bytes(packet)


class FakeNtpServer(asyncio.DatagramProtocol):
    def __init__(self, respond: bool = True, **reply_kwargs: object) -> None:
        self.respond = respond
        self.reply_kwargs = reply_kwargs
        self.received = 0
        self.transport: asyncio.DatagramTransport | None = None

    def connection_made(self, transport: asyncio.BaseTransport) -> None:
        self.transport = transport  # type: ignore[assignment]

    def datagram_received(self, data: bytes, addr: tuple[str, int]) -> None:
        self.received += 1
        if self.respond and self.transport is not None:
            self.transport.sendto(_reply(data, **self.reply_kwargs), addr)  # type: ignore[arg-type]


async def _probe_fake(server: FakeNtpServer, timeout: float = 1.0, rate: int = 1) -> list[ProbeOutcome]:
    loop = asyncio.get_running_loop()
    transport, _ = await loop.create_datagram_endpoint(lambda: server, local_addr=("127.0.0.1", 0))
    port = transport.get_extra_info("sockname")[1]
    try:
        probe = NtpProbe(timeout_sec=timeout)
        return list(await asyncio.gather(*(probe(f"127.0.0.1:{port}") for _ in range(rate))))
    finally:
        transport.close()


def test_valid_reply_is_success() -> None:
    outcomes = asyncio.run(_probe_fake(FakeNtpServer()))
    assert outcomes == [ProbeOutcome(success=True)]


def test_many_concurrent_probes_against_fake_server() -> None:
    server = FakeNtpServer()
    outcomes = asyncio.run(_probe_fake(server, rate=50))
    assert all(o.success for o in outcomes)
    assert server.received == 50


@pytest.mark.parametrize(
    "reply_kwargs",
    [{"mode": 3}, {"stratum": 0}, {"stratum": 16}, {"echo": False}],
)
def test_bad_reply_is_invalid_response(reply_kwargs: dict[str, object]) -> None:
    (outcome,) = asyncio.run(_probe_fake(FakeNtpServer(**reply_kwargs)))
    assert not outcome.success
    assert outcome.error_type is ErrorType.INVALID_RESPONSE


def test_silent_server_times_out() -> None:
    started = time.perf_counter()
    (outcome,) = asyncio.run(_probe_fake(FakeNtpServer(respond=False), timeout=0.2))
    assert not outcome.success
    assert outcome.error_type is ErrorType.TIMEOUT
    assert time.perf_counter() - started < 2.0


def test_ntp_probe_plugs_into_burst() -> None:
    async def scenario() -> tuple[int, int]:
        loop = asyncio.get_running_loop()
        transport, _ = await loop.create_datagram_endpoint(FakeNtpServer, local_addr=("127.0.0.1", 0))
        port = transport.get_extra_info("sockname")[1]
        try:
            burst = await run_burst(10, f"127.0.0.1:{port}", NtpProbe(timeout_sec=1.0))
        finally:
            transport.close()
        return burst.attempted, burst.failed

    assert asyncio.run(scenario()) == (10, 0)


def test_request_layout() -> None:
    now = time.time()
    request = build_request(now)
    assert len(request) == NTP_PACKET_SIZE
    decoded = ntplib.NTPPacket()
    decoded.from_data(request)
    assert decoded.mode == 3
    assert decoded.version == 4
    assert ntplib.ntp_to_system_time(decoded.tx_timestamp) == pytest.approx(now, abs=1e-3)


def test_validate_response_rejects_short_packet() -> None:
    request = build_request(time.time())
    with pytest.raises(InvalidResponse):
        validate_response(request, b"\x24" * 12)
    validate_response(request, _reply(request))


@pytest.mark.parametrize(
    ("server", "expected"),
    [
        ("pool.ntp.org", ("pool.ntp.org", NTP_PORT)),
        ("time.example:1123", ("time.example", 1123)),
        ("[::1]:5123", ("::1", 5123)),
        ("[::1]", ("::1", NTP_PORT)),
        ("::1", ("::1", NTP_PORT)),
    ],
)
def test_split_address(server: str, expected: tuple[str, int]) -> None:
    assert split_address(server) == expected


def test_timeout_budget_covers_socket_setup() -> None:
    async def scenario() -> tuple[ProbeOutcome, float]:
        loop = asyncio.get_running_loop()
        transport, _ = await loop.create_datagram_endpoint(
            lambda: FakeNtpServer(respond=False), local_addr=("127.0.0.1", 0)
        )
        port = transport.get_extra_info("sockname")[1]
        original = loop.create_datagram_endpoint

        async def slow_endpoint(*args, **kwargs):
            await asyncio.sleep(0.15)
            return await original(*args, **kwargs)

        loop.create_datagram_endpoint = slow_endpoint  # type: ignore[method-assign]
        try:
            started = time.perf_counter()
            outcome = await NtpProbe(timeout_sec=0.2)(f"127.0.0.1:{port}")
            return outcome, time.perf_counter() - started
        finally:
            loop.create_datagram_endpoint = original  # type: ignore[method-assign]
            transport.close()

    outcome, elapsed = asyncio.run(scenario())
    assert outcome.error_type is ErrorType.TIMEOUT
    assert elapsed < 0.3
