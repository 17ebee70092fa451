"""
Shared fixtures: an in-memory HTTP server speaking HEAD and ranged GET,
served through httpx.MockTransport.
"""

import asyncio
import os
import re
from typing import Dict, List, Optional, Tuple

import httpx
import pytest

from parafetch.models import DownloadConfig


RESOURCE_URL = "http://files.test/archive.bin"
CONNECTIVITY_URL = "http://connectivity.test/generate_204"

RANGE_PATTERN = re.compile(r"bytes=(\d+)-(\d+)")


class FakeServer:
    """
    Serves ``payload`` at RESOURCE_URL and a reachability endpoint at
    CONNECTIVITY_URL.

    Knobs:
        online: connectivity endpoint answers when True, raises ConnectError otherwise
        head_status: status returned to HEAD requests
        range_failures: start offset -> number of GETs answered with 500
        range_delays: start offset -> seconds to wait before sending the body
        stall_first_body: start offset -> seconds to pause mid-body on the first GET
        offline_during_stall: connectivity is down while a first-GET body is paused
    """

    def __init__(self, payload: bytes):
        self.payload = payload
        self.online = True
        self.head_status = 200
        self.head_headers: Optional[Dict[str, str]] = None
        self.range_failures: Dict[int, int] = {}
        self.range_delays: Dict[int, float] = {}
        self.stall_first_body: Dict[int, float] = {}
        self.offline_during_stall = False
        self.ranges_requested: List[Tuple[int, int]] = []
        self.completion_order: List[int] = []
        self.head_requests = 0
        self.connectivity_checks = 0

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    async def handler(self, request: httpx.Request) -> httpx.Response:
        if str(request.url) == CONNECTIVITY_URL:
            self.connectivity_checks += 1
            if not self.online:
                raise httpx.ConnectError("network unreachable", request=request)
            return httpx.Response(204)

        if request.method == "HEAD":
            self.head_requests += 1
            headers = self.head_headers
            if headers is None:
                headers = {"Content-Length": str(len(self.payload)), "Accept-Ranges": "bytes"}
            return httpx.Response(self.head_status, headers=headers)

        match = RANGE_PATTERN.fullmatch(request.headers.get("Range", ""))
        if match is None:
            return httpx.Response(200, content=self.payload)

        start, end = int(match.group(1)), int(match.group(2))
        first_request = (start, end) not in self.ranges_requested
        self.ranges_requested.append((start, end))

        if self.range_failures.get(start, 0) > 0:
            self.range_failures[start] -= 1
            return httpx.Response(500)

        if start in self.range_delays:
            await asyncio.sleep(self.range_delays[start])

        body = self.payload[start:end + 1]
        stall = self.stall_first_body.get(start) if first_request else None
        if stall is None:
            self.completion_order.append(start)
            return httpx.Response(206, content=body)

        async def stalled_body():
            half = len(body) // 2
            yield body[:half]
            if self.offline_during_stall:
                self.online = False
            await asyncio.sleep(stall)
            if self.offline_during_stall:
                self.online = True
            yield body[half:]

        return httpx.Response(206, content=stalled_body())


@pytest.fixture
def payload() -> bytes:
    return os.urandom(4096 + 37)


@pytest.fixture
def server(payload) -> FakeServer:
    return FakeServer(payload)


@pytest.fixture
def holding_dir(tmp_path):
    path = tmp_path / "holding"
    path.mkdir()
    return path


@pytest.fixture
def config(holding_dir) -> DownloadConfig:
    """Configuration with every delay removed and parallelism always allowed."""

    return DownloadConfig(
        buffer_size=256,
        parallel_threshold=0,
        chunk_retry_delay=0,
        probe_retry_delay=0,
        job_retry_delay=0,
        connectivity_url=CONNECTIVITY_URL,
        connectivity_interval=0.01,
        temp_dir=holding_dir,
    )
