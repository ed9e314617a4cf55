"""Shared pytest fixtures for the sniffly dashboard core."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List

import pytest

DEVICE_A = {"mac": "aa:bb:cc:00:00:01", "ip": "192.168.1.10", "label": "laptop", "hostname": "laptop.lan"}
DEVICE_B = {"mac": "aa:bb:cc:00:00:02", "ip": "192.168.1.11", "label": "tv", "hostname": "tv.lan"}


def utc_ms(*args: int) -> int:
    return int(datetime(*args, tzinfo=timezone.utc).timestamp() * 1000)


class FakeClock:
    def __init__(self, now_ms: int) -> None:
        self.now_ms = now_ms

    def __call__(self) -> int:
        return self.now_ms

    def advance(self, ms: int) -> None:
        self.now_ms += ms


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(utc_ms(2024, 1, 15))


@pytest.fixture
def domain_items() -> List[Dict[str, Any]]:
    return [
        {
            "device": DEVICE_A,
            "stats": [
                {"bucket": 120, "domains": {"example.com": 3, "cdn.net": 1}, "req_count": 4},
                {"bucket": 0, "domains": {"example.com": 5, "tracker.io": 2}, "req_count": 7},
                {"bucket": 60, "domains": {"cdn.net": 4, "idle.org": 0}, "req_count": 4},
            ],
        },
        {"device": DEVICE_B, "stats": [{"bucket": 0, "domains": {"netflix.com": 9}, "req_count": 9}]},
    ]


@pytest.fixture
def country_items() -> List[Dict[str, Any]]:
    return [
        {
            "device": DEVICE_A,
            "stats": [
                {"bucket": 0, "countries": {"US": 4, "DE": 1}, "companies": ["Google", "Google", "Akamai"]},
                {"bucket": 60, "countries": ["US", "FR"], "companies": {"Google": 1, "Cloudflare": 5}},
            ],
        }
    ]


@pytest.fixture
def traffic_items() -> List[Dict[str, Any]]:
    return [
        {
            "device": DEVICE_A,
            "stats": [
                {"bucket": 0, "up_bytes": 100, "down_bytes": 1000},
                {"bucket": 60, "up_bytes": 50, "down_bytes": 2048},
                {"bucket": 240, "up_bytes": 25, "down_bytes": 0},
                {"bucket": 120, "up_bytes": 10, "down_bytes": 512},
            ],
        }
    ]
