"""
Shared fixtures for unit tests

No network access: RPC is a MagicMock specced on SuiRpcClient (async
methods become AsyncMocks) or an httpx.MockTransport in test_rpc_mock.py.
"""

import base64
import random
import sys
from pathlib import Path
from unittest.mock import MagicMock

import pytest

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from sui_dex_adapter.infra import RecordingEventSink, ResultCache, RetryInvoker, SuiRpcClient


SUI = "0x2::sui::SUI"
USDC = "0x5d4b302506645c37ff133b98c4b50a5ae14841659738d6d733d59d0d217a93bf::coin::COIN"
CETUS_TOKEN = "0x06864a6f921804860930db6ddbe2e16acdf8504495ea7481637a1c8b9a8fe54b::cetus::CETUS"

TEST_SEED = bytes(range(32))
TEST_PRIVATE_KEY = base64.b64encode(TEST_SEED).decode("ascii")


class FakeClock:
    """Manually advanced monotonic clock"""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


class SleepRecorder:
    """Async sleep stand-in that records requested delays"""

    def __init__(self):
        self.delays = []

    async def __call__(self, delay: float):
        self.delays.append(delay)


@pytest.fixture
def events():
    return RecordingEventSink()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def sleeps():
    return SleepRecorder()


@pytest.fixture
def invoker(events, sleeps):
    return RetryInvoker(events=events, sleep=sleeps, rng=random.Random(7))


@pytest.fixture
def cache(events, clock):
    return ResultCache(clock=clock, events=events)


@pytest.fixture
def rpc():
    return MagicMock(spec=SuiRpcClient)


@pytest.fixture
def pool_event():
    """Factory for Cetus-style PoolCreated events"""
    def _make(pool_id: str, coin_a: str = SUI, coin_b: str = USDC, fee_rate: int = 2500,
              timestamp_ms: int = 1_700_000_000_000):
        return {
            "id": {"txDigest": "digest", "eventSeq": "0"},
            "parsedJson": {
                "pool_id": pool_id,
                # TypeName strings come without the 0x prefix
                "coin_type_a": coin_a[2:] if coin_a.startswith("0x") else coin_a,
                "coin_type_b": coin_b[2:] if coin_b.startswith("0x") else coin_b,
                "fee_rate": str(fee_rate),
            },
            "timestampMs": str(timestamp_ms),
        }
    return _make


@pytest.fixture
def pool_object():
    """Factory for Cetus-style pool objects (sui_getObject data)"""
    def _make(liquidity: int, sqrt_price_x64: int = 1 << 64, tick_bits: int = 0,
              fee_rate: int = 2500, reserve_a: int = 1_000_000, reserve_b: int = 1_000_000):
        return {
            "objectId": "0x1",
            "content": {
                "dataType": "moveObject",
                "type": "0x1eab::pool::Pool<0x2::sui::SUI, 0x5d4b::coin::COIN>",
                "fields": {
                    "liquidity": str(liquidity),
                    "current_sqrt_price": str(sqrt_price_x64),
                    "current_tick_index": {"type": "0x1eab::i32::I32", "fields": {"bits": tick_bits}},
                    "fee_rate": str(fee_rate),
                    "coin_a": str(reserve_a),
                    "coin_b": str(reserve_b),
                },
            },
        }
    return _make
