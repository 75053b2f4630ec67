"""
Benchmark: structmatch on realistic payloads.

Measures:
    1. contains() on an API response, with and without a trace
    2. equivalent() on the same payload
    3. native objects (dataclasses) against decoded JSON
    4. merge() with and without copying
    5. how array and object checks scale with size

Array containment is a nested search (every element of v2 against every
element of v1), so the array numbers in §5 grow quadratically.
"""

import json
import time
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

from structmatch import contains, equivalent, merge, normalize


# ═══════════════════════════════════════════════════════════════════
#  TEST DATA
# ═══════════════════════════════════════════════════════════════════

BASE_CONFIG = {
    "server": {
        "host": "0.0.0.0",
        "port": 443,
        "tls": True,
        "workers": 4,
    },
    "database": {
        "host": "db.internal",
        "port": 5432,
        "name": "production",
        "pool_size": 10,
    },
    "logging": {
        "level": "WARN",
        "outputs": ["stdout", "file"],
    },
}

OVERRIDE_CONFIG = {
    "server": {"port": 8080, "workers": 8},
    "database": {"host": "db.staging", "name": "staging"},
    "logging": {"level": "DEBUG", "outputs": ["stdout", "syslog"]},
    "monitoring": {"enabled": True, "endpoint": "/health"},
}

CREATED = datetime(2024, 3, 1, 9, 30, tzinfo=timezone.utc)


def _order(i):
    return {
        "id": f"ord-{i:05d}",
        "status": "shipped" if i % 3 else "pending",
        "total": round(19.99 + i, 2),
        "created": (CREATED + timedelta(minutes=i)).isoformat(),
        "customer": {"id": f"cus-{i % 17}", "tier": "gold" if i % 5 == 0 else "basic"},
        "items": [
            {"sku": f"sku-{i % 11}", "qty": 1 + i % 3},
            {"sku": f"sku-{(i + 4) % 11}", "qty": 2},
        ],
        "tags": ["web", "priority"] if i % 7 == 0 else ["web"],
    }


API_RESPONSE = {
    "page": 1,
    "total": 200,
    "orders": [_order(i) for i in range(200)],
}

# A subset of the response, as a test would write it
EXPECTED = {
    "total": 200,
    "orders": [
        {"id": "ord-00150", "status": "pending", "customer": {"tier": "gold"}},
        {"id": "ord-00199", "items": [{"sku": "sku-1"}]},
    ],
}


@dataclass
class Item:
    sku: str
    qty: int


@dataclass
class Order:
    id: str
    status: str
    items: list = field(default_factory=list)


def _timed(fn, repeat=20):
    t0 = time.perf_counter()
    for _ in range(repeat):
        result = fn()
    return result, (time.perf_counter() - t0) / repeat


# ═══════════════════════════════════════════════════════════════════
#  BENCHMARKS
# ═══════════════════════════════════════════════════════════════════

def benchmark_contains():
    """contains() on a 200-order API response."""
    print("=" * 70)
    print("  §1  CONTAINS ON AN API RESPONSE")
    print("=" * 70)
    print()

    ok, dt = _timed(lambda: contains(API_RESPONSE, EXPECTED))
    print(f"  match, no trace:      {ok!s:<5}  [{dt*1000:.2f}ms]")

    messages = []
    ok, dt = _timed(lambda: contains(API_RESPONSE, EXPECTED, trace=messages.append))
    print(f"  match, with trace:    {ok!s:<5}  [{dt*1000:.2f}ms]")

    missing = {"orders": [{"id": "ord-99999"}]}
    ok, dt = _timed(lambda: contains(API_RESPONSE, missing))
    print(f"  miss, no trace:       {ok!s:<5}  [{dt*1000:.2f}ms]")

    messages = []
    ok, dt = _timed(lambda: contains(API_RESPONSE, missing, trace=messages.append))
    print(f"  miss, with trace:     {ok!s:<5}  [{dt*1000:.2f}ms]")
    print(f"    → {messages[-1].splitlines()[0]}")
    print()

    ok, dt = _timed(lambda: contains(API_RESPONSE, EXPECTED, time_delta=timedelta(seconds=1)))
    print(f"  with time handling:   {ok!s:<5}  [{dt*1000:.2f}ms]")
    print()


def benchmark_equivalent():
    """equivalent() of a payload and its JSON round trip."""
    print("=" * 70)
    print("  §2  EQUIVALENCE")
    print("=" * 70)
    print()

    decoded = json.loads(json.dumps(API_RESPONSE))
    ok, dt = _timed(lambda: equivalent(API_RESPONSE, decoded), repeat=5)
    print(f"  response vs decoded copy:  {ok!s:<5}  [{dt*1000:.2f}ms]")

    shuffled = dict(decoded, orders=list(reversed(decoded["orders"])))
    ok, dt = _timed(lambda: equivalent(API_RESPONSE, shuffled), repeat=5)
    print(f"  orders reversed:           {ok!s:<5}  [{dt*1000:.2f}ms]")
    print()


def benchmark_native_objects():
    """Dataclasses go through the JSON fallback before comparison."""
    print("=" * 70)
    print("  §3  NATIVE OBJECTS VS DECODED JSON")
    print("=" * 70)
    print()

    orders = [
        Order(o["id"], o["status"], [Item(it["sku"], it["qty"]) for it in o["items"]])
        for o in API_RESPONSE["orders"][:50]
    ]

    _, dt = _timed(lambda: normalize(orders))
    print(f"  normalize 50 orders:       [{dt*1000:.2f}ms]")

    ok, dt = _timed(lambda: contains(API_RESPONSE["orders"], orders), repeat=5)
    print(f"  response contains them:    {ok!s:<5}  [{dt*1000:.2f}ms]")
    print()


def benchmark_merge():
    """merge() with and without copying the inputs."""
    print("=" * 70)
    print("  §4  MERGE")
    print("=" * 70)
    print()

    merged, dt = _timed(lambda: merge(BASE_CONFIG, OVERRIDE_CONFIG), repeat=1000)
    print(f"  config, copy=True:         [{dt*1e6:.1f}µs]")
    _, dt = _timed(lambda: merge(BASE_CONFIG, OVERRIDE_CONFIG, copy=False), repeat=1000)
    print(f"  config, copy=False:        [{dt*1e6:.1f}µs]")
    print(f"    → logging.outputs = {merged['logging']['outputs']}")
    print()

    _, dt = _timed(lambda: merge(API_RESPONSE, {"orders": [_order(500)]}), repeat=5)
    print(f"  response, copy=True:       [{dt*1000:.2f}ms]")
    _, dt = _timed(lambda: merge(API_RESPONSE, {"orders": [_order(500)]}, copy=False), repeat=5)
    print(f"  response, copy=False:      [{dt*1000:.2f}ms]")
    print()


def benchmark_scaling():
    """How checks scale with data size."""
    print("=" * 70)
    print("  §5  SCALING")
    print("=" * 70)
    print()

    for n in [10, 100, 500, 1000]:
        a = [{"n": i} for i in range(n)]
        b = [{"n": i} for i in range(0, n, 2)]
        ok, dt = _timed(lambda: contains(a, b), repeat=1)
        print(f"  Array size {n:>5}: contains={ok!s:<5}  time={dt*1000:>9.2f}ms")

    print()

    for n in [10, 100, 1000, 10000]:
        a = {f"key_{i}": i for i in range(n)}
        b = {f"key_{i}": i for i in range(0, n, 2)}
        ok, dt = _timed(lambda: contains(a, b), repeat=1)
        print(f"  Map size   {n:>5}: contains={ok!s:<5}  time={dt*1000:>9.2f}ms")

    print()


def main():
    print()
    print("╔══════════════════════════════════════════════════════════════════════╗")
    print("║          STRUCTMATCH — BENCHMARK SUITE                               ║")
    print("╚══════════════════════════════════════════════════════════════════════╝")
    print()

    benchmark_contains()
    benchmark_equivalent()
    benchmark_native_objects()
    benchmark_merge()
    benchmark_scaling()


if __name__ == "__main__":
    main()
