"""Benchmark: message dispatch and annotation lookup throughput.

Measures how many messages a visitor can dispatch per second with a warm
dispatch table versus rebuilding the table each time, and how many
annotation lookups complete per second on an inherited class.
"""
from __future__ import annotations

import json
import sys
import time
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from testmeta.annotations import Annotation, annotate, annotation_usage, annotations_of
from testmeta.messages import DEFAULT_HANDLERS, HandlerRegistry, TestMessageVisitor
from testmeta.messages import variants

_ITERATIONS: int = 20_000
_LOOKUP_ITERATIONS: int = 10_000

_MESSAGES = (
    variants.TestStarting(display_name="bench"),
    variants.TestPassed(display_name="bench", execution_time=0.001),
    variants.TestFailed(display_name="bench", exception_types=("AssertionError",)),
    variants.TestFinished(display_name="bench"),
)


@annotation_usage(allow_multiple=True)
class BenchTrait(Annotation):
    def __init__(self, name: str, value: str) -> None:
        self.name = name
        self.value = value


@annotate(BenchTrait, "Category", "Bench")
class _BaseSuite:
    pass


@annotate(BenchTrait, "Owner", "bench")
class _DerivedSuite(_BaseSuite):
    pass


class _Counter(TestMessageVisitor):
    def __init__(self) -> None:
        self.passed = 0

    def visit_test_passed(self, message: variants.TestPassed) -> bool:
        self.passed += 1
        return True


def _report(operation: str, iterations: int, total: float) -> dict[str, object]:
    result: dict[str, object] = {
        "operation": operation,
        "iterations": iterations,
        "total_seconds": round(total, 4),
        "ops_per_second": round(iterations / total, 1),
        "avg_latency_ms": round(total / iterations * 1000, 4),
    }
    print(
        f"[bench_throughput] {result['operation']}: "
        f"{result['ops_per_second']:,.0f} ops/sec  "
        f"avg {result['avg_latency_ms']:.4f} ms"
    )
    return result


def bench_dispatch_throughput() -> dict[str, object]:
    """Benchmark visitor dispatch with warm dispatch tables.

    Returns
    -------
    dict with keys: operation, iterations, total_seconds, ops_per_second,
    avg_latency_ms.
    """
    visitor = _Counter()
    start = time.perf_counter()
    for index in range(_ITERATIONS):
        visitor.on_message(_MESSAGES[index % len(_MESSAGES)])
    total = time.perf_counter() - start
    return _report("dispatch_throughput_cached", _ITERATIONS, total)


def bench_uncached_dispatch_throughput() -> dict[str, object]:
    """Benchmark dispatch when every message builds a fresh table.

    A new registry per message means a cold cache on every call, which is
    the cost the per-registry cache saves.
    """
    visitor = _Counter()
    bindings = DEFAULT_HANDLERS.bindings
    start = time.perf_counter()
    for index in range(_ITERATIONS):
        HandlerRegistry(bindings).dispatch(visitor, _MESSAGES[index % len(_MESSAGES)])
    total = time.perf_counter() - start
    return _report("dispatch_throughput_uncached", _ITERATIONS, total)


def bench_annotation_lookup_throughput() -> dict[str, object]:
    """Benchmark inherited annotation lookup on a two-level class."""
    start = time.perf_counter()
    for _ in range(_LOOKUP_ITERATIONS):
        annotations_of(_DerivedSuite, BenchTrait)
    total = time.perf_counter() - start
    return _report("annotation_lookup_throughput", _LOOKUP_ITERATIONS, total)


if __name__ == "__main__":
    results_dir = Path(__file__).parent / "results"
    results_dir.mkdir(exist_ok=True)

    for bench_fn, fname in [
        (bench_dispatch_throughput, "dispatch_throughput_baseline.json"),
        (bench_uncached_dispatch_throughput, "dispatch_uncached_baseline.json"),
        (bench_annotation_lookup_throughput, "annotation_lookup_baseline.json"),
    ]:
        result = bench_fn()
        output_path = results_dir / fname
        with open(output_path, "w", encoding="utf-8") as fh:
            json.dump(result, fh, indent=2)
        print(f"Results saved to {output_path}")
