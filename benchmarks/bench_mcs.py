#!/usr/bin/env python3
"""
Benchmark script comparing maximum common subgraph search between RDKit's
FMCS and molcompare.

Usage:
    python benchmarks/bench_mcs.py [--extended] [--timeout SECONDS]

Options:
    --extended    Also time MCIS, unconnected MCES and a batch GLS run
    --timeout     Per-search budget in seconds (default 10)
    --log-level   Log level for molcompare and RDKit messages (default WARNING)
"""

import argparse
import sys
import os
import time
from dataclasses import dataclass
from typing import Optional

# Ensure local molcompare is used (not installed version)
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

# Pairs of molecules with varying overlap
TEST_PAIRS = {
    "ethers": ("CCOCC", "CCOC"),
    "ibuprofen_naproxen": (
        "CC(C)Cc1ccc(cc1)C(C)C(=O)O",
        "COc1ccc2cc(ccc2c1)C(C)C(=O)O",
    ),
    "caffeine_theobromine": (
        "CN1C=NC2=C1C(=O)N(C(=O)N2C)C",
        "CN1C=NC2=C1C(=O)NC(=O)N2C",
    ),
    "kinase_like": (
        "Cc1ccc(cc1Nc2nccc(n2)c3cccnc3)NC(=O)c4ccc(cc4)CN5CCN(CC5)C",
        "Cc1ccc(cc1Nc2nccc(n2)c3cccnc3)NC(=O)c4ccccc4",
    ),
}

BATCH_QUERY = "CC(=O)Oc1ccccc1C(=O)O"  # Aspirin
BATCH_TARGETS = [
    "OC(=O)c1ccccc1O",
    "CC(=O)Nc1ccc(O)cc1",
    "CC(C)Cc1ccc(cc1)C(C)C(=O)O",
    "c1ccccc1",
    "CCO",
    "O=C(O)c1ccccc1",
    "COC(=O)c1ccccc1O",
    "CC(=O)Oc1ccccc1",
]


@dataclass
class BenchmarkResult:
    """Results from a single search."""
    name: str
    time_seconds: float
    size: int
    exhaustive: bool

    @property
    def time_ms(self) -> float:
        return self.time_seconds * 1000


def benchmark_rdkit(name: str, pair: tuple[str, str], timeout: float) -> BenchmarkResult:
    """Connected MCES with RDKit FMCS."""
    from rdkit import Chem
    from rdkit.Chem import rdFMCS

    mols = [Chem.MolFromSmiles(s) for s in pair]
    start = time.perf_counter()
    result = rdFMCS.FindMCS(
        mols,
        timeout=max(1, int(timeout)),
        atomCompare=rdFMCS.AtomCompare.CompareElements,
        bondCompare=rdFMCS.BondCompare.CompareOrder,
    )
    end = time.perf_counter()
    return BenchmarkResult(name, end - start, result.numBonds, not result.canceled)


def benchmark_molcompare(
    name: str,
    pair: tuple[str, str],
    timeout: float,
    kind: str = "edge",
    connected: bool = True,
) -> BenchmarkResult:
    """Common subgraph search with molcompare."""
    from molcompare import SearchBudget, common_subgraph
    from molcompare.adapters import parse

    a, b = (parse(s) for s in pair)
    start = time.perf_counter()
    result = common_subgraph(a, b, kind, SearchBudget(timeout=timeout), connected=connected)
    end = time.perf_counter()
    return BenchmarkResult(name, end - start, result.size, result.exhaustive)


def _report(label: str, result: Optional[BenchmarkResult]) -> None:
    if result is None:
        print(f"  {label:<22} N/A")
        return
    flag = "" if result.exhaustive else "  (budget exhausted)"
    print(f"  {label:<22} {result.time_ms:>10.2f} ms | size {result.size}{flag}")


def run_pair_benchmark(timeout: float, extended: bool) -> None:
    print("=" * 70)
    print("Maximum Common Subgraph Benchmark: RDKit FMCS vs molcompare")
    print("=" * 70)
    print(f"Budget per search: {timeout:.1f}s")

    for name, pair in TEST_PAIRS.items():
        print(f"\n[{name}]")
        try:
            rdkit_result = benchmark_rdkit(name, pair, timeout)
        except ImportError:
            rdkit_result = None
        _report("RDKit FMCS (MCES)", rdkit_result)
        _report("molcompare MCES", benchmark_molcompare(name, pair, timeout))

        if extended:
            _report("molcompare MCES (any)",
                    benchmark_molcompare(name, pair, timeout, connected=False))
            _report("molcompare MCIS",
                    benchmark_molcompare(name, pair, timeout, kind="induced"))


def run_batch_benchmark(timeout: float) -> None:
    from molcompare import EngineConfig, SearchBudget, gls_batch
    from molcompare.adapters import parse

    print("\n" + "=" * 70)
    print("Batch GLS")
    print("=" * 70)

    query = parse(BATCH_QUERY)
    budget = SearchBudget(timeout=timeout)
    for workers in (1, os.cpu_count() or 1):
        config = EngineConfig(max_workers=workers)
        start = time.perf_counter()
        scores = gls_batch(query, BATCH_TARGETS, "edge", budget, config=config)
        end = time.perf_counter()
        print(f"  {workers:>2} worker(s): {end - start:.3f}s for {len(scores)} targets")

    for smiles, score in zip(BATCH_TARGETS, scores):
        print(f"    {smiles:<32} {score:.3f}" if isinstance(score, float) else f"    {smiles:<32} {score}")


def main():
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    parser.add_argument("--extended", "-e", action="store_true")
    parser.add_argument("--timeout", type=float, default=10.0)
    parser.add_argument("--log-level", default="WARNING",
                        help="DEBUG shows per-search node counts")
    args = parser.parse_args()

    from molcompare.logging_config import setup_logging
    setup_logging(args.log_level, capture_rdkit=True)

    run_pair_benchmark(args.timeout, args.extended)
    if args.extended:
        run_batch_benchmark(args.timeout)
    else:
        print("\n" + "-" * 70)
        print("TIP: Run with --extended for MCIS and batch timings")


if __name__ == "__main__":
    main()
