# Huffman tree-header compressor
# experiments.py
# 10/18/26

"""
Experiment harness for the tree-header Huffman compressor

Compresses synthetic datasets with HuffProcessor, decompresses them again and
records timing, size and round-trip correctness for each run

Outputs (in --outdir):
  - metrics.csv     (raw row per run)
  - summary.csv     (grouped mean/stdev)
  - *.png           (charts)

How to run:
  python experiments.py --outdir results --runs 5
  python experiments.py --outdir results --runs 3 --exp1_size_kb 256 --exp2_max_kb 1024
  python experiments.py --outdir results --exp1_generators uniform256,zipf128,all_bytes,empty
"""

from __future__ import annotations

import argparse
import csv
import math
import random
import statistics
import time
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Callable, Dict, List, Sequence, Tuple

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt

import huffman as huff
from bitio import BitInputStream, BitOutputStream


# Utilities

def now_ns() -> int:
    return time.perf_counter_ns()

def ns_to_ms(ns: int) -> float:
    return ns / 1_000_000.0

def safe_mkdir(p: Path) -> None:
    p.mkdir(parents=True, exist_ok=True)

def entropy_bits_per_symbol(data: bytes) -> float:
    # Shannon bound over the bytes only (PSEUDO_EOF excluded)
    if not data:
        return 0.0
    counts: Dict[int, int] = {}
    for b in data:
        counts[b] = counts.get(b, 0) + 1
    n = len(data)
    return -sum((c / n) * math.log2(c / n) for c in counts.values())

def average_code_length(data: bytes, codings: Sequence) -> float:
    if not data:
        return 0.0
    return sum(len(codings[b]) for b in data) / len(data)


# Synthetic dataset generators

# letter weights per group, roughly English text
ENGLISH_WEIGHTS = {" ": 13.0, "\n": 1.5, "etaoinshrdlu": 6.0, "cmfwgypbvk": 2.5, "jxqz": 1.2}

def gen_uniform(size: int, seed: int = 0) -> bytes:
    rng = random.Random(seed)
    return bytes(rng.getrandbits(8) for _ in range(size))

def gen_repetitive(size: int, dom_frac: float, seed: int = 0) -> bytes:
    # 'A' with probability dom_frac, otherwise any other byte
    rng = random.Random(seed)
    noise = bytes(i for i in range(256) if i != ord('A'))
    return bytes(ord('A') if rng.random() < dom_frac else rng.choice(noise) for _ in range(size))

def gen_zipf_like(size: int, seed: int = 0) -> bytes:
    weights = [(rank + 1) ** -1.2 for rank in range(128)]
    return bytes(random.Random(seed).choices(range(128), weights=weights, k=size))

def gen_english_like(size: int, seed: int = 0) -> bytes:
    symbols: List[int] = []
    weights: List[float] = []
    for group, w in ENGLISH_WEIGHTS.items():
        for ch in group + group.upper():
            if ord(ch) not in symbols:
                symbols.append(ord(ch))
                weights.append(w)
    return bytes(random.Random(seed).choices(symbols, weights=weights, k=size))

def gen_all_bytes(size: int, seed: int = 0) -> bytes:
    # every byte value, shuffled, repeated up to size
    block = list(range(256))
    random.Random(seed).shuffle(block)
    return bytes(block[i % 256] for i in range(size))

GENERATOR_REGISTRY: Dict[str, Callable[[int, int], bytes]] = {
    "uniform256": gen_uniform,
    "zipf128": gen_zipf_like,
    "repetitive90": lambda size, seed: gen_repetitive(size, 0.90, seed),
    "repetitive99": lambda size, seed: gen_repetitive(size, 0.99, seed),
    "english_like": gen_english_like,
    "all_bytes": gen_all_bytes,
    "empty": lambda size, seed: b"",
}

def generate_dataset(name: str, size_bytes: int, seed: int) -> bytes:
    fn = GENERATOR_REGISTRY.get(name)
    if fn is None:
        raise ValueError(f"unknown dataset generator {name!r}, expected one of {sorted(GENERATOR_REGISTRY)}")
    return fn(size_bytes, seed)


# Experiment runner

@dataclass
class MetricRow:
    exp_name: str
    dataset_name: str
    file_size_bytes: int
    run_id: int
    unique_symbols: int

    compress_ms: float
    decompress_ms: float
    total_ms: float

    compressed_bytes: int
    header_bits: int
    body_bits: int
    compression_ratio: float

    entropy_bits: float      # bits/symbol lower bound
    avg_code_bits: float     # bits/symbol actually spent on bytes
    correctness_ok: int  # 1 or 0


def run_one(data: bytes) -> MetricRow:
    # Sizes of the container sections, from the same functions the processor uses
    counts = huff.read_for_counts(BitInputStream(data))
    root = huff.make_tree_from_counts(counts)
    codings = huff.make_codings_from_tree(root)
    header_out = BitOutputStream()
    huff.write_header(root, header_out)

    proc = huff.HuffProcessor()

    t0 = now_ns()
    comp_out = BitOutputStream()
    proc.compress(BitInputStream(data), comp_out)
    packed = comp_out.getvalue()
    t1 = now_ns()

    decomp_out = BitOutputStream()
    proc.decompress(BitInputStream(packed), decomp_out)
    decoded = decomp_out.getvalue()
    t2 = now_ns()

    compress_ms = ns_to_ms(t1 - t0)
    decompress_ms = ns_to_ms(t2 - t1)

    return MetricRow(
        exp_name="",
        dataset_name="",
        file_size_bytes=len(data),
        run_id=0,
        unique_symbols=len(set(data)),
        compress_ms=compress_ms,
        decompress_ms=decompress_ms,
        total_ms=compress_ms + decompress_ms,
        compressed_bytes=len(packed),
        header_bits=header_out.bits_written,
        body_bits=comp_out.bits_written - huff.BITS_PER_INT - header_out.bits_written,
        compression_ratio=len(packed) / max(1, len(data)),
        entropy_bits=entropy_bits_per_symbol(data),
        avg_code_bits=average_code_length(data, codings),
        correctness_ok=1 if decoded == data else 0,
    )


def write_csv(path: Path, rows: List[MetricRow]) -> None:
    names = [f.name for f in fields(MetricRow)]
    with path.open("w", newline="", encoding="utf-8") as f:
        w = csv.DictWriter(f, fieldnames=names)
        w.writeheader()
        for r in rows:
            w.writerow({k: getattr(r, k) for k in names})


def mean_stdev(vals: List[float]) -> Tuple[float, float]:
    if len(vals) == 1:
        return vals[0], 0.0
    return statistics.mean(vals), statistics.stdev(vals)


SUMMARY_METRICS = ("compression_ratio", "compress_ms", "decompress_ms", "total_ms",
                   "header_bits", "avg_code_bits", "entropy_bits")

def group_summary(rows: List[MetricRow], out_path: Path) -> None:
    """
    Group by exp_name, dataset_name, file_size_bytes and compute mean/stdev
    """
    key_to: Dict[Tuple[str, str, int], List[MetricRow]] = {}
    for r in rows:
        key_to.setdefault((r.exp_name, r.dataset_name, r.file_size_bytes), []).append(r)

    summary_fields = ["exp_name", "dataset_name", "file_size_bytes", "n_runs"]
    for m in SUMMARY_METRICS:
        summary_fields += [f"{m}_mean", f"{m}_stdev"]
    summary_fields.append("correctness_ok_rate")

    with out_path.open("w", newline="", encoding="utf-8") as f:
        w = csv.DictWriter(f, fieldnames=summary_fields)
        w.writeheader()
        for (exp_name, dataset_name, size_b), items in sorted(key_to.items()):
            out = {
                "exp_name": exp_name,
                "dataset_name": dataset_name,
                "file_size_bytes": size_b,
                "n_runs": len(items),
                "correctness_ok_rate": sum(x.correctness_ok for x in items) / len(items),
            }
            for m in SUMMARY_METRICS:
                out[f"{m}_mean"], out[f"{m}_stdev"] = mean_stdev([getattr(x, m) for x in items])
            w.writerow(out)


# Plotting

def plot_experiment_1(rows: List[MetricRow], outdir: Path) -> None:
    exp_rows = [r for r in rows if r.exp_name == "exp1_distribution"]
    if not exp_rows:
        return

    datasets = sorted(set(r.dataset_name for r in exp_rows))
    x = list(range(len(datasets)))

    def mean_for(dataset: str, field: str) -> float:
        return statistics.mean(getattr(r, field) for r in exp_rows if r.dataset_name == dataset)

    plt.figure()
    plt.bar(x, [mean_for(d, "compression_ratio") for d in datasets])
    plt.xticks(x, datasets, rotation=20, ha="right")
    plt.ylabel("Compressed Bytes / Original Bytes")
    plt.title("Experiment 1: Compression Ratio by Distribution")
    plt.tight_layout()
    plt.savefig(outdir / "exp1_compression_ratio.png", dpi=200)
    plt.close()

    plt.figure()
    plt.plot(x, [mean_for(d, "entropy_bits") for d in datasets], marker="o", label="entropy")
    plt.plot(x, [mean_for(d, "avg_code_bits") for d in datasets], marker="o", label="huffman")
    plt.xticks(x, datasets, rotation=20, ha="right")
    plt.ylabel("Bits per Symbol")
    plt.title("Experiment 1: Average Code Length vs Entropy")
    plt.legend()
    plt.tight_layout()
    plt.savefig(outdir / "exp1_code_length.png", dpi=200)
    plt.close()

    plt.figure()
    plt.plot(x, [mean_for(d, "compress_ms") for d in datasets], marker="o", label="compress")
    plt.plot(x, [mean_for(d, "decompress_ms") for d in datasets], marker="o", label="decompress")
    plt.xticks(x, datasets, rotation=20, ha="right")
    plt.ylabel("Time (ms)")
    plt.title("Experiment 1: Runtime by Distribution")
    plt.legend()
    plt.tight_layout()
    plt.savefig(outdir / "exp1_time.png", dpi=200)
    plt.close()


def plot_experiment_2(rows: List[MetricRow], outdir: Path) -> None:
    exp_rows = [r for r in rows if r.exp_name == "exp2_size_scaling"]
    if not exp_rows:
        return

    for dist in sorted(set(r.dataset_name for r in exp_rows)):
        dist_rows = [r for r in exp_rows if r.dataset_name == dist]
        sizes = sorted(set(r.file_size_bytes for r in dist_rows))

        def mean_size(size: int, field: str) -> float:
            return statistics.mean(getattr(r, field) for r in dist_rows if r.file_size_bytes == size)

        plt.figure()
        plt.plot(sizes, [mean_size(s, "compress_ms") for s in sizes], marker="o", label="compress")
        plt.plot(sizes, [mean_size(s, "decompress_ms") for s in sizes], marker="o", label="decompress")
        plt.xscale("log", base=2)
        plt.xlabel("File Size (bytes)")
        plt.ylabel("Time (ms)")
        plt.title(f"Experiment 2: Runtime vs Size ({dist})")
        plt.legend()
        plt.tight_layout()
        plt.savefig(outdir / f"exp2_time_{dist}.png", dpi=200)
        plt.close()

        plt.figure()
        plt.plot(sizes, [mean_size(s, "compression_ratio") for s in sizes], marker="o")
        plt.xscale("log", base=2)
        plt.xlabel("File Size (bytes)")
        plt.ylabel("Compressed Bytes / Original Bytes")
        plt.title(f"Experiment 2: Compression Ratio vs Size ({dist})")
        plt.tight_layout()
        plt.savefig(outdir / f"exp2_compression_ratio_{dist}.png", dpi=200)
        plt.close()


# Main

def parse_csv_list(s: str) -> List[str]:
    return [x.strip() for x in s.split(",") if x.strip()]

def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="Measure the tree-header Huffman compressor on synthetic data")
    ap.add_argument("--outdir", type=str, default="results", help="Output directory for CSV and plots")
    ap.add_argument("--runs", type=int, default=5, help="Repetitions per configuration")
    ap.add_argument("--seed", type=int, default=123, help="Base random seed")
    ap.add_argument("--no_plots", action="store_true", help="Write CSV files only")

    ap.add_argument("--no_exp1", action="store_true", help="Disable experiment 1 (distribution)")
    ap.add_argument("--no_exp2", action="store_true", help="Disable experiment 2 (size scaling)")

    ap.add_argument("--exp1_size_kb", type=int, default=256, help="Experiment 1 fixed file size in KB")
    ap.add_argument("--exp1_generators", type=str,
                    default="uniform256,zipf128,repetitive90,repetitive99,english_like,all_bytes",
                    help="Comma-separated dataset generator names for experiment 1")

    ap.add_argument("--exp2_min_kb", type=int, default=4, help="Experiment 2 min size in KB (power-of-two growth)")
    ap.add_argument("--exp2_max_kb", type=int, default=1024, help="Experiment 2 max size in KB")
    ap.add_argument("--exp2_generators", type=str, default="uniform256,zipf128,repetitive90",
                    help="Comma-separated dataset generator names for experiment 2")
    return ap

def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    outdir = Path(args.outdir)
    safe_mkdir(outdir)

    rows: List[MetricRow] = []

    # Experiment 1: distributions (fixed size)
    if not args.no_exp1:
        fixed_size = max(1, args.exp1_size_kb) * 1024
        for gen_name in parse_csv_list(args.exp1_generators):
            for run_id in range(1, args.runs + 1):
                row = run_one(generate_dataset(gen_name, fixed_size, args.seed + run_id))
                row.exp_name = "exp1_distribution"
                row.dataset_name = gen_name
                row.run_id = run_id
                rows.append(row)

    # Experiment 2: size scaling (powers of 2)
    if not args.no_exp2:
        sizes: List[int] = []
        s = max(1, args.exp2_min_kb) * 1024
        while s <= max(1, args.exp2_max_kb) * 1024:
            sizes.append(s)
            s *= 2

        for gen_name in parse_csv_list(args.exp2_generators):
            for size_b in sizes:
                for run_id in range(1, args.runs + 1):
                    row = run_one(generate_dataset(gen_name, size_b, args.seed + 10_000 + size_b + run_id))
                    row.exp_name = "exp2_size_scaling"
                    row.dataset_name = gen_name
                    row.run_id = run_id
                    rows.append(row)

    metrics_csv = outdir / "metrics.csv"
    summary_csv = outdir / "summary.csv"
    write_csv(metrics_csv, rows)
    group_summary(rows, summary_csv)

    if not args.no_plots:
        plot_experiment_1(rows, outdir)
        plot_experiment_2(rows, outdir)

    ok_rate = sum(r.correctness_ok for r in rows) / max(1, len(rows))
    print(f"Wrote {len(rows)} rows to {metrics_csv}")
    print(f"Wrote grouped summary to {summary_csv}")
    print(f"Correctness rate across all runs: {ok_rate:.3f}")
    if not args.no_plots:
        print("Charts saved in:", outdir.resolve())
    return 0 if all(r.correctness_ok for r in rows) else 1


if __name__ == "__main__":
    raise SystemExit(main())
