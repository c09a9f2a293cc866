import csv

import pytest

import experiments


def test_generate_dataset_sizes():
    for name in experiments.GENERATOR_REGISTRY:
        data = experiments.generate_dataset(name, 300, seed=1)
        assert len(data) == (0 if name == "empty" else 300)

def test_generate_dataset_is_seeded():
    a = experiments.generate_dataset("zipf128", 200, seed=7)
    b = experiments.generate_dataset("zipf128", 200, seed=7)
    assert a == b

def test_generate_dataset_unknown_name():
    with pytest.raises(ValueError):
        experiments.generate_dataset("nope", 10, seed=0)

def test_all_bytes_covers_alphabet():
    assert set(experiments.gen_all_bytes(256)) == set(range(256))


def test_entropy():
    assert experiments.entropy_bits_per_symbol(b"") == 0.0
    assert experiments.entropy_bits_per_symbol(b"AAAA") == 0.0
    assert experiments.entropy_bits_per_symbol(b"AB") == pytest.approx(1.0)


@pytest.mark.parametrize("data", [b"", b"A" * 5, bytes(range(256)) * 2])
def test_run_one(data):
    row = experiments.run_one(data)
    assert row.correctness_ok == 1
    assert row.file_size_bytes == len(data)
    assert row.avg_code_bits >= row.entropy_bits
    assert (32 + row.header_bits + row.body_bits + 7) // 8 == row.compressed_bytes

def test_run_one_repeated_byte_sections():
    row = experiments.run_one(b"A" * 5)
    assert row.header_bits == 21
    assert row.body_bits == 6
    assert row.avg_code_bits == 1.0


def test_main_writes_outputs(tmp_path):
    rc = experiments.main([
        "--outdir", str(tmp_path), "--runs", "2", "--no_plots",
        "--exp1_size_kb", "1", "--exp1_generators", "uniform256,empty,all_bytes",
        "--exp2_min_kb", "1", "--exp2_max_kb", "2", "--exp2_generators", "repetitive90",
    ])
    assert rc == 0

    with (tmp_path / "metrics.csv").open(newline="") as f:
        rows = list(csv.DictReader(f))
    # exp1: 3 generators x 2 runs, exp2: 1 generator x 2 sizes x 2 runs
    assert len(rows) == 10
    assert all(r["correctness_ok"] == "1" for r in rows)

    with (tmp_path / "summary.csv").open(newline="") as f:
        summary = list(csv.DictReader(f))
    assert len(summary) == 5
    assert all(float(r["correctness_ok_rate"]) == 1.0 for r in summary)

def test_main_plots(tmp_path):
    rc = experiments.main([
        "--outdir", str(tmp_path), "--runs", "1",
        "--exp1_size_kb", "1", "--exp1_generators", "zipf128,english_like",
        "--exp2_min_kb", "1", "--exp2_max_kb", "2", "--exp2_generators", "uniform256",
    ])
    assert rc == 0
    assert (tmp_path / "exp1_compression_ratio.png").exists()
    assert (tmp_path / "exp2_time_uniform256.png").exists()
