import csv

import pytest

import experiments


def test_generators_produce_requested_size():
    for name in experiments.GENERATOR_REGISTRY:
        dataset_name, data = experiments.generate_dataset(name, 2048, seed=1)
        assert dataset_name == name
        assert len(data) == (0 if name == "empty" else 2048)


def test_generators_are_seeded():
    assert experiments.gen_zipf_like(500, seed=4) == experiments.gen_zipf_like(500, seed=4)
    assert set(experiments.gen_english_like(500, seed=4)) <= set(
        b" etaoinshrdlcumwfgypbvkjxqETAOINSHRDLCUMWFGYPBVKJXQ\n")


def test_unknown_generator_is_rejected():
    with pytest.raises(ValueError):
        experiments.generate_dataset("nope", 10, seed=0)


def test_run_one_checks_round_trip():
    _, data = experiments.generate_dataset("english_like", 4096, seed=9)
    row = experiments.run_one(data, "pw")
    assert row.correctness_ok == 1
    assert row.wrong_password_ok == 1
    assert row.file_size_bytes == 4096
    assert row.compression_ratio < 1.0


def test_run_one_empty_input():
    row = experiments.run_one(b"", "pw")
    assert row.correctness_ok == 1
    assert row.compressed_bytes == 4
    assert row.unique_symbols == 0


def test_main_writes_reports(tmp_path):
    outdir = tmp_path / "results"
    rc = experiments.main([
        "--outdir", str(outdir), "--runs", "2",
        "--exp1_size_kb", "1", "--exp1_generators", "english_like,repetitive99",
        "--exp2_min_kb", "1", "--exp2_max_kb", "2", "--exp2_generators", "uniform128",
    ])
    assert rc == 0

    with (outdir / "metrics.csv").open(newline="") as f:
        rows = list(csv.DictReader(f))
    assert len(rows) == 2 * 2 + 2 * 2
    assert all(r["correctness_ok"] == "1" for r in rows)

    with (outdir / "summary.csv").open(newline="") as f:
        summary = list(csv.DictReader(f))
    assert len(summary) == 4
    assert (outdir / "exp1_compression_ratio.png").exists()
    assert (outdir / "exp2_time_uniform128.png").exists()
