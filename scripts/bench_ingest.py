#!/usr/bin/env python3
"""Ingest pytest-benchmark JSON results into DuckDB.

Usage:
    uv run pytest tests/bench --benchmark-only --benchmark-json=bench/raw/py312.json
    uv run scripts/bench_ingest.py [--db bench/reqctx_bench.duckdb] [--notes "baseline"]

Reads every JSON file in bench/raw/ (one per interpreter or machine; the
file stem becomes the variant) and inserts the results into DuckDB. Each
invocation creates a new bench_runs row tagged with the current commit.
"""

from __future__ import annotations

import json
import platform
import subprocess
import sys
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import click
import duckdb

DB_DEFAULT = "bench/reqctx_bench.duckdb"
RAW_DIR = Path("bench/raw")

# Trailing name segment of test_bench_{scenario}_{phase}
KNOWN_PHASES = frozenset({"construct", "evaluate", "parse", "cold", "cached"})

SCHEMA = """
CREATE TABLE IF NOT EXISTS bench_runs (
    id          INTEGER PRIMARY KEY,
    commit_sha  VARCHAR NOT NULL,
    timestamp   TIMESTAMP NOT NULL,
    machine     VARCHAR,
    python      VARCHAR,
    notes       VARCHAR
);

CREATE TABLE IF NOT EXISTS bench_results (
    run_id      INTEGER NOT NULL REFERENCES bench_runs(id),
    variant     VARCHAR NOT NULL,
    scenario    VARCHAR NOT NULL,
    phase       VARCHAR NOT NULL,
    mean_ns     DOUBLE NOT NULL,
    stddev_ns   DOUBLE,
    min_ns      DOUBLE,
    max_ns      DOUBLE,
    ops         DOUBLE,
    rounds      BIGINT,
    PRIMARY KEY (run_id, variant, scenario, phase)
);
"""

INSERT_RESULT = """INSERT INTO bench_results
   (run_id, variant, scenario, phase, mean_ns, stddev_ns, min_ns, max_ns, ops, rounds)
   VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)"""


def get_commit_sha() -> str:
    result = subprocess.run(
        ["git", "rev-parse", "--short", "HEAD"],
        capture_output=True,
        text=True,
        check=False,
    )
    return result.stdout.strip() if result.returncode == 0 else "unknown"


def create_run(con: duckdb.DuckDBPyConnection, notes: str | None, python: str | None) -> int:
    """Create a new benchmark run entry, return its ID."""
    con.execute(SCHEMA)

    max_id = con.execute("SELECT COALESCE(MAX(id), 0) FROM bench_runs").fetchone()[0]
    run_id = max_id + 1

    con.execute(
        "INSERT INTO bench_runs (id, commit_sha, timestamp, machine, python, notes) "
        "VALUES (?, ?, ?, ?, ?, ?)",
        [
            run_id,
            get_commit_sha(),
            datetime.now(UTC),
            f"{platform.node()}/{platform.machine()}",
            python,
            notes,
        ],
    )
    return run_id


def split_name(name: str) -> tuple[str, str]:
    """``test_bench_query_cached[x]`` → ``("query", "cached")``."""
    clean = name.split("[", 1)[0].removeprefix("test_bench_")
    scenario, _, phase = clean.rpartition("_")
    if scenario and phase in KNOWN_PHASES:
        return scenario, phase
    return clean, "evaluate"


def parse_pytest_benchmark_json(data: dict[str, Any], variant: str) -> list[dict[str, Any]]:
    """Normalize pytest-benchmark output. Times are reported in seconds."""
    to_ns = 1_000_000_000
    results = []
    for bench in data.get("benchmarks", []):
        scenario, phase = split_name(bench.get("name", ""))
        stats = bench.get("stats", {})
        results.append({
            "variant": variant,
            "scenario": scenario,
            "phase": phase,
            "mean_ns": stats.get("mean", 0) * to_ns,
            "stddev_ns": (stats.get("stddev") or 0) * to_ns,
            "min_ns": stats.get("min", 0) * to_ns,
            "max_ns": stats.get("max", 0) * to_ns,
            "ops": stats.get("ops"),
            "rounds": stats.get("rounds"),
        })
    return results


@click.command()
@click.option("--db", default=DB_DEFAULT, help="DuckDB database path")
@click.option("--notes", default=None, help="Notes for this benchmark run")
@click.option("--raw-dir", default=str(RAW_DIR), help="Directory with raw JSON files")
def main(db: str, notes: str | None, raw_dir: str) -> None:
    """Ingest benchmark results into DuckDB."""
    raw_path = Path(raw_dir)

    if not raw_path.exists():
        click.echo(f"Raw directory {raw_path} does not exist", err=True)
        sys.exit(1)

    json_files = sorted(raw_path.glob("*.json"))
    if not json_files:
        click.echo(f"No JSON files found in {raw_path}", err=True)
        sys.exit(1)

    con = duckdb.connect(db)
    python = None
    total = 0
    run_id = None

    for json_file in json_files:
        data = json.loads(json_file.read_text())
        if "benchmarks" not in data:
            click.echo(f"  Skipping non-benchmark file: {json_file.name}")
            continue

        if run_id is None:
            python = data.get("machine_info", {}).get("python_version")
            run_id = create_run(con, notes, python)

        rows = parse_pytest_benchmark_json(data, json_file.stem)
        for row in rows:
            con.execute(
                INSERT_RESULT,
                [
                    run_id,
                    row["variant"],
                    row["scenario"],
                    row["phase"],
                    row["mean_ns"],
                    row["stddev_ns"],
                    row["min_ns"],
                    row["max_ns"],
                    row["ops"],
                    row["rounds"],
                ],
            )
            total += 1

        click.echo(f"  Ingested {len(rows)} results from {json_file.name}")

    con.close()
    if run_id is None:
        click.echo("No benchmark results ingested", err=True)
        sys.exit(1)
    click.echo(f"\nRun #{run_id}: {total} results ingested into {db}")


if __name__ == "__main__":
    main()
