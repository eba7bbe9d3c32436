"""
Integration tests for the memopair command line interface.

These tests run the CLI on the bundled examples and on small generated
inputs, and check the written tables and exit codes.
"""

import subprocess
import sys

import pandas as pd

from memopair import __version__
from memopair.report import DETAIL_COLUMNS, REPORT_COLUMNS


def run_cli(args: list[str]) -> subprocess.CompletedProcess:
    """Run CLI through current Python env to avoid global PATH contamination."""
    return subprocess.run([sys.executable, "-m", "memopair.cli", *args], capture_output=True, text=True)


def read_table(path):
    return pd.read_csv(path, sep="\t", keep_default_na=False)


def test_calls_table_two_motif_pairs(examples_dir, temp_dir):
    """Test the calls layout with two motif pairs on two references"""
    out = temp_dir / "state.tsv"
    result = run_cli(
        [
            str(examples_dir / "reference.fa"),
            str(examples_dir / "calls.tsv"),
            "CCWGG_a_0_m_4",
            "GATC_a_1_m_3",
            "--pileup-format",
            "calls",
            "-o",
            str(out),
        ]
    )
    assert result.returncode == 0, f"Command failed with stderr: {result.stderr}"

    table = read_table(out)
    assert list(table.columns) == REPORT_COLUMNS
    assert [tuple(row) for row in table.itertuples(index=False)] == [
        ("contig_1", "CCWGG_a_0_m_4", 1, 1, 0, 0, 1, 1, 3, 4),
        ("contig_1", "GATC_a_1_m_3", 0, 0, 0, 0, 0, 0, 0, 0),
        ("contig_2", "CCWGG_a_0_m_4", 0, 0, 0, 0, 0, 0, 0, 0),
        ("contig_2", "GATC_a_1_m_3", 1, 1, 1, 1, 0, 0, 4, 4),
    ]

    # Unknown reference in the pileup is only a warning
    assert "plasmid_9" in result.stderr


def test_bedmethyl_with_details(examples_dir, temp_dir):
    """Test the default bedMethyl layout together with the detail table"""
    out = temp_dir / "state.tsv"
    details = temp_dir / "occurrences.tsv"
    result = run_cli(
        [
            str(examples_dir / "reference.fa"),
            str(examples_dir / "pileup.bed"),
            "CCWGG_a_0_m_4",
            "-o",
            str(out),
            "--details",
            str(details),
            "--threads",
            "2",
        ]
    )
    assert result.returncode == 0, f"Command failed with stderr: {result.stderr}"

    table = read_table(out)
    assert table["both_modified"].tolist() == [1, 0]
    assert table["no_call"].tolist() == [1, 0]
    assert table["n_considered"].tolist() == [3, 0]

    detail_table = read_table(details)
    assert list(detail_table.columns) == DETAIL_COLUMNS
    assert len(detail_table) == 4
    assert detail_table["state"].tolist() == ["both_modified", "mod1_only", "low_coverage", "no_call"]
    assert (detail_table["mod1_type"] == "a").all()
    assert (detail_table["mod2_type"] == "m").all()
    assert detail_table["mod1_n_mod"].astype(str).tolist() == ["9", "9", "3", ""]
    assert detail_table["mod2_n_diff"].astype(str).tolist() == ["2", "0", "0", ""]


def test_failed_details_write_leaves_no_summary(examples_dir, temp_dir):
    """Test that the summary is not written when the detail table cannot be"""
    out = temp_dir / "state.tsv"
    details = temp_dir / "occurrences"
    details.mkdir()
    result = run_cli(
        [
            str(examples_dir / "reference.fa"),
            str(examples_dir / "pileup.bed"),
            "CCWGG_a_0_m_4",
            "-o",
            str(out),
            "--details",
            str(details),
            "--force",
        ]
    )

    assert result.returncode == 1
    assert "Run failed" in result.stderr
    assert not out.exists()
    assert sorted(p.name for p in temp_dir.iterdir()) == ["occurrences"]


def test_min_cov_option(examples_dir, temp_dir):
    """Test that --min-cov changes the low-coverage count"""
    out = temp_dir / "state.tsv"
    result = run_cli(
        [
            str(examples_dir / "reference.fa"),
            str(examples_dir / "calls.tsv"),
            "CCWGG_a_0_m_4",
            "--pileup-format",
            "calls",
            "--min-cov",
            "3",
            "-o",
            str(out),
            "--verbosity",
            "silent",
        ]
    )
    assert result.returncode == 0, f"Command failed with stderr: {result.stderr}"

    table = read_table(out)
    assert table.loc[0, "both_modified"] == 2
    assert table.loc[0, "low_coverage"] == 0


def test_invalid_motif_pair(examples_dir, temp_dir):
    """Test that an invalid motif pair fails without writing output"""
    out = temp_dir / "state.tsv"
    result = run_cli(
        [str(examples_dir / "reference.fa"), str(examples_dir / "pileup.bed"), "CCWGG_a_0_m_7", "-o", str(out)]
    )

    assert result.returncode == 1
    assert "POS2" in result.stderr
    assert not out.exists()


def test_malformed_pileup(write_fasta, write_calls, temp_dir):
    """Test that a malformed pileup line fails the run"""
    reference = write_fasta({"chr1": "GGATCC"})
    pileup = write_calls([("chr1", 2, "+", "a", 10), ("chr1", "four", "+", "m", 10)])
    out = temp_dir / "state.tsv"

    result = run_cli([str(reference), str(pileup), "GATC_a_1_m_3", "--pileup-format", "calls", "-o", str(out)])

    assert result.returncode == 1
    assert "Malformed pileup line 2" in result.stderr
    assert not out.exists()


def test_strict_references(examples_dir, temp_dir):
    """Test that --strict-references turns unknown references into an error"""
    out = temp_dir / "state.tsv"
    result = run_cli(
        [
            str(examples_dir / "reference.fa"),
            str(examples_dir / "calls.tsv"),
            "GATC_a_1_m_3",
            "--pileup-format",
            "calls",
            "--strict-references",
            "-o",
            str(out),
        ]
    )

    assert result.returncode == 1
    assert "plasmid_9" in result.stderr
    assert not out.exists()


def test_existing_output_requires_force(examples_dir, temp_dir):
    """Test that an existing output is only replaced with --force"""
    out = temp_dir / "state.tsv"
    out.write_text("old\n")
    args = [str(examples_dir / "reference.fa"), str(examples_dir / "pileup.bed"), "CCWGG_a_0_m_4", "-o", str(out)]

    result = run_cli(args)
    assert result.returncode == 1
    assert out.read_text() == "old\n"

    result = run_cli([*args, "--force"])
    assert result.returncode == 0, f"Command failed with stderr: {result.stderr}"
    assert list(read_table(out).columns) == REPORT_COLUMNS


def test_missing_input_file(examples_dir, temp_dir):
    """Test that a missing reference file exits with an error"""
    result = run_cli(
        [
            str(temp_dir / "missing.fa"),
            str(examples_dir / "pileup.bed"),
            "CCWGG_a_0_m_4",
            "-o",
            str(temp_dir / "state.tsv"),
        ]
    )

    assert result.returncode == 1
    assert "Reference file not found" in result.stderr


def test_no_arguments_prints_help():
    """Test that running without arguments prints usage and fails"""
    result = run_cli([])
    assert result.returncode == 1
    assert "usage: memopair" in result.stderr


def test_version():
    """Test --version"""
    result = run_cli(["--version"])
    assert result.returncode == 0
    assert __version__ in result.stdout
