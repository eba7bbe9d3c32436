"""
Pipeline for one motif-pair methylation run.
This module wires the motif parser, pileup index, scanner, classifier and aggregator together.
"""

import logging
import time
from pathlib import Path
from typing import Iterable, Sequence, Union

from joblib import Parallel, delayed

from memopair.classify import classify_occurrences
from memopair.io import iter_fasta, read_fasta_ids
from memopair.motifs import MotifPairSpec, declared_mod_types, parse_motif_pairs
from memopair.pileup import PileupIndex
from memopair.report import AggregateReport
from memopair.scanner import scan_motif_pair
from memopair.sequences import ReferenceSequence


class Pipeline:
    """
    Orchestrates a run: parse motif pairs, index the pileup, fan references
    out to workers and fan classified batches into one :class:`AggregateReport`.
    """

    def __init__(
        self,
        min_cov: int = 5,
        min_mod_fraction: float = 0.5,
        pileup_format: str = "bedmethyl",
        strict_references: bool = False,
        n_jobs: int = 1,
        keep_details: bool = False,
    ):
        self.logger = logging.getLogger(__name__)
        self.min_cov = min_cov
        self.min_mod_fraction = min_mod_fraction
        self.pileup_format = pileup_format
        self.strict_references = strict_references
        self.n_jobs = n_jobs
        self.keep_details = keep_details

    def load_pileup(
        self, pileup_path: Union[str, Path], references: Sequence[str], specs: Sequence[MotifPairSpec]
    ) -> PileupIndex:
        """
        Build the read-only pileup index for ``references``.

        Args:
            pileup_path: Path to the pileup file
            references: Reference ids from the FASTA
            specs: Parsed motif pairs; their labels restrict bedMethyl modification codes

        Returns:
            Populated PileupIndex
        """
        self.logger.info(f"Indexing pileup file: {pileup_path}")
        return PileupIndex.from_file(
            pileup_path,
            known_references=references,
            pileup_format=self.pileup_format,
            min_mod_fraction=self.min_mod_fraction,
            mod_types=declared_mod_types(specs),
            strict_references=self.strict_references,
        )

    def process_reference(
        self,
        reference: ReferenceSequence,
        specs: Sequence[MotifPairSpec],
        index: PileupIndex,
        report: AggregateReport,
    ) -> int:
        """Scan and classify every motif pair on one reference; one batch per motif pair."""
        total = 0
        for spec in specs:
            occurrences = scan_motif_pair(reference, spec)
            batch = list(classify_occurrences(occurrences, index, self.min_cov))
            total += report.add_batch(batch)
            self.logger.debug(f"{reference.id}: {len(batch)} occurrence(s) of {spec.render()}")
        return total

    def process_references(
        self,
        references: Iterable[ReferenceSequence],
        specs: Sequence[MotifPairSpec],
        index: PileupIndex,
        report: AggregateReport,
    ) -> int:
        """Process references in parallel; the iterable is consumed lazily by the worker pool."""
        counts = Parallel(n_jobs=self.n_jobs, prefer="threads")(
            delayed(self.process_reference)(reference, specs, index, report) for reference in references
        )
        return sum(counts)

    def run_pipeline(
        self, reference_path: Union[str, Path], pileup_path: Union[str, Path], motif_pairs: Iterable[str]
    ) -> AggregateReport:
        """
        Main entry point for one run.

        Args:
            reference_path: FASTA file with the reference sequences
            pileup_path: Pileup file with methylation calls
            motif_pairs: Motif-pair tokens ``MOTIF_TYPE1_POS1_TYPE2_POS2``

        Returns:
            Finalized AggregateReport
        """
        timer = time.perf_counter()
        specs = parse_motif_pairs(motif_pairs)
        self.logger.info(f"Parsed {len(specs)} motif pair(s): {', '.join(spec.render() for spec in specs)}")

        references = read_fasta_ids(reference_path)
        self.logger.info(f"Found {len(references)} reference record(s) in {reference_path}")

        index = self.load_pileup(pileup_path, references, specs)

        report = AggregateReport(references, specs, keep_details=self.keep_details)
        n_occurrences = self.process_references(iter_fasta(reference_path), specs, index, report)

        self.logger.info(f"Classified {n_occurrences} motif occurrence(s) in {time.perf_counter() - timer:.2f}s")
        return report


def run_pipeline(
    reference_path: Union[str, Path],
    pileup_path: Union[str, Path],
    motif_pairs: Iterable[str],
    min_cov: int = 5,
    min_mod_fraction: float = 0.5,
    pileup_format: str = "bedmethyl",
    strict_references: bool = False,
    n_jobs: int = 1,
    keep_details: bool = False,
) -> AggregateReport:
    """
    Module-level function to run the pipeline.

    Args:
        reference_path: FASTA file with the reference sequences
        pileup_path: Pileup file with methylation calls
        motif_pairs: Motif-pair tokens
        min_cov: Minimum coverage at both sites for a classified state
        min_mod_fraction: Read fraction for a bedMethyl call
        pileup_format: 'bedmethyl' or 'calls'
        strict_references: Fail on pileup records for unknown references
        n_jobs: Number of worker threads (-1 for all cores)
        keep_details: Keep every classified occurrence for a detail table

    Returns:
        Finalized AggregateReport
    """
    pipeline = Pipeline(
        min_cov=min_cov,
        min_mod_fraction=min_mod_fraction,
        pileup_format=pileup_format,
        strict_references=strict_references,
        n_jobs=n_jobs,
        keep_details=keep_details,
    )
    return pipeline.run_pipeline(reference_path, pileup_path, motif_pairs)
