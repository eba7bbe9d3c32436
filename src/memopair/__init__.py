"""
MEMOPAIR
==================

This package computes the paired methylation state of motif occurrences on
double-stranded DNA.  A reference genome is scanned for user-supplied motif
pairs on both strands, the two declared modification sites of every
occurrence are joined against a methylation pileup, and each occurrence is
classified and counted per reference sequence.  Methylation itself is never
called here: calls and coverage come from the pileup.

The top level modules expose the following key components:

``iupac``
    Bitmask lookup tables for IUPAC nucleotide codes and reverse complements.

``motifs``
    Parsing and rendering of ``MOTIF_TYPE1_POS1_TYPE2_POS2`` motif-pair tokens.

``scanner``
    Forward and reverse-strand motif scanning with mirrored site offsets.

``pileup``
    Streaming readers for bedMethyl and simple call tables, and the
    read-only :class:`PileupIndex`.

``classify``
    The paired-state classifier with its coverage filter.

``report``
    The thread-safe :class:`AggregateReport` and its tabular renderings.

``pipeline``
    The run orchestrator fanning references out to worker threads.

``cli``
    The ``memopair`` command line interface.
"""

__version__ = "0.1.0"

from memopair.api import EngineConfig, compute_motif_methylation_state, create_config
from memopair.classify import ClassifiedOccurrence, PairState, classify_occurrence
from memopair.motifs import InvalidSpec, MotifPairSpec, parse_motif_pair, parse_motif_pairs
from memopair.pileup import MalformedPileupLine, PileupIndex, PileupRecord, UnknownReferenceInPileup
from memopair.report import AggregateReport
from memopair.scanner import MotifOccurrence, scan_motif_pair
from memopair.sequences import ReferenceSequence, Strand

__all__ = [
    "AggregateReport",
    "ClassifiedOccurrence",
    "EngineConfig",
    "InvalidSpec",
    "MalformedPileupLine",
    "MotifOccurrence",
    "MotifPairSpec",
    "PairState",
    "PileupIndex",
    "PileupRecord",
    "ReferenceSequence",
    "Strand",
    "UnknownReferenceInPileup",
    "classify_occurrence",
    "compute_motif_methylation_state",
    "create_config",
    "parse_motif_pair",
    "parse_motif_pairs",
    "scan_motif_pair",
]
