import argparse
import logging
import os
import sys
from dataclasses import asdict

from memopair import __version__
from memopair.api import create_config
from memopair.io import write_tables
from memopair.pileup import PILEUP_FORMATS
from memopair.pipeline import run_pipeline

VERBOSITY_LEVELS = {
    "verbose": logging.DEBUG,
    "normal": logging.INFO,
    "silent": logging.CRITICAL + 1,
}


def setup_logging(verbosity: str):
    """Setup logging configuration."""
    level = VERBOSITY_LEVELS[verbosity]
    logging.basicConfig(level=level, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    logging.getLogger("numba").setLevel(max(level, logging.WARNING))


def create_arg_parser() -> argparse.ArgumentParser:
    """Create and configure argument parser."""
    parser = argparse.ArgumentParser(
        prog="memopair",
        description=(
            "memopair: paired methylation state of complementary motif sites from a reference "
            "and a methylation pileup"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
 Examples:
   # modkit bedMethyl pileup, two motif pairs
   memopair reference.fa pileup.bed CCWGG_4mC_0_5mC_3 GATC_a_1_a_2 \\
     --min-cov 10 --threads 4 -o motif_methylation_state.tsv

   # simple call table with a per-occurrence detail table
   memopair reference.fa calls.tsv ACGT_a_0_m_3 --pileup-format calls \\
     --details occurrences.tsv
         """,
    )

    parser.add_argument("reference", help="Path to the FASTA file with the reference sequences.")
    parser.add_argument("pileup", help="Path to the pileup file with methylation calls and coverage.")
    parser.add_argument(
        "motifs",
        nargs="+",
        metavar="MOTIFS",
        help=(
            "Complementary motif pairs in the format MOTIF_TYPE1_POS1_TYPE2_POS2, "
            "e.g. 'ACGT_a_0_m_3' or 'CCWGG_4mC_0_5mC_3'."
        ),
    )

    io_group = parser.add_argument_group("Input/Output Options")
    io_group.add_argument(
        "-o",
        "--out",
        default="motif_methylation_state.tsv",
        help="Path of the summary table (TSV). (default: %(default)s)",
    )
    io_group.add_argument(
        "--details",
        help="Optional path of a per-occurrence table (TSV) with calls and coverage at both sites.",
    )
    io_group.add_argument(
        "--pileup-format",
        choices=list(PILEUP_FORMATS),
        default="bedmethyl",
        help=(
            "Layout of the pileup file. Choices: bedmethyl (modkit pileup), "
            "calls (reference, position, strand, call, coverage). (default: %(default)s)"
        ),
    )
    io_group.add_argument(
        "--force",
        action="store_true",
        help="Overwrite existing output files.",
    )

    engine_group = parser.add_argument_group("Classification Options")
    engine_group.add_argument(
        "--min-cov",
        type=int,
        default=5,
        help="Minimum coverage required at both sites to classify an occurrence. (default: %(default)s)",
    )
    engine_group.add_argument(
        "--min-mod-fraction",
        type=float,
        default=0.5,
        help=(
            "Fraction of valid reads needed to call a bedMethyl site modified or unmodified; "
            "sites below it in both directions are no-calls. (default: %(default)s)"
        ),
    )
    engine_group.add_argument(
        "--strict-references",
        action="store_true",
        help="Fail when the pileup names a reference that is absent from the FASTA file instead of skipping it.",
    )

    technical_group = parser.add_argument_group("Technical Options")
    technical_group.add_argument(
        "-t",
        "--threads",
        type=int,
        default=1,
        help="Number of worker threads. Set to -1 to use all available CPU cores. (default: %(default)s)",
    )
    technical_group.add_argument(
        "--verbosity",
        choices=list(VERBOSITY_LEVELS),
        default="normal",
        help="Verbosity level. (default: %(default)s)",
    )
    technical_group.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    return parser


def validate_inputs(args) -> None:
    """Validate input files and output destinations."""
    logger = logging.getLogger(__name__)
    if not os.path.exists(args.reference):
        logger.error(f"Reference file not found: {args.reference}")
        sys.exit(1)
    if not os.path.exists(args.pileup):
        logger.error(f"Pileup file not found: {args.pileup}")
        sys.exit(1)

    for path in (args.out, args.details):
        if path is None:
            continue
        if os.path.exists(path) and not args.force:
            logger.error(f"Output file already exists: {path} (use --force to overwrite)")
            sys.exit(1)
        directory = os.path.dirname(os.path.abspath(path))
        if not os.path.isdir(directory):
            logger.error(f"Output directory does not exist: {directory}")
            sys.exit(1)


def main_cli():
    """Main CLI entry point."""
    parser = create_arg_parser()

    if len(sys.argv) == 1:
        parser.print_help(sys.stderr)
        sys.exit(1)

    args = parser.parse_args()

    setup_logging(args.verbosity)
    logger = logging.getLogger(__name__)

    validate_inputs(args)

    try:
        config = create_config(
            min_cov=args.min_cov,
            min_mod_fraction=args.min_mod_fraction,
            pileup_format=args.pileup_format,
            strict_references=args.strict_references,
            n_jobs=args.threads,
            keep_details=args.details is not None,
        )

        logger.debug("=" * 60)
        logger.debug(f"memopair {__version__}")
        logger.debug(f"Reference: {args.reference}")
        logger.debug(f"Pileup: {args.pileup} ({config.pileup_format})")
        logger.debug(f"Motif pairs: {', '.join(args.motifs)}")
        logger.debug(f"Minimum coverage: {config.min_cov}")
        logger.debug("=" * 60)

        report = run_pipeline(args.reference, args.pileup, args.motifs, **asdict(config))

        tables = [(report.to_dataframe(), args.out)]
        if config.keep_details:
            tables.append((report.details_dataframe(), args.details))
        write_tables(tables)

    except Exception as e:
        logger.error(f"Run failed: {e}")
        if args.verbosity == "verbose":
            logger.exception(e)
        sys.exit(1)

    logger.info("Finished running motif methylation state")


if __name__ == "__main__":
    main_cli()
