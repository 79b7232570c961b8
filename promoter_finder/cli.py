"""
Command line interface for promoter extraction.

Usage:
    extract-promoters --blast hits.m8 --gff-list gffs.tsv --fasta-list fastas.tsv \
        --synonyms synonyms.tsv -r U -l 1500 -c 50 -i 40 -p -o my_run

    # or let BLAST+ produce the hits first
    extract-promoters --query proteins.faa --db genomes_prot --gff-list gffs.tsv \
        --fasta-list fastas.tsv
"""

import argparse
import logging
import sys
from typing import List, Optional

from .modules.blast_runner import BlastRunner, BLAST_PROGRAMS
from .modules.promoter_pipeline import PromoterConfig, PromoterPipeline, DEFAULT_OUTBASE
from .modules.region_projector import RegionMode, DEFAULT_WINDOW_LENGTH
from .modules.blast_filter import DEFAULT_MIN_COVERAGE, DEFAULT_MIN_IDENTITY

logger = logging.getLogger(__name__)


def positive_int(value: str) -> int:
    number = int(value)
    if number <= 0:
        raise argparse.ArgumentTypeError(f"must be a positive integer, got {value}")
    return number


def region_mode(value: str) -> RegionMode:
    try:
        return RegionMode.from_string(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="extract-promoters",
        description="Extract promoter regions of BLAST-matched genes from annotated genomes",
    )

    hits = parser.add_mutually_exclusive_group(required=True)
    hits.add_argument(
        "-b", "--blast",
        help="BLAST tabular hits with qlen and slen appended (outfmt '6 std qlen slen')",
    )
    hits.add_argument(
        "-q", "--query",
        help="Query FASTA; run BLAST+ to produce the hits",
    )

    parser.add_argument("--db", help="BLAST database searched with --query")
    parser.add_argument("--subject", help="Subject FASTA searched with --query (instead of --db)")
    parser.add_argument(
        "--program", default="blastp", choices=BLAST_PROGRAMS,
        help="BLAST+ program used with --query (default: blastp)",
    )
    parser.add_argument(
        "--threads", type=positive_int, default=1,
        help="BLAST threads used with --query (default: 1)",
    )

    parser.add_argument(
        "-g", "--gff-list", required=True,
        help="Two-column list: taxon id, GFF annotation file",
    )
    parser.add_argument(
        "-f", "--fasta-list", required=True,
        help="Two-column list: taxon id, genome FASTA file",
    )
    parser.add_argument(
        "-s", "--synonyms",
        help="Synonym table: BLAST id, feature id[, prefix id]",
    )
    parser.add_argument(
        "-r", "--region", type=region_mode, default=RegionMode.DOWNSTREAM,
        help="Region to extract: D(ownstream), U(pstream) or B(oth) (default: D)",
    )
    parser.add_argument(
        "-l", "--length", type=positive_int, default=DEFAULT_WINDOW_LENGTH,
        help=f"Promoter window length (default: {DEFAULT_WINDOW_LENGTH})",
    )
    parser.add_argument(
        "-c", "--min-coverage", type=float, default=DEFAULT_MIN_COVERAGE,
        help=f"Minimum query and subject coverage %% (default: {DEFAULT_MIN_COVERAGE:g})",
    )
    parser.add_argument(
        "-i", "--min-identity", type=float, default=DEFAULT_MIN_IDENTITY,
        help=f"Minimum percent identity (default: {DEFAULT_MIN_IDENTITY:g})",
    )
    parser.add_argument(
        "-p", "--prefix", action="store_true",
        help="Qualify ids with their taxon/prefix id ('<prefix>_<id>')",
    )
    parser.add_argument(
        "-a", "--alt-suffix", action="store_true",
        help="Match protein ids carrying a one-character suffix to Name + '.p'",
    )
    parser.add_argument(
        "-o", "--outbase", default=DEFAULT_OUTBASE,
        help=f"Output basename; writes <outbase>_promotors.fasta (default: {DEFAULT_OUTBASE})",
    )
    parser.add_argument(
        "--hit-table", action="store_true",
        help="Also write <outbase>_hits.tsv with coverage and selection per hit",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Debug logging",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(message)s",
    )

    if args.query and not (args.db or args.subject):
        parser.error("--query needs --db or --subject")

    try:
        blast_path = args.blast
        if args.query:
            runner = BlastRunner(program=args.program, threads=args.threads)
            blast_path = runner.run(
                args.query, db=args.db, subject_fasta=args.subject,
                output_file=f"{args.outbase}_blast.m8",
            )

        config = PromoterConfig(
            region_mode=args.region,
            window_length=args.length,
            min_query_coverage=args.min_coverage,
            min_subject_coverage=args.min_coverage,
            min_identity=args.min_identity,
            use_prefix=args.prefix,
            alt_suffix=args.alt_suffix,
            outbase=args.outbase,
            write_hit_table=args.hit_table,
        )
        PromoterPipeline(config).run(blast_path, args.gff_list, args.fasta_list, args.synonyms)
    except (FileNotFoundError, ValueError, RuntimeError) as e:
        logger.error("%s", e)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
