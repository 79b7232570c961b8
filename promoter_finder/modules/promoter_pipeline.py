"""
Promoter Pipeline Module

Runs the full extraction: BLAST hit filtering -> annotation lookup ->
window projection -> sequence extraction, taxon by taxon, and writes one
FASTA for the whole run.

Usage:
    from promoter_finder.modules.promoter_pipeline import PromoterConfig, PromoterPipeline

    config = PromoterConfig(region_mode=RegionMode.UPSTREAM, window_length=1000)
    context = PromoterPipeline(config).run("hits.m8", "gff_list.tsv", "fasta_list.tsv")
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from Bio.SeqRecord import SeqRecord

from ..utils.parsers import parse_file_list
from .annotation_locator import AnnotationLocator
from .blast_filter import (
    BlastHitFilter,
    HitStatistics,
    SelectedHit,
    SynonymTable,
    DEFAULT_MIN_COVERAGE,
    DEFAULT_MIN_IDENTITY,
)
from .region_projector import RegionMode, RegionProjector, DEFAULT_WINDOW_LENGTH
from .sequence_emitter import SequenceEmitter, output_path, DEFAULT_OUTPUT_FORMAT

logger = logging.getLogger(__name__)

DEFAULT_OUTBASE = "promoter_seqs"
HIT_TABLE_SUFFIX = "_hits.tsv"


@dataclass
class PromoterConfig:
    """Settings for one extraction run"""
    region_mode: RegionMode = RegionMode.DOWNSTREAM
    window_length: int = DEFAULT_WINDOW_LENGTH
    min_query_coverage: float = DEFAULT_MIN_COVERAGE
    min_subject_coverage: float = DEFAULT_MIN_COVERAGE
    min_identity: float = DEFAULT_MIN_IDENTITY
    use_prefix: bool = False
    alt_suffix: bool = False
    outbase: str = DEFAULT_OUTBASE
    output_format: str = DEFAULT_OUTPUT_FORMAT
    write_hit_table: bool = False

    def __post_init__(self):
        if isinstance(self.region_mode, str):
            self.region_mode = RegionMode.from_string(self.region_mode)
        if self.window_length <= 0:
            raise ValueError(f"Window length must be positive, got {self.window_length}")
        for name in ('min_query_coverage', 'min_subject_coverage', 'min_identity'):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must not be negative")

    @property
    def output_file(self) -> Path:
        return output_path(self.outbase, self.output_format)

    @property
    def hit_table_file(self) -> Path:
        return Path(f"{self.outbase}{HIT_TABLE_SUFFIX}")


@dataclass
class RunContext:
    """State carried between phases of one run"""
    config: PromoterConfig
    annotation_files: Dict[str, Path] = field(default_factory=dict)
    sequence_files: Dict[str, Path] = field(default_factory=dict)
    synonyms: Optional[SynonymTable] = None
    hit_filter: Optional[BlastHitFilter] = None
    locator: Optional[AnnotationLocator] = None
    emitter: Optional[SequenceEmitter] = None

    @property
    def selected_hits(self) -> Dict[str, SelectedHit]:
        return self.hit_filter.selected if self.hit_filter else {}

    @property
    def records(self) -> List[SeqRecord]:
        return self.emitter.records if self.emitter else []

    @property
    def hit_statistics(self) -> Optional[HitStatistics]:
        return self.hit_filter.stats if self.hit_filter else None


def check_taxon_sets(annotation_files: Dict[str, Path], sequence_files: Dict[str, Path]):
    """Fail unless both file lists name exactly the same taxa."""
    annotation_taxa = set(annotation_files)
    sequence_taxa = set(sequence_files)
    if annotation_taxa != sequence_taxa:
        only_annotation = sorted(annotation_taxa - sequence_taxa)
        only_sequence = sorted(sequence_taxa - annotation_taxa)
        raise ValueError(
            "Annotation and sequence file lists name different taxa "
            f"(annotation only: {only_annotation or '-'}; sequence only: {only_sequence or '-'})"
        )


class PromoterPipeline:
    """Sequential promoter extraction over a batch of genomes."""

    def __init__(self, config: Optional[PromoterConfig] = None):
        self.config = config or PromoterConfig()

    # ------------------------------------------------------------------
    # Phases
    # ------------------------------------------------------------------

    def load_inputs(self, context: RunContext, annotation_list: str, sequence_list: str,
                    synonym_path: Optional[str] = None):
        context.annotation_files = parse_file_list(annotation_list)
        context.sequence_files = parse_file_list(sequence_list)
        check_taxon_sets(context.annotation_files, context.sequence_files)
        logger.info("%d genomes listed", len(context.annotation_files))

        if synonym_path:
            context.synonyms = SynonymTable.from_file(synonym_path)

    def filter_hits(self, context: RunContext, blast_path: str):
        config = self.config
        context.hit_filter = BlastHitFilter(
            min_query_coverage=config.min_query_coverage,
            min_subject_coverage=config.min_subject_coverage,
            min_identity=config.min_identity,
            synonyms=context.synonyms,
            use_prefix=config.use_prefix,
            alt_suffix=config.alt_suffix,
            record_hits=config.write_hit_table,
        )
        context.hit_filter.filter_file(blast_path)

        if config.write_hit_table:
            table = context.hit_filter.hit_table()
            table.to_csv(config.hit_table_file, sep='\t', index=False)
            logger.info("Saved %d hits to %s", len(table), config.hit_table_file)

    def extract_promoters(self, context: RunContext):
        """Scan annotations and extract windows, one taxon at a time."""
        config = self.config
        context.locator = AnnotationLocator(
            context.selected_hits,
            use_prefix=config.use_prefix,
            alt_suffix=config.alt_suffix,
        )
        context.emitter = SequenceEmitter(RegionProjector(config.region_mode, config.window_length))

        for taxon, gff_path in context.annotation_files.items():
            index = context.locator.scan_file(taxon, gff_path)
            if not len(index):
                logger.info("%s: no selected hits located, skipping assembly", taxon)
                continue
            context.emitter.emit_taxon_file(index, context.locator.features,
                                            context.sequence_files[taxon])

        self._report_unmatched(context)

    def write_output(self, context: RunContext) -> Path:
        path = self.config.output_file
        context.emitter.write(path, self.config.output_format)
        return path

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------

    def run(self, blast_path: str, annotation_list: str, sequence_list: str,
            synonym_path: Optional[str] = None) -> RunContext:
        """
        Execute every phase and write '<outbase>_promotors.<ext>'.

        Raises:
            FileNotFoundError: An input file is missing
            ValueError: Malformed input or inconsistent file lists
        """
        context = RunContext(config=self.config)
        self.load_inputs(context, annotation_list, sequence_list, synonym_path)
        self.filter_hits(context, blast_path)
        self.extract_promoters(context)
        self.write_output(context)

        logger.info(
            "Done. Selected hits: %d, located features: %d, extracted: %d, "
            "rejected (window <= 4 bp): %d, missing contigs: %d",
            len(context.selected_hits), len(context.locator.features), len(context.records),
            context.emitter.rejected, context.emitter.missing_contigs,
        )
        return context

    def _report_unmatched(self, context: RunContext):
        unmatched = context.locator.unmatched_ids()
        if not unmatched:
            return
        logger.warning("%d selected hits were not found in any annotation", len(unmatched))
        for resolved_id in unmatched:
            external_id = None
            if context.synonyms is not None:
                external_id = context.synonyms.external_for(resolved_id)
            logger.debug("Unlocated hit %s (BLAST id %s)", resolved_id,
                         external_id or context.selected_hits[resolved_id].subject_id)
