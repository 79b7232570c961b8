"""
Sequence Emitter Module

Cuts accepted promoter windows out of a genome assembly and turns them into
labelled Biopython SeqRecords. Reverse-strand windows are reverse
complemented; the description keeps the forward-strand span.

Record layout:
    id:          <resolved_id>_<mode letter><window length>
    description: <contig>:<start>-<end> AltID=<original BLAST subject id>
"""

import logging
from pathlib import Path
from typing import Dict, List, Mapping, Optional

from Bio import SeqIO
from Bio.Seq import Seq
from Bio.SeqRecord import SeqRecord

from ..utils.parsers import load_genome, reverse_complement
from .annotation_locator import FeatureKey, FeatureRecord, GenomeIndex
from .region_projector import PromoterWindow, RegionProjector

logger = logging.getLogger(__name__)

OUTPUT_SUFFIX = "_promotors"
DEFAULT_OUTPUT_FORMAT = "fasta"


def output_path(outbase: str, ext: str = DEFAULT_OUTPUT_FORMAT) -> Path:
    """'<outbase>_promotors.<ext>'"""
    return Path(f"{outbase}{OUTPUT_SUFFIX}.{ext}")


def extract_window(sequence: str, window: PromoterWindow) -> str:
    """Inclusive 1-based slice of a contig, oriented by the window strand."""
    extracted = sequence[window.start - 1:window.end]
    if window.strand == -1:
        extracted = reverse_complement(extracted)
    return extracted


class SequenceEmitter:
    """
    Extracts promoter sequences for located features.

    Attributes:
        projector (RegionProjector): Window projection settings
        records (List[SeqRecord]): Emitted records, in emission order
        rejected (int): Windows discarded as too short
        missing_contigs (int): Features whose contig is absent from the assembly
    """

    def __init__(self, projector: RegionProjector):
        self.projector = projector
        self.records: List[SeqRecord] = []
        self.rejected = 0
        self.missing_contigs = 0

    def record_id(self, resolved_id: str) -> str:
        return f"{resolved_id}_{self.projector.mode.value}{self.projector.length}"

    def build_record(self, feature: FeatureRecord, window: PromoterWindow, sequence: str) -> SeqRecord:
        return SeqRecord(
            Seq(extract_window(sequence, window)),
            id=self.record_id(feature.resolved_id),
            description=f"{feature.seqid}:{window.start}-{window.end} AltID={feature.original_id}",
        )

    def emit_feature(self, feature: FeatureRecord, sequence: str) -> Optional[SeqRecord]:
        """Project, check and extract one feature's window."""
        window = self.projector.project_feature(feature, len(sequence))
        if not window.accepted:
            self.rejected += 1
            logger.warning(
                "%s: promoter window %s:%d-%d is too short (%d bp), skipping",
                feature.resolved_id, feature.seqid, window.start, window.end, window.length,
            )
            return None

        record = self.build_record(feature, window, sequence)
        self.records.append(record)
        return record

    def emit_taxon(self, index: GenomeIndex,
                   features: Mapping[FeatureKey, FeatureRecord],
                   genome: Dict[str, str]) -> List[SeqRecord]:
        """Emit every located feature of one taxon, contig by contig."""
        emitted = []
        for contig_id, resolved_ids in index:
            if contig_id not in genome:
                self.missing_contigs += len(resolved_ids)
                logger.warning("%s: contig %s not found in assembly, skipping %d feature(s)",
                               index.taxon, contig_id, len(resolved_ids))
                continue

            sequence = genome[contig_id]
            for resolved_id in resolved_ids:
                record = self.emit_feature(features[FeatureKey(index.taxon, resolved_id)], sequence)
                if record is not None:
                    emitted.append(record)

        logger.info("%s: %d promoter sequences extracted", index.taxon, len(emitted))
        return emitted

    def emit_taxon_file(self, index: GenomeIndex,
                        features: Mapping[FeatureKey, FeatureRecord],
                        fasta_path: str) -> List[SeqRecord]:
        logger.info("Loading assembly for %s from %s", index.taxon, fasta_path)
        return self.emit_taxon(index, features, load_genome(fasta_path))

    def write(self, path, fmt: str = DEFAULT_OUTPUT_FORMAT) -> int:
        """Write all emitted records; returns the number written."""
        count = SeqIO.write(self.records, str(path), fmt)
        logger.info("Wrote %d promoter sequences to %s", count, path)
        return count
