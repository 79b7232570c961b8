"""
Annotation Locator Module

Scans per-genome GFF annotations for features whose identifiers match the
resolved ids of selected BLAST hits, and records the genomic interval and
strand of every match.

Candidate spellings tried for each feature line, in order:
    Name, ID, Name + '.p' (alt-suffix mode)
each qualified as '<taxon>_<candidate>' in prefix mode.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, List, Mapping, Optional, Tuple

from ..utils.parsers import GffFeature, iter_gff
from .blast_filter import SelectedHit

logger = logging.getLogger(__name__)

ALT_SUFFIX = ".p"


@dataclass(frozen=True)
class FeatureKey:
    """Composite key of a located feature"""
    taxon: str
    resolved_id: str


@dataclass
class FeatureRecord:
    """Genomic location of a feature matched to a selected hit"""
    taxon: str
    seqid: str
    start: int
    end: int
    strand: int
    resolved_id: str
    original_id: str

    @property
    def key(self) -> FeatureKey:
        return FeatureKey(self.taxon, self.resolved_id)


class GenomeIndex:
    """Contig id -> ordered resolved ids of the features located on it, for one taxon"""

    def __init__(self, taxon: str):
        self.taxon = taxon
        self.contigs: Dict[str, List[str]] = {}

    @classmethod
    def build(cls, taxon: str, match_order: Iterable[str],
              features: Mapping[FeatureKey, FeatureRecord]) -> "GenomeIndex":
        index = cls(taxon)
        for resolved_id in match_order:
            record = features[FeatureKey(taxon, resolved_id)]
            index.contigs.setdefault(record.seqid, []).append(resolved_id)
        return index

    def __iter__(self) -> Iterator[Tuple[str, List[str]]]:
        return iter(self.contigs.items())

    def __len__(self) -> int:
        return sum(len(ids) for ids in self.contigs.values())


class AnnotationLocator:
    """
    Resolves selected hits to annotated genomic intervals.

    Located features accumulate across taxa in `features`, keyed by
    FeatureKey; `match_order` keeps each taxon's first-match order.
    """

    def __init__(self,
                 selected_hits: Mapping[str, SelectedHit],
                 use_prefix: bool = False,
                 alt_suffix: bool = False):
        self.selected_hits = selected_hits
        self.use_prefix = use_prefix
        self.alt_suffix = alt_suffix

        self.features: Dict[FeatureKey, FeatureRecord] = {}
        self.match_order: Dict[str, List[str]] = {}
        self.genome_indexes: Dict[str, GenomeIndex] = {}

    def candidate_ids(self, attributes: Mapping[str, str], taxon: str) -> List[str]:
        """Identifier spellings for one feature, highest priority first."""
        candidates = []
        name = attributes.get('Name')
        if name:
            candidates.append(name)
        if attributes.get('ID'):
            candidates.append(attributes['ID'])
        if self.alt_suffix and name:
            candidates.append(name + ALT_SUFFIX)

        if self.use_prefix:
            candidates = [f"{taxon}_{candidate}" for candidate in candidates]
        return candidates

    def match_feature(self, feature: GffFeature, taxon: str) -> Optional[str]:
        """Return the first candidate id that is a selected hit, if any."""
        if 'ID' not in feature.attributes:
            return None
        for candidate in self.candidate_ids(feature.attributes, taxon):
            if candidate in self.selected_hits:
                return candidate
        return None

    def scan(self, taxon: str, features: Iterable[GffFeature]) -> GenomeIndex:
        """
        Match every feature of one taxon and build its GenomeIndex.

        A re-match of the same resolved id overwrites the stored location
        but keeps its original position in the match order.
        """
        order = self.match_order.setdefault(taxon, [])
        scanned = 0

        for feature in features:
            scanned += 1
            resolved_id = self.match_feature(feature, taxon)
            if resolved_id is None:
                continue

            key = FeatureKey(taxon, resolved_id)
            if key not in self.features:
                order.append(resolved_id)
            self.features[key] = FeatureRecord(
                taxon=taxon,
                seqid=feature.seqid,
                start=feature.start,
                end=feature.end,
                strand=feature.strand_value,
                resolved_id=resolved_id,
                original_id=self.selected_hits[resolved_id].subject_id,
            )

        index = GenomeIndex.build(taxon, order, self.features)
        self.genome_indexes[taxon] = index
        logger.info("%s: %d features scanned, %d matched on %d contigs",
                    taxon, scanned, len(index), len(index.contigs))
        return index

    def scan_file(self, taxon: str, gff_path: str) -> GenomeIndex:
        logger.info("Scanning annotations for %s from %s", taxon, gff_path)
        return self.scan(taxon, iter_gff(gff_path))

    def feature(self, taxon: str, resolved_id: str) -> FeatureRecord:
        return self.features[FeatureKey(taxon, resolved_id)]

    def unmatched_ids(self) -> List[str]:
        """Selected resolved ids not located in any scanned taxon."""
        located = {key.resolved_id for key in self.features}
        return [rid for rid in self.selected_hits if rid not in located]
