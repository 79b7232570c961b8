"""
BLAST Hit Filter Module for Promoter Finder

Selects BLAST hits by query coverage, subject coverage and percent identity,
and resolves each subject id to the identifier used to look the hit up in the
genome annotations:

1. Optional synonym substitution of the raw subject id (external id -> feature id)
2. Optional '<prefix>_' qualification when the synonym table carries one
3. Alt-suffix protein ids without a synonym ('Gene1.p1') are trimmed to
   'Gene1.p' and looked up again; other ids pass through unchanged

Usage:
    from promoter_finder.modules.blast_filter import BlastHitFilter, SynonymTable

    synonyms = SynonymTable.from_file("synonyms.tsv")
    hit_filter = BlastHitFilter(min_query_coverage=50, synonyms=synonyms)
    selected = hit_filter.filter_file("hits.m8")
"""

import logging
import re
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional, Set

import pandas as pd

from ..utils.parsers import (
    AlignmentHit,
    alignment_hits_to_dataframe,
    iter_blast_hits,
    parse_synonym_rows,
)

logger = logging.getLogger(__name__)

DEFAULT_MIN_COVERAGE = 10.0
DEFAULT_MIN_IDENTITY = 10.0
DEFAULT_PROGRESS_INTERVAL = 100000

# '<name>.p' plus one trailing character, e.g. TransDecoder 'Gene1.p1'
ALT_SUFFIX_PATTERN = re.compile(r"(.+\.p).")


# ============================================
# Synonym table
# ============================================

@dataclass(frozen=True)
class SynonymEntry:
    """External (BLAST) id mapped to an annotation feature id"""
    external_id: str
    feature_id: str
    prefix_id: Optional[str] = None

    @property
    def prefixed_id(self) -> str:
        """'<prefix>_<feature>', or the bare feature id without a prefix"""
        if self.prefix_id:
            return f"{self.prefix_id}_{self.feature_id}"
        return self.feature_id


class SynonymTable:
    """
    Two read-only lookups built from one pass over the synonym rows.

    Attributes:
        forward: external id -> SynonymEntry
        reverse: feature id and '<prefix>_<feature>' -> external id
    """

    def __init__(self, entries: Iterable[SynonymEntry]):
        forward: Dict[str, SynonymEntry] = {}
        reverse: Dict[str, str] = {}

        for entry in entries:
            if entry.external_id in forward:
                raise ValueError(f"Duplicate synonym for external id '{entry.external_id}'")
            forward[entry.external_id] = entry

            for key in {entry.feature_id, entry.prefixed_id}:
                if key in reverse:
                    logger.warning(
                        "Feature '%s' already mapped from '%s', ignoring '%s'",
                        key, reverse[key], entry.external_id,
                    )
                    continue
                reverse[key] = entry.external_id

        self.forward: Mapping[str, SynonymEntry] = MappingProxyType(forward)
        self.reverse: Mapping[str, str] = MappingProxyType(reverse)

    @classmethod
    def from_rows(cls, rows) -> "SynonymTable":
        return cls(SynonymEntry(external, feature, prefix) for external, feature, prefix in rows)

    @classmethod
    def from_file(cls, synonym_path: str) -> "SynonymTable":
        table = cls.from_rows(parse_synonym_rows(synonym_path))
        logger.info("Loaded %d synonyms from %s", len(table), synonym_path)
        return table

    def lookup(self, external_id: str) -> Optional[SynonymEntry]:
        return self.forward.get(external_id)

    def external_for(self, feature_key: str) -> Optional[str]:
        return self.reverse.get(feature_key)

    def __len__(self) -> int:
        return len(self.forward)


# ============================================
# Selected hits and statistics
# ============================================

@dataclass
class SelectedHit:
    """A hit that passed all thresholds, keyed by its resolved id"""
    resolved_id: str
    subject_id: str
    query_id: str
    strand: int
    subject_start: int
    subject_end: int
    query_coverage: float
    subject_coverage: float
    pident: float


@dataclass
class HitStatistics:
    """Running totals over every parsed alignment record"""
    total_hits: int = 0
    query_coverage_pass: int = 0
    subject_coverage_pass: int = 0
    identity_pass: int = 0
    selected: int = 0
    query_coverage_sum: float = 0.0
    subject_coverage_sum: float = 0.0
    identity_sum: float = 0.0
    subject_ids: Set[str] = field(default_factory=set)

    def update(self, hit: AlignmentHit, query_pass: bool, subject_pass: bool, identity_pass: bool):
        self.total_hits += 1
        self.subject_ids.add(hit.subject_id)
        self.query_coverage_sum += hit.query_coverage
        self.subject_coverage_sum += hit.subject_coverage
        self.identity_sum += hit.pident
        self.query_coverage_pass += query_pass
        self.subject_coverage_pass += subject_pass
        self.identity_pass += identity_pass
        self.selected += query_pass and subject_pass and identity_pass

    def _average(self, total: float) -> float:
        return round(total / self.total_hits, 2) if self.total_hits else 0.0

    @property
    def unique_subjects(self) -> int:
        return len(self.subject_ids)

    def as_dict(self) -> Dict:
        return {
            'total_hits': self.total_hits,
            'unique_subjects': self.unique_subjects,
            'avg_query_coverage': self._average(self.query_coverage_sum),
            'avg_subject_coverage': self._average(self.subject_coverage_sum),
            'avg_identity': self._average(self.identity_sum),
            'query_coverage_pass': self.query_coverage_pass,
            'subject_coverage_pass': self.subject_coverage_pass,
            'identity_pass': self.identity_pass,
            'selected': self.selected,
        }

    def log_summary(self, level: int = logging.INFO):
        stats = self.as_dict()
        logger.log(
            level,
            "Hits: %d (%d subjects), avg qcov %.2f%%, avg scov %.2f%%, avg identity %.2f%%; "
            "passed qcov %d, scov %d, identity %d, selected %d",
            stats['total_hits'], stats['unique_subjects'], stats['avg_query_coverage'],
            stats['avg_subject_coverage'], stats['avg_identity'], stats['query_coverage_pass'],
            stats['subject_coverage_pass'], stats['identity_pass'], stats['selected'],
        )


# ============================================
# Filter
# ============================================

class BlastHitFilter:
    """
    Threshold filter and identifier resolver for BLAST tabular hits.

    Thresholds are inclusive lower bounds. A later hit with the same resolved
    id replaces the earlier one in the selected table.
    """

    def __init__(self,
                 min_query_coverage: float = DEFAULT_MIN_COVERAGE,
                 min_subject_coverage: float = DEFAULT_MIN_COVERAGE,
                 min_identity: float = DEFAULT_MIN_IDENTITY,
                 synonyms: Optional[SynonymTable] = None,
                 use_prefix: bool = False,
                 alt_suffix: bool = False,
                 record_hits: bool = False,
                 progress_interval: int = DEFAULT_PROGRESS_INTERVAL):
        """
        Parameters:
            min_query_coverage: Minimum query coverage (%).
            min_subject_coverage: Minimum subject coverage (%).
            min_identity: Minimum percent identity.
            synonyms: Optional SynonymTable for subject id substitution.
            use_prefix: Qualify synonym feature ids with their prefix id.
            alt_suffix: Trim '<name>.p<c>' subject ids without a synonym to '<name>.p'.
            record_hits: Keep every parsed hit for hit_table().
            progress_interval: Log running statistics every N records (0 disables).
        """
        self.min_query_coverage = min_query_coverage
        self.min_subject_coverage = min_subject_coverage
        self.min_identity = min_identity
        self.synonyms = synonyms
        self.use_prefix = use_prefix
        self.alt_suffix = alt_suffix
        self.record_hits = record_hits
        self.progress_interval = progress_interval

        self.selected: Dict[str, SelectedHit] = {}
        self.stats = HitStatistics()
        self._recorded: List[AlignmentHit] = []
        self._recorded_ids: List[str] = []
        self._recorded_pass: List[bool] = []

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def resolve_id(self, subject_id: str) -> str:
        """
        Map a BLAST subject id to the id used for annotation matching.

        The raw subject id is looked up in the synonym table first. In
        alt-suffix mode, ids of the form '<name>.p<c>' that have no synonym
        entry are trimmed to '<name>.p' and looked up again; any other id
        is left untouched.
        """
        synonym = self._synonym_for(subject_id)
        if synonym is not None:
            return synonym

        if self.alt_suffix:
            match = ALT_SUFFIX_PATTERN.fullmatch(subject_id)
            if match:
                trimmed = match.group(1)
                synonym = self._synonym_for(trimmed)
                return synonym if synonym is not None else trimmed

        return subject_id

    def add_hit(self, hit: AlignmentHit) -> Optional[SelectedHit]:
        """
        Score one hit, update statistics and the selected table.

        Returns:
            The SelectedHit stored for this record, or None if it failed a threshold
        """
        query_pass, subject_pass, identity_pass = self._threshold_checks(hit)
        self.stats.update(hit, query_pass, subject_pass, identity_pass)
        passed = query_pass and subject_pass and identity_pass
        resolved_id = self.resolve_id(hit.subject_id)

        if self.record_hits:
            self._recorded.append(hit)
            self._recorded_ids.append(resolved_id)
            self._recorded_pass.append(passed)

        if self.progress_interval and self.stats.total_hits % self.progress_interval == 0:
            self.stats.log_summary()

        if not passed:
            return None

        subject_start, subject_end = hit.subject_interval
        selected = SelectedHit(
            resolved_id=resolved_id,
            subject_id=hit.subject_id,
            query_id=hit.query_id,
            strand=hit.strand,
            subject_start=subject_start,
            subject_end=subject_end,
            query_coverage=hit.query_coverage,
            subject_coverage=hit.subject_coverage,
            pident=hit.pident,
        )
        if resolved_id in self.selected:
            logger.debug("Replacing selected hit for %s (%s -> %s)",
                         resolved_id, self.selected[resolved_id].query_id, hit.query_id)
        self.selected[resolved_id] = selected
        return selected

    def filter_hits(self, hits: Iterable[AlignmentHit]) -> Dict[str, SelectedHit]:
        for hit in hits:
            self.add_hit(hit)
        return self.selected

    def filter_file(self, blast_path: str) -> Dict[str, SelectedHit]:
        """Filter every record of a BLAST tabular file."""
        logger.info("Filtering BLAST hits from %s", blast_path)
        self.filter_hits(iter_blast_hits(blast_path))
        self.stats.log_summary()
        logger.info("%d unique resolved ids selected", len(self.selected))
        return self.selected

    def hit_table(self) -> pd.DataFrame:
        """All recorded hits with their resolved id and selection flag."""
        if not self.record_hits:
            raise ValueError("Hit recording is disabled; construct with record_hits=True")
        return alignment_hits_to_dataframe(
            self._recorded,
            extra_columns={'resolved_id': self._recorded_ids, 'selected': self._recorded_pass},
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _synonym_for(self, external_id: str) -> Optional[str]:
        if self.synonyms is None:
            return None
        entry = self.synonyms.lookup(external_id)
        if entry is None:
            return None
        return entry.prefixed_id if self.use_prefix else entry.feature_id

    def _threshold_checks(self, hit: AlignmentHit):
        return (
            hit.query_coverage >= self.min_query_coverage,
            hit.subject_coverage >= self.min_subject_coverage,
            hit.pident >= self.min_identity,
        )
