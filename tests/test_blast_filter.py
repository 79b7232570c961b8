"""
Unit tests for the BLAST hit filter.

Tests cover:
- Inclusive coverage/identity thresholds
- Subject id resolution (synonyms, prefix mode, alt-suffix trimming)
- Last-wins replacement of duplicate resolved ids
- Running statistics and the recorded hit table
"""

import pytest

from conftest import blast_line

from promoter_finder.modules.blast_filter import (
    BlastHitFilter,
    SynonymEntry,
    SynonymTable,
)
from promoter_finder.utils.parsers import parse_blast_line


def make_hit(query="q1", subject="s1", **kwargs):
    return parse_blast_line(blast_line(query, subject, **kwargs))


@pytest.fixture
def synonyms():
    return SynonymTable.from_rows([
        ("Gene1v2", "Gene1", "Tx1"),
        ("Gene5v1", "Gene5", None),
    ])


class TestSynonymTable:
    """Tests for SynonymTable construction and lookups"""

    def test_forward_and_reverse(self, synonyms):
        assert synonyms.lookup("Gene1v2") == SynonymEntry("Gene1v2", "Gene1", "Tx1")
        assert synonyms.external_for("Gene1") == "Gene1v2"
        assert synonyms.external_for("Tx1_Gene1") == "Gene1v2"
        assert synonyms.external_for("Gene5") == "Gene5v1"
        assert len(synonyms) == 2

    def test_maps_are_read_only(self, synonyms):
        with pytest.raises(TypeError):
            synonyms.forward["new"] = SynonymEntry("new", "x")
        with pytest.raises(TypeError):
            synonyms.reverse["x"] = "new"

    def test_duplicate_external_id(self):
        with pytest.raises(ValueError, match="Duplicate synonym"):
            SynonymTable.from_rows([("a", "f1", None), ("a", "f2", None)])

    def test_reverse_collision_keeps_first(self):
        table = SynonymTable.from_rows([("a", "f1", None), ("b", "f1", None)])
        assert table.external_for("f1") == "a"
        assert table.lookup("b").feature_id == "f1"

    def test_from_file(self, synonym_file):
        table = SynonymTable.from_file(str(synonym_file))
        assert table.lookup("Gene2v1").prefixed_id == "Tx1_Gene2"


class TestResolveId:
    """Tests for subject id resolution"""

    def test_no_synonyms(self):
        assert BlastHitFilter().resolve_id("abc") == "abc"

    def test_synonym_without_prefix(self, synonyms):
        hit_filter = BlastHitFilter(synonyms=synonyms)
        assert hit_filter.resolve_id("Gene1v2") == "Gene1"
        assert hit_filter.resolve_id("Unknown") == "Unknown"

    def test_synonym_with_prefix(self, synonyms):
        hit_filter = BlastHitFilter(synonyms=synonyms, use_prefix=True)
        assert hit_filter.resolve_id("Gene1v2") == "Tx1_Gene1"
        # entry without a prefix id keeps the bare feature id
        assert hit_filter.resolve_id("Gene5v1") == "Gene5"
        assert hit_filter.resolve_id("Unknown") == "Unknown"

    def test_alt_suffix_trims_protein_suffix(self):
        hit_filter = BlastHitFilter(alt_suffix=True)
        assert hit_filter.resolve_id("Gene7.p1") == "Gene7.p"

    def test_alt_suffix_leaves_plain_ids(self):
        hit_filter = BlastHitFilter(alt_suffix=True)
        assert hit_filter.resolve_id("Gene1") == "Gene1"
        assert hit_filter.resolve_id("Gene1.t1") == "Gene1.t1"
        assert hit_filter.resolve_id(".p1") == ".p1"

    def test_alt_suffix_raw_synonym_first(self):
        table = SynonymTable.from_rows([("Gene1.p1", "Gene1", "Tx1")])
        assert BlastHitFilter(synonyms=table, alt_suffix=True).resolve_id("Gene1.p1") == "Gene1"
        hit_filter = BlastHitFilter(synonyms=table, use_prefix=True, alt_suffix=True)
        assert hit_filter.resolve_id("Gene1.p1") == "Tx1_Gene1"

    def test_alt_suffix_trimmed_synonym_fallback(self):
        table = SynonymTable.from_rows([("Gene7.p", "Gene7", None)])
        hit_filter = BlastHitFilter(synonyms=table, alt_suffix=True)
        assert hit_filter.resolve_id("Gene7.p2") == "Gene7"
        assert hit_filter.resolve_id("Gene8.p2") == "Gene8.p"

    def test_resolution_is_idempotent(self, synonyms):
        hit_filter = BlastHitFilter(synonyms=synonyms, use_prefix=True)
        first = hit_filter.resolve_id("Gene1v2")
        assert hit_filter.resolve_id("Gene1v2") == first


class TestThresholds:
    """Tests for coverage and identity thresholds"""

    def test_values_equal_to_minimum_pass(self):
        hit_filter = BlastHitFilter(min_query_coverage=10, min_subject_coverage=10, min_identity=10)
        hit = make_hit(pident=10.0, aln_len=10, qlen=100, slen=100)
        assert hit.query_coverage == 10.0
        assert hit.subject_coverage == 10.0
        assert hit_filter.add_hit(hit) is not None

    @pytest.mark.parametrize("kwargs", [
        {'aln_len': 49, 'qlen': 100, 'slen': 49},     # query coverage 49%
        {'aln_len': 49, 'qlen': 49, 'slen': 100},     # subject coverage 49%
        {'aln_len': 50, 'qlen': 50, 'slen': 50, 'pident': 49.9},
    ])
    def test_each_threshold_rejects(self, kwargs):
        hit_filter = BlastHitFilter(min_query_coverage=50, min_subject_coverage=50, min_identity=50)
        assert hit_filter.add_hit(make_hit(**kwargs)) is None
        assert hit_filter.selected == {}

    def test_rounding_applies_before_comparison(self):
        # 100 * 199 / 2000 = 9.95 -> 10.0
        hit_filter = BlastHitFilter()
        hit = make_hit(aln_len=199, qlen=2000, slen=199)
        assert hit.query_coverage == 10.0
        assert hit_filter.add_hit(hit) is not None


class TestSelection:
    """Tests for the selected-hit table"""

    def test_selected_hit_fields(self):
        hit_filter = BlastHitFilter()
        selected = hit_filter.add_hit(make_hit("q1", "s1", sstart=90, send=11))
        assert selected.resolved_id == "s1"
        assert selected.strand == -1
        assert (selected.subject_start, selected.subject_end) == (11, 90)
        assert hit_filter.selected == {"s1": selected}

    def test_duplicate_resolved_id_last_wins(self):
        hit_filter = BlastHitFilter()
        hit_filter.add_hit(make_hit("q1", "s1", sstart=1, send=100))
        hit_filter.add_hit(make_hit("q2", "s1", sstart=300, send=201))

        assert len(hit_filter.selected) == 1
        entry = hit_filter.selected["s1"]
        assert entry.query_id == "q2"
        assert (entry.subject_start, entry.subject_end) == (201, 300)
        assert entry.strand == -1

    def test_synonyms_merge_distinct_subjects(self):
        table = SynonymTable.from_rows([("isoA", "GeneX", None), ("isoB", "GeneX", None)])
        hit_filter = BlastHitFilter(synonyms=table)
        hit_filter.add_hit(make_hit("q1", "isoA"))
        hit_filter.add_hit(make_hit("q2", "isoB"))
        assert list(hit_filter.selected) == ["GeneX"]
        assert hit_filter.selected["GeneX"].subject_id == "isoB"

    def test_filter_file(self, blast_file, synonyms):
        hit_filter = BlastHitFilter(synonyms=synonyms, use_prefix=True)
        selected = hit_filter.filter_file(str(blast_file))
        assert set(selected) == {"Tx1_Gene1", "Gene2v1"}


class TestStatistics:
    """Tests for running statistics and the hit table"""

    def test_statistics(self):
        hit_filter = BlastHitFilter(min_query_coverage=50, min_subject_coverage=50, min_identity=50)
        hit_filter.filter_hits([
            make_hit("q1", "s1", pident=90.0, aln_len=100, qlen=100, slen=100),
            make_hit("q2", "s1", pident=40.0, aln_len=50, qlen=100, slen=200),
        ])
        stats = hit_filter.stats.as_dict()

        assert stats['total_hits'] == 2
        assert stats['unique_subjects'] == 1
        assert stats['avg_query_coverage'] == 75.0
        assert stats['avg_subject_coverage'] == 62.5
        assert stats['avg_identity'] == 65.0
        assert stats['query_coverage_pass'] == 2
        assert stats['subject_coverage_pass'] == 1
        assert stats['identity_pass'] == 1
        assert stats['selected'] == 1

    def test_empty_statistics(self):
        stats = BlastHitFilter().stats.as_dict()
        assert stats['total_hits'] == 0
        assert stats['avg_identity'] == 0.0

    def test_hit_table(self, synonyms):
        hit_filter = BlastHitFilter(synonyms=synonyms, record_hits=True)
        hit_filter.filter_hits([make_hit("q1", "Gene1v2"), make_hit("q2", "x", aln_len=1)])
        table = hit_filter.hit_table()
        assert list(table['resolved_id']) == ["Gene1", "x"]
        assert list(table['selected']) == [True, False]

    def test_hit_table_requires_recording(self):
        with pytest.raises(ValueError):
            BlastHitFilter().hit_table()
