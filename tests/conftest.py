"""
Shared fixtures for Promoter Finder tests: synthetic BLAST, GFF, FASTA and
file-list inputs written to tmp_path.
"""

import os
import sys

import pytest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))


def blast_line(query, subject, pident=90.0, aln_len=100, sstart=1, send=100,
               qlen=100, slen=100):
    """One 14-column BLAST tabular line (no newline)."""
    fields = [query, subject, pident, aln_len, 0, 0, 1, aln_len,
              sstart, send, 1e-50, 200.0, qlen, slen]
    return '\t'.join(str(f) for f in fields)


def gff_line(seqid, start, end, strand, attributes, feature_type="gene"):
    """One 9-column GFF3 line (no newline)."""
    return '\t'.join([seqid, "test", feature_type, str(start), str(end),
                      ".", strand, ".", attributes])


# Tx1/chr1: 2000 A's followed by 1000 G's, so forward and reverse
# complemented extractions are easy to tell apart.
CHR1_SEQUENCE = "A" * 2000 + "G" * 1000


@pytest.fixture
def genome_dir(tmp_path):
    """Two-taxon input set; Tx1 carries Gene1 (+) and Gene2 (-) on chr1."""
    (tmp_path / "Tx1.fasta").write_text(">chr1\n" + CHR1_SEQUENCE + "\n>chr2\nACGTACGTAC\n")
    (tmp_path / "Tx2.fasta").write_text(">scaffold_1\n" + "C" * 500 + "\n")

    (tmp_path / "Tx1.gff").write_text("\n".join([
        "##gff-version 3",
        gff_line("chr1", 1001, 1500, "+", "ID=Gene1;Name=Gene1v2"),
        gff_line("chr1", 1601, 1700, "-", "ID=Gene2;Name=Gene2v1"),
        gff_line("chr2", 3, 5, "+", "ID=Gene3"),
    ]) + "\n")
    (tmp_path / "Tx2.gff").write_text(
        gff_line("scaffold_1", 200, 300, "+", "ID=OtherGene") + "\n"
    )

    (tmp_path / "gff_list.tsv").write_text("Tx1\tTx1.gff\nTx2\tTx2.gff\n")
    (tmp_path / "fasta_list.tsv").write_text("Tx1\tTx1.fasta\nTx2\tTx2.fasta\n")
    return tmp_path


@pytest.fixture
def synonym_file(tmp_path):
    path = tmp_path / "synonyms.tsv"
    path.write_text("Gene1v2\tGene1\tTx1\nGene2v1\tGene2\tTx1\n")
    return path


@pytest.fixture
def blast_file(tmp_path):
    path = tmp_path / "hits.m8"
    path.write_text("\n".join([
        "# BLASTP 2.14.0+",
        blast_line("q1", "Gene1v2"),
        blast_line("q2", "Gene2v1", sstart=100, send=1),
        blast_line("q3", "Weak", aln_len=5),
    ]) + "\n")
    return path
