"""
Parsers Module for Promoter Finder

Readers for the plain-text inputs of a promoter extraction run:
- BLAST tabular output with appended query/subject lengths (14 columns)
- GFF/GFF3 feature annotations
- FASTA genome assemblies (via Biopython)
- Two-column taxon file lists and the optional synonym table

Usage:
    from promoter_finder.utils.parsers import iter_blast_hits, iter_gff, load_genome
"""

from dataclasses import dataclass, asdict
from decimal import Decimal, ROUND_HALF_UP
from pathlib import Path
from typing import Dict, List, Tuple, Optional, Iterator

import pandas as pd
from Bio import SeqIO


BLAST_COLUMNS = [
    'query_id', 'subject_id', 'pident', 'alignment_length', 'mismatches',
    'gap_opens', 'query_start', 'query_end', 'subject_start', 'subject_end',
    'evalue', 'bitscore', 'query_length', 'subject_length',
]

GFF_MIN_COLUMNS = 8


# ============================================
# Data Classes
# ============================================

@dataclass
class AlignmentHit:
    """One BLAST tabular record (outfmt '6 std qlen slen')"""
    query_id: str
    subject_id: str
    pident: float
    alignment_length: int
    mismatches: int
    gap_opens: int
    query_start: int
    query_end: int
    subject_start: int
    subject_end: int
    evalue: float
    bitscore: float
    query_length: int
    subject_length: int

    @property
    def query_coverage(self) -> float:
        return coverage_percent(self.alignment_length, self.query_length)

    @property
    def subject_coverage(self) -> float:
        return coverage_percent(self.alignment_length, self.subject_length)

    @property
    def strand(self) -> int:
        """1 when the subject is aligned forward, -1 otherwise"""
        return 1 if self.subject_start <= self.subject_end else -1

    @property
    def subject_interval(self) -> Tuple[int, int]:
        return (min(self.subject_start, self.subject_end),
                max(self.subject_start, self.subject_end))


@dataclass
class GffFeature:
    """Represents a GFF/GFF3 feature"""
    seqid: str
    source: str
    feature_type: str
    start: int
    end: int
    score: Optional[float]
    strand: str  # '+', '-', or '.'
    phase: Optional[int]
    attributes: Dict[str, str]

    @property
    def length(self) -> int:
        return self.end - self.start + 1

    @property
    def strand_value(self) -> int:
        return -1 if self.strand == '-' else 1


# ============================================
# Numeric helpers
# ============================================

def round_half_up(value: float, digits: int = 1) -> float:
    """
    Round to a fixed number of decimals, halves away from zero.

    The decimal representation of the float is rounded, so 12.25 becomes
    12.3 rather than the banker's 12.2 that round() gives.
    """
    quantum = Decimal(1).scaleb(-digits)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def coverage_percent(alignment_length: int, sequence_length: int) -> float:
    """Percentage of a sequence spanned by an alignment, to one decimal"""
    if sequence_length <= 0:
        raise ValueError(f"Sequence length must be positive, got {sequence_length}")
    return round_half_up(100.0 * alignment_length / sequence_length, 1)


# ============================================
# BLAST tabular parsers
# ============================================

def parse_blast_line(line: str, source: str = "<input>", line_number: int = 0) -> AlignmentHit:
    """
    Parse one 14-column BLAST tabular line.

    Columns: qseqid sseqid pident length mismatch gapopen qstart qend
             sstart send evalue bitscore qlen slen

    Raises:
        ValueError: wrong column count or non-numeric fields
    """
    fields = line.rstrip('\r\n').split('\t')
    if len(fields) != len(BLAST_COLUMNS):
        raise ValueError(
            f"{source}:{line_number}: expected {len(BLAST_COLUMNS)} columns, "
            f"found {len(fields)}"
        )

    try:
        return AlignmentHit(
            query_id=fields[0],
            subject_id=fields[1],
            pident=float(fields[2]),
            alignment_length=int(fields[3]),
            mismatches=int(fields[4]),
            gap_opens=int(fields[5]),
            query_start=int(fields[6]),
            query_end=int(fields[7]),
            subject_start=int(fields[8]),
            subject_end=int(fields[9]),
            evalue=float(fields[10]),
            bitscore=float(fields[11]),
            query_length=int(fields[12]),
            subject_length=int(fields[13]),
        )
    except ValueError as e:
        raise ValueError(f"{source}:{line_number}: could not parse BLAST record ({e})") from e


def iter_blast_hits(blast_path: str) -> Iterator[AlignmentHit]:
    """
    Iterate over a BLAST tabular file without loading it into memory.

    Comment lines ('#') and blank lines are skipped; any other malformed
    line aborts the iteration with ValueError.
    """
    path = Path(blast_path)
    if not path.exists():
        raise FileNotFoundError(f"Alignment file not found: {blast_path}")

    with open(path, 'r') as f:
        for line_number, line in enumerate(f, 1):
            if line.startswith('#') or not line.strip():
                continue
            yield parse_blast_line(line, path.name, line_number)


def alignment_hits_to_dataframe(hits: List[AlignmentHit], extra_columns: Optional[Dict[str, List]] = None) -> pd.DataFrame:
    """
    Convert AlignmentHit objects to a pandas DataFrame.

    Derived coverages and strand are added as columns; extra_columns are
    appended as-is and must have one value per hit.
    """
    columns = BLAST_COLUMNS + ['query_coverage', 'subject_coverage', 'strand']
    if not hits:
        return pd.DataFrame(columns=columns + list(extra_columns or {}))

    data = []
    for hit in hits:
        row = asdict(hit)
        row['query_coverage'] = hit.query_coverage
        row['subject_coverage'] = hit.subject_coverage
        row['strand'] = hit.strand
        data.append(row)

    df = pd.DataFrame(data, columns=columns)
    for name, values in (extra_columns or {}).items():
        df[name] = values

    df['pident'] = df['pident'].astype('float64')
    df['evalue'] = df['evalue'].astype('float64')
    df['strand'] = df['strand'].astype('int8')
    return df


# ============================================
# GFF/GFF3 Parsers
# ============================================

def parse_gff_attributes(text: Optional[str]) -> Dict[str, str]:
    """
    Parse a GFF3 attribute column into a dict.

    Pieces without '=' are ignored, and a missing or '.' column gives an
    empty dict. Irregular attributes never raise.
    """
    attributes: Dict[str, str] = {}
    if not text or text.strip() in ('', '.'):
        return attributes

    for attr in text.strip().split(';'):
        if '=' not in attr:
            continue
        key, value = attr.split('=', 1)
        key = key.strip()
        if key:
            attributes[key] = value.strip()
    return attributes


def parse_gff_line(line: str, source: str = "<input>", line_number: int = 0) -> Optional[GffFeature]:
    """
    Parse a single GFF line.

    Returns:
        GffFeature, or None for comment and blank lines

    Raises:
        ValueError: fewer than 8 columns or non-integer coordinates
    """
    if line.startswith('#') or not line.strip():
        return None

    fields = line.rstrip('\r\n').split('\t')
    if len(fields) < GFF_MIN_COLUMNS:
        raise ValueError(
            f"{source}:{line_number}: expected at least {GFF_MIN_COLUMNS} GFF columns, "
            f"found {len(fields)}"
        )

    try:
        start = int(fields[3])
        end = int(fields[4])
    except ValueError as e:
        raise ValueError(f"{source}:{line_number}: invalid GFF coordinates ({e})") from e

    try:
        score = None if fields[5] == '.' else float(fields[5])
    except ValueError:
        score = None
    phase = int(fields[7]) if fields[7].isdigit() else None

    return GffFeature(
        seqid=fields[0],
        source=fields[1],
        feature_type=fields[2],
        start=start,
        end=end,
        score=score,
        strand=fields[6],
        phase=phase,
        attributes=parse_gff_attributes(fields[8] if len(fields) > 8 else None),
    )


def iter_gff(gff_path: str) -> Iterator[GffFeature]:
    """
    Iterate over GFF features without loading the file into memory.

    Stops at a '##FASTA' directive.
    """
    path = Path(gff_path)
    if not path.exists():
        raise FileNotFoundError(f"Annotation file not found: {gff_path}")

    with open(path, 'r') as f:
        for line_number, line in enumerate(f, 1):
            if line.startswith('##FASTA'):
                break
            feature = parse_gff_line(line, path.name, line_number)
            if feature is not None:
                yield feature


# ============================================
# FASTA
# ============================================

def load_genome(fasta_path: str) -> Dict[str, str]:
    """
    Load a genome assembly into {contig_id: sequence}.

    Raises:
        FileNotFoundError: If the file doesn't exist
    """
    if not Path(fasta_path).exists():
        raise FileNotFoundError(f"Genome file not found: {fasta_path}")

    return {record.id: str(record.seq) for record in SeqIO.parse(str(fasta_path), "fasta")}


def reverse_complement(sequence: str) -> str:
    """
    Return the reverse complement of a DNA sequence.

    Case is preserved and IUPAC ambiguity codes are complemented; unknown
    characters pass through unchanged.
    """
    complement = {'A': 'T', 'T': 'A', 'G': 'C', 'C': 'G', 'N': 'N',
                  'R': 'Y', 'Y': 'R', 'W': 'W', 'S': 'S', 'M': 'K', 'K': 'M',
                  'B': 'V', 'V': 'B', 'D': 'H', 'H': 'D'}
    complement.update({k.lower(): v.lower() for k, v in list(complement.items())})

    return ''.join(complement.get(base, base) for base in reversed(sequence))


# ============================================
# Tabular input lists
# ============================================

def _iter_table_rows(table_path: Path) -> Iterator[Tuple[int, List[str]]]:
    with open(table_path, 'r') as f:
        for line_number, line in enumerate(f, 1):
            if line.startswith('#') or not line.strip():
                continue
            yield line_number, line.rstrip('\r\n').split('\t')


def parse_file_list(list_path: str) -> Dict[str, Path]:
    """
    Parse a two-column (taxon id, file path) list.

    Relative paths are resolved against the list's own directory. Order of
    the list is preserved.

    Raises:
        FileNotFoundError: list file missing
        ValueError: wrong column count or duplicate taxon id
    """
    path = Path(list_path)
    if not path.exists():
        raise FileNotFoundError(f"File list not found: {list_path}")

    files: Dict[str, Path] = {}
    for line_number, fields in _iter_table_rows(path):
        if len(fields) != 2:
            raise ValueError(
                f"{path.name}:{line_number}: expected 2 columns (taxon, path), found {len(fields)}"
            )
        taxon, file_path = fields[0].strip(), Path(fields[1].strip())
        if taxon in files:
            raise ValueError(f"{path.name}:{line_number}: duplicate taxon id '{taxon}'")
        if not file_path.is_absolute():
            file_path = path.parent / file_path
        files[taxon] = file_path

    return files


def parse_synonym_rows(synonym_path: str) -> List[Tuple[str, str, Optional[str]]]:
    """
    Parse a synonym table of (external id, feature id[, prefix id]) rows.

    Raises:
        FileNotFoundError: table missing
        ValueError: a row without 2 or 3 columns
    """
    path = Path(synonym_path)
    if not path.exists():
        raise FileNotFoundError(f"Synonym file not found: {synonym_path}")

    rows = []
    for line_number, fields in _iter_table_rows(path):
        if len(fields) not in (2, 3):
            raise ValueError(
                f"{path.name}:{line_number}: expected 2 or 3 columns, found {len(fields)}"
            )
        prefix = fields[2].strip() if len(fields) == 3 and fields[2].strip() else None
        rows.append((fields[0].strip(), fields[1].strip(), prefix))

    return rows
