# Utility functions for Promoter Finder

from .parsers import (
    # Data classes
    AlignmentHit,
    GffFeature,
    # Numeric helpers
    round_half_up,
    coverage_percent,
    # BLAST tabular parsers
    parse_blast_line,
    iter_blast_hits,
    alignment_hits_to_dataframe,
    # GFF parsers
    parse_gff_attributes,
    parse_gff_line,
    iter_gff,
    # FASTA
    load_genome,
    reverse_complement,
    # Input lists
    parse_file_list,
    parse_synonym_rows,
)

from .external import find_executable
