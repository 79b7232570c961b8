#!/usr/bin/env python3
"""
Extract promoter regions for BLAST-matched genes across a batch of genomes.

Usage:
    python scripts/extract_promoters.py \
        --blast hits.m8 \
        --gff-list gff_files.tsv \
        --fasta-list fasta_files.tsv \
        --region D --length 2000 \
        --outbase promoter_seqs

See `--help` for every option.
"""

import os
import sys

# Add project root to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from promoter_finder.cli import main


if __name__ == "__main__":
    sys.exit(main())
