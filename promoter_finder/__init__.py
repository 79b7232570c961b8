"""Promoter Finder: extract promoter regions of BLAST-matched genes from annotated genomes."""

__version__ = "0.1.0"
