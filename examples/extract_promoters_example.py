#!/usr/bin/env python3
"""
Example: Using the promoter extraction components directly

Shows the four stages one at a time on a single genome, then the same run
through PromoterPipeline.
"""

import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from promoter_finder.modules import (
    AnnotationLocator,
    BlastHitFilter,
    PromoterConfig,
    PromoterPipeline,
    RegionMode,
    RegionProjector,
    SequenceEmitter,
    SynonymTable,
)


def example_1_step_by_step():
    """Example 1: Filter, locate, project and extract for one genome"""
    print("=" * 80)
    print("Example 1: Step by Step")
    print("=" * 80)

    synonyms = SynonymTable.from_file("/path/to/synonyms.tsv")
    hit_filter = BlastHitFilter(
        min_query_coverage=50,
        min_subject_coverage=50,
        min_identity=40,
        synonyms=synonyms,
        use_prefix=True,
    )
    selected = hit_filter.filter_file("/path/to/hits.m8")
    print(f"Selected hits: {len(selected)}")
    print(f"Statistics: {hit_filter.stats.as_dict()}")

    locator = AnnotationLocator(selected, use_prefix=True)
    index = locator.scan_file("Athaliana", "/path/to/Athaliana.gff3")
    for contig_id, feature_ids in index:
        print(f"  {contig_id}: {len(feature_ids)} features")

    emitter = SequenceEmitter(RegionProjector(RegionMode.UPSTREAM, 1500))
    emitter.emit_taxon_file(index, locator.features, "/path/to/Athaliana.fasta")
    emitter.write("athaliana_promotors.fasta")
    print(f"Extracted: {len(emitter.records)}, rejected: {emitter.rejected}")
    print()


def example_2_pipeline():
    """Example 2: Whole batch through PromoterPipeline"""
    print("=" * 80)
    print("Example 2: Pipeline")
    print("=" * 80)

    config = PromoterConfig(
        region_mode=RegionMode.BOTH,
        window_length=500,
        use_prefix=True,
        outbase="batch",
        write_hit_table=True,
    )
    context = PromoterPipeline(config).run(
        "/path/to/hits.m8",
        "/path/to/gff_list.tsv",
        "/path/to/fasta_list.tsv",
        synonym_path="/path/to/synonyms.tsv",
    )
    print(f"Output: {config.output_file}")
    print(f"Sequences written: {len(context.records)}")
    print()


if __name__ == "__main__":
    print("\nPromoter Extraction Examples\n")
    print("NOTE: These examples use placeholder paths.")
    print("Update the paths to point to your actual files before running.\n")

    # Uncomment to run examples:
    # example_1_step_by_step()
    # example_2_pipeline()
