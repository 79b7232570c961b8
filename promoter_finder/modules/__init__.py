# Promoter Finder Modules

from .blast_filter import (
    BlastHitFilter,
    SynonymTable,
    SynonymEntry,
    SelectedHit,
    HitStatistics,
)
from .annotation_locator import (
    AnnotationLocator,
    FeatureKey,
    FeatureRecord,
    GenomeIndex,
)
from .region_projector import (
    RegionProjector,
    RegionMode,
    PromoterWindow,
    project_window,
    MIN_WINDOW_LENGTH,
)
from .sequence_emitter import (
    SequenceEmitter,
    extract_window,
    output_path,
)
from .blast_runner import BlastRunner
from .promoter_pipeline import (
    PromoterPipeline,
    PromoterConfig,
    RunContext,
    check_taxon_sets,
)
