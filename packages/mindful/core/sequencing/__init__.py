"""Advisory sequencing checks over composed pose sequences."""

from mindful.core.sequencing.catalog import ItemCatalog, StaticCatalog
from mindful.core.sequencing.models import (
    DEFAULT_RULES,
    CatalogItem,
    ContraindicationResult,
    SequencingResult,
    SequencingRules,
)
from mindful.core.sequencing.transitions import generate_transition
from mindful.core.sequencing.validator import (
    check_contraindications,
    get_counter_poses,
    requires_counter_pose,
    validate_sequencing,
)

__all__ = [
    "DEFAULT_RULES",
    "CatalogItem",
    "ContraindicationResult",
    "ItemCatalog",
    "SequencingResult",
    "SequencingRules",
    "StaticCatalog",
    "check_contraindications",
    "generate_transition",
    "get_counter_poses",
    "requires_counter_pose",
    "validate_sequencing",
]
