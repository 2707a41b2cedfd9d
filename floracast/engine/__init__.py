"""Cohort projection engine — pure functions, no I/O.

Application code can do::

    from floracast.engine import ProjectionInputs, project
"""

from floracast.engine.cohorts import Cohort, CohortSource, SourceKind, UnitCohorts, extract_cohorts
from floracast.engine.harvest import ProductionLedger
from floracast.engine.materialize import (
    HarvestWindow,
    PrediccionRow,
    SourceGroup,
    filter_rows,
    group_sources,
    harvest_windows,
    sort_rows,
)
from floracast.engine.pipeline import durations_by_unit, project, project_unit
from floracast.engine.records import (
    BedInfo,
    BlockInfo,
    FarmMetadata,
    ObservationEvent,
    PinchEvent,
    ProductionEntry,
    ProjectionInputs,
    StageDurationConfig,
    UnitDayKey,
    UnitKey,
)
from floracast.engine.resolver import stage_on
from floracast.engine.stages import (
    HARVEST_STAGE,
    OBSERVABLE_STAGES,
    STAGE_ORDER,
    Stage,
    StageDurations,
)
from floracast.engine.timeline import SourceInfo, TimelineRow, build_timeline, unit_ref

__all__ = [
    "HARVEST_STAGE",
    "OBSERVABLE_STAGES",
    "STAGE_ORDER",
    "BedInfo",
    "BlockInfo",
    "Cohort",
    "CohortSource",
    "FarmMetadata",
    "HarvestWindow",
    "ObservationEvent",
    "PinchEvent",
    "PrediccionRow",
    "ProductionEntry",
    "ProductionLedger",
    "ProjectionInputs",
    "SourceGroup",
    "SourceInfo",
    "SourceKind",
    "Stage",
    "StageDurationConfig",
    "StageDurations",
    "TimelineRow",
    "UnitCohorts",
    "UnitDayKey",
    "UnitKey",
    "build_timeline",
    "durations_by_unit",
    "extract_cohorts",
    "filter_rows",
    "group_sources",
    "harvest_windows",
    "project",
    "project_unit",
    "sort_rows",
    "stage_on",
    "unit_ref",
]
