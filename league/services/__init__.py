"""Standings engine services."""

from league.services.history import HistoryEvent, HistoryWriter, SideWriteResult, derive_history_events
from league.services.pipeline import PipelineResult, PipelineState, StandingsPipeline, summarize
from league.services.standings import PointsRule, StandingsTable, TeamRecord, compute_standings

__all__ = [
    "HistoryEvent",
    "HistoryWriter",
    "SideWriteResult",
    "derive_history_events",
    "PipelineResult",
    "PipelineState",
    "StandingsPipeline",
    "summarize",
    "PointsRule",
    "StandingsTable",
    "TeamRecord",
    "compute_standings",
]
