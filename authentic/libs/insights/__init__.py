from .milestones import JOURNAL_INSIGHTS_TABLE, MilestoneInsightService, is_milestone
from .saved import SAVED_INSIGHTS_TABLE, InsightStore

__all__ = [
    "InsightStore",
    "JOURNAL_INSIGHTS_TABLE",
    "MilestoneInsightService",
    "SAVED_INSIGHTS_TABLE",
    "is_milestone",
]
