from .dispatcher import TaskOutcome, dispatch
from .merge import WebMergeResult, merge_web_outcomes
from .persistence import FindingWriter, PersistReport
from .scoring import score_breakdown, score_finding
from .selector import BuilderId, flatten, select_tasks

__all__ = [
    "BuilderId",
    "FindingWriter",
    "PersistReport",
    "TaskOutcome",
    "WebMergeResult",
    "dispatch",
    "flatten",
    "merge_web_outcomes",
    "score_breakdown",
    "score_finding",
    "select_tasks",
]
