"""
Orchestration core: dive fan-out, turn verification and work workflows.
"""

from .critique import parse_critique
from .dive import DiveDispatcher
from .orchestrator import Orchestrator, Submission
from .tasks import BackgroundTasks
from .verifier import TurnVerifier
from .workflow import StepStatus, WorkflowEngine, WorkflowStatus, plan_workflow

__all__ = [
    "parse_critique",
    "DiveDispatcher",
    "Orchestrator",
    "Submission",
    "BackgroundTasks",
    "TurnVerifier",
    "StepStatus",
    "WorkflowEngine",
    "WorkflowStatus",
    "plan_workflow",
]
