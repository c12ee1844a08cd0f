"""
Swim Meet - send one query to many AI providers and combine what comes back.
"""

__version__ = "0.3.0"

from .models import Mode, QueryRequest
from .orchestration import Orchestrator

__all__ = ["Mode", "QueryRequest", "Orchestrator", "__version__"]
