"""Search entry points.

Main Components:
    - SearchOrchestrator: Concurrent multi-source search pipeline
    - runner: Command-line front end (python -m hogarscan.search.runner)
"""

from .orchestrator import SearchOrchestrator

__all__ = ["SearchOrchestrator"]
