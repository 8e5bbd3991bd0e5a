"""
TaskDefender backend package.

Core pieces: the deadline urgency classifier (urgency) with its per-task work
analysis (analysis), the reducer-driven application store (intents, reducer,
store) and the persistence adapter mirroring theme, user and tasks to a
key-value surface (persistence). The FastAPI app in main is a thin boundary
over one store instance; import it from taskdefender.main explicitly.
"""

__version__ = "0.1.0"
