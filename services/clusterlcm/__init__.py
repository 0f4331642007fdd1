"""clusterlcm - cluster and app-group lifecycle orchestrator."""

__version__ = "0.1.0"
