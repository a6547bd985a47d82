# Frecent Package
"""
Ranking and reconciliation backend for an application launcher.

Modules:
  - models: Entry records for launchable applications
  - services: Frecency math, the Catalog, persistence and the worker
  - search: Fuzzy-match capability used for ranking
  - utils: Process launching and the launch feedback loop
"""

__version__ = "0.1.0-dev"
