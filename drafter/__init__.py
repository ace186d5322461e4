"""Release drafting: next version, categorized changelog, draft reconciliation."""

__version__ = "0.1.0"
