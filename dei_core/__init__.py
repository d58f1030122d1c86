"""Core (UI-agnostic) DEI analytics logic.

This package contains:
- data loading and record normalization (CSV -> pandas)
- derived per-record scores and identity labels
- filter normalization
- grouping, box-plot statistics and bivariate statistics
- view compute functions (JSON-serializable payloads)
- chart helpers (Altair -> Vega-Lite spec dict)
"""
