"""Core (UI-agnostic) share-of-voice engine.

This package contains:
- row cleaning and column mapping for wide brand x period exports
- the long-format reshaper (chunked, cooperative)
- chart filters, aggregations and Top-N bucketing
- record table sort/pagination and the session that owns the records
- exports (TSV/CSV) and chart helpers (Altair -> Vega-Lite spec dict)
"""
