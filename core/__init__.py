"""Core (UI-agnostic) quotation logic.

This package contains:
- data loading (JSON store -> dataclasses)
- filter normalization
- pricing (ISO line items, discount, IGV, implementation service)
- page compute functions (JSON-serializable payloads)
- chart helpers (Altair -> Vega-Lite spec dict)
"""
