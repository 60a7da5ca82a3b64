"""Core (UI-agnostic) sales reporting logic.

This package contains:
- timezone-aware clock and date range presets
- date normalization (native values, spreadsheet serials, text)
- record loading (XLSX/CSV -> Record)
- daily / category aggregation with gap filling, top-N and zoom views
- page compute functions (JSON-serializable payloads)
- chart helpers (Altair -> Vega-Lite spec dict)
"""
