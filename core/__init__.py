"""Core (UI-agnostic) dashboard logic.

This package contains:
- settings from the environment and the Google Sheets client
- row mapping (sheet ranges -> pandas) with sample-data fallback
- filter normalization
- page compute functions (JSON-serializable payloads)
- chart helpers (Altair -> Vega-Lite spec dict) and CSV/PDF exports
"""
