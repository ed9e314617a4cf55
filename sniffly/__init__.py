"""Core (UI-agnostic) dashboard logic for sniffly.

This package contains:
- time expression and range resolution
- ingestion normalization of raw chart/table payloads
- bounded, mass-preserving series builders (JSON-serializable payloads)
- chart helpers (Altair -> Vega-Lite spec dict)
"""
