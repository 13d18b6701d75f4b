"""Core (UI-agnostic) event timeline logic.

This package contains:
- workbook loading (XLSX bytes -> positional pandas grids)
- cell decoding (spreadsheet date/time serials -> timestamps)
- sheet scanning, day/hour bucketing with zero back-fill
- name -> frequency-code resolution for shared data sheets
- the analysis session and timeline payloads (JSON-serializable)
- chart helpers (Altair -> Vega-Lite spec dict)
"""
