"""Financial planning KPI backend."""
