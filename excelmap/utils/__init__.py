"""Shared helpers for the excelmap package."""
