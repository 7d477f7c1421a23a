"""Spreadsheet reading, row mapping and import templates."""
