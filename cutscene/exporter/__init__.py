"""Cutscene Exporter - versioned engine envelope and the validate/compile/export pipeline"""
from .exporter import ExportedCutscene, ExportSettings, SCHEMA_VERSION, export_cutscene, slugify_title
from .pipeline import ExportBlockedError, export_document

__all__ = [
    "ExportedCutscene",
    "ExportSettings",
    "SCHEMA_VERSION",
    "export_cutscene",
    "slugify_title",
    "ExportBlockedError",
    "export_document",
]
