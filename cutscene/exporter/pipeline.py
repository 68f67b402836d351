"""
Export Pipeline - validate, refuse on errors, compile, wrap.
Mirrors the editor's Export command for callers outside the editor (API, CLI).
"""

import logging
from typing import Optional, List

from cutscene.config.settings import Settings
from cutscene.graph.document import CutsceneDocument
from cutscene.validator.validator import Diagnostic, ValidationResult, validate_graph
from cutscene.compiler.compiler import compile_graph
from cutscene.exporter.exporter import ExportedCutscene, export_cutscene

logger = logging.getLogger(__name__)


class ExportBlockedError(Exception):
    """Raised when the validator reports blocking errors."""

    def __init__(self, validation: ValidationResult):
        self.validation = validation
        self.errors: List[Diagnostic] = validation.errors()
        lines = "\n".join(f"- {d.message}" for d in self.errors)
        super().__init__(f"Cannot export; graph has {len(self.errors)} error(s):\n{lines}")


def export_document(document: CutsceneDocument, config: Optional[Settings] = None) -> ExportedCutscene:
    """Validate, compile and wrap a document. Raises ExportBlockedError or CompileError."""
    validation = validate_graph(document.graph, config)
    if validation.has_errors:
        logger.warning(f"[EXPORT] '{document.title}' blocked by {len(validation.errors())} validation error(s)")
        raise ExportBlockedError(validation)

    actions = compile_graph(document.graph, config)
    exported = export_cutscene(document.title, actions, config)
    logger.info(f"[EXPORT] Exported '{exported.cutscene_id}' with {len(actions)} top-level action(s)")
    return exported
