"""
Cutscene Exporter - Wraps compiled actions in the versioned envelope the engine loads.
No validation happens here; callers validate first and refuse to export on errors.
"""

import json
import re
from typing import Optional, Dict, List, Any, Literal
from pydantic import BaseModel, Field

from cutscene.config.settings import Settings, settings as default_settings

SCHEMA_VERSION = 1


class ExportSettings(BaseModel):
    fps: int = 30


class ExportedCutscene(BaseModel):
    """The exported document: `{schema_version, cutscene_id, settings, actions}`."""
    schema_version: Literal[1] = SCHEMA_VERSION
    cutscene_id: str
    settings: ExportSettings = Field(default_factory=ExportSettings)
    actions: List[Dict[str, Any]] = Field(default_factory=list)

    def to_json(self) -> str:
        return json.dumps(self.model_dump(mode="json"), indent=2, ensure_ascii=False)


def slugify_title(title: str, fallback: str = "untitled") -> str:
    """
    'Intro  Scene' -> 'intro_scene'; only an empty title falls back to the
    placeholder. Edge whitespace is not trimmed (' Intro' -> '_intro'), so ids
    match the ones the editor already exported for the engine.
    """
    slug = re.sub(r"\s+", "_", title or "").lower()
    return slug or fallback


def export_cutscene(
    title: str,
    actions: List[Dict[str, Any]],
    config: Optional[Settings] = None,
) -> ExportedCutscene:
    """Build the export envelope for an already-compiled action list."""
    cfg = config or default_settings
    return ExportedCutscene(
        cutscene_id=slugify_title(title, cfg.untitled_id),
        settings=ExportSettings(fps=cfg.export_fps),
        actions=actions,
    )
