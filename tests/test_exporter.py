"""
Tests for the exporter: slugging, envelope shape and the validate/compile/export pipeline.
Run: pytest tests/test_exporter.py -v
"""
import json

import pytest

from cutscene.config.settings import Settings
from cutscene.compiler.errors import StructuralError
from cutscene.exporter.exporter import ExportedCutscene, SCHEMA_VERSION, export_cutscene, slugify_title
from cutscene.exporter.pipeline import ExportBlockedError, export_document
from cutscene.graph.document import CutsceneDocument, load_document


class TestSlugify:

    @pytest.mark.parametrize("title,expected", [
        ("Intro Scene", "intro_scene"),
        ("  Intro   Scene  ", "_intro_scene_"),
        (" Intro", "_intro"),
        ("Boss\tFight\nTwo", "boss_fight_two"),
        ("ALREADY_slug", "already_slug"),
        ("Ending: Part 2!", "ending:_part_2!"),
        ("", "untitled"),
        ("   ", "_"),
    ])
    def test_slugify(self, title, expected):
        assert slugify_title(title) == expected

    def test_custom_fallback(self):
        assert slugify_title("", "scene") == "scene"


class TestEnvelope:

    def test_envelope_shape(self):
        actions = [{"type": "wait", "seconds": 1.0}]
        exported = export_cutscene("Intro Scene", actions)
        assert exported.model_dump(mode="json") == {
            "schema_version": 1,
            "cutscene_id": "intro_scene",
            "settings": {"fps": 30},
            "actions": actions,
        }

    def test_schema_version_constant(self):
        assert SCHEMA_VERSION == 1
        assert ExportedCutscene(cutscene_id="x").schema_version == 1

    def test_configured_fps_and_fallback_id(self):
        exported = export_cutscene("", [], Settings(export_fps=60, untitled_id="scene"))
        assert exported.settings.fps == 60
        assert exported.cutscene_id == "scene"

    def test_no_validation_of_actions(self):
        exported = export_cutscene("x", [{"type": "anything", "weird": [1, {"deep": True}]}])
        assert exported.actions[0]["weird"][1]["deep"] is True

    def test_to_json_two_space_indent(self):
        text = export_cutscene("Intro", [{"type": "wait", "seconds": 2}]).to_json()
        assert text.startswith('{\n  "schema_version": 1,')
        assert json.loads(text)["cutscene_id"] == "intro"

    def test_to_json_keeps_unicode(self):
        text = export_cutscene("Intro", [{"type": "dialogue", "text": "Привет"}]).to_json()
        assert "Привет" in text


class TestExportPipeline:

    def test_exports_valid_document(self, runtime_document):
        exported = export_document(load_document(runtime_document), Settings(mark_named_nodes=False))
        assert exported.cutscene_id == "intro_scene"
        assert exported.actions == [
            {"type": "wait", "seconds": 2.5},
            {"type": "dialogue", "text": "Hello"},
        ]

    def test_blocked_by_validation_errors(self, gb):
        doc = CutsceneDocument(title="Broken", graph=gb.node("A", "dialogue", name="A").build())
        with pytest.raises(ExportBlockedError) as exc:
            export_document(doc)
        assert len(exc.value.errors) == 2
        assert exc.value.validation.has_errors
        assert 'Graph has no "start" node.' in str(exc.value)

    def test_warnings_do_not_block(self, gb):
        graph = (
            gb.node("start", "start", name="S").node("A", "move", name="Walk").node("end", "end", name="E")
            .edge("start", "A").edge("A", "end")
            .build()
        )
        exported = export_document(CutsceneDocument(title="Walk", graph=graph), Settings(mark_named_nodes=False))
        assert exported.actions == [{"type": "move"}]

    def test_compile_error_propagates(self, gb):
        graph = (
            gb.node("start", "start", name="S").node("A", name="A").node("B", name="B")
            .node("end", "end", name="E")
            .edge("start", "A").edge("A", "B").edge("A", "end").edge("B", "end")
            .build()
        )
        with pytest.raises(StructuralError):
            export_document(CutsceneDocument(title="Split", graph=graph))
