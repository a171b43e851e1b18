"""Tests for form definition loading and normalization."""

import json
from pathlib import Path

import pytest

from utils.data_management import discover_forms, load_form_variant, load_json
from utils.forms_schema import forms_schema


class TestFormsSchema:
    """Tests for forms_schema normalization."""

    def test_portuguese_keys(self) -> None:
        variant = forms_schema(
            {
                "form_id": "pergunta9",
                "titulo": "Teste",
                "atividade": " Cite três coisas. ",
                "endpoint": "https://collector.example/exec",
                "exige_fractal": "sim",
                "instrucoes": "Primeiro parágrafo.\n\nSegundo parágrafo.",
                "pergunta_final": "Como se sentiu?",
            }
        )
        assert variant.form_id == "pergunta9"
        assert variant.title == "Teste"
        assert variant.activity_prompt == "Cite três coisas."
        assert variant.endpoint_url == "https://collector.example/exec"
        assert variant.require_behavior_fractal is True
        assert variant.instructions == ["Primeiro parágrafo.", "Segundo parágrafo."]
        assert variant.final_prompt == "Como se sentiu?"
        assert variant.redirect_url is None

    def test_english_keys(self) -> None:
        variant = forms_schema(
            {
                "formId": "x",
                "title": "X",
                "activity_prompt": "Do it",
                "url": "https://collector.example/exec",
                "require_behavior_fractal": False,
                "instructions": ["one", " ", "two"],
                "redirect_url": "https://example.org/",
            }
        )
        assert variant.form_id == "x"
        assert variant.require_behavior_fractal is False
        assert variant.instructions == ["one", "two"]
        assert variant.redirect_url == "https://example.org/"

    def test_defaults(self) -> None:
        variant = forms_schema({})
        assert variant.form_id == "formulario"
        assert variant.title == "formulario"
        assert variant.endpoint_url == ""
        assert variant.instructions == []
        assert variant.page is None


class TestLoading:
    """Tests for JSON loading and discovery."""

    def test_load_json_from_raw_string(self) -> None:
        assert load_json('{"a": 1}') == {"a": 1}

    def test_load_json_from_path_with_bom(self, tmp_path: Path) -> None:
        p = tmp_path / "form.json"
        p.write_text('\ufeff{"titulo": "Com BOM"}', encoding="utf-8")
        assert load_json(p) == {"titulo": "Com BOM"}

    def test_malformed_json_raises(self, tmp_path: Path) -> None:
        p = tmp_path / "broken.json"
        p.write_text("{not json", encoding="utf-8")
        with pytest.raises(json.JSONDecodeError):
            load_json(p)

    def test_shipped_variants(self, forms_dir: Path) -> None:
        friends = load_form_variant(forms_dir / "pergunta2.json")
        lottery = load_form_variant(forms_dir / "pergunta3.json")

        assert friends.form_id == "pergunta2"
        assert friends.require_behavior_fractal is True
        assert lottery.form_id == "pergunta3"
        assert lottery.require_behavior_fractal is False
        for variant in (friends, lottery):
            assert variant.endpoint_url.startswith("https://script.google.com/")
            assert len(variant.instructions) == 3
            assert variant.page and variant.page.startswith("pages/")

    def test_discover_forms_sorted_by_title(self, tmp_path: Path) -> None:
        (tmp_path / "b.json").write_text(json.dumps({"titulo": "Zeta"}), encoding="utf-8")
        (tmp_path / "a.json").write_text(json.dumps({"title": "alfa  beta"}), encoding="utf-8")
        (tmp_path / "c.json").write_text("{broken", encoding="utf-8")

        found = discover_forms(tmp_path)

        assert [label for label, _ in found] == ["alfa beta", "c", "Zeta"]

    def test_discover_forms_missing_dir(self, tmp_path: Path) -> None:
        assert discover_forms(tmp_path / "nope") == []
