"""End-to-end tests for the conversion pipeline and its command-line wrapper."""

# pylint: disable=missing-class-docstring,missing-function-docstring

import sys

from conftest import ScriptedService
from textbook_md import convert
from textbook_md.convert import convert_text, run
from textbook_md.extraction.markers import MarkerKind, surface_forms
from textbook_md.tables.cache import TableCache
from textbook_md.tables.service import ServiceResult

NORMALIZED = "| Name | Age |\n| --- | --- |\n| Ann | 30 |"

DOCUMENT = """Cover page
Some Author
[TOC_START]
Chapter 1 Basics ........ 1
Chapter 2 Loops ........ 9
[TOC_END]
Chapter 1 Basics
Python is a programming language used for teaching and for real work.
1. Variables
• names
• values
[TABLE_START]
Name
Age
Ann
30
[TABLE_END]
Chapter 2 Loops
1.1 For loops
Step 1 Write the loop
Done."""


# ===========================================================================
# convert_text tests
# ===========================================================================


class TestConvertText:

    def test_full_document(self, sleep_recorder):
        service = ScriptedService([ServiceResult.success(NORMALIZED)])
        md = convert_text(DOCUMENT, service=service, sleep=sleep_recorder)
        assert md.startswith("Cover page\nSome Author\n")
        assert "# Chapter 1 Basics" in md
        assert "## 1. Variables" in md
        assert "- names\n- values" in md
        assert NORMALIZED in md
        assert "<!-- pagebreak -->\n# Chapter 2 Loops" in md
        assert "### 1.1 For loops" in md
        assert "#### Step 1 Write the loop" not in md
        assert "### Step 1 Write the loop" in md
        assert "........" not in md

    def test_table_fallback_keeps_content(self, failing_service, sleep_recorder):
        text = "Intro\n[TABLE_START]\nName\nAge\nAnn\n30\n[TABLE_END]\nOutro"
        md = convert_text(text, service=failing_service, sleep=sleep_recorder)
        assert md == "Intro\nName\nAge\nAnn\n30\nOutro\n"
        assert failing_service.calls == 3
        assert sleep_recorder.waits == [2, 2]

    def test_main_start_takes_precedence(self):
        text = "Cover\n[TOC_START]\nChapter 1 ..... 1\n[TOC_END]\nPreamble\n[MAIN_START]\nChapter 1 Basics\nBody."
        assert convert_text(text) == "# Chapter 1 Basics\n\nBody.\n"

    def test_no_service_leaves_table_text(self):
        text = "[TABLE_START]\nName\nAge\n[TABLE_END]"
        assert convert_text(text) == "Name\nAge\n"

    def test_markers_never_in_output(self, sleep_recorder):
        forms = [form for kind in MarkerKind for form in surface_forms(kind)]
        text = "\n".join(["Body line"] + forms + ["【表格開始】", "a", "b", "【表格結束】", "Tail"])
        service = ScriptedService([ServiceResult.success("| a |\n| --- |\n| b |")])
        md = convert_text(text, service=service, sleep=sleep_recorder)
        for form in forms:
            assert form not in md.split("\n")

    def test_corrupt_cache_file_does_not_raise(self, tmp_path, sleep_recorder):
        path = tmp_path / "cache.json"
        path.write_text("{not json", encoding="utf-8")
        service = ScriptedService([ServiceResult.success(NORMALIZED)])
        md = convert_text("[TABLE_START]\nName\nAge\n[TABLE_END]", service=service, sleep=sleep_recorder, cache=TableCache(path))
        assert md == NORMALIZED + "\n"

    def test_unwritable_cache_path_does_not_raise(self, tmp_path, sleep_recorder):
        blocker = tmp_path / "blocker"
        blocker.write_text("a regular file", encoding="utf-8")
        service = ScriptedService([ServiceResult.success(NORMALIZED)])
        md = convert_text("[TABLE_START]\nName\nAge\n[TABLE_END]", service=service, sleep=sleep_recorder, cache=TableCache(blocker / "cache.json"))
        assert md == NORMALIZED + "\n"

    def test_single_trailing_newline(self):
        assert convert_text("\n\nHello\n\n\n").endswith("Hello\n")

    def test_empty_input(self):
        assert convert_text("") == "\n"


# ===========================================================================
# run / main tests
# ===========================================================================


class TestRun:

    def test_writes_markdown_next_to_input(self, tmp_path):
        source = tmp_path / "notes.txt"
        source.write_text("Chapter 1\n• item\n", encoding="utf-8")
        output = run(source, use_llm=False)
        assert output == tmp_path / "notes.md"
        assert output.read_text(encoding="utf-8") == "# Chapter 1\n\n- item\n"

    def test_explicit_output_path(self, tmp_path):
        source = tmp_path / "notes.txt"
        source.write_text("第一章 基礎\n內容。", encoding="utf-8")
        target = tmp_path / "out" / "book.md"
        assert run(source, target, use_llm=False) == target
        assert target.read_text(encoding="utf-8") == "# 第一章 基礎\n\n內容。\n"

    def test_missing_credentials_skip_tables(self, tmp_path, monkeypatch):
        for name in ("AZURE_OPENAI_ENDPOINT", "AZURE_OPENAI_API_KEY", "AZURE_OPENAI_DEPLOYMENT_NAME"):
            monkeypatch.delenv(name, raising=False)
        source = tmp_path / "notes.txt"
        source.write_text("[TABLE_START]\nName\nAge\n[TABLE_END]", encoding="utf-8")
        cache_path = tmp_path / "cache.json"
        run(source, cache_path=cache_path)
        assert (tmp_path / "notes.md").read_text(encoding="utf-8") == "Name\nAge\n"
        assert not cache_path.exists()

    def test_main_cli(self, tmp_path, monkeypatch):
        source = tmp_path / "notes.txt"
        source.write_text("Section 1 Setup\nText.", encoding="utf-8")
        monkeypatch.setattr(sys, "argv", ["textbook-md", str(source), "--no-llm"])
        convert.main()
        assert (tmp_path / "notes.md").read_text(encoding="utf-8") == "## Section 1 Setup\n\nText.\n"

    def test_main_cli_prints_outline(self, tmp_path, monkeypatch, capsys):
        source = tmp_path / "notes.txt"
        source.write_text("Chapter 1 Basics\n1. Variables\n1.1 Names\nChapter 2 Loops", encoding="utf-8")
        monkeypatch.setattr(sys, "argv", ["textbook-md", str(source), "--no-llm", "--outline"])
        convert.main()
        assert capsys.readouterr().out.splitlines() == [
            "- [Chapter 1 Basics](#section-1)",
            "  - [1. Variables](#section-2)",
            "- [Chapter 2 Loops](#section-3)",
        ]
