"""Tests for session markdown parsing and statistics."""

from __future__ import annotations

from session_vault.features.session_content import (
    SessionMetadata,
    SessionStats,
    parse_metadata,
    stats_from_content,
    stats_from_path,
)


class TestParseMetadata:
    def test_full_document(self, sample_session_text):
        meta = parse_metadata(sample_session_text)
        assert meta.title == "Importer rewrite"
        assert meta.date == "2026-02-01"
        assert meta.started == "09:30"
        assert meta.last_updated == "11:05"
        assert meta.completed == ["Parse headers", "Handle BOM"]
        assert meta.in_progress == ["Streaming mode"]
        assert meta.notes == "Check the large-file fixture."
        assert meta.context == "src/importer.py\ntests/test_importer.py"

    def test_empty_and_none(self):
        assert parse_metadata("") == SessionMetadata()
        assert parse_metadata(None) == SessionMetadata()

    def test_plain_text_has_no_sections(self):
        meta = parse_metadata("just some words\nand more")
        assert meta.title is None
        assert meta.completed == []
        assert meta.notes == ""

    def test_subheading_is_not_a_title(self):
        assert parse_metadata("## Not a title\n### Nor this").title is None

    def test_title_from_later_line(self):
        assert parse_metadata("preamble\n# Real title  \n").title == "Real title"

    def test_section_stops_at_blank_line(self):
        content = "### Completed\n- [x] one\n\n- [x] stray\n"
        assert parse_metadata(content).completed == ["one"]

    def test_section_stops_at_next_heading(self):
        content = "### In Progress\n- [ ] a\n### Completed\n- [x] b\n"
        meta = parse_metadata(content)
        assert meta.in_progress == ["a"]
        assert meta.completed == ["b"]

    def test_checklists_ignore_wrong_marker(self):
        content = "### Completed\n- [ ] not done\n- [x] done\n"
        assert parse_metadata(content).completed == ["done"]

    def test_section_at_end_of_text(self):
        assert parse_metadata("### Notes for Next Session\nremember this").notes == "remember this"

    def test_unterminated_context_block_is_ignored(self):
        assert parse_metadata("### Context to Load\n```\nfile.py\n").context == ""


class TestStats:
    def test_from_content(self, sample_session_text):
        stats = stats_from_content(sample_session_text)
        assert stats.total_items == 3
        assert stats.completed_items == 2
        assert stats.in_progress_items == 1
        assert stats.line_count == sample_session_text.count("\n") + 1
        assert stats.has_notes is True
        assert stats.has_context is True

    def test_empty_content(self):
        assert stats_from_content("") == SessionStats()
        assert stats_from_content(None) == SessionStats()

    def test_path_shaped_content_is_treated_as_content(self):
        stats = stats_from_content("/home/user/2026-02-01-session.tmp")
        assert stats.line_count == 1
        assert stats.total_items == 0

    def test_from_path(self, tmp_path, sample_session_text):
        path = tmp_path / "2026-02-01-session.tmp"
        path.write_text(sample_session_text, encoding="utf-8")
        assert stats_from_path(path) == stats_from_content(sample_session_text)
        assert stats_from_path(str(path)) == stats_from_content(sample_session_text)

    def test_from_missing_path(self, tmp_path):
        assert stats_from_path(tmp_path / "missing.tmp") == SessionStats()
