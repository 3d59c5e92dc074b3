"""Tests for hunk header parsing and per-hunk reconstruction."""

import pytest

from conftest import add, ctx, dele
from linestage.git.models import DiffLine, Hunk, Origin
from linestage.patch.reconstructor import (
    HunkHeaderError,
    PatchError,
    parse_hunk_header,
    reconstruct_hunk,
)


class TestParseHunkHeader:
    def test_full_header(self):
        info = parse_hunk_header("@@ -10,4 +10,5 @@")
        assert (info.old_start, info.old_len, info.new_start, info.new_len) == (10, 4, 10, 5)

    def test_lengths_default_to_one(self):
        info = parse_hunk_header("@@ -7 +9 @@")
        assert info.old_len == 1
        assert info.new_len == 1

    def test_section_heading_kept(self):
        info = parse_hunk_header("@@ -3,4 +3,5 @@ def helper():")
        assert info.section == "def helper():"
        assert info.old_start == 3

    def test_new_file_header(self):
        info = parse_hunk_header("@@ -0,0 +1,3 @@")
        assert (info.old_start, info.old_len) == (0, 0)

    @pytest.mark.parametrize("header", [
        "",
        "@@ 10,4 +10,5 @@",
        "@@ -a,4 +10,5 @@",
        "-10,4 +10,5",
        "@@ -10,4 @@",
    ])
    def test_malformed(self, header):
        with pytest.raises(HunkHeaderError):
            parse_hunk_header(header)

    def test_header_error_is_patch_error(self):
        with pytest.raises(PatchError):
            parse_hunk_header("garbage")


class TestReconstructHunk:
    def test_single_addition_selected(self, scenario_diff):
        hunk = scenario_diff.hunks[0]
        rebuilt = reconstruct_hunk(hunk, {2})

        assert rebuilt is not None
        assert rebuilt.header() == "@@ -10,3 +10,4 @@"
        assert rebuilt.render()[1:] == [" a", " b", "+c", " e"]

    def test_unselected_deletion_becomes_context(self, scenario_diff):
        rebuilt = reconstruct_hunk(scenario_diff.hunks[0], {2})
        assert rebuilt.lines[1].origin is Origin.CONTEXT
        assert rebuilt.lines[1].content == "b"

    def test_deletion_only_selected(self, scenario_diff):
        rebuilt = reconstruct_hunk(scenario_diff.hunks[0], {1})
        # a, -b, e : old 3, new 2
        assert rebuilt.render() == ["@@ -10,3 +10,2 @@", " a", "-b", " e"]

    def test_nothing_selected_drops_hunk(self, scenario_diff):
        assert reconstruct_hunk(scenario_diff.hunks[0], set()) is None

    def test_selected_context_index_is_ignored(self, scenario_diff):
        # index 0 is a context line; it is retained whether or not it is "selected"
        assert reconstruct_hunk(scenario_diff.hunks[0], {0}) is None

    def test_full_selection_matches_original_counts(self, multi_hunk_diff):
        for index, hunk in enumerate(multi_hunk_diff.hunks):
            info = parse_hunk_header(hunk.header)
            rebuilt = reconstruct_hunk(hunk, set(hunk.change_indices), hunk_index=index)
            assert (rebuilt.old_len, rebuilt.new_len) == (info.old_len, info.new_len)

    def test_starts_reused_verbatim(self, multi_hunk_diff):
        rebuilt = reconstruct_hunk(multi_hunk_diff.hunks[1], {1}, hunk_index=1)
        assert (rebuilt.old_start, rebuilt.new_start) == (20, 21)
        assert rebuilt.source_index == 1

    def test_unit_lengths_omitted(self):
        hunk = Hunk(header="@@ -5,2 +5,1 @@", lines=(dele("gone"), ctx("stay")))
        rebuilt = reconstruct_hunk(hunk, {0})
        assert rebuilt.header() == "@@ -5,2 +5 @@"
        assert rebuilt.header(omit_unit_lengths=False) == "@@ -5,2 +5,1 @@"

    def test_new_file_partial_selection(self, new_file_diff):
        rebuilt = reconstruct_hunk(new_file_diff.hunks[0], {1})
        assert (rebuilt.old_start, rebuilt.old_len, rebuilt.new_start, rebuilt.new_len) == (0, 0, 1, 1)
        assert rebuilt.render(omit_unit_lengths=False) == ["@@ -0,0 +1,1 @@", "+second"]
        assert rebuilt.render() == ["@@ -0,0 +1 @@", "+second"]

    def test_malformed_header_reports_hunk_index(self):
        hunk = Hunk(header="@@ broken @@", lines=(add("x"),))
        with pytest.raises(HunkHeaderError) as excinfo:
            reconstruct_hunk(hunk, {0}, hunk_index=3)
        assert excinfo.value.hunk_index == 3
        assert "hunk 3" in str(excinfo.value)

    def test_no_newline_marker_follows_surviving_line(self):
        hunk = Hunk(
            header="@@ -1,2 +1,2 @@",
            lines=(
                ctx("keep"),
                DiffLine(Origin.DELETION, "old last", no_newline_at_eof=True),
                DiffLine(Origin.ADDITION, "new last", no_newline_at_eof=True),
            ),
        )
        rebuilt = reconstruct_hunk(hunk, {1, 2})
        assert rebuilt.render() == [
            "@@ -1,2 +1,2 @@",
            " keep",
            "-old last",
            "\\ No newline at end of file",
            "+new last",
            "\\ No newline at end of file",
        ]

    def test_dropped_addition_drops_its_marker(self):
        hunk = Hunk(
            header="@@ -1 +1,3 @@",
            lines=(
                ctx("keep"),
                add("middle"),
                DiffLine(Origin.ADDITION, "tail", no_newline_at_eof=True),
            ),
        )
        rebuilt = reconstruct_hunk(hunk, {1})
        assert rebuilt.render() == ["@@ -1 +1,2 @@", " keep", "+middle"]

    def test_unterminated_last_line_gets_newline_when_lines_follow(self):
        # old file "a\nb" without a final newline, new file "a\nb\nc\n"
        hunk = Hunk(
            header="@@ -1,2 +1,3 @@",
            lines=(
                ctx("a"),
                DiffLine(Origin.DELETION, "b", no_newline_at_eof=True),
                add("b"),
                add("c"),
            ),
        )
        rebuilt = reconstruct_hunk(hunk, {3})
        assert rebuilt.render() == [
            "@@ -1,2 +1,3 @@",
            " a",
            "-b",
            "\\ No newline at end of file",
            "+b",
            "+c",
        ]

    def test_unterminated_last_line_stays_context_at_end(self):
        hunk = Hunk(
            header="@@ -1,2 +1,2 @@",
            lines=(
                dele("a"),
                DiffLine(Origin.DELETION, "b", no_newline_at_eof=True),
                DiffLine(Origin.ADDITION, "B", no_newline_at_eof=True),
            ),
        )
        rebuilt = reconstruct_hunk(hunk, {0})
        assert rebuilt.render() == [
            "@@ -1,2 +1 @@",
            "-a",
            " b",
            "\\ No newline at end of file",
        ]
