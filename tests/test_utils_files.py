"""Tests for file utility functions."""

from __future__ import annotations

from pathlib import Path

import pytest

from bigcontext.exceptions import DocumentReadError
from bigcontext.utils.files import (
    cache_directory,
    combined_output_path,
    document_key,
    read_document,
    write_text_atomic,
)


class TestDocumentKey:
    """Test path derivation helpers."""

    def test_extension_removed(self) -> None:
        assert document_key(Path("/data/notes.txt")) == Path("/data/notes")

    def test_only_last_extension_removed(self) -> None:
        assert document_key(Path("/data/archive.tar.gz")) == Path("/data/archive.tar")

    def test_no_extension(self) -> None:
        assert document_key(Path("/data/README")) == Path("/data/README")

    def test_distinct_documents_distinct_keys(self) -> None:
        assert document_key(Path("/data/a.txt")) != document_key(Path("/data/b.txt"))
        assert document_key(Path("/data/a.txt")) != document_key(Path("/other/a.txt"))

    def test_same_stem_shares_key(self) -> None:
        """Only the final extension is dropped, so these two share a cache."""
        assert document_key(Path("/data/doc.txt")) == document_key(Path("/data/doc.md"))

    def test_cache_directory_matches_key(self) -> None:
        assert cache_directory(Path("/data/notes.txt")) == Path("/data/notes")

    def test_cache_directory_without_extension(self) -> None:
        """Never collides with the document itself."""
        assert cache_directory(Path("/data/README")) == Path("/data/README_cache")

    def test_combined_output_path(self) -> None:
        assert combined_output_path(Path("/data/notes.txt")) == Path("/data/notes.combined_results.txt")

    def test_combined_output_path_without_extension(self) -> None:
        assert combined_output_path(Path("/data/README")) == Path("/data/README.combined_results.txt")


class TestReadDocument:
    """Test read_document."""

    def test_reads_utf8(self, tmp_path: Path) -> None:
        doc = tmp_path / "doc.txt"
        doc.write_text("héllo\nworld", encoding="utf-8")
        assert read_document(doc) == "héllo\nworld"

    def test_keeps_line_endings(self, tmp_path: Path) -> None:
        doc = tmp_path / "doc.txt"
        doc.write_bytes(b"a\r\nb\r\nc\rd\n")
        assert read_document(doc) == "a\r\nb\r\nc\rd\n"

    def test_missing_file(self, tmp_path: Path) -> None:
        missing = tmp_path / "nonexistent_file_12345.txt"
        with pytest.raises(DocumentReadError) as exc_info:
            read_document(missing)

        assert exc_info.value.path == missing
        assert str(missing) in str(exc_info.value)
        assert "failed to read file" in str(exc_info.value)

    def test_directory(self, tmp_path: Path) -> None:
        with pytest.raises(DocumentReadError, match="is a directory"):
            read_document(tmp_path)

    def test_binary_file(self, tmp_path: Path) -> None:
        doc = tmp_path / "blob.bin"
        doc.write_bytes(b"\xff\xfe\x00\x80")
        with pytest.raises(DocumentReadError, match="UTF-8"):
            read_document(doc)


class TestWriteTextAtomic:
    """Test write_text_atomic."""

    def test_creates_file(self, tmp_path: Path) -> None:
        target = tmp_path / "out.txt"
        write_text_atomic(target, "content")
        assert target.read_text(encoding="utf-8") == "content"

    def test_overwrites_existing(self, tmp_path: Path) -> None:
        target = tmp_path / "out.txt"
        target.write_text("old", encoding="utf-8")
        write_text_atomic(target, "new")
        assert target.read_text(encoding="utf-8") == "new"

    def test_preserves_newlines(self, tmp_path: Path) -> None:
        target = tmp_path / "out.txt"
        write_text_atomic(target, "a\r\nb\n")
        assert target.read_bytes() == b"a\r\nb\n"

    def test_leaves_no_temporary_files(self, tmp_path: Path) -> None:
        target = tmp_path / "out.txt"
        write_text_atomic(target, "x")
        write_text_atomic(target, "y")
        assert [p.name for p in tmp_path.iterdir()] == ["out.txt"]

    def test_missing_parent_raises(self, tmp_path: Path) -> None:
        with pytest.raises(OSError):
            write_text_atomic(tmp_path / "missing" / "out.txt", "x")

    def test_failed_replace_cleans_up(self, tmp_path: Path) -> None:
        target = tmp_path / "taken"
        target.mkdir()
        with pytest.raises(OSError):
            write_text_atomic(target, "x")
        assert [p.name for p in tmp_path.iterdir()] == ["taken"]
