import unittest
from pathlib import Path
from tempfile import TemporaryDirectory

from cite_wide import CitationNormalizer, VaultMetadata
from cite_wide.core.document_operations import (
    InMemoryDocument,
    NoteDocument,
    convert_document,
    convert_note_citations,
    find_note_citations,
    list_document_citations,
    normalize_note_footnotes,
    strip_note_citation_links,
)


def _fixed_ids(*ids):
    iterator = iter(ids)
    return CitationNormalizer(hex_id_generator=lambda length: next(iterator))


class InMemoryDocumentTests(unittest.TestCase):
    def test_convert_writes_back_full_text(self) -> None:
        document = InMemoryDocument("Claim [1].\n\n1. [https://a.com]\n")
        result = convert_document(document, normalizer=_fixed_ids("abc123"))

        self.assertTrue(result.changed)
        self.assertEqual(document.writes, 1)
        self.assertEqual(
            document.get_document_text(),
            "Claim [^abc123] .\n\n# Footnotes\n[^abc123]: https://a.com\n",
        )

    def test_unchanged_document_is_not_written(self) -> None:
        document = InMemoryDocument("Nothing cited.")
        result = convert_document(document)

        self.assertFalse(result.changed)
        self.assertEqual(document.writes, 0)

    def test_list_document_citations_payload(self) -> None:
        document = InMemoryDocument("A [1] and [^1]: https://a.com")
        [group] = list_document_citations(document)

        self.assertEqual(group["number"], "1")
        self.assertEqual(group["url"], "https://a.com")
        self.assertEqual(group["occurrences"], 2)
        self.assertEqual([ref["kind"] for ref in group["references"]], ["numbered", "footnote"])


class NoteOperationTests(unittest.TestCase):
    def setUp(self) -> None:
        self.tmpdir = TemporaryDirectory()
        self.vault_path = Path(self.tmpdir.name).resolve()
        self.vault = VaultMetadata(
            name="test",
            path=self.vault_path,
            description="test vault",
            exists=True,
        )

    def tearDown(self) -> None:
        self.tmpdir.cleanup()

    def _write_note(self, name: str, content: str) -> Path:
        note_path = self.vault_path / f"{name}.md"
        note_path.parent.mkdir(parents=True, exist_ok=True)
        note_path.write_text(content, encoding="utf-8")
        return note_path

    def test_note_document_reads_and_writes(self) -> None:
        note_path = self._write_note("Research/answer", "Text")
        document = NoteDocument(self.vault, "Research/answer")

        self.assertEqual(document.name, "Research/answer")
        self.assertEqual(document.get_document_text(), "Text")
        document.set_document_text("Replaced")
        self.assertEqual(note_path.read_text(encoding="utf-8"), "Replaced")

    def test_missing_note_raises(self) -> None:
        with self.assertRaises(FileNotFoundError):
            NoteDocument(self.vault, "missing")

    def test_missing_vault_raises(self) -> None:
        vault = VaultMetadata(
            name="gone",
            path=self.vault_path / "nope",
            description="",
            exists=False,
        )
        with self.assertRaises(FileNotFoundError):
            NoteDocument(vault, "anything")

    def test_path_escaping_vault_raises(self) -> None:
        with self.assertRaises(ValueError):
            NoteDocument(self.vault, "../outside")

    def test_non_utf8_note_raises_value_error(self) -> None:
        note_path = self.vault_path / "latin.md"
        note_path.write_bytes("caf\xe9 [1]".encode("latin-1"))
        document = NoteDocument(self.vault, "latin")
        with self.assertRaises(ValueError):
            document.get_document_text()

    def test_find_note_citations(self) -> None:
        self._write_note("answer", "See [2].\n\n2. [https://b.com]\n")
        result = find_note_citations(self.vault, "answer")

        self.assertEqual(result["status"], "found")
        self.assertEqual(result["note"], "answer")
        self.assertEqual(result["groups"][0]["url"], "https://b.com")

    def test_find_note_without_citations(self) -> None:
        self._write_note("plain", "No citations.")
        result = find_note_citations(self.vault, "plain")
        self.assertEqual(result["status"], "no_citations")
        self.assertEqual(result["groups"], [])

    def test_convert_note_citations_saves_note(self) -> None:
        note_path = self._write_note("answer", "See [2].\n\n2. [https://b.com]\n")
        result = convert_note_citations(self.vault, "answer", normalizer=_fixed_ids("beef01"))

        self.assertEqual(result["status"], "converted")
        self.assertEqual(result["citations_converted"], 2)
        self.assertEqual(result["hex_ids"], {"2": "beef01"})
        self.assertEqual(
            note_path.read_text(encoding="utf-8"),
            "See [^beef01] .\n\n# Footnotes\n[^beef01]: https://b.com\n",
        )

    def test_convert_note_is_idempotent_on_disk(self) -> None:
        note_path = self._write_note("answer", "See [2].\n\n2. [https://b.com]\n")
        convert_note_citations(self.vault, "answer", normalizer=_fixed_ids("beef01"))
        converted = note_path.read_text(encoding="utf-8")

        result = convert_note_citations(self.vault, "answer", normalizer=_fixed_ids("cafe02"))
        self.assertEqual(result["status"], "unchanged")
        self.assertEqual(note_path.read_text(encoding="utf-8"), converted)

    def test_convert_unknown_target_leaves_note(self) -> None:
        note_path = self._write_note("answer", "Only [7].")
        result = convert_note_citations(self.vault, "answer", target_number="5")

        self.assertEqual(result["status"], "unchanged")
        self.assertFalse(result["changed"])
        self.assertEqual(note_path.read_text(encoding="utf-8"), "Only [7].")

    def test_normalize_note_footnotes(self) -> None:
        note_path = self._write_note("refs", "Body [^a1]\n\n## Footnotes\n[^a1] https://a.com\n")
        result = normalize_note_footnotes(self.vault, "refs")

        self.assertEqual(result["status"], "normalized")
        self.assertEqual(result["lines_changed"], 1)
        self.assertEqual(
            note_path.read_text(encoding="utf-8"),
            "Body [^a1]\n\n## Footnotes\n[^a1]: https://a.com\n",
        )

    def test_strip_note_citation_links(self) -> None:
        note_path = self._write_note("links", "Fact [3](https://c.com).")
        result = strip_note_citation_links(self.vault, "links")

        self.assertEqual(result["links_stripped"], 1)
        self.assertEqual(note_path.read_text(encoding="utf-8"), "Fact [3].")


if __name__ == "__main__":
    unittest.main()
