"""Tests for converting citations to hex footnotes."""

import re

import pytest

from cite_wide import CitationNormalizer, convert_citations
from cite_wide.core.hex_ids import HexIdAllocator, generate_hex_id, new_hex_marker

MARKER = re.compile(r"\[\^([0-9a-f]+)\](?!:)")
DEFINITION = re.compile(r"^\[\^([0-9a-f]+)\]: (.+)$", re.MULTILINE)


def sequential_ids(*ids):
    """Hex id generator that hands out ``ids`` in order."""
    iterator = iter(ids)

    def generator(length):
        return next(iterator)

    return generator


@pytest.fixture
def normalizer():
    return CitationNormalizer(hex_id_generator=sequential_ids("aaa111", "bbb222", "ccc333"))


class TestNoOps:
    def test_document_without_citations_is_untouched(self, normalizer):
        text = "Plain text with a [link](https://x.com).\n"
        result = normalizer.convert(text)

        assert result.content == text
        assert result.changed is False
        assert result.citations_converted == 0

    def test_unknown_target_is_not_an_error(self, normalizer):
        text = "Cited [7].\n"
        result = normalizer.convert(text, target_number="5")

        assert result.content == text
        assert result.changed is False
        assert result.citations_converted == 0

    def test_out_of_range_occurrence_converts_nothing(self, normalizer):
        result = normalizer.convert("[1] and [1]", target_number="1", match_occurrence_index=5)
        assert result.changed is False

    def test_second_run_is_a_no_op(self):
        text = "A [1] B [2] C [1]\n\n1. [https://one.com]\n2. [https://two.com]\n"
        first = CitationNormalizer(hex_id_generator=sequential_ids("aaa111", "bbb222")).convert(text)
        second = CitationNormalizer(hex_id_generator=sequential_ids("ccc333")).convert(first.content)

        assert first.changed is True
        assert second.changed is False
        assert second.content == first.content


class TestConversion:
    def test_numbered_and_footnote_definition_share_one_id(self):
        normalizer = CitationNormalizer(hex_id_generator=sequential_ids("abc123"))
        result = normalizer.convert("See [1] and [^1]: https://a.com\n")

        assert result.content == (
            "See [^abc123] and [^abc123]: https://a.com\n"
            "\n"
            "# Footnotes\n"
            "[^abc123]: https://a.com\n"
        )
        assert result.citations_converted == 2
        assert result.hex_ids == {"1": "abc123"}
        assert DEFINITION.findall(result.content) == [("abc123", "https://a.com")]

    def test_perplexity_source_moves_to_footnotes(self):
        normalizer = CitationNormalizer(hex_id_generator=sequential_ids("def456"))
        result = normalizer.convert("3. [https://example.com]\nSome text referencing [3] here")

        assert result.content == (
            "Some text referencing [^def456] here\n"
            "\n"
            "# Footnotes\n"
            "[^def456]: https://example.com\n"
        )
        assert result.changed is True
        assert result.citations_converted == 2

    def test_every_group_gets_its_own_id_and_definition(self, normalizer):
        text = "A [1] B [2] C [1]\n\n1. [https://one.com]\n2. [https://two.com]\n"
        result = normalizer.convert(text)

        assert result.content == (
            "A [^aaa111] B [^bbb222] C [^aaa111]\n"
            "\n"
            "# Footnotes\n"
            "[^aaa111]: https://one.com\n"
            "[^bbb222]: https://two.com\n"
        )
        assert result.citations_converted == 5
        assert set(MARKER.findall(result.content)) == {"aaa111", "bbb222"}
        assert DEFINITION.findall(result.content) == [
            ("aaa111", "https://one.com"),
            ("bbb222", "https://two.com"),
        ]

    def test_numeric_footnote_definitions_are_renamed_in_place(self, normalizer):
        text = "Claim[^1].\n\n## Footnotes\n[^1]: https://a.org\n"
        result = normalizer.convert(text)

        assert result.content == "Claim [^aaa111] .\n\n## Footnotes\n[^aaa111]: https://a.org\n"

    def test_renamed_definition_line_is_not_duplicated(self, normalizer):
        text = "Body [^1].\n\n# Footnotes\n[^1]: Smith, Title. https://a.com/x.\n"
        result = normalizer.convert(text)

        assert result.content == "Body [^aaa111] .\n\n# Footnotes\n[^aaa111]: Smith, Title. https://a.com/x.\n"
        assert result.content.count("[^aaa111]:") == 1

    def test_renamed_definition_line_survives_a_second_run(self, normalizer):
        text = "Body [^1].\n\n# Footnotes\n[^1]: Smith, Title. https://a.com/x.\n"
        first = normalizer.convert(text)
        second = CitationNormalizer(hex_id_generator=sequential_ids("ddd444")).convert(first.content)

        assert second.changed is False
        assert second.content == first.content

    def test_reference_listing_is_relocated(self, normalizer):
        text = "Body cites [1].\n\n## References\n1. Smith, J. (2020). A study.\n"
        result = normalizer.convert(text)

        assert result.content == (
            "Body cites [^aaa111] .\n"
            "\n"
            "## References\n"
            "\n"
            "# Footnotes\n"
            "[^aaa111]: Smith, J. (2020). A study.\n"
        )

    def test_listing_with_trailing_text_keeps_the_text(self, normalizer):
        text = "See [4].\n4. [https://x.com] Example title\n"
        result = normalizer.convert(text)

        assert result.content.startswith("See [^aaa111] .\nExample title\n")
        assert "[^aaa111]: https://x.com\n" in result.content

    def test_citation_without_url_gets_no_definition(self, normalizer):
        result = normalizer.convert("Only [2] here.")

        assert result.content == "Only [^aaa111] here."
        assert "Footnotes" not in result.content

    def test_adjacent_markers_are_padded_once(self, normalizer):
        result = normalizer.convert("[1][2]")
        assert result.content == "[^aaa111] [^bbb222]"


class TestTargeting:
    TEXT = "First [1], second [1].\n\n[1]: https://a.com\n"

    def test_single_occurrence_with_caller_id(self):
        normalizer = CitationNormalizer(hex_id_generator=sequential_ids())
        result = normalizer.convert(self.TEXT, target_number="1", hex_id="feed01", match_occurrence_index=1)

        assert result.content == (
            "First [1], second [^feed01] .\n"
            "\n"
            "[1]: https://a.com\n"
            "\n"
            "# Footnotes\n"
            "[^feed01]: https://a.com\n"
        )
        assert result.citations_converted == 1

    def test_target_accepts_bracketed_forms(self, normalizer):
        result = normalizer.convert("A [^2] and [3]", target_number="[^2]")

        assert result.content == "A [^aaa111] and [3]"
        assert result.hex_ids == {"2": "aaa111"}

    def test_integer_target(self, normalizer):
        result = normalizer.convert("A [2] and [3]", target_number=3)
        assert result.content == "A [2] and [^aaa111]"

    def test_hex_id_without_target_is_ignored(self, normalizer):
        result = normalizer.convert("A [1] and [2]", hex_id="c0ffee")

        assert "c0ffee" not in result.content
        assert result.hex_ids == {"1": "aaa111", "2": "bbb222"}

    def test_converting_remaining_occurrences_later(self):
        first = CitationNormalizer(hex_id_generator=sequential_ids("aaa111")).convert(
            self.TEXT, target_number="1", match_occurrence_index=0
        )
        second = CitationNormalizer(hex_id_generator=sequential_ids("aaa111", "bbb222")).convert(
            first.content, target_number="1"
        )

        # aaa111 already appears as a marker, so the second run picks bbb222
        assert second.hex_ids == {"1": "bbb222"}
        assert "First [^aaa111] , second [^bbb222] ." in second.content
        assert second.content.count("[^aaa111]: https://a.com") == 1


class TestOffsets:
    def test_back_to_front_rewrite_keeps_offsets_valid(self, normalizer):
        text = "x" * 9 + " [1] " + "y" * 25 + " [^2] end"
        assert text[10:13] == "[1]"
        assert text[40:44] == "[^2]"

        result = normalizer.convert(text)

        assert result.content == "x" * 9 + " [^aaa111] " + "y" * 25 + " [^bbb222] end"
        restored = result.content.replace("[^aaa111]", "[1]").replace("[^bbb222]", "[^2]")
        assert restored == text


class TestHexAllocation:
    def test_group_by_url_shares_ids(self):
        normalizer = CitationNormalizer(hex_id_generator=sequential_ids("aaa111", "bbb222"), group_by_url=True)
        text = "A [1] B [2]\n\n1. [https://same.com]\n2. [https://same.com]\n"
        result = normalizer.convert(text)

        assert result.content == "A [^aaa111] B [^aaa111]\n\n# Footnotes\n[^aaa111]: https://same.com\n"
        assert result.hex_ids == {"1": "aaa111", "2": "aaa111"}

    def test_group_by_url_reuses_existing_definition(self):
        normalizer = CitationNormalizer(hex_id_generator=sequential_ids("bbb222"))
        text = "Old [^abc123] new [4]\n\n# Footnotes\n[^abc123]: https://x.com\n\n4. [https://x.com]\n"
        result = normalizer.convert(text, group_by_url=True)

        assert result.content == "Old [^abc123] new [^abc123]\n\n# Footnotes\n[^abc123]: https://x.com\n\n"

    def test_all_digit_candidates_are_rejected(self):
        normalizer = CitationNormalizer(hex_id_generator=sequential_ids("123456", "abc123"))
        result = normalizer.convert("[1]")
        assert result.content == "[^abc123]"

    def test_ids_already_in_the_document_are_rejected(self):
        normalizer = CitationNormalizer(hex_id_generator=sequential_ids("abc123", "def456"))
        result = normalizer.convert("[^abc123] and [1]")
        assert result.content == "[^abc123] and [^def456]"

    def test_allocator_caches_by_number(self):
        allocator = HexIdAllocator("", generator=sequential_ids("aaa111", "bbb222"))
        assert allocator.for_group("1") == "aaa111"
        assert allocator.for_group("1") == "aaa111"
        assert allocator.for_group("2") == "bbb222"


class TestFailSafe:
    def test_exhausted_generator_leaves_text_unchanged(self):
        normalizer = CitationNormalizer(hex_id_generator=lambda length: "123456")
        text = "Cited [1].\n"
        result = normalizer.convert(text)

        assert result.content == text
        assert result.changed is False
        assert result.citations_converted == 0

    def test_generator_error_leaves_text_unchanged(self):
        def broken(length):
            raise ValueError("entropy source unavailable")

        result = CitationNormalizer(hex_id_generator=broken).convert("Cited [1].")
        assert result.changed is False
        assert result.content == "Cited [1]."


class TestGenerateHexId:
    def test_default_length(self):
        assert re.fullmatch(r"[0-9a-f]{6}", generate_hex_id())

    @pytest.mark.parametrize("length", [1, 4, 7, 32])
    def test_requested_length(self, length):
        assert len(generate_hex_id(length)) == length

    @pytest.mark.parametrize("length", [0, -3])
    def test_invalid_length(self, length):
        with pytest.raises(ValueError):
            generate_hex_id(length)

    def test_ids_are_random(self):
        assert len({generate_hex_id(12) for _ in range(20)}) == 20

    def test_new_marker(self):
        marker = new_hex_marker()
        assert re.fullmatch(r"\[\^[0-9a-f]{6}\]", marker)
        assert not marker[2:-1].isdigit()


def test_module_level_convert_uses_random_ids():
    result = convert_citations("Cited [1] twice [1].")

    ids = MARKER.findall(result.content)
    assert len(ids) == 2
    assert ids[0] == ids[1]
    assert len(ids[0]) == 6
