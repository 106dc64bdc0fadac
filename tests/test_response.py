"""Tests for answer shaping."""

import pytest

from answer_bridge.backend.models import AnswerResult, Citation
from answer_bridge.formatting.response import (
    NOT_FOUND_TEXT,
    add_product_link,
    format_citations,
    is_fallback,
    pick_primary_product,
    shape_response,
)
from answer_bridge.formatting.ribbon import parse_ribbon

FAQ = Citation(url="https://grest.in/pages/faqs", start_line=3, end_line=7)
PHONE_13 = Citation(url="https://grest.in/products/iphone-13?variant=9", start_line=4, end_line=9)
PHONE_14 = Citation(url="https://grest.in/products/iphone-14", start_line=1, end_line=1)
PRODUCT_RIBBON = parse_ribbon("intent=product")


class TestIsFallback:
    """Test fallback classification."""

    def test_ribbon_flag(self):
        assert is_fallback(parse_ribbon("fallback=1"), "Here is the answer") is True

    @pytest.mark.parametrize(
        "answer",
        [
            "Exact info nahi mila, but here is what I know",
            "  Exact line nahi mila",
            "I couldn’t find the exact info on that.",
            "I couldn't find an exact line on that topic.",
        ],
    )
    def test_known_phrasings(self, answer):
        assert is_fallback(parse_ribbon(""), answer) is True

    def test_regular_answer(self):
        assert is_fallback(parse_ribbon("fallback=0"), "Warranty is 12 months.") is False

    def test_missing_answer(self):
        assert is_fallback(parse_ribbon(""), None) is False

    def test_bracketed_ribbon_flag(self):
        assert is_fallback(parse_ribbon("[fallback=1]"), "Here you go") is True


class TestCitations:
    """Test citation rendering."""

    def test_format(self):
        assert format_citations([FAQ]) == "[$1] https://grest.in/pages/faqs (lines 3-7)"

    def test_missing_line_numbers(self):
        text = format_citations([Citation(url="https://grest.in/pages/faqs")])
        assert text == "[$1] https://grest.in/pages/faqs (lines ?-?)"

    def test_limited_to_six(self):
        citations = [Citation(url=f"https://grest.in/pages/p{i}", start_line=i, end_line=i) for i in range(8)]
        lines = format_citations(citations).split("\n")
        assert len(lines) == 6
        assert lines[-1].startswith("[$6] https://grest.in/pages/p5")


class TestProductLink:
    """Test product page link selection."""

    def test_line_one_citation_preferred(self):
        assert pick_primary_product([PHONE_14, PHONE_13]) is PHONE_14

    def test_last_product_otherwise(self):
        other = Citation(url="https://grest.in/products/iphone-12", start_line=2, end_line=5)
        assert pick_primary_product([other, FAQ, PHONE_13]) is PHONE_13

    def test_no_product_citation(self):
        assert pick_primary_product([FAQ]) is None

    def test_query_string_removed(self):
        text = add_product_link("In stock.", [PHONE_13], PRODUCT_RIBBON)
        assert text == "In stock.\n\n[Product page](https://grest.in/products/iphone-13)"

    def test_requires_product_intent(self):
        assert add_product_link("In stock.", [PHONE_14], parse_ribbon("intent=policy")) == "In stock."

    def test_parenthesized_product_intent(self):
        text = add_product_link("Answer", [PHONE_14], parse_ribbon("(intent=product)"))
        assert text == "Answer\n\n[Product page](https://grest.in/products/iphone-14)"

    def test_skipped_with_collection_link(self):
        text = "See https://grest.in/collections/iphones for all models."
        assert add_product_link(text, [PHONE_14], PRODUCT_RIBBON) == text

    def test_skipped_with_product_list(self):
        text = "- [A](https://grest.in/products/a)\n- [B](https://grest.in/products/b)"
        assert add_product_link(text, [PHONE_14], PRODUCT_RIBBON) == text

    def test_skipped_when_url_already_present(self):
        text = "Check https://grest.in/products/iphone-14 today."
        assert add_product_link(text, [PHONE_14], PRODUCT_RIBBON) == text


class TestShapeResponse:
    """Test the full shaping pipeline."""

    def test_answer_with_citations(self):
        result = AnswerResult(answer="Returns within 7 days.", citations=[FAQ])
        text = shape_response(result, show_citations=True, show_ribbon=False)
        assert text == "Returns within 7 days.\n\n*Citations:*\n[$1] https://grest.in/pages/faqs (lines 3-7)"

    def test_citations_hidden(self):
        result = AnswerResult(answer="Returns within 7 days.", citations=[FAQ])
        assert shape_response(result, show_citations=False, show_ribbon=False) == "Returns within 7 days."

    def test_empty_answer(self):
        assert shape_response(AnswerResult(), show_citations=True, show_ribbon=False) == NOT_FOUND_TEXT

    def test_ribbon_appended_last(self):
        result = AnswerResult(answer="Yes.", settings_summary=" mode=short fallback=0 ")
        text = shape_response(result, show_citations=True, show_ribbon=False)
        assert text == "Yes.\n\n_mode=short fallback=0_"

    def test_ribbon_with_debug_flag_only(self):
        result = AnswerResult(answer="Yes.", settings_summary="mode=short")
        assert shape_response(result, show_citations=False, show_ribbon=True) == "Yes.\n\n_mode=short_"
        assert shape_response(result, show_citations=False, show_ribbon=False) == "Yes."

    def test_escalation_replaces_body(self):
        result = AnswerResult(answer="Exact info nahi mila", citations=[FAQ], settings_summary="fallback=1")
        handoff = "\n\nIf you want, I can connect you to our support team. 🙂\nContact link: https://grest.in/pages/contact-us"
        text = shape_response(result, show_citations=True, show_ribbon=False, escalation_text=handoff)
        assert text == f"{handoff}\n\n_fallback=1_"
        assert "Exact info nahi mila" not in text

    def test_product_link_converted(self):
        result = AnswerResult(
            answer="The iPhone 14 is in stock.",
            citations=[PHONE_13, PHONE_14],
            settings_summary="intent=product",
        )
        text = shape_response(result, show_citations=False, show_ribbon=False)
        assert text == "The iPhone 14 is in stock.\n\n<https://grest.in/products/iphone-14|Product page>"

    def test_answer_links_converted(self):
        result = AnswerResult(answer="See [FAQ](https://grest.in/pages/faqs).")
        text = shape_response(result, show_citations=False, show_ribbon=False)
        assert text == "See <https://grest.in/pages/faqs|FAQ>."
