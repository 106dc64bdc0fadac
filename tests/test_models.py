"""Tests for answer API payload models."""

from answer_bridge.backend.models import AnswerResult, Citation, IngestStatus


class TestAnswerResult:
    """Test lenient answer parsing."""

    def test_citation_instances_kept(self):
        citation = Citation(url="https://grest.in/pages/faqs", start_line=3, end_line=7)
        result = AnswerResult(answer="Yes.", citations=[citation])
        assert result.citations == [citation]

    def test_dicts_and_instances_mixed(self):
        result = AnswerResult(
            citations=[
                {"url": "https://grest.in/pages/faqs", "start_line": 1, "end_line": 2},
                Citation(url="https://grest.in/pages/warranty"),
                "not a citation",
                None,
            ]
        )
        assert [c.url for c in result.citations] == ["https://grest.in/pages/faqs", "https://grest.in/pages/warranty"]

    def test_citations_not_a_list(self):
        assert AnswerResult(citations={"url": "x"}).citations == []

    def test_null_text_fields(self):
        result = AnswerResult.model_validate({"answer": None, "settings_summary": None})
        assert result.answer == ""
        assert result.settings_summary == ""


class TestCitation:
    """Test per-citation repair of bad fields."""

    def test_bad_line_numbers_become_none(self):
        citation = Citation.model_validate({"url": "https://grest.in/pages/warranty", "start_line": "n/a", "end_line": True})
        assert citation.start_line is None
        assert citation.end_line is None

    def test_numeric_strings_accepted(self):
        citation = Citation.model_validate({"url": "https://grest.in/pages/faqs", "start_line": " 4 ", "end_line": 9.0})
        assert citation.start_line == 4
        assert citation.end_line == 9

    def test_null_url(self):
        assert Citation.model_validate({"url": None}).url == ""


def test_ingest_status_terminal():
    assert IngestStatus(status="done").is_terminal is True
    assert IngestStatus(status="error").is_terminal is True
    assert IngestStatus(status="running").is_terminal is False
