"""Tests for markdown link to Slack conversion."""

import pytest

from answer_bridge.formatting.markdown_to_slack import (
    MarkdownToSlackConverter,
    convert_markdown_links,
)


class TestMarkdownToSlackConverter:
    """Test the MarkdownToSlackConverter class."""

    @pytest.fixture
    def converter(self):
        """Create a converter instance."""
        return MarkdownToSlackConverter()

    def test_link_conversion(self, converter):
        """Test that [text](url) converts to <url|text>."""
        result = converter.convert_text("See [Product page](https://grest.in/products/x) now")
        assert result == "See <https://grest.in/products/x|Product page> now"

    def test_multiple_links_multiple_lines(self, converter):
        text = "- [A](https://grest.in/products/a)\n- [B](http://grest.in/products/b)"
        assert converter.convert_text(text) == (
            "- <https://grest.in/products/a|A>\n- <http://grest.in/products/b|B>"
        )

    def test_label_trimmed(self, converter):
        assert converter.convert_line("[ FAQ ](https://grest.in/pages/faqs)") == "<https://grest.in/pages/faqs|FAQ>"

    def test_blank_label_left_alone(self, converter):
        assert converter.convert_line("[ ](https://grest.in)") == "[ ](https://grest.in)"

    def test_non_http_link_left_alone(self, converter):
        assert converter.convert_line("[mail](mailto:a@b.c)") == "[mail](mailto:a@b.c)"

    def test_emphasis_untouched(self, converter):
        assert converter.convert_text("*Citations:*\n_mode=short_") == "*Citations:*\n_mode=short_"


@pytest.mark.parametrize("value", ["", None])
def test_falsy_input_returned_as_is(value):
    assert convert_markdown_links(value) == value


def test_conversion_is_idempotent():
    once = convert_markdown_links("Go to [Warranty](https://grest.in/pages/warranty).")
    assert convert_markdown_links(once) == once
