"""Tests for settings ribbon parsing."""

from answer_bridge.formatting.ribbon import parse_ribbon


def test_parses_known_fields():
    ribbon = parse_ribbon("mode=short k=18 fallback=1 intent=Product tone=Upset")
    assert ribbon.fallback is True
    assert ribbon.intent == "product"
    assert ribbon.is_product_intent is True
    assert ribbon.tone == "upset"
    assert ribbon.fields["k"] == "18"


def test_empty_ribbon():
    ribbon = parse_ribbon(None)
    assert not ribbon
    assert ribbon.fallback is False
    assert ribbon.intent is None
    assert ribbon.tone == "neutral"


def test_first_occurrence_wins():
    assert parse_ribbon("fallback=0 fallback=1").fallback is False


def test_comma_separated_tokens():
    ribbon = parse_ribbon("intent=product,tone=upset")
    assert ribbon.intent == "product"
    assert ribbon.tone == "upset"


def test_keys_are_case_insensitive():
    assert parse_ribbon("Fallback=1").fallback is True


def test_raw_is_trimmed():
    assert parse_ribbon("  mode=short  ").raw == "mode=short"


def test_bracketed_ribbon():
    ribbon = parse_ribbon("[mode=short fallback=1]")
    assert ribbon.fields["mode"] == "short"
    assert ribbon.fallback is True


def test_trailing_sentence_punctuation():
    assert parse_ribbon("fallback=1.").fallback is True
    assert parse_ribbon("tone=upset; intent=product.").tone == "upset"


def test_parenthesized_intent():
    ribbon = parse_ribbon("(intent=product)")
    assert ribbon.intent == "product"
    assert ribbon.is_product_intent is True


def test_dotted_value_kept():
    assert parse_ribbon("model=gpt-4.1 k=18").fields["model"] == "gpt-4.1"
