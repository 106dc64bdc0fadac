"""Tests for retrieval allowlist resolution."""

import pytest

from answer_bridge.allowlist import (
    PRESETS,
    allowlist_for_preset,
    extract_site_path,
    resolve_allowlist,
)


class TestPresets:
    """Test preset lookup."""

    def test_shipping_preset(self):
        assert allowlist_for_preset("shipping") == "/policies/shipping/policy,/policies/refund/policy"

    def test_all_preset_is_unscoped(self):
        assert allowlist_for_preset("all") == ""

    def test_preset_is_case_insensitive(self):
        assert allowlist_for_preset("  SHIPPING ") == PRESETS["shipping"]

    @pytest.mark.parametrize("preset", ["", None, "unknown", "faq"])
    def test_unknown_preset_falls_back_to_faqs(self, preset):
        assert allowlist_for_preset(preset) == "/pages/faqs"

    def test_warranty_preset_lists_policies(self):
        paths = PRESETS["faqs_warranty_policies"].split(",")
        assert paths[0] == "/pages/faqs"
        assert "/pages/warranty" in paths
        assert "/policies/terms/of/service" in paths


class TestExtractSitePath:
    """Test URL path extraction from mention text."""

    def test_query_string_dropped(self):
        text = "is this in stock https://grest.in/products/iphone-13?variant=1"
        assert extract_site_path(text) == "/products/iphone-13"

    def test_slack_wrapped_link(self):
        text = "see <https://www.grest.in/pages/warranty|warranty page>"
        assert extract_site_path(text) == "/pages/warranty"

    def test_other_domain_ignored(self):
        assert extract_site_path("https://example.com/products/x") is None

    def test_no_url(self):
        assert extract_site_path("what is the return window?") is None
        assert extract_site_path(None) is None


class TestResolveAllowlist:
    """Test precedence between URL, override and preset."""

    def test_preset_used_without_override_or_url(self):
        result = resolve_allowlist("shipping", "", "<@UBOT> when will it ship?")
        assert result == "/policies/shipping/policy,/policies/refund/policy"

    def test_override_beats_preset(self):
        assert resolve_allowlist("faqs", "/pages/custom", "hello") == "/pages/custom"

    def test_blank_override_ignored(self):
        assert resolve_allowlist("faqs", "   ", "hello") == "/pages/faqs"

    def test_url_beats_override_and_preset(self):
        text = "<@UBOT> tell me about https://grest.in/products/iphone-14?utm=x"
        assert resolve_allowlist("shipping", "/pages/custom", text) == "/products/iphone-14"
