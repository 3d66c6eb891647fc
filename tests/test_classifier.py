"""Tests for site classification and exemptions."""

from __future__ import annotations

import pytest

from siteguard import Classification, GuardConfig, ResourceMetadata, SiteClassifier
from siteguard.access import resource_path

from conftest import APP_CATALOG_URL, PUBLIC_URL, SENSITIVE_URL


class TestResourcePath:
    """resource_path normalisation."""

    def test_strips_query_and_fragment(self):
        assert resource_path("https://h/teams/B1/Page.aspx?x=1#top") == "/teams/b1/page.aspx"

    def test_bare_path(self):
        assert resource_path("/Teams/B1?q") == "/teams/b1"

    def test_empty(self):
        assert resource_path("") == ""


class TestClassify:
    """Tests for SiteClassifier.classify."""

    def setup_method(self):
        self.classifier = SiteClassifier(GuardConfig())

    def test_sensitive_team_site(self):
        assert self.classifier.classify(SENSITIVE_URL) == Classification.SENSITIVE

    def test_public_site_unclassified(self):
        assert self.classifier.classify(PUBLIC_URL) == Classification.UNCLASSIFIED

    @pytest.mark.parametrize(
        "address",
        [
            "https://contoso.sharepoint.com/TEAMS/B12345/",
            "https://contoso.sharepoint.com/teams/b12345?web=1",
            "https://contoso.sharepoint.com/teams/b",
            "https://contoso.sharepoint.com/teams/b/",
        ],
    )
    def test_case_trailing_slash_and_query_tolerated(self, address):
        assert self.classifier.classify(address) == Classification.SENSITIVE

    def test_pattern_in_query_only_does_not_match(self):
        address = "https://contoso.sharepoint.com/sites/public?next=/teams/b1"
        assert self.classifier.classify(address) == Classification.UNCLASSIFIED

    def test_marker_in_description(self):
        metadata = ResourceMetadata(description="Classification: PROTECTED B - handle with care")
        assert self.classifier.classify(PUBLIC_URL, metadata) == Classification.SENSITIVE

    def test_description_without_marker(self):
        metadata = ResourceMetadata(description="Team picnic planning")
        assert self.classifier.classify(PUBLIC_URL, metadata) == Classification.UNCLASSIFIED

    def test_missing_description(self):
        assert self.classifier.classify(PUBLIC_URL, ResourceMetadata()) == Classification.UNCLASSIFIED

    def test_custom_pattern(self):
        classifier = SiteClassifier(GuardConfig(sensitive_path_pattern=r"/sites/secret-"))
        assert classifier.classify("https://h/sites/secret-ops/") == Classification.SENSITIVE
        assert classifier.classify(SENSITIVE_URL) == Classification.UNCLASSIFIED


class TestExemption:
    """Administrative path exemption."""

    def test_app_catalog_is_exempt(self):
        assert SiteClassifier().is_exempt(APP_CATALOG_URL)

    def test_regular_site_not_exempt(self):
        assert not SiteClassifier().is_exempt(SENSITIVE_URL)

    def test_configured_exemption(self):
        classifier = SiteClassifier(GuardConfig(exempt_path_patterns=[r"/teams/b12345/_layouts/"]))
        assert classifier.is_exempt("https://h/teams/b12345/_layouts/15/settings.aspx")


class TestSiteAlias:
    """Site alias extraction."""

    def test_teams_alias(self):
        assert SiteClassifier.extract_site_alias(SENSITIVE_URL) == "b12345"

    def test_sites_alias_with_query(self):
        assert SiteClassifier.extract_site_alias("https://h/sites/B10001638?x=1") == "b10001638"

    def test_no_alias(self):
        assert SiteClassifier.extract_site_alias("https://contoso.sharepoint.com/") == ""
