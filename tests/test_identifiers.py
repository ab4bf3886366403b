"""Tests for dataset id splitting."""

import pytest

from dbt_dispatch.identifiers import DatasetParts, is_namespace, split_dataset_id


class TestSplitDatasetId:
    """Tests for split_dataset_id."""

    def test_simple_id(self) -> None:
        assert split_dataset_id("shopify__acmewidgets") == DatasetParts(
            parent="shopify", client="acmewidgets"
        )

    def test_namespace_with_single_underscores(self) -> None:
        parts = split_dataset_id("google_analytics_4__store")
        assert parts is not None
        assert parts.parent == "google_analytics_4"
        assert parts.client == "store"

    def test_tenant_may_contain_uppercase(self) -> None:
        parts = split_dataset_id("google_analytics_4__storeA")
        assert parts == DatasetParts("google_analytics_4", "storeA")

    def test_leftmost_separator_wins(self) -> None:
        """Later separators belong to the tenant."""
        assert split_dataset_id("shopify__acme__eu") == DatasetParts("shopify", "acme__eu")

    def test_triple_underscore(self) -> None:
        assert split_dataset_id("shopify___acme") == DatasetParts("shopify", "_acme")

    def test_skips_separator_leaving_empty_namespace(self) -> None:
        """A leading "__" is not a separator when a later one gives a valid split."""
        assert split_dataset_id("___acme") == DatasetParts("_", "acme")
        assert split_dataset_id("__a__b") == DatasetParts("__a", "b")

    def test_skips_separator_leaving_invalid_tenant(self) -> None:
        assert split_dataset_id("shopify__acme-eu__x") is None
        assert split_dataset_id("a__B__c") == DatasetParts("a", "B__c")

    @pytest.mark.parametrize(
        "identifier",
        [
            "",
            "missingSeparator",
            "shopify_acme",
            "__acme",
            "shopify__",
            "__",
            "Shopify__acme",
            "shopify__acme-widgets",
            "shopify__acme widgets",
            "shopify__acmé",
            "shop.ify__acme",
        ],
    )
    def test_no_match(self, identifier: str) -> None:
        assert split_dataset_id(identifier) is None

    def test_non_string_is_no_match(self) -> None:
        assert split_dataset_id(None) is None  # type: ignore[arg-type]


class TestIsNamespace:
    """Tests for is_namespace."""

    def test_valid(self) -> None:
        assert is_namespace("hdyhau_knocommerce")
        assert is_namespace("google_analytics_4")

    def test_invalid(self) -> None:
        assert not is_namespace("")
        assert not is_namespace("Shopify")
        assert not is_namespace("shop-ify")
