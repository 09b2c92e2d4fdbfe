"""Tests for the budget tier table."""

from decimal import Decimal

from expense_router.routing import BudgetTierTable


class TestBudgetTierTable:
    """Test amount matching against active tiers."""

    def test_match_closed_range(self, org):
        small = org.tier("0", "999", {2})
        table = org.tier_table()

        assert table.match(Decimal("0")) == small
        assert table.match(Decimal("500")) == small
        assert table.match(Decimal("999")) == small
        assert table.match(Decimal("999.01")) is None

    def test_match_picks_correct_tier(self, org):
        org.tier("0", "999.99", {3})
        medium = org.tier("1000", "19999.99", {3, 2})
        large = org.tier("20000", "1000000", {3, 2, 1})
        table = org.tier_table()

        assert table.match(Decimal("5000")) == medium
        assert table.match(Decimal("20000")) == large

    def test_gap_between_tiers(self, org):
        org.tier("0", "999", {3})
        org.tier("1000", "1999", {2})

        assert org.tier_table().match(Decimal("999.50")) is None

    def test_inactive_tiers_ignored(self, org):
        org.tier("0", "999", {2}, is_active=False)
        table = org.tier_table()

        assert len(table) == 0
        assert table.match(Decimal("500")) is None

    def test_overlap_resolves_to_lower_range(self, org):
        wide = org.tier("0", "5000", {1}, name="wide")
        org.tier("1000", "2000", {2}, name="narrow")

        assert org.tier_table().match(Decimal("1500")) == wide

    def test_overlapping_pairs(self, org):
        a = org.tier("0", "1000", {3}, name="a")
        b = org.tier("500", "1500", {2}, name="b")
        org.tier("2000", "3000", {1}, name="c")

        assert org.tier_table().overlapping_pairs() == [(a, b)]

    def test_touching_ranges_overlap(self, org):
        a = org.tier("0", "1000", {3}, name="a")
        b = org.tier("1000", "2000", {2}, name="b")

        assert org.tier_table().overlapping_pairs() == [(a, b)]

    def test_routing_levels_most_junior_first(self, org):
        tier = org.tier("0", "1000", {1, 3, 2})

        assert tier.routing_levels() == [3, 2, 1]

    def test_version_ignores_input_order(self, org):
        org.tier("0", "999", {3})
        org.tier("1000", "1999", {2})

        assert BudgetTierTable(org.tiers).version == BudgetTierTable(reversed(org.tiers)).version
