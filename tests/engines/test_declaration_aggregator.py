"""
Tests for declaration row grouping and the GTIP x type summary.

Covers:
- Group key (product id or code, type, length, GTIP)
- Representative unit price and compliance from the first line
- Row ordering: GTIP, type (Turkish collation), numeric length, code
- Summary amount = consumed quantity * unit price
- Grand total equals the sum over all rows
"""

from decimal import Decimal

from customs_engines.declaration import DeclarationAggregator, build_summary
from customs_engines.types import (
    ComplianceSnapshot,
    DeclaredLine,
    LineAllocation,
    MatchRule,
    Measures,
    ResolvedAttributes,
    SummaryTotals,
    TypeSource,
    WeightSource,
)
from tests.builders import d, make_invoice_line


def declared(
    line_id,
    quantity,
    *,
    unit_price="1",
    product_id="p1",
    product_code="",
    product_type="Profil",
    length=None,
    gtip="7604.10",
    net="0",
    gross="0",
    boxes="0",
    compliance=None,
):
    line = make_invoice_line(
        line_id, quantity, unit_price=unit_price,
        product_id=product_id, product_code=product_code, gtip_code=gtip,
    )
    measures = Measures(
        quantity=d(quantity), net_weight=d(net), gross_weight=d(gross), packages_count=d(boxes),
    )
    return DeclaredLine(
        line=line,
        attributes=ResolvedAttributes(
            product_type=product_type,
            type_source=TypeSource.STRUCTURED,
            length_value=length,
        ),
        allocation=LineAllocation(
            line_id=line_id,
            rule=MatchRule.PRODUCT_ID,
            bucket_key=f"pid:{product_id}",
            available_quantity=d(quantity),
            consumed=measures,
        ),
        measures=measures,
        weight_source=WeightSource.PACKING,
        gtip_code=gtip,
        compliance=compliance or ComplianceSnapshot(),
    )


def _aggregate(lines):
    return DeclarationAggregator().aggregate(declared_lines=lines)


class TestGrouping:
    """Lines sharing a group key merge into one row."""

    def test_same_key_merges(self):
        first_compliance = ComplianceSnapshot(candidate_id="c1", tse_status="Var")
        rows, _ = _aggregate([
            declared("l1", 10, unit_price="2.5", net=5, compliance=first_compliance),
            declared("l2", 5, unit_price="9", net="2.5",
                     compliance=ComplianceSnapshot(candidate_id="c2")),
        ])

        (row,) = rows
        assert row.quantity == Decimal("15")
        assert row.net_weight == Decimal("7.5")
        assert row.unit_price == Decimal("2.5")
        assert row.compliance == first_compliance
        assert row.line_ids == ("l1", "l2")
        assert row.sequence == 1

    def test_different_length_splits(self):
        rows, _ = _aggregate([
            declared("l1", 1, length=Decimal("6000")),
            declared("l2", 1, length=Decimal("3000")),
        ])
        assert len(rows) == 2

    def test_text_length_trimmed_for_grouping(self):
        rows, _ = _aggregate([
            declared("l1", 1, length="6 m"),
            declared("l2", 1, length=" 6 m "),
        ])
        assert len(rows) == 1

    def test_code_identity_when_no_product_id(self):
        rows, _ = _aggregate([
            declared("l1", 1, product_id=None, product_code="abc 1"),
            declared("l2", 1, product_id=None, product_code="ABC  1"),
            declared("l3", 1, product_id=None, product_code="ABC-1"),
        ])
        assert sorted(len(r.line_ids) for r in rows) == [1, 2]

    def test_different_gtip_splits(self):
        rows, _ = _aggregate([
            declared("l1", 1, gtip="7604.10"),
            declared("l2", 1, gtip="7610.10"),
        ])
        assert [r.gtip_code for r in rows] == ["7604.10", "7610.10"]


class TestOrdering:
    """Rows sort by GTIP, type, numeric length and product code."""

    def test_full_ordering(self):
        rows, _ = _aggregate([
            declared("l1", 1, product_id="p1", gtip="7610.10", product_type="Profil"),
            declared("l2", 1, product_id="p2", gtip="7604.10", product_type="Şerit"),
            declared("l3", 1, product_id="p3", gtip="7604.10", product_type="Sac",
                     length="uzun"),
            declared("l4", 1, product_id="p4", gtip="7604.10", product_type="Sac",
                     length=Decimal("6000")),
            declared("l5", 1, product_id="p5", gtip="7604.10", product_type="Sac",
                     length="900"),
        ])

        assert [r.line_ids[0] for r in rows] == ["l5", "l4", "l3", "l2", "l1"]
        assert [r.sequence for r in rows] == [1, 2, 3, 4, 5]

    def test_product_code_breaks_ties(self):
        rows, _ = _aggregate([
            declared("l1", 1, product_id="p1", product_code="B-2"),
            declared("l2", 1, product_id="p2", product_code="A-9"),
        ])
        assert [r.product_code for r in rows] == ["A-9", "B-2"]


class TestSummary:
    """GTIP x type summary with totals."""

    def setup_method(self):
        self.lines = [
            declared("l1", 10, unit_price="2", product_type="Profil", net=4, gross=5, boxes=1),
            declared("l2", 5, unit_price="3", product_type="Profil", product_id="p2", net=2),
            declared("l3", 2, unit_price="10", product_type="Çubuk", product_id="p3"),
            declared("l4", 1, unit_price="7", product_type="Profil", gtip="7610.10",
                     product_id="p4", gross=1),
        ]
        self.rows, self.summary = _aggregate(self.lines)

    def test_groups_sorted(self):
        assert [g.gtip_code for g in self.summary.groups] == ["7604.10", "7610.10"]
        assert [t.product_type for t in self.summary.groups[0].types] == ["Çubuk", "Profil"]

    def test_type_totals(self):
        profil = self.summary.find("7604.10", "Profil")
        assert profil == SummaryTotals(
            quantity=d(15), amount=d(35), net_weight=d(6), gross_weight=d(5),
            packages_count=d(1),
        )
        assert self.summary.find("7604.10", "Yok") is None

    def test_gtip_total(self):
        assert self.summary.groups[0].total.quantity == Decimal("17")
        assert self.summary.groups[0].total.amount == Decimal("55")

    def test_grand_total_equals_rows(self):
        grand = self.summary.grand_total
        assert grand.quantity == sum(r.quantity for r in self.rows)
        assert grand.net_weight == sum(r.net_weight for r in self.rows)
        assert grand.gross_weight == sum(r.gross_weight for r in self.rows)
        assert grand.packages_count == sum(r.packages_count for r in self.rows)
        assert grand.amount == sum(r.amount for r in self.rows)
        assert grand.amount == Decimal("62")

    def test_amount_uses_each_line_price(self):
        # Rows show the first unit price but price every merged line.
        lines = [
            declared("l1", 1, unit_price="2"),
            declared("l2", 1, unit_price="4"),
        ]
        rows, summary = _aggregate(lines)
        assert len(rows) == 1
        assert rows[0].unit_price == Decimal("2")
        assert rows[0].amount == Decimal("6")
        assert sum(r.amount for r in rows) == summary.grand_total.amount

    def test_empty(self):
        rows, summary = _aggregate([])
        assert rows == ()
        assert summary.groups == ()
        assert summary.grand_total == SummaryTotals()
        assert build_summary([]).grand_total.quantity == 0
