"""
Tests for DeclarationSelector against an in-memory SQLite database.

Covers:
- Order header with supplier country, unknown order
- Invoice lines: catalog-linked only, invoice order, NULL numerics as zero,
  GTIP and product type joined
- Packing lines ordered by list then line number
- Attribute values fetched in chunks
- Compliance records joined with the type name
- Database failures wrapped as DeclarationSourceError
- The selector drives the service end to end
"""

from contextlib import nullcontext
from dataclasses import replace
from datetime import date, datetime, timezone
from decimal import Decimal
from uuid import uuid4

import pytest
from sqlalchemy import text
from sqlalchemy.exc import OperationalError

from customs_config import get_active_config
from customs_config.schema import FetchSettings
from customs_kernel.domain.clock import DeterministicClock
from customs_kernel.exceptions import DeclarationSourceError
from customs_kernel.models import (
    Gtip,
    Order,
    OrderItem,
    PackingList,
    PackingListLine,
    Product,
    ProductAttribute,
    ProductAttributeValue,
    ProductExtraAttribute,
    ProductType,
    ProductTypeCompliance,
    Supplier,
)
from customs_kernel.selectors import DeclarationSelector
from customs_kernel.selectors.declaration_selector import chunked
from customs_services import DeclarationService


class SeededOrder:
    """One order with two catalog products, packing and attribute data."""

    def __init__(self, session):
        self.supplier = Supplier(id=uuid4(), name="Guangdong Alu", country="CN")
        self.profil = ProductType(id=uuid4(), name="Profil")
        self.gtip = Gtip(id=uuid4(), code="7604.21")
        self.p1 = Product(id=uuid4(), code="ALU-1", name="Kapı profili",
                          gtip_id=self.gtip.id, product_type_id=self.profil.id)
        self.p2 = Product(id=uuid4(), code="ALU-2", name="Pencere profili")
        self.order = Order(id=uuid4(), name="PO-17", supplier_id=self.supplier.id)

        self.item_second = OrderItem(id=uuid4(), order_id=self.order.id, product_id=self.p2.id,
                                     quantity=None, unit_price=Decimal("4.5"), position=2)
        self.item_first = OrderItem(id=uuid4(), order_id=self.order.id, product_id=self.p1.id,
                                    quantity=Decimal("150"), unit_price=Decimal("2"), position=1)
        self.item_free_text = OrderItem(id=uuid4(), order_id=self.order.id, product_id=None,
                                        quantity=Decimal("3"), unit_price=Decimal("1"),
                                        position=3)

        self.list_late = PackingList(id=uuid4(), order_id=self.order.id, name="PL-2",
                                     created_at=datetime(2024, 5, 2, tzinfo=timezone.utc))
        self.list_early = PackingList(id=uuid4(), order_id=self.order.id, name="PL-1",
                                      created_at=datetime(2024, 5, 1, tzinfo=timezone.utc))
        self.packing = [
            PackingListLine(id=uuid4(), packing_list_id=self.list_late.id, line_no=1,
                            product_name_raw="ALU-2", quantity=Decimal("5")),
            PackingListLine(id=uuid4(), packing_list_id=self.list_early.id, line_no=2,
                            product_id=self.p1.id, quantity=Decimal("50"),
                            net_weight=Decimal("25"), gross_weight=None),
            PackingListLine(id=uuid4(), packing_list_id=self.list_early.id, line_no=1,
                            product_id=self.p1.id, quantity=Decimal("100"),
                            net_weight=Decimal("50"), gross_weight=Decimal("55"),
                            packages_count=Decimal("6")),
        ]

        self.type_attr = ProductAttribute(id=uuid4(), name="Tip")
        self.length_attr = ProductAttribute(id=uuid4(), name="Uzunluk")
        self.values = [
            ProductAttributeValue(id=uuid4(), product_id=self.p1.id,
                                  attribute_id=self.type_attr.id, value_text="Kapı Profili"),
            ProductAttributeValue(id=uuid4(), product_id=self.p2.id,
                                  attribute_id=self.length_attr.id,
                                  value_number=Decimal("6000")),
        ]
        self.extras = [
            ProductExtraAttribute(id=uuid4(), product_id=self.p2.id, name="Ağırlık",
                                  value_text="0,8"),
        ]
        self.compliance = [
            ProductTypeCompliance(id=uuid4(), product_type_id=self.profil.id, country="CN",
                                  tse_status="Var", tareks_no="TRK-9",
                                  valid_from=date(2024, 1, 1), valid_to=date(2024, 12, 31)),
        ]

        session.add_all([
            self.supplier, self.profil, self.gtip, self.p1, self.p2, self.order,
            self.item_second, self.item_first, self.item_free_text,
            self.list_late, self.list_early, *self.packing,
            self.type_attr, self.length_attr, *self.values, *self.extras,
            *self.compliance,
        ])
        session.flush()

    @property
    def order_id(self) -> str:
        return str(self.order.id)


@pytest.fixture
def seeded(sqlite_session):
    return SeededOrder(sqlite_session)


@pytest.fixture
def selector(sqlite_session):
    return DeclarationSelector(sqlite_session)


class TestOrderHeader:

    def test_header_with_country(self, selector, seeded):
        header = selector.get_order_header(seeded.order_id)

        assert header.order_id == seeded.order_id
        assert header.supplier_country == "CN"
        assert header.order_name == "PO-17"

    def test_unknown_order(self, selector, seeded):
        assert selector.get_order_header(str(uuid4())) is None


class TestInvoiceLines:

    def test_catalog_linked_lines_in_position_order(self, selector, seeded):
        lines = selector.get_invoice_lines(seeded.order_id)

        assert [line.line_id for line in lines] == [
            str(seeded.item_first.id), str(seeded.item_second.id),
        ]

    def test_catalog_fields_joined(self, selector, seeded):
        first, second = selector.get_invoice_lines(seeded.order_id)

        assert first.product_code == "ALU-1"
        assert first.product_id == str(seeded.p1.id)
        assert first.gtip_code == "7604.21"
        assert first.product_type_id == str(seeded.profil.id)
        assert first.product_type_name == "Profil"
        assert first.quantity == Decimal("150")

        assert second.gtip_code is None
        assert second.product_type_id is None
        assert second.quantity == Decimal("0")
        assert second.unit_price == Decimal("4.5")


class TestPackingLines:

    def test_ordered_by_list_then_line(self, selector, seeded):
        lines = selector.get_packing_lines(seeded.order_id)

        assert [line.quantity for line in lines] == [
            Decimal("100"), Decimal("50"), Decimal("5"),
        ]
        assert lines[0].packing_list_id == str(seeded.list_early.id)
        assert lines[2].product_id is None
        assert lines[2].product_name_raw == "ALU-2"

    def test_null_weights_are_zero(self, selector, seeded):
        lines = selector.get_packing_lines(seeded.order_id)
        assert lines[1].gross_weight == Decimal("0")
        assert lines[1].packages_count == Decimal("0")


class TestAttributes:

    def test_definitions(self, selector, seeded):
        names = {d.name for d in selector.get_attribute_definitions()}
        assert names == {"Tip", "Uzunluk"}

    def test_structured_values_chunked(self, sqlite_session, seeded):
        selector = DeclarationSelector(sqlite_session, chunk_size=1)
        product_ids = [str(seeded.p1.id), str(seeded.p2.id), str(uuid4())]

        values = selector.get_structured_attribute_values(product_ids)

        by_product = {v.product_id: v for v in values}
        assert by_product[str(seeded.p1.id)].value == "Kapı Profili"
        assert by_product[str(seeded.p1.id)].attribute_name == "Tip"
        assert by_product[str(seeded.p2.id)].value == Decimal("6000")

    def test_extra_values(self, selector, seeded):
        (extra,) = selector.get_extra_attribute_values([str(seeded.p2.id)])

        assert extra.name == "Ağırlık"
        assert extra.value == "0,8"

    def test_no_product_ids(self, selector, seeded):
        assert selector.get_structured_attribute_values([]) == []

    def test_chunked(self):
        assert list(chunked(["a", "b", "c"], 2)) == [["a", "b"], ["c"]]
        with pytest.raises(ValueError):
            list(chunked(["a"], 0))

    def test_invalid_chunk_size(self, sqlite_session):
        with pytest.raises(ValueError):
            DeclarationSelector(sqlite_session, chunk_size=0)


class TestCompliance:

    def test_joined_with_type_name(self, selector, seeded):
        (candidate,) = selector.get_compliance_candidates()

        assert candidate.product_type_id == str(seeded.profil.id)
        assert candidate.product_type_name == "Profil"
        assert candidate.country == "CN"
        assert candidate.tareks_no == "TRK-9"
        assert candidate.report_no == ""
        assert candidate.valid_to == date(2024, 12, 31)


class FailingSession:
    """Session stand-in whose every query fails."""

    def begin_nested(self):
        return nullcontext()

    def execute(self, *args, **kwargs):
        raise OperationalError("SELECT 1", {}, Exception("server closed the connection"))


class BrokenPackingSession:
    """Real session whose packing list query hits a missing table."""

    def __init__(self, session):
        self._session = session
        self.savepoints = 0

    def begin_nested(self):
        self.savepoints += 1
        return self._session.begin_nested()

    def execute(self, statement, *args, **kwargs):
        if "packing_list_lines" in str(statement):
            return self._session.execute(text("SELECT line_no FROM packing_list_lines_gone"))
        return self._session.execute(statement, *args, **kwargs)


class TestFailures:

    @pytest.mark.parametrize("fetch, dataset", [
        (lambda s: s.get_invoice_lines(str(uuid4())), "invoice_lines"),
        (lambda s: s.get_packing_lines(str(uuid4())), "packing_lines"),
        (lambda s: s.get_attribute_definitions(), "attribute_definitions"),
        (lambda s: s.get_structured_attribute_values(["p1"]), "attribute_values"),
        (lambda s: s.get_extra_attribute_values(["p1"]), "extra_attributes"),
        (lambda s: s.get_compliance_candidates(), "compliance"),
    ])
    def test_wrapped(self, fetch, dataset, captured_logs):
        selector = DeclarationSelector(FailingSession())

        with pytest.raises(DeclarationSourceError) as exc_info:
            fetch(selector)

        assert exc_info.value.dataset == dataset
        assert "server closed the connection" in exc_info.value.reason
        failures = [r for r in captured_logs() if r["message"] == "declaration_fetch_failed"]
        assert failures[0]["dataset"] == dataset

    def test_later_datasets_load_after_failure(self, sqlite_session, seeded):
        session = BrokenPackingSession(sqlite_session)
        selector = DeclarationSelector(session)

        with pytest.raises(DeclarationSourceError) as exc_info:
            selector.get_packing_lines(seeded.order_id)

        assert exc_info.value.dataset == "packing_lines"
        assert {d.name for d in selector.get_attribute_definitions()} == {"Tip", "Uzunluk"}
        (candidate,) = selector.get_compliance_candidates()
        assert candidate.tareks_no == "TRK-9"
        assert session.savepoints == 3

    def test_service_degrades_only_failed_dataset(self, sqlite_session, seeded):
        service = DeclarationService(
            DeclarationSelector(BrokenPackingSession(sqlite_session)),
            get_active_config(),
            DeterministicClock(),
        )

        result = service.build_declaration(seeded.order_id)

        assert result.degraded_datasets == ("packing_lines",)
        rows = {r.product_code: r for r in result.rows}
        assert rows["ALU-1"].product_type == "Kapı Profili"
        assert rows["ALU-1"].compliance.tse_status == "Var"
        assert rows["ALU-2"].length_value == Decimal("6000")



class TestServiceOverDatabase:
    """The selector as the service's data source."""

    def test_declaration_from_database(self, sqlite_session, seeded):
        service = DeclarationService(
            DeclarationSelector(sqlite_session),
            get_active_config(),
            DeterministicClock(),
        )

        result = service.build_declaration(seeded.order_id)

        assert result.degraded_datasets == ()
        assert result.unmatched_line_ids == ()
        rows = {r.product_code: r for r in result.rows}
        assert rows["ALU-1"].quantity == Decimal("150")
        assert rows["ALU-1"].net_weight == Decimal("75")
        assert rows["ALU-1"].product_type == "Kapı Profili"
        assert rows["ALU-1"].compliance.tse_status == "Var"
        assert rows["ALU-2"].length_value == Decimal("6000")
        assert rows["ALU-2"].gtip_code == "Belirlenmedi"

    def test_for_session_uses_configured_chunk_size(self, sqlite_session, seeded):
        config = replace(get_active_config(), fetch=FetchSettings(chunk_size=1))

        service = DeclarationService.for_session(sqlite_session, config, DeterministicClock())

        assert service._source.chunk_size == 1
        result = service.build_declaration(seeded.order_id)
        assert {r.product_code for r in result.rows} == {"ALU-1", "ALU-2"}
