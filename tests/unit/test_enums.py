"""Tests for cm_common.enums: wire codes and names both map to members."""

import pytest

from src.cm_common.enums import (
    ConsignmentStatus,
    DeliveryStatus,
    LegacyCouponPolicy,
    PriceConfidence,
    ReservationStatus,
)


class TestAllEnumsAreStr:
    def test_consignment_status_is_str(self) -> None:
        assert isinstance(ConsignmentStatus.SOLD, str)
        assert ConsignmentStatus.SOLD == "SOLD"

    def test_legacy_policy_from_setting(self) -> None:
        assert LegacyCouponPolicy("STRICT") is LegacyCouponPolicy.STRICT


class TestConsignmentStatusFromWire:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            (0, ConsignmentStatus.NOT_CONSIGNED),
            (1, ConsignmentStatus.PENDING),
            (2, ConsignmentStatus.CONSIGNING),
            (3, ConsignmentStatus.REJECTED),
            (4, ConsignmentStatus.SOLD),
            ("4", ConsignmentStatus.SOLD),
            ("sold", ConsignmentStatus.SOLD),
            (None, ConsignmentStatus.NOT_CONSIGNED),
        ],
    )
    def test_parses(self, raw: object, expected: ConsignmentStatus) -> None:
        assert ConsignmentStatus.from_wire(raw) is expected

    def test_unknown_code_raises(self) -> None:
        with pytest.raises(ValueError):
            ConsignmentStatus.from_wire(9)

    def test_bool_rejected(self) -> None:
        with pytest.raises(ValueError):
            ConsignmentStatus.from_wire(True)


class TestOtherStatuses:
    def test_delivery(self) -> None:
        assert DeliveryStatus.from_wire(1) is DeliveryStatus.DELIVERED
        assert DeliveryStatus.from_wire(None) is DeliveryStatus.NOT_DELIVERED

    def test_reservation_codes(self) -> None:
        assert ReservationStatus.from_wire(0) is ReservationStatus.PENDING
        assert ReservationStatus.from_wire("1") is ReservationStatus.APPROVED
        assert ReservationStatus.from_wire(2) is ReservationStatus.REJECTED
        assert ReservationStatus.from_wire(3) is ReservationStatus.CANCELLED

    def test_reservation_terminal(self) -> None:
        assert not ReservationStatus.PENDING.is_terminal
        assert ReservationStatus.APPROVED.is_terminal
        assert ReservationStatus.CANCELLED.is_terminal


class TestPriceConfidence:
    def test_ordering(self) -> None:
        assert (
            PriceConfidence.PRELOADED
            > PriceConfidence.ZONE_LABEL
            > PriceConfidence.EXPLICIT_FIELD
            > PriceConfidence.ITEM_PRICE
        )
