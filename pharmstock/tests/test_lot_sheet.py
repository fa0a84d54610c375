import pytest

from pharmstock.services.lot_sheet import LotRow, LotSheet

CODE = "4987123456780"


def make_sheet(*rows):
    return LotSheet(product_code=CODE, rows=list(rows))


def test_add_row_does_not_rebalance():
    sheet = make_sheet(LotRow(quantity=10, primary=True))

    sheet.add_row(quantity=4, lot_number="L2")

    assert [r.quantity for r in sheet.rows] == [10, 4]
    assert sheet.total == 14


def test_remove_row_does_not_rebalance():
    sheet = make_sheet(
        LotRow(quantity=10, primary=True),
        LotRow(quantity=4, lot_number="L2"),
        LotRow(quantity=1, lot_number="L3"),
    )

    removed = sheet.remove_row(1)

    assert removed.lot_number == "L2"
    assert [r.quantity for r in sheet.rows] == [10, 1]
    assert sheet.total == 11


def test_primary_row_cannot_be_removed():
    sheet = make_sheet(LotRow(quantity=10, primary=True))
    with pytest.raises(ValueError):
        sheet.remove_row(0)


def test_remove_out_of_range():
    sheet = make_sheet(LotRow(primary=True))
    with pytest.raises(IndexError):
        sheet.remove_row(3)


def test_total_ignores_blank_quantities():
    sheet = make_sheet(LotRow(quantity=None, primary=True), LotRow(quantity=2.5))
    assert sheet.total == 2.5


def test_seed_only_touches_primary_row():
    sheet = make_sheet(LotRow(quantity=1, primary=True), LotRow(quantity=3, lot_number="L"))

    sheet.seed(7.125)

    assert [r.quantity for r in sheet.rows] == [7.125, 3]


def test_sheet_without_primary_promotes_first_row():
    sheet = make_sheet(LotRow(quantity=1), LotRow(quantity=2))
    sheet.seed(5)
    assert sheet.rows[0].primary
    assert sheet.rows[0].quantity == 5


def test_fill_from_scan_uses_first_blank_row():
    sheet = make_sheet(
        LotRow(quantity=5, expiry_date="271231", lot_number="A", primary=True),
        LotRow(quantity=2),
    )

    row = sheet.fill_from_scan(expiry_date="280131", lot_number="B")

    assert row is sheet.rows[1]
    assert (row.expiry_date, row.lot_number, row.quantity) == ("280131", "B", 2)
    assert len(sheet.rows) == 2


def test_fill_from_scan_appends_when_no_blank_row():
    sheet = make_sheet(LotRow(quantity=5, lot_number="A", primary=True))

    row = sheet.fill_from_scan(expiry_date="280131", lot_number="B")

    assert len(sheet.rows) == 2
    assert row.quantity is None
    assert not row.primary


def test_fill_from_scan_keeps_existing_expiry_when_scan_has_none():
    sheet = make_sheet(LotRow(primary=True))
    row = sheet.fill_from_scan(lot_number="B")
    assert (row.expiry_date, row.lot_number) == ("", "B")
