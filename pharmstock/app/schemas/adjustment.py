from datetime import date

from pydantic import Field

from pharmstock.app.schemas.ledger import AdjustmentSnapshot, CamelModel
from pharmstock.services.adjustment import PackageBalance
from pharmstock.services.lot_sheet import LotRow, LotSheet
from pharmstock.services.reconciliation import StockCalculation, format_quantity


# ---------- Lot / péremption ----------
class LotRowModel(CamelModel):
    quantity: float | None = None
    expiry_date: str = ""
    lot_number: str = ""
    primary: bool = False


class LotSheetModel(CamelModel):
    product_code: str
    rows: list[LotRowModel] = Field(default_factory=list)
    total: float = 0.0  # READ ONLY : recalculé, jamais lu en entrée

    def to_sheet(self) -> LotSheet:
        return LotSheet(
            product_code=self.product_code,
            rows=[
                LotRow(
                    quantity=r.quantity,
                    expiry_date=r.expiry_date,
                    lot_number=r.lot_number,
                    primary=r.primary,
                )
                for r in self.rows
            ],
        )

    @classmethod
    def from_sheet(cls, sheet: LotSheet) -> "LotSheetModel":
        return cls(
            product_code=sheet.product_code,
            rows=[
                LotRowModel(
                    quantity=r.quantity,
                    expiry_date=r.expiry_date,
                    lot_number=r.lot_number,
                    primary=r.primary,
                )
                for r in sheet.rows
            ],
            total=sheet.total,
        )


def sheets_from_models(models: list[LotSheetModel]) -> dict[str, LotSheet]:
    return {m.product_code: m.to_sheet() for m in models}


def sheets_to_models(sheets: dict[str, LotSheet]) -> list[LotSheetModel]:
    return [LotSheetModel.from_sheet(s) for s in sheets.values()]


# ---------- Calcul ----------
class StockCalculationRead(CamelModel):
    product_code: str
    previous_day_stock: float | None = None  # pleine précision
    display: str
    error: str | None = None

    @classmethod
    def from_calculation(cls, calc: StockCalculation) -> "StockCalculationRead":
        return cls(
            product_code=calc.product_code,
            previous_day_stock=calc.previous_day_stock,
            display=calc.display,
            error=calc.error.value if calc.error else None,
        )


class PackageBalanceRead(CamelModel):
    package_key: str
    today_ending_balance: float
    yesterday_ending_balance: float

    @classmethod
    def from_balance(cls, b: PackageBalance) -> "PackageBalanceRead":
        return cls(
            package_key=b.package_key,
            today_ending_balance=b.today_ending_balance,
            yesterday_ending_balance=b.yesterday_ending_balance,
        )


class AdjustmentView(CamelModel):
    yj_code: str
    snapshot: AdjustmentSnapshot
    inventory_date: date
    yesterdays_total: float
    package_balances: list[PackageBalanceRead]
    jan_unit_names: dict[str, str]
    calculations: list[StockCalculationRead]
    lot_sheets: list[LotSheetModel]


class CalculateRequest(CamelModel):
    snapshot: AdjustmentSnapshot
    physical_stock: dict[str, float | str | None] = Field(default_factory=dict)
    active_precomp_ids: list[int] = Field(default_factory=list)
    lot_sheets: list[LotSheetModel] = Field(default_factory=list)


class CalculateResponse(CamelModel):
    calculations: list[StockCalculationRead]
    active_precomp_total: float
    active_precomp_total_display: str
    lot_sheets: list[LotSheetModel]

    @classmethod
    def build(cls, calculations, precomp_total: float, sheets) -> "CalculateResponse":
        return cls(
            calculations=[StockCalculationRead.from_calculation(c) for c in calculations],
            active_precomp_total=precomp_total,
            active_precomp_total_display=format_quantity(precomp_total),
            lot_sheets=sheets_to_models(sheets),
        )


# ---------- Saisie lots ----------
class AddLotRowRequest(CamelModel):
    sheet: LotSheetModel


class RemoveLotRowRequest(CamelModel):
    sheet: LotSheetModel
    index: int = Field(ge=0)


class ScanRequest(CamelModel):
    barcode: str = Field(min_length=1)
    lot_sheets: list[LotSheetModel] = Field(default_factory=list)


class ScanResponse(CamelModel):
    product_code: str
    expiry_date: str
    lot_number: str
    lot_sheets: list[LotSheetModel]


# ---------- Enregistrement ----------
class SaveRequest(CamelModel):
    inventory_date: date
    yj_code: str = Field(min_length=1)
    snapshot: AdjustmentSnapshot
    lot_sheets: list[LotSheetModel] = Field(default_factory=list)


class SaveResponse(CamelModel):
    message: str
    inventory_data: dict[str, float]
