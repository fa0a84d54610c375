from __future__ import annotations

import logging
from datetime import date

from fastapi import APIRouter, Depends, HTTPException

from pharmstock.app.api.deps import get_ledger_client, get_today
from pharmstock.app.schemas.adjustment import (
    AddLotRowRequest,
    AdjustmentView,
    CalculateRequest,
    CalculateResponse,
    LotSheetModel,
    PackageBalanceRead,
    RemoveLotRowRequest,
    SaveRequest,
    SaveResponse,
    ScanRequest,
    ScanResponse,
    StockCalculationRead,
    sheets_from_models,
    sheets_to_models,
)
from pharmstock.services import adjustment
from pharmstock.services.gs1 import parse_gs1_128
from pharmstock.services.ledger_client import LedgerApiClient, LedgerApiError
from pharmstock.services.lot_sheet import LotSheet

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/inventory-adjustment")


# ---------- Helpers ----------
def _remote_failure(exc: LedgerApiError) -> HTTPException:
    return HTTPException(status_code=502, detail=exc.message)


# ---------- Endpoints ----------
@router.get("/{yj_code}", response_model=AdjustmentView)
def load_adjustment_view(
    yj_code: str,
    client: LedgerApiClient = Depends(get_ledger_client),
    today: date = Depends(get_today),
):
    """
    Chargement de l'écran d'ajustement d'inventaire pour un code YJ.
    - aucune précomposition cochée, comptages physiques vides
    - échec de l'API registre => 502, rien n'est affiché
    """
    yj_code = yj_code.strip()
    if not yj_code:
        raise HTTPException(status_code=400, detail="yjCode is required")

    try:
        snapshot = client.get_adjustment_data(yj_code)
    except LedgerApiError as exc:
        raise _remote_failure(exc)

    try:
        unit_map = client.get_unit_map()
    except LedgerApiError as exc:
        # écran utilisable sans table d'unités : repli sur l'unité YJ
        logger.warning("unit map unavailable, falling back to YJ unit names: %s", exc.message)
        unit_map = {}

    results = adjustment.reverse_calculate(snapshot, {}, [], today)
    sheets = adjustment.reseed_lot_sheets(adjustment.initial_lot_sheets(snapshot), results)

    return AdjustmentView(
        yj_code=yj_code,
        snapshot=snapshot,
        inventory_date=adjustment.default_inventory_date(today),
        yesterdays_total=adjustment.yesterdays_total(snapshot),
        package_balances=[
            PackageBalanceRead.from_balance(b) for b in adjustment.package_reference_balances(snapshot)
        ],
        jan_unit_names={
            m.product_code: adjustment.resolve_jan_unit_name(m, unit_map) for m in snapshot.masters()
        },
        calculations=[StockCalculationRead.from_calculation(c) for c in results.values()],
        lot_sheets=sheets_to_models(sheets),
    )


@router.post("/calculate", response_model=CalculateResponse)
def calculate_previous_day_stock(
    payload: CalculateRequest,
    today: date = Depends(get_today),
):
    """
    Recalcul complet (saisie d'un comptage ou case de précomposition).
    Les lignes principales des feuilles de lots reprennent le nouveau résultat.
    """
    results = adjustment.reverse_calculate(
        payload.snapshot,
        payload.physical_stock,
        payload.active_precomp_ids,
        today,
    )

    sheets = sheets_from_models(payload.lot_sheets)
    if not sheets:
        sheets = adjustment.initial_lot_sheets(payload.snapshot)
    sheets = adjustment.reseed_lot_sheets(sheets, results)

    return CalculateResponse.build(
        results.values(),
        adjustment.active_precomp_total(payload.snapshot, payload.active_precomp_ids),
        sheets,
    )


@router.post("/lot-sheets/add-row", response_model=LotSheetModel)
def add_lot_row(payload: AddLotRowRequest):
    sheet = payload.sheet.to_sheet()
    sheet.add_row()
    return LotSheetModel.from_sheet(sheet)


@router.post("/lot-sheets/remove-row", response_model=LotSheetModel)
def remove_lot_row(payload: RemoveLotRowRequest):
    sheet = payload.sheet.to_sheet()
    try:
        sheet.remove_row(payload.index)
    except IndexError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return LotSheetModel.from_sheet(sheet)


@router.post("/scan", response_model=ScanResponse)
def scan_lot_barcode(
    payload: ScanRequest,
    client: LedgerApiClient = Depends(get_ledger_client),
):
    """
    Étiquette GS1-128 -> lot et péremption dans la feuille du produit.
    Remplit la première ligne vide, sinon ajoute une ligne.
    """
    parsed = parse_gs1_128(payload.barcode.strip())
    if parsed is None:
        raise HTTPException(status_code=400, detail="Not a GS1-128 barcode")

    try:
        master = client.get_product_by_gs1(parsed.gs1_code)
    except LedgerApiError as exc:
        raise _remote_failure(exc)
    if master is None:
        raise HTTPException(
            status_code=404,
            detail=f"GS1 code {parsed.gs1_code} is not registered; create a provisional master first",
        )

    sheets = sheets_from_models(payload.lot_sheets)
    sheet: LotSheet | None = sheets.get(master.product_code)
    if sheet is None:
        raise HTTPException(
            status_code=400,
            detail=f"No lot sheet on screen for product {master.product_name or master.product_code}",
        )

    sheet.fill_from_scan(expiry_date=parsed.expiry_date, lot_number=parsed.lot_number)

    return ScanResponse(
        product_code=master.product_code,
        expiry_date=parsed.expiry_date,
        lot_number=parsed.lot_number,
        lot_sheets=sheets_to_models(sheets),
    )


@router.post("/save", response_model=SaveResponse)
def save_adjustment(
    payload: SaveRequest,
    client: LedgerApiClient = Depends(get_ledger_client),
):
    """
    Envoi des totaux par produit et des lignes lot / péremption.
    La somme des lots n'est pas contrôlée contre le stock reconstitué.
    """
    try:
        body = adjustment.build_save_payload(
            payload.snapshot,
            inventory_date=payload.inventory_date,
            yj_code=payload.yj_code,
            sheets=sheets_from_models(payload.lot_sheets),
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))

    try:
        message = client.save_adjustment(body)
    except LedgerApiError as exc:
        raise _remote_failure(exc)

    logger.info(
        "inventory adjustment saved yj=%s date=%s products=%d lots=%d",
        body["yjCode"],
        body["date"],
        len(body["inventoryData"]),
        len(body["deadStockData"]),
    )
    return SaveResponse(message=message, inventory_data=body["inventoryData"])
