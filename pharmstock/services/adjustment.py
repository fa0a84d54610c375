from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any, Iterable, Mapping

from pharmstock.app.schemas.ledger import AdjustmentSnapshot, ProductMaster
from pharmstock.services.lot_sheet import LotSheet
from pharmstock.services.reconciliation import (
    PrecompAllocation,
    StockCalculation,
    TransactionMovement,
    calculate_product,
    parse_quantity,
)

logger = logging.getLogger(__name__)

LEDGER_DATE_FORMAT = "%Y%m%d"


@dataclass(frozen=True)
class PackageBalance:
    package_key: str
    today_ending_balance: float
    yesterday_ending_balance: float


def ledger_date(day: date) -> str:
    return day.strftime(LEDGER_DATE_FORMAT)


def default_inventory_date(today: date) -> date:
    # l'inventaire saisi le matin fige le stock de fin de veille
    return today - timedelta(days=1)


def resolve_jan_unit_name(master: ProductMaster, unit_map: Mapping[str, str]) -> str:
    if master.jan_unit_code == 0:
        return master.yj_unit_name
    return unit_map.get(str(master.jan_unit_code)) or master.yj_unit_name


def active_allocations(
    snapshot: AdjustmentSnapshot,
    active_precomp_ids: Iterable[int],
) -> dict[str, list[PrecompAllocation]]:
    """
    Précompositions cochées, regroupées par produit.
    La conversion utilise la contenance de la fiche produit ; une ligne dont le
    produit n'est pas à l'écran est ignorée.
    """
    active = set(active_precomp_ids)
    out: dict[str, list[PrecompAllocation]] = {}
    for rec in snapshot.precomp_details:
        if rec.id not in active:
            continue
        master = snapshot.find_master(rec.jan_code)
        if master is None:
            continue
        out.setdefault(rec.jan_code, []).append(
            PrecompAllocation(
                product_code=rec.jan_code,
                dispensing_quantity=rec.yj_quantity,
                pack_inner_qty=master.jan_pack_inner_qty,
            )
        )
    return out


def active_precomp_total(snapshot: AdjustmentSnapshot, active_precomp_ids: Iterable[int]) -> float:
    active = set(active_precomp_ids)
    total = 0.0
    for rec in snapshot.precomp_details:
        if rec.id in active:
            total += rec.yj_quantity
    return total


def movements_for_day(snapshot: AdjustmentSnapshot, day: date) -> dict[str, list[TransactionMovement]]:
    day_str = ledger_date(day)
    out: dict[str, list[TransactionMovement]] = {}
    for yj_group in snapshot.transaction_ledger:
        for pkg in yj_group.package_ledgers:
            for tx in pkg.transactions:
                if tx.transaction_date != day_str:
                    continue
                out.setdefault(tx.jan_code, []).append(
                    TransactionMovement(
                        product_code=tx.jan_code,
                        transaction_date=tx.transaction_date,
                        flag=tx.flag,
                        jan_quantity=tx.jan_quantity,
                        yj_quantity=tx.yj_quantity,
                        pack_inner_qty=tx.jan_pack_inner_qty,
                    )
                )
    return out


def reverse_calculate(
    snapshot: AdjustmentSnapshot,
    physical_inputs: Mapping[str, Any],
    active_precomp_ids: Iterable[int],
    today: date,
) -> dict[str, StockCalculation]:
    """
    Stock de veille reconstitué pour chaque produit affiché.

    Recalcul complet à chaque appel (aucun état incrémental). Une erreur
    (conversion impossible, comptage négatif) ne touche que son produit ; les
    autres sont calculés normalement.
    """
    allocations = active_allocations(snapshot, active_precomp_ids)
    movements = movements_for_day(snapshot, today)

    results: dict[str, StockCalculation] = {}
    for master in snapshot.masters():
        code = master.product_code
        results[code] = calculate_product(
            code,
            parse_quantity(physical_inputs.get(code)),
            allocations.get(code, []),
            movements.get(code, []),
        )
    return results


def initial_lot_sheets(snapshot: AdjustmentSnapshot) -> dict[str, LotSheet]:
    sheets: dict[str, LotSheet] = {}
    for master in snapshot.masters():
        saved = [ds for ds in snapshot.dead_stock_details if ds.product_code == master.product_code]
        sheets[master.product_code] = LotSheet.from_saved(master.product_code, saved)
    return sheets


def reseed_lot_sheets(
    sheets: Mapping[str, LotSheet],
    results: Mapping[str, StockCalculation],
) -> dict[str, LotSheet]:
    out = dict(sheets)
    for code, calc in results.items():
        sheet = out.get(code)
        if sheet is None:
            sheet = LotSheet.from_saved(code, [])
            out[code] = sheet
        # produit invalide : la ligne principale est vidée, pas mise à 0
        sheet.seed(calc.previous_day_stock if calc.is_valid else None)
    return out


def package_reference_balances(snapshot: AdjustmentSnapshot) -> list[PackageBalance]:
    if not snapshot.transaction_ledger:
        return []

    yesterday: dict[str, float] = {}
    if snapshot.yesterdays_stock is not None:
        for pkg in snapshot.yesterdays_stock.package_ledgers:
            yesterday[pkg.package_key] = pkg.ending_balance or 0.0

    return [
        PackageBalance(
            package_key=pkg.package_key,
            today_ending_balance=pkg.ending_balance or 0.0,
            yesterday_ending_balance=yesterday.get(pkg.package_key, 0.0),
        )
        for pkg in snapshot.transaction_ledger[0].package_ledgers
    ]


def yesterdays_total(snapshot: AdjustmentSnapshot) -> float:
    if snapshot.yesterdays_stock is None:
        return 0.0
    return snapshot.yesterdays_stock.ending_balance or 0.0


def build_save_payload(
    snapshot: AdjustmentSnapshot,
    *,
    inventory_date: date,
    yj_code: str,
    sheets: Mapping[str, LotSheet],
) -> dict:
    """
    Corps de la requête d'enregistrement envoyée à l'API registre.

    - inventoryData : somme des lignes saisies par produit (0 si aucune feuille)
    - deadStockData : lignes avec quantité > 0 et un lot ou une péremption

    La somme des lignes n'est pas comparée au stock reconstitué : le
    pharmacien peut volontairement s'en écarter.
    """
    if not yj_code or not yj_code.strip():
        raise ValueError("yj_code is required")

    inventory_data: dict[str, float] = {}
    dead_stock_data: list[dict] = []

    for master in snapshot.masters():
        code = master.product_code
        sheet = sheets.get(code)
        if sheet is None:
            inventory_data[code] = 0.0
            continue

        for row in sheet.rows:
            quantity = row.quantity or 0.0
            expiry = row.expiry_date.strip()
            lot = row.lot_number.strip()
            if quantity > 0 and (expiry or lot):
                dead_stock_data.append(
                    {
                        "productCode": code,
                        "yjCode": master.yj_code,
                        "packageForm": master.package_form,
                        "janPackInnerQty": master.jan_pack_inner_qty,
                        "yjUnitName": master.yj_unit_name,
                        "stockQuantityJan": quantity,
                        "expiryDate": expiry,
                        "lotNumber": lot,
                    }
                )
        inventory_data[code] = sheet.total

    return {
        "date": ledger_date(inventory_date),
        "yjCode": yj_code.strip(),
        "inventoryData": inventory_data,
        "deadStockData": dead_stock_data,
    }
