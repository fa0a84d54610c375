from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Iterable

from pharmstock.app.models.core_types import (
    INBOUND_FLAGS,
    OUTBOUND_FLAGS,
    SNAPSHOT_FLAGS,
    CalculationError,
)

logger = logging.getLogger(__name__)


class PackInnerQtyUnsetError(ValueError):
    """
    Quantité non nulle sans facteur de conversion (contenance interne <= 0).

    Le stock reconstitué sert de base d'audit : on refuse de compter 0 à la
    place d'une quantité qu'on ne sait pas convertir.
    """

    def __init__(self, product_code: str):
        super().__init__(f"Package inner quantity not set for {product_code}")
        self.product_code = product_code


class NegativePhysicalStockError(ValueError):
    """Comptage physique négatif : saisie à corriger pour ce produit."""

    def __init__(self, physical_stock: float):
        super().__init__(f"physical_stock_today must be >= 0, got {physical_stock}")
        self.physical_stock = physical_stock


@dataclass(frozen=True)
class PrecompAllocation:
    product_code: str
    dispensing_quantity: float
    pack_inner_qty: float


@dataclass(frozen=True)
class TransactionMovement:
    product_code: str
    transaction_date: str
    flag: int
    jan_quantity: float = 0.0
    yj_quantity: float = 0.0
    pack_inner_qty: float = 0.0


@dataclass(frozen=True)
class StockCalculation:
    product_code: str
    previous_day_stock: float | None = None
    error: CalculationError | None = None

    @property
    def is_valid(self) -> bool:
        return self.error is None

    @property
    def display(self) -> str:
        # projection d'affichage uniquement, jamais réinjectée dans un calcul
        if self.error is not None:
            return self.error.value
        return format_quantity(self.previous_day_stock)


def format_quantity(value: float | None) -> str:
    return f"{(value or 0.0):.2f}"


def parse_quantity(raw) -> float:
    """Saisie utilisateur -> quantité. Vide ou illisible => 0."""
    if raw is None or isinstance(raw, bool):
        return 0.0
    if isinstance(raw, (int, float)):
        value = float(raw)
    else:
        try:
            value = float(str(raw).strip())
        except ValueError:
            return 0.0
    if not math.isfinite(value):
        return 0.0
    return value


def _to_jan_units(product_code: str, yj_quantity: float, pack_inner_qty: float) -> float:
    if pack_inner_qty > 0:
        return yj_quantity / pack_inner_qty
    if yj_quantity > 0:
        raise PackInnerQtyUnsetError(product_code)
    return 0.0


def precomp_stock_equivalent(allocations: Iterable[PrecompAllocation]) -> float:
    total = 0.0
    for alloc in allocations:
        total += _to_jan_units(alloc.product_code, alloc.dispensing_quantity, alloc.pack_inner_qty)
    return total


def movement_magnitude(movement: TransactionMovement) -> float:
    """
    Quantité en unité JAN.
    janQuantity prioritaire ; sinon conversion depuis yjQuantity (mouvements
    saisis uniquement en unité de dispensation).
    """
    if movement.jan_quantity:
        return movement.jan_quantity
    if not movement.yj_quantity:
        return 0.0
    return _to_jan_units(movement.product_code, movement.yj_quantity, movement.pack_inner_qty)


def signed_quantity(movement: TransactionMovement) -> float:
    if movement.flag in SNAPSHOT_FLAGS:
        return 0.0
    if movement.flag in INBOUND_FLAGS:
        return movement_magnitude(movement)
    if movement.flag in OUTBOUND_FLAGS:
        return -movement_magnitude(movement)
    # code inconnu : pas un flux
    return 0.0


def net_change_today(movements: Iterable[TransactionMovement]) -> float:
    total = 0.0
    for mv in movements:
        total += signed_quantity(mv)
    return total


def back_calculate_previous_day_stock(
    physical_stock_today: float,
    active_allocations: Iterable[PrecompAllocation],
    todays_movements: Iterable[TransactionMovement],
) -> float:
    """
    Reconstitue le stock de fin de veille d'un produit.

    Règle métier :
        stock_veille =
            (stock_physique_du_jour + équivalent_JAN des précompositions actives)
            - variation nette des mouvements du jour (hors inventaires)

    Propriétés :
    - fonction pure, aucun état caché
    - idempotente (même entrée => même float, bit à bit)
    - lève PackInnerQtyUnsetError si une conversion est impossible
    - lève NegativePhysicalStockError si le comptage est négatif
    """
    if physical_stock_today < 0:
        raise NegativePhysicalStockError(physical_stock_today)

    precomp = precomp_stock_equivalent(active_allocations)
    net_change = net_change_today(todays_movements)

    total_stock_today = physical_stock_today + precomp
    return total_stock_today - net_change


def calculate_product(
    product_code: str,
    physical_stock_today: float,
    active_allocations: Iterable[PrecompAllocation],
    todays_movements: Iterable[TransactionMovement],
) -> StockCalculation:
    """Variante non levante : chaque erreur devient un état du produit."""
    try:
        value = back_calculate_previous_day_stock(
            physical_stock_today, active_allocations, todays_movements
        )
    except PackInnerQtyUnsetError:
        logger.warning("previous-day stock invalid for %s: package inner quantity not set", product_code)
        return StockCalculation(
            product_code=product_code,
            error=CalculationError.pack_inner_qty_unset,
        )
    except NegativePhysicalStockError:
        logger.warning("previous-day stock invalid for %s: negative physical count", product_code)
        return StockCalculation(
            product_code=product_code,
            error=CalculationError.negative_physical_stock,
        )
    return StockCalculation(product_code=product_code, previous_day_stock=value)
