from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from pharmstock.app.schemas.ledger import DeadStockRecord


@dataclass
class LotRow:
    quantity: float | None = None
    expiry_date: str = ""
    lot_number: str = ""
    primary: bool = False

    @property
    def is_blank(self) -> bool:
        return not self.expiry_date.strip() and not self.lot_number.strip()


@dataclass
class LotSheet:
    """
    Répartition du stock d'un produit en lignes lot / péremption.

    Simple tenue de compte côté écran :
    - ajouter ou supprimer une ligne ne rééquilibre jamais les autres
    - le total est la somme des quantités saisies, à titre indicatif
    - aucune contrainte vis-à-vis du stock reconstitué
    """

    product_code: str
    rows: list[LotRow] = field(default_factory=list)

    @classmethod
    def from_saved(cls, product_code: str, records: Iterable[DeadStockRecord]) -> "LotSheet":
        rows = [
            LotRow(
                quantity=rec.stock_quantity_jan,
                expiry_date=rec.expiry_date,
                lot_number=rec.lot_number,
                primary=(i == 0),
            )
            for i, rec in enumerate(records)
        ]
        if not rows:
            rows = [LotRow(primary=True)]
        return cls(product_code=product_code, rows=rows)

    @property
    def primary_row(self) -> LotRow:
        for row in self.rows:
            if row.primary:
                return row
        # feuille reçue sans ligne principale : la première en tient lieu
        if not self.rows:
            self.rows.append(LotRow(primary=True))
        self.rows[0].primary = True
        return self.rows[0]

    @property
    def total(self) -> float:
        total = 0.0
        for row in self.rows:
            total += row.quantity or 0.0
        return total

    def seed(self, previous_day_stock: float | None) -> None:
        """Recopie le stock reconstitué (pleine précision) dans la ligne principale."""
        self.primary_row.quantity = previous_day_stock

    def add_row(self, quantity: float | None = None, expiry_date: str = "", lot_number: str = "") -> LotRow:
        row = LotRow(quantity=quantity, expiry_date=expiry_date, lot_number=lot_number)
        self.rows.append(row)
        return row

    def remove_row(self, index: int) -> LotRow:
        if index < 0 or index >= len(self.rows):
            raise IndexError(f"No lot row at index {index}")
        if self.rows[index].primary:
            raise ValueError("The primary lot row cannot be removed")
        return self.rows.pop(index)

    def fill_from_scan(self, expiry_date: str = "", lot_number: str = "") -> LotRow:
        """Première ligne sans lot ni péremption, sinon nouvelle ligne."""
        target = next((row for row in self.rows if row.is_blank), None)
        if target is None:
            target = self.add_row()
        if expiry_date:
            target.expiry_date = expiry_date
        if lot_number:
            target.lot_number = lot_number
        return target
