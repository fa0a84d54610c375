from pydantic import BaseModel, Field, field_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Format JSON de l'API registre : clés en camelCase."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        frozen = True


class ProductMaster(CamelModel):
    product_code: str
    yj_code: str = ""
    product_name: str = ""
    kana_name: str = ""
    maker_name: str = ""
    usage_classification: str = ""
    package_form: str = ""
    yj_unit_name: str = ""
    yj_pack_unit_qty: float = 0.0
    jan_pack_inner_qty: float = 0.0
    jan_unit_code: int = 0
    jan_pack_unit_qty: float = 0.0
    formatted_package_spec: str = ""
    jan_unit_name: str = ""


class LedgerTransaction(CamelModel):
    id: int = 0
    transaction_date: str = ""
    client_code: str = ""
    receipt_number: str = ""
    flag: int
    jan_code: str = ""
    yj_code: str = ""
    product_name: str = ""
    jan_pack_inner_qty: float = 0.0
    jan_quantity: float = 0.0
    yj_quantity: float = 0.0
    yj_unit_name: str = ""
    expiry_date: str = ""
    lot_number: str = ""
    running_balance: float = 0.0


class PackageLedger(CamelModel):
    package_key: str
    starting_balance: float | None = None
    net_change: float = 0.0
    ending_balance: float | None = None
    transactions: list[LedgerTransaction] = Field(default_factory=list)
    masters: list[ProductMaster] = Field(default_factory=list)

    @field_validator("transactions", "masters", mode="before")
    @classmethod
    def null_as_empty(cls, value):
        # l'API registre renvoie null pour une liste vide
        return [] if value is None else value


class YjLedger(CamelModel):
    yj_code: str
    product_name: str = ""
    yj_unit_name: str = ""
    starting_balance: float | None = None
    net_change: float = 0.0
    ending_balance: float | None = None
    package_ledgers: list[PackageLedger] = Field(default_factory=list)

    @field_validator("package_ledgers", mode="before")
    @classmethod
    def null_as_empty(cls, value):
        return [] if value is None else value


class PrecompDetail(CamelModel):
    """Ligne de précomposition (préparation faite avant la dispensation)."""

    id: int
    transaction_date: str = ""
    client_code: str = ""
    jan_code: str
    yj_code: str = ""
    product_name: str = ""
    yj_quantity: float = 0.0
    jan_pack_inner_qty: float = 0.0
    yj_unit_name: str = ""


class DeadStockRecord(CamelModel):
    id: int = 0
    product_code: str
    yj_code: str = ""
    package_form: str = ""
    jan_pack_inner_qty: float = 0.0
    yj_unit_name: str = ""
    stock_quantity_jan: float = 0.0
    expiry_date: str = ""
    lot_number: str = ""


class AdjustmentSnapshot(CamelModel):
    """
    Dernière réponse de l'API registre pour un code YJ.

    Immuable : remplacée en bloc à chaque rechargement, jamais fusionnée.
    """

    transaction_ledger: list[YjLedger] = Field(default_factory=list)
    yesterdays_stock: YjLedger | None = None
    precomp_details: list[PrecompDetail] = Field(default_factory=list)
    dead_stock_details: list[DeadStockRecord] = Field(default_factory=list)

    @field_validator("transaction_ledger", "precomp_details", "dead_stock_details", mode="before")
    @classmethod
    def null_as_empty(cls, value):
        return [] if value is None else value

    def masters(self) -> list[ProductMaster]:
        """Tous les conditionnements du premier groupe YJ (ceux affichés à l'écran)."""
        if not self.transaction_ledger:
            return []
        return [m for pkg in self.transaction_ledger[0].package_ledgers for m in pkg.masters]

    def find_master(self, product_code: str) -> ProductMaster | None:
        for m in self.masters():
            if m.product_code == product_code:
                return m
        return None
