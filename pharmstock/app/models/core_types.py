import enum


class TransactionFlag(int, enum.Enum):
    inventory = 0
    delivery = 1
    return_ = 2
    dispense = 3
    adjustment_increase = 4
    adjustment_decrease = 5
    transfer_in = 11
    transfer_out = 12
    month_end = 30


# Entrées de stock : quantité positive
INBOUND_FLAGS = {
    TransactionFlag.delivery,
    TransactionFlag.adjustment_increase,
    TransactionFlag.transfer_in,
}

# Sorties de stock : quantité négative
OUTBOUND_FLAGS = {
    TransactionFlag.return_,
    TransactionFlag.dispense,
    TransactionFlag.adjustment_decrease,
    TransactionFlag.transfer_out,
}

# Photos de stock (inventaire, clôture mensuelle) : jamais un flux
SNAPSHOT_FLAGS = {
    TransactionFlag.inventory,
    TransactionFlag.month_end,
}


class CalculationError(str, enum.Enum):
    pack_inner_qty_unset = "PACK_INNER_QTY_UNSET"
    negative_physical_stock = "NEGATIVE_PHYSICAL_STOCK"
