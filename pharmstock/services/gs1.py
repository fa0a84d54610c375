from __future__ import annotations

from dataclasses import dataclass

GROUP_SEPARATOR = "\x1d"

AI_GTIN = "01"
AI_EXPIRY = "17"
AI_LOT = "10"


@dataclass(frozen=True)
class Gs1Data:
    gs1_code: str
    expiry_date: str = ""  # YYMMDD tel qu'imprimé
    lot_number: str = ""


def parse_gs1_128(code: str) -> Gs1Data | None:
    """
    Décode une étiquette GS1-128 : (01) GTIN obligatoire, puis (17) péremption
    et (10) lot optionnels, dans cet ordre.

    Retourne None si le GTIN est absent ou tronqué.
    """
    rest = code
    if not rest.startswith(AI_GTIN) or len(rest) < 16:
        return None
    gs1_code = rest[2:16]
    rest = rest[16:]

    expiry = ""
    if rest.startswith(AI_EXPIRY):
        if len(rest) < 8:
            return Gs1Data(gs1_code=gs1_code)
        expiry = rest[2:8]
        rest = rest[8:]

    lot = ""
    if rest.startswith(AI_LOT):
        sep = rest.find(GROUP_SEPARATOR)
        lot = rest[2:sep] if sep != -1 else rest[2:]

    return Gs1Data(gs1_code=gs1_code, expiry_date=expiry, lot_number=lot)


def extract_gs1_code(scan: str) -> str:
    """
    Code produit à rechercher pour une saisie douchette.
    Étiquette complète -> GTIN ; sinon la saisie brute est déjà le code.
    """
    value = scan.strip()
    if value.startswith(AI_GTIN) and len(value) > 16:
        parsed = parse_gs1_128(value)
        if parsed:
            return parsed.gs1_code
    return value


def provisional_product_code(gs1_code: str) -> str:
    # GTIN-14 -> JAN-13 : on retire l'indicateur de conditionnement
    return gs1_code[1:] if len(gs1_code) == 14 else gs1_code
