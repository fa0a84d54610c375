from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import Field

from pharmstock.app.api.deps import get_ledger_client
from pharmstock.app.schemas.ledger import CamelModel, ProductMaster
from pharmstock.services.gs1 import extract_gs1_code, provisional_product_code
from pharmstock.services.ledger_client import LedgerApiClient, LedgerApiError

router = APIRouter(prefix="/products")


class ProvisionalMasterCreate(CamelModel):
    gs1_code: str = Field(min_length=1, max_length=64)


@router.get("/search", response_model=list[ProductMaster])
def search_products(
    dosage_form: str = Query("", alias="dosageForm"),
    kana_initial: str = Query("", alias="kanaInitial"),
    dead_stock_only: bool = Query(False, alias="deadStockOnly"),
    shelf_number: str = Query("", alias="shelfNumber"),
    q: str = "",
    client: LedgerApiClient = Depends(get_ledger_client),
):
    """
    Liste de sélection d'un produit pour l'écran d'ajustement.
    Les filtres sont transmis tels quels au registre.
    """
    try:
        return client.search_products(
            dosage_form=dosage_form.strip(),
            kana_initial=kana_initial.strip(),
            dead_stock_only=dead_stock_only,
            shelf_number=shelf_number.strip(),
            query=q.strip(),
        )
    except LedgerApiError as exc:
        raise HTTPException(status_code=502, detail=exc.message)


@router.get("/by-gs1", response_model=ProductMaster)
def get_product_by_scan(code: str, client: LedgerApiClient = Depends(get_ledger_client)):
    """Saisie douchette (étiquette GS1-128 complète ou code seul) -> fiche produit."""
    gs1_code = extract_gs1_code(code)
    if not gs1_code:
        raise HTTPException(status_code=400, detail="Invalid GS1 code")

    try:
        master = client.get_product_by_gs1(gs1_code)
    except LedgerApiError as exc:
        raise HTTPException(status_code=502, detail=exc.message)
    if master is None:
        raise HTTPException(status_code=404, detail=f"GS1 code {gs1_code} is not registered")
    return master


@router.post("/provisional")
def create_provisional_master(
    payload: ProvisionalMasterCreate,
    client: LedgerApiClient = Depends(get_ledger_client),
):
    gs1_code = payload.gs1_code.strip()
    product_code = provisional_product_code(gs1_code)
    try:
        yj_code = client.create_provisional_master(gs1_code, product_code)
    except LedgerApiError as exc:
        raise HTTPException(status_code=502, detail=exc.message)

    return {"gs1Code": gs1_code, "productCode": product_code, "yjCode": yj_code}
