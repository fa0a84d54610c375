from __future__ import annotations

import logging

import requests

from pharmstock.app.schemas.ledger import AdjustmentSnapshot, ProductMaster

logger = logging.getLogger(__name__)


class LedgerApiError(Exception):
    """Échec d'un appel à l'API registre (réseau ou réponse non 2xx)."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class LedgerApiClient:
    """
    Client de l'API registre de la pharmacie.

    Requête / réponse simples : pas de relance automatique. Un échec remonte
    tel quel à l'appelant, qui l'affiche.
    """

    def __init__(self, base_url: str, *, timeout: float = 10.0, session: requests.Session | None = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def close(self) -> None:
        self.session.close()

    # ---------- Transport ----------
    def _request(self, method: str, path: str, **kwargs) -> requests.Response:
        url = f"{self.base_url}{path}"
        try:
            return self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as exc:
            logger.error("ledger api %s %s failed: %s", method, path, exc)
            raise LedgerApiError(f"Ledger API unreachable: {exc}") from exc

    @staticmethod
    def _error_message(resp: requests.Response, fallback: str) -> str:
        try:
            body = resp.json()
        except ValueError:
            return resp.text.strip() or fallback
        if isinstance(body, dict) and body.get("message"):
            return str(body["message"])
        return fallback

    def _raise_for_status(self, resp: requests.Response, fallback: str) -> None:
        if resp.ok:
            return
        message = self._error_message(resp, fallback)
        logger.warning("ledger api error %s: %s", resp.status_code, message)
        raise LedgerApiError(message, status_code=resp.status_code)

    @staticmethod
    def _json_body(resp: requests.Response, expected, what: str):
        """Corps JSON d'une réponse 2xx, du type attendu (dict ou list)."""
        try:
            body = resp.json()
        except ValueError as exc:
            logger.error("ledger api returned a non-JSON body for %s: %s", what, exc)
            raise LedgerApiError(f"Invalid {what} from ledger API", status_code=resp.status_code) from exc
        if not isinstance(body, expected):
            logger.error("ledger api returned %s for %s", type(body).__name__, what)
            raise LedgerApiError(f"Invalid {what} from ledger API", status_code=resp.status_code)
        return body

    # ---------- Lecture ----------
    def get_adjustment_data(self, yj_code: str) -> AdjustmentSnapshot:
        resp = self._request("GET", "/api/inventory/adjust/data", params={"yjCode": yj_code})
        self._raise_for_status(resp, "Failed to fetch adjustment data")
        body = self._json_body(resp, dict, "adjustment data")
        try:
            return AdjustmentSnapshot.model_validate(body)
        except ValueError as exc:
            # structure inattendue
            logger.error("ledger api returned invalid adjustment data for %s: %s", yj_code, exc)
            raise LedgerApiError("Invalid adjustment data from ledger API", status_code=resp.status_code) from exc

    def get_unit_map(self) -> dict[str, str]:
        resp = self._request("GET", "/api/units/map")
        self._raise_for_status(resp, "Failed to fetch unit map")
        body = self._json_body(resp, (dict, type(None)), "unit map")
        return {str(k): str(v) for k, v in (body or {}).items()}

    def get_product_by_gs1(self, gs1_code: str) -> ProductMaster | None:
        resp = self._request("GET", "/api/product/by_gs1", params={"gs1_code": gs1_code})
        if resp.status_code == 404:
            return None
        self._raise_for_status(resp, "Failed to look up product")
        body = self._json_body(resp, dict, "product")
        try:
            return ProductMaster.model_validate(body)
        except ValueError as exc:
            raise LedgerApiError("Invalid product from ledger API", status_code=resp.status_code) from exc

    def search_products(
        self,
        *,
        dosage_form: str = "",
        kana_initial: str = "",
        dead_stock_only: bool = False,
        shelf_number: str = "",
        query: str = "",
    ) -> list[ProductMaster]:
        """
        Liste de sélection des produits (un par code YJ), filtrée côté registre.
        Filtres vides = non appliqués.
        """
        params = {
            "dosageForm": dosage_form,
            "kanaInitial": kana_initial,
            "deadStockOnly": "true" if dead_stock_only else "false",
            "shelfNumber": shelf_number,
        }
        if query:
            params["q"] = query
        resp = self._request("GET", "/api/products/search_filtered", params=params)
        self._raise_for_status(resp, "Failed to fetch product list")
        # null = aucun résultat
        body = self._json_body(resp, (list, type(None)), "product list")
        try:
            return [ProductMaster.model_validate(item) for item in body or []]
        except ValueError as exc:
            raise LedgerApiError("Invalid product list from ledger API", status_code=resp.status_code) from exc

    # ---------- Écriture ----------
    def create_provisional_master(self, gs1_code: str, product_code: str) -> str:
        """Retourne le code YJ provisoire attribué par le registre."""
        resp = self._request(
            "POST",
            "/api/master/create_provisional",
            json={"gs1Code": gs1_code, "productCode": product_code},
        )
        self._raise_for_status(resp, "Failed to create provisional master")
        body = self._json_body(resp, dict, "provisional master")
        return str(body.get("yjCode") or "")

    def save_adjustment(self, payload: dict) -> str:
        resp = self._request("POST", "/api/inventory/adjust/save", json=payload)
        self._raise_for_status(resp, "Failed to save inventory data")
        try:
            body = resp.json()
        except ValueError:
            # enregistrement déjà effectué : seul le message est illisible
            logger.warning("ledger api save response is not JSON (status %s)", resp.status_code)
            return ""
        return str(body.get("message") or "") if isinstance(body, dict) else ""
