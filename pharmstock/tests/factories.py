from datetime import date

from pharmstock.app.schemas.ledger import AdjustmentSnapshot, ProductMaster
from pharmstock.services.ledger_client import LedgerApiError

TODAY = date(2026, 10, 19)
YJ_CODE = "1149019F1025"
PRODUCT_A = "4987123456780"  # contenance 3
PRODUCT_B = "4987123456797"  # contenance non renseignée


def build_snapshot_payload() -> dict:
    """
    Réponse type de l'API registre (format camelCase).

    PRODUCT_A, aujourd'hui :
    - livraison +5 (JAN)
    - dispensation -3 (JAN)
    - inventaire 100 (à ignorer)
    PRODUCT_B : aucun mouvement, contenance 0.
    """
    master_a = {
        "productCode": PRODUCT_A,
        "yjCode": YJ_CODE,
        "productName": "TEST-PROD-A",
        "packageForm": "PTP",
        "yjUnitName": "錠",
        "janPackInnerQty": 3,
        "janUnitCode": 1,
    }
    master_b = {
        "productCode": PRODUCT_B,
        "yjCode": YJ_CODE,
        "productName": "TEST-PROD-B",
        "packageForm": "BTL",
        "yjUnitName": "錠",
        "janPackInnerQty": 0,
        "janUnitCode": 0,
    }
    today = TODAY.strftime("%Y%m%d")
    return {
        "transactionLedger": [
            {
                "yjCode": YJ_CODE,
                "productName": "TEST-PROD",
                "yjUnitName": "錠",
                "endingBalance": 42.0,
                "packageLedgers": [
                    {
                        "packageKey": "PTP|3|錠",
                        "endingBalance": 30.0,
                        "masters": [master_a],
                        "transactions": [
                            {"id": 1, "transactionDate": "20261018", "flag": 1, "janCode": PRODUCT_A, "janQuantity": 50, "janPackInnerQty": 3},
                            {"id": 2, "transactionDate": today, "flag": 1, "janCode": PRODUCT_A, "janQuantity": 5, "janPackInnerQty": 3},
                            {"id": 3, "transactionDate": today, "flag": 3, "janCode": PRODUCT_A, "janQuantity": 3, "janPackInnerQty": 3},
                            {"id": 4, "transactionDate": today, "flag": 0, "janCode": PRODUCT_A, "janQuantity": 100, "janPackInnerQty": 3},
                        ],
                    },
                    {
                        "packageKey": "BTL|0|錠",
                        "endingBalance": 12.0,
                        "masters": [master_b],
                        "transactions": None,
                    },
                ],
            }
        ],
        "yesterdaysStock": {
            "yjCode": YJ_CODE,
            "endingBalance": 40.0,
            "packageLedgers": [{"packageKey": "PTP|3|錠", "endingBalance": 28.5}],
        },
        "precompDetails": [
            {"id": 11, "janCode": PRODUCT_A, "yjQuantity": 6, "janPackInnerQty": 3, "clientCode": "P001"},
            {"id": 12, "janCode": PRODUCT_B, "yjQuantity": 4, "janPackInnerQty": 0, "clientCode": "P002"},
            {"id": 13, "janCode": "4900000000000", "yjQuantity": 9, "janPackInnerQty": 1},
        ],
        "deadStockDetails": None,
    }


class FakeLedgerClient:
    """API registre en mémoire : enregistre les appels, ne fait aucun réseau."""

    def __init__(self):
        self.snapshot_payload = build_snapshot_payload()
        self.unit_map = {"1": "箱"}
        self.products: dict[str, ProductMaster] = {}
        self.fail_with: LedgerApiError | None = None
        self.unit_map_error: LedgerApiError | None = None
        self.saved: list[dict] = []
        self.provisional: list[tuple[str, str]] = []
        self.searches: list[dict] = []

    def _maybe_fail(self):
        if self.fail_with is not None:
            raise self.fail_with

    def get_adjustment_data(self, yj_code):
        self._maybe_fail()
        return AdjustmentSnapshot.model_validate(self.snapshot_payload)

    def get_unit_map(self):
        if self.unit_map_error is not None:
            raise self.unit_map_error
        return dict(self.unit_map)

    def get_product_by_gs1(self, gs1_code):
        self._maybe_fail()
        return self.products.get(gs1_code)

    def search_products(self, **filters):
        self._maybe_fail()
        self.searches.append(filters)
        return list(self.products.values())

    def create_provisional_master(self, gs1_code, product_code):
        self._maybe_fail()
        self.provisional.append((gs1_code, product_code))
        return "PROV-0001"

    def save_adjustment(self, payload):
        self._maybe_fail()
        self.saved.append(payload)
        return "Inventory data saved."

    def close(self):
        pass


class FakeResponse:
    def __init__(self, status_code=200, body=None, text=""):
        self.status_code = status_code
        self._body = body
        self.text = text

    @property
    def ok(self):
        return 200 <= self.status_code < 300

    def json(self):
        if self._body is None:
            raise ValueError("no JSON body")
        return self._body


class FakeSession:
    """Remplace requests.Session : réponses préparées, appels enregistrés."""

    def __init__(self, responses=None, error=None):
        self.responses = list(responses or [])
        self.error = error
        self.calls = []
        self.closed = False

    def request(self, method, url, **kwargs):
        self.calls.append((method, url, kwargs))
        if self.error is not None:
            raise self.error
        return self.responses.pop(0)

    def close(self):
        self.closed = True
