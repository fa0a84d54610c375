import os

LEDGER_API_URL = os.getenv(
    "LEDGER_API_URL",
    "http://127.0.0.1:8080"
)

LEDGER_API_TIMEOUT = float(os.getenv("LEDGER_API_TIMEOUT", "10"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
