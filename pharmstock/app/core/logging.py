import logging
import sys


def setup_logging(level: str = "INFO") -> None:
    """
    Journalisation minimale :
    - niveau fixé sur le logger racine
    - un seul handler stdout (pas de doublons au rechargement)
    """
    root = logging.getLogger()
    root.setLevel(level.upper())

    for h in list(root.handlers):
        root.removeHandler(h)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s"))
    root.addHandler(handler)

    # requests / urllib3 trop bavards en INFO
    logging.getLogger("urllib3").setLevel(
        logging.DEBUG if level.upper() == "DEBUG" else logging.WARNING
    )
