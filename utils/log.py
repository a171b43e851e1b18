# utils/log.py

import logging

_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def setup_logging(level: int = logging.INFO) -> None:
    """
    Configure the root logger once per process.

    Streamlit re-executes page scripts on every interaction, so repeated calls
    must not stack handlers; `basicConfig` is a no-op once a handler exists.
    """
    logging.basicConfig(level=level, format=_FORMAT)
