import logging
import os

LOG_LEVEL = os.getenv("HOMEGROWN_LOG_LEVEL", "INFO").upper()


def get_logger(name: str) -> logging.Logger:
    """
    Logger shared by the API routers and the identity layer.

    - One stream handler per logger, attached on first use
    - Leaves the uvicorn root config alone
    - Level comes from HOMEGROWN_LOG_LEVEL (default INFO)
    """

    logger = logging.getLogger(name)

    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(
            logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")
        )

        logger.addHandler(handler)
        logger.setLevel(getattr(logging, LOG_LEVEL, logging.INFO))

        logger.propagate = False

    return logger
