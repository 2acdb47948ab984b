# ============================================================
# main.py: starts the Streamlit front-end
# - HOST / PORT from environment variables
# - API settings are read by liveness_check.config at app start
# ============================================================

import logging
import os
import sys

from streamlit.web import cli as stcli

from liveness_check import config

logger = logging.getLogger("liveness_check")

APP_PATH = os.path.join(os.path.dirname(os.path.abspath(__file__)), "frontend", "streamlit_app.py")


def main():
    config.configure_logging()

    missing = config.missing_api_settings()
    if missing:
        logger.warning("Liveness API settings missing: %s", ", ".join(missing))

    logger.info("Starting front-end on %s:%s", config.HOST, config.PORT)
    sys.argv = [
        "streamlit",
        "run",
        APP_PATH,
        "--server.address",
        config.HOST,
        "--server.port",
        str(config.PORT),
    ]
    sys.exit(stcli.main())


# ============================================================
# RUN (when executed directly)
# ============================================================
if __name__ == "__main__":
    main()
