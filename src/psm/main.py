from __future__ import annotations

import logging

from psm.application.container import AppContainer, build_container
from psm.config import get_app_paths
from psm.domain.errors import RemoteError
from psm.logging_config import setup_logging

log = logging.getLogger(__name__)


def main() -> AppContainer:
    """Bootstrap for the screens: logging, local caches, first catalog load."""
    paths = get_app_paths()
    setup_logging(paths.logs_dir, level=logging.INFO)

    container = build_container(paths.settings_db_path)
    try:
        products = container.stock.refresh()
        log.info("catalog_loaded products=%s", len(products))
    except RemoteError as e:
        log.warning("catalog_unavailable error=%s", e)
    return container


if __name__ == "__main__":
    main()
