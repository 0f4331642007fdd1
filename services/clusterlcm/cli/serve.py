"""
Run the clusterlcm API server.

Run via: python -m clusterlcm.cli.serve  (or the ``clusterlcm`` console script)

Listen address and port come from settings (CLUSTERLCM_PORT, config.yaml).
"""

import uvicorn

from clusterlcm.config import settings


def main() -> None:
    uvicorn.run(
        "clusterlcm.api.app:app",
        host="0.0.0.0",
        port=settings.port,
        log_config=None,
        reload=False,
    )


if __name__ == "__main__":
    main()
