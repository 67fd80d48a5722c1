import logging

import uvicorn

from linkaudit.api.server import create_app
from linkaudit.container import Container

logger = logging.getLogger(__name__)


def main(container=None):
    """Start the API server, and the daily scheduler when a schedule is configured.

    `container` can be injected for testing.
    """
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    if container is None:
        container = Container()

    app = create_app(container)
    scheduler = container.scheduler_service()
    scheduler.start()

    port = container.config.PORT() or 8000
    try:
        logger.info("LinkAudit listening on 0.0.0.0:%s", port)
        uvicorn.run(app, host="0.0.0.0", port=int(port))
    finally:
        scheduler.shutdown(wait=False)


if __name__ == '__main__':
    main()
