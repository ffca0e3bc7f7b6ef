"""
Development entrypoint: ``python -m authapi``.

Exits with status 1 when the configuration is rejected at startup.
"""

import logging
import sys

from authapi.core.config import ConfigError

from . import create_app


def main() -> int:
    try:
        app = create_app()
    except ConfigError as exc:
        logging.getLogger("authapi").error("Startup aborted: %s", exc)
        return 1
    port = int(app.config.get("PORT", 3000))
    app.run(host="0.0.0.0", port=port, debug=bool(app.config.get("DEBUG")))
    return 0


if __name__ == "__main__":
    sys.exit(main())
