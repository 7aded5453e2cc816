# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

import atexit

from flask import Flask

from authsvc.infrastructure.container import Container
from authsvc.shared.config import AppConfig, load_config
from authsvc.shared.logging import logger, setup_logging
from authsvc.shared.middleware import configure_error_handling, configure_request_logging


def create_app(config: AppConfig | None = None, container: Container | None = None) -> Flask:
    config = config or load_config()
    container = container or Container(config)

    app = Flask(__name__)
    configure_error_handling(app, debug_mode=config.debug_logging)
    configure_request_logging(app, debug_mode=config.debug_logging)

    app.register_blueprint(container.auth_controller.as_blueprint())
    app.register_blueprint(container.users_controller.as_blueprint())
    app.extensions["authsvc.container"] = container

    @app.after_request
    def _add_security_headers(resp):
        resp.headers.setdefault("X-Frame-Options", "DENY")
        resp.headers.setdefault("Referrer-Policy", "no-referrer")
        resp.headers.setdefault("X-Content-Type-Options", "nosniff")
        resp.headers.setdefault("Cache-Control", "no-store")
        return resp

    logger.info(f"Flask app initialized env={config.app_env}")
    return app


def main() -> None:
    config = load_config()
    setup_logging(config.log_level, config.log_file)
    container = Container(config)
    atexit.register(container.close)

    app = create_app(config, container)
    logger.info(f"Serving on {config.host}:{config.port}")
    app.run(host=config.host, port=config.port, threaded=True)


if __name__ == "__main__":
    main()
