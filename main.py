"""
Exam Import Service — Main Entry Point
======================================
Starts the Flask-based exam import microservice.

Usage:
    python main.py                    # Default: 0.0.0.0:5000
    python main.py --port 8000        # Custom port
    python main.py --debug            # Debug mode
"""

import argparse
import logging

from exam_import.server import create_app, app

logging.basicConfig(
    level=logging.INFO,
    format="[%(asctime)s] %(levelname)-8s %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)


def main():
    parser = argparse.ArgumentParser(description="Exam Import Service")
    parser.add_argument("--host", default="0.0.0.0", help="Bind host")
    parser.add_argument("--port", type=int, default=5000, help="Bind port")
    parser.add_argument("--debug", action="store_true", help="Debug mode")
    args = parser.parse_args()

    # create_app() initializes the rejected-import cache
    create_app()

    logger.info(f"Import cache: {app.config['CACHE_DB_PATH']}")
    if app.config.get("EXAM_API_URL"):
        logger.info(f"Exam service: {app.config['EXAM_API_URL']}")
    else:
        logger.warning("EXAM_API_URL not set; /api/import/submit is disabled")
    logger.info(f"Starting server on {args.host}:{args.port}")
    app.run(host=args.host, port=args.port, debug=args.debug)


if __name__ == "__main__":
    main()
