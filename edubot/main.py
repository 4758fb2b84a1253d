"""Main entry point for the EduBot gamification API"""
import argparse
import logging
import uvicorn

from edubot.config import LOG_LEVEL

logger = logging.getLogger(__name__)


def main() -> None:
    """Run the API server"""
    parser = argparse.ArgumentParser(description="EduBot gamification API server")
    parser.add_argument("--host", default="0.0.0.0")
    parser.add_argument("--port", type=int, default=8080)
    parser.add_argument("--reload", action="store_true", help="Reload on code changes (development)")
    args = parser.parse_args()

    logger.info(f"Starting EduBot API on {args.host}:{args.port}")
    uvicorn.run(
        "edubot.api.server:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    main()
