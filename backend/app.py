import logging
import os
from pathlib import Path

from dotenv import load_dotenv


logger = logging.getLogger("impostor")


def main() -> None:
    # Settings are read when impostor.config is first imported.
    load_dotenv(Path(__file__).resolve().parents[1] / ".env")

    from impostor.config import configure_logging, resolve_async_mode

    configure_logging()

    if resolve_async_mode() == "eventlet":
        import eventlet

        eventlet.monkey_patch()

    from impostor.server import create_app

    app, socketio = create_app()

    host = os.environ.get("HOST", "0.0.0.0")
    port = int(os.environ.get("PORT", "3000"))

    logger.info("Listening on %s:%d", host, port)
    socketio.run(
        app,
        host=host,
        port=port,
        debug=os.environ.get("FLASK_DEBUG", "0") == "1",
        allow_unsafe_werkzeug=os.environ.get("ALLOW_UNSAFE_WERKZEUG", "1") == "1",
        use_reloader=os.environ.get("FLASK_USE_RELOADER", "0") == "1",
    )


if __name__ == "__main__":
    main()
