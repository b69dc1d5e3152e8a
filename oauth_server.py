import logging

from flask import Flask, current_app, request

from bungie_client import BungieClient
from config import Settings
from pages import render_verification
from record_store import RecordStore
from verification import handle_callback

logger = logging.getLogger(__name__)

EXTENSION_KEY = "bungie_verify"


def create_app(settings: Settings, provider=None, store=None):
    """Build the callback app. ``provider`` and ``store`` default to the real clients."""
    app = Flask(__name__)
    app.extensions[EXTENSION_KEY] = {
        "settings": settings,
        "provider": provider or BungieClient.from_settings(settings),
        "store": store if store is not None else RecordStore.from_settings(settings),
    }

    @app.route("/")
    def index():
        return "Bungie OAuth Verification Service", 200, {"Content-Type": "text/plain; charset=utf-8"}

    @app.route("/callback")
    async def oauth_callback():
        deps = current_app.extensions[EXTENSION_KEY]
        verification = await handle_callback(request.args, deps["provider"], deps["store"])
        return render_verification(verification)

    return app


def main():
    settings = Settings.from_env()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if not settings.record_store_enabled:
        logger.warning("Airtable settings incomplete, verified records will not be updated")

    app = create_app(settings)
    logger.info(f"Server running on port {settings.port}")
    app.run(host="0.0.0.0", port=settings.port)


if __name__ == "__main__":
    main()
