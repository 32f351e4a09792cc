# segmon/extensions.py
from flask_cors import CORS

from .storage.document_store import Segmon
from .utils.loop import LoopRunner

# CORS is a real Flask extension (keeps init_app)
cors = CORS()


def store_from_config(config) -> Segmon:
    """Build a store from a Flask config (or any mapping with SEGMON_* keys)."""
    return Segmon(
        base_path=config["SEGMON_BASE_PATH"],
        segment_size=config.get("SEGMON_SEGMENT_SIZE"),
        max_items_per_segment=config.get("SEGMON_MAX_ITEMS_PER_SEGMENT"),
        id_length=config.get("SEGMON_ID_LENGTH", 6),
        atomic_writes=config.get("SEGMON_ATOMIC_WRITES", False),
    )


class SegmonExtension:
    """Owns the app's store and the event loop its coroutines run on."""

    def __init__(self, app=None):
        self.store: Segmon | None = None
        self._runner: LoopRunner | None = None
        if app is not None:
            self.init_app(app)

    def init_app(self, app):
        self.store = store_from_config(app.config)
        if self._runner is None or not self._runner.running:
            self._runner = LoopRunner()
        app.extensions["segmon"] = self

    def run(self, coro):
        return self._runner.run(coro)


db = SegmonExtension()
