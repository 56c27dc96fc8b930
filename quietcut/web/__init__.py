"""Flask application factory for the quietcut job API."""

import tempfile
from pathlib import Path

from flask import Flask, jsonify


def create_app(work_dir: Path | None = None, progress_timeout: float = 120.0) -> Flask:
    """Build the API app; uploads and outputs live under ``work_dir``."""
    app = Flask(__name__)
    app.config.update(
        WORK_DIR=work_dir or Path(tempfile.mkdtemp(prefix="quietcut_")),
        MAX_CONTENT_LENGTH=10 * 1024 * 1024 * 1024,  # 10 GB
        PROGRESS_TIMEOUT=progress_timeout,
    )

    from quietcut.web.routes import bp
    app.register_blueprint(bp)

    @app.errorhandler(404)
    def not_found(error):
        return jsonify({"error": error.description}), 404

    @app.errorhandler(413)
    def request_entity_too_large(error):
        return jsonify({"error": "File too large"}), 413

    return app
