"""Flask application factory for the hardware complaint desk."""
import os
from typing import Optional

import click
from flask import Flask, render_template, request
from sqlalchemy.engine.url import make_url
from dotenv import load_dotenv
from utils.logger import init_logging
from utils.security import apply_security_headers
from utils.complaint_store import STORE_EXTENSION_KEY, build_store
from extensions import csrf, db


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(404)
    def not_found_error(error):
        app.logger.warning("404 Not Found", extra={"path": request.path, "method": request.method})
        return render_template("errors/404.html"), 404

    @app.errorhandler(500)
    def internal_error(error):
        app.logger.exception("500 Internal Server Error")
        return render_template("errors/500.html"), 500


def ensure_database_exists(database_uri: str) -> None:
    """Make sure the parent directory of a file-backed SQLite database exists."""
    url = make_url(database_uri)
    if url.drivername.startswith("sqlite") and url.database and url.database != ":memory:":
        os.makedirs(os.path.dirname(url.database) or ".", exist_ok=True)


def create_app(config_name: Optional[str] = None, config_overrides: Optional[dict] = None) -> Flask:
    """Application factory with environment-aware configuration."""
    load_dotenv()

    app = Flask(__name__, instance_relative_config=True)

    # Resolve configuration
    from config import DevelopmentConfig, ProductionConfig, TestingConfig

    config_key = (config_name or os.getenv("FLASK_CONFIG") or os.getenv("FLASK_ENV") or "production").lower()
    config_map = {
        "development": DevelopmentConfig,
        "dev": DevelopmentConfig,
        "production": ProductionConfig,
        "prod": ProductionConfig,
        "testing": TestingConfig,
        "test": TestingConfig,
    }
    config_class = config_map.get(config_key, ProductionConfig)
    app.config.from_object(config_class())

    # Optional instance-specific overrides
    app.config.from_pyfile("config.py", silent=True)
    if config_overrides:
        app.config.update(config_overrides)

    # Initialize logging early
    logger = init_logging(app)
    app.logger = logger

    # Initialize extensions
    csrf.init_app(app)
    db.init_app(app)

    backend = app.config.get("COMPLAINT_STORE", "memory")
    app.extensions[STORE_EXTENSION_KEY] = build_store(backend)
    if backend == "sql":
        ensure_database_exists(app.config["SQLALCHEMY_DATABASE_URI"])
        with app.app_context():
            db.create_all()
    app.logger.info("Complaint store ready", extra={"backend": backend})

    # Blueprints
    from routes import api_bp, complaints_bp, main_bp

    app.register_blueprint(main_bp)
    app.register_blueprint(complaints_bp)
    app.register_blueprint(api_bp)
    csrf.exempt(api_bp)

    @app.route("/favicon.ico")
    def favicon():
        """Serve a favicon if present; otherwise return an empty response to avoid 404 noise."""
        static_ico = os.path.join(app.static_folder or "static", "favicon.ico")
        if os.path.exists(static_ico):
            return app.send_static_file("favicon.ico")
        return "", 204

    @app.cli.command("seed-demo")
    @click.option("--count", default=5, show_default=True, help="Number of demo complaints to add.")
    def seed_demo(count):
        """Add demo complaints whose signatures are drawn by replaying pen strokes (kept only by the sql store)."""
        from utils.demo_seed import seed_demo_complaints

        records = seed_demo_complaints(
            app.extensions[STORE_EXTENSION_KEY],
            count,
            app.config["PRODUCT_TYPES"],
            (app.config["SIGNATURE_CSS_WIDTH"], app.config["SIGNATURE_CSS_HEIGHT"]),
            app.config["SIGNATURE_PIXEL_RATIO"],
        )
        app.logger.info("Demo complaints seeded", extra={"count": len(records)})
        click.echo(f"Seeded {len(records)} complaint(s).")

    # Error handlers
    register_error_handlers(app)

    @app.context_processor
    def inject_global_context():
        return {"product_types": app.config.get("PRODUCT_TYPES", ())}

    @app.after_request
    def _after_request(response):
        return apply_security_headers(response, force_https=app.config.get("PREFERRED_URL_SCHEME") == "https")

    return app


# Expose the Flask application for WSGI servers (e.g., gunicorn app:app).
app = create_app()


if __name__ == "__main__":
    port = int(os.getenv("PORT", 5000))
    app.run(host="0.0.0.0", port=port, use_reloader=False)
