import logging

from flask import Flask
from flask_cors import CORS

from core.config import API_HOST, API_PORT, LOG_LEVEL
from routes.references_api import references_bp

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)


def create_app() -> Flask:
    app = Flask(__name__)

    CORS(app)

    # Register blueprints
    app.register_blueprint(references_bp)

    return app


app = create_app()

if __name__ == "__main__":
    app.run(host=API_HOST, port=API_PORT)
