from typing import Optional

from flask import Flask

from .config.settings import load_config
from .controllers.api_controller import api_blueprint
from .services.letter_service import LetterService


def create_app(config_name: str = "development", letter_service: Optional[LetterService] = None) -> Flask:
    app = Flask(__name__)
    app.config.from_mapping(load_config(config_name))

    app.extensions["letter_service"] = letter_service or LetterService.from_config(app.config)
    app.register_blueprint(api_blueprint, url_prefix="/api")

    return app
