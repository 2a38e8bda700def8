import logging
import os

from dotenv import load_dotenv
from flask_cors import CORS

load_dotenv()

from . import create_app  # noqa: E402

logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO"), format="%(asctime)s %(levelname)s %(name)s: %(message)s")

app = create_app(os.getenv("APP_ENV", "development"))

# Enable CORS for API routes
CORS(app, resources={r"/api/*": {"origins": app.config.get("CORS_ORIGINS", "*")}})


if __name__ == "__main__":
    app.run(
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "5000")),
        debug=app.config.get("DEBUG", False),
    )
