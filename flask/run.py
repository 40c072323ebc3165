import logging
import os
import sys

from gdip import create_app
from gdip.roles import get_capabilities

# Configure logging BEFORE creating the app to ensure all logs are captured
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.StreamHandler(sys.stdout)
    ]
)

# Set werkzeug logger to INFO level (it defaults to WARNING)
logging.getLogger('werkzeug').setLevel(logging.INFO)

SERVICE_ROLE = os.getenv("SERVICE_ROLE", "driver").strip().lower()

app = create_app(role=SERVICE_ROLE)
app.logger.setLevel(logging.INFO)

if __name__ == '__main__':
    port = int(os.getenv("PORT") or get_capabilities(SERVICE_ROLE)["default_port"])
    try:
        app.run(
            host='0.0.0.0',
            port=port,
            debug=os.getenv("FLASK_DEBUG", "0") == "1",
        )
    except (KeyboardInterrupt, SystemExit):
        print("\nShutting down gracefully...")
        sys.exit(0)
