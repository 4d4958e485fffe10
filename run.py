"""Development entry point: serves HTTP and Socket.IO from one process."""
import os

from quizlive import create_app, socketio
from quizlive.realtime import current_relay

app = create_app()


if __name__ == "__main__":
    port = int(os.getenv("PORT", "5000"))
    try:
        socketio.run(app, host="0.0.0.0", port=port, debug=app.config.get("DEBUG", False),
                     allow_unsafe_werkzeug=True)
    finally:
        with app.app_context():
            current_relay().shutdown()
