from flask import Flask
from flask_cors import CORS
from flask_socketio import SocketIO
from config import Config

allowed_origins = [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
    "http://localhost:5174",
    "http://127.0.0.1:5174",
]
socketio = SocketIO(cors_allowed_origins=allowed_origins, async_mode=None)

def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)

    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    from linegame.main import main
    flask_app.register_blueprint(main)

    from linegame.api.game import game
    flask_app.register_blueprint(game, url_prefix='/api/sessions')

    # Register Socket.IO event handlers on the initialized socketio instance
    from linegame.socketio_events import register_socketio_handlers
    register_socketio_handlers(testing=flask_app.config.get('TESTING', False))

    return flask_app
