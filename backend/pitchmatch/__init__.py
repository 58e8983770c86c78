from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
import click
from config import Config

db = SQLAlchemy()
migrate = Migrate()
allowed_origins = [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
    "http://localhost:5174",
    "http://127.0.0.1:5174",
]
socketio = SocketIO(cors_allowed_origins=allowed_origins, async_mode=None)

DEMO_PLAYERS = ['Alice', 'Bob', 'Cara']


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)

    db.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    from pitchmatch.main import main
    flask_app.register_blueprint(main)

    from pitchmatch.api.players import players
    flask_app.register_blueprint(players, url_prefix='/api')

    # One engine per app so independent apps never share session state
    from pitchmatch.services.match import init_match_engine
    from pitchmatch.socketio_events import SocketIOBroadcastChannel, register_socketio_handlers
    init_match_engine(flask_app, SocketIOBroadcastChannel())
    register_socketio_handlers()

    @click.command('db-reset')
    def db_reset_command():
        """Drops, recreates, and seeds the database."""
        from pitchmatch.models import Player
        with flask_app.app_context():
            db.drop_all()
            db.create_all()

            seeded = []
            for name in DEMO_PLAYERS:
                player = Player(name=name)
                db.session.add(player)
                seeded.append(player)

            db.session.commit()
            for player in seeded:
                print(f'{player.name}: {player.id}')
            print('Database has been reset and seeded!')

    flask_app.cli.add_command(db_reset_command)

    return flask_app
