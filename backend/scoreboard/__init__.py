from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
import atexit
import click
from config import Config

db = SQLAlchemy()
migrate = Migrate()
socketio = SocketIO(async_mode=None)

def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    allowed_origins = flask_app.config.get('CORS_ORIGINS') or []

    db.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    # Make sure the snapshot table is known to SQLAlchemy
    from scoreboard import models  # noqa: F401

    # One coordinator per app: the live match, the bracket and their hand-off
    from scoreboard.services.coordinator import Coordinator, EXTENSION_KEY
    coordinator = Coordinator(flask_app)
    flask_app.extensions[EXTENSION_KEY] = coordinator
    atexit.register(coordinator.shutdown)

    # Import and register blueprints here
    from scoreboard.main import main
    flask_app.register_blueprint(main)

    from scoreboard.api.match import match_api
    flask_app.register_blueprint(match_api, url_prefix='/api/match')

    from scoreboard.api.tournament import tournament_api
    flask_app.register_blueprint(tournament_api, url_prefix='/api/tournament')

    from scoreboard.errors import register_error_handlers
    register_error_handlers(flask_app)

    # Register Socket.IO event handlers
    from scoreboard.socketio_events import register_socketio_handlers
    register_socketio_handlers(testing=flask_app.config.get('TESTING', False))

    @click.command('init-db')
    def init_db_command():
        """Creates the snapshot table if it does not exist."""
        with flask_app.app_context():
            db.create_all()
        click.echo('Database is ready.')

    @click.command('clear-data')
    @click.confirmation_option(prompt='This deletes every match record, athlete and tournament. Continue?')
    def clear_data_command():
        """Wipes the match archive, the roster and the tournament archive."""
        with flask_app.app_context():
            coordinator.hydrate()
            coordinator.clear_all_data()
        click.echo('All scoreboard data has been cleared.')

    flask_app.cli.add_command(init_db_command)
    flask_app.cli.add_command(clear_data_command)

    return flask_app
