from flask import Flask
from flask_cors import CORS
from flask_socketio import SocketIO
import click
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

    # Fail fast on a broken level table or base list
    from bintris.services.games import GameSettings
    settings = GameSettings.from_config(flask_app.config)
    flask_app.extensions['bintris.settings'] = settings

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    # Import and register blueprints here
    from bintris.main import main
    flask_app.register_blueprint(main)

    from bintris.api.games import games
    # Mount game routes under /api to match frontend API client
    flask_app.register_blueprint(games, url_prefix='/api/games')

    # Register Socket.IO event handlers
    from bintris.socketio_events import register_socketio_handlers
    register_socketio_handlers(testing=flask_app.config.get('TESTING', False))

    @click.command('levels')
    def levels_command():
        """Prints the configured level table."""
        click.echo(f"binary length: {settings.binary_length}  bases: {', '.join(str(b) for b in settings.bases)}")
        click.echo(f"{'level':>5} {'points':>6} {'delay':>6} {'advance':>7} {'max':>4}")
        for number, level in sorted(settings.levels.items()):
            click.echo(
                f"{number:>5} {level.points:>6} {level.delay:>6.1f} {level.threshold:>7} "
                f"{settings.max_on_screen_for(number):>4}"
            )

    flask_app.cli.add_command(levels_command)

    return flask_app
