from flask import Flask
from flask_cors import CORS
from flask_socketio import SocketIO
import click
from config import Config

allowed_origins = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
    "http://localhost:5173",
    "http://127.0.0.1:5173",
]
socketio = SocketIO(cors_allowed_origins=allowed_origins, async_mode=None)

def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)

    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    from yahtzee_server.match import Match
    from yahtzee_server.services.games.scheduler import OverlayScheduler

    # In tests timers queue up until the test fires them
    deferred = bool(flask_app.config.get('TESTING')) and not flask_app.config.get('ENABLE_SCHEDULER_IN_TESTS')
    scheduler = OverlayScheduler(socketio, flask_app.logger, deferred=deferred)
    flask_app.extensions['yahtzee_match'] = Match.from_config(
        flask_app.config, socketio, scheduler, flask_app.logger
    )

    from yahtzee_server.main import main
    flask_app.register_blueprint(main)

    from yahtzee_server.api.games import games
    flask_app.register_blueprint(games, url_prefix='/api/game')

    from yahtzee_server.socketio_events import register_socketio_handlers
    register_socketio_handlers()

    @click.command('score-dice')
    @click.argument('dice', nargs=5, type=click.IntRange(1, 6))
    @click.option('--han', is_flag=True, help='Score as a han mode turn.')
    def score_dice_command(dice, han):
        """Prints every category's score for five dice."""
        from yahtzee_server.models import CATEGORIES
        from yahtzee_server.services.games.scoring import calc_score

        for cat in CATEGORIES:
            click.echo(f"{cat:<14}{calc_score(cat, dice, han):>4}")

    flask_app.cli.add_command(score_dice_command)

    return flask_app
