from flask import Flask, current_app, jsonify
from flask_cors import CORS
from flask_socketio import SocketIO
import click
import json
from config import Config
from quizroom.services.quiz import RoomRegistry, SessionEngine, SessionError
from quizroom.services.quiz.sanitize import sanitize_questions

socketio = SocketIO(async_mode=None)


def get_engine(flask_app=None) -> SessionEngine:
    """The session engine owned by the given (or current) app."""
    return (flask_app or current_app).extensions['quizroom']


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    allowed_origins = flask_app.config.get('CORS_ORIGINS') or []

    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    # One registry per app: all live rooms for this process
    registry = RoomRegistry(code_length=flask_app.config.get('ROOM_CODE_LENGTH', 6))
    flask_app.extensions['quizroom'] = SessionEngine(
        registry,
        max_questions=flask_app.config.get('MAX_QUESTIONS', 50),
        default_points=flask_app.config.get('DEFAULT_POINTS', 1000),
        default_time_limit=flask_app.config.get('DEFAULT_TIME_LIMIT_SEC', 20),
        leaderboard_size=flask_app.config.get('LEADERBOARD_PUBLIC_SIZE', 10),
    )

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    from quizroom.main import main
    flask_app.register_blueprint(main)

    from quizroom.api.rooms import rooms
    flask_app.register_blueprint(rooms, url_prefix='/api/rooms')

    @flask_app.errorhandler(SessionError)
    def handle_session_error(exc):
        return jsonify(exc.to_dict()), exc.status

    # Importing here ensures the handlers bind to the initialized socketio instance
    from quizroom.socketio_events import register_socketio_handlers
    register_socketio_handlers(testing=flask_app.config.get('TESTING', False))

    @click.command('check-questions')
    @click.argument('path', type=click.Path(exists=True, dir_okay=False))
    def check_questions_command(path):
        """Sanitize a JSON question file the way the server would and report the result."""
        with open(path, encoding='utf-8') as fh:
            try:
                payload = json.load(fh)
            except ValueError as exc:
                raise click.ClickException(f'{path} is not valid JSON: {exc}')
        if isinstance(payload, dict):
            payload = payload.get('questions')
        questions, skipped = sanitize_questions(
            payload,
            limit=flask_app.config.get('MAX_QUESTIONS', 50),
            default_points=flask_app.config.get('DEFAULT_POINTS', 1000),
            default_time_limit=flask_app.config.get('DEFAULT_TIME_LIMIT_SEC', 20),
        )
        for i, q in enumerate(questions, start=1):
            media = f' [{q.media.kind}]' if q.media else ''
            click.echo(f'{i:>2}. {q.text} ({len(q.options)} options, {q.points} pts, {q.time_limit}s){media}')
        click.echo(f'{len(questions)} usable, {skipped} skipped')
        if not questions:
            raise click.ClickException('No usable questions')

    flask_app.cli.add_command(check_questions_command)

    return flask_app
