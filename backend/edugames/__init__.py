from flask import Flask, jsonify
from flask_sqlalchemy import SQLAlchemy
from flask_login import LoginManager
from flask_cors import CORS
from flask_migrate import Migrate
from werkzeug.exceptions import HTTPException
import click
from config import Config

db = SQLAlchemy()
login_manager = LoginManager()
migrate = Migrate()

def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)

    db.init_app(flask_app)
    login_manager.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(
        flask_app,
        resources={r"/api/*": {"origins": flask_app.config.get('CORS_ORIGINS', '*')}},
        methods=['GET', 'POST', 'PUT', 'DELETE', 'OPTIONS'],
        allow_headers=['Content-Type', 'Authorization'],
        max_age=600,
    )

    # Token minter, code sender and raw-event sink are built once per app
    from edugames.services.context import Collaborators
    flask_app.extensions['edugames'] = Collaborators.from_config(flask_app.config)

    # Import and register blueprints here
    from edugames.main import main
    flask_app.register_blueprint(main, url_prefix='/api')

    from edugames.api.games import games
    flask_app.register_blueprint(games, url_prefix='/api/games')

    # Bearer-token loader for Flask-Login
    from edugames.auth import load_user_from_request

    login_manager.request_loader(load_user_from_request)

    @login_manager.unauthorized_handler
    def unauthorized():
        return jsonify({'ok': False, 'error': 'unauthorized'}), 401

    from edugames.services.errors import ServiceError

    @flask_app.errorhandler(ServiceError)
    def handle_service_error(exc):
        return jsonify(exc.to_dict()), exc.status

    @flask_app.errorhandler(HTTPException)
    def handle_http_error(exc):
        if exc.code == 404:
            return jsonify({'ok': False, 'error': 'not_found'}), 404
        if exc.code == 405:
            return jsonify({'ok': False, 'error': 'method_not_allowed'}), 405
        return jsonify({'ok': False, 'error': 'bad_request'}), exc.code

    @flask_app.errorhandler(Exception)
    def handle_unexpected_error(exc):
        flask_app.logger.exception(f"[internal-error] {exc}")
        db.session.rollback()
        return jsonify({'ok': False, 'error': 'internal_error'}), 500

    @click.command('db-reset')
    def db_reset_command():
        """Drops and recreates the database."""
        with flask_app.app_context():
            db.drop_all()
            db.create_all()
            print('Database has been reset!')

    @click.command('seed-stats')
    @click.argument('phone')
    @click.argument('game_id')
    @click.argument('stars', type=int)
    def seed_stats_command(phone, game_id, stars):
        """Imports a legacy star rating for PHONE on GAME_ID."""
        from edugames.services.identity import import_legacy_stats
        with flask_app.app_context():
            stats = import_legacy_stats(phone, game_id, stars)
            print(f"Imported {game_id} best_stars={stats.best_stars} for {phone}")

    flask_app.cli.add_command(db_reset_command)
    flask_app.cli.add_command(seed_stats_command)

    return flask_app
