from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_cors import CORS
from flask_migrate import Migrate
import click
from config import Config

db = SQLAlchemy()
migrate = Migrate()


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)

    db.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, origins=flask_app.config.get('CORS_ORIGINS') or '*')

    # Collaborators live on app.extensions so tests can swap in fakes
    from promptparty.services.games.rounds import GameRules, RoundEngine
    flask_app.extensions['round_engine'] = RoundEngine(GameRules.from_config(flask_app.config))

    from promptparty.services.store import init_store
    init_store(flask_app)

    from promptparty.services.chain import init_chain
    init_chain(flask_app)

    # Import and register blueprints here
    from promptparty.routes import main
    flask_app.register_blueprint(main)

    from promptparty.api.state import state
    flask_app.register_blueprint(state, url_prefix='/api/state')

    from promptparty.api.finalize import finalize
    flask_app.register_blueprint(finalize, url_prefix='/api/finalize')

    @click.command('purge-matches')
    def purge_matches_command():
        """Deletes expired match records from the SQL store."""
        from promptparty.services.store import SqlMatchStore
        with flask_app.app_context():
            store = flask_app.extensions.get('match_store')
            if not isinstance(store, SqlMatchStore):
                print('Match store is not SQL-backed; Redis expires keys on its own.')
                return
            removed = store.purge_expired()
            print(f'Removed {removed} expired match records.')

    flask_app.cli.add_command(purge_matches_command)

    return flask_app
