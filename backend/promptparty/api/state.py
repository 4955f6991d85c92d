from flask import Blueprint, jsonify, request, current_app
from werkzeug.exceptions import HTTPException

from promptparty.services.chain import CatalogEmpty
from promptparty.services.games.coordinator import coordinator_for
from promptparty.services.games.match import MatchSchemaError
from promptparty.services.games.rounds import RuleViolation

state = Blueprint('state', __name__)


def _parse_game_id(raw):
    try:
        game_id = int(raw or 0)
    except (TypeError, ValueError):
        return None
    return game_id if game_id > 0 else None


def _missing_env(*keys):
    missing = [k for k in keys if k not in current_app.extensions]
    if not missing:
        return None
    return jsonify({'error': 'missing env (GAME_ADDRESS/RPC_URL/CARDS_ADDRESS)', 'missing': missing}), 500


@state.errorhandler(RuleViolation)
def handle_rule_violation(exc):
    current_app.logger.info(f"[act-reject] {type(exc).__name__}: {exc.reason}")
    return jsonify({'error': exc.reason}), exc.status_code


@state.errorhandler(CatalogEmpty)
@state.errorhandler(MatchSchemaError)
def handle_unusable_state(exc):
    current_app.logger.error(f"[state] {type(exc).__name__}: {exc}")
    return jsonify({'error': str(exc)}), 500


@state.errorhandler(Exception)
def handle_unexpected(exc):
    if isinstance(exc, HTTPException):
        return exc
    current_app.logger.exception(f"[state] err: {exc}")
    return jsonify({'error': str(exc) or 'failed'}), 500


@state.route('/get', methods=['GET'])
def observe_state():
    """
    Ticks the match once and returns the public view plus the caller's hand.
    """
    game_id = _parse_game_id(request.args.get('gameId'))
    if not game_id:
        return jsonify({'error': 'bad gameId'}), 400
    missing = _missing_env('roster', 'catalog')
    if missing:
        return missing

    me = request.args.get('me')
    payload = coordinator_for(current_app).observe(game_id, me)
    return jsonify(payload)


@state.route('/put', methods=['POST'])
def act_on_state():
    """
    Applies one player action (submit, judge_pick or nudge) between two ticks.
    """
    data = request.get_json(silent=True) or {}
    game_id = _parse_game_id(data.get('gameId'))
    sender = str(data.get('from') or data.get('player') or '').strip().lower()
    if not game_id or not sender:
        return jsonify({'error': 'bad args'}), 400
    missing = _missing_env('roster')
    if missing:
        return missing

    action = data.get('action')
    payload = data.get('payload') if isinstance(data.get('payload'), dict) else {}
    match = coordinator_for(current_app).act(game_id, sender, action, payload)
    return jsonify({'ok': True, 'state': match.to_dict()})
