from flask import Blueprint, jsonify, request, current_app

from promptparty.services.games.finalize import FinalizeError, FinalizeOrchestrator
from promptparty.services.games.scoring import ScoresPayloadError, final_scores, normalize_final_scores
from promptparty.services.store import match_key

finalize = Blueprint('finalize', __name__)


def _bad(msg, code=400, **extra):
    return jsonify({'ok': False, 'error': msg, **extra}), code


@finalize.route('', methods=['POST'])
def finalize_game():
    """
    Settles a finished match: finalize on the game contract, then push
    scores to the leaderboard. Scores come from the body or, when the body
    carries none, from the stored match.
    """
    api_key = current_app.config.get('API_KEY')
    if api_key and request.headers.get('x-api-key') != api_key:
        return _bad('Unauthorized', 401)

    ledger = current_app.extensions.get('ledger')
    if ledger is None:
        return _bad('Server missing RPC_URL / GAME_ADDRESS / RELAYER_PK', 500)

    body = request.get_json(silent=True) or {}
    try:
        game_id = int(body.get('gameId') or body.get('id') or 0)
    except (TypeError, ValueError):
        game_id = 0
    if game_id <= 0:
        return _bad('Missing/invalid gameId')

    round_count = body.get('roundCount')
    try:
        if body.get('scores') is not None:
            players, scores = normalize_final_scores(body.get('players'), body.get('scores'))
        else:
            store = current_app.extensions['match_store']
            match = store.get(match_key(current_app.config['GAME_ADDRESS'], game_id))
            if match is None:
                return _bad('No match state for this game', 404)
            players, scores = normalize_final_scores(match.players, final_scores(match))
            round_count = round_count or match.rounds_total
    except ScoresPayloadError as exc:
        return _bad(str(exc))

    try:
        round_count = int(round_count or current_app.config.get('ROUNDS_TOTAL', 10))
    except (TypeError, ValueError):
        return _bad('Missing/invalid roundCount')
    if round_count <= 0:
        return _bad('Missing/invalid roundCount')

    orchestrator = FinalizeOrchestrator(ledger, log=current_app.logger)
    try:
        result = orchestrator.run(game_id, players, scores, round_count)
    except FinalizeError as exc:
        current_app.logger.warning(f"[finalize] game={game_id} rejected: {exc.reason}")
        return _bad(exc.reason, exc.status_code, **exc.extra)
    return jsonify(result.to_dict())
