from flask import Blueprint, jsonify, current_app

main = Blueprint('main', __name__)

@main.route('/')
def index():
    return jsonify({'message': 'Welcome to the Prompt Party match server!'})

@main.route('/healthz')
def healthz():
    ext = current_app.extensions
    return jsonify({
        'ok': True,
        'store': type(ext.get('match_store')).__name__,
        'chain': 'roster' in ext,
        'catalog': 'catalog' in ext,
        'relayer': 'ledger' in ext,
    })
