import os

class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or 'sqlite:///promptparty.db'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    # Match state store: 'redis' or 'sql'
    REDIS_URL = os.environ.get('REDIS_URL')
    MATCH_STORE = os.environ.get('MATCH_STORE') or ('redis' if REDIS_URL else 'sql')
    MATCH_TTL_SEC = int(os.environ.get('MATCH_TTL_SEC', str(60 * 60 * 24)))
    # Chain collaborators
    RPC_URL = os.environ.get('RPC_URL')
    GAME_ADDRESS = os.environ.get('GAME_ADDRESS')
    CARDS_ADDRESS = os.environ.get('CARDS_ADDRESS')
    RELAYER_PK = os.environ.get('RELAYER_PK')
    # Optional shared secret for the finalize endpoint
    API_KEY = os.environ.get('API_KEY')
    # Phase timers (seconds)
    ROUND_PRESTART_SECS = int(os.environ.get('ROUND_PRESTART_SECS', '10'))
    ROUND_SUBMIT_SECS = int(os.environ.get('ROUND_SUBMIT_SECS', '45'))
    ROUND_JUDGE_SECS = int(os.environ.get('ROUND_JUDGE_SECS', '30'))
    ROUND_SUMMARY_SECS = int(os.environ.get('ROUND_SUMMARY_SECS', '6'))
    ROUNDS_TOTAL = int(os.environ.get('ROUNDS_TOTAL', '10'))
    HAND_SIZE = int(os.environ.get('HAND_SIZE', '7'))
    # Card catalog paging
    CATALOG_PAGE_SIZE = int(os.environ.get('CATALOG_PAGE_SIZE', '200'))
    CATALOG_MAX_IDS = int(os.environ.get('CATALOG_MAX_IDS', '4000'))
    CORS_ORIGINS = [
        o.strip() for o in (os.environ.get('CORS_ORIGINS') or
                            'http://localhost:5173,http://127.0.0.1:5173').split(',') if o.strip()
    ]
