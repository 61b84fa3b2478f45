import os

class Config:
    # Origins allowed to talk to the HTTP API and the socket namespace (comma separated)
    CORS_ORIGINS = [o.strip() for o in os.environ.get(
        'CORS_ORIGINS',
        'http://localhost:5173,http://127.0.0.1:5173,http://localhost:3000,http://127.0.0.1:3000',
    ).split(',') if o.strip()]
    # Room codes: fixed length, uppercase alphanumeric
    ROOM_CODE_LENGTH = int(os.environ.get('ROOM_CODE_LENGTH', '6'))
    # Question loading caps and defaults
    MAX_QUESTIONS = int(os.environ.get('MAX_QUESTIONS', '50'))
    DEFAULT_POINTS = int(os.environ.get('DEFAULT_POINTS', '1000'))
    # Advisory only: sent to clients for countdowns, never enforced server-side
    DEFAULT_TIME_LIMIT_SEC = int(os.environ.get('DEFAULT_TIME_LIMIT_SEC', '20'))
    # How many leaderboard rows the public room snapshot carries
    LEADERBOARD_PUBLIC_SIZE = int(os.environ.get('LEADERBOARD_PUBLIC_SIZE', '10'))
