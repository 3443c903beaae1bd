import os

class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or 'sqlite:///scoreboard.db'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    CORS_ORIGINS = [o.strip() for o in os.environ.get(
        'CORS_ORIGINS', 'http://localhost:5173,http://127.0.0.1:5173'
    ).split(',') if o.strip()]
    # Round clock (seconds)
    DEFAULT_ROUND_DURATION_SEC = int(os.environ.get('DEFAULT_ROUND_DURATION_SEC', '60'))
    TICK_INTERVAL_SEC = float(os.environ.get('TICK_INTERVAL_SEC', '1.0'))
    # Optional: heartbeat interval for clock worker logs (sec). 0 disables.
    TIMER_HEARTBEAT_SEC = int(os.environ.get('TIMER_HEARTBEAT_SEC', '0'))
    # Names used when the set-up form leaves a side blank
    DEFAULT_RED_NAME = os.environ.get('DEFAULT_RED_NAME', 'Red')
    DEFAULT_BLUE_NAME = os.environ.get('DEFAULT_BLUE_NAME', 'Blue')
    # When enabled, points and faults are only accepted while the clock runs
    SCORING_REQUIRES_RUNNING_CLOCK = os.environ.get('SCORING_REQUIRES_RUNNING_CLOCK', '0') == '1'
