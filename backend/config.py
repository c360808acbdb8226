import os

class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    # Playable grid: integer coordinates in [COORD_MIN, COORD_MAX] on both axes
    COORD_MIN = int(os.environ.get('COORD_MIN', '-6'))
    COORD_MAX = int(os.environ.get('COORD_MAX', '6'))
    # Board geometry (pixels)
    VIEWPORT_WIDTH_PX = int(os.environ.get('VIEWPORT_WIDTH_PX', '500'))
    VIEWPORT_HEIGHT_PX = int(os.environ.get('VIEWPORT_HEIGHT_PX', '500'))
    UNIT_SIZE_PX = int(os.environ.get('UNIT_SIZE_PX', '40'))
    # Max deviation (grid units) between a pointer and a grid point, per axis
    CLICK_TOLERANCE = float(os.environ.get('CLICK_TOLERANCE', '0.3'))
    ON_LINE_EPSILON = float(os.environ.get('ON_LINE_EPSILON', '1e-3'))
    # Verdict screen hold before the next round (ms)
    ROUND_ADVANCE_DELAY_MS = int(os.environ.get('ROUND_ADVANCE_DELAY_MS', '3000'))
    # Countdown defaults, used until the player changes the settings controls
    TIMER_ENABLED_DEFAULT = os.environ.get('TIMER_ENABLED_DEFAULT', '0') in ('1', 'true', 'yes')
    TIMER_DEFAULT_SEC = int(os.environ.get('TIMER_DEFAULT_SEC', '30'))
    TIMER_TICK_SEC = float(os.environ.get('TIMER_TICK_SEC', '1'))
    # Length of generated session codes
    SESSION_CODE_LENGTH = int(os.environ.get('SESSION_CODE_LENGTH', '4'))
    # Grace period before an abandoned session (no connected socket) is ended
    SESSION_END_GRACE_SEC = float(os.environ.get('SESSION_END_GRACE_SEC', '30'))
