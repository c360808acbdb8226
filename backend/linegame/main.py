from flask import Blueprint, current_app, jsonify

from linegame.services.game.sessions import session_codes

main = Blueprint('main', __name__)

@main.route('/')
def index():
    return jsonify({
        'message': 'Welcome to the find-the-line game server!',
        'active_sessions': len(session_codes()),
    })

@main.route('/config')
def board_config():
    """Board constants the front end needs to draw the grid."""
    cfg = current_app.config
    return jsonify({
        'coord_min': cfg.get('COORD_MIN', -6),
        'coord_max': cfg.get('COORD_MAX', 6),
        'viewport_width': cfg.get('VIEWPORT_WIDTH_PX', 500),
        'viewport_height': cfg.get('VIEWPORT_HEIGHT_PX', 500),
        'unit_size': cfg.get('UNIT_SIZE_PX', 40),
        'click_tolerance': cfg.get('CLICK_TOLERANCE', 0.3),
    })
