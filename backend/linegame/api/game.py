from flask import Blueprint, jsonify, request, current_app
from typing import Optional, Tuple
import math

from linegame.services.game.sessions import create_session, end_session, get_session
from linegame.socketio_events import schedule_end_if_abandoned


game = Blueprint('game', __name__)


def _payload(session):
    controller = session.controller
    payload = {
        'session_code': session.code,
        'state': controller.get_round_state(),
        'equation': controller.get_equation(),
        'feedback': session.listener.drain_feedback(),
        'advance_delay_ms': current_app.config.get('ROUND_ADVANCE_DELAY_MS', 3000),
    }
    return payload


def _read_viewport_point(data) -> Optional[Tuple[float, float]]:
    try:
        x, y = float(data['x']), float(data['y'])
    except (KeyError, TypeError, ValueError):
        return None
    if not (math.isfinite(x) and math.isfinite(y)):
        return None
    return x, y


def _session_or_404(session_code):
    session = get_session(session_code)
    if session is None:
        return None, (jsonify({'error': 'Session not found'}), 404)
    return session, None


@game.route('/create', methods=['POST'])
def create():
    data = request.get_json(silent=True) or {}
    settings = data.get('settings') if isinstance(data, dict) else None
    if settings is not None and not isinstance(settings, dict):
        return jsonify({'error': 'settings must be an object'}), 400
    session = create_session(current_app._get_current_object())
    # Reclaimed unless a socket joins within the grace period
    schedule_end_if_abandoned(session.code)
    if settings:
        session.controller.apply_settings(settings)
    return jsonify(_payload(session)), 201


@game.route('/<string:session_code>/state', methods=['GET'])
def get_state(session_code):
    session, error = _session_or_404(session_code)
    if error:
        return error
    return jsonify(_payload(session))


@game.route('/<string:session_code>/select', methods=['POST'])
def select_point(session_code):
    session, error = _session_or_404(session_code)
    if error:
        return error
    point = _read_viewport_point(request.get_json(silent=True))
    if point is None:
        return jsonify({'error': 'Numeric x and y are required'}), 400
    accepted = session.controller.pointer_select(*point)
    payload = _payload(session)
    payload['accepted'] = accepted
    return jsonify(payload)


@game.route('/<string:session_code>/hover', methods=['POST'])
def hover_point(session_code):
    session, error = _session_or_404(session_code)
    if error:
        return error
    point = _read_viewport_point(request.get_json(silent=True))
    if point is None:
        return jsonify({'error': 'Numeric x and y are required'}), 400
    session.controller.pointer_hover(*point)
    return jsonify(_payload(session))


@game.route('/<string:session_code>/submit', methods=['POST'])
def submit_answer(session_code):
    session, error = _session_or_404(session_code)
    if error:
        return error
    verdict = session.controller.submit_answer()
    payload = _payload(session)
    payload['verdict'] = verdict
    return jsonify(payload)


@game.route('/<string:session_code>/settings', methods=['POST'])
def apply_settings(session_code):
    session, error = _session_or_404(session_code)
    if error:
        return error
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({'error': 'Settings object is required'}), 400
    applied = session.controller.apply_settings(data)
    payload = _payload(session)
    payload['applied'] = applied
    return jsonify(payload)


@game.route('/<string:session_code>/new-round', methods=['POST'])
def new_round(session_code):
    session, error = _session_or_404(session_code)
    if error:
        return error
    session.controller.new_round()
    return jsonify(_payload(session))


@game.route('/<string:session_code>', methods=['DELETE'])
def delete_session(session_code):
    if not end_session(session_code):
        return jsonify({'error': 'Session not found'}), 404
    return jsonify({'message': 'Session ended'})
