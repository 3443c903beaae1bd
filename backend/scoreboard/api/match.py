from flask import Blueprint, jsonify, request

from scoreboard.errors import InvalidRequest
from scoreboard.services.coordinator import get_coordinator
from scoreboard.services.enums import MatchKind, parse_side


match_api = Blueprint('match_api', __name__)

# Calls the rules reject (wrong status, empty undo stack, ...) are not errors:
# they answer 200 with the unchanged state. Only requests that cannot be
# read at all get a 400.


def _payload() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def _side(data: dict, key: str = 'side'):
    side = parse_side(data.get(key))
    if side is None:
        raise InvalidRequest(f"'{key}' must be 'red' or 'blue'")
    return side


def _respond(state):
    return jsonify(state.to_dict())


@match_api.route('/state', methods=['GET'])
def get_state():
    return _respond(get_coordinator().match.state)


@match_api.route('/start', methods=['POST'])
def start_match():
    data = _payload()
    try:
        kind = MatchKind(data.get('kind') or MatchKind.STANDALONE.value)
    except ValueError:
        raise InvalidRequest("'kind' must be 'standalone' or 'tournament'")
    match = get_coordinator().match
    return _respond(match.start_match(data.get('red'), data.get('blue'), data.get('duration'), kind))


@match_api.route('/duration', methods=['POST'])
def set_duration():
    data = _payload()
    return _respond(get_coordinator().match.set_round_duration(data.get('seconds')))


@match_api.route('/pause', methods=['POST'])
def toggle_pause():
    return _respond(get_coordinator().match.toggle_pause())


@match_api.route('/timer/reset', methods=['POST'])
def reset_timer():
    return _respond(get_coordinator().match.reset_timer())


@match_api.route('/points', methods=['POST'])
def add_points():
    data = _payload()
    side = _side(data)
    points = data.get('points', 1)
    if isinstance(points, bool) or not isinstance(points, int):
        raise InvalidRequest("'points' must be an integer")
    return _respond(get_coordinator().match.add_points(side, points))


@match_api.route('/fault', methods=['POST'])
def add_fault():
    side = _side(_payload())
    return _respond(get_coordinator().match.add_fault(side))


@match_api.route('/undo', methods=['POST'])
def undo():
    return _respond(get_coordinator().match.undo_last_action())


@match_api.route('/end-round', methods=['POST'])
def end_round():
    data = _payload()
    winner = _side(data, 'winner') if data.get('winner') is not None else None
    return _respond(get_coordinator().match.end_round(winner))


@match_api.route('/resolve-draw', methods=['POST'])
def resolve_draw():
    side = _side(_payload())
    return _respond(get_coordinator().match.resolve_draw(side))


@match_api.route('/next-round', methods=['POST'])
def next_round():
    return _respond(get_coordinator().match.next_round())


@match_api.route('/reset', methods=['POST'])
def reset_match():
    return _respond(get_coordinator().match.reset_match())


@match_api.route('/new', methods=['POST'])
def new_match():
    return _respond(get_coordinator().match.new_match())


@match_api.route('/history', methods=['GET'])
def get_history():
    state = get_coordinator().match.state
    return jsonify([m.to_dict() for m in state.match_archive])


@match_api.route('/history/<string:item_id>', methods=['DELETE'])
def delete_history_item(item_id):
    state = get_coordinator().match.delete_history_item(item_id)
    return jsonify([m.to_dict() for m in state.match_archive])
