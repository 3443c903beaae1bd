from flask import Blueprint, jsonify, request

from scoreboard.services.coordinator import get_coordinator


tournament_api = Blueprint('tournament_api', __name__)


def _payload() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def _respond(state):
    return jsonify(state.to_view())


@tournament_api.route('/state', methods=['GET'])
def get_state():
    return _respond(get_coordinator().bracket.state)


@tournament_api.route('/athletes', methods=['POST'])
def add_athlete():
    data = _payload()
    return _respond(get_coordinator().bracket.add_athlete(data.get('name')))


@tournament_api.route('/athletes/<string:athlete_id>', methods=['DELETE'])
def remove_athlete(athlete_id):
    return _respond(get_coordinator().bracket.remove_athlete(athlete_id))


@tournament_api.route('/generate', methods=['POST'])
def generate_bracket():
    return _respond(get_coordinator().bracket.generate_bracket())


@tournament_api.route('/slots/<int:round_index>/<int:slot_index>/start', methods=['POST'])
def start_slot(round_index, slot_index):
    data = _payload()
    coordinator = get_coordinator()
    pairing = coordinator.start_bracket_match(round_index, slot_index, data.get('duration'))
    return jsonify({
        'pairing': pairing,
        'tournament': coordinator.bracket.state.to_view(),
        'match': coordinator.match.state.to_dict(),
    })


@tournament_api.route('/back', methods=['POST'])
def back_to_bracket():
    coordinator = get_coordinator()
    coordinator.abort_bracket_match()
    return _respond(coordinator.bracket.state)


@tournament_api.route('/reset', methods=['POST'])
def reset_tournament():
    return _respond(get_coordinator().bracket.reset_tournament())


@tournament_api.route('/history/<string:item_id>', methods=['DELETE'])
def delete_history(item_id):
    state = get_coordinator().bracket.delete_tournament_history(item_id)
    return jsonify([t.to_dict() for t in state.archive])
