from flask import Blueprint, request, jsonify

from scoreboard.services.coordinator import get_coordinator

main = Blueprint('main', __name__)

@main.route('/')
def index():
    return jsonify({'message': 'Welcome to the scoreboard server!'})

@main.route('/health')
def health():
    coordinator = get_coordinator()
    return jsonify({
        'status': 'ok',
        'match_status': coordinator.match.state.status.value,
        'tournament_status': coordinator.bracket.state.status.value,
        'clock_running': coordinator.match.clock.running,
        'snapshots': coordinator.store.describe(),
    })

@main.route('/api/data/clear', methods=['POST'])
def clear_data():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        data = {}
    if data.get('confirm') is not True:
        return jsonify({'error': 'Send {"confirm": true} to delete all scoreboard data'}), 400
    coordinator = get_coordinator()
    coordinator.clear_all_data()
    return jsonify({
        'match': coordinator.match.state.to_dict(),
        'tournament': coordinator.bracket.state.to_view(),
    })
