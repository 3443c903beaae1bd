import json
import logging

from scoreboard import db
from scoreboard.models import Snapshot
from scoreboard.services.coordinator import Coordinator
from scoreboard.services.enums import BracketStatus, MatchKind, MatchStatus, Side, SlotStatus
from scoreboard.services.store import SnapshotStore


def red_wins(session):
    for _ in range(2):
        if session.state.status is MatchStatus.ROUND_END:
            session.next_round()
        session.add_points(Side.RED, 3)
        session.end_round()
    return session.state


def restart(flask_app):
    """A second coordinator over the same database, as after a process restart."""
    fresh = Coordinator(flask_app)
    fresh.hydrate()
    return fresh


def write_raw(key, payload):
    db.session.merge(Snapshot(key=key, payload=payload, updated_at=0.0))
    db.session.commit()


# ---------------------------------------------------------
# Store
# ---------------------------------------------------------

def test_store_round_trip(flask_app):
    store = SnapshotStore(flask_app)
    assert store.load('missing') is None
    store.save('thing', {'a': 1})
    store.save('thing', {'a': 2})
    assert store.load('thing') == {'a': 2}
    keys = [row['key'] for row in store.describe()]
    assert keys.count('thing') == 1


def test_store_reports_malformed_rows_as_missing(flask_app, caplog):
    store = SnapshotStore(flask_app)
    write_raw('broken', '{not json')
    write_raw('listy', json.dumps([1, 2]))
    with caplog.at_level(logging.WARNING):
        assert store.load('broken') is None
        assert store.load('listy') is None
    assert sum('[store-malformed]' in r.getMessage() for r in caplog.records) == 2


# ---------------------------------------------------------
# Hydration
# ---------------------------------------------------------

def test_match_survives_restart(flask_app, coordinator):
    coordinator.match.start_match('Kim', 'Park', 90)
    coordinator.match.add_points(Side.BLUE, 4)
    coordinator.match.add_fault(Side.RED)

    again = restart(flask_app)
    state = again.match.state
    assert state.status is MatchStatus.FIGHT
    assert state.competitors.red == 'Kim'
    assert state.round_duration_seconds == 90
    assert state.score.blue == 5
    assert state.faults.red == 1
    assert len(state.undo_stack) == 2
    assert state.match_id == coordinator.match.state.match_id


def test_malformed_match_snapshot_falls_back_to_defaults(flask_app, caplog):
    write_raw('match', json.dumps({'status': 'NOT_A_STATUS'}))
    with caplog.at_level(logging.WARNING):
        again = restart(flask_app)
    assert again.match.state.status is MatchStatus.SETUP
    assert again.match.state.round_duration_seconds == 60
    assert any('[store-malformed] key=match' in r.getMessage() for r in caplog.records)


def test_unparseable_bracket_snapshot_falls_back_to_defaults(flask_app):
    write_raw('tournament', 'garbage')
    again = restart(flask_app)
    assert again.bracket.state.status is BracketStatus.SETUP
    assert again.bracket.state.roster == []


def test_wrongly_typed_fields_fall_back_to_defaults(flask_app, client, caplog):
    write_raw('match', json.dumps({'status': 'FIGHT', 'competitors': 'oops'}))
    write_raw('tournament', json.dumps({'status': 'SETUP', 'roster': ['Alice']}))

    with caplog.at_level(logging.WARNING):
        match = client.get('/api/match/state')
        tournament = client.get('/api/tournament/state')
    assert match.status_code == 200
    assert match.get_json()['status'] == 'SETUP'
    assert tournament.status_code == 200
    assert tournament.get_json()['roster'] == []
    messages = [r.getMessage() for r in caplog.records]
    assert any('[store-malformed] key=match' in m for m in messages)
    assert any('[store-malformed] key=tournament' in m for m in messages)


def test_bad_tournament_row_does_not_hide_other_snapshots(flask_app, coordinator):
    coordinator.match.start_match('Kim', 'Park', 75)
    match_id = coordinator.match.state.match_id
    coordinator.store.save('coordinator', {'last_consumed_match_id': 'abc123'})
    write_raw('tournament', json.dumps({'roster': ['Alice'], 'archive': 'nope'}))

    again = restart(flask_app)
    assert again.bracket.state.roster == []
    assert again.match.state.match_id == match_id
    assert again.match.state.round_duration_seconds == 75
    assert again.last_consumed_match_id == 'abc123'


def test_archive_records_without_ids_get_legacy_ids(flask_app):
    record = {
        'date': '2024-05-01T10:00:00+00:00',
        'red_name': 'Kim',
        'blue_name': 'Park',
        'winner': 'red',
        'final_score': '2-0',
        'round_history': [],
    }
    write_raw('match', json.dumps({'status': 'SETUP', 'match_archive': [record, dict(record)]}))
    write_raw('tournament', json.dumps({'status': 'SETUP', 'roster': [{'name': 'Old Timer'}]}))

    again = restart(flask_app)
    assert [m.id for m in again.match.state.match_archive] == ['legacy-0', 'legacy-1']
    assert again.bracket.state.roster[0].id == 'legacy-0'

    again.match.delete_history_item('legacy-1')
    assert [m.id for m in again.match.state.match_archive] == ['legacy-0']


def test_clock_stays_off_in_tests_after_hydrating_running_match(flask_app, coordinator):
    coordinator.match.start_match('Kim', 'Park', 60)
    coordinator.match.toggle_pause()
    again = restart(flask_app)
    assert again.match.state.is_paused is False
    assert not again.match.clock.running


# ---------------------------------------------------------
# Tournament hand-off across restarts
# ---------------------------------------------------------

def two_athlete_bracket(coordinator):
    coordinator.bracket.add_athlete('Kim')
    coordinator.bracket.add_athlete('Park')
    coordinator.bracket.generate_bracket()
    assert coordinator.start_bracket_match(0, 0) is not None


def test_delivered_handoff_is_not_replayed(flask_app, coordinator):
    two_athlete_bracket(coordinator)
    red_wins(coordinator.match)
    assert coordinator.bracket.state.status is BracketStatus.FINISHED
    assert len(coordinator.bracket.state.archive) == 1

    again = restart(flask_app)
    assert again.last_consumed_match_id == coordinator.match.state.match_id
    assert again.bracket.state.status is BracketStatus.FINISHED
    assert len(again.bracket.state.archive) == 1


def test_undelivered_handoff_is_delivered_on_hydrate(flask_app, coordinator):
    two_athlete_bracket(coordinator)
    # Finish the match with the hand-off unhooked, as if the process died in between
    coordinator.match._listeners.clear()
    finished = red_wins(coordinator.match)
    assert finished.status is MatchStatus.MATCH_END
    assert finished.match_kind is MatchKind.TOURNAMENT
    assert coordinator.bracket.state.status is BracketStatus.MATCH_ACTIVE

    again = restart(flask_app)
    bracket = again.bracket.state
    assert bracket.status is BracketStatus.FINISHED
    assert bracket.rounds[0][0].status is SlotStatus.DONE
    assert bracket.rounds[0][0].score == '2-0'
    assert again.last_consumed_match_id == finished.match_id
