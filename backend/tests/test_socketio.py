def names(packets):
    return [p['name'] for p in packets]


def updates(packets, kind):
    return [p['args'][0]['state'] for p in packets
            if p['name'] == 'state_update' and p['args'][0]['kind'] == kind]


def test_connect_sends_current_state(sio_client):
    assert sio_client.is_connected('/ws')
    received = sio_client.get_received('/ws')
    assert 'connected' in names(received)
    assert updates(received, 'match')[0]['status'] == 'SETUP'
    assert updates(received, 'tournament')[0]['status'] == 'SETUP'


def test_subscriber_gets_every_transition(sio_client, client):
    sio_client.get_received('/ws')
    sio_client.emit('subscribe', {}, namespace='/ws')
    received = sio_client.get_received('/ws')
    assert 'subscribed' in names(received)

    client.post('/api/match/start', json={'red': 'Kim', 'blue': 'Park'})
    client.post('/api/match/points', json={'side': 'red', 'points': 2})
    received = sio_client.get_received('/ws')
    states = updates(received, 'match')
    assert [s['status'] for s in states] == ['FIGHT', 'FIGHT']
    assert states[-1]['score'] == {'red': 2, 'blue': 0}


def test_rejected_call_broadcasts_nothing(sio_client, client):
    sio_client.emit('subscribe', {}, namespace='/ws')
    sio_client.get_received('/ws')
    client.post('/api/match/undo', json={})
    assert updates(sio_client.get_received('/ws'), 'match') == []


def test_tournament_updates_carry_names(sio_client, client):
    sio_client.emit('subscribe', {}, namespace='/ws')
    sio_client.get_received('/ws')
    client.post('/api/tournament/athletes', json={'name': 'Kim'})
    client.post('/api/tournament/athletes', json={'name': 'Park'})
    client.post('/api/tournament/generate', json={})
    states = updates(sio_client.get_received('/ws'), 'tournament')
    assert states[-1]['status'] == 'BRACKET'
    slot = states[-1]['rounds'][0][0]
    assert {slot['player1_name'], slot['player2_name']} == {'Kim', 'Park'}


def test_unsubscribe_stops_updates(sio_client, client):
    sio_client.emit('subscribe', {}, namespace='/ws')
    sio_client.emit('unsubscribe', {}, namespace='/ws')
    sio_client.get_received('/ws')
    client.post('/api/match/start', json={'red': 'Kim', 'blue': 'Park'})
    assert updates(sio_client.get_received('/ws'), 'match') == []


def test_ping_pong(sio_client):
    sio_client.get_received('/ws')
    sio_client.emit('ping', {'n': 1}, namespace='/ws')
    received = sio_client.get_received('/ws')
    assert {'name': 'pong', 'args': [{'n': 1}], 'namespace': '/ws'} in received
