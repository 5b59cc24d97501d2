"""
Integration tests for the sockets JSON API.
"""

import pytest
from socketsmith.core.config import Config
from socketsmith.core.world import World
from socketsmith.web import create_app


GM_KEY = 'forge-key'

GM = {'user_id': 'gm', 'user_name': 'Game Master', 'role': 'GAMEMASTER', 'gm_key': GM_KEY}
PLAYER = {'user_id': 'p1', 'user_name': 'Mira', 'role': 'PLAYER'}


@pytest.fixture
def app(tmp_path):
    world_path = tmp_path / 'world'
    World.initialize_world(str(world_path), 'API World').close()
    env_file = tmp_path / '.env'
    env_file.write_text('')

    config = Config(str(env_file))
    config.gm_key = GM_KEY

    app = create_app(str(world_path), config)
    app.config['TESTING'] = True
    yield app
    app.world.close()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def gm_client(client):
    """A client signed in as gamemaster."""
    assert client.post('/api/session', json=GM).status_code == 200
    return client


@pytest.fixture
def items(app):
    """A hero holding a sword and two rubies."""
    world = app.world
    hero = world.create_actor('Theron')
    sword = world.create_item({'name': 'Sword', 'type': 'weapon'}, actor=hero)
    ruby = world.create_item({
        'name': 'Ruby', 'type': 'loot',
        'system': {'type': {'value': 'gem'}, 'quantity': 2},
        'effects': [{'name': 'Fire Damage'}],
    }, actor=hero)
    return {'hero': hero, 'sword': sword, 'ruby': ruby}


def test_list_slots_empty(client, items):
    response = client.get(f"/api/items/{items['sword'].uuid}/sockets")

    assert response.status_code == 200
    assert response.get_json() == {'success': True, 'slots': []}


def test_unknown_item(client):
    response = client.get('/api/items/Item.nothing/sockets')

    assert response.status_code == 404
    assert response.get_json()['error_code'] == 'document_not_found'


def test_sign_in(client):
    response = client.post('/api/session', json=GM)

    assert response.status_code == 200
    assert response.get_json()['user'] == {'id': 'gm', 'name': 'Game Master', 'role': 'GAMEMASTER'}
    assert client.get('/api/session').get_json()['user']['role'] == 'GAMEMASTER'


def test_sign_out(gm_client):
    gm_client.delete('/api/session')
    assert gm_client.get('/api/session').get_json()['user']['role'] == 'NONE'


@pytest.mark.parametrize('gm_key', [None, '', 'wrong-key'])
def test_gm_sign_in_needs_key(client, gm_key):
    response = client.post('/api/session', json=dict(GM, gm_key=gm_key))

    assert response.status_code == 403
    assert client.get('/api/session').get_json()['user']['role'] == 'NONE'


def test_gm_sign_in_refused_without_configured_key(app, client):
    app.config['GM_KEY'] = None
    assert client.post('/api/session', json=GM).status_code == 403


def test_sign_in_unknown_role(client):
    response = client.post('/api/session', json=dict(PLAYER, role='wizard'))

    assert response.status_code == 400
    assert response.get_json()['error_code'] == 'invalid_input'


def test_add_slot(gm_client, items):
    response = gm_client.post(f"/api/items/{items['sword'].uuid}/sockets")

    assert response.status_code == 200
    data = response.get_json()
    assert data['success'] is True
    assert data['data'] == {'slotIndex': 0, 'slotCount': 1, 'hidden': False}


def test_add_slot_forbidden(client, items):
    client.post('/api/session', json=PLAYER)

    response = client.post(f"/api/items/{items['sword'].uuid}/sockets")

    assert response.status_code == 403
    assert response.get_json()['error_code'] == 'permission_denied'


def test_add_slot_without_session_forbidden(client, items):
    response = client.post(f"/api/items/{items['sword'].uuid}/sockets")
    assert response.status_code == 403


def test_role_in_request_body_ignored(client, items):
    response = client.post(f"/api/items/{items['sword'].uuid}/sockets",
                           json={'role': 'GAMEMASTER'})

    assert response.status_code == 403
    assert client.get(f"/api/items/{items['sword'].uuid}/sockets").get_json()['slots'] == []


def test_hidden_slots(gm_client, items):
    sword_uuid = items['sword'].uuid
    gm_client.post(f"/api/items/{sword_uuid}/sockets")
    response = gm_client.post(f"/api/items/{sword_uuid}/sockets", json={'hidden': True})
    assert response.get_json()['data']['hidden'] is True

    slots = gm_client.get(f"/api/items/{sword_uuid}/sockets").get_json()['slots']
    assert [s['hidden'] for s in slots] == [False, True]

    visible = gm_client.get(f"/api/items/{sword_uuid}/sockets?hidden=0").get_json()['slots']
    assert [s['slotIndex'] for s in visible] == [0]

    response = gm_client.post(f"/api/items/{sword_uuid}/sockets/1/hidden")
    assert response.get_json()['data'] == {'slotIndex': 1, 'hidden': False}


def test_toggle_hidden_forbidden(gm_client, items):
    sword_uuid = items['sword'].uuid
    gm_client.post(f"/api/items/{sword_uuid}/sockets")
    gm_client.post('/api/session', json=PLAYER)

    response = gm_client.post(f"/api/items/{sword_uuid}/sockets/0/hidden")
    assert response.status_code == 403


def test_socket_and_unsocket(app, gm_client, items):
    client = gm_client
    sword_uuid = items['sword'].uuid
    client.post(f"/api/items/{sword_uuid}/sockets")

    response = client.post(f"/api/items/{sword_uuid}/sockets/0/gem",
                           json={'source': items['ruby'].uuid})
    assert response.status_code == 200
    assert len(response.get_json()['data']['effectIds']) == 1

    gems = client.get(f"/api/items/{sword_uuid}/gems").get_json()['gems']
    assert [g['name'] for g in gems] == ['Ruby']
    assert 'gemSnapshot' not in gems[0]['slot']
    assert app.world.from_uuid(items['ruby'].uuid).quantity == 1

    slots = client.get(f"/api/items/{sword_uuid}/sockets?snapshots=1").get_json()['slots']
    assert slots[0]['hasGem'] is True
    assert slots[0]['slot']['gemSnapshot']['name'] == 'Ruby'

    response = client.delete(f"/api/items/{sword_uuid}/sockets/0/gem")
    assert response.status_code == 200
    assert response.get_json()['data']['removed'] is True
    assert app.world.from_uuid(items['ruby'].uuid).quantity == 2


def test_socket_drag_payload(gm_client, items):
    sword_uuid = items['sword'].uuid
    gm_client.post(f"/api/items/{sword_uuid}/sockets")

    response = gm_client.post(f"/api/items/{sword_uuid}/sockets/0/gem",
                              json={'source': {'type': 'Item', 'uuid': items['ruby'].uuid}})
    assert response.status_code == 200


def test_socket_invalid_index(client, items):
    response = client.post(f"/api/items/{items['sword'].uuid}/sockets/4/gem",
                           json={'source': items['ruby'].uuid})

    assert response.status_code == 400
    assert response.get_json()['error'] == "Invalid socket index."


def test_socket_wrong_kind(gm_client, items):
    sword_uuid = items['sword'].uuid
    gm_client.post(f"/api/items/{sword_uuid}/sockets")

    response = gm_client.post(f"/api/items/{sword_uuid}/sockets/0/gem",
                              json={'source': sword_uuid})

    assert response.status_code == 400
    assert response.get_json()['error_code'] == 'wrong_kind'


def test_remove_slot(gm_client, items):
    sword_uuid = items['sword'].uuid
    gm_client.post(f"/api/items/{sword_uuid}/sockets")
    gm_client.post(f"/api/items/{sword_uuid}/sockets")

    response = gm_client.delete(f"/api/items/{sword_uuid}/sockets/1")

    assert response.status_code == 200
    assert response.get_json()['data']['slotCount'] == 1


def test_remove_slot_forbidden(gm_client, items):
    sword_uuid = items['sword'].uuid
    gm_client.post(f"/api/items/{sword_uuid}/sockets")
    gm_client.delete('/api/session')

    response = gm_client.delete(f"/api/items/{sword_uuid}/sockets/0")
    assert response.status_code == 403


def test_unexpected_error_is_500(app, gm_client, items, monkeypatch):
    def explode(*args, **kwargs):
        raise RuntimeError("database is locked")

    monkeypatch.setattr(app.socket_engine, 'add_slot', explode)

    response = gm_client.post(f"/api/items/{items['sword'].uuid}/sockets")

    assert response.status_code == 500
    assert response.get_json() == {'success': False, 'error': "database is locked"}


def test_events_endpoint(gm_client, items):
    gm_client.post(f"/api/items/{items['sword'].uuid}/sockets")

    events = gm_client.get('/api/events').get_json()['events']
    assert events[0]['event_type'] == 'socket.slot_added'


def test_world_endpoint(client, items):
    data = client.get('/api/world').get_json()

    assert data['name'] == 'API World'
    assert [a['name'] for a in data['actors']] == ['Theron']
