from aprendia import models


def test_root_lists_endpoints(client):
    r = client.get('/')
    assert r.status_code == 200
    body = r.json()
    assert body['success'] is True
    assert body['endpoints'] == {
        'health': '/api/health',
        'register': '/api/register',
        'users': '/api/users',
        'stats': '/api/stats',
    }
    assert body['version'] == '1.0.0'


def test_health_reports_connected(client):
    r = client.get('/api/health')
    assert r.status_code == 200
    body = r.json()
    assert body['success'] is True
    assert body['version'] == '1.0.0'
    assert body['database'] == 'Conectado'
    assert r.headers['X-Request-ID']


def test_request_id_is_propagated(client):
    r = client.get('/api/health', headers={'X-Request-ID': 'abc123'})
    assert r.headers['X-Request-ID'] == 'abc123'


def test_users_excludes_inactive(client, add_registrant):
    add_registrant('uno@test.com')
    add_registrant('dos@test.com', status=models.Status.INACTIVE)
    add_registrant('tres@test.com')
    r = client.get('/api/users')
    assert r.status_code == 200
    body = r.json()
    assert body['success'] is True
    assert body['count'] == 2
    assert sorted(u['email'] for u in body['users']) == ['tres@test.com', 'uno@test.com']
    assert all(u['status'] == 'active' for u in body['users'])
    assert set(body['users'][0]) == {
        'id', 'name', 'email', 'municipality', 'education',
        'registrationDate', 'status', 'createdAt', 'updatedAt',
    }


def test_users_empty(client):
    assert client.get('/api/users').json() == {'success': True, 'count': 0, 'users': []}


def test_stats_groups_active_registrants(client, add_registrant):
    M, E = models.Municipality, models.Education
    add_registrant('a@test.com', M.TUXTLA, E.UNIVERSIDAD)
    add_registrant('b@test.com', M.TUXTLA, E.PREPARATORIA)
    add_registrant('c@test.com', M.TUXTLA, E.UNIVERSIDAD)
    add_registrant('d@test.com', M.PALENQUE, E.UNIVERSIDAD)
    add_registrant('e@test.com', M.SAN_CRISTOBAL, E.PRIMARIA, status=models.Status.INACTIVE)
    r = client.get('/api/stats')
    assert r.status_code == 200
    data = r.json()['data']
    assert data['totalUsers'] == 4
    assert data['usersByMunicipality'] == [
        {'_id': 'tuxtla', 'count': 3},
        {'_id': 'palenque', 'count': 1},
    ]
    assert data['usersByEducation'] == [
        {'_id': 'universidad', 'count': 3},
        {'_id': 'preparatoria', 'count': 1},
    ]


def test_stats_totals_match_group_sums(client, payload):
    combos = [
        ('tuxtla', 'primaria'), ('comitan', 'posgrado'), ('comitan', 'secundaria'),
        ('otro', 'posgrado'), ('tapachula', 'universidad'), ('comitan', 'posgrado'),
    ]
    for i, (municipality, education) in enumerate(combos):
        r = client.post('/api/register', json=payload(
            email=f'persona{i}@test.com', municipality=municipality, education=education))
        assert r.status_code == 201
    data = client.get('/api/stats').json()['data']
    assert data['totalUsers'] == len(combos)
    assert sum(g['count'] for g in data['usersByMunicipality']) == data['totalUsers']
    assert sum(g['count'] for g in data['usersByEducation']) == data['totalUsers']
    counts = [g['count'] for g in data['usersByMunicipality']]
    assert counts == sorted(counts, reverse=True)


def test_stats_empty(client):
    data = client.get('/api/stats').json()['data']
    assert data == {'totalUsers': 0, 'usersByMunicipality': [], 'usersByEducation': []}


def test_unknown_path_is_not_found(client):
    r = client.get('/api/nonexistent')
    assert r.status_code == 404
    body = r.json()
    assert body['success'] is False
    assert body['requestedPath'] == '/api/nonexistent'
    assert 'POST /api/register' in body['availableEndpoints']


def test_unknown_path_echoes_query(client):
    r = client.delete('/api/otra/ruta?x=1')
    assert r.status_code == 404
    assert r.json()['requestedPath'] == '/api/otra/ruta?x=1'


def test_wrong_method_is_not_found(client):
    r = client.get('/api/register')
    assert r.status_code == 404
    body = r.json()
    assert body['success'] is False
    assert body['requestedPath'] == '/api/register'
    assert body['availableEndpoints'][0] == 'GET /'
    r = client.post('/')
    assert r.status_code == 404
    assert r.json()['requestedPath'] == '/'


def test_unknown_path_echoed_without_decoding(client):
    r = client.get('/api/caf%C3%A9%20x?q=a%20b')
    assert r.status_code == 404
    assert r.json()['requestedPath'] == '/api/caf%C3%A9%20x?q=a%20b'
