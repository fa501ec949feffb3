import json

import httpx

from config import Config

API_URL = 'http://api.test'


def sample_data():
    return dict(
        eleves=[
            {'id': 1, 'nom': 'Dupont', 'prenom': 'Marie', 'classe': 'L1', 'createdAt': '2024-09-02T08:30:00'},
            {'id': 2, 'nom': 'Martin', 'prenom': 'Lucas', 'classe': 'L2', 'createdAt': '2024-09-03T09:00:00'},
            {'id': 3, 'nom': 'Bernard', 'prenom': 'Chloé', 'classe': 'L1'},
        ],
        matieres=[
            {'id': 1, 'nom': 'Mathématiques'},
            {'id': 2, 'nom': 'Physique'},
        ],
        examens=[
            {'id': 1, 'matiere_id': 1, 'date': '2024-01-15'},
            {'id': 2, 'matiere_id': 2, 'date': '2024-02-20'},
        ],
        notes=[
            {'id': 1, 'eleve_id': 1, 'examen_id': 1, 'valeur': 15, 'matiere_id': 1},
            {'id': 2, 'eleve_id': 2, 'examen_id': 1, 'valeur': 12.5, 'matiere_id': 1},
            {'id': 3, 'eleve_id': 1, 'examen_id': 2, 'valeur': 9, 'matiere_id': 2},
        ],
    )


class FakeBackend:
    """In-memory REST API served through ``httpx.MockTransport``.

    Every request is recorded; ``fail(method, path)`` makes one route answer
    with an error status instead.
    """

    def __init__(self, **collections):
        self.collections = {name: [dict(record) for record in records]
                            for name, records in collections.items()}
        self.requests = []
        self.failing = {}
        self.transport = httpx.MockTransport(self.handle)

    def fail(self, method, path, status=500):
        self.failing[(method, path)] = status

    def calls(self, method=None):
        return [(request.method, request.url.path) for request in self.requests
                if method is None or request.method == method]

    def body(self, index=-1, method=None):
        requests = [request for request in self.requests if method is None or request.method == method]
        return json.loads(requests[index].content)

    def handle(self, request):
        self.requests.append(request)
        path = request.url.path
        status = self.failing.get((request.method, path))
        if status:
            return httpx.Response(status, json={'detail': 'Erreur serveur'})

        parts = [part for part in path.split('/') if part]
        records = self.collections.get(parts[0]) if parts else None
        if records is None:
            return httpx.Response(404, json={'detail': 'Not Found'})

        if len(parts) == 1:
            if request.method == 'GET':
                skip = int(request.url.params.get('skip', 0))
                limit = int(request.url.params.get('limit', 100))
                return httpx.Response(200, json=records[skip:skip + limit])
            if request.method == 'POST':
                record = json.loads(request.content)
                record['id'] = max([item['id'] for item in records] or [0]) + 1
                records.append(record)
                return httpx.Response(200, json=record)
            return httpx.Response(405)

        item_id = int(parts[1])
        record = next((item for item in records if item['id'] == item_id), None)
        if record is None:
            return httpx.Response(404, json={'detail': 'Not Found'})
        if request.method == 'GET':
            return httpx.Response(200, json=record)
        if request.method == 'PUT':
            record.update(json.loads(request.content))
            return httpx.Response(200, json=record)
        if request.method == 'DELETE':
            records.remove(record)
            return httpx.Response(200, json={'message': 'Supprimé'})
        return httpx.Response(405)


def make_config(backend, **overrides):
    attrs = dict(
        TESTING=True,
        SECRET_KEY='test',
        API_URL=API_URL,
        API_TRANSPORT=backend.transport,
        TELEGRAM_BOT_TOKEN='',
    )
    attrs.update(overrides)
    return type('TestConfig', (Config,), attrs)
