import unittest

import httpx

from scolarite.models import EleveCreate, NoteUpdate
from scolarite.services.api import ApiClient, get_setting, with_api
from scolarite.tests import API_URL, FakeBackend, sample_data


class TestApiClient(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.backend = FakeBackend(**sample_data())
        self.api = ApiClient(API_URL, transport=self.backend.transport)

    async def asyncTearDown(self):
        await self.api.aclose()

    async def test_list_sends_default_page(self):
        eleves = await self.api.eleves.list()
        self.assertEqual(len(eleves), 3)
        request = self.backend.requests[0]
        self.assertEqual(request.url.path, '/eleves/')
        self.assertEqual(request.url.params['skip'], '0')
        self.assertEqual(request.url.params['limit'], '20')

    async def test_list_parses_camel_case_dates(self):
        eleves = await self.api.eleves.list()
        self.assertEqual(eleves[0].created_at.year, 2024)
        self.assertIsNone(eleves[2].created_at)
        self.assertEqual(eleves[0].full_name, 'Marie Dupont')

    async def test_list_all_pages_until_short_page(self):
        notes = await self.api.notes.list_all(page_size=2)
        self.assertEqual([note.id for note in notes], [1, 2, 3])
        self.assertEqual([request.url.params['skip'] for request in self.backend.requests], ['0', '2'])

    async def test_get_single_record(self):
        examen = await self.api.examens.get(2)
        self.assertEqual(examen.matiere_id, 2)
        self.assertEqual(self.backend.calls(), [('GET', '/examens/2')])

    async def test_create_posts_json_body(self):
        eleve = await self.api.eleves.create(EleveCreate(nom='Petit', prenom='Léa', classe='M1'))
        self.assertEqual(eleve.id, 4)
        self.assertEqual(self.backend.body(method='POST'), {'nom': 'Petit', 'prenom': 'Léa', 'classe': 'M1'})
        self.assertEqual(self.backend.requests[0].headers['content-type'], 'application/json')

    async def test_update_sends_only_set_fields(self):
        note = await self.api.notes.update(1, NoteUpdate(valeur=18))
        self.assertEqual(note.valeur, 18)
        self.assertEqual(self.backend.calls(), [('PUT', '/notes/1')])
        self.assertEqual(self.backend.body(method='PUT'), {'valeur': 18.0})

    async def test_delete_returns_body(self):
        result = await self.api.matieres.delete(1)
        self.assertEqual(result, {'message': 'Supprimé'})
        self.assertEqual(self.backend.calls(), [('DELETE', '/matieres/1')])

    async def test_error_status_is_logged_and_raised(self):
        self.backend.fail('GET', '/eleves/', status=500)
        with self.assertLogs('scolarite.services.api', level='ERROR') as logs:
            with self.assertRaises(httpx.HTTPStatusError):
                await self.api.eleves.list()
        self.assertTrue(any('API Error' in line and 'Erreur serveur' in line for line in logs.output))

    async def test_missing_record_raises_404(self):
        with self.assertRaises(httpx.HTTPStatusError) as ctx:
            await self.api.eleves.get(99)
        self.assertEqual(ctx.exception.response.status_code, 404)

    async def test_transport_error_is_logged_and_raised(self):
        def refuse(request):
            raise httpx.ConnectError('Connection refused', request=request)

        api = ApiClient(API_URL, transport=httpx.MockTransport(refuse))
        try:
            with self.assertLogs('scolarite.services.api', level='ERROR') as logs:
                with self.assertRaises(httpx.ConnectError):
                    await api.matieres.list()
        finally:
            await api.aclose()
        self.assertTrue(any('API Request Error' in line for line in logs.output))

    async def test_non_json_body_is_a_decoding_error(self):
        def proxy_page(request):
            return httpx.Response(200, text='<html>proxy</html>')

        api = ApiClient(API_URL, transport=httpx.MockTransport(proxy_page))
        try:
            with self.assertLogs('scolarite.services.api', level='ERROR') as logs:
                with self.assertRaises(httpx.DecodingError):
                    await api.eleves.list()
        finally:
            await api.aclose()
        self.assertTrue(any('API Decode Error' in line and '/eleves/' in line for line in logs.output))

    async def test_no_retry_on_failure(self):
        self.backend.fail('GET', '/notes/', status=503)
        with self.assertLogs('scolarite.services.api', level='ERROR'):
            with self.assertRaises(httpx.HTTPStatusError):
                await self.api.notes.list()
        self.assertEqual(len(self.backend.requests), 1)

    async def test_invalid_payload_raises_validation_error(self):
        from pydantic import ValidationError

        def garbage(request):
            return httpx.Response(200, json=[{'id': 'x'}])

        api = ApiClient(API_URL, transport=httpx.MockTransport(garbage))
        try:
            with self.assertRaises(ValidationError):
                await api.eleves.list()
        finally:
            await api.aclose()

    def test_resource_lookup(self):
        self.assertIs(self.api.resource('notes'), self.api.notes)
        with self.assertRaises(KeyError):
            self.api.resource('cours')


class TestConfiguration(unittest.IsolatedAsyncioTestCase):
    def test_get_setting_reads_mappings_and_objects(self):
        class Settings:
            API_URL = 'http://objet'

        self.assertEqual(get_setting({'API_URL': 'http://dict'}, 'API_URL'), 'http://dict')
        self.assertEqual(get_setting(Settings, 'API_URL'), 'http://objet')
        self.assertEqual(get_setting(Settings, 'API_TIMEOUT', 10.0), 10.0)

    def test_from_config_defaults(self):
        api = ApiClient.from_config({})
        self.assertEqual(api.base_url, 'http://localhost:8000')
        self.assertEqual(api.timeout, 10.0)
        self.assertEqual(api.max_retries, 3)
        self.assertEqual(api.default_limit, 20)

    async def test_with_api_runs_one_cycle(self):
        backend = FakeBackend(**sample_data())
        config = {'API_URL': API_URL, 'API_TRANSPORT': backend.transport, 'API_DEFAULT_LIMIT': 2}

        async def first_page(api):
            return await api.matieres.list()

        matieres = await with_api(config, first_page)()
        self.assertEqual([matiere.nom for matiere in matieres], ['Mathématiques', 'Physique'])
        self.assertEqual(backend.requests[0].url.params['limit'], '2')


if __name__ == '__main__':
    unittest.main()
