import asyncio
import unittest

import httpx

from scolarite.services.api import with_api
from scolarite.services.fetch import InvalidTransition, RemoteItem, RemoteList, ScreenState
from scolarite.tests import API_URL


def failing(message='Connection refused'):
    async def fetcher(*args, **kwargs):
        raise httpx.ConnectError(message)
    return fetcher


def returning(value):
    async def fetcher(*args, **kwargs):
        return value
    return fetcher


class TestRemoteList(unittest.IsolatedAsyncioTestCase):
    async def test_starts_idle_and_empty(self):
        screen = RemoteList(returning([1, 2]))
        self.assertEqual(screen.state, ScreenState.IDLE)
        self.assertEqual(screen.data, [])
        self.assertFalse(screen.has_data)

    async def test_load_success(self):
        screen = RemoteList(returning([1, 2]))
        self.assertTrue(await screen.load())
        self.assertEqual(screen.state, ScreenState.SUCCESS)
        self.assertTrue(screen.loaded)
        self.assertEqual(screen.data, [1, 2])
        self.assertIsNone(screen.error)

    async def test_failure_sets_message_and_keeps_data(self):
        screen = RemoteList(returning(['ancien']), 'Échec du chargement des élèves')
        await screen.load()
        screen.fetcher = failing()
        with self.assertLogs('scolarite.services.fetch', level='ERROR'):
            self.assertFalse(await screen.load())
        self.assertEqual(screen.state, ScreenState.ERROR)
        self.assertEqual(screen.error, 'Échec du chargement des élèves')
        self.assertIsInstance(screen.exception, httpx.ConnectError)
        self.assertEqual(screen.data, ['ancien'])

    async def test_retry_clears_error(self):
        screen = RemoteList(failing())
        with self.assertLogs('scolarite.services.fetch', level='ERROR'):
            await screen.load()
        screen.fetcher = returning([3])
        self.assertTrue(await screen.retry())
        self.assertIsNone(screen.error)
        self.assertEqual(screen.data, [3])

    async def test_non_json_response_ends_in_error(self):
        def proxy_page(request):
            return httpx.Response(200, text='<html>proxy</html>')

        config = {'API_URL': API_URL, 'API_TRANSPORT': httpx.MockTransport(proxy_page)}
        screen = RemoteList(with_api(config, lambda api: api.eleves.list()), 'Échec du chargement des élèves')
        with self.assertLogs('scolarite.services.fetch', level='ERROR'):
            self.assertFalse(await screen.load())
        self.assertEqual(screen.state, ScreenState.ERROR)
        self.assertEqual(screen.error, 'Échec du chargement des élèves')
        self.assertIsInstance(screen.exception, httpx.DecodingError)

    async def test_unexpected_exception_does_not_stay_loading(self):
        async def broken():
            raise RuntimeError('boom')

        screen = RemoteList(broken)
        with self.assertRaises(RuntimeError):
            await screen.load()
        self.assertFalse(screen.loading)
        self.assertEqual(screen.state, ScreenState.ERROR)
        self.assertEqual(screen.error, 'Échec du chargement des données')

    async def test_stale_cycle_is_discarded(self):
        release = asyncio.Event()
        calls = []

        async def fetcher():
            calls.append(len(calls))
            if len(calls) == 1:
                await release.wait()
                return ['ancien']
            return ['nouveau']

        screen = RemoteList(fetcher)
        first = asyncio.create_task(screen.load())
        await asyncio.sleep(0)
        self.assertTrue(screen.loading)

        self.assertTrue(await screen.refresh())
        release.set()
        self.assertFalse(await first)
        self.assertEqual(screen.data, ['nouveau'])
        self.assertEqual(screen.state, ScreenState.SUCCESS)

    async def test_stale_failure_does_not_override(self):
        release = asyncio.Event()
        calls = []

        async def fetcher():
            calls.append(len(calls))
            if len(calls) == 1:
                await release.wait()
                raise httpx.ReadTimeout('timeout')
            return ['frais']

        screen = RemoteList(fetcher)
        first = asyncio.create_task(screen.load())
        await asyncio.sleep(0)
        await screen.load()
        release.set()
        self.assertFalse(await first)
        self.assertIsNone(screen.error)
        self.assertEqual(screen.state, ScreenState.SUCCESS)


class TestRemoteItem(unittest.IsolatedAsyncioTestCase):
    async def test_edit_and_cancel(self):
        screen = RemoteItem(returning({'nom': 'Physique'}))
        await screen.load()
        screen.begin_edit()
        self.assertEqual(screen.state, ScreenState.EDITING)
        screen.cancel_edit()
        self.assertEqual(screen.state, ScreenState.SUCCESS)

    async def test_cannot_edit_before_load(self):
        screen = RemoteItem(returning({}))
        with self.assertRaises(InvalidTransition):
            screen.begin_edit()

    async def test_cannot_edit_after_error(self):
        screen = RemoteItem(failing())
        with self.assertLogs('scolarite.services.fetch', level='ERROR'):
            await screen.load()
        with self.assertRaises(InvalidTransition):
            screen.begin_edit()

    async def test_submit_success_refetches(self):
        records = [{'nom': 'Physique'}, {'nom': 'Chimie'}]

        async def fetcher():
            return records.pop(0)

        saved = []

        async def action():
            saved.append(True)

        screen = RemoteItem(fetcher)
        await screen.load()
        screen.begin_edit()
        self.assertTrue(await screen.submit(action))
        self.assertEqual(saved, [True])
        self.assertEqual(screen.state, ScreenState.SUCCESS)
        self.assertEqual(screen.data, {'nom': 'Chimie'})

    async def test_submit_failure_returns_to_editing(self):
        screen = RemoteItem(returning({'nom': 'Physique'}))
        await screen.load()
        screen.begin_edit()
        with self.assertLogs('scolarite.services.fetch', level='ERROR'):
            self.assertFalse(await screen.submit(failing(), 'Échec de la mise à jour'))
        self.assertEqual(screen.state, ScreenState.EDITING)
        self.assertEqual(screen.error, 'Échec de la mise à jour')
        self.assertEqual(screen.data, {'nom': 'Physique'})

    async def test_submit_requires_editing(self):
        screen = RemoteItem(returning({}))
        await screen.load()
        with self.assertRaises(InvalidTransition):
            await screen.submit(returning(None))


if __name__ == '__main__':
    unittest.main()
