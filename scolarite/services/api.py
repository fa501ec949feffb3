import logging
from collections.abc import Mapping
from typing import List

import httpx
from pydantic import TypeAdapter, ValidationError

from scolarite.models import Eleve, Matiere, Examen, Note

logger = logging.getLogger(__name__)

# Everything a screen has to expect from a REST call.
API_ERRORS = (httpx.HTTPError, ValidationError)


async def log_response(response):
    if response.is_error:
        await response.aread()
        logger.error(f"API Error: {response.text}")


def get_setting(config, name, default=None):
    if isinstance(config, Mapping):
        return config.get(name, default)
    return getattr(config, name, default)


def _payload(data, partial=False):
    if hasattr(data, 'model_dump'):
        return data.model_dump(mode='json', exclude_unset=partial)
    return dict(data)


class Resource:
    """CRUD calls for one REST collection such as ``/eleves``."""

    def __init__(self, api, path, schema):
        self.api = api
        self.path = path
        self.schema = schema
        self._item = TypeAdapter(schema)
        self._items = TypeAdapter(List[schema])

    def __repr__(self):
        return f'<Resource {self.path}>'

    async def list(self, skip=0, limit=None):
        if limit is None:
            limit = self.api.default_limit
        response = await self.api.request('GET', f'{self.path}/', params={'skip': skip, 'limit': limit})
        return self._items.validate_python(self.api.decode(response) or [])

    async def list_all(self, page_size=None):
        page_size = page_size or self.api.default_limit
        records = []
        skip = 0
        while True:
            page = await self.list(skip=skip, limit=page_size)
            records.extend(page)
            if len(page) < page_size:
                return records
            skip += page_size

    async def get(self, item_id):
        response = await self.api.request('GET', f'{self.path}/{item_id}')
        return self._item.validate_python(self.api.decode(response))

    async def create(self, data):
        response = await self.api.request('POST', f'{self.path}/', json=_payload(data))
        return self._item.validate_python(self.api.decode(response))

    async def update(self, item_id, data):
        response = await self.api.request('PUT', f'{self.path}/{item_id}', json=_payload(data, partial=True))
        return self._item.validate_python(self.api.decode(response))

    async def delete(self, item_id):
        response = await self.api.request('DELETE', f'{self.path}/{item_id}')
        return self.api.decode(response)


class ApiClient:
    """Async client for the school records REST API.

    One instance wraps one ``httpx.AsyncClient`` and is meant to live for a
    single fetch cycle::

        async with ApiClient.from_config(config) as api:
            eleves = await api.eleves.list()

    Failures are logged here and re-raised unchanged; nothing is retried.
    """

    def __init__(self, base_url, timeout=10.0, max_retries=3, default_limit=20, transport=None):
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        # read from settings but never applied: nothing is retried
        self.max_retries = max_retries
        self.default_limit = default_limit
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            headers={'Content-Type': 'application/json'},
            event_hooks={'response': [log_response]},
            transport=transport,
        )

        self.eleves = Resource(self, '/eleves', Eleve)
        self.matieres = Resource(self, '/matieres', Matiere)
        self.examens = Resource(self, '/examens', Examen)
        self.notes = Resource(self, '/notes', Note)

    @classmethod
    def from_config(cls, config):
        return cls(
            get_setting(config, 'API_URL', 'http://localhost:8000'),
            timeout=get_setting(config, 'API_TIMEOUT', 10.0),
            max_retries=get_setting(config, 'API_MAX_RETRIES', 3),
            default_limit=get_setting(config, 'API_DEFAULT_LIMIT', 20),
            transport=get_setting(config, 'API_TRANSPORT'),
        )

    def resource(self, name):
        if name not in ('eleves', 'matieres', 'examens', 'notes'):
            raise KeyError(name)
        return getattr(self, name)

    async def request(self, method, url, **kwargs):
        try:
            response = await self._client.request(method, url, **kwargs)
        except httpx.RequestError as e:
            logger.error(f"API Request Error: {e!r}")
            raise
        response.raise_for_status()
        return response

    @staticmethod
    def decode(response):
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            logger.error(f"API Decode Error: {response.request.method} {response.request.url}: {e!r}")
            raise httpx.DecodingError(f"Response body is not JSON: {e}", request=response.request) from e

    async def aclose(self):
        await self._client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.aclose()


def with_api(config, func, *args, **kwargs):
    """Bind ``func(api, *args)`` to a fetch cycle owning its own client."""
    async def cycle():
        async with ApiClient.from_config(config) as api:
            return await func(api, *args, **kwargs)
    return cycle
