import asyncio

import httpx
from flask import abort, current_app, request

from scolarite.services.api import with_api


def run_cycle(screen):
    asyncio.run(screen.load())
    return screen


def api_action(func, *args, **kwargs):
    """Run one REST call (``func(api, *args)``) from a view."""
    return asyncio.run(with_api(current_app.config, func, *args, **kwargs)())


def bind(func, *args, **kwargs):
    return with_api(current_app.config, func, *args, **kwargs)


def abort_if_missing(screen):
    e = screen.exception
    if isinstance(e, httpx.HTTPStatusError) and e.response.status_code == 404:
        abort(404)


def page_args():
    skip = max(request.args.get('skip', 0, type=int), 0)
    limit = request.args.get('limit', current_app.config['API_DEFAULT_LIMIT'], type=int)
    return skip, limit
