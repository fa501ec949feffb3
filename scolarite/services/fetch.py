import logging
from enum import Enum

from scolarite.services.api import API_ERRORS

logger = logging.getLogger(__name__)


class ScreenState(str, Enum):
    IDLE = 'idle'
    LOADING = 'loading'
    SUCCESS = 'success'
    ERROR = 'error'
    EDITING = 'editing'
    SUBMITTING = 'submitting'


class InvalidTransition(Exception):
    pass


class RemoteData:
    """Loading/error/data state of one screen.

    ``fetcher`` is an async callable returning the whole screen data. Every
    call to :meth:`load` is a new fetch cycle tagged with a generation
    number; a cycle that finishes after a newer one has started is dropped,
    so a slow response never overwrites fresher data.
    """

    def __init__(self, fetcher, error_message='Échec du chargement des données'):
        self.fetcher = fetcher
        self.error_message = error_message
        self.state = ScreenState.IDLE
        self.data = None
        self.error = None
        self.exception = None
        self.generation = 0

    @property
    def loading(self):
        return self.state == ScreenState.LOADING

    @property
    def loaded(self):
        return self.state == ScreenState.SUCCESS

    @property
    def has_data(self):
        return self.data is not None

    def _begin_cycle(self):
        self.generation += 1
        self.state = ScreenState.LOADING
        self.error = None
        self.exception = None
        return self.generation

    def _is_current(self, generation):
        if generation != self.generation:
            logger.debug(f"Discarding fetch cycle {generation}, current is {self.generation}")
            return False
        return True

    async def load(self, *args, **kwargs):
        generation = self._begin_cycle()
        try:
            data = await self.fetcher(*args, **kwargs)
        except API_ERRORS as e:
            if not self._is_current(generation):
                return False
            logger.error(f"Fetch failed: {e}")
            # previous data stays visible behind the error
            self.error = self.error_message
            self.exception = e
            self.state = ScreenState.ERROR
            return False
        else:
            if not self._is_current(generation):
                return False
            self.data = data
            self.state = ScreenState.SUCCESS
            return True
        finally:
            # an unexpected exception still ends the cycle
            if generation == self.generation and self.state == ScreenState.LOADING:
                self.error = self.error_message
                self.state = ScreenState.ERROR

    refresh = load
    retry = load


class RemoteList(RemoteData):
    def __init__(self, fetcher, error_message='Échec du chargement des données'):
        super().__init__(fetcher, error_message)
        self.data = []

    @property
    def has_data(self):
        return bool(self.data)


class RemoteItem(RemoteData):
    """Single record screen with a read-only and an editing mode."""

    def begin_edit(self):
        if self.state != ScreenState.SUCCESS:
            raise InvalidTransition(f"Cannot edit from state {self.state.value}")
        self.state = ScreenState.EDITING
        self.error = None

    def cancel_edit(self):
        if self.state != ScreenState.EDITING:
            raise InvalidTransition(f"Cannot cancel edit from state {self.state.value}")
        self.state = ScreenState.SUCCESS
        self.error = None

    async def submit(self, action, error_message='Échec de la mise à jour'):
        """Run ``action`` (an async callable saving the form) then refetch.

        On failure the screen goes back to editing with ``error`` set and
        the exception is not propagated.
        """
        if self.state != ScreenState.EDITING:
            raise InvalidTransition(f"Cannot submit from state {self.state.value}")
        self.state = ScreenState.SUBMITTING
        try:
            result = await action()
        except API_ERRORS as e:
            logger.error(f"Submit failed: {e}")
            self.error = error_message
            self.exception = e
            self.state = ScreenState.EDITING
            return False

        self.state = ScreenState.IDLE
        await self.load()
        return True
