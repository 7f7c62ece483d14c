import pytest

from ircbutt import Config
from ircbutt.capabilities import build_dispatcher
from ircbutt.commands import Invoker, Message
from ircbutt.storage import MemoryStorage

CHANNEL = '#butts'


@pytest.fixture
def config():
    return Config(data={'main': {'nick': 'buttbot'}, 'games': {'timeout': '0'}})


@pytest.fixture
def storage():
    return MemoryStorage({
        'coffee': 'is hot and bitter',
        'greet': 'hello $1, from $USER',
        'wave': '$ME waves at $USER',
    })


@pytest.fixture
def dispatcher(config, storage):
    return build_dispatcher(config, storage=storage)


@pytest.fixture
def bob():
    """Identified, but not an operator."""
    return Invoker('bob', verified=True)


@pytest.fixture
def eve():
    """Neither identified nor an operator."""
    return Invoker('eve')


@pytest.fixture
def op():
    return Invoker('admin', verified=True, operator=True)


@pytest.fixture
def say(dispatcher, bob):
    """Returns a function that feeds a line to the dispatcher as if said in CHANNEL."""
    def _say(text, invoker=bob, channel=CHANNEL):
        return dispatcher.handle(Message(text, invoker, channel))
    return _say
