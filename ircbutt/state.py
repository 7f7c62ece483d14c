"""
Per-channel mutable state.

Commands can run concurrently, so everything in here guards itself with a lock.  Compound operations (check-then-change)
are provided as single methods so callers never need to hold a lock across calls.
"""
import collections
import enum
import logging
import threading
import time

__all__ = ['GameVariant', 'GameState', 'OverflowQueue', 'ChannelState', 'StateManager']

logger = logging.getLogger(__name__)


class GameVariant(enum.Enum):
    IDLE = 'idle'
    GUESSING = 'guessing'
    REGEX = 'regex'


class GameState:
    """
    Tracks the mini-game (if any) running in a channel.

    The game returns to idle on success, when ended explicitly, or once its timeout passes.  Timeouts are applied
    lazily: whenever the state is looked at.

    :ivar variant: Current :class:`GameVariant`
    :ivar answer: Mystery fact key for a guessing game.
    :ivar should_match: Word the regex must match for a regex game.
    :ivar should_not_match: Word the regex must not match for a regex game.
    :ivar expires: time.monotonic() value after which the game is over, or None for no timeout.
    """
    _clock = staticmethod(time.monotonic)

    def __init__(self):
        self._lock = threading.RLock()
        self._reset()

    def _reset(self):
        self.variant = GameVariant.IDLE
        self.answer = None
        self.should_match = None
        self.should_not_match = None
        self.expires = None

    def _expire(self):
        if self.variant is not GameVariant.IDLE and self.expires is not None and self._clock() >= self.expires:
            logger.debug("{} game timed out".format(self.variant.value))
            self._reset()

    def _start(self, variant, timeout):
        if self.variant is not GameVariant.IDLE:
            return False
        self._reset()
        self.variant = variant
        self.expires = (self._clock() + timeout) if timeout else None
        return True

    @property
    def active(self):
        with self._lock:
            self._expire()
            return self.variant is not GameVariant.IDLE

    def current(self):
        """
        Returns a snapshot of (variant, answer, should_match, should_not_match)
        """
        with self._lock:
            self._expire()
            return self.variant, self.answer, self.should_match, self.should_not_match

    def start_guessing(self, answer, timeout=None):
        """
        Starts a guessing game.

        :param answer: Fact key players must guess.
        :param timeout: Seconds until the game ends on its own.  None or 0 for never.
        :returns: False if a game is already running.
        """
        with self._lock:
            self._expire()
            if not self._start(GameVariant.GUESSING, timeout):
                return False
            self.answer = answer
            return True

    def start_regex(self, should_match, should_not_match, timeout=None):
        """
        Starts a regex game.

        :param should_match: Word the answer must match.
        :param should_not_match: Word the answer must not match.
        :param timeout: Seconds until the game ends on its own.  None or 0 for never.
        :returns: False if a game is already running.
        """
        with self._lock:
            self._expire()
            if not self._start(GameVariant.REGEX, timeout):
                return False
            self.should_match = should_match
            self.should_not_match = should_not_match
            return True

    def solve_guess(self, token, sentinel='~'):
        """
        Checks a guess and ends the game if it is correct.  Only one caller can ever win a given game.

        :param token: Token as typed, including the fact sentinel (e.g. ``~foo``)
        :param sentinel: Fact sentinel.
        :returns: The answer if `token` won the game, otherwise None.
        """
        with self._lock:
            self._expire()
            if self.variant is not GameVariant.GUESSING or token != sentinel + self.answer:
                return None
            answer = self.answer
            self._reset()
            return answer

    def solve_regex(self, pattern):
        """
        Checks a regex attempt and ends the game if it wins.

        :param pattern: Compiled regular expression.
        :returns: (should_match, should_not_match) if `pattern` won the game, otherwise None.
        """
        with self._lock:
            self._expire()
            if self.variant is not GameVariant.REGEX:
                return None
            if not pattern.search(self.should_match) or pattern.search(self.should_not_match):
                return None
            result = self.should_match, self.should_not_match
            self._reset()
            return result

    def end(self):
        """
        Ends whatever game is running.

        :returns: The snapshot (as :meth:`current`) of the game that was ended, or None if there wasn't one.
        """
        with self._lock:
            self._expire()
            if self.variant is GameVariant.IDLE:
                return None
            snapshot = self.variant, self.answer, self.should_match, self.should_not_match
            self._reset()
            return snapshot


class OverflowQueue:
    """
    Bounded FIFO of extra results for ``!more``.

    Commands that produce several results keep the first and queue the rest.  Nothing clears the queue automatically;
    a producer should call :meth:`replace` so that stale results from an earlier command don't get mixed in.  When the
    queue is full, the oldest entries are dropped.
    """
    def __init__(self, size=50):
        """
        :param size: Maximum number of entries.
        """
        if size <= 0:
            raise ValueError('size must be > 0')
        self._lock = threading.RLock()
        self._items = collections.deque(maxlen=size)

    @property
    def size(self):
        return self._items.maxlen

    def clear(self):
        with self._lock:
            self._items.clear()

    def append(self, item):
        with self._lock:
            self._items.append(item)

    def extend(self, items):
        with self._lock:
            self._items.extend(items)

    def replace(self, items):
        """Atomically clears the queue and adds `items`."""
        with self._lock:
            self._items.clear()
            self._items.extend(items)

    def pop(self):
        """Removes and returns the oldest entry, or None if the queue is empty."""
        with self._lock:
            if not self._items:
                return None
            return self._items.popleft()

    def __len__(self):
        with self._lock:
            return len(self._items)

    def __bool__(self):
        return len(self) > 0


class ChannelState:
    """
    Everything mutable that belongs to one channel (or one private conversation).

    :ivar key: Channel name, or nickname for private conversations.
    :ivar game: :class:`GameState`
    :ivar more: :class:`OverflowQueue`
    """
    def __init__(self, key, more_size=50, max_lines=500):
        """
        :param key: Channel name, or nickname for private conversations.
        :param more_size: Size of the overflow queue.
        :param max_lines: How many people's last lines to remember.  The least recently active are forgotten first.
        """
        self.key = key
        self.game = GameState()
        self.more = OverflowQueue(more_size)
        self.max_lines = max_lines
        self._lines = collections.OrderedDict()
        self._lock = threading.RLock()

    def record_line(self, nick, text):
        """Remembers `text` as the last thing `nick` said here."""
        with self._lock:
            self._lines[nick] = text
            self._lines.move_to_end(nick)
            while len(self._lines) > self.max_lines:
                self._lines.popitem(last=False)

    def last_line(self, nick):
        """Returns the last thing `nick` said here, or None."""
        with self._lock:
            return self._lines.get(nick)

    def __repr__(self):
        return "<{}({!r})>".format(type(self).__name__, self.key)


class StateManager:
    """
    Hands out :class:`ChannelState` objects, creating them on first use.

    Only the `max_states` most recently used states are kept, so a flood of private messages from different nicks
    can't grow this forever.
    """
    def __init__(self, more_size=50, max_states=1000):
        self.more_size = more_size
        self.max_states = max_states
        self._states = collections.OrderedDict()
        self._lock = threading.Lock()

    def get(self, key):
        """
        Returns the state for `key`, creating it if needed.

        :param key: Channel name, or nickname for private conversations.
        """
        with self._lock:
            state = self._states.get(key)
            if state is None:
                state = self._states[key] = ChannelState(key, self.more_size)
                while len(self._states) > self.max_states:
                    evicted, _ = self._states.popitem(last=False)
                    logger.debug("Forgetting state for {}".format(evicted))
            else:
                self._states.move_to_end(key)
            return state

    def __getitem__(self, key):
        return self.get(key)

    def __contains__(self, key):
        with self._lock:
            return key in self._states

    def __len__(self):
        with self._lock:
            return len(self._states)
