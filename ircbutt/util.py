"""Miscellaneous utilities."""
import collections
import datetime
import functools
import inspect
import itertools
import logging

import tornado.gen
import tornado.locks

__all__ = ["listify", "pad", "Throttle"]

logger = logging.getLogger(__name__)


def listify(x):
    """
    Returns [] if x is None, a single-item list consisting of x if x is a str or bytes, otherwise returns x.

    listify(None) -> []
    listify("string") -> ["string"]
    listify(b"bytes") -> [b"bytes"]
    listify(["foo", "bar"]) -> ["foo", "bar"]

    :param x: What to listify.
    :return:
    """
    if x is None:
        return []
    if isinstance(x, (str, bytes)):
        return [x]
    return x


def pad(iterable, size, padding=None):
    """
    Yields items from iterable, and then yields `padding` enough times to have yielded a total of `size` items.

    Designed for cases where you might want to write ``foo, bar, baz = "foo,bar".split(",")`` and don't to special case
    the tuple unpacking.

    Note that if iterable has more than size elements, they will still all be returned.

    :param iterable: Iterable to yield from.
    :param size: Number of elements to yield.
    :param padding: What to yield after the iterator is exhausted.
    """
    for item in iterable:
        yield item
        size -= 1
    if size > 0:
        yield from itertools.repeat(padding, size)


class Throttle:
    """
    Implements an asynchronous event throttling mechanism, e.g. for ensuring we don't flood IRC too much.

    The throttling mechanism is essentially a bucket that holds `burst` units and is refilled by `amount` every `rate`
    seconds.  The bucket can never exceed its capacity, but it can be 'less than empty' in some circumstances: At least
    one event is guaranteed to execute when the bucket is full, even if the event's cost exceeds the total capacity.

    The event queue is a `collections.deque` consisting of (cost, function) tuples.  Events are removed from the head
    of the queue if there's at least `cost` units available in the bucket.

    :ivar burst: Maximum bucket capacity (must be > 0)
    :ivar rate: Replenishment rate (must be >= 0, a replenishment rate of 0 disables all actual throttling mechanics.)
    :ivar amount: How much is replenished. (must be > 0)
    :ivar queue: Event queue.
    :ivar _wake_condition: Internal condition for waking up the event loop.
    """
    ZEROTIME = datetime.timedelta()
    _now = datetime.datetime.now

    def __init__(self, burst, rate, amount=1, on_clear=None):
        """
        Creates a new Throttle.

        :param burst: The size of the 'bucket', or the maximum number of burstable events.  Must be > 0
        :param rate: Amount of time required before the number of available events recharges, in seconds or as a
            :class:`datetime.timedelta`.  Must be >= 0 seconds
        :param amount: How many units are recharged every `rate`.  Must be > 0
        :param on_clear: Function called when the queue is empty and the bucket is full, or None.  Receives the throttle
            as an argument.
        """
        if not isinstance(rate, datetime.timedelta):
            rate = datetime.timedelta(seconds=rate)
        self.rate = rate
        if self.rate < self.ZEROTIME:
            raise ValueError('rate cannot be < 0 seconds')
        if self.rate:
            # Don't bother validating these if rate is zero, since they won't do anything.
            if burst <= 0:
                raise ValueError('burst must be > 0')
            if amount <= 0:
                raise ValueError('amount must be > 0')
        self.burst = burst
        self.free = burst
        self.amount = amount
        self.last = self._now()
        self.queue = collections.deque()
        self.on_clear = on_clear
        self._wake_condition = tornado.locks.Condition()
        self._stop_condition = None
        self.running = False

    def wake(self):
        """
        Called when something is added to the queue in case we're waiting for something.
        """
        self._wake_condition.notify_all()

    def add(self, *args, **kwargs):
        """
        Adds an item to the event queue.

        Either the first or the second argument must be a callable.  If the first argument is a callable, the event
        cost is considered to 1.  Otherwise, the first argument specifies the event cost and the second argument is
        the callable.

        Remaining args and kwargs will be bound to the callable.
        """
        if not callable(args[0]):
            cost, *args = args
        else:
            cost = 1
        self.queue.append((cost, functools.partial(*args, **kwargs)))
        self.wake()

    def stop(self):
        """
        Causes run() to stop the next time it gets a chance to do so.
        """
        self._stop_condition = tornado.locks.Condition()
        self._wake_condition.notify_all()

    async def wait_for_stop(self):
        self.stop()
        await self._stop_condition.wait()

    def _recover(self):
        """Refills the bucket based on how much time has gone by."""
        if self.rate and self.free < self.burst:
            elapsed = self._now() - self.last
            ticks = elapsed / self.rate
            self.free = min(self.free + ticks*self.amount, self.burst)
            self.last += self.rate*ticks

    async def run(self):
        """
        Actually handles the throttling queue.
        """
        if self.running:
            return False
        try:
            self.running = True
            self._stop_condition = None
            while not self._stop_condition:
                self._recover()

                # Flush the queue.
                while self.queue and not self._stop_condition:
                    cost = self.queue[0][0]
                    if not self.rate or self.free >= self.burst:
                        # Reset self.last to now so the timer is accurate.
                        self.last = self._now()
                    elif cost > self.free:
                        # Can't handle this item yet.  How long would it take to fix that?
                        deficit = min(cost, self.burst) - self.free
                        ticks = deficit / self.amount
                        timeout = (self.last + self.rate*ticks - self._now()).total_seconds()
                        if timeout > 0:
                            await tornado.gen.sleep(timeout)
                        break  # Restart the loop at capacity recovery.
                    event = self.queue.popleft()[1]
                    if self.rate:
                        self.free -= cost
                    result = event()
                    if inspect.isawaitable(result):
                        await result

                if self._stop_condition or self.queue:
                    continue

                # Handle the lack of a queue.
                if not self.on_clear or self.free >= self.burst:
                    # We don't care about when the bucket is recharged, so sleep until we're awoken.
                    if self.on_clear:
                        self.on_clear(self)
                    if self._stop_condition or self.queue:
                        continue
                    await self._wake_condition.wait()
                    continue
                # Figure out how long until we'll be full.  Sleep at most that long.
                ticks = ((self.burst - self.free) / self.amount)
                timeout = ((self.last - self._now()) + (self.rate * ticks))
                if timeout > self.ZEROTIME:
                    await self._wake_condition.wait(timeout=timeout)
        except Exception:
            logger.exception("Throttle crashed")
            raise
        finally:
            if self._stop_condition:
                self._stop_condition.notify_all()
            self.running = False

    def clear(self):
        """
        Clears the current event queue.
        """
        self.queue.clear()

    def reset(self):
        """
        Signals a stop and clears the event queue.
        """
        self.stop()
        self.clear()
