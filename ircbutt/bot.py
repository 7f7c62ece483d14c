"""
The IRC side of things.

:class:`Bot` hands lines of chat to a :class:`ircbutt.dispatcher.Dispatcher` and sends whatever comes back, word
wrapped and throttled so we don't flood anyone off the network.
"""
import asyncio
import contextlib
import functools
import logging
import textwrap

import pydle

from ircbutt import Config
from ircbutt.commands import Invoker, Message
from ircbutt.response import Intention
from ircbutt.usertrack import UserTrackingClient
from ircbutt.util import Throttle

__all__ = ['Bot']

logger = logging.getLogger(__name__)


class Bot(UserTrackingClient):
    def __init__(self, dispatcher, config=None, filename=None, data=None, **kwargs):
        """
        Creates a new Bot.

        :param dispatcher: :class:`ircbutt.dispatcher.Dispatcher` that decides what to say.
        :param config: Configuration object.  Defaults to the dispatcher's.
        :param filename: Filename to load config from.  Ignored if `config` is not None.
        :param data: Data to load config from.  Ignored if `config` is not None.
        :param kwargs: Keyword arguments passed to superclass.  Overrides config if there is a conflict.
        """
        self.server_index = -1

        if config is None:
            if filename is None and data is None:
                config = dispatcher.config
            else:
                config = Config(filename=filename, data=data)
        self.config = config
        self.dispatcher = dispatcher
        main = self.config.main

        kwargs.setdefault('nickname', main.nicknames[0])
        kwargs.setdefault('fallback_nicknames', main.nicknames[1:])
        for attr in ('username', 'realname'):
            kwargs.setdefault(attr, getattr(main, attr))
        if (main.auth_method or '').lower() == 'sasl':
            kwargs.setdefault('sasl_username', main.auth_username)
            kwargs.setdefault('sasl_password', main.auth_password)

        super().__init__(**kwargs)
        self.global_throttle = Throttle(self.config.throttle.burst, self.config.throttle.rate)
        self.target_throttles = {}

        self.textwrapper = textwrap.TextWrapper(
            width=main.wrap_length, subsequent_indent=main.wrap_indent,
            replace_whitespace=False, tabsize=4, drop_whitespace=True
        )

    @contextlib.contextmanager
    def log_exceptions(self, target=None):
        """
        Log exceptions rather than allowing them to raise.  Contextmanager.

        :param target: If specified, the bot will also notice(target, str(exception)) if an exception is raised.

        Usage::

            with bot.log_exceptions("Adminuser"):
                raise ValueError("oh no!")
        """
        try:
            yield None
        except Exception as ex:
            logger.exception("Error while talking to {}".format(target))
            if target:
                asyncio.ensure_future(self.notice(target, str(ex)))

    def wraptext(self, text):
        return self.textwrapper.wrap(text)

    async def connect(self, hostname=None, **kwargs):
        """
        Overrides the superclass's connect() to allow rotating between multiple servers if hostname is None.

        :param hostname: Passed to superclass.
        :param kwargs: Passed to superclass
        """
        kwargs['hostname'] = hostname
        if hostname is None and self.config.main.servers:
            self.server_index += 1
            if self.server_index >= len(self.config.main.servers):
                self.server_index = 0
            kwargs.update(self.config.main.servers[self.server_index])
        kwargs.setdefault('tls_verify', self.config.main.verify_ssl)
        logger.info("Connecting to {hostname}:{port}...".format(hostname=kwargs['hostname'], port=kwargs.get('port', 6667)))
        return await super().connect(**kwargs)

    async def on_connect(self):
        """
        Attempt to join channels on connect.
        """
        await super().on_connect()
        logger.info("Connected.")
        if (self.config.main.auth_method or '').lower() == 'nickserv' and self.config.main.auth_password:
            await self.message('NickServ', 'IDENTIFY {} {}'.format(
                self.config.main.auth_username or self.nickname, self.config.main.auth_password
            ))
        for channel in self.config.main.channels:
            try:
                await self.join(**channel)
            except pydle.AlreadyInChannel:
                pass
        asyncio.ensure_future(self.global_throttle.run())

    async def on_disconnect(self, expected):
        # Clean up pending triggers
        while self.target_throttles:
            target, throttle = self.target_throttles.popitem()
            throttle.on_clear = None
            logger.info("Cleaning up event queue for {!r} ({} pending items)".format(target, len(throttle.queue)))
            throttle.reset()
        self.global_throttle.reset()
        await super().on_disconnect(expected)

    def throttled(self, target, fn, cost=1):
        """
        Adds a throttled event.  Or queues it globally if the target isn't throttled.

        :param target: Event target nickname or channel.  May be None for a global event
        :param fn: Function to queue or call.  May return an awaitable.
        :param cost: Event cost.
        """
        def _on_clear(k, t):
            t.reset()
            if self.target_throttles.get(k) is t:
                del self.target_throttles[k]

        def _relay(*args, **kwargs):
            self.global_throttle.add(*args, **kwargs)
            asyncio.ensure_future(self.global_throttle.run())

        if not target:
            return _relay(cost, fn)

        throttle = self.target_throttles.get(target)
        if not throttle:
            if self.is_channel(target):
                burst, rate = self.config.throttle.channel_burst, self.config.throttle.channel_rate
            else:
                burst, rate = self.config.throttle.user_burst, self.config.throttle.user_rate
            if not rate:
                return _relay(cost, fn)
            throttle = Throttle(burst, rate, on_clear=functools.partial(_on_clear, target))
            self.target_throttles[target] = throttle
            asyncio.ensure_future(throttle.run())
        throttle.add(cost, _relay, cost, fn)

    def message_cost(self, length):
        """
        Returns the cost of a message of size length.
        :param length: Length of message
        :return: Message cost
        """
        return self.config.throttle.cost_base + (
            float(length) * self.config.throttle.cost_multiplier *
            (float(length) ** self.config.throttle.cost_exponent)
        )

    def say(self, target, message, prefix=''):
        """
        Sends a PRIVMSG, wordwrapped and throttled.

        :param target: Recipient
        :param message: Message text.  May contain newlines, which will be split into multiple messages.
        :param prefix: Prepended to each line, e.g. to address someone.
        """
        for text in message.replace('\r', '').split('\n'):
            for line in self.wraptext(prefix + text):
                cost = self.message_cost(len(target) + len(line) + 10)
                self.throttled(target, functools.partial(self.message, target, line), cost)

    def act(self, target, message):
        """
        Sends a CTCP ACTION (``/me``), throttled.

        :param target: Recipient
        :param message: Action text.
        """
        for line in self.wraptext(message.replace('\r', '').replace('\n', ' ')):
            cost = self.message_cost(len(target) + len(line) + 18)
            self.throttled(target, functools.partial(self.ctcp, target, 'ACTION', line), cost)

    def deliver(self, target, response):
        """
        Sends a :class:`ircbutt.response.Response`.

        :param target: Channel or nickname the response goes to.
        :param response: What to send.  NO_REPLY responses are ignored.
        """
        if not response.is_reply or not response.message:
            return
        if response.intention is Intention.ACTION:
            return self.act(target, response.message)
        prefix = ''
        if response.intention is Intention.HIGHLIGHT and response.recipient and self.is_channel(target):
            prefix = response.recipient + ": "
        return self.say(target, response.message, prefix)

    async def on_message(self, target, nick, message):
        await super().on_message(target, nick, message)
        if nick == self.nickname:
            return
        channel = target if self.is_channel(target) else None

        if not self.dispatcher.wants(message):
            self.dispatcher.record(Message(message, Invoker(nick), channel))
            return

        with self.log_exceptions():
            invoker = Invoker(nick, await self.is_verified(nick), self.is_operator(channel, nick))
            inbound = Message(message, invoker, channel)
            loop = asyncio.get_running_loop()
            response = await loop.run_in_executor(None, self.dispatcher.handle, inbound)
            self.deliver(inbound.target, response)
