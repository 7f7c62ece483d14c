import collections
import re

from ircbutt.response import Response

__all__ = ['Argument', 'ArgumentList', 'Invoker', 'Message', 'Event']


class Argument(str):
    """
    Like a str, but with some added attributes useful in command parsing.

    Normally, Arguments should not be constructed directly but instead created in bulk from an ArgumentList.
    """
    # str subclassing is a pain
    def __new__(cls, s, text, start):
        return str.__new__(cls, s)

    def __init__(self, s, text, start):
        """
        Constructs a new Argument

        :param s: String that we will be set to.
        :param text: Full line of text involved in the original parse.
        :param start: Where we were located in the original parse.
        """
        super().__init__()
        self._text = text
        self._start = start
        self._eol = None

    @property
    def eol(self):
        """
        Returns the original string from the beginning of this Argument to the end of the line.

        Calculated on first access.
        """
        if self._eol is None:
            self._eol = self._text[self._start:]
            del self._text
            del self._start
        return self._eol


class ArgumentList(list):
    r"""
    When parsing IRC commands, it's often useful to have the input text split into words -- usually by
    re.split(r'\s+', ...) or similar.

    This allows for that, while also allowing for a way to get the remainder of the line as one solid chunk,
    unaltered by any spaces.
    """
    pattern = re.compile(r'\S+')  # Matches not-whitespace.

    def __init__(self, text):
        """
        Parse a string of text (likely said by someone on IRC) into a series of words.
        :param text: Original text.
        """
        self.text = text
        super().__init__(
            Argument(match.group(), self.text, match.start())
            for match in self.pattern.finditer(self.text)
        )

    def rest(self, index=1):
        """
        Returns the original text from argument `index` through the end of the line, or '' if there is no such argument.

        :param index: Index of the first argument to include.
        """
        if index >= len(self):
            return ''
        return self[index].eol


class Invoker(collections.namedtuple('_Invoker', ['nick', 'verified', 'operator'])):
    """
    Whoever typed the line being handled.

    :ivar nick: Display name.
    :ivar verified: True if the user is identified to services.
    :ivar operator: True if the user is an operator in the channel the bot serves.
    """
    def __new__(cls, nick, verified=False, operator=False):
        return super().__new__(cls, nick, verified, operator)


class Message(collections.namedtuple('_Message', ['text', 'invoker', 'channel'])):
    """
    An inbound line of chat as delivered by the transport.

    :ivar text: Raw message text.
    :ivar invoker: :class:`Invoker` that sent the line.
    :ivar channel: Channel the line was said in, or None for private messages.
    """
    def __new__(cls, text, invoker, channel=None):
        return super().__new__(cls, text, invoker, channel)

    @property
    def target(self):
        """Returns the channel that this was said in (if any), otherwise the sender"""
        return self.channel or self.invoker.nick


class Event:
    """Passed to commands when magic happens."""
    def __init__(
            self,
            prefix=None, name=None, command=None, text=None,
            message=None, context=None, dispatcher=None, depth=0, deadline=None
    ):
        """
        Creates a new :class:`Event`

        :param prefix: Command sentinel that matched.  Will be None if there was none.
        :param name: Name of command as entered (minus prefix).  May differ from command.name
        :param command: :class:`Command` object that matched.  Will be None if there was no command match.
        :param text: Argument text, possibly after substitution.
        :param message: Inbound :class:`Message` being handled.
        :param context: :class:`ircbutt.state.ChannelState` for the channel (or private conversation) involved.
        :param dispatcher: The :class:`ircbutt.dispatcher.Dispatcher` handling the line.
        :param depth: Substitution depth.  0 for lines typed by a user.
        :param deadline: time.monotonic() value after which substitution gives up, or None.
        """
        self.prefix = prefix
        self.name = name
        self.command = command
        self.text = text
        self.message = message
        self.context = context
        self.dispatcher = dispatcher
        self.depth = depth
        self.deadline = deadline
        self._arglist = None

    @property
    def full_name(self):
        """Returns the full command name used.  (Essentially prefix + command)"""
        return (self.prefix or '') + (self.name or '')

    def __bool__(self):
        """Returns True if `self.command` is not None"""
        return self.command is not None

    @property
    def arglist(self):
        """
        Returns the :class:`ArgumentList` in this result.  Computed on first use.

        :raises: :class:`ValueError` if self.text is None and thus no :class:`ArgumentList` can be constructed.
        """
        if self._arglist is None:
            if self.text is None:
                raise ValueError("Cannot parse arglist: no text available.")
            self._arglist = ArgumentList(self.text)
        return self._arglist

    @property
    def invoker(self):
        return self.message.invoker

    @property
    def nick(self):
        return self.message.invoker.nick

    @property
    def channel(self):
        return self.message.channel

    @property
    def storage(self):
        return self.dispatcher.storage

    @property
    def config(self):
        return self.dispatcher.config

    def reply(self, message):
        """Response addressed to whoever triggered this event."""
        return Response.highlight(self.nick, message)

    def say(self, message):
        """Response broadcast to the channel."""
        return Response.chat(message)

    def action(self, message):
        """Response narrated as an action."""
        return Response.action(message)
