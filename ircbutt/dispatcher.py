"""
Routes inbound lines to commands.

The :class:`Dispatcher` is the only thing the transport talks to.  For each line it:

1. Hands ``s/foo/bar/`` corrections straight to the sed command.
2. Splits the line into words and strips the command sentinel (``!``) from the first one.
3. Lets the :class:`ircbutt.games.GameInterceptor` have a look if a game is running.
4. Looks the first word up in the :class:`ircbutt.commands.Registry`.  Commands that allow it get their line run
   through :class:`ircbutt.substitution.Expander` first.  Words that aren't commands are either a winning guess or a
   fact lookup (``~fact arg1 arg2``).
5. Returns whatever :class:`ircbutt.response.Response` came out.

Nothing escapes :meth:`Dispatcher.handle`: usage errors become a highlighted usage message, permission problems and
anything unexpected become no reply at all.
"""
import functools
import logging
import re

from ircbutt import Config
from ircbutt.commands import ArgumentList, Event, PermissionDenied, UsageError
from ircbutt.games import GameInterceptor
from ircbutt.response import Response
from ircbutt.state import StateManager
from ircbutt.substitution import Expander, render_fact

__all__ = ['Dispatcher', 'SED_PATTERN']

logger = logging.getLogger(__name__)

#: s/pattern/replacement/flags -- slashes inside pattern and replacement may be escaped with a backslash.
SED_PATTERN = re.compile(r's/(?P<pattern>(?:\\.|[^/\\])*)/(?P<replacement>(?:\\.|[^/\\])*)/(?P<flags>[gi]*)')


class Dispatcher:
    """
    Turns lines of chat into responses.

    Safe to call from several threads at once: the registry is read-only, and per-channel state locks itself.

    :ivar registry: :class:`ircbutt.commands.Registry` of commands.
    :ivar storage: :class:`ircbutt.storage.Storage` for facts and scores.
    :ivar config: :class:`ircbutt.Config`
    :ivar states: :class:`ircbutt.state.StateManager` of per-channel state.
    :ivar expander: :class:`ircbutt.substitution.Expander`
    :ivar interceptor: :class:`ircbutt.games.GameInterceptor`
    :ivar sed: Command that handles ``s///`` lines, or None to treat them as ordinary text.
    """
    sed_pattern = SED_PATTERN

    def __init__(self, registry, storage, config=None, sed=None, states=None):
        """
        :param registry: Command registry.
        :param storage: Fact and score storage.
        :param config: Configuration.  Defaults are used if None.
        :param sed: Command that handles ``s///`` lines.
        :param states: Optional :class:`StateManager` to share.
        """
        if config is None:
            config = Config()
        self.registry = registry
        self.storage = storage
        self.config = config
        self.sed = sed
        self.prefix = config.main.prefix
        self.fact_prefix = config.main.fact_prefix
        self.states = states if states is not None else StateManager(more_size=config.more.size)
        self.expander = Expander(
            max_depth=config.substitution.max_depth,
            max_length=config.substitution.max_length,
            max_iterations=config.substitution.max_iterations,
        )
        self.time_budget = config.substitution.time_budget
        self.interceptor = GameInterceptor(fact_prefix=self.fact_prefix)

    def wants(self, text):
        """
        Returns True if `text` should be passed to :meth:`handle` rather than :meth:`record`.

        :param text: Raw message text.
        """
        text = text.strip()
        if not text:
            return False
        if text.startswith(self.prefix) or text.startswith(self.fact_prefix):
            return True
        return self.sed is not None and self.sed_pattern.fullmatch(text) is not None

    def record(self, message):
        """
        Remembers an ordinary line of chat so that ``s///`` can correct it later.

        :param message: :class:`ircbutt.commands.Message`
        """
        self.states.get(message.target).record_line(message.invoker.nick, message.text)

    def handle(self, message, line=None):
        """
        Handles one line of input.

        :param message: :class:`ircbutt.commands.Message` that arrived.
        :param line: Text to handle.  Defaults to the message text.
        :return: A :class:`Response`.  Never raises.
        """
        if line is None:
            line = message.text
        deadline = self.expander.deadline(self.time_budget)
        try:
            return self.dispatch(message, line, 0, deadline)
        except Exception:
            logger.exception("Unhandled error dispatching {!r} from {}".format(line, message.invoker.nick))
            return Response.no_reply()

    def dispatch(self, message, line, depth=0, deadline=None):
        """
        Handles a line at a given substitution depth.  :meth:`handle` is the public entry point; this is what
        command substitution re-enters.

        :param message: Inbound :class:`ircbutt.commands.Message` the line came from.
        :param line: Text to handle.
        :param depth: Substitution depth.
        :param deadline: Substitution deadline.
        """
        text = line.strip()
        if not text:
            return Response.no_reply()
        context = self.states.get(message.target)
        invoker = message.invoker
        logger.debug("Dispatching {!r} for {} at depth {}".format(text, invoker.nick, depth))

        if self.sed is not None and self.sed_pattern.fullmatch(text):
            event = Event(
                name='s', command=self.sed, text=text,
                message=message, context=context, dispatcher=self, depth=depth, deadline=deadline
            )
            return self.execute(self.sed, event)

        prefix = None
        if text.startswith(self.prefix):
            prefix = self.prefix
            text = text[len(prefix):]
        arglist = ArgumentList(text)
        if not arglist or arglist[0].eol != text:
            # Lone sentinel, or whitespace right after it.
            return Response.no_reply()
        name = str(arglist[0])

        game = context.game
        if game.active:
            response = self.interceptor.intercept(game, invoker, name, text)
            if response is not None:
                return response

        command = self.registry.lookup(name)
        if command is None:
            response = self.interceptor.attempt_guess(game, invoker, name, self.storage)
            if response is not None:
                return response
            return self.lookup_fact(invoker, name, arglist.rest(1))

        if command.substitute:
            sub_dispatch = functools.partial(self.dispatch, message, depth=depth + 1, deadline=deadline)
            text = self.expander.expand(text, invoker.nick, sub_dispatch, depth, deadline)
            arglist = ArgumentList(text)

        event = Event(
            prefix=prefix, name=name, command=command, text=arglist.rest(1),
            message=message, context=context, dispatcher=self, depth=depth, deadline=deadline
        )
        return self.execute(command, event)

    def execute(self, command, event):
        """
        Runs a command, turning errors into responses.

        :param command: :class:`ircbutt.commands.Command` to run.
        :param event: :class:`ircbutt.commands.Event` to run it with.
        """
        try:
            response = command(event)
        except PermissionDenied as ex:
            logger.debug("{} was denied {!r}".format(event.nick, command))
            if ex.message:
                return event.reply(ex.message)
            return Response.no_reply()
        except UsageError as ex:
            return event.reply(str(ex) or ("Usage: " + command.usage_line(event.prefix or '')))
        except Exception:
            logger.exception("Error in {!r} handling {!r}".format(command, event.text))
            return Response.no_reply()
        if not isinstance(response, Response):
            logger.error("{!r} returned {!r} instead of a Response".format(command, response))
            return Response.no_reply()
        return response

    def lookup_fact(self, invoker, name, args=''):
        """
        Treats a line as a fact request.

        :param invoker: :class:`ircbutt.commands.Invoker` asking.
        :param name: Fact name, optionally starting with the fact sentinel.
        :param args: Text following the fact name, used to fill in ``$1``..``$10``.
        :return: The fact as a :class:`Response`, or no reply if there's no such fact.
        """
        if name.startswith(self.fact_prefix):
            name = name[len(self.fact_prefix):]
        if not name:
            return Response.no_reply()
        template = self.storage.lookup(name)
        if template is None:
            return Response.no_reply()
        return render_fact(template, args, invoker.nick)
