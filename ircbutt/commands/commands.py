import functools
import inspect
import logging

import ircbutt.util
from ircbutt.response import Response
from .exc import *

__all__ = ['Registry', 'Command', 'PendingCommand', 'wrap_decorator', 'chain_decorator', 'command', 'alias', 'doc']

logger = logging.getLogger(__name__)


class Registry:
    """
    Registers commands and serves as the intermediary between command and interface.

    The registry is filled once at startup and only read afterwards, so lookups need no locking.

    :ivar aliases: Dictionary of string aliases -> command.  Aliases are case-sensitive.
    :ivar commands: Set of all registered commands.
    :ivar strict: If True, registering an alias that is already taken raises :class:`DuplicateAliasError`.  Otherwise
        the later registration silently wins.
    """
    def __init__(self, commands=None, strict=True):
        """
        :param commands: Optional iterable of commands to register immediately.
        :param strict: See :attr:`strict`
        """
        self.aliases = {}
        self.commands = set()
        self.strict = strict
        if commands:
            self.register(*commands)

    def register(self, *commands):
        """
        Adds one or more commands to the registry.

        In strict mode, all commands are checked before any of them are added, and the error names every conflicting
        alias.

        :param commands: Command(s) to add.
        """
        if self.strict:
            seen = set(self.aliases.keys())
            dupes = set()
            for command in commands:
                aliases = command.all_aliases()
                dupes.update(aliases & seen)
                seen.update(aliases)
            if dupes:
                raise DuplicateAliasError(dupes)

        for command in commands:
            for alias in command.all_aliases():
                previous = self.aliases.get(alias)
                if previous is not None and previous is not command:
                    logger.warning("Alias {!r} of {!r} is shadowed by {!r}".format(alias, previous, command))
                self.aliases[alias] = command
            self.commands.add(command)

    def lookup(self, search):
        """
        Searches for 'search' against all registered commands.

        :param search: Command to search for.
        :returns: A :class:`Command`, or None.
        """
        if search is None:
            return None
        return self.aliases.get(search.strip())

    resolve = lookup

    def __contains__(self, item):
        return self.lookup(item) is not None

    def __len__(self):
        return len(self.commands)


class Command:
    """
    Represents commands.

    In addition to constructing commands using this class, they can also be constructed using the decorator syntax with
    :func:`command`, :func:`alias` and :func:`doc`.

    These are designed in such a way to account for the fact that they run 'backwards', e.g::

        @command('memo', category='misc')
        @alias('m')
        @doc('Leaves a memo.')
        def memo(event):
            pass

    Commands are called with a single :class:`ircbutt.commands.Event` and return a :class:`Response`.  A plain str
    return value is treated as a channel message, and None as no reply at all.
    """
    name = None      # Command name for !help
    aliases = []     # Aliases.  (Case-sensitive string matching)

    def __init__(
            self, function=None, name=None, aliases=None, doc=None, usage=None, category=None,
            substitute=True, minargs=0, maxargs=None
    ):
        """
        Defines a new command.

        :param function: Function to call.  Receives the event.
        :param name: Command name, used in helptext.  If None, uses the first alias.
        :param aliases: Command aliases.
        :param doc: Detailed help text.
        :param usage: Usage text (minus the command name) displayed in help and when a UsageError occurs.
        :param category: Category for grouping in help.
        :param substitute: If True, the line is run through command substitution before we see it.
        :param minargs: Minimum number of arguments.
        :param maxargs: Maximum number of arguments, or None for no limit.
        """
        self.function = function
        self.name = name
        self.aliases = aliases or []
        self.doc = doc
        self.usage = usage
        self.category = category
        self.substitute = substitute
        self.minargs = minargs
        self.maxargs = maxargs
        self._done = False
        self.finish()

    def finish(self):
        """
        Called when the command is fully assembled.
        """
        if self._done:
            return
        if not self.name and self.aliases:
            self.name = self.aliases[0]
        self._done = True

    def all_aliases(self):
        """Returns the set of every token that invokes this command, including its name."""
        aliases = set(self.aliases)
        if self.name:
            aliases.add(self.name)
        return aliases

    def usage_line(self, prefix=''):
        """Returns a usage line for this command."""
        line = prefix + self.name
        if self.usage:
            line += " " + self.usage
        return line

    def check(self, event):
        """
        Validates the argument count.

        :param event: A :class:`Event` instance.
        :raises: :class:`ArgumentCountError` if the count is wrong.
        """
        n = len(event.arglist)
        if n < self.minargs:
            raise NotEnoughArgumentsError(self.usage_error_message(event), event, self.minargs, self.maxargs)
        if self.maxargs is not None and n > self.maxargs:
            raise TooManyArgumentsError(self.usage_error_message(event), event, self.minargs, self.maxargs)

    def usage_error_message(self, event):
        if self.usage is None:
            return None
        return "Usage: " + self.usage_line(event.prefix or '')

    def __call__(self, event):
        """
        Calls the command's function.

        :param event: A :class:`Event` instance representing information we were called with.
        :return: A :class:`Response`
        """
        if self.function is None:
            raise ValueError("Command has no function")
        self.check(event)
        try:
            result = self.function(event)
        except UsageError as ex:
            if not ex.message and not ex.final and not isinstance(ex, PermissionDenied):
                ex.message = self.usage_error_message(event)
            raise
        if result is None:
            return Response.no_reply()
        if isinstance(result, str):
            return Response.chat(result)
        return result

    def __repr__(self):
        return "<{}({!r})>".format(type(self).__name__, self.name or (self.aliases[0] if self.aliases else None))

    @classmethod
    def from_pending(cls, pending, registry=None, **kwargs):
        """
        Create a new instance from a :class:`PendingCommand`

        :param pending: A PendingCommand instance.
        :param registry: If non-None, a :class:`Registry` to register the new command with.
        :param kwargs: Additional arguments to pass to constructor.  May be merged with PendingCommand arguments.
        :return: The new command
        """
        # Merge the lists in reverse.  This allows decorators to be interpreted top-down even though they are executed
        # bottom-up.
        kwargs['aliases'] = list(ircbutt.util.listify(kwargs.get('aliases')))
        kwargs['aliases'].extend(reversed(pending.aliases))
        doc = list(ircbutt.util.listify(kwargs.get('doc')))
        doc.extend(reversed(pending.doc))
        kwargs['doc'] = "\n".join(doc) or None

        rv = cls(pending.function, **kwargs)
        if registry:
            registry.register(rv)
        return rv


class PendingCommand:
    """
    Trickery to allow decorators to return something looking like the original function.

    Should not be directly instantiated by external code.
    """
    def __init__(self, function):
        self.function = function
        # These all resemble the Command counterparts, but will be reversed upon being finalized.
        self.aliases = []
        self.doc = []

    def __call__(self, *args, **kwargs):
        return self.function(*args, **kwargs)


def wrap_decorator(fn):
    """
    Returns a version of the function wrapped in such a way as to allow both decorator and non-decorator syntax.

    If the first argument of the wrapped function is a callable, the wrapped function is called as-is.

    Otherwise, returns a decorator

    :param fn: Function to decorate.
    """
    # Determine the name of the first argument, in case it is specified in kwargs instead.
    signature = inspect.signature(fn)
    param = next(iter(signature.parameters.values()), None)
    assert param
    arg = param.name

    @functools.wraps(fn)
    def wrapper(*args, **kwargs):
        if (args and callable(args[0])) or (arg in kwargs and callable(kwargs[arg])):
            return fn(*args, **kwargs)

        def decorator(_fn):
            return fn(_fn, *args, **kwargs)
        return decorator
    return wrapper


def chain_decorator(fn):
    """
    The wrapped function will always receive a PendingCommand instead of a function, and will always return that same
    PendingCommand.  This allows for chaining decorators.

    If fn is not a PendingCommand, converts it to one.

    :param fn: Function to decorate.
    """
    @functools.wraps(fn)
    @wrap_decorator
    def wrapper(pending, *args, **kwargs):
        if not isinstance(pending, PendingCommand):
            pending = PendingCommand(pending)
        fn(pending, *args, **kwargs)
        return pending
    return wrapper


@wrap_decorator
def command(fn=None, name=None, aliases=None, doc=None, registry=None, factory=Command, **kwargs):
    """
    Command decorator.

    This must be the 'last' decorator in the chain of command construction (and thus, the first to appear when stacking
    multiple decorators).  Unlike most decorators, this returns the new :class:`Command` rather than the function; the
    command is still callable.

    Commands are not registered anywhere unless `registry` is given.  The bot builds its registry from an explicit list,
    see :mod:`ircbutt.capabilities`.

    :param fn: Function to decorate, or a :class:`PendingCommand` instance.
    :param name: Command name.
    :param aliases: List of command aliases.
    :param doc: Helptext.
    :param registry: Which :class:`Registry` the command will be registered in.  None disables registration.
    :param factory: A :class:`Command` subclass or a function that will create the new command.
    :param kwargs: Passed to factory.  See :class:`Command` for what's accepted.
    :return: the new :class:`Command` object.
    """
    if not isinstance(fn, PendingCommand):
        fn = PendingCommand(fn)

    if hasattr(factory, 'from_pending'):
        factory = factory.from_pending

    return factory(fn, registry, name=name, aliases=aliases, doc=doc, **kwargs)


@chain_decorator
def alias(fn, *aliases):
    """
    Adds one or more aliases to the pending command.

    :param fn: Function to decorate, or a :class:`PendingCommand` instance.
    :param aliases: One or more aliases to add.
    """
    fn.aliases.extend(reversed(aliases))


@chain_decorator
def doc(fn, helptext):
    """
    Adds helptext to the pending command.

    :param fn: Function to decorate, or a :class:`PendingCommand` instance.
    :param helptext: Helptext to add.
    """
    fn.doc.append(helptext)
