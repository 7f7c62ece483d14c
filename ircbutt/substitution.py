"""
Command substitution and templating.

Two unrelated kinds of expansion live here:

Command substitution
    ``!echo $(rot13 uryyb) $USER`` -- every ``$(...)`` is run as a command in its own right and replaced by whatever
    that command said, then ``$USER`` becomes the nick of whoever typed the line.  See :class:`Expander`.

Positional arguments
    A stored fact like ``welcome $1 to $2`` is filled in from the words following the fact name.  See
    :func:`apply_args` and :func:`render_fact`.
"""
import logging
import re
import time

from ircbutt.response import Response

__all__ = ['Expander', 'apply_args', 'render_fact', 'MAX_ARGS']

logger = logging.getLogger(__name__)

#: Highest positional placeholder ($1 .. $10) that facts may use.
MAX_ARGS = 10
PLACEHOLDER = re.compile(r"\$(\d+)")


class Expander:
    """
    Expands ``$(...)`` sub-commands and ``$USER`` in a line of text.

    Matching is deliberately simple: a sub-command ends at the first ``)`` after its ``$(``, so ``$(a(b)c)`` runs
    ``a(b`` and leaves ``c)`` behind.  Stored facts rely on this, so it stays.

    Sub-commands are run through the dispatcher and their output is spliced back into the line, after which the line is
    scanned again -- so output can itself contain sub-commands.  To keep self-referential macros from running forever,
    expansion gives up and returns its input untouched when any of these limits is hit:

    - `max_depth`: how deeply sub-commands may nest.
    - `max_iterations`: how many sub-commands a single line may run.
    - `max_length`: how long the line may grow.
    - the `deadline` passed to :meth:`expand`.

    :ivar pattern: Compiled regex matching a sub-command.
    """
    pattern = re.compile(r'\$\([^)]*\)')
    variable = '$USER'
    _clock = staticmethod(time.monotonic)

    def __init__(self, max_depth=8, max_length=2000, max_iterations=32):
        if max_depth < 0:
            raise ValueError('max_depth cannot be negative')
        self.max_depth = max_depth
        self.max_length = max_length
        self.max_iterations = max_iterations

    def deadline(self, budget):
        """
        Returns a deadline `budget` seconds from now, suitable for :meth:`expand`, or None if budget is falsy.
        """
        if not budget:
            return None
        return self._clock() + budget

    def expand(self, text, nick, dispatch, depth=0, deadline=None):
        """
        Performs command substitution.

        :param text: Text to expand.
        :param nick: Replacement for ``$USER``.
        :param dispatch: Callable receiving a command line and returning a :class:`Response`.  Must arrange for nested
            expansion to happen at `depth` + 1.
        :param depth: How deeply nested we already are.
        :param deadline: time.monotonic() value after which we give up.  None for no limit.
        :return: The expanded text, or `text` unchanged if a limit was hit.
        """
        result = text
        iterations = 0
        while True:
            match = self.pattern.search(result)
            if match is None:
                break
            if depth >= self.max_depth:
                logger.warning("Substitution depth limit ({}) reached: {!r}".format(self.max_depth, text))
                return text
            if iterations >= self.max_iterations:
                logger.warning("Substitution iteration limit ({}) reached: {!r}".format(self.max_iterations, text))
                return text
            if deadline is not None and self._clock() >= deadline:
                logger.warning("Substitution ran out of time: {!r}".format(text))
                return text
            iterations += 1

            span = match.group()
            response = dispatch(span[2:-1])
            result = result.replace(span, str(response), 1)
            if len(result) > self.max_length:
                logger.warning("Substitution length limit ({}) exceeded: {!r}".format(self.max_length, text))
                return text

        return result.replace(self.variable, nick)


def apply_args(template, args):
    """
    Fills in positional placeholders, much like a shell does.

    ``$1`` is replaced by the first word of `args`, ``$2`` by the second and so on up to ``$10``.  Placeholders without
    a matching word are left alone, as is anything past ``$10``.

    A placeholder is the whole run of digits after the ``$``, so ``$10`` is never mistaken for ``$1`` followed by a ``0``
    and ``$11`` stays as it is.  Replacement text is not scanned again.

    :param template: Text containing placeholders.
    :param args: Whitespace-separated arguments.
    :return: Filled-in text.
    """
    words = args.split() if args else []

    def _replace(match):
        index = int(match.group(1))
        if 1 <= index <= min(len(words), MAX_ARGS):
            return words[index - 1]
        return match.group()
    return PLACEHOLDER.sub(_replace, template)


def render_fact(template, args, nick):
    """
    Turns a stored fact into a response.

    Positional placeholders are filled from `args`, ``$USER`` becomes `nick`, and a fact starting with ``$ME`` is
    narrated as an action.

    :param template: Stored fact text.
    :param args: Words that followed the fact name.
    :param nick: Nick of whoever asked.
    :return: A :class:`Response`
    """
    result = apply_args(template, args).replace(Expander.variable, nick)
    if template.startswith('$ME'):
        return Response.action(result.replace('$ME', '', 1).strip())
    return Response.chat(result)
