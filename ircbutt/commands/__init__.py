"""
IRC command tools.

This module defines several classes and utility functions related to defining IRC bot commands and parsing arguments
for them.

Argument Parsing
================
Argument parsing works on the notion of splitting a string of space-separated words, but with an easy way to take any
word and retrieve the remainder of the string that was originally parsed.

The :class:`ArgumentList` class parses a line of text and converts it into a list of :class:`Arguments <Argument>`.
Arguments are subclasses of :class:`str` that add some extra fluff -- namely, the :attr:`~Argument.eol` property which
returns from the beginning of the selected argument up through the end of the line that was parsed.  This is notably
useful for commands that take a few 'word' arguments followed by a partial line of text, like ``!learn key value...``

Commands
========
A :class:`Command` wraps a function that is called with the following signature::

    function(event)

and returns a :class:`ircbutt.response.Response` (or a str, or None).  The event carries the invoker, the argument
list, and the per-channel context.

Commands also carry metadata the dispatcher cares about: their aliases, and whether the line should be run through
command substitution (``$(...)`` and ``$USER``) before the command sees it.

Registry
========
A :class:`Registry` maps aliases to commands.  It is built once at startup from an explicit list of commands and
never modified afterwards.
"""
from .exc import *
from .core import *
from .commands import *
