"""
Game mode interception.

While a mini-game runs in a channel, the dispatcher gives the :class:`GameInterceptor` a look at every line before
normal handling:

Guessing game
    Players try to name the fact whose text the bot announced, by typing ``~factname``.  Fact searching is disabled
    so nobody can just look it up.

Regex game
    Players try to write a regular expression that matches one word but not another.  Any line counts as an attempt;
    a losing attempt is handled as if there were no game at all.

Starting and ending games is up to the commands in :mod:`ircbutt.modules.games`; this module only enforces the rules
and detects winners.
"""
import logging
import re

from ircbutt.response import Response
from ircbutt.state import GameVariant

__all__ = ['GameInterceptor', 'SEARCH_ALIASES']

logger = logging.getLogger(__name__)

#: Commands that would give away the answer to a guessing game.
SEARCH_ALIASES = frozenset(['factfind', 'factsearch', 'fsearch', 'ffind', 'ff', 'fs'])


class GameInterceptor:
    disabled_message = "no searching for facts while a guessing game is on!"

    def __init__(self, search_aliases=SEARCH_ALIASES, fact_prefix='~'):
        """
        :param search_aliases: Command names that are refused during a guessing game.
        :param fact_prefix: Fact sentinel that guesses start with.
        """
        self.search_aliases = frozenset(search_aliases)
        self.fact_prefix = fact_prefix

    def intercept(self, game, invoker, name, line):
        """
        Called before a command is resolved.

        :param game: :class:`ircbutt.state.GameState` for the channel.
        :param invoker: :class:`ircbutt.commands.Invoker`
        :param name: First token of the line, minus the command sentinel.
        :param line: The whole line, minus the command sentinel.
        :return: A :class:`Response` to short-circuit with, or None to carry on as normal.
        """
        variant = game.current()[0]
        if variant is GameVariant.GUESSING:
            if name in self.search_aliases:
                return Response.highlight(invoker.nick, self.disabled_message)
            return None
        if variant is GameVariant.REGEX:
            return self.attempt_regex(game, invoker, line.strip())
        return None

    def attempt_regex(self, game, invoker, text):
        if not text:
            return None
        try:
            pattern = re.compile(text)
        except (re.error, OverflowError, RecursionError):
            return None
        result = game.solve_regex(pattern)
        if result is None:
            return None
        should_match, should_not_match = result
        logger.info("{} won the regex game with /{}/".format(invoker.nick, text))
        return Response.highlight(
            invoker.nick,
            "nice! /{}/ matches {} but not {}".format(text, should_match, should_not_match)
        )

    def attempt_guess(self, game, invoker, token, storage):
        """
        Called for tokens that didn't resolve to a command.

        :param game: :class:`ircbutt.state.GameState` for the channel.
        :param invoker: :class:`ircbutt.commands.Invoker`
        :param token: The unresolved token, e.g. ``~foo``
        :param storage: :class:`ircbutt.storage.Storage` where points are kept.
        :return: A :class:`Response` if the guess won, otherwise None.
        """
        answer = game.solve_guess(token, self.fact_prefix)
        if answer is None:
            return None
        total = storage.award_point(invoker.nick)
        logger.info("{} won the guessing game ({})".format(invoker.nick, answer))
        return Response.highlight(
            invoker.nick,
            "you got it! the answer was {}{}.  you now have {} point{}".format(
                self.fact_prefix, answer, total, "" if total == 1 else "s"
            )
        )
