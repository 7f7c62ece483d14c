"""
The commands the bot knows, and the plumbing that assembles a working :class:`ircbutt.dispatcher.Dispatcher`.

Commands are listed explicitly rather than discovered.  Adding a command means writing it in one of the
:mod:`ircbutt.modules` and adding it to :data:`CAPABILITIES`.
"""
import logging

from ircbutt import Config
from ircbutt.commands import Registry
from ircbutt.dispatcher import Dispatcher
from ircbutt.modules import core, facts, fun, games, karma, quotes, sed
from ircbutt.storage import MemoryStorage, SqliteStorage

__all__ = ['CAPABILITIES', 'SED', 'build_registry', 'build_storage', 'build_dispatcher']

logger = logging.getLogger(__name__)

CAPABILITIES = (
    core.help_command,
    core.more_command,
    core.echo_command,
    core.version_command,
    core.give_command,
    facts.learn_command,
    facts.append_command,
    facts.forget_command,
    facts.fact_command,
    facts.factinfo_command,
    facts.factfind_command,
    games.guessgame_command,
    games.regexgame_command,
    games.endgame_command,
    games.score_command,
    quotes.grab_command,
    quotes.rq_command,
    quotes.rqnouser_command,
    quotes.q_command,
    quotes.qsay_command,
    quotes.qinfo_command,
    quotes.qsearch_command,
    karma.karma_command,
    fun.rot13_command,
    fun.coin_command,
    fun.dice_command,
    fun.random_command,
    fun.eightball_command,
    fun.sqrt_command,
    fun.pow_command,
)

#: Handles ``s/pattern/replacement/`` lines.  Not in the registry: the dispatcher recognizes these by shape.
SED = sed.sed_command


def build_registry(capabilities=CAPABILITIES, strict=True):
    """
    Builds a command registry.

    :param capabilities: Commands to register.
    :param strict: If True, two commands claiming the same alias is an error.  If False, the later one wins.
    :raises: :class:`ircbutt.commands.DuplicateAliasError` in strict mode.
    """
    registry = Registry(strict=strict)
    registry.register(*capabilities)
    logger.debug("Registered {} commands".format(len(registry.commands)))
    return registry


def build_storage(config):
    """
    Returns a sqlite-backed storage if ``[facts] database`` is set, otherwise a throwaway in-memory one.

    :param config: :class:`ircbutt.Config`
    """
    if config.facts.database:
        logger.info("Using fact database {}".format(config.facts.database))
        return SqliteStorage(config.facts.database)
    logger.info("No fact database configured; facts will not be saved.")
    return MemoryStorage()


def build_dispatcher(config=None, storage=None, registry=None):
    """
    Assembles a :class:`Dispatcher` with the standard commands.

    :param config: :class:`ircbutt.Config`.  Defaults are used if None.
    :param storage: Storage to use.  Built from `config` if None.
    :param registry: Registry to use.  Built from :data:`CAPABILITIES` if None.
    """
    if config is None:
        config = Config()
    if storage is None:
        storage = build_storage(config)
    if registry is None:
        registry = build_registry()
    return Dispatcher(registry, storage, config=config, sed=SED)
