"""
Facts: the bot's knowledge.

Facts are looked up by name with the fact sentinel, e.g. ``~coffee``.  A fact can use ``$1``..``$10`` for words that
follow its name, ``$USER`` for whoever asked, and can start with ``$ME`` to be narrated as an action.  Lookups are
handled by the dispatcher; the commands here teach, change and search facts.

None of these commands allow command substitution, so fact text containing ``$(...)`` is stored exactly as typed.
"""
import logging

from ircbutt.commands import PermissionDenied, UsageError, alias, command, doc

logger = logging.getLogger(__name__)


def _split_fact(event):
    """Returns (key, value) from ``key: value`` or ``key value``."""
    key = event.arglist[0]
    if key.endswith(':'):
        key = key.rstrip(':')
    return key, event.arglist.rest(1)


def _require_verified(event):
    if not (event.invoker.verified or event.config.facts.no_verify):
        logger.debug("{} is not identified".format(event.nick))
        raise PermissionDenied()


@command('learn', usage='<key>: <value>', category='facts', substitute=False, minargs=2)
@doc('Teaches me a new fact.')
def learn_command(event):
    _require_verified(event)
    key, value = _split_fact(event)
    if not key:
        raise UsageError()
    max_size = event.config.facts.max_size
    if len(value) > max_size:
        return event.reply("fact longer than {} characters".format(max_size))
    if not event.storage.store(key, value, event.nick):
        return event.reply("{} already know about {}".format(event.config.main.nickname, key))
    logger.debug("{} taught {!r}: {!r}".format(event.nick, key, value))
    return event.reply("ok got it!")


@command('append', usage='<key>: <value>', category='facts', substitute=False, minargs=2)
@doc('Adds more text to the end of a fact.')
def append_command(event):
    _require_verified(event)
    key, value = _split_fact(event)
    if not key:
        raise UsageError()
    existing = event.storage.lookup(key)
    if existing is None:
        return event.reply("{} don't know nothin bout {}".format(event.config.main.nickname, key))
    max_size = event.config.facts.max_size
    if len(existing) + 1 + len(value) > max_size:
        return event.reply("fact longer than {} characters".format(max_size))
    if not event.storage.append(key, value):
        return event.reply("{} don't know nothin bout {}".format(event.config.main.nickname, key))
    return event.reply("ok got it!")


@command('forget', usage='<factname>', category='facts', substitute=False)
@doc('Removes a fact.  Channel operators only.')
def forget_command(event):
    if not event.invoker.operator:
        logger.debug("{} is not a channel op".format(event.nick))
        raise PermissionDenied()
    if len(event.arglist) != 1:
        raise UsageError()
    key = event.arglist[0]
    old = event.storage.lookup(key)
    if not event.storage.delete(key):
        return event.reply("{} don't know nothin bout {}".format(event.config.main.nickname, key))
    # Log it in case of accidental data loss
    logger.info("{} removed fact [{}]: {}".format(event.nick, key, old))
    return event.reply("ok {} wont member that no more".format(event.config.main.nickname))


@command('fact', category='facts', substitute=False, maxargs=0)
@doc('Tells a random fact.')
def fact_command(event):
    entry = event.storage.random_entry()
    if entry is None:
        return event.reply("{} dont know any facts yet!".format(event.config.main.nickname))
    return event.say(entry[1])


@command('factinfo', usage='<factname>', category='facts', substitute=False, minargs=1)
@alias('finfo', 'fi')
@doc('Shows who taught a fact, and when.')
def factinfo_command(event):
    info = event.storage.info(event.text)
    if info is None:
        return event.say("{} find nothing".format(event.config.main.nickname))
    return event.say(info)


@command('factfind', usage='<text>', category='facts', substitute=False, minargs=1)
@alias('factsearch', 'fsearch', 'ffind', 'ff', 'fs')
@doc('Searches fact text.  Use !more to see further matches.')
def factfind_command(event):
    results = event.storage.search(event.text)
    event.context.more.replace(results[1:])
    if not results:
        return event.say("{} find nothing".format(event.config.main.nickname))
    return event.say(results[0])
