"""
Karma: imaginary internet points for anything at all.

``!karma foo`` shows foo's karma, ``!karma foo ++`` and ``!karma foo --`` change it.
"""
import logging

from ircbutt.commands import UsageError, command, doc

logger = logging.getLogger(__name__)

CHANGES = {'++': 1, '--': -1}


@command('karma', usage='<thing> [++|--]', category='fun', minargs=1, maxargs=2)
@doc('Shows or changes the karma of something.')
def karma_command(event):
    item = str(event.arglist[0])
    if len(event.arglist) == 1:
        return event.say("{} has karma of {}".format(item, event.storage.karma(item)))
    delta = CHANGES.get(event.arglist[1])
    if delta is None:
        raise UsageError()
    if item.lower() == event.nick.lower():
        return event.reply("no changing your own karma")
    total = event.storage.adjust_karma(item, delta)
    logger.debug("{} gave {} {:+d} karma".format(event.nick, item, delta))
    return event.say("{} has karma of {}".format(item, total))
