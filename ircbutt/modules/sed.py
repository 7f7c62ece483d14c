"""
``s/typo/fix/`` corrections.

When someone says ``s/pattern/replacement/`` (optionally followed by ``g`` and/or ``i``), the substitution is applied to
the last ordinary thing they said in the channel and the corrected line is repeated back.
"""
import logging
import re

from ircbutt.commands import command, doc
from ircbutt.dispatcher import SED_PATTERN

logger = logging.getLogger(__name__)

_UNESCAPE = re.compile(r'\\/')


@command('s', usage='/pattern/replacement/[gi]', category='core', substitute=False)
@doc('Corrects the last thing you said.')
def sed_command(event):
    match = SED_PATTERN.fullmatch(event.text.strip())
    if not match:
        return None
    last = event.context.last_line(event.nick)
    if last is None:
        return None
    flags = match.group('flags')
    pattern = _UNESCAPE.sub('/', match.group('pattern'))
    replacement = _UNESCAPE.sub('/', match.group('replacement'))
    if not pattern:
        return None
    try:
        regex = re.compile(pattern, re.IGNORECASE if 'i' in flags else 0)
        result, count = regex.subn(replacement, last, count=0 if 'g' in flags else 1)
    except (re.error, IndexError) as ex:
        logger.debug("Bad s/// from {}: {}".format(event.nick, ex))
        return None
    if not count or result == last:
        return None
    event.context.record_line(event.nick, result)
    return event.say("{} meant to say: {}".format(event.nick, result))
