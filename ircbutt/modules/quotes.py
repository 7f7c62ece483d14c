"""
Quote grabs.

``!grab <nick>`` saves the last ordinary thing someone said in the channel.  Saved quotes can be pulled back out at
random (``!rq``), by number (``!q 12``), or by searching their text (``!qsearch``).  Search results past the first one
go to ``!more``.
"""
import logging

from ircbutt.commands import UsageError, alias, command, doc

logger = logging.getLogger(__name__)


def format_quote(quote):
    return "<{}> {}".format(quote.nick, quote.text)


def _quote_id(event):
    try:
        return int(event.arglist[0].lstrip('#'))
    except ValueError:
        raise UsageError()


def _nothing(event):
    return event.say("{} find nothing".format(event.config.main.nickname))


@command('grab', usage='<nick>', category='quotes', minargs=1, maxargs=1)
@doc("Saves the last thing someone said as a quote.")
def grab_command(event):
    nick = str(event.arglist[0])
    if nick == event.nick:
        return event.reply("you cant grab yourself")
    text = event.context.last_line(nick)
    if text is None:
        return event.reply("{} dont remember {} saying anything".format(event.config.main.nickname, nick))
    id_ = event.storage.add_quote(nick, text, event.nick)
    if id_ is None:
        return None
    logger.debug("{} grabbed quote {} from {}: {!r}".format(event.nick, id_, nick, text))
    return event.reply("grabbed quote #{}".format(id_))


@command('rq', usage='[nick]', category='quotes', maxargs=1)
@doc('Shows a random quote, optionally only from one person.')
def rq_command(event):
    quote = event.storage.random_quote(event.arglist[0] if event.arglist else None)
    if quote is None:
        return _nothing(event)
    return event.say(format_quote(quote))


@command('rqnouser', usage='[nick]', category='quotes', maxargs=1)
@alias('rqn')
@doc('Like rq, but leaves off who said it.')
def rqnouser_command(event):
    quote = event.storage.random_quote(event.arglist[0] if event.arglist else None)
    if quote is None:
        return _nothing(event)
    return event.say(quote.text)


@command('q', usage='<number>', category='quotes', minargs=1, maxargs=1)
@doc('Shows a quote by number.')
def q_command(event):
    quote = event.storage.quote(_quote_id(event))
    if quote is None:
        return _nothing(event)
    return event.say(format_quote(quote))


@command('qsay', usage='<number>', category='quotes', minargs=1, maxargs=1)
@doc('Says a quote by number, as if I came up with it.')
def qsay_command(event):
    quote = event.storage.quote(_quote_id(event))
    if quote is None:
        return _nothing(event)
    return event.say(quote.text)


@command('qinfo', usage='<number>', category='quotes', minargs=1, maxargs=1)
@alias('qi')
@doc('Shows who grabbed a quote, and when.')
def qinfo_command(event):
    quote = event.storage.quote(_quote_id(event))
    if quote is None:
        return _nothing(event)
    return event.say("({}) <{}> grabbed by {} on {}".format(quote.id, quote.nick, quote.grabbed_by, quote.timestamp))


@command('qsearch', usage='<text>', category='quotes', substitute=False, minargs=1)
@alias('qfind', 'qf')
@doc('Searches quotes.  Use !more to see further matches.')
def qsearch_command(event):
    results = ["({}) {}".format(quote.id, format_quote(quote)) for quote in event.storage.search_quotes(event.text)]
    event.context.more.replace(results[1:])
    if not results:
        return _nothing(event)
    return event.say(results[0])
