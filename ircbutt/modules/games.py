"""
Mini-games.

``!guessgame`` announces the text of a random fact; the first person to say its name (``~name``) wins a point.
``!regexgame`` names two words; the first person to type a regex that matches the first but not the second wins.
``!endgame`` gives up on the current game, and ``!score`` shows points.

Games end on their own after ``[games] timeout`` seconds.  Winning is detected by :mod:`ircbutt.games`.
"""
import logging
import random

from ircbutt.commands import alias, command, doc

logger = logging.getLogger(__name__)

#: Words for the regex game.  Pairs are picked at random, so the list should be varied.
REGEX_WORDS = (
    'apple', 'banana', 'butter', 'cabbage', 'carrot', 'cat', 'cheese', 'cobalt', 'dog', 'dragon', 'eagle', 'ember',
    'falcon', 'ferret', 'gopher', 'granite', 'harbor', 'hazel', 'igloo', 'iris', 'jasper', 'juniper', 'kettle',
    'kiwi', 'lemon', 'lizard', 'mango', 'marble', 'nectar', 'nutmeg', 'octopus', 'onion', 'parrot', 'pepper',
    'quartz', 'quince', 'raven', 'rhubarb', 'salmon', 'sparrow', 'tiger', 'tulip', 'umber', 'urchin', 'velvet',
    'violet', 'walrus', 'willow', 'yak', 'zebra',
)


def _timeout(event):
    return event.config.games.timeout or None


@command('guessgame', category='games', substitute=False, maxargs=0)
@alias('guess')
@doc('Starts a guessing game: name the fact I describe with ~factname.')
def guessgame_command(event):
    game = event.context.game
    if game.active:
        return event.reply("a game is already going!")
    entry = event.storage.random_entry()
    if entry is None:
        return event.reply("{} dont know any facts yet!".format(event.config.main.nickname))
    key, value = entry
    if not game.start_guessing(key, _timeout(event)):
        return event.reply("a game is already going!")
    logger.debug("Guessing game started in {}: {!r}".format(event.context.key, key))
    return event.say("guess the fact! {} (answer with {}factname)".format(value, event.dispatcher.fact_prefix))


@command('regexgame', category='games', substitute=False, maxargs=0)
@alias('rg')
@doc('Starts a regex game: write a regex matching one word but not the other.')
def regexgame_command(event):
    game = event.context.game
    should_match, should_not_match = random.sample(REGEX_WORDS, 2)
    if not game.start_regex(should_match, should_not_match, _timeout(event)):
        return event.reply("a game is already going!")
    logger.debug("Regex game started in {}: {!r} / {!r}".format(event.context.key, should_match, should_not_match))
    return event.say("regex game! match {} but not {}".format(should_match, should_not_match))


@command('endgame', category='games', substitute=False, maxargs=0)
@doc('Ends the current game.')
def endgame_command(event):
    snapshot = event.context.game.end()
    if snapshot is None:
        return None
    variant, answer, should_match, should_not_match = snapshot
    if answer is not None:
        return event.say("game over! the answer was {}{}".format(event.dispatcher.fact_prefix, answer))
    return event.say("game over! nobody matched {} but not {}".format(should_match, should_not_match))


@command('score', usage='[nick]', category='games', maxargs=1)
@alias('points')
@doc('Shows how many games someone has won.')
def score_command(event):
    nick = event.arglist[0] if event.arglist else event.nick
    points = event.storage.points(nick)
    return event.say("{} has {} point{}".format(nick, points, "" if points == 1 else "s"))
