"""
Small, stateless commands.
"""
import codecs
import math
import random
import re

from ircbutt.commands import UsageError, alias, command, doc

DICE_PATTERN = re.compile(r'(?P<count>\d*)d(?P<sides>\d+)', re.IGNORECASE)
MAX_DICE = 100
MAX_SIDES = 1000

EIGHT_BALL = (
    "It is certain.", "It is decidedly so.", "Without a doubt.", "Yes, definitely.", "You may rely on it.",
    "As I see it, yes.", "Most likely.", "Outlook good.", "Yes.", "Signs point to yes.",
    "Reply hazy, try again.", "Ask again later.", "Better not tell you now.", "Cannot predict now.",
    "Concentrate and ask again.", "Don't count on it.", "My reply is no.", "My sources say no.",
    "Outlook not so good.", "Very doubtful.",
)


def rot13(text):
    return codecs.encode(text, 'rot13')


@command('rot13', usage='<text>', category='fun', minargs=1)
@alias('rot')
@doc('Applies ROT13 to text.')
def rot13_command(event):
    return event.say(rot13(event.text))


@command('coin', category='fun', maxargs=0)
@doc('Flips a coin.')
def coin_command(event):
    return event.action("flips a coin... {}!".format(random.choice(('heads', 'tails'))))


def roll(count, sides):
    """
    Rolls `count` dice with `sides` sides.

    :raises: :class:`UsageError` if either is out of range.
    """
    if not 1 <= count <= MAX_DICE:
        raise UsageError("can only roll 1 to {} dice".format(MAX_DICE), final=True)
    if not 2 <= sides <= MAX_SIDES:
        raise UsageError("dice need 2 to {} sides".format(MAX_SIDES), final=True)
    return [random.randint(1, sides) for _ in range(count)]


@command('dice', usage='[NdM]', category='fun', maxargs=1)
@alias('roll')
@doc('Rolls dice, e.g. !dice 2d6.  Defaults to one six-sided die.')
def dice_command(event):
    count, sides = 1, 6
    if event.arglist:
        match = DICE_PATTERN.fullmatch(event.arglist[0])
        if not match:
            raise UsageError()
        count = int(match.group('count') or 1)
        sides = int(match.group('sides'))
    rolls = roll(count, sides)
    if len(rolls) == 1:
        return event.say("rolled {}".format(rolls[0]))
    return event.say("rolled {} = {}".format(" + ".join(str(r) for r in rolls), sum(rolls)))


@command('random', category='fun', maxargs=0)
@doc('Picks a random number from 0 to 10000.')
def random_command(event):
    return event.say(str(random.randint(0, 10000)))


@command('8ball', usage='<question>', category='fun', minargs=1)
@alias('8')
@doc('Answers yes/no questions with great wisdom.')
def eightball_command(event):
    return event.reply(random.choice(EIGHT_BALL))


def number(text):
    """
    Parses a number typed by a user.

    :raises: :class:`UsageError` if `text` isn't a finite number.
    """
    try:
        value = float(text)
    except ValueError:
        raise UsageError("{} is not a number".format(text), final=True)
    if not math.isfinite(value):
        raise UsageError("{} is not a number".format(text), final=True)
    return value


def format_number(value):
    if value.is_integer():
        return str(int(value))
    return repr(value)


@command('sqrt', usage='<number>', category='math', minargs=1, maxargs=1)
@doc('Square root.')
def sqrt_command(event):
    value = number(event.arglist[0])
    if value < 0:
        raise UsageError("cant take the square root of a negative number", final=True)
    return event.say(format_number(math.sqrt(value)))


@command('pow', usage='<base> <exponent>', category='math', minargs=2, maxargs=2)
@doc('Raises a number to a power.')
def pow_command(event):
    base, exponent = number(event.arglist[0]), number(event.arglist[1])
    try:
        result = math.pow(base, exponent)
    except OverflowError:
        raise UsageError("number too big", final=True)
    except ValueError:
        raise UsageError("no real answer to that", final=True)
    return event.say(format_number(result))
