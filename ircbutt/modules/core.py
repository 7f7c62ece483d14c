"""
Core bot functionality.

`help_command`
    ``!help`` lists commands by category; ``!help <command>`` shows usage, aliases and helptext for one command.
`more_command`
    ``!more`` shows the next queued result from a command that found more than it could say at once.
`echo_command`
    ``!echo <text>`` repeats text.  Mostly useful together with command substitution.
`version_command`
    ``!version`` shows the bot version.
`give_command`
    ``!give <nick> <command>`` runs a command and addresses its output to someone else.
"""
import itertools
import textwrap

from ircbutt.commands import command, alias, doc
from ircbutt.response import Response


@command('help', usage='[command]', category='core', maxargs=1)
@doc('Shows a list of commands, or detailed help on one command.')
def help_command(event):
    """
    Produces help.
    :param event: Event
    """
    registry = event.dispatcher.registry
    prefix = event.dispatcher.prefix

    if event.arglist:
        name = event.arglist[0]
        if name.startswith(prefix):
            name = name[len(prefix):]
        command = registry.lookup(name)
        if command is None:
            return event.reply(
                "Unknown command {prefix}{name}.  See {help_command} for a complete list of commands."
                .format(prefix=prefix, name=name, help_command=event.full_name)
            )
        lines = ["Usage: " + command.usage_line(prefix)]
        aliases = sorted(prefix + a for a in command.aliases if a != command.name)
        if aliases:
            lines.append("Aliases: " + ", ".join(aliases))
        if command.doc:
            lines.append(command.doc)
        return event.reply("\n".join(lines))

    # Build a wordwrapper for formatting the command list.
    ww = textwrap.TextWrapper(
        width=80, subsequent_indent="... "
    ).wrap

    lines = ["For detailed help on a specific command, use {} <command>".format(event.full_name)]
    # Sort it and group by category
    for category, commandlist in itertools.groupby(
        sorted(registry.commands, key=lambda item: ((item.category or "").lower(), item.name)),
        key=lambda item: (item.category or "").lower()
    ):
        fmt = ("[{category}]: " if category else "") + "{commands}"
        lines.extend(ww(fmt.format(
            category=category.upper(),
            commands=", ".join(command.name for command in commandlist))
        ))
    return event.reply("\n".join(lines))


@command('more', category='core', maxargs=0)
@doc('Shows the next result from the last command that had more to say.')
def more_command(event):
    item = event.context.more.pop()
    if item is None:
        return None
    return event.say(item)


@command('echo', usage='<text>', category='core', minargs=1)
@alias('say')
@doc('Repeats text back.  Try it with $(command) or $USER.')
def echo_command(event):
    return event.say(event.text)


@command('version', category='core', maxargs=0)
@doc('Shows the bot version.')
def version_command(event):
    return event.say(event.config.main.version)


@command('give', usage='<nick> <command>', category='core', substitute=False, minargs=2)
@doc('Runs a command and addresses the result to someone else, e.g. !give bob ~coffee')
def give_command(event):
    nick = event.arglist[0]
    response = event.dispatcher.dispatch(event.message, event.arglist.rest(1), event.depth + 1, event.deadline)
    if not response.is_reply or not response.message:
        return None
    return Response.highlight(nick, response.message)
