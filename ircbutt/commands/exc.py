"""
Defines exceptions regarding command handling.
"""
__all__ = [
    'UsageError', 'PermissionDenied', 'DuplicateAliasError',
    'ArgumentCountError', 'NotEnoughArgumentsError', 'TooManyArgumentsError',
]


class UsageError(Exception):
    """
    Thrown when a command is called with invalid syntax.
    """
    def __init__(self, message=None, event=None, minargs=None, maxargs=None, final=False):
        """
        Creates a new UsageError.

        UsageErrors represent instances where a user enters invalid syntax for an IRC command.  For instance, if they
        fail to specify the correct number of parameters to a command.

        The dispatcher turns a UsageError into a highlighted reply to the invoker containing the error message, or the
        command's usage line if the error has no message of its own.

        :param message: Error message.
        :param event: The `Event` that was being handled.
        :param minargs: Minimum number of arguments the command accepts.  May be None
        :param maxargs: Maximum number of arguments the command accepts.  None means unlimited.
        :param final: If True, the command's own usage text will not replace this message.
        """
        super().__init__(message)
        self.event = event
        self.minargs = minargs
        self.maxargs = maxargs
        self.final = final
        self.message = message or self.default_message()

    def default_message(self):
        """Supplies a default message when our message is None on construction."""
        return None

    def __str__(self):
        if self.message:
            return self.message
        return super().__str__()


class ArgumentCountError(UsageError):
    """Thrown when we had more/less arguments than we expected."""

    def default_message(self):
        message = "Incorrect number of arguments."
        if self.minargs is None and self.maxargs is None:
            return message

        min = self.minargs or 0
        max = self.maxargs
        if max is None:
            if min:
                expected = "at least {}".format(min)
            else:
                expected = "any number"
        elif min == max:
            expected = str(min)
        elif min:
            expected = "between {} and {}".format(min, max)
        else:
            expected = "up to {}".format(max)

        if self.event is not None and self.event.text is not None:
            n = len(self.event.arglist)
            if n < min:
                message = "Not enough arguments."
            elif max is not None and n > max:
                message = "Too many arguments."
            return "{}  (Expected {}, got {})".format(message, expected, n)
        return "{}  (Expected {})".format(message, expected)


class NotEnoughArgumentsError(ArgumentCountError):
    """Thrown when we didn't have enough arguments."""
    pass


class TooManyArgumentsError(ArgumentCountError):
    """Thrown when we we had too many arguments."""
    pass


class PermissionDenied(UsageError):
    """
    Thrown when the invoker lacks the status a command requires.

    Without a message the denial is silent: the dispatcher answers with no reply at all.
    """
    pass


class DuplicateAliasError(ValueError):
    """
    Thrown at registration time when a command declares an alias that is already taken.

    :ivar aliases: Sorted list of every conflicting alias.
    """
    def __init__(self, aliases):
        self.aliases = sorted(aliases)
        super().__init__("Duplicate command alias(es): {}".format(", ".join(repr(a) for a in self.aliases)))
