"""
Bot responses.

Every command returns a :class:`Response`, which tells the transport how (and whether) to deliver a message.
"""
import collections
import enum

__all__ = ['Intention', 'Response']


class Intention(enum.Enum):
    """Delivery mode for a :class:`Response`."""
    CHAT = 'chat'            # Broadcast to the channel.
    HIGHLIGHT = 'highlight'  # Addressed to a particular user.
    ACTION = 'action'        # Narrated in the third person (CTCP ACTION)
    NO_REPLY = 'no_reply'    # Say nothing.


class Response(collections.namedtuple('_Response', ['intention', 'recipient', 'message'])):
    """
    What the bot intends to say.

    :ivar intention: An :class:`Intention`
    :ivar recipient: Nickname being addressed.  Only meaningful for HIGHLIGHT.
    :ivar message: Message text.  Ignored for NO_REPLY.
    """
    def __new__(cls, intention, recipient=None, message=None):
        return super().__new__(cls, intention, recipient, message)

    @classmethod
    def chat(cls, message):
        return cls(Intention.CHAT, None, message)

    @classmethod
    def highlight(cls, recipient, message):
        return cls(Intention.HIGHLIGHT, recipient, message)

    @classmethod
    def action(cls, message):
        return cls(Intention.ACTION, None, message)

    @classmethod
    def no_reply(cls):
        return cls(Intention.NO_REPLY)

    @property
    def is_reply(self):
        """True unless this is a NO_REPLY"""
        return self.intention is not Intention.NO_REPLY

    def __str__(self):
        """The message text, or '' if there isn't any to deliver."""
        if not self.is_reply or self.message is None:
            return ''
        return self.message
