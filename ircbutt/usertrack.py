"""User tracking: who is identified to services, and who is a channel operator."""
import logging

import pydle

logger = logging.getLogger(__name__)


class UserTrackingClient(pydle.Client):
    """
    Answers the two questions commands ask about whoever is talking to us: are they identified (for teaching facts)
    and are they a channel operator (for forgetting them).

    Identification is looked up with WHOIS and cached in :attr:`users` until the user changes nick or leaves.
    """
    def _sync_user(self, nick, metadata):
        if nick != self.nickname and 'identified' in metadata:
            metadata.setdefault('complete', True)
        super()._sync_user(nick, metadata)

    def _rename_user(self, user, new):
        super()._rename_user(user, new)
        # New nick, new identity: force a fresh WHOIS next time.
        udata = self.users.get(new)
        if new != self.nickname and udata is not None:
            udata['complete'] = False
            udata['identified'] = False

    async def on_raw_307(self, message):
        """ WHOIS: User has identified for this nickname. (Anope) """
        # Superclass doesn't set account.  For convenience, assume it's the same as the nick.
        target, nickname = message.params[:2]
        info = {
            'account': nickname,
            'identified': True
        }
        if nickname in self.users:
            self._sync_user(nickname, info)
        if nickname in self._pending['whois']:
            self._whois_info[nickname].update(info)

    async def get_user_value(self, nickname, key, default=None, must_exist=False):
        """
        Retrieves a user value, performing a /whois if needed.

        :param nickname: Nickname
        :param key: Property
        :param default: Default value
        :param must_exist: If True, the user must already be known to us (otherwise we return default)

        value = await bot.get_user_value(...)
        """
        user = self.users.get(nickname)
        if not user and must_exist:
            return default

        if user and key in user and user.get('complete'):
            return user.get(key, default)

        result = await self.whois(nickname)
        if result and user is not None and nickname in self.users:
            self._sync_user(nickname, {k: v for k, v in result.items() if k in ('identified', 'account')})
        return result.get(key, default) if result else default

    async def is_verified(self, nickname):
        """
        Returns True if `nickname` is identified to services.

        :param nickname: Nickname to check.
        """
        try:
            return bool(await self.get_user_value(nickname, 'identified', False))
        except pydle.Error:
            logger.exception("WHOIS for {} failed".format(nickname))
            return False

    def is_operator(self, channel, nickname):
        """
        Returns True if `nickname` has channel operator status.

        :param channel: Channel to check.  If None, any channel we're in counts.
        :param nickname: Nickname to check.
        """
        if channel is None:
            return any(self.is_operator(ch, nickname) for ch in self.channels)
        info = self.channels.get(channel)
        if not info:
            return False
        return nickname in info.get('modes', {}).get('o', [])
