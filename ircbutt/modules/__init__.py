"""Commands shipped with IRCbutt.  :mod:`ircbutt.capabilities` decides which of them are registered."""
