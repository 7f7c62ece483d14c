"""
IRCbutt: a chat command router for IRC bots.

Lines of chat arrive from the transport (:class:`ircbutt.bot.Bot`), the :class:`ircbutt.dispatcher.Dispatcher` figures
out which command should handle them -- expanding ``$(...)`` sub-commands and ``$USER`` along the way -- and the
resulting :class:`ircbutt.response.Response` is rendered back to the channel.

This module holds configuration handling.
"""
import configparser
import fractions
import functools
import re

import ircbutt.util

__version__ = '0.4.0'


class ConfigSection(dict):
    """
    Represents a ConfigSection

    Subclass this and override read() to perform your own config file validation.

    Allows attribute-based dict access.
    """
    def __init__(self, section=None):
        """
        Initializes ourself based on a :class:`configparser.SectionProxy`

        :param section: :class:`configparser.SectionProxy` to initialize ourselves with.
        """
        super().__init__()
        self.read(section)

    def read(self, section):
        """
        Converts, initializes and validates our parameters.

        :param section: :class:`configparser.SectionProxy` to initialize ourselves with.
        """
        return True

    def __getattr__(self, item):
        try:
            return self[item]
        except KeyError:
            raise AttributeError(item)

    def __delattr__(self, item):
        try:
            return super().__delattr__(item)
        except AttributeError:
            pass
        try:
            del self[item]
        except KeyError:
            raise AttributeError(item)

    __setattr__ = dict.__setitem__


class MainConfigSection(ConfigSection):
    """
    Handles main bot configuration
    """

    # noinspection PyAttributeOutsideInit
    def read(self, section):
        self.nicknames = [nick for nick in re.split(r'[\s,]+', section.get('nick', 'ircbutt').strip()) if nick]
        if not self.nicknames:
            self.nicknames = ['ircbutt']
        self.verify_ssl = section.getboolean('verify_ssl', True)
        self.realname = section.get('realname', self.nicknames[0])
        self.username = section.get('username', self.nicknames[0])
        self.prefix = section.get('prefix', '!')
        self.fact_prefix = section.get('fact_prefix', '~')
        self.wrap_length = section.getint('wrap_length', 400)
        self.wrap_indent = section.get('wrap_indent', '...')
        self.version = section.get('version', __version__)
        if not self.prefix or not self.fact_prefix:
            raise ValueError("prefix and fact_prefix must not be empty")
        if self.prefix == self.fact_prefix:
            raise ValueError("prefix and fact_prefix must differ")

        servers = []
        for server in re.split(r',+', section.get('server', '')):
            server = server.strip()
            if not server:
                continue
            d = {'port': '6667'}
            d.update(zip(('hostname', 'port'), re.split(r'[/:]', server, 1)))
            d['tls'] = (d['port'][0] == '+')
            d['port'] = int(d['port'])
            servers.append(d)
        self.servers = servers

        channels = []
        for channel in re.split(r',+', section.get('channels', '')):
            channel = channel.strip()
            if not channel:
                continue
            channels.append(dict(zip(('channel', 'password'), ircbutt.util.pad(channel.split('=', 1), 2))))
        self.channels = channels

        for attr in ('auth_method', 'auth_username', 'auth_password'):
            self[attr] = section.get(attr)

    @property
    def nickname(self):
        return self.nicknames[0]


class ThrottleConfigSection(ConfigSection):
    # noinspection PyAttributeOutsideInit
    def read(self, section):
        def parse_float(value, default=None):
            if not value:
                return default
            return float(fractions.Fraction(value))

        def parse_cost(value, default):
            if not value:
                return default
            parts = dict(
                zip(
                    ('base', 'multiplier', 'exponent'),
                    [parse_float(part) for part in re.split(r'[\s,]+', value)]
                )
            )
            return parts.get('base', 1), parts.get('multiplier', 0), parts.get('exponent', 0)

        self.burst = section.getint('burst', 5)
        self.rate = section.getfloat('rate', 1.0)
        self.channel_burst = section.getint('channel_burst', 0)
        self.channel_rate = parse_float(section.get('channel_rate'), 0)
        self.user_burst = section.getint('user_burst', 3)
        self.user_rate = parse_float(section.get('user_rate'), 1.5)
        self.cost_base, self.cost_multiplier, self.cost_exponent = parse_cost(section.get('cost'), (1.0, 0.0, 0.0))


class FactsConfigSection(ConfigSection):
    # noinspection PyAttributeOutsideInit
    def read(self, section):
        self.database = section.get('database', '').strip() or None
        self.no_verify = section.getboolean('no_verify', False)
        self.max_size = section.getint('max_size', 500)


class SubstitutionConfigSection(ConfigSection):
    # noinspection PyAttributeOutsideInit
    def read(self, section):
        self.max_depth = section.getint('max_depth', 8)
        self.max_length = section.getint('max_length', 2000)
        self.max_iterations = section.getint('max_iterations', 32)
        self.time_budget = section.getfloat('time_budget', 3.0)


class GamesConfigSection(ConfigSection):
    # noinspection PyAttributeOutsideInit
    def read(self, section):
        self.timeout = section.getfloat('timeout', 300.0)


class MoreConfigSection(ConfigSection):
    # noinspection PyAttributeOutsideInit
    def read(self, section):
        self.size = section.getint('size', 50)
        if self.size <= 0:
            raise ValueError("more.size must be > 0")


class Config:
    """
    Handles configuration, and is a wrapper around a :class:`configparser.ConfigParser`.

    Sections missing from the file are treated as empty, so every setting has a default.
    """
    default_sections = (
        ('main', MainConfigSection),
        ('throttle', ThrottleConfigSection),
        ('facts', FactsConfigSection),
        ('substitution', SubstitutionConfigSection),
        ('games', GamesConfigSection),
        ('more', MoreConfigSection),
    )

    def __init__(self, filename=None, data=None):
        """
        Creates a new Configuration.

        :param filename: Filename to load from using read_file()
        :param data: Dict or str to load from using read_data()
        :return:
        """
        self.sections = {}
        self._parser = configparser.ConfigParser(interpolation=None)
        if data:
            self.read_data(data)
        if filename:
            self.read_file(filename)

        for name, class_ in self.default_sections:
            self.section(name, class_)

    def section(self, name, class_=None):
        """
        Registers the specified class as a handler for the specified config section.  Ignored if the section is already
        handled.

        :param name: Config section name.
        :param class_: Class.  If None, returns a decorator.
        """
        if class_ is None:
            return functools.partial(self.section, name)
        if name not in self.sections:
            if not self._parser.has_section(name):
                self._parser.add_section(name)
            self.sections[name] = class_(self._parser[name])
        return class_

    def read_file(self, filename):
        """
        Reads configuration from the specified ini file

        :param filename: Filename to read
        """
        with open(filename, encoding='utf-8') as f:
            self._parser.read_file(f)

    def read_data(self, data):
        """
        Reads configuration from the specified dict or str

        :param data: String (with INI file syntax) or dict consisting of data to read
        """
        if isinstance(data, str):
            self._parser.read_string(data)
        elif isinstance(data, dict):
            self._parser.read_dict(data)

    def __getattr__(self, item):
        try:
            return self.__dict__['sections'][item]
        except KeyError:
            raise AttributeError(item)

    def __getitem__(self, item):
        return self.sections[item]
