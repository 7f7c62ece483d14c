"""
Fact, quote, karma and score storage.

Two backends share one interface: :class:`MemoryStorage` (handy for tests and throwaway bots) and
:class:`SqliteStorage`.  Nothing here raises on "not found" or on a database failure; failures are logged and come back
as None, False, an empty list or 0.
"""
import collections
import datetime
import logging
import random
import sqlite3
import threading

__all__ = ['Storage', 'MemoryStorage', 'SqliteStorage', 'Quote', 'format_fact']

logger = logging.getLogger(__name__)

#: A grabbed line of chat.  `nick` said `text`; `grabbed_by` saved it.
Quote = collections.namedtuple('Quote', 'id nick text grabbed_by timestamp')


def format_fact(id_, key, value):
    return "({}) {}: {}".format(id_, key, value)


def format_info(id_, key, author, timestamp):
    return "({}) {}: added by {} on {}".format(id_, key, author, timestamp)


class Storage:
    """
    Storage interface.

    Fact keys are unique.  Every method is safe to call from multiple threads.
    """
    def lookup(self, key):
        """Returns the text of fact `key`, or None."""
        raise NotImplementedError

    def store(self, key, value, author):
        """Adds a new fact.  Returns False if `key` already exists."""
        raise NotImplementedError

    def append(self, key, extra):
        """Appends `extra` (after a space) to an existing fact.  Returns False if there is no such fact."""
        raise NotImplementedError

    def delete(self, key):
        """Removes a fact.  Returns True if something was actually removed."""
        raise NotImplementedError

    def random_entry(self):
        """Returns a random (key, value) pair, or None if there are no facts."""
        raise NotImplementedError

    def search(self, substring):
        """Returns formatted ``(id) key: value`` strings for facts whose text contains `substring`, oldest first."""
        raise NotImplementedError

    def info(self, key):
        """Returns a one-line description of who added fact `key` and when, or None."""
        raise NotImplementedError

    def award_point(self, nick):
        """Gives `nick` a point.  Returns their new total."""
        raise NotImplementedError

    def points(self, nick):
        """Returns how many points `nick` has."""
        raise NotImplementedError

    def add_quote(self, nick, text, grabbed_by):
        """Saves something `nick` said.  Returns the new quote's id, or None on failure."""
        raise NotImplementedError

    def quote(self, id_):
        """Returns :class:`Quote` number `id_`, or None."""
        raise NotImplementedError

    def random_quote(self, nick=None):
        """Returns a random :class:`Quote`, optionally only from `nick`.  None if there are none."""
        raise NotImplementedError

    def search_quotes(self, substring):
        """Returns every :class:`Quote` whose text contains `substring`, oldest first."""
        raise NotImplementedError

    def karma(self, item):
        """Returns the karma of `item`."""
        raise NotImplementedError

    def adjust_karma(self, item, delta):
        """Adds `delta` to the karma of `item`.  Returns the new total."""
        raise NotImplementedError

    def close(self):
        pass


class MemoryStorage(Storage):
    """Keeps everything in dictionaries.  Gone when the process exits."""
    _now = datetime.datetime.now

    def __init__(self, facts=None):
        """
        :param facts: Optional mapping of key -> value to start with.
        """
        self._lock = threading.Lock()
        self._facts = {}  # key -> [id, value, author, timestamp]
        self._scores = {}
        self._quotes = []
        self._karma = {}
        self._next_id = 1
        for key, value in (facts or {}).items():
            self.store(key, value, 'nobody')

    def lookup(self, key):
        with self._lock:
            row = self._facts.get(key)
            return row[1] if row else None

    def store(self, key, value, author):
        with self._lock:
            if key in self._facts:
                return False
            self._facts[key] = [self._next_id, value, author, self._now().strftime('%Y-%m-%d %H:%M:%S')]
            self._next_id += 1
            return True

    def append(self, key, extra):
        with self._lock:
            row = self._facts.get(key)
            if row is None:
                return False
            row[1] = row[1] + " " + extra
            return True

    def delete(self, key):
        with self._lock:
            return self._facts.pop(key, None) is not None

    def random_entry(self):
        with self._lock:
            if not self._facts:
                return None
            key = random.choice(list(self._facts))
            return key, self._facts[key][1]

    def search(self, substring):
        with self._lock:
            rows = sorted((row[0], key, row[1]) for key, row in self._facts.items() if substring in row[1])
        return [format_fact(*row) for row in rows]

    def info(self, key):
        with self._lock:
            row = self._facts.get(key)
            if row is None:
                return None
            return format_info(row[0], key, row[2], row[3])

    def award_point(self, nick):
        with self._lock:
            self._scores[nick] = self._scores.get(nick, 0) + 1
            return self._scores[nick]

    def points(self, nick):
        with self._lock:
            return self._scores.get(nick, 0)

    def add_quote(self, nick, text, grabbed_by):
        with self._lock:
            quote = Quote(
                len(self._quotes) + 1, nick, text, grabbed_by, self._now().strftime('%Y-%m-%d %H:%M:%S')
            )
            self._quotes.append(quote)
            return quote.id

    def quote(self, id_):
        with self._lock:
            if 1 <= id_ <= len(self._quotes):
                return self._quotes[id_ - 1]
            return None

    def random_quote(self, nick=None):
        with self._lock:
            quotes = [quote for quote in self._quotes if nick is None or quote.nick == nick]
            return random.choice(quotes) if quotes else None

    def search_quotes(self, substring):
        with self._lock:
            return [quote for quote in self._quotes if substring in quote.text]

    def karma(self, item):
        with self._lock:
            return self._karma.get(item, 0)

    def adjust_karma(self, item, delta):
        with self._lock:
            self._karma[item] = self._karma.get(item, 0) + delta
            return self._karma[item]


class SqliteStorage(Storage):
    """
    Keeps everything in a SQLite database.
    """
    SCHEMA = (
        """
        CREATE TABLE IF NOT EXISTS knowledge (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            item TEXT NOT NULL UNIQUE,
            data TEXT NOT NULL,
            added_by TEXT NOT NULL,
            timestamp TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
        )
        """,
        """
        CREATE TABLE IF NOT EXISTS scores (
            nick TEXT PRIMARY KEY,
            points INTEGER NOT NULL DEFAULT 0
        )
        """,
        """
        CREATE TABLE IF NOT EXISTS quotes (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            user TEXT NOT NULL,
            quote TEXT NOT NULL,
            grabbed_by TEXT NOT NULL,
            timestamp TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
        )
        """,
        """
        CREATE TABLE IF NOT EXISTS karma (
            item TEXT PRIMARY KEY,
            karma INTEGER NOT NULL DEFAULT 0
        )
        """,
    )
    QUOTE_COLUMNS = "id, user, quote, grabbed_by, timestamp"

    def __init__(self, filename):
        """
        :param filename: Database filename, or ':memory:'
        """
        self.filename = filename
        self._lock = threading.Lock()
        self.conn = sqlite3.connect(filename, check_same_thread=False)
        self.conn.row_factory = sqlite3.Row
        with self.conn:
            for statement in self.SCHEMA:
                self.conn.execute(statement)
        logger.info("Opened fact database {!r}".format(filename))

    def _query(self, sql, params=(), default=None, fetch='one'):
        """
        Runs a statement, logging rather than raising on failure.

        :param fetch: 'one', 'all' or 'rowcount'.
        """
        with self._lock:
            try:
                with self.conn:
                    cursor = self.conn.execute(sql, params)
                    if fetch == 'rowcount':
                        return cursor.rowcount
                    if fetch == 'all':
                        return cursor.fetchall()
                    row = cursor.fetchone()
                    return default if row is None else row
            except sqlite3.Error:
                logger.exception("Database error running {!r}".format(sql))
                return default

    def lookup(self, key):
        row = self._query("SELECT data FROM knowledge WHERE item = ?", (key,))
        return row['data'] if row else None

    def store(self, key, value, author):
        with self._lock:
            try:
                with self.conn:
                    self.conn.execute(
                        "INSERT INTO knowledge (item, data, added_by) VALUES (?, ?, ?)", (key, value, author)
                    )
                return True
            except sqlite3.IntegrityError:
                return False
            except sqlite3.Error:
                logger.exception("Unable to insert fact {!r}".format(key))
                return False

    def append(self, key, extra):
        rows = self._query(
            "UPDATE knowledge SET data = data || ' ' || ? WHERE item = ?", (extra, key), default=0, fetch='rowcount'
        )
        return rows > 0

    def delete(self, key):
        rows = self._query("DELETE FROM knowledge WHERE item = ?", (key,), default=0, fetch='rowcount')
        return rows > 0

    def random_entry(self):
        row = self._query("SELECT item, data FROM knowledge ORDER BY RANDOM() LIMIT 1")
        return (row['item'], row['data']) if row else None

    def search(self, substring):
        rows = self._query(
            "SELECT id, item, data FROM knowledge WHERE instr(data, ?) > 0 ORDER BY id", (substring,),
            default=[], fetch='all'
        )
        return [format_fact(row['id'], row['item'], row['data']) for row in rows]

    def info(self, key):
        row = self._query("SELECT id, added_by, timestamp FROM knowledge WHERE item = ?", (key,))
        if not row:
            return None
        return format_info(row['id'], key, row['added_by'], row['timestamp'])

    def _update_and_fetch(self, update, select, update_params, select_params):
        """
        Runs an update and reads back a single value in the same transaction, without letting go of the lock in between.

        :returns: The first column of the selected row, or 0 if there is no row or the database fails.
        """
        with self._lock:
            try:
                with self.conn:
                    self.conn.execute(update, update_params)
                    row = self.conn.execute(select, select_params).fetchone()
                    return row[0] if row else 0
            except sqlite3.Error:
                logger.exception("Database error running {!r}".format(update))
                return 0

    def award_point(self, nick):
        return self._update_and_fetch(
            "INSERT INTO scores (nick, points) VALUES (?, 1) ON CONFLICT(nick) DO UPDATE SET points = points + 1",
            "SELECT points FROM scores WHERE nick = ?", (nick,), (nick,)
        )

    def points(self, nick):
        row = self._query("SELECT points FROM scores WHERE nick = ?", (nick,))
        return row['points'] if row else 0

    @staticmethod
    def _make_quote(row):
        return Quote(row['id'], row['user'], row['quote'], row['grabbed_by'], row['timestamp'])

    def add_quote(self, nick, text, grabbed_by):
        with self._lock:
            try:
                with self.conn:
                    cursor = self.conn.execute(
                        "INSERT INTO quotes (user, quote, grabbed_by) VALUES (?, ?, ?)", (nick, text, grabbed_by)
                    )
                return cursor.lastrowid
            except sqlite3.Error:
                logger.exception("Unable to save quote from {!r}".format(nick))
                return None

    def quote(self, id_):
        row = self._query("SELECT {} FROM quotes WHERE id = ?".format(self.QUOTE_COLUMNS), (id_,))
        return self._make_quote(row) if row else None

    def random_quote(self, nick=None):
        if nick is None:
            row = self._query("SELECT {} FROM quotes ORDER BY RANDOM() LIMIT 1".format(self.QUOTE_COLUMNS))
        else:
            row = self._query(
                "SELECT {} FROM quotes WHERE user = ? ORDER BY RANDOM() LIMIT 1".format(self.QUOTE_COLUMNS), (nick,)
            )
        return self._make_quote(row) if row else None

    def search_quotes(self, substring):
        rows = self._query(
            "SELECT {} FROM quotes WHERE instr(quote, ?) > 0 ORDER BY id".format(self.QUOTE_COLUMNS), (substring,),
            default=[], fetch='all'
        )
        return [self._make_quote(row) for row in rows]

    def karma(self, item):
        row = self._query("SELECT karma FROM karma WHERE item = ?", (item,))
        return row['karma'] if row else 0

    def adjust_karma(self, item, delta):
        return self._update_and_fetch(
            "INSERT INTO karma (item, karma) VALUES (?, ?) ON CONFLICT(item) DO UPDATE SET karma = karma + ?",
            "SELECT karma FROM karma WHERE item = ?", (item, delta, delta), (item,)
        )

    def close(self):
        with self._lock:
            self.conn.close()
