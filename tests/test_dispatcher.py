"""End-to-end tests for ircbutt.dispatcher.Dispatcher with the standard commands."""
import pytest

from ircbutt import Config
from ircbutt.capabilities import build_dispatcher, build_registry
from ircbutt.commands import Invoker, Message, Registry, command
from ircbutt.dispatcher import Dispatcher
from ircbutt.response import Intention, Response
from ircbutt.state import StateManager
from ircbutt.storage import MemoryStorage

from conftest import CHANNEL


# ---------------------------------------------------------------------------
# Routing
# ---------------------------------------------------------------------------

class TestRouting:
    def test_wants(self, dispatcher):
        assert dispatcher.wants("!echo hi")
        assert dispatcher.wants("~coffee")
        assert dispatcher.wants("s/foo/bar/")
        assert not dispatcher.wants("just chatting")
        assert not dispatcher.wants("   ")

    def test_command(self, say):
        assert say("!echo hello there") == Response.chat("hello there")

    def test_alias_behaves_like_name(self, say):
        assert say("!say hello") == say("!echo hello")

    def test_unknown_command_without_fact(self, say):
        assert say("!nosuchthing") == Response.no_reply()

    def test_unknown_command_falls_back_to_fact(self, say):
        assert say("!coffee") == Response.chat("is hot and bitter")

    def test_lone_sentinel(self, say):
        assert say("!") == Response.no_reply()
        assert say("! echo hi") == Response.no_reply()

    def test_usage_error_is_highlighted(self, say):
        response = say("!learn")
        assert response.intention is Intention.HIGHLIGHT
        assert response.recipient == 'bob'
        assert response.message == "Usage: !learn <key>: <value>"

    def test_private_message(self, dispatcher, bob):
        response = dispatcher.handle(Message("!echo psst", bob))
        assert response == Response.chat("psst")

    def test_failing_command_is_silent(self, config):
        @command('boom')
        def boom(event):
            raise RuntimeError("kaboom")

        dispatcher = Dispatcher(Registry([boom]), MemoryStorage(), config)
        response = dispatcher.handle(Message("!boom", Invoker('bob')))
        assert response == Response.no_reply()

    def test_bad_return_value_is_silent(self, config):
        @command('odd')
        def odd(event):
            return 42

        dispatcher = Dispatcher(Registry([odd]), MemoryStorage(), config)
        assert dispatcher.handle(Message("!odd", Invoker('bob'))) == Response.no_reply()

    def test_other_prefix(self, storage):
        config = Config(data={'main': {'prefix': '.'}})
        dispatcher = build_dispatcher(config, storage=storage)
        assert dispatcher.handle(Message(".echo hi", Invoker('bob'))) == Response.chat("hi")
        assert not dispatcher.wants("!echo hi")

    def test_shared_state_manager(self, config, storage, bob):
        shared = StateManager()
        dispatcher = Dispatcher(build_registry(), storage, config, states=shared)
        assert dispatcher.states is shared
        shared.get(CHANNEL).more.replace(['queued'])
        assert dispatcher.handle(Message("!more", bob, CHANNEL)) == Response.chat('queued')


# ---------------------------------------------------------------------------
# Substitution
# ---------------------------------------------------------------------------

class TestSubstitution:
    def test_user_variable(self, say):
        assert say("!echo hi $USER").message == "hi bob"

    def test_subcommand(self, say):
        assert say("!echo $(rot13 uryyb) world").message == "hello world"

    def test_nested_fact(self, say):
        assert say("!echo coffee $(~coffee)").message == "coffee is hot and bitter"

    def test_unknown_subcommand_is_empty(self, say):
        assert say("!echo [$(nosuchthing)]").message == "[]"

    def test_nested_subcommands_unwind(self, say):
        assert say("!echo $(echo $(echo $(echo x)))").message == "x"

    def test_self_referential_macro_terminates(self, config, storage):
        @command('loop')
        def loop(event):
            return event.say("$(loop)")

        @command('echo')
        def echo(event):
            return event.say(event.text)

        dispatcher = Dispatcher(Registry([loop, echo]), storage, config)
        response = dispatcher.handle(Message("!echo $(loop)", Invoker('bob')))
        assert response == Response.chat("$(loop)")

    def test_fact_commands_store_text_verbatim(self, say, storage):
        assert say("!learn shout: $(echo hi) $USER").message == "ok got it!"
        assert storage.lookup('shout') == "$(echo hi) $USER"


# ---------------------------------------------------------------------------
# Facts
# ---------------------------------------------------------------------------

class TestFacts:
    def test_lookup_with_arguments(self, say):
        assert say("~greet alice").message == "hello alice, from bob"

    def test_lookup_action(self, say):
        assert say("~wave") == Response.action("waves at bob")

    def test_missing_fact(self, say):
        assert say("~nope") == Response.no_reply()

    def test_learn(self, say, storage):
        assert say("!learn tea: is fine too") == Response.highlight('bob', "ok got it!")
        assert storage.lookup('tea') == "is fine too"
        assert say("~tea").message == "is fine too"

    def test_learn_without_colon(self, say, storage):
        say("!learn tea is fine")
        assert storage.lookup('tea') == "is fine"

    def test_learn_existing(self, say):
        assert say("!learn coffee: is bad").message == "buttbot already know about coffee"

    def test_learn_requires_identification(self, say, eve, storage):
        assert say("!learn tea: is fine", invoker=eve) == Response.no_reply()
        assert storage.lookup('tea') is None

    def test_learn_without_verification(self, storage, eve):
        config = Config(data={'facts': {'no_verify': 'yes'}})
        dispatcher = build_dispatcher(config, storage=storage)
        dispatcher.handle(Message("!learn tea: is fine", eve, CHANNEL))
        assert storage.lookup('tea') == "is fine"

    def test_learn_too_long(self, say, storage):
        response = say("!learn long: " + "x" * 501)
        assert response.message == "fact longer than 500 characters"
        assert storage.lookup('long') is None

    def test_append(self, say, storage):
        assert say("!append coffee: and strong").message == "ok got it!"
        assert storage.lookup('coffee') == "is hot and bitter and strong"

    def test_append_missing(self, say):
        assert say("!append tea: and sweet").message == "buttbot don't know nothin bout tea"

    def test_forget_is_silent_for_non_operators(self, say, storage):
        assert say("!forget coffee") == Response.no_reply()
        assert storage.lookup('coffee') is not None

    def test_forget(self, say, op, storage):
        assert say("!forget coffee", invoker=op).message == "ok buttbot wont member that no more"
        assert storage.lookup('coffee') is None
        assert say("!forget coffee", invoker=op).message == "buttbot don't know nothin bout coffee"

    def test_random_fact(self, say):
        assert say("!fact").message in ("is hot and bitter", "hello $1, from $USER", "$ME waves at $USER")

    def test_random_fact_when_empty(self, config, bob):
        dispatcher = build_dispatcher(config, storage=MemoryStorage())
        assert dispatcher.handle(Message("!fact", bob)).message == "buttbot dont know any facts yet!"

    def test_factinfo(self, say):
        assert say("!fi coffee").message.startswith("(1) coffee: added by nobody on ")
        assert say("!fi tea").message == "buttbot find nothing"


# ---------------------------------------------------------------------------
# Searching and !more
# ---------------------------------------------------------------------------

class TestMore:
    @pytest.fixture
    def storage(self):
        return MemoryStorage({'a': 'x one', 'b': 'x two', 'c': 'x three', 'd': 'nothing'})

    def test_search_then_more(self, say):
        assert say("!ff x").message == "(1) a: x one"
        assert say("!more").message == "(2) b: x two"
        assert say("!more").message == "(3) c: x three"
        assert say("!more") == Response.no_reply()

    def test_new_search_replaces_old_results(self, say):
        say("!ff x")
        say("!factsearch nothing")
        assert say("!more") == Response.no_reply()

    def test_no_results(self, say):
        assert say("!fsearch zzz").message == "buttbot find nothing"

    def test_more_is_per_channel(self, say):
        say("!ff x")
        assert say("!more", channel='#other') == Response.no_reply()
        assert say("!more").message == "(2) b: x two"


# ---------------------------------------------------------------------------
# Games
# ---------------------------------------------------------------------------

class TestGames:
    def test_guessing_game(self, say, dispatcher, storage):
        response = say("!guessgame")
        assert response.message.startswith("guess the fact! ")
        game = dispatcher.states.get(CHANNEL).game
        answer = game.current()[1]
        assert storage.lookup(answer) is not None
        assert say("!guessgame").message == "a game is already going!"

        win = say("~" + answer)
        assert win.intention is Intention.HIGHLIGHT
        assert win.message == "you got it! the answer was ~{}.  you now have 1 point".format(answer)
        assert not game.active
        assert storage.points('bob') == 1

    def test_wrong_guess_is_a_fact_lookup(self, say, dispatcher):
        dispatcher.states.get(CHANNEL).game.start_guessing('greet')
        assert say("~coffee").message == "is hot and bitter"
        assert dispatcher.states.get(CHANNEL).game.active

    def test_search_blocked_while_guessing(self, say, dispatcher):
        dispatcher.states.get(CHANNEL).game.start_guessing('coffee')
        for line in ("!ff hot", "!fs hot", "!factfind hot", "!factsearch hot", "!fsearch hot", "!ffind hot"):
            response = say(line)
            assert response.intention is Intention.HIGHLIGHT
            assert response.message == "no searching for facts while a guessing game is on!"

    def test_search_allowed_after_game(self, say, dispatcher):
        game = dispatcher.states.get(CHANNEL).game
        game.start_guessing('coffee')
        game.end()
        assert say("!ff hot").message == "(1) coffee: is hot and bitter"

    def test_regex_game(self, say, dispatcher):
        game = dispatcher.states.get(CHANNEL).game
        game.start_regex('cat', 'dog')
        assert say("!.*") == Response.no_reply()
        assert game.active
        assert say("!c.t") == Response.highlight('bob', "nice! /c.t/ matches cat but not dog")
        assert not game.active

    def test_losing_regex_does_not_block_commands(self, say, dispatcher):
        dispatcher.states.get(CHANNEL).game.start_regex('cat', 'dog')
        assert say("!echo hi").message == "hi"

    def test_invalid_regex_is_ignored(self, say, dispatcher):
        dispatcher.states.get(CHANNEL).game.start_regex('cat', 'dog')
        assert say("!(unclosed") == Response.no_reply()

    def test_regexgame_and_endgame(self, say, dispatcher):
        response = say("!rg")
        assert response.message.startswith("regex game! match ")
        _, _, should_match, should_not_match = dispatcher.states.get(CHANNEL).game.current()
        assert should_match != should_not_match
        assert say("!endgame").message == "game over! nobody matched {} but not {}".format(
            should_match, should_not_match
        )
        assert say("!endgame") == Response.no_reply()

    def test_score(self, say, storage):
        assert say("!score").message == "bob has 0 points"
        storage.award_point('alice')
        assert say("!points alice").message == "alice has 1 point"


# ---------------------------------------------------------------------------
# s/// and the rest of the core commands
# ---------------------------------------------------------------------------

class TestSed:
    def test_correction(self, say, dispatcher, bob):
        dispatcher.record(Message("i like cats", bob, CHANNEL))
        assert say("s/cats/dogs/") == Response.chat("bob meant to say: i like dogs")

    def test_flags(self, say, dispatcher, bob):
        dispatcher.record(Message("Cat cat CAT", bob, CHANNEL))
        assert say("s/cat/dog/gi").message == "bob meant to say: dog dog dog"

    def test_only_first_without_g(self, say, dispatcher, bob):
        dispatcher.record(Message("a a a", bob, CHANNEL))
        assert say("s/a/b/").message == "bob meant to say: b a a"

    def test_nothing_to_correct(self, say):
        assert say("s/cats/dogs/") == Response.no_reply()

    def test_no_match(self, say, dispatcher, bob):
        dispatcher.record(Message("i like cats", bob, CHANNEL))
        assert say("s/birds/dogs/") == Response.no_reply()

    def test_bad_regex(self, say, dispatcher, bob):
        dispatcher.record(Message("i like cats", bob, CHANNEL))
        assert say("s/(/dogs/") == Response.no_reply()

    def test_only_own_lines(self, say, dispatcher, eve):
        dispatcher.record(Message("i like cats", eve, CHANNEL))
        assert say("s/cats/dogs/") == Response.no_reply()


class TestCore:
    def test_help_lists_commands(self, say):
        response = say("!help")
        assert response.intention is Intention.HIGHLIGHT
        assert "[FACTS]: " in response.message
        assert "learn" in response.message

    def test_help_for_one_command(self, say):
        message = say("!help ff").message
        assert "Usage: !factfind <text>" in message
        assert "!ff" in message

    def test_help_unknown(self, say):
        assert say("!help nope").message.startswith("Unknown command !nope.")

    def test_version(self, say):
        assert say("!version").message

    def test_give(self, say):
        assert say("!give alice ~coffee") == Response.highlight('alice', "is hot and bitter")
        assert say("!give alice echo $USER") == Response.highlight('alice', "bob")

    def test_give_nothing(self, say):
        assert say("!give alice ~nope") == Response.no_reply()

    def test_rot13(self, say):
        assert say("!rot uryyb").message == "hello"

    def test_dice(self, say):
        message = say("!dice 3d6").message
        assert message.startswith("rolled ")
        total = int(message.rsplit("= ", 1)[1])
        assert 3 <= total <= 18

    def test_dice_usage(self, say):
        assert say("!dice lots").message == "Usage: !dice [NdM]"
        assert say("!dice 1000d6").message == "can only roll 1 to 100 dice"

    def test_coin(self, say):
        assert say("!coin").intention is Intention.ACTION


# ---------------------------------------------------------------------------
# Quote grabs
# ---------------------------------------------------------------------------

class TestQuotes:
    @pytest.fixture
    def grab(self, say, dispatcher):
        """Makes `nick` say `text` in CHANNEL, then grabs it."""
        def _grab(nick, text):
            dispatcher.record(Message(text, Invoker(nick), CHANNEL))
            return say("!grab " + nick)
        return _grab

    def test_grab(self, grab, storage):
        assert grab('eve', "i like cats") == Response.highlight('bob', "grabbed quote #1")
        quote = storage.quote(1)
        assert (quote.nick, quote.text, quote.grabbed_by) == ('eve', "i like cats", 'bob')

    def test_grab_needs_something_said(self, say):
        assert say("!grab carol").message == "buttbot dont remember carol saying anything"

    def test_grab_only_sees_this_channel(self, say, dispatcher):
        dispatcher.record(Message("hi", Invoker('eve'), '#other'))
        assert say("!grab eve").message == "buttbot dont remember eve saying anything"

    def test_cant_grab_yourself(self, grab):
        assert grab('bob', "i am great").message == "you cant grab yourself"

    def test_quote_by_number(self, grab, say):
        grab('eve', "i like cats")
        assert say("!q 1") == Response.chat("<eve> i like cats")
        assert say("!q #1") == Response.chat("<eve> i like cats")
        assert say("!qsay 1") == Response.chat("i like cats")
        assert say("!q 2").message == "buttbot find nothing"
        assert say("!q one").message == "Usage: !q <number>"

    def test_qinfo(self, grab, say):
        grab('eve', "i like cats")
        assert say("!qi 1").message.startswith("(1) <eve> grabbed by bob on ")

    def test_random_quote(self, grab, say):
        assert say("!rq").message == "buttbot find nothing"
        grab('eve', "i like cats")
        assert say("!rq") == Response.chat("<eve> i like cats")
        assert say("!rq eve") == Response.chat("<eve> i like cats")
        assert say("!rqn") == Response.chat("i like cats")
        assert say("!rq alice").message == "buttbot find nothing"

    def test_search_then_more(self, grab, say):
        grab('eve', "i like cats")
        grab('alice', "dogs are fine")
        grab('eve', "cats are great")
        assert say("!qf cats") == Response.chat("(1) <eve> i like cats")
        assert say("!more") == Response.chat("(3) <eve> cats are great")
        assert say("!more") == Response.no_reply()
        assert say("!qsearch birds").message == "buttbot find nothing"


# ---------------------------------------------------------------------------
# Karma and math
# ---------------------------------------------------------------------------

class TestKarma:
    def test_karma(self, say):
        assert say("!karma coffee") == Response.chat("coffee has karma of 0")
        assert say("!karma coffee ++") == Response.chat("coffee has karma of 1")
        assert say("!karma coffee ++", invoker=Invoker('eve')).message == "coffee has karma of 2"
        assert say("!karma coffee --").message == "coffee has karma of 1"

    def test_no_changing_your_own(self, say, storage):
        assert say("!karma Bob ++") == Response.highlight('bob', "no changing your own karma")
        assert storage.karma('Bob') == 0

    def test_usage(self, say):
        assert say("!karma coffee +").message == "Usage: !karma <thing> [++|--]"


class TestMath:
    def test_sqrt(self, say):
        assert say("!sqrt 16") == Response.chat("4")
        assert say("!sqrt 2").message == "1.4142135623730951"
        assert say("!sqrt -1").message == "cant take the square root of a negative number"

    def test_pow(self, say):
        assert say("!pow 2 10") == Response.chat("1024")
        assert say("!pow 4 0.5").message == "2"
        assert say("!pow 2 -1").message == "0.5"
        assert say("!pow 10 1000").message == "number too big"
        assert say("!pow 0 -1").message == "no real answer to that"

    def test_not_a_number(self, say):
        assert say("!pow x 2").message == "x is not a number"
        assert say("!sqrt nan").message == "nan is not a number"
        assert say("!sqrt").message == "Usage: !sqrt <number>"

    def test_substitution(self, say):
        assert say("!sqrt $(pow 3 2)").message == "3"
