"""Tests for ircbutt.substitution -- command substitution and fact templating."""
import pytest

from ircbutt.response import Intention, Response
from ircbutt.substitution import Expander, apply_args, render_fact


def _dispatcher(outputs):
    """Fake dispatch: answers each sub-command from `outputs`, recording what was asked."""
    calls = []

    def dispatch(line):
        calls.append(line)
        value = outputs.get(line)
        if value is None:
            return Response.no_reply()
        return Response.chat(value)
    dispatch.calls = calls
    return dispatch


# ---------------------------------------------------------------------------
# Expander
# ---------------------------------------------------------------------------

class TestExpander:
    def test_user_variable(self):
        assert Expander().expand("hello $USER", 'bob', _dispatcher({})) == "hello bob"

    def test_every_user_variable_is_replaced(self):
        assert Expander().expand("$USER and $USER", 'bob', _dispatcher({})) == "bob and bob"

    def test_plain_text_is_untouched(self):
        dispatch = _dispatcher({})
        assert Expander().expand("nothing to see", 'bob', dispatch) == "nothing to see"
        assert dispatch.calls == []

    def test_subcommand_is_replaced_by_its_output(self):
        dispatch = _dispatcher({'echo hi': 'hi'})
        assert Expander().expand("$(echo hi) there", 'bob', dispatch) == "hi there"
        assert dispatch.calls == ['echo hi']

    def test_no_reply_expands_to_nothing(self):
        assert Expander().expand("[$(nope)]", 'bob', _dispatcher({})) == "[]"

    def test_several_subcommands_left_to_right(self):
        dispatch = _dispatcher({'a': '1', 'b': '2'})
        assert Expander().expand("$(a) $(b)", 'bob', dispatch) == "1 2"
        assert dispatch.calls == ['a', 'b']

    def test_output_is_scanned_again(self):
        dispatch = _dispatcher({'outer': '$(inner)', 'inner': 'done'})
        assert Expander().expand("$(outer)", 'bob', dispatch) == "done"

    def test_nested_subcommands_unwind_from_the_inside(self):
        calls = []

        def echo(line):
            calls.append(line)
            return Response.chat(line[len('echo '):])

        assert Expander().expand("$(echo $(echo $(echo x)))", 'bob', echo) == "x"
        assert calls == ['echo $(echo $(echo x', 'echo $(echo x', 'echo x']

    def test_first_close_paren_ends_the_match(self):
        dispatch = _dispatcher({'a(b': 'X'})
        assert Expander().expand("$(a(b)c)", 'bob', dispatch) == "Xc)"

    def test_user_variable_is_replaced_after_substitution(self):
        dispatch = _dispatcher({'who': '$USER'})
        assert Expander().expand("it was $(who)", 'bob', dispatch) == "it was bob"

    def test_self_referential_output_terminates(self):
        dispatch = _dispatcher({'loop': '$(loop)'})
        expander = Expander(max_iterations=5)
        assert expander.expand("say $(loop)", 'bob', dispatch) == "say $(loop)"
        assert len(dispatch.calls) == 5

    def test_depth_limit_leaves_input_alone(self):
        dispatch = _dispatcher({'a': 'b'})
        assert Expander(max_depth=2).expand("$(a) $USER", 'bob', dispatch, depth=2) == "$(a) $USER"
        assert dispatch.calls == []

    def test_length_limit_leaves_input_alone(self):
        dispatch = _dispatcher({'big': 'x' * 50})
        assert Expander(max_length=20).expand("$(big)", 'bob', dispatch) == "$(big)"

    def test_deadline_leaves_input_alone(self):
        expander = Expander()
        expander._clock = lambda: 100.0
        dispatch = _dispatcher({'a': 'b'})
        assert expander.expand("$(a)", 'bob', dispatch, deadline=99.0) == "$(a)"
        assert dispatch.calls == []

    def test_deadline_from_budget(self):
        expander = Expander()
        expander._clock = lambda: 10.0
        assert expander.deadline(3.0) == 13.0
        assert expander.deadline(0) is None

    def test_negative_depth_rejected(self):
        with pytest.raises(ValueError):
            Expander(max_depth=-1)


# ---------------------------------------------------------------------------
# Positional arguments
# ---------------------------------------------------------------------------

class TestApplyArgs:
    def test_fills_placeholders(self):
        assert apply_args("welcome $1 to $2", "alice #butts") == "welcome alice to #butts"

    def test_every_occurrence(self):
        assert apply_args("$1 $1 $1", "ho") == "ho ho ho"

    def test_missing_arguments_stay_literal(self):
        assert apply_args("$1 and $2", "one") == "one and $2"

    def test_no_arguments(self):
        assert apply_args("$1", "") == "$1"

    def test_ten_does_not_collide_with_one(self):
        args = " ".join("a{}".format(i) for i in range(1, 11))
        assert apply_args("$10 $1", args) == "a10 a1"

    def test_eleven_stays_literal(self):
        args = " ".join("a{}".format(i) for i in range(1, 12))
        assert apply_args("$11", args) == "$11"

    def test_longer_placeholders_are_never_split(self):
        assert apply_args("$12 $10", "a") == "$12 $10"

    def test_arguments_are_not_rescanned(self):
        assert apply_args("$1 $2", "$2 x") == "$2 x"


# ---------------------------------------------------------------------------
# render_fact
# ---------------------------------------------------------------------------

class TestRenderFact:
    def test_plain_fact_is_chat(self):
        assert render_fact("is hot", "", "bob") == Response.chat("is hot")

    def test_arguments_and_user(self):
        response = render_fact("hello $1, from $USER", "alice", "bob")
        assert response.message == "hello alice, from bob"

    def test_me_prefix_is_action(self):
        response = render_fact("$ME waves at $USER", "", "bob")
        assert response.intention is Intention.ACTION
        assert response.message == "waves at bob"

    def test_me_elsewhere_is_not_action(self):
        response = render_fact("say $ME", "", "bob")
        assert response.intention is Intention.CHAT
        assert response.message == "say $ME"
