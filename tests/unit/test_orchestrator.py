"""Unit tests for AgentOrchestrator.handle_turn.

Tests cover:
1. First turn: title + routing + commit of the routed agent
2. Turns without transfer: USER + tagged ASSISTANT appended
3. Mid-turn transfer: USER, TRANSFER(old agent), ASSISTANT(new agent)
4. Cascading transfers and the per-turn transfer limit
5. Failures: unresolvable agent, routing failure, backend failure rollback
"""

import pytest
from langchain_core.messages import AIMessage

from handoffAgent.runtime.generator import MemoryChatGenerator
from handoffAgent.utils.error_handler import (
    ModelInvocationError,
    RoutingError,
    UnresolvableAgentError,
)
from shared.session.models import Turn, TurnRole, UNKNOWN_AGENT
from tests.conftest import SESSION
from tests.fakes import Step, ToolCallingFakeChatModel


def roles(turns):
    return [t.role for t in turns]


def seed(conversation_log, directory, agent, turns=()):
    directory.set_active_agent(*SESSION, agent)
    for turn in turns:
        conversation_log.append(SESSION[0], turn)


class TestFirstTurn:
    """Session with activeAgent == "unknown"."""

    def test_routes_and_answers_with_routed_agent(
        self, make_orchestrator, generator, directory, conversation_log, router, summarizer
    ):
        generator.steps = [Step("Great, what size?")]
        orchestrator = make_orchestrator()

        assert directory.get_active_agent(*SESSION) == UNKNOWN_AGENT
        result = orchestrator.handle_turn("I want to buy shoes", *SESSION)

        summarizer.summarize.assert_called_once_with("I want to buy shoes")
        router.route.assert_called_once()
        text, routes = router.route.call_args.args
        assert text == "I want to buy shoes"
        assert routes == {
            "sales": "You sell shoes.",
            "support": "You handle complaints.",
            "billing": "You answer invoice questions.",
        }

        assert directory.get_active_agent(*SESSION) == "sales"
        assert directory.get_session(*SESSION).title == "Buying shoes"

        log = conversation_log.get_all("S1")
        assert log == [
            Turn.user("I want to buy shoes"),
            Turn.assistant("Great, what size?", agent="sales"),
        ]
        assert result == []

    def test_routed_agent_prompt_and_tools_are_used(self, make_orchestrator, generator):
        generator.steps = [Step("ok")]
        make_orchestrator().handle_turn("I want to buy shoes", *SESSION)

        call = generator.calls[0]
        assert call.system_prompt == "You sell shoes."
        assert call.tool_names == ["transfer_agent"]
        assert call.user_content == "I want to buy shoes"

    def test_second_turn_does_not_route_or_retitle(self, make_orchestrator, generator, router, summarizer):
        generator.steps = [Step("first"), Step("second")]
        orchestrator = make_orchestrator()

        orchestrator.handle_turn("I want to buy shoes", *SESSION)
        orchestrator.handle_turn("Size 42 please", *SESSION)

        assert router.route.call_count == 1
        assert summarizer.summarize.call_count == 1

    def test_routing_failure_is_fatal_and_leaves_agent_unknown(
        self, make_orchestrator, generator, router, directory, conversation_log
    ):
        router.route.side_effect = RoutingError("no match", answer="marketing")
        generator.steps = [Step("never")]

        with pytest.raises(RoutingError):
            make_orchestrator().handle_turn("hello", *SESSION)

        assert directory.get_active_agent(*SESSION) == UNKNOWN_AGENT
        assert directory.get_session(*SESSION).title == ""
        assert conversation_log.get_all("S1") == []
        assert generator.calls == []

    def test_routed_name_missing_from_registry_is_unresolvable(
        self, make_orchestrator, router, directory
    ):
        router.route.return_value = "marketing"

        with pytest.raises(UnresolvableAgentError):
            make_orchestrator().handle_turn("hello", *SESSION)

        assert directory.get_active_agent(*SESSION) == UNKNOWN_AGENT


class TestTurnWithoutTransfer:

    def test_appends_user_and_tagged_assistant(self, make_orchestrator, generator, directory, conversation_log):
        history = [Turn.user("hi"), Turn.assistant("hello", agent="sales")]
        seed(conversation_log, directory, "sales", history)
        generator.steps = [Step("We have running shoes.")]

        result = make_orchestrator().handle_turn("What do you have?", *SESSION)

        log = conversation_log.get_all("S1")
        assert log[:2] == history
        assert log[2:] == [
            Turn.user("What do you have?"),
            Turn.assistant("We have running shoes.", agent="sales"),
        ]
        assert result == []
        assert directory.get_active_agent(*SESSION) == "sales"

    def test_retagging_same_agent_keeps_log(self, make_orchestrator, generator, directory, conversation_log):
        seed(conversation_log, directory, "support")
        generator.steps = [Step("first"), Step("second")]
        orchestrator = make_orchestrator()

        orchestrator.handle_turn("hi", *SESSION)
        orchestrator.handle_turn("again", *SESSION)

        log = conversation_log.get_all("S1")
        assert [t.agent for t in log] == [None, "support", None, "support"]
        assert not any(t.is_transfer for t in log)


class TestTransfer:

    def test_single_transfer_orders_user_transfer_response(
        self, make_orchestrator, generator, directory, conversation_log
    ):
        seed(conversation_log, directory, "sales")
        generator.steps = [
            Step("Let me hand you to support.", transfer_to="support"),
            Step("Sorry to hear that. What happened?"),
        ]

        result = make_orchestrator().handle_turn("I have a complaint", *SESSION)

        log = conversation_log.get_all("S1")
        assert roles(log) == [TurnRole.USER, TurnRole.ASSISTANT, TurnRole.ASSISTANT]
        assert log[0] == Turn.user("I have a complaint")
        assert log[1].content == "Let me hand you to support."
        assert log[1].agent == "sales"
        assert log[1].is_transfer
        assert log[1].metadata["transfer_to"] == "support"
        assert log[2] == Turn.assistant("Sorry to hear that. What happened?", agent="support")
        assert result == []
        assert directory.get_active_agent(*SESSION) == "support"

    def test_transfer_keeps_earlier_history_intact(self, make_orchestrator, generator, directory, conversation_log):
        history = [
            Turn.user("I want to buy shoes"),
            Turn.assistant("Great, what size?", agent="sales"),
        ]
        seed(conversation_log, directory, "sales", history)
        generator.steps = [Step("Transferring.", transfer_to="support"), Step("How can I help?")]

        make_orchestrator().handle_turn("I have a complaint", *SESSION)

        log = conversation_log.get_all("S1")
        assert log[:2] == history
        assert [t.content for t in log[2:]] == ["I have a complaint", "Transferring.", "How can I help?"]
        assert [t.agent for t in log[2:]] == [None, "sales", "support"]

    def test_new_agent_runs_with_same_input_and_its_own_prompt(
        self, make_orchestrator, generator, directory, conversation_log
    ):
        seed(conversation_log, directory, "sales")
        generator.steps = [Step("moving", transfer_to="support"), Step("done")]

        make_orchestrator().handle_turn("I have a complaint", *SESSION)

        assert [c.system_prompt for c in generator.calls] == ["You sell shoes.", "You handle complaints."]
        assert [c.user_content for c in generator.calls] == ["I have a complaint"] * 2

    def test_cascading_transfers_put_user_first(self, make_orchestrator, generator, directory, conversation_log):
        seed(conversation_log, directory, "sales")
        generator.steps = [
            Step("to support", transfer_to="support"),
            Step("to billing", transfer_to="billing"),
            Step("Your invoice is attached."),
        ]

        make_orchestrator().handle_turn("Why was I charged twice?", *SESSION)

        log = conversation_log.get_all("S1")
        assert [t.content for t in log] == [
            "Why was I charged twice?",
            "to support",
            "to billing",
            "Your invoice is attached.",
        ]
        assert [t.agent for t in log] == [None, "sales", "support", "billing"]
        assert [t.is_transfer for t in log] == [False, True, True, False]
        assert directory.get_active_agent(*SESSION) == "billing"

    def test_transfer_limit_stops_cascade(self, make_orchestrator, generator, directory, conversation_log):
        seed(conversation_log, directory, "sales")
        generator.steps = [
            Step("to support", transfer_to="support"),
            Step("to billing", transfer_to="billing"),
        ]

        make_orchestrator(max_transfers_per_turn=1).handle_turn("help", *SESSION)

        log = conversation_log.get_all("S1")
        assert [t.content for t in log] == ["help", "to support", "to billing"]
        assert [t.is_transfer for t in log] == [False, True, True]
        assert len(generator.calls) == 2
        # The last requested transfer stays committed for the next turn
        assert directory.get_active_agent(*SESSION) == "billing"

    def test_zero_transfer_limit_keeps_user_before_marker(
        self, make_orchestrator, generator, directory, conversation_log
    ):
        seed(conversation_log, directory, "sales")
        generator.steps = [Step("to support", transfer_to="support")]

        make_orchestrator(max_transfers_per_turn=0).handle_turn("help", *SESSION)

        log = conversation_log.get_all("S1")
        assert roles(log) == [TurnRole.USER, TurnRole.ASSISTANT]
        assert log[1].is_transfer
        assert directory.get_active_agent(*SESSION) == "support"

    def test_transfer_to_unknown_agent_is_refused(self, make_orchestrator, generator, directory, conversation_log):
        seed(conversation_log, directory, "sales")
        generator.steps = [Step("I can't transfer you.", transfer_to="marketing")]

        make_orchestrator().handle_turn("help", *SESSION)

        assert "no such agent" in generator.calls[0].transfer_result
        assert directory.get_active_agent(*SESSION) == "sales"
        assert len(conversation_log.get_all("S1")) == 2

    def test_transfer_outside_routable_set_is_accepted_by_default(
        self, make_orchestrator, generator, directory, conversation_log
    ):
        # sales only offers support
        seed(conversation_log, directory, "sales")
        generator.steps = [Step("to billing", transfer_to="billing"), Step("billing here")]

        make_orchestrator().handle_turn("invoice?", *SESSION)

        assert directory.get_active_agent(*SESSION) == "billing"

    def test_transfer_outside_routable_set_rejected_when_enforced(
        self, make_orchestrator, generator, directory, conversation_log
    ):
        seed(conversation_log, directory, "sales")
        generator.steps = [Step("staying with sales", transfer_to="billing")]

        make_orchestrator(enforce_routable_agents=True).handle_turn("invoice?", *SESSION)

        assert "Cannot transfer" in generator.calls[0].transfer_result
        assert directory.get_active_agent(*SESSION) == "sales"
        assert conversation_log.get_all("S1")[-1] == Turn.assistant("staying with sales", agent="sales")


class TestFailures:

    def test_unresolvable_active_agent_leaves_log_unchanged(
        self, make_orchestrator, generator, directory, conversation_log
    ):
        history = [Turn.user("hi"), Turn.assistant("hello", agent="legacy")]
        seed(conversation_log, directory, "legacy", history)
        generator.steps = [Step("never")]

        with pytest.raises(UnresolvableAgentError) as exc_info:
            make_orchestrator().handle_turn("anyone there?", *SESSION)

        assert exc_info.value.agent_name == "legacy"
        assert conversation_log.get_all("S1") == history
        assert generator.calls == []

    def test_backend_failure_propagates_and_commits_nothing(
        self, make_orchestrator, generator, directory, conversation_log
    ):
        seed(conversation_log, directory, "sales")
        generator.steps = [Step(error=ModelInvocationError("backend down"))]

        with pytest.raises(ModelInvocationError):
            make_orchestrator().handle_turn("hello", *SESSION)

        assert conversation_log.get_all("S1") == []
        assert directory.get_active_agent(*SESSION) == "sales"

    def test_failed_call_rolls_back_its_transfer(self, make_orchestrator, generator, directory, conversation_log):
        seed(conversation_log, directory, "sales")
        generator.steps = [Step(transfer_to="support", error=ModelInvocationError("timeout"))]

        with pytest.raises(ModelInvocationError):
            make_orchestrator().handle_turn("I have a complaint", *SESSION)

        assert directory.get_active_agent(*SESSION) == "sales"
        assert conversation_log.get_all("S1") == []

    def test_failure_after_transfer_restores_log_and_agent(
        self, make_orchestrator, generator, directory, conversation_log
    ):
        history = [Turn.user("hi"), Turn.assistant("hello", agent="sales")]
        seed(conversation_log, directory, "sales", history)
        generator.steps = [
            Step("to support", transfer_to="support"),
            Step(error=ModelInvocationError("support model down")),
        ]

        with pytest.raises(ModelInvocationError):
            make_orchestrator().handle_turn("I have a complaint", *SESSION)

        assert conversation_log.get_all("S1") == history
        assert directory.get_active_agent(*SESSION) == "sales"

    def test_first_turn_backend_failure_returns_session_to_unknown(
        self, make_orchestrator, generator, directory, conversation_log
    ):
        generator.steps = [Step(error=ModelInvocationError("down"))]

        with pytest.raises(ModelInvocationError):
            make_orchestrator().handle_turn("I want to buy shoes", *SESSION)

        assert directory.get_active_agent(*SESSION) == UNKNOWN_AGENT
        assert conversation_log.get_all("S1") == []
        assert directory.get_session(*SESSION).title == ""

    def test_tool_round_overflow_rolls_back_transfer(self, make_orchestrator, directory, conversation_log):
        """A generation call that never stops calling tools fails the turn, transfer included."""
        seed(conversation_log, directory, "sales")
        model = ToolCallingFakeChatModel(messages=iter([
            AIMessage(
                content="",
                tool_calls=[{"name": "transfer_agent", "args": {"agent_name": "support"}, "id": f"call_{i}"}],
            )
            for i in range(10)
        ]))
        orchestrator = make_orchestrator(
            generator=MemoryChatGenerator(model, conversation_log, max_tool_rounds=2)
        )

        with pytest.raises(ModelInvocationError, match="tool rounds"):
            orchestrator.handle_turn("I have a complaint", *SESSION)

        assert directory.get_active_agent(*SESSION) == "sales"
        assert conversation_log.get_all("S1") == []
