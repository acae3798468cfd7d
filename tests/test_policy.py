"""Tests for simulated-player heuristics, decision policy and chat fallback."""

import random
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest
from agents.chat_agent import generate_message
from agents.heuristics import (
    find_accusers,
    find_likely_targets,
    find_role_claimers,
    find_suspicious_players,
)
from agents.phrasebook import ACCUSE_TEMPLATES, DEFEND_TEMPLATES, ROLE_MESSAGES, fallback_message
from agents.policy import DecisionPolicy
from agents.prompts import build_chat_prompt
from game.rules import Phase, Role
from game.state import ChatMessage, GameState, Investigation, Player


class FixedRandom(random.Random):
    """random() always returns value."""

    def __init__(self, value: float):
        super().__init__(0)
        self.value = value

    def random(self) -> float:
        return self.value


NAMES = ["Alice", "Bob", "Carol", "Dave", "Eve"]
ROLES = [Role.MAFIA, Role.VILLAGER, Role.DOCTOR, Role.DETECTIVE, Role.VILLAGER]


def _state(phase: Phase = Phase.VOTING, chat: list[tuple[str, str]] = ()) -> GameState:
    players = [
        Player(id=name.lower(), name=name, role=role, is_simulated=True)
        for name, role in zip(NAMES, ROLES)
    ]
    messages = [
        ChatMessage(player_id=author, player_name=author.title(), content=text, timestamp=i)
        for i, (author, text) in enumerate(chat)
    ]
    return GameState(phase=phase, players=players, day_count=1, chat=messages)


def _policy(seed: int = 0, rng: random.Random | None = None) -> DecisionPolicy:
    return DecisionPolicy(rng=rng or random.Random(seed), message_fn=lambda *a, **k: "said")


@pytest.fixture(autouse=True)
def no_llm_keys(monkeypatch):
    for var in (
        "OPENAI_API_KEY", "ANTHROPIC_API_KEY", "GOOGLE_GENERATIVE_AI_API_KEY", "OLLAMA_BASE_URL", "MAFIA_LLM_PROVIDER",
    ):
        monkeypatch.delenv(var, raising=False)


# Heuristics

def test_find_accusers():
    chat = [("bob", "I think Alice is suspicious"), ("carol", "Nice weather"), ("dave", "Dave is mafia")]
    state = _state(chat=chat)
    # self-mentions do not count
    assert find_accusers(state.chat, state.players) == ["bob"]


def test_find_suspicious_needs_two_accusations():
    chat = [("bob", "Eve is suspicious"), ("carol", "I suspect Eve too"), ("dave", "vote Alice")]
    state = _state(chat=chat)
    assert find_suspicious_players(state.chat, state.players) == ["eve"]


def test_find_suspicious_falls_back_to_quiet_players():
    state = _state(chat=[("bob", "hello"), ("carol", "hi")])
    assert find_suspicious_players(state.chat, state.players) == ["alice", "dave", "eve"]


def test_find_role_claimers_and_likely_targets():
    chat = [("carol", "As the doctor I protected someone"), ("bob", "Eve is lying"), ("alice", "vote Eve")]
    state = _state(chat=chat)
    assert find_role_claimers(state.chat) == ["carol"]
    assert find_likely_targets(state.chat, state.players) == ["carol", "eve"]


# Mafia

@pytest.mark.parametrize("seed", range(20))
def test_mafia_never_targets_mafia(seed):
    state = _state()
    state.replace_player(Player(id="eve", name="Eve", role=Role.MAFIA, is_simulated=True))
    policy = _policy(seed)
    alice = state.get_player("alice")
    for choice in (policy.choose_vote(alice, state), policy.choose_night_target(alice, state)):
        assert state.get_player(choice).role != Role.MAFIA


def test_mafia_prefers_accusers():
    state = _state(chat=[("bob", "I think Alice is suspicious")])
    alice = state.get_player("alice")
    assert _policy().choose_vote(alice, state) == "bob"
    state.phase = Phase.NIGHT
    assert _policy().choose_night_target(alice, state) == "bob"


def test_mafia_falls_back_to_role_claimers():
    state = _state(phase=Phase.NIGHT, chat=[("carol", "As the doctor I protected someone")])
    assert _policy().choose_night_target(state.get_player("alice"), state) == "carol"


def test_mafia_declines_without_non_mafia_targets():
    state = _state(phase=Phase.NIGHT)
    for pid in ("bob", "carol", "dave", "eve"):
        p = state.get_player(pid)
        state.replace_player(Player(id=p.id, name=p.name, role=p.role, alive=False))
    assert _policy().choose_night_target(state.get_player("alice"), state) is None


# Village

def test_detective_investigates_suspects():
    state = _state(phase=Phase.NIGHT, chat=[("bob", "Eve is suspicious"), ("carol", "I suspect Eve too")])
    assert _policy().choose_night_target(state.get_player("dave"), state) == "eve"


def test_villager_votes_for_suspects():
    state = _state(chat=[("bob", "Eve is suspicious"), ("carol", "I suspect Eve too")])
    assert _policy().choose_vote(state.get_player("bob"), state) == "eve"


def test_detective_votes_for_known_mafia():
    state = _state(chat=[("bob", "Eve is suspicious"), ("carol", "I suspect Eve too")])
    state.investigations.append(Investigation(day=1, detective_id="dave", target_id="alice"))
    assert _policy().choose_vote(state.get_player("dave"), state) == "alice"


def test_doctor_self_protects_sometimes():
    state = _state(phase=Phase.NIGHT)
    carol = state.get_player("carol")
    assert _policy(rng=FixedRandom(0.1)).choose_night_target(carol, state) == "carol"


def test_doctor_protects_likely_target():
    state = _state(phase=Phase.NIGHT, chat=[("bob", "Eve is suspicious"), ("alice", "Eve is lying, vote Eve")])
    carol = state.get_player("carol")
    assert _policy(rng=FixedRandom(0.9)).choose_night_target(carol, state) == "eve"


def test_random_fallback_stays_among_living_others():
    state = _state()
    bob = state.get_player("bob")
    for seed in range(10):
        choice = _policy(seed).choose_vote(bob, state)
        assert choice in {"alice", "carol", "dave", "eve"}


# decide()

def test_decide_dispatches_on_phase():
    policy = _policy()
    bob = _state().get_player("bob")
    assert policy.decide(bob, _state(Phase.DAY), 1) == "said"
    assert policy.decide(bob, _state(Phase.VOTING), 1) in {"alice", "carol", "dave", "eve"}
    assert policy.decide(bob, _state(Phase.VOTING), 1, _state().get_player("eve")) == "said"
    assert policy.decide(bob, _state(Phase.NIGHT), 1) is None
    assert policy.decide(bob, _state(Phase.LOBBY), 0) is None


def test_decide_for_dead_player_declines():
    state = _state()
    dead = Player(id="bob", name="Bob", role=Role.VILLAGER, alive=False)
    assert _policy().decide(dead, state, 1) is None


# Phrasebook and chat service

def test_fallback_mafia_defends_partner_and_accuses_others():
    mafia = Player(id="m", name="Mo", role=Role.MAFIA)
    partner = Player(id="p", name="Pat", role=Role.MAFIA)
    villager = Player(id="v", name="Vi", role=Role.VILLAGER)
    rng = random.Random(1)
    defend = fallback_message(mafia, partner, rng)
    accuse = fallback_message(mafia, villager, rng)
    assert defend in [t.format(name="Pat") for t in DEFEND_TEMPLATES]
    assert accuse in [t.format(name="Vi") for t in ACCUSE_TEMPLATES]


def test_fallback_without_target_uses_role_lines():
    doctor = Player(id="d", name="Doc", role=Role.DOCTOR)
    assert fallback_message(doctor, None, random.Random(0)) in ROLE_MESSAGES[Role.DOCTOR]


def test_generate_message_without_key_uses_phrasebook():
    state = _state(Phase.DAY)
    with patch("agents.chat_agent.get_chat_agent") as agent:
        text = generate_message(state.get_player("bob"), state, 1, rng=random.Random(0))
    agent.assert_not_called()
    assert text


def test_generate_message_uses_agent_when_configured():
    state = _state(Phase.DAY)
    fake_agent = MagicMock()
    fake_agent.run_sync.return_value = SimpleNamespace(output=SimpleNamespace(message=" Eve seems off. "))
    with patch("agents.chat_agent.is_configured", return_value=True), \
            patch("agents.chat_agent.get_model_from_config", return_value="test"), \
            patch("agents.chat_agent.get_chat_agent", return_value=fake_agent):
        text = generate_message(state.get_player("bob"), state, 1, state.get_player("eve"))
    assert text == "Eve seems off."
    prompt = fake_agent.run_sync.call_args.args[0]
    assert "You are specifically discussing Eve" in prompt


def test_generate_message_falls_back_on_error():
    state = _state(Phase.DAY)
    fake_agent = MagicMock()
    fake_agent.run_sync.side_effect = TimeoutError("too slow")
    alice = state.get_player("alice")
    with patch("agents.chat_agent.is_configured", return_value=True), \
            patch("agents.chat_agent.get_model_from_config", return_value="test"), \
            patch("agents.chat_agent.get_chat_agent", return_value=fake_agent):
        text = generate_message(alice, state, 1, rng=random.Random(0))
    assert text in ROLE_MESSAGES[Role.MAFIA]


def test_prompt_mentions_teammates_and_investigations():
    state = _state(Phase.DAY)
    state.replace_player(Player(id="eve", name="Eve", role=Role.MAFIA))
    state.investigations.append(Investigation(day=1, detective_id="dave", target_id="alice"))
    mafia_prompt = build_chat_prompt(state.get_player("alice"), state, 1)
    assert "Your mafia teammates are: Eve." in mafia_prompt
    detective_prompt = build_chat_prompt(state.get_player("dave"), state, 2)
    assert "Alice is mafia" in detective_prompt
