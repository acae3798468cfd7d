"""Tests for the game session: entry points, scenarios and simulated turns."""

import dataclasses
import threading

import pytest
from agents.policy import DecisionPolicy
from game.rules import Faction, Phase, Role
from game.session import GameSession, SessionConfig, SimulatedTurn, TurnKind
from game.state import GameSettings


def _quiet_message(player, state, day_number, discussion_target=None, rng=None):
    return f"{player.name} is thinking."


def _session(seed: int = 11, **config) -> GameSession:
    session = GameSession(config=SessionConfig(seed=seed, **config))
    session.policy.message_fn = _quiet_message
    return session


def _started(names=("A", "B", "C", "D"), settings=GameSettings(1, 1, 1, 0), seed: int = 11) -> GameSession:
    session = _session(seed)
    for name in names:
        session.join_player(name)
    assert session.update_settings(settings)
    assert session.start_game()
    return session


def _by_role(session: GameSession, role: Role):
    return [p for p in session.state.players if p.role == role]


def _to_phase(session: GameSession, phase: Phase) -> None:
    while session.state.phase != phase:
        assert session.proceed_to_next_phase()


def test_round_trip_villagers_vote_out_mafia():
    session = _started()
    state = session.state
    assert state.phase == Phase.ROLE_ASSIGNMENT
    assert sorted(p.role.value for p in state.players) == ["detective", "doctor", "mafia", "villager"]
    assert state.players[0].is_host

    mafia = _by_role(session, Role.MAFIA)[0]
    assert session.proceed_to_next_phase()
    assert session.state.phase == Phase.DAY
    assert session.state.day_count == 1
    assert session.proceed_to_next_phase()
    assert session.state.phase == Phase.VOTING
    for voter in session.state.players:
        assert session.cast_vote(voter.id, mafia.id)
    assert session.proceed_to_next_phase()

    state = session.state
    assert not state.get_player(mafia.id).alive
    assert state.game_over
    assert state.winner == Faction.VILLAGERS
    assert state.phase == Phase.RESULTS


def test_same_seed_same_roles():
    a = _started(seed=3)
    b = _started(seed=3)
    assert [p.role for p in a.state.players] == [p.role for p in b.state.players]


def test_night_protection_skips_kill():
    session = _started(names=("A", "B", "C", "D", "E"))
    _to_phase(session, Phase.NIGHT)
    day_before = session.state.day_count
    mafia = _by_role(session, Role.MAFIA)[0]
    doctor = _by_role(session, Role.DOCTOR)[0]
    target = _by_role(session, Role.VILLAGER)[0]
    assert session.submit_night_action(Role.MAFIA, mafia.id, target.id)
    assert session.submit_night_action(Role.DOCTOR, doctor.id, target.id)
    assert session.proceed_to_next_phase()
    state = session.state
    assert all(p.alive for p in state.players)
    assert state.day_count == day_before + 1
    assert state.phase == Phase.DAY


def test_tie_vote_eliminates_first_target_voted():
    session = _started()
    _to_phase(session, Phase.VOTING)
    a, b, c, d = session.state.players
    assert session.cast_vote(a.id, c.id)
    assert session.cast_vote(b.id, d.id)
    assert session.cast_vote(c.id, c.id)
    assert session.cast_vote(d.id, d.id)
    assert session.proceed_to_next_phase()
    state = session.state
    assert not state.get_player(c.id).alive
    assert state.get_player(d.id).alive
    assert state.last_eliminated.id == c.id


def test_rejected_actions_leave_state_untouched():
    session = _started()
    before = session.state
    a, b = before.players[:2]
    assert not session.cast_vote(a.id, b.id)
    assert not session.submit_night_action(Role.MAFIA, a.id, b.id)
    assert not session.submit_night_action("sheriff", a.id, b.id)
    assert session.join_player("Late") is None
    assert not session.start_game()
    assert session.state is before


def test_start_needs_four_players():
    session = _session()
    for name in ("A", "B", "C"):
        session.join_player(name)
    assert not session.proceed_to_next_phase()
    assert session.state.phase == Phase.LOBBY


def test_only_host_may_proceed_when_named():
    session = _started()
    host, other = session.state.players[:2]
    assert not session.proceed_to_next_phase(requested_by=other.id)
    assert session.state.phase == Phase.ROLE_ASSIGNMENT
    assert session.proceed_to_next_phase(requested_by=host.id)
    assert session.state.phase == Phase.DAY


def test_restart_only_from_results():
    session = _started()
    assert not session.restart()
    session._state.phase = Phase.RESULTS
    session._state.game_over = True
    assert session.restart()
    assert session.state.phase == Phase.LOBBY
    assert session.state.players == []
    assert session.state.settings.mafia_count == 1


def test_simulated_players_join_with_unique_names():
    session = _session()
    host = session.join_player("Human")
    added = session.generate_simulated_players(5)
    assert len(added) == 5
    assert all(p.is_simulated and not p.is_host for p in added)
    assert len({p.name for p in session.state.players}) == 6
    assert session.state.settings.simulated_player_count == 5
    assert session.state.get_host().id == host.id


def _with_simulated(seed: int = 5) -> GameSession:
    session = _session(seed)
    session.join_player("Human")
    session.generate_simulated_players(5)
    session.update_settings(GameSettings(1, 1, 1, 5))
    assert session.start_game()
    return session


def test_simulated_day_chat():
    session = _with_simulated()
    _to_phase(session, Phase.DAY)
    applied = session.simulate()
    assert applied == 5
    speakers = {m.player_id for m in session.state.chat}
    assert speakers == {p.id for p in session.state.players if p.is_simulated}
    assert not session.state.simulated_thinking


def test_simulated_votes():
    session = _with_simulated()
    _to_phase(session, Phase.VOTING)
    session.simulate()
    voters = [v for voters in session.state.votes.values() for v in voters]
    assert sorted(voters) == sorted(p.id for p in session.state.players if p.is_simulated)


def test_simulated_night_actions():
    session = _with_simulated()
    _to_phase(session, Phase.NIGHT)
    session.simulate()
    actions = session.state.night_actions
    for role, slot in (
        (Role.MAFIA, actions.mafia_votes),
        (Role.DETECTIVE, actions.detective_targets),
        (Role.DOCTOR, actions.doctor_targets),
    ):
        for holder in _by_role(session, role):
            if holder.is_simulated and holder.alive:
                assert holder.id in slot
    for target_id in actions.mafia_votes.values():
        assert session.state.get_player(target_id).role != Role.MAFIA


def test_stale_turns_discarded_after_force_advance():
    session = _with_simulated()
    _to_phase(session, Phase.VOTING)
    assert session.schedule_simulated_turns() == 10
    assert session.proceed_to_next_phase()
    assert session.run_simulated_turns() == 0
    assert session.pending_turns == 0
    assert session.state.phase in (Phase.NIGHT, Phase.RESULTS)


def test_turn_for_dead_player_is_skipped():
    session = _with_simulated()
    _to_phase(session, Phase.DAY)
    victim = next(p for p in session.state.players if p.is_simulated)
    session._queue.append(SimulatedTurn(TurnKind.CHAT, victim.id, Phase.DAY, session.state.day_count))
    session._state.replace_player(dataclasses.replace(victim, alive=False))
    assert session.run_simulated_turns() == 0


def test_thinking_flag_set_during_batch():
    seen = []
    session = _with_simulated()

    def watching_message(player, state, day_number, discussion_target=None, rng=None):
        seen.append(session.state.simulated_thinking)
        return "hmm"

    session.policy.message_fn = watching_message
    _to_phase(session, Phase.DAY)
    session.simulate()
    assert seen and all(seen)
    assert not session.state.simulated_thinking


def test_failed_discussion_target_skips_turn():
    class BrokenPolicy(DecisionPolicy):
        def choose_discussion_target(self, player, state):
            raise RuntimeError("boom")

    session = _with_simulated()
    session.policy = BrokenPolicy(message_fn=_quiet_message)
    _to_phase(session, Phase.DAY)
    assert session.simulate() == 0
    assert session.state.chat == []
    assert session.pending_turns == 0
    assert not session.state.simulated_thinking


def test_thinking_flag_cleared_when_batch_raises():
    def broken_sleep(seconds):
        raise RuntimeError("interrupted")

    session = GameSession(config=SessionConfig(seed=5, turn_delay=0.5), sleep=broken_sleep)
    session.policy.message_fn = _quiet_message
    session.join_player("Human")
    session.generate_simulated_players(3)
    session.start_game()
    _to_phase(session, Phase.DAY)
    with pytest.raises(RuntimeError):
        session.simulate()
    assert not session.state.simulated_thinking


def test_concurrent_votes_are_all_recorded():
    names = [f"P{i}" for i in range(20)]
    session = _started(names=names)
    _to_phase(session, Phase.VOTING)
    for i in range(300):
        assert session.post_chat_message(session.state.players[i % 20].id, f"line {i}")
    players = session.state.players
    target = players[0].id
    results = []
    barrier = threading.Barrier(len(players))

    def vote(voter_id):
        barrier.wait()
        results.append(session.cast_vote(voter_id, target))

    threads = [threading.Thread(target=vote, args=(p.id,)) for p in players]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert results == [True] * 20
    assert sorted(session.state.votes[target]) == sorted(p.id for p in players)


def test_concurrent_chat_during_simulated_batch():
    session = _with_simulated()
    _to_phase(session, Phase.VOTING)
    human = next(p for p in session.state.players if not p.is_simulated)
    started = threading.Event()

    def slow_message(player, state, day_number, discussion_target=None, rng=None):
        started.set()
        return "hmm"

    session.policy.message_fn = slow_message
    batch = threading.Thread(target=session.simulate)
    batch.start()
    started.wait(timeout=5)
    sent = [session.post_chat_message(human.id, f"human {i}") for i in range(10)]
    batch.join()
    assert all(sent)
    human_lines = [m.content for m in session.state.chat if m.player_id == human.id]
    assert human_lines == [f"human {i}" for i in range(10)]
    voters = [v for voters in session.state.votes.values() for v in voters]
    assert len(voters) == 5


def test_failed_vote_decision_falls_back_to_random_target():
    class FailingPolicy(DecisionPolicy):
        def decide(self, player, state, day_number, discussion_target=None):
            if discussion_target is None:
                raise TimeoutError("decision service timed out")
            return "fine"

    session = _with_simulated()
    session.policy = FailingPolicy(message_fn=_quiet_message)
    _to_phase(session, Phase.VOTING)
    session.simulate()
    voters = [v for voters in session.state.votes.values() for v in voters]
    assert len(voters) == 5


def test_turn_delay_between_turns():
    sleeps = []
    session = GameSession(config=SessionConfig(seed=5, turn_delay=0.5), sleep=sleeps.append)
    session.policy.message_fn = _quiet_message
    session.join_player("Human")
    session.generate_simulated_players(3)
    session.start_game()
    _to_phase(session, Phase.DAY)
    assert session.simulate() == 3
    assert sleeps == [0.5, 0.5]


def test_config_from_env(monkeypatch):
    monkeypatch.setenv("MAFIA_TURN_DELAY", "1.5")
    monkeypatch.setenv("MAFIA_SEED", "7")
    config = SessionConfig.from_env()
    assert config.turn_delay == 1.5
    assert config.seed == 7
    monkeypatch.setenv("MAFIA_TURN_DELAY", "soon")
    assert SessionConfig.from_env().turn_delay == 0.0
