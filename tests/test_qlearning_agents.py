import numpy as np
import pytest

from config import REWARDS
from environment import (
    A_CLIMB, A_GRAB, A_MOVE, ACTION_MOVE, ACTION_SHOOT, DIR_LEFT, DIR_RIGHT,
)
from qlearning_agents import QLearningAgent, td_update
from qtable import QTable
from states import encode_state
from fake_world import FakeWorld


class FirstChoiceRng:
    """Always exploits and always takes the first candidate."""

    def random(self):
        return 0.0

    def choice(self, seq):
        return seq[0]


def make_agent(world, table=None, **kwargs):
    table = QTable() if table is None else table
    kwargs.setdefault('rng', FirstChoiceRng())
    return QLearningAgent(world, q_table=table, mode='borrow', **kwargs)


def test_td_update_example():
    q_values = np.zeros(4)
    next_q_values = np.array([4.0, 1.0, 0.0, -3.0])
    new_value = td_update(q_values, ACTION_MOVE, 10.0, next_q_values, alpha=0.1, gamma=0.5)
    assert new_value == pytest.approx(1.2)
    assert q_values[ACTION_MOVE] == pytest.approx(1.2)
    assert np.all(q_values[1:] == 0.0)


def test_td_update_only_touches_the_taken_action():
    q_values = np.array([1.0, 2.0, 3.0, 4.0])
    td_update(q_values, ACTION_SHOOT, -1.0, np.zeros(4), alpha=0.5, gamma=0.9)
    np.testing.assert_allclose(q_values, [1.0, 0.5, 3.0, 4.0])


def test_grabs_gold_without_touching_the_table():
    world = FakeWorld(player=(1, 1), gold=(1, 1))
    table = QTable()
    step = make_agent(world, table).do_action()

    assert step['command'] == A_GRAB
    assert world.commands == [A_GRAB]
    assert len(table) == 0
    assert world.has_gold()


def test_gold_in_a_pit_is_grabbed_not_climbed():
    world = FakeWorld(player=(2, 2), gold=(2, 2), pits={(2, 2)})
    make_agent(world).do_action()
    assert world.commands == [A_GRAB]


def test_wall_bump_on_empty_table():
    world = FakeWorld(player=(1, 1), direction=DIR_LEFT)
    table = QTable()
    step = make_agent(world, table).do_action()

    assert step['action'] == ACTION_MOVE
    assert step['rule'] == 'wall_bump'
    assert step['reward'] == REWARDS['wall_bump']
    # Bumping leaves the state unchanged: one entry, updated from zero
    assert len(table) == 1
    q_values = table.get(step['state'])
    assert q_values[ACTION_MOVE] == pytest.approx(0.1 * REWARDS['wall_bump'])


def test_update_uses_next_state_max():
    world = FakeWorld(player=(1, 1), direction=DIR_RIGHT)
    table = QTable()

    # Seed the state the agent will land in
    preview = FakeWorld(player=(1, 1), direction=DIR_RIGHT)
    preview.do_action(A_MOVE)
    next_state = encode_state(preview, 2, 1)
    table.set(next_state, [4.0, 0.0, 0.0, 0.0])

    step = make_agent(world, table, alpha=0.1, gamma=0.5).do_action()

    assert step['next_state'] == next_state
    assert step['rule'] == 'explored'
    expected = 0.1 * (REWARDS['explored'] + 0.5 * 4.0)
    assert table.get(step['state'])[ACTION_MOVE] == pytest.approx(expected)
    np.testing.assert_array_equal(table.get(next_state), [4.0, 0.0, 0.0, 0.0])


def test_climbs_out_of_pit_before_acting():
    world = FakeWorld(player=(2, 1), pits={(2, 1)}, known={(3, 1)})
    step = make_agent(world).do_action()

    assert world.commands[0] == A_CLIMB
    assert world.commands[1] == A_MOVE
    assert step['action'] == ACTION_MOVE


def test_follow_up_grab_earns_gold_reward():
    world = FakeWorld(player=(1, 1), direction=DIR_RIGHT, gold=(2, 1))
    step = make_agent(world).do_action()

    assert world.commands == [A_MOVE, A_GRAB]
    assert step['rule'] == 'gold'
    assert world.game_over()


def test_borrow_mode_needs_a_table():
    with pytest.raises(ValueError):
        QLearningAgent(FakeWorld(), mode='borrow')


def test_unknown_mode_is_rejected():
    with pytest.raises(ValueError):
        QLearningAgent(FakeWorld(), q_table=QTable(), mode='shared')


def test_borrowing_agent_does_not_save():
    agent = make_agent(FakeWorld())
    with pytest.raises(ValueError):
        agent.save()
    assert agent.close() is True


def test_load_and_persist_saves_on_close(tmp_path):
    path = str(tmp_path / 'Q.dat')
    world = FakeWorld(player=(1, 1))

    with QLearningAgent(world, table_path=path, mode='load-and-persist',
                        rng=FirstChoiceRng()) as agent:
        agent.do_action()
        learned = agent.Q

    assert QTable.load(path) == learned

    # The next agent starts from what was saved
    second = QLearningAgent(FakeWorld(), table_path=path, mode='load-and-persist')
    assert second.Q == learned


def test_verbose_prints_step_diagnostics(capsys):
    make_agent(FakeWorld(), verbose=True).do_action()
    out = capsys.readouterr().out
    assert '[DEBUG' in out
    assert 'reward=' in out


def test_config_overrides_reach_the_agent(monkeypatch):
    import config
    monkeypatch.setattr(config, 'ALPHA', 0.5)
    monkeypatch.setattr(config, 'GAMMA', 0.9)
    monkeypatch.setattr(config, 'OPTIMAL_CHANCE', 0.0)
    monkeypatch.setattr(config, 'REWARDS', dict(REWARDS, wall_bump=-8.0))

    world = FakeWorld(player=(1, 1), direction=DIR_LEFT)
    table = QTable()
    agent = make_agent(world, table)
    assert (agent.alpha, agent.gamma, agent.optimal_chance) == (0.5, 0.9, 0.0)

    step = agent.do_action()
    assert step['reward'] == -8.0
    assert table.get(step['state'])[ACTION_MOVE] == pytest.approx(-4.0)


def test_explicit_arguments_beat_config(monkeypatch):
    import config
    monkeypatch.setattr(config, 'ALPHA', 0.5)
    agent = make_agent(FakeWorld(), alpha=0.2)
    assert agent.alpha == 0.2


def test_step_reports_values_the_action_was_chosen_from(capsys):
    world = FakeWorld(player=(1, 1), direction=DIR_LEFT)
    table = QTable()
    step = make_agent(world, table, verbose=True).do_action()

    np.testing.assert_array_equal(step['q_values'], np.zeros(4))
    assert table.get(step['state'])[ACTION_MOVE] != 0.0
    assert 'Q=[0.0, 0.0, 0.0, 0.0]' in capsys.readouterr().out
