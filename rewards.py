"""
Reward function for the Wumpus Q-learning agent.

Rules are checked in a fixed order and the first match decides the reward:

    1. turn            turning left or right
    2. wall_bump       moving without changing position
    3. wasted_shot     shooting with no arrow left
    4. eaten           standing on the wumpus
    5. gold            holding the gold
    6. pit             falling into a pit (not already sitting in it)
    7. wumpus_killed / arrow_missed
                       the arrow was just used
    8. explored        the new cell had not been observed yet
    9. none            anything else
"""

import config
from environment import ACTION_MOVE, ACTION_SHOOT, ACTION_TURN_LEFT, ACTION_TURN_RIGHT

REWARD_RULES = (
    'turn', 'wall_bump', 'wasted_shot', 'eaten', 'gold', 'pit',
    'wumpus_killed', 'arrow_missed', 'explored', 'none',
)


def reward_rule(before, action, world):
    """Name of the first rule matching the transition from before to world."""
    x = world.get_player_x()
    y = world.get_player_y()

    if action in (ACTION_TURN_LEFT, ACTION_TURN_RIGHT):
        return 'turn'
    if action == ACTION_MOVE and (x, y) == before.position:
        return 'wall_bump'
    if action == ACTION_SHOOT and not before.has_arrow:
        return 'wasted_shot'
    if world.has_wumpus(x, y):
        return 'eaten'
    if world.has_gold():
        return 'gold'
    if world.has_pit(x, y) and not (before.in_pit and (x, y) == before.position):
        return 'pit'
    if before.has_arrow and not world.has_arrow():
        if not world.wumpus_alive():
            return 'wumpus_killed'
        return 'arrow_missed'
    if before.was_unknown(x, y):
        return 'explored'
    return 'none'


def compute_reward(before, action, world, rewards=None):
    """Score the action just taken. Returns (reward, rule name)."""
    rewards = config.REWARDS if rewards is None else rewards
    rule = reward_rule(before, action, world)
    return float(rewards[rule]), rule
