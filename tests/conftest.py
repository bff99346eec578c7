"""Shared fixtures: deterministic randomness for tile spawning."""

import pytest


class ScriptedRng:
    """Stands in for random.Random with a fixed script of answers.

    ``choice`` returns the element at ``index`` (the first empty cell by
    default) and ``random`` returns ``roll`` (below 0.9 spawns a 2).
    """

    def __init__(self, index=0, roll=0.0):
        self.index = index
        self.roll = roll
        self.choices = 0

    def choice(self, seq):
        self.choices += 1
        return seq[self.index]

    def random(self):
        return self.roll


@pytest.fixture
def rng():
    return ScriptedRng()


@pytest.fixture
def empty_board():
    return [[0] * 4 for _ in range(4)]


@pytest.fixture
def checkerboard():
    return [
        [2, 4, 2, 4],
        [4, 2, 4, 2],
        [2, 4, 2, 4],
        [4, 2, 4, 2],
    ]
