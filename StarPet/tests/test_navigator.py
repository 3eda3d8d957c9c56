import random

import pytest

from map_config import PoiConfig
from models import Activity, NavMode, PetRuntimeState, Position
from navigator import Grid, Navigator
from poi_registry import PoiRegistry


def _walk(nav, state, ticks=500, dt=1 / 30):
    for _ in range(ticks):
        nav.tick(state, dt)


def _navigator(pois=(), blocked=(), step=1.5, wander_interval=4.0):
    grid = Grid(100, 100, 10, blocked)
    nav = Navigator(grid, PoiRegistry(pois), step_distance=step, wander_radius=18,
                    wander_interval=wander_interval, rng=random.Random(7))
    return nav


# --- Grid ---------------------------------------------------------------

def test_grid_dimensions_round_up():
    grid = Grid(95, 41, 10)
    assert (grid.cols, grid.rows) == (10, 5)
    assert grid.cell_of(Position(94.9, 40.5)) == (9, 4)
    assert grid.center_of((0, 0)) == Position(5, 5)


def test_straight_path():
    grid = Grid(100, 100, 10)
    assert grid.find_path((0, 0), (3, 0)) == [(0, 0), (1, 0), (2, 0), (3, 0)]


def test_path_to_self():
    assert Grid(100, 100, 10).find_path((4, 4), (4, 4)) == [(4, 4)]


def test_path_is_deterministic_and_shortest():
    grid = Grid(100, 100, 10, blocked={(4, r) for r in range(0, 8)})
    first = grid.find_path((0, 0), (9, 0))
    assert first == grid.find_path((0, 0), (9, 0))
    assert first[0] == (0, 0) and first[-1] == (9, 0)
    assert all(cell not in grid.blocked for cell in first)
    # Must detour through row 8 or 9 to get round the wall
    assert max(row for _, row in first) >= 8


def test_blocked_or_off_map_goal_has_no_path():
    grid = Grid(100, 100, 10, blocked={(5, 5)})
    assert grid.find_path((0, 0), (5, 5)) is None
    assert grid.find_path((0, 0), (10, 0)) is None


def test_walled_off_goal_has_no_path():
    grid = Grid(100, 100, 10, blocked={(5, r) for r in range(10)})
    assert grid.find_path((0, 0), (9, 9)) is None


def test_diagonals_do_not_cut_corners():
    grid = Grid(100, 100, 10, blocked={(1, 0), (0, 1)})
    assert grid.find_path((0, 0), (1, 1)) is None


def test_reachable_within():
    grid = Grid(100, 100, 10)
    assert grid.reachable_within((0, 0), 1) == [(0, 1), (1, 0), (1, 1)]
    assert len(grid.reachable_within((5, 5), 1)) == 8


# --- Directed mode ------------------------------------------------------

def test_activity_with_poi_plans_one_path_to_it():
    nav = _navigator([PoiConfig("desk", 85, 15, Activity.WRITING)])
    state = PetRuntimeState(position=Position(5, 5))
    before = nav.plan_count

    nav.retarget(state, Activity.WRITING)

    assert nav.plan_count == before + 1
    assert state.mode is NavMode.DIRECTED
    assert state.goal == Position(85, 15)
    assert state.path[-1] == Position(85, 15)


def test_pet_holds_at_poi_after_arrival():
    nav = _navigator([PoiConfig("desk", 85, 15, Activity.WRITING)])
    state = PetRuntimeState(position=Position(5, 5))
    nav.retarget(state, Activity.WRITING)

    _walk(nav, state)

    assert state.position == Position(85, 15)
    assert state.path == []
    assert state.mode is NavMode.DIRECTED
    plans = nav.plan_count
    _walk(nav, state, ticks=300, dt=1.0)
    assert state.position == Position(85, 15)
    assert nav.plan_count == plans


def test_each_tick_moves_a_fixed_distance():
    nav = _navigator([PoiConfig("desk", 95, 5, Activity.WRITING)], step=2.0)
    state = PetRuntimeState(position=Position(5, 5))
    nav.retarget(state, Activity.WRITING)
    nav.tick(state, 1 / 30)
    assert state.position.x == pytest.approx(7.0)
    assert state.facing == 1


# --- Wander mode --------------------------------------------------------

@pytest.mark.parametrize("activity", [Activity.IDLE, Activity.SYNCING])
def test_activity_without_poi_wanders(activity):
    nav = _navigator([PoiConfig("desk", 85, 15, Activity.WRITING)])
    state = PetRuntimeState(position=Position(55, 55))
    nav.retarget(state, activity)
    assert state.mode is NavMode.WANDER
    assert state.goal is None
    # Wander legs stay close to where the pet stood
    assert state.path and state.path[-1].distance_to(Position(55, 55)) <= 15


def test_unreachable_poi_degrades_to_wander():
    wall = {(5, r) for r in range(10)}
    nav = _navigator([PoiConfig("vault", 95, 95, Activity.ERROR)], blocked=wall)
    state = PetRuntimeState(position=Position(5, 5))
    nav.retarget(state, Activity.ERROR)
    assert state.mode is NavMode.WANDER
    assert state.goal is None


def test_wander_picks_a_new_leg_after_the_pause():
    nav = _navigator(step=50.0, wander_interval=1.0)
    state = PetRuntimeState(position=Position(55, 55))
    nav.retarget(state, Activity.IDLE)
    nav.tick(state, 0.1)
    assert state.path == []  # arrived in one big step
    plans = nav.plan_count

    nav.tick(state, 0.5)
    assert nav.plan_count == plans
    nav.tick(state, 0.6)
    assert nav.plan_count == plans + 1
    assert state.path


def test_wander_is_reproducible_with_the_same_seed():
    def run():
        nav = _navigator(step=3.0, wander_interval=0.2)
        state = PetRuntimeState(position=Position(55, 55))
        nav.retarget(state, Activity.IDLE)
        _walk(nav, state, ticks=200, dt=0.1)
        return state.position

    assert run() == run()


def test_boxed_in_pet_stays_put():
    box = {(c, r) for c in range(3) for r in range(3)} - {(1, 1)}
    nav = _navigator(blocked=box)
    state = PetRuntimeState(position=Position(15, 15))
    nav.retarget(state, Activity.IDLE)
    _walk(nav, state, ticks=100, dt=1.0)
    assert state.position == Position(15, 15)


# --- Interruption -------------------------------------------------------

def test_interrupted_path_replans_from_current_position(monkeypatch):
    nav = _navigator([
        PoiConfig("desk", 95, 5, Activity.WRITING),
        PoiConfig("library", 5, 95, Activity.RESEARCHING),
    ])
    state = PetRuntimeState(position=Position(5, 5))
    nav.retarget(state, Activity.WRITING)
    _walk(nav, state, ticks=10)
    mid = state.position
    assert mid.x == pytest.approx(20.0)
    assert state.path

    calls = []
    original = nav.grid.find_path

    def spy(start, goal):
        calls.append((start, goal))
        return original(start, goal)

    monkeypatch.setattr(nav.grid, "find_path", spy)
    nav.retarget(state, Activity.RESEARCHING)

    assert calls == [(nav.grid.cell_of(mid), nav.grid.cell_of(Position(5, 95)))]
    assert state.goal == Position(5, 95)
    assert state.path[-1] == Position(5, 95)
    assert Position(95, 5) not in state.path
    # First step leaves from where the pet was, not from home
    assert state.path[0].distance_to(mid) < 15

    _walk(nav, state)
    assert state.position == Position(5, 95)


def test_wander_leg_is_dropped_when_activity_gets_a_poi():
    nav = _navigator([PoiConfig("desk", 95, 95, Activity.WRITING)], step=1.0)
    state = PetRuntimeState(position=Position(55, 55))
    nav.retarget(state, Activity.IDLE)
    nav.tick(state, 0.1)
    nav.retarget(state, Activity.WRITING)
    assert state.mode is NavMode.DIRECTED
    assert state.path[-1] == Position(95, 95)


def test_poi_in_blocked_home_cell_is_held():
    # Pet starts on a blocked cell that also holds the POI
    nav = _navigator([PoiConfig("nook", 45, 45, Activity.WRITING)], blocked=[(4, 4)])
    state = PetRuntimeState(position=Position(42, 42))

    nav.retarget(state, Activity.WRITING)

    assert state.mode is NavMode.DIRECTED
    assert state.goal == Position(45, 45)
    _walk(nav, state)
    assert state.position == Position(45, 45)
    assert state.mode is NavMode.DIRECTED


def test_blocked_start_and_goal_in_same_cell():
    grid = Grid(100, 100, 10, [(4, 4)])
    assert grid.find_path((4, 4), (4, 4)) == [(4, 4)]
    assert grid.find_path((3, 3), (4, 4)) is None
