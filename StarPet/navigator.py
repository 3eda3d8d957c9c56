import math
import random
import logging
from collections import deque
from heapq import heappop, heappush

from constants import STEP_DISTANCE, WANDER_INTERVAL, DEFAULT_WANDER
from models import NavMode, Position

log = logging.getLogger(__name__)

SQRT2 = math.sqrt(2.0)

# Neighbour order is fixed so equal-cost searches always expand the same way
_ORTHOGONAL = ((0, -1), (-1, 0), (1, 0), (0, 1))
_DIAGONAL = ((-1, -1), (1, -1), (-1, 1), (1, 1))


class Grid:
    """Traversable cells of the map. Cells are (col, row) tuples."""

    def __init__(self, width, height, cell_size, blocked=frozenset()):
        self.cell_size = cell_size
        self.cols = max(1, math.ceil(width / cell_size))
        self.rows = max(1, math.ceil(height / cell_size))
        self.blocked = frozenset(blocked)

    @classmethod
    def from_config(cls, config):
        return cls(config.width, config.height, config.grid.cell_size, config.grid.blocked)

    def cell_of(self, pos):
        return (int(pos.x // self.cell_size), int(pos.y // self.cell_size))

    def clamp(self, cell):
        col, row = cell
        return (min(max(col, 0), self.cols - 1), min(max(row, 0), self.rows - 1))

    def center_of(self, cell):
        col, row = cell
        return Position((col + 0.5) * self.cell_size, (row + 0.5) * self.cell_size)

    def in_bounds(self, cell):
        col, row = cell
        return 0 <= col < self.cols and 0 <= row < self.rows

    def walkable(self, cell):
        return self.in_bounds(cell) and cell not in self.blocked

    def neighbours(self, cell):
        """Yield (cell, cost). Diagonals may not cut a blocked corner."""
        col, row = cell
        for dc, dr in _ORTHOGONAL:
            nxt = (col + dc, row + dr)
            if self.walkable(nxt):
                yield nxt, 1.0
        for dc, dr in _DIAGONAL:
            nxt = (col + dc, row + dr)
            if (self.walkable(nxt) and self.walkable((col + dc, row))
                    and self.walkable((col, row + dr))):
                yield nxt, SQRT2

    def find_path(self, start, goal):
        """A* from start to goal, inclusive of both ends.

        Returns None when goal is blocked, off the map or cut off. Heap ties
        fall back to cost-so-far and then cell order, so identical inputs
        always give the same path.
        """
        if start == goal:
            return [start]
        if not self.walkable(goal):
            return None

        def heuristic(cell):
            dx = abs(cell[0] - goal[0])
            dy = abs(cell[1] - goal[1])
            return (dx + dy) + (SQRT2 - 2.0) * min(dx, dy)

        open_heap = [(heuristic(start), 0.0, start)]
        came_from = {start: None}
        best = {start: 0.0}
        while open_heap:
            _, g, cell = heappop(open_heap)
            if cell == goal:
                path = [cell]
                while came_from[path[-1]] is not None:
                    path.append(came_from[path[-1]])
                path.reverse()
                return path
            if g > best[cell]:
                continue
            for nxt, cost in self.neighbours(cell):
                ng = g + cost
                if ng < best.get(nxt, math.inf) - 1e-9:
                    best[nxt] = ng
                    came_from[nxt] = cell
                    heappush(open_heap, (ng + heuristic(nxt), ng, nxt))
        return None

    def reachable_within(self, start, radius):
        """Cells reachable from start in at most `radius` steps, start excluded, sorted."""
        seen = {start}
        queue = deque([(start, 0)])
        while queue:
            cell, depth = queue.popleft()
            if depth >= radius:
                continue
            for nxt, _ in self.neighbours(cell):
                if nxt not in seen:
                    seen.add(nxt)
                    queue.append((nxt, depth + 1))
        seen.discard(start)
        return sorted(seen)


class Navigator:
    """Moves the pet toward the POI for its activity, or wanders.

    Every new target discards the path in flight and plans from wherever the
    pet is standing right now.
    """

    def __init__(self, grid, registry, step_distance=STEP_DISTANCE,
                 wander_radius=DEFAULT_WANDER, wander_interval=WANDER_INTERVAL, rng=None):
        self.grid = grid
        self.registry = registry
        self.step_distance = step_distance
        self.wander_cells = max(1, int(wander_radius // grid.cell_size))
        self.wander_interval = wander_interval
        self.rng = rng or random.Random()
        self.plan_count = 0

    def retarget(self, state, activity):
        state.path = []
        goal = self.registry.lookup(activity)
        if goal is None:
            self._enter_wander(state)
            return

        route = self._plan(state.position, goal)
        if route is None:
            log.warning("POI for '%s' at (%.0f, %.0f) is unreachable, wandering instead",
                        activity.value, goal.x, goal.y)
            self._enter_wander(state)
            return

        state.mode = NavMode.DIRECTED
        state.goal = goal
        state.path = route
        log.debug("Heading to '%s' POI at (%.0f, %.0f), %d waypoints",
                  activity.value, goal.x, goal.y, len(route))

    def tick(self, state, dt):
        if state.path:
            self._advance(state)
        elif state.mode is NavMode.WANDER:
            state.wander_timer -= dt
            if state.wander_timer <= 0:
                self._wander_leg(state)

    def _plan(self, start, goal):
        self.plan_count += 1
        start_cell = self.grid.clamp(self.grid.cell_of(start))
        cells = self.grid.find_path(start_cell, self.grid.cell_of(goal))
        if cells is None:
            return None
        # Walk through cell centres, finishing exactly on the goal point
        waypoints = [self.grid.center_of(c) for c in cells[1:-1]]
        waypoints.append(goal)
        return waypoints

    def _enter_wander(self, state):
        state.mode = NavMode.WANDER
        state.goal = None
        state.path = []
        self._wander_leg(state)

    def _wander_leg(self, state):
        state.wander_timer = self.wander_interval
        here = self.grid.clamp(self.grid.cell_of(state.position))
        candidates = self.grid.reachable_within(here, self.wander_cells)
        if not candidates:
            log.debug("Nowhere to wander from %s", here)
            return
        target = self.grid.center_of(self.rng.choice(candidates))
        route = self._plan(state.position, target)
        if route:
            state.path = route

    def _advance(self, state):
        remaining = self.step_distance
        while state.path and remaining > 0:
            target = state.path[0]
            dx = target.x - state.position.x
            if dx > 0:
                state.facing = 1
            elif dx < 0:
                state.facing = -1
            dist = state.position.distance_to(target)
            if dist <= remaining:
                state.position = target
                state.path.pop(0)
                remaining -= dist
            else:
                ratio = remaining / dist
                state.position = Position(state.position.x + dx * ratio,
                                          state.position.y + (target.y - state.position.y) * ratio)
                remaining = 0

        if not state.path:
            if state.mode is NavMode.DIRECTED:
                log.debug("Arrived at POI (%.0f, %.0f)", state.position.x, state.position.y)
            else:
                state.wander_timer = self.wander_interval
