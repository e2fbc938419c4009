import tracemalloc

import pytest

from src.domains.puzzle15 import (
    GOAL, canonical_key, find_blank, is_goal, make_unsolvable_variant, neighbor_moves,
    apply_move, scramble,
)
from src.heuristics.manhattan import manhattan
from src.search.branch_and_bound import solve

ONE_MOVE = ((1, 2, 3, 4), (5, 6, 7, 8), (9, 10, 11, 12), (13, 14, 0, 15))


def _replay_frontier(steps):
    """Rebuild the frontier from events alone and compare with every snapshot."""
    frontier = set()
    explored = 0
    for st in steps:
        if st.phase == "init":
            frontier = {st.current_state_id}
        elif st.phase == "branch" and len(st.explored_states) > explored:
            frontier.discard(st.current_state_id)
        elif st.phase == "bound" and st.current_state_id != st.best_state_id:
            frontier.add(st.current_state_id)
        elif st.phase == "prune":
            frontier.discard(st.current_state_id)
        explored = len(st.explored_states)
        assert set(st.active_states) == frontier


def test_already_solved():
    res, steps = solve(GOAL)
    assert res.solved and res.termination == "ok"
    assert res.cost == 0
    assert res.path == (1,)
    assert res.moves == ()
    assert [s.phase for s in steps] == ["init", "branch", "complete"]
    assert steps[-1].path == (1,)


def test_one_move_from_goal():
    res, steps = solve(ONE_MOVE)
    assert res.solved
    assert res.cost == 1
    assert res.path == (1, 4)
    assert res.moves == (("right", 15),)
    assert [s.phase for s in steps] == [
        "init", "branch",
        "branch", "bound", "branch", "bound", "branch", "bound",
        "branch", "complete",
    ]
    final = steps[-1]
    assert final.best_state_id == 4
    assert final.active_states == (2, 3)
    assert final.explored_states == (1, 4)
    assert final.description == "Solution found! Total moves: 1"
    assert [final.states[i].total_cost for i in (2, 3, 4)] == [3, 3, 1]


def test_deterministic():
    grid = scramble(14, 3)
    r1, s1 = solve(grid, state_budget=500)
    r2, s2 = solve(grid, state_budget=500)
    assert (r1.solved, r1.path, r1.cost, r1.termination) == (r2.solved, r2.path, r2.cost, r2.termination)
    assert len(s1) == len(s2)
    for a, b in zip(s1, s2):
        assert (a.phase, a.description, a.current_state_id, a.best_state_id) == \
               (b.phase, b.description, b.current_state_id, b.best_state_id)
        assert (a.active_states, a.explored_states, a.pruned_states, a.path) == \
               (b.active_states, b.explored_states, b.pruned_states, b.path)


@pytest.mark.parametrize("seed", range(5))
def test_short_scramble_cost_bounded_by_walk(seed):
    res, _ = solve(scramble(6, seed), state_budget=2000)
    assert res.solved
    assert res.cost <= 6


@pytest.mark.parametrize("seed", range(5))
def test_scrambled_path_is_valid(seed):
    grid = scramble(10, seed)
    res, steps = solve(grid, state_budget=5000)
    assert res.solved
    assert len(res.path) == res.cost + 1

    states = steps[-1].states
    path = [states[i] for i in res.path]
    assert path[0].grid == grid
    assert is_goal(path[-1].grid)
    for prev, nxt in zip(path, path[1:]):
        assert nxt.parent == prev.id
        assert nxt.cost == prev.cost + 1
        legal = {target: d for d, target in neighbor_moves(prev.blank_pos)}
        assert nxt.blank_pos in legal
        assert legal[nxt.blank_pos] == nxt.move
        assert apply_move(prev.grid, prev.blank_pos, nxt.blank_pos) == (nxt.grid, nxt.moved_tile)
        assert find_blank(nxt.grid) == nxt.blank_pos


def test_no_duplicate_grids():
    _, steps = solve(scramble(20, 11), state_budget=800)
    keys = [canonical_key(s.grid) for s in steps[-1].states]
    assert len(keys) == len(set(keys))


def test_unsolvable_stops_at_budget():
    res, steps = solve(make_unsolvable_variant(GOAL), state_budget=2000)
    assert not res.solved
    assert res.termination == "budget"
    assert res.cost is None and res.path == ()
    final = steps[-1]
    assert final.phase == "complete"
    assert final.description == "No solution found within the search limit."
    assert final.path == () and final.best_state_id is None
    assert len(final.states) == 2000
    assert res.generated == 1999


@pytest.mark.parametrize("budget", [1, 2, 7, 150])
def test_budget_respected(budget):
    _, steps = solve(make_unsolvable_variant(scramble(8, 2)), state_budget=budget)
    assert len(steps[-1].states) <= budget
    assert steps[-1].phase == "complete"


def test_trace_is_replayable():
    _, steps = solve(scramble(16, 5), state_budget=600)
    _replay_frontier(steps)
    prev_states = 0
    for st in steps:
        known = st.states
        for sid in st.active_states + st.explored_states + st.pruned_states + st.path:
            assert sid in known
        assert not set(st.active_states) & set(st.explored_states)
        ranks = [(known[i].total_cost, i) for i in st.active_states]
        assert ranks == sorted(ranks)
        assert len(known) >= prev_states
        prev_states = len(known)


def test_on_step_callback_receives_full_trace():
    seen = []
    _, steps = solve(ONE_MOVE, on_step=seen.append)
    assert seen == steps


def test_best_policy_prunes_leftover_frontier():
    res, steps = solve(ONE_MOVE, policy="best")
    assert res.solved and res.cost == 1 and res.path == (1, 4)
    assert [s.phase for s in steps] == [
        "init", "branch",
        "branch", "bound", "branch", "bound", "branch", "bound",
        "branch", "bound", "prune", "prune", "complete",
    ]
    assert res.pruned == 2
    assert steps[-1].pruned_states == (2, 3)
    assert steps[-1].active_states == ()
    _replay_frontier(steps)


def test_best_policy_matches_first_on_scrambles():
    for seed in range(3):
        grid = scramble(8, seed)
        first, _ = solve(grid, state_budget=3000)
        best, _ = solve(grid, state_budget=3000, policy="best")
        assert best.solved
        assert best.cost <= first.cost


def test_invalid_arguments():
    with pytest.raises(ValueError):
        solve(GOAL, state_budget=0)
    with pytest.raises(ValueError):
        solve(GOAL, policy="optimal")


def test_as_row():
    res, _ = solve(ONE_MOVE)
    row = res.as_row()
    assert row["algorithm"] == "B&B"
    assert row["g"] == 1
    assert row["termination"] == "ok"
    assert row["generated"] == 3


def test_best_policy_prunes_every_pop_after_incumbent():
    for seed in range(3):
        _, steps = solve(scramble(8, seed), state_budget=3000, policy="best")
        found = next(i for i, s in enumerate(steps) if s.current_state_id == s.best_state_id)
        assert steps[found].phase == "bound"
        assert all(s.phase == "prune" for s in steps[found + 1:-1])
        assert steps[-1].phase == "complete"


def test_best_policy_bound_tests_children_with_negative_goal_heuristic():
    res, steps = solve(ONE_MOVE, policy="best", hfun=lambda g: manhattan(g) - 3)
    assert res.solved and res.cost == 1 and res.path == (1, 4)
    assert res.expanded == 3
    assert res.pruned == 5
    final = steps[-1]
    assert final.explored_states == (1, 4, 2, 3)
    assert final.pruned_states == (5, 6, 7, 8, 9)
    assert final.active_states == ()
    assert final.description == "Search finished. Best solution: 1 moves"
    pruned_children = [s for s in steps if s.phase == "prune"]
    assert [s.current_state_id for s in pruned_children] == [5, 6, 7, 8, 9]
    assert all(final.states[s.current_state_id].total_cost == 2 for s in pruned_children)
    _replay_frontier(steps)


@pytest.mark.parametrize("budget", [2, 3, 7, 40, 150])
def test_peak_open_counts_last_pushes(budget):
    res, steps = solve(make_unsolvable_variant(scramble(8, 2)), state_budget=budget)
    assert res.peak_open == max(len(st.active_states) for st in steps)


def test_one_snapshot_per_graph_size():
    _, steps = solve(make_unsolvable_variant(GOAL), state_budget=300)
    assert len({id(st.states) for st in steps}) == 300
    early = steps[5]
    assert len(early.states) < 300
    assert [s.id for s in early.states] == list(range(1, len(early.states) + 1))
    assert len(early.active_states) == len(set(early.active_states))


def _peak_bytes(budget):
    tracemalloc.start()
    try:
        solve(make_unsolvable_variant(GOAL), state_budget=budget)
        return tracemalloc.get_traced_memory()[1]
    finally:
        tracemalloc.stop()


def test_trace_memory_grows_linearly_with_budget():
    small = _peak_bytes(500)
    large = _peak_bytes(2000)
    # four times the budget; quadratic storage would need about sixteen times the memory
    assert large < small * 8


def test_budget_cuts_last_expansion_short():
    res, steps = solve(make_unsolvable_variant(GOAL), state_budget=2)
    assert [s.phase for s in steps] == ["init", "branch", "branch", "bound", "complete"]
    assert res.expanded == 1 and res.generated == 1
    assert res.termination == "budget"
    assert steps[-1].active_states == (2,)
