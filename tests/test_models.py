#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
    CrazySched
    Copyright (C) 2025 anonimous

    This program is free software: you can redistribute it and/or modify
    it under the terms of the GNU General Public License as published by
    the Free Software Foundation, either version 3 of the License, or
    (at your option) any later version.

    This program is distributed in the hope that it will be useful,
    but WITHOUT ANY WARRANTY; without even the implied warranty of
    MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
    GNU General Public License for more details.

    You should have received a copy of the GNU General Public License
    along with this program.  If not, see <http://www.gnu.org/licenses/>.

    Please contact with me by E-mail: shkolnick.kun@gmail.com
"""

#==============================================================================
import numpy as np
import pytest

from crazy_sched import (CrashingModel, InfeasibleModelError, MakespanModel,
                         MissingStartOrEndError, NPVModel, ProjectGraph,
                         StateSequenceError, Status, UnboundedModelError,
                         Variable, analyze, backward_pass, forward_pass)

from tables import make_table, random_table

TOL = 1e-6

#==============================================================================
# Makespan LP
def test_makespan_ulusoy(ulusoy_df):
    g = ProjectGraph(ulusoy_df)
    m = MakespanModel(g)
    m.optimize()

    # solutions from book
    assert g.start.t == pytest.approx(0.0, abs=TOL)
    assert g.sink.t == pytest.approx(17.0)
    assert m.makespan == pytest.approx(17.0)

    for s, d in g.edges:
        u, v = g.activities[s - 1], g.activities[d - 1]
        assert v.t - u.t >= u.duration - TOL

@pytest.mark.parametrize('seed', range(5))
def test_makespan_equals_critical_path(seed):
    g = ProjectGraph(random_table(seed))
    MakespanModel(g).optimize()
    analyze(g)

    assert g.sink.t == pytest.approx(g.sink.ef)

@pytest.mark.parametrize('durations', [[2, 5, 0], [0, 5, 3]])
def test_makespan_needs_milestones(durations):
    table = make_table(['start', 'A', 'end'], [[], ['start'], ['A']], durations)
    # Durations of start or end would make LP and CPM disagree
    with pytest.raises(MissingStartOrEndError):
        ProjectGraph(table)

    durations = [0, durations[0] + durations[1] + durations[2], 0]
    g = ProjectGraph(make_table(['start', 'A', 'end'], [[], ['start'], ['A']], durations))
    m = MakespanModel(g)
    m.optimize()
    analyze(g)

    assert m.makespan == pytest.approx(g.sink.ef)

def test_unbounded_model(fig74_table, monkeypatch):
    g = ProjectGraph(fig74_table)
    m = MakespanModel(g)
    m.build()
    monkeypatch.setattr(m.model, 'solve', lambda: Status.UNBOUNDED)

    with pytest.raises(UnboundedModelError) as e:
        m.optimize()
    assert e.value.model_name == 'makespan'
    assert e.value.status == Status.UNBOUNDED

    # Handles are not replaced by values
    assert isinstance(g.sink.t, Variable)

def test_makespan_handles_before_solve(fig74_table):
    g = ProjectGraph(fig74_table)
    m = MakespanModel(g)
    m.build()

    assert isinstance(g.start.t, Variable)
    assert g.start.to_dict()['t'] is None
    with pytest.raises(StateSequenceError):
        m.model.value(g.start.t)

    m.optimize()
    assert g.sink.to_dict()['t'] == pytest.approx(13.0)

#==============================================================================
# NPV MILP
def test_npv_schedule(npv_table):
    g = ProjectGraph(npv_table)

    # before running NPV maximization, need to run forward/backward passes
    toposort = forward_pass(g)
    backward_pass(g, toposort)

    m = NPVModel(g, 0.01)
    m.optimize()

    for a in g.activities:
        assert a.ef - TOL <= a.finish <= a.lf + TOL

    # negative cash flow tasks are scheduled as late as possible
    for a in g.activities:
        if a.cash_flow < 0:
            assert a.finish == pytest.approx(a.lf), a.label
    for label in ['A', 'H', 'D', 'I']:
        a = g.activity(label)
        assert a.finish == pytest.approx(a.lf), label

    # non-critical positive cash flow tasks are scheduled as early as possible
    for label in ['C', 'F', 'G', 'J']:
        a = g.activity(label)
        assert a.finish == pytest.approx(a.ef), label

    # precedence holds on completion times
    for s, d in g.edges:
        u, v = g.activities[s - 1], g.activities[d - 1]
        assert v.finish - u.finish >= v.duration - TOL

def test_npv_value(npv_table):
    g = ProjectGraph(npv_table)
    analyze(g)
    m = NPVModel(g, 0.01)
    m.optimize()

    expected = sum(a.cash_flow * np.exp(-0.01 * a.finish) for a in g.activities)
    assert m.npv == pytest.approx(expected)

def test_npv_needs_backward_pass(npv_table):
    g = ProjectGraph(npv_table)
    with pytest.raises(StateSequenceError):
        NPVModel(g, 0.01)

    forward_pass(g)
    with pytest.raises(StateSequenceError):
        NPVModel(g, 0.01)

def test_npv_build_after_reset(npv_table):
    g = ProjectGraph(npv_table)
    analyze(g)
    m = NPVModel(g, 0.01)
    g.reset()
    with pytest.raises(StateSequenceError):
        m.build()

def test_npv_needs_integer_times():
    g = ProjectGraph([
        {'activity': 'start', 'duration': 0},
        {'activity': 'A', 'predecessors': ['start'], 'duration': 1.5},
        {'activity': 'end', 'predecessors': ['A'], 'duration': 0},
    ])
    analyze(g)
    with pytest.raises(ValueError):
        NPVModel(g, 0.01).build()

#==============================================================================
# Crashing LP
def test_crashing_eiselt(accel_df):
    g = ProjectGraph(accel_df)
    m = CrashingModel(g, 10)
    m.optimize()

    x = {a.label: a.x for a in g.activities}
    assert x == pytest.approx({'start': 0, 'A': 3, 'B': 5, 'C': 2,
                               'D': 4, 'E': 5, 'end': 0})
    assert g.sink.y <= 10 + TOL

    for s, d in g.edges:
        u, v = g.activities[s - 1], g.activities[d - 1]
        assert v.y >= u.y + u.x - TOL

    # Maximizing Σ cost x is minimizing Σ cost (tmax - x)
    assert m.crash_cost == pytest.approx(400.0)
    assert m.objective_value + m.crash_cost == pytest.approx(
        sum(a.cost * a.tmax for a in g.activities))

def test_crashed_graph_cpm(accel_df):
    g = ProjectGraph(accel_df)
    m = CrashingModel(g, 10)
    m.optimize()

    # migrate crashed durations to a new graph to do CPM
    h = m.crashed_graph()
    cp = analyze(h)

    assert h.activity('C').duration == pytest.approx(2.0)
    assert h.sink.ef == pytest.approx(10.0)
    assert cp.activities == ['start', 'A', 'B', 'C', 'E', 'end']

def test_crashing_without_deadline_pressure(accel_df):
    g = ProjectGraph(accel_df)
    m = CrashingModel(g, 100)
    m.optimize()

    assert m.crash_cost == pytest.approx(0.0)
    assert all(a.x == pytest.approx(a.tmax) for a in g.activities)

def test_crashing_infeasible_deadline(accel_df):
    g = ProjectGraph(accel_df)
    m = CrashingModel(g, 5)

    with pytest.raises(InfeasibleModelError) as e:
        m.optimize()
    assert e.value.model_name == 'crashing'

    with pytest.raises(StateSequenceError):
        m.crash_cost

def test_crashing_bad_deadline(accel_df):
    g = ProjectGraph(accel_df)
    with pytest.raises(ValueError):
        CrashingModel(g, float('nan'))
