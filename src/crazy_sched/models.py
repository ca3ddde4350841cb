#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
CrazySched - scheduling optimization models
===========================================

Builders of solver-ready models over a
:class:`~crazy_sched.net_model.ProjectGraph`:

- :class:`MakespanModel`: minimal project completion time (LP),
  section 4.3 of Ulusoy, G., & Hazır, Ö. (2021). Introduction to Project
  Modeling and Planning.
- :class:`NPVModel`: maximal net present value with no resource
  constraints (binary MILP), section 4.4.1 of the same book.
- :class:`CrashingModel`: project acceleration under a deadline (LP),
  section 1.3 of Eiselt, H. A., & Sandblom, C. L. (2013). Decision analysis,
  location models, and scheduling problems.

Every builder writes solver variable handles into activity attributes on
:meth:`build` and replaces them by optimal values on :meth:`optimize`.
"""

#==============================================================================
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
import logging

import numpy as np

from .errors import InfeasibleModelError, StateSequenceError, UnboundedModelError
from .net_model import Phase
from .solver import BINARY, CONTINUOUS, MIP_REL_GAP, LinearModel, Status

logger = logging.getLogger(__name__)

#==============================================================================
class _ScheduleModel:
    """
    Common part of scheduling model builders.

    Parameters
    ----------
    graph : ProjectGraph
        Project network
    time_limit : float, optional
        Solver time limit in seconds
    mip_rel_gap : float
        Relative MIP gap
    debug : bool, optional
        Print solver log, defaults to ``graph.debug``
    """
    name = None

    def __init__(self, graph, time_limit=None, mip_rel_gap=MIP_REL_GAP, debug=None):
        self.graph       = graph
        self.time_limit  = time_limit
        self.mip_rel_gap = mip_rel_gap
        self.debug       = graph.debug if debug is None else debug
        self.model       = None

    def build(self):
        """
        Build the model and attach variable handles to the activities.

        Returns
        -------
        LinearModel
            Model ready for solving
        """
        self.model = LinearModel(self.name, time_limit=self.time_limit,
                                 mip_rel_gap=self.mip_rel_gap, debug=self.debug)
        self._build(self.model)
        logger.debug("Built model '%s': %d variables, %d constraints", self.name,
                     self.model.n_variables, self.model.n_constraints)
        return self.model

    def optimize(self):
        """
        Solve the model and write optimal values into the activities.

        The model is built first if needed.

        Returns
        -------
        LinearModel
            Solved model

        Raises
        ------
        InfeasibleModelError
            If the model is infeasible
        UnboundedModelError
            If the model is unbounded
        """
        if self.model is None:
            self.build()

        status = self.model.solve()
        if Status.INFEASIBLE == status:
            raise InfeasibleModelError(self.name, status)
        if Status.UNBOUNDED == status:
            raise UnboundedModelError(self.name, status)

        self._resolve(self.model)
        logger.debug("Model '%s' optimal objective is %g", self.name,
                     self.model.objective_value)
        return self.model

    @property
    def objective_value(self):
        """Optimal objective value"""
        if self.model is None:
            raise StateSequenceError(f"Model '{self.name}' was not built")
        return self.model.objective_value

    def _build(self, m):
        raise NotImplementedError

    def _resolve(self, m):
        raise NotImplementedError

#==============================================================================
class MakespanModel(_ScheduleModel):
    """
    Basic project scheduling problem as LP.

    Variables ``t`` are activity start times, ``t[start] == 0`` and
    ``t[v] - t[u] >= duration(u)`` for every link ``(u, v)``. The objective
    is to minimize ``t[end]``, which equals the critical path length.

    After :meth:`optimize` each activity has ``t`` set to its start time.
    """
    name = 'makespan'

    def _build(self, m):
        g = self.graph

        # dv: when does each task start?
        self._t = m.new_variables(len(g), CONTINUOUS, 0.0, np.inf, 't')

        # wlog, project begins at 0
        m.post_linear_constraint([(1.0, self._t[0])], '==', 0.0)

        # activities can only begin after predecessors finish
        for s, d in g.unique_edges:
            m.post_linear_constraint([(1.0, self._t[d - 1]), (-1.0, self._t[s - 1])],
                                     '>=', g.activities[s - 1].duration)

        # minimize overall time
        m.set_objective('min', [(1.0, self._t[-1])])

        for a, v in zip(g.activities, self._t):
            a.t = v

    def _resolve(self, m):
        for a, v in zip(self.graph.activities, m.value(self._t)):
            a.t = v

    @property
    def makespan(self):
        """Optimal project completion time"""
        return self.objective_value

#==============================================================================
class NPVModel(_ScheduleModel):
    """
    Maximization of NPV under no resource constraints.

    Each activity ``v`` gets binary variables ``x_v[τ]`` for integer
    completion times ``τ`` in ``[ef(v), lf(v)]``, exactly one of them is 1.
    For each link ``(u, v)`` completion of ``v`` minus completion of ``u``
    is at least ``duration(v)``. The objective is
    ``Σ exp(-rate τ) cash_flow(v) x_v[τ]``.

    After :meth:`optimize` each activity has ``finish`` set to
    its completion time.

    Parameters
    ----------
    graph : ProjectGraph
        Project network after the backward pass, ``ef`` and ``lf``
        must be integer
    rate : float
        Discount rate (cost of capital)

    Raises
    ------
    StateSequenceError
        If the critical path backward pass was not done
    """
    name = 'npv'

    def __init__(self, graph, rate, **kwargs):
        self._require_cpm(graph)
        rate = float(rate)
        if not np.isfinite(rate):
            raise ValueError(f"Discount rate must be finite. Got: {rate}")

        super().__init__(graph, **kwargs)
        self.rate = rate

    @staticmethod
    def _require_cpm(graph):
        if Phase.BACKWARD_DONE != graph.phase:
            raise StateSequenceError(f"NPV model needs critical path analysis results, "
                                     f"graph is in {graph.phase.name} phase")

    @staticmethod
    def _window(a):
        """Feasible integer completion times of an activity"""
        lo, hi = np.round(a.ef), np.round(a.lf)
        if not (np.isclose(a.ef, lo) and np.isclose(a.lf, hi)):
            raise ValueError(f"NPV model needs integer times, activity '{a.label}' "
                             f"has ef={a.ef}, lf={a.lf}")
        return np.arange(lo, hi + 1.0)

    def _build(self, m):
        g = self.graph
        self._require_cpm(g)

        # dv: when does each task finish + the constraint for them to actually finish
        self._tau = []
        self._x   = []
        for a in g.activities:
            tau = self._window(a)
            x = m.new_variables(len(tau), BINARY, name=f"x[{a.label}]")
            m.post_linear_constraint([(1.0, v) for v in x], '==', 1.0)
            self._tau.append(tau)
            self._x.append(x)
            a.finish = x

        # con: precedence relations among activities
        for s, d in g.unique_edges:
            expr  = [( t, v) for t, v in zip(self._tau[d - 1], self._x[d - 1])]
            expr += [(-t, v) for t, v in zip(self._tau[s - 1], self._x[s - 1])]
            m.post_linear_constraint(expr, '>=', g.activities[d - 1].duration)

        # obj: maximize NPV
        obj = []
        for a, tau, x in zip(g.activities, self._tau, self._x):
            obj += [(np.exp(-self.rate * t) * a.cash_flow, v) for t, v in zip(tau, x)]
        m.set_objective('max', obj)

    def _resolve(self, m):
        for a, tau, x in zip(self.graph.activities, self._tau, self._x):
            a.finish = float(np.dot(tau, m.value(x)))

    @property
    def npv(self):
        """Optimal net present value"""
        return self.objective_value

#==============================================================================
class CrashingModel(_ScheduleModel):
    """
    Project acceleration (crashing) with a prespecified completion time.

    Variables are activity durations ``tmin <= x <= tmax`` and start times
    ``y >= 0``; ``y[end] <= deadline`` and ``y[v] >= y[u] + x[u]`` for every
    link ``(u, v)``. The objective maximizes ``Σ cost x``: since ``tmax`` and
    ``cost`` are fixed this is the same as minimizing the crashing cost
    ``Σ cost (tmax - x)`` (see :attr:`crash_cost`).

    After :meth:`optimize` each activity has ``x`` (duration) and
    ``y`` (start time) set.

    Parameters
    ----------
    graph : ProjectGraph
        Project network with crashing data
    deadline : float
        Target project completion time
    """
    name = 'crashing'

    def __init__(self, graph, deadline, **kwargs):
        deadline = float(deadline)
        if not np.isfinite(deadline):
            raise ValueError(f"Deadline must be finite. Got: {deadline}")

        super().__init__(graph, **kwargs)
        self.deadline = deadline

    def _build(self, m):
        g = self.graph

        # the decision vars
        self._x = np.empty((len(g),), dtype=object)
        for i, a in enumerate(g.activities):
            self._x[i] = m.new_variable(CONTINUOUS, a.tmin, a.tmax, f"x[{a.label}]")
        self._y = m.new_variables(len(g), CONTINUOUS, 0.0, np.inf, 'y')

        # final time constraint
        m.post_linear_constraint([(1.0, self._y[-1])], '<=', self.deadline)

        # precedence constraints
        for s, d in g.unique_edges:
            m.post_linear_constraint([(1.0, self._y[d - 1]),
                                      (-1.0, self._y[s - 1]),
                                      (-1.0, self._x[s - 1])], '>=', 0.0)

        # minimize costs
        m.set_objective('max', [(a.cost, x) for a, x in zip(g.activities, self._x)])

        for a, x, y in zip(g.activities, self._x, self._y):
            a.x = x
            a.y = y

    def _resolve(self, m):
        for a, x, y in zip(self.graph.activities, m.value(self._x), m.value(self._y)):
            a.x = x
            a.y = y

    @property
    def durations(self):
        """Optimal activity durations in id order"""
        if self.model is None:
            raise StateSequenceError(f"Model '{self.name}' was not built")
        return self.model.value(self._x)

    @property
    def crash_cost(self):
        """Total cost of crashing, ``Σ cost (tmax - x)``"""
        x = self.durations
        return float(sum(a.cost * (a.tmax - v) for a, v in zip(self.graph.activities, x)))

    def crashed_graph(self):
        """
        Make a new project graph with optimal durations.

        Returns
        -------
        ProjectGraph
            Unanalyzed graph ready for critical path analysis
        """
        return self.graph.with_durations(self.durations)

#==============================================================================
if __name__ == '__main__':
    from .cpm import analyze
    from .net_model import ProjectGraph

    print("=== Critical path: table 7.1 from Eiselt & Sandblom ===")
    proj = ProjectGraph({
        'start': {'predecessors': [],               'duration': 0},
        'A'    : {'predecessors': ['start'],        'duration': 5},
        'B'    : {'predecessors': ['A'],            'duration': 3},
        'C'    : {'predecessors': ['A', 'B'],       'duration': 7},
        'D'    : {'predecessors': ['B'],            'duration': 4},
        'E'    : {'predecessors': ['B', 'C'],       'duration': 6},
        'F'    : {'predecessors': ['C', 'D', 'E'],  'duration': 4},
        'G'    : {'predecessors': ['D'],            'duration': 2},
        'H'    : {'predecessors': ['F', 'G'],       'duration': 9},
        'I'    : {'predecessors': ['F', 'G'],       'duration': 6},
        'J'    : {'predecessors': ['I'],            'duration': 2},
        'end'  : {'predecessors': ['H', 'J'],       'duration': 0},
    })
    cp = analyze(proj)
    print(f"Project duration: {proj.sink.ef}")
    print(f"Critical activities: {cp.activities}")
    print(f"Critical links: {cp.edges}")
    activities_df, links_df = proj.to_dataframe()
    print(activities_df[['label', 'duration', 'es', 'ef', 'ls', 'lf', 'float']])

    print("\n=== Makespan LP ===")
    lp = MakespanModel(proj)
    lp.optimize()
    print(f"LP makespan: {lp.makespan}")

    print("\n=== Crashing: fig III.12 from Eiselt & Sandblom ===")
    accel = ProjectGraph({
        'start': {'predecessors': [],           'Max': 0, 'Min': 0, 'Cost': 0  },
        'A'    : {'predecessors': ['start'],    'Max': 3, 'Min': 3, 'Cost': 0  },
        'B'    : {'predecessors': ['start'],    'Max': 5, 'Min': 2, 'Cost': 200},
        'C'    : {'predecessors': ['A'],        'Max': 4, 'Min': 1, 'Cost': 200},
        'D'    : {'predecessors': ['A'],        'Max': 4, 'Min': 1, 'Cost': 100},
        'E'    : {'predecessors': ['B', 'C'],   'Max': 5, 'Min': 2, 'Cost': 600},
        'end'  : {'predecessors': ['D', 'E'],   'Max': 0, 'Min': 0, 'Cost': 0  },
    })
    crash = CrashingModel(accel, 10)
    crash.optimize()
    print(f"Durations: {dict(zip([a.label for a in accel.activities], crash.durations))}")
    print(f"Crashing cost: {crash.crash_cost}")
    crashed = crash.crashed_graph()
    print(f"Critical path after crashing: {analyze(crashed).activities}")
