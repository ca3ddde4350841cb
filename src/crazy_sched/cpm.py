#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
CrazySched - critical path method
=================================

Forward pass, backward pass and critical path search on a
:class:`~crazy_sched.net_model.ProjectGraph`.

The analysis is a state machine tracked by ``graph.phase``::

    UNANALYZED --forward_pass--> FORWARD_DONE --backward_pass--> BACKWARD_DONE

:func:`critical_path` needs ``BACKWARD_DONE``, :meth:`ProjectGraph.reset`
brings the graph back to ``UNANALYZED``.

See Eiselt, H. A., & Sandblom, C. L. (2013). Decision analysis, location
models, and scheduling problems.
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
from collections import namedtuple
import logging

import numpy as np

from .errors import NonNegativeFloatViolation, StateSequenceError
from .net_model import Phase

logger = logging.getLogger(__name__)

EPS = np.finfo(float).eps

CriticalPath = namedtuple('CriticalPath', ['activities', 'edges'])

#==============================================================================
def _tolerance(graph, value):
    """Round-off error upper limit for a time value computed on the graph"""
    return EPS * len(graph) * max(1.0, abs(value))

def _is_close(graph, a, b):
    return abs(a - b) <= _tolerance(graph, max(abs(a), abs(b)))

def _require(graph, phase, operation):
    if graph.phase != phase:
        raise StateSequenceError(f"{operation} requires {phase.name} phase, "
                                 f"graph is in {graph.phase.name} phase")

#==============================================================================
def forward_pass(graph):
    """
    Perform a forward pass of the critical path sweep.

    Computes the earliest start ``es`` and finish ``ef`` of each activity.

    Parameters
    ----------
    graph : ProjectGraph
        Unanalyzed project graph

    Returns
    -------
    list
        Activity ids in topological order, needed by :func:`backward_pass`

    Raises
    ------
    StateSequenceError
        If the graph is not in UNANALYZED phase
    CycleDetectedError
        If the graph is not a DAG
    """
    _require(graph, Phase.UNANALYZED, 'Forward pass')

    start = graph.start
    start.es = 0.0
    start.ef = 0.0

    # Also serves as a check that the graph is actually a DAG
    toposort = graph.topological_sort()

    for i in toposort[1:]:
        v = graph.activities[i - 1]
        v.es = max(u.ef for u in graph.predecessors(v))
        v.ef = v.es + v.duration

    graph.phase = Phase.FORWARD_DONE
    logger.debug("Forward pass done, project duration is %g", graph.sink.ef)

    return toposort

#==============================================================================
def backward_pass(graph, toposort):
    """
    Perform a backward pass of the critical path sweep.

    Computes the latest start ``ls`` and finish ``lf`` of each activity
    and its ``float``, the maximum acceptable delay which does not
    delay the project.

    Parameters
    ----------
    graph : ProjectGraph
        Graph after :func:`forward_pass`
    toposort : list
        Topological order returned by :func:`forward_pass`, it is not modified

    Raises
    ------
    StateSequenceError
        If the graph is not in FORWARD_DONE phase
    NonNegativeFloatViolation
        If some activity gets a negative float
    """
    _require(graph, Phase.FORWARD_DONE, 'Backward pass')

    order = list(reversed(toposort))

    # The end finish time is the deadline
    sink = graph.activities[order[0] - 1]
    sink.lf = sink.ef
    sink.ls = sink.lf - sink.duration

    for i in order[1:]:
        v = graph.activities[i - 1]
        v.lf = min(w.ls for w in graph.successors(v))
        v.ls = v.lf - v.duration

    for v in graph.activities:
        r = v.lf - v.ef
        e = _tolerance(graph, v.lf)
        # Check for programming errors
        if r < -e:
            raise NonNegativeFloatViolation(f"Activity '{v.label}' has negative float {r}")
        # Round off insignificant values
        v.float = r if abs(r) > e else 0.0

    graph.phase = Phase.BACKWARD_DONE
    logger.debug("Backward pass done")

#==============================================================================
def critical_path(graph):
    """
    Find critical activities and links.

    A depth first search from the start follows links ``(v, w)`` where
    ``w`` has zero float and ``lf(v) == es(w)``. All parallel critical
    paths are found.

    Parameters
    ----------
    graph : ProjectGraph
        Graph after :func:`backward_pass`

    Returns
    -------
    CriticalPath
        ``activities``: labels of critical activities in id order,
        ``edges``: (src_label, dst_label) pairs of critical links

    Raises
    ------
    StateSequenceError
        If the graph is not in BACKWARD_DONE phase
    """
    _require(graph, Phase.BACKWARD_DONE, 'Critical path search')

    # Stack of activities for the search
    stack = [graph.start]
    seen = np.zeros(len(graph), dtype=bool)
    edges = []

    while stack:
        v = stack.pop()
        if seen[v.id - 1]:
            continue
        seen[v.id - 1] = True
        # Only critical successors reached through tight links
        for w in graph.successors(v):
            if 0.0 == w.float and _is_close(graph, v.lf, w.es):
                stack.append(w)
                edges.append((v.label, w.label))

    activities = [a.label for a in graph.activities if seen[a.id - 1]]
    edges.sort(key=lambda e: (graph.activity(e[0]).id, graph.activity(e[1]).id))

    graph.critical = CriticalPath(activities, edges)
    return graph.critical

#==============================================================================
def analyze(graph):
    """
    Run the whole critical path analysis from scratch.

    Returns
    -------
    CriticalPath
        Result of :func:`critical_path`
    """
    graph.reset()
    toposort = forward_pass(graph)
    backward_pass(graph, toposort)
    return critical_path(graph)
