#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
CrazySched - activity-on-node project network
=============================================

This module provides the activity-on-node (AoN) project network used by the
critical path analysis and by the scheduling model builders.

Activities are nodes, precedence relations are directed links. The activity
with id ``1`` is the project start and the activity with the largest id is
the project end (sink). The network must be a DAG.

Classes
-------
- :class:`ProjectGraph`: Project network built from an activity table
- :class:`Phase`: Critical path analysis phase of a :class:`ProjectGraph`
- :class:`_Activity`: Represents activities in the network (internal)

Usage Example
-------------
>>> table = [
...     {'activity': 'start', 'predecessors': [],           'duration': 0},
...     {'activity': 'A',     'predecessors': ['start'],    'duration': 5},
...     {'activity': 'B',     'predecessors': ['start'],    'duration': 4},
...     {'activity': 'end',   'predecessors': ['A', 'B'],   'duration': 0},
... ]
>>> graph = ProjectGraph(table)
>>> graph.predecessor_labels('end')
{'A', 'B'}
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
from enum import Enum
import logging

import graphviz
import numpy as np
import pandas as pd

from .errors import (CycleDetectedError, MissingStartOrEndError,
                     UnknownActivityError)

logger = logging.getLogger(__name__)

# Table column aliases, keys are lower case
_ALIASES = {
    'activity'     : 'label',
    'name'         : 'label',
    'label'        : 'label',
    'predecessor'  : 'predecessors',
    'predecessors' : 'predecessors',
    'duration'     : 'duration',
    'min_duration' : 'tmin',
    'min'          : 'tmin',
    'tmin'         : 'tmin',
    'max_duration' : 'tmax',
    'max'          : 'tmax',
    'tmax'         : 'tmax',
    'marginal_cost': 'cost',
    'cost'         : 'cost',
    'Δc'           : 'cost',
    'cash_flow'    : 'cash_flow',
    'c'            : 'cash_flow',
}

#==============================================================================
class Phase(Enum):
    """Critical path analysis phase of a project graph."""
    UNANALYZED    = 0
    FORWARD_DONE  = 1
    BACKWARD_DONE = 2

#==============================================================================
def _is_missing(value):
    if value is None:
        return True
    if isinstance(value, str):
        return False
    return bool(np.isscalar(value) and pd.isna(value))

def _resolved(value):
    """Return decision value if it was resolved by a solver, None otherwise."""
    if isinstance(value, (int, float, np.number)):
        return float(value)
    return None

#==============================================================================
def _parse_predecessors(value):
    """
    Convert a table cell into a list of predecessor labels.

    Parameters
    ----------
    value : list, tuple, numpy.ndarray, str or None
        Predecessors cell, strings are comma separated label lists

    Returns
    -------
    list
        Predecessor labels in input order
    """
    if _is_missing(value):
        return []

    if isinstance(value, str):
        return [p.strip() for p in value.split(',') if p.strip()]

    if isinstance(value, (list, tuple, set, np.ndarray, pd.Series)):
        return list(value)

    # Single label
    return [value]

def _parse_table(table):
    """
    Parse activity table from various formats into a list of rows.

    Parameters
    ----------
    table : pandas.DataFrame, list of dicts or dict of dicts
        Activity table:
        - Format 1: DataFrame with one row per activity
        - Format 2: list of dictionaries [{'activity': ..., ...}, ...]
        - Format 3: dictionary {label: {'duration': ..., ...}, ...}

    Returns
    -------
    list
        Rows with normalized keys, unknown keys are moved to 'data'

    Raises
    ------
    ValueError
        If table format is not supported
    """
    # Format 1: DataFrame
    if isinstance(table, pd.DataFrame):
        raw = table.to_dict('records')

    # Format 3: Dictionary {label: {...}}
    elif isinstance(table, dict):
        raw = []
        for label, fields in table.items():
            if not isinstance(fields, dict):
                raise ValueError(f"Activity '{label}' must be described by a dictionary")
            row = {'label': label}
            row.update(fields)
            raw.append(row)

    # Format 2: list of dictionaries
    elif isinstance(table, (list, tuple)):
        if not all(isinstance(r, dict) for r in table):
            raise ValueError("Activity table rows must be dictionaries")
        raw = list(table)

    else:
        raise ValueError(f"Unsupported activity table format: {type(table)}")

    rows = []
    for r in raw:
        row = {'data': {}}
        for k, v in r.items():
            key = _ALIASES.get(str(k).lower())
            if key is None:
                row['data'][k] = v
            elif key in row:
                raise ValueError(f"Column '{k}' duplicates field '{key}' in row: {r}")
            else:
                row[key] = v
        rows.append(row)

    return rows

def _time_params(row):
    """
    Compute duration and crashing parameters of an activity table row.

    Returns
    -------
    tuple
        (duration, tmin, tmax, cost, cash_flow)

    Raises
    ------
    ValueError
        If data is insufficient or inconsistent
    """
    def _get(key, default=None):
        v = row.get(key)
        return default if _is_missing(v) else float(v)

    tmax = _get('tmax')
    duration = _get('duration', tmax)
    if duration is None:
        raise ValueError(f"Insufficient data for determining activity duration. "
                         f"Available keys: {list(row.keys())}")

    if tmax is None:
        tmax = duration
    tmin = _get('tmin', tmax)

    cost = _get('cost', 0.0)
    cash_flow = _get('cash_flow', 0.0)

    for name, v in (('duration', duration), ('min_duration', tmin),
                    ('max_duration', tmax), ('marginal_cost', cost),
                    ('cash_flow', cash_flow)):
        if not np.isfinite(v):
            raise ValueError(f"{name} must be finite. Got: {v}")

    if duration < 0.0:
        raise ValueError(f"Duration must be non-negative. Got: {duration}")
    if not 0.0 <= tmin <= tmax:
        raise ValueError(f"Invalid crashing bounds: must satisfy 0 <= min_duration <= max_duration. "
                         f"Got: {tmin}, {tmax}")

    return duration, tmin, tmax, cost, cash_flow

#==============================================================================
class _Activity:
    def __init__(self, id, label, duration=0.0, tmin=0.0, tmax=0.0,
                 cost=0.0, cash_flow=0.0, data=None):
        """
        Activity class representing a task (a node) in the network

        Parameters
        ----------
        id : int
            Unique activity identifier, 1-based, assigned in input order
        label : hashable
            Unique activity name
        duration : float
            Activity duration
        tmin, tmax : float
            Minimal (crashed) and maximal (normal) durations
        cost : float
            Marginal cost of one unit of duration
        cash_flow : float
            Cash flow of the activity on completion
        data : dict
            Table data excluding fields stored as separate attributes
        """
        assert isinstance(id, int)
        assert isinstance(duration, float)
        assert duration >= 0.0
        assert isinstance(tmin, float)
        assert isinstance(tmax, float)
        assert 0.0 <= tmin <= tmax
        assert isinstance(cost, float)
        assert isinstance(cash_flow, float)
        assert data is None or isinstance(data, dict)

        self.id        = id
        self.label     = label
        self.duration  = duration
        self.tmin      = tmin
        self.tmax      = tmax
        self.cost      = cost
        self.cash_flow = cash_flow
        self.data      = data if data is not None else {}

        # CPM parameters (calculated by the analysis)
        self.es    = None
        self.ef    = None
        self.ls    = None
        self.lf    = None
        self.float = None

        # Decision variables: solver handles before solve, floats after
        self.t      = None # Makespan model start time
        self.finish = None # NPV model completion time
        self.x      = None # Crashing model duration
        self.y      = None # Crashing model start time

    def _clear_cpm(self):
        self.es    = None
        self.ef    = None
        self.ls    = None
        self.lf    = None
        self.float = None

    #--------------------------------------------------------------------------
    def __repr__(self):
        return str(self.to_dict())

    #--------------------------------------------------------------------------
    def to_dict(self):
        """
        Convert activity to dictionary representation

        Returns
        -------
        dict
            Dictionary with activity data, unresolved decision
            variables are reported as None
        """
        return {
            'id'        : self.id,
            'label'     : self.label,
            'duration'  : self.duration,
            'tmin'      : self.tmin,
            'tmax'      : self.tmax,
            'cost'      : self.cost,
            'cash_flow' : self.cash_flow,
            # CPM things
            'es'        : self.es,
            'ef'        : self.ef,
            'ls'        : self.ls,
            'lf'        : self.lf,
            'float'     : self.float,
            # Optimization things
            't'         : _resolved(self.t),
            'finish'    : _resolved(self.finish),
            'x'         : _resolved(self.x),
            'y'         : _resolved(self.y),
            # Additional data copy
            'data'      : self.data.copy()
        }

#==============================================================================
class ProjectGraph:
    """
    Activity-on-node project network.

    Parameters
    ----------
    table : pandas.DataFrame, list of dicts or dict of dicts
        Activity table. Each activity must have a unique label and
        may have:

        - ``predecessors``: list of labels (or comma separated string)
        - ``duration``: non-negative duration
        - ``min_duration``, ``max_duration``, ``marginal_cost``: crashing data
        - ``cash_flow``: cash flow for NPV optimization
        - any other custom fields, kept in ``activity.data``

        Original column names ``Activity``, ``Predecessor``, ``Duration``,
        ``Min``, ``Max``, ``Cost`` and ``C`` are accepted too.
    debug : bool
        Export extra data

    Raises
    ------
    ValueError
        On malformed table
    UnknownActivityError
        If predecessor label is not found
    CycleDetectedError
        If precedence relations contain a cycle
    MissingStartOrEndError
        If start/end convention is violated

    Notes
    -----
    Start and end activities are milestones and must have zero duration.

    Multiple links between the same pair of activities are kept in
    :attr:`edges` but they make a single precedence constraint.
    """

    def __init__(self, table, debug=False):
        self.debug = debug

        rows = _parse_table(table)
        if not rows:
            raise ValueError("Project must contain at least one activity")

        self.activities = []
        self.edges      = []
        self._by_label  = {}

        # Create activities
        for row in rows:
            if _is_missing(row.get('label')):
                raise ValueError(f"Activity label is missing in row: {row}")
            label = row['label']
            if label in self._by_label:
                raise ValueError(f"Duplicate activity label: {label}")
            try:
                params = _time_params(row)
            except ValueError as e:
                raise ValueError(f"Error processing activity {len(self.activities) + 1} ({label}): {e}")
            self._add_activity(label, *params, row['data'])

        # Create links
        for row in rows:
            dst = self._by_label[row['label']]
            for p in _parse_predecessors(row.get('predecessors')):
                if p not in self._by_label:
                    raise UnknownActivityError(f"Activity '{row['label']}' has unknown predecessor '{p}'")
                self.edges.append((self._by_label[p].id, dst.id))

        # Distinct neighbours, ordered by id
        pred = [set() for _ in self.activities]
        succ = [set() for _ in self.activities]
        for s, d in self.edges:
            pred[d - 1].add(s - 1)
            succ[s - 1].add(d - 1)
        self._pred = [sorted(p) for p in pred]
        self._succ = [sorted(s) for s in succ]

        # Also serves as a check that the network is a DAG
        self.topological_sort()
        self._check_start_end()

        self.phase    = Phase.UNANALYZED
        self.critical = None

        logger.debug("Created project graph with %d activities and %d links",
                     len(self.activities), len(self.edges))

    #--------------------------------------------------------------------------
    def _add_activity(self, label, duration, tmin, tmax, cost, cash_flow, data):
        """Add a new activity to the network"""
        act = _Activity(len(self.activities) + 1, label, duration,
                        tmin, tmax, cost, cash_flow, data)
        self.activities.append(act)
        self._by_label[label] = act

    def _check_start_end(self):
        start, sink = self.start, self.sink

        if self._pred[start.id - 1]:
            raise MissingStartOrEndError(f"Start activity '{start.label}' can not have predecessors")
        if self._succ[sink.id - 1]:
            raise MissingStartOrEndError(f"End activity '{sink.label}' can not have successors")

        for a in self.activities:
            if a is not start and not self._pred[a.id - 1]:
                raise MissingStartOrEndError(f"Activity '{a.label}' has no predecessors, "
                                             f"only '{start.label}' may start the project")
            if a is not sink and not self._succ[a.id - 1]:
                raise MissingStartOrEndError(f"Activity '{a.label}' has no successors, "
                                             f"only '{sink.label}' may end the project")

        # Start and end are milestones
        for a, what in ((start, 'Start'), (sink, 'End')):
            if a.duration != 0.0 or a.tmax != 0.0:
                raise MissingStartOrEndError(f"{what} activity '{a.label}' must have zero duration, "
                                             f"got duration={a.duration}, max_duration={a.tmax}")

    #--------------------------------------------------------------------------
    @property
    def start(self):
        """Project start activity (id 1)"""
        return self.activities[0]

    @property
    def sink(self):
        """Project end activity (max id)"""
        return self.activities[-1]

    def __len__(self):
        return len(self.activities)

    def activity(self, label):
        """
        Get activity by label

        Raises
        ------
        UnknownActivityError
            If there is no such activity
        """
        try:
            return self._by_label[label]
        except KeyError:
            raise UnknownActivityError(f"Unknown activity '{label}'") from None

    def predecessors(self, activity):
        """Get distinct predecessors of an activity"""
        return [self.activities[i] for i in self._pred[activity.id - 1]]

    def successors(self, activity):
        """Get distinct successors of an activity"""
        return [self.activities[i] for i in self._succ[activity.id - 1]]

    def predecessor_labels(self, label):
        """Get the set of predecessor labels of an activity"""
        return {a.label for a in self.predecessors(self.activity(label))}

    @property
    def unique_edges(self):
        """Distinct links as (src_id, dst_id) pairs ordered by ids"""
        return sorted(set(self.edges))

    #--------------------------------------------------------------------------
    def topological_sort(self):
        """
        Sort activities in topological order.

        Returns
        -------
        list
            Activity ids in topological order

        Raises
        ------
        CycleDetectedError
            If not all activities can be ordered
        """
        # Count dependencies for topological sorting
        n_dep = [len(p) for p in self._pred]

        # Find starting activities (no dependencies)
        order = [i for i, n in enumerate(n_dep) if 0 == n]

        # Process activities in topological order
        i = 0
        while i < len(order):
            for j in self._succ[order[i]]:
                n_dep[j] -= 1
                if 0 >= n_dep[j]:
                    order.append(j)
            i += 1

        if len(order) < len(self.activities):
            cyclic = [a.label for a in self.activities if n_dep[a.id - 1] > 0]
            raise CycleDetectedError(f"Precedence relations contain a cycle among: {cyclic}")

        return [i + 1 for i in order]

    #--------------------------------------------------------------------------
    def reset(self):
        """Forget critical path analysis results."""
        for a in self.activities:
            a._clear_cpm()
        self.phase    = Phase.UNANALYZED
        self.critical = None

    def with_durations(self, durations):
        """
        Make a new project graph with the same structure and new durations.

        Parameters
        ----------
        durations : dict or sequence
            New durations by label, or in activity id order

        Returns
        -------
        ProjectGraph
            New unanalyzed graph
        """
        if isinstance(durations, dict):
            new = [durations.get(a.label, a.duration) for a in self.activities]
        else:
            new = list(durations)
            if len(new) != len(self.activities):
                raise ValueError(f"Expected {len(self.activities)} durations, got {len(new)}")

        table = []
        for a, d in zip(self.activities, new):
            row = dict(a.data)
            row.update({
                'activity'     : a.label,
                'predecessors' : [self.activities[s - 1].label for s, t in self.edges if t == a.id],
                'duration'     : float(d),
                'min_duration' : a.tmin,
                'max_duration' : a.tmax,
                'marginal_cost': a.cost,
                'cash_flow'    : a.cash_flow,
            })
            table.append(row)

        return ProjectGraph(table, debug=self.debug)

    #--------------------------------------------------------------------------
    def __repr__(self):
        """String representation of the network model."""
        _repr = 'Activities:{\n'
        for a in self.activities:
            _repr += '        ' + str(a) + '\n'
        _repr += '}\n'

        _repr += 'Links:{\n'
        for s, d in self.edges:
            _repr += '        %s -> %s\n' % (self.activities[s - 1].label,
                                             self.activities[d - 1].label)
        _repr += '}\n'

        return _repr

    def to_dict(self):
        """
        Convert network model to dictionary representation.

        Returns
        -------
        dict
            Dictionary with structure:

            .. code-block:: python

                {
                    'activities': [{activity1_data}, ...],
                    'links': [{'src': label, 'dst': label}, ...],
                    'phase': 'UNANALYZED' | 'FORWARD_DONE' | 'BACKWARD_DONE'
                }
        """
        activities_data = [a.to_dict() for a in self.activities]

        links_data = [{'src': self.activities[s - 1].label,
                       'dst': self.activities[d - 1].label} for s, d in self.edges]

        return {
            'activities': activities_data,
            'links': links_data,
            'phase': self.phase.name,
        }

    def to_dataframe(self):
        """
        Convert network model to pandas DataFrames.

        Returns
        -------
        tuple
            (activities_df, links_df) - pandas DataFrames for activities and links

        Notes
        -----
        The activities DataFrame expands all custom data fields from the
        'data' attribute into separate columns. The links DataFrame has
        a 'critical' column once the critical path was found.
        """
        model_dict = self.to_dict()

        # Expand data fields into separate columns
        expanded_activities = []
        for activity in model_dict['activities']:
            activity_data = {k: v for k, v in activity.items() if k != 'data'}
            if activity['data']:
                activity_data.update(activity['data'])
            expanded_activities.append(activity_data)

        activities_df = pd.DataFrame(expanded_activities)

        links_df = pd.DataFrame(model_dict['links'], columns=['src', 'dst'])
        if self.critical is not None:
            critical_edges = set(self.critical.edges)
            links_df['critical'] = [(s, d) in critical_edges
                                    for s, d in zip(links_df.src, links_df.dst)]

        return activities_df, links_df

    def viz(self, output_path=None):
        """
        Create Graphviz visualization of the project network.

        Parameters
        ----------
        output_path : str, optional
            Path for saving the visualization file (png).
            If None, nothing is rendered.

        Returns
        -------
        graphviz.Digraph
            Graphviz object for rendering or saving

        Notes
        -----
        Critical activities and links are drawn in red once
        the critical path was found.
        """
        dot = graphviz.Digraph(node_attr={'shape': 'record', 'style': 'rounded'})
        dot.graph_attr['rankdir'] = 'LR'

        critical_nodes = set()
        critical_edges = set()
        if self.critical is not None:
            critical_nodes = set(self.critical.activities)
            critical_edges = set(self.critical.edges)

        def _cl(critical):
            return '#ff0000' if critical else '#000000'

        for a in self.activities:
            if Phase.BACKWARD_DONE == self.phase:
                lbl = '{%s |{%.1f|%.1f}|{%.1f|%.1f}| %.2f}' % (a.label, a.es, a.ef,
                                                            a.ls, a.lf, a.float)
            else:
                lbl = '{%s | t=%.1f}' % (a.label, a.duration)
            dot.node(str(a.id), lbl, color=_cl(a.label in critical_nodes))

        for s, d in self.unique_edges:
            src, dst = self.activities[s - 1], self.activities[d - 1]
            dot.edge(str(s), str(d),
                     color=_cl((src.label, dst.label) in critical_edges),
                     style='dashed' if src.duration == 0.0 else 'solid')

        if output_path is not None:
            dot.render(output_path, format='png', cleanup=True)

        return dot

#==============================================================================
def make_project_graph(table, debug=False):
    """
    Build a :class:`ProjectGraph` from an activity table.

    See :class:`ProjectGraph` for accepted table formats.
    """
    return ProjectGraph(table, debug=debug)
