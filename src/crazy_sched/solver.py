#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
CrazySched - linear model and solver adapter
============================================

A small modeling layer over :func:`scipy.optimize.milp` (HiGHS).

Scheduling models are built variable by variable and constraint by
constraint, then solved in one blocking call::

    m = LinearModel('example')
    x = m.new_variable(CONTINUOUS, lb=0.)
    y = m.new_variable(BINARY)
    m.post_linear_constraint([(1., x), (2., y)], '<=', 3.)
    m.set_objective('max', [(1., x), (1., y)])
    if Status.OPTIMAL == m.solve():
        print(m.value(x), m.value(y))

Values are available only after an optimal solve.
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

import numpy as np
from scipy import optimize, sparse
from scipy.optimize import milp

from .errors import SolverError, StateSequenceError

logger = logging.getLogger(__name__)

# Relative MIP gap, HiGHS default (1e-4) may stop at a suboptimal schedule
MIP_REL_GAP = 1e-9

# Variable kinds, values are scipy.optimize.milp integrality codes
CONTINUOUS = 0
INTEGER    = 1
BINARY     = 2

_MIN = 'min'
_MAX = 'max'

#==============================================================================
class Status(Enum):
    """Solver status the model builders can act upon."""
    OPTIMAL    = 0
    INFEASIBLE = 2
    UNBOUNDED  = 3

#==============================================================================
class Variable:
    __slots__ = ('model', 'index', 'kind', 'name')

    def __init__(self, model, index, kind, name):
        self.model = model
        self.index = index
        self.kind  = kind
        self.name  = name

    def __repr__(self):
        return f"Variable({self.model.name}:{self.name})"

#==============================================================================
class LinearModel:
    """
    Linear (mixed integer) model.

    Parameters
    ----------
    name : str
        Model name, reported in solver errors
    time_limit : float, optional
        Solver time limit in seconds
    mip_rel_gap : float
        Relative MIP gap for integer models
    debug : bool
        Print solver log
    """

    def __init__(self, name, time_limit=None, mip_rel_gap=MIP_REL_GAP, debug=False):
        self.name        = name
        self.time_limit  = time_limit
        self.mip_rel_gap = mip_rel_gap
        self.debug       = debug

        # Variables
        self._lb          = []
        self._ub          = []
        self._integrality = []
        self._variables   = []

        # Constraint matrix in coordinate format
        self._rows   = []
        self._cols   = []
        self._vals   = []
        self._con_lb = []
        self._con_ub = []

        # Objective
        self._objective = None
        self._direction = _MIN
        self._constant  = 0.0

        # Solution
        self.status = None
        self._x     = None
        self._fun   = None

    #--------------------------------------------------------------------------
    @property
    def n_variables(self):
        return len(self._variables)

    @property
    def n_constraints(self):
        return len(self._con_lb)

    def _invalidate(self):
        self.status = None
        self._x     = None
        self._fun   = None

    #--------------------------------------------------------------------------
    def new_variable(self, kind=CONTINUOUS, lb=0.0, ub=np.inf, name=None):
        """
        Create a decision variable.

        Parameters
        ----------
        kind : int
            CONTINUOUS, INTEGER or BINARY
        lb, ub : float
            Bounds, ignored for BINARY variables

        Returns
        -------
        Variable
            Variable handle
        """
        if kind not in (CONTINUOUS, INTEGER, BINARY):
            raise ValueError(f"Unknown variable kind: {kind}")
        if BINARY == kind:
            lb, ub = 0.0, 1.0
        if lb > ub:
            raise ValueError(f"Invalid variable bounds: {lb} > {ub}")

        self._invalidate()

        index = len(self._variables)
        var = Variable(self, index, kind, name if name is not None else f"v{index}")

        self._variables.append(var)
        self._lb.append(float(lb))
        self._ub.append(float(ub))
        # milp knows only continuous (0) and integer (1) variables
        self._integrality.append(0 if CONTINUOUS == kind else 1)

        return var

    def new_variables(self, n, kind=CONTINUOUS, lb=0.0, ub=np.inf, name=None):
        """Create an array of ``n`` decision variables with the same bounds"""
        name = name if name is not None else 'v'
        ret = np.empty((n,), dtype=object)
        for i in range(n):
            ret[i] = self.new_variable(kind, lb, ub, f"{name}[{i}]")
        return ret

    #--------------------------------------------------------------------------
    def _terms(self, expression):
        """Merge (coefficient, variable) pairs by variable index"""
        terms = {}
        for coef, var in expression:
            if not isinstance(var, Variable) or var.model is not self:
                raise ValueError(f"{var!r} is not a variable of model '{self.name}'")
            terms[var.index] = terms.get(var.index, 0.0) + float(coef)
        return terms

    def post_linear_constraint(self, expression, relation, rhs):
        """
        Add a linear constraint ``expression relation rhs``.

        Parameters
        ----------
        expression : iterable
            (coefficient, Variable) pairs
        relation : str
            One of '==' ('='), '<=', '>='
        rhs : float
            Right hand side
        """
        rhs = float(rhs)
        if relation in ('==', '='):
            lb, ub = rhs, rhs
        elif '<=' == relation:
            lb, ub = -np.inf, rhs
        elif '>=' == relation:
            lb, ub = rhs, np.inf
        else:
            raise ValueError(f"Unknown constraint relation: {relation}")

        self._invalidate()

        row = self.n_constraints
        for i, coef in self._terms(expression).items():
            self._rows.append(row)
            self._cols.append(i)
            self._vals.append(coef)
        self._con_lb.append(lb)
        self._con_ub.append(ub)

    def set_objective(self, direction, expression, constant=0.0):
        """
        Set the objective ``direction expression + constant``.

        Parameters
        ----------
        direction : str
            'min' or 'max'
        expression : iterable
            (coefficient, Variable) pairs
        """
        if direction not in (_MIN, _MAX):
            raise ValueError(f"Unknown objective direction: {direction}")

        self._invalidate()

        self._direction = direction
        self._objective = self._terms(expression)
        self._constant  = float(constant)

    #--------------------------------------------------------------------------
    def solve(self):
        """
        Solve the model.

        Returns
        -------
        Status
            OPTIMAL, INFEASIBLE or UNBOUNDED

        Raises
        ------
        StateSequenceError
            If the objective was not set
        SolverError
            On time limit or other solver failures
        """
        if self._objective is None:
            raise StateSequenceError(f"Model '{self.name}' has no objective")

        n = self.n_variables

        # milp minimizes c @ x
        c = np.zeros((n,), dtype=float)
        for i, coef in self._objective.items():
            c[i] = coef
        if _MAX == self._direction:
            c = -c

        constraints = None
        if self.n_constraints:
            A = sparse.csr_array((self._vals, (self._rows, self._cols)),
                                 shape=(self.n_constraints, n))
            constraints = optimize.LinearConstraint(A, self._con_lb, self._con_ub)

        options = {'disp': self.debug, 'mip_rel_gap': self.mip_rel_gap}
        if self.time_limit is not None:
            options['time_limit'] = self.time_limit

        logger.debug("Solving model '%s': %d variables, %d constraints",
                     self.name, n, self.n_constraints)

        res = milp(c=c,
                   constraints=constraints,
                   integrality=np.array(self._integrality, dtype=int),
                   bounds=optimize.Bounds(self._lb, self._ub),
                   options=options)

        logger.debug("Model '%s' solver status %d: %s", self.name, res.status, res.message)

        if 0 == res.status:
            self.status = Status.OPTIMAL
            self._x     = np.asarray(res.x, dtype=float)
            fun         = -res.fun if _MAX == self._direction else res.fun
            self._fun   = float(fun) + self._constant
        elif Status.INFEASIBLE.value == res.status:
            self.status = Status.INFEASIBLE
        elif Status.UNBOUNDED.value == res.status:
            self.status = Status.UNBOUNDED
        else:
            raise SolverError(self.name, res.status, res.message)

        return self.status

    #--------------------------------------------------------------------------
    def _check_solved(self):
        if Status.OPTIMAL != self.status:
            raise StateSequenceError(f"Model '{self.name}' has no optimal solution, "
                                     f"status is {self.status}")

    def value(self, handle):
        """
        Get optimal value of a variable or an array of variables.

        Integer and binary variables are rounded to the nearest integer.

        Raises
        ------
        StateSequenceError
            If the model was not solved to optimality
        """
        self._check_solved()

        if isinstance(handle, Variable):
            if handle.model is not self:
                raise ValueError(f"{handle!r} is not a variable of model '{self.name}'")
            v = self._x[handle.index]
            return float(np.round(v)) if CONTINUOUS != handle.kind else float(v)

        return np.array([self.value(h) for h in handle], dtype=float)

    @property
    def objective_value(self):
        """Optimal objective value"""
        self._check_solved()
        return self._fun
