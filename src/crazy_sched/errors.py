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
class ScheduleError(Exception):
    """Base class for all scheduling engine errors."""

#==============================================================================
# Graph construction errors
class CycleDetectedError(ScheduleError, ValueError):
    """Precedence relations contain a cycle, the project is not a DAG."""

class UnknownActivityError(ScheduleError, ValueError):
    """Predecessor (or looked up) activity name does not exist."""

class MissingStartOrEndError(ScheduleError, ValueError):
    """Start/sink convention is violated."""

#==============================================================================
# Programming contract errors
class StateSequenceError(ScheduleError, RuntimeError):
    """Operation invoked in a wrong analysis (or solution) phase."""

class NonNegativeFloatViolation(ScheduleError, RuntimeError):
    """Computed float is negative, the graph or the algorithm is broken."""

#==============================================================================
# Solver errors
class SolverError(ScheduleError, RuntimeError):
    def __init__(self, model_name, status, message=None):
        """
        Solver reported an outcome the engine can not use.

        Parameters
        ----------
        model_name : str
            Name of the offending model
        status : object
            Solver status
        message : str, optional
            Solver message
        """
        self.model_name = model_name
        self.status = status
        text = f"Model '{model_name}': solver returned {status}"
        if message:
            text += f" ({message})"
        super().__init__(text)

class InfeasibleModelError(SolverError):
    """Solver proved the model infeasible."""

class UnboundedModelError(SolverError):
    """Solver proved the model unbounded."""
