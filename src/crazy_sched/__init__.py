#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
CrazySched - project scheduling on activity-on-node networks
============================================================

Critical path analysis and scheduling optimization models
(minimal makespan, maximal NPV, crashing).
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
from .errors import (CycleDetectedError, InfeasibleModelError,
                     MissingStartOrEndError, NonNegativeFloatViolation,
                     ScheduleError, SolverError, StateSequenceError,
                     UnboundedModelError, UnknownActivityError)
from .net_model import Phase, ProjectGraph, make_project_graph
from .cpm import CriticalPath, analyze, backward_pass, critical_path, forward_pass
from .solver import BINARY, CONTINUOUS, INTEGER, LinearModel, Status, Variable
from .models import CrashingModel, MakespanModel, NPVModel

__version__ = '0.1.0'
