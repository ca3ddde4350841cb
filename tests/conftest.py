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
import pandas as pd
import pytest

from tables import make_table

#==============================================================================
@pytest.fixture
def eiselt_table():
    """Table 7.1 from Eiselt, H. A., & Sandblom, C. L. (2022). Operations research"""
    return make_table(
        ['start', 'A', 'B', 'C', 'D', 'E', 'F', 'G', 'H', 'I', 'J', 'end'],
        [[], ['start'], ['A'], ['A', 'B'], ['B'], ['B', 'C'], ['C', 'D', 'E'],
         ['D'], ['F', 'G'], ['F', 'G'], ['I'], ['H', 'J']],
        [0, 5, 3, 7, 4, 6, 4, 2, 9, 6, 2, 0])

@pytest.fixture
def ulusoy_df():
    """Section 4.3 from Ulusoy, G., & Hazır, Ö. (2021), with original column names"""
    return pd.DataFrame({
        'Activity'   : ['start', 'A', 'B', 'C', 'D', 'E', 'F', 'G', 'end'],
        'Predecessor': [[], ['start'], ['start'], ['start'], ['A'], ['C'], ['C'],
                        ['D', 'B', 'E'], ['F', 'G']],
        'Duration'   : [0, 5, 6, 4, 5, 3, 6, 7, 0],
    })

@pytest.fixture
def fig74_table():
    """Fig 7.4 from Eiselt, H. A., & Sandblom, C. L. (2022). Operations research"""
    return make_table(
        ['start', 'A', 'B', 'C', 'D', 'end'],
        [[], ['start'], ['start'], ['A', 'B'], ['A', 'B'], ['C', 'D']],
        [0, 5, 4, 7, 8, 0])

@pytest.fixture
def accel_df():
    """Fig III.12 from Eiselt, H. A., & Sandblom, C. L. (2013)"""
    return pd.DataFrame({
        'Activity'   : ['start', 'A', 'B', 'C', 'D', 'E', 'end'],
        'Predecessor': [[], ['start'], ['start'], ['A'], ['A'], ['B', 'C'], ['D', 'E']],
        'Max'        : [0, 3, 5, 4, 4, 5, 0],
        'Min'        : [0, 3, 2, 1, 1, 2, 0],
        'Cost'       : [0, 0, 200, 200, 100, 600, 0],
    })

@pytest.fixture
def npv_table():
    return make_table(
        ['start', 'A', 'B', 'C', 'D', 'E', 'F', 'G', 'H', 'I', 'J', 'K', 'L', 'end'],
        [[], ['start'], ['start'], ['start'], ['B'], ['B'], ['B'], ['C', 'F'],
         ['A'], ['D'], ['F'], ['I', 'E', 'J'], ['K', 'G'], ['H', 'L']],
        [0, 6, 5, 3, 1, 6, 2, 1, 4, 3, 2, 3, 5, 0],
        cash_flow=[0, -140, 318, 312, -329, 153, 193, 361, 24, 33, 387, -386, 171, 0])
