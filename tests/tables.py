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

#==============================================================================
def make_table(labels, predecessors, durations, **columns):
    """Build a list-of-dicts activity table"""
    table = []
    for i, (l, p, d) in enumerate(zip(labels, predecessors, durations)):
        row = {'activity': l, 'predecessors': list(p), 'duration': d}
        for k, v in columns.items():
            row[k] = v[i]
        table.append(row)
    return table

def random_table(seed, n=15, max_preds=3, max_duration=9):
    """Random valid project: start, n activities, end"""
    rng = np.random.default_rng(seed)

    labels = ['start'] + ['T%d' % i for i in range(n)] + ['end']
    preds = [[]]
    durations = [0]
    has_succ = set()

    for i in range(1, n + 1):
        k = int(rng.integers(1, min(i, max_preds) + 1))
        p = [labels[j] for j in rng.choice(i, size=k, replace=False)]
        preds.append(p)
        has_succ.update(p)
        durations.append(int(rng.integers(0, max_duration + 1)))

    preds.append([l for l in labels[:-1] if l not in has_succ])
    durations.append(0)

    return make_table(labels, preds, durations)
