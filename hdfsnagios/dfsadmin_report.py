#!/usr/bin/python3
# dfsadmin_report.py Parser for the output of 'hadoop dfsadmin -report'
# Copyright (C) 2014 Red Hat Inc
#
# This program is free software; you can redistribute it and/or
# modify it under the terms of the GNU General Public License
# as published by the Free Software Foundation; either version 2
# of the License, or (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with this program; if not, write to the Free Software
# Foundation, Inc., 51 Franklin Street, Fifth Floor, Boston, MA 02110-1301, USA
#
import logging
import re
from collections import namedtuple


log = logging.getLogger(__name__)

SUMMARY_FIELDS = ('configured_capacity',
                  'configured_capacity_human',
                  'present_capacity',
                  'present_capacity_human',
                  'dfs_remaining',
                  'dfs_remaining_human',
                  'dfs_used',
                  'dfs_used_human',
                  'dfs_used_pc',
                  'under_replicated_blocks',
                  'corrupt_blocks',
                  'missing_blocks',
                  'datanodes_available',
                  'datanodes_total',
                  'datanodes_dead')

ClusterSummary = namedtuple('ClusterSummary', SUMMARY_FIELDS,
                            defaults=(None,) * len(SUMMARY_FIELDS))
DatanodeRecord = namedtuple('DatanodeRecord', ['name', 'used_pc', 'dead'])
Report = namedtuple('Report', ['summary', 'datanodes'])

_BYTES = r':\s*(\d+)(?:\s+\((.+)\))?\s*$'

# Each pattern fills the listed fields from its groups, in order
SUMMARY_PATTERNS = [
    (re.compile(r'^Configured Capacity' + _BYTES, re.I),
     ('configured_capacity', 'configured_capacity_human')),
    (re.compile(r'^Present Capacity' + _BYTES, re.I),
     ('present_capacity', 'present_capacity_human')),
    (re.compile(r'^DFS Remaining' + _BYTES, re.I),
     ('dfs_remaining', 'dfs_remaining_human')),
    (re.compile(r'^DFS Used' + _BYTES, re.I),
     ('dfs_used', 'dfs_used_human')),
    (re.compile(r'^DFS Used%:\s*(\d+(?:\.\d+)?)%\s*$', re.I),
     ('dfs_used_pc',)),
    (re.compile(r'^Under replicated blocks:\s*(\d+)\s*$', re.I),
     ('under_replicated_blocks',)),
    (re.compile(r'^Blocks with corrupt replicas:\s*(\d+)\s*$', re.I),
     ('corrupt_blocks',)),
    (re.compile(r'^Missing blocks:\s*(\d+)\s*$', re.I),
     ('missing_blocks',)),
    (re.compile(r'^Datanodes available:\s*(\d+)\s*'
                r'(?:\((\d+) total, (\d+) dead\))?\s*$', re.I),
     ('datanodes_available', 'datanodes_total', 'datanodes_dead')),
]

FIELD_TYPES = {'configured_capacity_human': str,
               'present_capacity_human': str,
               'dfs_remaining_human': str,
               'dfs_used_human': str,
               'dfs_used_pc': float}

SKIP_RE = re.compile(r'^(?:-+|\s*)$')
NODE_SECTION_RE = re.compile(r'^Name:')

NODE_NAME_RE = re.compile(r'^Name:\s*(\S.*?)\s*$')
NODE_DEAD_RE = re.compile(r'^Configured Capacity: 0 \(0 KB\)$')
NODE_USED_PC_RE = re.compile(r'^DFS Used%:\s+(\d+(?:\.\d+)?)%\s*$')
NODE_IGNORED_RE = re.compile(r'^(?:Rack|Decommission Status|'
                             r'Configured Capacity|DFS Used|Non DFS Used|'
                             r'DFS Remaining|DFS Remaining%|Last contact)'
                             r'\s*:')


class ReportError(Exception):
    pass


class BlankOutputError(ReportError):
    def __init__(self):
        ReportError.__init__(
            self, "blank output returned from dfsadmin report (wrong user "
            "or mis-configured HDFS cluster settings?)")


class UnrecognizedLineError(ReportError):
    def __init__(self, section, line):
        ReportError.__init__(
            self, "Unrecognized line in output while parsing %s: %s"
            % (section, line))
        self.line = line


class IncompleteReportError(ReportError):
    def __init__(self, field):
        ReportError.__init__(
            self, "Failed to determine %s, either output is incomplete "
            "or format has changed, use -vvv to debug" % field)
        self.field = field


class ParserStateError(ReportError):
    pass


def _toValue(field, value):
    if value is None:
        return None
    return FIELD_TYPES.get(field, int)(value)


# Reads the cluster totals at the top of the report. Returns the summary
# and the index of the first 'Name:' line, or None if there is none.
def parseSummary(lines):
    fields = {}
    for index, line in enumerate(lines):
        if SKIP_RE.match(line):
            continue
        if NODE_SECTION_RE.match(line):
            return ClusterSummary(**fields), index
        for pattern, names in SUMMARY_PATTERNS:
            match = pattern.match(line)
            if match:
                for name, value in zip(names, match.groups()):
                    if value is not None:
                        fields[name] = _toValue(name, value)
                break
        else:
            raise UnrecognizedLineError("totals", line)
    return ClusterSummary(**fields), None


def parseDatanodes(lines, start):
    nodes = {}
    name = ""
    for line in lines[start:]:
        if not line.strip():
            name = ""
            continue
        match = NODE_NAME_RE.match(line)
        if match:
            name = match.group(1)
            nodes.setdefault(name, {'used_pc': None, 'dead': False})
            continue
        if NODE_DEAD_RE.match(line):
            _requireName(name)
            nodes[name]['dead'] = True
            continue
        match = NODE_USED_PC_RE.match(line)
        if match:
            _requireName(name)
            nodes[name]['used_pc'] = float(match.group(1))
            continue
        if NODE_IGNORED_RE.match(line):
            continue
        raise UnrecognizedLineError("nodes", line)
    return dict((nodeName, DatanodeRecord(nodeName, node['used_pc'],
                                          node['dead']))
                for nodeName, node in nodes.items())


def _requireName(name):
    if not name:
        raise ParserStateError("parsing failed to determine name of node "
                               "before finding node fields in output from "
                               "dfsadmin -report")


def parseReport(lines, parseNodes=True):
    """
    Parses the captured output of 'hadoop dfsadmin -report'.

    Any line that is not part of the known report format aborts the
    parse, a changed format must never be read as wrong numbers.

    Parameters
    ----------
    lines: report output split into lines
    parseNodes: also read the per datanode section

    Returns
    ---------
    Report(summary, datanodes) where summary is a ClusterSummary with
    the fields found so far and datanodes maps node name to
    DatanodeRecord, dead nodes included. datanodes is empty when
    parseNodes is False.
    """
    lines = list(lines)
    if not "".join(lines).strip():
        raise BlankOutputError()
    summary, nodeStart = parseSummary(lines)
    datanodes = {}
    if parseNodes and nodeStart is not None:
        datanodes = parseDatanodes(lines, nodeStart)
    return Report(summary, datanodes)


def validateSummary(summary):
    for field in SUMMARY_FIELDS:
        value = getattr(summary, field)
        if value is None:
            raise IncompleteReportError(field)
        log.debug("%s: %s", field, value)
    return summary


def liveDatanodes(datanodes):
    return dict((name, node) for name, node in datanodes.items()
                if not node.dead)
