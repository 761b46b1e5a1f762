#!/usr/bin/python3
#
# check_hadoop_dfs.py -- nagios plugin to check the health of HDFS using
#                        the namenode's 'hadoop dfsadmin -report'
# Checks one of:
#   1. % HDFS space used
#   2. Replication state: under replicated, corrupt and missing blocks
#   3. Balance of % space used across the datanodes
#   4. Number of available and dead datanodes
#
# Copyright (C) 2014 Red Hat Inc
#
# This program is free software; you can redistribute it and/or
# modify it under the terms of the GNU General Public License
# as published by the Free Software Foundation; either version 2
# of the License, or (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE. See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with this program; if not, write to the Free Software
# Foundation, Inc., 51 Franklin Street, Fifth Floor, Boston, MA 02110-1301, USA
#

import argparse
import logging
import os
import sys
from collections import namedtuple

from pynag import Plugins
from pynag.Parsers import ExtraOptsParser
from pynag.Parsers.errors import ParserError
from pynag.Utils import PerfData

from hdfsnagios import constants
from hdfsnagios import dfsadmin_report
from hdfsnagios import hadoop_utils
from hdfsnagios import thresholds


log = logging.getLogger(__name__)


class CheckMode:
    HDFS_SPACE = "hdfs-space"
    REPLICATION = "replication"
    BALANCE = "balance"
    NODES = "nodes-available"


# Option dest for each mode flag
MODE_OPTIONS = [(CheckMode.HDFS_SPACE, 'hdfsSpace'),
                (CheckMode.REPLICATION, 'replication'),
                (CheckMode.BALANCE, 'balance'),
                (CheckMode.NODES, 'nodes')]

# Installed aliases select their check by name
PROGRAM_MODES = {'check_hadoop_hdfs_space': CheckMode.HDFS_SPACE,
                 'check_hadoop_replication': CheckMode.REPLICATION,
                 'check_hadoop_balance': CheckMode.BALANCE,
                 'check_hadoop_datanodes': CheckMode.NODES}

# Long options which may be given in an extra-opts ini section
EXTRA_OPTS = {'hdfs-space': 'hdfsSpace',
              'replication': 'replication',
              'balance': 'balance',
              'nodes-available': 'nodes',
              'warning': 'warning',
              'critical': 'critical',
              'hadoop-bin': 'hadoopBin',
              'hadoop-user': 'hadoopUser',
              'timeout': 'timeout'}
FLAG_OPTS = ('hdfs-space', 'replication', 'balance', 'nodes-available')

CheckResult = namedtuple('CheckResult', ['status', 'message', 'perfdata'])


class CheckError(Exception):
    pass


def escalate(status, minimum):
    return max(status, minimum)


# Corrupt or missing blocks mean potential data loss, whatever the
# under replicated thresholds say
def corruptBlocksOverride(summary, status, message):
    if summary.corrupt_blocks or summary.missing_blocks:
        return (Plugins.CRITICAL,
                "corrupt/missing blocks detected. %s" % message)
    return status, message


# Any dead datanode raises at least a warning
def deadNodesOverride(summary, status):
    if summary.datanodes_dead:
        return escalate(status, Plugins.WARNING)
    return status


def checkHdfsSpace(summary, thresholdRange):
    status = thresholdRange.evaluate(summary.dfs_used_pc)
    message = ("%.2f%% HDFS space used on %d available datanodes"
               % (summary.dfs_used_pc, summary.datanodes_available))
    warn, crit = thresholdRange.perfdataThresholds()
    perfdata = PerfData()
    perfdata.add_perfdatametric(label='HDFS Space Used',
                                value=thresholds.formatNumber(
                                    summary.dfs_used_pc), uom='%',
                                warn=warn, crit=crit)
    perfdata.add_perfdatametric(label='HDFS Used Capacity',
                                value=str(summary.dfs_used), uom='B',
                                min='0',
                                max=str(summary.configured_capacity))
    perfdata.add_perfdatametric(label='HDFS Present Capacity',
                                value=str(summary.present_capacity),
                                uom='B')
    perfdata.add_perfdatametric(label='HDFS Configured Capacity',
                                value=str(summary.configured_capacity),
                                uom='B')
    perfdata.add_perfdatametric(label='Datanodes Available',
                                value=str(summary.datanodes_available))
    return CheckResult(status, message, perfdata)


def checkReplication(summary, thresholdRange):
    status = thresholdRange.evaluate(summary.under_replicated_blocks)
    message = ("under replicated blocks: %d, corrupt blocks: %d, "
               "missing blocks: %d" % (summary.under_replicated_blocks,
                                       summary.corrupt_blocks,
                                       summary.missing_blocks))
    status, message = corruptBlocksOverride(summary, status, message)
    warn, crit = thresholdRange.perfdataThresholds()
    perfdata = PerfData()
    perfdata.add_perfdatametric(label='under replicated blocks',
                                value=str(summary.under_replicated_blocks),
                                warn=warn, crit=crit)
    perfdata.add_perfdatametric(label='corrupt blocks',
                                value=str(summary.corrupt_blocks))
    perfdata.add_perfdatametric(label='missing blocks',
                                value=str(summary.missing_blocks))
    return CheckResult(status, message, perfdata)


def getImbalance(summary, datanodes):
    imbalance = {}
    for name, node in datanodes.items():
        if node.used_pc is None:
            raise CheckError("failed to determine DFS Used%% for datanode "
                             "'%s'" % name)
        imbalance[name] = abs(summary.dfs_used_pc - node.used_pc)
    return imbalance


# Nodes at or beyond the warning bound, formatted for the status message
def getImbalancedNodes(imbalance, bound):
    return ["%s(%.2f%%)" % (name, imbalance[name])
            for name in sorted(imbalance)
            if bound is None or imbalance[name] >= bound]


def checkBalance(summary, datanodes, thresholdRange):
    datanodes = dfsadmin_report.liveDatanodes(datanodes)
    for name in sorted(datanodes):
        log.debug("datanode '%s' used pc: %s", name, datanodes[name].used_pc)
    if len(datanodes) != summary.datanodes_available:
        raise CheckError("Mismatch on collected number of datanode used %% "
                         "(%d) and number of available datanodes (%d)"
                         % (len(datanodes), summary.datanodes_available))
    if not datanodes:
        raise CheckError("no available datanodes to check HDFS balance")
    imbalance = getImbalance(summary, datanodes)
    largest = float("%.2f" % max(imbalance.values()))
    status = thresholdRange.evaluate(largest)
    message = ("%.2f%% HDFS imbalance on space used %% across %d datanodes"
               % (largest, len(datanodes)))
    if status in (Plugins.WARNING, Plugins.CRITICAL):
        imbalanced = getImbalancedNodes(imbalance,
                                        thresholdRange.warning.upper)
        if imbalanced:
            message += " [imbalanced nodes: %s]" % ",".join(imbalanced)
    warn, crit = thresholdRange.perfdataThresholds()
    perfdata = PerfData()
    perfdata.add_perfdatametric(label='HDFS imbalance on space used %',
                                value="%.2f" % largest, uom='%',
                                warn=warn, crit=crit)
    return CheckResult(status, message, perfdata)


def checkNodes(summary, thresholdRange):
    status = thresholdRange.evaluate(summary.datanodes_available)
    status = deadNodesOverride(summary, status)
    message = ("%d datanodes available, %d dead, %d total"
               % (summary.datanodes_available, summary.datanodes_dead,
                  summary.datanodes_total))
    warn, crit = thresholdRange.perfdataThresholds()
    perfdata = PerfData()
    perfdata.add_perfdatametric(label='Datanodes Available',
                                value=str(summary.datanodes_available),
                                warn=warn, crit=crit)
    perfdata.add_perfdatametric(label='Datanodes Dead',
                                value=str(summary.datanodes_dead))
    perfdata.add_perfdatametric(label='Datanodes Total',
                                value=str(summary.datanodes_total))
    return CheckResult(status, message, perfdata)


def runCheck(mode, report, thresholdRange):
    if mode == CheckMode.HDFS_SPACE:
        return checkHdfsSpace(report.summary, thresholdRange)
    elif mode == CheckMode.REPLICATION:
        return checkReplication(report.summary, thresholdRange)
    elif mode == CheckMode.BALANCE:
        return checkBalance(report.summary, report.datanodes,
                            thresholdRange)
    elif mode == CheckMode.NODES:
        return checkNodes(report.summary, thresholdRange)
    raise CheckError("no test section specified")


def checkReport(mode, lines, thresholdRange):
    log.info("parsing HDFS report")
    report = dfsadmin_report.parseReport(
        lines, parseNodes=(mode == CheckMode.BALANCE))
    dfsadmin_report.validateSummary(report.summary)
    return runCheck(mode, report, thresholdRange)


def getThresholdRange(mode, warning, critical):
    if mode == CheckMode.NODES:
        return thresholds.ThresholdRange(warning, critical,
                                         simple=thresholds.LOWER,
                                         integer=True, positive=True)
    return thresholds.ThresholdRange(warning, critical)


def formatOutput(result):
    return "%s: %s | %s" % (constants.STATUS_STRS[result.status],
                            result.message, result.perfdata)


class PluginArgumentParser(argparse.ArgumentParser):
    # nagios reads exit code 2 as CRITICAL, usage errors are UNKNOWN
    def error(self, message):
        sys.stdout.write("%s: %s\n" % (
            constants.STATUS_STRS[Plugins.UNKNOWN], message))
        self.print_usage(sys.stdout)
        sys.exit(Plugins.UNKNOWN)


def createParser(progName=None):
    parser = PluginArgumentParser(
        prog=progName,
        description="Nagios plugin to check HDFS space used, replication, "
                    "balance or available datanodes using the output of "
                    "'hadoop dfsadmin -report'")
    parser.add_argument('-s', '--hdfs-space', action='store_true',
                        dest='hdfsSpace',
                        help='Checks %% HDFS space used against given '
                             'warning/critical thresholds')
    parser.add_argument('-r', '--replication', action='store_true',
                        dest='replication',
                        help='Checks under replicated blocks against the '
                             'thresholds. Corrupt or missing blocks raise '
                             'critical')
    parser.add_argument('-b', '--balance', action='store_true',
                        dest='balance',
                        help='Checks the %% HDFS space used of every '
                             'datanode is within thresholds of the cluster '
                             'wide %% used')
    parser.add_argument('-n', '--nodes-available', action='store_true',
                        dest='nodes',
                        help='Checks the number of available datanodes '
                             'against thresholds as lower limits. Any dead '
                             'datanode raises warning')
    parser.add_argument('-w', '--warning', action='store', dest='warning',
                        type=str, help='Warning threshold or ran:ge '
                                       '(inclusive)')
    parser.add_argument('-c', '--critical', action='store', dest='critical',
                        type=str, help='Critical threshold or ran:ge '
                                       '(inclusive)')
    parser.add_argument('--hadoop-bin', action='store', dest='hadoopBin',
                        type=str, default=constants.DEFAULT_HADOOP_BIN,
                        help="Path to 'hadoop' command if not in $PATH")
    parser.add_argument('--hadoop-user', action='store', dest='hadoopUser',
                        type=str, default=constants.DEFAULT_HADOOP_USER,
                        help='User to fetch the report as, sudo is used if '
                             'this is not the current user')
    parser.add_argument('-t', '--timeout', action='store', dest='timeout',
                        type=int, default=constants.DEFAULT_TIMEOUT,
                        help='Secs to wait for the report command')
    parser.add_argument('-v', '--verbose', action='count', dest='verbose',
                        default=0, help='Verbose mode, repeat for more')
    parser.add_argument('--extra-opts', action='store', dest='extraOpts',
                        nargs='?', const='',
                        help='Read options from an ini file, '
                             '[section][@file]')
    return parser


def readExtraOpts(extraOpts):
    sectionName = None
    configFile = None
    if '@' in extraOpts:
        sectionName, configFile = extraOpts.split('@', 1)
    elif extraOpts:
        sectionName = extraOpts
    values = ExtraOptsParser(section_name=sectionName or None,
                             config_file=configFile or None).get_values()
    defaults = {}
    for option, dest in EXTRA_OPTS.items():
        if option not in values:
            continue
        if option in FLAG_OPTS:
            defaults[dest] = True
        else:
            defaults[dest] = values[option][-1]
    return defaults


def getProgramMode(progName):
    name = os.path.basename(progName or "")
    if name.endswith(".py"):
        name = name[:-len(".py")]
    return PROGRAM_MODES.get(name)


def getCheckMode(args, progName):
    modes = [mode for mode, dest in MODE_OPTIONS if getattr(args, dest)]
    implied = getProgramMode(progName)
    if implied is not None and implied not in modes:
        log.info("checking %s", implied)
        modes.append(implied)
    return modes


def parse_input(argv=None, progName=None):
    if progName is None:
        progName = os.path.basename(sys.argv[0])
    parser = createParser(progName)
    args = parser.parse_args(argv)
    if args.extraOpts is not None:
        try:
            parser.set_defaults(**readExtraOpts(args.extraOpts))
        except (IOError, ParserError) as e:
            parser.error("unable to read extra-opts: %s" % e)
        args = parser.parse_args(argv)

    modes = getCheckMode(args, progName)
    if not modes:
        parser.error("must specify one of --hdfs-space / --replication / "
                     "--balance / --nodes-available to check")
    if len(modes) > 1:
        parser.error("can only check one of HDFS space used %, "
                     "replication, HDFS balance, datanodes available at "
                     "one time, otherwise the warning/critical thresholds "
                     "will conflict")
    mode = modes[0]
    try:
        thresholdRange = getThresholdRange(mode, args.warning, args.critical)
    except thresholds.InvalidThresholdError as e:
        parser.error(str(e))
    return args, mode, thresholdRange


def setupLogging(verbose):
    level = logging.WARNING
    if verbose == 1:
        level = logging.INFO
    elif verbose > 1:
        level = logging.DEBUG
    logging.basicConfig(stream=sys.stderr, level=level,
                        format="%(levelname)s %(name)s: %(message)s")


def main(argv=None, progName=None):
    args, mode, thresholdRange = parse_input(argv, progName)
    setupLogging(args.verbose)
    log.debug("checking %s with %r", mode, thresholdRange)
    try:
        lines = hadoop_utils.fetchReport(args.hadoopBin, args.hadoopUser,
                                         timeout=args.timeout)
        result = checkReport(mode, lines, thresholdRange)
    except (hadoop_utils.CommandError,
            dfsadmin_report.ReportError,
            CheckError) as e:
        print("%s: %s" % (constants.STATUS_STRS[Plugins.UNKNOWN], e))
        return Plugins.UNKNOWN
    print(formatOutput(result))
    return result.status


if __name__ == '__main__':
    sys.exit(main())
