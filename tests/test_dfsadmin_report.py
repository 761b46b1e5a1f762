#
# Copyright 2014 Red Hat, Inc.
#
# This program is free software; you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation; either version 2 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with this program; if not, write to the Free Software
# Foundation, Inc., 51 Franklin Street, Fifth Floor, Boston, MA  02110-1301 USA
#
# Refer to the README and COPYING files for full details of the license
#

from hdfsnagios import dfsadmin_report
from testrunner import PluginsTestCase as TestCaseBase


class TestDfsadminReport(TestCaseBase):

    # Method to test the cluster totals of a complete report
    def testParseSummary(self):
        report = dfsadmin_report.parseReport(self.reportLines(_getReport()))
        summary = report.summary
        self.assertEqual(summary.configured_capacity, 3176014290944)
        self.assertEqual(summary.configured_capacity_human, "2.89 TB")
        self.assertEqual(summary.present_capacity, 3014364319744)
        self.assertEqual(summary.present_capacity_human, "2.74 TB")
        self.assertEqual(summary.dfs_remaining, 1527152140288)
        self.assertEqual(summary.dfs_remaining_human, "1.39 TB")
        self.assertEqual(summary.dfs_used, 1487212179456)
        self.assertEqual(summary.dfs_used_human, "1.35 TB")
        self.assertEqual(summary.dfs_used_pc, 49.34)
        self.assertEqual(summary.under_replicated_blocks, 3)
        self.assertEqual(summary.corrupt_blocks, 0)
        self.assertEqual(summary.missing_blocks, 0)
        self.assertEqual(summary.datanodes_available, 3)
        self.assertEqual(summary.datanodes_total, 4)
        self.assertEqual(summary.datanodes_dead, 1)
        self.assertEqual(dfsadmin_report.validateSummary(summary), summary)

    # Method to test the per datanode section, dead node included
    def testParseDatanodes(self):
        report = dfsadmin_report.parseReport(self.reportLines(_getReport()))
        self.assertEqual(sorted(report.datanodes),
                         ["10.0.0.1:50010", "10.0.0.2:50010",
                          "10.0.0.3:50010", "10.0.0.4:50010"])
        node = report.datanodes["10.0.0.2:50010"]
        self.assertEqual(node.used_pc, 45.12)
        self.assertFalse(node.dead)
        self.assertTrue(report.datanodes["10.0.0.4:50010"].dead)
        live = dfsadmin_report.liveDatanodes(report.datanodes)
        self.assertEqual(sorted(live), ["10.0.0.1:50010", "10.0.0.2:50010",
                                        "10.0.0.3:50010"])

    def testParseWithoutDatanodes(self):
        report = dfsadmin_report.parseReport(self.reportLines(_getReport()),
                                             parseNodes=False)
        self.assertEqual(report.datanodes, {})
        self.assertEqual(report.summary.datanodes_available, 3)

    # Labels are matched case insensitively in the totals
    def testParseSummaryIgnoresCase(self):
        report = dfsadmin_report.parseReport(
            self.reportLines(_getReport().replace("Missing blocks",
                                                  "MISSING BLOCKS")))
        self.assertEqual(report.summary.missing_blocks, 0)

    def testParseIsRepeatable(self):
        lines = self.reportLines(_getReport())
        self.assertEqual(dfsadmin_report.parseReport(lines),
                         dfsadmin_report.parseReport(lines))

    def testBlankOutput(self):
        self.assertRaises(dfsadmin_report.BlankOutputError,
                          dfsadmin_report.parseReport, ["", "   ", "\t"])
        self.assertRaises(dfsadmin_report.BlankOutputError,
                          dfsadmin_report.parseReport, [])

    def testUnrecognizedTotalsLine(self):
        lines = self.reportLines(_getReport().replace(
            "Under replicated blocks", "Under-replicated blocks"))
        with self.assertRaises(dfsadmin_report.UnrecognizedLineError) as cm:
            dfsadmin_report.parseReport(lines, parseNodes=False)
        self.assertEqual(cm.exception.line, "Under-replicated blocks: 3")
        self.assertEqual(str(cm.exception),
                         "Unrecognized line in output while parsing "
                         "totals: Under-replicated blocks: 3")

    def testUnrecognizedNodeLine(self):
        lines = self.reportLines(_getReport().replace(
            "Rack: /default-rack", "Cache Used: 0 (0 B)", 1))
        self.assertRaises(dfsadmin_report.UnrecognizedLineError,
                          dfsadmin_report.parseReport, lines)
        # totals only parse does not read the node section
        report = dfsadmin_report.parseReport(lines, parseNodes=False)
        self.assertEqual(report.summary.datanodes_total, 4)

    def testNodeFieldWithoutName(self):
        lines = self.reportLines(_getReport())
        index = lines.index("Name: 10.0.0.2:50010")
        lines[index] = ""
        self.assertRaises(dfsadmin_report.ParserStateError,
                          dfsadmin_report.parseReport, lines)

    def testIncompleteSummary(self):
        lines = [line for line in self.reportLines(_getReport())
                 if not line.startswith("Missing blocks")]
        report = dfsadmin_report.parseReport(lines)
        self.assertEqual(report.summary.missing_blocks, None)
        with self.assertRaises(dfsadmin_report.IncompleteReportError) as cm:
            dfsadmin_report.validateSummary(report.summary)
        self.assertEqual(cm.exception.field, "missing_blocks")

    # The human readable size is optional for the parser, but required
    def testSummaryWithoutHumanSize(self):
        lines = self.reportLines(_getReport().replace(
            "Present Capacity: 3014364319744 (2.74 TB)",
            "Present Capacity: 3014364319744"))
        summary = dfsadmin_report.parseReport(lines).summary
        self.assertEqual(summary.present_capacity, 3014364319744)
        with self.assertRaises(dfsadmin_report.IncompleteReportError) as cm:
            dfsadmin_report.validateSummary(summary)
        self.assertEqual(cm.exception.field, "present_capacity_human")

    def testDatanodeTotalsMissing(self):
        lines = self.reportLines(_getReport().replace(
            "Datanodes available: 3 (4 total, 1 dead)",
            "Datanodes available: 3"))
        summary = dfsadmin_report.parseReport(lines).summary
        self.assertEqual(summary.datanodes_available, 3)
        with self.assertRaises(dfsadmin_report.IncompleteReportError) as cm:
            dfsadmin_report.validateSummary(summary)
        self.assertEqual(cm.exception.field, "datanodes_total")

    def testSummaryOnlyReport(self):
        lines = self.reportLines(_getReport().split("Name:")[0])
        report = dfsadmin_report.parseReport(lines)
        self.assertEqual(report.datanodes, {})
        dfsadmin_report.validateSummary(report.summary)


def _getReport():
    return """Configured Capacity: 3176014290944 (2.89 TB)
Present Capacity: 3014364319744 (2.74 TB)
DFS Remaining: 1527152140288 (1.39 TB)
DFS Used: 1487212179456 (1.35 TB)
DFS Used%: 49.34%
Under replicated blocks: 3
Blocks with corrupt replicas: 0
Missing blocks: 0

-------------------------------------------------
Datanodes available: 3 (4 total, 1 dead)

Name: 10.0.0.1:50010
Rack: /default-rack
Decommission Status : Normal
Configured Capacity: 1058671430656 (985.97 GB)
DFS Used: 560181280768 (521.71 GB)
Non DFS Used: 53883990016 (50.18 GB)
DFS Remaining: 444606159872(414.08 GB)
DFS Used%: 52.91%
DFS Remaining%: 42%
Last contact: Fri Aug 24 12:20:34 BST 2012


Name: 10.0.0.2:50010
Rack: /default-rack
Decommission Status : Normal
Configured Capacity: 1058671430656 (985.97 GB)
DFS Used: 477671768064 (444.87 GB)
Non DFS Used: 53883990016 (50.18 GB)
DFS Remaining: 527115672576(490.92 GB)
DFS Used%: 45.12%
DFS Remaining%: 49.79%
Last contact: Fri Aug 24 12:20:33 BST 2012


Name: 10.0.0.3:50010
Rack: /default-rack
Decommission Status : Normal
Configured Capacity: 1058671430656 (985.97 GB)
DFS Used: 449359130624 (418.5 GB)
Non DFS Used: 53881991168 (50.18 GB)
DFS Remaining: 555430308864(517.29 GB)
DFS Used%: 42.45%
DFS Remaining%: 52.47%
Last contact: Fri Aug 24 12:20:35 BST 2012


Name: 10.0.0.4:50010
Rack: /default-rack
Decommission Status : Normal
Configured Capacity: 0 (0 KB)
DFS Used: 0 (0 KB)
Non DFS Used: 0 (0 KB)
DFS Remaining: 0(0 KB)
DFS Used%: 100%
DFS Remaining%: 0%
Last contact: Thu Aug 23 09:02:11 BST 2012

"""
