#!/usr/bin/python3
# constants.py Defaults shared by the HDFS nagios plugins
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
from pynag import Plugins


DEFAULT_HADOOP_BIN = "hadoop"
DEFAULT_HADOOP_USER = "hadoop"
DEFAULT_TIMEOUT = 10

# Appended to PATH when looking up the hadoop binary
HADOOP_SEARCH_PATHS = ["/opt/hadoop/bin", "/usr/local/hadoop/bin"]

REPORT_ARGS = ["dfsadmin", "-report"]
SUDO_PATH = "sudo"

STATUS_STRS = {Plugins.OK: 'OK',
               Plugins.WARNING: 'WARNING',
               Plugins.CRITICAL: 'CRITICAL',
               Plugins.UNKNOWN: 'UNKNOWN'}
