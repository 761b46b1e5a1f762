#!/usr/bin/python3
# hadoop_utils.py Utility methods to fetch HDFS reports for the nagios
# plugins
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
import os
import pwd
import re
import shutil
import subprocess

from hdfsnagios import constants


log = logging.getLogger(__name__)

HADOOP_BIN_RE = re.compile(r'(?:^|/)hadoop$')


class CommandError(Exception):
    pass


def getSearchPath():
    paths = os.environ.get("PATH", os.defpath).split(os.pathsep)
    for path in constants.HADOOP_SEARCH_PATHS:
        if path not in paths:
            paths.append(path)
    return os.pathsep.join(paths)


def findHadoopBin(hadoopBin):
    path = shutil.which(hadoopBin, path=getSearchPath())
    if path is None:
        raise CommandError("could not find '%s' command in $PATH, specify "
                           "--hadoop-bin?" % hadoopBin)
    if not HADOOP_BIN_RE.search(path):
        raise CommandError("invalid hadoop program '%s' given, should be "
                           "called hadoop!" % path)
    log.debug("hadoop path: %s", path)
    return path


def validateUser(user):
    try:
        pwd.getpwnam(user)
    except KeyError:
        raise CommandError("'%s' user does not exist, specify different "
                           "--hadoop-user?" % user)
    return user


def getEffectiveUser():
    uid = os.geteuid()
    try:
        return pwd.getpwuid(uid).pw_name
    except KeyError:
        raise CommandError("effective user ID %d has no passwd entry" % uid)


def getReportCommand(hadoopBin, hadoopUser):
    command = [hadoopBin] + constants.REPORT_ARGS
    if getEffectiveUser() != hadoopUser:
        # sudo reads the password from the empty stdin and fails instead of
        # prompting
        log.info("effective user ID is not %s, using sudo", hadoopUser)
        command = [constants.SUDO_PATH, "-S", "-u", hadoopUser] + command
    return command


def execCmd(command, timeout=None):
    log.debug("executing: %s", " ".join(command))
    try:
        process = subprocess.Popen(command,
                                   stdin=subprocess.PIPE,
                                   stdout=subprocess.PIPE,
                                   stderr=subprocess.STDOUT,
                                   universal_newlines=True,
                                   errors="replace")
    except OSError as e:
        raise CommandError("failed to execute '%s': %s"
                           % (" ".join(command), e))
    try:
        output = process.communicate(input="", timeout=timeout)[0]
    except subprocess.TimeoutExpired:
        process.kill()
        process.communicate()
        raise CommandError("'%s' timed out after %s secs"
                           % (" ".join(command), timeout))
    return process.returncode, output.splitlines()


def fetchReport(hadoopBin, hadoopUser, timeout=None):
    hadoopUser = validateUser(hadoopUser)
    command = getReportCommand(findHadoopBin(hadoopBin), hadoopUser)
    log.info("fetching HDFS report")
    returncode, lines = execCmd(command, timeout=timeout)
    if returncode != 0:
        raise CommandError("'%s' returned %s: %s"
                           % (" ".join(command), returncode,
                              " ".join(lines).strip()))
    return lines
