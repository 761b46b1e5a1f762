#!/usr/bin/python3
# thresholds.py Warning/critical threshold handling for the HDFS plugins
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

from pynag.Plugins import classic_threshold_syntax


log = logging.getLogger(__name__)

UPPER = "upper"
LOWER = "lower"

_NUMBER = r'[-+]?\d+(?:\.\d+)?'
SIMPLE_RE = re.compile(r'^(%s)$' % _NUMBER)
RANGE_RE = re.compile(r'^(~|%s)?:(%s)?$' % (_NUMBER, _NUMBER))


class InvalidThresholdError(Exception):
    pass


class Threshold(namedtuple('Threshold', ['lower', 'upper'])):
    # Nagios range string, alerting outside [lower, upper]
    def toRange(self):
        start = '~' if self.lower is None else formatNumber(self.lower)
        end = '' if self.upper is None else formatNumber(self.upper)
        return "%s:%s" % (start, end)


def formatNumber(value):
    if value is None:
        return ""
    if float(value).is_integer():
        return "%d" % value
    return "%s" % value


def _toNumber(text, name, integer, positive):
    if integer and not re.match(r'^[-+]?\d+$', text):
        raise InvalidThresholdError("%s threshold must be an integer: %s"
                                    % (name, text))
    value = int(text) if re.match(r'^[-+]?\d+$', text) else float(text)
    if positive and value < 0:
        raise InvalidThresholdError("%s threshold cannot be negative: %s"
                                    % (name, text))
    return value


def parseThreshold(text, simple=UPPER, integer=False, positive=False,
                   name="threshold"):
    if text is None:
        raise InvalidThresholdError("%s threshold not defined" % name)
    text = str(text).strip()
    match = SIMPLE_RE.match(text)
    if match:
        value = _toNumber(match.group(1), name, integer, positive)
        if simple == LOWER:
            return Threshold(value, None)
        return Threshold(None, value)
    match = RANGE_RE.match(text)
    if not match or text == ":":
        raise InvalidThresholdError("invalid %s threshold given: '%s'"
                                    % (name, text))
    lower, upper = match.groups()
    if lower == '~':
        lower = None
    if lower is not None:
        lower = _toNumber(lower, name, integer, positive)
    if upper is not None:
        upper = _toNumber(upper, name, integer, positive)
    if lower is not None and upper is not None and lower > upper:
        raise InvalidThresholdError("%s threshold lower bound %s cannot be "
                                    "greater than upper bound %s"
                                    % (name, formatNumber(lower),
                                       formatNumber(upper)))
    return Threshold(lower, upper)


class ThresholdRange(object):
    """
    Warning and critical thresholds for a single check.

    'simple' decides how a bare number is read: UPPER means the value
    must not exceed it, LOWER means the value must not fall below it.
    Both bounds are inclusive, a value equal to the threshold is fine.
    """

    def __init__(self, warning, critical, simple=UPPER, integer=False,
                 positive=False):
        self.simple = simple
        self.warning = parseThreshold(warning, simple, integer, positive,
                                      "warning")
        self.critical = parseThreshold(critical, simple, integer, positive,
                                       "critical")
        self._validateOrder()

    def _validateOrder(self):
        if self.simple == LOWER:
            warn, crit = self.warning.lower, self.critical.lower
            if warn is not None and crit is not None and warn < crit:
                raise InvalidThresholdError(
                    "warning threshold (%s) cannot be lower than critical "
                    "threshold (%s)" % (formatNumber(warn),
                                         formatNumber(crit)))
        else:
            warn, crit = self.warning.upper, self.critical.upper
            if warn is not None and crit is not None and warn > crit:
                raise InvalidThresholdError(
                    "warning threshold (%s) cannot be greater than critical "
                    "threshold (%s)" % (formatNumber(warn),
                                         formatNumber(crit)))

    def evaluate(self, value):
        status = classic_threshold_syntax.check_threshold(
            value,
            warning=self.warning.toRange(),
            critical=self.critical.toRange())
        log.debug("value %s against warning '%s' critical '%s' -> %s",
                  value, self.warning.toRange(), self.critical.toRange(),
                  status)
        return status

    # Bounds shown in perfdata, on the side the check alerts on
    def perfdataThresholds(self):
        if self.simple == LOWER:
            return (formatNumber(self.warning.lower),
                    formatNumber(self.critical.lower))
        return (formatNumber(self.warning.upper),
                formatNumber(self.critical.upper))

    def __repr__(self):
        return "ThresholdRange(warning='%s', critical='%s', simple=%s)" % (
            self.warning.toRange(), self.critical.toRange(), self.simple)
