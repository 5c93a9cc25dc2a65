"""
Tests for sharing_audit/thresholds.py - severity classification
"""

import logging
import pytest
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'scripts'))

from sharing_audit.thresholds import Severity, evaluate_threshold


class TestEvaluateThreshold:
    """Tests for evaluate_threshold function."""

    @pytest.mark.parametrize("count,expected", [
        (0, Severity.NORMAL),
        (99, Severity.NORMAL),
        (100, Severity.WARNING),
        (499, Severity.WARNING),
        (500, Severity.CRITICAL),
        (10000, Severity.CRITICAL),
    ])
    def test_default_boundaries(self, count, expected):
        assert evaluate_threshold(count) is expected

    def test_custom_thresholds(self):
        assert evaluate_threshold(4, warning=5, critical=10) is Severity.NORMAL
        assert evaluate_threshold(5, warning=5, critical=10) is Severity.WARNING
        assert evaluate_threshold(10, warning=5, critical=10) is Severity.CRITICAL

    def test_equal_thresholds_skip_warning(self):
        assert evaluate_threshold(7, warning=7, critical=7) is Severity.CRITICAL

    def test_rejects_descending_thresholds(self):
        with pytest.raises(ValueError):
            evaluate_threshold(1, warning=500, critical=100)


class TestSeverityLogLevel:
    """Tests for Severity.log_level."""

    def test_levels(self):
        assert Severity.NORMAL.log_level == logging.INFO
        assert Severity.WARNING.log_level == logging.WARNING
        assert Severity.CRITICAL.log_level == logging.ERROR
