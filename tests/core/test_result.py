"""
Tests for the Result envelope and Timer.
"""

import dataclasses

import pytest

from pymlid.core.compute.timing import Timer
from pymlid.core.result import Result


class TestResult:

    def test_defaults_to_no_warnings(self):
        result = Result(params=1, info={}, timing=None, method_name='x')
        assert result.warnings == ()
        assert not result.has_warning('anything')

    def test_has_warning_substring(self):
        result = Result(
            params=1, info={}, timing=None, method_name='x',
            warnings=("Total population not supplied; estimated",),
        )
        assert result.has_warning('not supplied')
        assert not result.has_warning('optimizer')

    def test_frozen(self):
        result = Result(params=1, info={}, timing=None, method_name='x')
        with pytest.raises(dataclasses.FrozenInstanceError):
            result.params = 2


class TestTimer:

    def test_sections_recorded(self):
        timer = Timer()
        timer.start()
        with timer.section('fit'):
            pass
        with timer.section('fit'):
            pass
        timer.stop()
        timing = timer.result()
        assert 'total_seconds' in timing
        assert timing['fit'] >= 0.0
        assert timing['total_seconds'] >= timing['fit']

    def test_result_before_stop(self):
        timer = Timer()
        timer.start()
        with pytest.raises(RuntimeError, match="before stop"):
            timer.result()

    def test_reserved_section_name(self):
        timer = Timer()
        with pytest.raises(ValueError, match="reserved"):
            with timer.section('total_seconds'):
                pass
