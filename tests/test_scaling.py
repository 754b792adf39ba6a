"""
Tests for scaling and clipping.
"""

import pytest

from midi_ccmap.messages import DestinationType
from midi_ccmap.scaling import clip, scale, scale_and_clip


class TestScale:
    """Test linear scaling"""

    def test_seven_to_fourteen_bit_endpoints(self):
        assert scale(0, 127, 0, 16383) == 0
        assert scale(127, 127, 0, 16383) == 16383

    def test_exact_midpoint(self):
        assert scale(64, 127, 0, 16383) == 8256
        assert scale(64, 127, 0, 127) == 64

    def test_truncates_positive_results(self):
        """1 of 127 onto 0..100 is 0.79, truncated to 0"""
        assert scale(1, 127, 0, 100) == 0
        assert scale(126, 127, 0, 100) == 99

    def test_truncates_toward_zero_for_negative_spans(self):
        # floor division would give -1 and -4129
        assert scale(1, 127, 0, -100) == 0
        assert scale(64, 127, 0, -8192) == -4128

    def test_reversed_range(self):
        assert scale(0, 127, 127, 0) == 127
        assert scale(127, 127, 127, 0) == 0

    def test_offset_range(self):
        assert scale(0, 127, 100, 500) == 100
        assert scale(127, 127, 100, 500) == 500

    def test_fourteen_bit_source(self):
        assert scale(16383, 16383, 0, 127) == 127
        assert scale(8192, 16383, 0, 127) == 63
        assert scale(0, 16383, 0, 127) == 0

    @pytest.mark.parametrize("value_from,value_to", [(0, 127), (0, 16383), (100, 500), (-64, 191)])
    def test_monotonic_non_decreasing(self, value_from, value_to):
        results = [scale(v, 127, value_from, value_to) for v in range(128)]
        assert results == sorted(results)

    @pytest.mark.parametrize("value_from,value_to", [(127, 0), (16383, 0), (0, -8192)])
    def test_monotonic_non_increasing(self, value_from, value_to):
        results = [scale(v, 127, value_from, value_to) for v in range(128)]
        assert results == sorted(results, reverse=True)


class TestClip:
    """Test clipping to destination ranges"""

    def test_seven_bit_destinations(self):
        for dest in (DestinationType.CC, DestinationType.AFTERTOUCH):
            assert clip(-5, dest) == 0
            assert clip(64, dest) == 64
            assert clip(200, dest) == 127

    def test_fourteen_bit_destinations(self):
        for dest in (DestinationType.NRPN, DestinationType.RPN, DestinationType.PITCH_BEND):
            assert clip(-1, dest) == 0
            assert clip(8192, dest) == 8192
            assert clip(20000, dest) == 16383

    def test_never_outside_range(self):
        for dest in DestinationType:
            if dest is DestinationType.NONE:
                continue
            low, high = dest.value_range
            for value in (-10**9, -1, 0, 127, 128, 16383, 16384, 10**9):
                assert low <= clip(value, dest) <= high

    def test_none_has_no_range(self):
        with pytest.raises(ValueError):
            clip(0, DestinationType.NONE)


class TestScaleAndClip:
    """Clipping happens after scaling"""

    def test_partial_range_clips(self):
        assert scale_and_clip(0, 127, -64, 191, DestinationType.CC) == 0
        assert scale_and_clip(64, 127, -64, 191, DestinationType.CC) == 64
        assert scale_and_clip(127, 127, -64, 191, DestinationType.CC) == 127
