"""
Tests for time and pace formatting
"""

from paceline.predictions.formatting import format_duration, format_pace


class TestFormatDuration:
    """Tests for format_duration"""

    def test_under_an_hour_omits_hours(self):
        assert format_duration(1500) == "25:00"

    def test_over_an_hour(self):
        assert format_duration(3725) == "1:02:05"

    def test_rounds_to_nearest_second(self):
        assert format_duration(59.6) == "1:00"
        assert format_duration(3599.7) == "1:00:00"

    def test_negative_clamped_to_zero(self):
        assert format_duration(-5) == "0:00"

    def test_non_finite_is_zero(self):
        assert format_duration(float("nan")) == "0:00"


class TestFormatPace:
    """Tests for format_pace"""

    def test_five_minute_pace(self):
        assert format_pace(1500, 5) == "5:00/km"

    def test_rounding_never_shows_sixty_seconds(self):
        assert format_pace(299.6, 1) == "5:00/km"

    def test_seconds_are_zero_padded(self):
        assert format_pace(2583, 10) == "4:18/km"

    def test_zero_distance(self):
        assert format_pace(1500, 0) == "0:00/km"
