import json
from pathlib import Path

import pytest

from heating import generate_progress_string
from utils import format_program_duration, format_time_display


def load_time_cases():
    json_path = Path(__file__).parent / "test_data" / "time_display_cases.json"
    with open(json_path, "r", encoding="utf-8") as f:
        cases = json.load(f)
    return [(name, case["seconds"], case["display"], case["program"]) for name, case in cases.items()]


@pytest.mark.parametrize("name, seconds, display, program", load_time_cases())
def test_time_formatting(name, seconds, display, program):
    assert format_time_display(seconds) == display
    assert format_program_duration(seconds) == program


@pytest.mark.parametrize(
    "power, elapsed, char, expected",
    [
        (2, 3, "∩", "∩∩ ∩∩ ∩∩"),
        (1, 1, ".", "."),
        (3, 2, None, "... ..."),
        (10, 0, ".", ""),
        (5, -2, ".", ""),
    ],
)
def test_generate_progress_string(power, elapsed, char, expected):
    assert generate_progress_string(power, elapsed, char) == expected


def test_progress_string_length():
    # power * elapsed characters plus one separator between segments
    assert len(generate_progress_string(10, 30)) == 10 * 30 + 29
