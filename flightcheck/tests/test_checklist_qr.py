"""
QR payload codec: student links in, student ids out.
"""
from __future__ import annotations

import base64

import pytest

from flightcheck.checklist.qr import build_student_url, extract_student_id, render_qr_data_uri, student_path


def test_build_student_url_encodes_id_and_trims_base():
    assert build_student_url("abc", "https://fc.example/") == "https://fc.example/instructor/student/abc"
    assert build_student_url("a b/c", "https://fc.example") == "https://fc.example/instructor/student/a%20b%2Fc"


def test_student_path_keeps_component_safe_characters():
    assert student_path("ab-c_d.e!~*'()") == "/instructor/student/ab-c_d.e!~*'()"


def test_extract_from_absolute_url():
    assert extract_student_id("https://fc.example/instructor/student/abc") == "abc"


def test_extract_decodes_percent_encoding():
    url = build_student_url("a b/c", "https://fc.example")
    assert extract_student_id(url) == "a b/c"


def test_absolute_url_without_student_path_is_none():
    assert extract_student_id("https://fc.example/dashboard") is None


def test_extract_from_bare_path():
    assert extract_student_id("  /instructor/student/xyz  ") == "xyz"


def test_bare_id_is_taken_verbatim():
    assert extract_student_id("  student-42 ") == "student-42"


@pytest.mark.parametrize("text", [None, "", "   ", "\n\t"])
def test_empty_input_is_none(text):
    assert extract_student_id(text) is None


def test_broken_url_falls_through_to_path_match():
    # An unterminated IPv6 host fails to parse; the path is still found.
    assert extract_student_id("http://[::1/instructor/student/zz") == "zz"


def test_decoder_is_total_on_odd_input():
    for text in ("%", "http://", "https://%zz", "/instructor/student/%E0%A4%A"):
        extract_student_id(text)


def test_render_qr_data_uri_is_png():
    uri = render_qr_data_uri("https://fc.example/instructor/student/abc")
    assert uri.startswith("data:image/png;base64,")
    raw = base64.b64decode(uri.split(",", 1)[1])
    assert raw[:8] == b"\x89PNG\r\n\x1a\n"
