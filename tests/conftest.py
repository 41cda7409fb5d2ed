"""Shared fixtures for cliptimings tests."""

import pytest

from cliptimings.catalog import build_catalog


CATALOG_RECORDS = [
    {"id": "s1", "title": "좋은날", "artist": "아이유",
     "artistAlias": "IU", "titleAlias": "Good Day", "searchTags": []},
    {"id": "s2", "title": "난춘", "artist": "새소년",
     "artistAlias": "SE SO NEON", "searchTags": ["난춘(亂春)"]},
    {"id": "s3", "title": "Hype Boy", "artist": "NewJeans",
     "titleAlias": "하입보이", "searchTags": ["뉴진스"]},
    {"id": "s4", "title": "밤양갱", "artist": "비비",
     "artistAlias": "BIBI", "searchTags": ["bamyanggaeng"]},
    {"id": "s5", "title": "Love wins all", "artist": "아이유",
     "searchTags": []},
]


@pytest.fixture
def catalog():
    """Small Korean/English catalog snapshot."""
    return build_catalog(CATALOG_RECORDS)


def make_anchor(url, label, text, br=True):
    """One timeline line: ``<a href="url">label</a> text<br>``."""
    return f'<a href="{url}">{label}</a> {text}' + ("<br>" if br else "")


@pytest.fixture
def timeline_html():
    """Three-song comment with entity-escaped URLs, given out of order."""
    base = "https://www.youtube.com/watch?v=abc123&amp;t="
    return (
        "타임라인<br>"
        + make_anchor(base + "410", "6:50", "아이유 - 좋은날")
        + make_anchor(base + "125", "2:05", "새소년 - 난춘")
        + make_anchor(base + "900", "15:00", "오프닝 토크", br=False)
    )
