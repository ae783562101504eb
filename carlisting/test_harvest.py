"""
Tests for feature and specification harvesting.
"""
from bs4 import BeautifulSoup

from carlisting.fields import page_text
from carlisting.harvest import (
    FEATURE_MAX_LEN,
    collect_features,
    collect_pairs,
    collect_specifications,
    harvest,
    scan_common_features,
)


def _soup(html):
    return BeautifulSoup(html, "lxml")


def test_collect_features_bounds_and_dedup():
    html = """
    <ul class="features">
      <li>Sunroof</li><li>AC</li><li>Sunroof</li><li>%s</li>
    </ul>
    <ul class="highlights"><li>Rear Camera</li></ul>
    """ % ("x" * (FEATURE_MAX_LEN + 1))
    assert collect_features(_soup(html)) == ["Sunroof", "Rear Camera"]


def test_scan_common_features_is_exact():
    text = "Comes with ABS, Airbags and a sunroof.\nPower Windowsill trim"
    assert scan_common_features(text) == ["ABS", "Airbags"]


def test_collect_pairs_from_table_definition_and_list():
    html = """
    <table><tr><th>Engine</th><td>1497 cc</td></tr><tr><td>only one cell</td></tr></table>
    <dl><dt>Fuel</dt><dd>Petrol</dd></dl>
    <ul>
      <li><span>Colour:</span><span>Grey</span></li>
      <li>Insurance: Comprehensive</li>
      <li>Just a bullet</li>
      <li><span>Empty</span><span></span></li>
    </ul>
    """
    assert collect_pairs(_soup(html)) == [
        ("Engine", "1497 cc"),
        ("Fuel", "Petrol"),
        ("Colour", "Grey"),
        ("Insurance", "Comprehensive"),
    ]


def test_collect_specifications_first_key_wins_and_bounds():
    pairs = [
        ("Engine", "1497 cc"),
        ("Engine", "1.5 L"),
        ("k" * 50, "too long a key"),
        ("Notes", "v" * 100),
    ]
    assert collect_specifications(pairs) == {"Engine": "1497 cc"}


def test_harvest_listing_page(listing_html):
    soup = _soup(listing_html)
    result = harvest(soup, page_text(listing_html))
    assert result.features == ["Sunroof", "Rear Camera", "Cruise Control"]
    assert result.specifications["Engine"] == "1956 cc"
    assert result.specifications["Fuel Type"] == "Diesel"
    assert result.specifications["Ownership"] == "Second Owner"
    assert len(result.specifications) == 10


def test_harvest_falls_back_to_vocabulary():
    html = "<p>Loaded with Sunroof and Cruise Control.</p>"
    result = harvest(_soup(html), page_text(html))
    assert result.features == ["Sunroof", "Cruise Control"]
    assert result.specifications == {}


def test_harvest_empty_page():
    result = harvest(_soup("<p>hello</p>"), "hello")
    assert result.features == []
    assert result.specifications == {}
