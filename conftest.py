"""
Shared fixtures: a rendered listing page and a temporary database.
"""
import pytest

LISTING_URL = "https://www.example.com/used-cars-in-pune/jeep-compass-2022-123"

LISTING_HTML = """
<html>
<head><title>Used 2022 Jeep Compass Limited Plus for sale</title></head>
<body>
  <div class="site-header"><img src="https://www.example.com/assets/site-logo.svg" alt="logo"></div>
  <h1 class="car-title">2022 Jeep Compass Limited Plus</h1>
  <div class="price-section"><span class="price">₹15.75 Lakh</span> <span class="emi">EMI starts ₹25,000</span></div>
  <div class="seller-name">Rahul Sharma</div>
  <div class="gallery">
    <img src="https://img.example.com/usedcar/compass-1.jpg" alt="Jeep Compass front">
    <img src="" data-src="//img.example.com/usedcar/compass-2.jpg" alt="Jeep Compass side">
    <img src="/images/usedcar/compass-3.jpg" alt="Jeep Compass rear">
    <img src="https://img.example.com/usedcar/compass-4.jpg" alt="Jeep Compass interior">
    <img src="https://img.example.com/static/logo.png" alt="Site logo">
    <img src="https://img.example.com/usedcar/compass-1.jpg" alt="Jeep Compass front again">
  </div>
  <ul class="overview">
    <li><span>Fuel Type</span><span>Diesel</span></li>
    <li><span>Transmission</span><span>Automatic</span></li>
    <li><span>Kms Driven</span><span>32,500 km</span></li>
    <li><span>Ownership</span><span>Second Owner</span></li>
    <li><span>City</span><span>Pune</span></li>
    <li><span>Registration Year</span><span>2022</span></li>
    <li><span>RTO</span><span>MH-12</span></li>
  </ul>
  <table class="specs-table">
    <tr><td>Engine</td><td>1956 cc</td></tr>
    <tr><td>Mileage</td><td>17.1 kmpl</td></tr>
    <tr><td>Seating Capacity</td><td>5</td></tr>
  </table>
  <ul class="features">
    <li>Sunroof</li>
    <li>Rear Camera</li>
    <li>Cruise Control</li>
  </ul>
  <p class="description">Well maintained Compass with full service history at the authorised dealer.</p>
</body>
</html>
"""


@pytest.fixture
def listing_html():
    return LISTING_HTML


@pytest.fixture
def listing_url():
    return LISTING_URL


@pytest.fixture
def db_path(tmp_path):
    return str(tmp_path / "db" / "listings.db")
