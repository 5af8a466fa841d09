from datetime import datetime

import pytest

from kaiji.collectors.disclosure_scraper import JST


@pytest.fixture
def scan_time():
    return JST.localize(datetime(2024, 1, 15, 10, 30))
