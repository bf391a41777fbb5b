import pytest

from adlib_scraper.config import ScraperConfig
from adlib_scraper.events import ProgressReporter
from adlib_scraper.storage import ScreenshotStore

from fakes import FakeSink, RecordingBus


@pytest.fixture
def config(tmp_path):
    return ScraperConfig.immediate(
        screenshots_dir=str(tmp_path / "shots"),
        debug_dir=str(tmp_path / "debug"),
    )


@pytest.fixture
def store(config):
    return ScreenshotStore(config.screenshots_dir)


@pytest.fixture
def sink():
    return FakeSink()


@pytest.fixture
def bus():
    return RecordingBus()


@pytest.fixture
def reporter(bus):
    return ProgressReporter(bus, "7")
