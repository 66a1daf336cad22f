import pytest

from hashdetect import ManagerConfig, PropertyName

from tests.utils_engine import FakeEngine


DEFAULT_PROPERTIES = (
    PropertyName.BrowserName,
    PropertyName.DeviceType,
    PropertyName.PlatformName,
    PropertyName.PlatformVersion,
    PropertyName.IsMobile,
)


@pytest.fixture
def data_file(tmp_path):
    p = tmp_path / "data.hash"
    p.write_bytes(b"\x00fake hash dataset")
    return p


@pytest.fixture
def engine():
    return FakeEngine()


@pytest.fixture
def config(data_file):
    return ManagerConfig(data_file_path=data_file, property_names=DEFAULT_PROPERTIES)
