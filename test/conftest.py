"""
Shared pytest configuration and fixtures for the configuration pipeline tests.
"""

import json

import pytest

from archfolio.config.core.manager import ConfigurationManager, ManagerOptions
from archfolio.config.core.provider import ConfigSource, SourceCache, SourceLoader
from archfolio.config.defaults import get_default_config
from archfolio.config.environment import EnvironmentAdapter


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast isolated tests")
    config.addinivalue_line("markers", "integration: tests spanning several components or threads")


class FakeClock:
    """Millisecond clock that only moves when told to."""

    def __init__(self, start: float = 1_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, millis: float):
        self.now += millis


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def valid_config():
    """A complete configuration that passes the schema."""
    config = get_default_config()
    config['personal'].update({
        'name': 'Ada',
        'title': 'Principal Architect',
        'email': 'ada@example.com',
    })
    config['social'] = {
        'linkedin': 'https://linkedin.com/in/ada',
        'twitter': 'https://twitter.com/ada',
    }
    config['portfolio']['projects'] = [
        {
            'id': 'museum',
            'title': 'Harbour Museum',
            'description': 'A timber museum on the waterfront.',
            'category': 'Cultural',
            'imageUrl': 'https://img.example.com/museum.jpg',
            'year': 2021,
            'featured': True,
        },
        {
            'id': 'library',
            'title': 'City Library',
            'description': 'Adaptive reuse of a brick warehouse.',
            'category': 'Civic',
            'imageUrl': 'https://img.example.com/library.jpg',
            'year': 2019,
        },
    ]
    return config


@pytest.fixture
def write_json(tmp_path):
    """Write a dict as JSON under tmp_path and return the path."""
    def _write(name, data):
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(data), encoding='utf-8')
        return path
    return _write


@pytest.fixture
def environ():
    """Isolated process variables; tests add what they need."""
    return {}


@pytest.fixture
def environment(environ):
    return EnvironmentAdapter(environ)


@pytest.fixture
def loader(environment, tmp_path, fake_clock):
    return SourceLoader(environment, cache=SourceCache(clock=fake_clock), base_dir=str(tmp_path))


@pytest.fixture
def make_manager(loader, environment):
    """Factory for managers over explicit sources, isolated from the real environment."""
    def _make(sources=None, **options):
        options.setdefault('environment', 'development')
        if sources is None:
            sources = [ConfigSource.default(0)]
        manager = ConfigurationManager(ManagerOptions(sources=sources, **options),
                                       loader=loader, environment=environment)
        return manager
    return _make
