"""Shared fixtures for the test suite."""

import pytest
from fakes import TODAY, USER_ID, make_entry

from gutcheck.models.entries import UserProfile
from gutcheck.services.entries import InMemoryEntryRepository
from gutcheck.services.health_data import MockHealthDataProvider
from gutcheck.services.literature import CannedLiteratureSearch
from gutcheck.tools.registry import ToolsRegistry


@pytest.fixture
def profile():
    return UserProfile(
        id=USER_ID,
        name="Alex",
        age=34,
        diet_type="Omnivore",
        hydration_glasses=8,
        restroom_frequency="Once a day",
    )


@pytest.fixture
def weekly_entries():
    """Four entries in the last week: three healthy, one type 2."""
    return [
        make_entry(1, 4),
        make_entry(2, 3),
        make_entry(4, 2),
        make_entry(6, 4),
    ]


@pytest.fixture
def repository(weekly_entries, profile):
    return InMemoryEntryRepository(entries=weekly_entries, users=[profile])


@pytest.fixture
def registry(repository):
    return ToolsRegistry(
        entries=repository,
        literature=CannedLiteratureSearch(),
        health_data=MockHealthDataProvider(seed=7),
        today=lambda: TODAY,
    )
