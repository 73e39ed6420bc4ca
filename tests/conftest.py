import os
from pathlib import Path

import pytest

ENVIRONMENTS = ("test", "production")

# Test directory -> marker, so `pytest -m domain` runs one layer
LAYER_MARKERS = {
    "domain": pytest.mark.domain,
    "application": pytest.mark.application,
    "bdd": pytest.mark.bdd,
    "integration": pytest.mark.integration,
}


def pytest_addoption(parser):
    parser.addoption(
        "--env",
        action="store",
        default="test",
        choices=ENVIRONMENTS,
        help="domain.toml overlay to run against; production uses PostgreSQL",
    )


def pytest_sessionstart(session):
    """Initialize the storefront domain for the selected environment and keep its context pushed."""
    os.environ["PROTEAN_ENV"] = session.config.option.env

    from storefront.domain import storefront

    storefront.init()
    storefront.domain_context().push()


def pytest_collection_modifyitems(config, items):
    for item in items:
        for part in Path(item.fspath).parts:
            if part in LAYER_MARKERS:
                item.add_marker(LAYER_MARKERS[part])
                break


@pytest.fixture(scope="session", autouse=True)
def setup_db(request):
    from storefront.domain import storefront
    from storefront.utils.db import drop_db, setup_db

    setup_db(storefront)

    yield

    drop_db(storefront)


@pytest.fixture(autouse=True)
def run_around_tests():
    """Reset stores, the event store and the purchase tracker after every test."""
    yield

    from protean import current_domain
    from storefront.notifications import reset_tracker

    for _, provider in current_domain.providers.items():
        provider._data_reset()

    current_domain.event_store.store._data_reset()

    reset_tracker()
