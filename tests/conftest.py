import os
from pathlib import Path

import pytest


def pytest_addoption(parser):
    parser.addoption(
        "--env",
        action="store",
        default="test",
        help="Config environment to run tests on",
    )


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their directory location."""
    for item in items:
        test_path = Path(item.fspath)

        if "/domain/" in str(test_path):
            item.add_marker(pytest.mark.domain)
        elif "/application/" in str(test_path):
            item.add_marker(pytest.mark.application)
        elif "/integration/" in str(test_path):
            item.add_marker(pytest.mark.integration)
            # Integration tests are often slower
            if not any(m.name == "fast" for m in item.iter_markers()):
                item.add_marker(pytest.mark.slow)


@pytest.fixture(scope="session")
def _commerce_domain(request):
    """Initialize the commerce domain once per session."""
    os.environ["PROTEAN_ENV"] = request.config.option.env

    from commerce.domain import commerce

    commerce.init()
    return commerce


@pytest.fixture(scope="session", autouse=True)
def setup_db(_commerce_domain):
    from commerce.utils.db import drop_db, setup_db

    setup_db(_commerce_domain)

    yield

    drop_db(_commerce_domain)


@pytest.fixture(autouse=True)
def run_around_tests(_commerce_domain):
    """Push domain context before each test, cleanup after."""
    ctx = _commerce_domain.domain_context()
    ctx.push()

    yield

    from protean import current_domain

    for _, provider in current_domain.providers.items():
        provider._data_reset()

    current_domain.event_store.store._data_reset()
    ctx.pop()


@pytest.fixture
def settings():
    from commerce.config import Settings

    return Settings(low_stock_threshold=5, order_number_prefix="ORD")


@pytest.fixture
def services(_commerce_domain, settings):
    from commerce.services import build_commerce

    return build_commerce(_commerce_domain, settings)


@pytest.fixture
def catalogue(services):
    return services.catalogue


@pytest.fixture
def ledger(services):
    return services.ledger


@pytest.fixture
def fulfillment(services):
    return services.fulfillment


@pytest.fixture
def make_product(catalogue):
    """Factory for catalogue products with sensible defaults."""
    counter = {"n": 0}

    def _make(**overrides):
        counter["n"] += 1
        data = {
            "name": f"Product {counter['n']}",
            "price": "10.00",
            "category": "General",
            "stock_quantity": 10,
        }
        data.update(overrides)
        return catalogue.create_product(**data)

    return _make
