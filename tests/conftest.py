import pytest

from config import get_settings


@pytest.fixture(autouse=True)
def fresh_settings(monkeypatch):
    # settings are cached per process; tests that touch env need a clean read
    monkeypatch.delenv("VARIANT_MAX_DEPTH", raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def flat_tree():
    return [
        {"attribute": "Color", "values": [
            {"value": "Red", "quantity": 5},
            {"value": "Blue", "quantity": 3},
        ]},
    ]


@pytest.fixture
def nested_tree():
    return [
        {"attribute": "Color", "values": [
            {"value": "Red", "quantity": 0, "subVariants": [
                {"attribute": "Size", "values": [
                    {"value": "S", "quantity": 2},
                    {"value": "M", "quantity": 4},
                ]},
            ]},
        ]},
    ]


@pytest.fixture
def deep_tree():
    """Color → Size → Material, with quantities and thresholds on the leaves."""
    return [
        {"attribute": "Color", "values": [
            {"value": "Red", "quantity": 99, "subVariants": [
                {"attribute": "Size", "values": [
                    {"value": "S", "quantity": 0, "subVariants": [
                        {"attribute": "Material", "values": [
                            {"value": "Cotton", "quantity": 1, "sku": "R-S-C", "minimumQuantity": 5},
                            {"value": "Linen", "quantity": 7},
                        ]},
                    ]},
                    {"value": "M", "quantity": 4},
                ]},
            ]},
            {"value": "Blue", "quantity": 10},
        ]},
        {"attribute": "Finish", "values": [
            {"value": "Matte", "quantity": 2},
        ]},
    ]
