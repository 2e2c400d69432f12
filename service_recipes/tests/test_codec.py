"""
Tests for the cached listing codec.
"""

import json
import pytest
from datetime import datetime, timedelta, timezone

from service_recipes.app.catalog.codec import encode_recipes, decode_recipes, CacheDecodeError
from service_recipes.app.models import Recipe


def test_round_trip_preserves_every_field():
    recipes = [
        Recipe(
            id="r1",
            name="Pad Thai",
            tags=["thai", "noodles"],
            ingredients=["rice noodles", "tamarind"],
            instructions=["soak", "fry"],
            published_at=datetime(2024, 5, 1, 18, 30, 15, 250000, tzinfo=timezone(timedelta(hours=7))),
        ),
        Recipe(id="r2", name="Toast", ingredients=["bread"], published_at=datetime(2024, 5, 2, tzinfo=timezone.utc)),
    ]

    decoded = decode_recipes(encode_recipes(recipes))

    assert decoded == recipes
    assert decoded[0].published_at.utcoffset() == timedelta(hours=7)


def test_encoded_form_is_a_json_array():
    blob = encode_recipes([
        Recipe(id="r1", name="Toast", ingredients=["bread"], published_at=datetime(2024, 5, 2, tzinfo=timezone.utc))
    ])

    payload = json.loads(blob)
    assert payload[0]["id"] == "r1"
    assert payload[0]["published_at"].startswith("2024-05-02T00:00:00")


def test_empty_listing_encodes_to_empty_array():
    assert encode_recipes([]) == "[]"
    assert decode_recipes("[]") == []


@pytest.mark.parametrize("blob", ["{not json", '{"id": "r1"}', '[{"name": "missing id"}]'])
def test_malformed_blob_raises(blob):
    with pytest.raises(CacheDecodeError):
        decode_recipes(blob)
