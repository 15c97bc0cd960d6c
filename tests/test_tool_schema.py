"""Snapshot test for the function-tool catalog sent to the model."""

import json
from pathlib import Path

FIXTURE = Path(__file__).parent / "fixtures" / "tool_schema.json"


class TestToolCatalog:
    """The catalog must stay identical to the published schema."""

    def test_catalog_matches_snapshot(self, registry):
        expected = json.loads(FIXTURE.read_text())

        assert registry.get_tool_schemas() == expected

    def test_catalog_serializes_identically(self, registry):
        """Key order and values survive serialization unchanged."""
        expected = json.loads(FIXTURE.read_text())

        assert json.dumps(registry.get_tool_schemas()) == json.dumps(expected)

    def test_catalog_is_not_shared_mutable_state(self, registry):
        schemas = registry.get_tool_schemas()
        schemas[0]["function"]["parameters"]["properties"]["days"]["maximum"] = 1000

        assert registry.get_tool_schemas()[0]["function"]["parameters"]["properties"]["days"]["maximum"] == 90
