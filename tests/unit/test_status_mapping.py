import pytest

from app.batch.status_mapping import PROVIDER_STATUS_MAP, map_provider_state


class TestMapProviderState:
    @pytest.mark.parametrize(
        ("state", "expected"),
        [
            ("validating", "queued"),
            ("queued", "queued"),
            ("in_progress", "processing"),
            ("finalizing", "processing"),
            ("completed", "completed"),
            ("failed", "failed"),
            ("expired", "failed"),
            ("cancelled", "failed"),
        ],
    )
    def test_maps_known_states(self, state: str, expected: str) -> None:
        assert map_provider_state(state) == expected

    def test_table_has_no_extra_states(self) -> None:
        assert set(PROVIDER_STATUS_MAP) == {
            "validating",
            "queued",
            "in_progress",
            "finalizing",
            "completed",
            "failed",
            "expired",
            "cancelled",
        }

    @pytest.mark.parametrize("state", ["cancelling", "", "COMPLETED", "unknown"])
    def test_unknown_state_maps_to_none(self, state: str) -> None:
        assert map_provider_state(state) is None
