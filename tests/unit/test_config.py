"""Tests for FlowConfig."""

from dataclasses import FrozenInstanceError

import pytest

from authflow import DEFAULT_KNOWN_RECIPIENTS, FlowConfig


class TestFlowConfig:
    """Tests for engine settings."""

    def test_defaults(self):
        """Defaults match the documented values."""
        config = FlowConfig()

        assert config.strict is False
        assert config.max_eventless_steps == 32
        assert config.known_recipients == DEFAULT_KNOWN_RECIPIENTS
        assert "user@company.com" in config.known_recipients
        assert config.history_size == 50

    def test_recipients_coerced_to_frozenset(self):
        """Any iterable of recipients becomes a frozenset."""
        config = FlowConfig(known_recipients=["a@b.io", "c@d.io"])
        assert config.known_recipients == frozenset({"a@b.io", "c@d.io"})

    def test_is_frozen(self):
        """FlowConfig cannot be modified after creation."""
        with pytest.raises(FrozenInstanceError):
            FlowConfig().strict = True

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"max_eventless_steps": 0},
            {"history_size": -1},
        ],
    )
    def test_invalid_values(self, kwargs):
        """Out-of-range bounds raise ValueError."""
        with pytest.raises(ValueError):
            FlowConfig(**kwargs)

    def test_from_mapping(self):
        """from_mapping() accepts a single recipient string."""
        config = FlowConfig.from_mapping(
            {"strict": True, "known_recipients": "ops@corp.io", "history_size": 5}
        )

        assert config.strict is True
        assert config.known_recipients == frozenset({"ops@corp.io"})
        assert config.history_size == 5

    def test_from_mapping_rejects_unknown_keys(self):
        """Unknown keys are named in the error."""
        with pytest.raises(ValueError, match="timeout"):
            FlowConfig.from_mapping({"timeout": 3})

    def test_to_dict(self):
        """to_dict() output can be read back with from_mapping()."""
        data = FlowConfig(known_recipients=frozenset({"b@x.io", "a@x.io"})).to_dict()

        assert data == {
            "strict": False,
            "max_eventless_steps": 32,
            "known_recipients": ["a@x.io", "b@x.io"],
            "history_size": 50,
        }
        assert FlowConfig.from_mapping(data).known_recipients == frozenset({"a@x.io", "b@x.io"})
