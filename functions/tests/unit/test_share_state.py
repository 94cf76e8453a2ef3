"""Unit tests for shareable calculator links."""

import base64
import json

from services.share_state import decode_state, encode_state


class TestShareState:
    """Tests for encode_state / decode_state."""

    def test_round_trip(self, sample_inputs_with_ti, default_config):
        base_values = default_config.base_values.with_overrides({"signage": 7})
        token = encode_state(sample_inputs_with_ti, {"levelOfFinish": 75}, base_values)

        state = decode_state(token)

        assert state.inputs == sample_inputs_with_ti
        assert state.slider_values == {"levelOfFinish": 75.0}
        assert state.base_values.signage == 7

    def test_token_is_url_safe(self, sample_inputs):
        token = encode_state(sample_inputs, {"levelOfFinish": 75})

        assert all(ch.isalnum() or ch in "-_=" for ch in token)

    def test_base_values_optional(self, sample_inputs):
        state = decode_state(encode_state(sample_inputs, {}))

        assert state.base_values is None
        assert state.slider_values == {}

    def test_unpadded_token(self, sample_inputs):
        token = encode_state(sample_inputs, {"av": 10}).rstrip("=")

        assert decode_state(token) is not None

    def test_empty_token(self):
        assert decode_state("") is None

    def test_garbage_token(self):
        assert decode_state("not-a-valid-token!!") is None

    def test_missing_inputs(self):
        token = base64.urlsafe_b64encode(json.dumps({"s": {}}).encode()).decode()
        assert decode_state(token) is None

    def test_invalid_inputs(self):
        payload = {"i": {"projectSize": -5, "floors": 1, "location": "LA"}, "s": {}}
        token = base64.urlsafe_b64encode(json.dumps(payload).encode()).decode()
        assert decode_state(token) is None

    def test_contingency_round_trip(self, sample_inputs):
        state = decode_state(encode_state(sample_inputs, {}, contingency_percent=0.10))

        assert state.contingency_percent == 0.10

    def test_contingency_optional(self, sample_inputs):
        assert decode_state(encode_state(sample_inputs, {})).contingency_percent is None

    def test_contingency_out_of_range(self):
        payload = {"i": {"projectSize": 25000, "floors": 1, "location": "LA"}, "s": {}, "c": 5}
        token = base64.urlsafe_b64encode(json.dumps(payload).encode()).decode()
        assert decode_state(token) is None
