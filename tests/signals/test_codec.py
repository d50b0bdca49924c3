"""Tests for leader alert recognition and payload extraction."""

import pytest

from relay_app.errors import MalformedPayloadError
from relay_app.signals import SignalCodec, SignalPayload, extract_fragment, parse_payload
from relay_app.signals.codec import extract_loose, extract_strict

LEADER = "BasedPing_bot"
BODY = '{"symbol":"BTCUSD","side":"buy","size":1,"price":50000,"leverage":10,"signature":"abc"}'


class TestRecognition:
    """Marker phrase and leader identity are both required."""

    def setup_method(self):
        self.codec = SignalCodec(LEADER)

    def test_leader_alert_recognized(self):
        assert self.codec.is_leader_alert("New Trade Alert! ...", LEADER)

    def test_missing_marker_ignored(self):
        text = f"<tg-spoiler>SIGNAL: {BODY}</tg-spoiler>"
        assert self.codec.is_leader_alert(text, LEADER) is False
        assert self.codec.decode(text, LEADER) is None

    def test_other_sender_ignored(self):
        text = f"New Trade Alert!\n<tg-spoiler>SIGNAL: {BODY}</tg-spoiler>"
        assert self.codec.decode(text, "impostor") is None
        assert self.codec.decode(text, None) is None

    def test_empty_text_ignored(self):
        assert self.codec.decode("", LEADER) is None
        assert self.codec.decode(None, LEADER) is None

    def test_alert_without_fragment_is_no_signal(self):
        assert self.codec.decode("New Trade Alert! details soon", LEADER) is None


class TestExtraction:
    """Two-stage extraction precedence."""

    def test_strict_spoiler(self):
        text = f"New Trade Alert!\n<tg-spoiler>SIGNAL: {BODY}</tg-spoiler>"
        assert extract_strict(text) == BODY
        assert extract_fragment(text) == BODY

    def test_strict_tolerates_whitespace_and_newlines(self):
        body = '{\n  "symbol": "ETHUSD",\n  "side": "sell"\n}'
        text = f"<tg-spoiler> SIGNAL:\n{body} </tg-spoiler>"
        assert extract_fragment(text) == body

    def test_strict_with_nested_object(self):
        body = '{"symbol":"BTCUSD","meta":{"a":1}}'
        text = f"<tg-spoiler>SIGNAL: {body}</tg-spoiler>"
        assert extract_strict(text) == body

    def test_loose_fallback(self):
        text = f"New Trade Alert!\nSIGNAL: {BODY} good luck"
        assert extract_strict(text) is None
        assert extract_fragment(text) == BODY

    def test_loose_balances_nested_braces(self):
        body = '{"symbol":"BTCUSD","meta":{"note":"x"}}'
        assert extract_loose(f"SIGNAL:{body} trailing }}") == body

    def test_loose_ignores_braces_inside_strings(self):
        body = '{"symbol":"BTC}USD","side":"buy"}'
        assert extract_loose(f"SIGNAL: {body}") == body

    def test_strict_wins_over_earlier_loose_block(self):
        loose = '{"symbol":"LOOSE"}'
        strict = '{"symbol":"STRICT"}'
        text = f"SIGNAL: {loose}\n<tg-spoiler>SIGNAL: {strict}</tg-spoiler>"
        assert extract_fragment(text) == strict

    def test_first_strict_block_wins(self):
        first = '{"symbol":"FIRST"}'
        second = '{"symbol":"SECOND"}'
        text = (f"<tg-spoiler>SIGNAL: {first}</tg-spoiler>"
                f"<tg-spoiler>SIGNAL: {second}</tg-spoiler>")
        assert extract_fragment(text) == first

    def test_first_loose_block_wins(self):
        text = 'SIGNAL: {"symbol":"FIRST"} and SIGNAL: {"symbol":"SECOND"}'
        assert extract_fragment(text) == '{"symbol":"FIRST"}'

    def test_loose_skips_marker_without_object(self):
        text = 'SIGNAL: pending... SIGNAL: {"symbol":"REAL"}'
        assert extract_loose(text) == '{"symbol":"REAL"}'

    def test_unclosed_object_not_extracted(self):
        assert extract_fragment('SIGNAL: {"symbol":"BTCUSD"') is None


class TestParsing:
    """Fragment parsing and field validation."""

    def test_parse_valid_payload(self):
        payload = parse_payload(BODY)
        assert payload == SignalPayload("BTCUSD", "buy", 1, 50000, 10, "abc")

    def test_parse_without_signature(self):
        payload = parse_payload('{"symbol":"BTCUSD","side":"buy","size":1,"price":5,"leverage":2}')
        assert payload.signature is None

    def test_invalid_json(self):
        with pytest.raises(MalformedPayloadError) as exc_info:
            parse_payload('{"symbol": BTCUSD}')
        assert exc_info.value.expected_format == "json object"

    def test_non_object(self):
        with pytest.raises(MalformedPayloadError):
            parse_payload('[1, 2, 3]')

    def test_missing_fields(self):
        with pytest.raises(MalformedPayloadError) as exc_info:
            parse_payload('{"symbol":"BTCUSD","side":"buy"}')
        assert exc_info.value.context["missing_fields"] == ["size", "price", "leverage"]

    @pytest.mark.parametrize("field,value", [
        ("size", '"1"'),
        ("price", "true"),
        ("leverage", "null"),
        ("symbol", "5"),
        ("side", '""'),
        ("signature", "123"),
    ])
    def test_wrong_field_types(self, field, value):
        fields = {"symbol": '"BTCUSD"', "side": '"buy"', "size": "1",
                  "price": "50000", "leverage": "10", "signature": '"abc"'}
        fields[field] = value
        body = "{" + ",".join(f'"{k}":{v}' for k, v in fields.items()) + "}"
        with pytest.raises(MalformedPayloadError):
            parse_payload(body)

    def test_decode_malformed_leader_alert_raises(self):
        codec = SignalCodec(LEADER)
        with pytest.raises(MalformedPayloadError):
            codec.decode("New Trade Alert!\n<tg-spoiler>SIGNAL: {oops}</tg-spoiler>", LEADER)

    def test_decode_full_alert(self):
        codec = SignalCodec(LEADER)
        payload = codec.decode(f"New Trade Alert!\n<tg-spoiler>SIGNAL: {BODY}</tg-spoiler>", LEADER)
        assert payload.symbol == "BTCUSD"
        assert payload.leverage == 10
