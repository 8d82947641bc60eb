"""Tests for hashsync.codec — fragment encoding, strict decoding, JSON helpers."""

import pytest

from hashsync.codec import (
    decode_uri_component,
    encode_fragment,
    remove_parameter_from_url,
    stringify_state,
    url_safe_parse,
    verify_object,
)
from hashsync.errors import DecodeError, ShapeError


class TestEncodeFragment:
    def test_braces_and_quotes_escaped(self) -> None:
        assert encode_fragment('{"a":1}') == "%7B%22a%22:1%7D"

    def test_extra_characters_escaped_uppercase(self) -> None:
        assert encode_fragment("!'()*;,") == "%21%27%28%29%2A%3B%2C"

    def test_uri_reserved_characters_kept(self) -> None:
        assert encode_fragment("/?:@&=+$#") == "/?:@&=+$#"

    def test_unreserved_characters_kept(self) -> None:
        assert encode_fragment("aZ09-_.~") == "aZ09-_.~"

    def test_space_and_percent_escaped(self) -> None:
        assert encode_fragment("a b%") == "a%20b%25"

    def test_non_ascii_as_utf8(self) -> None:
        assert encode_fragment("é") == "%C3%A9"


class TestDecodeUriComponent:
    def test_plain_text_unchanged(self) -> None:
        assert decode_uri_component("abc") == "abc"

    def test_decodes_escapes(self) -> None:
        assert decode_uri_component("%7B%22a%22:1%7D") == '{"a":1}'

    def test_lowercase_hex(self) -> None:
        assert decode_uri_component("%7b%7d") == "{}"

    def test_multibyte_utf8(self) -> None:
        assert decode_uri_component("caf%C3%A9") == "café"

    def test_stray_percent_raises(self) -> None:
        with pytest.raises(DecodeError) as exc_info:
            decode_uri_component("100%")
        assert exc_info.value.position == 3

    def test_bad_hex_raises(self) -> None:
        with pytest.raises(DecodeError):
            decode_uri_component("%zz")

    def test_invalid_utf8_raises(self) -> None:
        with pytest.raises(DecodeError) as exc_info:
            decode_uri_component("ok%C3")
        assert exc_info.value.position == 2

    def test_decodes_only_once(self) -> None:
        assert decode_uri_component("%257B") == "%7B"


class TestRoundTrip:
    @pytest.mark.parametrize(
        "value",
        [
            {},
            {"layout": "xy", "zoom": 2.5},
            {"nested": {"list": [1, 2, {"k": None}]}, "flag": True},
            {"text": "it's (a) test; really, *really*!"},
            {"unicode": "naïve – ünïcode"},
        ],
    )
    def test_decode_encode(self, value: dict) -> None:
        encoded = encode_fragment(stringify_state(value))
        assert url_safe_parse(decode_uri_component(encoded)) == value


class TestStringifyState:
    def test_compact(self) -> None:
        assert stringify_state({"a": [1, 2]}) == '{"a":[1,2]}'

    def test_unicode_kept_raw(self) -> None:
        assert stringify_state({"a": "é"}) == '{"a":"é"}'

    @pytest.mark.parametrize("number", [float("nan"), float("inf"), float("-inf")])
    def test_non_finite_number_rejected(self, number: float) -> None:
        with pytest.raises(ValueError):
            stringify_state({"x": number})


class TestUrlSafeParse:
    def test_standard_json(self) -> None:
        assert url_safe_parse('{"a":"b"}') == {"a": "b"}

    def test_single_quote_dialect(self) -> None:
        assert url_safe_parse("{'a':'b'}") == {"a": "b"}

    def test_apostrophe_inside_standard_json(self) -> None:
        assert url_safe_parse('{"a":"it\'s"}') == {"a": "it's"}

    def test_syntax_error_raises_decode_error(self) -> None:
        with pytest.raises(DecodeError) as exc_info:
            url_safe_parse('{"a":')
        assert exc_info.value.position is not None

    def test_broken_dialect_reports_strict_error(self) -> None:
        with pytest.raises(DecodeError):
            url_safe_parse("{'a':}")

    @pytest.mark.parametrize("text", ['{"x":NaN}', '{"x":Infinity}', '{"x":-Infinity}', "{'x':NaN}"])
    def test_non_json_constants_rejected(self, text: str) -> None:
        with pytest.raises(DecodeError, match="Unexpected token"):
            url_safe_parse(text)


class TestVerifyObject:
    def test_object_passes(self) -> None:
        assert verify_object({"a": 1}) == {"a": 1}

    @pytest.mark.parametrize(
        ("value", "name"),
        [([], "array"), (1, "number"), ("s", "string"), (None, "null"), (True, "boolean")],
    )
    def test_non_object_raises(self, value: object, name: str) -> None:
        with pytest.raises(ShapeError) as exc_info:
            verify_object(value)
        assert exc_info.value.actual == name


class TestRemoveParameterFromUrl:
    def test_only_parameter(self) -> None:
        url = "https://h/p?json_url=https://x/s.json"
        assert remove_parameter_from_url(url, "json_url") == "https://h/p"

    def test_last_parameter_keeps_fragment(self) -> None:
        url = "https://h/p?a=1&json_url=x#!{}"
        assert remove_parameter_from_url(url, "json_url") == "https://h/p?a=1#!{}"

    def test_first_of_several(self) -> None:
        url = "https://h/p?json_url=x&a=1"
        assert remove_parameter_from_url(url, "json_url") == "https://h/p?a=1"

    def test_middle_parameter(self) -> None:
        url = "https://h/p?a=1&json_url=x&b=2#frag"
        assert remove_parameter_from_url(url, "json_url") == "https://h/p?a=1&b=2#frag"

    def test_absent_parameter_unchanged(self) -> None:
        url = "https://h/p?a=1#!{}"
        assert remove_parameter_from_url(url, "json_url") == url

    def test_similar_name_untouched(self) -> None:
        url = "https://h/p?my_json_url=x"
        assert remove_parameter_from_url(url, "json_url") == url
