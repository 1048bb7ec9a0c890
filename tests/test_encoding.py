"""Tests for percent-encoding and ParamSet helpers.

Verifies:
  - The exact byte-level encoding rule (unreserved set, uppercase hex, UTF-8 bytes)
  - Form/query rendering encodes values only
  - User/list reference helpers pick the right parameter names
  - Handshake body parsing and URL replay parsing, including their errors
"""

import re
from urllib.parse import unquote_to_bytes

import pytest
from unlock_x_api.encoding import (
    add_list_param,
    add_name_param,
    add_opt_param,
    add_param,
    multiple_names_param,
    params_from_url,
    parse_urlencoded,
    percent_encode,
    to_urlencoded,
)
from unlock_x_api.errors import BadUrl, InvalidResponse

_ENCODED_ALPHABET = re.compile(r"^[A-Za-z0-9\-._~%]*$")


class TestPercentEncode:
    def test_reference_literal(self):
        assert percent_encode("Ladies + Gentlemen") == "Ladies%20%2B%20Gentlemen"

    def test_unreserved_pass_through(self):
        assert percent_encode("AZaz09-._~") == "AZaz09-._~"

    def test_reserved_characters_escaped(self):
        assert percent_encode("a/b?c=d&e") == "a%2Fb%3Fc%3Dd%26e"
        assert percent_encode("!*'()") == "%21%2A%27%28%29"

    def test_multibyte_utf8_escaped_bytewise(self):
        assert percent_encode("é") == "%C3%A9"
        assert percent_encode("☃") == "%E2%98%83"

    def test_hex_is_uppercase(self):
        assert percent_encode("\n") == "%0A"

    def test_empty_string(self):
        assert percent_encode("") == ""

    def test_lone_surrogate_is_encoded(self):
        assert percent_encode("a\ud800b") == "a%ED%A0%80b"

    @pytest.mark.parametrize(
        "value",
        ["Hello Ladies + Gentlemen, a signed OAuth request!", "naïve café", "🐦 tweet", "a%20b"],
    )
    def test_output_alphabet_and_byte_round_trip(self, value: str):
        encoded = percent_encode(value)
        assert _ENCODED_ALPHABET.match(encoded)
        assert unquote_to_bytes(encoded) == value.encode("utf-8")


class TestParamHelpers:
    def test_to_urlencoded_encodes_values_only(self):
        assert to_urlencoded({"status": "hi there", "x": "1"}) == "status=hi%20there&x=1"

    def test_add_param_stringifies(self):
        params = add_param({}, "count", 200)
        assert params == {"count": "200"}

    def test_add_param_last_write_wins(self):
        params = add_param({"k": "a"}, "k", "b")
        assert params == {"k": "b"}

    def test_add_opt_param_skips_none(self):
        assert add_opt_param({}, "since_id", None) == {}
        assert add_opt_param({}, "since_id", 5) == {"since_id": "5"}

    def test_add_name_param(self):
        assert add_name_param({}, 12345) == {"user_id": "12345"}
        assert add_name_param({}, "unlockalabama") == {"screen_name": "unlockalabama"}

    def test_add_list_param_by_id(self):
        assert add_list_param({}, 99) == {"list_id": "99"}

    def test_add_list_param_by_owner_and_slug(self):
        assert add_list_param({}, ("unlockalabama", "team")) == {
            "owner_screen_name": "unlockalabama",
            "slug": "team",
        }
        assert add_list_param({}, (42, "team")) == {"owner_id": "42", "slug": "team"}

    def test_multiple_names_param_splits(self):
        ids, names = multiple_names_param([1, "alice", 2, "bob"])
        assert ids == "1,2"
        assert names == "alice,bob"


class TestParseUrlencoded:
    def test_parses_token_body(self):
        body = "oauth_token=abc&oauth_token_secret=def&oauth_callback_confirmed=true"
        assert parse_urlencoded(body) == {
            "oauth_token": "abc",
            "oauth_token_secret": "def",
            "oauth_callback_confirmed": "true",
        }

    def test_empty_body_is_empty_mapping(self):
        assert parse_urlencoded("") == {}

    def test_segment_without_separator_raises(self):
        with pytest.raises(InvalidResponse) as exc_info:
            parse_urlencoded("oauth_token=abc&garbage")
        assert exc_info.value.raw_text == "oauth_token=abc&garbage"


class TestParamsFromUrl:
    BASE = "https://api.twitter.com/1.1/geo/reverse_geocode.json"

    def test_rebuilds_params(self):
        url = f"{self.BASE}?lat=37.78&long=-122.40&granularity=neighborhood"
        assert params_from_url(self.BASE, url) == {
            "lat": "37.78",
            "long": "-122.40",
            "granularity": "neighborhood",
        }

    def test_decodes_values(self):
        url = f"{self.BASE}?query=San%20Francisco"
        assert params_from_url(self.BASE, url) == {"query": "San Francisco"}

    @pytest.mark.parametrize(
        "url",
        [
            "https://api.twitter.com/1.1/geo/search.json?lat=1",
            "https://api.twitter.com/1.1/geo/reverse_geocode.json",
            "https://api.twitter.com/1.1/geo/reverse_geocode.json?lat",
            "https://api.twitter.com/1.1/geo/reverse_geocode.json?=1",
        ],
    )
    def test_bad_urls(self, url: str):
        with pytest.raises(BadUrl):
            params_from_url(self.BASE, url)
