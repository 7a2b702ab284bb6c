import random
from collections import Counter

import pytest

from gemini_relay.core.config import Settings, parse_key_list
from gemini_relay.core.credentials import (
    KeyPool,
    extract_credential,
    mask_key,
    resolve_upstream_key,
)
from gemini_relay.core.errors import UnauthenticatedError


class TestExtractCredential:

    def test_bearer_wins_over_everything(self):
        headers = {
            "authorization": "Bearer from-bearer",
            "x-goog-api-key": "from-goog",
            "x-api-key": "from-x",
        }
        assert extract_credential(headers, {"key": "from-query"}) == "from-bearer"

    def test_goog_header_before_x_api_key(self):
        headers = {"x-goog-api-key": "from-goog", "x-api-key": "from-x"}
        assert extract_credential(headers, {}) == "from-goog"

    def test_x_api_key_before_query(self):
        assert extract_credential({"x-api-key": "from-x"}, {"key": "from-query"}) == "from-x"

    def test_query_parameter(self):
        assert extract_credential({}, {"key": "from-query"}) == "from-query"

    def test_non_bearer_authorization_is_ignored(self):
        headers = {"authorization": "Basic abc", "x-goog-api-key": "from-goog"}
        assert extract_credential(headers, {}) == "from-goog"

    def test_empty_bearer_falls_through(self):
        headers = {"authorization": "Bearer ", "x-api-key": "from-x"}
        assert extract_credential(headers, {}) == "from-x"

    def test_nothing_found(self):
        assert extract_credential({}, {}) is None

    def test_custom_extractor_order(self):
        def constant(headers, query):
            return "constant"

        assert extract_credential({"x-api-key": "x"}, {}, extractors=[constant]) == "constant"


class TestResolveUpstreamKey:

    def test_missing_credential(self):
        with pytest.raises(UnauthenticatedError):
            resolve_upstream_key(None, Settings(), KeyPool([]))

    def test_inbound_key_used_without_pool(self):
        assert resolve_upstream_key("client-key", Settings(), KeyPool([])) == "client-key"

    def test_gate_mismatch_rejected(self):
        settings = Settings(gate_key="gate", upstream_keys=("k1",))
        with pytest.raises(UnauthenticatedError):
            resolve_upstream_key("wrong", settings, KeyPool(settings.upstream_keys))

    def test_gate_match_uses_pool_key(self):
        settings = Settings(gate_key="gate", upstream_keys=("k1", "k2"))
        key = resolve_upstream_key("gate", settings, KeyPool(settings.upstream_keys))
        assert key in ("k1", "k2")

    @pytest.mark.parametrize("inbound", ["clé", "gaté", "key\x00"])
    def test_non_ascii_or_control_keys_rejected(self, inbound):
        settings = Settings(gate_key="gate", upstream_keys=("k1",))
        with pytest.raises(UnauthenticatedError):
            resolve_upstream_key(inbound, settings, KeyPool(settings.upstream_keys))
        with pytest.raises(UnauthenticatedError):
            resolve_upstream_key(inbound, Settings(), KeyPool([]))

    def test_non_ascii_gate_key_still_compares(self):
        settings = Settings(gate_key="gäte", upstream_keys=("k1",))
        with pytest.raises(UnauthenticatedError):
            resolve_upstream_key("gate", settings, KeyPool(settings.upstream_keys))

    def test_pool_without_gate_accepts_any_caller(self):
        settings = Settings(upstream_keys=("k1",))
        assert resolve_upstream_key("anything", settings, KeyPool(settings.upstream_keys)) == "k1"


class TestKeyPool:

    def test_selection_is_roughly_uniform(self):
        keys = ["a", "b", "c", "d"]
        pool = KeyPool(keys, rng=random.Random(1234))
        trials = 20000
        counts = Counter(pool.choose() for _ in range(trials))

        assert set(counts) == set(keys)
        expected = trials / len(keys)
        for key in keys:
            assert abs(counts[key] - expected) < expected * 0.1

    def test_empty_pool(self):
        pool = KeyPool([])
        assert not pool
        assert len(pool) == 0
        with pytest.raises(ValueError):
            pool.choose()


def test_parse_key_list_drops_blanks():
    assert parse_key_list(" k1, ,k2,, k3 ") == ("k1", "k2", "k3")
    assert parse_key_list("") == ()
    assert parse_key_list(None) == ()


def test_mask_key():
    assert mask_key("short") == "***"
    assert mask_key("AIzaSyABCDEFGH1234") == "AIza...1234"
