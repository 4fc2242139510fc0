"""Tests for username casing resolution."""

import logging

import pytest

from chat_overlay.api.identity import IdentityLookupError
from chat_overlay.chat.models import MessageType
from chat_overlay.chat.usernames import UsernameResolver, find_cased_handle
from chat_overlay.core.models import CasingPolicy
from chat_overlay.core.settings import MessageSettings


class StubLookup:
    """Identity lookup returning canned display names."""

    def __init__(self, names: dict[str, str] | None = None):
        self.names = names or {}
        self.calls: list[str] = []

    def lookup(self, handle: str) -> str:
        self.calls.append(handle)
        if handle not in self.names:
            raise IdentityLookupError(f"no such user {handle}")
        return self.names[handle]


def _resolver(policy=CasingPolicy.NONE, infer=False, lookup=None) -> UsernameResolver:
    settings = MessageSettings(casing_policy=policy, infer_casing_from_body=infer)
    return UsernameResolver(settings, lookup)


# --- find_cased_handle ---


def test_find_whole_word():
    assert find_cased_handle("ann", "hey Ann, nice") == "Ann"


def test_find_ignores_substring():
    assert find_cased_handle("ann", "annoying") is None


def test_find_returns_casing_as_typed():
    assert find_cased_handle("somedude", "I am SomeDude") == "SomeDude"


def test_find_escapes_regex_chars():
    assert find_cased_handle("a.b", "axb") is None
    assert find_cased_handle("a.b", "hi A.B!") == "A.B"


def test_find_empty_inputs():
    assert find_cased_handle("", "anything") is None
    assert find_cased_handle("ann", "") is None


# --- local policies ---


@pytest.mark.parametrize(
    "policy,expected",
    [
        (CasingPolicy.ALL_CAPS, "SOMEDUDE"),
        (CasingPolicy.ALL_LOWER, "somedude"),
        (CasingPolicy.FIRST_CAP, "Somedude"),
        (CasingPolicy.NONE, "someDude"),
    ],
)
def test_local_policies(policy, expected):
    resolver = _resolver(policy)
    assert resolver.resolve("someDude", "hello", MessageType.NORMAL) == expected


def test_cached_value_survives_policy_change_until_clear():
    resolver = _resolver(CasingPolicy.ALL_CAPS)
    assert resolver.resolve("bob", "hi", MessageType.NORMAL) == "BOB"

    resolver.settings.casing_policy = CasingPolicy.ALL_LOWER
    assert resolver.resolve("bob", "hi", MessageType.NORMAL) == "BOB"

    resolver.clear()
    assert resolver.resolve("bob", "hi", MessageType.NORMAL) == "bob"


def test_cache_keyed_by_lowercase_handle():
    resolver = _resolver(CasingPolicy.FIRST_CAP)
    resolver.resolve("bob", "", MessageType.NORMAL)
    assert resolver.cached("BOB") == "Bob"
    assert len(resolver) == 1


def test_join_is_left_untouched():
    resolver = _resolver(CasingPolicy.ALL_CAPS)
    assert resolver.resolve("bob", "joined #chan.", MessageType.JOIN) == "bob"
    assert resolver.cached("bob") is None


def test_empty_handle_returned_as_is():
    resolver = _resolver(CasingPolicy.ALL_CAPS)
    assert resolver.resolve("", "hi", MessageType.NORMAL) == ""
    assert len(resolver) == 0


# --- body inference ---


def test_infer_from_body():
    resolver = _resolver(CasingPolicy.ALL_CAPS, infer=True)
    assert resolver.resolve("ann", "hey Ann, nice", MessageType.NORMAL) == "Ann"
    assert resolver.cached("ann") == "Ann"


def test_infer_no_match_falls_back_to_policy():
    resolver = _resolver(CasingPolicy.ALL_CAPS, infer=True)
    assert resolver.resolve("ann", "annoying", MessageType.NORMAL) == "ANN"


def test_infer_overrides_cached_value():
    resolver = _resolver(CasingPolicy.ALL_LOWER, infer=True)
    assert resolver.resolve("ann", "hi", MessageType.NORMAL) == "ann"
    assert resolver.resolve("ann", "this is ANN", MessageType.NORMAL) == "ANN"
    assert resolver.resolve("ann", "hi again", MessageType.NORMAL) == "ANN"


def test_infer_disabled_ignores_body():
    resolver = _resolver(CasingPolicy.NONE, infer=False)
    assert resolver.resolve("ann", "hey Ann", MessageType.NORMAL) == "ann"


# --- remote lookup ---


def test_remote_lookup_caches_result():
    lookup = StubLookup({"somedude": "SomeDude"})
    resolver = _resolver(CasingPolicy.REMOTE_LOOKUP, lookup=lookup)

    assert resolver.resolve("somedude", "hi", MessageType.NORMAL) == "SomeDude"
    assert resolver.resolve("SOMEDUDE", "hi", MessageType.ACTION) == "SomeDude"
    assert lookup.calls == ["somedude"]


def test_remote_lookup_uses_lowercase_handle():
    lookup = StubLookup({"somedude": "SomeDude"})
    resolver = _resolver(CasingPolicy.REMOTE_LOOKUP, lookup=lookup)
    resolver.resolve("SomeDUDE", "hi", MessageType.NORMAL)
    assert lookup.calls == ["somedude"]


def test_remote_lookup_failure_not_cached(caplog):
    lookup = StubLookup()
    resolver = _resolver(CasingPolicy.REMOTE_LOOKUP, lookup=lookup)

    with caplog.at_level(logging.ERROR):
        assert resolver.resolve("ghost", "boo", MessageType.NORMAL) == "ghost"
    assert "ghost" in caplog.text
    assert resolver.cached("ghost") is None
    assert resolver.lookup_failures("ghost") == 1

    # Tried again next time
    lookup.names["ghost"] = "Ghost"
    assert resolver.resolve("ghost", "boo", MessageType.NORMAL) == "Ghost"
    assert lookup.calls == ["ghost", "ghost"]


def test_remote_lookup_skipped_for_unparsable_types():
    lookup = StubLookup({"system": "SYSTEM"})
    resolver = _resolver(CasingPolicy.REMOTE_LOOKUP, lookup=lookup)

    assert resolver.resolve("system", "notice", MessageType.SYSTEM) == "system"
    assert resolver.resolve("system", "typed", MessageType.MANUAL) == "system"
    assert lookup.calls == []
    assert resolver.cached("system") is None


def test_remote_lookup_without_client_returns_handle():
    resolver = _resolver(CasingPolicy.REMOTE_LOOKUP)
    assert resolver.resolve("bob", "hi", MessageType.NORMAL) == "bob"


def test_body_inference_beats_remote_lookup():
    lookup = StubLookup({"ann": "Ann"})
    resolver = _resolver(CasingPolicy.REMOTE_LOOKUP, infer=True, lookup=lookup)
    assert resolver.resolve("ann", "ANN is here", MessageType.NORMAL) == "ANN"
    assert lookup.calls == []


def test_clear_resets_failures():
    resolver = _resolver(CasingPolicy.REMOTE_LOOKUP, lookup=StubLookup())
    resolver.resolve("ghost", "", MessageType.NORMAL)
    resolver.clear()
    assert resolver.lookup_failures("ghost") == 0


def test_clear_during_lookup_discards_stale_result():
    resolver = _resolver(CasingPolicy.REMOTE_LOOKUP)

    class ClearingLookup:
        def lookup(self, handle: str) -> str:
            # Operator switches policy while the request is in flight
            resolver.settings.casing_policy = CasingPolicy.ALL_CAPS
            resolver.clear()
            return "Bob"

    resolver._lookup_client = ClearingLookup()

    assert resolver.resolve("bob", "hi", MessageType.NORMAL) == "Bob"
    assert resolver.cached("bob") is None
    assert resolver.resolve("bob", "hi", MessageType.NORMAL) == "BOB"


def test_failure_during_clear_not_counted():
    resolver = _resolver(CasingPolicy.REMOTE_LOOKUP)

    class ClearingFailingLookup:
        def lookup(self, handle: str) -> str:
            resolver.clear()
            raise IdentityLookupError("timed out")

    resolver._lookup_client = ClearingFailingLookup()
    resolver.resolve("bob", "hi", MessageType.NORMAL)
    assert resolver.lookup_failures("bob") == 0


def test_unexpected_lookup_error_falls_back(caplog):
    class BrokenLookup:
        def lookup(self, handle: str) -> str:
            raise RuntimeError("event loop is already running")

    resolver = _resolver(CasingPolicy.REMOTE_LOOKUP, lookup=BrokenLookup())

    with caplog.at_level(logging.ERROR):
        assert resolver.resolve("bob", "hi", MessageType.NORMAL) == "bob"
    assert resolver.cached("bob") is None
    assert resolver.lookup_failures("bob") == 1
    assert "event loop is already running" in caplog.text


@pytest.mark.parametrize(
    "handle,body,expected",
    [
        ("[ann]", "hi [Ann] there", "[Ann]"),
        ("ann-", "ANN- says hi", "ANN-"),
        ("_ann_", "hey _Ann_", "_Ann_"),
        ("ann-", "xann- nope", None),
    ],
)
def test_find_handles_with_punctuation(handle, body, expected):
    assert find_cased_handle(handle, body) == expected
