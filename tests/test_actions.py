"""Action identities, de-duplication and action reference parsing."""

import pytest

from voicedialer.actions import (
    ACTION_VIEW,
    CustomIntentRef,
    LaunchApp,
    OpenVoicemail,
    PlaceCall,
    RawResult,
    add_action,
    label_of,
    parse_intent_ref,
)


def test_add_action_suppresses_same_target():
    actions = []
    assert add_action(actions, PlaceCall("tel:911", "dial 911"))
    assert not add_action(actions, PlaceCall("tel:911", "call 911", "H"))
    assert add_action(actions, PlaceCall("tel:411", "dial 411"))
    assert [a.label for a in actions] == ["dial 911", "dial 411"]


def test_launch_and_call_never_collide():
    actions = []
    add_action(actions, LaunchApp("tel:911", "open"))
    assert add_action(actions, PlaceCall("tel:911", "dial 911"))


def test_identity_less_actions_always_added():
    actions = []
    ref = CustomIntentRef("com.example.ACTION")
    assert add_action(actions, ref)
    assert add_action(actions, ref)
    assert add_action(actions, RawResult("x", "X"))
    assert add_action(actions, RawResult("x", "X"))
    assert len(actions) == 4


def test_label_of():
    assert label_of(OpenVoicemail("voicemail")) == "voicemail"
    assert label_of(RawResult("what time", "X time")) == "what time"
    assert label_of(CustomIntentRef("a").with_sentence("hello")) == "hello"
    assert label_of(CustomIntentRef("a")) == ""


def test_parse_full_reference():
    ref = parse_intent_ref(
        "geo:0,0%3Fq%3Dpizza#Intent;action=android.intent.action.VIEW;"
        "category=android.intent.category.DEFAULT;component=com.maps/com.maps.Main;"
        "S.sentence=find%20pizza;launchFlags=0x10000000;end"
    )
    assert ref.action == "android.intent.action.VIEW"
    assert ref.uri == "geo:0,0?q=pizza"
    assert ref.component == "com.maps/com.maps.Main"
    assert ref.categories == ("android.intent.category.DEFAULT",)
    assert ref.sentence == "find pizza"


def test_parse_plain_uri_is_view():
    assert parse_intent_ref("http://example.com") == CustomIntentRef(ACTION_VIEW, "http://example.com")


def test_parse_reference_without_uri():
    ref = parse_intent_ref("#Intent;action=com.example.SYNC;end")
    assert ref.uri is None
    assert ref.identity is None


@pytest.mark.parametrize("token", [
    "nouri",
    ":bad",
    "tel:1#Intent;action=call",
    "tel:1#Intent;action;end",
    "tel:1#Intent;component=nopackage;end",
    "tel:1#Intent;B.flag=true;end",
])
def test_parse_malformed(token):
    with pytest.raises(ValueError):
        parse_intent_ref(token)
