"""
Action descriptors produced from recognition results.

Each action is immutable and has an identity (kind + destination) used to
suppress duplicates within one result list. Actions with no destination
(raw results, intent refs without data) are never suppressed.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple
from urllib.parse import unquote

ACTION_CALL = "call"
ACTION_LAUNCH = "launch"
ACTION_VIEW = "view"

VOICEMAIL_URI = "voicemail:x"
PHONE_URI_PREFIX = "contact-phone:"


def tel_uri(number: str) -> str:
    return f"tel:{number}"


def phone_uri(phone_id: int) -> str:
    """Uri for a phone row in the contact store."""
    return f"{PHONE_URI_PREFIX}{phone_id}"


@dataclass(frozen=True)
class PlaceCall:
    uri: str
    label: str
    phone_kind: str = ""
    exclude_from_recents: bool = False

    @property
    def identity(self) -> Optional[tuple]:
        return (ACTION_CALL, self.uri)


@dataclass(frozen=True)
class OpenVoicemail:
    label: str
    uri: str = VOICEMAIL_URI

    @property
    def identity(self) -> Optional[tuple]:
        return (ACTION_CALL, self.uri)


@dataclass(frozen=True)
class LaunchApp:
    component: str
    label: str

    @property
    def identity(self) -> Optional[tuple]:
        return (ACTION_LAUNCH, self.component)


@dataclass(frozen=True)
class RawResult:
    sentence: str
    semantic: str

    @property
    def identity(self) -> Optional[tuple]:
        return None


@dataclass(frozen=True)
class CustomIntentRef:
    """A structured action reference carried verbatim in the grammar."""

    action: str
    uri: Optional[str] = None
    component: Optional[str] = None
    categories: Tuple[str, ...] = ()
    extras: Tuple[Tuple[str, str], ...] = field(default=())

    @property
    def sentence(self) -> Optional[str]:
        return dict(self.extras).get("sentence")

    def with_sentence(self, sentence: str) -> "CustomIntentRef":
        return CustomIntentRef(self.action, self.uri, self.component, self.categories,
                               self.extras + (("sentence", sentence),))

    @property
    def identity(self) -> Optional[tuple]:
        if not self.action or not self.uri:
            return None
        return (self.action, self.uri)


def add_action(actions: list, action) -> bool:
    """Append action unless one with the same identity is present."""
    identity = action.identity
    if identity is not None:
        for existing in actions:
            if existing.identity == identity:
                return False
    actions.append(action)
    return True


def label_of(action) -> str:
    """Display sentence for any action kind."""
    if isinstance(action, RawResult):
        return action.sentence
    if isinstance(action, CustomIntentRef):
        return action.sentence or ""
    return action.label


# ---------------------------------------------------------------------------
# Intent reference parsing
# ---------------------------------------------------------------------------

_INTENT_MARKER = "#Intent;"


def parse_intent_ref(token: str) -> CustomIntentRef:
    """
    Parse "[uri]#Intent;action=...;component=pkg/cls;S.key=value;end".

    A token without the #Intent; section is a plain uri viewed as-is.

    Raises:
        ValueError: malformed reference
    """
    marker = token.find(_INTENT_MARKER)
    if marker == -1:
        if ":" not in token or token.startswith(":"):
            raise ValueError(f"no scheme in {token!r}")
        return CustomIntentRef(ACTION_VIEW, unquote(token))

    uri = unquote(token[:marker]) or None
    body = token[marker + len(_INTENT_MARKER):]
    if not body.endswith("end"):
        raise ValueError(f"missing end in {token!r}")

    action = None
    component = None
    categories: List[str] = []
    extras: List[Tuple[str, str]] = []
    for part in body[:-len("end")].split(";"):
        if not part:
            continue
        key, sep, value = part.partition("=")
        if not sep:
            raise ValueError(f"bad field {part!r} in {token!r}")
        value = unquote(value)
        if key == "action":
            action = value
        elif key == "component":
            if "/" not in value:
                raise ValueError(f"bad component {value!r}")
            component = value
        elif key == "category":
            categories.append(value)
        elif key.startswith("S."):
            extras.append((key[2:], value))
        elif key in ("launchFlags", "package", "scheme"):
            continue
        else:
            raise ValueError(f"unknown field {key!r} in {token!r}")

    return CustomIntentRef(action or ACTION_VIEW, uri, component,
                           tuple(categories), tuple(extras))
