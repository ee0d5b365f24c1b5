"""
Semantic result parser.

Turns the recognizer's ranked hypotheses into actions. Each hypothesis
carries a semantic string written by the grammar:

    DIAL 6508675309                 dial a number
    CALL <7 ids> [H|M|W|O]          call a contact, optionally a given phone
    OPEN <label>                    launch the apps mapped to label
    voicemail / redial              fixed commands
    Intent <ref> [<ref> ...]        structured action references
    X ...                           passed through untouched

Hypotheses are scanned in rank order until enough actions are collected
or the confidence drops (below 100, or under half the best seen so far).
"""

from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, List, Optional, Union

from voicedialer.actions import (
    LaunchApp,
    OpenVoicemail,
    PlaceCall,
    RawResult,
    add_action,
    parse_intent_ref,
    phone_uri,
    tel_uri,
)
from voicedialer.apps import AppDirectory, split_component
from voicedialer.contacts import (
    ID_UNDEFINED,
    KIND_HOME,
    KIND_MOBILE,
    KIND_OTHER,
    KIND_WORK,
    PHONE_ID_COUNT,
    CallLog,
)
from voicedialer.engine import KEY_CONFIDENCE, KEY_LITERAL, KEY_MEANING, Recognizer
from voicedialer.logger import get_logger
from voicedialer.number_format import format_number
from voicedialer.open_entries import OpenEntryIndex, RESULT_LIMIT


MINIMUM_CONFIDENCE = 100


@dataclass(frozen=True)
class Hypothesis:
    confidence: int
    literal: str
    semantic: str


def iter_hypotheses(recognizer: Recognizer) -> Iterator[Hypothesis]:
    """Read results lazily, in recognizer rank order."""
    for rank in range(recognizer.get_result_count()):
        yield Hypothesis(
            confidence=int(recognizer.get_result(rank, KEY_CONFIDENCE)),
            literal=recognizer.get_result(rank, KEY_LITERAL) or "",
            semantic=recognizer.get_result(rank, KEY_MEANING) or "",
        )


class SemanticResultParser:
    """Builds the action list for one recognition result."""

    def __init__(self, config=None, app_directory: Optional[AppDirectory] = None,
                 call_log: Optional[CallLog] = None):
        self.config = config
        self.logger = get_logger(__name__, config)
        self.app_directory = app_directory
        self.call_log = call_log

        def phrase(key, default):
            return config.get(f"phrases.{key}", default) if config else default

        self.kind_phrases = {
            KIND_HOME: phrase("at_home", " at home"),
            KIND_MOBILE: phrase("on_mobile", " on mobile"),
            KIND_WORK: phrase("at_work", " at work"),
            KIND_OTHER: phrase("at_other", " at other"),
        }

    def parse(self, hypotheses: Iterable[Hypothesis],
              open_entries: Union[OpenEntryIndex, Dict[str, str], None] = None,
              minimize_results: bool = False,
              allow_open_entries: bool = True,
              max_to_examine: Optional[int] = None,
              recorder=None) -> List:
        """
        Parse ranked hypotheses into a de-duplicated action list.

        Args:
            hypotheses: Hypotheses in recognizer rank order
            open_entries: Label -> components mapping for OPEN commands
            minimize_results: Prefer a single best action
            allow_open_entries: Whether OPEN commands are honoured
            max_to_examine: Stop once this many actions exist
                (default RESULT_LIMIT, or 1 when minimizing)
            recorder: Optional SessionRecorder for the n-best log

        Returns:
            Ordered list of actions (may be empty)
        """
        if max_to_examine is None:
            max_to_examine = 1 if minimize_results else RESULT_LIMIT

        if recorder is not None:
            recorder.log_nbest_header()

        actions: List = []
        highest_confidence = 0

        for hyp in hypotheses:
            if len(actions) >= max_to_examine:
                break

            msg = f"conf={hyp.confidence} lit={hyp.literal} sem={hyp.semantic}"
            self.logger.debug(msg)

            if highest_confidence < hyp.confidence:
                highest_confidence = hyp.confidence
            if hyp.confidence < MINIMUM_CONFIDENCE or hyp.confidence * 2 < highest_confidence:
                self.logger.debug("confidence too low, dropping")
                break

            if recorder is not None:
                recorder.log_line(msg)

            commands = hyp.semantic.strip().split(" ")
            command = commands[0].lower()

            if command == "dial" and len(commands) > 1:
                self._dial(actions, hyp, commands)
            elif command == "call" and len(commands) >= PHONE_ID_COUNT + 1:
                self._call(actions, hyp, commands, minimize_results)
            elif command == "x":
                add_action(actions, RawResult(hyp.literal, hyp.semantic))
            elif command == "voicemail" and len(commands) == 1:
                add_action(actions, OpenVoicemail(hyp.literal))
            elif command == "redial" and len(commands) == 1:
                self._redial(actions, hyp)
            elif command == "intent":
                self._intents(actions, hyp, commands)
            elif command == "open" and allow_open_entries:
                self._open(actions, hyp, commands, open_entries)
            else:
                self.logger.debug(f"Unparsed result: {hyp.semantic!r}")

        if recorder is not None:
            recorder.log_actions(actions)

        return actions

    # ------------------------------------------------------------------
    # Command handlers
    # ------------------------------------------------------------------

    def _dial(self, actions: List, hyp: Hypothesis, commands: List[str]):
        # DIAL 6508675309 / DIAL 8675309 / DIAL 911
        number = commands[1]
        formatted = format_number(number)
        if formatted is None:
            self.logger.debug(f"No number format for {number!r}, dropping")
            return
        first_word = hyp.literal.split(" ")[0].strip()
        add_action(actions, PlaceCall(tel_uri(number), f"{first_word} {formatted}"))

    def _call(self, actions: List, hyp: Hypothesis, commands: List[str],
              minimize_results: bool):
        try:
            (contact_id, primary_id, home_id, mobile_id,
             work_id, other_id, fallback_id) = (int(c) for c in commands[1:PHONE_ID_COUNT + 1])
        except ValueError:
            self.logger.debug(f"Unparsed call ids: {hyp.semantic!r}")
            return

        ids_by_kind = {
            KIND_HOME: home_id,
            KIND_MOBILE: mobile_id,
            KIND_WORK: work_id,
            KIND_OTHER: other_id,
        }
        literal = hyp.literal
        has_kind = len(commands) == PHONE_ID_COUNT + 2
        count = 0

        if has_kind:
            # CALL JACK JONES AT HOME|ON MOBILE|AT WORK|AT OTHER
            spoken = commands[PHONE_ID_COUNT + 1]
            spoken_id = ids_by_kind.get(spoken.upper(), ID_UNDEFINED)
            if spoken_id != ID_UNDEFINED:
                add_action(actions, PlaceCall(phone_uri(spoken_id), literal, spoken))
                count += 1

        elif len(commands) == PHONE_ID_COUNT + 1 and primary_id != ID_UNDEFINED:
            # CALL JACK JONES, with a default phone of a known kind
            for kind, phone_id in ids_by_kind.items():
                if primary_id == phone_id:
                    add_action(actions, PlaceCall(phone_uri(primary_id),
                                                  literal + self.kind_phrases[kind], kind))
                    count += 1
                    break

        if count == 0 or not minimize_results:
            # Every other phone for this person; drop "at home" etc from the literal
            lit = literal
            if has_kind:
                lit = " ".join(literal.strip().split(" ")[:-2])

            for kind, phone_id in ids_by_kind.items():
                if phone_id != ID_UNDEFINED:
                    add_action(actions, PlaceCall(phone_uri(phone_id),
                                                  lit + self.kind_phrases[kind], kind))

            if fallback_id != ID_UNDEFINED:
                add_action(actions, PlaceCall(phone_uri(fallback_id), lit, ""))

    def _redial(self, actions: List, hyp: Hypothesis):
        number = self.call_log.last_outgoing_number() if self.call_log is not None else None
        if number:
            add_action(actions, PlaceCall(tel_uri(number), hyp.literal, "",
                                          exclude_from_recents=True))
        else:
            self.logger.debug("Redial requested but call log is empty")

    def _intents(self, actions: List, hyp: Hypothesis, commands: List[str]):
        for token in commands[1:]:
            try:
                ref = parse_intent_ref(token)
            except ValueError as e:
                self.logger.warning(f"Poorly formed action reference in grammar: {e}")
                continue
            if ref.sentence is None:
                ref = ref.with_sentence(hyp.literal)
            add_action(actions, ref)

    def _open(self, actions: List, hyp: Hypothesis, commands: List[str],
              open_entries: Union[OpenEntryIndex, Dict[str, str], None]):
        label = " ".join(commands[1:]).strip()
        if not label or open_entries is None:
            return

        meaning = open_entries.get(label.lower())
        if not meaning:
            self.logger.debug(f"No open entry for {label!r}")
            return
        if self.app_directory is None:
            self.logger.warning("Open entries present but no app directory to resolve them")
            return

        first_word = hyp.literal.split(" ")[0]
        for component in meaning.split():
            try:
                package, class_name = split_component(component)
            except ValueError as e:
                self.logger.warning(f"Bad open entry for {label!r}: {e}")
                continue
            for app in self.app_directory.resolve(package, class_name):
                add_action(actions, LaunchApp(app.component, f"{first_word} {app.label}"))
