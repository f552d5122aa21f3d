"""Tests for the progress wire format and import/export."""

import json

import pytest

from recall_engine.errors import DataCorruptionError
from recall_engine.fsrs.constants import CardStatus, Rating
from recall_engine.fsrs.memory_state import new_card
from recall_engine.fsrs.scheduler import process_review
from recall_engine.schemas import (
    ProgressRecord,
    StudyLogRecord,
    card_from_dict,
    card_to_dict,
    export_data,
    import_data,
    study_set_from_dict,
    study_set_to_dict,
)
from recall_engine.session_builders.study_queue import StudySet, record_answer


class TestProgressRecord:
    def test_uses_camel_case_keys(self, make_card):
        data = card_to_dict(make_card(lapses=1, reps=4))

        assert data["state"] == "Review"
        assert data["lastRating"] == "remembered"
        assert data["scheduledDays"] == 10
        assert data["correctCount"] == 3
        assert data["wrongCount"] == 1
        assert "last_review" not in data

    @pytest.mark.parametrize("state", list(CardStatus))
    def test_every_field_survives(self, make_card, now, state):
        if state == CardStatus.NEW:
            card = new_card(now)
        else:
            card = make_card(state=state, stability=2.5, last_rating=Rating.PERFECT)

        assert card_from_dict(card_to_dict(card)) == card

    def test_accepts_snake_case_names(self, make_card):
        card = make_card()
        record = ProgressRecord.model_validate(ProgressRecord.from_card(card).model_dump())

        assert record.to_card() == card

    @pytest.mark.parametrize("field,value", [
        ("state", "Mastered"),
        ("lastRating", "good"),
        ("stability", -1),
        ("difficulty", 11),
        ("retrievability", 1.5),
    ])
    def test_invalid_values_are_corruption(self, make_card, field, value):
        data = card_to_dict(make_card())
        data[field] = value

        with pytest.raises(DataCorruptionError):
            card_from_dict(data)

    def test_missing_due_is_corruption(self, make_card):
        data = card_to_dict(make_card())
        del data["due"]

        with pytest.raises(DataCorruptionError):
            card_from_dict(data)

    def test_counters_must_add_up(self, make_card):
        data = card_to_dict(make_card())
        data["wrongCount"] += 1

        with pytest.raises(DataCorruptionError):
            card_from_dict(data)

    def test_new_card_must_be_blank(self, now):
        data = card_to_dict(new_card(now))
        data["reps"] = 2

        with pytest.raises(DataCorruptionError):
            card_from_dict(data)


class TestStudyLogRecord:
    def test_event_shape_is_preserved(self, now, make_card):
        _, event = process_review("huis", make_card(), Rating.PERFECT, now, 2.0)

        assert StudyLogRecord.model_validate(event).to_event() == event

    def test_first_review_event(self, now):
        _, event = process_review("fiets", None, Rating.FORGOT, now)

        record = StudyLogRecord.model_validate(event)

        assert record.state == CardStatus.NEW
        assert record.stability_before is None
        assert record.model_dump(by_alias=True)["timeSpentSec"] == 0.0


class TestStudySetRecord:
    def test_round_trip_keeps_batch_order(self):
        study_set = StudySet(words=("e", "d", "c", "b", "a"))
        study_set = record_answer(study_set, "b", Rating.FORGOT)
        study_set = record_answer(study_set, "d", Rating.REMEMBERED)
        study_set = record_answer(study_set, "e", Rating.FORGOT)

        data = study_set_to_dict(study_set)

        assert data == {
            "words": ["e", "d", "c", "b", "a"],
            "completedWords": ["d"],
            "forgotWords": ["e", "b"],
        }
        assert study_set_from_dict(data) == study_set

    @pytest.mark.parametrize("data", [
        {"words": ["a", "a"]},
        {"words": ["a", "b"], "completedWords": ["c"]},
        {"words": ["a"], "forgotWords": ["z"]},
        {"completedWords": []},
    ])
    def test_invalid_sets_are_corruption(self, data):
        with pytest.raises(DataCorruptionError):
            study_set_from_dict(data)


class TestExportImport:
    def test_export_then_import(self, now, make_card):
        card, event = process_review("huis", make_card(), Rating.REMEMBERED, now, 1.5)
        fresh = new_card(now)

        exported = export_data({"huis": card, "kat": fresh}, [event], now)

        assert exported["exportedAt"] == now.isoformat()
        assert set(exported["progress"]) == {"huis", "kat"}
        assert exported["studyLogs"][0]["word"] == "huis"
        assert "stabilityAfter" in exported["studyLogs"][0]

        progress, logs = import_data(json.dumps(exported))

        assert progress == {"huis": card, "kat": fresh}
        assert logs == [event]

    def test_import_accepts_dict_and_bytes(self, now, make_card):
        exported = export_data({"huis": make_card()}, [], now)

        from_dict, _ = import_data(exported)
        from_bytes, _ = import_data(json.dumps(exported).encode("utf-8"))

        assert from_dict == from_bytes

    def test_empty_export(self, now):
        progress, logs = import_data(export_data({}, [], now))

        assert progress == {}
        assert logs == []

    def test_unknown_state_is_not_defaulted(self, now, make_card):
        exported = export_data({"huis": make_card()}, [], now)
        exported["progress"]["huis"]["state"] = "Unknown"

        with pytest.raises(DataCorruptionError):
            import_data(exported)

    def test_invalid_log_rating(self, now):
        _, event = process_review("huis", None, Rating.PERFECT, now)
        exported = export_data({}, [event], now)
        exported["studyLogs"][0]["rating"] = "easy"

        with pytest.raises(DataCorruptionError):
            import_data(exported)

    def test_malformed_json(self):
        with pytest.raises(DataCorruptionError):
            import_data("{not json")
