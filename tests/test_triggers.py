"""
Tests for trigger evaluation
"""
import json
import pytest

from chatbot_config import ChatbotConfig
from triggers import (
    TriggerEvaluator, CHANNEL_DISABLED, MENTIONED, REPLY_CHAIN, QUESTION, KEYWORD, RANDOM, NO_TRIGGER,
)


@pytest.fixture
def config(tmp_path):
    return ChatbotConfig(str(tmp_path / "chatbot_config.json"))


def evaluator(config, roll=1.0):
    return TriggerEvaluator(config, random_source=lambda: roll)


class TestTriggerEvaluator:
    """Tests for TriggerEvaluator rule order"""

    def test_disabled_channel_beats_mention(self, config, make_message):
        decision = evaluator(config).evaluate(make_message("paco?", channel_name="announcements", mentions_bot=True))
        assert decision.should_respond is False
        assert decision.reason == CHANNEL_DISABLED

    def test_mention(self, config, make_message):
        decision = evaluator(config).evaluate(make_message("<@1> sup", mentions_bot=True))
        assert decision.should_respond is True
        assert decision.reason == MENTIONED

    def test_reply_chain(self, config, make_message):
        decision = evaluator(config).evaluate(make_message("thanks", reply_to_id="m0"))
        assert decision.should_respond is True
        assert decision.reason == REPLY_CHAIN

    def test_question(self, config, make_message):
        decision = evaluator(config).evaluate(make_message("is the stream tonight?  "))
        assert decision.reason == QUESTION

    def test_questions_can_be_turned_off(self, config, make_message):
        config.set_global("respondToQuestions", False)
        decision = evaluator(config).evaluate(make_message("is it tonight?", channel_name="dev-chat"))
        assert decision.reason == NO_TRIGGER

    def test_keyword(self, config, make_message):
        decision = evaluator(config).evaluate(make_message("Does anyone know the wifi password", channel_name="dev-chat"))
        assert decision.should_respond is True
        assert decision.reason == KEYWORD
        assert decision.keyword == "anyone know"

    def test_keyword_case_insensitive(self, tmp_path, make_message):
        path = tmp_path / "chatbot_config.json"
        path.write_text(json.dumps({"triggerKeywords": ["Deploy"]}), encoding="utf-8")

        decision = evaluator(ChatbotConfig(str(path))).evaluate(
            make_message("how to deploy things", channel_name="dev-chat")
        )
        assert decision.reason == KEYWORD

    def test_keyword_from_set_global(self, config, make_message):
        config.set_global("triggerKeywords", ["Release Notes"])
        decision = evaluator(config).evaluate(make_message("where are the RELEASE NOTES", channel_name="dev-chat"))
        assert decision.reason == KEYWORD
        assert decision.keyword == "release notes"

    def test_random_in_random_channel(self, config, make_message):
        decision = evaluator(config, roll=0.01).evaluate(make_message("just chilling"))
        assert decision.should_respond is True
        assert decision.reason == RANDOM

    def test_random_roll_too_high(self, config, make_message):
        decision = evaluator(config, roll=0.5).evaluate(make_message("just chilling"))
        assert decision.should_respond is False
        assert decision.reason == NO_TRIGGER

    def test_random_only_in_listed_channels(self, config, make_message):
        decision = evaluator(config, roll=0.0).evaluate(make_message("just chilling", channel_name="dev-chat"))
        assert decision.reason == NO_TRIGGER

    def test_evaluation_has_no_side_effects(self, config, make_message):
        message = make_message("hello there", channel_name="dev-chat")
        first = evaluator(config).evaluate(message)
        second = evaluator(config).evaluate(message)
        assert (first.should_respond, first.reason) == (second.should_respond, second.reason)
