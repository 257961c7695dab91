"""Tests for keyword intent detection."""

from oppbot.bus.events import Mention
from oppbot.nl.intent_engine import (
    AnalysisRequest,
    HelpRequest,
    IntentEngine,
    NoIntent,
    RequestTooShort,
    has_analysis_keyword,
    mentions_bot,
    strip_command,
)


class TestStripCommand:
    def test_removes_keyword_and_trims(self):
        assert strip_command("产品分析 今天讨论了智能水杯") == "今天讨论了智能水杯"

    def test_removes_inverted_keyword(self):
        assert strip_command("分析产品：折叠椅  ") == "：折叠椅"

    def test_removes_every_occurrence(self):
        assert strip_command("产品分析 A 分析产品 B 产品分析") == "A  B"

    def test_removes_mentions(self):
        assert strip_command("@_user_1 产品分析 露营灯很火 @Alice") == "露营灯很火"

    def test_keyword_detection(self):
        assert has_analysis_keyword("请帮我做个产品分析")
        assert has_analysis_keyword("分析产品")
        assert not has_analysis_keyword("分析一下产品")


class TestDetect:
    def setup_method(self):
        self.engine = IntentEngine()

    def test_short_example_is_too_short(self):
        intent = self.engine.detect("产品分析 今天讨论了智能水杯")
        assert intent == RequestTooShort(text="今天讨论了智能水杯")

    def test_exactly_ten_chars_is_too_short(self):
        assert isinstance(self.engine.detect("产品分析 " + "一" * 10), RequestTooShort)

    def test_eleven_chars_is_analysis(self):
        intent = self.engine.detect("产品分析 " + "一" * 11)
        assert intent == AnalysisRequest(text="一" * 11)

    def test_long_example_is_analysis(self):
        intent = self.engine.detect("产品分析 今天和ChatGPT讨论了智能水杯的市场机会，用户反馈价格太高")
        assert isinstance(intent, AnalysisRequest)
        assert intent.text == "今天和ChatGPT讨论了智能水杯的市场机会，用户反馈价格太高"

    def test_mentions_do_not_count_towards_length(self):
        intent = self.engine.detect("@_user_1 @_user_2 产品分析 短文本")
        assert isinstance(intent, RequestTooShort)

    def test_help_keyword(self):
        assert self.engine.detect("帮助") == HelpRequest()
        assert self.engine.detect("请问怎么用？帮助一下") == HelpRequest()

    def test_help_literal(self):
        assert self.engine.detect("help") == HelpRequest()
        assert self.engine.detect(" HELP ") == HelpRequest()
        assert self.engine.detect("@_user_1 help") == HelpRequest()

    def test_help_literal_must_be_whole_message(self):
        assert self.engine.detect("helpful tips") == NoIntent()

    def test_analysis_takes_precedence_over_help(self):
        intent = self.engine.detect("产品分析 帮助我看看这个智能水杯和保温杯的机会")
        assert isinstance(intent, AnalysisRequest)

    def test_too_short_takes_precedence_over_help(self):
        assert isinstance(self.engine.detect("产品分析 帮助"), RequestTooShort)

    def test_plain_chat_is_no_intent(self):
        assert self.engine.detect("大家中午吃什么") == NoIntent()

    def test_empty_text(self):
        assert self.engine.detect("") == NoIntent()


class TestBotMention:
    def test_any_mention_counts_without_bot_name(self):
        engine = IntentEngine()
        intent = engine.detect("@_user_1", [Mention(key="@_user_1", name="Someone")])
        assert intent == HelpRequest()

    def test_named_bot_must_match(self):
        engine = IntentEngine(bot_name="选品助手")
        alice = [Mention(key="@_user_1", name="Alice")]
        bot = [Mention(key="@_user_1", name="选品助手")]
        assert engine.detect("@_user_1", alice) == NoIntent()
        assert engine.detect("@_user_1", bot) == HelpRequest()

    def test_mention_with_other_content_is_not_help(self):
        someone = [Mention(key="@_user_1", name="Alice")]
        assert IntentEngine().detect("@_user_1 大家中午吃什么", someone) == NoIntent()
        bot = [Mention(key="@_user_1", name="选品助手")]
        assert IntentEngine(bot_name="选品助手").detect("@_user_1 在吗", bot) == NoIntent()

    def test_mention_with_help_word_is_help(self):
        bot = [Mention(key="@_user_1", name="选品助手")]
        assert IntentEngine(bot_name="选品助手").detect("@_user_1 帮助", bot) == HelpRequest()

    def test_mentions_bot_helper(self):
        assert not mentions_bot([])
        assert mentions_bot([Mention(key="@_user_1")])
        assert not mentions_bot([Mention(key="@_user_1", name="x")], bot_name="bot")
