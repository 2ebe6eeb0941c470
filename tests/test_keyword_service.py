import pytest

from sueta.services.keyword_service import STOP_WORDS, KeywordConfig, KeywordExtractor


@pytest.fixture
def extractor():
    return KeywordExtractor()


class TestExtractKeywords:
    @pytest.mark.parametrize(
        "text,expected",
        [
            ("Как дела с проектом?", "дела проектом"),
            ("Жорик, что ты думаешь о погоде?", "думаешь погоде"),
            ("Помнишь, мы говорили о том Docker контейнере?", "помнишь говорили docker контейнере"),
            ("", ""),
            ("что как где когда", ""),
        ],
    )
    def test_known_messages(self, extractor, text, expected):
        assert extractor.extract_keywords(text) == expected

    def test_single_keyword_falls_back_to_cleaned_text(self, extractor):
        assert extractor.extract_keywords("Ну и где пицца?!") == "ну и где пицца"

    def test_only_short_words(self, extractor):
        assert extractor.extract_keywords("я и ты") == ""

    def test_only_bot_name(self, extractor):
        assert extractor.extract_keywords("Жорик!!!") == ""

    def test_underscore_is_separator(self, extractor):
        assert extractor.extract_keywords("release_notes deploy_script") == "release notes deploy script"

    def test_keeps_digits(self, extractor):
        assert extractor.extract_keywords("Встреча 2024 года") == "встреча 2024 года"

    def test_mention_removed_as_whole_word_only(self, extractor):
        assert extractor.extract_keywords("жорикмэн снова пришёл") == "жорикмэн снова пришёл"

    def test_never_raises_on_symbols(self, extractor):
        assert extractor.extract_keywords("!!! ??? ... 🤔") == ""


class TestRemoveBotMentions:
    def test_removes_name_forms(self, extractor):
        cleaned = extractor.remove_bot_mentions("Жорик, как дела? Спроси Жору. Привет, Жора!")
        assert "Жорик" not in cleaned
        assert "Жора" not in cleaned
        assert "Жору" in cleaned  # not a configured variant

    def test_no_mentions(self, extractor):
        assert extractor.remove_bot_mentions("Обычное сообщение") == "Обычное сообщение"


class TestKeywordConfig:
    def test_custom_variants(self):
        extractor = KeywordExtractor(KeywordConfig.from_variants(["бот"]))
        assert extractor.extract_keywords("Бот, расскажи анекдот про программистов") == (
            "расскажи анекдот программистов"
        )

    def test_default_stop_words(self):
        assert KeywordConfig().stop_words == STOP_WORDS
        assert "что" in STOP_WORDS
