from conftest import make_inbound
from sueta.services.addressing import contains_bot_name, is_addressed_to_bot


class TestIsAddressedToBot:
    def test_reply_to_bot_with_empty_text(self):
        assert is_addressed_to_bot(make_inbound(text="", reply_to_author_is_bot=True)) is True

    def test_name_mention_any_case(self):
        assert is_addressed_to_bot(make_inbound(text="ЖОРИК, ты тут?")) is True
        assert is_addressed_to_bot(make_inbound(text="спроси у жоры")) is False
        assert is_addressed_to_bot(make_inbound(text="Спасибо, Жора!")) is True

    def test_inflected_forms(self):
        for text in ("позовите Жорика", "скажу Жорику", "с Жориком", "о Жорике", "Жорж, привет"):
            assert is_addressed_to_bot(make_inbound(text=text)) is True, text

    def test_empty_text_without_reply(self):
        assert is_addressed_to_bot(make_inbound(text="")) is False

    def test_plain_message(self):
        assert is_addressed_to_bot(make_inbound(text="Кто идёт на обед?")) is False

    def test_custom_variants(self):
        message = make_inbound(text="Бот, ответь")
        assert is_addressed_to_bot(message, ["бот"]) is True
        assert is_addressed_to_bot(message) is False


class TestContainsBotName:
    def test_substring_match(self):
        assert contains_bot_name("жорикмэн", ["жорик"]) is True

    def test_none_text(self):
        assert contains_bot_name(None, ["жорик"]) is False

    def test_blank_variants_ignored(self):
        assert contains_bot_name("что угодно", ["", "жорик"]) is False
