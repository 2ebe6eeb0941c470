from typing import Iterable, Optional, Protocol

from sueta.config import DEFAULT_BOT_NAME_VARIANTS


class AddressableMessage(Protocol):
    text: Optional[str]
    reply_to_author_is_bot: bool


def contains_bot_name(text: Optional[str], name_variants: Iterable[str]) -> bool:
    """Substring match on purpose: variants are case forms of an inflected name."""
    if not text:
        return False
    folded = text.casefold()
    return any(variant.casefold() in folded for variant in name_variants if variant)


def is_addressed_to_bot(
    message: AddressableMessage,
    name_variants: Iterable[str] = DEFAULT_BOT_NAME_VARIANTS,
) -> bool:
    """True for a reply to a bot message or a message mentioning the bot by name."""
    if message.reply_to_author_is_bot:
        return True
    return contains_bot_name(message.text, name_variants)
