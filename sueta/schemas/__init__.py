from sueta.schemas.export import TelegramExport, TelegramExportMessage
from sueta.schemas.inbound import DispatchReceipt, InboundMessage
from sueta.schemas.telegram import TelegramUpdate, TelegramWebhookResponse

__all__ = [
    "DispatchReceipt",
    "InboundMessage",
    "TelegramExport",
    "TelegramExportMessage",
    "TelegramUpdate",
    "TelegramWebhookResponse",
]
