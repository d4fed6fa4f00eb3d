"""Rule-based parser and categoriser for bank SMS messages."""
from smsparser.models import CategoryRule, CustomParsingRule, ParsedTransaction, RawSMS, TxnType
from smsparser.parser import parse_messages, parse_sms_message
from smsparser.storage import ParsingContext, load_storage, preferred_currency

__all__ = [
    "CategoryRule",
    "CustomParsingRule",
    "ParsedTransaction",
    "ParsingContext",
    "RawSMS",
    "TxnType",
    "load_storage",
    "parse_messages",
    "parse_sms_message",
    "preferred_currency",
]
