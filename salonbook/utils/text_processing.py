# salonbook/utils/text_processing.py
"""Text helpers for outgoing SMS content"""

# Turkish letters the SMS gateway may not render
_TURKISH_TO_ASCII = str.maketrans({
    "ç": "c",
    "ğ": "g",
    "ı": "i",
    "ö": "o",
    "ş": "s",
    "ü": "u",
    "Ç": "C",
    "Ğ": "G",
    "İ": "I",
    "Ö": "O",
    "Ş": "S",
    "Ü": "U",
})


def clean_turkish_chars(text: str) -> str:
    """Transliterate Turkish diacritics to their closest ASCII letters"""
    return text.translate(_TURKISH_TO_ASCII)


def format_sms_date(value) -> str:
    """Format a date the way Turkish locales print it (DD.MM.YYYY)"""
    return value.strftime("%d.%m.%Y")


def only_digits(value: str) -> str:
    return "".join(ch for ch in value if ch.isdigit())
