from __future__ import annotations

from schoolhub.core.exceptions import InvalidClassIdError

CLASS_SECTIONS = ("A", "B", "C", "D", "E")
MIN_CLASS_NUMBER = 1
MAX_CLASS_NUMBER = 12


def parse_class_id(class_id: str, section: str | None = None) -> tuple[int, str]:
    """Split ``"5-A"`` into ``(5, "A")``.

    A bare class number is accepted when ``section`` is passed separately.
    """
    raw = (class_id or "").strip()
    if "-" in raw:
        number_part, _, section_part = raw.partition("-")
    else:
        number_part, section_part = raw, section or ""
    section_part = section_part.strip().upper()

    if not number_part.strip().isdigit():
        raise InvalidClassIdError(class_id)
    class_number = int(number_part)
    if not MIN_CLASS_NUMBER <= class_number <= MAX_CLASS_NUMBER:
        raise InvalidClassIdError(class_id, f"class must be between {MIN_CLASS_NUMBER} and {MAX_CLASS_NUMBER}")
    if section_part not in CLASS_SECTIONS:
        raise InvalidClassIdError(class_id, f"section must be one of {', '.join(CLASS_SECTIONS)}")
    return class_number, section_part


def format_class_id(class_number: int, section: str) -> str:
    return f"{class_number}-{section}"
