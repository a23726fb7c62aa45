def normalize_optional_text(value: str | None) -> str | None:
    if value is None:
        return None
    trimmed = value.strip()
    return trimmed or None


def normalize_required_text(value: str, field_label: str) -> str:
    trimmed = value.strip()
    if not trimmed:
        raise ValueError(f"{field_label} cannot be empty")
    return trimmed
