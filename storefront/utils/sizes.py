# storefront/utils/sizes.py


def normalize_size(value) -> str | None:
    """' m ' -> 'M', puste / None -> None."""
    if value is None:
        return None
    size = str(value).strip().upper()
    return size or None
