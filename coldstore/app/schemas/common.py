from __future__ import annotations

from typing import Annotated

from pydantic import BeforeValidator


def _blank_to_none(value):
    # Les formulaires envoient "" pour un champ optionnel laissé vide
    if isinstance(value, str) and not value.strip():
        return None
    return value


Blank = BeforeValidator(_blank_to_none)

OptionalText = Annotated[str | None, Blank]

CODE_PATTERN = r"^[A-Z0-9_-]+$"
PHONE_PATTERN = r"^[\d\s\-\+\(\)]+$"


def unique_item_ids(items):
    # une ligne de commande ne peut apparaître qu'une fois par requête
    seen = set()
    for item in items:
        if item.item_id in seen:
            raise ValueError(f"Duplicate item_id {item.item_id}")
        seen.add(item.item_id)
    return items
