"""
Menu Key Normalization

Turns POS line items into the stable menu keys that recipes are keyed by.
Most items key off their cleaned name. Configured "virtual" items key off
their name plus the selected modifiers, so one physical recipe always maps
to one key:

    "The Outkast" + "Turkey Sausage Patty"          -> "the outkast - turkey sausage"
    "The Outkast" + "Pork Bacon" + "Cheddar Cheese" -> "the outkast - pork bacon - cheddar"
    "The Outkast" with no protein modifier          -> "the outkast - unknown protein"
"""

import re
from typing import Iterable, List, Optional, Sequence

from cafe_inventory.config.settings import VirtualItemRule

_PUNCTUATION = re.compile(r"[^\w\s-]")
_WHITESPACE = re.compile(r"\s+")


def clean_name(value: Optional[str]) -> str:
    """Lower-case, ``&`` to ``and``, punctuation stripped, spaces collapsed"""
    text = (value or "").lower().replace("&", "and")
    text = _PUNCTUATION.sub("", text)
    return _WHITESPACE.sub(" ", text).strip()


def find_keyword(modifiers: Iterable[str], keywords: Sequence[str]) -> Optional[str]:
    """First configured keyword contained in any cleaned modifier name"""
    cleaned = [clean_name(m) for m in modifiers]
    for keyword in keywords:
        target = clean_name(keyword)
        if any(target in name for name in cleaned):
            return target
    return None


def build_menu_key(
    item_name: str,
    modifiers: Sequence[str],
    rules: Sequence[VirtualItemRule],
) -> str:
    base = clean_name(item_name)
    for rule in rules:
        if base != clean_name(rule.base_item):
            continue
        choice = find_keyword(modifiers, rule.choices) or clean_name(rule.unknown_choice)
        key = f"{base} - {choice}"
        substitution = find_keyword(modifiers, rule.substitutions)
        if substitution:
            key = f"{key} - {substitution}"
        return key
    return base


def virtual_keys(rule: VirtualItemRule) -> List[str]:
    """Every key a rule can produce; handy for checking recipe coverage"""
    base = clean_name(rule.base_item)
    choices = [clean_name(c) for c in rule.choices] + [clean_name(rule.unknown_choice)]
    keys = []
    for choice in choices:
        keys.append(f"{base} - {choice}")
        keys.extend(f"{base} - {choice} - {clean_name(s)}" for s in rule.substitutions)
    return keys
