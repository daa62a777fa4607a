from __future__ import annotations

from dataclasses import dataclass

from .codec import Bool, Record, String, wire

# (case_sensitive, plural, subject, object, possessive, possessive_pronoun, reflexive)
_PRESETS: tuple[tuple[bool, bool, str, str, str, str, str], ...] = (
    (False, False, "she", "her", "her", "hers", "herself"),
    (False, False, "he", "him", "his", "his", "himself"),
    (False, False, "they", "them", "their", "theirs", "themself"),
    (False, True, "they", "them", "their", "theirs", "themselves"),
    (False, False, "fae", "faer", "faer", "faers", "faerself"),
    (False, False, "e", "em", "eir", "eirs", "emself"),
    (True, False, "E", "Em", "Eir", "Eirs", "Emself"),
    (False, False, "it", "its", "its", "its", "itself"),
)


@dataclass
class Pronouns(Record):
    case_sensitive: bool = wire(Bool)
    plural: bool = wire(Bool)

    # Ex. he, she, they, fae.
    subject: str = wire(String)
    # Ex. him, her, them, faer.
    object: str = wire(String)
    # Ex. his, her, their, faer.
    possessive: str = wire(String)
    # Ex. his, hers, theirs, faers.
    possessive_pronoun: str = wire(String)
    # Ex. himself, herself, themself, faerself.
    reflexive: str = wire(String)

    def forms(self) -> tuple[str, str, str, str, str]:
        return (
            self.subject,
            self.object,
            self.possessive,
            self.possessive_pronoun,
            self.reflexive,
        )

    def format_short(self) -> str:
        return f"{self.subject}/{self.object}"

    def format_pronouns(self) -> str:
        return "/".join(self.forms())

    def format_usage(self) -> str | None:
        usages: list[str] = []
        if self.plural:
            usages.append("plural")
        if self.case_sensitive:
            usages.append("case-sensitive")
        return ", ".join(usages) if usages else None

    def format_full(self) -> str:
        pronouns = self.format_pronouns()
        usage = self.format_usage()
        return f"{pronouns} [{usage}]" if usage else pronouns


def make_presets() -> list[Pronouns]:
    return [Pronouns(*row) for row in _PRESETS]


def find_preset(text: str, *, plural: bool | None = None) -> Pronouns | None:
    """Resolve ``"they/them"``-style text (or a full five-form spelling) to a preset.

    Case-sensitive presets only match their exact spelling; everything else
    matches case-insensitively. When several presets share the given forms,
    the first one wins unless ``plural`` narrows it down.
    """

    parts = [p.strip() for p in str(text).split("/") if p.strip()]
    if not parts:
        return None

    if len(parts) > 5:
        return None

    candidates = [
        p for p in make_presets() if plural is None or p.plural == plural
    ]
    # Exact spellings of case-sensitive presets take priority over folded matches.
    candidates.sort(key=lambda p: not p.case_sensitive)

    for preset in candidates:
        forms = list(preset.forms()[: len(parts)])
        if preset.case_sensitive:
            if forms == parts:
                return preset
        elif [f.lower() for f in forms] == [p.lower() for p in parts]:
            return preset
    return None
