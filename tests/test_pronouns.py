from peerchat.codec import decode, encode
from peerchat.pronouns import Pronouns, find_preset, make_presets


def test_presets() -> None:
    presets = make_presets()
    assert len(presets) == 8
    assert [p.format_short() for p in presets] == [
        "she/her",
        "he/him",
        "they/them",
        "they/them",
        "fae/faer",
        "e/em",
        "E/Em",
        "it/its",
    ]


def test_formatting() -> None:
    fae = find_preset("fae/faer")
    assert fae.format_pronouns() == "fae/faer/faer/faers/faerself"
    assert fae.format_usage() is None
    assert fae.format_full() == "fae/faer/faer/faers/faerself"

    plural_they = find_preset("they/them", plural=True)
    assert plural_they.format_usage() == "plural"
    assert plural_they.format_full() == "they/them/their/theirs/themselves [plural]"

    spivak = find_preset("E/Em")
    assert spivak.format_full() == "E/Em/Eir/Eirs/Emself [case-sensitive]"

    both = Pronouns(True, True, "a", "b", "c", "d", "e")
    assert both.format_usage() == "plural, case-sensitive"


def test_find_preset() -> None:
    assert find_preset("SHE/Her").subject == "she"
    assert find_preset("they/them").plural is False
    assert find_preset("they/them/their/theirs/themselves").plural is True
    assert find_preset("e/em").case_sensitive is False
    assert find_preset("E/Em").case_sensitive is True
    assert find_preset("he").object == "him"

    assert find_preset("xe/xem") is None
    assert find_preset("") is None
    assert find_preset(" / ") is None
    assert find_preset("a/b/c/d/e/f") is None


def test_pronouns_wire_format() -> None:
    plural_they = find_preset("they/them", plural=True)
    data = encode(plural_they)
    assert data.startswith(b"\x00\x01\x04they\x04them")
    assert decode(data, Pronouns) == plural_they
