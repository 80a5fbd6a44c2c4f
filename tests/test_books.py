import pytest
from pytest import fail
import dataclasses
from biblepassage import default_registry, loadbooks, standardise, BookRegistry, PassageParser
from biblepassage.errors import UnknownBook, ChapterOutOfRange

registry = default_registry()

alphavrs = """# Versification  "Test"
AAA 1:3 2:4
BBB 1:10
"""

alphabooks = {"1": {"code": "AAA", "name": "Alphas", "singular": "Alpha", "abbreviations": ["Al"]},
              "2": {"code": "BBB", "name": "Beta", "abbreviations": ["Be", "Bt"]}}

def _l(name, res):
    bk = registry[name]
    if bk.name != res:
        fail(f"'{name}' looks up {bk.name} instead of {res}")

def test_count():
    if len(registry) != 66:
        fail(f"Registry has {len(registry)} books")
    nums = [b.number for b in registry]
    if nums != list(range(1, 67)):
        fail(f"Registry iterates out of order: {nums}")

def test_lookup():
    _l("Genesis", "Genesis")
    _l("gen", "Genesis")
    _l(" GEN. ", "Genesis")
    _l("1 Cor", "1 Corinthians")
    _l("I Corinthians", "1 Corinthians")
    _l("II Kings", "2 Kings")
    _l("First Samuel", "1 Samuel")
    _l("Psalm", "Psalms")
    _l("Pss", "Psalms")
    _l("Isiah", "Isaiah")
    _l("Phlm", "Philemon")
    _l("Song of Solomon", "Song of Solomon")
    if "Bob" in registry or "gen" not in registry:
        fail("Containment by name is wrong")
    with pytest.raises(UnknownBook):
        registry["Bob"]
    with pytest.raises(UnknownBook):
        registry.lookup(None)

def test_numbercode():
    if registry.bynumber(43).name != "John" or registry.bycode("jhn").name != "John":
        fail("Lookup by number or code failed for John")
    with pytest.raises(UnknownBook):
        registry.bynumber(67)
    with pytest.raises(UnknownBook):
        registry.bycode("XXX")

def test_standardise():
    for s, res in (("  1 Cor. ", "1 cor"), ("Song-of-Songs", "songofsongs"), ("II KINGS", "ii kings")):
        if standardise(s) != res:
            fail(f"'{s}' standardises to '{standardise(s)}'")

def test_structure():
    ps = registry["Psalms"]
    if ps.chaptersinbook() != 150 or registry.chaptersinbook(ps) != 150:
        fail(f"Psalms has {ps.chaptersinbook()} chapters")
    if ps.versesinchapter(119) != 176 or registry.versesinchapter(ps, 117) != 2:
        fail("Wrong verse counts for Psalms 119 or 117")
    with pytest.raises(ChapterOutOfRange):
        ps.versesinchapter(151)
    if ps.singular != "Psalm" or str(ps) != "Psalms":
        fail(f"Psalms is named {ps} / {ps.singular}")
    total = sum(sum(b.chapters.values()) for b in registry)
    if total != 31104:
        fail(f"Canon has {total} verses")

def test_immutable():
    bk = registry["John"]
    with pytest.raises(dataclasses.FrozenInstanceError):
        bk.name = "Jack"
    with pytest.raises(TypeError):
        bk.chapters[1] = 10

def test_loadbooks():
    reg = loadbooks(alphabooks, alphavrs)
    if len(reg) != 2 or reg["al"].singular != "Alpha" or reg["bt"].singular != "Beta":
        fail(f"Loaded {list(reg)}")
    res = PassageParser(registry=reg).parse("Al 2:3; Be 1:4-6")
    if str(res) != "Alpha 2:3; Beta 1:4-6":
        fail(f"Custom registry parses as {res}")

def test_loadfiles(tmp_path):
    import json
    bf = tmp_path / "books.json"
    bf.write_text(json.dumps(alphabooks), encoding="utf-8")
    vf = tmp_path / "test.vrs"
    vf.write_text(alphavrs, encoding="utf-8")
    reg = loadbooks(str(bf), str(vf))
    if reg.bycode("AAA").chapters != {1: 3, 2: 4}:
        fail(f"Loaded {reg.bycode('AAA').chapters}")

def _bad(table, msg):
    with pytest.raises(ValueError):
        BookRegistry(table)
        fail(msg)

def test_validation():
    _bad({1: {"name": "A", "chapters": {}}}, "Book without chapters")
    _bad({1: {"name": "A", "chapters": {1: 3, 3: 4}}}, "Chapter gap")
    _bad({1: {"name": "A", "chapters": {2: 3}}}, "Chapters not starting at 1")
    _bad({1: {"name": "A", "chapters": {1: 0}}}, "Empty chapter")
    _bad({1: {"name": "A", "chapters": {1: 1000}}}, "Verse beyond the key bound")
    _bad({1: {"name": "A", "chapters": {c: 1 for c in range(1, 1001)}}}, "Chapters beyond the key bound")
    _bad({1: {"name": "A", "abbreviations": ["X"], "chapters": {1: 1}},
          2: {"name": "B", "abbreviations": ["x."], "chapters": {1: 1}}}, "Shared abbreviation")
    with pytest.raises(ValueError):
        loadbooks({"1": {"code": "ZZZ", "name": "Zed"}}, alphavrs)
